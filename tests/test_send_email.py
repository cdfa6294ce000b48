import pytest

from notifier import send_email as send_email_module
from notifier.send_email import (
    DeliveryError,
    build_message,
    parse_recipients,
    send_email,
    send_to_group,
)


def test_parse_recipients():
    assert parse_recipients("a@example.com; b@example.com,, c@example.com ") == [
        "a@example.com", "b@example.com", "c@example.com",
    ]
    assert parse_recipients("") == []
    assert parse_recipients(None) == []


def test_build_message_with_inline_image():
    msg = build_message(
        "Subject", "plain body", "digest@example.com", "a@example.com",
        html_body='<img src="cid:abc@x">',
        images=[("abc@x", b"\xff\xd8", "image", "jpeg", "JaneDoe.jpg")],
        sender_name="Who's New?",
    )

    assert msg["To"] == "a@example.com"
    assert "digest@example.com" in msg["From"]
    assert msg.get_body(preferencelist=("plain",)).get_content().strip() == "plain body"
    image_parts = [p for p in msg.walk() if p.get_content_maintype() == "image"]
    assert len(image_parts) == 1
    assert image_parts[0]["Content-ID"] == "<abc@x>"


def test_send_to_group_isolates_failures(run_settings):
    delivered = []

    def fake_sender(msg, settings):
        if msg["To"] == "b@example.com":
            raise OSError("mailbox unavailable")
        delivered.append(msg["To"])

    report = send_to_group("Subject", "body", run_settings, html_body="<p>x</p>", sender=fake_sender)

    assert report.sent == ["a@example.com"]
    assert delivered == ["a@example.com"]
    assert list(report.failed) == ["b@example.com"]
    assert "mailbox unavailable" in report.failed["b@example.com"]


def test_send_to_group_sends_one_message_per_recipient(run_settings):
    seen = []

    report = send_to_group("Subject", "body", run_settings, sender=lambda msg, s: seen.append(msg["To"]))

    assert sorted(seen) == ["a@example.com", "b@example.com"]
    assert report.failed == {}


def test_send_email_uses_starttls_and_login(monkeypatch, run_settings):
    events = []

    class FakeSMTP:
        def __init__(self, host, port, timeout=None):
            events.append(("connect", host, port))

        def __enter__(self):
            return self

        def __exit__(self, *exc):
            return False

        def starttls(self):
            events.append(("starttls",))

        def login(self, user, password):
            events.append(("login", user, password))

        def send_message(self, msg):
            events.append(("send", msg["To"]))

    monkeypatch.setattr(send_email_module.smtplib, "SMTP", FakeSMTP)

    send_email(build_message("S", "b", "digest@example.com", "a@example.com"), run_settings)

    assert events == [
        ("connect", "smtp.example.com", 587),
        ("starttls",),
        ("login", "digest@example.com", "pw"),
        ("send", "a@example.com"),
    ]


def test_delivery_error_lists_recipients():
    err = DeliveryError({"b@example.com": "boom", "a@example.com": "bang"})

    assert err.failures == {"b@example.com": "boom", "a@example.com": "bang"}
    assert "a@example.com, b@example.com" in str(err)

    with pytest.raises(DeliveryError):
        raise err


def test_unreadable_inline_image_is_dropped_and_mail_still_sent(run_settings, tmp_path):
    good = tmp_path / "JaneDoe.jpg"
    good.write_bytes(b"\xff\xd8")
    sent = []

    report = send_to_group(
        "Subject", "body", run_settings,
        html_body='<img src="cid:good@x"><img src="cid:gone@x">',
        inline_images={"good@x": str(good), "gone@x": str(tmp_path / "missing.jpg")},
        sender=lambda msg, s: sent.append(msg),
    )

    assert sorted(report.sent) == ["a@example.com", "b@example.com"]
    assert report.failed == {}
    for msg in sent:
        image_ids = [p["Content-ID"] for p in msg.walk() if p.get_content_maintype() == "image"]
        assert image_ids == ["<good@x>"]
