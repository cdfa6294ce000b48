import datetime

from comparator.compare_partners import ClassifiedDiff
from notifier.format_digest import (
    NO_CHANGES_MESSAGE,
    build_notification,
    format_digest,
    render_html,
    render_text,
)
from storage.snapshot_store import PartnerRecord


def _record(name, phone="", profile_url=""):
    return PartnerRecord(identity_key=name, display_name=name, phone_number=phone, profile_url=profile_url)


def test_empty_diff_collapses_to_sentinel():
    report = format_digest(ClassifiedDiff())

    assert report.is_empty
    assert report.sections == []
    assert report.message == NO_CHANGES_MESSAGE == "No changes this week!"


def test_sections_are_ordered_and_empty_ones_omitted():
    diff = ClassifiedDiff(
        joined=[_record("Jane Doe", "555-1111")],
        changed=[_record("John Roe", "555-2222")],
        left=[],
    )

    report = format_digest(diff)

    assert [s.title for s in report.sections] == ["Joined", "Changed"]
    assert [e.text for e in report.sections[0].entries] == ["Jane Doe: 555-1111"]


def test_left_comes_before_changed():
    diff = ClassifiedDiff(left=[_record("Gone Person")], changed=[_record("Moved Person", "1")])

    report = format_digest(diff)

    assert [s.title for s in report.sections] == ["Left", "Changed"]
    assert report.sections[0].entries[0].text == "Gone Person"


def test_photo_lookup_is_applied():
    diff = ClassifiedDiff(joined=[_record("Jane Doe"), _record("John Roe")])

    report = format_digest(diff, photo_lookup=lambda r: "/photos/JaneDoe.jpg" if r.display_name == "Jane Doe" else None)

    entries = report.sections[0].entries
    assert entries[0].photo_path == "/photos/JaneDoe.jpg"
    assert entries[1].photo_path == ""


def test_render_text_and_html_for_sentinel():
    report = format_digest(ClassifiedDiff())

    assert render_text(report) == NO_CHANGES_MESSAGE
    assert render_html(report) == f"<p>{NO_CHANGES_MESSAGE}</p>"


def test_render_html_escapes_and_links():
    diff = ClassifiedDiff(joined=[_record("Tom & Jerry", "1", profile_url="https://d.example.com/p?id=1&x=2")])

    html_body = render_html(format_digest(diff))

    assert "<p><strong>Joined</strong></p>" in html_body
    assert "Tom &amp; Jerry: 1" in html_body
    assert 'href="https://d.example.com/p?id=1&amp;x=2"' in html_body


def test_build_notification_subject_and_inline_images(tmp_path):
    photo = tmp_path / "JaneDoe.jpg"
    photo.write_bytes(b"\xff\xd8\xff")
    diff = ClassifiedDiff(joined=[_record("Jane Doe", "555-1111")])
    report = format_digest(diff, photo_lookup=lambda r: str(photo))

    subject, body, html_body, inline_images = build_notification(
        report, datetime.datetime(2024, 3, 4, 9, 0), title="Who's New?"
    )

    assert subject == "Who's New? Weekly Update 3/4"
    assert "Jane Doe: 555-1111" in body
    assert list(inline_images.values()) == [str(photo)]
    cid = next(iter(inline_images))
    assert f'src="cid:{cid}"' in html_body


def test_build_notification_skips_missing_photo_files(tmp_path):
    diff = ClassifiedDiff(joined=[_record("Jane Doe")])
    report = format_digest(diff, photo_lookup=lambda r: str(tmp_path / "missing.jpg"))

    _, _, html_body, inline_images = build_notification(report, datetime.datetime(2024, 1, 1))

    assert inline_images == {}
    assert "<img" not in html_body
