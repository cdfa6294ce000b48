import logging
import mimetypes
import os
import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import formataddr

from utils.fanout import bounded_map

logger = logging.getLogger(__name__)


class DeliveryError(RuntimeError):
    """Raised after a group send when one or more recipients failed."""

    def __init__(self, failures):
        self.failures = dict(failures)
        names = ', '.join(sorted(self.failures))
        super().__init__(f"Digest delivery failed for {len(self.failures)} recipient(s): {names}")


@dataclass
class DeliveryReport:
    sent: list = field(default_factory=list)
    failed: dict = field(default_factory=dict)   # recipient -> error message


def parse_recipients(receiver):
    """
    EMAIL_RECEIVER can be a single email or a comma/semicolon separated list.
    """
    receiver = (receiver or '').replace(';', ',')
    return [email.strip() for email in receiver.split(',') if email.strip()]


def _load_images(inline_images):
    images = []
    for cid, path in (inline_images or {}).items():
        mime_type, _ = mimetypes.guess_type(path)
        maintype, subtype = (mime_type or 'image/jpeg').split('/', 1)
        try:
            with open(path, 'rb') as f:
                data = f.read()
        except OSError as e:
            logger.warning(f"Dropping inline image {cid}: {e}")
            continue
        images.append((cid, data, maintype, subtype, os.path.basename(path)))
    return images


def build_message(subject, body, sender, recipient, html_body=None, images=None, sender_name=None):
    """
    Build a single-recipient message, plain text with an optional HTML
    alternative. ``images`` are (cid, data, maintype, subtype, filename)
    tuples attached as related parts of the HTML body.
    """
    msg = EmailMessage()
    msg["From"] = formataddr((sender_name, sender)) if sender_name else sender
    msg["To"] = recipient
    msg["Subject"] = subject
    msg.set_content(body)

    if html_body:
        msg.add_alternative(html_body, subtype='html')
        html_part = msg.get_payload()[-1]
        for cid, data, maintype, subtype, filename in images or []:
            html_part.add_related(
                data, maintype=maintype, subtype=subtype, cid=f"<{cid}>", filename=filename
            )

    return msg


def send_email(msg, settings):
    """Deliver one message over SMTP with STARTTLS."""
    with smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT, timeout=30) as server:
        server.starttls()
        if settings.EMAIL_PASSWORD:
            server.login(settings.EMAIL_SENDER, settings.EMAIL_PASSWORD)
        server.send_message(msg)
    logger.info(f"Email sent to {msg['To']}")


def send_to_group(subject, body, settings, html_body=None, inline_images=None, sender=send_email):
    """
    Send the digest to every configured recipient, one message each.

    Sends run in parallel (bounded by EMAIL_WORKERS). A failed recipient
    is recorded in the returned report; the others are still sent.
    """
    recipients = parse_recipients(settings.EMAIL_RECEIVER)
    images = _load_images(inline_images)

    def _deliver(recipient):
        msg = build_message(
            subject, body, settings.EMAIL_SENDER, recipient,
            html_body=html_body, images=images,
            sender_name=getattr(settings, 'EMAIL_SENDER_NAME', None),
        )
        sender(msg, settings)
        return recipient

    report = DeliveryReport()
    results = bounded_map(_deliver, recipients, max_workers=getattr(settings, 'EMAIL_WORKERS', 4))
    for result in results:
        if result.ok:
            report.sent.append(result.item)
        else:
            report.failed[result.item] = str(result.error)

    if report.sent:
        print(f"✅ Email sent to {len(report.sent)} recipient(s): {', '.join(report.sent)}")
    if report.failed:
        print(f"[X] Email failed for {len(report.failed)} recipient(s): {', '.join(report.failed)}")
    return report
