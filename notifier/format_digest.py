"""
Digest formatting for the weekly partner update.

``format_digest`` turns a classified diff into a ``Report``: ordered
sections (Joined, Left, Changed) of one-line entries. It never fails. The
render helpers turn a report into the plain-text and HTML email bodies.
"""
import html
import os
from dataclasses import dataclass, field
from email.utils import make_msgid

NO_CHANGES_MESSAGE = 'No changes this week!'

SECTION_ORDER = (
    ('Joined', 'joined'),
    ('Left', 'left'),
    ('Changed', 'changed'),
)


@dataclass
class DigestEntry:
    text: str
    photo_path: str = ''
    profile_url: str = ''


@dataclass
class DigestSection:
    title: str
    entries: list = field(default_factory=list)


@dataclass
class Report:
    sections: list = field(default_factory=list)
    message: str = ''

    @property
    def is_empty(self):
        return not self.sections


def format_digest(diff, photo_lookup=None):
    """
    Build the report for a ``ClassifiedDiff``.

    ``photo_lookup`` maps a record to a local photo path (or a falsy
    value when no photo is available).
    """
    sections = []
    for title, attr in SECTION_ORDER:
        records = getattr(diff, attr, None) or []
        entries = []
        for record in records:
            photo_path = photo_lookup(record) if photo_lookup else ''
            entries.append(DigestEntry(
                text=record.describe(),
                photo_path=photo_path or '',
                profile_url=record.profile_url or '',
            ))
        if entries:
            sections.append(DigestSection(title=title, entries=entries))

    if not sections:
        return Report(message=NO_CHANGES_MESSAGE)
    return Report(sections=sections)


def render_text(report):
    if report.is_empty:
        return report.message

    lines = []
    for section in report.sections:
        lines.append(section.title)
        lines.append('-' * len(section.title))
        for entry in section.entries:
            lines.append(f"  * {entry.text}")
        lines.append('')
    return '\n'.join(lines).rstrip() + '\n'


def render_html(report, image_cids=None):
    """
    HTML body; photos are referenced through ``image_cids``, a mapping of
    local photo path to Content-ID (without angle brackets).
    """
    if report.is_empty:
        return f"<p>{html.escape(report.message)}</p>"

    image_cids = image_cids or {}
    parts = []
    for section in report.sections:
        parts.append(f"<p><strong>{html.escape(section.title)}</strong></p>")
        parts.append('<ul>')
        for entry in section.entries:
            text = html.escape(entry.text)
            if entry.profile_url:
                text = f'<a href="{html.escape(entry.profile_url, quote=True)}">{text}</a>'
            cid = image_cids.get(entry.photo_path)
            if cid:
                text = (
                    f'<img src="cid:{cid}" alt="" width="64" '
                    f'style="vertical-align:middle;margin-right:8px;"> {text}'
                )
            parts.append(f"<li>{text}</li>")
        parts.append('</ul><br>')
    return ''.join(parts)


def build_notification(report, run_timestamp, title="Who's New?"):
    """
    Build everything the mailer needs for one run.

    Returns:
        (subject, body, html_body, inline_images) where ``inline_images``
        maps Content-ID to local photo path.
    """
    subject = f"{title} Weekly Update {run_timestamp.month}/{run_timestamp.day}"

    image_cids = {}
    for section in report.sections:
        for entry in section.entries:
            if entry.photo_path and entry.photo_path not in image_cids and os.path.isfile(entry.photo_path):
                image_cids[entry.photo_path] = make_msgid(domain='partners.local')[1:-1]

    body = render_text(report)
    html_body = render_html(report, image_cids)
    inline_images = {cid: path for path, cid in image_cids.items()}
    return subject, body, html_body, inline_images
