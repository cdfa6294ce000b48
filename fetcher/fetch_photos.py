"""
Partner photo handling.

Photos are kept on disk as ``<PHOTOS_DIR>/<NameWithoutSpaces>.jpg`` and
are only downloaded when missing. The remote URL comes from
``PHOTO_URL_TEMPLATE``, which may use ``{raw_name}`` (URL-quoted, as
scraped) and ``{name_without_spaces}``.
"""
import logging
import os
from dataclasses import dataclass, field
from urllib.parse import quote

import requests

from comparator.normalize_name import name_without_spaces, normalize_name
from fetcher.fetch_page import TransportError
from utils.fanout import bounded_map

logger = logging.getLogger(__name__)

PHOTO_EXTENSION = '.jpg'


@dataclass
class PhotoReport:
    available: dict = field(default_factory=dict)   # identity key -> local path
    failed: dict = field(default_factory=dict)      # identity key -> error message
    downloaded: list = field(default_factory=list)  # file names fetched this run


def photo_url_for(raw_name, display_name, template):
    """Build the remote photo URL, or '' when photos are not configured."""
    if not template:
        return ''
    return template.format(
        raw_name=quote(raw_name or ''),
        name_without_spaces=quote(name_without_spaces(display_name)),
    )


def attach_photo_urls(entries, template):
    """Return scraped entries with a ``photo_url`` added where one can be built."""
    enriched = []
    for entry in entries:
        entry = dict(entry)
        display_name = normalize_name(entry.get('raw_name'))
        if display_name:
            entry['photo_url'] = photo_url_for(entry.get('raw_name'), display_name, template)
        enriched.append(entry)
    return enriched


def photo_path_for(record, photos_dir):
    return os.path.join(photos_dir, f"{name_without_spaces(record.display_name)}{PHOTO_EXTENSION}")


def has_photo(record, photos_dir):
    return os.path.isfile(photo_path_for(record, photos_dir))


def download_photo(record, photos_dir, auth=None, timeout=30):
    """
    Download one partner photo to its local path.

    Raises:
        TransportError: when the record has no photo URL or the download
            fails.
    """
    if not record.photo_url:
        raise TransportError(f"No photo URL for {record.display_name}")

    try:
        response = requests.get(record.photo_url, auth=auth, timeout=timeout)
    except requests.RequestException as e:
        raise TransportError(f"Photo request for {record.display_name} failed: {e}") from e

    if response.status_code != 200 or not response.content:
        raise TransportError(
            f"Photo for {record.display_name} returned HTTP {response.status_code}"
        )

    path = photo_path_for(record, photos_dir)
    os.makedirs(photos_dir, exist_ok=True)
    tmp_path = f"{path}.part"
    with open(tmp_path, 'wb') as f:
        f.write(response.content)
    os.replace(tmp_path, path)

    logger.info(f"Downloaded photo for {record.display_name}: {path}")
    return path


def download_missing_photos(records, photos_dir, auth=None, timeout=30, max_workers=4):
    """
    Make sure every record with a photo URL has a local photo.

    Existing files are reused. Downloads run in parallel; a failure is
    recorded in the report and never stops the other downloads.
    """
    report = PhotoReport()
    missing = []

    for record in records:
        if has_photo(record, photos_dir):
            report.available[record.identity_key] = photo_path_for(record, photos_dir)
        elif record.photo_url:
            missing.append(record)

    if not missing:
        return report

    print(f"[*] Downloading {len(missing)} missing photo(s)...")
    results = bounded_map(
        lambda r: download_photo(r, photos_dir, auth=auth, timeout=timeout),
        missing,
        max_workers=max_workers,
    )
    for result in results:
        key = result.item.identity_key
        if result.ok:
            report.available[key] = result.value
            report.downloaded.append(os.path.basename(result.value))
        else:
            report.failed[key] = str(result.error)

    if report.failed:
        logger.warning(f"{len(report.failed)} photo download(s) failed: {sorted(report.failed)}")
    return report
