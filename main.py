from config import settings as default_settings
from fetcher.fetch_page import fetch_page, TransportError
from fetcher.fetch_photos import attach_photo_urls, download_missing_photos, has_photo, photo_path_for
from parser.parse_partners import extract_partners
from comparator.compare_partners import reconcile, SuspiciousScrapeError
from notifier.format_digest import format_digest, build_notification
from notifier.send_email import send_to_group, parse_recipients, DeliveryError
from storage.snapshot_store import JsonSnapshotStore, StoreError
from storage.gcs_storage import (
    is_gcs_enabled, download_snapshot, upload_snapshot, download_all_photos, upload_photos,
)
import logging
import datetime
import sys
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

# Errors that end a run; anything else is a bug and keeps its traceback
FATAL_ERRORS = (TransportError, StoreError, SuspiciousScrapeError, DeliveryError)


def fetch_partner_entries(settings):
    """Fetch and parse the listing page into raw partner entries."""
    auth = (settings.AUTH_USER, settings.AUTH_PASS) if settings.AUTH_USER else None
    html = fetch_page(settings.PARTNERS_URL, auth=auth, timeout=settings.REQUEST_TIMEOUT)
    entries = extract_partners(html, base_url=settings.PARTNERS_URL)
    return attach_photo_urls(entries, settings.PHOTO_URL_TEMPLATE)


def open_snapshot_store(settings):
    if is_gcs_enabled():
        print("\n[*] Cloud Storage enabled — downloading previous snapshot...")
        download_snapshot(settings.SNAPSHOT_FILE)
        download_all_photos(settings.PHOTOS_DIR)
    else:
        print("\n[*] Using local filesystem for the snapshot")
    return JsonSnapshotStore(settings.SNAPSHOT_FILE)


def run(settings=default_settings, store=None, fetch_entries=fetch_partner_entries,
        mailer=send_to_group, run_timestamp=None):
    """
    One monitoring run: scrape, reconcile, fetch photos, send the digest.

    The store is only touched after the scrape succeeded, and the digest
    is only sent after the snapshot has been persisted.

    Returns:
        dict summary of the run.

    Raises:
        TransportError, StoreError, SuspiciousScrapeError: the run was
            aborted before anything was sent.
        DeliveryError: the digest reached some but not all recipients.
    """
    if run_timestamp is None:
        run_timestamp = datetime.datetime.now(ZoneInfo(settings.TIMEZONE))

    print("\n" + "="*80)
    print("Partner Directory Monitor - Weekly Change Detection")
    print("="*80)

    # ═══ Phase 1: Fetch current listing ══════════════════════════════
    print(f"\nFetching partner listing from {settings.PARTNERS_URL}...")
    entries = fetch_entries(settings)
    print(f"[*] Parsed {len(entries)} partner row(s)")

    # ═══ Phase 2: Load snapshot & reconcile ══════════════════════════
    mirror_snapshot = store is None
    if store is None:
        store = open_snapshot_store(settings)
    print(f"[*] Loaded {len(store)} partner(s) from previous snapshot")

    max_left_ratio = settings.MAX_LEFT_RATIO if settings.TURNOVER_GUARD_ENABLED else None
    diff = reconcile(
        entries, store,
        max_left_ratio=max_left_ratio,
        min_guarded_partners=settings.TURNOVER_GUARD_MIN_PARTNERS,
    )

    print(f"\n{'='*80}")
    if diff.has_changes:
        parts = []
        if diff.joined:  parts.append(f"{len(diff.joined)} joined")
        if diff.left:    parts.append(f"{len(diff.left)} left")
        if diff.changed: parts.append(f"{len(diff.changed)} changed")
        print(f"SUMMARY: {', '.join(parts)}")
    else:
        print(f"[+] No changes among the {len(store)} listed partner(s)")
    print(f"{'='*80}\n")

    if mirror_snapshot and is_gcs_enabled():
        print("[*] Uploading snapshot to Cloud Storage...")
        upload_snapshot(settings.SNAPSHOT_FILE)

    # ═══ Phase 3: Photos ═════════════════════════════════════════════
    auth = (settings.AUTH_USER, settings.AUTH_PASS) if settings.AUTH_USER else None
    photos = download_missing_photos(
        diff.joined + diff.changed, settings.PHOTOS_DIR,
        auth=auth, timeout=settings.REQUEST_TIMEOUT, max_workers=settings.PHOTO_WORKERS,
    )
    if mirror_snapshot:
        upload_photos(settings.PHOTOS_DIR, photos.downloaded)

    def photo_lookup(record):
        path = photos.available.get(record.identity_key)
        if path:
            return path
        if has_photo(record, settings.PHOTOS_DIR):
            return photo_path_for(record, settings.PHOTOS_DIR)
        return ''

    # ═══ Phase 4: Format & send ══════════════════════════════════════
    report = format_digest(diff, photo_lookup=photo_lookup)
    subject, body, html_body, inline_images = build_notification(
        report, run_timestamp, settings.DIGEST_TITLE,
    )

    summary = {
        'joined': len(diff.joined),
        'changed': len(diff.changed),
        'left': len(diff.left),
        'partners': len(store),
        'photos_failed': len(photos.failed),
        'sent': 0,
        'failed': 0,
    }

    if not parse_recipients(settings.EMAIL_RECEIVER):
        print("\nEmail not configured. Digest preview:")
        print(f"Subject: {subject}\n")
        print(body)
        return summary

    delivery = mailer(subject, body, settings, html_body=html_body, inline_images=inline_images)
    summary['sent'] = len(delivery.sent)
    summary['failed'] = len(delivery.failed)

    if delivery.failed:
        raise DeliveryError(delivery.failed)

    return summary


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    try:
        run()
    except FATAL_ERRORS as e:
        print(f"\n[X] {type(e).__name__}: {e}")
        logger.error(f"Run failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
