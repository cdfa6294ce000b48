"""
Reconciliation of a fresh partner scrape against the stored snapshot.

Produces the joined / changed / left classification for the digest and
leaves the snapshot ready for the next run:

  1. every stored partner is marked not current,
  2. each scraped entry is matched by its normalized name and upserted,
  3. partners still not current have left and are removed.

Running the same scrape twice yields an empty diff the second time.
"""
import logging
from dataclasses import dataclass, field, replace

from comparator.normalize_name import normalize_name
from storage.snapshot_store import PartnerRecord

logger = logging.getLogger(__name__)

_JOINED = object()


class SuspiciousScrapeError(RuntimeError):
    """Raised when a scrape would drop too much of the directory at once."""


@dataclass
class ClassifiedDiff:
    joined: list = field(default_factory=list)
    changed: list = field(default_factory=list)
    left: list = field(default_factory=list)

    @property
    def has_changes(self):
        return bool(self.joined or self.changed or self.left)

    def summary(self):
        return {
            'joined': len(self.joined),
            'changed': len(self.changed),
            'left': len(self.left),
        }


def _scraped_keys(scraped_entries):
    keys = []
    for entry in scraped_entries:
        key = normalize_name(entry.get('raw_name'))
        if key:
            keys.append(key)
    return keys


def check_turnover(scraped_entries, store, max_left_ratio, min_guarded_partners=0):
    """
    Refuse a scrape that looks like a broken page rather than real turnover.

    A non-empty snapshot facing a scrape with no parseable names always
    fails. Otherwise the check only applies once the snapshot holds at
    least ``min_guarded_partners`` records, and fails when the share of
    stored partners missing from the scrape exceeds ``max_left_ratio``.
    Nothing is written to the store.
    """
    stored = store.load_all()
    if not stored:
        return

    scraped = set(_scraped_keys(scraped_entries))
    if not scraped:
        raise SuspiciousScrapeError(
            f"Scrape contained no parseable partners while the snapshot holds "
            f"{len(stored)}; refusing to report everyone as left"
        )

    if len(stored) < min_guarded_partners:
        return

    missing = sum(1 for record in stored if record.identity_key not in scraped)
    ratio = missing / len(stored)
    if ratio > max_left_ratio:
        raise SuspiciousScrapeError(
            f"{missing} of {len(stored)} partners ({ratio:.0%}) missing from the scrape, "
            f"above the {max_left_ratio:.0%} limit"
        )


def reconcile(scraped_entries, store, max_left_ratio=None, min_guarded_partners=0):
    """
    Apply a scrape to the snapshot and classify what changed.

    Args:
        scraped_entries: iterable of mappings with ``raw_name`` and
            ``phone_number`` (plus optional ``profile_url``/``photo_url``)
            in page order.
        store: a ``SnapshotStore``; mutated in place.
        max_left_ratio: when set, run ``check_turnover`` first.
        min_guarded_partners: passed to ``check_turnover``.

    Returns:
        ClassifiedDiff
    """
    scraped_entries = list(scraped_entries)

    if max_left_ratio is not None:
        check_turnover(scraped_entries, store, max_left_ratio, min_guarded_partners)

    store.mark_all_not_current()

    # identity key -> phone number held by the snapshot before this run,
    # _JOINED for partners created during this run. Insertion order is the
    # order of first appearance in the scrape.
    touched = {}
    skipped = 0

    for entry in scraped_entries:
        raw_name = entry.get('raw_name') or ''
        key = normalize_name(raw_name)
        if not key:
            skipped += 1
            logger.debug(f"Dropping unparseable partner name: {raw_name!r}")
            continue

        phone_number = (entry.get('phone_number') or '').strip()
        candidate = PartnerRecord(
            identity_key=key,
            display_name=key,
            raw_name=raw_name,
            phone_number=phone_number,
            current=True,
            photo_url=entry.get('photo_url') or '',
            profile_url=entry.get('profile_url') or '',
        )

        existing = store.find_by_identity(key)
        if key not in touched:
            touched[key] = existing.phone_number if existing is not None else _JOINED

        if existing is not None and existing.phone_number != phone_number:
            logger.info(f"Phone number changed for {key}")

        store.upsert(candidate)

    diff = ClassifiedDiff()
    for key, previous_phone in touched.items():
        record = store.find_by_identity(key)
        if previous_phone is _JOINED:
            diff.joined.append(record)
        elif record.phone_number != previous_phone:
            diff.changed.append(record)

    for record in store.load_all():
        if not record.current:
            diff.left.append(replace(record))
            store.remove(record.identity_key)

    if skipped:
        logger.warning(f"Skipped {skipped} partner row(s) with unparseable names")
    logger.info(
        f"Reconciled {len(touched)} partner(s): {len(diff.joined)} joined, "
        f"{len(diff.changed)} changed, {len(diff.left)} left"
    )
    return diff
