"""
Snapshot storage for the partner directory.

The snapshot is the set of partner records seen by the last successful
run. It is kept in memory by ``SnapshotStore`` and written through to a
single JSON document by ``JsonSnapshotStore``:

    {"partners": {"Jane Doe": {"identity_key": "Jane Doe", ...}}}

Every mutating call persists immediately, so a process killed between
two steps never leaves records that silently look "current".
"""
import dataclasses
import datetime
import json
import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class StoreError(RuntimeError):
    """Raised when the snapshot cannot be read or written."""


@dataclass
class PartnerRecord:
    identity_key: str
    display_name: str
    raw_name: str = ''
    phone_number: str = ''
    current: bool = True
    photo_url: str = ''
    profile_url: str = ''
    created_at: str = ''

    def to_dict(self):
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data):
        field_names = {f.name for f in dataclasses.fields(cls)}
        unknown = set(data) - field_names
        if unknown:
            raise StoreError(f"Unknown partner fields in snapshot: {sorted(unknown)}")
        try:
            record = cls(**data)
        except TypeError as e:
            raise StoreError(f"Malformed partner record in snapshot: {e}") from e

        for f in dataclasses.fields(cls):
            value = getattr(record, f.name)
            expected = bool if f.name == 'current' else str
            if type(value) is not expected:
                raise StoreError(
                    f"Partner field '{f.name}' must be {expected.__name__}, "
                    f"got {type(value).__name__} ({value!r})"
                )
        return record

    def describe(self):
        """Human readable line: 'Name: number' or just 'Name'."""
        if self.phone_number:
            return f"{self.display_name}: {self.phone_number}"
        return self.display_name


def _utc_now():
    return datetime.datetime.now(datetime.timezone.utc).isoformat(timespec='seconds')


class SnapshotStore:
    """
    In-memory snapshot keyed by identity key.

    ``flush()`` is a no-op here; subclasses persist the state. Records
    handed out by the store are copies, so callers can only change the
    snapshot through the store's own operations.
    """

    def __init__(self, records=None):
        self._partners = {}
        for record in records or []:
            self._partners[record.identity_key] = dataclasses.replace(record)

    def __len__(self):
        return len(self._partners)

    def __contains__(self, key):
        return key in self._partners

    def load_all(self):
        return [dataclasses.replace(r) for r in self._partners.values()]

    def mark_all_not_current(self):
        for record in self._partners.values():
            record.current = False
        self.flush()

    def find_by_identity(self, key):
        record = self._partners.get(key)
        if record is None:
            return None
        return dataclasses.replace(record)

    def upsert(self, record):
        """
        Insert a new record or merge into the existing one.

        A merge overwrites the phone number and the non-identity URLs,
        and marks the record current. Identity and creation time are
        never touched.
        """
        existing = self._partners.get(record.identity_key)
        if existing is None:
            stored = dataclasses.replace(record, current=True)
            if not stored.created_at:
                stored.created_at = _utc_now()
            self._partners[stored.identity_key] = stored
        else:
            existing.phone_number = record.phone_number
            existing.current = True
            if record.raw_name:
                existing.raw_name = record.raw_name
            if record.profile_url:
                existing.profile_url = record.profile_url
            if record.photo_url:
                existing.photo_url = record.photo_url
            stored = existing

        self.flush()
        return dataclasses.replace(stored)

    def remove(self, key):
        if self._partners.pop(key, None) is not None:
            self.flush()

    def flush(self):
        pass

    def to_document(self):
        return {
            'partners': {
                key: record.to_dict() for key, record in self._partners.items()
            }
        }


class JsonSnapshotStore(SnapshotStore):
    """Snapshot persisted as a single JSON file, rewritten atomically."""

    def __init__(self, path):
        super().__init__()
        self.path = path
        self._read()

    def _read(self):
        if not os.path.exists(self.path):
            logger.info(f"No snapshot at {self.path}, starting with an empty directory")
            self.flush()
            return

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            raise StoreError(f"Could not read snapshot {self.path}: {e}") from e

        partners = document.get('partners') if isinstance(document, dict) else None
        if not isinstance(partners, dict):
            raise StoreError(f"Snapshot {self.path} has no 'partners' mapping")

        for key, data in partners.items():
            if not isinstance(data, dict):
                raise StoreError(f"Snapshot entry for '{key}' is not an object")
            record = PartnerRecord.from_dict(data)
            if record.identity_key != key:
                raise StoreError(
                    f"Snapshot entry '{key}' carries identity key '{record.identity_key}'"
                )
            self._partners[key] = record

        logger.info(f"Loaded {len(self._partners)} partner(s) from {self.path}")

    def flush(self):
        directory = os.path.dirname(self.path)
        tmp_path = f"{self.path}.tmp"
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(self.to_document(), f, indent=2, ensure_ascii=False)
                f.write('\n')
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StoreError(f"Could not write snapshot {self.path}: {e}") from e
