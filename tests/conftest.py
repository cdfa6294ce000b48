from __future__ import annotations

import sys
import types
from pathlib import Path

import pytest


def pytest_configure():
    # Ensure project root is on sys.path for absolute imports like 'comparator.compare_partners'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


@pytest.fixture
def run_settings(tmp_path):
    """Settings object with the same attributes as config.settings, pointed at tmp_path."""
    return types.SimpleNamespace(
        PARTNERS_URL="https://directory.example.com/partners",
        AUTH_USER="user",
        AUTH_PASS="secret",
        REQUEST_TIMEOUT=5,
        SNAPSHOT_FILE=str(tmp_path / "db.json"),
        PHOTOS_DIR=str(tmp_path / "photos"),
        PHOTO_URL_TEMPLATE="",
        PHOTO_WORKERS=2,
        TURNOVER_GUARD_ENABLED=False,
        MAX_LEFT_RATIO=0.7,
        TURNOVER_GUARD_MIN_PARTNERS=10,
        EMAIL_SENDER="digest@example.com",
        EMAIL_SENDER_NAME="Who's New?",
        EMAIL_PASSWORD="pw",
        EMAIL_RECEIVER="a@example.com, b@example.com",
        SMTP_SERVER="smtp.example.com",
        SMTP_PORT=587,
        EMAIL_WORKERS=2,
        DIGEST_TITLE="Who's New?",
        TIMEZONE="UTC",
    )
