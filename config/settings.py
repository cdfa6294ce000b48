import os

from dotenv import load_dotenv

# Values from a local .env file; variables already set in the environment win
load_dotenv()

# ==============================================================================
# PARTNER DIRECTORY CONFIGURATION
# ==============================================================================

# Page holding the partner listing table, protected by HTTP basic auth
PARTNERS_URL = os.getenv('PARTNERS_URL', os.getenv('URL', ''))
AUTH_USER = os.getenv('AUTH_USER', '')
AUTH_PASS = os.getenv('AUTH_PASS', '')
REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', "30"))

# Snapshot of the partners seen by the last successful run
SNAPSHOT_FILE = os.getenv('SNAPSHOT_FILE', "db.json")

# ------------------------------------------------------------------------------
# PHOTOS
# ------------------------------------------------------------------------------
# Leave PHOTO_URL_TEMPLATE empty to disable photos. Placeholders:
#   {raw_name}            - the name as scraped, URL-quoted
#   {name_without_spaces} - "First Last" with all whitespace removed
# Example: "https://intranet.example.com/photos/{name_without_spaces}.jpg"
PHOTOS_DIR = os.getenv('PHOTOS_DIR', "photos")
PHOTO_URL_TEMPLATE = os.getenv('PHOTO_URL_TEMPLATE', "")
PHOTO_WORKERS = int(os.getenv('PHOTO_WORKERS', "4"))

# ------------------------------------------------------------------------------
# TURNOVER GUARD
# ------------------------------------------------------------------------------
# An empty or broken listing page would otherwise report everyone as "left".
# The run is refused when the scrape has no parseable partners at all, or when
# more than MAX_LEFT_RATIO of a snapshot with at least
# TURNOVER_GUARD_MIN_PARTNERS records would leave in one run.
TURNOVER_GUARD_ENABLED = os.getenv('TURNOVER_GUARD_ENABLED', "true").lower() == "true"
MAX_LEFT_RATIO = float(os.getenv('MAX_LEFT_RATIO', "0.7"))
TURNOVER_GUARD_MIN_PARTNERS = int(os.getenv('TURNOVER_GUARD_MIN_PARTNERS', "10"))

# ==============================================================================
# EMAIL CONFIGURATION
# ==============================================================================

# EMAIL_RECEIVER can be a single address or a comma-separated list.
# Leave it empty to print the digest instead of sending it.
EMAIL_SENDER = os.getenv('EMAIL_SENDER', "")
EMAIL_SENDER_NAME = os.getenv('EMAIL_SENDER_NAME', "Who's New?")
EMAIL_PASSWORD = os.getenv('EMAIL_PASSWORD', "")  # Use Secret Manager in production!
EMAIL_RECEIVER = os.getenv('EMAIL_RECEIVER', os.getenv('EMAIL_RECIPIENTS', ""))
SMTP_SERVER = os.getenv('SMTP_SERVER', "smtp.gmail.com")
SMTP_PORT = int(os.getenv('SMTP_PORT', "587"))
EMAIL_WORKERS = int(os.getenv('EMAIL_WORKERS', "4"))

DIGEST_TITLE = os.getenv('DIGEST_TITLE', "Who's New?")

# ==============================================================================
# SCHEDULE
# ==============================================================================

# Weekly digest, Monday 8:00 by default
SCHEDULE_DAY_OF_WEEK = os.getenv('SCHEDULE_DAY_OF_WEEK', "mon")
SCHEDULE_HOUR = int(os.getenv('SCHEDULE_HOUR', "8"))
SCHEDULE_MINUTE = int(os.getenv('SCHEDULE_MINUTE', "0"))
TIMEZONE = os.getenv('TIMEZONE', "UTC")

LOG_FILE = os.getenv('LOG_FILE', "scheduler.log")

# ==============================================================================
# NOTES FOR DEPLOYMENT
# ==============================================================================
#
# For GCP Cloud Run deployment, environment variables are set via:
#   gcloud run deploy --set-env-vars KEY=VALUE
# and GCS_BUCKET_NAME enables mirroring db.json and photos/ to a bucket.
#
# For sensitive data like EMAIL_PASSWORD and AUTH_PASS, use Secret Manager:
#   gcloud run deploy --update-secrets EMAIL_PASSWORD=secret-name:latest
#
# For local development, put the values in a .env file next to main.py.
#
