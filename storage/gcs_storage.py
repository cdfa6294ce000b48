"""
Cloud Storage mirror for the snapshot file and partner photos.
Used when running on GCP Cloud Run (ephemeral containers).
Falls back to the local filesystem when GCS is not configured.

The snapshot is critical state: any failure to mirror it raises
StoreError so the run stops before a digest goes out. Photos are
best-effort and only logged.
"""
import os
import logging

from google.cloud import storage

from storage.snapshot_store import StoreError

logger = logging.getLogger(__name__)

PHOTOS_PREFIX = "photos/"


def _get_bucket_name():
    """Get GCS bucket name from environment variable."""
    return os.getenv('GCS_BUCKET_NAME', '')


def _get_bucket():
    return storage.Client().bucket(_get_bucket_name())


def is_gcs_enabled():
    """Check if GCS storage is configured."""
    return bool(_get_bucket_name())


def download_snapshot(local_path):
    """
    Replace the local snapshot with the copy in GCS.
    Returns True if a snapshot was downloaded, False if GCS has none yet.
    """
    if not is_gcs_enabled():
        return os.path.exists(local_path)

    blob_name = os.path.basename(local_path)
    try:
        blob = _get_bucket().blob(blob_name)
        if not blob.exists():
            logger.info(f"No existing snapshot in GCS: {blob_name}")
            if os.path.exists(local_path):
                # GCS is the single source of truth
                os.remove(local_path)
            return False

        os.makedirs(os.path.dirname(local_path) or '.', exist_ok=True)
        blob.download_to_filename(local_path)
        logger.info(f"Downloaded snapshot from GCS: {blob_name}")
        return True
    except Exception as e:
        raise StoreError(f"Error downloading snapshot from GCS: {e}") from e


def upload_snapshot(local_path):
    if not is_gcs_enabled():
        return

    blob_name = os.path.basename(local_path)
    try:
        _get_bucket().blob(blob_name).upload_from_filename(local_path)
        logger.info(f"Uploaded snapshot to GCS: {blob_name}")
    except Exception as e:
        raise StoreError(f"Error uploading snapshot to GCS: {e}") from e


def download_all_photos(local_dir):
    """
    Download all photos from GCS to local directory.
    """
    if not is_gcs_enabled():
        return

    try:
        blobs = _get_bucket().list_blobs(prefix=PHOTOS_PREFIX)
        os.makedirs(local_dir, exist_ok=True)
        count = 0

        for blob in blobs:
            # Skip the "directory" blob itself
            if blob.name == PHOTOS_PREFIX:
                continue

            filename = os.path.basename(blob.name)
            blob.download_to_filename(os.path.join(local_dir, filename))
            count += 1

        logger.info(f"Downloaded {count} photos from GCS bucket '{_get_bucket_name()}'")

    except Exception as e:
        logger.warning(f"Error downloading photos from GCS: {e}")


def upload_photos(local_dir, filenames):
    """
    Upload the given photo files from local directory to GCS.
    """
    if not is_gcs_enabled() or not filenames:
        return

    try:
        bucket = _get_bucket()
        count = 0
        for filename in filenames:
            bucket.blob(f"{PHOTOS_PREFIX}{filename}").upload_from_filename(
                os.path.join(local_dir, filename)
            )
            count += 1

        logger.info(f"Uploaded {count} photos to GCS bucket '{_get_bucket_name()}'")

    except Exception as e:
        logger.warning(f"Error uploading photos to GCS: {e}")
