"""
Blob store access.

Image bytes live in Google Cloud Storage under opaque keys; the database only
persists the keys and a cache of presigned download URLs.
"""
import logging
from datetime import timedelta
from typing import Optional, Protocol

from google.cloud import storage

from studio.config import Settings

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def put(self, key: str, data: bytes, content_type: str) -> None: ...

    def get(self, key: str) -> bytes: ...

    def presigned_get_url(self, key: str, ttl_seconds: int) -> str: ...


class GCSBlobStore:
    """BlobStore backed by a single Google Cloud Storage bucket."""

    def __init__(self, client: storage.Client, bucket_name: str):
        self.client = client
        self.bucket_name = bucket_name
        self.bucket = client.bucket(bucket_name)

    def put(self, key: str, data: bytes, content_type: str) -> None:
        blob = self.bucket.blob(key)
        blob.upload_from_string(data, content_type=content_type)
        logger.info("Uploaded %d bytes to gs://%s/%s", len(data), self.bucket_name, key)

    def get(self, key: str) -> bytes:
        return self.bucket.blob(key).download_as_bytes()

    def presigned_get_url(self, key: str, ttl_seconds: int) -> str:
        return self.bucket.blob(key).generate_signed_url(
            version="v4",
            expiration=timedelta(seconds=ttl_seconds),
            method="GET",
        )


def generate_image_key(user_id: str, image_id: str) -> str:
    return f"users/{user_id}/{image_id}.png"


def build_blob_store(settings: Settings) -> Optional[BlobStore]:
    """Create the process-wide blob store, or None when no bucket is configured."""
    if not settings.GCS_BUCKET_NAME:
        logger.warning("GCS_BUCKET_NAME not set. Image storage is disabled.")
        return None

    client = storage.Client(project=settings.GOOGLE_CLOUD_PROJECT)
    logger.info("Google Cloud Storage client initialized for bucket: %s", settings.GCS_BUCKET_NAME)
    return GCSBlobStore(client, settings.GCS_BUCKET_NAME)
