"""
Object storage on Cloudflare R2 (S3 API).

The app has three logical buckets (exam files, feedback images, traffic report
PDFs). They live as key prefixes inside the single R2 bucket from config.
"""

import logging
import re
import time
import unicodedata
import uuid
from typing import Iterator

import boto3
from botocore.config import Config

from .config import R2_ACCESS_KEY_ID, R2_ACCOUNT_ID, R2_BUCKET_NAME, R2_SECRET_ACCESS_KEY

logger = logging.getLogger(__name__)

PATIENT_FILES_BUCKET = "patient-files"
PATIENT_FEEDBACKS_BUCKET = "patient-feedbacks"
TRAFFIC_REPORTS_BUCKET = "traffic-reports"

# Signed URL expiration time (1 hour)
SIGNED_URL_EXPIRATION = 3600

MAX_UPLOAD_SIZE = 10 * 1024 * 1024  # 10MB
DOWNLOAD_CHUNK_SIZE = 64 * 1024

ALLOWED_IMAGE_TYPES = [
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/webp",
]

ALLOWED_DOCUMENT_TYPES = ["application/pdf", *ALLOWED_IMAGE_TYPES]

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".heic")


class StorageError(Exception):
    """Raised when R2 rejects an operation"""


def get_r2_client():
    """Create and return an R2 client."""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
    )


def sanitize_file_name(name: str) -> str:
    """Strip accents and replace anything outside [a-zA-Z0-9.-] with '_'."""
    normalized = unicodedata.normalize("NFD", name or "")
    without_accents = "".join(c for c in normalized if unicodedata.category(c) != "Mn")
    return re.sub(r"[^a-zA-Z0-9.-]", "_", without_accents)


def file_extension(name: str) -> str:
    return name.rsplit(".", 1)[-1].lower() if "." in (name or "") else ""


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def build_patient_file_key(patient_id: str, file_name: str) -> str:
    return f"{patient_id}/{timestamp_ms()}_{sanitize_file_name(file_name)}"


def build_feedback_key(patient_id: str, file_name: str) -> str:
    ext = file_extension(file_name) or "jpg"
    return f"{patient_id}/{timestamp_ms()}_{uuid.uuid4().hex[:8]}.{ext}"


def build_traffic_report_key(file_name: str) -> str:
    return f"{timestamp_ms()}_{sanitize_file_name(file_name)}"


def _object_key(bucket: str, path: str) -> str:
    return f"{bucket}/{path}"


def upload_object(bucket: str, path: str, data: bytes, content_type: str) -> str:
    """Upload bytes and return the path (relative to the logical bucket)."""
    key = _object_key(bucket, path)
    try:
        get_r2_client().put_object(
            Bucket=R2_BUCKET_NAME, Key=key, Body=data, ContentType=content_type
        )
    except Exception as e:
        logger.error(f"❌ R2 upload failed for {key}: {e}")
        raise StorageError(f"Upload failed: {e}") from e

    logger.info(f"✅ Uploaded {key} ({len(data)} bytes)")
    return path


def generate_signed_url(bucket: str, path: str, expiration: int = SIGNED_URL_EXPIRATION) -> str:
    """Generate a presigned URL for accessing a private object in R2."""
    key = _object_key(bucket, path)
    params = {"Bucket": R2_BUCKET_NAME, "Key": key}

    # Render images and PDFs in the browser instead of downloading them
    if key.lower().endswith(IMAGE_EXTENSIONS + (".pdf",)):
        params["ResponseContentDisposition"] = "inline"

    try:
        url = get_r2_client().generate_presigned_url(
            "get_object",
            Params=params,
            ExpiresIn=expiration,
        )
    except Exception as e:
        logger.error(f"❌ Failed to generate presigned URL for key {key}: {e}")
        raise StorageError(f"Could not sign URL: {e}") from e

    logger.debug(f"✅ Generated presigned URL for key: {key}")
    return url


def stream_object(bucket: str, path: str, chunk_size: int = DOWNLOAD_CHUNK_SIZE) -> Iterator[bytes]:
    """Open an object and return an iterator over its body.

    The object is fetched before returning, so a missing key raises
    StorageError here rather than halfway through a response.
    """
    key = _object_key(bucket, path)
    try:
        body = get_r2_client().get_object(Bucket=R2_BUCKET_NAME, Key=key)["Body"]
    except Exception as e:
        logger.error(f"❌ R2 download failed for {key}: {e}")
        raise StorageError(f"Download failed: {e}") from e

    def chunks() -> Iterator[bytes]:
        try:
            yield from body.iter_chunks(chunk_size=chunk_size)
        finally:
            body.close()

    return chunks()


def delete_object(bucket: str, path: str) -> None:
    key = _object_key(bucket, path)
    try:
        get_r2_client().delete_object(Bucket=R2_BUCKET_NAME, Key=key)
    except Exception as e:
        logger.error(f"❌ R2 delete failed for {key}: {e}")
        raise StorageError(f"Delete failed: {e}") from e
    logger.info(f"🗑️ Deleted {key}")
