import logging
import uuid
from urllib.parse import unquote
from typing import Optional

from fastapi import HTTPException, UploadFile, status
from google.cloud import storage

import config

logger = logging.getLogger('uvicorn.error')

MAX_IMAGE_SIZE_KB = 1024
MAX_IMAGE_SIZE_BYTES = MAX_IMAGE_SIZE_KB * 1024
ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif")


async def read_image(image_file: UploadFile, username: str) -> bytes:
    """
    Reads an uploaded image and enforces type and size limits.
    Raises 400 for unsupported types and 413 for oversized files.
    """
    if image_file.content_type not in ALLOWED_IMAGE_TYPES:
        logger.warning(f"User '{username}' uploaded unsupported file type {image_file.content_type} ({image_file.filename})")
        raise HTTPException(status_code=400, detail="Only JPG, PNG, or GIF files are allowed.")
    image_bytes = await image_file.read()
    if len(image_bytes) > MAX_IMAGE_SIZE_BYTES:
        logger.warning(f"User '{username}' attempted to upload oversized image: {image_file.filename} ({len(image_bytes)} bytes)")
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Image file size exceeds the limit of {MAX_IMAGE_SIZE_KB} KB."
        )
    return image_bytes


def upload_to_gcs(
    gcs_client: storage.Client,
    image_bytes: bytes,
    filename: str,
    content_type: str,
    folder: str,
) -> Optional[str]:
    if not image_bytes or not filename:
        return None
    try:
        bucket = gcs_client.bucket(config.GCS_BUCKET_NAME)
        safe_filename = f"{uuid.uuid4()}_{filename.replace(' ', '_')}"
        blob_name = f"{folder}/{safe_filename}"
        blob = bucket.blob(blob_name)
        blob.upload_from_string(image_bytes, content_type=content_type)
        logger.info(f"File {filename} uploaded to gs://{config.GCS_BUCKET_NAME}/{blob_name}")
        return blob.public_url
    except Exception as e:
        logger.exception(f"Failed to upload {filename} to GCS under {folder}: {e}")
        return None


async def store_optional_image(
    gcs_client: storage.Client,
    image_file: Optional[UploadFile],
    folder: str,
    username: str,
) -> Optional[str]:
    """Validates and uploads ``image_file`` if one was sent. Upload failures yield None."""
    if not image_file or not image_file.filename:
        return None
    image_bytes = await read_image(image_file, username)
    public_url = upload_to_gcs(
        gcs_client=gcs_client,
        image_bytes=image_bytes,
        filename=image_file.filename,
        content_type=image_file.content_type or 'application/octet-stream',
        folder=folder,
    )
    if public_url is None:
        logger.error(f"GCS image upload failed for {image_file.filename}, proceeding without image URL.")
    return public_url


def discard_image(gcs_client: storage.Client, public_url: Optional[str]) -> None:
    """Deletes a blob uploaded by ``upload_to_gcs`` when the row that referenced it was not saved."""
    if not public_url:
        return
    prefix = f"https://storage.googleapis.com/{config.GCS_BUCKET_NAME}/"
    if not public_url.startswith(prefix):
        logger.warning(f"Not deleting {public_url}: outside bucket {config.GCS_BUCKET_NAME}")
        return
    blob_name = unquote(public_url[len(prefix):])
    try:
        gcs_client.bucket(config.GCS_BUCKET_NAME).blob(blob_name).delete()
        logger.info(f"Deleted orphaned upload gs://{config.GCS_BUCKET_NAME}/{blob_name}")
    except Exception as e:
        logger.exception(f"Failed to delete orphaned upload {blob_name}: {e}")
