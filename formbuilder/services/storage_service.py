"""Asset storage for uploaded files and banner images (local disk or S3)."""

import io
import logging
import os
import uuid

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy import event
from sqlalchemy.orm import Session

from formbuilder.core.config import settings
from formbuilder.core.exceptions import UploadFailed

logger = logging.getLogger(__name__)

PENDING_ASSETS_KEY = "pending_asset_refs"


# =============================================================================
# Storage Backend
# =============================================================================

def _get_s3_client():
    """Get boto3 S3 client."""
    return boto3.client(
        "s3",
        region_name=settings.S3_REGION,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
    )


def _get_local_storage_path() -> str:
    path = settings.LOCAL_STORAGE_PATH
    os.makedirs(path, exist_ok=True)
    return path


def _s3_url(storage_key: str) -> str:
    return f"https://{settings.S3_BUCKET}.s3.{settings.S3_REGION}.amazonaws.com/{storage_key}"


def _storage_key_from_reference(reference: str) -> str | None:
    local_prefix = settings.PUBLIC_UPLOADS_PREFIX.rstrip("/") + "/"
    if reference.startswith(local_prefix):
        return reference[len(local_prefix):]
    s3_prefix = _s3_url("")
    if reference.startswith(s3_prefix):
        return reference[len(s3_prefix):]
    return None


def build_storage_key(filename: str | None, folder: str) -> str:
    name = filename or "upload"
    ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    suffix = f".{ext}" if ext else ""
    return f"{folder.strip('/')}/{uuid.uuid4()}{suffix}"


# =============================================================================
# File Operations
# =============================================================================

def store_asset(
    data: bytes,
    filename: str | None,
    content_type: str | None,
    folder: str = "uploads",
) -> str:
    """
    Store a binary payload and return a stable reference (public path or URL).

    Raises:
        UploadFailed: If the backend write fails
    """
    storage_key = build_storage_key(filename, folder)
    resolved_content_type = (content_type or "").split(";", 1)[0].strip() or (
        "application/octet-stream"
    )

    if settings.STORAGE_BACKEND == "s3":
        try:
            _get_s3_client().upload_fileobj(
                io.BytesIO(data),
                settings.S3_BUCKET,
                storage_key,
                ExtraArgs={"ContentType": resolved_content_type},
            )
        except (BotoCoreError, ClientError) as exc:
            logger.warning("S3 upload failed for key %s: %s", storage_key, exc)
            raise UploadFailed() from exc
        return _s3_url(storage_key)

    path = os.path.join(_get_local_storage_path(), storage_key)
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
    except OSError as exc:
        logger.warning("Local upload failed for key %s: %s", storage_key, exc)
        raise UploadFailed() from exc
    return f"{settings.PUBLIC_UPLOADS_PREFIX.rstrip('/')}/{storage_key}"


def delete_asset(reference: str) -> None:
    """Best-effort removal of a previously stored asset."""
    storage_key = _storage_key_from_reference(reference)
    if not storage_key:
        return

    try:
        if settings.STORAGE_BACKEND == "s3":
            _get_s3_client().delete_object(Bucket=settings.S3_BUCKET, Key=storage_key)
        else:
            path = os.path.join(_get_local_storage_path(), storage_key)
            if os.path.exists(path):
                os.remove(path)
    except (OSError, BotoCoreError, ClientError) as exc:
        logger.warning("Failed to delete asset %s: %s", storage_key, exc)


# =============================================================================
# Rollback cleanup
# =============================================================================

def register_cleanup_on_rollback(db: Session, reference: str) -> None:
    """Delete ``reference`` if the session's current transaction rolls back."""
    db.info.setdefault(PENDING_ASSETS_KEY, []).append(reference)


@event.listens_for(Session, "after_commit")
def _forget_pending_assets(session: Session) -> None:
    session.info.pop(PENDING_ASSETS_KEY, None)


@event.listens_for(Session, "after_soft_rollback")
def _cleanup_pending_assets(session: Session, previous_transaction) -> None:
    if not previous_transaction.nested:
        for reference in session.info.pop(PENDING_ASSETS_KEY, []):
            delete_asset(reference)
