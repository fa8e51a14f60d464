import logging
import os
import time

from django.core.files.storage import default_storage

from common.exceptions import UploadError

logger = logging.getLogger(__name__)


def build_upload_path(directory, owner_id, filename, stem=None):
    extension = os.path.splitext(filename or "")[1].lstrip(".").lower() or "bin"
    stem = stem or str(int(time.time() * 1000))
    return f"{directory.rstrip('/')}/{owner_id}/{stem}.{extension}"


def upload_file(uploaded_file, path):
    """Store ``uploaded_file`` at ``path`` and return its public URL."""
    try:
        stored_name = default_storage.save(path, uploaded_file)
        return default_storage.url(stored_name)
    except Exception as exc:
        raise UploadError(str(exc) or UploadError.default_detail) from exc


def upload_or_default(uploaded_file, path, *, default=None, owner_id=None):
    """Upload and return the public URL, or ``default`` when the storage write fails.

    A failed upload never blocks the record that references it.
    """
    if not uploaded_file:
        return default
    try:
        return upload_file(uploaded_file, path)
    except UploadError as exc:
        logger.warning(
            "upload_failed",
            extra={"path": path, "owner_id": str(owner_id) if owner_id else None, "detail": str(exc.detail)},
        )
        return default
