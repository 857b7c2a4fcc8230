"""
Object Store access (Supabase Storage).

Uploads return a public URL. Any failure, including an empty URL coming
back, is raised as ``UploadError`` so callers never persist a record that
points at an upload which did not complete.
"""
import logging
import re
import time
from dataclasses import dataclass
from typing import Optional

from supabase import Client

from schoolportal.core.config import settings
from schoolportal.core.errors import UploadError, ValidationError

logger = logging.getLogger(__name__)

MATERIALS_PREFIX = "assignment-materials"
ATTACHMENTS_PREFIX = "submission-attachments"
ADMISSIONS_PREFIX = "admissions"


@dataclass
class FileUpload:
    filename: str
    content: bytes
    content_type: Optional[str] = None


_unsafe = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: str) -> str:
    name = _unsafe.sub("_", (filename or "").strip()).strip("._")
    return name or "file"


def build_path(prefix: str, filename: str, separator: str = "_") -> str:
    """``<prefix>/<epoch millis><sep><name>``, unique enough for per-user uploads."""
    return f"{prefix}/{int(time.time() * 1000)}{separator}{safe_filename(filename)}"


def upload_file(client: Client, prefix: str, upload: FileUpload, separator: str = "_") -> str:
    """
    Upload a blob under ``prefix`` and return its public URL.

    Raises:
        ValidationError: empty file
        UploadError: storage rejected the upload or returned no URL
    """
    filename, content = upload.filename, upload.content
    if not content:
        raise ValidationError(f"File '{filename}' is empty")

    path = build_path(prefix, filename, separator)
    bucket = client.storage.from_(settings.STORAGE_BUCKET)
    try:
        bucket.upload(path, content, {"content-type": upload.content_type or "application/octet-stream"})
        url = bucket.get_public_url(path)
    except Exception as e:
        logger.error("Upload of %s to %s failed: %s", filename, path, e)
        raise UploadError(f"Failed to upload '{filename}'")

    if not url:
        logger.error("Storage returned no URL for %s", path)
        raise UploadError(f"Failed to upload '{filename}'")

    logger.info("Uploaded %s (%d bytes)", path, len(content))
    return url.rstrip("?")


def read_upload(file) -> FileUpload:
    """Read a FastAPI ``UploadFile`` into memory."""
    return FileUpload(
        filename=file.filename or "file",
        content=file.file.read(),
        content_type=file.content_type,
    )
