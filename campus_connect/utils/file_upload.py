"""
File Upload Utility - store student uploads and hand back a public URL.

Uploads land in `<upload_dir>/<folder>/<uuid><ext>` and are served by the
StaticFiles mount in main.py under `upload_url_prefix`.

Supported formats: PDF, DOC, DOCX, PNG, JPG/JPEG.
Max file size: settings.max_upload_mb (5MB by default)
"""

import logging
import re
import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile

from campus_connect.core.config import get_settings
from campus_connect.core.exceptions import PayloadTooLargeError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'.pdf', '.doc', '.docx', '.png', '.jpg', '.jpeg'}
DEFAULT_FOLDER = "documents"
FOLDER_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_-]{0,63}$")


def get_file_extension(filename: str) -> str:
    """Get lowercase file extension."""
    if '.' not in filename:
        return ''
    return '.' + filename.rsplit('.', 1)[1].lower()


def normalize_folder(folder: Optional[str]) -> str:
    folder = (folder or DEFAULT_FOLDER).strip().lower()
    if not FOLDER_PATTERN.match(folder):
        raise ValidationError(f"Invalid upload folder '{folder}'")
    return folder


async def save_upload(file: UploadFile, folder: Optional[str] = None) -> str:
    """
    Validate and persist an uploaded file.

    Args:
        file: FastAPI UploadFile
        folder: category tag, e.g. "application-resumes", "marks-cards"

    Returns:
        Public URL of the stored file

    Raises:
        ValidationError / PayloadTooLargeError on bad input
    """
    settings = get_settings()
    folder = normalize_folder(folder)

    # Validate filename
    if not file.filename:
        raise ValidationError("No filename provided")

    ext = get_file_extension(file.filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise ValidationError(
            f"Unsupported file type '{ext}'. Allowed: PDF, DOC, DOCX, PNG, JPG"
        )

    # Read content
    content = await file.read()

    if not content:
        raise ValidationError("Uploaded file is empty")

    # Check size
    if len(content) > settings.max_upload_mb * 1024 * 1024:
        raise PayloadTooLargeError(f"File too large. Maximum size: {settings.max_upload_mb}MB")

    stored_name = f"{uuid.uuid4().hex}{ext}"
    target_dir = Path(settings.upload_dir) / folder
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / stored_name).write_bytes(content)

    url = f"{settings.upload_url_prefix.rstrip('/')}/{folder}/{stored_name}"
    logger.info("Stored upload %s (%d bytes) as %s", file.filename, len(content), url)
    return url


def get_supported_formats() -> dict:
    """Get info about supported file formats."""
    return {
        "supported_formats": sorted(ALLOWED_EXTENSIONS),
        "max_size_mb": get_settings().max_upload_mb
    }
