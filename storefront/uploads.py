"""
Image upload storage under the uploads directory.

Files are written as `<prefix>-<epoch ms>-<random><ext>` inside a per-area
subdirectory and referenced everywhere by their served URL path
(`/uploads/<area>/<file>`), never by filesystem path.
"""

import os
import random
import time
from typing import Optional

from fastapi import UploadFile

from storefront.config import settings
from storefront.errors import ValidationError
from storefront.logger import get_logger

logger = get_logger("uploads")

URL_PREFIX = "/uploads"

MIME_TYPES = {
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}


def _extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def check_image(upload: UploadFile, field: str = "image") -> str:
    """Validate by extension and declared MIME type; returns the extension."""
    ext = _extension(upload.filename)
    allowed = settings.allowed_image_types
    if ext.lstrip(".") not in allowed:
        raise ValidationError(
            f"Only image files are allowed ({', '.join(allowed)})", field=field
        )
    content_type = (upload.content_type or "").lower()
    if content_type not in {MIME_TYPES[t] for t in allowed if t in MIME_TYPES}:
        raise ValidationError(
            f"Only image files are allowed ({', '.join(allowed)})", field=field
        )
    return ext


def make_filename(prefix: str, ext: str) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"


async def save_image(upload: UploadFile, area: str, prefix: str, field: str = "image") -> str:
    """Store an uploaded image and return its served URL path."""
    ext = check_image(upload, field)
    data = await upload.read()
    if len(data) > settings.max_upload_bytes:
        raise ValidationError(
            f"File too large (max {settings.max_upload_mb}MB)", field=field
        )

    directory = os.path.join(settings.uploads_dir, area)
    os.makedirs(directory, exist_ok=True)
    filename = make_filename(prefix, ext)
    with open(os.path.join(directory, filename), "wb") as f:
        f.write(data)

    url = f"{URL_PREFIX}/{area}/{filename}"
    logger.info(f"Stored upload {url} ({len(data)} bytes)")
    return url


def path_for_url(url: str) -> Optional[str]:
    """Filesystem path for a served upload URL, or None if it is not one of ours."""
    if not url or not url.startswith(URL_PREFIX + "/"):
        return None
    relative = url[len(URL_PREFIX) + 1:]
    root = os.path.abspath(settings.uploads_dir)
    path = os.path.abspath(os.path.join(root, relative))
    if not path.startswith(root + os.sep):
        return None
    return path


def delete_upload(url: str) -> bool:
    """Remove a stored upload; a missing file is logged, not an error."""
    path = path_for_url(url)
    if path is None:
        return False
    try:
        os.remove(path)
    except FileNotFoundError:
        logger.warning(f"Upload already gone: {url}")
        return False
    logger.info(f"Deleted upload {url}")
    return True
