"""Image upload helpers.

Uploads are written as-is to a temporary location in the default storage;
Celery tasks later crop them to the target size, re-encode them as JPEG and
drop the temporary file.
"""

from __future__ import annotations

import logging
import uuid
from io import BytesIO

from django.core.files.base import ContentFile  # type: ignore
from django.core.files.storage import default_storage  # type: ignore
from PIL import Image, ImageOps, UnidentifiedImageError

from .exceptions import ValidationError

logger = logging.getLogger(__name__)

UPLOAD_TMP_DIR = "uploads/tmp"
NOT_AN_IMAGE = "Not an image! Please upload only images."


def stash_upload(uploaded_file) -> str:
    """Validate an uploaded image and store it for later processing."""
    content_type = getattr(uploaded_file, "content_type", "") or ""
    if not content_type.startswith("image"):
        raise ValidationError(NOT_AN_IMAGE)
    try:
        Image.open(uploaded_file).verify()
    except (UnidentifiedImageError, OSError):
        raise ValidationError(NOT_AN_IMAGE)
    uploaded_file.seek(0)
    return default_storage.save(f"{UPLOAD_TMP_DIR}/{uuid.uuid4().hex}", uploaded_file)


def resize_to_jpeg(source_path: str, target_path: str, size: tuple[int, int], quality: int = 90) -> str:
    """Crop ``source_path`` to ``size``, save it as JPEG at ``target_path``."""
    with default_storage.open(source_path, "rb") as source:
        image = Image.open(source)
        image = ImageOps.exif_transpose(image)
        if image.mode != "RGB":
            image = image.convert("RGB")
        image = ImageOps.fit(image, size, Image.Resampling.LANCZOS)
        out = BytesIO()
        image.save(out, format="JPEG", quality=quality, optimize=True)

    if default_storage.exists(target_path):
        default_storage.delete(target_path)
    saved = default_storage.save(target_path, ContentFile(out.getvalue()))
    default_storage.delete(source_path)
    logger.info("Resized %s to %sx%s -> %s", source_path, size[0], size[1], saved)
    return saved
