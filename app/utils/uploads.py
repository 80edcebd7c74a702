import os
import re
import uuid

from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import BusinessRuleError

ROOM_IMAGE_SUBDIR = "study-rooms"
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}


def _safe_name(filename: str) -> str:
    name = os.path.basename(filename or "image")
    return re.sub(r"[^A-Za-z0-9._-]", "_", name) or "image"


def save_room_image(file: UploadFile) -> str:
    """Store an uploaded room image and return the public URL path."""
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise BusinessRuleError("Only JPEG, PNG, GIF or WEBP images can be uploaded")

    target_dir = os.path.join(settings.UPLOAD_DIR, ROOM_IMAGE_SUBDIR)
    os.makedirs(target_dir, exist_ok=True)

    filename = f"{uuid.uuid4()}_{_safe_name(file.filename)}"
    with open(os.path.join(target_dir, filename), "wb") as out:
        out.write(file.file.read())

    return f"/uploads/{ROOM_IMAGE_SUBDIR}/{filename}"
