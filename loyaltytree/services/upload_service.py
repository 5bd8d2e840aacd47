import logging
import os
import secrets
import time

from fastapi import UploadFile

from loyaltytree.config import Settings
from loyaltytree.errors import ValidationFailed


logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}
UPLOADS_URL_PREFIX = "/uploads"


def ensure_upload_dir(settings: Settings) -> str:
    path = os.path.abspath(settings.upload_dir)
    os.makedirs(path, exist_ok=True)
    return path


async def save_image(upload: UploadFile, settings: Settings) -> str:
    """
    Store an uploaded image and return its public reference
    (``/uploads/<name>``).
    """
    if not upload or not upload.filename:
        raise ValidationFailed("No image file provided", code="invalid_image")

    ext = os.path.splitext(upload.filename)[1].lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise ValidationFailed("Only jpg, jpeg, png and gif images are accepted", code="invalid_image")

    content = await upload.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise ValidationFailed("Image exceeds the upload size limit", code="invalid_image")
    if not content:
        raise ValidationFailed("Image file is empty", code="invalid_image")

    filename = f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{ext}"
    target = os.path.join(ensure_upload_dir(settings), filename)
    with open(target, "wb") as fh:
        fh.write(content)

    logger.info("image stored", extra={"stored_as": filename, "bytes": len(content)})
    return f"{UPLOADS_URL_PREFIX}/{filename}"


def discard_image(image_url: str | None, settings: Settings) -> None:
    """Remove a file stored by ``save_image``; other references are ignored."""
    if not image_url or not image_url.startswith(UPLOADS_URL_PREFIX + "/"):
        return

    path = os.path.join(os.path.abspath(settings.upload_dir), os.path.basename(image_url))
    try:
        os.remove(path)
    except FileNotFoundError:
        return
    logger.info("image discarded", extra={"stored_as": os.path.basename(image_url)})
