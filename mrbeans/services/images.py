"""
mrbeans/services/images.py — Coffee photo / brand logo uploads
Uploads arrive as base64 in a JSON body and are written under
<images_dir>/coffees or <images_dir>/brands, served at /images/...
"""
from __future__ import annotations

import base64
import binascii
import re
import time
from pathlib import Path
from typing import Any

from loguru import logger

from mrbeans.core.errors import ApiError, validation_error
from mrbeans.models import ImageKind, ImageUpload

ALLOWED_MIME_TYPES = {
    ImageKind.COFFEE: frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"}),
    ImageKind.BRAND: frozenset({"image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml"}),
}
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg")

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]")
_DATA_URL_PREFIX = re.compile(r"^data:image/[\w.+-]+;base64,")


def sanitize_filename(filename: str) -> str:
    return _UNSAFE_FILENAME_CHARS.sub("_", filename)


def decode_image_data(data: str) -> bytes:
    return base64.b64decode(_DATA_URL_PREFIX.sub("", data), validate=True)


class ImageStore:
    def __init__(self, images_dir: Path):
        self.images_dir = Path(images_dir)

    def folder(self, kind: ImageKind) -> Path:
        return self.images_dir / kind.folder

    def ensure_dirs(self) -> None:
        for kind in ImageKind:
            self.folder(kind).mkdir(parents=True, exist_ok=True)

    def save(self, kind: ImageKind, upload: ImageUpload) -> dict[str, Any]:
        """Validate, decode and store an upload. Raises ApiError(400) on bad input."""
        if not upload.filename or not upload.data:
            raise ApiError(validation_error([{"field": "upload", "message": "Nedostaju podaci za upload"}]))
        if upload.mime_type and upload.mime_type not in ALLOWED_MIME_TYPES[kind]:
            raise ApiError(validation_error([{"field": "mimeType", "message": "Nepodržani format slike"}]))
        try:
            content = decode_image_data(upload.data)
        except (binascii.Error, ValueError):
            raise ApiError(validation_error([{"field": "data", "message": "Neispravan base64 sadržaj slike"}])) from None

        unique_name = f"{int(time.time() * 1000)}-{sanitize_filename(upload.filename)}"
        folder = self.folder(kind)
        folder.mkdir(parents=True, exist_ok=True)
        (folder / unique_name).write_bytes(content)

        logger.info(f"Image uploaded ({kind.value}): {unique_name} [{len(content)} bytes]")
        return {"filename": unique_name, "path": f"/images/{kind.folder}/{unique_name}"}

    def list(self, kind: ImageKind) -> list[str]:
        folder = self.folder(kind)
        if not folder.is_dir():
            return []
        return sorted(
            p.name for p in folder.iterdir()
            if p.is_file() and p.name.lower().endswith(IMAGE_EXTENSIONS)
        )
