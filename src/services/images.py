from __future__ import annotations

import base64
import binascii
import logging
import re
import time
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from src.app.domain.errors import StorageError
from src.app.infra.storage.base import BlobStore

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(.+);base64,(.*)$", re.DOTALL)
WHITESPACE_PATTERN = re.compile(r"\s+")
IMAGE_PATH_PREFIX = "recipes"
DEFAULT_EXTENSION = "png"


@dataclass(frozen=True)
class DataUrlImage:
    mime_type: str
    payload: bytes

    @property
    def extension(self) -> str:
        return extension_for_mime(self.mime_type)


def extension_for_mime(mime_type: str) -> str:
    """image/svg+xml -> svg, image/png -> png."""
    _, _, subtype = mime_type.partition("/")
    return subtype.split("+")[0].split(";")[0].strip() or DEFAULT_EXTENSION


def parse_data_url(value: str) -> Optional[DataUrlImage]:
    """
    Decode a `data:<mime>;base64,<payload>` string.
    Returns None when the value is not a data URL.
    Raises binascii.Error or ValueError when the payload is not usable base64.
    """
    match = DATA_URL_PATTERN.match(value)
    if not match:
        return None
    mime_type, payload = match.group(1), WHITESPACE_PATTERN.sub("", match.group(2))
    data = base64.b64decode(payload, validate=True)
    if not data:
        raise ValueError("empty image payload")
    return DataUrlImage(mime_type=mime_type, payload=data)


def build_image_path(extension: str, now_ms: Optional[int] = None) -> str:
    timestamp = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{IMAGE_PATH_PREFIX}/{timestamp}-{uuid4().hex[:8]}.{extension}"


class ImageIngestor:
    """Uploads inline images and resolves the URL stored on the recipe."""

    def __init__(self, store: BlobStore) -> None:
        self._store = store

    def ingest(self, image_data: Optional[str]) -> Optional[str]:
        if not image_data:
            return None

        try:
            image = parse_data_url(image_data)
        except (binascii.Error, ValueError) as exc:
            logger.error("Invalid base64 image payload: %s", exc)
            return None

        if image is None:
            # Already hosted somewhere else.
            return image_data

        object_path = build_image_path(image.extension)
        try:
            self._store.upload(object_path, image.payload, image.mime_type)
            url = self._store.public_url(object_path)
        except StorageError as exc:
            logger.error("Storage upload error: %s", exc)
            return None

        logger.info("Uploaded recipe image: path=%s, size=%d bytes", object_path, len(image.payload))
        return url
