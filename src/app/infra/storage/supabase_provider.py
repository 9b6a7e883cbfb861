# src/app/infra/storage/supabase_provider.py
from __future__ import annotations

import logging

from supabase import Client

from src.app.domain.errors import ImageUploadError, StorageError
from src.app.infra.storage.base import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "public"


class SupabaseBlobStore(BlobStore):
    def __init__(self, client: Client, bucket_name: str = DEFAULT_BUCKET):
        self._client = client
        self.bucket_name = bucket_name

    def upload(self, object_path: str, data: bytes, content_type: str) -> None:
        try:
            self._client.storage.from_(self.bucket_name).upload(
                object_path,
                data,
                {"content-type": content_type},
            )
        except Exception as exc:
            raise ImageUploadError(object_path, str(exc)) from exc
        logger.debug("Uploaded to bucket=%s path=%s", self.bucket_name, object_path)

    def public_url(self, object_path: str) -> str:
        try:
            url = self._client.storage.from_(self.bucket_name).get_public_url(object_path)
        except Exception as exc:
            raise StorageError(f"Failed to resolve public URL for {object_path}: {exc}") from exc
        if isinstance(url, str) and url:
            return url.rstrip("?")
        return f"/{object_path}"
