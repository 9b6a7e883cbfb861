# src/app/infra/storage/base.py
"""
Abstract base class for blob storage providers.
This interface allows easy swapping between storage backends (Supabase Storage, R2, ...)
"""
from __future__ import annotations

from abc import ABC, abstractmethod


class BlobStore(ABC):
    """
    Abstract interface for recipe image storage.

    Implementations:
    - SupabaseBlobStore: Supabase Storage bucket
    - R2BlobStore: Cloudflare R2 (S3-compatible)
    """

    @abstractmethod
    def upload(self, object_path: str, data: bytes, content_type: str) -> None:
        """
        Store raw bytes under the given path.

        Raises:
            StorageError: If the backend rejects the upload
        """
        pass

    @abstractmethod
    def public_url(self, object_path: str) -> str:
        """Return a URL clients can use to fetch the object."""
        pass
