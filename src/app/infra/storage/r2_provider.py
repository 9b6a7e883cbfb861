# src/app/infra/storage/r2_provider.py
"""
Cloudflare R2 blob store for recipe images.
R2 is S3-compatible, so we use boto3 with custom endpoint.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from src.app.domain.errors import ConfigurationError, ImageUploadError, StorageError
from src.app.infra.storage.base import BlobStore

logger = logging.getLogger(__name__)

# Presigned GET lifetime when the bucket has no public URL.
DEFAULT_URL_EXPIRES_SECONDS = 7 * 24 * 3600


class R2BlobStore(BlobStore):
    """
    Environment variables used when arguments are omitted:
    - R2_ACCOUNT_ID: Cloudflare account ID
    - R2_ACCESS_KEY_ID: R2 access key ID
    - R2_SECRET_ACCESS_KEY: R2 secret access key
    - R2_BUCKET_NAME: Name of the R2 bucket
    - R2_PUBLIC_URL: (Optional) Public URL for the bucket
    """

    def __init__(
        self,
        account_id: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        bucket_name: Optional[str] = None,
        public_url: Optional[str] = None,
        client: Optional[Any] = None,
    ):
        self.account_id = account_id or os.getenv("R2_ACCOUNT_ID")
        self.bucket_name = bucket_name or os.getenv("R2_BUCKET_NAME")
        self.public_base_url = public_url or os.getenv("R2_PUBLIC_URL")

        if client is not None:
            if not self.bucket_name:
                raise ConfigurationError("Missing R2 configuration. Required: R2_BUCKET_NAME")
            self._client = client
            return

        access_key_id = access_key_id or os.getenv("R2_ACCESS_KEY_ID")
        secret_access_key = secret_access_key or os.getenv("R2_SECRET_ACCESS_KEY")
        if not all([self.account_id, access_key_id, secret_access_key, self.bucket_name]):
            raise ConfigurationError(
                "Missing R2 configuration. Required: R2_ACCOUNT_ID, R2_ACCESS_KEY_ID, "
                "R2_SECRET_ACCESS_KEY, R2_BUCKET_NAME"
            )

        endpoint_url = f"https://{self.account_id}.r2.cloudflarestorage.com"
        self._client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            config=Config(
                signature_version="s3v4",
                retries={"max_attempts": 3, "mode": "adaptive"},
            ),
            region_name="auto",  # R2 uses 'auto' as region
        )

        logger.info("R2BlobStore initialized: bucket=%s, endpoint=%s", self.bucket_name, endpoint_url)

    def upload(self, object_path: str, data: bytes, content_type: str) -> None:
        try:
            self._client.put_object(
                Bucket=self.bucket_name,
                Key=object_path,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to upload to R2: %s", e)
            raise ImageUploadError(object_path, str(e)) from e

    def public_url(self, object_path: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url.rstrip('/')}/{object_path}"
        try:
            return self._client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": self.bucket_name, "Key": object_path},
                ExpiresIn=DEFAULT_URL_EXPIRES_SECONDS,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to generate signed GET URL: %s", e)
            raise StorageError(f"Failed to generate download URL: {e}") from e
