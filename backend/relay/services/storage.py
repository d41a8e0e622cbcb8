import logging
import os
import re
import time
from typing import Any
from uuid import uuid4

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError

from relay.core.config import Settings, get_settings
from relay.core.errors import ConfigurationError, UpstreamError
from relay.schemas import PresignRequest, PresignResponse

logger = logging.getLogger(__name__)

_UNSAFE_USER_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_UNSAFE_EXT_CHARS = re.compile(r"[^a-z0-9]")


def sanitize_user_segment(user_id: str | None, default: str) -> str:
    safe = _UNSAFE_USER_CHARS.sub("", user_id or "")
    return safe or default


def file_extension(filename: str) -> str:
    """Lowercased last extension of ``filename`` including the dot, or ``""``."""
    ext = os.path.splitext(filename)[1].lower()
    if not ext:
        return ""
    return "." + _UNSAFE_EXT_CHARS.sub("", ext[1:])


class StorageService:
    """Issues presigned upload URLs for the configured S3 bucket."""

    def __init__(self, settings: Settings | None = None, client: Any | None = None) -> None:
        self.settings = settings or get_settings()
        if client is None:
            session = boto3.session.Session()
            try:
                client = session.client(
                    "s3",
                    endpoint_url=str(self.settings.s3_endpoint) if self.settings.s3_endpoint else None,
                    aws_access_key_id=self.settings.s3_access_key,
                    aws_secret_access_key=self.settings.s3_secret_key,
                    region_name=self.settings.aws_region,
                    config=Config(signature_version="s3v4"),
                )
            except BotoCoreError as exc:
                raise ConfigurationError(f"Cannot create S3 client: {exc}") from exc
        self.client = client
        self.bucket = self.settings.upload_bucket

    def generate_upload_key(self, user_id: str | None, filename: str) -> str:
        safe_user = sanitize_user_segment(user_id, self.settings.default_user_id)
        millis = time.time_ns() // 1_000_000
        return f"{self.settings.upload_prefix}{safe_user}/{millis}_{uuid4()}{file_extension(filename)}"

    def create_presigned_put(
        self,
        key: str,
        content_type: str,
        expires_in: int | None = None,
    ) -> str:
        return self.client.generate_presigned_url(
            "put_object",
            Params={
                "Bucket": self.bucket,
                "Key": key,
                "ContentType": content_type,
            },
            ExpiresIn=expires_in or self.settings.upload_url_ttl,
        )

    def presign_upload(self, payload: PresignRequest) -> PresignResponse:
        if not self.bucket:
            raise ConfigurationError("UPLOAD_BUCKET is not configured")

        key = self.generate_upload_key(payload.user_id, payload.filename)
        expires_in = self.settings.upload_url_ttl
        try:
            upload_url = self.create_presigned_put(key, payload.content_type, expires_in)
        except Exception as exc:
            logger.exception("Failed to presign upload for key %s", key)
            raise UpstreamError(str(exc)) from exc

        logger.info("Presigned upload %s (%s, %ss)", key, payload.content_type, expires_in)
        return PresignResponse(
            bucket=self.bucket,
            key=key,
            upload_url=upload_url,
            expires_in=expires_in,
        )


_storage_service: StorageService | None = None


def get_storage_service() -> StorageService:
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService()
    return _storage_service


def reset_storage_service() -> None:
    global _storage_service
    _storage_service = None
