"""S3-compatible storage client implementation.

This module provides an S3-compatible storage client that works with
AWS S3, MinIO, and other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from wagon.common.logging import mask_secret
from wagon.infra.storage.client import (
    Credentials,
    ObjectListing,
    ObjectNotFoundError,
    ObjectSummary,
    ProgressCallback,
    StorageError,
)

logger = logging.getLogger("wagon.storage")

# Error codes S3 (and S3-compatible stores) use for a missing key. HEAD
# requests carry no body, so only the bare status code is available there.
NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})

# Transfers run on the calling thread so progress callbacks (and the listeners
# behind them) never fire from s3transfer worker threads.
SINGLE_THREAD_TRANSFER = TransferConfig(use_threads=False)


def _is_not_found(exc: ClientError) -> bool:
    error = exc.response.get("Error", {}) if exc.response else {}
    return str(error.get("Code")) in NOT_FOUND_CODES


class S3StorageClient:
    """S3-compatible object storage client.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations. With ``credentials`` set to None
    the boto3 default provider chain (environment, shared config, instance
    profile...) resolves the identity.
    """

    def __init__(
        self,
        *,
        credentials: Credentials | None = None,
        region: str | None = None,
        endpoint_url: str | None = None,
        addressing_style: str = "auto",
        connect_timeout_ms: int | None = None,
        read_timeout_ms: int | None = None,
        proxies: dict[str, str] | None = None,
    ) -> None:
        """Initialize the S3 client.

        Args:
            credentials: Static identity, or None for the ambient chain.
            region: Region name, or None for the boto3 default.
            endpoint_url: Custom endpoint for S3-compatible services.
            addressing_style: ``auto``, ``path`` or ``virtual``.
            connect_timeout_ms: Connection timeout forwarded to botocore.
            read_timeout_ms: Socket read timeout forwarded to botocore.
            proxies: Mapping of scheme to proxy URL.

        Raises:
            StorageError: If the client cannot be constructed.
        """
        self._closed = False
        try:
            self._client = self._build_client(
                credentials=credentials,
                region=region,
                endpoint_url=endpoint_url,
                addressing_style=addressing_style,
                connect_timeout_ms=connect_timeout_ms,
                read_timeout_ms=read_timeout_ms,
                proxies=proxies,
            )
        except (BotoCoreError, ValueError) as exc:
            raise StorageError(f"Failed to create S3 client: {exc}") from exc
        logger.debug(
            "s3_client_created region=%s endpoint=%s access_key=%s",
            region or "<default>",
            endpoint_url or "<aws>",
            mask_secret(credentials.access_key) if credentials else "<ambient>",
        )

    @staticmethod
    def _build_client(
        *,
        credentials: Credentials | None,
        region: str | None,
        endpoint_url: str | None,
        addressing_style: str,
        connect_timeout_ms: int | None,
        read_timeout_ms: int | None,
        proxies: dict[str, str] | None,
    ) -> Any:
        """Create a boto3 S3 client."""
        config_kwargs: dict[str, Any] = {
            "s3": {"addressing_style": addressing_style},
        }
        if connect_timeout_ms is not None:
            config_kwargs["connect_timeout"] = connect_timeout_ms / 1000
        if read_timeout_ms is not None:
            config_kwargs["read_timeout"] = read_timeout_ms / 1000
        if proxies:
            config_kwargs["proxies"] = dict(proxies)

        if credentials is not None:
            session = boto3.session.Session(
                aws_access_key_id=credentials.access_key,
                aws_secret_access_key=credentials.secret_key,
                aws_session_token=credentials.session_token or None,
            )
        else:
            session = boto3.session.Session()

        return session.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint_url,
            config=Config(**config_kwargs),
        )

    def download_file(
        self,
        *,
        bucket: str,
        object_key: str,
        destination: Path,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Download an object to a local file."""
        try:
            self._client.download_file(
                bucket,
                object_key,
                str(destination),
                Callback=progress,
                Config=SINGLE_THREAD_TRANSFER,
            )
        except ClientError as exc:
            if _is_not_found(exc):
                raise ObjectNotFoundError(
                    f"Object not found: s3://{bucket}/{object_key}"
                ) from exc
            raise StorageError(f"Failed to download object: {exc}") from exc
        except Exception as exc:
            raise StorageError(f"Failed to download object: {exc}") from exc

    def upload_file(
        self,
        *,
        source: Path,
        bucket: str,
        object_key: str,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Upload a local file as an object."""
        try:
            self._client.upload_file(
                str(source),
                bucket,
                object_key,
                Callback=progress,
                Config=SINGLE_THREAD_TRANSFER,
            )
        except Exception as exc:
            # s3transfer wraps ClientError in its own S3UploadFailedError
            raise StorageError(f"Failed to upload object: {exc}") from exc

    def list_objects(
        self,
        *,
        bucket: str,
        max_keys: int,
        continuation_token: str | None = None,
    ) -> ObjectListing:
        """Fetch a single page of the bucket listing."""
        params: dict[str, Any] = {"Bucket": bucket, "MaxKeys": int(max_keys)}
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        try:
            response = self._client.list_objects_v2(**params)
        except Exception as exc:
            raise StorageError(f"Failed to list objects: {exc}") from exc

        objects = tuple(
            ObjectSummary(
                key=str(item["Key"]),
                size_bytes=int(item.get("Size") or 0),
                etag=item.get("ETag"),
                last_modified=item.get("LastModified"),
            )
            for item in response.get("Contents", [])
        )
        next_token = response.get("NextContinuationToken") or None
        return ObjectListing(objects=objects, next_continuation_token=next_token)

    def close(self) -> None:
        """Release the underlying connection pool."""
        if self._closed:
            return
        self._closed = True
        try:
            self._client.close()
        except Exception as exc:
            raise StorageError(f"Failed to close S3 client: {exc}") from exc
