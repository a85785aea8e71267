from __future__ import annotations
"""Object-store capability backed by a boto3 S3 client."""
from typing import BinaryIO, Callable, Optional

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from .models import (
    DeleteError,
    DeleteResult,
    ListingPage,
    ObjectSummary,
    ObjectVersion,
    VersionListingPage,
)

ProgressFn = Callable[[int], None]
CancelFn = Callable[[], bool]

BUCKET_MISSING_CODES = frozenset({"NoSuchBucket"})


class TransferCancelledError(RuntimeError):
    """Raised when an upload or download is cancelled by the caller."""


def is_bucket_missing_error(exc: BaseException) -> bool:
    """Return True when ``exc`` reports that the target bucket no longer exists."""

    if not isinstance(exc, ClientError):
        return False
    code = exc.response.get("Error", {}).get("Code")
    return code in BUCKET_MISSING_CODES


def _newest_first(version: ObjectVersion) -> tuple[bool, bool, float]:
    stamp = version.last_modified
    return version.is_latest, stamp is not None, stamp.timestamp() if stamp else 0.0


class _BoundedReader:
    """Read-only view over at most ``length`` bytes of another stream."""

    def __init__(self, source: BinaryIO, length: int):
        self._source = source
        self._remaining = length

    def read(self, size: int = -1) -> bytes:
        if self._remaining <= 0:
            return b""
        if size is None or size < 0 or size > self._remaining:
            size = self._remaining
        data = self._source.read(size)
        if size and not data:
            raise ValueError(f"Stream ended {self._remaining} byte(s) before the declared length")
        self._remaining -= len(data)
        return data

    def seekable(self) -> bool:
        return False


class S3ObjectStore:
    """Thin, stateless wrapper over the S3 calls a bucket view needs.

    Every method is a blocking call against the remote store and lets
    ``BotoCoreError``/``ClientError`` propagate unchanged.
    """

    def __init__(self, client):
        self._client = client

    @classmethod
    def connect(
        cls,
        *,
        endpoint_url: str | None,
        access_key: str,
        secret_key: str,
        region_name: str | None = None,
        client_factory: Callable[..., object] | None = None,
    ) -> "S3ObjectStore":
        factory = client_factory or boto3.client
        config = Config(signature_version="s3v4")
        client = factory(
            "s3",
            endpoint_url=endpoint_url or None,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            region_name=region_name,
            config=config,
        )
        return cls(client)

    @property
    def client(self):
        return self._client

    def list_buckets(self) -> list[str]:
        response = self._client.list_buckets()
        return [bucket["Name"] for bucket in response.get("Buckets", [])]

    def list_objects(
        self,
        bucket: str,
        prefix: str,
        delimiter: str,
        max_keys: int,
        continuation_token: str | None = None,
    ) -> ListingPage:
        params = {"Bucket": bucket, "Prefix": prefix, "Delimiter": delimiter, "MaxKeys": max_keys}
        if continuation_token:
            params["ContinuationToken"] = continuation_token
        response = self._client.list_objects_v2(**params)
        return ListingPage(
            bucket=bucket,
            prefix=prefix,
            objects=[
                ObjectSummary(
                    key=entry["Key"],
                    size=entry.get("Size"),
                    last_modified=entry.get("LastModified"),
                    etag=entry.get("ETag"),
                    storage_class=entry.get("StorageClass"),
                )
                for entry in response.get("Contents", [])
            ],
            prefixes=[common["Prefix"] for common in response.get("CommonPrefixes", [])],
            continuation_token=continuation_token,
            next_continuation_token=response.get("NextContinuationToken"),
            is_truncated=bool(response.get("IsTruncated", False)),
        )

    def list_object_versions(
        self,
        bucket: str,
        prefix: str,
        delimiter: str,
        max_keys: int,
        key_marker: str | None = None,
        version_id_marker: str | None = None,
    ) -> VersionListingPage:
        params = {"Bucket": bucket, "Prefix": prefix, "Delimiter": delimiter, "MaxKeys": max_keys}
        if key_marker:
            params["KeyMarker"] = key_marker
        if version_id_marker:
            params["VersionIdMarker"] = version_id_marker
        response = self._client.list_object_versions(**params)

        versions = [
            ObjectVersion(
                key=entry["Key"],
                version_id=entry["VersionId"],
                is_latest=bool(entry.get("IsLatest", False)),
                size=entry.get("Size"),
                last_modified=entry.get("LastModified"),
                etag=entry.get("ETag"),
            )
            for entry in response.get("Versions", [])
        ]
        versions.extend(
            ObjectVersion(
                key=entry["Key"],
                version_id=entry["VersionId"],
                is_latest=bool(entry.get("IsLatest", False)),
                last_modified=entry.get("LastModified"),
                is_delete_marker=True,
            )
            for entry in response.get("DeleteMarkers", [])
        )
        # Newest first within each key, with the latest entry leading.
        versions.sort(key=_newest_first, reverse=True)
        versions.sort(key=lambda version: version.key)

        return VersionListingPage(
            bucket=bucket,
            prefix=prefix,
            versions=versions,
            prefixes=[common["Prefix"] for common in response.get("CommonPrefixes", [])],
            key_marker=key_marker,
            version_id_marker=version_id_marker,
            next_key_marker=response.get("NextKeyMarker"),
            next_version_id_marker=response.get("NextVersionIdMarker"),
            is_truncated=bool(response.get("IsTruncated", False)),
        )

    def put_object(self, bucket: str, key: str, body: bytes = b"") -> None:
        self._client.put_object(Bucket=bucket, Key=key, Body=body)

    def delete_objects(self, bucket: str, keys: list[str]) -> DeleteResult:
        response = self._client.delete_objects(
            Bucket=bucket,
            Delete={"Objects": [{"Key": key} for key in keys]},
        )
        return DeleteResult(
            deleted=[entry["Key"] for entry in response.get("Deleted", [])],
            errors=[
                DeleteError(
                    key=entry.get("Key", ""),
                    code=entry.get("Code"),
                    message=entry.get("Message"),
                )
                for entry in response.get("Errors", [])
            ],
        )

    def copy_object(self, source_bucket: str, source_key: str, dest_bucket: str, dest_key: str) -> None:
        self._client.copy_object(
            CopySource={"Bucket": source_bucket, "Key": source_key},
            Bucket=dest_bucket,
            Key=dest_key,
        )

    def delete_object(self, bucket: str, key: str) -> None:
        self._client.delete_object(Bucket=bucket, Key=key)

    def upload(
        self,
        bucket: str,
        key: str,
        stream: BinaryIO,
        length: int,
        progress_callback: Optional[ProgressFn] = None,
        cancel_requested: Optional[CancelFn] = None,
    ) -> None:
        """Upload exactly ``length`` bytes read from ``stream``."""

        if length < 0:
            raise ValueError("length must not be negative")
        callback = self._build_transfer_callback(progress_callback, cancel_requested)
        self._client.upload_fileobj(
            _BoundedReader(stream, length),
            bucket,
            key,
            Callback=callback,
        )

    def download(
        self,
        bucket: str,
        key: str,
        version_id: str | None,
        sink: BinaryIO,
        progress_callback: Optional[ProgressFn] = None,
        cancel_requested: Optional[CancelFn] = None,
    ) -> None:
        extra_args = {"VersionId": version_id} if version_id else None
        callback = self._build_transfer_callback(progress_callback, cancel_requested)
        self._client.download_fileobj(
            bucket,
            key,
            sink,
            ExtraArgs=extra_args,
            Callback=callback,
        )

    def get_presigned_url(
        self,
        bucket: str,
        key: str,
        version_id: str | None = None,
        expires_in: int = 3600,
    ) -> str:
        if expires_in <= 0:
            raise ValueError("expires_in must be greater than zero")
        params: dict[str, str] = {"Bucket": bucket, "Key": key}
        if version_id:
            params["VersionId"] = version_id
        return self._client.generate_presigned_url(
            "get_object",
            Params=params,
            ExpiresIn=expires_in,
        )

    def _build_transfer_callback(
        self,
        progress_callback: Optional[ProgressFn],
        cancel_requested: Optional[CancelFn],
    ):
        if not progress_callback and not cancel_requested:
            return None

        transferred = 0

        def _callback(bytes_amount: int) -> None:
            nonlocal transferred
            if cancel_requested and cancel_requested():
                raise TransferCancelledError("Transfer cancelled by user")
            transferred += bytes_amount
            if progress_callback:
                progress_callback(transferred)
            if cancel_requested and cancel_requested():
                raise TransferCancelledError("Transfer cancelled by user")

        return _callback
