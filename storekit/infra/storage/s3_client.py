"""S3-compatible backend client implementation.

This module provides a backend client that works with AWS S3, MinIO, and
other S3-compatible object storage services.

Dependencies:
    - boto3
    - botocore
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Sequence

from storekit.common.config import AccessPolicy
from storekit.infra.storage.client import (
    AmbiguousResponseError,
    Container,
    ObjectMissingError,
    ObjectRecord,
    ObjectStat,
    ObjectSummary,
    StorageError,
)

if TYPE_CHECKING:
    from storekit.common.config import Settings

_MISSING_CODES = frozenset({"404", "NoSuchKey", "NotFound", "NoSuchBucket"})
_FORBIDDEN_CODES = frozenset({"403", "AccessDenied", "Forbidden"})
_ACLS = {AccessPolicy.PRIVATE: "private", AccessPolicy.PUBLIC: "public-read"}


def _error_code(exc: BaseException) -> str:
    """Extract the S3 error code from a botocore ``ClientError``."""
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return ""
    code = (response.get("Error") or {}).get("Code")
    if code:
        return str(code)
    status = (response.get("ResponseMetadata") or {}).get("HTTPStatusCode")
    return str(status) if status else ""


def _stat_from_response(response: Mapping[str, Any]) -> ObjectStat:
    size = response.get("ContentLength")
    return ObjectStat(
        size_bytes=int(size) if size is not None else None,
        etag=response.get("ETag"),
        content_type=response.get("ContentType"),
        last_modified=response.get("LastModified"),
        metadata=dict(response.get("Metadata") or {}),
    )


class S3BackendClient:
    """S3-compatible object storage backend.

    Supports AWS S3, MinIO, and other S3-compatible services.
    Uses boto3 for all storage operations.
    """

    name = "s3"
    supports_metadata_update = True

    def __init__(self, *, settings: "Settings") -> None:
        """Initialize the S3 client with configuration from settings.

        Args:
            settings: Settings containing S3 configuration.

        Raises:
            StorageError: If boto3 is not installed.
        """
        self._settings = settings
        self._client = self._build_client(settings)

    @staticmethod
    def _build_client(settings: "Settings") -> Any:
        """Create a boto3 S3 client from settings."""
        try:
            import boto3
            from botocore.config import Config
        except ImportError as exc:
            raise StorageError(
                "boto3 and botocore are required for S3 storage backend. "
                "Install with: pip install boto3"
            ) from exc

        addressing_style = (settings.S3_ADDRESSING_STYLE or "path").strip().lower()
        config = Config(s3={"addressing_style": addressing_style})

        return boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            region_name=settings.S3_REGION,
            aws_access_key_id=settings.S3_ACCESS_KEY_ID,
            aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY,
            use_ssl=bool(settings.S3_USE_SSL),
            config=config,
        )

    def container_exists(self, name: str) -> bool:
        try:
            self._client.head_bucket(Bucket=name)
        except Exception as exc:
            code = _error_code(exc)
            if code in _MISSING_CODES:
                return False
            if code in _FORBIDDEN_CODES:
                raise AmbiguousResponseError(
                    f"Not allowed to check bucket {name}: {exc}"
                ) from exc
            raise StorageError(f"Failed to check bucket: {exc}") from exc
        return True

    def get_container(self, name: str) -> Container:
        return Container(name=name)

    def create_container(
        self, name: str, *, access_policy: AccessPolicy
    ) -> Container | None:
        params: dict[str, Any] = {"Bucket": name, "ACL": _ACLS[access_policy]}
        region = (self._settings.S3_REGION or "").strip()
        # us-east-1 rejects an explicit LocationConstraint
        if region and region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}

        try:
            self._client.create_bucket(**params)
        except Exception as exc:
            if _error_code(exc) == "BucketAlreadyOwnedByYou":
                return Container(name=name)
            raise StorageError(f"Failed to create bucket: {exc}") from exc

        return Container(name=name)

    def get_object(self, container: Container, key: str) -> ObjectRecord:
        try:
            response = self._client.get_object(Bucket=container.name, Key=key)
        except Exception as exc:
            if _error_code(exc) in _MISSING_CODES:
                raise ObjectMissingError(f"Object not found: {key}") from exc
            raise StorageError(f"Failed to get object: {exc}") from exc

        body = response.get("Body")
        try:
            content = body.read() if body is not None else b""
        except Exception as exc:
            raise StorageError(f"Failed to read object body: {exc}") from exc
        finally:
            if body is not None and hasattr(body, "close"):
                body.close()

        return ObjectRecord(key=key, content=content, stat=_stat_from_response(response))

    def put_object(
        self,
        container: Container,
        key: str,
        content: bytes,
        *,
        content_type: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> ObjectStat:
        params: dict[str, Any] = {"Bucket": container.name, "Key": key, "Body": content}
        if content_type:
            params["ContentType"] = content_type
        if metadata:
            params["Metadata"] = dict(metadata)

        try:
            response = self._client.put_object(**params)
        except Exception as exc:
            raise StorageError(f"Failed to put object: {exc}") from exc

        return ObjectStat(
            size_bytes=len(content),
            etag=response.get("ETag"),
            content_type=content_type,
            metadata=dict(metadata or {}),
        )

    def delete_object(self, container: Container, key: str) -> None:
        # S3 reports success for missing keys, so probe first.
        self.stat_object(container, key)
        try:
            self._client.delete_object(Bucket=container.name, Key=key)
        except Exception as exc:
            raise StorageError(f"Failed to delete object: {exc}") from exc

    def list_objects(
        self,
        container: Container,
        prefix: str = "",
        *,
        limit: int | None = None,
    ) -> Sequence[ObjectSummary]:
        params: dict[str, Any] = {"Bucket": container.name}
        if prefix:
            params["Prefix"] = prefix
        if limit is not None:
            params["PaginationConfig"] = {"MaxItems": int(limit)}

        summaries: list[ObjectSummary] = []
        try:
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(**params):
                for item in page.get("Contents") or []:
                    size = item.get("Size")
                    summaries.append(
                        ObjectSummary(
                            key=item["Key"],
                            last_modified=item.get("LastModified"),
                            size_bytes=int(size) if size is not None else None,
                            etag=item.get("ETag"),
                        )
                    )
        except Exception as exc:
            raise StorageError(f"Failed to list objects: {exc}") from exc

        if limit is not None:
            return summaries[:limit]
        return summaries

    def stat_object(self, container: Container, key: str) -> ObjectStat:
        try:
            response = self._client.head_object(Bucket=container.name, Key=key)
        except Exception as exc:
            if _error_code(exc) in _MISSING_CODES:
                raise ObjectMissingError(f"Object not found: {key}") from exc
            raise StorageError(f"Failed to get object metadata: {exc}") from exc

        return _stat_from_response(response)

    def object_exists(self, container: Container, key: str) -> bool:
        try:
            self._client.head_object(Bucket=container.name, Key=key)
        except Exception as exc:
            code = _error_code(exc)
            if code in _MISSING_CODES:
                return False
            if code in _FORBIDDEN_CODES:
                raise AmbiguousResponseError(
                    f"Not allowed to check object {key}: {exc}"
                ) from exc
            raise StorageError(f"Failed to check object: {exc}") from exc
        return True

    def replace_metadata(
        self, container: Container, key: str, metadata: Mapping[str, str]
    ) -> None:
        stat = self.stat_object(container, key)
        params: dict[str, Any] = {
            "Bucket": container.name,
            "Key": key,
            "CopySource": {"Bucket": container.name, "Key": key},
            "Metadata": dict(metadata),
            "MetadataDirective": "REPLACE",
        }
        if stat.content_type:
            params["ContentType"] = stat.content_type

        try:
            self._client.copy_object(**params)
        except Exception as exc:
            raise StorageError(f"Failed to replace object metadata: {exc}") from exc
