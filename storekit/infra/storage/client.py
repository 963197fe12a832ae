"""Backend client protocol and data types.

This module defines the primitive operations a concrete object storage
backend must expose. The adapter layer is written once against this shape;
each backend translates its native SDK calls and exceptions into it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Protocol, Sequence

from storekit.common.config import AccessPolicy


class StorageError(RuntimeError):
    """Raised when a backend operation fails."""


class ObjectMissingError(StorageError):
    """Raised when the addressed object does not exist."""


class AmbiguousResponseError(StorageError):
    """Raised when the backend cannot tell absence apart from refusal.

    S3 for instance answers ``403`` on a HEAD request for a missing key when
    the caller lacks list permissions.
    """


@dataclass(frozen=True, slots=True)
class Container:
    """Resolved handle to a backend container (bucket)."""

    name: str
    native: Any = None


@dataclass(frozen=True, slots=True)
class ObjectStat:
    """Metadata-only view of an object, as returned by a HEAD request."""

    size_bytes: int | None
    etag: str | None
    content_type: str | None
    last_modified: datetime | str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ObjectRecord:
    """Full object: content plus its stat."""

    key: str
    content: bytes
    stat: ObjectStat


@dataclass(frozen=True, slots=True)
class ObjectSummary:
    """One entry of a listing."""

    key: str
    last_modified: datetime | str | None = None
    size_bytes: int | None = None
    etag: str | None = None
    content_type: str | None = None


class BackendClient(Protocol):
    """Protocol defining the interface for object storage backends.

    Absence of an object is always signalled by raising
    ``ObjectMissingError``; any other failure raises ``StorageError`` (or a
    subclass).
    """

    name: str
    supports_metadata_update: bool

    def container_exists(self, name: str) -> bool:
        """Check whether a container exists.

        Raises:
            AmbiguousResponseError: If the backend refused to answer.
            StorageError: On transport or service failure.
        """
        ...

    def get_container(self, name: str) -> Container:
        """Return a handle for an existing container."""
        ...

    def create_container(
        self, name: str, *, access_policy: AccessPolicy
    ) -> Container | None:
        """Create a container. Returns ``None`` if the backend declined."""
        ...

    def get_object(self, container: Container, key: str) -> ObjectRecord:
        """Fetch object content and stat.

        Raises:
            ObjectMissingError: If the object does not exist.
            StorageError: If the operation fails.
        """
        ...

    def put_object(
        self,
        container: Container,
        key: str,
        content: bytes,
        *,
        content_type: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> ObjectStat:
        """Upload an object, replacing any existing one."""
        ...

    def delete_object(self, container: Container, key: str) -> None:
        """Delete an object.

        Raises:
            ObjectMissingError: If the object does not exist.
            StorageError: If the operation fails.
        """
        ...

    def list_objects(
        self,
        container: Container,
        prefix: str = "",
        *,
        limit: int | None = None,
    ) -> Sequence[ObjectSummary]:
        """List objects whose key starts with ``prefix``."""
        ...

    def stat_object(self, container: Container, key: str) -> ObjectStat:
        """Get object metadata without downloading the content."""
        ...

    def object_exists(self, container: Container, key: str) -> bool:
        """Best-effort existence check.

        Raises:
            AmbiguousResponseError: If absence cannot be told apart from refusal.
            StorageError: On transport or service failure.
        """
        ...

    def replace_metadata(
        self, container: Container, key: str, metadata: Mapping[str, str]
    ) -> None:
        """Replace the user metadata of an existing object.

        Only called when ``supports_metadata_update`` is true.
        """
        ...
