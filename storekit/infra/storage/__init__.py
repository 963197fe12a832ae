"""Object storage backend layer.

This module provides a protocol-based abstraction for object storage backends,
enabling support for S3, MinIO, and other S3-compatible services.
"""

from .client import (
    AmbiguousResponseError,
    BackendClient,
    Container,
    ObjectMissingError,
    ObjectRecord,
    ObjectStat,
    ObjectSummary,
    StorageError,
)

__all__ = [
    "AmbiguousResponseError",
    "BackendClient",
    "Container",
    "ObjectMissingError",
    "ObjectRecord",
    "ObjectStat",
    "ObjectSummary",
    "StorageError",
]
