"""Uniform key-based object storage over heterogeneous backends."""

from storekit.common.config import AccessPolicy, AdapterOptions, Settings, get_settings
from storekit.common.errors import (
    AdapterError,
    AlreadyExistsError,
    ContainerUnavailableError,
    NotFoundError,
    StorageFailureError,
)
from storekit.common.logging import setup_logging
from storekit.services.adapter import StorageAdapter
from storekit.services.factory import build_adapter, build_backend

__all__ = [
    "AccessPolicy",
    "AdapterError",
    "AdapterOptions",
    "AlreadyExistsError",
    "ContainerUnavailableError",
    "NotFoundError",
    "Settings",
    "StorageAdapter",
    "StorageFailureError",
    "build_adapter",
    "build_backend",
    "get_settings",
    "setup_logging",
]
