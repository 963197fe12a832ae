from __future__ import annotations

from storekit.common.config import AdapterOptions, Settings, get_settings
from storekit.infra.storage.client import BackendClient
from storekit.infra.storage.s3_client import S3BackendClient
from storekit.services.adapter import StorageAdapter


class BackendNotConfiguredError(ValueError):
    """Raised when the storage backend is not properly configured."""


def build_backend(settings: Settings | None = None) -> BackendClient:
    """Build the backend client selected by ``STORAGE_BACKEND``."""
    settings = settings or get_settings()
    backend = (settings.STORAGE_BACKEND or "").strip().lower()
    if backend != "s3":
        raise BackendNotConfiguredError(
            f"Unsupported storage backend: {backend}. Only 's3' is supported."
        )
    if not settings.S3_ACCESS_KEY_ID or not settings.S3_SECRET_ACCESS_KEY:
        raise BackendNotConfiguredError(
            "S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY are required"
        )
    return S3BackendClient(settings=settings)


def build_adapter(
    settings: Settings | None = None,
    *,
    backend: BackendClient | None = None,
    options: AdapterOptions | None = None,
) -> StorageAdapter:
    """Wire a ``StorageAdapter`` for the configured container."""
    settings = settings or get_settings()
    if not settings.STORAGE_CONTAINER:
        raise BackendNotConfiguredError("STORAGE_CONTAINER is required")
    return StorageAdapter(
        backend or build_backend(settings),
        settings.STORAGE_CONTAINER,
        options=options or settings.adapter_options(),
        metrics_enabled=settings.ENABLE_METRICS,
    )
