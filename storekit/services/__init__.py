from .adapter import StorageAdapter
from .container import ContainerLifecycle, ContainerState
from .content_type import detect_content_type
from .factory import BackendNotConfiguredError, build_adapter, build_backend

__all__ = [
    "StorageAdapter",
    "ContainerLifecycle",
    "ContainerState",
    "detect_content_type",
    "BackendNotConfiguredError",
    "build_adapter",
    "build_backend",
]
