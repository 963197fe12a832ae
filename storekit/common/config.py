from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

SUPPORTED_BACKENDS: tuple[str, ...] = ("s3",)


class AccessPolicy(str, Enum):
    """Access policy applied to containers created by an adapter."""

    PRIVATE = "private"
    PUBLIC = "public"


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_access_policy(value: str | AccessPolicy) -> AccessPolicy:
    if isinstance(value, AccessPolicy):
        return value
    try:
        return AccessPolicy(value.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(p.value for p in AccessPolicy)
        raise ValueError(
            f"STORAGE_ACCESS_POLICY must be one of: {allowed} (got {value!r})."
        ) from exc


@dataclass(frozen=True, slots=True)
class AdapterOptions:
    """Construction options consumed by ``StorageAdapter``."""

    create_container_if_missing: bool = False
    path_prefix: str = ""
    detect_content_type: bool = False
    default_access_policy: AccessPolicy = AccessPolicy.PRIVATE

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "default_access_policy", _as_access_policy(self.default_access_policy)
        )
        object.__setattr__(self, "path_prefix", (self.path_prefix or "").strip("/"))


@dataclass
class Settings:
    STORAGE_BACKEND: str = "s3"
    STORAGE_CONTAINER: str | None = None
    STORAGE_CREATE_CONTAINER: bool = False
    STORAGE_PATH_PREFIX: str = ""
    STORAGE_DETECT_CONTENT_TYPE: bool = False
    STORAGE_ACCESS_POLICY: str = AccessPolicy.PRIVATE.value
    S3_ENDPOINT_URL: str | None = None
    S3_REGION: str | None = None
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_USE_SSL: bool = True
    S3_ADDRESSING_STYLE: str = "path"
    ENABLE_METRICS: bool = True

    def __post_init__(self) -> None:
        backend = (self.STORAGE_BACKEND or "").strip().lower()
        if backend not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"STORAGE_BACKEND must be one of: {', '.join(SUPPORTED_BACKENDS)} "
                f"(got {self.STORAGE_BACKEND!r})."
            )
        self.STORAGE_BACKEND = backend
        self.STORAGE_ACCESS_POLICY = _as_access_policy(self.STORAGE_ACCESS_POLICY).value

    def adapter_options(self) -> AdapterOptions:
        return AdapterOptions(
            create_container_if_missing=self.STORAGE_CREATE_CONTAINER,
            path_prefix=self.STORAGE_PATH_PREFIX,
            detect_content_type=self.STORAGE_DETECT_CONTENT_TYPE,
            default_access_policy=AccessPolicy(self.STORAGE_ACCESS_POLICY),
        )

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            STORAGE_BACKEND=os.environ.get("STORAGE_BACKEND", cls.STORAGE_BACKEND),
            STORAGE_CONTAINER=os.environ.get("STORAGE_CONTAINER") or None,
            STORAGE_CREATE_CONTAINER=_as_bool(
                os.environ.get("STORAGE_CREATE_CONTAINER"),
                cls.STORAGE_CREATE_CONTAINER,
            ),
            STORAGE_PATH_PREFIX=os.environ.get(
                "STORAGE_PATH_PREFIX", cls.STORAGE_PATH_PREFIX
            ),
            STORAGE_DETECT_CONTENT_TYPE=_as_bool(
                os.environ.get("STORAGE_DETECT_CONTENT_TYPE"),
                cls.STORAGE_DETECT_CONTENT_TYPE,
            ),
            STORAGE_ACCESS_POLICY=os.environ.get(
                "STORAGE_ACCESS_POLICY", cls.STORAGE_ACCESS_POLICY
            ),
            S3_ENDPOINT_URL=os.environ.get("S3_ENDPOINT_URL") or None,
            S3_REGION=os.environ.get("S3_REGION") or None,
            S3_ACCESS_KEY_ID=os.environ.get("S3_ACCESS_KEY_ID") or None,
            S3_SECRET_ACCESS_KEY=os.environ.get("S3_SECRET_ACCESS_KEY") or None,
            S3_USE_SSL=_as_bool(os.environ.get("S3_USE_SSL"), cls.S3_USE_SSL),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
