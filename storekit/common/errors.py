"""Canonical adapter errors.

Every adapter operation that can fail raises exactly one of the classes
defined here. Backend-specific exceptions never cross the adapter boundary
unwrapped: they are kept as ``cause`` (and chained as ``__cause__``) so that
callers only ever depend on this taxonomy.
"""

from __future__ import annotations

from typing import Any, Mapping


class AdapterError(Exception):
    """Base class for canonical adapter errors."""

    kind: str = "adapter_error"

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        context: Mapping[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.context: dict[str, Any] = dict(context or {})
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Render the canonical error record, e.g. for structured logs."""
        payload: dict[str, Any] = {
            "kind": self.kind,
            "operation": self.operation,
            "message": self.message,
            "context": dict(self.context),
        }
        if self.cause is not None:
            payload["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return payload


class NotFoundError(AdapterError):
    """Raised when an operation references a key that does not exist."""

    kind = "not_found"

    def __init__(
        self,
        key: str,
        *,
        operation: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            f'The key "{key}" could not be found.',
            operation=operation,
            context={"key": key},
            cause=cause,
        )
        self.key = key


class AlreadyExistsError(AdapterError):
    """Raised when an operation would clobber an existing key."""

    kind = "already_exists"

    def __init__(
        self,
        key: str,
        *,
        operation: str,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f'The key "{key}" already exists and cannot be overwritten.',
            operation=operation,
            context={"key": key, **dict(context or {})},
        )
        self.key = key


class ContainerUnavailableError(AdapterError):
    """Raised when the backing container is missing and cannot be created."""

    kind = "container_unavailable"

    def __init__(
        self,
        container: str,
        reason: str,
        *,
        operation: str = "resolve_container",
        context: Mapping[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            f'Container "{container}" {reason}.',
            operation=operation,
            context={"container": container, **dict(context or {})},
            cause=cause,
        )
        self.container = container
        self.reason = reason

    def for_operation(
        self, operation: str, context: Mapping[str, Any] | None = None
    ) -> "ContainerUnavailableError":
        """Return a copy of this failure attributed to ``operation``."""
        return type(self)(
            self.container,
            self.reason,
            operation=operation,
            context=context,
            cause=self.cause,
        )


class StorageFailureError(AdapterError):
    """Catch-all for backend failures not otherwise classified."""

    kind = "storage_failure"

    @classmethod
    def unexpected(
        cls,
        operation: str,
        context: Mapping[str, Any] | None,
        cause: BaseException,
    ) -> "StorageFailureError":
        details = ", ".join(f"{k}={v!r}" for k, v in (context or {}).items())
        message = f"Unexpected failure during {operation}"
        if details:
            message = f"{message} ({details})"
        return cls(
            f"{message}: {cause}",
            operation=operation,
            context=context,
            cause=cause,
        )
