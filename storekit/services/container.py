"""Container lifecycle management.

A container is resolved (or created) lazily on first use and memoized for
the lifetime of the adapter. The transition is guarded by a lock so that
concurrent first use results in a single resolution. A failed resolution is
terminal: every later call raises a fresh ``ContainerUnavailableError``
chained from the recorded failure, until a new lifecycle is constructed.
"""

from __future__ import annotations

import logging
from enum import Enum
from threading import Lock
from typing import Any, Mapping

from storekit.common.config import AccessPolicy
from storekit.common.errors import ContainerUnavailableError
from storekit.infra.storage.client import (
    AmbiguousResponseError,
    BackendClient,
    Container,
)

logger = logging.getLogger("storekit.lifecycle")


class ContainerState(str, Enum):
    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


class ContainerLifecycle:
    """Resolves the backing container exactly once per instance."""

    def __init__(
        self,
        backend: BackendClient,
        name: str,
        *,
        create_if_missing: bool = False,
        access_policy: AccessPolicy = AccessPolicy.PRIVATE,
    ) -> None:
        self._backend = backend
        self._name = name
        self._create_if_missing = create_if_missing
        self._access_policy = access_policy
        self._state = ContainerState.UNRESOLVED
        self._container: Container | None = None
        self._failure: ContainerUnavailableError | None = None
        self._lock = Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> ContainerState:
        return self._state

    def resolve(
        self,
        operation: str = "resolve_container",
        context: Mapping[str, Any] | None = None,
    ) -> Container:
        """Return the container, resolving it on first use.

        Failures are reported as ``ContainerUnavailableError`` attributed to
        ``operation`` with ``context`` merged in.
        """
        container = self._container
        if self._state is ContainerState.RESOLVED and container is not None:
            return container

        with self._lock:
            if self._state is ContainerState.RESOLVED and self._container is not None:
                return self._container
            if self._state is ContainerState.FAILED and self._failure is not None:
                raise self._failure.for_operation(operation, context) from self._failure

            self._state = ContainerState.RESOLVING
            try:
                container = self._resolve_or_create()
            except ContainerUnavailableError as exc:
                self._failure = exc
                self._state = ContainerState.FAILED
                logger.warning(
                    "container_unavailable container=%s reason=%s",
                    self._name,
                    exc.message,
                    extra={"extra": exc.to_dict()},
                )
                raise exc.for_operation(operation, context) from exc

            self._container = container
            self._state = ContainerState.RESOLVED
            return container

    def _resolve_or_create(self) -> Container:
        ambiguous: AmbiguousResponseError | None = None
        try:
            exists = self._backend.container_exists(self._name)
        except AmbiguousResponseError as exc:
            # Creation is safe to attempt when the probe is inconclusive.
            logger.warning(
                "container_probe_ambiguous container=%s error=%s", self._name, exc
            )
            exists = False
            ambiguous = exc
        except Exception as exc:
            raise ContainerUnavailableError(
                self._name, "could not be checked", cause=exc
            ) from exc

        if exists:
            try:
                return self._backend.get_container(self._name)
            except Exception as exc:
                raise ContainerUnavailableError(
                    self._name, "could not be opened", cause=exc
                ) from exc

        if not self._create_if_missing:
            raise ContainerUnavailableError(
                self._name, "does not exist", cause=ambiguous
            )

        try:
            container = self._backend.create_container(
                self._name, access_policy=self._access_policy
            )
        except Exception as exc:
            raise ContainerUnavailableError(
                self._name, "could not be created", cause=exc
            ) from exc

        if not container:
            raise ContainerUnavailableError(self._name, "could not be created")

        logger.info(
            "container_created container=%s access_policy=%s",
            self._name,
            self._access_policy.value,
        )
        return container
