"""Tests for ContainerLifecycle."""

from __future__ import annotations

import threading
import time

import pytest

from storekit.common.config import AccessPolicy
from storekit.common.errors import ContainerUnavailableError
from storekit.infra.storage.client import (
    AmbiguousResponseError,
    Container,
    StorageError,
)
from storekit.services.container import ContainerLifecycle, ContainerState
from tests.services.mock_backend import MockBackendClient


def test_resolves_existing_container_and_memoizes():
    existing = Container(name="test", native="handle")
    backend = MockBackendClient(containers={"test": existing})
    lifecycle = ContainerLifecycle(backend, "test")

    assert lifecycle.state is ContainerState.UNRESOLVED
    assert lifecycle.resolve() is existing
    assert lifecycle.resolve() is existing
    assert lifecycle.state is ContainerState.RESOLVED
    assert backend.calls == ["container_exists", "get_container"]


def test_never_re_resolves_after_external_deletion():
    backend = MockBackendClient(containers={"test": Container(name="test")})
    lifecycle = ContainerLifecycle(backend, "test")
    first = lifecycle.resolve()

    backend.containers.clear()

    assert lifecycle.resolve() is first


def test_missing_container_without_create_fails():
    backend = MockBackendClient()
    lifecycle = ContainerLifecycle(backend, "missing")

    with pytest.raises(ContainerUnavailableError, match="does not exist") as info:
        lifecycle.resolve()

    assert info.value.kind == "container_unavailable"
    assert info.value.context == {"container": "missing"}
    assert lifecycle.state is ContainerState.FAILED
    assert backend.created == []


def test_failure_is_terminal():
    backend = MockBackendClient()
    lifecycle = ContainerLifecycle(backend, "missing")
    with pytest.raises(ContainerUnavailableError):
        lifecycle.resolve()

    backend.containers["missing"] = Container(name="missing")

    with pytest.raises(ContainerUnavailableError):
        lifecycle.resolve()
    assert backend.calls.count("container_exists") == 1


def test_creates_missing_container_with_policy():
    backend = MockBackendClient()
    lifecycle = ContainerLifecycle(
        backend, "new", create_if_missing=True, access_policy=AccessPolicy.PUBLIC
    )

    container = lifecycle.resolve()

    assert container.name == "new"
    assert backend.created == [("new", AccessPolicy.PUBLIC)]
    assert lifecycle.state is ContainerState.RESOLVED


def test_declined_creation_fails():
    backend = MockBackendClient(decline_create=True)
    lifecycle = ContainerLifecycle(backend, "new", create_if_missing=True)

    with pytest.raises(ContainerUnavailableError, match="could not be created"):
        lifecycle.resolve()


def test_creation_error_fails_with_cause():
    backend = MockBackendClient(failures={"create_container": StorageError("nope")})
    lifecycle = ContainerLifecycle(backend, "new", create_if_missing=True)

    with pytest.raises(ContainerUnavailableError) as info:
        lifecycle.resolve()

    assert isinstance(info.value.cause, StorageError)


def test_probe_transport_error_is_not_treated_as_absence():
    backend = MockBackendClient(failures={"container_exists": StorageError("timeout")})
    lifecycle = ContainerLifecycle(backend, "test", create_if_missing=True)

    with pytest.raises(ContainerUnavailableError, match="could not be checked"):
        lifecycle.resolve()

    assert backend.created == []


def test_ambiguous_probe_falls_through_to_creation():
    backend = MockBackendClient(
        failures={"container_exists": AmbiguousResponseError("403")}
    )
    lifecycle = ContainerLifecycle(backend, "test", create_if_missing=True)

    assert lifecycle.resolve().name == "test"
    assert [name for name, _ in backend.created] == ["test"]


def test_ambiguous_probe_without_create_fails():
    backend = MockBackendClient(
        failures={"container_exists": AmbiguousResponseError("403")}
    )
    lifecycle = ContainerLifecycle(backend, "test")

    with pytest.raises(ContainerUnavailableError) as info:
        lifecycle.resolve()

    assert isinstance(info.value.cause, AmbiguousResponseError)


def test_concurrent_first_use_creates_once():
    backend = MockBackendClient()
    original_exists = backend.container_exists

    def slow_exists(name):
        time.sleep(0.05)
        return original_exists(name)

    backend.container_exists = slow_exists
    lifecycle = ContainerLifecycle(backend, "shared", create_if_missing=True)
    results = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        results.append(lifecycle.resolve())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(results) == 8
    assert all(result is results[0] for result in results)
    assert len(backend.created) == 1


def test_failure_is_attributed_to_calling_operation():
    backend = MockBackendClient()
    lifecycle = ContainerLifecycle(backend, "missing")
    raised = []

    for operation in ("read", "delete"):
        with pytest.raises(ContainerUnavailableError) as info:
            lifecycle.resolve(operation, {"key": "k"})
        raised.append(info.value)

    assert [error.operation for error in raised] == ["read", "delete"]
    assert raised[0] is not raised[1]
    assert raised[0].__cause__ is raised[1].__cause__
    assert raised[1].context == {"container": "missing", "key": "k"}
