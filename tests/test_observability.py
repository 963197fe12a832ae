import pytest
from prometheus_client import REGISTRY

from storekit.common.errors import NotFoundError
from storekit.infra.storage.client import Container
from storekit.services.adapter import StorageAdapter
from tests.services.mock_backend import MockBackendClient


def _count(backend, operation, outcome):
    value = REGISTRY.get_sample_value(
        "storage_operations_total",
        {"backend": backend, "operation": operation, "outcome": outcome},
    )
    return value or 0.0


def build_adapter(name, *, metrics_enabled=True):
    backend = MockBackendClient(name=name, containers={"test": Container(name="test")})
    return StorageAdapter(backend, "test", metrics_enabled=metrics_enabled)


def test_counts_successful_operations():
    adapter = build_adapter("metrics-ok")

    adapter.write("a", b"1")
    adapter.read("a")
    adapter.read("a")

    assert _count("metrics-ok", "write", "ok") == 1
    assert _count("metrics-ok", "read", "ok") == 2


def test_failure_outcome_is_error_kind():
    adapter = build_adapter("metrics-fail")

    with pytest.raises(NotFoundError):
        adapter.read("missing")

    assert _count("metrics-fail", "read", "not_found") == 1


def test_latency_metric_present():
    adapter = build_adapter("metrics-latency")

    adapter.exists("a")

    value = REGISTRY.get_sample_value(
        "storage_operation_duration_seconds_count",
        {"backend": "metrics-latency", "operation": "exists"},
    )
    assert value == 1


def test_metrics_can_be_disabled():
    adapter = build_adapter("metrics-off", metrics_enabled=False)

    adapter.write("a", b"1")

    assert _count("metrics-off", "write", "ok") == 0
