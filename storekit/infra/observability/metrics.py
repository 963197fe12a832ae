from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import Counter, Histogram

# Low-cardinality labels only: keys never become label values.
OPERATIONS = Counter(
    "storage_operations_total",
    "Total storage adapter operations",
    ["backend", "operation", "outcome"],
)

LATENCY = Histogram(
    "storage_operation_duration_seconds",
    "Storage adapter operation latency in seconds",
    ["backend", "operation"],
)


@contextmanager
def observe_operation(backend: str, operation: str) -> Iterator[None]:
    """Count and time one adapter operation.

    The outcome label is ``ok`` or the canonical error kind of the raised
    exception (``error`` when it carries none).
    """
    started = time.perf_counter()
    outcome = "ok"
    try:
        yield
    except Exception as exc:
        outcome = getattr(exc, "kind", "error")
        raise
    finally:
        OPERATIONS.labels(backend=backend, operation=operation, outcome=outcome).inc()
        LATENCY.labels(backend=backend, operation=operation).observe(
            time.perf_counter() - started
        )
