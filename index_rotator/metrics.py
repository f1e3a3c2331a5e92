"""
Prometheus metrics for index rotation
"""

import time
from contextlib import contextmanager
from typing import Callable

# Lazy initialization flag
_initialized = False
_metrics = {}


def _init_metrics():
    """Initialize Prometheus metrics (lazy loading)"""
    global _initialized, _metrics

    if _initialized:
        return

    from prometheus_client import Counter, Histogram

    _metrics["primary_sets"] = Counter(
        "index_rotator_primary_sets_total",
        "Total primary index repoints",
        ["strategy"]  # configuration, alias
    )
    _metrics["secondaries_created"] = Counter(
        "index_rotator_secondaries_created_total",
        "Total secondary records written by archiving"
    )
    _metrics["copy_retries"] = Counter(
        "index_rotator_copy_retries_total",
        "Total retries while reading the primary for archiving"
    )
    _metrics["copy_failures"] = Counter(
        "index_rotator_copy_failures_total",
        "Total archive attempts abandoned after exhausting retries"
    )
    _metrics["secondaries_pruned"] = Counter(
        "index_rotator_secondaries_pruned_total",
        "Total secondary entries processed by pruning",
        ["status"]  # deleted, missing, error
    )
    _metrics["rotation_latency"] = Histogram(
        "index_rotator_rotation_latency_seconds",
        "Archive + repoint latency",
        buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
    )

    _initialized = True


def inc_primary_set(strategy: str):
    """Increment primary repoint counter"""
    _init_metrics()
    _metrics["primary_sets"].labels(strategy=strategy).inc()


def inc_secondary_created():
    """Increment secondary record counter"""
    _init_metrics()
    _metrics["secondaries_created"].inc()


def inc_copy_retry():
    """Increment archive retry counter"""
    _init_metrics()
    _metrics["copy_retries"].inc()


def inc_copy_failure():
    """Increment archive failure counter"""
    _init_metrics()
    _metrics["copy_failures"].inc()


def inc_secondary_pruned(status: str = "deleted"):
    """Increment pruning counter (status: deleted/missing/error)"""
    _init_metrics()
    _metrics["secondaries_pruned"].labels(status=status).inc()


def observe_rotation_latency(seconds: float):
    """Record rotation latency"""
    _init_metrics()
    _metrics["rotation_latency"].observe(seconds)


@contextmanager
def track_latency(observe_fn: Callable[[float], None]):
    """Context manager to track operation latency"""
    start = time.time()
    try:
        yield
    finally:
        observe_fn(time.time() - start)
