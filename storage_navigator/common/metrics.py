"""
Prometheus metrics for monitoring and observability.

Provides counters and histograms for tracking:
- Navigation requests by action
- Listing calls per backend
- Downloads per backend
"""

import time
from functools import wraps
from typing import Callable

from prometheus_client import (
    Counter,
    Histogram,
    generate_latest,
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
)

# Create a global registry
REGISTRY = CollectorRegistry()

# ========== Counters ==========

navigation_requests_total = Counter(
    "navigation_requests_total",
    "Total number of navigation requests",
    ["action"],  # none/change_path/download_file
    registry=REGISTRY,
)

listings_total = Counter(
    "listings_total",
    "Total number of directory listings produced",
    ["backend", "status"],  # local/ftp/sftp/s3/vfs/archive/null, success/failure
    registry=REGISTRY,
)

downloads_total = Counter(
    "downloads_total",
    "Total number of file downloads started",
    ["backend", "status"],
    registry=REGISTRY,
)

# ========== Histograms ==========

listing_latency_seconds = Histogram(
    "listing_latency_seconds",
    "Time to produce a directory listing",
    ["backend"],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
    registry=REGISTRY,
)

listing_entries = Histogram(
    "listing_entries",
    "Number of entries in a produced listing",
    ["backend"],
    buckets=(0, 1, 10, 50, 100, 500, 1000, 5000),
    registry=REGISTRY,
)


# ========== Metric Decorators ==========

def track_listing(backend: str):
    """
    Decorator to track listing latency, outcome and size.

    Args:
        backend: Backend label (local/ftp/sftp/s3/vfs/archive/null)
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            status = "success"
            try:
                result = func(*args, **kwargs)
                listing_entries.labels(backend=backend).observe(len(result))
                return result
            except Exception:
                status = "failure"
                raise
            finally:
                duration = time.time() - start_time
                listing_latency_seconds.labels(
                    backend=backend).observe(duration)
                listings_total.labels(
                    backend=backend, status=status).inc()

        return wrapper
    return decorator


def track_download(backend: str):
    """
    Decorator to count download attempts.

    Args:
        backend: Backend label
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            status = "success"
            try:
                return func(*args, **kwargs)
            except Exception:
                status = "failure"
                raise
            finally:
                downloads_total.labels(backend=backend, status=status).inc()

        return wrapper
    return decorator


def get_metrics() -> bytes:
    """
    Get current metrics in Prometheus format.

    Returns:
        Metrics as bytes
    """
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Get content type for metrics response."""
    return CONTENT_TYPE_LATEST
