# infrastructure/monitoring/metrics.py

"""
Metrics and Observability for the Graph NLP Platform

Prometheus metrics covering annotation throughput, event dispatch health and
workflow task execution. All metrics live in a private registry so that tests
and embedding applications never collide with the default global registry.

Author: Graph NLP Platform
Date: 2026
"""

import logging
import time
from contextlib import contextmanager
from functools import wraps
from typing import Any, Dict, Optional

from prometheus_client import (
    CollectorRegistry, Counter, Gauge, Histogram, generate_latest, start_http_server
)

logger = logging.getLogger(__name__)

# Create custom registry for isolation
REGISTRY = CollectorRegistry()

# -------------------------
# Annotation Metrics
# -------------------------

ANNOTATION_SUCCESS = Counter(
    "nlp_annotation_success_total",
    "Number of texts annotated and persisted",
    ["processor"],
    registry=REGISTRY
)

ANNOTATION_FAILURE = Counter(
    "nlp_annotation_failure_total",
    "Number of failed annotation attempts",
    ["processor", "error_type"],
    registry=REGISTRY
)

ANNOTATION_DURATION = Histogram(
    "nlp_annotation_duration_seconds",
    "Time spent annotating and persisting one text",
    ["processor"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
    registry=REGISTRY
)

# -------------------------
# Event Dispatch Metrics
# -------------------------

EVENTS_PUBLISHED = Counter(
    "nlp_events_published_total",
    "Number of events published",
    ["event_kind"],
    registry=REGISTRY
)

EVENT_LISTENER_FAILURE = Counter(
    "nlp_event_listener_failure_total",
    "Number of listener invocations that raised",
    ["event_kind"],
    registry=REGISTRY
)

# -------------------------
# Workflow Metrics
# -------------------------

WORKFLOW_TASK_RUNS = Counter(
    "nlp_workflow_task_runs_total",
    "Workflow task runs by final status",
    ["status"],
    registry=REGISTRY
)

WORKFLOW_ENTRIES_PROCESSED = Counter(
    "nlp_workflow_entries_processed_total",
    "Entries handed to workflow processing stages",
    registry=REGISTRY
)

WORKFLOW_TASK_DURATION = Histogram(
    "nlp_workflow_task_duration_seconds",
    "Wall time of workflow task runs",
    ["status"],
    buckets=[0.1, 1.0, 10.0, 60.0, 300.0, 1800.0, 7200.0],
    registry=REGISTRY
)

ACTIVE_WORKFLOW_TASKS = Gauge(
    "nlp_active_workflow_tasks",
    "Workflow tasks currently running",
    registry=REGISTRY
)

# -------------------------
# Helper Functions
# -------------------------

def record_annotation_success(processor: str, duration: float):
    """Record a successful annotation."""
    ANNOTATION_SUCCESS.labels(processor=processor).inc()
    ANNOTATION_DURATION.labels(processor=processor).observe(duration)

def record_annotation_failure(processor: str, error_type: str):
    """Record a failed annotation."""
    ANNOTATION_FAILURE.labels(processor=processor, error_type=error_type).inc()

def record_event_published(event_kind: str):
    EVENTS_PUBLISHED.labels(event_kind=event_kind).inc()

def record_listener_failure(event_kind: str):
    EVENT_LISTENER_FAILURE.labels(event_kind=event_kind).inc()

def record_task_run(status: str, duration: float):
    """Record the outcome of one workflow task run."""
    WORKFLOW_TASK_RUNS.labels(status=status).inc()
    WORKFLOW_TASK_DURATION.labels(status=status).observe(duration)

def record_entry_processed():
    WORKFLOW_ENTRIES_PROCESSED.inc()

def get_sample_value(name: str, labels: Optional[Dict[str, str]] = None) -> Optional[float]:
    """Read a sample from the platform registry (used by health checks and tests)."""
    return REGISTRY.get_sample_value(name, labels or {})

# -------------------------
# Decorators / Context Managers
# -------------------------

@contextmanager
def track_active_task():
    """Context manager to track running workflow tasks."""
    ACTIVE_WORKFLOW_TASKS.inc()
    try:
        yield
    finally:
        ACTIVE_WORKFLOW_TASKS.dec()

def track_annotation(processor_name_of):
    """
    Decorator recording annotation success/failure and duration.

    Args:
        processor_name_of: Callable mapping the call's ``(args, kwargs)`` to
            the processor label
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            processor = processor_name_of(args, kwargs)
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                record_annotation_failure(processor, type(e).__name__)
                raise
            record_annotation_success(processor, time.time() - start_time)
            return result
        return wrapper
    return decorator

# -------------------------
# Metrics Server
# -------------------------

class MetricsServer:
    """Prometheus metrics server with a simple health check."""

    def __init__(self, port: int = 9100, host: str = "0.0.0.0"):
        self.port = port
        self.host = host
        self.start_time = time.time()
        self.started = False

    def start(self):
        """Start the Prometheus metrics server."""
        try:
            start_http_server(self.port, self.host, registry=REGISTRY)
            self.started = True
            logger.info(f"Prometheus metrics server started on {self.host}:{self.port}")
        except Exception as e:
            logger.error(f"Failed to start Prometheus metrics server: {e}")
            raise

    def get_metrics(self) -> str:
        """Get current metrics in Prometheus format."""
        return generate_latest(REGISTRY).decode("utf-8")

    def health_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy" if self.started else "stopped",
            "uptime_seconds": time.time() - self.start_time,
            "timestamp": time.time()
        }


# Global metrics server instance
metrics_server: Optional[MetricsServer] = None

def start_metrics_server(port: int = 9100, host: str = "0.0.0.0") -> MetricsServer:
    """Start the metrics server."""
    global metrics_server
    metrics_server = MetricsServer(port, host)
    metrics_server.start()
    return metrics_server
