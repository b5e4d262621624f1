"""
Wide Events (Canonical Log Lines) - Structured Logging Utility

One comprehensive JSON event per service operation (fillup created, batch
imported, chain recalculated) instead of many scattered log lines:
- High-cardinality context (vehicle_id, fillup_id, filename)
- Business metrics (rows imported, warnings raised, entries recalculated)
- Latency breakdown via timers
- Tail sampling: keep every failure, slow operation and critical event,
  sample the rest
"""

import random
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

from justfuel.config import Config

# Configure structlog for JSON output
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

# Business metrics that force emission when truthy
CRITICAL_EVENTS = [
    "fillup_created",
    "fillup_deleted",
    "import_committed",
    "odometer_decreased",
]


class WideEvent:
    """
    Accumulates context throughout an operation, then emits one log event.

    Usage:
        event = WideEvent("fillup_create", trace_id=str(vehicle_id))
        event.add_context(vehicle_id=vehicle_id)
        event.add_business_metric("warnings", 1)

        with event.timer("db_query"):
            db.query(...).all()

        event.emit()
    """

    def __init__(self, operation: str, request_id: Optional[str] = None, trace_id: Optional[str] = None):
        """
        Args:
            operation: Name of the operation (e.g., "fillup_import")
            request_id: Unique ID for this operation (auto-generated if not provided)
            trace_id: ID that connects related operations (e.g., vehicle_id)
        """
        self.operation = operation
        self.context: Dict[str, Any] = {
            "operation": operation,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "start_time": time.time(),
            "request_id": request_id or str(uuid.uuid4()),
        }

        if trace_id:
            self.context["trace_id"] = trace_id

        self.logger = structlog.get_logger()

    def add_context(self, **kwargs) -> "WideEvent":
        """Add high-cardinality context fields (vehicle_id, fillup_id, filename, etc.)."""
        self.context.update(kwargs)
        return self

    def add_business_metric(self, key: str, value: Any) -> "WideEvent":
        """Add business metrics (rows imported, litres added, warnings raised, etc.)."""
        self.context.setdefault("business_metrics", {})[key] = value
        return self

    def add_error(self, error: Exception, **kwargs) -> "WideEvent":
        """Add error details to the event."""
        self.context["error"] = {
            "type": type(error).__name__,
            "message": str(error),
            "details": kwargs,
        }
        self.context["success"] = False
        return self

    def mark_success(self) -> "WideEvent":
        self.context["success"] = True
        return self

    def mark_failure(self, reason: str) -> "WideEvent":
        self.context["success"] = False
        self.context["failure_reason"] = reason
        return self

    @contextmanager
    def timer(self, operation_name: str):
        """
        Time a step of the operation.

        Usage:
            with event.timer("validation"):
                validator.validate(candidate, history)

            # Outputs: {"performance_breakdown": {"validation_ms": 1.2}}
        """
        start = time.time()
        try:
            yield
        finally:
            duration_ms = (time.time() - start) * 1000
            self.context.setdefault("performance_breakdown", {})[f"{operation_name}_ms"] = round(duration_ms, 2)

    def set_duration(self) -> "WideEvent":
        """Calculate and set the duration of the operation."""
        if "start_time" in self.context:
            duration_ms = (time.time() - self.context["start_time"]) * 1000
            self.context["duration_ms"] = round(duration_ms, 2)
            del self.context["start_time"]
        return self

    def should_emit(self, sample_rate: float = None, slow_threshold_ms: float = 1000) -> bool:
        """
        Tail sampling:
        - Always emit failures
        - Always emit slow operations (>slow_threshold_ms)
        - Always emit critical business events
        - Sample the rest at sample_rate (Config.WIDE_EVENT_SAMPLE_RATE by default)
        """
        if sample_rate is None:
            sample_rate = Config.WIDE_EVENT_SAMPLE_RATE

        if not self.context.get("success", True):
            return True

        if self.context.get("duration_ms", 0) > slow_threshold_ms:
            return True

        business_metrics = self.context.get("business_metrics", {})
        if any(business_metrics.get(event) for event in CRITICAL_EVENTS):
            return True

        return random.random() < sample_rate

    def emit(self, level: str = "info", force: bool = False) -> bool:
        """
        Emit the wide event as a single log line.

        Args:
            level: Log level (info, warning, error)
            force: Emit even if sampling says no

        Returns:
            True if the event was emitted
        """
        self.set_duration()

        if not force and not self.should_emit():
            return False

        log_method = getattr(self.logger, level, self.logger.info)
        log_method(
            f"{self.operation}_complete",
            **self.context,
        )
        return True


@contextmanager
def track_operation(operation: str, **initial_context):
    """
    Track a service operation with a wide event.

    Failures are always emitted at error level; successes go through tail
    sampling.

    Usage:
        with track_operation("fillup_import", vehicle_id=3) as event:
            event.add_business_metric("rows", 42)
    """
    event = WideEvent(operation, trace_id=str(initial_context.get("vehicle_id", "")) or None)
    event.add_context(**initial_context)

    try:
        yield event
        event.mark_success()
    except Exception as e:
        event.add_error(e)
        event.context["error"]["details"] = dict(getattr(e, "details", {}))
        event.mark_failure(str(e))
        raise
    finally:
        failed = not event.context.get("success", True)
        event.emit(level="error" if failed else "info", force=failed)
