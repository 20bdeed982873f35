"""Observability utilities for logging and stage metrics."""

import logging
import time
import uuid
from typing import Any, Dict, List, Optional, Callable
from dataclasses import dataclass, field
from functools import wraps
from enum import Enum

from .logging_config import setup_logger


class LogLevel(Enum):
    """Log levels used by the structured logger."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass
class LogContext:
    """Context information for structured logging."""

    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    operation: str = ""
    component: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def with_operation(self, operation: str) -> "LogContext":
        """Create new context with operation set."""
        return LogContext(
            correlation_id=self.correlation_id,
            operation=operation,
            component=self.component,
            metadata=self.metadata.copy(),
        )

    def with_metadata(self, **kwargs) -> "LogContext":
        """Create new context with additional metadata."""
        return LogContext(
            correlation_id=self.correlation_id,
            operation=self.operation,
            component=self.component,
            metadata={**self.metadata, **kwargs},
        )


def _format_message(
    message: str, context: Optional[LogContext], extra: Dict[str, Any]
) -> str:
    """Prefix operation and correlation id, append key=value metadata."""
    fields = dict(extra)
    if context:
        fields = {**context.metadata, **fields}
        message = f"[{context.correlation_id}] {message}"
        if context.operation:
            message = f"[{context.operation}] {message}"

    if fields:
        message += " (" + ", ".join(f"{k}={v}" for k, v in fields.items()) + ")"
    return message


class StructuredLogger:
    """Structured logger with context support."""

    def __init__(self, name: str, level: Optional[str] = None):
        self._logger = setup_logger(name, level=level)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def _log(
        self,
        level: LogLevel,
        message: str,
        context: Optional[LogContext] = None,
        **kwargs,
    ):
        getattr(self._logger, level.value.lower())(
            _format_message(message, context, kwargs)
        )

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, context, **kwargs)

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log info message."""
        self._log(LogLevel.INFO, message, context, **kwargs)

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log warning message."""
        self._log(LogLevel.WARNING, message, context, **kwargs)

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log error message."""
        self._log(LogLevel.ERROR, message, context, **kwargs)


@dataclass
class PerformanceMetrics:
    """Wall-clock timing of one operation."""

    operation: str
    start_time: float
    end_time: float

    @property
    def duration(self) -> float:
        """Operation duration in seconds."""
        return self.end_time - self.start_time

    @property
    def duration_ms(self) -> float:
        """Operation duration in milliseconds, rounded for log output."""
        return round(self.duration * 1000, 1)


class MetricsCollector:
    """Collects operation timings over a run."""

    def __init__(self):
        self._metrics: List[PerformanceMetrics] = []

    def record_metric(self, metric: PerformanceMetrics):
        self._metrics.append(metric)

    def durations(self) -> Dict[str, float]:
        """Total duration in seconds per operation, in first-seen order."""
        totals: Dict[str, float] = {}
        for metric in self._metrics:
            totals[metric.operation] = totals.get(metric.operation, 0.0) + metric.duration
        return totals


def timed_operation(
    operation_name: str,
    logger: Optional[Any] = None,
    metrics_collector: Optional[MetricsCollector] = None,
    context: Optional[LogContext] = None,
):
    """Decorator that logs start and end of an operation and records its duration."""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            operation_context = (context or LogContext()).with_operation(operation_name)
            if logger:
                logger.info(f"Starting {operation_name}", operation_context)

            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                metric = PerformanceMetrics(operation_name, start_time, time.time())
                if logger:
                    logger.error(
                        f"Failed {operation_name}: {e}",
                        operation_context,
                        duration_ms=metric.duration_ms,
                    )
                if metrics_collector:
                    metrics_collector.record_metric(metric)
                raise

            metric = PerformanceMetrics(operation_name, start_time, time.time())
            if logger:
                logger.info(
                    f"Completed {operation_name}",
                    operation_context,
                    duration_ms=metric.duration_ms,
                )
            if metrics_collector:
                metrics_collector.record_metric(metric)
            return result

        return wrapper

    return decorator
