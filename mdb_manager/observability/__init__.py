"""
Observability components.

Provides contextual logging, metrics collection and health checks.
"""

from .health import (
    HealthChecker,
    HealthCheckResult,
    HealthStatus,
    check_manager_health,
    check_store_health,
)
from .logging import (
    ContextualLoggerAdapter,
    clear_correlation_id,
    clear_server_context,
    get_correlation_id,
    get_logger,
    get_logging_context,
    redact_url,
    reset_server_context,
    set_correlation_id,
    set_server_context,
)
from .metrics import (
    MetricsCollector,
    OperationMetrics,
    get_metrics_collector,
    record_operation,
    timed_operation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "OperationMetrics",
    "get_metrics_collector",
    "record_operation",
    "timed_operation",
    # Logging
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "set_server_context",
    "clear_server_context",
    "reset_server_context",
    "get_logging_context",
    "ContextualLoggerAdapter",
    "get_logger",
    "redact_url",
    # Health
    "HealthStatus",
    "HealthCheckResult",
    "HealthChecker",
    "check_store_health",
    "check_manager_health",
]
