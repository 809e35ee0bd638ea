"""
Health check utilities for MDB_MANAGER.

Health checks only ping stores that already exist; they never force a store
to be built.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from pymongo.errors import PyMongoError

if TYPE_CHECKING:
    from ..core.manager import MongoDocumentManager
    from ..database.store import DocumentStore

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    """Health status enumeration."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class HealthCheckResult:
    """Result of a health check."""

    name: str
    status: HealthStatus
    message: str
    details: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


def overall_status(statuses: list[HealthStatus]) -> HealthStatus:
    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    if statuses and all(s == HealthStatus.HEALTHY for s in statuses):
        return HealthStatus.HEALTHY
    return HealthStatus.UNKNOWN


class HealthChecker:
    """
    Runs registered async health checks and aggregates their status.
    """

    def __init__(self):
        self._checks: list[Callable[[], Awaitable[HealthCheckResult]]] = []

    def register_check(self, check_func: Callable[[], Awaitable[HealthCheckResult]]) -> None:
        self._checks.append(check_func)

    async def check_all(self) -> dict[str, Any]:
        """
        Run all registered health checks.

        Returns:
            Dictionary with overall status and individual check results
        """
        results: list[HealthCheckResult] = []

        for check_func in self._checks:
            try:
                results.append(await check_func())
            except (RuntimeError, ValueError, TypeError, AttributeError, OSError) as e:
                logger.error(f"Health check {check_func.__name__} failed: {e}", exc_info=True)
                results.append(
                    HealthCheckResult(
                        name=check_func.__name__,
                        status=HealthStatus.UNKNOWN,
                        message=f"Check failed: {e}",
                    )
                )

        return {
            "status": overall_status([r.status for r in results]).value,
            "timestamp": datetime.now().isoformat(),
            "checks": [r.to_dict() for r in results],
        }


async def check_store_health(store: "DocumentStore") -> HealthCheckResult:
    """
    Ping a store's server.

    Returns:
        HEALTHY with the round-trip time, or UNHEALTHY with the error
    """
    name = f"store:{store.server_name}"
    start_time = time.time()
    try:
        await store.ping()
    except (PyMongoError, RuntimeError) as e:
        logger.warning(f"Ping failed for server '{store.server_name}': {e}")
        return HealthCheckResult(
            name=name,
            status=HealthStatus.UNHEALTHY,
            message=f"Ping failed: {e}",
            details={"error_type": type(e).__name__},
        )

    return HealthCheckResult(
        name=name,
        status=HealthStatus.HEALTHY,
        message="Server reachable",
        details={"ping_ms": round((time.time() - start_time) * 1000, 2)},
    )


async def check_manager_health(manager: "MongoDocumentManager") -> HealthCheckResult:
    """
    Check every store the manager has built so far.

    A manager with registered servers but no built stores is HEALTHY: no
    connection has been requested yet. A manager with no servers at all is
    DEGRADED. Any unreachable store makes the result DEGRADED, all of them
    UNHEALTHY.
    """
    if manager.disposed:
        return HealthCheckResult(
            name="document_manager", status=HealthStatus.UNHEALTHY, message="Manager disposed"
        )

    servers = manager.servers
    stores = manager.created_stores()
    results = [await check_store_health(store) for store in stores.values()]
    unhealthy = [r.name for r in results if r.status != HealthStatus.HEALTHY]

    if not servers:
        status, message = HealthStatus.DEGRADED, "No servers registered"
    elif not results or not unhealthy:
        status, message = HealthStatus.HEALTHY, f"{len(results)} store(s) reachable"
    elif len(unhealthy) == len(results):
        status, message = HealthStatus.UNHEALTHY, "No store reachable"
    else:
        status, message = HealthStatus.DEGRADED, f"{len(unhealthy)} store(s) unreachable"

    return HealthCheckResult(
        name="document_manager",
        status=status,
        message=message,
        details={
            "servers": servers,
            "stores_created": list(stores),
            "stores": [r.to_dict() for r in results],
        },
    )
