"""
Unit tests for health checks.
"""

from unittest.mock import AsyncMock

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from mdb_manager.config import ManagerOptions
from mdb_manager.core.manager import MongoDocumentManager
from mdb_manager.observability.health import (HealthChecker,
                                              HealthCheckResult,
                                              HealthStatus,
                                              check_manager_health,
                                              check_store_health,
                                              overall_status)


class TestOverallStatus:
    """Aggregation of individual statuses."""

    @pytest.mark.parametrize(
        "statuses, expected",
        [
            ([HealthStatus.HEALTHY, HealthStatus.HEALTHY], HealthStatus.HEALTHY),
            ([HealthStatus.HEALTHY, HealthStatus.DEGRADED], HealthStatus.DEGRADED),
            ([HealthStatus.DEGRADED, HealthStatus.UNHEALTHY], HealthStatus.UNHEALTHY),
            ([], HealthStatus.UNKNOWN),
        ],
    )
    def test_overall_status(self, statuses, expected):
        assert overall_status(statuses) is expected


class TestHealthChecker:
    """Registered checks."""

    @pytest.mark.asyncio
    async def test_check_all(self):
        checker = HealthChecker()

        async def ok():
            return HealthCheckResult("ok", HealthStatus.HEALTHY, "fine")

        async def broken():
            raise RuntimeError("down")

        checker.register_check(ok)
        checker.register_check(broken)

        report = await checker.check_all()

        assert report["status"] == "unknown"
        assert [c["status"] for c in report["checks"]] == ["healthy", "unknown"]
        assert report["checks"][1]["name"] == "broken"


class TestStoreHealth:
    """Pinging a single store."""

    @pytest.mark.asyncio
    async def test_reachable(self, manager):
        result = await check_store_health(manager.get_store())

        assert result.status is HealthStatus.HEALTHY
        assert result.name == "store:orders"
        assert "ping_ms" in result.details

    @pytest.mark.asyncio
    async def test_unreachable(self, manager):
        store = manager.get_store()
        store.async_client.admin.command = AsyncMock(
            side_effect=ServerSelectionTimeoutError("no servers")
        )

        result = await check_store_health(store)

        assert result.status is HealthStatus.UNHEALTHY
        assert result.details["error_type"] == "ServerSelectionTimeoutError"


class TestManagerHealth:
    """Manager-level health."""

    @pytest.mark.asyncio
    async def test_nothing_built_is_healthy(self, manager, mock_clients):
        result = await check_manager_health(manager)

        assert result.status is HealthStatus.HEALTHY
        assert result.details["stores_created"] == []
        mock_clients.sync.assert_not_called()
        mock_clients.asyncio.assert_not_called()

    @pytest.mark.asyncio
    async def test_partial_outage_is_degraded(self, manager):
        manager.get_store("orders")
        audit = manager.get_store("audit")
        audit.async_client.admin.command = AsyncMock(
            side_effect=ServerSelectionTimeoutError("no servers")
        )

        result = await check_manager_health(manager)

        assert result.status is HealthStatus.DEGRADED
        assert sorted(result.details["stores_created"]) == ["audit", "orders"]

    @pytest.mark.asyncio
    async def test_total_outage_is_unhealthy(self, manager):
        store = manager.get_store()
        store.async_client.admin.command = AsyncMock(
            side_effect=ServerSelectionTimeoutError("no servers")
        )

        result = await check_manager_health(manager)

        assert result.status is HealthStatus.UNHEALTHY

    @pytest.mark.asyncio
    async def test_no_servers_is_degraded(self, mock_clients):
        manager = MongoDocumentManager(ManagerOptions())

        result = await check_manager_health(manager)

        assert result.status is HealthStatus.DEGRADED

    @pytest.mark.asyncio
    async def test_disposed_is_unhealthy(self, manager):
        manager.dispose()

        result = await check_manager_health(manager)

        assert result.status is HealthStatus.UNHEALTHY
