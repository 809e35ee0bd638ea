"""
Pytest configuration and shared fixtures for MDB_MANAGER tests.

This module provides:
- Mock PyMongo / Motor client factories patched into the store module
- Manager option fixtures
- Global state resets (metrics collector, global container)
"""

from types import SimpleNamespace
from typing import Any, Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mdb_manager.config import ManagerOptions, ServerOptions
from mdb_manager.core.manager import MongoDocumentManager
from mdb_manager.di import Container
from mdb_manager.observability.metrics import get_metrics_collector

# ============================================================================
# MOCK CLIENT FACTORIES
# ============================================================================


def _mock_database(db_name: str) -> MagicMock:
    db = MagicMock()
    db.name = db_name

    def get_collection(name: str) -> MagicMock:
        collection = MagicMock()
        collection.name = name
        collection.full_name = f"{db_name}.{name}"
        return collection

    db.__getitem__.side_effect = get_collection
    return db


def make_sync_client(url: str, **kwargs: Any) -> MagicMock:
    """Stand-in for pymongo.MongoClient(url, **kwargs)."""
    client = MagicMock()
    client.url = url
    client.init_kwargs = kwargs
    client.get_database.side_effect = _mock_database
    client.start_session.side_effect = lambda **kw: MagicMock(start_kwargs=kw)
    return client


def make_async_client(url: str, **kwargs: Any) -> MagicMock:
    """Stand-in for motor.motor_asyncio.AsyncIOMotorClient(url, **kwargs)."""
    client = MagicMock()
    client.url = url
    client.init_kwargs = kwargs
    client.get_database.side_effect = _mock_database

    async def start_session(**kw: Any) -> MagicMock:
        session = MagicMock(start_kwargs=kw)
        session.end_session = AsyncMock()

        async def with_transaction(callback, **_: Any) -> Any:
            return await callback(session)

        session.with_transaction = AsyncMock(side_effect=with_transaction)
        return session

    client.start_session = AsyncMock(side_effect=start_session)
    client.admin.command = AsyncMock(return_value={"ok": 1})
    return client


@pytest.fixture
def mock_clients() -> Iterator[SimpleNamespace]:
    """Patch the client classes used by DocumentStore."""
    with patch(
        "mdb_manager.database.store.MongoClient", side_effect=make_sync_client
    ) as sync_cls, patch(
        "mdb_manager.database.store.AsyncIOMotorClient", side_effect=make_async_client
    ) as async_cls:
        yield SimpleNamespace(sync=sync_cls, asyncio=async_cls)


# ============================================================================
# MANAGER FIXTURES
# ============================================================================


@pytest.fixture
def orders_server() -> ServerOptions:
    return ServerOptions(url="mongodb://orders-db:27017", database="orders")


@pytest.fixture
def manager_options(orders_server: ServerOptions) -> ManagerOptions:
    """Two servers, 'orders' being the default."""
    return ManagerOptions(
        default_server="orders",
        servers={
            "orders": orders_server,
            "audit": ServerOptions(url="mongodb://audit-db:27017", database="audit"),
        },
    )


@pytest.fixture
def manager(manager_options: ManagerOptions, mock_clients) -> Iterator[MongoDocumentManager]:
    manager = MongoDocumentManager(manager_options)
    yield manager
    manager.dispose()


# ============================================================================
# GLOBAL STATE
# ============================================================================


@pytest.fixture(autouse=True)
def reset_global_state() -> Iterator[None]:
    """Isolate tests from the global metrics collector and container."""
    get_metrics_collector().reset()
    Container.reset_global()
    yield
    get_metrics_collector().reset()
    Container.reset_global()


@pytest.fixture
def sync_client_factory():
    """The factory behind mock_clients.sync, for custom side effects."""
    return make_sync_client


@pytest.fixture
def async_client_factory():
    """The factory behind mock_clients.asyncio."""
    return make_async_client
