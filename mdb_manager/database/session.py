"""
Document sessions.

A session is a unit of work bound to one database on one server. It owns a
MongoDB client session (for causal consistency and transactions) and hands
out collections of its database.

Usage:
    with manager.get_session("orders") as session:
        session["orders"].insert_one({"sku": "A-1"}, session=session.client_session)

    async with manager.get_async_session("orders") as session:
        await session["orders"].find_one({"sku": "A-1"}, session=session.client_session)
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from motor.motor_asyncio import (
    AsyncIOMotorClient,
    AsyncIOMotorClientSession,
    AsyncIOMotorCollection,
    AsyncIOMotorDatabase,
)
from pymongo import MongoClient
from pymongo.client_session import ClientSession
from pymongo.collection import Collection
from pymongo.database import Database

from ..exceptions import ManagerDisposedError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DocumentSession:
    """
    Synchronous session against one database.

    The underlying ClientSession is started on construction and ended by
    close() (or dispose(), which request scopes call automatically).
    """

    def __init__(
        self,
        client: MongoClient,
        database_name: str,
        server_name: str | None = None,
        causal_consistency: bool = True,
    ):
        self._server_name = server_name
        self._database: Database = client.get_database(database_name)
        self._client_session: ClientSession = client.start_session(
            causal_consistency=causal_consistency
        )
        self._closed = False
        logger.debug(f"Opened session on server '{server_name}', database '{database_name}'")

    @property
    def server_name(self) -> str | None:
        return self._server_name

    @property
    def database_name(self) -> str:
        return self._database.name

    @property
    def database(self) -> Database:
        self._throw_if_closed()
        return self._database

    @property
    def client_session(self) -> ClientSession:
        """The PyMongo ClientSession; pass it as ``session=`` to operations."""
        self._throw_if_closed()
        return self._client_session

    @property
    def closed(self) -> bool:
        return self._closed

    def collection(self, name: str) -> Collection:
        return self.database[name]

    def __getitem__(self, name: str) -> Collection:
        return self.collection(name)

    def start_transaction(self, **kwargs: Any):
        """
        Start a multi-document transaction on this session.

        Returns the PyMongo transaction context manager; keyword arguments
        (read_concern, write_concern, ...) are passed through.
        """
        return self.client_session.start_transaction(**kwargs)

    def with_transaction(self, callback: Callable[["DocumentSession"], T], **kwargs: Any) -> T:
        """Run callback inside a transaction, retrying on transient errors."""
        return self.client_session.with_transaction(lambda _s: callback(self), **kwargs)

    def close(self) -> None:
        """End the client session. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._client_session.end_session()
        logger.debug(f"Closed session on server '{self._server_name}'")

    def dispose(self) -> None:
        self.close()

    def _throw_if_closed(self) -> None:
        if self._closed:
            raise ManagerDisposedError(type(self).__name__)

    def __enter__(self) -> "DocumentSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False


class AsyncDocumentSession:
    """
    Asynchronous session against one database.

    Opening is synchronous; the Motor client session is started on first
    use (``await session.start()`` or ``async with``).
    """

    def __init__(
        self,
        client: AsyncIOMotorClient,
        database_name: str,
        server_name: str | None = None,
        causal_consistency: bool = True,
    ):
        self._client = client
        self._server_name = server_name
        self._database: AsyncIOMotorDatabase = client.get_database(database_name)
        self._causal_consistency = causal_consistency
        self._client_session: AsyncIOMotorClientSession | None = None
        self._closed = False

    @property
    def server_name(self) -> str | None:
        return self._server_name

    @property
    def database_name(self) -> str:
        return self._database.name

    @property
    def database(self) -> AsyncIOMotorDatabase:
        self._throw_if_closed()
        return self._database

    @property
    def started(self) -> bool:
        return self._client_session is not None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def client_session(self) -> AsyncIOMotorClientSession:
        """
        The Motor client session.

        Raises:
            RuntimeError: If the session has not been started yet
        """
        self._throw_if_closed()
        if self._client_session is None:
            raise RuntimeError("Session not started. Call 'await session.start()' first.")
        return self._client_session

    async def start(self) -> "AsyncDocumentSession":
        """Start the underlying client session. Idempotent."""
        self._throw_if_closed()
        if self._client_session is None:
            self._client_session = await self._client.start_session(
                causal_consistency=self._causal_consistency
            )
            logger.debug(
                f"Opened async session on server '{self._server_name}', "
                f"database '{self._database.name}'"
            )
        return self

    def collection(self, name: str) -> AsyncIOMotorCollection:
        return self.database[name]

    def __getitem__(self, name: str) -> AsyncIOMotorCollection:
        return self.collection(name)

    async def with_transaction(
        self, callback: Callable[["AsyncDocumentSession"], Awaitable[T]], **kwargs: Any
    ) -> T:
        """Run callback inside a transaction, retrying on transient errors."""
        await self.start()
        return await self.client_session.with_transaction(lambda _s: callback(self), **kwargs)

    async def dispose(self) -> None:
        """End the client session if it was started. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if self._client_session is not None:
            await self._client_session.end_session()
            self._client_session = None
            logger.debug(f"Closed async session on server '{self._server_name}'")

    def _throw_if_closed(self) -> None:
        if self._closed:
            raise ManagerDisposedError(type(self).__name__)

    async def __aenter__(self) -> "AsyncDocumentSession":
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.dispose()
        return False
