"""
Document manager.

The manager owns the server registry and a cache of lazily created
DocumentStores, one per server name, and opens sessions against them.

Usage:
    manager = MongoDocumentManager(
        ManagerOptions(
            default_server="orders",
            servers={
                "orders": ServerOptions(url="mongodb://orders:27017", database="orders"),
                "audit": ServerOptions(url="mongodb://audit:27017", database="audit"),
            },
        )
    )

    with manager.get_session() as session:            # default server
        session["orders"].insert_one({"sku": "A-1"}, session=session.client_session)

    async with manager.get_async_session("audit", database="audit_2024") as session:
        await session["events"].insert_one({"type": "login"})

This module is part of MDB_MANAGER.
"""

import dataclasses
import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from concurrent.futures import Future
from typing import Any

from ..config import (
    HostEnvironment,
    ManagerOptions,
    ServerOptions,
    StoreConventions,
    coerce_server_options,
)
from ..database.session import AsyncDocumentSession, DocumentSession
from ..database.store import DocumentStore
from ..exceptions import (
    InvalidArgumentError,
    ManagerDisposedError,
    NoDefaultServerError,
    UnknownServerError,
)
from ..observability import get_logger as get_contextual_logger
from ..observability import record_operation, reset_server_context, set_server_context
from .connection import ServerConnection

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)

ServerArg = str | ServerConnection | None


class DocumentManager(ABC):
    """
    Interface for managing document stores and sessions.

    This is the service type registered in the container; resolve it
    rather than a concrete implementation.
    """

    @property
    @abstractmethod
    def default_server(self) -> str | None:
        """Server used when no server name is given."""

    @abstractmethod
    def get_store(self, server_name: str | None = None) -> DocumentStore:
        """Get the store for a server (default server if omitted)."""

    @abstractmethod
    def get_session(self, server: ServerArg = None, database: str | None = None) -> DocumentSession:
        """Open a synchronous session."""

    @abstractmethod
    def get_async_session(
        self, server: ServerArg = None, database: str | None = None
    ) -> AsyncDocumentSession:
        """Open an asynchronous session."""

    @abstractmethod
    def add_server(self, server_name: str, options: ServerOptions | Mapping[str, Any]) -> bool:
        """Register a server. Returns False if the name is taken."""

    @abstractmethod
    def remove_server(self, server_name: str) -> bool:
        """Unregister a server and evict its store. Returns whether it was registered."""

    @abstractmethod
    def dispose(self) -> None:
        """Release every store; the manager is unusable afterwards."""

    def __enter__(self) -> "DocumentManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.dispose()
        return False


def _close_built_store(future: "Future[DocumentStore]") -> None:
    if future.exception() is None:
        future.result().close()


class MongoDocumentManager(DocumentManager):
    """
    Default DocumentManager backed by PyMongo/Motor.

    Stores are created on first request and cached for the lifetime of the
    manager (or until their server is removed). Creation is guarded by a
    lock-protected map of futures: exactly one caller builds a given store,
    concurrent callers wait for and share the result. A failed build is not
    cached, so the next request retries.
    """

    def __init__(self, options: ManagerOptions, host: HostEnvironment | None = None) -> None:
        """
        Args:
            options: Manager options (servers, default server, default conventions)
            host: Host environment used to resolve relative certificate paths

        Raises:
            InvalidArgumentError: If options is None
        """
        if options is None:
            raise InvalidArgumentError("options")

        self._default_server = options.default_server or next(iter(options.servers), None)
        self._default_conventions = options.default_conventions or StoreConventions()
        self._servers: dict[str, ServerOptions] = dict(options.servers)
        self._stores: dict[str, Future[DocumentStore]] = {}
        self._host = host
        self._lock = threading.Lock()
        self._disposed = False

        logger.debug(
            f"MongoDocumentManager created with servers={list(self._servers)}, "
            f"default_server={self._default_server}"
        )

    @property
    def default_server(self) -> str | None:
        return self._default_server

    @property
    def default_conventions(self) -> StoreConventions:
        return self._default_conventions

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def servers(self) -> list[str]:
        """Names of the registered servers."""
        self._throw_if_disposed()
        with self._lock:
            return list(self._servers)

    def is_store_created(self, server_name: str) -> bool:
        """Whether a store for server_name has been successfully built."""
        self._throw_if_disposed()
        with self._lock:
            future = self._stores.get(server_name)
        return future is not None and future.done() and future.exception() is None

    def created_stores(self) -> dict[str, DocumentStore]:
        """Stores built so far, keyed by server name. Never triggers a build."""
        self._throw_if_disposed()
        with self._lock:
            futures = dict(self._stores)
        return {
            name: future.result()
            for name, future in futures.items()
            if future.done() and future.exception() is None
        }

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------

    def get_store(self, server_name: str | None = None) -> DocumentStore:
        """
        Get the store for a server, building it on first access.

        Args:
            server_name: Registry name; the default server when omitted

        Raises:
            ManagerDisposedError: If the manager has been disposed
            NoDefaultServerError: If no name is given and no default exists
            UnknownServerError: If the server is not registered
            InitializationError: If the store's client cannot be created
        """
        self._throw_if_disposed()
        server_name = self._resolve_server_name(server_name)

        with self._lock:
            self._throw_if_disposed()
            future = self._stores.get(server_name)
            if future is not None:
                owner = False
            else:
                server = self._servers.get(server_name)
                if server is None:
                    raise UnknownServerError(
                        f"Unable to find specified server: {server_name}.",
                        server_name=server_name,
                    )
                future = Future()
                self._stores[server_name] = future
                owner = True

        if not owner:
            return future.result()
        return self._build_store(server_name, server, future)

    def _build_store(
        self, server_name: str, server: ServerOptions, future: "Future[DocumentStore]"
    ) -> DocumentStore:
        start_time = time.time()
        context_token = set_server_context(server_name, database=server.database)
        try:
            store = self.create_document_store(server_name, server)
            store.initialize()
        except BaseException as e:
            with self._lock:
                if self._stores.get(server_name) is future:
                    del self._stores[server_name]
            future.set_exception(e)
            duration_ms = (time.time() - start_time) * 1000
            record_operation(
                "manager.build_store", duration_ms, success=False, server_name=server_name
            )
            contextual_logger.error(
                "Failed to create document store",
                extra={
                    "server_name": server_name,
                    "error_type": type(e).__name__,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            raise
        finally:
            reset_server_context(context_token)

        future.set_result(store)
        duration_ms = (time.time() - start_time) * 1000
        record_operation("manager.build_store", duration_ms, success=True, server_name=server_name)
        contextual_logger.info(
            "Document store created",
            extra={"server_name": server_name, "duration_ms": round(duration_ms, 2)},
        )
        return store

    def create_document_store(self, server_name: str, server: ServerOptions) -> DocumentStore:
        """
        Construct (but do not initialize) the store for a server.

        Subclasses may override this to customize store construction.
        """
        return DocumentStore(server_name, server, self._default_conventions, self._host)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def get_session(self, server: ServerArg = None, database: str | None = None) -> DocumentSession:
        """
        Open a synchronous session.

        Args:
            server: Server name, ServerConnection, or None for the default server
            database: Target database; overrides the connection's database and
                defaults to the server's configured database

        Raises:
            NoDefaultServerError: If no server is given and no default exists
            UnknownServerError: If the server is not registered
        """
        connection = self._resolve_connection(server, database)
        return self.get_store(connection.server_name).open_session(connection.database)

    def get_async_session(
        self, server: ServerArg = None, database: str | None = None
    ) -> AsyncDocumentSession:
        """
        Open an asynchronous session (started on ``await session.start()`` or
        ``async with``).

        Args:
            server: Server name, ServerConnection, or None for the default server
            database: Target database; overrides the connection's database and
                defaults to the server's configured database
        """
        connection = self._resolve_connection(server, database)
        return self.get_store(connection.server_name).open_async_session(connection.database)

    def _resolve_server_name(self, server_name: str | None) -> str:
        if server_name is None:
            if self._default_server is None:
                raise NoDefaultServerError()
            return self._default_server
        if not server_name:
            raise InvalidArgumentError("server_name")
        return server_name

    def _resolve_connection(self, server: ServerArg, database: str | None) -> ServerConnection:
        self._throw_if_disposed()
        if isinstance(server, ServerConnection):
            if database is not None:
                return dataclasses.replace(server, database=database)
            return server
        return ServerConnection(self._resolve_server_name(server), database)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def add_server(self, server_name: str, options: ServerOptions | Mapping[str, Any]) -> bool:
        """
        Register a server.

        Returns:
            True if the server was added, False if the name is already registered

        Raises:
            InvalidArgumentError: If the name, options or url is missing
            ConfigurationError: If a mapping does not describe valid options
        """
        self._throw_if_disposed()
        if not server_name:
            raise InvalidArgumentError("server_name")
        if options is None:
            raise InvalidArgumentError("options")

        server = coerce_server_options(options)
        if not server.url:
            raise InvalidArgumentError(
                "url",
                f"No url configured for server '{server_name}'",
                context={"server_name": server_name},
            )

        with self._lock:
            self._throw_if_disposed()
            if server_name in self._servers:
                logger.debug(f"Server '{server_name}' already registered")
                return False
            self._servers[server_name] = server

        contextual_logger.info("Server added", extra={"server_name": server_name})
        return True

    def remove_server(self, server_name: str) -> bool:
        """
        Unregister a server and close its cached store, if any.

        A store still being built is closed as soon as its build finishes.

        Returns:
            True if the server was registered
        """
        self._throw_if_disposed()
        if not server_name:
            raise InvalidArgumentError("server_name")

        with self._lock:
            self._throw_if_disposed()
            removed = self._servers.pop(server_name, None) is not None
            future = self._stores.pop(server_name, None)

        if future is not None:
            future.add_done_callback(_close_built_store)

        if removed:
            contextual_logger.info(
                "Server removed",
                extra={"server_name": server_name, "store_evicted": future is not None},
            )
        return removed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def dispose(self) -> None:
        """
        Close every cached store and clear the registry. Idempotent.

        Every other call on a disposed manager raises ManagerDisposedError.
        """
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            futures = list(self._stores.values())
            self._stores.clear()
            self._servers.clear()

        for future in futures:
            future.add_done_callback(_close_built_store)

        contextual_logger.info("Document manager disposed", extra={"stores_closed": len(futures)})

    def _throw_if_disposed(self) -> None:
        if self._disposed:
            raise ManagerDisposedError(type(self).__name__)
