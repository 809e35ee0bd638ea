"""
Document store: the connection object for one named server.

A DocumentStore owns the MongoDB clients for a server (a synchronous
PyMongo client built by initialize(), and a Motor client created on first
asynchronous use) and opens sessions against its databases.

This module is part of MDB_MANAGER.
"""

import logging
import threading
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from ..config import HostEnvironment, ServerOptions, StoreConventions
from ..exceptions import (
    ConfigurationError,
    InitializationError,
    InvalidArgumentError,
    ManagerDisposedError,
)
from ..observability import get_logger as get_contextual_logger
from ..observability import redact_url, timed_operation
from .session import AsyncDocumentSession, DocumentSession

logger = logging.getLogger(__name__)
contextual_logger = get_contextual_logger(__name__)


class DocumentStore:
    """
    Connection object for one server.

    Usage:
        store = DocumentStore("orders", ServerOptions(url=..., database="orders"))
        store.initialize()
        with store.open_session() as session:
            session["orders"].find_one({}, session=session.client_session)
        store.close()
    """

    def __init__(
        self,
        server_name: str,
        options: ServerOptions,
        conventions: StoreConventions | None = None,
        host: HostEnvironment | None = None,
    ) -> None:
        """
        Args:
            server_name: Registry name of the server
            options: Connection settings for the server
            conventions: Conventions used when options carry none
            host: Host environment used to resolve relative certificate paths

        Raises:
            InvalidArgumentError: If server_name, options or options.url is missing
        """
        if not server_name:
            raise InvalidArgumentError("server_name")
        if options is None:
            raise InvalidArgumentError("options")
        if not options.url:
            raise InvalidArgumentError(
                "url",
                f"No url configured for server '{server_name}'",
                context={"server_name": server_name},
            )

        self.server_name = server_name
        self.options = options
        self.conventions = options.conventions or conventions or StoreConventions()
        self._host = host or HostEnvironment()

        self._client: MongoClient | None = None
        self._async_client: AsyncIOMotorClient | None = None
        self._lock = threading.Lock()
        self._closed = False

    @property
    def url(self) -> str:
        return self.options.url

    @property
    def database(self) -> str | None:
        """Database used when a session is opened without an explicit one."""
        return self.options.database

    @property
    def initialized(self) -> bool:
        return self._client is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def client_kwargs(self) -> dict[str, Any]:
        """
        Keyword arguments for the MongoDB clients, including TLS settings.

        Raises:
            ConfigurationError: If a certificate path is configured but the
                file does not exist
        """
        kwargs = self.conventions.to_client_kwargs()

        if self.options.certificate_path:
            certificate = self._host.resolve_path(self.options.certificate_path)
            if not certificate.is_file():
                raise ConfigurationError(
                    f"Certificate file not found for server '{self.server_name}'",
                    config_key="certificate_path",
                    config_value=str(certificate),
                )
            kwargs["tls"] = True
            kwargs["tlsCertificateKeyFile"] = str(certificate)
            if self.options.certificate_password:
                kwargs["tlsCertificateKeyFilePassword"] = self.options.certificate_password

        return kwargs

    @timed_operation("store.initialize")
    def initialize(self) -> "DocumentStore":
        """
        Build the synchronous client. Idempotent.

        No network round-trip happens here; the driver connects in the
        background and on first operation.

        Returns:
            self

        Raises:
            ConfigurationError: If the TLS certificate cannot be found
            InitializationError: If the client rejects the url or options
        """
        self._throw_if_closed()

        with self._lock:
            if self._client is not None:
                return self
            self._client = self._create_client(MongoClient)

        contextual_logger.info(
            "Document store initialized",
            extra={
                "server_name": self.server_name,
                "url": redact_url(self.url),
                "db_name": self.database,
                "pool_size": f"{self.conventions.min_pool_size}-{self.conventions.max_pool_size}",
            },
        )
        return self

    def _create_client(self, client_class: type) -> Any:
        kwargs = self.client_kwargs()
        try:
            return client_class(self.url, **kwargs)
        except (PyMongoError, ValueError, TypeError) as e:
            contextual_logger.error(
                "MongoDB client creation failed",
                extra={
                    "server_name": self.server_name,
                    "url": redact_url(self.url),
                    "error_type": type(e).__name__,
                },
                exc_info=True,
            )
            raise InitializationError(
                f"Failed to create MongoDB client for server '{self.server_name}': {e}",
                server_name=self.server_name,
                db_name=self.database,
                context={"error_type": type(e).__name__},
            ) from e

    @property
    def client(self) -> MongoClient:
        """
        The synchronous PyMongo client.

        Raises:
            RuntimeError: If the store is not initialized
        """
        self._throw_if_closed()
        if self._client is None:
            raise RuntimeError("DocumentStore not initialized. Call initialize() first.")
        return self._client

    @property
    def async_client(self) -> AsyncIOMotorClient:
        """The Motor client, created on first access with the same settings."""
        self._throw_if_closed()
        if self._async_client is not None:
            return self._async_client

        with self._lock:
            # Another thread may have created it while we waited
            if self._async_client is None:
                self._async_client = self._create_client(AsyncIOMotorClient)
                logger.debug(f"Created async client for server '{self.server_name}'")
            return self._async_client

    def _resolve_database(self, database: str | None) -> str:
        database = database or self.database
        if not database:
            raise InvalidArgumentError(
                "database",
                f"No database given and server '{self.server_name}' has no default database",
                context={"server_name": self.server_name},
            )
        return database

    def open_session(self, database: str | None = None) -> DocumentSession:
        """
        Open a synchronous session.

        Args:
            database: Target database (defaults to the server's database)
        """
        return DocumentSession(
            self.client,
            self._resolve_database(database),
            server_name=self.server_name,
            causal_consistency=self.conventions.causal_consistency,
        )

    def open_async_session(self, database: str | None = None) -> AsyncDocumentSession:
        """
        Open an asynchronous session; it starts on ``await session.start()``
        or when entered with ``async with``.

        Args:
            database: Target database (defaults to the server's database)
        """
        return AsyncDocumentSession(
            self.async_client,
            self._resolve_database(database),
            server_name=self.server_name,
            causal_consistency=self.conventions.causal_consistency,
        )

    async def ping(self) -> dict[str, Any]:
        """Round-trip a ping command through the async client."""
        return await self.async_client.admin.command("ping")

    def close(self) -> None:
        """
        Close both clients. Idempotent; the store cannot be reused afterwards.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            clients = [c for c in (self._client, self._async_client) if c is not None]
            self._client = None
            self._async_client = None

        for client in clients:
            try:
                client.close()
            except (PyMongoError, RuntimeError) as e:
                logger.warning(f"Error closing client for server '{self.server_name}': {e}")

        contextual_logger.info("Document store closed", extra={"server_name": self.server_name})

    def _throw_if_closed(self) -> None:
        if self._closed:
            raise ManagerDisposedError(type(self).__name__, context={"server_name": self.server_name})

    def __enter__(self) -> "DocumentStore":
        return self.initialize()

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False
