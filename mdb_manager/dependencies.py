"""
FastAPI Dependencies for MDB Manager

Provides:
1. install() - attach a Container to an app and open a request scope per request
2. Manager and session dependencies
3. inject() for any registered service

Usage:
    from fastapi import Depends, FastAPI
    from mdb_manager import Container, add_document_manager_with_default_server
    from mdb_manager.dependencies import get_document_session, install

    container = Container()
    add_document_manager_with_default_server(container)

    app = FastAPI()
    install(app, container)

    @app.get("/orders/{sku}")
    def get_order(sku: str, session: DocumentSession = Depends(get_document_session)):
        return session["orders"].find_one({"sku": sku}, session=session.client_session)
"""

import logging
from collections.abc import AsyncIterator, Callable, Iterator
from typing import Any, TypeVar

from fastapi import FastAPI, HTTPException, Request

from .constants import CORRELATION_ID_HEADER
from .core.manager import DocumentManager
from .database.session import AsyncDocumentSession, DocumentSession
from .di import Container, ScopeManager
from .exceptions import MDBManagerError, UnknownServerError
from .observability import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_container(request: Request) -> Container:
    """The app's container, or the global container if none was installed."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        container = Container.get_global()
    return container


def install(app: FastAPI, container: Container) -> None:
    """
    Attach a container to an app.

    Adds HTTP middleware that opens a request scope (so request-scoped
    sessions are disposed after the response) and sets a correlation ID
    from the X-Correlation-ID header, generating one when absent.
    """
    app.state.container = container

    @app.middleware("http")
    async def document_scope_middleware(request: Request, call_next):
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        try:
            async with ScopeManager.request_scope():
                response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()

    logger.debug("Installed document manager container on app")


# =============================================================================
# Manager Dependencies
# =============================================================================


async def get_document_manager(request: Request) -> DocumentManager:
    """Get the registered DocumentManager."""
    manager = get_container(request).try_resolve(DocumentManager)
    if manager is None:
        raise HTTPException(503, "Document manager not configured")
    return manager


def inject(service_type: type[T]) -> Callable[[Request], Any]:
    """
    FastAPI dependency that resolves any registered service.

    Usage:
        @app.get("/health")
        async def health(manager: DocumentManager = Depends(inject(DocumentManager))):
            ...
    """

    async def _dependency(request: Request) -> T:
        try:
            return get_container(request).resolve(service_type)
        except KeyError as e:
            raise HTTPException(503, f"Service not available: {e.args[0]}") from e

    return _dependency


Inject = inject


# =============================================================================
# Session Dependencies
# =============================================================================


def _session_error(e: MDBManagerError) -> HTTPException:
    logger.error(f"Could not open document session: {e}", exc_info=True)
    if isinstance(e, UnknownServerError):
        return HTTPException(503, e.message)
    return HTTPException(503, "Document store unavailable")


def session_dependency(
    server_name: str | None = None,
    database: str | None = None,
    asynchronous: bool = False,
) -> Callable[..., Any]:
    """
    Build a dependency that yields a session for a server/database and
    closes it after the response.

    Args:
        server_name: Server to open against (default server if None)
        database: Database to scope the session to (server's database if None)
        asynchronous: Yield an AsyncDocumentSession instead of a DocumentSession

    Usage:
        audit_session = session_dependency("audit", asynchronous=True)

        @app.post("/events")
        async def add_event(event: dict, session=Depends(audit_session)):
            await session["events"].insert_one(event, session=session.client_session)
    """
    if asynchronous:

        async def _async_session(request: Request) -> AsyncIterator[AsyncDocumentSession]:
            manager = await get_document_manager(request)
            try:
                session = manager.get_async_session(server_name, database)
            except MDBManagerError as e:
                raise _session_error(e) from e
            async with session:
                yield session

        return _async_session

    def _session(request: Request) -> Iterator[DocumentSession]:
        manager = get_container(request).try_resolve(DocumentManager)
        if manager is None:
            raise HTTPException(503, "Document manager not configured")
        try:
            session = manager.get_session(server_name, database)
        except MDBManagerError as e:
            raise _session_error(e) from e
        with session:
            yield session

    return _session


get_document_session = session_dependency()
"""Session on the default server, closed after the response."""

get_async_document_session = session_dependency(asynchronous=True)
"""Started async session on the default server, disposed after the response."""
