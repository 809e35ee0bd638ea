"""
Service Scopes for Dependency Injection

Defines service lifetime scopes:
- SINGLETON: Created once, shared across all requests
- REQUEST: Created once per HTTP request, disposed after
- TRANSIENT: Created fresh on every injection
"""

import inspect
import logging
from collections.abc import Callable
from contextvars import ContextVar
from enum import Enum
from typing import Any

from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)

# Context variable for request-scoped instances
_request_scope: ContextVar[dict[type, Any] | None] = ContextVar("request_scope", default=None)

_DISPOSE_FAILURES = (AttributeError, RuntimeError, TypeError, PyMongoError)


class Scope(Enum):
    """
    Service lifetime scopes.

    SINGLETON: One instance for the entire application lifetime.
               Use for: the document manager, options.

    REQUEST: One instance per HTTP request. Disposed when the request ends.
             Use for: document sessions.

    TRANSIENT: New instance created every time it's requested.
    """

    SINGLETON = "singleton"
    REQUEST = "request"
    TRANSIENT = "transient"


class ScopeManager:
    """
    Manages request-scoped instance lifecycles.

    Usage with FastAPI middleware:
        @app.middleware("http")
        async def scope_middleware(request: Request, call_next):
            async with ScopeManager.request_scope():
                return await call_next(request)
    """

    @classmethod
    def begin_request(cls) -> dict[type, Any]:
        """
        Begin a new request scope.

        Returns the scope dictionary for manual management if needed.
        """
        scope_dict: dict[type, Any] = {}
        _request_scope.set(scope_dict)
        logger.debug("Request scope started")
        return scope_dict

    @classmethod
    def end_request(cls) -> None:
        """
        End the current request scope, calling dispose() on scoped instances.

        Asynchronous dispose() implementations cannot be awaited here; use
        end_request_async() when the scope may hold them.
        """
        for instance in cls._take_scope():
            dispose = getattr(instance, "dispose", None)
            if dispose is None:
                continue
            if inspect.iscoroutinefunction(dispose):
                logger.warning(
                    f"{type(instance).__name__}.dispose() is asynchronous; "
                    f"use end_request_async() to release it"
                )
                continue
            try:
                dispose()
            except _DISPOSE_FAILURES as e:
                logger.warning(f"Error disposing {type(instance).__name__}: {e}")
        logger.debug("Request scope ended")

    @classmethod
    async def end_request_async(cls) -> None:
        """End the current request scope, awaiting asynchronous dispose() calls."""
        for instance in cls._take_scope():
            dispose = getattr(instance, "dispose", None)
            if dispose is None:
                continue
            try:
                result = dispose()
                if inspect.isawaitable(result):
                    await result
            except _DISPOSE_FAILURES as e:
                logger.warning(f"Error disposing {type(instance).__name__}: {e}")
        logger.debug("Request scope ended")

    @classmethod
    def _take_scope(cls) -> list[Any]:
        scope_dict = _request_scope.get()
        _request_scope.set(None)
        if not scope_dict:
            return []
        instances = list(scope_dict.values())
        scope_dict.clear()
        return instances

    @classmethod
    def get_request_scope(cls) -> dict[type, Any] | None:
        """Get the current request scope dictionary."""
        return _request_scope.get()

    @classmethod
    def get_or_create(cls, key: type, factory: Callable[[], Any]) -> Any:
        """
        Get an existing instance from request scope or create one.

        Args:
            key: The type to use as cache key
            factory: Callable to create a new instance if not cached

        Returns:
            The cached or newly created instance

        Raises:
            RuntimeError: If called outside a request scope
        """
        scope_dict = _request_scope.get()
        if scope_dict is None:
            raise RuntimeError(
                "No active request scope. Ensure ScopeManager.begin_request() "
                "was called (usually via middleware)."
            )

        if key not in scope_dict:
            scope_dict[key] = factory()
            logger.debug(f"Created request-scoped instance: {key.__name__}")

        return scope_dict[key]

    @classmethod
    def request_scope(cls) -> "_RequestScopeContext":
        """
        Async context manager for request scope.

        Usage:
            async with ScopeManager.request_scope():
                # Request-scoped services available here
                pass
        """
        return _RequestScopeContext()


class _RequestScopeContext:
    """Async context manager for request scope."""

    async def __aenter__(self):
        ScopeManager.begin_request()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await ScopeManager.end_request_async()
        return False
