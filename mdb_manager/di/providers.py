"""
Service Providers for Dependency Injection

Providers are responsible for creating and managing service instances
according to their configured scope.
"""

import inspect
import logging
import threading
import types
import typing
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .scopes import Scope, ScopeManager

if TYPE_CHECKING:
    from .container import Container

logger = logging.getLogger(__name__)

T = TypeVar("T")

_PRIMITIVES = (str, int, float, bool, bytes, type(None))


def _unwrap_optional(annotation: Any) -> Any:
    """Return X for Optional[X] / X | None; other annotations unchanged."""
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def type_name(service_type: Any) -> str:
    return getattr(service_type, "__name__", repr(service_type))


class Provider(ABC, Generic[T]):
    """
    Abstract base class for service providers.

    Providers know how to create instances of a service and manage
    their lifecycle according to the configured scope.
    """

    def __init__(
        self,
        service_type: type[T],
        scope: Scope,
        factory: Callable[..., T] | None = None,
    ):
        self.service_type = service_type
        self.scope = scope
        self._factory = factory or service_type

    @abstractmethod
    def get(self, container: "Container") -> T:
        """
        Get or create a service instance.

        Args:
            container: The DI container for resolving dependencies
        """

    def _create_instance(self, container: "Container") -> T:
        """
        Create a new instance, injecting dependencies.

        Inspects the constructor signature and resolves type-hinted
        parameters from the container. Optional[X] parameters resolve X;
        unregistered parameters with a default are left to their default.
        """
        target = self._factory.__init__ if inspect.isclass(self._factory) else self._factory
        try:
            hints = typing.get_type_hints(target)
        except (NameError, TypeError):
            hints = {}

        sig = inspect.signature(self._factory)
        kwargs: dict[str, Any] = {}

        for param_name, param in sig.parameters.items():
            if param_name == "self" or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue

            annotation = hints.get(param_name, param.annotation)
            if annotation is inspect.Parameter.empty:
                continue

            param_type = _unwrap_optional(annotation)
            if param_type in _PRIMITIVES or not isinstance(param_type, type):
                continue

            try:
                kwargs[param_name] = container.resolve(param_type)
            except KeyError:
                if param.default is not inspect.Parameter.empty:
                    continue
                raise

        return self._factory(**kwargs)


class SingletonProvider(Provider[T]):
    """
    Provider that creates a single instance shared across the application.

    The instance is created lazily on first request, exactly once even under
    concurrent first access, and cached until reset().
    """

    def __init__(
        self,
        service_type: type[T],
        factory: Callable[..., T] | None = None,
    ):
        super().__init__(service_type, Scope.SINGLETON, factory)
        self._instance: T | None = None
        self._lock = threading.RLock()

    def get(self, container: "Container") -> T:
        if self._instance is None:
            with self._lock:
                if self._instance is None:
                    self._instance = self._create_instance(container)
                    logger.debug(f"Created singleton: {type_name(self.service_type)}")
        return self._instance

    @property
    def instance(self) -> T | None:
        """The cached instance, or None if not yet created."""
        return self._instance

    def reset(self) -> None:
        with self._lock:
            self._instance = None


class RequestProvider(Provider[T]):
    """
    Provider that creates one instance per request.

    Uses ScopeManager to cache instances within the request scope.
    """

    def __init__(
        self,
        service_type: type[T],
        factory: Callable[..., T] | None = None,
    ):
        super().__init__(service_type, Scope.REQUEST, factory)

    def get(self, container: "Container") -> T:
        return ScopeManager.get_or_create(
            self.service_type, lambda: self._create_instance(container)
        )


class TransientProvider(Provider[T]):
    """Provider that creates a new instance every time."""

    def __init__(
        self,
        service_type: type[T],
        factory: Callable[..., T] | None = None,
    ):
        super().__init__(service_type, Scope.TRANSIENT, factory)

    def get(self, container: "Container") -> T:
        return self._create_instance(container)


class FactoryProvider(Provider[T]):
    """
    Provider that uses a custom factory function.

    The factory is called with the container as its only argument,
    allowing manual dependency resolution.

    Usage:
        container.register_factory(
            DocumentSession,
            lambda c: c.resolve(DocumentManager).get_session(),
            Scope.REQUEST,
        )
    """

    def __init__(
        self,
        service_type: type[T],
        factory: Callable[["Container"], T],
        scope: Scope,
    ):
        super().__init__(service_type, scope, None)
        self._custom_factory = factory
        self._singleton_instance: T | None = None
        self._lock = threading.RLock()

    def get(self, container: "Container") -> T:
        if self.scope == Scope.SINGLETON:
            if self._singleton_instance is None:
                with self._lock:
                    if self._singleton_instance is None:
                        self._singleton_instance = self._custom_factory(container)
            return self._singleton_instance

        elif self.scope == Scope.REQUEST:
            return ScopeManager.get_or_create(
                self.service_type, lambda: self._custom_factory(container)
            )

        else:  # TRANSIENT
            return self._custom_factory(container)

    @property
    def instance(self) -> T | None:
        return self._singleton_instance

    def reset(self) -> None:
        with self._lock:
            self._singleton_instance = None


__all__ = [
    "Provider",
    "SingletonProvider",
    "RequestProvider",
    "TransientProvider",
    "FactoryProvider",
]
