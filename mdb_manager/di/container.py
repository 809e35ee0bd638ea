"""
Dependency Injection Container

A lightweight, FastAPI-friendly DI container with service lifetimes and an
options pattern for binding configuration objects.
"""

import logging
import threading
from collections.abc import Callable
from typing import Any, Optional, TypeVar

from .providers import (
    FactoryProvider,
    Provider,
    RequestProvider,
    SingletonProvider,
    TransientProvider,
    type_name,
)
from .scopes import Scope

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Container:
    """
    Dependency Injection Container with proper service lifetimes.

    Supports three scopes:
    - SINGLETON: One instance for app lifetime
    - REQUEST: One instance per HTTP request
    - TRANSIENT: New instance on every resolve

    Usage:
        container = Container()

        # Bind options; actions accumulate and run on first resolve
        container.configure(ManagerOptions, lambda o: o.add_server("main", {...}))

        # Register an implementation under its interface
        container.register(DocumentManager, MongoDocumentManager)

        # Register with factory
        container.register_factory(
            DocumentSession,
            lambda c: c.resolve(DocumentManager).get_session(),
            scope=Scope.REQUEST,
        )

        manager = container.resolve(DocumentManager)
    """

    _global_instance: Optional["Container"] = None
    _global_lock = threading.Lock()

    def __init__(self):
        self._providers: dict[type, Provider] = {}
        self._instances: dict[type, Any] = {}
        self._option_actions: dict[type, list[Callable[[Any], None]]] = {}

    @classmethod
    def get_global(cls) -> "Container":
        """Get the global container instance."""
        if cls._global_instance is None:
            with cls._global_lock:
                if cls._global_instance is None:
                    cls._global_instance = Container()
        return cls._global_instance

    @classmethod
    def set_global(cls, container: "Container") -> None:
        cls._global_instance = container

    @classmethod
    def reset_global(cls) -> None:
        """Reset the global container (useful for testing)."""
        cls._global_instance = None

    def register(
        self,
        service_type: type[T],
        implementation: type[T] | None = None,
        scope: Scope = Scope.SINGLETON,
    ) -> "Container":
        """
        Register a service type with the container.

        Args:
            service_type: The type to register (interface or concrete class)
            implementation: Optional implementation class (defaults to service_type)
            scope: Service lifetime scope

        Returns:
            Self for chaining

        Example:
            container.register(DocumentManager, MongoDocumentManager)
        """
        impl = implementation or service_type

        if scope == Scope.SINGLETON:
            self._providers[service_type] = SingletonProvider(service_type, impl)
        elif scope == Scope.REQUEST:
            self._providers[service_type] = RequestProvider(service_type, impl)
        else:
            self._providers[service_type] = TransientProvider(service_type, impl)

        logger.debug(f"Registered {type_name(service_type)} as {scope.value}")
        return self

    def register_factory(
        self,
        service_type: type[T],
        factory: Callable[["Container"], T],
        scope: Scope = Scope.SINGLETON,
    ) -> "Container":
        """
        Register a service with a custom factory function.

        The factory receives the container and can resolve dependencies manually.

        Returns:
            Self for chaining
        """
        self._providers[service_type] = FactoryProvider(service_type, factory, scope)
        logger.debug(f"Registered factory for {type_name(service_type)} as {scope.value}")
        return self

    def register_instance(self, service_type: type[T], instance: T) -> "Container":
        """
        Register an existing instance as a singleton.

        Useful for configuration objects or externally created instances.
        """
        self._instances[service_type] = instance
        logger.debug(f"Registered instance for {type_name(service_type)}")
        return self

    def configure(
        self,
        options_type: type[T],
        action: Callable[[T], None] | None = None,
    ) -> "Container":
        """
        Bind an options type, optionally adding a configure action.

        The options object is created with options_type() on first resolve
        and every action registered so far is applied to it, in order.
        Actions added after the first resolve are not applied.

        Args:
            options_type: Options class (must be constructible without arguments)
            action: Callable that mutates the options instance

        Returns:
            Self for chaining
        """
        actions = self._option_actions.setdefault(options_type, [])
        if action is not None:
            actions.append(action)

        if options_type not in self._providers and options_type not in self._instances:
            self._providers[options_type] = FactoryProvider(
                options_type, lambda c: c._build_options(options_type), Scope.SINGLETON
            )
            logger.debug(f"Bound options {type_name(options_type)}")
        return self

    def _build_options(self, options_type: type[T]) -> T:
        options = options_type()
        for action in self._option_actions.get(options_type, []):
            action(options)
        return options

    def resolve(self, service_type: type[T]) -> T:
        """
        Resolve a service instance.

        Raises:
            KeyError: If service is not registered
        """
        if service_type in self._instances:
            return self._instances[service_type]

        if service_type not in self._providers:
            name = type_name(service_type)
            raise KeyError(
                f"Service {name} is not registered. Call container.register({name}) first."
            )

        return self._providers[service_type].get(self)

    def try_resolve(self, service_type: type[T]) -> T | None:
        """Try to resolve a service, returning None if not registered."""
        try:
            return self.resolve(service_type)
        except KeyError:
            return None

    def get_created_instance(self, service_type: type[T]) -> T | None:
        """
        Return an already created singleton without creating one.

        Useful at shutdown, to dispose only what was actually built.
        """
        if service_type in self._instances:
            return self._instances[service_type]
        provider = self._providers.get(service_type)
        return getattr(provider, "instance", None)

    def is_registered(self, service_type: type) -> bool:
        return service_type in self._providers or service_type in self._instances

    def reset(self) -> None:
        """
        Reset all registrations and cached instances.

        Useful for testing.
        """
        for provider in self._providers.values():
            if hasattr(provider, "reset"):
                provider.reset()
        self._providers.clear()
        self._instances.clear()
        self._option_actions.clear()
        logger.debug("Container reset")

    def __contains__(self, service_type: type) -> bool:
        return self.is_registered(service_type)
