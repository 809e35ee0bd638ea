"""
MDB Manager Dependency Injection Module

Lightweight DI container with service lifetimes:
- SINGLETON: One instance per application lifetime
- REQUEST: One instance per HTTP request
- TRANSIENT: New instance on every injection

Usage:
    from mdb_manager.di import Container, Scope

    container = Container()
    container.configure(ManagerOptions, lambda o: o.add_server("main", {...}))
    container.register(DocumentManager, MongoDocumentManager)

    manager = container.resolve(DocumentManager)
"""

from .container import Container
from .providers import (
    FactoryProvider,
    Provider,
    RequestProvider,
    SingletonProvider,
    TransientProvider,
)
from .scopes import Scope, ScopeManager

__all__ = [
    "Container",
    "Scope",
    "ScopeManager",
    "Provider",
    "FactoryProvider",
    "RequestProvider",
    "SingletonProvider",
    "TransientProvider",
]
