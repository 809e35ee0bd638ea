"""
MDB_MANAGER - MongoDB Document Manager

Registers MongoDB connection objects ("stores") for any number of named
servers into a dependency-injection container, builds each store lazily on
first use, and opens sessions scoped to a server and database.
"""

# Configuration
from .config import HostEnvironment, ManagerOptions, ServerOptions, StoreConventions
# Core manager
from .core import DocumentManager, MongoDocumentManager, ServerConnection
# Database layer
from .database import AsyncDocumentSession, DocumentSession, DocumentStore
# Dependency injection
from .di import Container, Scope, ScopeManager
# Errors
from .exceptions import (ConfigurationError, InitializationError,
                         InvalidArgumentError, ManagerDisposedError,
                         MDBManagerError, NoDefaultServerError,
                         UnknownServerError)
# Registration helpers
from .registration import (ManagerBuilder, add_document_manager,
                           add_document_manager_from_config,
                           add_document_manager_with_default_server,
                           dispose_document_manager)

__version__ = "0.1.0"

__all__ = [
    # Core
    "DocumentManager",
    "MongoDocumentManager",
    "ServerConnection",
    # Database
    "DocumentStore",
    "DocumentSession",
    "AsyncDocumentSession",
    # Configuration
    "ManagerOptions",
    "ServerOptions",
    "StoreConventions",
    "HostEnvironment",
    # DI
    "Container",
    "Scope",
    "ScopeManager",
    # Registration
    "ManagerBuilder",
    "add_document_manager",
    "add_document_manager_from_config",
    "add_document_manager_with_default_server",
    "dispose_document_manager",
    # Errors
    "MDBManagerError",
    "UnknownServerError",
    "NoDefaultServerError",
    "ManagerDisposedError",
    "InvalidArgumentError",
    "InitializationError",
    "ConfigurationError",
]
