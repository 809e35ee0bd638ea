"""
Container registration helpers.

Bind manager options into a Container and register the document manager
as a singleton under the DocumentManager interface.

Usage:
    container = Container()

    # Inline configuration
    add_document_manager(
        container,
        lambda options: options.add_server("orders", {"url": "mongodb://orders:27017"}),
    )

    # From an external configuration source (already parsed)
    add_document_manager_from_config(container, settings["mongo"])

    # Single server named "Main" (from the environment when omitted)
    add_document_manager_with_default_server(container).add_scoped_sessions()

    manager = container.resolve(DocumentManager)
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from .config import ManagerOptions, ServerOptions, coerce_server_options
from .constants import DEFAULT_SERVER_NAME
from .core.manager import DocumentManager, MongoDocumentManager
from .database.session import AsyncDocumentSession, DocumentSession
from .di import Container, Scope
from .exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

ServerSource = Callable[[ServerOptions], None] | ServerOptions | Mapping[str, Any] | None


class ManagerBuilder:
    """
    Returned by the registration helpers for further configuration.

    Attributes:
        container: The container the manager was registered in
        options_type: The bound options type
    """

    def __init__(self, container: Container, options_type: type[ManagerOptions] = ManagerOptions):
        self.container = container
        self.options_type = options_type

    def configure(self, action: Callable[[ManagerOptions], None]) -> "ManagerBuilder":
        """Add another configure action for the manager options."""
        self.container.configure(self.options_type, action)
        return self

    def add_scoped_sessions(self) -> "ManagerBuilder":
        """
        Register request-scoped sessions on the default server.

        DocumentSession and AsyncDocumentSession resolve through the manager
        once per request and are disposed when the request scope ends.
        """
        self.container.register_factory(
            DocumentSession,
            lambda c: c.resolve(DocumentManager).get_session(),
            Scope.REQUEST,
        )
        self.container.register_factory(
            AsyncDocumentSession,
            lambda c: c.resolve(DocumentManager).get_async_session(),
            Scope.REQUEST,
        )
        return self


def add_document_manager(
    container: Container,
    configure: Callable[[ManagerOptions], None] | None = None,
    *,
    manager_type: type[DocumentManager] = MongoDocumentManager,
    options_type: type[ManagerOptions] = ManagerOptions,
) -> ManagerBuilder:
    """
    Register a document manager singleton.

    Args:
        container: Container to register into
        configure: Optional action applied to the options on first resolve
        manager_type: DocumentManager implementation to register
        options_type: Options class bound for the manager

    Returns:
        ManagerBuilder for further configuration
    """
    if container is None:
        raise InvalidArgumentError("container")

    container.configure(options_type, configure)
    if options_type is not ManagerOptions:
        # Implementations take ManagerOptions; route it to the custom type
        container.register_factory(ManagerOptions, lambda c: c.resolve(options_type))

    container.register(DocumentManager, manager_type, Scope.SINGLETON)
    logger.debug(f"Registered {manager_type.__name__} as DocumentManager")
    return ManagerBuilder(container, options_type)


def add_document_manager_from_config(
    container: Container,
    config: Mapping[str, Any],
    *,
    manager_type: type[DocumentManager] = MongoDocumentManager,
    options_type: type[ManagerOptions] = ManagerOptions,
) -> ManagerBuilder:
    """
    Register a document manager bound to an external configuration source.

    The mapping is validated immediately, so configuration mistakes surface
    at startup rather than on first use. Servers are merged into any
    servers configured by other actions.

    Raises:
        ConfigurationError: If the mapping does not describe valid options
    """
    if config is None:
        raise InvalidArgumentError("config")

    bound = options_type.from_mapping(config)

    def _bind(options: ManagerOptions) -> None:
        for field in bound.model_fields_set:
            if field == "servers":
                options.servers.update(bound.servers)
            else:
                setattr(options, field, getattr(bound, field))

    return add_document_manager(
        container, _bind, manager_type=manager_type, options_type=options_type
    )


def add_document_manager_with_default_server(
    container: Container,
    server: ServerSource = None,
    *,
    manager_type: type[DocumentManager] = MongoDocumentManager,
) -> ManagerBuilder:
    """
    Register a document manager with a single default server named "Main".

    Args:
        container: Container to register into
        server: An action that fills in a ServerOptions, a ServerOptions, a
            mapping, or None to read MONGO_URI / DB_NAME / MONGO_CERTIFICATE_*
            from the environment

    Raises:
        InvalidArgumentError: If the resulting server has no url
    """
    if server is None:
        server_options = ServerOptions.from_env()
    elif isinstance(server, (ServerOptions, Mapping)):
        server_options = coerce_server_options(server)
    elif callable(server):
        server_options = ServerOptions()
        server(server_options)
    else:
        raise InvalidArgumentError(
            "server", f"Unsupported server source: {type(server).__name__}"
        )

    if not server_options.url:
        raise InvalidArgumentError(
            "url", f"No url configured for server '{DEFAULT_SERVER_NAME}'"
        )

    def _configure(options: ManagerOptions) -> None:
        options.default_server = DEFAULT_SERVER_NAME
        options.add_server(DEFAULT_SERVER_NAME, server_options)

    return add_document_manager(container, _configure, manager_type=manager_type)


def dispose_document_manager(container: Container) -> bool:
    """
    Dispose the registered manager if it was ever created.

    Call from the application's shutdown hook. Returns whether a manager
    was disposed.
    """
    manager = container.get_created_instance(DocumentManager)
    if manager is None:
        return False
    manager.dispose()
    return True
