"""
Unit tests for the container registration helpers.
"""

import pytest

from mdb_manager.config import HostEnvironment, ManagerOptions, ServerOptions
from mdb_manager.core.manager import DocumentManager, MongoDocumentManager
from mdb_manager.database.session import AsyncDocumentSession, DocumentSession
from mdb_manager.di import Container, ScopeManager
from mdb_manager.exceptions import ConfigurationError, InvalidArgumentError
from mdb_manager.registration import (
    ManagerBuilder,
    add_document_manager,
    add_document_manager_from_config,
    add_document_manager_with_default_server,
    dispose_document_manager,
)


class TenantOptions(ManagerOptions):
    tenant: str | None = None


class TenantManager(MongoDocumentManager):
    pass


@pytest.fixture
def container(mock_clients):
    container = Container()
    yield container
    dispose_document_manager(container)


class TestAddDocumentManager:
    """add_document_manager()"""

    def test_registers_singleton(self, container):
        builder = add_document_manager(
            container, lambda o: o.add_server("orders", {"url": "mongodb://orders:27017"})
        )

        manager = container.resolve(DocumentManager)

        assert isinstance(builder, ManagerBuilder)
        assert isinstance(manager, MongoDocumentManager)
        assert container.resolve(DocumentManager) is manager
        assert manager.servers == ["orders"]
        assert manager.default_server == "orders"

    def test_manager_not_built_at_registration(self, container, mock_clients):
        add_document_manager(container)

        assert container.get_created_instance(DocumentManager) is None
        mock_clients.sync.assert_not_called()

    def test_configure_actions_accumulate(self, container):
        add_document_manager(
            container, lambda o: o.add_server("orders", {"url": "mongodb://orders:27017"})
        ).configure(lambda o: o.add_server("audit", {"url": "mongodb://audit:27017"})).configure(
            lambda o: setattr(o, "default_server", "audit")
        )

        manager = container.resolve(DocumentManager)

        assert manager.servers == ["orders", "audit"]
        assert manager.default_server == "audit"

    def test_custom_manager_and_options_types(self, container):
        add_document_manager(
            container,
            lambda o: o.add_server("orders", {"url": "mongodb://orders:27017"}),
            manager_type=TenantManager,
            options_type=TenantOptions,
        ).configure(lambda o: setattr(o, "tenant", "acme"))

        manager = container.resolve(DocumentManager)

        assert isinstance(manager, TenantManager)
        assert container.resolve(TenantOptions).tenant == "acme"
        assert container.resolve(ManagerOptions) is container.resolve(TenantOptions)

    def test_host_environment_injected(self, container, tmp_path):
        container.register_instance(HostEnvironment, HostEnvironment(content_root=tmp_path))
        add_document_manager(
            container, lambda o: o.add_server("orders", {"url": "mongodb://orders:27017"})
        )

        manager = container.resolve(DocumentManager)

        assert manager.get_store()._host.content_root == tmp_path

    def test_missing_container(self):
        with pytest.raises(InvalidArgumentError):
            add_document_manager(None)


class TestFromConfig:
    """add_document_manager_from_config()"""

    def test_binds_mapping(self, container):
        add_document_manager_from_config(
            container,
            {
                "defaultServer": "audit",
                "servers": {
                    "orders": {"url": "mongodb://orders:27017", "database": "orders"},
                    "audit": {"url": "mongodb://audit:27017", "database": "audit"},
                },
            },
        )

        manager = container.resolve(DocumentManager)

        assert manager.default_server == "audit"
        assert sorted(manager.servers) == ["audit", "orders"]

    def test_merges_with_other_actions(self, container):
        add_document_manager_from_config(
            container, {"servers": {"orders": {"url": "mongodb://orders:27017"}}}
        ).configure(lambda o: o.add_server("audit", {"url": "mongodb://audit:27017"}))

        assert container.resolve(DocumentManager).servers == ["orders", "audit"]

    def test_invalid_config_fails_at_registration(self, container):
        with pytest.raises(ConfigurationError):
            add_document_manager_from_config(container, {"servers": {"orders": {"uri": "x"}}})

        assert DocumentManager not in container

    def test_missing_config(self, container):
        with pytest.raises(InvalidArgumentError):
            add_document_manager_from_config(container, None)


class TestDefaultServer:
    """add_document_manager_with_default_server()"""

    def test_from_server_options(self, container):
        add_document_manager_with_default_server(
            container, ServerOptions(url="mongodb://main:27017", database="app")
        )

        manager = container.resolve(DocumentManager)

        assert manager.default_server == "Main"
        assert manager.servers == ["Main"]
        assert manager.get_session().database_name == "app"

    def test_from_mapping(self, container):
        add_document_manager_with_default_server(container, {"url": "mongodb://main:27017"})

        assert container.resolve(DocumentManager).servers == ["Main"]

    def test_from_action(self, container):
        def configure(server: ServerOptions) -> None:
            server.url = "mongodb://main:27017"
            server.database = "app"

        add_document_manager_with_default_server(container, configure)

        store = container.resolve(DocumentManager).get_store()
        assert store.options.database == "app"

    def test_from_environment(self, container, monkeypatch):
        monkeypatch.setenv("MONGO_URI", "mongodb://env-db:27017")
        monkeypatch.setenv("DB_NAME", "inventory")

        add_document_manager_with_default_server(container)

        session = container.resolve(DocumentManager).get_session()
        assert session.database_name == "inventory"

    def test_without_url(self, container, monkeypatch):
        monkeypatch.delenv("MONGO_URI", raising=False)

        with pytest.raises(InvalidArgumentError) as exc_info:
            add_document_manager_with_default_server(container)

        assert exc_info.value.argument == "url"

    def test_unsupported_source(self, container):
        with pytest.raises(InvalidArgumentError) as exc_info:
            add_document_manager_with_default_server(container, 42)

        assert exc_info.value.argument == "server"


class TestScopedSessions:
    """ManagerBuilder.add_scoped_sessions()"""

    @pytest.mark.asyncio
    async def test_sessions_disposed_with_request(self, container):
        add_document_manager_with_default_server(
            container, {"url": "mongodb://main:27017", "database": "app"}
        ).add_scoped_sessions()

        async with ScopeManager.request_scope():
            session = container.resolve(DocumentSession)
            async_session = container.resolve(AsyncDocumentSession)
            assert container.resolve(DocumentSession) is session
            await async_session.start()
            client_session = async_session.client_session

        assert session.closed is True
        assert async_session.closed is True
        client_session.end_session.assert_awaited_once()


class TestDispose:
    """dispose_document_manager()"""

    def test_disposes_created_manager(self, container):
        add_document_manager_with_default_server(container, {"url": "mongodb://main:27017"})
        manager = container.resolve(DocumentManager)

        assert dispose_document_manager(container) is True
        assert manager.disposed is True

    def test_nothing_created(self, container):
        add_document_manager_with_default_server(container, {"url": "mongodb://main:27017"})

        assert dispose_document_manager(container) is False

    def test_nothing_registered(self, container):
        assert dispose_document_manager(container) is False
