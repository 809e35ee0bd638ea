"""
Unit tests for custom exceptions.

Tests exception hierarchy and error messages.
"""

import pytest

from mdb_manager.exceptions import (ConfigurationError, InitializationError,
                                    InvalidArgumentError, ManagerDisposedError,
                                    MDBManagerError, NoDefaultServerError,
                                    UnknownServerError)


class TestExceptionHierarchy:
    """Test exception inheritance hierarchy."""

    @pytest.mark.parametrize(
        "error",
        [
            UnknownServerError("unknown"),
            NoDefaultServerError(),
            ManagerDisposedError("DocumentStore"),
            InvalidArgumentError("name"),
            InitializationError("init failed"),
            ConfigurationError("config invalid"),
        ],
    )
    def test_all_are_manager_errors(self, error):
        """Every error is an MDBManagerError and a RuntimeError."""
        assert isinstance(error, MDBManagerError)
        assert isinstance(error, RuntimeError)

    def test_no_default_server_is_unknown_server(self):
        """Callers catching UnknownServerError also see the no-default case."""
        assert isinstance(NoDefaultServerError(), UnknownServerError)

    def test_invalid_argument_is_value_error(self):
        assert isinstance(InvalidArgumentError("name"), ValueError)


class TestExceptionMessages:
    """Test exception message formatting."""

    def test_base_error_message(self):
        error = MDBManagerError("Something went wrong")

        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.context == {}

    def test_base_error_with_context(self):
        error = MDBManagerError("Failed", context={"server_name": "orders"})

        assert str(error) == "Failed (context: server_name=orders)"

    def test_unknown_server(self):
        error = UnknownServerError("Unable to find specified server: billing.", server_name="billing")

        assert error.server_name == "billing"
        assert error.context == {"server_name": "billing"}

    def test_no_default_server(self):
        error = NoDefaultServerError()

        assert str(error) == "There was no default server configured."
        assert error.server_name is None

    def test_disposed(self):
        error = ManagerDisposedError("MongoDocumentManager")

        assert str(error) == "Cannot access a disposed object: MongoDocumentManager"
        assert error.object_name == "MongoDocumentManager"

    def test_invalid_argument_default_message(self):
        error = InvalidArgumentError("server_name")

        assert error.argument == "server_name"
        assert str(error) == "Value cannot be None or empty: server_name"

    def test_invalid_argument_custom_message(self):
        error = InvalidArgumentError("name", "An item with the same key has already been added: a")

        assert error.message == "An item with the same key has already been added: a"

    def test_initialization_error_context(self):
        error = InitializationError("Failed", server_name="orders", db_name="orders_db")

        assert error.server_name == "orders"
        assert error.db_name == "orders_db"
        assert error.context == {"server_name": "orders", "db_name": "orders_db"}

    def test_configuration_error_context(self):
        error = ConfigurationError("Bad pool", config_key="min_pool_size", config_value=0)

        assert error.config_key == "min_pool_size"
        assert error.context == {"config_key": "min_pool_size", "config_value": 0}
