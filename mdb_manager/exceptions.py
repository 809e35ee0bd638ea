"""
Custom exceptions for MDB_MANAGER.

Every error raised by the manager derives from MDBManagerError, which keeps
backward compatibility with RuntimeError.
"""

from typing import Any, Dict, Optional


class MDBManagerError(RuntimeError):
    """
    Base exception for MDB Manager errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (server_name,
                 database, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class UnknownServerError(MDBManagerError):
    """
    Raised when a store or session is requested for a server name that is
    not present in the manager's registry.

    Attributes:
        message: Error message
        server_name: The requested server name (if any)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        server_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if server_name:
            context["server_name"] = server_name
        super().__init__(message, context=context)
        self.server_name = server_name


class NoDefaultServerError(UnknownServerError):
    """Raised when no server name was given and no default server is configured."""

    def __init__(
        self,
        message: str = "There was no default server configured.",
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, context=context)


class ManagerDisposedError(MDBManagerError):
    """Raised when a manager or store is used after it has been disposed."""

    def __init__(self, object_name: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(f"Cannot access a disposed object: {object_name}", context=context)
        self.object_name = object_name


class InvalidArgumentError(MDBManagerError, ValueError):
    """
    Raised when a required argument or option is missing or empty.

    Attributes:
        message: Error message
        argument: Name of the offending argument
        context: Additional context information
    """

    def __init__(
        self,
        argument: str,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message or f"Value cannot be None or empty: {argument}", context=context)
        self.argument = argument


class InitializationError(MDBManagerError):
    """
    Raised when a store's client cannot be constructed.

    Attributes:
        message: Error message
        server_name: Server the store belongs to (if available)
        db_name: Default database of the server (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        server_name: Optional[str] = None,
        db_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the initialization error.

        Args:
            message: Error message
            server_name: Server the store belongs to (if available)
            db_name: Default database of the server (if available)
            context: Additional context information
        """
        context = context or {}
        if server_name:
            context["server_name"] = server_name
        if db_name:
            context["db_name"] = db_name
        super().__init__(message, context=context)
        self.server_name = server_name
        self.db_name = db_name


class ConfigurationError(MDBManagerError):
    """
    Raised when configuration is invalid or missing.

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value
