"""
Constants for MDB_MANAGER.

This module contains the shared defaults used across the codebase to avoid
magic numbers and improve maintainability.
"""

from typing import Final

# ============================================================================
# SERVER REGISTRY CONSTANTS
# ============================================================================

DEFAULT_SERVER_NAME: Final[str] = "Main"
"""Name given to the server registered by the single-server helpers."""

DEFAULT_APP_NAME: Final[str] = "MDB_MANAGER"
"""Application name reported to MongoDB by every client."""

# ============================================================================
# CONNECTION POOL CONSTANTS
# ============================================================================

DEFAULT_MAX_POOL_SIZE: Final[int] = 50
"""Default maximum MongoDB connection pool size."""

DEFAULT_MIN_POOL_SIZE: Final[int] = 0
"""Default minimum MongoDB connection pool size."""

DEFAULT_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 5000
"""Default server selection timeout in milliseconds."""

DEFAULT_MAX_IDLE_TIME_MS: Final[int] = 45000
"""Default maximum idle time before closing connections (milliseconds)."""

# ============================================================================
# ENVIRONMENT VARIABLES
# ============================================================================

ENV_MONGO_URI: Final[str] = "MONGO_URI"
ENV_DB_NAME: Final[str] = "DB_NAME"
ENV_CERTIFICATE_PATH: Final[str] = "MONGO_CERTIFICATE_PATH"
ENV_CERTIFICATE_PASSWORD: Final[str] = "MONGO_CERTIFICATE_PASSWORD"
ENV_MAX_POOL_SIZE: Final[str] = "MONGO_MAX_POOL_SIZE"
ENV_MIN_POOL_SIZE: Final[str] = "MONGO_MIN_POOL_SIZE"

# ============================================================================
# HTTP INTEGRATION CONSTANTS
# ============================================================================

CORRELATION_ID_HEADER: Final[str] = "X-Correlation-ID"
"""Request/response header carrying the correlation ID."""
