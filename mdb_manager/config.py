"""
Configuration management for MDB_MANAGER.

Options are Pydantic models so that an already-parsed configuration source
(a JSON/YAML/TOML document, a settings section) can be bound directly.
Both snake_case and camelCase keys are accepted:

    options = ManagerOptions.from_mapping({
        "defaultServer": "orders",
        "servers": {
            "orders": {"url": "mongodb://orders:27017", "database": "orders"},
            "audit": {
                "url": "mongodb://audit:27017",
                "database": "audit",
                "certificatePath": "certs/audit.pem",
            },
        },
    })
"""

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .constants import (
    DEFAULT_APP_NAME,
    DEFAULT_MAX_IDLE_TIME_MS,
    DEFAULT_MAX_POOL_SIZE,
    DEFAULT_MIN_POOL_SIZE,
    DEFAULT_SERVER_SELECTION_TIMEOUT_MS,
    ENV_CERTIFICATE_PASSWORD,
    ENV_CERTIFICATE_PATH,
    ENV_DB_NAME,
    ENV_MAX_POOL_SIZE,
    ENV_MIN_POOL_SIZE,
    ENV_MONGO_URI,
)
from .exceptions import ConfigurationError, InvalidArgumentError

ReadPreferenceMode = Literal[
    "primary", "primaryPreferred", "secondary", "secondaryPreferred", "nearest"
]
UuidRepresentation = Literal[
    "standard", "pythonLegacy", "javaLegacy", "csharpLegacy", "unspecified"
]


class _OptionsModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        extra="forbid",
    )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"Environment variable {name} must be an integer",
            config_key=name,
            config_value=raw,
        ) from e


class StoreConventions(_OptionsModel):
    """
    Client conventions applied to every connection a store opens.

    Servers without conventions of their own inherit the manager's
    default conventions.
    """

    app_name: str = DEFAULT_APP_NAME
    max_pool_size: int = Field(
        default_factory=lambda: _env_int(ENV_MAX_POOL_SIZE, DEFAULT_MAX_POOL_SIZE),
        ge=1,
        validate_default=True,
    )
    min_pool_size: int = Field(
        default_factory=lambda: _env_int(ENV_MIN_POOL_SIZE, DEFAULT_MIN_POOL_SIZE),
        ge=0,
        validate_default=True,
    )
    server_selection_timeout_ms: int = Field(DEFAULT_SERVER_SELECTION_TIMEOUT_MS, ge=1)
    max_idle_time_ms: int = Field(DEFAULT_MAX_IDLE_TIME_MS, ge=0)
    retry_writes: bool = True
    retry_reads: bool = True
    tz_aware: bool = False
    uuid_representation: UuidRepresentation = "standard"
    read_preference: ReadPreferenceMode = "primary"
    write_concern: int | str | None = None
    journal: bool | None = None
    read_concern_level: str | None = None
    causal_consistency: bool = True

    @field_validator("max_pool_size", "min_pool_size")
    @classmethod
    def _check_pool_bounds(cls, value: int, info: ValidationInfo) -> int:
        if info.field_name == "min_pool_size":
            min_size, max_size = value, info.data.get("max_pool_size")
        else:
            min_size, max_size = info.data.get("min_pool_size"), value
        if min_size is not None and max_size is not None and min_size > max_size:
            raise ConfigurationError(
                f"min_pool_size ({min_size}) cannot be greater than "
                f"max_pool_size ({max_size})",
                config_key=info.field_name,
                config_value=value,
            )
        return value

    def to_client_kwargs(self) -> dict[str, Any]:
        """Render the keyword arguments passed to MongoClient / AsyncIOMotorClient."""
        kwargs: dict[str, Any] = {
            "appname": self.app_name,
            "maxPoolSize": self.max_pool_size,
            "minPoolSize": self.min_pool_size,
            "serverSelectionTimeoutMS": self.server_selection_timeout_ms,
            "maxIdleTimeMS": self.max_idle_time_ms,
            "retryWrites": self.retry_writes,
            "retryReads": self.retry_reads,
            "tz_aware": self.tz_aware,
            "uuidRepresentation": self.uuid_representation,
            "readPreference": self.read_preference,
        }
        if self.write_concern is not None:
            kwargs["w"] = self.write_concern
        if self.journal is not None:
            kwargs["journal"] = self.journal
        if self.read_concern_level:
            kwargs["readConcernLevel"] = self.read_concern_level
        return kwargs


class ServerOptions(_OptionsModel):
    """Connection settings for one named server."""

    url: str | None = None
    database: str | None = None
    certificate_path: str | None = None
    certificate_password: str | None = Field(default=None, repr=False)
    conventions: StoreConventions | None = None

    @classmethod
    def from_env(cls) -> "ServerOptions":
        """
        Build server options from environment variables.

        Reads MONGO_URI, DB_NAME, MONGO_CERTIFICATE_PATH and
        MONGO_CERTIFICATE_PASSWORD. Unset variables stay None.
        """
        return cls(
            url=os.getenv(ENV_MONGO_URI) or None,
            database=os.getenv(ENV_DB_NAME) or None,
            certificate_path=os.getenv(ENV_CERTIFICATE_PATH) or None,
            certificate_password=os.getenv(ENV_CERTIFICATE_PASSWORD) or None,
        )


class ManagerOptions(_OptionsModel):
    """
    Options for a DocumentManager.

    Attributes:
        default_server: Server used when no name is given. Falls back to the
            first configured server.
        default_conventions: Conventions for servers that carry none.
        servers: Server registry, keyed by server name.
    """

    default_server: str | None = None
    default_conventions: StoreConventions | None = None
    servers: dict[str, ServerOptions] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ManagerOptions":
        """
        Validate an external configuration source into ManagerOptions.

        Raises:
            ConfigurationError: If the mapping does not describe valid options
        """
        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid manager configuration: {e.error_count()} error(s)",
                context={"errors": [err["loc"] for err in e.errors()]},
            ) from e

    def add_server(self, name: str, options: "ServerOptions | Mapping[str, Any]") -> None:
        """
        Add a server to the registry.

        Raises:
            InvalidArgumentError: If the name is empty, options are missing,
                or a server with the same name is already configured
        """
        if not name:
            raise InvalidArgumentError("name")
        if options is None:
            raise InvalidArgumentError("options")
        if name in self.servers:
            raise InvalidArgumentError(
                "name", f"An item with the same key has already been added: {name}"
            )
        self.servers[name] = coerce_server_options(options)


class HostEnvironment(_OptionsModel):
    """Host information; relative certificate paths resolve against content_root."""

    content_root: Path = Field(default_factory=Path.cwd)

    def resolve_path(self, path: str | os.PathLike) -> Path:
        candidate = Path(path).expanduser()
        if candidate.is_absolute():
            return candidate
        return self.content_root / candidate


def coerce_server_options(options: "ServerOptions | Mapping[str, Any]") -> ServerOptions:
    """Accept ServerOptions or a mapping and return validated ServerOptions."""
    if isinstance(options, ServerOptions):
        return options
    try:
        return ServerOptions.model_validate(dict(options))
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid server configuration: {e.error_count()} error(s)",
            context={"errors": [err["loc"] for err in e.errors()]},
        ) from e
