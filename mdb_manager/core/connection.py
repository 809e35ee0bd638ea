"""
Connection requests.

A ServerConnection names the server (and optionally the database) a session
should be opened against.
"""

from dataclasses import dataclass

from ..exceptions import InvalidArgumentError


@dataclass(frozen=True)
class ServerConnection:
    """
    Routing information for opening a session.

    Attributes:
        server_name: Registry name of the target server
        database: Target database; None means the server's configured database
    """

    server_name: str
    database: str | None = None

    def __post_init__(self) -> None:
        if not self.server_name:
            raise InvalidArgumentError("server_name")
