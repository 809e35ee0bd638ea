"""
Core manager components.

The DocumentManager interface, its MongoDB implementation, and the
ServerConnection value used to route session opens.
"""

from .connection import ServerConnection
from .manager import DocumentManager, MongoDocumentManager

__all__ = [
    "DocumentManager",
    "MongoDocumentManager",
    "ServerConnection",
]
