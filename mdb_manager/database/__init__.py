"""
Database layer.

Document stores (one per configured server) and the sessions they open.
"""

from .session import AsyncDocumentSession, DocumentSession
from .store import DocumentStore

__all__ = [
    "DocumentStore",
    "DocumentSession",
    "AsyncDocumentSession",
]
