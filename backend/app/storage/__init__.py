"""
Session storage package.
"""
from .session_store import (
    SessionStore,
    InMemorySessionStore,
    DatabaseSessionStore,
    SessionStoreError,
    SessionNotFoundError,
    generate_session_id,
)

__all__ = [
    "SessionStore",
    "InMemorySessionStore",
    "DatabaseSessionStore",
    "SessionStoreError",
    "SessionNotFoundError",
    "generate_session_id",
]
