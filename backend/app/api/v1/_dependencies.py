"""
Shared FastAPI dependencies for v1 endpoints.
"""
from fastapi import Request

from app.storage import SessionStore


def get_session_store(request: Request) -> SessionStore:
    """Return the session store the application was built with."""
    return request.app.state.session_store
