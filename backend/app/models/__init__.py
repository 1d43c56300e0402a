"""
Models package for the synesthesia screening backend.
"""
from .base import Base, create_db_engine, create_session_factory
from .models import TestSession, TestResponse

__all__ = [
    "Base",
    "create_db_engine",
    "create_session_factory",
    "TestSession",
    "TestResponse",
]
