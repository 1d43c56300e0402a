"""
Database models for the synesthesia screening service.

Two tables: one row per session and one row per submitted response.
Response values are stored as JSON (a string for single-color modalities,
a list of strings for sound).
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Enum,
    ForeignKey,
    JSON,
    Index,
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from libs.domain_types import Modality, TestType

from .base import Base


class TestSession(Base):
    """Screening session, identified by an opaque public session ID."""

    __tablename__ = "test_sessions"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(String(64), unique=True, nullable=False, index=True)
    test_type = Column(Enum(TestType), nullable=False)
    # {"grapheme": 82, "number": 64, "overall": 73}; NULL until completion
    scores = Column(JSON, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    responses = relationship(
        "TestResponse",
        back_populates="test_session",
        cascade="all, delete-orphan",
        order_by="TestResponse.id",
    )


class TestResponse(Base):
    """A single stimulus -> color response."""

    __tablename__ = "test_responses"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(
        String(64),
        ForeignKey("test_sessions.session_id", ondelete="CASCADE"),
        nullable=False,
    )
    modality = Column(Enum(Modality), nullable=False)
    stimulus = Column(String(64), nullable=False)
    response = Column(JSON, nullable=False)
    response_time_ms = Column(Integer, nullable=False)
    attempt = Column(Integer, nullable=False, default=1)  # Retest ordinal
    submitted_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    test_session = relationship("TestSession", back_populates="responses")

    __table_args__ = (
        Index("ix_test_responses_session_modality", "session_id", "modality"),
    )
