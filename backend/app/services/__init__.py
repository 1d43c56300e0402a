"""
Services package for business logic.
"""

from .session_service import (
    ModalityNotInTestError,
    SessionAlreadyCompletedError,
    SessionNotCompletedError,
    SessionReport,
    SessionStats,
    UnknownStimulusError,
    build_report,
    complete_session,
    get_session_report,
    get_test_stats,
    record_response,
    start_session,
)

__all__ = [
    "ModalityNotInTestError",
    "SessionAlreadyCompletedError",
    "SessionNotCompletedError",
    "SessionReport",
    "SessionStats",
    "UnknownStimulusError",
    "build_report",
    "complete_session",
    "get_session_report",
    "get_test_stats",
    "record_response",
    "start_session",
]
