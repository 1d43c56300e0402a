"""
Analytics and event tracking for screening sessions and system events.

Events are emitted as structured log entries on the ``app.core.analytics``
logger; shipping them elsewhere is a matter of attaching a handler.
"""
import logging
from enum import Enum
from typing import Any, Dict, Optional

from app.core.config import settings
from app.core.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Analytics event types."""

    # Session lifecycle events
    SESSION_CREATED = "session.created"
    RESPONSE_RECORDED = "response.recorded"
    SESSION_COMPLETED = "session.completed"

    # Error events
    API_ERROR = "api.error"


class AnalyticsTracker:
    """
    Analytics event tracker for session activity and API errors.
    """

    @staticmethod
    def track_event(
        event_type: EventType,
        session_id: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Track an analytics event.

        Args:
            event_type: Type of event being tracked
            session_id: Optional screening session associated with the event
            properties: Optional dictionary of event properties

        Example:
            AnalyticsTracker.track_event(
                EventType.SESSION_COMPLETED,
                session_id="V1StGXR8_Z5jdHi6B-myT",
                properties={"overall": 73}
            )
        """
        event_data = {
            "event": event_type.value,
            "timestamp": utc_now().isoformat(),
            "session_id": session_id,
            "properties": properties or {},
            "environment": settings.ENV,
        }

        logger.info(
            f"Analytics Event: {event_type.value}",
            extra={
                "event_data": event_data,
                "session_id": session_id,
            },
        )

    @staticmethod
    def track_session_created(session_id: str, test_type: str) -> None:
        """Track creation of a screening session."""
        AnalyticsTracker.track_event(
            EventType.SESSION_CREATED,
            session_id=session_id,
            properties={"test_type": test_type},
        )

    @staticmethod
    def track_response_recorded(
        session_id: str, modality: str, stimulus: str, response_time_ms: int
    ) -> None:
        """Track a stored stimulus response."""
        AnalyticsTracker.track_event(
            EventType.RESPONSE_RECORDED,
            session_id=session_id,
            properties={
                "modality": modality,
                "stimulus": stimulus,
                "response_time_ms": response_time_ms,
            },
        )

    @staticmethod
    def track_session_completed(
        session_id: str, scores: Dict[str, int], response_count: int
    ) -> None:
        """Track completion and scoring of a session."""
        AnalyticsTracker.track_event(
            EventType.SESSION_COMPLETED,
            session_id=session_id,
            properties={"scores": scores, "response_count": response_count},
        )

    @staticmethod
    def track_api_error(
        method: str,
        path: str,
        error_type: str,
        error_message: str,
    ) -> None:
        """
        Track an API error.

        Args:
            method: HTTP method
            path: Request path
            error_type: Exception class or error category
            error_message: Error message
        """
        AnalyticsTracker.track_event(
            EventType.API_ERROR,
            properties={
                "method": method,
                "path": path,
                "error_type": error_type,
                "error_message": error_message,
            },
        )
