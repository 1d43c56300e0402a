"""
User-facing error messages and HTTPException builders.

Message format:
- Sentence case, ending with a period
- Identifiers in parentheses when they help with support: "(ID: abc)"
- "Please try again later." for transient server errors

Usage:
    from app.core.error_responses import ErrorMessages, raise_not_found

    if session is None:
        raise_not_found(ErrorMessages.TEST_SESSION_NOT_FOUND)

    raise_bad_request(ErrorMessages.modality_not_in_test("sound", "grapheme"))
"""

from typing import NoReturn, Optional

from fastapi import HTTPException, status


class ErrorMessages:
    """Centralized error message constants and templates.

    Constants are SCREAMING_SNAKE_CASE; templates taking parameters are
    snake_case static methods.
    """

    # ==========================================================================
    # Not Found Errors (404)
    # ==========================================================================
    TEST_SESSION_NOT_FOUND = "Test session not found."

    # ==========================================================================
    # Bad Request Errors (400)
    # ==========================================================================
    SESSION_ALREADY_COMPLETED = (
        "Test session is already completed. "
        "Completed sessions do not accept new responses."
    )
    SESSION_NOT_COMPLETED = (
        "Test session is not completed yet. "
        "Please complete the session before requesting results."
    )

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def modality_not_in_test(modality: str, test_type: str) -> str:
        """Message when a response targets a modality the session does not test."""
        return (
            f"Modality '{modality}' is not part of this test session "
            f"(test type: {test_type})."
        )

    @staticmethod
    def unknown_stimulus(modality: str, stimulus: str) -> str:
        """Message when the stimulus is not in the modality's catalog."""
        return f"Unknown stimulus '{stimulus}' for modality '{modality}'."

    @staticmethod
    def database_operation_failed(operation: str) -> str:
        """Generic message for storage operation failures."""
        return f"Failed to {operation}. Please try again later."


# ==============================================================================
# HTTPException Builder Functions
# ==============================================================================


def raise_bad_request(detail: str) -> NoReturn:
    """Raise a 400 Bad Request exception.

    Args:
        detail: User-facing error message

    Raises:
        HTTPException: 400 Bad Request
    """
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    )


def raise_not_found(detail: str) -> NoReturn:
    """Raise a 404 Not Found exception.

    Args:
        detail: User-facing error message

    Raises:
        HTTPException: 404 Not Found
    """
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )


def raise_unprocessable_entity(detail: str) -> NoReturn:
    """Raise a 422 Unprocessable Entity exception.

    Use when the body parses but its content does not fit the target
    (e.g., a color list sent for a letter stimulus).

    Args:
        detail: User-facing error message

    Raises:
        HTTPException: 422 Unprocessable Entity
    """
    raise HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=detail,
    )


def raise_server_error(
    detail: str,
    error_id: Optional[str] = None,
) -> NoReturn:
    """Raise a 500 Internal Server Error exception.

    Technical details belong in the logs, not in ``detail``.

    Args:
        detail: User-facing error message
        error_id: Optional error tracking ID appended to the message

    Raises:
        HTTPException: 500 Internal Server Error
    """
    if error_id:
        detail = f"{detail} (Error ID: {error_id})"

    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    )
