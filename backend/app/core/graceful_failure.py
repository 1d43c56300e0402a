"""
Best-effort execution for side effects that must never fail a request.

Analytics calls are the main user: a tracking failure during session
creation, response submission or completion is logged and dropped, while
the session workflow carries on. Store failures are not handled here; they
propagate as SessionStoreError.

Usage:
    from app.core.graceful_failure import graceful_failure

    with graceful_failure("track session completion", logger):
        AnalyticsTracker.track_session_completed(...)
"""

import logging
from contextlib import contextmanager
from typing import Any, Generator, Optional


def _failure_message(
    operation_name: str, error: Exception, context: Optional[dict[str, Any]]
) -> str:
    if not context:
        return f"Failed to {operation_name}: {error}"
    details = ", ".join(f"{key}={value}" for key, value in context.items())
    return f"Failed to {operation_name} ({details}): {error}"


@contextmanager
def graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[dict[str, Any]] = None,
) -> Generator[None, None, None]:
    """Run the wrapped block, logging and suppressing any ``Exception``.

    Args:
        operation_name: Phrase completing "Failed to ...", e.g.
            "track response".
        logger: Logger that receives the failure message.
        log_level: Level for the failure message. Defaults to WARNING.
        exc_info: Attach the traceback to the log record.
        context: Key/value pairs rendered into the message, e.g.
            ``{"session_id": record.session_id}``.
    """
    try:
        yield
    except Exception as e:
        logger.log(
            log_level,
            _failure_message(operation_name, e, context),
            exc_info=exc_info,
        )
