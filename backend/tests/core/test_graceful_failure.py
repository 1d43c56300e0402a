"""
Tests for the graceful_failure context manager.
"""
import logging
from unittest.mock import MagicMock

import pytest

from app.core.graceful_failure import graceful_failure


@pytest.fixture
def mock_logger():
    return MagicMock(spec=logging.Logger)


class TestGracefulFailure:
    def test_body_runs_without_logging(self, mock_logger):
        ran = []

        with graceful_failure("track session completion", mock_logger):
            ran.append(True)

        assert ran == [True]
        mock_logger.log.assert_not_called()

    def test_exception_is_swallowed_and_logged(self, mock_logger):
        with graceful_failure("track session completion", mock_logger):
            raise RuntimeError("analytics down")

        level, message = mock_logger.log.call_args[0]
        assert level == logging.WARNING
        assert message == "Failed to track session completion: analytics down"
        assert mock_logger.log.call_args[1] == {"exc_info": False}

    def test_context_included_in_message(self, mock_logger):
        with graceful_failure(
            "track response",
            mock_logger,
            context={"session_id": "abc", "modality": "sound"},
        ):
            raise ValueError("boom")

        message = mock_logger.log.call_args[0][1]
        assert message == "Failed to track response (session_id=abc, modality=sound): boom"

    def test_custom_level_and_exc_info(self, mock_logger):
        with graceful_failure(
            "emit event", mock_logger, log_level=logging.ERROR, exc_info=True
        ):
            raise KeyError("x")

        assert mock_logger.log.call_args[0][0] == logging.ERROR
        assert mock_logger.log.call_args[1]["exc_info"] is True

    def test_base_exceptions_propagate(self, mock_logger):
        with pytest.raises(KeyboardInterrupt):
            with graceful_failure("emit event", mock_logger):
                raise KeyboardInterrupt()

        mock_logger.log.assert_not_called()
