"""
Tests for the session workflows: recording, completion and statistics.
"""
import threading
from unittest.mock import patch

import pytest

from libs.domain_types import ConfidenceLevel, Modality, TestType

from app.core.records import MalformedResponseError
from app.core.scoring import ScoreResult
from app.services import (
    ModalityNotInTestError,
    SessionAlreadyCompletedError,
    SessionNotCompletedError,
    UnknownStimulusError,
    build_report,
    complete_session,
    get_session_report,
    get_test_stats,
    record_response,
    start_session,
)
from app.storage import SessionNotFoundError

RED = "#FF6B6B"
TEAL = "#4ECDC4"


def answer(store, session_id, modality, pairs):
    for stimulus, color in pairs:
        record_response(store, session_id, modality, stimulus, color, 900)


class TestRecordResponse:
    def test_records_response(self, session_store):
        session = start_session(session_store, TestType.ALL)

        record = record_response(
            session_store, session.session_id, Modality.GRAPHEME, "A", RED, 850
        )

        assert record.stimulus == "A"
        assert record.colors == (RED,)
        assert session_store.get_responses(session.session_id) == [record]

    def test_unknown_session(self, session_store):
        with pytest.raises(SessionNotFoundError):
            record_response(session_store, "missing", Modality.GRAPHEME, "A", RED, 1)

    def test_modality_outside_test_type(self, session_store):
        session = start_session(session_store, TestType.GRAPHEME)

        with pytest.raises(ModalityNotInTestError):
            record_response(
                session_store, session.session_id, Modality.SOUND, "bell", [RED], 1
            )

    def test_unknown_stimulus(self, session_store):
        session = start_session(session_store, TestType.NUMBER)

        with pytest.raises(UnknownStimulusError):
            record_response(
                session_store, session.session_id, Modality.NUMBER, "42", RED, 1
            )

    def test_malformed_response(self, session_store):
        session = start_session(session_store, TestType.ALL)

        with pytest.raises(MalformedResponseError):
            record_response(
                session_store, session.session_id, Modality.GRAPHEME, "A", [RED], 1
            )
        assert session_store.get_responses(session.session_id) == []

    def test_completed_session_rejects_responses(self, session_store):
        session = start_session(session_store, TestType.ALL)
        complete_session(session_store, session.session_id)

        with pytest.raises(SessionAlreadyCompletedError):
            record_response(
                session_store, session.session_id, Modality.GRAPHEME, "A", RED, 1
            )

    def test_analytics_failure_does_not_block(self, session_store):
        session = start_session(session_store, TestType.ALL)

        with patch(
            "app.services.session_service.AnalyticsTracker.track_response_recorded",
            side_effect=RuntimeError("analytics down"),
        ):
            record = record_response(
                session_store, session.session_id, Modality.GRAPHEME, "A", RED, 1
            )

        assert record.stimulus == "A"


class TestCompleteSession:
    def test_round_trip(self, session_store):
        """Five consistent grapheme answers complete to a 100 very-high session."""
        session = start_session(session_store, TestType.ALL)
        answer(session_store, session.session_id, Modality.GRAPHEME, [("A", RED)] * 5)

        report = complete_session(session_store, session.session_id)

        assert report.per_modality[Modality.GRAPHEME].score == 100
        assert report.overall.score == 100
        assert report.overall.confidence == ConfidenceLevel.HIGH
        assert report.scores == {"grapheme": 100, "overall": 100}

        stored = session_store.get_session(session.session_id)
        assert stored.scores == {"grapheme": 100, "overall": 100}
        assert stored.completed_at is not None
        assert report.session.completed_at is not None

    def test_only_answered_modalities_are_scored(self, session_store):
        session = start_session(session_store, TestType.ALL)
        answer(session_store, session.session_id, Modality.NUMBER, [("1", RED)] * 3)
        answer(
            session_store,
            session.session_id,
            Modality.SOUND,
            [("bell", [RED, TEAL])] * 5,
        )

        report = complete_session(session_store, session.session_id)

        assert list(report.per_modality) == [Modality.NUMBER, Modality.SOUND]
        assert report.per_modality[Modality.NUMBER].score == 0
        # Each bell answer splits evenly between two colors
        assert report.per_modality[Modality.SOUND].score == 50
        assert report.overall.score == 50
        assert report.scores == {"number": 0, "sound": 50, "overall": 50}

    def test_no_responses(self, session_store):
        session = start_session(session_store, TestType.ALL)

        report = complete_session(session_store, session.session_id)

        assert report.per_modality == {}
        assert report.overall.score == 0
        assert report.scores == {"overall": 0}
        assert session_store.get_session(session.session_id).is_completed

    def test_unknown_session(self, session_store):
        with pytest.raises(SessionNotFoundError):
            complete_session(session_store, "missing")

    def test_unknown_sessions_leave_no_locks(self, session_store):
        for i in range(20):
            with pytest.raises(SessionNotFoundError):
                complete_session(session_store, f"unknown-{i}")
            with pytest.raises(SessionNotFoundError):
                record_response(
                    session_store, f"unknown-{i}", Modality.GRAPHEME, "A", RED, 1
                )

        assert session_store._session_locks == {}

    def test_unknown_session_never_takes_lock(self, memory_store):
        with patch.object(memory_store, "session_lock") as session_lock:
            with pytest.raises(SessionNotFoundError):
                complete_session(memory_store, "missing")

        session_lock.assert_not_called()

    def test_second_completion_does_not_rescore(self, session_store):
        session = start_session(session_store, TestType.ALL)
        answer(session_store, session.session_id, Modality.GRAPHEME, [("A", RED)] * 5)
        first = complete_session(session_store, session.session_id)

        with patch.object(
            session_store, "update_session", wraps=session_store.update_session
        ) as update:
            second = complete_session(session_store, session.session_id)

        update.assert_not_called()
        assert second.session.scores == first.session.scores
        assert second.session.completed_at == first.session.completed_at
        assert second.scores == first.scores

    def test_custom_minimum(self, session_store):
        session = start_session(session_store, TestType.GRAPHEME)
        answer(session_store, session.session_id, Modality.GRAPHEME, [("A", RED)] * 2)

        report = complete_session(session_store, session.session_id, min_responses=2)

        assert report.overall.score == 100

    def test_custom_scorer(self, session_store):
        class FixedScorer:
            def score(self, responses):
                return ScoreResult(
                    score=42,
                    confidence=ConfidenceLevel.LOW,
                    interpretation="fixed",
                    dominant_colors=(),
                )

        session = start_session(session_store, TestType.GRAPHEME)
        answer(session_store, session.session_id, Modality.GRAPHEME, [("A", RED)])

        report = complete_session(
            session_store, session.session_id, scorer=FixedScorer()
        )

        assert report.scores == {"grapheme": 42, "overall": 42}

    def test_concurrent_completion_scores_once(self, memory_store):
        session = start_session(memory_store, TestType.ALL)
        answer(memory_store, session.session_id, Modality.GRAPHEME, [("A", RED)] * 5)
        calls = []
        original = memory_store.update_session

        def counting_update(*args, **kwargs):
            calls.append(args)
            return original(*args, **kwargs)

        memory_store.update_session = counting_update
        threads = [
            threading.Thread(
                target=complete_session, args=(memory_store, session.session_id)
            )
            for _ in range(5)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        assert len(calls) == 1


class TestSessionReport:
    def test_results_require_completion(self, session_store):
        session = start_session(session_store, TestType.ALL)

        with pytest.raises(SessionNotCompletedError):
            get_session_report(session_store, session.session_id)

    def test_results_unknown_session(self, session_store):
        with pytest.raises(SessionNotFoundError):
            get_session_report(session_store, "missing")

    def test_report_reproduces_stored_scores(self, session_store):
        session = start_session(session_store, TestType.ALL)
        answer(
            session_store,
            session.session_id,
            Modality.GRAPHEME,
            [("A", RED), ("A", TEAL), ("B", RED), ("B", RED), ("C", TEAL)],
        )
        completed = complete_session(session_store, session.session_id)

        report = get_session_report(session_store, session.session_id)

        assert report.scores == completed.session.scores
        assert report.recommendations == completed.recommendations

    def test_stored_scores_survive_a_changed_minimum(self, session_store):
        session = start_session(session_store, TestType.ALL)
        answer(session_store, session.session_id, Modality.GRAPHEME, [("A", RED)] * 5)
        complete_session(session_store, session.session_id)

        report = get_session_report(
            session_store, session.session_id, min_responses=10
        )
        repeat = complete_session(session_store, session.session_id, min_responses=10)

        # The rebuilt results fall below the new minimum
        assert report.per_modality[Modality.GRAPHEME].score == 0
        assert report.scores == {"grapheme": 100, "overall": 100}
        assert repeat.scores == {"grapheme": 100, "overall": 100}

    def test_build_report_ignores_modalities_outside_test(self, memory_store):
        from tests.conftest import make_response

        session = memory_store.create_session(TestType.NUMBER)
        responses = [
            make_response("A", RED, session_id=session.session_id)
            for _ in range(5)
        ]

        report = build_report(session, responses)

        assert report.per_modality == {}
        assert report.response_count == 5


class TestStats:
    def test_empty_store(self, session_store):
        stats = get_test_stats(session_store)

        assert stats.total_sessions == 0
        assert stats.completed_sessions == 0
        assert stats.average_scores == {}

    def test_averages_skip_zero_scores(self, session_store):
        strong = start_session(session_store, TestType.ALL)
        answer(session_store, strong.session_id, Modality.GRAPHEME, [("A", RED)] * 5)
        complete_session(session_store, strong.session_id)

        split = start_session(session_store, TestType.ALL)
        answer(
            session_store,
            split.session_id,
            Modality.GRAPHEME,
            [("A", RED), ("A", TEAL)] * 3,
        )
        answer(session_store, split.session_id, Modality.NUMBER, [("1", RED)] * 2)
        complete_session(session_store, split.session_id)

        start_session(session_store, TestType.SOUND)

        stats = get_test_stats(session_store)

        assert stats.total_sessions == 3
        assert stats.completed_sessions == 2
        assert stats.average_scores["grapheme"] == pytest.approx(75.0)
        assert stats.average_scores["overall"] == pytest.approx(75.0)
        # The only number score is 0
        assert "number" not in stats.average_scores
        assert "sound" not in stats.average_scores
