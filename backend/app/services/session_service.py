"""
Session workflows: recording responses, completing and scoring sessions,
and computing aggregate statistics.

Functions here take the store as an argument; the API resolves it from
``app.state`` and passes it in.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from libs.domain_types import Modality, TestType

from app.core.aggregation import aggregate_scores
from app.core.analytics import AnalyticsTracker
from app.core.config import settings
from app.core.datetime_utils import utc_now
from app.core.graceful_failure import graceful_failure
from app.core.recommendations import generate_recommendations
from app.core.records import (
    ResponseRecord,
    SessionRecord,
    filter_by_modality,
    resolve_color_response,
)
from app.core.scoring import (
    ConsistencyScoring,
    ModeRatioConsistencyScoring,
    ScoreResult,
)
from app.core.stimuli import is_known_stimulus
from app.storage import SessionNotFoundError, SessionStore

logger = logging.getLogger(__name__)

OVERALL_SCORE_KEY = "overall"

# Keys reported by get_test_stats, in output order
STATS_SCORE_KEYS = (
    Modality.GRAPHEME.value,
    Modality.NUMBER.value,
    Modality.SOUND.value,
    OVERALL_SCORE_KEY,
)


class SessionAlreadyCompletedError(Exception):
    """Raised when a completed session receives a new response."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} is already completed")


class SessionNotCompletedError(Exception):
    """Raised when results are requested for a session still in progress."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} is not completed")


class ModalityNotInTestError(ValueError):
    """Raised when a response targets a modality outside the session's test type."""

    def __init__(self, modality: Modality, test_type: TestType):
        self.modality = modality
        self.test_type = test_type
        super().__init__(
            f"Modality {modality.value} is not part of test type {test_type.value}"
        )


class UnknownStimulusError(ValueError):
    """Raised when a stimulus is not in the modality's catalog."""

    def __init__(self, modality: Modality, stimulus: str):
        self.modality = modality
        self.stimulus = stimulus
        super().__init__(f"Unknown stimulus {stimulus!r} for {modality.value}")


@dataclass
class SessionReport:
    """Scored view of a completed session."""

    session: SessionRecord
    per_modality: Dict[Modality, ScoreResult]
    overall: ScoreResult
    recommendations: List[str]
    response_count: int = 0

    @property
    def scores(self) -> Dict[str, int]:
        """
        Scores in storage form: modality tags plus ``overall``.

        Once the session is completed its stored scores are authoritative.
        Results rebuilt later under a different minimum-response setting
        may differ from them; the stored mapping is returned regardless.
        """
        if self.session.is_completed and self.session.scores is not None:
            return dict(self.session.scores)
        scores = {m.value: r.score for m, r in self.per_modality.items()}
        scores[OVERALL_SCORE_KEY] = self.overall.score
        return scores


@dataclass
class SessionStats:
    """Aggregate counts and average scores over all stored sessions."""

    total_sessions: int
    completed_sessions: int
    average_scores: Dict[str, float] = field(default_factory=dict)


def _require_session(store: SessionStore, session_id: str) -> SessionRecord:
    session = store.get_session(session_id)
    if session is None:
        raise SessionNotFoundError(session_id)
    return session


def start_session(
    store: SessionStore, test_type: TestType = TestType.ALL
) -> SessionRecord:
    """Create a session and emit the creation event."""
    session = store.create_session(TestType(test_type))
    logger.info(
        f"Created {session.test_type.value} session {session.session_id}",
        extra={
            "session_id": session.session_id,
            "test_type": session.test_type.value,
        },
    )

    with graceful_failure(
        "track session creation", logger, context={"session_id": session.session_id}
    ):
        AnalyticsTracker.track_session_created(
            session.session_id, session.test_type.value
        )

    return session


def record_response(
    store: SessionStore,
    session_id: str,
    modality: Modality,
    stimulus: str,
    raw_response: Any,
    response_time_ms: int,
    attempt: int = 1,
    timestamp: Optional[datetime] = None,
) -> ResponseRecord:
    """
    Validate and append one response to an in-progress session.

    Args:
        store: Session store
        session_id: Target session
        modality: Modality of the stimulus
        stimulus: Stimulus identifier from the catalog
        raw_response: Wire value, a color string or a list of colors for sound
        response_time_ms: Time to answer in milliseconds
        attempt: Retest ordinal
        timestamp: Submission instant (defaults to now)

    Returns:
        The stored ResponseRecord

    Raises:
        SessionNotFoundError: Session does not exist
        SessionAlreadyCompletedError: Session has been completed
        ModalityNotInTestError: Modality is not administered by the session
        UnknownStimulusError: Stimulus is not in the catalog
        MalformedResponseError: Response shape does not fit the modality
    """
    modality = Modality(modality)
    _require_session(store, session_id)

    with store.session_lock(session_id):
        session = _require_session(store, session_id)
        if session.is_completed:
            raise SessionAlreadyCompletedError(session_id)
        if modality not in session.modalities:
            raise ModalityNotInTestError(modality, session.test_type)
        if not is_known_stimulus(modality, stimulus):
            raise UnknownStimulusError(modality, stimulus)

        record = ResponseRecord(
            session_id=session_id,
            modality=modality,
            stimulus=stimulus,
            response=resolve_color_response(modality, raw_response),
            response_time_ms=response_time_ms,
            timestamp=timestamp or utc_now(),
            attempt=attempt,
        )
        stored = store.add_response(record)

    with graceful_failure(
        "track response", logger, context={"session_id": session_id}
    ):
        AnalyticsTracker.track_response_recorded(
            session_id, modality.value, stimulus, response_time_ms
        )

    return stored


def build_report(
    session: SessionRecord,
    responses: List[ResponseRecord],
    min_responses: Optional[int] = None,
    scorer: Optional[ConsistencyScoring] = None,
) -> SessionReport:
    """
    Score a session's responses without touching the store.

    Only modalities of the session's test type that received at least one
    response are scored; the rest are absent from ``per_modality``.

    Args:
        session: Session being scored
        responses: All of the session's responses, in submission order
        min_responses: Per-modality minimum (defaults to settings)
        scorer: Scoring strategy (defaults to ModeRatioConsistencyScoring)

    Returns:
        SessionReport with per-modality results, overall result and
        recommendations
    """
    if scorer is None:
        if min_responses is None:
            min_responses = settings.MIN_RESPONSES_PER_MODALITY
        scorer = ModeRatioConsistencyScoring(min_responses=min_responses)

    per_modality: Dict[Modality, ScoreResult] = {}
    for modality in session.modalities:
        modality_responses = filter_by_modality(responses, modality)
        if modality_responses:
            per_modality[modality] = scorer.score(modality_responses)

    overall = aggregate_scores(per_modality)

    return SessionReport(
        session=session,
        per_modality=per_modality,
        overall=overall,
        recommendations=generate_recommendations(overall, per_modality),
        response_count=len(responses),
    )


def complete_session(
    store: SessionStore,
    session_id: str,
    min_responses: Optional[int] = None,
    scorer: Optional[ConsistencyScoring] = None,
) -> SessionReport:
    """
    Score a session and persist its scores and completion time.

    Runs under the store's per-session lock. A session already completed
    is not rescored; its stored scores are kept and the report is
    recomputed from the stored responses.

    Raises:
        SessionNotFoundError: Session does not exist
        SessionStoreError: The store failed
    """
    _require_session(store, session_id)

    with store.session_lock(session_id):
        session = _require_session(store, session_id)

        responses = store.get_responses(session_id)
        report = build_report(session, responses, min_responses, scorer)

        if session.is_completed:
            logger.info(
                f"Session {session_id} already completed; returning stored scores",
                extra={"session_id": session_id},
            )
            return report

        updated = store.update_session(
            session_id, scores=report.scores, completed_at=utc_now()
        )
        if updated is None:
            raise SessionNotFoundError(session_id)
        report.session = updated

    logger.info(
        f"Completed session {session_id}: overall={report.overall.score} "
        f"({report.overall.confidence.value}) from {len(responses)} responses",
        extra={
            "session_id": session_id,
            "overall_score": report.overall.score,
            "confidence": report.overall.confidence.value,
            "response_count": report.response_count,
        },
    )

    with graceful_failure(
        "track session completion", logger, context={"session_id": session_id}
    ):
        AnalyticsTracker.track_session_completed(
            session_id, report.scores, report.response_count
        )

    return report


def get_session_report(
    store: SessionStore,
    session_id: str,
    min_responses: Optional[int] = None,
    scorer: Optional[ConsistencyScoring] = None,
) -> SessionReport:
    """
    Rebuild the report of a completed session.

    Raises:
        SessionNotFoundError: Session does not exist
        SessionNotCompletedError: Session has not been completed yet
    """
    session = _require_session(store, session_id)
    if not session.is_completed:
        raise SessionNotCompletedError(session_id)

    return build_report(
        session, store.get_responses(session_id), min_responses, scorer
    )


def get_test_stats(store: SessionStore) -> SessionStats:
    """
    Count sessions and average the stored scores.

    Averages include only non-zero scores, so a modality that was never
    answered does not pull its average down. Keys with no non-zero score
    are omitted.
    """
    sessions = store.list_sessions()
    completed = [s for s in sessions if s.is_completed]

    average_scores: Dict[str, float] = {}
    scored = [s.scores for s in sessions if s.scores]
    for key in STATS_SCORE_KEYS:
        values = [scores[key] for scores in scored if scores.get(key)]
        if values:
            average_scores[key] = math.fsum(values) / len(values)

    return SessionStats(
        total_sessions=len(sessions),
        completed_sessions=len(completed),
        average_scores=average_scores,
    )
