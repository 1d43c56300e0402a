"""
Test session management, response submission and results endpoints.
"""
import logging
import uuid
from typing import NoReturn, Optional

from fastapi import APIRouter, Depends

from libs.domain_types import TestType

from app.api.v1._dependencies import get_session_store
from app.core.config import settings
from app.core.error_responses import (
    ErrorMessages,
    raise_bad_request,
    raise_not_found,
    raise_server_error,
    raise_unprocessable_entity,
)
from app.core.records import MalformedResponseError, ResponseRecord
from app.core.recommendations import split_recommendations
from app.core.scoring import ScoreResult
from app.core.stimuli import STIMULUS_CATALOG
from app.schemas.responses import TestResponseCreate, TestResponseRead
from app.schemas.test_config import (
    ModalityConfigSchema,
    StimulusSchema,
    TestConfigResponse,
)
from app.schemas.test_sessions import (
    ScoreResultSchema,
    SessionReportResponse,
    TestSessionCreate,
    TestSessionResponse,
    TestStatsResponse,
)
from app.services import (
    ModalityNotInTestError,
    SessionAlreadyCompletedError,
    SessionNotCompletedError,
    SessionReport,
    UnknownStimulusError,
    complete_session,
    get_session_report,
    get_test_stats,
    record_response,
    start_session,
)
from app.storage import SessionNotFoundError, SessionStore, SessionStoreError

router = APIRouter()
logger = logging.getLogger(__name__)


def score_result_to_schema(result: ScoreResult) -> ScoreResultSchema:
    return ScoreResultSchema(
        score=result.score,
        confidence=result.confidence,
        interpretation=result.interpretation,
        dominant_colors=list(result.dominant_colors),
    )


def report_to_response(report: SessionReport) -> SessionReportResponse:
    """
    Convert a SessionReport into its API representation.

    Recommendations are split at RECOMMENDATION_PREVIEW_COUNT; the two
    lists concatenate to the full rule-ordered list.
    """
    shown, additional = split_recommendations(
        report.recommendations, settings.RECOMMENDATION_PREVIEW_COUNT
    )
    return SessionReportResponse(
        session=TestSessionResponse.model_validate(report.session),
        results={
            modality.value: score_result_to_schema(result)
            for modality, result in report.per_modality.items()
        },
        overall=score_result_to_schema(report.overall),
        recommendations=shown,
        additional_recommendations=additional,
        response_count=report.response_count,
    )


def response_record_to_schema(record: ResponseRecord) -> TestResponseRead:
    return TestResponseRead(
        session_id=record.session_id,
        modality=record.modality,
        stimulus=record.stimulus,
        response=record.response.to_raw(),
        response_time_ms=record.response_time_ms,
        attempt=record.attempt,
        timestamp=record.timestamp,
    )


def _raise_store_failure(operation: str, error: SessionStoreError) -> NoReturn:
    error_id = str(uuid.uuid4())
    logger.error(
        f"Session store failure during {operation} [error_id={error_id}]: {error}",
        extra={"error_id": error_id},
    )
    raise_server_error(
        ErrorMessages.database_operation_failed(operation), error_id=error_id
    )


@router.get("/test-config", response_model=TestConfigResponse)
async def get_test_config():
    """
    Get the stimulus catalog: stimuli and candidate colors per modality.
    """
    return TestConfigResponse(
        **{
            modality.value: ModalityConfigSchema(
                items=[
                    StimulusSchema(id=s.id, name=s.name, audio_url=s.audio_url)
                    for s in catalog.stimuli
                ],
                colors=list(catalog.colors),
            )
            for modality, catalog in STIMULUS_CATALOG.items()
        }
    )


@router.post("/test-session", response_model=TestSessionResponse)
def create_test_session(
    payload: Optional[TestSessionCreate] = None,
    store: SessionStore = Depends(get_session_store),
):
    """
    Start a new screening session.

    The body is optional; ``test_type`` defaults to ``all``.
    """
    try:
        test_type = payload.test_type if payload is not None else TestType.ALL
        session = start_session(store, test_type)
    except SessionStoreError as e:
        _raise_store_failure("create test session", e)

    return TestSessionResponse.model_validate(session)


@router.get("/test-session/{session_id}", response_model=TestSessionResponse)
def get_test_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
):
    """
    Get a session by ID.

    Raises:
        404: Session not found
    """
    try:
        session = store.get_session(session_id)
    except SessionStoreError as e:
        _raise_store_failure("get test session", e)

    if session is None:
        raise_not_found(ErrorMessages.TEST_SESSION_NOT_FOUND)

    return TestSessionResponse.model_validate(session)


@router.post("/test-response", response_model=TestResponseRead)
def submit_test_response(
    payload: TestResponseCreate,
    store: SessionStore = Depends(get_session_store),
):
    """
    Record one stimulus -> color response.

    Repeated answers for the same stimulus are accepted and all count
    toward the consistency score.

    Raises:
        404: Session not found
        400: Session completed, modality not in the test, or unknown stimulus
        422: Response shape does not match the modality
    """
    try:
        record = record_response(
            store,
            session_id=payload.session_id,
            modality=payload.modality,
            stimulus=payload.stimulus,
            raw_response=payload.response,
            response_time_ms=payload.response_time_ms,
            attempt=payload.attempt,
        )
    except SessionNotFoundError:
        raise_not_found(ErrorMessages.TEST_SESSION_NOT_FOUND)
    except SessionAlreadyCompletedError:
        raise_bad_request(ErrorMessages.SESSION_ALREADY_COMPLETED)
    except ModalityNotInTestError as e:
        raise_bad_request(
            ErrorMessages.modality_not_in_test(e.modality.value, e.test_type.value)
        )
    except UnknownStimulusError as e:
        raise_bad_request(ErrorMessages.unknown_stimulus(e.modality.value, e.stimulus))
    except MalformedResponseError as e:
        raise_unprocessable_entity(str(e))
    except SessionStoreError as e:
        _raise_store_failure("save test response", e)

    return response_record_to_schema(record)


@router.post(
    "/test-session/{session_id}/complete", response_model=SessionReportResponse
)
def complete_test_session(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
):
    """
    Score the session and mark it completed.

    Completing an already completed session returns the stored scores
    without rescoring.

    Raises:
        404: Session not found
    """
    try:
        report = complete_session(store, session_id)
    except SessionNotFoundError:
        raise_not_found(ErrorMessages.TEST_SESSION_NOT_FOUND)
    except SessionStoreError as e:
        _raise_store_failure("complete test session", e)

    return report_to_response(report)


@router.get(
    "/test-session/{session_id}/results", response_model=SessionReportResponse
)
def get_test_results(
    session_id: str,
    store: SessionStore = Depends(get_session_store),
):
    """
    Get the scored report of a completed session.

    Raises:
        404: Session not found
        400: Session not completed yet
    """
    try:
        report = get_session_report(store, session_id)
    except SessionNotFoundError:
        raise_not_found(ErrorMessages.TEST_SESSION_NOT_FOUND)
    except SessionNotCompletedError:
        raise_bad_request(ErrorMessages.SESSION_NOT_COMPLETED)
    except SessionStoreError as e:
        _raise_store_failure("get test results", e)

    return report_to_response(report)


@router.get("/test-stats", response_model=TestStatsResponse)
def get_stats(store: SessionStore = Depends(get_session_store)):
    """
    Get session counts and average scores across all sessions.
    """
    try:
        stats = get_test_stats(store)
    except SessionStoreError as e:
        _raise_store_failure("get test statistics", e)

    return TestStatsResponse(
        total_sessions=stats.total_sessions,
        completed_sessions=stats.completed_sessions,
        average_scores=stats.average_scores,
    )
