"""
Storage backends for screening sessions and their responses.

Provides an abstract interface and two implementations:

- ``InMemorySessionStore``: process-local, thread-safe, volatile
- ``DatabaseSessionStore``: SQLAlchemy-backed, durable for file or server URLs

Stores are plain objects; the application builds one at startup and keeps it
on ``app.state`` so tests can instantiate isolated stores per test case.
"""
import logging
import secrets
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Generator, Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as OrmSession

from libs.domain_types import Modality, TestType

from app.core.datetime_utils import ensure_timezone_aware, utc_now
from app.core.records import (
    ResponseRecord,
    SessionRecord,
    resolve_color_response,
)
from app.models import Base, TestResponse, TestSession, create_session_factory

logger = logging.getLogger(__name__)

# Sentinel distinguishing "leave unchanged" from an explicit None
_UNSET = object()


class SessionStoreError(Exception):
    """Raised when the store cannot complete an operation.

    Attributes:
        operation_name: Human-readable name of the operation that failed
        original_error: The underlying exception that caused the failure
    """

    def __init__(self, operation_name: str, original_error: Exception):
        self.operation_name = operation_name
        self.original_error = original_error
        super().__init__(f"Failed to {operation_name}: {original_error}")


class SessionNotFoundError(LookupError):
    """Raised when an operation requires a session that does not exist."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


def generate_session_id() -> str:
    """Generate a fresh, URL-safe opaque session identifier."""
    return secrets.token_urlsafe(16)


class _SessionLock:
    """Re-entrant lock for one session plus the count of callers using it."""

    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self.holders = 0


class SessionStore(ABC):
    """
    Abstract storage interface for sessions and responses.

    Responses are append-only and never rejected as duplicates: the same
    (session, modality, stimulus) may be answered on several retest attempts.
    """

    def __init__(self) -> None:
        self._locks_guard = threading.Lock()
        self._session_locks: Dict[str, _SessionLock] = {}

    @abstractmethod
    def create_session(self, test_type: TestType) -> SessionRecord:
        """
        Allocate a new session.

        Args:
            test_type: Requested test type

        Returns:
            The new session, without scores or completion time
        """
        pass

    @abstractmethod
    def get_session(self, session_id: str) -> Optional[SessionRecord]:
        """
        Get a session by ID.

        Returns:
            The session, or None if it does not exist
        """
        pass

    @abstractmethod
    def update_session(
        self,
        session_id: str,
        *,
        scores=_UNSET,
        completed_at=_UNSET,
    ) -> Optional[SessionRecord]:
        """
        Merge fields into an existing session.

        Args:
            session_id: Session to update
            scores: New scores mapping (left unchanged when omitted)
            completed_at: Completion instant (left unchanged when omitted)

        Returns:
            The updated session, or None if it does not exist
        """
        pass

    @abstractmethod
    def add_response(self, record: ResponseRecord) -> ResponseRecord:
        """
        Append a response.

        Returns:
            The stored record
        """
        pass

    @abstractmethod
    def get_responses(
        self, session_id: str, modality: Optional[Modality] = None
    ) -> List[ResponseRecord]:
        """
        Get a session's responses in submission order.

        Args:
            session_id: Session whose responses to fetch
            modality: Optional modality filter

        Returns:
            Matching response records (empty for unknown sessions)
        """
        pass

    @abstractmethod
    def list_sessions(self) -> List[SessionRecord]:
        """Return every stored session in creation order."""
        pass

    @contextmanager
    def session_lock(self, session_id: str) -> Iterator[None]:
        """
        Serialize work on a single session within this process.

        Completion holds this lock across read-score-write so a session is
        scored exactly once from a stable response set. A session's lock
        lives only while some caller holds or waits on it.
        """
        with self._locks_guard:
            entry = self._session_locks.get(session_id)
            if entry is None:
                entry = self._session_locks[session_id] = _SessionLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._session_locks[session_id]


class InMemorySessionStore(SessionStore):
    """
    In-memory session store.

    Thread-safe with a re-entrant lock around all state. Data is lost on
    process restart.
    """

    def __init__(self) -> None:
        super().__init__()
        self._sessions: Dict[str, SessionRecord] = {}
        self._responses: List[ResponseRecord] = []
        self._lock = threading.RLock()

    def create_session(self, test_type: TestType) -> SessionRecord:
        with self._lock:
            session_id = generate_session_id()
            while session_id in self._sessions:
                session_id = generate_session_id()

            session = SessionRecord(
                session_id=session_id,
                test_type=TestType(test_type),
                created_at=utc_now(),
            )
            self._sessions[session_id] = session
            return session

    def get_session(self, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            return self._sessions.get(session_id)

    def update_session(
        self,
        session_id: str,
        *,
        scores=_UNSET,
        completed_at=_UNSET,
    ) -> Optional[SessionRecord]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None

            changes = {}
            if scores is not _UNSET:
                changes["scores"] = dict(scores) if scores is not None else None
            if completed_at is not _UNSET:
                changes["completed_at"] = completed_at

            updated = replace(session, **changes)
            self._sessions[session_id] = updated
            return updated

    def add_response(self, record: ResponseRecord) -> ResponseRecord:
        with self._lock:
            self._responses.append(record)
            return record

    def get_responses(
        self, session_id: str, modality: Optional[Modality] = None
    ) -> List[ResponseRecord]:
        wanted = Modality(modality) if modality is not None else None
        with self._lock:
            return [
                r
                for r in self._responses
                if r.session_id == session_id
                and (wanted is None or r.modality == wanted)
            ]

    def list_sessions(self) -> List[SessionRecord]:
        with self._lock:
            return list(self._sessions.values())


class DatabaseSessionStore(SessionStore):
    """
    SQLAlchemy-backed session store.

    Every operation runs in its own ORM session and commits before
    returning. SQLAlchemy errors are rolled back and re-raised as
    SessionStoreError; the store performs no retries.

    Note: ``session_lock`` serializes completion within one process only.
    Multi-process deployments completing the same session concurrently
    need a database-level lock.
    """

    def __init__(self, engine: Engine, create_tables: bool = True):
        """
        Initialize the database store.

        Args:
            engine: Engine to bind to (see app.models.create_db_engine)
            create_tables: Create missing tables on startup
        """
        super().__init__()
        self._engine = engine
        self._session_factory = create_session_factory(engine)
        if create_tables:
            Base.metadata.create_all(bind=engine)

    @contextmanager
    def _db_operation(self, operation_name: str) -> Generator[OrmSession, None, None]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error during {operation_name}: {e}")
            raise SessionStoreError(operation_name, e) from e
        finally:
            db.close()

    @staticmethod
    def _to_session_record(row: TestSession) -> SessionRecord:
        return SessionRecord(
            session_id=row.session_id,
            test_type=TestType(row.test_type),
            created_at=ensure_timezone_aware(row.created_at),
            scores=dict(row.scores) if row.scores is not None else None,
            completed_at=ensure_timezone_aware(row.completed_at),
        )

    @staticmethod
    def _to_response_record(row: TestResponse) -> ResponseRecord:
        modality = Modality(row.modality)
        return ResponseRecord(
            session_id=row.session_id,
            modality=modality,
            stimulus=row.stimulus,
            response=resolve_color_response(modality, row.response),
            response_time_ms=row.response_time_ms,
            timestamp=ensure_timezone_aware(row.submitted_at),
            attempt=row.attempt,
        )

    def _find_session(self, db: OrmSession, session_id: str) -> Optional[TestSession]:
        return db.execute(
            select(TestSession).where(TestSession.session_id == session_id)
        ).scalar_one_or_none()

    def create_session(self, test_type: TestType) -> SessionRecord:
        with self._db_operation("create session") as db:
            session_id = generate_session_id()
            while self._find_session(db, session_id) is not None:
                session_id = generate_session_id()

            row = TestSession(
                session_id=session_id,
                test_type=TestType(test_type),
                created_at=utc_now(),
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return self._to_session_record(row)

    def get_session(self, session_id: str) -> Optional[SessionRecord]:
        with self._db_operation("get session") as db:
            row = self._find_session(db, session_id)
            return self._to_session_record(row) if row is not None else None

    def update_session(
        self,
        session_id: str,
        *,
        scores=_UNSET,
        completed_at=_UNSET,
    ) -> Optional[SessionRecord]:
        with self._db_operation("update session") as db:
            row = self._find_session(db, session_id)
            if row is None:
                return None

            if scores is not _UNSET:
                row.scores = dict(scores) if scores is not None else None
            if completed_at is not _UNSET:
                row.completed_at = completed_at

            db.commit()
            db.refresh(row)
            return self._to_session_record(row)

    def add_response(self, record: ResponseRecord) -> ResponseRecord:
        with self._db_operation("add response") as db:
            db.add(
                TestResponse(
                    session_id=record.session_id,
                    modality=record.modality,
                    stimulus=record.stimulus,
                    response=record.response.to_raw(),
                    response_time_ms=record.response_time_ms,
                    attempt=record.attempt,
                    submitted_at=record.timestamp,
                )
            )
            db.commit()
            return record

    def get_responses(
        self, session_id: str, modality: Optional[Modality] = None
    ) -> List[ResponseRecord]:
        with self._db_operation("get responses") as db:
            query = select(TestResponse).where(TestResponse.session_id == session_id)
            if modality is not None:
                query = query.where(TestResponse.modality == Modality(modality))
            rows = db.execute(query.order_by(TestResponse.id)).scalars().all()
            return [self._to_response_record(row) for row in rows]

    def list_sessions(self) -> List[SessionRecord]:
        with self._db_operation("list sessions") as db:
            rows = db.execute(select(TestSession).order_by(TestSession.id)).scalars()
            return [self._to_session_record(row) for row in rows]

    def close(self) -> None:
        """Dispose of the engine's connection pool."""
        self._engine.dispose()
