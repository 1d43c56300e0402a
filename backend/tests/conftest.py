"""
Pytest configuration and shared fixtures for testing.
"""
import sys
from pathlib import Path

# Add project root to path so libs/ is importable (matches CI PYTHONPATH config)
# This must happen before importing from app/ which may import from libs/
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from contextlib import asynccontextmanager  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Iterable, List, Optional, Sequence, Union  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from libs.domain_types import Modality  # noqa: E402

from app.core.records import ResponseRecord, resolve_color_response  # noqa: E402
from app.main import app  # noqa: E402
from app.models import create_db_engine  # noqa: E402
from app.storage import DatabaseSessionStore, InMemorySessionStore  # noqa: E402

# Fixed base instant so record timestamps are deterministic
BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests.

    Keeps the production shutdown hook from disposing stores that a test
    still holds.
    """
    yield


# Neutralize the production lifespan on the singleton app.
app.router.lifespan_context = _test_lifespan


def create_test_application(session_store=None):
    """Create the production app with the lifespan disabled.

    Returns the full app (all routes, middleware, exception handlers)
    serving from ``session_store``, or from a fresh in-memory store.
    """
    from app.main import create_application

    test_app = create_application(
        session_store=session_store
        if session_store is not None
        else InMemorySessionStore()
    )
    test_app.router.lifespan_context = _test_lifespan
    return test_app


def make_response(
    stimulus: str,
    color: Union[str, Sequence[str]],
    modality: Modality = Modality.GRAPHEME,
    session_id: str = "session-1",
    response_time_ms: int = 1200,
    attempt: int = 1,
    offset_seconds: int = 0,
) -> ResponseRecord:
    """Build a ResponseRecord, resolving the raw color value by modality."""
    raw = list(color) if not isinstance(color, str) else color
    return ResponseRecord(
        session_id=session_id,
        modality=modality,
        stimulus=stimulus,
        response=resolve_color_response(modality, raw),
        response_time_ms=response_time_ms,
        timestamp=BASE_TIME + timedelta(seconds=offset_seconds),
        attempt=attempt,
    )


def make_responses(
    pairs: Iterable[tuple],
    modality: Modality = Modality.GRAPHEME,
    session_id: str = "session-1",
) -> List[ResponseRecord]:
    """Build records from (stimulus, color) pairs in order."""
    return [
        make_response(
            stimulus,
            color,
            modality=modality,
            session_id=session_id,
            offset_seconds=i,
        )
        for i, (stimulus, color) in enumerate(pairs)
    ]


@pytest.fixture
def memory_store():
    """A fresh in-memory store for each test."""
    return InMemorySessionStore()


@pytest.fixture
def db_store():
    """A database store on a private in-memory SQLite database."""
    store = DatabaseSessionStore(create_db_engine("sqlite://"))
    try:
        yield store
    finally:
        store.close()


@pytest.fixture(params=["memory", "database"])
def session_store(request):
    """Each store backend in turn."""
    if request.param == "memory":
        yield InMemorySessionStore()
        return

    store = DatabaseSessionStore(create_db_engine("sqlite://"))
    try:
        yield store
    finally:
        store.close()


@pytest.fixture
def test_app(memory_store):
    """Application serving from the per-test in-memory store."""
    return create_test_application(memory_store)


@pytest.fixture
def client(test_app):
    """Test client over a fresh application and store."""
    with TestClient(test_app) as test_client:
        yield test_client


def submit(
    client: TestClient,
    session_id: str,
    modality: str,
    stimulus: str,
    response: Union[str, List[str]],
    response_time_ms: int = 1000,
    attempt: Optional[int] = None,
):
    """POST one response through the API."""
    payload = {
        "session_id": session_id,
        "modality": modality,
        "stimulus": stimulus,
        "response": response,
        "response_time_ms": response_time_ms,
    }
    if attempt is not None:
        payload["attempt"] = attempt
    return client.post("/v1/test-response", json=payload)
