"""
Pydantic schemas for request/response validation.
"""
from .test_sessions import (
    TestSessionCreate,
    TestSessionResponse,
    ScoreResultSchema,
    SessionReportResponse,
    TestStatsResponse,
)
from .responses import (
    TestResponseCreate,
    TestResponseRead,
)
from .test_config import (
    StimulusSchema,
    ModalityConfigSchema,
    TestConfigResponse,
)

__all__ = [
    "TestSessionCreate",
    "TestSessionResponse",
    "ScoreResultSchema",
    "SessionReportResponse",
    "TestStatsResponse",
    "TestResponseCreate",
    "TestResponseRead",
    "StimulusSchema",
    "ModalityConfigSchema",
    "TestConfigResponse",
]
