"""
Pydantic schemas for response submission endpoints.
"""
from pydantic import BaseModel, Field, field_validator
from typing import List, Union
from datetime import datetime

from libs.domain_types import Modality


class TestResponseCreate(BaseModel):
    """
    Schema for submitting one stimulus -> color response.

    ``response`` is a single color string for grapheme and number stimuli
    and a list of colors (possibly empty) for sound stimuli. The shape is
    checked against the modality when the response is recorded.
    """

    session_id: str = Field(..., min_length=1, description="Target session ID")
    modality: Modality = Field(..., description="Modality of the stimulus")
    stimulus: str = Field(..., min_length=1, description="Stimulus identifier")
    response: Union[str, List[str]] = Field(
        ..., description="Selected color, or colors for sound stimuli"
    )
    response_time_ms: int = Field(
        ..., ge=0, description="Time taken to answer, in milliseconds"
    )
    attempt: int = Field(1, ge=1, description="Retest ordinal, starting at 1")

    @field_validator("stimulus")
    @classmethod
    def strip_stimulus(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Stimulus cannot be blank")
        return stripped


class TestResponseRead(BaseModel):
    """Schema for a stored response."""

    session_id: str
    modality: Modality
    stimulus: str
    response: Union[str, List[str]]
    response_time_ms: int
    attempt: int
    timestamp: datetime
