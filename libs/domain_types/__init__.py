"""Shared domain types for the synesthesia screening service.

This package is the single source of truth for the domain enums used by the
scoring core, the session store, and (via OpenAPI) the web client.

Usage:
    from libs.domain_types import Modality, TestType, ConfidenceLevel
"""

import enum


class Modality(str, enum.Enum):
    """Stimulus modalities administered by the screening test."""

    GRAPHEME = "grapheme"
    NUMBER = "number"
    SOUND = "sound"


class TestType(str, enum.Enum):
    """Test type requested when a session is created.

    ``ALL`` requests sequential administration of every modality.
    """

    GRAPHEME = "grapheme"
    NUMBER = "number"
    SOUND = "sound"
    ALL = "all"

    @property
    def modalities(self) -> tuple["Modality", ...]:
        """Modalities administered for this test type, in presentation order."""
        if self is TestType.ALL:
            return tuple(Modality)
        return (Modality(self.value),)


class ConfidenceLevel(str, enum.Enum):
    """Qualitative reliability tier of a consistency score.

    Members are declared in ascending order; ``rank`` exposes that order.
    """

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    VERY_HIGH = "very-high"

    @property
    def rank(self) -> int:
        return list(ConfidenceLevel).index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ConfidenceLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, ConfidenceLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, ConfidenceLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, ConfidenceLevel):
            return NotImplemented
        return self.rank >= other.rank


__all__ = [
    "Modality",
    "TestType",
    "ConfidenceLevel",
]
