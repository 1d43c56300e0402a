"""
Domain records: color responses, response observations and sessions.

A response value arrives from the client as either a string (one color) or
a list of strings (several colors). It is resolved once, at the boundary and
by modality, into one of two variants:

- ``SingleColor``: grapheme and number stimuli, exactly one choice
- ``MultipleColors``: sound stimuli, zero or more choices where order is
  irrelevant and duplicates collapse

Everything past the boundary (store, scorer) works with the variants only.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from libs.domain_types import Modality, TestType

# Modalities answered with several colors per stimulus
MULTI_COLOR_MODALITIES = frozenset({Modality.SOUND})


class MalformedResponseError(ValueError):
    """Raised when a raw response value does not fit its modality."""


@dataclass(frozen=True)
class SingleColor:
    """Exactly one selected color."""

    color: str

    @property
    def colors(self) -> Tuple[str, ...]:
        return (self.color,)

    def to_raw(self) -> str:
        return self.color


@dataclass(frozen=True, eq=False)
class MultipleColors:
    """A set of selected colors.

    Colors are kept in the order they were first submitted so that dominant
    color tie-breaks stay deterministic; equality ignores that order.
    """

    selected: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "selected", tuple(dict.fromkeys(self.selected)))

    @property
    def colors(self) -> Tuple[str, ...]:
        return self.selected

    def to_raw(self) -> list[str]:
        return list(self.selected)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MultipleColors):
            return NotImplemented
        return frozenset(self.selected) == frozenset(other.selected)

    def __hash__(self) -> int:
        return hash(frozenset(self.selected))


ColorResponse = Union[SingleColor, MultipleColors]


def resolve_color_response(modality: Modality, raw: Any) -> ColorResponse:
    """
    Resolve a raw response value into its tagged variant.

    Args:
        modality: Modality the response belongs to
        raw: Value as submitted (string or list of strings)

    Returns:
        SingleColor for grapheme/number, MultipleColors for sound

    Raises:
        MalformedResponseError: If the value's shape does not match the modality
    """
    modality = Modality(modality)

    if modality in MULTI_COLOR_MODALITIES:
        if isinstance(raw, (str, bytes)) or not isinstance(
            raw, (list, tuple, set, frozenset)
        ):
            raise MalformedResponseError(
                f"{modality.value} responses must be a list of colors"
            )
        if not all(isinstance(color, str) and color for color in raw):
            raise MalformedResponseError(
                f"{modality.value} responses must only contain non-empty color strings"
            )
        return MultipleColors(tuple(raw))

    if not isinstance(raw, str):
        raise MalformedResponseError(
            f"{modality.value} responses must be a single color string"
        )
    if not raw:
        raise MalformedResponseError(
            f"{modality.value} responses must not be empty"
        )
    return SingleColor(raw)


@dataclass(frozen=True)
class ResponseRecord:
    """One stimulus -> color observation submitted during a session."""

    session_id: str
    modality: Modality
    stimulus: str
    response: ColorResponse
    response_time_ms: int
    timestamp: datetime
    attempt: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "modality", Modality(self.modality))
        if self.response_time_ms < 0:
            raise ValueError("response_time_ms cannot be negative")
        if self.attempt < 1:
            raise ValueError("attempt must be at least 1")

    @property
    def colors(self) -> Tuple[str, ...]:
        """Selected colors, one entry per color."""
        return self.response.colors


@dataclass(frozen=True)
class SessionRecord:
    """A screening session as held by the session store."""

    session_id: str
    test_type: TestType
    created_at: datetime
    scores: Optional[Dict[str, int]] = field(default=None)
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def modalities(self) -> Tuple[Modality, ...]:
        return TestType(self.test_type).modalities


def filter_by_modality(
    records: Iterable[ResponseRecord], modality: Modality
) -> list[ResponseRecord]:
    """Return the records belonging to a modality, preserving order."""
    modality = Modality(modality)
    return [r for r in records if r.modality == modality]
