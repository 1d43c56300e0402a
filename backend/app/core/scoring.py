"""
Consistency Scoring Module.

Turns the stimulus -> color observations of one modality into a bounded
consistency score, a confidence tier, an interpretation and the dominant
colors of the participant's palette.

Methodology
===========
Genuine synesthetic associations are automatic and stable: the same
stimulus evokes the same color every time it is presented. The score
therefore measures, per stimulus, how much of the participant's color
choices went to the single most frequent color, and averages that
across stimuli.

**Consistency ratio (per stimulus):**
    ratio = count(most frequent color) / total color entries for the stimulus

A multi-color (sound) response contributes every selected color as one
entry, so picking the same pair twice scores 0.5 for that stimulus.

**Modality score:**
    score = round(mean(ratios) * 100)

Stimuli never answered are excluded rather than penalized. A stimulus
answered only once scores a trivial 1.0. The minimum-response threshold
is the only guard against sparse data; changing the ratio would alter
published scores.

**Score bands** (inclusive lower bounds):

    85-100  very-high
    70-84   high
    50-69   moderate
    30-49   low   (learned / cultural associations)
     0-29   low   (near-random responses)

The two lowest bands share a confidence tier but carry distinct
interpretations.
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Protocol, Sequence, Tuple

from libs.domain_types import ConfidenceLevel

from app.core.records import ResponseRecord

logger = logging.getLogger(__name__)

# Fewer responses than this cannot support a consistency judgement
MIN_RESPONSES_PER_MODALITY = 5

# Dominant colors reported for a single modality
MAX_MODALITY_DOMINANT_COLORS = 3


class Interpretations:
    """Interpretation texts, one per score band plus the degenerate cases."""

    INSUFFICIENT_DATA = "Insufficient data for analysis"
    VERY_HIGH = (
        "Very high consistency suggests strong synesthetic associations. "
        "Your responses show remarkable stability across repeated exposures."
    )
    HIGH = (
        "High consistency indicates likely synesthetic experiences. "
        "Your color associations appear to be automatic and stable."
    )
    MODERATE = (
        "Moderate consistency suggests possible synesthetic tendencies. "
        "Some color associations may be genuine, but results are mixed."
    )
    LOW = (
        "Low consistency indicates limited synesthetic associations. "
        "Most responses appear to be based on learned or cultural associations."
    )
    VERY_LOW = (
        "Very low consistency suggests no significant synesthetic experiences. "
        "Responses appear random or based on non-perceptual factors."
    )


@dataclass(frozen=True)
class ScoreBand:
    """A score range mapped to a confidence tier and interpretation."""

    lower_bound: int
    confidence: ConfidenceLevel
    interpretation: str


# Ordered from the highest lower bound down; the first match wins
SCORE_BANDS: Tuple[ScoreBand, ...] = (
    ScoreBand(85, ConfidenceLevel.VERY_HIGH, Interpretations.VERY_HIGH),
    ScoreBand(70, ConfidenceLevel.HIGH, Interpretations.HIGH),
    ScoreBand(50, ConfidenceLevel.MODERATE, Interpretations.MODERATE),
    ScoreBand(30, ConfidenceLevel.LOW, Interpretations.LOW),
    ScoreBand(0, ConfidenceLevel.LOW, Interpretations.VERY_LOW),
)


@dataclass(frozen=True)
class ScoreResult:
    """Result of consistency scoring for a modality or the whole session."""

    score: int
    confidence: ConfidenceLevel
    interpretation: str
    dominant_colors: Tuple[str, ...] = field(default=())

    def __post_init__(self) -> None:
        if not 0 <= self.score <= 100:
            raise ValueError(f"score must be within [0, 100], got {self.score}")
        object.__setattr__(self, "confidence", ConfidenceLevel(self.confidence))
        object.__setattr__(self, "dominant_colors", tuple(self.dominant_colors))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "confidence": self.confidence.value,
            "interpretation": self.interpretation,
            "dominant_colors": list(self.dominant_colors),
        }


def insufficient_data_result() -> ScoreResult:
    """Degenerate result for a modality without enough responses."""
    return ScoreResult(
        score=0,
        confidence=ConfidenceLevel.LOW,
        interpretation=Interpretations.INSUFFICIENT_DATA,
        dominant_colors=(),
    )


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with halves going up.

    Python's built-in round() uses banker's rounding (round(72.5) == 72);
    published scores round halves up (72.5 -> 73).
    """
    return int(math.floor(value + 0.5))


def classify_score(score: int) -> ScoreBand:
    """
    Map a rounded score to its band.

    Args:
        score: Integer score in [0, 100]

    Returns:
        The ScoreBand whose inclusive lower bound the score reaches first
    """
    for band in SCORE_BANDS:
        if score >= band.lower_bound:
            return band
    # Unreachable for scores >= 0; ScoreResult rejects negatives
    return SCORE_BANDS[-1]


def rank_colors(colors: Iterable[str], limit: int) -> Tuple[str, ...]:
    """
    Rank colors by frequency, keeping first-seen order among ties.

    Args:
        colors: Color tokens in encounter order (repeats count)
        limit: Maximum number of colors to return

    Returns:
        Up to ``limit`` colors, most frequent first
    """
    counts = Counter(colors)
    # Counter preserves insertion order and sorted() is stable, so ties
    # stay in the order the colors were first encountered.
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return tuple(color for color, _ in ranked[:limit])


def stimulus_consistency(colors: Sequence[str]) -> float:
    """
    Fraction of a stimulus's color entries taken by its most frequent color.

    Args:
        colors: Every color entry recorded for one stimulus

    Returns:
        Ratio in (0, 1]

    Raises:
        ValueError: If no color entries are given
    """
    if not colors:
        raise ValueError("stimulus_consistency requires at least one color entry")
    most_common_count = max(Counter(colors).values())
    return most_common_count / len(colors)


def group_colors_by_stimulus(
    responses: Iterable[ResponseRecord],
) -> Dict[str, List[str]]:
    """Flatten responses into each stimulus's multiset of color entries."""
    groups: Dict[str, List[str]] = {}
    for response in responses:
        groups.setdefault(response.stimulus, []).extend(response.colors)
    return groups


class ConsistencyScoring(Protocol):
    """
    Protocol for per-modality scoring strategies.

    Any class implementing this protocol can be handed to the completion
    pipeline in place of the default scorer.
    """

    def score(self, responses: Sequence[ResponseRecord]) -> ScoreResult:
        """
        Score the responses of a single modality.

        Args:
            responses: All response records of one modality

        Returns:
            ScoreResult for the modality
        """
        ...


class ModeRatioConsistencyScoring:
    """
    Default scorer: mean of per-stimulus most-frequent-color ratios.

    Attributes:
        min_responses: Responses required before a score is computed
        max_dominant_colors: Length cap on the dominant color list
    """

    def __init__(
        self,
        min_responses: int = MIN_RESPONSES_PER_MODALITY,
        max_dominant_colors: int = MAX_MODALITY_DOMINANT_COLORS,
    ):
        if min_responses < 1:
            raise ValueError("min_responses must be at least 1")
        self.min_responses = min_responses
        self.max_dominant_colors = max_dominant_colors

    def score(self, responses: Sequence[ResponseRecord]) -> ScoreResult:
        """
        Score the responses of a single modality.

        Args:
            responses: All response records of one modality, retests included

        Returns:
            ScoreResult; the insufficient-data result when fewer than
            ``min_responses`` records are given or no record carries a color
        """
        if len(responses) < self.min_responses:
            return insufficient_data_result()

        groups = group_colors_by_stimulus(responses)

        ratios: List[float] = []
        all_colors: List[str] = []
        for colors in groups.values():
            # An empty sound selection leaves nothing to compare
            if not colors:
                continue
            ratios.append(stimulus_consistency(colors))
            all_colors.extend(colors)

        if not ratios:
            return insufficient_data_result()

        # fsum is exactly rounded, so the mean does not depend on input order
        average_consistency = math.fsum(ratios) / len(ratios)
        score = round_half_up(average_consistency * 100)
        band = classify_score(score)

        logger.debug(
            f"Scored {len(responses)} responses over {len(ratios)} stimuli: "
            f"mean ratio={average_consistency:.3f}, score={score}"
        )

        return ScoreResult(
            score=score,
            confidence=band.confidence,
            interpretation=band.interpretation,
            dominant_colors=rank_colors(all_colors, self.max_dominant_colors),
        )


def score_responses(
    responses: Sequence[ResponseRecord],
    min_responses: int = MIN_RESPONSES_PER_MODALITY,
) -> ScoreResult:
    """
    Score one modality's responses with the default scorer.

    This is the main entry point for consistency scoring.

    Args:
        responses: All response records of one modality
        min_responses: Minimum record count before a score is computed

    Returns:
        ScoreResult for the modality

    Example:
        >>> result = score_responses(records)  # five "A" -> "#FF6B6B"
        >>> result.score, result.confidence.value
        (100, 'very-high')
    """
    return ModeRatioConsistencyScoring(min_responses=min_responses).score(responses)
