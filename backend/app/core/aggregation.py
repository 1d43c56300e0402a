"""
Aggregation of per-modality consistency scores into an overall verdict.

Modalities scoring 0 are treated as "not attempted / no signal" and dropped
before averaging, so a skipped or degenerate modality does not drag down an
otherwise strong result. The flip side is that a genuinely attempted
modality scoring 0 is indistinguishable from a skipped one.
"""
import logging
from typing import List, Mapping, Union

from libs.domain_types import ConfidenceLevel, Modality

from app.core.scoring import ScoreResult, rank_colors, round_half_up

logger = logging.getLogger(__name__)

# Dominant colors reported for the whole session
MAX_OVERALL_DOMINANT_COLORS = 5

# A modality at or above this score counts as strong evidence
STRONG_EVIDENCE_THRESHOLD = 70

# Overall score separating mixed evidence from no evidence
MIXED_EVIDENCE_THRESHOLD = 50

_HIGH_CONFIDENCE = frozenset({ConfidenceLevel.HIGH, ConfidenceLevel.VERY_HIGH})

ModalityKey = Union[Modality, str]


class OverallInterpretations:
    """Interpretation texts for the overall result."""

    NO_VALID_DATA = "No valid test data available for analysis."
    MIXED_EVIDENCE = (
        "Mixed results suggest possible synesthetic tendencies. "
        "Some color associations may be genuine, but further testing recommended."
    )
    NO_EVIDENCE = (
        "Results do not strongly indicate synesthetic experiences. "
        "Color associations appear to be based on learned or cultural factors "
        "rather than perceptual experiences."
    )

    @staticmethod
    def multiple_strong(modality_names: List[str]) -> str:
        return (
            "Strong evidence for multiple types of synesthesia across "
            f"{', '.join(modality_names)} tests. "
            "Your consistent responses suggest genuine synesthetic experiences."
        )

    @staticmethod
    def single_strong(modality_name: str) -> str:
        return (
            "Evidence suggests synesthetic experiences, particularly in "
            f"{modality_name} associations. "
            "Consider further testing for comprehensive evaluation."
        )


def modality_name(key: ModalityKey) -> str:
    """Display name of a mapping key (the modality tag)."""
    return key.value if isinstance(key, Modality) else str(key)


def no_valid_data_result() -> ScoreResult:
    """Degenerate overall result when no modality carries a signal."""
    return ScoreResult(
        score=0,
        confidence=ConfidenceLevel.LOW,
        interpretation=OverallInterpretations.NO_VALID_DATA,
        dominant_colors=(),
    )


def _overall_confidence(valid: List[ScoreResult]) -> ConfidenceLevel:
    high_confidence_count = sum(1 for r in valid if r.confidence in _HIGH_CONFIDENCE)

    if high_confidence_count >= 2:
        return ConfidenceLevel.VERY_HIGH
    if high_confidence_count >= 1 or len(valid) >= 2:
        return ConfidenceLevel.HIGH
    if len(valid) >= 1:
        return ConfidenceLevel.MODERATE
    return ConfidenceLevel.LOW


def aggregate_scores(results: Mapping[ModalityKey, ScoreResult]) -> ScoreResult:
    """
    Combine per-modality results into the overall result.

    Args:
        results: Modality -> ScoreResult, in administration order. Modalities
            without responses may be absent; absence is treated exactly like
            a score of 0.

    Returns:
        Overall ScoreResult with up to five dominant colors

    Example:
        >>> overall = aggregate_scores({"grapheme": r80, "number": r60, "sound": r0})
        >>> overall.score, overall.confidence.value
        (70, 'high')
    """
    valid = {key: result for key, result in results.items() if result.score > 0}

    if not valid:
        return no_valid_data_result()

    valid_results = list(valid.values())
    score = round_half_up(sum(r.score for r in valid_results) / len(valid_results))

    # Each modality votes once for every color it surfaced as dominant
    dominant_colors = rank_colors(
        (color for r in valid_results for color in r.dominant_colors),
        MAX_OVERALL_DOMINANT_COLORS,
    )

    confidence = _overall_confidence(valid_results)

    strong = [
        key for key, r in valid.items() if r.score >= STRONG_EVIDENCE_THRESHOLD
    ]
    if len(strong) >= 2:
        interpretation = OverallInterpretations.multiple_strong(
            [modality_name(key) for key in results]
        )
    elif len(strong) == 1:
        interpretation = OverallInterpretations.single_strong(modality_name(strong[0]))
    elif score >= MIXED_EVIDENCE_THRESHOLD:
        interpretation = OverallInterpretations.MIXED_EVIDENCE
    else:
        interpretation = OverallInterpretations.NO_EVIDENCE

    logger.debug(
        f"Aggregated {len(valid_results)} of {len(results)} modalities: "
        f"score={score}, confidence={confidence.value}, strong={len(strong)}"
    )

    return ScoreResult(
        score=score,
        confidence=confidence,
        interpretation=interpretation,
        dominant_colors=dominant_colors,
    )
