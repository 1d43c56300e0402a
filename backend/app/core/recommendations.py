"""
Recommendation rules applied to a scored session.

Rules are evaluated in a fixed order and each appends zero or more fixed
strings. Showing only a prefix of the list is left to the presentation
layer (see ``RECOMMENDATION_PREVIEW_COUNT``).
"""
from typing import Dict, List, Mapping, Tuple

from libs.domain_types import ConfidenceLevel, Modality

from app.core.aggregation import (
    MIXED_EVIDENCE_THRESHOLD,
    STRONG_EVIDENCE_THRESHOLD,
    ModalityKey,
)
from app.core.scoring import ScoreResult

HIGH_CONFIDENCE_RECOMMENDATIONS: Tuple[str, ...] = (
    "Consider participating in synesthesia research studies to contribute to scientific understanding.",
    "Connect with synesthesia communities and organizations for support and information.",
    "Explore how your synesthetic experiences might enhance creativity in art, music, or writing.",
)

MODERATE_CONFIDENCE_RECOMMENDATIONS: Tuple[str, ...] = (
    "Retake the test in a few weeks to verify consistency of responses.",
    "Pay attention to your sensory experiences in daily life to better understand your perceptions.",
)

LOW_SCORE_RECOMMENDATIONS: Tuple[str, ...] = (
    "Learn more about synesthesia to understand this fascinating neurological phenomenon.",
    "While you may not have synesthesia, you can still appreciate the unique experiences of those who do.",
)

MODALITY_RECOMMENDATIONS: Dict[Modality, str] = {
    Modality.GRAPHEME: "Your strong letter-color associations might be helpful for memory techniques and creative writing.",
    Modality.SOUND: "Your sound-color experiences could enhance musical appreciation and audio-visual art creation.",
    Modality.NUMBER: "Your number-color associations might assist with mathematical learning and numerical memory.",
}


def generate_recommendations(
    overall: ScoreResult,
    per_modality: Mapping[ModalityKey, ScoreResult],
) -> List[str]:
    """
    Build the ordered recommendation list for a session.

    Args:
        overall: Aggregated result for the session
        per_modality: Modality -> ScoreResult, iterated in mapping order

    Returns:
        Recommendation strings in rule order
    """
    recommendations: List[str] = []

    if overall.confidence in (ConfidenceLevel.HIGH, ConfidenceLevel.VERY_HIGH):
        recommendations.extend(HIGH_CONFIDENCE_RECOMMENDATIONS)

    if overall.confidence == ConfidenceLevel.MODERATE:
        recommendations.extend(MODERATE_CONFIDENCE_RECOMMENDATIONS)

    if overall.score < MIXED_EVIDENCE_THRESHOLD:
        recommendations.extend(LOW_SCORE_RECOMMENDATIONS)

    for key, result in per_modality.items():
        if result.score < STRONG_EVIDENCE_THRESHOLD:
            continue
        try:
            modality = Modality(key)
        except ValueError:
            # Keys outside the three modalities have no specific advice
            continue
        recommendations.append(MODALITY_RECOMMENDATIONS[modality])

    return recommendations


def split_recommendations(
    recommendations: List[str], preview_count: int
) -> Tuple[List[str], List[str]]:
    """Split recommendations into the shown prefix and "additional insights"."""
    return recommendations[:preview_count], recommendations[preview_count:]
