"""
Tests for aggregation of per-modality results into the overall verdict.
"""
import pytest

from libs.domain_types import ConfidenceLevel, Modality

from app.core.aggregation import (
    OverallInterpretations,
    aggregate_scores,
    no_valid_data_result,
)
from app.core.scoring import ScoreResult, classify_score, insufficient_data_result


def result(score, colors=()):
    """ScoreResult with the band that a real scorer would assign."""
    band = classify_score(score)
    return ScoreResult(
        score=score,
        confidence=band.confidence,
        interpretation=band.interpretation,
        dominant_colors=tuple(colors),
    )


class TestDegenerateAggregate:
    def test_empty_mapping(self):
        overall = aggregate_scores({})

        assert overall == no_valid_data_result()
        assert overall.score == 0
        assert overall.confidence == ConfidenceLevel.LOW
        assert overall.interpretation == "No valid test data available for analysis."
        assert overall.dominant_colors == ()

    def test_all_zero_scores(self):
        overall = aggregate_scores(
            {
                Modality.GRAPHEME: insufficient_data_result(),
                Modality.SOUND: insufficient_data_result(),
            }
        )

        assert overall == no_valid_data_result()


class TestAggregateScore:
    def test_zero_scores_are_dropped(self):
        """80, 60 and 0 average over the two surviving modalities."""
        overall = aggregate_scores(
            {
                Modality.GRAPHEME: result(80),
                Modality.NUMBER: result(60),
                Modality.SOUND: result(0),
            }
        )

        assert overall.score == 70
        assert overall.confidence == ConfidenceLevel.HIGH
        # Only grapheme is strong
        assert overall.interpretation == OverallInterpretations.single_strong(
            "grapheme"
        )

    def test_absent_equals_zero(self):
        with_zero = aggregate_scores(
            {Modality.GRAPHEME: result(80), Modality.NUMBER: result(0)}
        )
        without = aggregate_scores({Modality.GRAPHEME: result(80)})

        assert with_zero.score == without.score
        assert with_zero.confidence == without.confidence

    def test_mean_rounds_half_up(self):
        overall = aggregate_scores(
            {Modality.GRAPHEME: result(72), Modality.NUMBER: result(73)}
        )

        assert overall.score == 73

    @pytest.mark.parametrize(
        "number,sound", [(0, 0), (40, 0), (60, 90), (100, 100), (30, 75)]
    )
    def test_raising_one_modality_never_lowers_overall(self, number, sound):
        """Raising a surviving grapheme score with the others fixed."""
        fixed = {Modality.NUMBER: result(number), Modality.SOUND: result(sound)}
        previous = aggregate_scores({**fixed, Modality.GRAPHEME: result(1)}).score

        for grapheme in range(2, 101):
            overall = aggregate_scores({**fixed, Modality.GRAPHEME: result(grapheme)})
            assert overall.score >= previous
            previous = overall.score

    def test_adding_higher_score_never_lowers_overall(self):
        base = {Modality.GRAPHEME: result(60), Modality.NUMBER: result(40)}
        before = aggregate_scores(base).score

        for extra in (50, 60, 75, 100):
            after = aggregate_scores({**base, Modality.SOUND: result(extra)}).score
            assert after >= before


class TestAggregateConfidence:
    @pytest.mark.parametrize(
        "scores,expected",
        [
            ([90, 75], ConfidenceLevel.VERY_HIGH),
            ([90, 40], ConfidenceLevel.HIGH),
            ([60, 40], ConfidenceLevel.HIGH),
            ([60], ConfidenceLevel.MODERATE),
            ([10], ConfidenceLevel.MODERATE),
            ([85], ConfidenceLevel.HIGH),
        ],
    )
    def test_confidence_rules(self, scores, expected):
        modalities = list(Modality)
        results = {modalities[i]: result(s) for i, s in enumerate(scores)}

        assert aggregate_scores(results).confidence == expected


class TestAggregateInterpretation:
    def test_multiple_strong_names_all_attempted_modalities(self):
        overall = aggregate_scores(
            {
                Modality.GRAPHEME: result(90),
                Modality.NUMBER: result(75),
                Modality.SOUND: result(0),
            }
        )

        assert overall.interpretation == OverallInterpretations.multiple_strong(
            ["grapheme", "number", "sound"]
        )
        assert "grapheme, number, sound tests" in overall.interpretation

    def test_single_strong(self):
        overall = aggregate_scores(
            {Modality.GRAPHEME: result(40), Modality.SOUND: result(88)}
        )

        assert "particularly in sound associations" in overall.interpretation

    def test_mixed_evidence(self):
        overall = aggregate_scores(
            {Modality.GRAPHEME: result(60), Modality.NUMBER: result(55)}
        )

        assert overall.interpretation == OverallInterpretations.MIXED_EVIDENCE

    def test_no_evidence(self):
        overall = aggregate_scores(
            {Modality.GRAPHEME: result(30), Modality.NUMBER: result(40)}
        )

        assert overall.score == 35
        assert overall.interpretation == OverallInterpretations.NO_EVIDENCE

    def test_string_keys_accepted(self):
        overall = aggregate_scores({"grapheme": result(90), "number": result(80)})

        assert "grapheme, number tests" in overall.interpretation


class TestAggregateDominantColors:
    def test_colors_ranked_by_modality_count(self):
        overall = aggregate_scores(
            {
                Modality.GRAPHEME: result(80, ["#A", "#B", "#C"]),
                Modality.NUMBER: result(70, ["#C", "#D", "#B"]),
                Modality.SOUND: result(60, ["#E", "#F", "#C"]),
            }
        )

        # C appears in three modalities, B in two; the rest once in first-seen order
        assert overall.dominant_colors == ("#C", "#B", "#A", "#D", "#E")

    def test_zero_score_colors_ignored(self):
        overall = aggregate_scores(
            {
                Modality.GRAPHEME: result(80, ["#A"]),
                Modality.NUMBER: ScoreResult(
                    score=0,
                    confidence=ConfidenceLevel.LOW,
                    interpretation="x",
                    dominant_colors=("#Z",),
                ),
            }
        )

        assert overall.dominant_colors == ("#A",)
