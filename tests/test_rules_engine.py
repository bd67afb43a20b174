from __future__ import annotations

import itertools

import pytest

from app.ml.recommendations.catalog import (
    GENERIC_ACTIVITIES,
    GENERIC_FOCUS_AREAS,
    REFERRAL_SUGGESTIONS,
)
from app.ml.recommendations.engine import RuleBasedRecommender, average_score, risk_from_average
from app.schemas.screening import AssessmentInput, EmotionSignal, RiskLevel


def _input(eye, speech, social, sensory, age=5, name="Sam") -> AssessmentInput:
    return AssessmentInput(
        child_name=name,
        age=age,
        eye_contact=eye,
        speech_level=speech,
        social_response=social,
        sensory_reactions=sensory,
    )


@pytest.fixture
def engine() -> RuleBasedRecommender:
    return RuleBasedRecommender()


class TestRiskThresholds:
    @pytest.mark.parametrize(
        "avg, expected",
        [
            (1.0, RiskLevel.HIGH),
            (2.0, RiskLevel.HIGH),
            (2.25, RiskLevel.MODERATE),
            (2.5, RiskLevel.MODERATE),
            (3.5, RiskLevel.MODERATE),
            (3.51, RiskLevel.LOW),
            (5.0, RiskLevel.LOW),
        ],
    )
    def test_threshold_table(self, avg, expected):
        assert risk_from_average(avg) == expected

    @pytest.mark.parametrize(
        "scores, expected",
        [
            ((2, 2, 2, 2), RiskLevel.HIGH),
            ((2, 3, 2, 3), RiskLevel.MODERATE),
            ((3, 4, 3, 4), RiskLevel.MODERATE),
            ((4, 4, 4, 3), RiskLevel.LOW),
        ],
    )
    def test_generate_uses_mean_of_scores(self, engine, scores, expected):
        assert engine.generate(_input(*scores)).risk_level == expected

    def test_average_score(self):
        assert average_score(_input(1, 2, 3, 4)) == 2.5


class TestGenerate:
    def test_aria_example(self, engine, aria):
        rec = engine.generate(aria)

        assert rec.risk_level == RiskLevel.HIGH
        assert "Visual Engagement & Eye Contact Development" in rec.focus_areas
        assert "Speech & Communication Skills" in rec.focus_areas
        assert "Aria" in rec.assessment and "4 years" in rec.assessment

    def test_missing_age_is_left_out_of_the_assessment(self, engine):
        rec = engine.generate(_input(2, 2, 2, 2, age=None, name="Aria"))

        assert rec.assessment.startswith("Aria shows")
        assert "years" not in rec.assessment

    def test_all_dimensions_low_truncates_to_maxima(self, engine):
        rec = engine.generate(_input(1, 1, 1, 1))

        assert len(rec.focus_areas) == 3
        assert len(rec.therapy_goals) == 3
        assert len(rec.activities) == 2
        # sensory is the fourth dimension and falls off the end
        assert "Sensory Processing & Integration" not in rec.focus_areas

    def test_no_concerns_pads_with_generic_entries(self, engine):
        rec = engine.generate(_input(5, 5, 5, 5))

        assert rec.risk_level == RiskLevel.LOW
        assert rec.focus_areas == GENERIC_FOCUS_AREAS
        assert rec.activities == GENERIC_ACTIVITIES

    def test_single_concern_comes_first_then_padding(self, engine):
        rec = engine.generate(_input(5, 5, 5, 3))

        assert rec.focus_areas[0] == "Sensory Processing & Integration"
        assert rec.focus_areas[1:] == GENERIC_FOCUS_AREAS[:2]
        assert rec.activities[0].startswith("Sensory Exploration Box")
        assert rec.activities[1] == GENERIC_ACTIVITIES[0]

    def test_always_two_referral_suggestions(self, engine):
        for scores in [(1, 1, 1, 1), (3, 3, 3, 3), (5, 5, 5, 5)]:
            assert engine.generate(_input(*scores)).suggestions == REFERRAL_SUGGESTIONS[:2]

    def test_every_score_combination_is_bounded_and_non_empty(self, engine):
        for scores in itertools.product(range(1, 6), repeat=4):
            rec = engine.generate(_input(*scores))
            assert 1 <= len(rec.focus_areas) <= 3
            assert 1 <= len(rec.therapy_goals) <= 3
            assert 1 <= len(rec.activities) <= 2
            assert len(rec.suggestions) == 2
            assert rec.risk_level == risk_from_average(sum(scores) / 4)

    def test_deterministic(self, engine, aria):
        assert engine.generate(aria) == engine.generate(aria)


class TestTemplates:
    def test_partial_template_is_pending(self, engine):
        rec = engine.partial_template(AssessmentInput(child_name="Theo"))

        assert rec.risk_level == RiskLevel.PENDING
        assert "Theo" in rec.assessment
        assert rec.focus_areas and rec.therapy_goals and rec.activities

    def test_partial_template_mentions_emotion_when_present(self, engine, happy_emotion):
        rec = engine.partial_template(AssessmentInput(child_name="Theo"), happy_emotion)
        assert "happy" in rec.assessment and "82.0%" in rec.assessment

    def test_generate_without_scores_falls_back_to_partial(self, engine):
        assert engine.generate(AssessmentInput(child_name="Theo")).risk_level == RiskLevel.PENDING

    @pytest.mark.parametrize(
        "confidence, expected",
        [
            (0.82, RiskLevel.LOW),
            (0.7, RiskLevel.LOW),
            (0.55, RiskLevel.MODERATE),
            (0.4, RiskLevel.MODERATE),
            (0.2, RiskLevel.PENDING),
        ],
    )
    def test_photo_only_confidence_bands(self, engine, confidence, expected):
        emotion = EmotionSignal(emotion="sad", confidence=confidence)
        rec = engine.photo_only_template(AssessmentInput(child_name="Mia"), emotion)
        assert rec.risk_level == expected

    def test_photo_only_embeds_emotion_and_percentage(self, engine, happy_emotion):
        rec = engine.photo_only_template(AssessmentInput(child_name="Mia"), happy_emotion)

        assert "happy" in rec.assessment
        assert "82.0%" in rec.assessment
        assert "cannot support a clinical risk judgment" in rec.assessment
