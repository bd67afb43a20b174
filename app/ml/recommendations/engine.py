"""Deterministic rule-based recommendations.

This is the availability floor of the analysis pipeline: no I/O, no model,
and every entry point returns a valid Recommendation for any input it is
given.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from app.ml.recommendations.catalog import (
    ASSESSMENT_BY_RISK,
    CONCERN_THRESHOLD,
    DIMENSIONS,
    GENERIC_ACTIVITIES,
    GENERIC_FOCUS_AREAS,
    GENERIC_THERAPY_GOALS,
    HIGH_RISK_MAX_AVG,
    MAX_ACTIVITIES,
    MAX_FOCUS_AREAS,
    MAX_SUGGESTIONS,
    MAX_THERAPY_GOALS,
    MODERATE_RISK_MAX_AVG,
    PARTIAL_ACTIVITIES,
    PARTIAL_FOCUS_AREAS,
    PARTIAL_SUGGESTIONS,
    PARTIAL_THERAPY_GOALS,
    PHOTO_ACTIVITIES,
    PHOTO_CONFIDENCE_BANDS,
    PHOTO_FOCUS_AREAS,
    PHOTO_LOW_CONFIDENCE_RISK,
    PHOTO_THERAPY_GOALS,
    REFERRAL_SUGGESTIONS,
)
from app.schemas.screening import AssessmentInput, EmotionSignal, Recommendation, RiskLevel


def average_score(inp: AssessmentInput) -> float:
    return float(np.mean([s for s in inp.scores() if s is not None]))


def risk_from_average(avg: float) -> RiskLevel:
    if avg <= HIGH_RISK_MAX_AVG:
        return RiskLevel.HIGH
    if avg <= MODERATE_RISK_MAX_AVG:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def _pad(items: List[str], fillers: Sequence[str], minimum: int) -> List[str]:
    for filler in fillers:
        if len(items) >= minimum:
            break
        if filler not in items:
            items.append(filler)
    return items


class RuleBasedRecommender:
    """Maps the four 1-5 behavioral scores onto fixed recommendation templates."""

    def generate(self, inp: AssessmentInput) -> Recommendation:
        if not inp.has_all_scores():
            # only reachable when called outside the orchestrator
            return self.partial_template(inp)

        avg = average_score(inp)
        risk = risk_from_average(avg)

        focus_areas: List[str] = []
        goals: List[str] = []
        activities: List[str] = []
        for dim in DIMENSIONS:
            if getattr(inp, dim["field"]) <= CONCERN_THRESHOLD:
                focus_areas.append(dim["focus_area"])
                goals.append(dim["goal"])
                activities.append(dim["activity"])

        _pad(focus_areas, GENERIC_FOCUS_AREAS, MAX_FOCUS_AREAS)
        _pad(goals, GENERIC_THERAPY_GOALS, MAX_THERAPY_GOALS)
        _pad(activities, GENERIC_ACTIVITIES, MAX_ACTIVITIES)

        age_note = f" ({inp.age} years)" if inp.age is not None else ""
        return Recommendation(
            assessment=ASSESSMENT_BY_RISK[risk.value].format(name=inp.child_name, age_note=age_note),
            risk_level=risk,
            focus_areas=focus_areas[:MAX_FOCUS_AREAS],
            therapy_goals=goals[:MAX_THERAPY_GOALS],
            activities=activities[:MAX_ACTIVITIES],
            suggestions=list(REFERRAL_SUGGESTIONS[:MAX_SUGGESTIONS]),
        )

    def partial_template(
        self, inp: AssessmentInput, emotion: Optional[EmotionSignal] = None
    ) -> Recommendation:
        """Fixed "complete the assessment" content; nothing is interpreted."""
        assessment = (
            f"The screening for {inp.child_name} is incomplete, so no developmental risk level can be "
            "assigned yet. Complete all four behavioral ratings and the child's age to receive "
            "tailored recommendations."
        )
        if emotion is not None:
            assessment += (
                f" A facial expression reading ({emotion.emotion}, {emotion.confidence_pct} confidence) "
                "was recorded and will be considered alongside the completed ratings."
            )
        return Recommendation(
            assessment=assessment,
            risk_level=RiskLevel.PENDING,
            focus_areas=list(PARTIAL_FOCUS_AREAS),
            therapy_goals=list(PARTIAL_THERAPY_GOALS),
            activities=list(PARTIAL_ACTIVITIES),
            suggestions=list(PARTIAL_SUGGESTIONS),
        )

    def photo_only_template(self, inp: AssessmentInput, emotion: EmotionSignal) -> Recommendation:
        """Limited-data response for a single facial expression reading."""
        risk = RiskLevel(PHOTO_LOW_CONFIDENCE_RISK)
        for floor, level in PHOTO_CONFIDENCE_BANDS:
            if emotion.confidence >= floor:
                risk = RiskLevel(level)
                break

        assessment = (
            f"Photo analysis for {inp.child_name} detected a predominantly {emotion.emotion} expression "
            f"with {emotion.confidence_pct} confidence. A single facial expression reading cannot "
            "support a clinical risk judgment; complete the behavioral assessment for a developmental "
            "profile."
        )
        return Recommendation(
            assessment=assessment,
            risk_level=risk,
            focus_areas=list(PHOTO_FOCUS_AREAS),
            therapy_goals=list(PHOTO_THERAPY_GOALS),
            activities=list(PHOTO_ACTIVITIES),
            suggestions=list(REFERRAL_SUGGESTIONS[:MAX_SUGGESTIONS]),
        )
