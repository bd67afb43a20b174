"""Request orchestration: validate, pick a mode, generate, persist, respond.

Recovery policy lives here and only here: any RecommendationError falls back
to the rule engine (full mode) or the photo-only template, and persistence
outcomes never change whether the caller gets a recommendation.
"""
from __future__ import annotations

import logging
from typing import Tuple

from app.errors import AssessmentValidationError, RecommendationError
from app.ml.recommendations.ai import AIRecommender
from app.ml.recommendations.engine import RuleBasedRecommender
from app.schemas.screening import (
    AnalysisMode,
    AnalysisRequest,
    AnalysisResponse,
    AssessmentInput,
    Recommendation,
    RecommendationSource,
    SCORE_FIELDS,
    StorageInfo,
)
from app.services.screening_store import PersistenceCoordinator


logger = logging.getLogger(__name__)


def _full_mode_fields_present(req: AnalysisRequest) -> Tuple[int, int]:
    fields = ("age",) + SCORE_FIELDS
    present = sum(1 for f in fields if getattr(req, f) is not None)
    return present, len(fields)


def select_mode(req: AnalysisRequest) -> AnalysisMode:
    """Map a submission onto exactly one analysis mode, or reject it."""
    if not req.child_name or not req.child_name.strip():
        raise AssessmentValidationError("Child name is required")

    present, total = _full_mode_fields_present(req)
    scores_present = any(getattr(req, f) is not None for f in SCORE_FIELDS)

    if req.photo_only_analysis:
        if req.emotion_analysis is None:
            raise AssessmentValidationError("Photo-only analysis requires an emotion analysis result")
        if not scores_present:
            return AnalysisMode.PHOTO_ONLY

    if present == total:
        return AnalysisMode.FULL

    if 0 < present < total and req.emotion_analysis is None:
        raise AssessmentValidationError("All assessment fields are required")

    return AnalysisMode.PARTIAL


def to_assessment_input(req: AnalysisRequest) -> AssessmentInput:
    return AssessmentInput(
        child_name=req.child_name,
        age=req.age,
        eye_contact=req.eye_contact,
        speech_level=req.speech_level,
        social_response=req.social_response,
        sensory_reactions=req.sensory_reactions,
    )


class AnalysisService:
    def __init__(
        self,
        ai: AIRecommender,
        rules: RuleBasedRecommender,
        coordinator: PersistenceCoordinator,
    ) -> None:
        self.ai = ai
        self.rules = rules
        self.coordinator = coordinator

    def _recommend(
        self, mode: AnalysisMode, inp: AssessmentInput, req: AnalysisRequest
    ) -> Tuple[Recommendation, RecommendationSource]:
        if mode is AnalysisMode.PARTIAL:
            return self.rules.partial_template(inp, req.emotion_analysis), RecommendationSource.RULE_BASED

        if mode is AnalysisMode.PHOTO_ONLY:
            try:
                return self.ai.generate_from_emotion(inp, req.emotion_analysis), RecommendationSource.AI
            except RecommendationError as e:
                logger.warning("Photo-only AI analysis unavailable (%s: %s), using template", type(e).__name__, e)
                return self.rules.photo_only_template(inp, req.emotion_analysis), RecommendationSource.RULE_BASED

        try:
            return self.ai.generate(inp), RecommendationSource.AI
        except RecommendationError as e:
            logger.warning("AI analysis unavailable (%s: %s), using rule-based engine", type(e).__name__, e)
            return self.rules.generate(inp), RecommendationSource.RULE_BASED

    def analyze(self, req: AnalysisRequest) -> AnalysisResponse:
        """Raises AssessmentValidationError for requests that cannot be understood."""
        mode = select_mode(req)
        inp = to_assessment_input(req)
        logger.info("Analyzing %s in %s mode", inp.child_name, mode.value)

        recommendation, source = self._recommend(mode, inp, req)
        record, tier = self.coordinator.save(inp, recommendation, source, emotion=req.emotion_analysis)

        logger.info(
            "Analysis completed for %s (source=%s, tier=%s)",
            inp.child_name,
            source.value,
            tier.value if tier else "none",
        )
        return AnalysisResponse(
            success=True,
            child_name=inp.child_name,
            age=inp.age,
            data=recommendation,
            emotion_analysis=req.emotion_analysis,
            photo_only_analysis=mode is AnalysisMode.PHOTO_ONLY,
            source=source,
            storage=StorageInfo(tier=tier, record_id=record.id if tier else None),
        )
