"""Gemini-backed recommendation generator.

Every call is a single stateless generate_content request: no chat session,
no history, so nothing from one child's submission can leak into another's.
Failures are raised as typed RecommendationError subclasses; choosing a
fallback is the orchestrator's job.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from google import genai
from google.genai import types

from app.config import AISettings
from app.errors import ModelInvocationError, ModelUnavailable
from app.ml.recommendations.parsing import parse_model_output
from app.ml.recommendations.prompts import build_assessment_prompt, build_emotion_prompt
from app.schemas.screening import AssessmentInput, EmotionSignal, Recommendation, RiskLevel


logger = logging.getLogger(__name__)


class AIRecommender:
    def __init__(self, settings: AISettings, client: Optional[Any] = None) -> None:
        self.settings = settings
        self._client = client
        self._client_lock = threading.Lock()

    @property
    def is_configured(self) -> bool:
        return self._client is not None or self.settings.is_configured

    def _get_client(self) -> Any:
        if self._client is not None:
            return self._client
        if not self.settings.is_configured:
            raise ModelUnavailable("GEMINI_API_KEY not configured")
        with self._client_lock:
            if self._client is None:
                self._client = genai.Client(
                    api_key=self.settings.api_key,
                    http_options=types.HttpOptions(timeout=int(self.settings.timeout_seconds * 1000)),
                )
        return self._client

    def _invoke(self, prompt: str) -> str:
        client = self._get_client()
        config = types.GenerateContentConfig(
            temperature=self.settings.temperature,
            top_p=self.settings.top_p,
            top_k=self.settings.top_k,
            max_output_tokens=self.settings.max_output_tokens,
        )
        try:
            response = client.models.generate_content(
                model=self.settings.model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            raise ModelInvocationError(f"{type(e).__name__}: {e}") from e

        text = getattr(response, "text", None)
        if not text:
            raise ModelInvocationError("model returned an empty response")
        logger.info("Model response received (%d characters)", len(text))
        return text

    def generate(self, inp: AssessmentInput) -> Recommendation:
        logger.info(
            "Requesting AI assessment for %s (age=%s, scores=%s)",
            inp.child_name,
            inp.age,
            inp.scores(),
        )
        raw = self._invoke(build_assessment_prompt(inp))
        rec = parse_model_output(raw, inp.child_name)
        logger.info(
            "AI assessment parsed: risk=%s focus=%d goals=%d activities=%d",
            rec.risk_level.value,
            len(rec.focus_areas),
            len(rec.therapy_goals),
            len(rec.activities),
        )
        return rec

    def generate_from_emotion(self, inp: AssessmentInput, emotion: EmotionSignal) -> Recommendation:
        logger.info(
            "Requesting photo-only AI analysis for %s (emotion=%s, confidence=%s)",
            inp.child_name,
            emotion.emotion,
            emotion.confidence_pct,
        )
        raw = self._invoke(build_emotion_prompt(inp, emotion))
        rec = parse_model_output(raw, inp.child_name)
        # a single expression reading never supports any other level
        return rec.model_copy(update={"risk_level": RiskLevel.MODERATE})
