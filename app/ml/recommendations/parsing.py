from __future__ import annotations

import json
import re
from typing import Any, Dict

from pydantic import ValidationError

from app.errors import ModelOutputInvalid
from app.schemas.screening import Recommendation, RiskLevel


_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)

REQUIRED_KEYS = ("focusAreas", "therapyGoals", "activities")


def extract_json_object(raw: str) -> Dict[str, Any]:
    """Strip code fences, keep the text between the first '{' and the last '}', parse it."""
    text = _FENCE_RE.sub("", raw or "").strip()
    first, last = text.find("{"), text.rfind("}")
    if first != -1 and last > first:
        text = text[first : last + 1]

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ModelOutputInvalid(f"response is not valid JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ModelOutputInvalid(f"expected a JSON object, got {type(parsed).__name__}")
    return parsed


def _normalize_risk(value: Any) -> RiskLevel:
    if value is None or (isinstance(value, str) and not value.strip()):
        return RiskLevel.MODERATE
    for level in RiskLevel:
        if str(value).strip().lower() == level.value.lower():
            return level
    raise ModelOutputInvalid(f"unknown riskLevel {value!r}")


def to_recommendation(parsed: Dict[str, Any], child_name: str) -> Recommendation:
    """Validate a parsed model answer. Array lengths are trusted as returned."""
    for key in REQUIRED_KEYS:
        value = parsed.get(key)
        if not isinstance(value, list) or not value:
            raise ModelOutputInvalid(f"missing or empty required field '{key}'")

    try:
        return Recommendation(
            assessment=parsed.get("assessment") or f"Developmental assessment for {child_name}.",
            risk_level=_normalize_risk(parsed.get("riskLevel")),
            focus_areas=parsed["focusAreas"],
            therapy_goals=parsed["therapyGoals"],
            activities=parsed["activities"],
            suggestions=parsed.get("suggestions") or [],
        )
    except ValidationError as e:
        raise ModelOutputInvalid(f"response failed schema validation: {e.error_count()} error(s)") from e


def parse_model_output(raw: str, child_name: str) -> Recommendation:
    return to_recommendation(extract_json_object(raw), child_name)
