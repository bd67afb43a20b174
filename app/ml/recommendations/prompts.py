from __future__ import annotations

from app.ml.recommendations.catalog import (
    CONCERN_THRESHOLD,
    DIMENSIONS,
    HIGH_RISK_MAX_AVG,
    MODERATE_RISK_MAX_AVG,
)
from app.schemas.screening import AssessmentInput, EmotionSignal


ANSWER_SCHEMA = """{
  "assessment": "2-3 professional sentences on the child's overall developmental profile",
  "riskLevel": "High" | "Moderate" | "Low",
  "focusAreas": ["area 1", "area 2", "area 3"],
  "therapyGoals": ["SMART goal 1", "SMART goal 2", "SMART goal 3"],
  "activities": ["detailed home activity 1", "detailed home activity 2"],
  "suggestions": ["professional next step 1", "professional next step 2"]
}"""

OUTPUT_RULES = (
    "RESPONSE FORMAT: a single JSON object only. No markdown, no code fences, no text before "
    "or after the object. Start with { and end with }."
)


def build_assessment_prompt(inp: AssessmentInput) -> str:
    """Prompt for a full four-score assessment. Pure function of the input."""
    score_lines = []
    for dim in DIMENSIONS:
        score_lines.append(f"- {dim['label']}: {getattr(inp, dim['field'])}/5 ({dim['scale']})")
    focus_hints = "\n".join(
        f"   - {dim['field']} <= {CONCERN_THRESHOLD}: \"{dim['focus_area']}\"" for dim in DIMENSIONS
    )

    return f"""You are a board-certified developmental pediatrician specialising in early childhood development and autism spectrum assessment.

PATIENT ASSESSMENT DATA
Name: {inp.child_name}
Age: {inp.age} years

BEHAVIORAL SCREENING SCORES (1-5, lower scores indicate greater concern):
{chr(10).join(score_lines)}

TASK
Give a developmental evaluation of this {inp.age}-year-old with evidence-based therapy recommendations (ABA, DIR/Floortime, TEACCH, PECS, social stories). Use warm, hopeful, professional language suitable for parents.

Answer with JSON in exactly this shape:
{ANSWER_SCHEMA}

RULES
1. assessment: refer to the actual scores and name specific concerns.
2. riskLevel from the average of the four scores:
   - "High" if average <= {HIGH_RISK_MAX_AVG}
   - "Moderate" if {HIGH_RISK_MAX_AVG} < average <= {MODERATE_RISK_MAX_AVG}
   - "Low" if average > {MODERATE_RISK_MAX_AVG}
3. focusAreas: start from the lowest scores, for example
{focus_hints}
4. therapyGoals: SMART goals (Specific, Measurable, Achievable, Relevant, Time-bound) suited to age {inp.age}.
5. activities: step-by-step home activities with materials, duration, frequency and what success looks like.
6. focusAreas, therapyGoals and activities must never be empty.

{OUTPUT_RULES}"""


def build_emotion_prompt(inp: AssessmentInput, emotion: EmotionSignal) -> str:
    """Prompt for photo-only analysis. Risk is fixed; the limitation must be disclosed."""
    expressions = sorted(emotion.all_expressions.items(), key=lambda kv: kv[1], reverse=True)
    expression_lines = "\n".join(f"- {name}: {score * 100:.1f}%" for name, score in expressions) or "- not provided"
    age = f"{inp.age} years" if inp.age is not None else "not provided"

    return f"""You are a developmental pediatrician reviewing a single facial expression reading taken from a photo. No behavioral ratings were submitted.

CHILD
Name: {inp.child_name}
Age: {age}

FACIAL EXPRESSION READING
Dominant expression: {emotion.emotion}
Expression confidence: {emotion.confidence_pct}
Face detection score: {emotion.face_detection_score * 100:.1f}%
All expressions:
{expression_lines}

TASK
Give cautious, parent-friendly guidance based only on this reading.

Answer with JSON in exactly this shape:
{ANSWER_SCHEMA}

RULES
1. riskLevel MUST be "Moderate".
2. assessment MUST state plainly that facial expression analysis alone cannot support a clinical risk judgment and that the full behavioral assessment is needed.
3. focusAreas MUST be exactly three items about completing the assessment (for example completing the behavioral ratings, observing emotional expression across routines, tracking social engagement).
4. therapyGoals and activities must relate to emotional expression and observation, and must never be empty.

{OUTPUT_RULES}"""
