from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Index, Integer, String
from sqlalchemy.orm import declarative_base


Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Screening(Base):
    __tablename__ = "screenings"

    id = Column(String(64), primary_key=True)  # uuid4 hex assigned by the coordinator
    child_name = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    # behavioral inputs; nullable because photo-only and partial submissions omit them
    age = Column(Integer, nullable=True)
    eye_contact = Column(Integer, nullable=True)
    speech_level = Column(Integer, nullable=True)
    social_response = Column(Integer, nullable=True)
    sensory_reactions = Column(Integer, nullable=True)

    source = Column(String(16), nullable=False)
    results = Column(JSON, nullable=False)  # Recommendation, camelCase keys
    emotion = Column(JSON, nullable=True)  # EmotionSignal, camelCase keys

    __table_args__ = (
        CheckConstraint("length(trim(child_name)) > 0", name="ck_screenings_child_name"),
        CheckConstraint("age IS NULL OR (age BETWEEN 1 AND 18)", name="ck_screenings_age"),
        CheckConstraint("eye_contact IS NULL OR (eye_contact BETWEEN 1 AND 5)", name="ck_screenings_eye_contact"),
        CheckConstraint("speech_level IS NULL OR (speech_level BETWEEN 1 AND 5)", name="ck_screenings_speech_level"),
        CheckConstraint(
            "social_response IS NULL OR (social_response BETWEEN 1 AND 5)", name="ck_screenings_social_response"
        ),
        CheckConstraint(
            "sensory_reactions IS NULL OR (sensory_reactions BETWEEN 1 AND 5)",
            name="ck_screenings_sensory_reactions",
        ),
        CheckConstraint("source IN ('ai', 'rule-based')", name="ck_screenings_source"),
        Index("ix_screenings_child_name_created_at", child_name, created_at.desc()),
        Index("ix_screenings_created_at", created_at.desc()),
    )
