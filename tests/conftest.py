from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app.config import AISettings
from app.db.session import init_db, make_engine, make_session_factory
from app.errors import TierReadError, TierWriteError
from app.ml.recommendations.ai import AIRecommender
from app.ml.recommendations.engine import RuleBasedRecommender
from app.schemas.screening import AssessmentInput, EmotionSignal, StorageTier
from app.services.analysis_service import AnalysisService
from app.services.screening_store import PersistenceCoordinator
from app.services.stores import MemoryStore, SqlStore, Store


VALID_AI_ANSWER = {
    "assessment": "Aria shows reduced eye contact and limited expressive speech.",
    "riskLevel": "High",
    "focusAreas": ["Joint attention", "Expressive language", "Peer interaction"],
    "therapyGoals": ["Goal A", "Goal B", "Goal C"],
    "activities": ["Activity A", "Activity B"],
    "suggestions": ["See a developmental pediatrician"],
}


class FailingStore(Store):
    """Test double whose every operation fails like an unreachable backend."""

    def __init__(self, tier: StorageTier = StorageTier.PRIMARY_DB) -> None:
        self.tier = tier
        self.save_calls = 0

    def save(self, record):
        self.save_calls += 1
        raise TierWriteError(self.tier.value, "backend down")

    def list(self, limit=50, name_filter=None):
        raise TierReadError(self.tier.value, "backend down")

    def get(self, record_id):
        raise TierReadError(self.tier.value, "backend down")


class FakeRemoteStore(MemoryStore):
    """In-process stand-in for the remote HTTP store."""

    tier = StorageTier.REMOTE_STORE


def model_client(text=None, exc=None) -> MagicMock:
    client = MagicMock()
    if exc is not None:
        client.models.generate_content.side_effect = exc
    else:
        client.models.generate_content.return_value = SimpleNamespace(text=text)
    return client


def json_client(payload) -> MagicMock:
    return model_client(text=json.dumps(payload))


@pytest.fixture
def aria() -> AssessmentInput:
    return AssessmentInput(
        child_name="Aria",
        age=4,
        eye_contact=2,
        speech_level=2,
        social_response=2,
        sensory_reactions=2,
    )


@pytest.fixture
def happy_emotion() -> EmotionSignal:
    return EmotionSignal(
        emotion="happy",
        confidence=0.82,
        face_detection_score=0.95,
        all_expressions={"happy": 0.82, "neutral": 0.12, "sad": 0.06},
    )


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://")
    init_db(engine)
    yield make_session_factory(engine)
    engine.dispose()


@pytest.fixture
def sql_store(session_factory) -> SqlStore:
    return SqlStore(session_factory)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore(max_records=100)


@pytest.fixture
def unconfigured_ai() -> AIRecommender:
    return AIRecommender(AISettings(api_key=None))


@pytest.fixture
def make_service(memory_store):
    """Build an AnalysisService around a given model client and store chain."""

    def _make(client=None, stores=None) -> AnalysisService:
        ai = AIRecommender(AISettings(api_key=None), client=client)
        return AnalysisService(
            ai=ai,
            rules=RuleBasedRecommender(),
            coordinator=PersistenceCoordinator(stores or [memory_store]),
        )

    return _make
