"""Storage tiers for screening records.

Each Store persists and reads ScreeningRecords in one backend and reports
failures as TierWriteError / TierReadError. Stores never decide what happens
after a failure; PersistenceCoordinator and ScreeningReader do.
"""
from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from app.db.models import Screening
from app.db.session import init_db
from app.errors import TierReadError, TierWriteError
from app.schemas.screening import (
    AssessmentInput,
    EmotionSignal,
    Recommendation,
    RecommendationSource,
    ScreeningRecord,
    StorageTier,
)
from app.utils.time import parse_to_utc_aware


logger = logging.getLogger(__name__)


def _matches(record: ScreeningRecord, name_filter: Optional[str]) -> bool:
    if not name_filter:
        return True
    return name_filter.lower() in record.input.child_name.lower()


def _newest_first(records: List[ScreeningRecord]) -> List[ScreeningRecord]:
    return sorted(records, key=lambda r: parse_to_utc_aware(r.created_at), reverse=True)


class Store(ABC):
    tier: StorageTier

    @abstractmethod
    def save(self, record: ScreeningRecord) -> ScreeningRecord:
        """Persist the record; return it as stored (tier set)."""

    @abstractmethod
    def list(self, limit: int = 50, name_filter: Optional[str] = None) -> List[ScreeningRecord]:
        """Return up to `limit` records, newest first."""

    @abstractmethod
    def get(self, record_id: str) -> Optional[ScreeningRecord]:
        """Return the record or None when this tier does not hold it."""


# ---------------------------------------------------------------------------
# primary-db
# ---------------------------------------------------------------------------


def _to_row(record: ScreeningRecord) -> Screening:
    inp = record.input
    return Screening(
        id=record.id,
        child_name=inp.child_name,
        created_at=record.created_at,
        age=inp.age,
        eye_contact=inp.eye_contact,
        speech_level=inp.speech_level,
        social_response=inp.social_response,
        sensory_reactions=inp.sensory_reactions,
        source=record.source.value,
        results=record.recommendation.model_dump(mode="json", by_alias=True),
        emotion=record.emotion.model_dump(mode="json", by_alias=True) if record.emotion else None,
    )


def _from_row(row: Screening, tier: StorageTier) -> ScreeningRecord:
    return ScreeningRecord(
        id=row.id,
        input=AssessmentInput(
            child_name=row.child_name,
            age=row.age,
            eye_contact=row.eye_contact,
            speech_level=row.speech_level,
            social_response=row.social_response,
            sensory_reactions=row.sensory_reactions,
        ),
        emotion=EmotionSignal.model_validate(row.emotion) if row.emotion else None,
        recommendation=Recommendation.model_validate(row.results),
        source=RecommendationSource(row.source),
        tier=tier,
        created_at=row.created_at,
    )


class SqlStore(Store):
    tier = StorageTier.PRIMARY_DB

    def __init__(self, session_factory: sessionmaker, engine: Optional[Engine] = None) -> None:
        self._session_factory = session_factory
        # with an engine, the schema is (re)created lazily until it succeeds once
        self._engine = engine
        self._schema_ready = engine is None
        self._schema_lock = threading.Lock()

    def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        with self._schema_lock:
            if not self._schema_ready:
                init_db(self._engine)
                self._schema_ready = True
                logger.info("Screening schema ready on %s", self._engine.url)

    def save(self, record: ScreeningRecord) -> ScreeningRecord:
        db = self._session_factory()
        try:
            self._ensure_schema()
            db.add(_to_row(record))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise TierWriteError(self.tier.value, f"{type(e).__name__}: {e}") from e
        finally:
            db.close()
        return record.model_copy(update={"tier": self.tier})

    def _rows_to_records(self, rows: List[Screening]) -> List[ScreeningRecord]:
        out: List[ScreeningRecord] = []
        for r in rows:
            try:
                out.append(_from_row(r, self.tier))
            except (ValidationError, ValueError) as e:
                logger.warning("Skipping unreadable screening row %s: %s", r.id, e)
        return out

    def list(self, limit: int = 50, name_filter: Optional[str] = None) -> List[ScreeningRecord]:
        db = self._session_factory()
        try:
            self._ensure_schema()
            q = db.query(Screening)
            if name_filter:
                q = q.filter(func.lower(Screening.child_name).contains(name_filter.lower(), autoescape=True))
            rows = q.order_by(Screening.created_at.desc()).limit(limit).all()
            return self._rows_to_records(rows)
        except SQLAlchemyError as e:
            raise TierReadError(self.tier.value, f"{type(e).__name__}: {e}") from e
        finally:
            db.close()

    def get(self, record_id: str) -> Optional[ScreeningRecord]:
        db = self._session_factory()
        try:
            self._ensure_schema()
            row = db.get(Screening, record_id)
            if row is None:
                return None
            records = self._rows_to_records([row])
            return records[0] if records else None
        except SQLAlchemyError as e:
            raise TierReadError(self.tier.value, f"{type(e).__name__}: {e}") from e
        finally:
            db.close()


# ---------------------------------------------------------------------------
# remote-store
# ---------------------------------------------------------------------------


class RemoteStore(Store):
    """JSON HTTP storage API. Records travel in their camelCase wire shape."""

    tier = StorageTier.REMOTE_STORE

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout_seconds: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._session = session or requests.Session()
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "X-API-Key": api_key,
        }

    def _parse_records(self, items: Any) -> List[ScreeningRecord]:
        out: List[ScreeningRecord] = []
        for item in items if isinstance(items, list) else []:
            try:
                rec = ScreeningRecord.model_validate(item)
            except ValidationError as e:
                logger.warning("Skipping malformed remote screening: %s", e.error_count())
                continue
            out.append(rec.model_copy(update={"tier": self.tier}))
        return out

    def save(self, record: ScreeningRecord) -> ScreeningRecord:
        payload = record.model_dump(mode="json", by_alias=True, exclude={"tier"})
        try:
            resp = self._session.post(
                self.api_url,
                json=payload,
                headers=self._headers,
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            raise TierWriteError(self.tier.value, f"{type(e).__name__}: {e}") from e

        if not resp.ok:
            raise TierWriteError(self.tier.value, f"storage API error: {resp.status_code} {resp.reason}")

        remote_id = None
        try:
            body = resp.json()
            if isinstance(body, dict):
                remote_id = body.get("id")
        except ValueError:
            pass  # 2xx without a JSON body still counts as stored

        return record.model_copy(update={"id": str(remote_id or record.id), "tier": self.tier})

    def list(self, limit: int = 50, name_filter: Optional[str] = None) -> List[ScreeningRecord]:
        params: Dict[str, Any] = {"limit": limit}
        if name_filter:
            params["childName"] = name_filter
        try:
            resp = self._session.get(
                self.api_url,
                params=params,
                headers=self._headers,
                timeout=self.timeout_seconds,
            )
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise TierReadError(self.tier.value, f"{type(e).__name__}: {e}") from e

        if isinstance(body, list):
            items = body
        elif isinstance(body, dict):
            items = body.get("screenings") or body.get("data") or []
        else:
            items = []
        records = [r for r in self._parse_records(items) if _matches(r, name_filter)]
        return _newest_first(records)[:limit]

    def get(self, record_id: str) -> Optional[ScreeningRecord]:
        try:
            resp = self._session.get(
                f"{self.api_url}/{record_id}",
                headers=self._headers,
                timeout=self.timeout_seconds,
            )
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise TierReadError(self.tier.value, f"{type(e).__name__}: {e}") from e

        if not isinstance(body, dict):
            return None
        item = body.get("screening") or body.get("data") or body
        records = self._parse_records([item])
        return records[0] if records else None


# ---------------------------------------------------------------------------
# memory
# ---------------------------------------------------------------------------


class MemoryStore(Store):
    """Process-local, lock-guarded record list. Contents vanish on restart.

    The lock covers only list mutation and snapshot copies; filtering happens
    on the copy.
    """

    tier = StorageTier.MEMORY

    def __init__(self, max_records: int = 1000) -> None:
        self.max_records = max_records
        self._records: List[ScreeningRecord] = []
        self._lock = threading.Lock()

    def save(self, record: ScreeningRecord) -> ScreeningRecord:
        stored = record.model_copy(update={"tier": self.tier})
        with self._lock:
            self._records.append(stored)
            overflow = len(self._records) - self.max_records
            if overflow > 0:
                del self._records[:overflow]
        return stored

    def snapshot(self) -> List[ScreeningRecord]:
        with self._lock:
            return list(self._records)

    def list(self, limit: int = 50, name_filter: Optional[str] = None) -> List[ScreeningRecord]:
        records = [r for r in self.snapshot() if _matches(r, name_filter)]
        return list(reversed(records))[:limit]

    def get(self, record_id: str) -> Optional[ScreeningRecord]:
        for r in self.snapshot():
            if r.id == record_id:
                return r
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
