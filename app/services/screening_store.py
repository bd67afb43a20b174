from __future__ import annotations

import logging
import uuid
from typing import List, Optional, Sequence, Tuple

from app.errors import StorageError
from app.schemas.screening import (
    AssessmentInput,
    EmotionSignal,
    Recommendation,
    RecommendationSource,
    ScreeningRecord,
    StorageTier,
)
from app.services.stores import Store
from app.utils.time import now_utc


logger = logging.getLogger(__name__)


class PersistenceCoordinator:
    """Writes each screening to exactly one tier, trying them in order.

    A tier failure is logged and the next tier is tried; nothing is raised to
    the caller. The returned tier is None only when every tier failed.
    """

    def __init__(self, stores: Sequence[Store]) -> None:
        if not stores:
            raise ValueError("at least one store is required")
        self.stores: List[Store] = list(stores)

    @property
    def tiers(self) -> List[StorageTier]:
        return [s.tier for s in self.stores]

    def save(
        self,
        inp: AssessmentInput,
        recommendation: Recommendation,
        source: RecommendationSource,
        emotion: Optional[EmotionSignal] = None,
    ) -> Tuple[ScreeningRecord, Optional[StorageTier]]:
        record = ScreeningRecord(
            id=uuid.uuid4().hex,
            input=inp,
            emotion=emotion,
            recommendation=recommendation,
            source=source,
            created_at=now_utc(),
        )

        for store in self.stores:
            try:
                saved = store.save(record)
            except StorageError as e:
                logger.warning("Screening write to %s failed, trying next tier: %s", store.tier.value, e)
                continue
            except Exception:
                logger.exception("Unexpected error writing screening to %s, trying next tier", store.tier.value)
                continue
            logger.info("Screening %s saved to %s", saved.id, store.tier.value)
            return saved, store.tier

        logger.error("Screening %s was not persisted: every storage tier failed", record.id)
        return record, None


class ScreeningReader:
    """Reads screenings from the first tier that has any matching data.

    Tiers are write-disjoint, so results are never merged: an empty or failing
    tier hands over to the next one.
    """

    def __init__(self, stores: Sequence[Store]) -> None:
        if not stores:
            raise ValueError("at least one store is required")
        self.stores: List[Store] = list(stores)

    def list(
        self, limit: int = 50, name_filter: Optional[str] = None
    ) -> Tuple[List[ScreeningRecord], StorageTier]:
        for store in self.stores:
            try:
                records = store.list(limit=limit, name_filter=name_filter)
            except StorageError as e:
                logger.warning("Screening list from %s failed, trying next tier: %s", store.tier.value, e)
                continue
            except Exception:
                logger.exception("Unexpected error listing screenings from %s, trying next tier", store.tier.value)
                continue
            if records:
                return records[:limit], store.tier
            logger.debug("No screenings in %s, trying next tier", store.tier.value)

        return [], self.stores[-1].tier

    def get_by_id(self, record_id: str) -> Tuple[Optional[ScreeningRecord], Optional[StorageTier]]:
        for store in self.stores:
            try:
                record = store.get(record_id)
            except StorageError as e:
                logger.warning("Screening lookup in %s failed, trying next tier: %s", store.tier.value, e)
                continue
            except Exception:
                logger.exception("Unexpected error looking up screening in %s, trying next tier", store.tier.value)
                continue
            if record is not None:
                return record, store.tier
        return None, None
