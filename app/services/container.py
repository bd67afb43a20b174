from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from app.config import Settings
from app.db.session import init_db, make_engine, make_session_factory
from app.ml.recommendations.ai import AIRecommender
from app.ml.recommendations.engine import RuleBasedRecommender
from app.services.analysis_service import AnalysisService
from app.services.screening_store import PersistenceCoordinator, ScreeningReader
from app.services.stores import MemoryStore, RemoteStore, SqlStore, Store


logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    engine: Optional[Engine]
    stores: List[Store]
    analysis: AnalysisService
    reader: ScreeningReader


def build_stores(settings: Settings, engine: Optional[Engine], schema_ready: bool = True) -> List[Store]:
    """primary-db -> remote-store (when configured) -> memory."""
    stores: List[Store] = []
    if engine is not None:
        stores.append(SqlStore(make_session_factory(engine), engine=None if schema_ready else engine))
    if settings.storage.remote_configured:
        stores.append(
            RemoteStore(
                api_url=settings.storage.api_url,
                api_key=settings.storage.api_key,
                timeout_seconds=settings.storage.timeout_seconds,
            )
        )
    else:
        logger.info("Remote storage not configured; falling back to memory after the database")
    stores.append(MemoryStore(max_records=settings.storage.memory_max_records))
    return stores


def build_services(settings: Settings) -> Services:
    engine: Optional[Engine] = None
    schema_ready = False
    try:
        engine = make_engine(settings.database.url)
        init_db(engine)
        schema_ready = True
    except (SQLAlchemyError, OSError) as e:
        # keep the engine: the SQL tier retries the schema on later requests
        logger.warning("Database schema not initialised (%s): %s", settings.database.url, e)

    stores = build_stores(settings, engine, schema_ready=schema_ready)
    if not settings.ai.is_configured:
        logger.warning("GEMINI_API_KEY not configured - using rule-based recommendations")

    analysis = AnalysisService(
        ai=AIRecommender(settings.ai),
        rules=RuleBasedRecommender(),
        coordinator=PersistenceCoordinator(stores),
    )
    return Services(
        settings=settings,
        engine=engine,
        stores=stores,
        analysis=analysis,
        reader=ScreeningReader(stores),
    )
