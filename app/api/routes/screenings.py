from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_screening_reader
from app.api.routes.analysis import error_response
from app.schemas.screening import ScreeningDetailResponse, ScreeningListResponse
from app.services.screening_store import ScreeningReader


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/screenings", tags=["screenings"])


@router.get("", response_model=ScreeningListResponse)
def list_screenings(
    limit: int = Query(50, ge=1, le=500),
    name_filter: Optional[str] = Query(None, alias="nameFilter"),
    reader: ScreeningReader = Depends(get_screening_reader),
):
    """Return recent screenings (newest first) from the first tier that has any."""
    try:
        records, tier = reader.list(limit=limit, name_filter=name_filter or None)
    except Exception:
        logger.exception("Failed to list screenings")
        return error_response(500, "Failed to load screenings")
    return ScreeningListResponse(success=True, count=len(records), source=tier, data=records)


@router.get("/{screening_id}", response_model=ScreeningDetailResponse)
def get_screening(screening_id: str, reader: ScreeningReader = Depends(get_screening_reader)):
    try:
        record, tier = reader.get_by_id(screening_id)
    except Exception:
        logger.exception("Failed to load screening %s", screening_id)
        return error_response(500, "Failed to load screening")
    if record is None:
        return error_response(404, "Screening not found")
    return ScreeningDetailResponse(success=True, source=tier, data=record)
