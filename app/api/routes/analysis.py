from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_analysis_service
from app.errors import AssessmentValidationError
from app.schemas.screening import AnalysisRequest, AnalysisResponse
from app.services.analysis_service import AnalysisService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analysis"])


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


@router.post("/analyze", response_model=AnalysisResponse)
def analyze(req: AnalysisRequest, service: AnalysisService = Depends(get_analysis_service)):
    """Analyze one screening submission and persist the result.

    Model and storage failures are absorbed by the service; only a request the
    service cannot interpret is rejected.
    """
    try:
        return service.analyze(req)
    except AssessmentValidationError as e:
        logger.info("Rejected analysis request: %s", e)
        return error_response(400, str(e))
    except Exception:
        logger.exception("Analysis failed for %s", req.child_name)
        return error_response(500, "Analysis failed. Please try again.")
