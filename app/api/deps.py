from __future__ import annotations

from fastapi import HTTPException, Request

from app.services.analysis_service import AnalysisService
from app.services.container import Services
from app.services.screening_store import ScreeningReader


def get_services(request: Request) -> Services:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Service is starting up")
    return services


def get_analysis_service(request: Request) -> AnalysisService:
    return get_services(request).analysis


def get_screening_reader(request: Request) -> ScreeningReader:
    return get_services(request).reader
