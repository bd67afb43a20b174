from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes.analysis import router as analysis_router
from app.api.routes.screenings import router as screenings_router
from app.config import load_settings
from app.services.container import build_services
from app.utils.time import now_utc_iso


settings = load_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Child Screening Recommendation API", version="0.1.0")

app.include_router(analysis_router)
app.include_router(screenings_router)


@app.on_event("startup")
def _startup() -> None:
    """Compose storage tiers and generators once per process."""
    app.state.services = build_services(settings)
    logger.info(
        "Screening API ready (AI configured: %s, storage tiers: %s)",
        settings.ai.is_configured,
        " -> ".join(s.tier.value for s in app.state.services.stores),
    )


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path"))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "; ".join(parts) or "Invalid request"},
    )


@app.get("/health")
def health(request: Request):
    services = getattr(request.app.state, "services", None)
    tiers = [s.tier.value for s in services.stores] if services is not None else []
    return {
        "status": "ok",
        "aiConfigured": settings.ai.is_configured,
        "tiers": tiers,
        "timestamp": now_utc_iso(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.api.main:app", host="0.0.0.0", port=5000)
