from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from ..config import settings
from ..core.errors import FetchError
from ..service import MatchService
from .schemas import MatchRequest

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service(request: Request) -> MatchService:
    service = getattr(request.app.state, "service", None)
    if service is None:
        raise HTTPException(status_code=500, detail="Match service is not available")
    return service


def _unavailable(exc: FetchError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"ok": False, "error": str(exc)})


@router.get("/healthz")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/v1/match", response_model=None)
async def match_headlines(
    body: MatchRequest,
    service: MatchService = Depends(get_service),
) -> dict[str, Any] | JSONResponse:
    if len(body.headlines) > settings.max_headlines_per_request:
        raise HTTPException(
            status_code=422,
            detail=f"at most {settings.max_headlines_per_request} headlines per request",
        )

    try:
        result = await service.match_headlines(body.headlines)
    except FetchError as exc:
        logger.warning("Match request failed: %s", exc)
        return _unavailable(exc)
    return result.serialize()


@router.post("/v1/warm", response_model=None)
async def warm_cache(
    service: MatchService = Depends(get_service),
) -> dict[str, Any] | JSONResponse:
    try:
        result = await service.warm_cache()
    except FetchError as exc:
        logger.warning("Cache warm-up failed: %s", exc)
        return _unavailable(exc)
    return result.serialize()
