"""
Chart API routes, mounted as a sub-router on the main FastAPI app.

POST /api/charts          assemble a configuration for the caller's session
GET  /api/charts/current  the session's current configuration
GET  /api/charts/types    registry catalog
POST /api/charts/enrich   infer missing chart parameters
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request

from app.enrich import enrich_request, merge_enrichment
from charts.registry import catalog
from core.config import load_settings
from core.models import ChartConfiguration, ChartRequest, ChartResponse
from core.storage import get_assembler

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api", tags=["charts"])


def _require_session_id(request: Request) -> str:
    sid = request.headers.get("X-Session-Id")
    if not sid:
        raise HTTPException(status_code=400, detail="Missing X-Session-Id header.")
    return sid


def _log_response(ctx: str, payload: Any) -> None:
    """Pretty-print JSON-able payloads; fall back to str()."""
    try:
        logger.info("%s response: %s", ctx, json.dumps(payload, indent=2, default=str))
    except (TypeError, ValueError):
        logger.info("%s response (non-serializable): %s", ctx, str(payload))


def _response(configuration: Optional[ChartConfiguration], error: Optional[str], cached: bool) -> dict:
    if configuration is None and error is None:
        error = "No chart could be generated: provide a prompt and an object or list of objects with a label and a numeric field."
    return ChartResponse(
        ok=configuration is not None,
        configuration=configuration.to_payload() if configuration is not None else None,
        error=None if configuration is not None else error,
        cached=cached,
    ).model_dump()


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("/charts")
async def create_chart(request: Request, body: ChartRequest):
    """
    Assemble a chart configuration for the session.

    Malformed or unchartable input is not an HTTP error: the response
    carries ``configuration: null`` and an explanatory ``error``.
    """
    sid = _require_session_id(request)
    assembler = get_assembler(sid)
    t0 = time.perf_counter()

    if body.enrich:
        settings = load_settings()
        enrichment = enrich_request(body.data, body.prompt, use_llm=settings.enrich_with_llm)
        body = merge_enrichment(body, enrichment)

    configuration = assembler.assemble_request(body)
    dt_ms = int((time.perf_counter() - t0) * 1000)
    logger.info(
        "CHART meta: %s",
        json.dumps({"prompt": body.prompt, "chartType": body.chartType, "duration_ms": dt_ms}, default=str),
    )

    resp = _response(configuration, assembler.error, assembler.last_cached)
    _log_response("CHART", resp)
    return resp


@router.get("/charts/current")
async def current_chart(request: Request):
    sid = _require_session_id(request)
    assembler = get_assembler(sid)
    configuration = assembler.configuration
    return {
        "ok": configuration is not None,
        "configuration": configuration.to_payload() if configuration is not None else None,
        "error": assembler.error,
    }


@router.get("/charts/types")
async def chart_types():
    return {"types": catalog()}


@router.post("/charts/enrich")
async def enrich_chart(request: Request, body: ChartRequest):
    _require_session_id(request)
    settings = load_settings()
    enrichment = enrich_request(body.data, body.prompt, use_llm=settings.enrich_with_llm)
    merged = merge_enrichment(body, enrichment)
    resp = {
        "enrichment": enrichment.model_dump(),
        "request": merged.model_dump(exclude={"data"}),
    }
    _log_response("ENRICH", resp)
    return resp
