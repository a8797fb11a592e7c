"""Trend analysis and persona image API endpoints."""
from __future__ import annotations

import logging
import time

from fastapi import APIRouter, HTTPException

from app.schemas.base_schemas import ErrorResponse
from app.schemas.dashboard_schemas import ANALYSIS_FAILED_MESSAGE
from app.schemas.trend_schemas import (
    PersonaImageData,
    PersonaImageRequest,
    PersonaImageResponse,
    TrendAnalyzeRequest,
    TrendAnalyzeResponse,
)
from app.services.persona_image_service import generate_persona_image
from app.services.trend_analysis_service import AnalysisError, fetch_trend_analysis

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai/trend", tags=["ai"])


@router.post(
    "/analyze",
    response_model=TrendAnalyzeResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def analyze_trend(request: TrendAnalyzeRequest) -> TrendAnalyzeResponse:
    """
    Analyze one trend query.

    Returns hot keywords, consumer habits, purchase preferences, three future
    personas and an executive summary.

    Raises:
        HTTPException:
            - 400: empty query
            - 502: the analysis could not be produced (detail is logged only)
    """
    start_time = time.time()
    logger.info("[API] POST /ai/trend/analyze - Request received")

    query = request.query.strip()
    if not query:
        logger.warning("[API] ✗ query is empty")
        raise HTTPException(status_code=400, detail="query must not be empty")

    try:
        result = await fetch_trend_analysis(query)
    except AnalysisError as e:
        logger.error("[API] ✗ Trend analysis failed: %s", e, exc_info=True)
        raise HTTPException(status_code=502, detail=ANALYSIS_FAILED_MESSAGE)

    latency_ms = int((time.time() - start_time) * 1000)
    logger.info(
        "[API] ✓ Trend analysis completed: personas=%d, latency=%dms",
        len(result.futurePersonas),
        latency_ms,
    )
    return TrendAnalyzeResponse(data=result)


@router.post("/persona_image", response_model=PersonaImageResponse)
async def persona_image(request: PersonaImageRequest) -> PersonaImageResponse:
    """
    Generate the editorial image of one persona.

    Image failures are not errors: ``data.imageData`` is null and the client
    shows a placeholder.
    """
    logger.info("[API] POST /ai/trend/persona_image - persona=%s", request.persona.name)
    image = await generate_persona_image(request.persona)
    if image is None:
        return PersonaImageResponse(
            message="No image available",
            data=PersonaImageData(imageData=None),
        )
    return PersonaImageResponse(data=PersonaImageData(imageData=image))
