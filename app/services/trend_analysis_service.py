"""Trend analysis service.

One query, one request to the text model, one validated result.
"""
from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import ValidationError

from app.core.config import get_settings
from app.schemas.trend_schemas import RESPONSE_SCHEMA, TrendAnalysisResult
from app.services.gemini_client import (
    GeminiClient,
    GeminiClientError,
    extract_text,
    get_gemini_client,
)
from app.services.prompts.trend_prompts import (
    build_trend_system_prompt,
    build_trend_user_prompt,
)

logger = logging.getLogger(__name__)


class AnalysisError(RuntimeError):
    """Raised when a trend analysis could not be produced."""


def _strip_code_fence(text: str) -> str:
    """Unwrap ```json ... ``` blocks some models add despite the mime type."""
    content = text.strip()
    if "```json" in content:
        start = content.find("```json") + 7
        end = content.find("```", start)
        return content[start:end if end != -1 else None].strip()
    if content.startswith("```"):
        start = content.find("```") + 3
        end = content.find("```", start)
        return content[start:end if end != -1 else None].strip()
    return content


def parse_trend_analysis(text: str) -> TrendAnalysisResult:
    """
    Decode model output into a TrendAnalysisResult.

    Raises:
        AnalysisError: When the text is not JSON or does not match the contract
    """
    try:
        payload = json.loads(_strip_code_fence(text))
    except json.JSONDecodeError as exc:
        raise AnalysisError(f"Analysis payload is not valid JSON: {exc}") from exc

    try:
        return TrendAnalysisResult.model_validate(payload)
    except ValidationError as exc:
        raise AnalysisError(
            f"Analysis payload does not match the contract: {exc.error_count()} errors"
        ) from exc


async def fetch_trend_analysis(
    query: str, client: Optional[GeminiClient] = None
) -> TrendAnalysisResult:
    """
    Request a trend analysis for ``query``.

    Args:
        query: Non-empty analysis subject, used verbatim
        client: Gemini client (defaults to get_gemini_client())

    Returns:
        TrendAnalysisResult

    Raises:
        AnalysisError: When the call fails, returns no text, or the text
            fails to parse as the contract shape
    """
    if not query or not query.strip():
        raise AnalysisError("query must not be empty")

    settings = get_settings()
    client = client or get_gemini_client()

    logger.info(
        "[TREND_SERVICE] Fetching analysis: model=%s, query=%s",
        settings.gemini_text_model,
        query[:80],
    )

    try:
        response = await client.generate_content(
            model=settings.gemini_text_model,
            prompt=build_trend_user_prompt(query),
            system_instruction=build_trend_system_prompt(),
            generation_config={
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        )
    except GeminiClientError as exc:
        logger.error("[TREND_SERVICE] ✗ Analysis request failed: %s", exc)
        raise AnalysisError(str(exc)) from exc

    try:
        text = extract_text(response)
    except (AttributeError, KeyError, TypeError, IndexError) as exc:
        logger.error("[TREND_SERVICE] ✗ Malformed Gemini response: %r", exc)
        raise AnalysisError("Malformed response from Gemini.") from exc
    if not text:
        logger.error("[TREND_SERVICE] ✗ No data returned from Gemini")
        raise AnalysisError("No data returned from Gemini.")

    try:
        result = parse_trend_analysis(text)
    except AnalysisError as exc:
        logger.error("[TREND_SERVICE] ✗ %s; text_snippet=%s", exc, text[:200])
        raise

    logger.info(
        "[TREND_SERVICE] ✓ Analysis parsed: keywords=%d, habits=%d, preferences=%d, personas=%d",
        len(result.hotKeywords),
        len(result.consumerHabits),
        len(result.preferences),
        len(result.futurePersonas),
    )
    return result
