"""Persona image service.

One request per persona. Failures never propagate: the caller gets None and
shows a placeholder for that card only.
"""
from __future__ import annotations

import logging
from typing import Optional

from app.core.config import get_settings
from app.schemas.trend_schemas import FuturePersona
from app.services.gemini_client import (
    GeminiClient,
    GeminiClientError,
    extract_inline_image,
    get_gemini_client,
)
from app.services.prompts.trend_prompts import build_persona_image_prompt

logger = logging.getLogger(__name__)


class ImageError(RuntimeError):
    """Raised internally when a persona image could not be produced."""


async def _request_persona_image(persona: FuturePersona, client: GeminiClient) -> str:
    settings = get_settings()
    try:
        response = await client.generate_content(
            model=settings.gemini_image_model,
            prompt=build_persona_image_prompt(persona),
            generation_config={
                "responseModalities": ["IMAGE"],
                "imageConfig": {"aspectRatio": settings.persona_image_aspect_ratio},
            },
        )
    except GeminiClientError as exc:
        raise ImageError(str(exc)) from exc

    try:
        image = extract_inline_image(response)
    except (AttributeError, KeyError, TypeError, IndexError) as exc:
        raise ImageError(f"malformed response: {exc!r}") from exc
    if image is None:
        raise ImageError("response contains no inline image part")
    mime_type, data = image
    if not mime_type or not isinstance(data, str) or not data:
        raise ImageError(f"malformed inline image part (mime_type={mime_type!r})")
    return f"data:{mime_type};base64,{data}"


async def generate_persona_image(
    persona: FuturePersona, client: Optional[GeminiClient] = None
) -> Optional[str]:
    """
    Generate the editorial image of one persona.

    Returns:
        ``data:{mime};base64,{data}`` URI, or None when no image is available
    """
    logger.info("[PERSONA_IMAGE] Generating image: persona=%s", persona.name)
    try:
        data_uri = await _request_persona_image(persona, client or get_gemini_client())
    except ImageError as exc:
        logger.warning("[PERSONA_IMAGE] ✗ No image for persona=%s: %s", persona.name, exc)
        return None
    except Exception as exc:
        logger.error(
            "[PERSONA_IMAGE] ✗ Unexpected error for persona=%s: %s",
            persona.name,
            exc,
            exc_info=True,
        )
        return None
    logger.info(
        "[PERSONA_IMAGE] ✓ Image ready: persona=%s, size=%d chars",
        persona.name,
        len(data_uri),
    )
    return data_uri
