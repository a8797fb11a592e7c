"""Client for the Gemini generateContent REST endpoint.

Used for both structured trend analysis (JSON text output) and persona
image generation (inline image output). Supports a mock mode for local demos.
"""
from __future__ import annotations

import json
import logging
from time import perf_counter
from typing import Any, Dict, Optional, Tuple

import httpx

from app.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


class GeminiClientError(RuntimeError):
    """Raised when the Gemini API call fails or returns an unusable body."""


class GeminiClient:
    """Async client for ``models/{model}:generateContent``."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._timeout = httpx.Timeout(self.settings.gemini_timeout_seconds)
        self._transport = transport

    async def generate_content(
        self,
        model: str,
        prompt: str,
        system_instruction: Optional[str] = None,
        generation_config: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Issue a single generateContent request.

        Args:
            model: Model identifier, e.g. gemini-2.5-flash
            prompt: User prompt text
            system_instruction: Optional system-level instruction
            generation_config: Optional generationConfig (schema, modalities, image config)

        Returns:
            Decoded JSON response body

        Raises:
            GeminiClientError: On missing credentials, transport errors,
                non-2xx status or a non-JSON body
        """
        if self.settings.use_mock_gemini:
            logger.warning("[GEMINI] Using mock provider for model=%s", model)
            return _generate_mock_response(generation_config)

        if not self.settings.gemini_api_key:
            raise GeminiClientError("GEMINI_API_KEY is not configured")

        payload: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if generation_config:
            payload["generationConfig"] = generation_config

        url = f"{self.settings.gemini_base_url.rstrip('/')}/models/{model}:generateContent"
        headers = {
            "x-goog-api-key": self.settings.gemini_api_key,
            "Content-Type": "application/json",
        }

        safe_payload = {
            "model": model,
            # first 80 chars only, prompts are long
            "prompt": prompt.strip()[:80],
            "config_keys": sorted((generation_config or {}).keys()),
        }
        logger.info(
            "[GEMINI] Request: url=%s, payload=%s",
            url,
            json.dumps(safe_payload, ensure_ascii=False),
        )

        start = perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(url, headers=headers, json=payload)
            logger.info(
                "[GEMINI] Response: status=%s, body_snippet=%s",
                response.status_code,
                response.text[:200],
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise GeminiClientError("Gemini request timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise GeminiClientError(f"Gemini request failed: {exc}") from exc
        except httpx.RequestError as exc:
            raise GeminiClientError(f"Gemini transport error: {exc}") from exc

        duration_ms = (perf_counter() - start) * 1000
        logger.info("[GEMINI] Request finished in %.2f ms", duration_ms)

        try:
            data = response.json()
        except ValueError as exc:
            raise GeminiClientError("Failed to parse Gemini JSON response") from exc
        if not isinstance(data, dict):
            raise GeminiClientError("Gemini response body is not an object")
        return data


def _candidate_parts(response: Dict[str, Any]) -> list:
    """Parts of the first candidate, or an empty list."""
    candidates = response.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return []
    if not isinstance(candidates[0], dict):
        return []
    content = candidates[0].get("content") or {}
    parts = content.get("parts") if isinstance(content, dict) else None
    return parts if isinstance(parts, list) else []


def extract_text(response: Dict[str, Any]) -> Optional[str]:
    """Concatenate the text parts of the first candidate."""
    texts = [
        part["text"]
        for part in _candidate_parts(response)
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    ]
    text = "".join(texts)
    return text or None


def extract_inline_image(response: Dict[str, Any]) -> Optional[Tuple[str, str]]:
    """
    Find the first part carrying inline image data.

    Returns:
        (mime_type, base64_data), or None when no part has inline data
    """
    for part in _candidate_parts(response):
        if not isinstance(part, dict):
            continue
        inline = part.get("inlineData") or part.get("inline_data")
        if isinstance(inline, dict):
            mime_type = inline.get("mimeType") or inline.get("mime_type")
            return mime_type, inline.get("data")
    return None


def _generate_mock_response(generation_config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Canned response: an analysis for JSON requests, a text-only reply otherwise."""
    config = generation_config or {}
    if config.get("responseMimeType") != "application/json":
        return {
            "candidates": [
                {"content": {"parts": [{"text": "mock provider does not render images"}]}}
            ]
        }
    return {
        "candidates": [
            {"content": {"parts": [{"text": json.dumps(MOCK_ANALYSIS, ensure_ascii=False)}]}}
        ]
    }


MOCK_ANALYSIS: Dict[str, Any] = {
    "hotKeywords": [
        {"word": "静奢风", "volume": 92, "category": "Style"},
        {"word": "多巴胺户外", "volume": 85, "category": "Style"},
        {"word": "黄油黄", "volume": 88, "category": "Color"},
        {"word": "薄荷曼波绿", "volume": 76, "category": "Color"},
        {"word": "科技凉感面料", "volume": 81, "category": "Fabric"},
        {"word": "重工蕾丝", "volume": 69, "category": "Fabric"},
        {"word": "芭蕾平底鞋", "volume": 79, "category": "Item"},
        {"word": "廓形风衣", "volume": 73, "category": "Item"},
    ],
    "consumerHabits": [
        {"attribute": "价格敏感度", "value": 45, "description": "愿为质感溢价"},
        {"attribute": "品牌忠诚", "value": 38, "description": "更忠于风格而非品牌"},
        {"attribute": "社交驱动", "value": 82, "description": "笔记种草决定购买"},
        {"attribute": "悦己消费", "value": 88, "description": "为情绪价值买单"},
        {"attribute": "可持续关注", "value": 57, "description": "偏好耐穿单品"},
        {"attribute": "尝新意愿", "value": 71, "description": "乐于尝试小众设计"},
    ],
    "preferences": [
        {"name": "面料质感", "percentage": 32},
        {"name": "色彩搭配", "percentage": 24},
        {"name": "设计独特性", "percentage": 26},
        {"name": "性价比", "percentage": 18},
    ],
    "futurePersonas": [
        {
            "name": "城市松弛派",
            "tagline": "在通勤与露营之间无缝切换",
            "description": "追求舒适与体面并存的都市青年。",
            "keyItems": ["机能风衣", "软底乐福鞋", "亚麻阔腿裤"],
            "colorPalette": ["#D8CFC4", "#6B705C", "#FFE8A3"],
        },
        {
            "name": "新中式玩家",
            "tagline": "把东方元素穿进日常",
            "description": "热衷盘扣、香云纱与现代剪裁混搭。",
            "keyItems": ["香云纱衬衫", "马面裙", "编织手袋"],
            "colorPalette": ["#8C2F39", "#2F3E46", "#EDE0D4"],
        },
        {
            "name": "数字游牧者",
            "tagline": "一只行李箱装下四季",
            "description": "重视功能面料与可叠穿性的远程工作者。",
            "keyItems": ["抗皱西装", "防泼水双肩包", "美利奴针织"],
            "colorPalette": ["#1D3557", "#A8DADC", "#F1FAEE"],
        },
    ],
    "executiveSummary": "（mock 数据）2026春夏趋势在“松弛”与“精致”之间寻找平衡。",
}


def get_gemini_client() -> GeminiClient:
    """Get a Gemini client bound to the current settings."""
    return GeminiClient()
