"""Trend analysis contract: pydantic models plus the Gemini response schema.

The models are the parse boundary for whatever the text model returns.
Records are closed: unknown keys are dropped (and logged) instead of being
carried through to the dashboard.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.schemas.base_schemas import BaseResponse

logger = logging.getLogger(__name__)


class KeywordCategory(str, Enum):
    """Hot keyword category."""

    STYLE = "Style"
    COLOR = "Color"
    FABRIC = "Fabric"
    ITEM = "Item"


# Labels the model tends to answer with when writing Chinese
CATEGORY_ALIASES = {
    "风格": KeywordCategory.STYLE,
    "色彩": KeywordCategory.COLOR,
    "颜色": KeywordCategory.COLOR,
    "面料": KeywordCategory.FABRIC,
    "材质": KeywordCategory.FABRIC,
    "单品": KeywordCategory.ITEM,
}


class ContractModel(BaseModel):
    """Closed record: unknown fields are ignored at the parse boundary."""

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def log_unknown_fields(cls, data: Any) -> Any:
        if isinstance(data, dict):
            unknown = sorted(set(data) - set(cls.model_fields))
            if unknown:
                logger.warning(
                    "[CONTRACT] %s: ignoring unknown fields %s", cls.__name__, unknown
                )
        return data


class HotKeyword(ContractModel):
    word: str = Field(..., description="热门关键词：风格名称、流行色彩名称或热门面料名称")
    volume: float = Field(..., description="热度预测值 0-100")
    category: KeywordCategory = Field(..., description="分类")

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, value: Any) -> Any:
        if isinstance(value, str):
            text = value.strip()
            if text in CATEGORY_ALIASES:
                return CATEGORY_ALIASES[text]
            return text.capitalize()
        return value


class ConsumerAttribute(ContractModel):
    attribute: str = Field(..., description="消费习惯维度")
    value: float = Field(..., description="维度评分 0-100")
    description: str = Field(..., description="简短说明")


class PurchasePreference(ContractModel):
    name: str = Field(..., description="决策因素")
    percentage: float = Field(..., description="占比百分比")


class FuturePersona(ContractModel):
    name: str = Field(..., description="未来消费人群名称")
    tagline: str = Field(..., description="人群 Slogan")
    description: str = Field(..., description="人群特征描述")
    keyItems: List[str] = Field(..., description="3-4 个必备时尚单品或面料细节")
    colorPalette: List[str] = Field(..., description="3 个 Hex 颜色代码")


class TrendAnalysisResult(ContractModel):
    """Validated output of one analysis request."""

    hotKeywords: List[HotKeyword]
    consumerHabits: List[ConsumerAttribute]
    preferences: List[PurchasePreference]
    futurePersonas: List[FuturePersona]
    executiveSummary: str


def _string(description: str) -> dict[str, Any]:
    return {"type": "STRING", "description": description}


def _number(description: str) -> dict[str, Any]:
    return {"type": "NUMBER", "description": description}


# Sent as generationConfig.responseSchema (OpenAPI subset understood by Gemini)
RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "hotKeywords": {
            "type": "ARRAY",
            "description": "小红书趋势关键词混合列表，必须覆盖风格、色彩、面料三类。",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "word": _string("热门关键词：包括风格名称、流行色彩名称、或热门面料名称"),
                    "volume": _number("热度预测值 0-100"),
                    "category": {
                        "type": "STRING",
                        "enum": [c.value for c in KeywordCategory],
                        "description": "分类：Style=风格, Color=色彩, Fabric=面料, Item=单品",
                    },
                },
                "required": ["word", "volume", "category"],
            },
        },
        "consumerHabits": {
            "type": "ARRAY",
            "description": "6个关键的消费行为画像维度",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "attribute": _string("消费习惯维度，如 '价格敏感度', '品牌忠诚', '社交驱动', '悦己消费'"),
                    "value": _number("维度评分 0-100"),
                    "description": _string("简短说明"),
                },
                "required": ["attribute", "value", "description"],
            },
        },
        "preferences": {
            "type": "ARRAY",
            "description": "购买决策驱动因素分布",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": _string("决策因素，如 '面料质感', '色彩搭配', '设计独特性', '性价比'"),
                    "percentage": _number("占比百分比"),
                },
                "required": ["name", "percentage"],
            },
        },
        "futurePersonas": {
            "type": "ARRAY",
            "description": "基于趋势预测的3类未来典型消费人群",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "name": _string("未来消费人群名称 (富有创造力的命名)"),
                    "tagline": _string("一句精准的人群Slogan"),
                    "description": _string("详细的人群特征描述"),
                    "keyItems": {
                        "type": "ARRAY",
                        "items": {"type": "STRING"},
                        "description": "3-4个必备时尚单品或面料细节",
                    },
                    "colorPalette": {
                        "type": "ARRAY",
                        "items": {"type": "STRING"},
                        "description": "代表这群人的3个Hex颜色代码",
                    },
                },
                "required": ["name", "tagline", "description", "keyItems", "colorPalette"],
            },
        },
        "executiveSummary": _string("深度洞察总结，分析风格背后的社会心理、消费逻辑及趋势预判。"),
    },
    "required": [
        "hotKeywords",
        "consumerHabits",
        "preferences",
        "futurePersonas",
        "executiveSummary",
    ],
}


class TrendAnalyzeRequest(BaseModel):
    """Trend analysis request schema."""

    query: str = Field(
        ...,
        description="趋势分析主题",
        examples=["streetwear 2026"],
    )


class TrendAnalyzeResponse(BaseResponse[TrendAnalysisResult]):
    """Trend analysis response schema."""


class PersonaImageRequest(BaseModel):
    """Persona image request schema."""

    persona: FuturePersona


class PersonaImageData(BaseModel):
    imageData: str | None = Field(
        None, description="data URI of the generated image, null when unavailable"
    )


class PersonaImageResponse(BaseResponse[PersonaImageData]):
    """Persona image response schema."""
