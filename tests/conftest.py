"""Pytest configuration for test suite."""
from __future__ import annotations

import copy
import os
import sys
from pathlib import Path

import pytest

# Add project root to Python path so 'app' can be imported in tests
project_root = Path(__file__).parent.parent.resolve()
project_root_str = str(project_root)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)
os.environ.setdefault("PYTHONPATH", project_root_str)

from app.schemas.trend_schemas import FuturePersona, TrendAnalysisResult  # noqa: E402

SAMPLE_PAYLOAD = {
    "hotKeywords": [
        {"word": "机能街头", "volume": 95, "category": "Style"},
        {"word": "Y2K 复兴", "volume": 80, "category": "Style"},
        {"word": "电光蓝", "volume": 87, "category": "Color"},
        {"word": "奶咖色", "volume": 74, "category": "Color"},
        {"word": "尼龙涂层", "volume": 83, "category": "Fabric"},
        {"word": "水洗丹宁", "volume": 78, "category": "Fabric"},
        {"word": "工装短裤", "volume": 70, "category": "Item"},
        {"word": "老爹鞋", "volume": 66, "category": "Item"},
    ],
    "consumerHabits": [
        {"attribute": "价格敏感度", "value": 52, "description": "看重单品性价比"},
        {"attribute": "品牌忠诚", "value": 41, "description": "追随主理人品牌"},
        {"attribute": "社交驱动", "value": 90, "description": "穿搭笔记驱动购买"},
        {"attribute": "悦己消费", "value": 77, "description": "为态度买单"},
        {"attribute": "限量追逐", "value": 68, "description": "关注联名发售"},
        {"attribute": "二手流通", "value": 46, "description": "愿意转卖与收藏"},
    ],
    "preferences": [
        {"name": "设计独特性", "percentage": 40},
        {"name": "面料质感", "percentage": 25},
        {"name": "色彩搭配", "percentage": 20},
        {"name": "性价比", "percentage": 15},
    ],
    "futurePersonas": [
        {
            "name": "夜行机能派",
            "tagline": "城市即是户外",
            "description": "把防护功能穿成态度的年轻人。",
            "keyItems": ["冲锋衣", "战术背心", "越野跑鞋"],
            "colorPalette": ["#0B0C10", "#1F2833", "#66FCF1"],
        },
        {
            "name": "复古玩家",
            "tagline": "旧物新穿",
            "description": "热衷古着与千禧元素混搭。",
            "keyItems": ["水洗夹克", "宽松牛仔", "棒球帽", "链条包"],
            "colorPalette": ["#F4D35E", "#EE964B", "#0D3B66"],
        },
        {
            "name": "极简通勤族",
            "tagline": "少即是多",
            "description": "用基础款构建街头感的上班族。",
            "keyItems": ["廓形卫衣", "直筒裤", "德训鞋"],
            "colorPalette": ["#FFFFFF", "#BFBFBF", "#262626"],
        },
    ],
    "executiveSummary": "2026 年街头风格在功能性与怀旧情绪之间摇摆。",
}


@pytest.fixture
def sample_payload():
    """Schema-conformant analysis payload (fresh copy per test)."""
    return copy.deepcopy(SAMPLE_PAYLOAD)


@pytest.fixture
def sample_result(sample_payload):
    return TrendAnalysisResult.model_validate(sample_payload)


@pytest.fixture
def sample_persona(sample_payload):
    return FuturePersona.model_validate(sample_payload["futurePersonas"][0])
