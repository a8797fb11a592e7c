"""Prompt templates for trend analysis and persona images.

Kept in a separate file so they can be tuned without touching the services.
"""
from __future__ import annotations

from app.schemas.trend_schemas import FuturePersona


def build_trend_system_prompt() -> str:
    """System instruction for the trend analysis model."""
    return (
        "你是时尚与消费趋势专家，精通中国社交媒体生态，"
        "擅长洞察小红书用户心理与未来时尚趋势。"
    )


def build_trend_user_prompt(query: str) -> str:
    """
    Build the analysis prompt for one query.

    The query is embedded verbatim. When it names a future period (e.g. 2026),
    the model is asked to forecast rather than describe the present.
    """
    return f"""请作为一位资深的小红书（Xiaohongshu）时尚趋势分析师和消费心理学家，针对预测请求："{query}" 进行深度分析。

请注意：如果查询包含未来的年份（如2026），请进行**趋势预测（Forecasting）**，而非仅仅描述现状。

请输出简体中文（Simplified Chinese），并严格包含以下内容：

1. 热门穿搭热词 (Hot Keywords): 提取8个最关键的词。**必须混合包含**：
   - 核心风格 (Styles)，category 使用 Style
   - **流行色彩 (Trending Colors)**：请预测具体的流行色名称，category 使用 Color
   - **流行面料 (Trending Fabrics)**：请预测材质趋势（如：科技感面料、重工蕾丝、老钱风羊绒等），category 使用 Fabric
   - 热门单品 (Key Items)，category 使用 Item

2. 消费习惯画像 (Consumer Habits): 分析关注该趋势人群的6个核心消费行为维度。

3. 消费喜好 (Purchase Preferences): 分析影响他们下单的关键驱动因素。

4. 未来人群画像 (Future Personas): 预测3个在该时间段（如2026春夏）将崛起的细分消费人群。

5. 深度总结 (Executive Summary): 结合社会心理学，分析该趋势背后的深层逻辑、色彩心理学和面料触感趋势。

数据要求：
- 必须真实反映中国社交媒体语境。
- 语言风格：专业、敏锐、带有时尚媒体（如Vogue Business China）的调性。
"""


def build_persona_image_prompt(persona: FuturePersona) -> str:
    """Editorial photo prompt for one persona card."""
    return f"""Create a high-end, ultra-detailed fashion editorial photograph for a style persona named "{persona.name}".

**Visual Context**:
- Tagline/Theme: {persona.tagline}
- Detailed Description: {persona.description}
- Key Fashion Items to Feature: {", ".join(persona.keyItems)}
- Color Palette: {", ".join(persona.colorPalette)}

**Photography Style & Quality**:
- **Resolution**: 8k, Ultra-HD, masterpiece quality, photorealistic.
- **Lighting**: Professional studio lighting, cinematic chiaroscuro, or natural golden hour light (matching the vibe).
- **Textures**: Highly detailed fabric textures (silk, denim, leather, wool), realistic skin texture, sharp focus.
- **Composition**: Vogue/Harper's Bazaar magazine cover style, strong focal point, depth of field.
- **Vibe**: Sophisticated, trendy, expressive, high-fashion.
"""
