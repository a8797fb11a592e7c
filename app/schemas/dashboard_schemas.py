"""Dashboard view-state schemas."""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from app.schemas.trend_schemas import TrendAnalysisResult

ANALYSIS_FAILED_MESSAGE = "Analysis failed. Please try again."


class ViewPhase(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class ImageStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class PersonaImageState(BaseModel):
    """Image slot of one persona card."""

    key: str = Field(..., description="稳定标识：'{index}:{name}'")
    index: int
    name: str
    status: ImageStatus = ImageStatus.LOADING
    imageData: Optional[str] = Field(None, description="data URI，失败或加载中为空")


class ViewState(BaseModel):
    """What the dashboard currently shows."""

    phase: ViewPhase = ViewPhase.IDLE
    query: str = ""
    result: Optional[TrendAnalysisResult] = None
    errorMessage: Optional[str] = None

    @model_validator(mode="after")
    def check_phase_fields(self):
        """result is set iff success, errorMessage is set iff error."""
        if (self.result is not None) != (self.phase is ViewPhase.SUCCESS):
            raise ValueError("result must be set exactly when phase is success")
        if (self.errorMessage is not None) != (self.phase is ViewPhase.ERROR):
            raise ValueError("errorMessage must be set exactly when phase is error")
        return self


class DashboardSnapshot(BaseModel):
    view: ViewState
    personaImages: List[PersonaImageState] = Field(default_factory=list)
    generation: int = Field(0, description="提交序号，每次 submit 递增")


class DashboardSubmitRequest(BaseModel):
    """Dashboard submit request schema."""

    query: str = Field(..., description="趋势分析主题", examples=["streetwear 2026"])
