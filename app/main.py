"""FastAPI application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1 import dashboard as dashboard_router, trend as trend_router
from app.api.v1.router import router as v1_router
from app.core.config import get_settings
from app.core.logging_config import init_logging
from app.core.middleware import TraceIdMiddleware
from app.schemas.base_schemas import ErrorResponse
from app.services.dashboard_controller import DashboardController

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_logging()
    controller = DashboardController(default_query=settings.default_query)
    app.state.dashboard = controller
    controller.mount()
    logger.info("%s v%s started (env=%s)", settings.app_name, settings.app_version, settings.app_env)
    try:
        yield
    finally:
        await controller.close()
        app.state.dashboard = None


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    RED Insight Engine - 小红书时尚趋势洞察

    输入一个趋势主题，由 Gemini 生成结构化趋势分析（热词、消费习惯、购买驱动、
    未来人群画像、深度总结），并为每个人群画像生成一张时尚大片。

    ## 主要 API

    - `POST /ai/trend/analyze` - 趋势分析
    - `POST /ai/trend/persona_image` - 人群画像配图
    - `GET /dashboard/state` - 看板状态
    - `POST /dashboard/submit` - 提交查询
    - `POST /dashboard/retry` - 失败后重试
    """,
    lifespan=lifespan,
    tags_metadata=[
        {"name": "ai", "description": "趋势分析与人群画像配图"},
        {"name": "dashboard", "description": "看板状态机"},
    ],
)

# Local demo origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:8080",
        "http://localhost:8080",
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TraceIdMiddleware)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as ErrorResponse bodies."""
    body = ErrorResponse(message=str(exc.detail), error_code=f"HTTP_{exc.status_code}")
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(),
        headers=getattr(exc, "headers", None),
    )


app.include_router(v1_router)
app.include_router(trend_router.router)
app.include_router(dashboard_router.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": settings.app_version}


@app.get("/", include_in_schema=False)
async def index() -> FileResponse:
    """Dashboard page."""
    return FileResponse(STATIC_DIR / "index.html")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
