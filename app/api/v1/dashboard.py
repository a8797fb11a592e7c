"""Dashboard view-state API endpoints.

The page polls ``GET /dashboard/state``; submit and retry return right after
the transition to loading unless ``wait=true`` is passed.
"""
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from app.schemas.base_schemas import BaseResponse, ErrorResponse
from app.schemas.dashboard_schemas import DashboardSnapshot, DashboardSubmitRequest
from app.services.dashboard_controller import DashboardController

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
    responses={503: {"model": ErrorResponse}},
)


def get_dashboard_controller(request: Request) -> DashboardController:
    """Controller created by the application lifespan."""
    controller = getattr(request.app.state, "dashboard", None)
    if controller is None:
        raise HTTPException(status_code=503, detail="dashboard is not ready")
    return controller


async def _settle(controller: DashboardController, task: asyncio.Task) -> None:
    await asyncio.shield(task)
    await controller.wait_for_images()


@router.get("/state", response_model=BaseResponse[DashboardSnapshot])
async def get_state(
    controller: DashboardController = Depends(get_dashboard_controller),
) -> BaseResponse[DashboardSnapshot]:
    return BaseResponse(data=controller.snapshot())


@router.post(
    "/submit",
    response_model=BaseResponse[DashboardSnapshot],
    responses={400: {"model": ErrorResponse}},
)
async def submit(
    request: DashboardSubmitRequest,
    wait: bool = False,
    controller: DashboardController = Depends(get_dashboard_controller),
) -> BaseResponse[DashboardSnapshot]:
    """
    Submit a new query.

    Raises:
        HTTPException: 400 when the query is empty
    """
    logger.info("[API] POST /dashboard/submit - wait=%s", wait)
    task = controller.submit(request.query)
    if task is None:
        raise HTTPException(status_code=400, detail="query must not be empty")
    if wait:
        await _settle(controller, task)
    return BaseResponse(data=controller.snapshot())


@router.post(
    "/retry",
    response_model=BaseResponse[DashboardSnapshot],
    responses={409: {"model": ErrorResponse}},
)
async def retry(
    wait: bool = False,
    controller: DashboardController = Depends(get_dashboard_controller),
) -> BaseResponse[DashboardSnapshot]:
    """
    Retry the last failed query.

    Raises:
        HTTPException: 409 unless the dashboard is in the error phase
    """
    logger.info("[API] POST /dashboard/retry - wait=%s", wait)
    task = controller.retry()
    if task is None:
        raise HTTPException(status_code=409, detail="retry is only available after an error")
    if wait:
        await _settle(controller, task)
    return BaseResponse(data=controller.snapshot())
