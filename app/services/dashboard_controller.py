"""Dashboard view-state controller.

State machine idle -> loading -> success | error over one analysis per
submission, followed by one independent image task per persona.

Concurrency rules:
- Only the most recent submission may commit to the view state; a
  superseded analysis resolution is logged and discarded.
- Each persona image task writes only its own slot, and only while its
  submission is still current and the controller has not been closed.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional, Set

from app.core.config import get_settings
from app.core.trace_context import trace_scope
from app.schemas.dashboard_schemas import (
    ANALYSIS_FAILED_MESSAGE,
    DashboardSnapshot,
    ImageStatus,
    PersonaImageState,
    ViewPhase,
    ViewState,
)
from app.schemas.trend_schemas import FuturePersona, TrendAnalysisResult
from app.services.persona_image_service import generate_persona_image
from app.services.trend_analysis_service import fetch_trend_analysis

logger = logging.getLogger(__name__)

AnalysisFetcher = Callable[[str], Awaitable[TrendAnalysisResult]]
ImageFetcher = Callable[[FuturePersona], Awaitable[Optional[str]]]


def persona_key(index: int, persona: FuturePersona) -> str:
    return f"{index}:{persona.name}"


class DashboardController:
    """Owns the view state, the current query and the persona image slots."""

    def __init__(
        self,
        default_query: Optional[str] = None,
        analysis_fetcher: Optional[AnalysisFetcher] = None,
        image_fetcher: Optional[ImageFetcher] = None,
    ) -> None:
        if default_query is None:
            default_query = get_settings().default_query
        self.default_query = default_query
        self._fetch_analysis = analysis_fetcher or fetch_trend_analysis
        self._fetch_image = image_fetcher or generate_persona_image

        self._state = ViewState(query=default_query)
        self._persona_images: Dict[str, PersonaImageState] = {}
        self._generation = 0
        self._analysis_tasks: Set[asyncio.Task] = set()
        self._image_tasks: Dict[str, asyncio.Task] = {}
        self._mounted = False
        self._closed = False

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def closed(self) -> bool:
        return self._closed

    def persona_images(self) -> List[PersonaImageState]:
        return sorted(self._persona_images.values(), key=lambda slot: slot.index)

    def snapshot(self) -> DashboardSnapshot:
        return DashboardSnapshot(
            view=self._state,
            personaImages=self.persona_images(),
            generation=self._generation,
        )

    def mount(self) -> Optional[asyncio.Task]:
        """Auto-submit the default query, once per controller."""
        if self._mounted:
            return None
        self._mounted = True
        logger.info("[DASHBOARD] Mounted, submitting default query")
        return self.submit(self.default_query)

    def submit(self, query: str) -> Optional[asyncio.Task]:
        """
        Start an analysis for ``query``.

        Moves to loading immediately, from any phase. An empty or
        whitespace-only query is a no-op.

        Returns:
            The analysis task, or None when nothing was issued
        """
        if self._closed:
            logger.warning("[DASHBOARD] Submit ignored: controller closed")
            return None
        query = (query or "").strip()
        if not query:
            logger.info("[DASHBOARD] Submit ignored: empty query")
            return None

        self._generation += 1
        generation = self._generation
        self._cancel_image_tasks()
        self._persona_images = {}
        self._state = ViewState(phase=ViewPhase.LOADING, query=query)

        with trace_scope() as trace_id:
            logger.info(
                "[DASHBOARD] Submit #%d: query=%s, trace_id=%s",
                generation,
                query[:80],
                trace_id,
            )
            task = asyncio.create_task(
                self._run_analysis(generation, query),
                name=f"trend-analysis-{generation}",
            )
        # superseded analyses keep running until they resolve; hold them here
        self._analysis_tasks.add(task)
        task.add_done_callback(self._analysis_tasks.discard)
        return task

    def retry(self) -> Optional[asyncio.Task]:
        """Re-submit the query that failed. Only valid in the error phase."""
        if self._state.phase is not ViewPhase.ERROR:
            logger.info("[DASHBOARD] Retry ignored: phase=%s", self._state.phase.value)
            return None
        return self.submit(self._state.query)

    async def wait_for_images(self) -> None:
        """Wait until every image task of the current submission has settled."""
        tasks = list(self._image_tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def close(self) -> None:
        """Tear down: cancel in-flight work and ignore late completions."""
        if self._closed:
            return
        self._closed = True
        tasks = list(self._image_tasks.values()) + list(self._analysis_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("[DASHBOARD] Closed, cancelled %d task(s)", len(tasks))

    def _is_current(self, generation: int) -> bool:
        return not self._closed and generation == self._generation

    async def _run_analysis(self, generation: int, query: str) -> None:
        try:
            result = await self._fetch_analysis(query)
        except Exception as exc:
            if not self._is_current(generation):
                logger.info("[DASHBOARD] Discarding stale failure of submit #%d", generation)
                return
            logger.error(
                "[DASHBOARD] ✗ Analysis failed for submit #%d: %s",
                generation,
                exc,
                exc_info=True,
            )
            self._state = ViewState(
                phase=ViewPhase.ERROR,
                query=query,
                errorMessage=ANALYSIS_FAILED_MESSAGE,
            )
            return

        if not self._is_current(generation):
            logger.info("[DASHBOARD] Discarding stale result of submit #%d", generation)
            return

        self._state = ViewState(phase=ViewPhase.SUCCESS, query=query, result=result)
        logger.info(
            "[DASHBOARD] ✓ Submit #%d succeeded, fetching %d persona image(s)",
            generation,
            len(result.futurePersonas),
        )
        self._start_image_fetches(generation, result.futurePersonas)

    def _start_image_fetches(self, generation: int, personas: List[FuturePersona]) -> None:
        for index, persona in enumerate(personas):
            key = persona_key(index, persona)
            self._persona_images[key] = PersonaImageState(
                key=key, index=index, name=persona.name
            )
            self._image_tasks[key] = asyncio.create_task(
                self._load_persona_image(generation, key, persona),
                name=f"persona-image-{generation}-{index}",
            )

    async def _load_persona_image(
        self, generation: int, key: str, persona: FuturePersona
    ) -> None:
        try:
            image = await self._fetch_image(persona)
        except Exception as exc:
            logger.error(
                "[DASHBOARD] ✗ Image fetcher raised for %s: %s", key, exc, exc_info=True
            )
            image = None

        slot = self._persona_images.get(key)
        if not self._is_current(generation) or slot is None:
            logger.info("[DASHBOARD] Discarding stale image of submit #%d (%s)", generation, key)
            return
        self._persona_images[key] = slot.model_copy(
            update={
                "status": ImageStatus.READY if image else ImageStatus.FAILED,
                "imageData": image,
            }
        )

    def _cancel_image_tasks(self) -> None:
        for task in self._image_tasks.values():
            if not task.done():
                task.cancel()
        self._image_tasks = {}
