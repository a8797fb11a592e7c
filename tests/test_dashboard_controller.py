"""Tests for the dashboard view-state controller."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from app.schemas.dashboard_schemas import ANALYSIS_FAILED_MESSAGE, ImageStatus, ViewPhase
from app.services.dashboard_controller import DashboardController
from app.services.trend_analysis_service import AnalysisError


def _controller(analysis_fetcher, image_fetcher=None, default_query="默认查询"):
    return DashboardController(
        default_query=default_query,
        analysis_fetcher=analysis_fetcher,
        image_fetcher=image_fetcher or AsyncMock(return_value="data:image/png;base64,AAA"),
    )


class TestSubmit:
    @pytest.mark.asyncio
    async def test_idle_to_loading_to_success(self, sample_result):
        fetcher = AsyncMock(return_value=sample_result)
        controller = _controller(fetcher)
        assert controller.state.phase is ViewPhase.IDLE

        task = controller.submit("streetwear 2026")

        assert controller.state.phase is ViewPhase.LOADING
        assert controller.state.result is None
        await task
        assert controller.state.phase is ViewPhase.SUCCESS
        assert controller.state.result == sample_result
        assert controller.state.errorMessage is None
        fetcher.assert_awaited_once_with("streetwear 2026")

    @pytest.mark.asyncio
    async def test_query_is_trimmed(self, sample_result):
        fetcher = AsyncMock(return_value=sample_result)
        controller = _controller(fetcher)

        await controller.submit("  streetwear 2026 \n")

        assert controller.state.query == "streetwear 2026"
        fetcher.assert_awaited_once_with("streetwear 2026")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", "\t\n"])
    async def test_empty_query_is_noop(self, sample_result, query):
        fetcher = AsyncMock(return_value=sample_result)
        controller = _controller(fetcher)
        before = controller.snapshot()

        assert controller.submit(query) is None

        assert controller.snapshot() == before
        fetcher.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_sets_generic_message(self):
        controller = _controller(AsyncMock(side_effect=AnalysisError("quota exceeded")))

        await controller.submit("streetwear 2026")

        assert controller.state.phase is ViewPhase.ERROR
        assert controller.state.errorMessage == ANALYSIS_FAILED_MESSAGE
        assert "quota" not in controller.state.errorMessage
        assert controller.state.query == "streetwear 2026"
        assert controller.state.result is None

    @pytest.mark.asyncio
    async def test_unexpected_exception_also_errors(self):
        controller = _controller(AsyncMock(side_effect=KeyError("boom")))

        await controller.submit("streetwear 2026")

        assert controller.state.phase is ViewPhase.ERROR

    @pytest.mark.asyncio
    async def test_exactly_one_transition_per_submit(self, sample_result):
        """loading is observed while the fetch is pending, then exactly one final phase."""
        release = asyncio.Event()
        phases = []

        async def fetcher(query):
            phases.append(controller.state.phase)
            await release.wait()
            return sample_result

        controller = _controller(fetcher)
        task = controller.submit("streetwear 2026")
        await asyncio.sleep(0)
        phases.append(controller.state.phase)
        release.set()
        await task
        phases.append(controller.state.phase)

        assert phases == [ViewPhase.LOADING, ViewPhase.LOADING, ViewPhase.SUCCESS]

    @pytest.mark.asyncio
    async def test_submit_from_success_and_error(self, sample_result):
        fetcher = AsyncMock(side_effect=[sample_result, AnalysisError("x"), sample_result])
        controller = _controller(fetcher)

        await controller.submit("a")
        assert controller.state.phase is ViewPhase.SUCCESS
        task = controller.submit("b")
        assert controller.state.phase is ViewPhase.LOADING
        assert controller.persona_images() == []
        await task
        assert controller.state.phase is ViewPhase.ERROR
        task = controller.submit("c")
        assert controller.state.phase is ViewPhase.LOADING
        assert controller.state.errorMessage is None
        await task
        assert controller.state.phase is ViewPhase.SUCCESS


class TestSupersede:
    @pytest.mark.asyncio
    async def test_stale_success_is_discarded(self, sample_payload, sample_result):
        stale_payload = dict(sample_payload, executiveSummary="stale")
        stale_result = type(sample_result).model_validate(stale_payload)
        gates = {"old": asyncio.Event(), "new": asyncio.Event()}
        results = {"old": stale_result, "new": sample_result}

        async def fetcher(query):
            await gates[query].wait()
            return results[query]

        image_fetcher = AsyncMock(return_value=None)
        controller = _controller(fetcher, image_fetcher)
        old_task = controller.submit("old")
        new_task = controller.submit("new")

        gates["new"].set()
        await new_task
        gates["old"].set()
        await old_task
        await controller.wait_for_images()

        assert controller.state.phase is ViewPhase.SUCCESS
        assert controller.state.query == "new"
        assert controller.state.result.executiveSummary == sample_result.executiveSummary
        assert image_fetcher.await_count == 3

    @pytest.mark.asyncio
    async def test_stale_failure_is_discarded(self, sample_result):
        gate = asyncio.Event()

        async def fetcher(query):
            if query == "old":
                await gate.wait()
                raise AnalysisError("late failure")
            return sample_result

        controller = _controller(fetcher)
        old_task = controller.submit("old")
        await controller.submit("new")
        gate.set()
        await old_task

        assert controller.state.phase is ViewPhase.SUCCESS
        assert controller.state.query == "new"

    @pytest.mark.asyncio
    async def test_resubmit_drops_pending_images(self, sample_result):
        never = asyncio.Event()

        async def slow_image(persona):
            await never.wait()

        controller = _controller(AsyncMock(return_value=sample_result), slow_image)
        await controller.submit("first")
        await asyncio.sleep(0)
        first_generation = controller.generation
        assert all(s.status is ImageStatus.LOADING for s in controller.persona_images())

        task = controller.submit("second")

        assert controller.generation == first_generation + 1
        assert controller.persona_images() == []
        await task
        await controller.close()


class TestPersonaImages:
    @pytest.mark.asyncio
    async def test_one_fetch_per_persona(self, sample_result):
        image_fetcher = AsyncMock(return_value="data:image/png;base64,AAA")
        controller = _controller(AsyncMock(return_value=sample_result), image_fetcher)

        await controller.submit("streetwear 2026")
        await controller.wait_for_images()

        assert image_fetcher.await_count == 3
        requested = {call.args[0].name for call in image_fetcher.await_args_list}
        assert requested == {p.name for p in sample_result.futurePersonas}
        slots = controller.persona_images()
        assert [s.key for s in slots] == [
            f"{i}:{p.name}" for i, p in enumerate(sample_result.futurePersonas)
        ]
        assert all(s.status is ImageStatus.READY for s in slots)

    @pytest.mark.asyncio
    async def test_failures_are_isolated(self, sample_result):
        second = sample_result.futurePersonas[1].name

        async def image_fetcher(persona):
            if persona.name == second:
                return None
            return f"data:image/png;base64,{persona.name}"

        controller = _controller(AsyncMock(return_value=sample_result), image_fetcher)

        await controller.submit("streetwear 2026")
        await controller.wait_for_images()

        statuses = [s.status for s in controller.persona_images()]
        assert statuses == [ImageStatus.READY, ImageStatus.FAILED, ImageStatus.READY]
        assert controller.persona_images()[1].imageData is None
        assert controller.state.phase is ViewPhase.SUCCESS

    @pytest.mark.asyncio
    async def test_raising_image_fetcher_marks_slot_failed(self, sample_result):
        controller = _controller(
            AsyncMock(return_value=sample_result), AsyncMock(side_effect=RuntimeError("x"))
        )

        await controller.submit("streetwear 2026")
        await controller.wait_for_images()

        assert all(s.status is ImageStatus.FAILED for s in controller.persona_images())
        assert controller.state.phase is ViewPhase.SUCCESS

    @pytest.mark.asyncio
    async def test_slow_image_does_not_block_siblings(self, sample_result):
        gate = asyncio.Event()
        first = sample_result.futurePersonas[0].name

        async def image_fetcher(persona):
            if persona.name == first:
                await gate.wait()
            return "data:image/png;base64,AAA"

        controller = _controller(AsyncMock(return_value=sample_result), image_fetcher)
        await controller.submit("streetwear 2026")
        for _ in range(3):
            await asyncio.sleep(0)

        statuses = [s.status for s in controller.persona_images()]
        assert statuses == [ImageStatus.LOADING, ImageStatus.READY, ImageStatus.READY]

        gate.set()
        await controller.wait_for_images()
        assert controller.persona_images()[0].status is ImageStatus.READY

    @pytest.mark.asyncio
    async def test_images_start_after_analysis(self, sample_result):
        gate = asyncio.Event()
        image_fetcher = AsyncMock(return_value=None)

        async def fetcher(query):
            await gate.wait()
            return sample_result

        controller = _controller(fetcher, image_fetcher)
        task = controller.submit("streetwear 2026")
        await asyncio.sleep(0)

        image_fetcher.assert_not_called()
        gate.set()
        await task
        await controller.wait_for_images()
        assert image_fetcher.await_count == 3


class TestRetryAndMount:
    @pytest.mark.asyncio
    async def test_retry_reissues_failed_query(self, sample_result):
        fetcher = AsyncMock(side_effect=[AnalysisError("x"), sample_result])
        controller = _controller(fetcher)

        await controller.submit("streetwear 2026")
        task = controller.retry()

        assert task is not None
        assert controller.state.phase is ViewPhase.LOADING
        await task
        assert controller.state.phase is ViewPhase.SUCCESS
        assert [c.args[0] for c in fetcher.await_args_list] == ["streetwear 2026"] * 2

    @pytest.mark.asyncio
    async def test_retry_outside_error_is_noop(self, sample_result):
        fetcher = AsyncMock(return_value=sample_result)
        controller = _controller(fetcher)

        assert controller.retry() is None
        await controller.submit("streetwear 2026")
        assert controller.retry() is None
        assert fetcher.await_count == 1

    @pytest.mark.asyncio
    async def test_mount_submits_default_query_once(self, sample_result):
        fetcher = AsyncMock(return_value=sample_result)
        controller = _controller(fetcher, default_query="小红书2026春夏流行趋势")

        task = controller.mount()
        assert controller.mount() is None
        await task

        fetcher.assert_awaited_once_with("小红书2026春夏流行趋势")
        assert controller.state.phase is ViewPhase.SUCCESS


class TestClose:
    @pytest.mark.asyncio
    async def test_close_cancels_pending_images(self, sample_result):
        never = asyncio.Event()

        async def slow_image(persona):
            await never.wait()

        controller = _controller(AsyncMock(return_value=sample_result), slow_image)
        await controller.submit("streetwear 2026")

        await controller.close()

        assert controller.closed
        assert all(s.status is ImageStatus.LOADING for s in controller.persona_images())

    @pytest.mark.asyncio
    async def test_close_discards_pending_analysis(self):
        never = asyncio.Event()

        async def fetcher(query):
            await never.wait()

        controller = _controller(fetcher)
        controller.submit("streetwear 2026")

        await controller.close()

        assert controller.state.phase is ViewPhase.LOADING
        assert controller.submit("again") is None

    @pytest.mark.asyncio
    async def test_close_cancels_superseded_analyses(self):
        never = asyncio.Event()

        async def fetcher(query):
            await never.wait()

        controller = _controller(fetcher)
        first = controller.submit("first")
        second = controller.submit("second")

        await controller.close()

        assert first.cancelled()
        assert second.cancelled()

    @pytest.mark.asyncio
    async def test_finished_analyses_are_released(self, sample_result):
        controller = _controller(AsyncMock(return_value=sample_result))
        first = controller.submit("first")
        second = controller.submit("second")

        await asyncio.gather(first, second)
        await controller.wait_for_images()
        await asyncio.sleep(0)

        assert not controller._analysis_tasks
