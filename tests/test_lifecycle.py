"""Tests for the AnalysisLifecycle state machine."""

import asyncio

import pytest

from conftest import FakeProvider, GatedProvider, wait_for
from logic_explorer.errors import LifecycleError, ProviderError, ValidationError
from logic_explorer.lifecycle import AnalysisLifecycle, LifecycleState
from logic_explorer.models import LineRange


class TestAnalyze:
    """Tests for Idle -> Pending -> Ready transitions."""

    def test_success_reaches_ready(self, fake_provider: FakeProvider, sample_code: str):
        lifecycle = AnalysisLifecycle(fake_provider, text=sample_code, language="js")

        result = asyncio.run(lifecycle.analyze())

        assert result is fake_provider.result
        assert lifecycle.state is LifecycleState.READY
        assert lifecycle.language == "javascript"
        assert lifecycle.buffer.line_count == 13
        assert lifecycle.index.explanation_for(2) == "Guards against empty input."
        assert fake_provider.analyze_calls == [(sample_code, "javascript")]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t\n"])
    def test_blank_text_is_refused(self, fake_provider: FakeProvider, text: str):
        """Blank input is a local no-op: no state change, no provider call."""
        lifecycle = AnalysisLifecycle(fake_provider)

        assert asyncio.run(lifecycle.analyze(text, "python")) is None
        assert lifecycle.state is LifecycleState.IDLE
        assert lifecycle.text == ""
        assert fake_provider.analyze_calls == []

    def test_unsupported_language_is_refused(self, fake_provider: FakeProvider):
        lifecycle = AnalysisLifecycle(fake_provider)

        assert asyncio.run(lifecycle.analyze("x = 1", "cobol")) is None
        assert fake_provider.analyze_calls == []

    def test_check_request(self, fake_provider: FakeProvider):
        lifecycle = AnalysisLifecycle(fake_provider)

        assert lifecycle.check_request("x", "PY") == "python"
        with pytest.raises(ValidationError):
            lifecycle.check_request(" ", "python")

    def test_pending_while_in_flight(self, gated_provider: GatedProvider, sample_code: str):
        async def scenario():
            lifecycle = AnalysisLifecycle(gated_provider, text=sample_code)
            task = asyncio.create_task(lifecycle.analyze())
            await wait_for(lambda: len(gated_provider.analyze_gates) == 1)
            state = lifecycle.state
            gated_provider.analyze_gates[0].set()
            await task
            return lifecycle, state

        lifecycle, state = asyncio.run(scenario())

        assert state is LifecycleState.PENDING
        assert lifecycle.state is LifecycleState.READY

    def test_failure_returns_to_idle(self, fake_provider: FakeProvider, sample_code: str):
        """Provider failure propagates, keeps the text, and retains nothing else."""
        fake_provider.fail_analyze = True
        lifecycle = AnalysisLifecycle(fake_provider, text=sample_code)

        with pytest.raises(ProviderError):
            asyncio.run(lifecycle.analyze())

        assert lifecycle.state is LifecycleState.IDLE
        assert lifecycle.text == sample_code
        assert lifecycle.result is None
        with pytest.raises(LifecycleError):
            lifecycle.index

    def test_retry_after_failure(self, fake_provider: FakeProvider, sample_code: str):
        fake_provider.fail_analyze = True
        lifecycle = AnalysisLifecycle(fake_provider, text=sample_code)
        with pytest.raises(ProviderError):
            asyncio.run(lifecycle.analyze())

        fake_provider.fail_analyze = False
        assert asyncio.run(lifecycle.analyze()) is not None
        assert lifecycle.is_ready

    def test_success_clears_selection_and_deep_dive(self, fake_provider: FakeProvider, sample_code: str):
        lifecycle = AnalysisLifecycle(fake_provider, text=sample_code)
        asyncio.run(lifecycle.analyze())
        lifecycle.selection.click_line(3)
        lifecycle.selection.hover(4)
        asyncio.run(lifecycle.deep_dive.request(sample_code, LineRange(3, 3)))

        asyncio.run(lifecycle.analyze())

        assert lifecycle.selection.range is None
        assert lifecycle.selection.hovered_line is None
        assert lifecycle.deep_dive.result is None


class TestReanalysis:
    """Ready -> Pending and stale completions."""

    def test_reanalysis_discards_derived_state_immediately(self, gated_provider: GatedProvider, sample_code: str):
        async def scenario():
            lifecycle = AnalysisLifecycle(gated_provider, text=sample_code)
            first = asyncio.create_task(lifecycle.analyze())
            await wait_for(lambda: len(gated_provider.analyze_gates) == 1)
            gated_provider.analyze_gates[0].set()
            await first
            lifecycle.selection.click_line(2)

            second = asyncio.create_task(lifecycle.analyze())
            await wait_for(lambda: len(gated_provider.analyze_gates) == 2)
            snapshot = (lifecycle.state, lifecycle.result, lifecycle.selection.range)
            gated_provider.analyze_gates[1].set()
            await second
            return snapshot

        state, result, selected = asyncio.run(scenario())

        assert state is LifecycleState.PENDING
        assert result is None
        assert selected is None

    def test_stale_completion_ignored(self, gated_provider: GatedProvider, sample_code: str):
        """An older analysis finishing after a newer one is dropped."""
        async def scenario():
            lifecycle = AnalysisLifecycle(gated_provider, text=sample_code)
            old = asyncio.create_task(lifecycle.analyze())
            await wait_for(lambda: len(gated_provider.analyze_gates) == 1)
            new = asyncio.create_task(lifecycle.analyze(sample_code + "\n// v2"))
            await wait_for(lambda: len(gated_provider.analyze_gates) == 2)

            gated_provider.analyze_gates[1].set()
            new_result = await new
            lifecycle.selection.click_line(5)
            gated_provider.analyze_gates[0].set()
            old_result = await old
            return lifecycle, old_result, new_result

        lifecycle, old_result, new_result = asyncio.run(scenario())

        assert old_result is None
        assert new_result is not None
        assert lifecycle.state is LifecycleState.READY
        assert lifecycle.buffer.line_count == 14
        assert lifecycle.selection.range == LineRange(5, 5)

    def test_stale_failure_ignored(self, gated_provider: GatedProvider, sample_code: str):
        gated_provider.analyze_failures[0] = True

        async def scenario():
            lifecycle = AnalysisLifecycle(gated_provider, text=sample_code)
            old = asyncio.create_task(lifecycle.analyze())
            await wait_for(lambda: len(gated_provider.analyze_gates) == 1)
            new = asyncio.create_task(lifecycle.analyze())
            await wait_for(lambda: len(gated_provider.analyze_gates) == 2)
            gated_provider.analyze_gates[1].set()
            await new
            gated_provider.analyze_gates[0].set()
            return lifecycle, await old

        lifecycle, old_result = asyncio.run(scenario())

        assert old_result is None
        assert lifecycle.state is LifecycleState.READY


class TestResetAndEdit:
    """Ready -> Idle transitions."""

    def test_reset_discards_index(self, fake_provider: FakeProvider, sample_code: str):
        """After reset the index is gone, not stale."""
        lifecycle = AnalysisLifecycle(fake_provider, text=sample_code)
        asyncio.run(lifecycle.analyze())
        lifecycle.selection.click_line(2)

        lifecycle.reset()

        assert lifecycle.state is LifecycleState.IDLE
        assert lifecycle.text == sample_code
        assert lifecycle.selection.range is None
        with pytest.raises(LifecycleError):
            lifecycle.index.lookup_range_summary(LineRange(1, 2))

    def test_edit_in_ready_resets(self, fake_provider: FakeProvider, sample_code: str):
        lifecycle = AnalysisLifecycle(fake_provider, text=sample_code)
        asyncio.run(lifecycle.analyze())

        lifecycle.edit("print('hi')")

        assert lifecycle.state is LifecycleState.IDLE
        assert lifecycle.text == "print('hi')"
        assert lifecycle.result is None

    def test_edit_same_text_keeps_analysis(self, fake_provider: FakeProvider, sample_code: str):
        lifecycle = AnalysisLifecycle(fake_provider, text=sample_code)
        asyncio.run(lifecycle.analyze())

        lifecycle.edit(sample_code)

        assert lifecycle.is_ready

    def test_edit_while_pending_invalidates_request(self, gated_provider: GatedProvider, sample_code: str):
        async def scenario():
            lifecycle = AnalysisLifecycle(gated_provider, text=sample_code)
            task = asyncio.create_task(lifecycle.analyze())
            await wait_for(lambda: len(gated_provider.analyze_gates) == 1)
            lifecycle.edit("x = 1")
            gated_provider.analyze_gates[0].set()
            return lifecycle, await task

        lifecycle, result = asyncio.run(scenario())

        assert result is None
        assert lifecycle.state is LifecycleState.IDLE
        assert lifecycle.text == "x = 1"

    def test_language_change_resets(self, fake_provider: FakeProvider, sample_code: str):
        lifecycle = AnalysisLifecycle(fake_provider, text=sample_code)
        asyncio.run(lifecycle.analyze())

        lifecycle.set_language("typescript")

        assert lifecycle.state is LifecycleState.IDLE
        assert lifecycle.language == "typescript"
