"""Tests for the onion-model middleware pipeline."""

import sys
import os
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dispatch.context import DispatchContext
from dispatch.pipeline import MiddlewarePipeline
from sdk.models import Update


def _ctx() -> DispatchContext:
    return DispatchContext(update=Update(update_id=1), client=MagicMock())


def _recording_stage(name: str, calls: list[str]):
    async def stage(ctx, proceed):
        calls.append(f"{name}:in")
        await proceed()
        calls.append(f"{name}:out")
    return stage


def _terminal(calls: list[str]):
    async def terminal(ctx):
        calls.append("T")
    return terminal


# ── Ordering ─────────────────────────────────────────────────────────────────


class TestOnionOrdering:
    @pytest.mark.asyncio
    async def test_before_in_order_after_in_reverse(self) -> None:
        calls: list[str] = []
        pipeline = MiddlewarePipeline([_recording_stage(n, calls) for n in "ABC"])
        await pipeline.run(_ctx(), _terminal(calls))
        assert calls == ["A:in", "B:in", "C:in", "T", "C:out", "B:out", "A:out"]

    @pytest.mark.asyncio
    async def test_empty_pipeline_runs_terminal(self) -> None:
        calls: list[str] = []
        await MiddlewarePipeline().run(_ctx(), _terminal(calls))
        assert calls == ["T"]

    @pytest.mark.asyncio
    async def test_context_mutations_visible_downstream(self) -> None:
        seen = {}

        async def set_flag(ctx, proceed):
            ctx.extras["flag"] = True
            ctx.is_admin = True
            await proceed()

        async def terminal(ctx):
            seen.update(flag=ctx.extras.get("flag"), admin=ctx.is_admin)

        await MiddlewarePipeline([set_flag]).run(_ctx(), terminal)
        assert seen == {"flag": True, "admin": True}


# ── Short-circuit ────────────────────────────────────────────────────────────


class TestShortCircuit:
    @pytest.mark.asyncio
    async def test_stage_without_proceed_stops_chain(self) -> None:
        calls: list[str] = []

        async def gate(ctx, proceed):
            calls.append("B:in")

        pipeline = MiddlewarePipeline([_recording_stage("A", calls), gate, _recording_stage("C", calls)])
        await pipeline.run(_ctx(), _terminal(calls))
        assert calls == ["A:in", "B:in", "A:out"]


# ── Repeated stages and proceed ──────────────────────────────────────────────


class TestRepetition:
    @pytest.mark.asyncio
    async def test_same_stage_registered_twice_runs_twice(self) -> None:
        calls: list[str] = []
        stage = _recording_stage("S", calls)
        await MiddlewarePipeline([stage, stage]).run(_ctx(), _terminal(calls))
        assert calls == ["S:in", "S:in", "T", "S:out", "S:out"]

    @pytest.mark.asyncio
    async def test_double_proceed_reruns_remainder(self) -> None:
        calls: list[str] = []

        async def twice(ctx, proceed):
            await proceed()
            await proceed()

        await MiddlewarePipeline([twice, _recording_stage("B", calls)]).run(_ctx(), _terminal(calls))
        assert calls == ["B:in", "T", "B:out", "B:in", "T", "B:out"]


# ── Failures ─────────────────────────────────────────────────────────────────


class TestFailures:
    @pytest.mark.asyncio
    async def test_stage_error_propagates_unchanged(self) -> None:
        calls: list[str] = []
        error = RuntimeError("policy failed")

        async def broken(ctx, proceed):
            raise error

        pipeline = MiddlewarePipeline([_recording_stage("A", calls), broken])
        with pytest.raises(RuntimeError) as exc_info:
            await pipeline.run(_ctx(), _terminal(calls))
        assert exc_info.value is error
        assert calls == ["A:in"]

    def test_stages_are_a_snapshot(self) -> None:
        stages = []
        pipeline = MiddlewarePipeline(stages)
        stages.append(lambda ctx, proceed: None)
        assert len(pipeline) == 0


# ── Context ──────────────────────────────────────────────────────────────────


class TestDispatchContext:
    def test_update_and_client_are_read_only(self) -> None:
        ctx = _ctx()
        with pytest.raises(AttributeError):
            ctx.update = Update(update_id=2)
        with pytest.raises(AttributeError):
            ctx.client = MagicMock()

    def test_open_fields_are_writable(self) -> None:
        ctx = _ctx()
        ctx.command = "start"
        ctx.args = ["a"]
        ctx.extras["k"] = "v"
        assert (ctx.command, ctx.args, ctx.extras) == ("start", ["a"], {"k": "v"})

    def test_unknown_attribute_rejected(self) -> None:
        ctx = _ctx()
        with pytest.raises(AttributeError):
            ctx.session = {}

    @pytest.mark.asyncio
    async def test_reply_without_message_is_noop(self) -> None:
        ctx = _ctx()
        assert await ctx.reply("hi") is None
        ctx.client.send_message.assert_not_called()
