"""Onion-model middleware pipeline.

Stages run in registration order.  Each stage receives the context and a
``proceed`` coroutine function; awaiting ``proceed()`` runs the rest of the
chain (and finally the terminal action), so code after the ``await`` runs on
the way back out::

    async def timing(ctx, proceed):
        started = time.monotonic()
        await proceed()
        ctx.extras["elapsed"] = time.monotonic() - started

A stage that never calls ``proceed`` stops the update there.  Calling it
twice re-runs everything after the stage a second time; that is a caller
error and is not guarded against.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Sequence

from dispatch.context import DispatchContext

Proceed = Callable[[], Awaitable[None]]
Middleware = Callable[[DispatchContext, Proceed], Awaitable[None]]
Terminal = Callable[[DispatchContext], Awaitable[None]]


class MiddlewarePipeline:
    """An immutable, ordered chain of middleware stages."""

    def __init__(self, stages: Sequence[Middleware] = ()) -> None:
        self._stages: tuple[Middleware, ...] = tuple(stages)

    @property
    def stages(self) -> tuple[Middleware, ...]:
        return self._stages

    def __len__(self) -> int:
        return len(self._stages)

    async def run(self, ctx: DispatchContext, terminal: Terminal) -> None:
        """Run every stage around *terminal*.  Stage exceptions propagate unchanged."""
        stages = self._stages

        async def step(index: int) -> None:
            if index == len(stages):
                await terminal(ctx)
                return

            async def proceed() -> None:
                await step(index + 1)

            await stages[index](ctx, proceed)

        await step(0)
