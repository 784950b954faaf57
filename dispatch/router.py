"""Typed update router and dispatcher.

Routes each incoming :class:`~sdk.models.Update` through the middleware
pipeline and then to every handler registered for each populated kind.

Design:
- ``DispatcherBuilder`` collects middleware and per-kind handlers during
  setup; ``build()`` freezes them into an immutable :class:`Dispatcher`.
- Kinds are checked independently, in :class:`~sdk.models.UpdateKind`
  declaration order, so an update carrying two kinds reaches both registries.
- ``RouterConfig`` toggles switch whole kind families off.
- Handler failures are isolated: reported to the error sink, never raised.
  Middleware failures are reported too, then re-raised to the caller of
  :meth:`Dispatcher.process_update`.

Usage::

    builder = DispatcherBuilder()
    builder.use(logging_middleware())

    @builder.on_message
    async def echo(ctx, message):
        await ctx.reply(message.text or "")

    dispatcher = builder.build()
    await dispatcher.process_update(update, client)
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
from functools import partialmethod
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from core.logger import HookbotLogger
from dispatch.context import DispatchContext
from dispatch.errors import ConfigurationError
from dispatch.pipeline import Middleware, MiddlewarePipeline
from sdk.models import Update, UpdateKind

logger = HookbotLogger.get_logger()

Handler = Callable[[DispatchContext, Any], Awaitable[None]]
ErrorSink = Callable[[str, BaseException, DispatchContext], Union[None, Awaitable[None]]]


# ── Configuration ────────────────────────────────────────────────────────────

@dataclasses.dataclass(frozen=True, slots=True)
class RouterConfig:
    """Per-family enable switches.  ``message`` updates are always routed."""

    handle_edited_messages: bool = True
    handle_channel_posts: bool = True
    handle_inline_queries: bool = True
    handle_callback_queries: bool = True
    handle_shipping_queries: bool = True
    handle_pre_checkout_queries: bool = True
    handle_polls: bool = True
    handle_poll_answers: bool = True
    handle_chat_member_updates: bool = True
    handle_chat_join_requests: bool = True
    handle_chat_boosts: bool = True
    handle_business_connections: bool = True
    handle_business_messages: bool = True
    handle_message_reactions: bool = True
    concurrent_handlers: bool = False

    def enabled(self, kind: UpdateKind) -> bool:
        toggle = _KIND_TOGGLES[kind]
        return True if toggle is None else getattr(self, toggle)


# Governing toggle per kind; None = always on
_KIND_TOGGLES: dict[UpdateKind, Optional[str]] = {
    UpdateKind.MESSAGE: None,
    UpdateKind.EDITED_MESSAGE: "handle_edited_messages",
    UpdateKind.CHANNEL_POST: "handle_channel_posts",
    UpdateKind.EDITED_CHANNEL_POST: "handle_channel_posts",
    UpdateKind.BUSINESS_CONNECTION: "handle_business_connections",
    UpdateKind.BUSINESS_MESSAGE: "handle_business_messages",
    UpdateKind.EDITED_BUSINESS_MESSAGE: "handle_business_messages",
    UpdateKind.BUSINESS_MESSAGES_DELETED: "handle_business_messages",
    UpdateKind.MESSAGE_REACTION: "handle_message_reactions",
    UpdateKind.MESSAGE_REACTION_COUNT: "handle_message_reactions",
    UpdateKind.INLINE_QUERY: "handle_inline_queries",
    UpdateKind.CHOSEN_INLINE_RESULT: "handle_inline_queries",
    UpdateKind.CALLBACK_QUERY: "handle_callback_queries",
    UpdateKind.SHIPPING_QUERY: "handle_shipping_queries",
    UpdateKind.PRE_CHECKOUT_QUERY: "handle_pre_checkout_queries",
    UpdateKind.POLL: "handle_polls",
    UpdateKind.POLL_ANSWER: "handle_poll_answers",
    UpdateKind.MY_CHAT_MEMBER: "handle_chat_member_updates",
    UpdateKind.CHAT_MEMBER: "handle_chat_member_updates",
    UpdateKind.CHAT_JOIN_REQUEST: "handle_chat_join_requests",
    UpdateKind.CHAT_BOOST: "handle_chat_boosts",
    UpdateKind.REMOVED_CHAT_BOOST: "handle_chat_boosts",
}


# ── Default error sink ───────────────────────────────────────────────────────

def log_failure(stage: str, exc: BaseException, ctx: DispatchContext) -> None:
    """Write one structured log line for a failed handler or middleware stage."""
    update = ctx.update
    kind = update.kind
    logger.error(
        "Dispatch stage failed",
        exc_info=(type(exc), exc, exc.__traceback__),
        extra={
            "stage": stage,
            "update_id": update.update_id,
            "update_kind": kind.value if kind else None,
            "error": str(exc),
            "error_type": type(exc).__name__,
        },
    )


def _stage_name(func: Callable[..., Any]) -> str:
    return getattr(func, "__qualname__", None) or getattr(func, "__name__", None) or repr(func)


# ── Dispatcher ───────────────────────────────────────────────────────────────

class Dispatcher:
    """Immutable dispatcher produced by :meth:`DispatcherBuilder.build`.

    :meth:`process_update` is reentrant: every call gets its own
    :class:`DispatchContext` and shares only the frozen registrations.
    """

    def __init__(
        self,
        middleware: tuple[Middleware, ...],
        handlers: Mapping[UpdateKind, tuple[Handler, ...]],
        config: RouterConfig,
        error_sink: ErrorSink,
    ) -> None:
        self._pipeline = MiddlewarePipeline(middleware)
        self._handlers: dict[UpdateKind, tuple[Handler, ...]] = {kind: tuple(hs) for kind, hs in handlers.items()}
        self._config = config
        self._error_sink = error_sink

    @property
    def config(self) -> RouterConfig:
        return self._config

    @property
    def middleware(self) -> tuple[Middleware, ...]:
        return self._pipeline.stages

    def handlers(self, kind: UpdateKind) -> tuple[Handler, ...]:
        """Registered handlers for *kind*, in registration order."""
        return self._handlers.get(UpdateKind(kind), ())

    async def process_update(self, update: Update, client: Any) -> DispatchContext:
        """Run *update* through the middleware pipeline and the router.

        Returns the context once every applicable stage and handler has
        finished.  A middleware failure is reported to the error sink and
        re-raised; handler failures never escape.
        """
        ctx = DispatchContext(update=update, client=client)
        logger.debug("Processing update", extra={"update_id": update.update_id, "update_kinds": [k.value for k in update.kinds]})
        try:
            await self._pipeline.run(ctx, self.route)
        except Exception as exc:
            await self._report("middleware", exc, ctx)
            raise
        return ctx

    async def route(self, ctx: DispatchContext) -> None:
        """Terminal action: invoke every enabled kind registry, in declaration order."""
        update = ctx.update
        routed = False
        for kind in update.kinds:
            if not self._config.enabled(kind):
                logger.debug("Update kind disabled, skipping", extra={"update_id": update.update_id, "update_kind": kind.value})
                continue
            handlers = self._handlers.get(kind, ())
            if not handlers:
                continue
            routed = True
            await self._run_handlers(kind, handlers, ctx, update.payload(kind))
        if not routed:
            logger.debug("No handler matched", extra={"update_id": update.update_id})

    async def _run_handlers(self, kind: UpdateKind, handlers: tuple[Handler, ...], ctx: DispatchContext, payload: Any) -> None:
        if self._config.concurrent_handlers:
            await asyncio.gather(*(self._invoke(kind, handler, ctx, payload) for handler in handlers))
            return
        for handler in handlers:
            await self._invoke(kind, handler, ctx, payload)

    async def _invoke(self, kind: UpdateKind, handler: Handler, ctx: DispatchContext, payload: Any) -> None:
        try:
            await handler(ctx, payload)
        except Exception as exc:
            await self._report(f"{kind.value}:{_stage_name(handler)}", exc, ctx)

    async def _report(self, stage: str, exc: BaseException, ctx: DispatchContext) -> None:
        try:
            outcome = self._error_sink(stage, exc, ctx)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as sink_exc:
            # A broken sink must not replace the original failure
            logger.error("Error sink failed", extra={"stage": stage, "error": str(sink_exc)})


# ── Builder ──────────────────────────────────────────────────────────────────

class DispatcherBuilder:
    """Chained registration surface for a :class:`Dispatcher`.

    ``use`` and ``on`` return the builder, so calls can be chained; ``on``
    and every ``on_<kind>`` shortcut also work as decorators when called
    without a handler.  After :meth:`build` the builder refuses further
    registrations.
    """

    def __init__(self, config: Optional[RouterConfig] = None, error_sink: Optional[ErrorSink] = None) -> None:
        self._config = config or RouterConfig()
        self._error_sink: ErrorSink = error_sink or log_failure
        self._middleware: list[Middleware] = []
        self._handlers: dict[UpdateKind, list[Handler]] = {}
        self._built = False

    def _check_open(self) -> None:
        if self._built:
            raise ConfigurationError("Dispatcher already built; registrations are closed")

    def use(self, middleware: Middleware) -> DispatcherBuilder:
        """Append a middleware stage.  The same stage may be added more than once."""
        self._check_open()
        self._middleware.append(middleware)
        return self

    def on(self, kind: Union[UpdateKind, str], handler: Optional[Handler] = None) -> Any:
        """Append *handler* to the registry for *kind*.

        With *handler* omitted, returns a decorator that registers the
        decorated function and returns it unchanged.
        """
        kind = UpdateKind(kind)
        if handler is None:
            def decorator(func: Handler) -> Handler:
                self.on(kind, func)
                return func
            return decorator
        self._check_open()
        self._handlers.setdefault(kind, []).append(handler)
        return self

    def configure(self, config: RouterConfig) -> DispatcherBuilder:
        self._check_open()
        self._config = config
        return self

    def on_error(self, sink: ErrorSink) -> DispatcherBuilder:
        """Replace the error sink (``log_failure`` by default)."""
        self._check_open()
        self._error_sink = sink
        return self

    on_message = partialmethod(on, UpdateKind.MESSAGE)
    on_edited_message = partialmethod(on, UpdateKind.EDITED_MESSAGE)
    on_channel_post = partialmethod(on, UpdateKind.CHANNEL_POST)
    on_edited_channel_post = partialmethod(on, UpdateKind.EDITED_CHANNEL_POST)
    on_business_connection = partialmethod(on, UpdateKind.BUSINESS_CONNECTION)
    on_business_message = partialmethod(on, UpdateKind.BUSINESS_MESSAGE)
    on_edited_business_message = partialmethod(on, UpdateKind.EDITED_BUSINESS_MESSAGE)
    on_business_messages_deleted = partialmethod(on, UpdateKind.BUSINESS_MESSAGES_DELETED)
    on_message_reaction = partialmethod(on, UpdateKind.MESSAGE_REACTION)
    on_message_reaction_count = partialmethod(on, UpdateKind.MESSAGE_REACTION_COUNT)
    on_inline_query = partialmethod(on, UpdateKind.INLINE_QUERY)
    on_chosen_inline_result = partialmethod(on, UpdateKind.CHOSEN_INLINE_RESULT)
    on_callback_query = partialmethod(on, UpdateKind.CALLBACK_QUERY)
    on_shipping_query = partialmethod(on, UpdateKind.SHIPPING_QUERY)
    on_pre_checkout_query = partialmethod(on, UpdateKind.PRE_CHECKOUT_QUERY)
    on_poll = partialmethod(on, UpdateKind.POLL)
    on_poll_answer = partialmethod(on, UpdateKind.POLL_ANSWER)
    on_my_chat_member = partialmethod(on, UpdateKind.MY_CHAT_MEMBER)
    on_chat_member = partialmethod(on, UpdateKind.CHAT_MEMBER)
    on_chat_join_request = partialmethod(on, UpdateKind.CHAT_JOIN_REQUEST)
    on_chat_boost = partialmethod(on, UpdateKind.CHAT_BOOST)
    on_removed_chat_boost = partialmethod(on, UpdateKind.REMOVED_CHAT_BOOST)

    def build(self) -> Dispatcher:
        """Freeze the registrations into a :class:`Dispatcher`."""
        self._check_open()
        self._built = True
        handlers = {kind: tuple(hs) for kind, hs in self._handlers.items()}
        logger.info(
            "Dispatcher built",
            extra={"middleware": len(self._middleware), "handlers": {k.value: len(v) for k, v in handlers.items()}},
        )
        return Dispatcher(tuple(self._middleware), handlers, self._config, self._error_sink)
