"""Built-in middleware stages: command parsing, request logging and access control.

Every factory returns an ``async (ctx, proceed)`` stage for
:meth:`dispatch.router.DispatcherBuilder.use`.  Access-control stages deny
by *not* calling ``proceed``, optionally replying with a denial message.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import time
from typing import Awaitable, Callable, Iterable, Optional, Union

from core.identity import resolve_chat, resolve_user
from core.logger import HookbotLogger
from dispatch.commands import parse_command
from dispatch.context import DispatchContext
from dispatch.pipeline import Middleware, Proceed
from sdk.exceptions import TelegramBotError

logger = HookbotLogger.get_logger()

AuthPredicate = Callable[[DispatchContext], Union[bool, Awaitable[bool]]]


# ── Command parsing ──────────────────────────────────────────────────────────

def command_parser() -> Middleware:
    """Populate ``ctx.command``, ``ctx.args`` and ``ctx.bot_username`` from message text."""

    async def parse_commands(ctx: DispatchContext, proceed: Proceed) -> None:
        message = ctx.message
        parsed = parse_command(message.text if message is not None else None)
        if parsed is not None:
            ctx.command = parsed.command
            ctx.args = list(parsed.args)
            ctx.bot_username = parsed.bot_username
        await proceed()

    return parse_commands


# ── Logging ──────────────────────────────────────────────────────────────────

def logging_middleware(level: int = logging.INFO) -> Middleware:
    """Log each update on the way in, and its duration (or failure) on the way out."""

    async def log_updates(ctx: DispatchContext, proceed: Proceed) -> None:
        update = ctx.update
        kind = update.kind
        fields = {"update_id": update.update_id, "update_kind": kind.value if kind else None}
        logger.log(level, "Processing update", extra=fields)
        started = time.monotonic()
        try:
            await proceed()
        except Exception as exc:
            logger.error("Update processing failed", extra={**fields, "error": str(exc)})
            raise
        logger.log(level, "Update processed", extra={**fields, "duration_ms": round((time.monotonic() - started) * 1000, 2)})

    return log_updates


# ── Access control ───────────────────────────────────────────────────────────

@dataclasses.dataclass(frozen=True)
class AuthConfig:
    """Access rules for :func:`auth`.

    ``allowed_users`` / ``allowed_chats`` of ``None`` mean "no restriction".
    """

    allowed_users: Optional[frozenset[int]] = None
    allowed_chats: Optional[frozenset[int]] = None
    admin_users: frozenset[int] = frozenset()
    allow_private_chats: bool = True
    allow_group_chats: bool = True
    allow_supergroup_chats: bool = True
    allow_channel_chats: bool = True
    custom_auth: Optional[AuthPredicate] = None
    denied_message: str = "Access denied."
    send_denied_message: bool = False

    def allows_chat_type(self, chat_type: str) -> bool:
        return {
            "private": self.allow_private_chats,
            "group": self.allow_group_chats,
            "supergroup": self.allow_supergroup_chats,
            "channel": self.allow_channel_chats,
        }.get(chat_type, False)


def _ids(values: Optional[Iterable[int]]) -> Optional[frozenset[int]]:
    return frozenset(values) if values is not None else None


async def _deny(ctx: DispatchContext, chat_id: Optional[int], text: Optional[str], reason: str) -> None:
    user = resolve_user(ctx.update)
    logger.info(
        "Access denied",
        extra={"update_id": ctx.update.update_id, "user_id": user.id if user else None, "chat_id": chat_id, "reason": reason},
    )
    if text and chat_id is not None:
        await ctx.client.send_message(chat_id, text)


def auth(config: Optional[AuthConfig] = None) -> Middleware:
    """Gate the rest of the chain on *config*; on success set ``ctx.user``, ``ctx.chat``, ``ctx.is_admin``.

    Checks run in order: custom predicate, allowed users, allowed chats,
    chat type.  The first failing check stops the update.
    """
    config = config or AuthConfig()

    async def authorize(ctx: DispatchContext, proceed: Proceed) -> None:
        user = resolve_user(ctx.update)
        chat = resolve_chat(ctx.update)
        chat_id = chat.id if chat is not None else None
        denial = config.denied_message if config.send_denied_message else None

        if config.custom_auth is not None:
            verdict = config.custom_auth(ctx)
            if inspect.isawaitable(verdict):
                verdict = await verdict
            if not verdict:
                await _deny(ctx, chat_id if user is not None else None, denial, "custom_auth")
                return

        if user is not None and config.allowed_users is not None and user.id not in config.allowed_users:
            await _deny(ctx, chat_id, denial, "user_not_allowed")
            return

        if chat is not None and config.allowed_chats is not None and chat.id not in config.allowed_chats:
            await _deny(ctx, chat_id, denial, "chat_not_allowed")
            return

        if chat is not None and not config.allows_chat_type(chat.type):
            await _deny(ctx, chat_id, denial, "chat_type_not_allowed")
            return

        if user is not None:
            ctx.user = user
            ctx.is_admin = user.id in config.admin_users
        if chat is not None:
            ctx.chat = chat
        await proceed()

    return authorize


def admin_only(admin_users: Iterable[int], denied_message: str = "Admin access required.") -> Middleware:
    admins = frozenset(admin_users)
    return auth(AuthConfig(allowed_users=admins, admin_users=admins, denied_message=denied_message, send_denied_message=True))


def private_only(denied_message: str = "This command is only available in private chats.") -> Middleware:
    return auth(AuthConfig(
        allow_group_chats=False, allow_supergroup_chats=False, allow_channel_chats=False,
        denied_message=denied_message, send_denied_message=True,
    ))


def group_only(denied_message: str = "This command is only available in group chats.") -> Middleware:
    return auth(AuthConfig(
        allow_private_chats=False, allow_channel_chats=False,
        denied_message=denied_message, send_denied_message=True,
    ))


def channel_only(denied_message: str = "This command is only available in channels.") -> Middleware:
    return auth(AuthConfig(
        allow_private_chats=False, allow_group_chats=False, allow_supergroup_chats=False,
        denied_message=denied_message, send_denied_message=True,
    ))


def whitelist(user_ids: Iterable[int], denied_message: str = "You are not authorized to use this bot.") -> Middleware:
    return auth(AuthConfig(allowed_users=_ids(user_ids), denied_message=denied_message, send_denied_message=True))


def blacklist(user_ids: Iterable[int]) -> Middleware:
    """Silently drop updates from the given users."""
    blocked = frozenset(user_ids)

    async def drop_blocked(ctx: DispatchContext, proceed: Proceed) -> None:
        user = resolve_user(ctx.update)
        if user is not None and user.id in blocked:
            logger.info("Blocked user ignored", extra={"update_id": ctx.update.update_id, "user_id": user.id})
            return
        await proceed()

    return drop_blocked


async def is_user_admin(ctx: DispatchContext, user_id: int, chat_id: int) -> bool:
    """``True`` when *user_id* is an administrator or the creator of *chat_id*.

    API failures count as "not an admin".
    """
    try:
        member = await ctx.client.get_chat_member(chat_id, user_id)
    except TelegramBotError as exc:
        logger.warning("Admin status lookup failed", extra={"user_id": user_id, "chat_id": chat_id, "error": str(exc)})
        return False
    return member.is_admin


def chat_admin_only(denied_message: str = "Admin privileges required in this chat.") -> Middleware:
    """Allow chat administrators; private chats always pass."""

    async def require_chat_admin(ctx: DispatchContext, proceed: Proceed) -> None:
        user = resolve_user(ctx.update)
        chat = resolve_chat(ctx.update)
        if user is None or chat is None:
            return
        if chat.type == "private":
            await proceed()
            return
        if not await is_user_admin(ctx, user.id, chat.id):
            await _deny(ctx, chat.id, denied_message, "not_chat_admin")
            return
        ctx.is_chat_admin = True
        await proceed()

    return require_chat_admin


def admin_or_chat_admin(bot_admins: Iterable[int], denied_message: str = "Admin privileges required.") -> Middleware:
    """Allow bot admins anywhere and chat administrators in group chats."""
    admins = frozenset(bot_admins)

    async def require_any_admin(ctx: DispatchContext, proceed: Proceed) -> None:
        user = resolve_user(ctx.update)
        chat = resolve_chat(ctx.update)
        if user is None:
            return
        if user.id in admins:
            ctx.is_admin = True
            await proceed()
            return
        if chat is not None and chat.type != "private" and await is_user_admin(ctx, user.id, chat.id):
            ctx.is_chat_admin = True
            await proceed()
            return
        await _deny(ctx, chat.id if chat is not None else None, denied_message, "not_admin")

    return require_any_admin
