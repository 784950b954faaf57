"""Example bot: commands, an inline keyboard and a callback handler, run by long polling.

Run with::

    BOT_TOKEN=123:abc python main.py
"""

import asyncio
from datetime import datetime, timezone

from config import (
    ADMIN_USERS,
    API_URL,
    BOT_TOKEN,
    ENABLE_RATE_LIMIT,
    MAX_RETRIES,
    RATE_LIMIT,
    REQUEST_TIMEOUT,
)
from core.logger import HookbotLogger
from dispatch import CommandRouter, DispatchContext, Dispatcher, DispatcherBuilder, run_polling
from dispatch.errors import ConfigurationError
from dispatch.middleware import blacklist, command_parser, logging_middleware
from sdk.client import TelegramClient
from sdk.formatting import ParseMode, bold, italic
from sdk.keyboards import InlineKeyboardBuilder
from sdk.models import CallbackQuery
from sdk.ratelimit import RateLimiter

logger = HookbotLogger.get_logger()

commands = CommandRouter()


@commands.command("start", description="Start the bot and show the welcome message")
async def handle_start(ctx: DispatchContext) -> None:
    """Handle /start: greet the user and offer the inline menu."""
    user = ctx.message.from_field if ctx.message else None
    name = user.first_name if user else "there"
    keyboard = (
        InlineKeyboardBuilder()
        .callback("📚 Help", "help")
        .callback("⏰ Time", "time")
        .row()
        .url("🌐 Bot API", "https://core.telegram.org/bots/api")
        .build()
    )
    text = bold(f"Hello, {name}!", ParseMode.HTML) + "\n\nType /help to see what I can do."
    await ctx.reply(text, parse_mode=ParseMode.HTML.value, reply_markup=keyboard)


@commands.command("echo", description="Echo your message", min_args=1)
async def handle_echo(ctx: DispatchContext) -> None:
    text = " ".join(ctx.args or [])
    await ctx.reply(italic("You said:") + "\n\n" + bold(text), parse_mode=ParseMode.MARKDOWN_V2.value)


@commands.command("time", description="Get the current time", max_args=0)
async def handle_time(ctx: DispatchContext) -> None:
    await ctx.reply(_now_text())


@commands.command("keyboard", description="Show an inline keyboard", aliases=["kb"], max_args=0)
async def handle_keyboard(ctx: DispatchContext) -> None:
    keyboard = InlineKeyboardBuilder().callback("Option 1", "option_1").callback("Option 2", "option_2").build()
    await ctx.reply("Choose an option:", reply_markup=keyboard)


def _now_text() -> str:
    return "🕐 " + datetime.now(timezone.utc).strftime("%A, %d %B %Y %H:%M:%S UTC")


async def handle_callback_query(ctx: DispatchContext, callback_query: CallbackQuery) -> None:
    """Answer inline-button presses from the menus above."""
    data = callback_query.data or ""
    logger.info("Callback query", extra={"update_id": ctx.update.update_id, "callback_data": data})
    if data == "time":
        await ctx.client.answer_callback_query(callback_query.id, text=_now_text())
    elif data == "help":
        await ctx.client.answer_callback_query(callback_query.id)
        if callback_query.message is not None:
            await ctx.client.send_message(callback_query.message.chat.id, commands.help_text())
    elif data.startswith("option_"):
        await ctx.client.answer_callback_query(callback_query.id, text=f"You picked {data.replace('_', ' ')}")
    else:
        await ctx.client.answer_callback_query(callback_query.id)


def build_dispatcher(blocked_users: list[int] | None = None) -> Dispatcher:
    """Wire middleware, commands and handlers into a dispatcher."""
    builder = DispatcherBuilder()
    builder.use(logging_middleware())
    if blocked_users:
        builder.use(blacklist(blocked_users))
    builder.use(command_parser()).use(commands.middleware())
    builder.on_callback_query(handle_callback_query)
    return builder.build()


async def run() -> None:
    """Start the bot with long polling.

    Raises:
        ConfigurationError: If ``BOT_TOKEN`` is not set.
    """
    if not BOT_TOKEN:
        raise ConfigurationError("BOT_TOKEN environment variable is not set or is empty.")

    client = TelegramClient(
        BOT_TOKEN,
        api_url=API_URL,
        timeout=REQUEST_TIMEOUT,
        enable_rate_limit=ENABLE_RATE_LIMIT,
        max_retries=MAX_RETRIES,
        rate_limiter=RateLimiter(RATE_LIMIT),
    )
    me = await client.get_me()
    logger.info("Authorized", extra={"bot_username": me.username, "admin_users": ADMIN_USERS})
    commands.bot_username = me.username
    await run_polling(build_dispatcher(), client)


if __name__ == "__main__":
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    finally:
        HookbotLogger().cleanup()
