"""Long-polling loop.

Each update is spawned as an independent :func:`asyncio.create_task` so the
loop immediately proceeds to fetch the next batch; long-running handlers
never block the bot from receiving new updates.
"""

import asyncio
from typing import Any, Optional

from pydantic import ValidationError

from core.logger import HookbotLogger
from dispatch.router import Dispatcher
from sdk.client import TelegramClient
from sdk.exceptions import TelegramBotError
from sdk.models import Update

logger = HookbotLogger.get_logger()

RETRY_DELAY = 5
# Stays below the client request timeout so long polls return before it fires
POLL_TIMEOUT = 25

# Strong references to in-flight update tasks
_tasks: set[asyncio.Task] = set()


async def _process(dispatcher: Dispatcher, update: Update, client: TelegramClient) -> None:
    try:
        await dispatcher.process_update(update, client)
    except Exception as exc:
        logger.error("Update processing failed", extra={"update_id": update.update_id, "error": str(exc)})


def _spawn(dispatcher: Dispatcher, update: Update, client: TelegramClient) -> asyncio.Task:
    task = asyncio.create_task(_process(dispatcher, update, client))
    _tasks.add(task)
    task.add_done_callback(_tasks.discard)
    return task


def _parse(item: Any, update_id: Any) -> Optional[Update]:
    try:
        return Update.model_validate(item)
    except ValidationError as exc:
        logger.warning(
            "Skipping malformed update",
            extra={"update_id": update_id, "error_count": exc.error_count(), "error": str(exc)},
        )
        return None


async def poll_once(
    dispatcher: Dispatcher,
    client: TelegramClient,
    offset: Optional[int] = None,
    timeout: int = POLL_TIMEOUT,
    allowed_updates: Optional[list[str]] = None,
) -> Optional[int]:
    """Fetch one batch, schedule each update, and return the next offset.

    Items are validated one by one.  A malformed item is logged and skipped,
    and the offset still moves past it when it carries an integer id.
    """
    items = await client.get_raw_updates(offset=offset, timeout=timeout, allowed_updates=allowed_updates)
    if items:
        logger.debug("Received updates", extra={"count": len(items)})
    for item in items:
        update_id = item.get("update_id") if isinstance(item, dict) else None
        update = _parse(item, update_id)
        if update is not None:
            _spawn(dispatcher, update, client)
            offset = update.update_id + 1
        elif isinstance(update_id, int) and not isinstance(update_id, bool):
            offset = update_id + 1
    return offset


async def run_polling(
    dispatcher: Dispatcher,
    client: TelegramClient,
    timeout: int = POLL_TIMEOUT,
    allowed_updates: Optional[list[str]] = None,
    drop_webhook: bool = True,
) -> None:
    """Poll forever.  Transport and API errors back off for ``RETRY_DELAY`` seconds."""
    if drop_webhook:
        await client.delete_webhook()
    offset: Optional[int] = None
    logger.info("Bot is running. Polling for updates...")
    while True:
        try:
            offset = await poll_once(dispatcher, client, offset, timeout, allowed_updates)
        except (TelegramBotError, ValidationError) as exc:
            logger.warning("getUpdates failed, retrying", extra={"api_method": "getUpdates", "delay": RETRY_DELAY, "error": str(exc)})
            await asyncio.sleep(RETRY_DELAY)
