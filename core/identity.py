"""Identity resolution for inbound updates.

Works on any object exposing the Bot API update attributes (the typed
``sdk.models.Update`` in practice) without importing it, so this module stays
framework-agnostic.
"""

from typing import Any

from core.logger import HookbotLogger

logger = HookbotLogger.get_logger()


def resolve_message(update: Any) -> Any | None:
    """Return the message an update refers to, if any.

    Plain and business messages come first; a callback query contributes the
    message its inline keyboard was attached to.
    """
    message = update.message or update.business_message
    if message is not None:
        return message
    callback_query = update.callback_query
    if callback_query is not None:
        return callback_query.message
    return None


def resolve_user(update: Any) -> Any | None:
    """Return the user who triggered *update*, if the kind carries one."""
    for source in (update.message, update.business_message):
        if source is not None and source.from_field is not None:
            return source.from_field
    for source in (update.callback_query, update.inline_query):
        if source is not None:
            return source.from_field
    return None


def resolve_chat(update: Any) -> Any | None:
    """Return the chat of the message-like payload of *update*, if any."""
    message = resolve_message(update)
    return message.chat if message is not None else None


def get_identity(update: Any) -> int | None:
    """Extract the acting entity ID from an update.

    Returns the ``sender_chat`` ID (a negative group ID) for anonymous admins
    and channels, or the ``from`` user's ID for regular users.
    """
    message = resolve_message(update)
    sender_chat = getattr(message, "sender_chat", None) if message is not None else None
    if sender_chat is not None:
        logger.debug("Resolved anonymous/channel identity", extra={"identity": sender_chat.id, "source": "sender_chat"})
        return sender_chat.id

    user = resolve_user(update)
    if user is not None:
        logger.debug("Resolved user identity", extra={"identity": user.id, "source": "from"})
        return user.id

    logger.debug("Could not resolve identity from update", extra={"update_id": update.update_id})
    return None
