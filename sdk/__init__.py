"""Telegram Bot API SDK: Pydantic models, async service client, and exceptions.

The :class:`TelegramClient` class wraps a representative set of Bot API
endpoints with ``async`` methods (blocking ``requests`` calls run in a worker
thread).  Keyboard, formatting, validation and file helpers live in their own
modules.

Usage::

    from sdk import TelegramClient, APIException
    from sdk.models import Update, Message
    from sdk.keyboards import InlineKeyboardBuilder
"""

from sdk.client import TelegramClient
from sdk.exceptions import APIException, FileError, NetworkError, RequestTimeoutError, TelegramBotError
from sdk.ratelimit import RateLimiter

__all__ = [
    "TelegramClient",
    "RateLimiter",
    "TelegramBotError",
    "APIException",
    "NetworkError",
    "RequestTimeoutError",
    "FileError",
]
