"""TelegramClient -- async service layer over the Telegram Bot API.

Every method posts a JSON body with ``requests`` and offloads the blocking
call via :func:`asyncio.to_thread`, so handlers can ``await`` API calls
without stalling the event loop.  Responses are validated into the Pydantic
models of :mod:`sdk.models`.

Transport policy:

- Requests pass through a :class:`~sdk.ratelimit.RateLimiter` (30/s by default).
- ``429 Too Many Requests`` answers carrying ``retry_after`` are retried after
  that many seconds, up to ``max_retries`` times.
- Connection failures and timeouts are retried after ``attempt + 1`` seconds,
  up to ``max_retries`` times, then surface as :class:`NetworkError` /
  :class:`RequestTimeoutError`.
- Any other ``ok: false`` answer raises :class:`APIException` immediately.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Union

import requests
from pydantic import BaseModel

from core.logger import HookbotLogger
from sdk.exceptions import APIException, NetworkError, RequestTimeoutError
from sdk.models import (
    BotCommand,
    ChatFullInfo,
    ChatMember,
    File,
    LabeledPrice,
    Message,
    MessageEntity,
    MessageId,
    ReactionType,
    ReplyMarkup,
    ShippingOption,
    Update,
    User,
    WebhookInfo,
)
from sdk.ratelimit import RateLimiter

logger = HookbotLogger.get_logger()

ChatId = Union[int, str]


def _serialize(value: Any) -> Any:
    """Convert models (and containers of models) into JSON-ready values."""
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    if isinstance(value, dict):
        return {key: _serialize(item) for key, item in value.items() if item is not None}
    return value


def _payload(**params: Any) -> Dict[str, Any]:
    """Build a request body, dropping parameters left at ``None``."""
    return {key: _serialize(value) for key, value in params.items() if value is not None}


class TelegramClient:
    """Client-side service layer for the Telegram Bot API.

    Each public method corresponds to a Bot API endpoint and returns the
    decoded ``result`` of the response.
    """

    _DEFAULT_API_URL: str = "https://api.telegram.org"
    _DEFAULT_TIMEOUT: int = 30
    _DEFAULT_MAX_RETRIES: int = 3

    def __init__(
        self,
        token: str,
        api_url: str = _DEFAULT_API_URL,
        timeout: int = _DEFAULT_TIMEOUT,
        enable_rate_limit: bool = True,
        max_retries: int = _DEFAULT_MAX_RETRIES,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """Create a new client for the bot identified by *token*.

        Args:
            token: Bot token obtained from BotFather.
            api_url: Bot API server root (without ``/bot<token>``).
            timeout: Per-request timeout in seconds.
            enable_rate_limit: Whether to throttle requests client-side.
            max_retries: Retry budget for rate-limit answers and transport failures.
            rate_limiter: Limiter to share between clients; a 30 req/s one by default.
        """
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._base_url = f"{self._api_url}/bot{token}"
        self._timeout = timeout
        self._max_retries = max_retries
        self._rate_limiter = (rate_limiter or RateLimiter()) if enable_rate_limit else None

    # ------------------------------------------------------------------
    #  Internal helpers
    # ------------------------------------------------------------------

    async def _post(self, url: str, payload: Optional[Dict[str, Any]]) -> requests.Response:
        return await asyncio.to_thread(requests.post, url, json=payload, timeout=self._timeout)

    async def call(self, method: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        """Invoke the Bot API *method* and return the ``result`` field.

        Raises:
            APIException: The API answered ``ok: false`` (after 429 retries).
            NetworkError: The transport failed after all retries.
            RequestTimeoutError: The last attempt timed out.
        """
        url = f"{self._base_url}/{method}"
        attempt = 0
        while True:
            if self._rate_limiter is not None:
                await self._rate_limiter.wait_if_needed()
            try:
                response = await self._post(url, payload)
            except requests.RequestException as exc:
                if attempt < self._max_retries:
                    delay = attempt + 1
                    logger.warning(
                        "Bot API request failed, retrying",
                        extra={"api_method": method, "attempt": attempt + 1, "delay": delay, "error": str(exc)},
                    )
                    attempt += 1
                    await asyncio.sleep(delay)
                    continue
                logger.error("Bot API request failed", extra={"api_method": method, "error": str(exc)})
                if isinstance(exc, requests.Timeout):
                    raise RequestTimeoutError(f"{method} timed out after {self._timeout}s", exc) from exc
                raise NetworkError(f"{method} request failed: {exc}", exc) from exc

            try:
                body = response.json()
            except ValueError:
                body = {}

            if body.get("ok") and response.ok:
                return body.get("result")

            error = APIException(body.get("error_code") or response.status_code, body)
            if error.is_rate_limit_error() and error.retry_after and attempt < self._max_retries:
                logger.warning(
                    "Bot API rate limit hit, retrying",
                    extra={"api_method": method, "attempt": attempt + 1, "retry_after": error.retry_after},
                )
                attempt += 1
                await asyncio.sleep(error.retry_after)
                continue
            logger.warning(
                "Bot API error",
                extra={"api_method": method, "status_code": error.status_code, "error": error.description},
            )
            raise error

    def file_url(self, file_path: str) -> str:
        """Return the download URL for a ``File.file_path``."""
        return f"{self._api_url}/file/bot{self._token}/{file_path}"

    # ------------------------------------------------------------------
    #  Getting updates
    # ------------------------------------------------------------------

    async def get_raw_updates(self, offset: Optional[int] = None, limit: Optional[int] = None, timeout: Optional[int] = None, allowed_updates: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """Receive incoming updates as unvalidated JSON objects."""
        result = await self.call("getUpdates", _payload(offset=offset, limit=limit, timeout=timeout, allowed_updates=allowed_updates))
        return list(result or [])

    async def get_updates(self, offset: Optional[int] = None, limit: Optional[int] = None, timeout: Optional[int] = None, allowed_updates: Optional[List[str]] = None) -> List[Update]:
        """Receive incoming updates using long polling."""
        items = await self.get_raw_updates(offset=offset, limit=limit, timeout=timeout, allowed_updates=allowed_updates)
        return [Update.model_validate(item) for item in items]

    async def set_webhook(self, url: str, ip_address: Optional[str] = None, max_connections: Optional[int] = None, allowed_updates: Optional[List[str]] = None, drop_pending_updates: Optional[bool] = None, secret_token: Optional[str] = None) -> bool:
        """Specify a URL and receive incoming updates via an outgoing webhook."""
        return await self.call("setWebhook", _payload(url=url, ip_address=ip_address, max_connections=max_connections, allowed_updates=allowed_updates, drop_pending_updates=drop_pending_updates, secret_token=secret_token))

    async def delete_webhook(self, drop_pending_updates: Optional[bool] = None) -> bool:
        """Remove webhook integration to switch back to ``getUpdates``."""
        return await self.call("deleteWebhook", _payload(drop_pending_updates=drop_pending_updates))

    async def get_webhook_info(self) -> WebhookInfo:
        """Get current webhook status."""
        return WebhookInfo.model_validate(await self.call("getWebhookInfo"))

    # ------------------------------------------------------------------
    #  Bot identity
    # ------------------------------------------------------------------

    async def get_me(self) -> User:
        """Return basic information about the bot."""
        return User.model_validate(await self.call("getMe"))

    async def log_out(self) -> bool:
        return await self.call("logOut")

    async def close(self) -> bool:
        return await self.call("close")

    async def set_my_commands(self, commands: List[BotCommand], scope: Optional[Dict[str, Any]] = None, language_code: Optional[str] = None) -> bool:
        """Change the list of the bot's commands shown in the client menu."""
        return await self.call("setMyCommands", _payload(commands=commands, scope=scope, language_code=language_code))

    async def get_my_commands(self, scope: Optional[Dict[str, Any]] = None, language_code: Optional[str] = None) -> List[BotCommand]:
        result = await self.call("getMyCommands", _payload(scope=scope, language_code=language_code))
        return [BotCommand.model_validate(item) for item in result or []]

    # ------------------------------------------------------------------
    #  Messages
    # ------------------------------------------------------------------

    async def send_message(self, chat_id: ChatId, text: str, parse_mode: Optional[str] = None, entities: Optional[List[MessageEntity]] = None, disable_notification: Optional[bool] = None, protect_content: Optional[bool] = None, reply_to_message_id: Optional[int] = None, message_thread_id: Optional[int] = None, business_connection_id: Optional[str] = None, reply_markup: Optional[ReplyMarkup] = None) -> Message:
        """Send a text message."""
        result = await self.call("sendMessage", _payload(
            chat_id=chat_id, text=text, parse_mode=parse_mode, entities=entities,
            disable_notification=disable_notification, protect_content=protect_content,
            reply_parameters={"message_id": reply_to_message_id} if reply_to_message_id is not None else None,
            message_thread_id=message_thread_id, business_connection_id=business_connection_id,
            reply_markup=reply_markup,
        ))
        return Message.model_validate(result)

    async def forward_message(self, chat_id: ChatId, from_chat_id: ChatId, message_id: int, disable_notification: Optional[bool] = None, protect_content: Optional[bool] = None) -> Message:
        """Forward a message of any kind."""
        result = await self.call("forwardMessage", _payload(chat_id=chat_id, from_chat_id=from_chat_id, message_id=message_id, disable_notification=disable_notification, protect_content=protect_content))
        return Message.model_validate(result)

    async def copy_message(self, chat_id: ChatId, from_chat_id: ChatId, message_id: int, caption: Optional[str] = None, parse_mode: Optional[str] = None, reply_markup: Optional[ReplyMarkup] = None) -> MessageId:
        """Copy a message without a link to the original."""
        result = await self.call("copyMessage", _payload(chat_id=chat_id, from_chat_id=from_chat_id, message_id=message_id, caption=caption, parse_mode=parse_mode, reply_markup=reply_markup))
        return MessageId.model_validate(result)

    async def send_photo(self, chat_id: ChatId, photo: str, caption: Optional[str] = None, parse_mode: Optional[str] = None, business_connection_id: Optional[str] = None, reply_markup: Optional[ReplyMarkup] = None) -> Message:
        """Send a photo by ``file_id`` or HTTP URL."""
        result = await self.call("sendPhoto", _payload(chat_id=chat_id, photo=photo, caption=caption, parse_mode=parse_mode, business_connection_id=business_connection_id, reply_markup=reply_markup))
        return Message.model_validate(result)

    async def send_document(self, chat_id: ChatId, document: str, caption: Optional[str] = None, parse_mode: Optional[str] = None, business_connection_id: Optional[str] = None, reply_markup: Optional[ReplyMarkup] = None) -> Message:
        """Send a general file by ``file_id`` or HTTP URL."""
        result = await self.call("sendDocument", _payload(chat_id=chat_id, document=document, caption=caption, parse_mode=parse_mode, business_connection_id=business_connection_id, reply_markup=reply_markup))
        return Message.model_validate(result)

    async def send_chat_action(self, chat_id: ChatId, action: str, business_connection_id: Optional[str] = None) -> bool:
        """Tell the user that something is happening on the bot's side (``typing``, …)."""
        return await self.call("sendChatAction", _payload(chat_id=chat_id, action=action, business_connection_id=business_connection_id))

    async def edit_message_text(self, text: str, chat_id: Optional[ChatId] = None, message_id: Optional[int] = None, inline_message_id: Optional[str] = None, parse_mode: Optional[str] = None, reply_markup: Optional[ReplyMarkup] = None) -> Union[Message, bool]:
        """Edit text messages.  Returns ``True`` for inline messages."""
        result = await self.call("editMessageText", _payload(text=text, chat_id=chat_id, message_id=message_id, inline_message_id=inline_message_id, parse_mode=parse_mode, reply_markup=reply_markup))
        return result if isinstance(result, bool) else Message.model_validate(result)

    async def edit_message_reply_markup(self, chat_id: Optional[ChatId] = None, message_id: Optional[int] = None, inline_message_id: Optional[str] = None, reply_markup: Optional[ReplyMarkup] = None) -> Union[Message, bool]:
        """Edit only the reply markup of a message."""
        result = await self.call("editMessageReplyMarkup", _payload(chat_id=chat_id, message_id=message_id, inline_message_id=inline_message_id, reply_markup=reply_markup))
        return result if isinstance(result, bool) else Message.model_validate(result)

    async def delete_message(self, chat_id: ChatId, message_id: int) -> bool:
        """Delete a message, including service messages."""
        return await self.call("deleteMessage", _payload(chat_id=chat_id, message_id=message_id))

    async def set_message_reaction(self, chat_id: ChatId, message_id: int, reaction: Optional[List[ReactionType]] = None, is_big: Optional[bool] = None) -> bool:
        """Change the reactions the bot set on a message."""
        return await self.call("setMessageReaction", _payload(chat_id=chat_id, message_id=message_id, reaction=reaction, is_big=is_big))

    # ------------------------------------------------------------------
    #  Queries
    # ------------------------------------------------------------------

    async def answer_callback_query(self, callback_query_id: str, text: Optional[str] = None, show_alert: Optional[bool] = None, url: Optional[str] = None, cache_time: Optional[int] = None) -> bool:
        """Acknowledge a callback query so the spinner disappears for the user."""
        return await self.call("answerCallbackQuery", _payload(callback_query_id=callback_query_id, text=text, show_alert=show_alert, url=url, cache_time=cache_time))

    async def answer_inline_query(self, inline_query_id: str, results: List[Dict[str, Any]], cache_time: Optional[int] = None, is_personal: Optional[bool] = None, next_offset: Optional[str] = None) -> bool:
        """Send answers to an inline query (at most 50 results)."""
        return await self.call("answerInlineQuery", _payload(inline_query_id=inline_query_id, results=results, cache_time=cache_time, is_personal=is_personal, next_offset=next_offset))

    async def answer_shipping_query(self, shipping_query_id: str, ok: bool, shipping_options: Optional[List[ShippingOption]] = None, error_message: Optional[str] = None) -> bool:
        """Reply to a shipping query for invoices with a flexible price."""
        return await self.call("answerShippingQuery", _payload(shipping_query_id=shipping_query_id, ok=ok, shipping_options=shipping_options, error_message=error_message))

    async def answer_pre_checkout_query(self, pre_checkout_query_id: str, ok: bool, error_message: Optional[str] = None) -> bool:
        """Respond to a pre-checkout query; must be called within 10 seconds."""
        return await self.call("answerPreCheckoutQuery", _payload(pre_checkout_query_id=pre_checkout_query_id, ok=ok, error_message=error_message))

    # ------------------------------------------------------------------
    #  Chats and members
    # ------------------------------------------------------------------

    async def get_chat(self, chat_id: ChatId) -> ChatFullInfo:
        return ChatFullInfo.model_validate(await self.call("getChat", _payload(chat_id=chat_id)))

    async def get_chat_member(self, chat_id: ChatId, user_id: int) -> ChatMember:
        """Get information about one member of a chat."""
        return ChatMember.model_validate(await self.call("getChatMember", _payload(chat_id=chat_id, user_id=user_id)))

    async def get_chat_administrators(self, chat_id: ChatId) -> List[ChatMember]:
        result = await self.call("getChatAdministrators", _payload(chat_id=chat_id))
        return [ChatMember.model_validate(item) for item in result or []]

    async def ban_chat_member(self, chat_id: ChatId, user_id: int, until_date: Optional[int] = None, revoke_messages: Optional[bool] = None) -> bool:
        """Ban a user in a group, supergroup or channel."""
        return await self.call("banChatMember", _payload(chat_id=chat_id, user_id=user_id, until_date=until_date, revoke_messages=revoke_messages))

    async def unban_chat_member(self, chat_id: ChatId, user_id: int, only_if_banned: Optional[bool] = None) -> bool:
        return await self.call("unbanChatMember", _payload(chat_id=chat_id, user_id=user_id, only_if_banned=only_if_banned))

    async def approve_chat_join_request(self, chat_id: ChatId, user_id: int) -> bool:
        return await self.call("approveChatJoinRequest", _payload(chat_id=chat_id, user_id=user_id))

    async def decline_chat_join_request(self, chat_id: ChatId, user_id: int) -> bool:
        return await self.call("declineChatJoinRequest", _payload(chat_id=chat_id, user_id=user_id))

    async def leave_chat(self, chat_id: ChatId) -> bool:
        return await self.call("leaveChat", _payload(chat_id=chat_id))

    # ------------------------------------------------------------------
    #  Files and payments
    # ------------------------------------------------------------------

    async def get_file(self, file_id: str) -> File:
        """Resolve a ``file_id`` to a :class:`~sdk.models.File` with a download path."""
        return File.model_validate(await self.call("getFile", _payload(file_id=file_id)))

    async def send_invoice(self, chat_id: ChatId, title: str, description: str, payload: str, currency: str, prices: List[LabeledPrice], provider_token: Optional[str] = None, need_shipping_address: Optional[bool] = None, is_flexible: Optional[bool] = None) -> Message:
        """Send an invoice."""
        result = await self.call("sendInvoice", _payload(chat_id=chat_id, title=title, description=description, payload=payload, currency=currency, prices=prices, provider_token=provider_token, need_shipping_address=need_shipping_address, is_flexible=is_flexible))
        return Message.model_validate(result)


__all__ = ["TelegramClient", "ChatId"]
