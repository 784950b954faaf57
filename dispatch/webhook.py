"""Framework-agnostic webhook glue.

:class:`WebhookAdapter` turns one inbound HTTP request (method, headers, raw
body) into a :class:`WebhookResponse`, so any web framework can host the bot
with a few lines of glue::

    response = await adapter.handle_request(request.method, request.path, request.headers, await request.body())
    return Response(response.body, status=response.status)

Status codes:

- ``405`` for anything but ``POST``;
- ``401`` when a secret is configured and ``X-Telegram-Bot-Api-Secret-Token`` differs;
- ``400`` for bodies that are not a valid update (rejected before the pipeline);
- ``200 OK`` once the update has been dispatched;
- ``500`` (or the custom error handler's answer) when a middleware failure escapes.
"""

from __future__ import annotations

import dataclasses
import hmac
import inspect
import json
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from pydantic import ValidationError

from core.logger import HookbotLogger
from dispatch.errors import UpdateParsingError, WebhookVerificationError
from dispatch.router import Dispatcher
from sdk.models import Update, WebhookInfo

logger = HookbotLogger.get_logger()

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"


@dataclasses.dataclass(frozen=True, slots=True)
class WebhookResponse:
    status: int
    body: str = ""


ErrorHandler = Callable[[Exception], Union[WebhookResponse, Awaitable[WebhookResponse]]]


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


class WebhookAdapter:
    """Verify, parse and dispatch webhook requests."""

    def __init__(
        self,
        dispatcher: Dispatcher,
        client: Any,
        secret_token: Optional[str] = None,
        verify_secret: bool = True,
        error_handler: Optional[ErrorHandler] = None,
        webhook_path: str = "/webhook",
        health_path: str = "/health",
    ) -> None:
        self.dispatcher = dispatcher
        self.client = client
        self.secret_token = secret_token
        self.verify_secret = verify_secret
        self.error_handler = error_handler
        self.webhook_path = webhook_path
        self.health_path = health_path

    # ── request handling ─────────────────────────────────────────────────

    def verify(self, headers: Mapping[str, str]) -> None:
        """Raise :class:`WebhookVerificationError` if the secret header does not match."""
        if not self.verify_secret or not self.secret_token:
            return
        received = _header(headers, SECRET_HEADER) or ""
        if not hmac.compare_digest(received.encode(), self.secret_token.encode()):
            raise WebhookVerificationError()

    @staticmethod
    def parse_update(body: Union[bytes, str]) -> Update:
        """Decode *body* into an :class:`Update`, raising :class:`UpdateParsingError`."""
        try:
            data = json.loads(body)
        except (ValueError, UnicodeDecodeError) as exc:
            raise UpdateParsingError(f"Invalid JSON: {exc}", body) from exc
        if not isinstance(data, dict) or not isinstance(data.get("update_id"), int) or isinstance(data.get("update_id"), bool):
            raise UpdateParsingError("Invalid update format", data)
        try:
            return Update.model_validate(data)
        except ValidationError as exc:
            raise UpdateParsingError(f"Update failed validation: {exc.error_count()} error(s)", data) from exc

    async def handle_webhook(self, method: str, headers: Mapping[str, str], body: Union[bytes, str]) -> WebhookResponse:
        """Handle one webhook delivery."""
        if method.upper() != "POST":
            return WebhookResponse(405, "Method Not Allowed")
        try:
            self.verify(headers)
        except WebhookVerificationError as exc:
            logger.warning("Webhook secret mismatch", extra={"error": str(exc)})
            return WebhookResponse(401, "Unauthorized")
        try:
            update = self.parse_update(body)
        except UpdateParsingError as exc:
            logger.warning("Rejected malformed update", extra={"error": str(exc)})
            return WebhookResponse(400, "Bad Request: Invalid update format")

        try:
            await self.dispatcher.process_update(update, self.client)
        except Exception as exc:
            logger.error("Error handling webhook", extra={"update_id": update.update_id, "error": str(exc)})
            if self.error_handler is not None:
                response = self.error_handler(exc)
                if inspect.isawaitable(response):
                    response = await response
                return response
            return WebhookResponse(500, "Internal Server Error")
        return WebhookResponse(200, "OK")

    async def handle_request(self, method: str, path: str, headers: Mapping[str, str], body: Union[bytes, str] = b"") -> WebhookResponse:
        """Route by *path*: the webhook endpoint, the health check, or 404."""
        if path == self.webhook_path:
            return await self.handle_webhook(method, headers, body)
        if path == self.health_path:
            return WebhookResponse(200, "OK")
        return WebhookResponse(404, "Not Found")

    # ── webhook registration ─────────────────────────────────────────────

    async def setup_webhook(
        self,
        url: str,
        max_connections: Optional[int] = None,
        allowed_updates: Optional[list[str]] = None,
        drop_pending_updates: Optional[bool] = None,
    ) -> bool:
        """Point the Bot API at *url*, passing the configured secret token."""
        result = await self.client.set_webhook(
            url,
            max_connections=max_connections,
            allowed_updates=allowed_updates,
            drop_pending_updates=drop_pending_updates,
            secret_token=self.secret_token,
        )
        logger.info("Webhook registered", extra={"url": url})
        return result

    async def remove_webhook(self, drop_pending_updates: bool = False) -> bool:
        return await self.client.delete_webhook(drop_pending_updates=drop_pending_updates)

    async def get_webhook_info(self) -> WebhookInfo:
        return await self.client.get_webhook_info()
