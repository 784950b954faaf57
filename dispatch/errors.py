"""Errors raised by the dispatch layer and its webhook adapter."""

from typing import Any, Optional

from sdk.exceptions import TelegramBotError


class WebhookVerificationError(TelegramBotError):
    """The secret-token header of an inbound webhook request did not match."""

    code = "WEBHOOK_VERIFICATION_ERROR"

    def __init__(self, message: str = "Webhook verification failed") -> None:
        super().__init__(message)


class UpdateParsingError(TelegramBotError):
    """An inbound payload could not be turned into an :class:`~sdk.models.Update`.

    Attributes:
        raw: The payload as received (decoded JSON or raw bytes).
    """

    code = "UPDATE_PARSING_ERROR"

    def __init__(self, message: str, raw: Optional[Any] = None) -> None:
        self.raw = raw
        super().__init__(message)


class ConfigurationError(TelegramBotError):
    """The dispatcher or one of its registries was misconfigured."""

    code = "CONFIGURATION_ERROR"
