"""Exception hierarchy for the Telegram SDK."""

from typing import Any, Dict, Optional


class TelegramBotError(Exception):
    """Base class for every error raised by this library.

    Attributes:
        code: Stable machine-readable error code, used in log lines.
    """

    code: str = "TELEGRAM_BOT_ERROR"


class APIException(TelegramBotError):
    """The Bot API answered with ``ok: false`` or a non-2xx status.

    Attributes:
        status_code: ``error_code`` from the body, or the HTTP status code.
        response_body: Raw response body as a dict, when available.
    """

    code = "TELEGRAM_API_ERROR"

    def __init__(self, status_code: int, response_body: Optional[Dict[str, Any]] = None) -> None:
        """Initialise with the status code and optional body."""
        self.status_code = status_code
        self.response_body = response_body or {}
        super().__init__(f"API error {status_code}: {self.description}")

    @property
    def description(self) -> str:
        return self.response_body.get("description", "Unknown error")

    @property
    def parameters(self) -> Dict[str, Any]:
        """The ``ResponseParameters`` object of the error body, if any."""
        return self.response_body.get("parameters") or {}

    @property
    def retry_after(self) -> Optional[int]:
        """Seconds to wait before repeating a rate-limited request."""
        return self.parameters.get("retry_after")

    @property
    def migrate_to_chat_id(self) -> Optional[int]:
        """New identifier of a group that was migrated to a supergroup."""
        return self.parameters.get("migrate_to_chat_id")

    def is_rate_limit_error(self) -> bool:
        return self.status_code == 429

    def is_chat_migration_error(self) -> bool:
        return self.status_code == 400 and self.migrate_to_chat_id is not None


class NetworkError(TelegramBotError):
    """The request never produced an API response (connection, DNS, TLS…)."""

    code = "NETWORK_ERROR"

    def __init__(self, message: str, original_error: Optional[BaseException] = None) -> None:
        self.original_error = original_error
        super().__init__(message)


class RequestTimeoutError(NetworkError):
    """The request exceeded the client timeout."""

    code = "TIMEOUT_ERROR"

    def __init__(self, message: str = "Request timed out", original_error: Optional[BaseException] = None) -> None:
        super().__init__(message, original_error)


class FileError(TelegramBotError):
    """A file could not be resolved or downloaded."""

    code = "FILE_ERROR"

    def __init__(self, message: str, file_id: Optional[str] = None) -> None:
        self.file_id = file_id
        super().__init__(message)
