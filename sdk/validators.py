"""Input validators for values sent to the Bot API.

Each validator returns a :class:`ValidationResult` instead of raising, so
callers can collect every problem before replying to the user::

    result = combine(validate_chat_id(chat_id), validate_message_text(text))
    if not result:
        await ctx.reply("\\n".join(result.errors))
"""

from __future__ import annotations

import dataclasses
import re
from typing import Any, Callable, Optional
from urllib.parse import urlparse

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")
_FILE_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_PHONE_RE = re.compile(r"^\+?[1-9]\d{1,14}$")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PARSE_MODES = ("MarkdownV2", "HTML", "Markdown")

# Largest integer the Bot API guarantees to round-trip (2**53 - 1)
MAX_SAFE_ID = 2**53 - 1


@dataclasses.dataclass(frozen=True, slots=True)
class ValidationResult:
    is_valid: bool
    errors: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return self.is_valid


def ok() -> ValidationResult:
    return ValidationResult(True)


def fail(*errors: str) -> ValidationResult:
    return ValidationResult(False, tuple(errors))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ── Identifiers ──────────────────────────────────────────────────────────────


def validate_user_id(user_id: Any) -> ValidationResult:
    if not _is_int(user_id):
        return fail("User ID must be an integer")
    if user_id <= 0:
        return fail("User ID must be positive")
    if user_id > MAX_SAFE_ID:
        return fail("User ID is too large")
    return ok()


def validate_chat_id(chat_id: Any) -> ValidationResult:
    """Accept numeric ids (negative for groups) or ``@channelusername``."""
    if isinstance(chat_id, str):
        if chat_id.startswith("@"):
            return validate_username(chat_id[1:])
        return fail("Chat ID string must start with @")
    if not _is_int(chat_id):
        return fail("Chat ID must be an integer or @username")
    if abs(chat_id) > MAX_SAFE_ID:
        return fail("Chat ID is out of valid range")
    return ok()


def validate_username(username: Any) -> ValidationResult:
    """Validate a username without its leading ``@``."""
    if not isinstance(username, str):
        return fail("Username must be a string")
    if len(username) < 5:
        return fail("Username must be at least 5 characters long")
    if len(username) > 32:
        return fail("Username must be at most 32 characters long")
    if not _USERNAME_RE.match(username):
        return fail("Username can only contain letters, numbers, and underscores")
    if not username[0].isalpha():
        return fail("Username must start with a letter")
    if username.endswith("_"):
        return fail("Username cannot end with an underscore")
    if "__" in username:
        return fail("Username cannot have consecutive underscores")
    return ok()


def validate_file_id(file_id: Any) -> ValidationResult:
    if not isinstance(file_id, str):
        return fail("File ID must be a string")
    if not file_id:
        return fail("File ID cannot be empty")
    if not _FILE_ID_RE.match(file_id):
        return fail("File ID contains invalid characters")
    return ok()


# ── Message content ──────────────────────────────────────────────────────────


def validate_message_text(text: Any, max_length: int = 4096) -> ValidationResult:
    if not isinstance(text, str):
        return fail("Message text must be a string")
    if not text:
        return fail("Message text cannot be empty")
    if len(text) > max_length:
        return fail(f"Message text cannot exceed {max_length} characters")
    return ok()


def validate_caption(caption: Any, max_length: int = 1024) -> ValidationResult:
    """Captions are optional; ``None`` is valid."""
    if caption is None:
        return ok()
    if not isinstance(caption, str):
        return fail("Caption must be a string")
    if len(caption) > max_length:
        return fail(f"Caption cannot exceed {max_length} characters")
    return ok()


def validate_parse_mode(parse_mode: Any) -> ValidationResult:
    if parse_mode is None:
        return ok()
    if parse_mode not in _PARSE_MODES:
        return fail(f"Parse mode must be one of: {', '.join(_PARSE_MODES)}")
    return ok()


def validate_url(url: Any) -> ValidationResult:
    if not isinstance(url, str):
        return fail("URL must be a string")
    parsed = urlparse(url)
    if not parsed.scheme or not (parsed.netloc or parsed.path):
        return fail("Invalid URL format")
    return ok()


def validate_callback_data(data: Any) -> ValidationResult:
    """Callback data is limited to 64 bytes of UTF-8."""
    if not isinstance(data, str):
        return fail("Callback data must be a string")
    if not data:
        return fail("Callback data cannot be empty")
    if len(data.encode("utf-8")) > 64:
        return fail("Callback data cannot exceed 64 bytes")
    return ok()


def validate_inline_query(query: Any) -> ValidationResult:
    if not isinstance(query, str):
        return fail("Inline query must be a string")
    if len(query) > 256:
        return fail("Inline query cannot exceed 256 characters")
    return ok()


# ── Contact data ─────────────────────────────────────────────────────────────


def validate_phone_number(phone: Any) -> ValidationResult:
    if not isinstance(phone, str):
        return fail("Phone number must be a string")
    if not phone:
        return fail("Phone number cannot be empty")
    if not _PHONE_RE.match(phone):
        return fail("Invalid phone number format")
    return ok()


def validate_email(email: Any) -> ValidationResult:
    if not isinstance(email, str):
        return fail("Email must be a string")
    if not email:
        return fail("Email cannot be empty")
    if not _EMAIL_RE.match(email):
        return fail("Invalid email format")
    return ok()


def validate_coordinates(latitude: Any, longitude: Any) -> ValidationResult:
    """Both coordinates are checked; every problem is reported."""
    errors: list[str] = []
    if not _is_number(latitude):
        errors.append("Latitude must be a number")
    elif not -90 <= latitude <= 90:
        errors.append("Latitude must be between -90 and 90")
    if not _is_number(longitude):
        errors.append("Longitude must be a number")
    elif not -180 <= longitude <= 180:
        errors.append("Longitude must be between -180 and 180")
    return fail(*errors) if errors else ok()


def validate_range(value: Any, minimum: float, maximum: float, inclusive: bool = True) -> ValidationResult:
    if not _is_number(value):
        return fail("Value must be a number")
    inside = minimum <= value <= maximum if inclusive else minimum < value < maximum
    if not inside:
        bounds = "inclusive" if inclusive else "exclusive"
        return fail(f"Value must be between {minimum} and {maximum} ({bounds})")
    return ok()


# ── Composition ──────────────────────────────────────────────────────────────


def combine(*results: ValidationResult) -> ValidationResult:
    """Merge results; valid only if every input is valid."""
    errors = tuple(error for result in results for error in result.errors)
    return ValidationResult(all(result.is_valid for result in results), errors)


def make_validator(predicate: Callable[[Any], bool], message: str) -> Callable[[Any], ValidationResult]:
    def validator(value: Any) -> ValidationResult:
        return ok() if predicate(value) else fail(message)
    return validator


def chain(*validators: Callable[[Any], ValidationResult]) -> Callable[[Any], ValidationResult]:
    """Run every validator on the same value and combine the results."""
    def validator(value: Any) -> ValidationResult:
        return combine(*(v(value) for v in validators))
    return validator


def first_error(result: ValidationResult) -> Optional[str]:
    return result.errors[0] if result.errors else None


__all__ = [
    "ValidationResult", "ok", "fail", "combine", "chain", "make_validator", "first_error",
    "validate_user_id", "validate_chat_id", "validate_username", "validate_file_id",
    "validate_message_text", "validate_caption", "validate_parse_mode", "validate_url",
    "validate_callback_data", "validate_inline_query", "validate_phone_number",
    "validate_email", "validate_coordinates", "validate_range",
]
