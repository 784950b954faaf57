"""Application configuration: environment variables and derived constants.

Loads the bot token, webhook settings and transport tuning from the
environment via ``python-dotenv``.  All values are resolved at import time
so other modules can ``from config import …`` without repeated lookups.
"""

# ── stdlib ───────────────────────────────────────────────────────────────────
import logging
import os

# ── third-party ──────────────────────────────────────────────────────────────
from dotenv import load_dotenv

# ── core ─────────────────────────────────────────────────────────────────────
from core.logger import HookbotLogger

# ── Environment bootstrap ────────────────────────────────────────────────────
load_dotenv()

# ── Logger (used for startup diagnostics at the bottom of this module) ───────
logger = HookbotLogger.get_logger()


# ── Helper functions (private) ───────────────────────────────────────────────


def _parse_id_list(raw: str | None) -> list[int]:
    """Parse a comma-separated string of Telegram user IDs into a list of ints.

    Handles single IDs (e.g. ``"755764114"``) and comma-separated lists
    (e.g. ``"755764114,12345678"``).  Invalid tokens are skipped.
    """
    if not raw:
        return []
    result: list[int] = []
    for token in raw.split(","):
        token = token.strip()
        if token:
            try:
                result.append(int(token))
            except ValueError:
                logger.warning("Ignoring non-numeric user id", extra={"token": token})
    return result


def _int_env(name: str, default: int) -> int:
    """Read an integer environment variable, falling back to *default*."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid integer in environment, using default", extra={"variable": name, "value": raw, "default": default})
        return default


def _bool_env(name: str, default: bool) -> bool:
    """Read a boolean environment variable (``1/true/yes/on``)."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ── Public constants ─────────────────────────────────────────────────────────

BOT_TOKEN: str | None = os.environ.get("BOT_TOKEN")
API_URL: str = os.environ.get("API_URL", "https://api.telegram.org").rstrip("/")
WEBHOOK_SECRET: str | None = os.environ.get("WEBHOOK_SECRET") or None
WEBHOOK_PATH: str = os.environ.get("WEBHOOK_PATH", "/webhook")
HEALTH_CHECK_PATH: str = os.environ.get("HEALTH_CHECK_PATH", "/health")
REQUEST_TIMEOUT: int = _int_env("REQUEST_TIMEOUT", 30)
MAX_RETRIES: int = _int_env("MAX_RETRIES", 3)
RATE_LIMIT: int = _int_env("RATE_LIMIT", 30)
ENABLE_RATE_LIMIT: bool = _bool_env("ENABLE_RATE_LIMIT", True)
ADMIN_USERS: list[int] = _parse_id_list(os.environ.get("ADMIN_USERS"))
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()


# ── Startup diagnostics ─────────────────────────────────────────────────────

if isinstance(logging.getLevelName(LOG_LEVEL), int):
    HookbotLogger.set_level(LOG_LEVEL)
else:
    logger.warning("Unknown LOG_LEVEL, keeping INFO", extra={"log_level": LOG_LEVEL})

if BOT_TOKEN:
    logger.info("Config loaded, BOT_TOKEN is set", extra={"api_url": API_URL})
else:
    logger.warning("Config loaded, BOT_TOKEN is NOT set")

if WEBHOOK_SECRET is None:
    logger.warning("No WEBHOOK_SECRET configured; webhook requests will not be verified")

if ADMIN_USERS:
    logger.info("ADMIN_USERS loaded", extra={"admin_users": ADMIN_USERS})
