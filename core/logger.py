"""Structured logging for hookbot.

Every module logs through one ``hookbot`` logger that emits a JSON object per
line, to stdout and to a size-rotated file under ``$HOOKBOT_LOG_DIR``
(``logs/`` by default).  Per-call context goes in ``extra``; the dispatch
layer uses ``update_id``, ``update_kind``, ``stage``, ``command`` and
``api_method`` as keys, so lines for one update can be grepped together.
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional

LOGGER_NAME = "hookbot"

# Attribute names every LogRecord carries; anything else came from ``extra``
_RECORD_ATTRS: frozenset[str] = frozenset(vars(logging.LogRecord(
    name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None,
)))


class _JsonFormatter(logging.Formatter):
    """One JSON object per record, with ``extra`` keys flattened in.

    A handler failure logged as::

        logger.error("Handler failed", extra={"update_id": 7, "stage": "message:greet"})

    comes out as ``{"timestamp": ..., "level": "ERROR", ..., "update_id": 7,
    "stage": "message:greet"}``.  ``exc_info`` adds a ``traceback`` field.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func_name": record.funcName,
        }
        entry.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and key not in entry
        )
        if record.exc_info:
            entry["traceback"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class HookbotLogger:
    """Owner of the shared ``hookbot`` logger.

    ``HookbotLogger.get_logger()`` is what modules call at import time; the
    handlers are attached once, on the first call.
    """

    _instance: Optional["HookbotLogger"] = None
    _logger: Optional[logging.Logger] = None

    _LOG_DIR: str = os.environ.get("HOOKBOT_LOG_DIR", "logs")
    _LOG_FILE: str = "hookbot.log"
    _MAX_BYTES: int = 5 * 1024 * 1024
    _BACKUP_COUNT: int = 5

    def __new__(cls, level: int = logging.INFO) -> "HookbotLogger":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._setup(level)
        return cls._instance

    def _setup(self, level: int) -> None:
        self._logger = logging.getLogger(LOGGER_NAME)
        self._logger.setLevel(level)
        # config reloads must not stack a second pair of handlers
        if self._logger.handlers:
            return

        os.makedirs(self._LOG_DIR, exist_ok=True)
        formatter = _JsonFormatter()
        for handler in (
            logging.StreamHandler(),
            RotatingFileHandler(
                os.path.join(self._LOG_DIR, self._LOG_FILE),
                maxBytes=self._MAX_BYTES,
                backupCount=self._BACKUP_COUNT,
                encoding="utf-8",
            ),
        ):
            handler.setLevel(level)
            handler.setFormatter(formatter)
            self._logger.addHandler(handler)

    @staticmethod
    def get_logger(level: int = logging.INFO) -> logging.Logger:
        """Return the ``hookbot`` logger; *level* only applies on the first call."""
        instance = HookbotLogger(level)
        assert instance._logger is not None
        return instance._logger

    @staticmethod
    def set_level(level: int | str) -> None:
        """Apply *level* (``"DEBUG"`` or ``logging.DEBUG``) to the logger and its handlers."""
        logger = HookbotLogger.get_logger()
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

    def cleanup(self) -> None:
        """Flush and close every handler, then detach it from the logger."""
        if self._logger is None:
            return
        for handler in list(self._logger.handlers):
            handler.flush()
            handler.close()
            self._logger.removeHandler(handler)
