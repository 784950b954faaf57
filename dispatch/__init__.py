"""Update dispatch layer: middleware pipeline, typed router, commands, webhook and polling.

This package may import from ``core/``, ``sdk/`` and ``config`` only.
"""

from dispatch.commands import CommandDefinition, CommandRouter, ParsedCommand, parse_command
from dispatch.context import DispatchContext
from dispatch.errors import ConfigurationError, UpdateParsingError, WebhookVerificationError
from dispatch.pipeline import Middleware, MiddlewarePipeline, Proceed
from dispatch.polling import poll_once, run_polling
from dispatch.router import Dispatcher, DispatcherBuilder, ErrorSink, RouterConfig, log_failure
from dispatch.webhook import WebhookAdapter, WebhookResponse

__all__ = [
    # Context & pipeline
    "DispatchContext",
    "Middleware",
    "MiddlewarePipeline",
    "Proceed",
    # Router
    "Dispatcher",
    "DispatcherBuilder",
    "ErrorSink",
    "RouterConfig",
    "log_failure",
    # Commands
    "CommandDefinition",
    "CommandRouter",
    "ParsedCommand",
    "parse_command",
    # Transports
    "WebhookAdapter",
    "WebhookResponse",
    "poll_once",
    "run_polling",
    # Errors
    "ConfigurationError",
    "UpdateParsingError",
    "WebhookVerificationError",
]
