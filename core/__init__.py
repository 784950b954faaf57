"""Core helpers: structured logging and identity resolution.

This package is framework-agnostic. It must NEVER import from ``dispatch/`` or ``sdk/``.
"""

from core.identity import get_identity, resolve_chat, resolve_message, resolve_user
from core.logger import HookbotLogger

__all__ = [
    "get_identity",
    "resolve_chat",
    "resolve_message",
    "resolve_user",
    "HookbotLogger",
]
