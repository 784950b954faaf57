"""Per-update dispatch context.

A fresh :class:`DispatchContext` is built by
:meth:`dispatch.router.Dispatcher.process_update` for every update.  The
``update`` and ``client`` it was created with cannot be reassigned; everything
else is scratch space shared by the middleware stages and handlers that see
this update.
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any, Optional

from sdk.models import Chat, Message, Update, User

if TYPE_CHECKING:
    from sdk.client import TelegramClient

_READ_ONLY = frozenset({"update", "client"})


@dataclasses.dataclass(slots=True, eq=False)
class DispatchContext:
    """Mutable scratch object carried through one update's dispatch.

    Attributes:
        update: The inbound update (read-only).
        client: API client for replies (read-only).
        command: Parsed command name, without marker or ``@botname``.
        args: Whitespace-separated arguments following the command.
        bot_username: The ``@botname`` suffix of the command, if present.
        user: Sender resolved by the auth middleware.
        chat: Chat resolved by the auth middleware.
        is_admin: Set by the auth middleware for configured bot admins.
        is_chat_admin: Set when the sender administers the current chat.
        extras: Open-ended storage for custom middleware.
    """

    update: Update
    client: "TelegramClient"
    command: Optional[str] = None
    args: Optional[list[str]] = None
    bot_username: Optional[str] = None
    user: Optional[User] = None
    chat: Optional[Chat] = None
    is_admin: bool = False
    is_chat_admin: bool = False
    extras: dict[str, Any] = dataclasses.field(default_factory=dict)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _READ_ONLY:
            try:
                object.__getattribute__(self, name)
            except AttributeError:
                pass
            else:
                raise AttributeError(f"DispatchContext.{name} is read-only")
        object.__setattr__(self, name, value)

    @property
    def message(self) -> Optional[Message]:
        """The message-like payload: ``message`` or else ``business_message``."""
        return self.update.message or self.update.business_message

    async def reply(self, text: str, **kwargs: Any) -> Optional[Message]:
        """Send *text* to the chat of :attr:`message`; ``None`` when there is none."""
        message = self.message
        if message is None:
            return None
        if message.business_connection_id and "business_connection_id" not in kwargs:
            kwargs["business_connection_id"] = message.business_connection_id
        return await self.client.send_message(message.chat.id, text, **kwargs)
