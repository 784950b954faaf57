"""Slash-command sub-router: a middleware stage dispatching ``/command args``.

Single source of truth for command → handler mapping: commands are
registered once (name, aliases, description, arity) and the router derives
both dispatch and ``/help`` output from those registrations.

Design:
- ``CommandDefinition`` is a frozen record of one registration.
- ``CommandRouter.command`` registers a definition, directly or as a decorator.
- ``CommandRouter.middleware()`` snapshots the registrations into a stage
  for :meth:`dispatch.router.DispatcherBuilder.use`; registrations made
  afterwards do not affect stages already produced.

Per update, the stage does exactly one of:

1. no command text → default handler, or ``proceed()`` when none is set;
2. help command → reply with ``/<command> - <description>`` lines;
3. known command → arity check, then the handler;
4. unknown command → unknown handler, or a generic reply naming ``/help``.

Only case 1 continues the outer chain.  Command handler failures propagate
like any other middleware failure.
"""

from __future__ import annotations

import dataclasses
from typing import Awaitable, Callable, Optional, Sequence

from core.logger import HookbotLogger
from dispatch.context import DispatchContext
from dispatch.errors import ConfigurationError
from dispatch.pipeline import Middleware, Proceed

logger = HookbotLogger.get_logger()

CommandHandler = Callable[[DispatchContext], Awaitable[None]]

COMMAND_MARKER = "/"


# ── Parsing ──────────────────────────────────────────────────────────────────

@dataclasses.dataclass(frozen=True, slots=True)
class ParsedCommand:
    command: str
    args: tuple[str, ...] = ()
    bot_username: Optional[str] = None


def parse_command(text: Optional[str]) -> Optional[ParsedCommand]:
    """Parse ``/name@bot arg1 arg2`` into its parts.

    Returns ``None`` when *text* is empty, does not start with ``/``, or is
    the bare marker.  Arguments are whitespace-separated tokens, verbatim.
    """
    if not text or not text.startswith(COMMAND_MARKER):
        return None
    tokens = text.split()
    head = tokens[0][len(COMMAND_MARKER):]
    name, _, bot_username = head.partition("@")
    if not name:
        return None
    return ParsedCommand(command=name, args=tuple(tokens[1:]), bot_username=bot_username or None)


# ── Definitions ──────────────────────────────────────────────────────────────

@dataclasses.dataclass(frozen=True, slots=True)
class CommandDefinition:
    """Metadata for one registered command.

    ``max_args=None`` means no upper bound; ``max_args=0`` forbids arguments.
    Aliases share the definition's own arity and case rules.
    """

    command: str
    handler: CommandHandler
    description: Optional[str] = None
    aliases: tuple[str, ...] = ()
    min_args: int = 0
    max_args: Optional[int] = None
    ignore_case: bool = False

    @property
    def names(self) -> tuple[str, ...]:
        return (self.command, *self.aliases)


@dataclasses.dataclass(frozen=True, slots=True)
class _Snapshot:
    exact: dict[str, CommandDefinition]
    folded: dict[str, CommandDefinition]
    ordered: tuple[CommandDefinition, ...]

    def lookup(self, name: str) -> Optional[CommandDefinition]:
        definition = self.exact.get(name)
        if definition is not None:
            return definition
        return self.folded.get(name.casefold())


class CommandRouter:
    """Registry of slash-commands that turns into a middleware stage.

    Usage::

        commands = CommandRouter(bot_username="my_bot")

        @commands.command("start", description="Start the bot")
        async def start(ctx): ...

        commands.command("ping", pong, aliases=["p"], max_args=0)
        builder.use(commands.middleware())
    """

    def __init__(self, help_command: str = "help", bot_username: Optional[str] = None) -> None:
        self.help_command = help_command
        self.bot_username = bot_username.lstrip("@") if bot_username else None
        self._definitions: list[CommandDefinition] = []
        self._default: Optional[CommandHandler] = None
        self._unknown: Optional[CommandHandler] = None

    # ── registration ─────────────────────────────────────────────────────

    def command(
        self,
        command: str,
        handler: Optional[CommandHandler] = None,
        *,
        description: Optional[str] = None,
        aliases: Sequence[str] = (),
        min_args: int = 0,
        max_args: Optional[int] = None,
        ignore_case: bool = False,
    ):
        """Register *handler* for *command*; a decorator when *handler* is omitted.

        Raises:
            ConfigurationError: Empty name or inconsistent arity bounds.
        """
        if handler is None:
            def decorator(func: CommandHandler) -> CommandHandler:
                self.command(
                    command, func, description=description, aliases=aliases,
                    min_args=min_args, max_args=max_args, ignore_case=ignore_case,
                )
                return func
            return decorator

        name = command.lstrip(COMMAND_MARKER)
        if not name:
            raise ConfigurationError("Command name must not be empty")
        if min_args < 0 or (max_args is not None and max_args < min_args):
            raise ConfigurationError(f"Invalid argument bounds for /{name}: min={min_args} max={max_args}")

        definition = CommandDefinition(
            command=name,
            handler=handler,
            description=description,
            aliases=tuple(alias.lstrip(COMMAND_MARKER) for alias in aliases),
            min_args=min_args,
            max_args=max_args,
            ignore_case=ignore_case,
        )
        self._definitions.append(definition)
        return self

    def default(self, handler: CommandHandler) -> CommandHandler:
        """Set the handler for message updates that carry no command."""
        self._default = handler
        return handler

    def unknown(self, handler: CommandHandler) -> CommandHandler:
        """Set the handler for unrecognised commands."""
        self._unknown = handler
        return handler

    # ── lookup helpers ───────────────────────────────────────────────────

    def _snapshot(self) -> _Snapshot:
        exact: dict[str, CommandDefinition] = {}
        folded: dict[str, CommandDefinition] = {}
        for definition in self._definitions:
            for name in definition.names:
                exact[name] = definition
                if definition.ignore_case:
                    folded[name.casefold()] = definition
                else:
                    # re-registering the same name case-sensitively drops its folded match
                    shadowed = folded.get(name.casefold())
                    if shadowed is not None and name in shadowed.names:
                        del folded[name.casefold()]
        seen: set[int] = set()
        ordered: list[CommandDefinition] = []
        for definition in self._definitions:
            if id(definition) in seen:
                continue
            if any(exact.get(name) is definition for name in definition.names):
                seen.add(id(definition))
                ordered.append(definition)
        return _Snapshot(exact=exact, folded=folded, ordered=tuple(ordered))

    def get(self, name: str) -> Optional[CommandDefinition]:
        """Return the definition *name* currently resolves to, or ``None``."""
        return self._snapshot().lookup(name)

    def definitions(self) -> tuple[CommandDefinition, ...]:
        """Live definitions (not fully shadowed), in registration order."""
        return self._snapshot().ordered

    def help_text(self) -> str:
        return _render_help(self._snapshot())

    # ── middleware ───────────────────────────────────────────────────────

    def middleware(self) -> Middleware:
        """Freeze the current registrations into a middleware stage."""
        snapshot = self._snapshot()
        help_command = self.help_command
        bot_username = self.bot_username
        default_handler = self._default
        unknown_handler = self._unknown

        async def command_router(ctx: DispatchContext, proceed: Proceed) -> None:
            parsed = _parsed_from_context(ctx)
            if parsed is not None and bot_username and parsed.bot_username \
                    and parsed.bot_username.casefold() != bot_username.casefold():
                logger.debug("Command addressed to another bot", extra={"command": parsed.command, "bot_username": parsed.bot_username})
                parsed = None
                ctx.command = ctx.args = ctx.bot_username = None

            if parsed is None:
                if default_handler is not None:
                    await default_handler(ctx)
                else:
                    await proceed()
                return

            ctx.command = parsed.command
            ctx.args = list(parsed.args)
            ctx.bot_username = parsed.bot_username
            update_id = ctx.update.update_id

            if parsed.command == help_command:
                logger.debug("Help requested", extra={"update_id": update_id})
                await ctx.reply(_render_help(snapshot))
                return

            definition = snapshot.lookup(parsed.command)
            if definition is None:
                logger.info("Unknown command", extra={"update_id": update_id, "command": parsed.command})
                if unknown_handler is not None:
                    await unknown_handler(ctx)
                else:
                    await ctx.reply(f"Unknown command: /{parsed.command}. Type /{help_command} for available commands.")
                return

            count = len(parsed.args)
            if count < definition.min_args:
                await ctx.reply(f"Command /{parsed.command} requires at least {definition.min_args} arguments.")
                return
            if definition.max_args is not None and count > definition.max_args:
                await ctx.reply(f"Command /{parsed.command} accepts at most {definition.max_args} arguments.")
                return

            logger.info("Dispatching command", extra={"update_id": update_id, "command": definition.command, "arg_count": count})
            await definition.handler(ctx)

        return command_router


def _parsed_from_context(ctx: DispatchContext) -> Optional[ParsedCommand]:
    """Reuse fields set by an earlier ``command_parser`` stage, else parse the text."""
    if ctx.command:
        return ParsedCommand(ctx.command, tuple(ctx.args or ()), ctx.bot_username)
    message = ctx.message
    return parse_command(message.text if message is not None else None)


def _render_help(snapshot: _Snapshot) -> str:
    lines = [
        f"/{definition.command} - {definition.description}"
        for definition in snapshot.ordered
        if definition.description
    ]
    return "\n".join(lines) if lines else "No commands available."
