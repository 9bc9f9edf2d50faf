"""
Prefix resolution, tokenization, command lookup and context building.

This is the front half of the command pipeline: it turns a raw message into a
:class:`CommandContext` that the gates in
:mod:`dispatchcord.command.conditions` can inspect.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Tuple, Union

from dispatchcord.command.argument_parser import parse_cli_flags, validate_arguments
from dispatchcord.datatypes.command_datatypes import Command, CommandContext, SendFunction
from dispatchcord.datatypes.message_datatypes import ChannelKind, IncomingMessage, SentMessage
from dispatchcord.errors import ExtensionError, SchemaError
from dispatchcord.events.event_bus import BotEvent
from dispatchcord.util.async_utils import maybe_await
from dispatchcord.util.format_utils import lines
from dispatchcord.util.logger import get_logger

if TYPE_CHECKING:
    from dispatchcord.bot.client import DispatchClient

logger = get_logger("command_resolver")

WHITESPACE_PATTERN = re.compile(r"\s+")
REPEATED_WHITESPACE_PATTERN = re.compile(r"\s\s+")


class CommandRegistry:
    """
    Name and alias lookups for loaded commands.

    Names and aliases are case-insensitive. Re-registering a name replaces the
    previous definition (and its aliases); an alias may only ever point at one
    command.
    """

    def __init__(self) -> None:
        self.commands: Dict[str, Command] = {}
        self.aliases: Dict[str, str] = {}

    def register(self, command: Command) -> None:
        """
        Add ``command`` to the registry.

        Raises:
            SchemaError: If the name or one of the aliases is already taken by
                another command.
        """
        name = command.name
        if name in self.aliases and self.aliases[name] != name:
            raise SchemaError(f"Command name '{name}' is already an alias of '{self.aliases[name]}'.")
        for alias in command.aliases:
            owner = self.aliases.get(alias)
            if owner is not None and owner != name:
                raise SchemaError(f"Alias '{alias}' of '{name}' already points at '{owner}'.")
            if alias in self.commands and alias != name:
                raise SchemaError(f"Alias '{alias}' of '{name}' collides with an existing command.")

        if name in self.commands:
            self.unregister(name)
        self.commands[name] = command
        for alias in command.aliases:
            self.aliases[alias] = name

    def unregister(self, name: str) -> Optional[Command]:
        command = self.commands.pop(name.lower(), None)
        if command is not None:
            for alias in command.aliases:
                if self.aliases.get(alias) == command.name:
                    del self.aliases[alias]
        return command

    def get(self, name: str) -> Optional[Command]:
        return self.commands.get(name.lower()) if name else None

    def resolve(self, token: Optional[str]) -> Tuple[Optional[Command], bool]:
        """Return ``(command, called_by_alias)`` for a command token."""
        if not token:
            return None, False
        token = token.lower()
        command = self.commands.get(token)
        if command is not None:
            return command, False
        name = self.aliases.get(token)
        if name is not None:
            return self.commands.get(name), True
        return None, False

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self.commands

    def __iter__(self) -> Iterator[Command]:
        return iter(list(self.commands.values()))

    def __len__(self) -> int:
        return len(self.commands)


def validate_prefix(content: str, default_prefix: str, guild_prefix: Optional[str] = None) -> Union[str, bool]:
    """
    Return the prefix ``content`` starts with, or False.

    A guild override replaces the default: when one is set (and differs from
    the default) only the override is accepted. Matching is case-insensitive.

    Example:
        >>> validate_prefix("!ping", "!")
        '!'
        >>> validate_prefix("ping", "!")
        False
    """
    normalized = REPEATED_WHITESPACE_PATTERN.sub(" ", (content or "").strip().lower())
    custom_prefix = guild_prefix if guild_prefix and guild_prefix != default_prefix else None

    if custom_prefix:
        return custom_prefix if normalized.startswith(custom_prefix.lower()) else False
    if default_prefix and normalized.startswith(default_prefix.lower()):
        return default_prefix
    return False


async def resolve_prefix(client: "DispatchClient", message: IncomingMessage) -> Union[str, bool]:
    """
    Work out which prefix (if any) ``message`` was sent with.

    Registered prefix checkers are called one after another as
    ``checker(client, message)``; the first truthy result wins and ``True``
    stands for the default prefix. Without checkers the configured default and
    guild prefixes apply. A checker that raises is reported and resolves to False.
    """
    default_prefix = client.config.prefix
    if not client.prefix_checkers:
        return validate_prefix(message.content, default_prefix, client.config.guild_prefix(message.guild_id))

    for checker in client.prefix_checkers:
        try:
            result = await maybe_await(checker(client, message))
        except Exception as exc:
            client.bus.emit(BotEvent.ERROR, ExtensionError("A prefix check function threw an error.", exc))
            return False
        if result is True:
            return default_prefix
        if result:
            return str(result)
    return False


def split_command_and_arguments(content: str, prefix: str) -> Tuple[str, List[str]]:
    """
    Split a command call into the command name and its arguments.

    Example:
        >>> split_command_and_arguments("!hello there friend", "!")
        ('hello', ['there', 'friend'])
    """
    stripped = (content or "").strip()[len(prefix or ""):]
    tokens = WHITESPACE_PATTERN.sub(" ", stripped).split(" ")
    command = tokens.pop(0).strip().lower() if tokens else ""
    return command, tokens if any(tokens) else []


def make_safe_send(client: "DispatchClient", message: IncomingMessage) -> SendFunction:
    """
    Build the ``context.send`` helper for ``message``'s channel.

    Positional parts are joined into lines; keyword arguments are passed to the
    transport untouched. A failed send is reported as a ``warn`` event and
    returns None.
    """

    async def send(*parts: Any, **kwargs: Any) -> Optional[SentMessage]:
        content = lines(*parts) if parts else None
        try:
            return await message.send(content, **kwargs)
        except Exception as exc:
            client.bus.emit(
                BotEvent.WARN,
                lines(
                    "Could not send message.",
                    f"Channel: {message.channel_name} ({message.channel_id})",
                    f"Guild: {message.guild_name} ({message.guild_id})",
                    f"DM: {message.channel_kind is ChannelKind.DM}",
                    f"Error: {exc}",
                ),
            )
            return None

    return send


async def apply_context_extenders(client: "DispatchClient", context: CommandContext) -> bool:
    """
    Run every registered context extender, in order, as ``extender(client, context)``.

    Returns:
        bool: False if an extender raised. The error is reported on the bus and
        the caller should drop the message.
    """
    for extender in client.context_extenders:
        try:
            await maybe_await(extender(client, context))
        except Exception as exc:
            client.bus.emit(BotEvent.ERROR, ExtensionError("A context extension function threw an error.", exc))
            return False
    return True


def build_command_context(
    client: "DispatchClient",
    message: IncomingMessage,
    prefix: Union[str, bool],
    *,
    resolve_command: bool = True,
) -> CommandContext:
    """
    Build the execution context for ``message``.

    Args:
        client: Client owning the registries and evaluator.
        message: The inbound message.
        prefix: Prefix that matched. Listeners pass ``""``.
        resolve_command: When False the first token is not treated as a command
            name and the whole message becomes ``content``.

    Returns:
        CommandContext: Resolved, resolved-with-errors or unresolved context.
    """
    context = CommandContext(
        user_id=message.author_id,
        tag=message.author_tag,
        username=message.author_name,
        nickname=message.member_nickname,
        is_dm=message.channel_kind is ChannelKind.DM,
        guild_id=message.guild_id,
        guild_name=message.guild_name,
        channel_id=message.channel_id,
        channel_name=message.channel_name,
        message=message,
        time=datetime.now(timezone.utc),
        perm_level=client.permission_level(message),
        prefix=prefix,
    )
    context.send = make_safe_send(client, message)

    if not resolve_command:
        text = WHITESPACE_PATTERN.sub(" ", (message.content or "").strip())
        context.content = text
        context.content_full = text
        context.cli_args = parse_cli_flags(text.split(" ") if text else [])
        return context

    token, tokens = split_command_and_arguments(message.content, prefix if isinstance(prefix, str) else "")
    command, called_by_alias = client.commands.resolve(token)

    context.command = command
    context.command_name = command.name if command else None
    context.called_by_alias = called_by_alias
    context.content_full = " ".join(tokens).strip()

    if command is None:
        context.content = context.content_full
        context.cli_args = parse_cli_flags(tokens)
        return context

    # Required arguments are consumed; whatever follows is free text.
    context.content = " ".join(tokens[len(command.required_args):]).strip()

    validation = validate_arguments(command, tokens)
    context.cli_args = validation.cli_args
    context.args = validation.args
    context.validation_errors = validation.errors
    return context
