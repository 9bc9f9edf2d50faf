"""
Command definitions and the per-invocation execution context.

This module defines the :class:`Command` record that handlers are registered
with, the tagged argument schema (:class:`ArgumentKind` / :class:`ArgumentSpec`)
and :class:`CommandContext`, which carries everything a handler needs to know
about one invocation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from dispatchcord.datatypes.message_datatypes import IncomingMessage
from dispatchcord.errors import SchemaError

if TYPE_CHECKING:
    from dispatchcord.bot.client import DispatchClient

CommandHandler = Callable[["DispatchClient", IncomingMessage, "CommandContext"], Union[Any, Awaitable[Any]]]
LifecycleHook = Callable[["DispatchClient"], Any]

DEFAULT_COOLDOWN_SECONDS = 3.0


class RunContext(Enum):
    """Where a command may be run."""

    DM = "dm"
    GUILD = "guild"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Union["RunContext", str]) -> "RunContext":
        """Accept enum members or their string names; ``"text"`` means guild text."""
        if isinstance(value, RunContext):
            return value
        lowered = str(value).strip().lower()
        if lowered in ("text", "guild"):
            return cls.GUILD
        if lowered == "dm":
            return cls.DM
        raise SchemaError(f"Unknown run context '{value}'. Expected 'dm', 'guild' or 'text'.")


class ArgumentKind(Enum):
    """Supported primitive kinds for command arguments.

    ``ANY`` is the explicit "unvalidated" fallback: the raw token is accepted as is.
    """

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    USER = "user"
    ANY = "any"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ArgumentSpec:
    """One named, positional command parameter.

    Attributes:
        name: Parameter name, also the key in ``context.args`` and the ``--flag`` name.
        kind: The primitive kind the raw token must convert to.
        optional: Optional parameters may be omitted and are not counted when
            computing ``context.content``.
        description: Human readable help text.
    """

    name: str
    kind: ArgumentKind = ArgumentKind.STRING
    optional: bool = False
    description: str = ""


@dataclass(frozen=True, slots=True)
class ArgumentError:
    """A single argument validation failure shown back to the caller."""

    field: str
    type: str
    message: str


@dataclass(frozen=True, kw_only=True)
class Command:
    """
    A registered command.

    Required fields are checked on construction so a broken definition fails at
    load time rather than on the first invocation.

    Example:
        >>> async def hello(client, message, context):
        ...     await context.send(f"Hello {context.username}!")
        >>> Command(name="hello", description="Says hello back to you.", aliases=("hi",), run=hello)

    Raises:
        SchemaError: If ``name``, ``description`` or ``run`` is missing, or the
            argument schema / run contexts are invalid.
    """

    name: str = ""
    description: str = ""
    run: Optional[CommandHandler] = None
    usage: str = ""
    examples: Tuple[str, ...] = ()
    category: str = "other"
    aliases: Tuple[str, ...] = ()
    permission: int = 0
    cooldown: float = DEFAULT_COOLDOWN_SECONDS
    run_in: Tuple[RunContext, ...] = (RunContext.GUILD,)
    hidden: bool = False
    args: Tuple[ArgumentSpec, ...] = ()
    delete: bool = False
    nsfw_only: bool = False
    init: Optional[LifecycleHook] = None
    shutdown: Optional[LifecycleHook] = None

    def __post_init__(self) -> None:
        if not self.name or not str(self.name).strip():
            raise SchemaError("A command must have a name.")
        if not self.description:
            raise SchemaError(f"Command '{self.name}' must have a description.")
        if self.run is None or not callable(self.run):
            raise SchemaError(f"Command '{self.name}' must have a handler function.")
        if self.cooldown is None or self.cooldown < 0:
            raise SchemaError(f"Command '{self.name}' has a negative cooldown.")

        object.__setattr__(self, "name", str(self.name).strip().lower())
        object.__setattr__(self, "aliases", tuple(str(a).strip().lower() for a in self.aliases))
        object.__setattr__(self, "examples", tuple(self.examples))
        object.__setattr__(self, "run_in", tuple(RunContext.parse(r) for r in self.run_in))
        object.__setattr__(self, "args", tuple(self.args))

        names = [spec.name for spec in self.args]
        if len(set(names)) != len(names):
            raise SchemaError(f"Command '{self.name}' declares the same argument twice: {names}")

        from dispatchcord.command.argument_parser import build_argument_model

        try:
            build_argument_model(self.args)
        except (TypeError, ValueError) as exc:
            raise SchemaError(
                f'Looks like you have a problem with your args schema in the "{self.name}" command: {exc}'
            ) from exc

    @property
    def required_args(self) -> Tuple[ArgumentSpec, ...]:
        return tuple(spec for spec in self.args if not spec.optional)

    def allows(self, run_context: RunContext) -> bool:
        return run_context in self.run_in


SendFunction = Callable[..., Awaitable[Any]]


@dataclass
class CommandContext:
    """
    Everything known about one message as it travels through the pipelines.

    Built fresh per message and discarded afterwards. Context extenders may add
    data under :attr:`extras` (or plain attributes); the core never reads them.

    Attributes:
        user_id: Id of the caller.
        tag: Caller's full tag.
        username: Caller's username.
        nickname: Caller's guild nickname, if they have one.
        is_dm: Whether the message came from a direct message.
        guild_id: Guild id, None in DMs.
        guild_name: Guild name, None in DMs.
        channel_id: Channel id.
        channel_name: Channel display name, if any.
        command: The resolved command or None.
        command_name: Canonical name of the resolved command or None.
        called_by_alias: True when the command was reached through an alias.
        args: Validated named arguments.
        cli_args: The arguments parsed as CLI flags (``_`` holds positionals).
        validation_errors: Argument errors, or None when the arguments are valid.
        content: Text after the command's required arguments.
        content_full: Text after the command name.
        message: The originating message.
        time: When the context was built.
        perm_level: Caller's permission level.
        prefix: The prefix that matched, False when none did.
    """

    user_id: str
    tag: str
    username: str
    nickname: Optional[str]
    is_dm: bool
    guild_id: Optional[str]
    guild_name: Optional[str]
    channel_id: str
    channel_name: Optional[str]
    message: IncomingMessage
    time: datetime
    perm_level: int
    prefix: Union[str, bool]
    command: Optional[Command] = None
    command_name: Optional[str] = None
    called_by_alias: bool = False
    args: Dict[str, Any] = field(default_factory=dict)
    cli_args: Dict[str, Any] = field(default_factory=dict)
    validation_errors: Optional[List[ArgumentError]] = None
    content: str = ""
    content_full: str = ""
    extras: Dict[str, Any] = field(default_factory=dict)
    send: Optional[SendFunction] = field(default=None, repr=False)

    @property
    def run_context(self) -> RunContext:
        return RunContext.DM if self.is_dm else RunContext.GUILD
