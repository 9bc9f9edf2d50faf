"""
Exception hierarchy for Dispatchcord.

Definition problems are raised eagerly at construction time. Everything that
happens while a message is being dispatched is wrapped in one of these types
and reported on the event bus instead of propagating into the gateway loop.
"""

from __future__ import annotations


class DispatchError(Exception):
    """Base class for every Dispatchcord error."""


class SchemaError(DispatchError):
    """A command or listener definition is missing required fields or is malformed."""


class ConfigurationError(DispatchError):
    """Runtime configuration is inconsistent with a loaded definition.

    Examples are a command requiring a permission level that no configured tier
    declares, or a cooldown lookup for a command that was never registered.
    """


class ExtensionError(DispatchError):
    """A prefix checker or context extender raised.

    The message is prefixed with the extension point that failed; the original
    exception is kept as ``__cause__``.
    """

    def __init__(self, extension_point: str, original: BaseException) -> None:
        super().__init__(f"{extension_point}\n\n{original}")
        self.extension_point = extension_point
        self.original = original
        self.__cause__ = original


class CommandExecutionError(DispatchError):
    """A command handler raised or its coroutine failed.

    Attributes:
        command_name: Name of the command that failed.
        channel_name: Display name of the originating channel, if any.
        channel_id: Id of the originating channel.
        guild_name: Name of the originating guild, if any.
        guild_id: Id of the originating guild, if any.
        is_dm: Whether the command was invoked from a direct message.
        original: The exception raised by the handler.
    """

    def __init__(
        self,
        command_name: str | None,
        *,
        channel_name: str | None,
        channel_id: str,
        guild_name: str | None,
        guild_id: str | None,
        is_dm: bool,
        original: BaseException,
    ) -> None:
        self.command_name = command_name
        self.channel_name = channel_name
        self.channel_id = channel_id
        self.guild_name = guild_name
        self.guild_id = guild_id
        self.is_dm = is_dm
        self.original = original
        super().__init__(
            "\n".join(
                [
                    f"An error occurred in the {command_name} command.",
                    f"Channel: {channel_name} ({channel_id})",
                    f"Guild: {guild_name} ({guild_id})",
                    f"DM: {is_dm}",
                    f"{type(original).__name__}: {original}",
                ]
            )
        )
        self.__cause__ = original


class ListenerExecutionError(DispatchError):
    """A listener handler raised while its category chain was evaluating."""

    def __init__(self, category: str, listener_name: str, original: BaseException) -> None:
        super().__init__(
            f"An error occurred in listener '{listener_name}' (category: {category}).\n"
            f"{type(original).__name__}: {original}"
        )
        self.category = category
        self.listener_name = listener_name
        self.original = original
        self.__cause__ = original
