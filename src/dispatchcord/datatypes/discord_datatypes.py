"""
Type-safe wrapper classes for Discord identifiers.

Discord snowflakes are 64-bit integers that travel as strings in JSON. The
dispatch core keys its cooldown, ignore and prefix tables on the string form,
so these wrappers normalize whatever the gateway or a user mention hands us.
"""

from __future__ import annotations

import re
from typing import Union

import discord

MENTION_PATTERN = re.compile(r"^<@!?(\d+)>$")


class Snowflake:
    """
    Base wrapper for a Discord snowflake id.

    Attributes:
        _value (str): The snowflake ID stored as a string for JSON parity.

    Example:
        >>> UserID(123456789012345678).to_int()
        123456789012345678
        >>> str(UserID("<@!123456789012345678>"))
        '123456789012345678'
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        """
        Initialize from a string, int or another snowflake wrapper.

        Args:
            value: The snowflake ID as a string, int, or wrapper.

        Raises:
            ValueError: If the value cannot be converted to a valid snowflake.
        """
        if isinstance(value, Snowflake):
            self._value = value._value
        elif isinstance(value, bool):
            raise ValueError(f"Cannot create {type(self).__name__} from bool: {value}")
        elif isinstance(value, int):
            self._value = str(value)
        elif isinstance(value, str):
            self._value = str(int(value.strip()))
        else:
            raise ValueError(f"Cannot create {type(self).__name__} from {type(value).__name__}: {value}")

    @classmethod
    def from_int(cls, value: int):
        return cls(value)

    def to_int(self) -> int:
        """Convert to an integer for Discord API calls."""
        return int(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, type(self)):
            return self._value == other._value
        if isinstance(other, str):
            return self._value == other
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == str(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


class UserID(Snowflake):
    """Type-safe wrapper for Discord user snowflake IDs.

    Also accepts raw user mentions (``<@id>`` / ``<@!id>``), which is how users
    usually reference each other in command arguments.
    """

    __slots__ = ()

    def __init__(self, value: Union[str, int, "Snowflake"]) -> None:
        if isinstance(value, str):
            match = MENTION_PATTERN.match(value.strip())
            if match:
                value = match.group(1)
        super().__init__(value)

    @classmethod
    def from_user(cls, member: Union[discord.Member, discord.User]) -> "UserID":
        """Create a UserID from a Discord Member or User object."""
        return cls(member.id)


class GuildID(Snowflake):
    """Type-safe wrapper for Discord guild snowflake IDs."""

    __slots__ = ()

    @classmethod
    def from_guild(cls, guild: discord.Guild) -> "GuildID":
        """Create a GuildID from a Discord Guild object."""
        return cls(guild.id)


class ChannelID(Snowflake):
    """Type-safe wrapper for Discord channel snowflake IDs."""

    __slots__ = ()

    @classmethod
    def from_channel(cls, channel: discord.abc.Snowflake) -> "ChannelID":
        """Create a ChannelID from any Discord channel object."""
        return cls(channel.id)
