"""
Platform-neutral message contract consumed by the dispatch core.

The command and listener pipelines never touch a ``discord.Message`` directly;
they work against :class:`IncomingMessage`. The py-cord adapter in
``dispatchcord.bot.discord_message`` implements it for real gateway traffic and
the test-suite implements it with in-memory fakes.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional, Protocol, runtime_checkable


class ChannelKind(Enum):
    """Where a message was posted."""

    DM = "dm"
    GUILD_TEXT = "guild_text"
    GUILD_THREAD = "guild_thread"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value

    @property
    def is_guild(self) -> bool:
        return self in (ChannelKind.GUILD_TEXT, ChannelKind.GUILD_THREAD)


@runtime_checkable
class SentMessage(Protocol):
    """Handle returned by :meth:`IncomingMessage.send`."""

    async def delete(self) -> None: ...

    async def edit(self, content: str) -> Any: ...


@runtime_checkable
class IncomingMessage(Protocol):
    """A single inbound chat message plus the actions the core may take on it.

    Attributes:
        id: Message id.
        author_id: Id of the author.
        author_tag: Author's full tag (``name#1234`` or the new-style handle).
        author_name: Author's username.
        is_bot: Whether the author is a bot account.
        content: Raw message text.
        guild_id: Id of the guild, or None for direct messages.
        guild_name: Name of the guild, if any.
        guild_owner_id: Id of the guild owner, if known.
        channel_id: Id of the channel the message was posted in.
        channel_name: Display name of the channel, if it has one.
        channel_kind: Classification of the channel.
        is_nsfw: Whether the channel is flagged NSFW.
        member_present: Whether the author's guild member object is hydrated.
        member_nickname: The author's guild nickname, if any.
        timestamp: When the message was created.
    """

    id: str
    author_id: str
    author_tag: str
    author_name: str
    is_bot: bool
    content: str
    guild_id: Optional[str]
    guild_name: Optional[str]
    guild_owner_id: Optional[str]
    channel_id: str
    channel_name: Optional[str]
    channel_kind: ChannelKind
    is_nsfw: bool
    member_present: bool
    member_nickname: Optional[str]
    timestamp: datetime

    def has_permission(self, name: str) -> bool:
        """Return True when the author's guild permissions include ``name``."""
        ...

    async def fetch_member(self) -> None:
        """Hydrate the author's guild member object."""
        ...

    async def send(self, content: Optional[str] = None, **kwargs: Any) -> SentMessage:
        """Send a message to the channel this message came from."""
        ...

    async def delete(self) -> None: ...

    async def edit(self, content: str) -> Any: ...
