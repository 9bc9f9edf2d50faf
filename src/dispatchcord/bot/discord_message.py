"""
py-cord implementation of the :class:`IncomingMessage` protocol.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Union

import discord

from dispatchcord.datatypes.discord_datatypes import ChannelID, GuildID, UserID
from dispatchcord.datatypes.message_datatypes import ChannelKind
from dispatchcord.util.logger import get_logger

logger = get_logger("discord_message")


def classify_channel(channel: Any) -> ChannelKind:
    """Map a py-cord channel object to a :class:`ChannelKind`."""
    if isinstance(channel, (discord.DMChannel, discord.GroupChannel)):
        return ChannelKind.DM
    if isinstance(channel, discord.Thread):
        return ChannelKind.GUILD_THREAD
    if isinstance(channel, discord.TextChannel):
        return ChannelKind.GUILD_TEXT
    return ChannelKind.OTHER


class DiscordMessage:
    """
    Wraps a ``discord.Message`` for the dispatch core.

    The author is read through :attr:`author`, which :meth:`fetch_member`
    replaces with a freshly fetched ``discord.Member`` so permission and
    nickname lookups see the hydrated object.

    Args:
        message: The gateway message.
    """

    def __init__(self, message: discord.Message) -> None:
        self.raw = message
        self.author: Union[discord.User, discord.Member] = message.author

    def __repr__(self) -> str:
        return f"<DiscordMessage id={self.id} author={self.author_id} channel={self.channel_id}>"

    # --------------------------
    # Identity and origin
    # --------------------------
    @property
    def id(self) -> str:
        return str(self.raw.id)

    @property
    def author_id(self) -> str:
        return str(UserID.from_user(self.author))

    @property
    def author_tag(self) -> str:
        return str(self.author)

    @property
    def author_name(self) -> str:
        return self.author.name

    @property
    def is_bot(self) -> bool:
        return bool(self.author.bot)

    @property
    def content(self) -> str:
        return self.raw.content or ""

    @property
    def guild_id(self) -> Optional[str]:
        return str(GuildID.from_guild(self.raw.guild)) if self.raw.guild else None

    @property
    def guild_name(self) -> Optional[str]:
        return self.raw.guild.name if self.raw.guild else None

    @property
    def guild_owner_id(self) -> Optional[str]:
        guild = self.raw.guild
        if guild is None or guild.owner_id is None:
            return None
        return str(guild.owner_id)

    @property
    def channel_id(self) -> str:
        return str(ChannelID.from_channel(self.raw.channel))

    @property
    def channel_name(self) -> Optional[str]:
        return getattr(self.raw.channel, "name", None)

    @property
    def channel_kind(self) -> ChannelKind:
        return classify_channel(self.raw.channel)

    @property
    def is_nsfw(self) -> bool:
        is_nsfw = getattr(self.raw.channel, "is_nsfw", None)
        return bool(is_nsfw()) if callable(is_nsfw) else False

    @property
    def member_present(self) -> bool:
        return isinstance(self.author, discord.Member)

    @property
    def member_nickname(self) -> Optional[str]:
        return self.author.nick if isinstance(self.author, discord.Member) else None

    @property
    def timestamp(self) -> datetime:
        return self.raw.created_at

    # --------------------------
    # Capabilities
    # --------------------------
    def has_permission(self, name: str) -> bool:
        """Check a ``discord.Permissions`` flag (e.g. ``"manage_messages"``) on the author."""
        if not isinstance(self.author, discord.Member):
            return False
        return bool(getattr(self.author.guild_permissions, name, False))

    async def fetch_member(self) -> None:
        guild = self.raw.guild
        if guild is None:
            return
        self.author = await guild.fetch_member(self.author.id)
        logger.debug("[DISCORD MESSAGE] Fetched member %s in guild %s", self.author_id, guild.id)

    async def send(self, content: Optional[str] = None, **kwargs: Any) -> "DiscordMessage":
        sent = await self.raw.channel.send(content, **kwargs)
        return DiscordMessage(sent)

    async def delete(self) -> None:
        await self.raw.delete()

    async def edit(self, content: str) -> "DiscordMessage":
        edited = await self.raw.edit(content=content)
        return DiscordMessage(edited) if edited is not None else self
