"""Dispatch listener Cog for Dispatchcord.

This cog forwards message events (on_message, on_message_edit) from py-cord into
the :class:`DispatchClient` pipelines.
"""

import discord
from discord.ext import commands

from dispatchcord.bot.client import DispatchClient
from dispatchcord.bot.discord_message import DiscordMessage
from dispatchcord.util.logger import get_logger

logger = get_logger("dispatch_listener_cog")


class DispatchListenerCog(commands.Cog):
    """Cog responsible for handing gateway messages to the dispatch client."""

    def __init__(self, discord_bot_instance, client: DispatchClient):
        """
        Initialize the dispatch listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        client:
            Dispatch client that owns the command and listener registries.
        """
        self.bot = discord_bot_instance
        self.client = client
        client.bot = discord_bot_instance
        logger.info("[DISPATCH LISTENER] Dispatch listener cog loaded")

    @commands.Cog.listener(name="on_ready")
    async def on_ready(self):
        user = self.bot.user
        logger.info(
            "[DISPATCH LISTENER] Logged in as %s; %d commands, %d listeners loaded",
            user,
            len(self.client.commands),
            len(self.client.listeners),
        )

    @commands.Cog.listener(name="on_message")
    async def on_message(self, message: discord.Message):
        """Run the command and listener pipelines for a new message."""
        await self.client.handle_message(DiscordMessage(message))

    @commands.Cog.listener(name="on_message_edit")
    async def on_message_edit(self, before: discord.Message, after: discord.Message):
        """Re-run the command pipeline when a message's text was edited."""
        await self.client.handle_message_edit(DiscordMessage(before), DiscordMessage(after))


def setup(discord_bot_instance, client: DispatchClient):
    """Register the DispatchListenerCog with the bot."""
    discord_bot_instance.add_cog(DispatchListenerCog(discord_bot_instance, client))
