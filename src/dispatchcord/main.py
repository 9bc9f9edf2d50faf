"""
Dispatchcord Bot
================

Starts a py-cord bot whose text messages are routed through the Dispatchcord
command and listener pipelines, with the built-in commands loaded.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

import discord
from dotenv import load_dotenv

from dispatchcord.bot.client import DispatchClient
from dispatchcord.bot.cogs import dispatch_listener
from dispatchcord.command.default_commands import load_default_commands
from dispatchcord.configuration.app_configuration import app_config
from dispatchcord.events.event_bus import install_log_subscribers
from dispatchcord.util.logger import get_logger, handle_exception, set_console_level

BASE_DIR = Path(__file__).resolve().parents[2]

logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Returns
    -------
    str
        Discord bot token extracted from the loaded environment.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Construct the Discord intents text commands need.

    Returns
    -------
    discord.Intents
        Default intents plus guild messages, DMs and message content.
    """
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.members = True
    return intents


def create_client() -> DispatchClient:
    """Build the dispatch client with log mirroring and the built-in commands."""
    client = DispatchClient(config=app_config)
    install_log_subscribers(client.bus)
    loaded = load_default_commands(client)
    logger.info("Loaded %d built-in commands.", loaded)
    return client


def create_bot(client: DispatchClient) -> discord.Bot:
    """Instantiate the Discord bot and attach the dispatch cog."""
    bot = discord.Bot(intents=build_intents())
    dispatch_listener.setup(bot, client)
    return bot


async def start_bot(bot: discord.Bot, client: DispatchClient, token: str) -> None:
    """Start the Discord bot and shut the client down once it stops.

    Parameters
    ----------
    bot:
        Discord client to start.
    client:
        Dispatch client to shut down afterwards.
    token:
        Authentication token used to connect to Discord.
    """
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        await client.shutdown()
        if not bot.is_closed():
            await bot.close()
        logger.info("Discord bot start routine finished.")


async def async_main() -> int:
    """Bootstrap the client and bot, returning an exit code."""
    token = load_environment()
    if app_config.debug:
        set_console_level(logging.DEBUG)

    try:
        client = create_client()
        client.token = token
        bot = create_bot(client)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        return 1

    try:
        await start_bot(bot, client, token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        return 1
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        return 1
    return 0


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process code."""
    sys.excepthook = handle_exception
    logger.info("Starting Dispatchcord…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
