"""
Built-in commands loaded by the entry point.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Tuple

from dispatchcord.datatypes.command_datatypes import Command, CommandContext, RunContext
from dispatchcord.datatypes.message_datatypes import IncomingMessage
from dispatchcord.events.event_bus import BotEvent
from dispatchcord.permissions.permissions import Permission
from dispatchcord.util.format_utils import humanize_seconds, lines

if TYPE_CHECKING:
    from dispatchcord.bot.client import DispatchClient


async def run_ping(client: "DispatchClient", message: IncomingMessage, context: CommandContext) -> None:
    await context.send("Pong!")


async def run_info(client: "DispatchClient", message: IncomingMessage, context: CommandContext) -> None:
    report = [
        f"**{client.config.name} Stats**",
        f"Version: {client.version}",
        f"Uptime: {humanize_seconds(client.uptime)}",
        f"Commands: {len(client.commands)}",
        f"Listeners: {len(client.listeners)}",
    ]
    guilds = getattr(client.bot, "guilds", None)
    if guilds is not None:
        report.append(f"Servers: {len(guilds)}")
    await context.send(lines(*report))


async def run_repeat(client: "DispatchClient", message: IncomingMessage, context: CommandContext) -> None:
    name = context.nickname or context.username
    text = f"{name} said {context.content}"
    await context.send(text)
    client.bus.emit(BotEvent.DEBUG, f"REPEAT COMMAND: {text}")


ping = Command(
    name="ping",
    description="Am I working?",
    category="info",
    permission=Permission.USER,
    run_in=(RunContext.GUILD, RunContext.DM),
    run=run_ping,
)

info = Command(
    name="info",
    description="Shows some info about the bot.",
    category="info",
    permission=Permission.USER,
    aliases=("stats", "version"),
    run=run_info,
)

repeat = Command(
    name="repeat",
    description="Repeats stuff like a robot",
    usage="repeat <text>",
    category="maintenance",
    permission=Permission.BOT_SUPPORT,
    delete=True,
    run=run_repeat,
)

DEFAULT_COMMANDS: Tuple[Command, ...] = (ping, info, repeat)


def load_default_commands(client: "DispatchClient") -> int:
    """Load every built-in command into ``client`` and return how many loaded."""
    return sum(1 for command in DEFAULT_COMMANDS if client.load_command(command))
