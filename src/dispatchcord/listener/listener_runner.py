"""
Runs pattern listeners against guild messages.

Listeners are grouped by category. Every category is evaluated concurrently and
within a category listeners are tried in priority order until one matches.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Dict, List

from dispatchcord.command.command_resolver import apply_context_extenders, build_command_context
from dispatchcord.datatypes.command_datatypes import CommandContext
from dispatchcord.datatypes.message_datatypes import IncomingMessage
from dispatchcord.errors import ListenerExecutionError
from dispatchcord.events.event_bus import BotEvent
from dispatchcord.listener.listener import Listener
from dispatchcord.util.async_utils import maybe_await
from dispatchcord.util.logger import get_logger

if TYPE_CHECKING:
    from dispatchcord.bot.client import DispatchClient

logger = get_logger("listener_runner")


def group_by_category(listeners: List[Listener]) -> Dict[str, List[Listener]]:
    """Group listeners by category, each group sorted by priority (stable)."""
    grouped: Dict[str, List[Listener]] = {}
    for listener in listeners:
        grouped.setdefault(listener.category or "other", []).append(listener)
    for category in grouped:
        grouped[category].sort(key=lambda item: item.priority)
    return grouped


class ListenerRunner:
    """Evaluates the client's listeners for each message.

    Args:
        client: The owning :class:`DispatchClient`.
    """

    def __init__(self, client: "DispatchClient") -> None:
        self.client = client

    async def handle(self, message: IncomingMessage) -> None:
        client = self.client
        if message.is_bot or message.guild_id is None:
            return
        if client.ignored.is_ignored(message.guild_id, message.channel_id):
            return
        if not client.listeners:
            return

        context = build_command_context(client, message, "", resolve_command=False)
        if not await apply_context_extenders(client, context):
            return

        categories = group_by_category(client.listeners)
        await asyncio.gather(
            *(self.run_category(category, chain, message, context) for category, chain in categories.items())
        )

    async def run_category(
        self,
        category: str,
        chain: List[Listener],
        message: IncomingMessage,
        context: CommandContext,
    ) -> None:
        """Try each listener in ``chain`` until one matches or raises."""
        client = self.client
        for listener in chain:
            if not listener.accepts_length(message.content):
                continue
            if listener.is_on_cooldown(message.author_id, message.guild_id):
                continue
            if not listener.matches(message.content):
                continue

            # Ignore state may have changed while other categories ran.
            if client.ignored.is_ignored(message.guild_id, message.channel_id):
                return

            # Cooldowns start before the handler is awaited.
            listener.start_cooldown(message.author_id, message.guild_id)
            try:
                await maybe_await(listener.run(client, message, context))
            except Exception as exc:
                client.bus.emit(BotEvent.ERROR, ListenerExecutionError(category, listener.name, exc))
                return

            client.bus.emit(BotEvent.LISTENER, listener, context)
            logger.debug("[LISTENERS] %s matched message %s", listener, message.id)
            return
