"""
The command dispatch pipeline.

One :meth:`CommandRunner.run` call handles one inbound (or edited) message. The
gates run strictly in order and the first one that fails ends the run, usually
after posting short-lived feedback to the caller. Nothing raised by a handler
escapes: it is wrapped in :class:`CommandExecutionError` and reported on the
event bus.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from dispatchcord.command import conditions
from dispatchcord.command.command_resolver import apply_context_extenders, build_command_context, resolve_prefix
from dispatchcord.configuration import messages
from dispatchcord.datatypes.command_datatypes import CommandContext
from dispatchcord.datatypes.message_datatypes import IncomingMessage
from dispatchcord.errors import CommandExecutionError, ConfigurationError
from dispatchcord.events.event_bus import BotEvent
from dispatchcord.util.async_utils import maybe_await
from dispatchcord.util.format_utils import format_message, humanize_seconds, lines
from dispatchcord.util.logger import get_logger

if TYPE_CHECKING:
    from dispatchcord.bot.client import DispatchClient

logger = get_logger("command_runner")


async def send_transient_feedback(client: "DispatchClient", message: IncomingMessage, text: str) -> None:
    """
    Post ``text`` in the message's channel and delete it after a short delay.

    Failures to send or delete are expected (missing permissions, message
    already gone) and only logged at debug level.
    """
    try:
        sent = await message.send(text)
    except Exception as exc:
        logger.debug("[COMMAND RUNNER] Could not send feedback in channel %s: %s", message.channel_id, exc)
        return

    await asyncio.sleep(client.config.feedback_delete_seconds)
    try:
        await sent.delete()
    except Exception as exc:
        logger.debug("[COMMAND RUNNER] Could not delete feedback in channel %s: %s", message.channel_id, exc)


def make_command_error(context: CommandContext, error: BaseException) -> CommandExecutionError:
    """Wrap a handler failure with the command and channel it came from."""
    return CommandExecutionError(
        context.command_name,
        channel_name=context.channel_name,
        channel_id=context.channel_id,
        guild_name=context.guild_name,
        guild_id=context.guild_id,
        is_dm=context.is_dm,
        original=error,
    )


class CommandRunner:
    """Runs the gate chain and the handler for text commands.

    Args:
        client: The owning :class:`DispatchClient`.
    """

    def __init__(self, client: "DispatchClient") -> None:
        self.client = client

    def _message(self, key: str, *values) -> str:
        return format_message(self.client.config.message(key), *values)

    async def run(self, message: IncomingMessage) -> None:
        client = self.client

        # Don't answer to bots
        if conditions.is_bot(message):
            return

        prefix = await resolve_prefix(client, message)
        if not prefix:
            return

        context = build_command_context(client, message, prefix)
        if not await apply_context_extenders(client, context):
            return

        if context.command is None:
            return

        # The author's member object may not be cached yet.
        if conditions.should_fetch_member(message, context):
            try:
                await message.fetch_member()
            except Exception as exc:
                logger.debug("[COMMAND RUNNER] Could not fetch member %s: %s", message.author_id, exc)
            else:
                context.perm_level = client.permission_level(message)
                context.nickname = message.member_nickname

        command = context.command

        if conditions.is_unsafe_nsfw_command(message, context):
            await send_transient_feedback(client, message, self._message(messages.COMMAND_FEEDBACK_NSFW_ONLY))
            return

        if conditions.is_forbidden_server_only(context):
            await send_transient_feedback(
                client, message, self._message(messages.COMMAND_FEEDBACK_SERVER_ONLY, context.command_name)
            )
            return

        if conditions.is_forbidden_dm_only(context):
            await send_transient_feedback(
                client, message, self._message(messages.COMMAND_FEEDBACK_DM_ONLY, context.command_name)
            )
            return

        try:
            shortfall = conditions.check_permission_level(client.evaluator, context)
        except ConfigurationError as exc:
            client.bus.emit(BotEvent.ERROR, exc)
            return

        if shortfall is not None:
            if not command.hidden:
                await send_transient_feedback(
                    client,
                    message,
                    self._message(
                        messages.COMMAND_FEEDBACK_MISSING_PERMISSION,
                        shortfall.user_level,
                        shortfall.user_tier_name,
                        shortfall.required_level,
                        shortfall.required_tier_name,
                    ),
                )
            return

        if context.validation_errors:
            key = (
                messages.COMMAND_FEEDBACK_MISSING_ARGS_PLURAL
                if len(context.validation_errors) > 1
                else messages.COMMAND_FEEDBACK_MISSING_ARGS_SINGULAR
            )
            details = lines(*(f"**{err.field}** ({err.type}): {err.message}" for err in context.validation_errors))
            await send_transient_feedback(client, message, self._message(key, details))
            return

        cooldown_left = client.cooldowns.remaining(command.name, context.user_id)
        if cooldown_left > 0:
            await send_transient_feedback(
                client,
                message,
                self._message(messages.COOLDOWN, humanize_seconds(cooldown_left), context.command_name),
            )
            return

        client.cooldowns.record_and_start(command.name, context.user_id)

        if command.delete:
            try:
                await message.delete()
            except Exception as exc:
                logger.debug("[COMMAND RUNNER] Could not delete invoking message %s: %s", message.id, exc)

        client.bus.emit(BotEvent.COMMAND, context)

        try:
            await maybe_await(command.run(client, message, context))
        except Exception as exc:
            client.bus.emit(BotEvent.ERROR, make_command_error(context, exc))
