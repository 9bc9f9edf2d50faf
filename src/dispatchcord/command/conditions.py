"""
Individual gates a command invocation must pass.

Each check is a small pure function over the message and its context so the
runner reads as a flat sequence of ``if not <gate>: feedback; return``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from dispatchcord.datatypes.command_datatypes import CommandContext, RunContext
from dispatchcord.datatypes.message_datatypes import IncomingMessage
from dispatchcord.errors import ConfigurationError
from dispatchcord.permissions.permissions import PermissionEvaluator


@dataclass(frozen=True, slots=True)
class PermissionShortfall:
    """Caller and required tiers for a failed permission check."""

    user_level: int
    user_tier_name: str
    required_level: int
    required_tier_name: str


def is_bot(message: IncomingMessage) -> bool:
    return message.is_bot


def should_fetch_member(message: IncomingMessage, context: CommandContext) -> bool:
    """Guild messages whose author member object is not cached need a fetch."""
    return not context.is_dm and not message.member_present


def is_unsafe_nsfw_command(message: IncomingMessage, context: CommandContext) -> bool:
    return bool(context.command and context.command.nsfw_only and not message.is_nsfw)


def is_forbidden_server_only(context: CommandContext) -> bool:
    """True when a guild-only command is used in a DM."""
    return context.is_dm and not context.command.allows(RunContext.DM)


def is_forbidden_dm_only(context: CommandContext) -> bool:
    """True when a DM-only command is used in a guild."""
    return not context.is_dm and not context.command.allows(RunContext.GUILD)


def check_permission_level(evaluator: PermissionEvaluator, context: CommandContext) -> Optional[PermissionShortfall]:
    """
    Compare the caller's level with the command's required level.

    Returns:
        None if the caller may run the command, otherwise the shortfall to report.

    Raises:
        ConfigurationError: If the command requires a level no tier declares.
    """
    command = context.command
    required = evaluator.tier_for(command.permission)
    if required is None:
        raise ConfigurationError(
            f"Permission level {command.permission} in command {command.name} not found in the config!"
        )
    if context.perm_level >= command.permission:
        return None

    user_tier = evaluator.tier_for(context.perm_level)
    return PermissionShortfall(
        user_level=context.perm_level,
        user_tier_name=user_tier.name if user_tier else "Unknown",
        required_level=required.level,
        required_tier_name=required.name,
    )
