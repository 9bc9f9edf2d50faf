"""
Permission tiers and evaluation.

A caller's permission level is the level of the highest tier whose predicate
accepts the message. Commands declare the level they require; the runner
compares the two. Tiers are built once at startup and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional, Tuple

from dispatchcord.datatypes.message_datatypes import ChannelKind, IncomingMessage
from dispatchcord.errors import SchemaError

if TYPE_CHECKING:
    from dispatchcord.configuration.app_configuration import AppConfig

TierPredicate = Callable[[IncomingMessage], bool]


class Permission(IntEnum):
    """Default permission levels."""

    USER = 0
    MANAGE_MESSAGES = 2
    MANAGE_ROLES = 3
    MANAGE_GUILD = 4
    SERVER_OWNER = 5
    BOT_SUPPORT = 8
    BOT_ADMIN = 9
    BOT_OWNER = 10


@dataclass(frozen=True, slots=True)
class PermissionTier:
    """A named permission level and the predicate granting it."""

    level: int
    name: str
    predicate: TierPredicate

    def matches(self, message: IncomingMessage) -> bool:
        return bool(self.predicate(message))


def _guild_permission(name: str) -> TierPredicate:
    def check(message: IncomingMessage) -> bool:
        if message.guild_id is None:
            return False
        return message.has_permission(name)

    return check


def build_default_tiers(config: "AppConfig") -> List[PermissionTier]:
    """Build the default tier set from ``config``.

    Bot-level tiers compare the author id with the ``support``, ``admins`` and
    ``owner_id`` keys. The config is read when the predicate runs, so a reload
    takes effect without rebuilding the tiers.
    """

    def is_server_owner(message: IncomingMessage) -> bool:
        # Plain text channels only; an owner posting in a thread or a voice
        # channel's chat evaluates through the lower tiers.
        if message.channel_kind is not ChannelKind.GUILD_TEXT:
            return False
        return message.guild_owner_id is not None and message.guild_owner_id == message.author_id

    return [
        PermissionTier(Permission.USER, "User", lambda message: True),
        PermissionTier(Permission.MANAGE_MESSAGES, "Manage Messages", _guild_permission("manage_messages")),
        PermissionTier(Permission.MANAGE_ROLES, "Manage Roles", _guild_permission("manage_roles")),
        PermissionTier(Permission.MANAGE_GUILD, "Manage Guild", _guild_permission("manage_guild")),
        PermissionTier(Permission.SERVER_OWNER, "Server Owner", is_server_owner),
        PermissionTier(Permission.BOT_SUPPORT, "Bot Support", lambda message: message.author_id in config.support),
        PermissionTier(Permission.BOT_ADMIN, "Bot Admin", lambda message: message.author_id in config.admins),
        PermissionTier(
            Permission.BOT_OWNER,
            "Bot Owner",
            lambda message: config.owner_id is not None and message.author_id == config.owner_id,
        ),
    ]


class PermissionEvaluator:
    """Maps a message author to a permission level.

    Args:
        tiers: Tier definitions. Levels must be unique.

    Raises:
        SchemaError: If two tiers share a level.
    """

    def __init__(self, tiers: Iterable[PermissionTier]) -> None:
        ordered = sorted(tiers, key=lambda tier: tier.level, reverse=True)
        levels = [tier.level for tier in ordered]
        if len(set(levels)) != len(levels):
            raise SchemaError(f"Permission tier levels must be unique, got {sorted(levels)}")

        self._tiers: Tuple[PermissionTier, ...] = tuple(ordered)
        self._by_level: Dict[int, PermissionTier] = {tier.level: tier for tier in ordered}
        self.levels_by_name: Dict[str, int] = {tier.name: tier.level for tier in ordered}

    @property
    def tiers(self) -> Tuple[PermissionTier, ...]:
        """Tiers ordered from highest to lowest level."""
        return self._tiers

    def evaluate(self, message: IncomingMessage) -> int:
        """Return the level of the highest tier whose predicate accepts ``message``.

        Falls back to 0 when nothing matches, even without a level-0 tier.
        """
        for tier in self._tiers:
            if tier.matches(message):
                return tier.level
        return 0

    def tier_for(self, level: int) -> Optional[PermissionTier]:
        return self._by_level.get(level)
