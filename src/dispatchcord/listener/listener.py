"""
Pattern listener definitions and the channel/guild ignore list.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Union

from dispatchcord.errors import SchemaError
from dispatchcord.listener.pattern_matcher import Words, string_match
from dispatchcord.util.logger import get_logger

if TYPE_CHECKING:
    from dispatchcord.bot.client import DispatchClient

logger = get_logger("listener")

ListenerHandler = Callable[..., Any]
IdOrIds = Union[str, int, Iterable[Union[str, int]]]


class Listener:
    """
    A handler triggered by phrases in ordinary chat messages.

    Args:
        words: A regex-composable pattern or a list of patterns that must all match.
        cooldown: Per-caller cooldown in seconds. ``0`` is allowed.
        run: Handler called as ``run(client, message, context)``; may be async.
        category: Listeners in the same category stop at the first match.
        priority: Lower values run earlier within a category.
        global_cooldown: Optional per-guild cooldown in seconds.
        max_message_length: Longer messages are skipped. Unbounded by default.
        init: Optional hook called with the client when the listener is loaded.
        clock: Time source for cooldowns.

    Raises:
        SchemaError: If ``words``, ``cooldown`` or ``run`` is missing.
    """

    def __init__(
        self,
        *,
        words: Optional[Words] = None,
        cooldown: Optional[float] = None,
        run: Optional[ListenerHandler] = None,
        category: str = "other",
        priority: int = 0,
        global_cooldown: Optional[float] = None,
        max_message_length: Optional[int] = None,
        init: Optional[Callable[["DispatchClient"], Any]] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not words or cooldown is None or run is None or not callable(run):
            raise SchemaError("A listener requires words, cooldown and a run function.")
        if isinstance(words, str):
            self.words: Words = words
        else:
            self.words = tuple(words)
            if not all(isinstance(token, str) and token for token in self.words):
                raise SchemaError(f"Listener words must be non-empty strings, got {words!r}")

        self.cooldown = float(cooldown)
        self.run = run
        self.category = category or "other"
        self.priority = int(priority or 0)
        self.global_cooldown = float(global_cooldown) if global_cooldown else None
        self.max_message_length = abs(max_message_length) if max_message_length else None
        self.init = init
        self.clock = clock
        # Expiry timestamps; guild entries are kept apart from user entries.
        self._user_cooldowns: Dict[str, float] = {}
        self._guild_cooldowns: Dict[str, float] = {}

    @property
    def name(self) -> str:
        return self.words if isinstance(self.words, str) else " ".join(self.words)

    def __str__(self) -> str:
        return f"Listener [{self.name} / {self.category}]"

    def __repr__(self) -> str:
        return f"<Listener words={self.words!r} category={self.category!r} priority={self.priority}>"

    def is_on_cooldown(self, caller_id: str, guild_id: Optional[str] = None) -> bool:
        now = self.clock()
        if guild_id is not None and self.global_cooldown:
            if now < self._guild_cooldowns.get(str(guild_id), float("-inf")):
                return True
        return now < self._user_cooldowns.get(str(caller_id), float("-inf"))

    def accepts_length(self, content: str) -> bool:
        return self.max_message_length is None or len(content or "") <= self.max_message_length

    def matches(self, content: str) -> bool:
        return string_match(content, self.words)

    def start_cooldown(self, caller_id: str, guild_id: Optional[str] = None) -> None:
        """Set the caller cooldown, and the guild-wide one when configured."""
        now = self.clock()
        self._user_cooldowns[str(caller_id)] = now + self.cooldown
        if guild_id is not None and self.global_cooldown:
            self._guild_cooldowns[str(guild_id)] = now + self.global_cooldown


@dataclass
class IgnoreWindow:
    """How long a channel or guild stays ignored. A duration of 0 means indefinitely."""

    start: float
    duration: float
    timer: Optional[asyncio.TimerHandle] = None

    def expired(self, now: float) -> bool:
        return self.duration > 0 and now >= self.start + self.duration


def _as_id_list(ids: IdOrIds) -> List[str]:
    if isinstance(ids, (str, int)):
        return [str(ids)]
    return [str(item) for item in ids]


class IgnoreList:
    """
    Channels and guilds that listeners should stay silent in.

    Entries with a duration are lifted automatically by an event-loop timer;
    re-ignoring an entry replaces its window and cancels the previous timer.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self.clock = clock
        self.guilds: Dict[str, IgnoreWindow] = {}
        self.channels: Dict[str, IgnoreWindow] = {}

    def _ignore(self, table: Dict[str, IgnoreWindow], ids: IdOrIds, duration: float) -> None:
        for key in _as_id_list(ids):
            self._lift(table, key)
            window = IgnoreWindow(start=self.clock(), duration=max(0.0, float(duration)))
            if window.duration:
                try:
                    loop = asyncio.get_running_loop()
                except RuntimeError:
                    logger.debug("[LISTENERS] No running loop; ignore window for %s expires lazily", key)
                else:
                    window.timer = loop.call_later(window.duration, self._expire, table, key, window)
            table[key] = window

    def _expire(self, table: Dict[str, IgnoreWindow], key: str, window: IgnoreWindow) -> None:
        if table.get(key) is window:
            del table[key]

    def _lift(self, table: Dict[str, IgnoreWindow], key: str) -> None:
        window = table.pop(key, None)
        if window is not None and window.timer is not None:
            window.timer.cancel()

    def _contains(self, table: Dict[str, IgnoreWindow], key: Optional[str]) -> bool:
        if key is None:
            return False
        window = table.get(str(key))
        if window is None:
            return False
        if window.expired(self.clock()):
            self._lift(table, str(key))
            return False
        return True

    def ignore_channel(self, ids: IdOrIds, duration: float = 0) -> None:
        """Ignore one or more channels for ``duration`` seconds (0 = until lifted)."""
        self._ignore(self.channels, ids, duration)

    def ignore_guild(self, ids: IdOrIds, duration: float = 0) -> None:
        """Ignore one or more guilds for ``duration`` seconds (0 = until lifted)."""
        self._ignore(self.guilds, ids, duration)

    def listen_channel(self, ids: IdOrIds) -> None:
        for key in _as_id_list(ids):
            self._lift(self.channels, key)

    def listen_guild(self, ids: IdOrIds) -> None:
        for key in _as_id_list(ids):
            self._lift(self.guilds, key)

    def is_ignored(self, guild_id: Optional[str], channel_id: Optional[str]) -> bool:
        return self._contains(self.guilds, guild_id) or self._contains(self.channels, channel_id)

    def clear(self) -> None:
        """Cancel every pending timer and empty both lists."""
        for table in (self.guilds, self.channels):
            for window in table.values():
                if window.timer is not None:
                    window.timer.cancel()
            table.clear()
