"""
Per-user command cooldowns.

Each ``(command name, caller id)`` pair maps to the monotonic timestamp of its
last accepted invocation. Records are evicted by an event-loop timer scheduled
on the first stamp. Repeat use refreshes the stamp but not the timer, so the
record is still evicted one cooldown after that first stamp.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Callable, Dict, Optional, Tuple

from dispatchcord.errors import ConfigurationError
from dispatchcord.events.event_bus import BotEvent, EventBus
from dispatchcord.util.logger import get_logger

if TYPE_CHECKING:
    from dispatchcord.command.command_resolver import CommandRegistry
    from dispatchcord.datatypes.command_datatypes import Command

logger = get_logger("cooldown_store")

CooldownKey = Tuple[str, str]


class CooldownStore:
    """
    Tracks when each caller last ran each command.

    Attributes:
        records (Dict[CooldownKey, float]): Last invocation timestamps.
        timers (Dict[CooldownKey, asyncio.TimerHandle]): Pending eviction timers.
    """

    def __init__(
        self,
        registry: "CommandRegistry",
        bus: EventBus,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.registry = registry
        self.bus = bus
        self.clock = clock
        self.records: Dict[CooldownKey, float] = {}
        self.timers: Dict[CooldownKey, asyncio.TimerHandle] = {}

    def _lookup(self, command_name: str) -> Optional["Command"]:
        command = self.registry.get(command_name)
        if command is None:
            self.bus.emit(
                BotEvent.ERROR,
                ConfigurationError(f"Cooldown lookup for '{command_name}', which is not a registered command."),
            )
        return command

    def record_and_start(self, command_name: str, caller_id: str) -> None:
        """
        Stamp the current time for ``(command_name, caller_id)`` and schedule eviction.

        A pending eviction timer for the same key is left in place. Unknown
        commands are reported on the bus and nothing is recorded.
        """
        command = self._lookup(command_name)
        if command is None or command.cooldown <= 0:
            return

        key = (command.name, str(caller_id))
        self.records[key] = self.clock()

        if key in self.timers:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("[COOLDOWNS] No running loop; %s will expire lazily", key)
            return
        self.timers[key] = loop.call_later(command.cooldown, self._evict, key)

    def remaining(self, command_name: str, caller_id: str) -> float:
        """
        Return the seconds left on ``caller_id``'s cooldown for ``command_name``.

        Returns 0.0 when there is no record, the record has expired or the
        command is unknown (the latter is also reported on the bus). The cooldown
        length is read from the currently registered definition. Never mutates
        the store.
        """
        command = self._lookup(command_name)
        if command is None:
            return 0.0

        stamped = self.records.get((command.name, str(caller_id)))
        if stamped is None:
            return 0.0
        return max(0.0, stamped + command.cooldown - self.clock())

    def _evict(self, key: CooldownKey) -> None:
        # Fires at the first stamp's expiry even if the record was refreshed since.
        self.timers.pop(key, None)
        self.records.pop(key, None)

    def clear(self) -> None:
        """Cancel every eviction timer and forget all records."""
        for handle in self.timers.values():
            handle.cancel()
        self.timers.clear()
        self.records.clear()
