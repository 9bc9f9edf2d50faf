"""
Process-wide event bus for error, warning and usage reporting.

Nothing in the dispatch pipelines raises into the gateway loop. Failures and
notable events are emitted here instead, and subscribers decide what to do
with them (log, forward to a channel, count). :func:`install_log_subscribers`
wires every event to the project logger.
"""

from __future__ import annotations

import asyncio
import inspect
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, DefaultDict, List, Set, Union

from dispatchcord.util.logger import get_logger

logger = get_logger("event_bus")

Subscriber = Callable[..., Any]


class BotEvent(str, Enum):
    """Named events emitted by the dispatch core."""

    ERROR = "error"
    WARN = "warn"
    COMMAND = "command"
    LISTENER = "listener"
    DEBUG = "debug"

    def __str__(self) -> str:
        return self.value


class EventBus:
    """Minimal publish/subscribe hub.

    Synchronous subscribers are called inline, in subscription order. Coroutine
    subscribers are scheduled as tasks on the running loop. A subscriber that
    raises is logged and never affects the emitter or the other subscribers.
    """

    def __init__(self) -> None:
        self._subscribers: DefaultDict[BotEvent, List[Subscriber]] = defaultdict(list)
        self._tasks: Set[asyncio.Task] = set()

    def on(self, event: Union[BotEvent, str], callback: Subscriber) -> Subscriber:
        """Subscribe ``callback`` to ``event`` and return it (usable as a decorator helper)."""
        self._subscribers[BotEvent(event)].append(callback)
        return callback

    def off(self, event: Union[BotEvent, str], callback: Subscriber) -> bool:
        """Remove a subscription. Returns False if it was not registered."""
        subscribers = self._subscribers.get(BotEvent(event), [])
        if callback in subscribers:
            subscribers.remove(callback)
            return True
        return False

    def subscribers(self, event: Union[BotEvent, str]) -> List[Subscriber]:
        return list(self._subscribers.get(BotEvent(event), []))

    def emit(self, event: Union[BotEvent, str], *payload: Any) -> None:
        """Deliver ``payload`` to every subscriber of ``event``."""
        event = BotEvent(event)
        for callback in list(self._subscribers.get(event, [])):
            try:
                result = callback(*payload)
            except Exception:
                logger.exception("[EVENT BUS] Subscriber %r failed for '%s' event", callback, event)
                continue

            if inspect.isawaitable(result):
                self._schedule(event, callback, result)

    def _schedule(self, event: BotEvent, callback: Subscriber, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("[EVENT BUS] No running loop for async subscriber %r of '%s'; dropped", callback, event)
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return

        task = loop.create_task(awaitable)
        self._tasks.add(task)

        def _done(finished: asyncio.Task) -> None:
            self._tasks.discard(finished)
            if finished.cancelled():
                return
            exc = finished.exception()
            if exc is not None:
                logger.error(
                    "[EVENT BUS] Async subscriber %r failed for '%s' event",
                    callback,
                    event,
                    exc_info=(type(exc), exc, exc.__traceback__),
                )

        task.add_done_callback(_done)

    async def drain(self) -> None:
        """Wait for every scheduled async subscriber to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


def install_log_subscribers(bus: EventBus) -> None:
    """Mirror every bus event to the ``dispatchcord`` logs."""
    events_logger = get_logger("events")

    def on_error(error: Any, *_: Any) -> None:
        if isinstance(error, BaseException):
            events_logger.error("[ERROR] %s", error, exc_info=(type(error), error, error.__traceback__))
        else:
            events_logger.error("[ERROR] %s", error)

    def on_warn(message: Any, *_: Any) -> None:
        events_logger.warning("[WARN] %s", message)

    def on_command(context: Any, *_: Any) -> None:
        events_logger.info(
            "[COMMAND] %s (%s) ran '%s' in %s",
            getattr(context, "tag", "?"),
            getattr(context, "user_id", "?"),
            getattr(context, "command_name", "?"),
            "DM" if getattr(context, "is_dm", False) else f"guild {getattr(context, 'guild_id', '?')}",
        )

    def on_listener(listener: Any, context: Any = None, *_: Any) -> None:
        events_logger.info(
            "[LISTENER] '%s' (%s) triggered by %s in guild %s",
            getattr(listener, "name", listener),
            getattr(listener, "category", "?"),
            getattr(context, "tag", "?"),
            getattr(context, "guild_id", "?"),
        )

    def on_debug(message: Any, *_: Any) -> None:
        events_logger.debug("[DEBUG] %s", message)

    bus.on(BotEvent.ERROR, on_error)
    bus.on(BotEvent.WARN, on_warn)
    bus.on(BotEvent.COMMAND, on_command)
    bus.on(BotEvent.LISTENER, on_listener)
    bus.on(BotEvent.DEBUG, on_debug)
