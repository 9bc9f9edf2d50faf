"""
The dispatch client facade.

:class:`DispatchClient` owns every registry and runner and is the single object
handed to command handlers, listeners, prefix checkers and context extenders.
It is transport agnostic: the py-cord cog feeds it :class:`IncomingMessage`
objects, tests feed it fakes.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from typing import Any, Callable, List, Optional, Sequence, Set

from dispatchcord import __version__
from dispatchcord.command.command_resolver import CommandRegistry
from dispatchcord.command.command_runner import CommandRunner
from dispatchcord.command.cooldown_store import CooldownStore
from dispatchcord.configuration.app_configuration import AppConfig, app_config
from dispatchcord.datatypes.command_datatypes import Command
from dispatchcord.datatypes.message_datatypes import IncomingMessage
from dispatchcord.errors import SchemaError
from dispatchcord.events.event_bus import BotEvent, EventBus
from dispatchcord.listener.listener import IgnoreList, Listener
from dispatchcord.listener.listener_runner import ListenerRunner
from dispatchcord.permissions.permissions import PermissionEvaluator, PermissionTier, build_default_tiers
from dispatchcord.util.async_utils import maybe_await
from dispatchcord.util.format_utils import clean_text
from dispatchcord.util.logger import get_logger

logger = get_logger("dispatch_client")

PrefixChecker = Callable[..., Any]
ContextExtender = Callable[..., Any]


class DispatchClient:
    """
    Registries, extension points and the two message pipelines.

    Args:
        config: Application configuration. Defaults to the shared ``app_config``.
        tiers: Permission tiers. Defaults to :func:`build_default_tiers`.
        bus: Event bus. A fresh one is created when omitted.

    Attributes:
        commands (CommandRegistry): Loaded commands and aliases.
        listeners (List[Listener]): Loaded pattern listeners.
        ignored (IgnoreList): Channels and guilds listeners stay silent in.
        cooldowns (CooldownStore): Per-user command cooldowns.
        evaluator (PermissionEvaluator): Maps authors to permission levels.
        prefix_checkers (List[PrefixChecker]): Custom prefix resolution functions.
        context_extenders (List[ContextExtender]): Functions decorating each context.
        bot: The py-cord bot this client is attached to, if any.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        tiers: Optional[Sequence[PermissionTier]] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        self.config = config if config is not None else app_config
        self.bus = bus if bus is not None else EventBus()
        self.evaluator = PermissionEvaluator(tiers if tiers is not None else build_default_tiers(self.config))
        self.commands = CommandRegistry()
        self.cooldowns = CooldownStore(self.commands, self.bus)
        self.listeners: List[Listener] = []
        self.ignored = IgnoreList()
        self.prefix_checkers: List[PrefixChecker] = []
        self.context_extenders: List[ContextExtender] = []
        self.command_runner = CommandRunner(self)
        self.listener_runner = ListenerRunner(self)
        self.bot: Any = None
        self.token: Optional[str] = None
        self._started_at = time.monotonic()
        self._hook_tasks: Set[asyncio.Task] = set()

    # --------------------------
    # Loading
    # --------------------------
    def load_command(self, command: Command) -> bool:
        """
        Run the command's ``init`` hook and register it.

        A failing load is reported as an ``error`` event and the command is left
        out; the process keeps going.

        Returns:
            bool: True when the command was registered.
        """
        if not isinstance(command, Command):
            self.bus.emit(BotEvent.ERROR, SchemaError(f"Unable to load command: {command!r} is not a Command"))
            return False
        try:
            self.bus.emit(BotEvent.DEBUG, f"Loading Command: {command.name}")
            if command.init is not None:
                self._call_hook(command.init)
            self.commands.register(command)
        except Exception as exc:
            self.bus.emit(BotEvent.ERROR, SchemaError(f"Unable to load command {command.name}: {exc}"))
            return False
        return True

    def load_listener(self, listener: Listener) -> bool:
        """Run the listener's ``init`` hook and add it. Failures are reported, not raised."""
        if not isinstance(listener, Listener):
            self.bus.emit(BotEvent.ERROR, SchemaError(f"Unable to load listener: {listener!r} is not a Listener"))
            return False
        try:
            self.bus.emit(BotEvent.DEBUG, f"Loading Listener: {listener}")
            if listener.init is not None:
                self._call_hook(listener.init)
            self.listeners.append(listener)
        except Exception as exc:
            self.bus.emit(BotEvent.ERROR, SchemaError(f"Unable to load listener {listener}: {exc}"))
            return False
        return True

    def _call_hook(self, hook: Callable[["DispatchClient"], Any]) -> None:
        result = hook(self)
        if not inspect.isawaitable(result):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(result):
                result.close()
            raise SchemaError("Async init hooks can only be loaded from a running event loop.") from None
        task = loop.create_task(result)
        self._hook_tasks.add(task)
        task.add_done_callback(self._report_hook_failure)

    def _report_hook_failure(self, task: "asyncio.Task[Any]") -> None:
        self._hook_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self.bus.emit(BotEvent.ERROR, task.exception())

    # --------------------------
    # Extension points
    # --------------------------
    def extend_prefix_checking(self, checker: PrefixChecker) -> None:
        """Register ``checker(client, message) -> str | bool | None``. ``True`` means the default prefix."""
        self.prefix_checkers.append(checker)

    def extend_context_parsing(self, extender: ContextExtender) -> None:
        """Register ``extender(client, context)``, run on every context before the gates."""
        self.context_extenders.append(extender)

    # --------------------------
    # Message handling
    # --------------------------
    def permission_level(self, message: IncomingMessage) -> int:
        return self.evaluator.evaluate(message)

    async def handle_message(self, message: IncomingMessage) -> None:
        """Run the command and listener pipelines for ``message`` concurrently."""
        results = await asyncio.gather(
            self.command_runner.run(message),
            self.listener_runner.handle(message),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, Exception):
                self.bus.emit(BotEvent.ERROR, result)

    async def handle_message_edit(self, before: IncomingMessage, after: IncomingMessage) -> None:
        """Re-run the command pipeline when an edit changed the message text."""
        if before.content == after.content:
            return
        try:
            await self.command_runner.run(after)
        except Exception as exc:
            self.bus.emit(BotEvent.ERROR, exc)

    # --------------------------
    # Lifecycle
    # --------------------------
    async def shutdown(self) -> None:
        """Call every command's ``shutdown`` hook and release timers."""
        for command in self.commands:
            if command.shutdown is None:
                continue
            try:
                await maybe_await(command.shutdown(self))
            except Exception as exc:
                self.bus.emit(BotEvent.ERROR, SchemaError(f"Shutdown hook of {command.name} failed: {exc}"))
        self.ignored.clear()
        self.cooldowns.clear()
        logger.info("[DISPATCH CLIENT] Shut down %d commands", len(self.commands))

    @property
    def uptime(self) -> float:
        """Seconds since the client was created."""
        return time.monotonic() - self._started_at

    @property
    def version(self) -> str:
        return __version__

    def clean(self, value: Any) -> str:
        """Scrub ``value`` for echoing into a channel, redacting the bot token."""
        return clean_text(value, self.token)
