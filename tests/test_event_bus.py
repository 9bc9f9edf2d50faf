import asyncio
import logging

import pytest

from dispatchcord.events.event_bus import BotEvent, EventBus, install_log_subscribers


def test_sync_subscribers_run_in_order() -> None:
    bus = EventBus()
    seen = []
    bus.on(BotEvent.WARN, lambda text: seen.append(("first", text)))
    bus.on("warn", lambda text: seen.append(("second", text)))

    bus.emit(BotEvent.WARN, "careful")

    assert seen == [("first", "careful"), ("second", "careful")]


def test_unknown_event_name_is_rejected() -> None:
    with pytest.raises(ValueError):
        EventBus().on("explode", print)


def test_failing_subscriber_does_not_stop_others() -> None:
    bus = EventBus()
    seen = []

    def broken(payload):
        raise RuntimeError("subscriber bug")

    bus.on(BotEvent.ERROR, broken)
    bus.on(BotEvent.ERROR, seen.append)

    bus.emit(BotEvent.ERROR, "payload")

    assert seen == ["payload"]


def test_off_removes_subscription() -> None:
    bus = EventBus()
    seen = []
    bus.on(BotEvent.DEBUG, seen.append)

    assert bus.off(BotEvent.DEBUG, seen.append) is True
    assert bus.off(BotEvent.DEBUG, seen.append) is False
    bus.emit(BotEvent.DEBUG, "ignored")

    assert seen == []
    assert bus.subscribers(BotEvent.DEBUG) == []


def test_emit_without_subscribers_is_a_noop() -> None:
    EventBus().emit(BotEvent.COMMAND, object())


@pytest.mark.asyncio
async def test_async_subscribers_are_scheduled() -> None:
    bus = EventBus()
    seen = []

    async def record(payload):
        await asyncio.sleep(0)
        seen.append(payload)

    bus.on(BotEvent.COMMAND, record)
    bus.emit(BotEvent.COMMAND, "ctx")
    assert seen == []

    await bus.drain()
    assert seen == ["ctx"]


@pytest.mark.asyncio
async def test_failing_async_subscriber_is_contained() -> None:
    bus = EventBus()

    async def broken(payload):
        raise RuntimeError("async bug")

    bus.on(BotEvent.ERROR, broken)
    bus.emit(BotEvent.ERROR, "payload")

    await bus.drain()


def test_async_subscriber_without_loop_is_dropped() -> None:
    bus = EventBus()
    seen = []

    async def record(payload):
        seen.append(payload)

    bus.on(BotEvent.LISTENER, record)
    bus.emit(BotEvent.LISTENER, "listener")

    assert seen == []


def test_log_subscribers_cover_every_event() -> None:
    bus = EventBus()
    install_log_subscribers(bus)

    for event in BotEvent:
        assert len(bus.subscribers(event)) == 1


def test_log_subscribers_write_to_events_logger() -> None:
    bus = EventBus()
    install_log_subscribers(bus)
    events_logger = logging.getLogger("events")
    records = []

    class Collect(logging.Handler):
        def emit(self, record):
            records.append(record)

    handler = Collect(level=logging.DEBUG)
    events_logger.addHandler(handler)
    try:
        bus.emit(BotEvent.ERROR, ValueError("bad"))
        bus.emit(BotEvent.WARN, "careful")
    finally:
        events_logger.removeHandler(handler)

    assert [record.levelno for record in records] == [logging.ERROR, logging.WARNING]
    assert records[0].getMessage() == "[ERROR] bad"
    assert records[0].exc_info is not None
    assert records[1].getMessage() == "[WARN] careful"
