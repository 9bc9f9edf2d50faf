import asyncio

import pytest

from conftest import OWNER_ID, SUPPORT_ID

from dispatchcord import __version__
from dispatchcord.bot.client import DispatchClient
from dispatchcord.command.default_commands import DEFAULT_COMMANDS, load_default_commands
from dispatchcord.datatypes.command_datatypes import Command
from dispatchcord.errors import SchemaError
from dispatchcord.listener.listener import Listener
from dispatchcord.permissions.permissions import Permission


async def noop(client, message, context):
    return None


# --------------------------
# Loading
# --------------------------
def test_load_default_commands(harness) -> None:
    assert load_default_commands(harness.client) == len(DEFAULT_COMMANDS)
    assert {command.name for command in harness.client.commands} == {"ping", "info", "repeat"}
    assert "Loading Command: ping" in harness.debug


def test_load_command_rejects_non_commands(harness) -> None:
    assert harness.client.load_command({"name": "ping"}) is False
    assert isinstance(harness.errors[0], SchemaError)
    assert len(harness.client.commands) == 0


def test_alias_conflict_is_reported_and_skipped(harness) -> None:
    load_default_commands(harness.client)

    loaded = harness.client.load_command(Command(name="status", description="Status", aliases=("stats",), run=noop))

    assert loaded is False
    assert "status" not in harness.client.commands
    assert "Unable to load command status" in str(harness.errors[0])


def test_sync_init_hook_runs_on_load(harness) -> None:
    seen = []
    command = Command(name="hooked", description="Hooked", run=noop, init=seen.append)

    assert harness.client.load_command(command) is True
    assert seen == [harness.client]


def test_failing_init_hook_skips_command(harness) -> None:
    def broken(client):
        raise RuntimeError("no database")

    assert harness.client.load_command(Command(name="hooked", description="Hooked", run=noop, init=broken)) is False
    assert "hooked" not in harness.client.commands
    assert "no database" in str(harness.errors[0])


def test_async_init_hook_needs_running_loop(harness) -> None:
    async def hook(client):
        return None

    assert harness.client.load_command(Command(name="hooked", description="Hooked", run=noop, init=hook)) is False
    assert "running event loop" in str(harness.errors[0])


@pytest.mark.asyncio
async def test_async_init_hook_is_scheduled(harness) -> None:
    seen = []

    async def hook(client):
        seen.append(client)

    assert harness.client.load_command(Command(name="hooked", description="Hooked", run=noop, init=hook)) is True
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert seen == [harness.client]
    assert harness.client._hook_tasks == set()


def test_load_listener(harness) -> None:
    seen = []
    listener = Listener(words="hello", cooldown=0, run=noop, init=seen.append)

    assert harness.client.load_listener(listener) is True
    assert harness.client.listeners == [listener]
    assert seen == [harness.client]
    assert "Loading Listener: Listener [hello / other]" in harness.debug

    assert harness.client.load_listener("hello") is False
    assert isinstance(harness.errors[0], SchemaError)


# --------------------------
# Message handling
# --------------------------
def test_permission_level(harness, make_message) -> None:
    assert harness.client.permission_level(make_message()) == Permission.USER
    assert harness.client.permission_level(make_message(author_id=SUPPORT_ID)) == Permission.BOT_SUPPORT
    assert harness.client.permission_level(make_message(author_id=OWNER_ID)) == Permission.BOT_OWNER


@pytest.mark.asyncio
async def test_handle_message_runs_both_pipelines(harness, make_message) -> None:
    load_default_commands(harness.client)
    heard = []
    harness.client.load_listener(
        Listener(words="ping", cooldown=0, run=lambda client, message, context: heard.append(message))
    )

    message = make_message("!ping")
    await harness.client.handle_message(message)

    assert message.sent_texts == ["Pong!"]
    assert heard == [message]
    assert len(harness.commands) == 1
    assert len(harness.listeners) == 1
    assert harness.errors == []

    harness.client.cooldowns.clear()


@pytest.mark.asyncio
async def test_unexpected_pipeline_failure_is_reported(harness, make_message, monkeypatch) -> None:
    async def crash(message):
        raise RuntimeError("pipeline bug")

    monkeypatch.setattr(harness.client.command_runner, "run", crash)

    await harness.client.handle_message(make_message("!ping"))

    assert len(harness.errors) == 1
    assert str(harness.errors[0]) == "pipeline bug"


@pytest.mark.asyncio
async def test_unchanged_edit_is_ignored(harness, make_message) -> None:
    load_default_commands(harness.client)
    before = make_message("!ping")
    after = make_message("!ping")
    after.permissions = {"manage_messages"}

    await harness.client.handle_message_edit(before, after)

    assert after.sent == []


# --------------------------
# Lifecycle
# --------------------------
@pytest.mark.asyncio
async def test_shutdown_runs_hooks_and_clears_state(harness, make_message) -> None:
    closed = []

    async def close(client):
        closed.append("async")

    def broken(client):
        raise RuntimeError("already closed")

    harness.client.load_command(Command(name="one", description="One", run=noop, shutdown=close))
    harness.client.load_command(Command(name="two", description="Two", run=noop, shutdown=broken))
    harness.client.ignored.ignore_channel("800", duration=60)
    await harness.client.command_runner.run(make_message("!one"))
    assert harness.client.cooldowns.records

    await harness.client.shutdown()

    assert closed == ["async"]
    assert "Shutdown hook of two failed" in str(harness.errors[0])
    assert harness.client.cooldowns.records == {}
    assert harness.client.cooldowns.timers == {}
    assert harness.client.ignored.channels == {}


def test_version_and_uptime(harness) -> None:
    assert harness.client.version == __version__
    assert harness.client.uptime >= 0


def test_clean_redacts_token(config) -> None:
    client = DispatchClient(config=config)
    client.token = "secret-token"

    cleaned = client.clean("token is secret-token @everyone")

    assert "secret-token" not in cleaned
    assert "[REDACTED]" in cleaned
    assert "@everyone" not in cleaned
