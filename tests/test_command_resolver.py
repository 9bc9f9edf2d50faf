import pytest

from dispatchcord.bot.client import DispatchClient
from dispatchcord.command.command_resolver import (
    CommandRegistry,
    build_command_context,
    resolve_prefix,
    split_command_and_arguments,
    validate_prefix,
)
from dispatchcord.command.default_commands import load_default_commands
from dispatchcord.configuration.app_configuration import AppConfig
from dispatchcord.datatypes.command_datatypes import ArgumentKind, ArgumentSpec, Command
from dispatchcord.errors import ExtensionError, SchemaError


def _noop(client, message, context):
    return None


# --------------------------
# Prefixes
# --------------------------
def test_validate_prefix_default() -> None:
    assert validate_prefix("!ping", "!") == "!"
    assert validate_prefix("ping", "!") is False
    assert validate_prefix("   !ping  ", "!") == "!"


def test_validate_prefix_is_case_insensitive() -> None:
    assert validate_prefix("Bot, PING", "bot,") == "bot,"
    assert validate_prefix("BOT, ping", "Bot,") == "Bot,"


def test_guild_override_replaces_default() -> None:
    assert validate_prefix("?ping", "!", "?") == "?"
    assert validate_prefix("!ping", "!", "?") is False


def test_guild_override_equal_to_default_is_ignored() -> None:
    assert validate_prefix("!ping", "!", "!") == "!"


@pytest.mark.asyncio
async def test_resolve_prefix_uses_config_without_checkers(make_message) -> None:
    config = AppConfig.from_mapping({"prefix": "!", "guild_prefixes": {900: "$"}})
    client = DispatchClient(config=config)

    assert await resolve_prefix(client, make_message("$ping")) == "$"
    assert await resolve_prefix(client, make_message("!ping")) is False
    assert await resolve_prefix(client, make_message("!ping", guild_id="1")) == "!"


@pytest.mark.asyncio
async def test_prefix_checkers_run_in_order(harness, make_message) -> None:
    client = harness.client
    order = []

    def declines(client, message):
        order.append("declines")
        return None

    async def accepts(client, message):
        order.append("accepts")
        return ">>"

    def never_called(client, message):
        order.append("never")
        return True

    for checker in (declines, accepts, never_called):
        client.extend_prefix_checking(checker)

    assert await resolve_prefix(client, make_message(">>ping")) == ">>"
    assert order == ["declines", "accepts"]


@pytest.mark.asyncio
async def test_prefix_checker_true_means_default(harness, make_message) -> None:
    harness.client.extend_prefix_checking(lambda client, message: True)
    assert await resolve_prefix(harness.client, make_message("anything")) == "!"


@pytest.mark.asyncio
async def test_prefix_checker_error_resolves_false(harness, make_message) -> None:
    def broken(client, message):
        raise KeyError("guild table")

    harness.client.extend_prefix_checking(broken)
    harness.client.extend_prefix_checking(lambda client, message: "!")

    assert await resolve_prefix(harness.client, make_message("!ping")) is False
    assert len(harness.errors) == 1
    assert isinstance(harness.errors[0], ExtensionError)
    assert str(harness.errors[0]).startswith("A prefix check function threw an error.")


# --------------------------
# Tokenizing
# --------------------------
def test_split_command_and_arguments() -> None:
    assert split_command_and_arguments("!hello there friend", "!") == ("hello", ["there", "friend"])
    assert split_command_and_arguments("!HELLO", "!") == ("hello", [])
    assert split_command_and_arguments("!say  a\nmulti   line\n\nmessage", "!") == (
        "say",
        ["a", "multi", "line", "message"],
    )
    assert split_command_and_arguments("!", "!") == ("", [])


# --------------------------
# Registry
# --------------------------
def test_registry_resolves_names_and_aliases() -> None:
    registry = CommandRegistry()
    info = Command(name="info", description="Info", aliases=("stats", "version"), run=_noop)
    registry.register(info)

    assert registry.resolve("info") == (info, False)
    assert registry.resolve("STATS") == (info, True)
    assert registry.resolve("version") == (info, True)
    assert registry.resolve("missing") == (None, False)
    assert registry.resolve("") == (None, False)
    assert "info" in registry
    assert len(registry) == 1


def test_registry_rejects_alias_conflicts() -> None:
    registry = CommandRegistry()
    registry.register(Command(name="info", description="Info", aliases=("stats",), run=_noop))

    with pytest.raises(SchemaError):
        registry.register(Command(name="status", description="Status", aliases=("stats",), run=_noop))
    with pytest.raises(SchemaError):
        registry.register(Command(name="other", description="Other", aliases=("info",), run=_noop))
    with pytest.raises(SchemaError):
        registry.register(Command(name="stats", description="Stats", run=_noop))


def test_registry_reregister_replaces_aliases() -> None:
    registry = CommandRegistry()
    registry.register(Command(name="info", description="Info", aliases=("stats",), run=_noop))
    replacement = Command(name="info", description="Info v2", aliases=("about",), run=_noop)

    registry.register(replacement)

    assert registry.get("info") is replacement
    assert registry.resolve("stats") == (None, False)
    assert registry.resolve("about") == (replacement, True)

    registry.unregister("info")
    assert registry.aliases == {}
    assert len(registry) == 0


# --------------------------
# Context
# --------------------------
def test_info_and_stats_resolve_to_same_command(harness, make_message) -> None:
    client = harness.client
    load_default_commands(client)

    direct = build_command_context(client, make_message("!info"), "!")
    alias = build_command_context(client, make_message("!stats"), "!")

    assert direct.command is alias.command
    assert direct.command_name == alias.command_name == "info"
    assert direct.called_by_alias is False
    assert alias.called_by_alias is True


def test_context_fields(harness, make_message) -> None:
    client = harness.client
    client.load_command(
        Command(
            name="ban",
            description="Bans",
            args=(ArgumentSpec("user", ArgumentKind.USER), ArgumentSpec("days", ArgumentKind.NUMBER, optional=True)),
            run=_noop,
        )
    )
    message = make_message("!ban <@123> because   they were rude", member_nickname="Nick")

    context = build_command_context(client, message, "!")

    assert context.user_id == message.author_id
    assert context.tag == "someone#0001"
    assert context.nickname == "Nick"
    assert context.is_dm is False
    assert context.guild_id == message.guild_id
    assert context.prefix == "!"
    assert context.perm_level == 0
    assert context.content_full == "<@123> because they were rude"
    # Only the required argument is skipped.
    assert context.content == "because they were rude"
    # "because" is not a number, so the optional argument fails validation.
    assert context.validation_errors is not None
    assert context.validation_errors[0].field == "days"
    assert context.send is not None


def test_context_with_valid_args(harness, make_message) -> None:
    client = harness.client
    client.load_command(
        Command(name="ban", description="Bans", args=(ArgumentSpec("user", ArgumentKind.USER),), run=_noop)
    )

    context = build_command_context(client, make_message("!ban <@!42> spam"), "!")

    assert context.args == {"user": "42"}
    assert context.validation_errors is None
    assert context.content == "spam"


def test_unresolved_context(harness, make_dm) -> None:
    context = build_command_context(harness.client, make_dm("!nothing here"), "!")

    assert context.command is None
    assert context.command_name is None
    assert context.is_dm is True
    assert context.args == {}
    assert context.validation_errors is None
    assert context.content == "here"


@pytest.mark.asyncio
async def test_context_send_reports_failures(harness, make_message) -> None:
    message = make_message("!x", fail_send=True)
    context = build_command_context(harness.client, message, "!")

    assert await context.send("hello") is None
    assert len(harness.warnings) == 1
    assert "Could not send message." in harness.warnings[0]
    assert "Missing Access" in harness.warnings[0]


@pytest.mark.asyncio
async def test_context_send_joins_lines(harness, make_message) -> None:
    message = make_message("!x")
    context = build_command_context(harness.client, message, "!")

    await context.send("first", "second", tts=False)

    assert message.sent_texts == ["first\nsecond"]
    assert message.sent[0].kwargs == {"tts": False}
