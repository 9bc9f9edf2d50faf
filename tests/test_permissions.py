import pytest

from dispatchcord.configuration.app_configuration import AppConfig
from dispatchcord.datatypes.message_datatypes import ChannelKind
from dispatchcord.errors import SchemaError
from dispatchcord.permissions.permissions import (
    Permission,
    PermissionEvaluator,
    PermissionTier,
    build_default_tiers,
)


@pytest.fixture()
def evaluator(config: AppConfig) -> PermissionEvaluator:
    return PermissionEvaluator(build_default_tiers(config))


def test_plain_user_is_level_zero(evaluator, make_message) -> None:
    assert evaluator.evaluate(make_message("hello")) == Permission.USER


def test_guild_permissions_map_to_levels(evaluator, make_message) -> None:
    assert evaluator.evaluate(make_message(permissions={"manage_messages"})) == Permission.MANAGE_MESSAGES
    assert evaluator.evaluate(make_message(permissions={"manage_roles"})) == Permission.MANAGE_ROLES
    both = make_message(permissions={"manage_messages", "manage_guild"})
    assert evaluator.evaluate(both) == Permission.MANAGE_GUILD


def test_guild_permissions_ignored_in_dm(evaluator, make_dm) -> None:
    assert evaluator.evaluate(make_dm(permissions={"manage_guild"})) == Permission.USER


def test_server_owner_only_in_guild_text(evaluator, make_message) -> None:
    owner_message = make_message(author_id="555", guild_owner_id="555")
    assert evaluator.evaluate(owner_message) == Permission.SERVER_OWNER

    in_thread = make_message(author_id="555", guild_owner_id="555", channel_kind=ChannelKind.GUILD_THREAD)
    assert evaluator.evaluate(in_thread) == Permission.USER

    # Guild permissions still apply to the owner inside a thread.
    managing_thread = make_message(
        author_id="555",
        guild_owner_id="555",
        channel_kind=ChannelKind.GUILD_THREAD,
        permissions={"manage_guild"},
    )
    assert evaluator.evaluate(managing_thread) == Permission.MANAGE_GUILD


def test_bot_level_tiers_come_from_config(evaluator, make_message) -> None:
    assert evaluator.evaluate(make_message(author_id="300")) == Permission.BOT_SUPPORT
    assert evaluator.evaluate(make_message(author_id="200")) == Permission.BOT_ADMIN
    assert evaluator.evaluate(make_message(author_id="100")) == Permission.BOT_OWNER


def test_owner_tier_never_matches_without_owner(make_message) -> None:
    evaluator = PermissionEvaluator(build_default_tiers(AppConfig.from_mapping({})))
    assert evaluator.evaluate(make_message(author_id="100")) == Permission.USER


def test_always_true_level_zero_tier_always_yields_a_level(make_message, make_dm) -> None:
    evaluator = PermissionEvaluator(
        [
            PermissionTier(0, "Everyone", lambda message: True),
            PermissionTier(7, "Nobody", lambda message: False),
        ]
    )
    for message in (make_message("x"), make_dm("y"), make_message(is_bot=True)):
        assert evaluator.evaluate(message) == 0


def test_evaluate_falls_back_to_zero_without_catch_all(make_message) -> None:
    evaluator = PermissionEvaluator([PermissionTier(5, "Nobody", lambda message: False)])
    assert evaluator.evaluate(make_message("x")) == 0


def test_highest_matching_tier_wins(make_message) -> None:
    evaluator = PermissionEvaluator(
        [
            PermissionTier(1, "Low", lambda message: True),
            PermissionTier(9, "High", lambda message: True),
            PermissionTier(4, "Mid", lambda message: True),
        ]
    )
    assert evaluator.evaluate(make_message("x")) == 9
    assert [tier.level for tier in evaluator.tiers] == [9, 4, 1]


def test_duplicate_levels_are_rejected() -> None:
    with pytest.raises(SchemaError):
        PermissionEvaluator(
            [
                PermissionTier(1, "A", lambda message: True),
                PermissionTier(1, "B", lambda message: True),
            ]
        )


def test_tier_lookups(evaluator) -> None:
    assert evaluator.tier_for(Permission.BOT_OWNER).name == "Bot Owner"
    assert evaluator.tier_for(7) is None
    assert evaluator.levels_by_name["Manage Guild"] == 4
    assert evaluator.levels_by_name["User"] == 0


def test_predicates_read_config_at_call_time(make_message) -> None:
    config = AppConfig.from_mapping({"admins": []})
    evaluator = PermissionEvaluator(build_default_tiers(config))
    message = make_message(author_id="777")
    assert evaluator.evaluate(message) == Permission.USER

    config.data["admins"] = [777]
    assert evaluator.evaluate(message) == Permission.BOT_ADMIN
