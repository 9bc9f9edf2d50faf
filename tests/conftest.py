"""
Pytest configuration and fixtures for Dispatchcord tests.
"""

import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Set

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from dispatchcord.bot.client import DispatchClient  # noqa: E402
from dispatchcord.configuration.app_configuration import AppConfig  # noqa: E402
from dispatchcord.datatypes.message_datatypes import ChannelKind  # noqa: E402
from dispatchcord.events.event_bus import BotEvent  # noqa: E402

OWNER_ID = "100"
ADMIN_ID = "200"
SUPPORT_ID = "300"
USER_ID = "400"
GUILD_ID = "900"
CHANNEL_ID = "800"


@dataclass
class FakeSentMessage:
    content: Optional[str]
    kwargs: dict = field(default_factory=dict)
    deleted: bool = False
    edits: List[str] = field(default_factory=list)

    async def delete(self) -> None:
        self.deleted = True

    async def edit(self, content: str) -> "FakeSentMessage":
        self.edits.append(content)
        self.content = content
        return self


@dataclass
class FakeMessage:
    """In-memory stand-in for an inbound chat message."""

    content: str = ""
    id: str = "1"
    author_id: str = USER_ID
    author_tag: str = "someone#0001"
    author_name: str = "someone"
    is_bot: bool = False
    guild_id: Optional[str] = GUILD_ID
    guild_name: Optional[str] = "Test Guild"
    guild_owner_id: Optional[str] = None
    channel_id: str = CHANNEL_ID
    channel_name: Optional[str] = "general"
    channel_kind: ChannelKind = ChannelKind.GUILD_TEXT
    is_nsfw: bool = False
    member_present: bool = True
    member_nickname: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    permissions: Set[str] = field(default_factory=set)
    fetched_nickname: Optional[str] = None
    fail_send: bool = False
    sent: List[FakeSentMessage] = field(default_factory=list)
    deleted: bool = False
    fetch_calls: int = 0

    def has_permission(self, name: str) -> bool:
        return name in self.permissions

    async def fetch_member(self) -> None:
        self.fetch_calls += 1
        self.member_present = True
        self.member_nickname = self.fetched_nickname

    async def send(self, content: Optional[str] = None, **kwargs: Any) -> FakeSentMessage:
        if self.fail_send:
            raise RuntimeError("Missing Access")
        sent = FakeSentMessage(content, kwargs)
        self.sent.append(sent)
        return sent

    async def delete(self) -> None:
        self.deleted = True

    async def edit(self, content: str) -> "FakeMessage":
        self.content = content
        return self

    @property
    def sent_texts(self) -> List[Optional[str]]:
        return [item.content for item in self.sent]


@pytest.fixture()
def make_message():
    """Factory for guild text messages."""

    def _make(content: str = "", **overrides: Any) -> FakeMessage:
        return FakeMessage(content=content, **overrides)

    return _make


@pytest.fixture()
def make_dm():
    """Factory for direct messages."""

    def _make(content: str = "", **overrides: Any) -> FakeMessage:
        values = dict(
            content=content,
            guild_id=None,
            guild_name=None,
            channel_kind=ChannelKind.DM,
            channel_name=None,
            member_present=False,
        )
        values.update(overrides)
        return FakeMessage(**values)

    return _make


@pytest.fixture()
def config() -> AppConfig:
    return AppConfig.from_mapping(
        {
            "name": "TestBot",
            "prefix": "!",
            "owner_id": OWNER_ID,
            "admins": [ADMIN_ID],
            "support": [SUPPORT_ID],
            "feedback_delete_seconds": 0,
        }
    )


@dataclass
class ClientHarness:
    client: DispatchClient
    errors: List[Any]
    warnings: List[Any]
    commands: List[Any]
    listeners: List[Any]
    debug: List[Any]


@pytest.fixture()
def harness(config: AppConfig) -> ClientHarness:
    """A client with every bus event captured in lists."""
    client = DispatchClient(config=config)
    captured = ClientHarness(client=client, errors=[], warnings=[], commands=[], listeners=[], debug=[])
    client.bus.on(BotEvent.ERROR, captured.errors.append)
    client.bus.on(BotEvent.WARN, captured.warnings.append)
    client.bus.on(BotEvent.COMMAND, captured.commands.append)
    client.bus.on(BotEvent.LISTENER, lambda listener, context: captured.listeners.append((listener, context)))
    client.bus.on(BotEvent.DEBUG, captured.debug.append)
    return captured
