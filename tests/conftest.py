"""Shared test fixtures for Courier."""

import pytest

from courier.bridge.conversation import ConversationBridge
from courier.bridge.guard import InvocationGuard
from courier.bridge.mock import ScriptedBridge
from courier.chat.base import ChatTransport
from courier.context.library import ContextLibrary
from courier.core.config import CourierConfig
from courier.scheduler.store import SchedulerStore
from courier.sessions.store import SessionStore


class FakeTransport(ChatTransport):
    """Records everything sent; serves attachments from a dict."""

    def __init__(self, max_message_length: int = 4096) -> None:
        self.max_message_length = max_message_length
        self.sent: list[tuple[str, str]] = []
        self.reactions: list[tuple[str, str]] = []
        self.files: dict[str, bytes] = {}
        self.fail_sends = False

    @property
    def name(self) -> str:
        return "fake"

    async def send_text(self, space_name: str, text: str) -> None:
        if self.fail_sends:
            raise RuntimeError("send failed")
        self.sent.append((space_name, text))

    async def react(self, message_name: str, emoji: str) -> None:
        self.reactions.append((message_name, emoji))

    async def download(self, resource_name: str) -> bytes:
        if resource_name not in self.files:
            raise RuntimeError(f"no such resource {resource_name}")
        return self.files[resource_name]

    async def listen(self, handler) -> None:
        return None

    def texts(self, space_name: str) -> list[str]:
        return [text for space, text in self.sent if space == space_name]


@pytest.fixture
def config():
    """Create a default config without loading from disk."""
    return CourierConfig()


@pytest.fixture
def sessions(tmp_path):
    store = SessionStore(tmp_path / "sessions.json")
    store.load()
    return store


@pytest.fixture
def schedule_store(tmp_path):
    store = SchedulerStore(tmp_path / "schedules.json")
    store.load()
    return store


@pytest.fixture
def bridge():
    return ScriptedBridge()


@pytest.fixture
def guard():
    return InvocationGuard()


@pytest.fixture
def conversation(bridge, sessions, guard):
    return ConversationBridge(bridge, sessions, guard)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def library(tmp_path):
    return ContextLibrary(tmp_path / "telos")
