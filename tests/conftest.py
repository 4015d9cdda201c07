"""
Pytest configuration for the chat assistant test suite.

Provides:
- a HelperConfig backed by a ColorLogger (services log with color=...)
- fake embedding / chat clients that never touch the network
- in-memory stores
"""
import logging
import os
import tempfile

import pytest

# the API module configures file logging on import
os.environ.setdefault("ROOT_DIR", tempfile.mkdtemp(prefix="chat_assistant_tests_"))

from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger
from shared.stores.chat.memory.ChatStoreMemory import ChatStoreMemory
from shared.stores.document.memory.DocumentStoreMemory import DocumentStoreMemory

pytest_plugins = ["pytest_asyncio"]


class FakeEmbedClient:
    """Deterministic embedder: a text maps to the vector registered for it, else to a default."""

    def __init__(self, vectors: dict[str, list[float]] | None = None, default: list[float] | None = None):
        self.vectors = vectors or {}
        self.default = default or [0.0, 0.0, 0.0]
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        return list(self.vectors.get(text, self.default))


class FakeLLMClient:
    """Chat client that answers from a queue of canned replies.

    Replies may be strings or exceptions; an exception is raised instead of returned.
    A callable reply receives the messages and returns the reply.
    """

    def __init__(self, replies: list | None = None):
        self.replies = list(replies or [])
        self.calls: list[list[dict]] = []

    async def do_chat(self, messages: list[dict], json_mode: bool = True) -> str:
        self.calls.append(messages)
        if not self.replies:
            raise AssertionError("FakeLLMClient ran out of replies")
        reply = self.replies.pop(0)
        if callable(reply) and not isinstance(reply, BaseException):
            reply = reply(messages)
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("chat_assistant.tests")))


@pytest.fixture
def document_store(helper_config, monkeypatch) -> DocumentStoreMemory:
    monkeypatch.delenv("EMBED_DIMENSIONS", raising=False)
    return DocumentStoreMemory(helper_config=helper_config)


@pytest.fixture
def chat_store(helper_config) -> ChatStoreMemory:
    return ChatStoreMemory(helper_config=helper_config)
