"""Shared test fixtures for pytest.

We set environment defaults early so that anything calling `get_settings()`
runs in test mode with AI disabled unless a test wires its own capability.
"""

import asyncio
import os
from collections.abc import AsyncIterator, Sequence

import pytest


os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LLM_PROVIDER", "none")

from formhelper.core.config import get_settings  # noqa: E402
from formhelper.schemas.form_assist import FormError  # noqa: E402
from formhelper.services.form_assist.assistant import FormAssistant  # noqa: E402
from formhelper.services.form_assist.capability import (  # noqa: E402
    Session,
    UnavailableCapability,
)


class FakeSession:
    """Session yielding a fixed list of snapshots.

    ``fail_at`` raises before yielding the chunk at that index (``0`` fails
    before anything is produced; ``len(chunks)`` fails after the last one).
    """

    def __init__(
        self,
        chunks: Sequence[str] = ("done",),
        fail_at: int | None = None,
        exc: Exception | None = None,
    ) -> None:
        self.chunks = list(chunks)
        self.fail_at = fail_at
        self.exc = exc or RuntimeError("model crashed")
        self.prompts: list[str] = []
        self.closed = False

    async def prompt_streaming(self, prompt: str) -> AsyncIterator[str]:
        self.prompts.append(prompt)
        try:
            for index, chunk in enumerate(self.chunks):
                if index == self.fail_at:
                    raise self.exc
                await asyncio.sleep(0)
                yield chunk
            if self.fail_at == len(self.chunks):
                raise self.exc
        finally:
            self.closed = True


class GatedSession:
    """Session whose streams advance only when a test releases them.

    Each field gets its own queue; `push(field, chunk)` delivers a chunk
    and `finish(field)` ends that stream. The key is the first prompt
    line containing ``Field:``.
    """

    def __init__(self) -> None:
        self.queues: dict[str, asyncio.Queue[str | None]] = {}
        self.closed: set[str] = set()

    @staticmethod
    def key_for(prompt: str) -> str:
        for line in prompt.splitlines():
            if line.startswith("Field:"):
                return line
        return prompt

    def _queue(self, key: str) -> asyncio.Queue[str | None]:
        return self.queues.setdefault(key, asyncio.Queue())

    def push(self, field: str, chunk: str) -> None:
        self._queue(f"Field: `{field}`").put_nowait(chunk)

    def finish(self, field: str) -> None:
        self._queue(f"Field: `{field}`").put_nowait(None)

    async def prompt_streaming(self, prompt: str) -> AsyncIterator[str]:
        key = self.key_for(prompt)
        queue = self._queue(key)
        try:
            while True:
                chunk = await queue.get()
                if chunk is None:
                    return
                yield chunk
        finally:
            self.closed.add(key)


class FakeCapability:
    """Capability returning a prepared session (or failing to)."""

    def __init__(
        self,
        session: Session | None = None,
        create_error: Exception | None = None,
    ) -> None:
        self.session = session or FakeSession()
        self.create_error = create_error
        self.create_calls = 0

    @property
    def unavailable_reason(self) -> str | None:
        return None

    def is_available(self) -> bool:
        return True

    async def create_session(self) -> Session:
        self.create_calls += 1
        if self.create_error is not None:
            raise self.create_error
        return self.session


async def drain() -> None:
    """Let pending tasks run until the loop is idle for a few iterations."""
    for _ in range(20):
        await asyncio.sleep(0)


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def email_error() -> FormError:
    return FormError(
        name=("email",),
        errors=("Please input a valid email",),
        value="bad",
        touched=True,
    )


@pytest.fixture
def username_error() -> FormError:
    return FormError(
        name=("username",),
        errors=("Username can only contain a-zA-Z0-9-_.&,/(), max 255 characters",),
        value="Invalid Username!",
        touched=True,
    )


@pytest.fixture
def form_guide() -> str:
    return "### Guide\n\n1. **Email**: enter a valid email address"


@pytest.fixture
def make_assistant(form_guide):
    def _make(capability=None, output_format=None) -> FormAssistant:
        return FormAssistant(
            capability or FakeCapability(),
            form_guide,
            output_format=output_format,
        )

    return _make


@pytest.fixture
def unavailable_capability() -> UnavailableCapability:
    return UnavailableCapability("no model on this host")

