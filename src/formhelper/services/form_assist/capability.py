"""Language model host capabilities.

A capability answers two questions: is a language model available on this
host, and if so, give me a session. The assistant core only talks to these
protocols; which implementation is used is decided once at startup by
`select_capability`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from functools import partial
from typing import Protocol

from pydantic_ai import Agent
from pydantic_ai.models import Model

from formhelper.core.config import Settings
from formhelper.services.form_assist.exceptions import (
    CapabilityUnavailable,
    SessionInitFailed,
)
from formhelper.services.form_assist.model_factory import get_text_model


logger = logging.getLogger(__name__)

EXPLAINER_SYSTEM_PROMPT = (
    "You help people fill out forms. Explain validation errors in plain, "
    "friendly language and answer in markdown using exactly the requested "
    "structure."
)

HANDSHAKE_PROMPT = "Reply with the single word OK."


class Session(Protocol):
    """A live handle to a streaming language model."""

    def prompt_streaming(self, prompt: str) -> AsyncIterator[str]:
        """Stream the response; every chunk is the full message so far."""
        ...


class LanguageModelCapability(Protocol):
    """Protocol for host language model detection and session creation."""

    @property
    def unavailable_reason(self) -> str | None: ...

    def is_available(self) -> bool: ...

    async def create_session(self) -> Session: ...


class AgentSession:
    """Session backed by a pydantic-ai agent."""

    def __init__(self, agent: Agent[None, str], debounce_by: float | None = None):
        self._agent = agent
        self._debounce_by = debounce_by

    async def prompt_streaming(self, prompt: str) -> AsyncIterator[str]:
        async with self._agent.run_stream(prompt) as result:
            # delta=False yields the cumulative text, i.e. snapshots
            async for text in result.stream_text(
                delta=False, debounce_by=self._debounce_by
            ):
                yield text


class AgentCapability:
    """Capability backed by a pydantic-ai model.

    The model is built lazily on the first availability check so that
    constructing the capability never requires credentials.
    """

    def __init__(
        self,
        model_factory: Callable[[], Model],
        *,
        system_prompt: str = EXPLAINER_SYSTEM_PROMPT,
        debounce_by: float | None = None,
        handshake: bool = True,
        handshake_timeout: float | None = None,
    ) -> None:
        self._model_factory = model_factory
        self._system_prompt = system_prompt
        self._debounce_by = debounce_by
        self._handshake = handshake
        self._handshake_timeout = handshake_timeout
        self._model: Model | None = None
        self._unavailable_reason: str | None = None
        self._checked = False

    @classmethod
    def from_settings(cls, settings: Settings) -> AgentCapability:
        return cls(
            partial(get_text_model, settings),
            debounce_by=settings.STREAM_DEBOUNCE_SECONDS,
            handshake_timeout=settings.SESSION_HANDSHAKE_TIMEOUT_SECONDS,
        )

    @property
    def unavailable_reason(self) -> str | None:
        return self._unavailable_reason

    def is_available(self) -> bool:
        if not self._checked:
            self._checked = True
            try:
                self._model = self._model_factory()
            except CapabilityUnavailable as e:
                self._unavailable_reason = e.message
                logger.info(f"Language model capability unavailable: {e.message}")
        return self._model is not None

    async def create_session(self) -> Session:
        if not self.is_available() or self._model is None:
            raise CapabilityUnavailable(
                self._unavailable_reason or "No language model capability is available"
            )
        agent: Agent[None, str] = Agent(
            self._model,
            output_type=str,
            system_prompt=self._system_prompt,
        )
        if self._handshake:
            await self._perform_handshake(agent)
        return AgentSession(agent, debounce_by=self._debounce_by)

    async def _perform_handshake(self, agent: Agent[None, str]) -> None:
        """Open one short stream so an unreachable host fails at startup.

        Raises:
            SessionInitFailed: If the host refuses, errors or times out.
        """
        try:
            async with asyncio.timeout(self._handshake_timeout):
                async with agent.run_stream(HANDSHAKE_PROMPT) as result:
                    # The first chunk proves the host answers
                    async for _ in result.stream_text(delta=True):
                        break
        except Exception as e:
            raise SessionInitFailed(f"Language model handshake failed: {e!r}") from e
        logger.debug("Language model handshake succeeded")


class UnavailableCapability:
    """Capability used when the host has no language model."""

    def __init__(self, reason: str = "No language model capability is available"):
        self._reason = reason

    @property
    def unavailable_reason(self) -> str | None:
        return self._reason

    def is_available(self) -> bool:
        return False

    async def create_session(self) -> Session:
        raise CapabilityUnavailable(self._reason)


def select_capability(settings: Settings) -> LanguageModelCapability:
    """Pick the capability implementation for this host."""
    if settings.LLM_PROVIDER == "none":
        return UnavailableCapability("AI assistance is disabled (LLM_PROVIDER=none)")
    return AgentCapability.from_settings(settings)
