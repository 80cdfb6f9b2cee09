"""Lifecycle of the language model session."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from formhelper.services.form_assist.capability import LanguageModelCapability, Session
from formhelper.services.form_assist.exceptions import (
    CapabilityUnavailable,
    FormAssistError,
    SessionInitFailed,
    SessionUnavailable,
)


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SessionOutcome:
    """Result of session initialization."""

    session: Session | None
    error: FormAssistError | None = None

    @property
    def ok(self) -> bool:
        return self.session is not None


class SessionManager:
    """Owns the one session created for the lifetime of the assistant.

    Initialization is attempted once. If the capability is missing or creation
    fails, the manager stays without a session until the process restarts;
    nothing is retried.
    """

    def __init__(self, capability: LanguageModelCapability) -> None:
        self._capability = capability
        self._outcome: SessionOutcome | None = None
        self._lock = asyncio.Lock()

    @property
    def session(self) -> Session | None:
        return self._outcome.session if self._outcome else None

    @property
    def error(self) -> FormAssistError | None:
        return self._outcome.error if self._outcome else None

    @property
    def initialized(self) -> bool:
        return self._outcome is not None

    async def initialize(self) -> SessionOutcome:
        """Create the session; later calls return the first outcome."""
        async with self._lock:
            if self._outcome is None:
                self._outcome = await self._create()
            return self._outcome

    async def _create(self) -> SessionOutcome:
        try:
            if not self._capability.is_available():
                error = CapabilityUnavailable(
                    self._capability.unavailable_reason
                    or "No language model capability is available"
                )
                logger.warning(
                    f"Language model not supported on this host: {error.message}"
                )
                return SessionOutcome(session=None, error=error)

            session = await self._capability.create_session()
        except Exception as e:
            logger.error(f"Failed to initialize session: {e}", exc_info=True)
            if isinstance(e, SessionInitFailed):
                return SessionOutcome(session=None, error=e)
            return SessionOutcome(
                session=None, error=SessionInitFailed(f"Session creation failed: {e}")
            )

        logger.info("Language model session ready")
        return SessionOutcome(session=session)

    def require_session(self) -> Session:
        """Return the session or raise the condition that prevents one."""
        if self._outcome is None:
            raise SessionUnavailable()
        if self._outcome.session is None:
            raise self._outcome.error or SessionUnavailable()
        return self._outcome.session
