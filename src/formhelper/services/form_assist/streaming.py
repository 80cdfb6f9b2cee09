"""Streaming response controller.

Drives one explanation at a time: sends the prompt to the session, renders
every snapshot through the sanitization pipeline and publishes the result.

Each attempt gets a monotonically increasing generation id. Starting a new
attempt cancels the previous one, and any write tagged with an id that is no
longer current is discarded, so a slow stale stream can never overwrite a
newer explanation.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing

from formhelper.core.structured_logging import StructuredLogger, set_correlation_id
from formhelper.schemas.form_assist import FormError, GenerationPhase, GenerationState
from formhelper.services.form_assist.capability import Session
from formhelper.services.form_assist.exceptions import (
    FormAssistError,
    SessionUnavailable,
    StreamFailure,
)
from formhelper.services.form_assist.markdown_renderer import (
    MarkdownRenderer,
    get_renderer,
)
from formhelper.services.form_assist.session_manager import (
    SessionManager,
    SessionOutcome,
)
from formhelper.services.form_assist.state_store import GenerationStateStore


logger = logging.getLogger(__name__)
structured_logger = StructuredLogger(__name__)

FALLBACK_MESSAGE = (
    "No AI response available at the moment. "
    "Please try again or wait for the response to generate."
)


class GenerationHandle:
    """Handle to one generation attempt."""

    def __init__(
        self,
        controller: StreamingResponseController,
        generation_id: int,
        task: asyncio.Task[FormAssistError | None] | None = None,
        condition: FormAssistError | None = None,
    ) -> None:
        self._controller = controller
        self.generation_id = generation_id
        self.task = task
        self._condition = condition

    @property
    def started(self) -> bool:
        """False when the attempt was refused before streaming began."""
        return self.task is not None

    @property
    def is_current(self) -> bool:
        return self.started and (
            self.generation_id == self._controller.current_generation_id
        )

    @property
    def done(self) -> bool:
        return self.task is None or self.task.done()

    @property
    def cancelled(self) -> bool:
        return self.task is not None and self.task.cancelled()

    @property
    def condition(self) -> FormAssistError | None:
        """The failure of this attempt, if it has finished with one."""
        if self.task is not None and self.task.done() and not self.task.cancelled():
            return self.task.result()
        return self._condition

    def cancel(self) -> None:
        if self.task is not None and not self.task.done():
            self.task.cancel()

    async def wait(self) -> FormAssistError | None:
        """Wait for the attempt to finish and return its failure, if any."""
        if self.task is not None:
            await asyncio.wait({self.task})
        return self.condition


class StreamingResponseController:
    """Sole writer of the published `GenerationState`."""

    def __init__(
        self,
        store: GenerationStateStore,
        session_manager: SessionManager,
        renderer: MarkdownRenderer | None = None,
    ) -> None:
        self._store = store
        self._session_manager = session_manager
        self._renderer = renderer or get_renderer()
        self._generation_id = 0
        self._current: GenerationHandle | None = None

    @property
    def current_generation_id(self) -> int:
        return self._generation_id

    @property
    def state(self) -> GenerationState:
        return self._store.state

    async def initialize_session(self) -> SessionOutcome:
        """Create the session, publishing the initialization phases."""
        self._store.publish(GenerationState(phase=GenerationPhase.INITIALIZING))
        outcome = await self._session_manager.initialize()
        phase = GenerationPhase.READY if outcome.ok else GenerationPhase.IDLE
        self._store.publish(GenerationState(phase=phase))
        return outcome

    async def stream(self, session: Session | None, prompt: str) -> AsyncIterator[str]:
        """Yield the sanitized HTML of each snapshot the session produces.

        Raises:
            SessionUnavailable: If there is no session.
            StreamFailure: If the session's stream raises.
        """
        if session is None:
            raise SessionUnavailable()
        try:
            async with aclosing(session.prompt_streaming(prompt)) as chunks:
                async for chunk in chunks:
                    yield self._renderer.render(chunk)
        except Exception as e:
            raise StreamFailure(f"Response stream failed: {e}") from e

    def start(self, prompt: str, error: FormError | None = None) -> GenerationHandle:
        """Start a generation, superseding any attempt still in flight.

        Must be called from a running event loop. When no session exists the
        returned handle is already finished, carries the reason, and no state
        is published.
        """
        try:
            session = self._session_manager.require_session()
        except FormAssistError as e:
            structured_logger.warning(
                "Explanation skipped; no language model session",
                error_code=e.error_code,
            )
            return GenerationHandle(self, self._generation_id, condition=e)

        self._cancel_current()
        self._generation_id += 1
        generation_id = self._generation_id

        self._store.publish(
            GenerationState(
                phase=GenerationPhase.GENERATING,
                accumulated_html="",
                current_error=error,
                generation_id=generation_id,
            )
        )
        task = asyncio.create_task(
            self._run(generation_id, session, prompt, error),
            name=f"form-assist-generation-{generation_id}",
        )
        handle = GenerationHandle(self, generation_id, task=task)
        self._current = handle
        return handle

    def reset(self) -> None:
        """Cancel any running attempt and publish an empty idle state."""
        self._cancel_current()
        self._generation_id += 1
        self._store.publish(GenerationState(generation_id=self._generation_id))

    def _cancel_current(self) -> None:
        if self._current is not None and not self._current.done:
            logger.info(
                f"Cancelling generation {self._current.generation_id}; superseded"
            )
            self._current.cancel()
        self._current = None

    async def _run(
        self,
        generation_id: int,
        session: Session,
        prompt: str,
        error: FormError | None,
    ) -> FormAssistError | None:
        set_correlation_id(f"generation-{generation_id}")
        field = error.field_path if error is not None else None
        structured_logger.info("Generating explanation", field=field)

        html = ""
        try:
            async with aclosing(self.stream(session, prompt)) as snapshots:
                async for html in snapshots:
                    accepted = self._write(
                        generation_id,
                        GenerationState(
                            phase=GenerationPhase.GENERATING,
                            accumulated_html=html,
                            current_error=error,
                            generation_id=generation_id,
                        ),
                    )
                    if not accepted:
                        return None
        except StreamFailure as e:
            structured_logger.exception(
                "Failed to generate AI response",
                field=field,
                value=error.value if error is not None else None,
            )
            self._write(
                generation_id,
                GenerationState(
                    phase=GenerationPhase.FAILED,
                    accumulated_html=FALLBACK_MESSAGE,
                    current_error=error,
                    generation_id=generation_id,
                ),
            )
            return e

        self._write(
            generation_id,
            GenerationState(
                phase=GenerationPhase.SUCCEEDED,
                accumulated_html=html,
                current_error=error,
                generation_id=generation_id,
            ),
        )
        structured_logger.info("Explanation complete", field=field)
        return None

    def _write(self, generation_id: int, state: GenerationState) -> bool:
        if generation_id != self._generation_id:
            logger.debug(
                f"Discarding write from stale generation {generation_id} "
                f"(current {self._generation_id})"
            )
            return False
        self._store.publish(state)
        return True
