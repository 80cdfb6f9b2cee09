"""Observable holder for the published generation state."""

from __future__ import annotations

import logging
from collections.abc import Callable

from formhelper.schemas.form_assist import GenerationState


logger = logging.getLogger(__name__)

StateListener = Callable[[GenerationState], None]


class GenerationStateStore:
    """Single source of truth for `GenerationState`.

    States are immutable; every publish replaces the whole value and notifies
    listeners synchronously, in subscription order.
    """

    def __init__(self, initial: GenerationState | None = None) -> None:
        self._state = initial or GenerationState()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> GenerationState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, state: GenerationState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("State listener failed")
