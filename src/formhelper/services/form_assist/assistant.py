"""Form assistant composition root.

Wires the capability, session, state store, streaming controller and trigger
coordinator together. UI code holds one `FormAssistant`, subscribes to its
state and feeds it form error changes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from formhelper.core.config import Settings, get_settings
from formhelper.schemas.form_assist import FormError, GenerationState
from formhelper.services.form_assist.capability import (
    LanguageModelCapability,
    select_capability,
)
from formhelper.services.form_assist.coordinator import TriggerCoordinator
from formhelper.services.form_assist.form_guide import load_form_guide
from formhelper.services.form_assist.markdown_renderer import render_markdown
from formhelper.services.form_assist.session_manager import (
    SessionManager,
    SessionOutcome,
)
from formhelper.services.form_assist.state_store import (
    GenerationStateStore,
    StateListener,
)
from formhelper.services.form_assist.streaming import (
    GenerationHandle,
    StreamingResponseController,
)


class FormAssistant:
    """Facade over the explanation pipeline."""

    def __init__(
        self,
        capability: LanguageModelCapability,
        form_guide: str,
        output_format: str | None = None,
    ) -> None:
        self.form_guide = form_guide
        self.store = GenerationStateStore()
        self.session_manager = SessionManager(capability)
        self.controller = StreamingResponseController(self.store, self.session_manager)
        self.coordinator = TriggerCoordinator(
            self.controller, form_guide, output_format=output_format
        )

    @classmethod
    async def create(
        cls,
        settings: Settings | None = None,
        capability: LanguageModelCapability | None = None,
    ) -> FormAssistant:
        """Build an assistant from settings and initialize its session once."""
        settings = settings or get_settings()
        assistant = cls(
            capability or select_capability(settings),
            load_form_guide(settings),
            output_format=settings.OUTPUT_FORMAT,
        )
        await assistant.start()
        return assistant

    async def start(self) -> SessionOutcome:
        return await self.controller.initialize_session()

    @property
    def state(self) -> GenerationState:
        return self.store.state

    @property
    def help_message(self) -> str:
        return self.store.state.help_message

    @property
    def is_generating(self) -> bool:
        return self.store.state.is_generating

    @property
    def form_guide_html(self) -> str:
        """The form guide rendered through the response sanitization pipeline."""
        return render_markdown(self.form_guide)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self.store.subscribe(listener)

    def report_error(self, error: FormError | None) -> GenerationHandle | None:
        return self.coordinator.on_error_change(error)

    def report_fields(self, fields: Iterable[FormError]) -> GenerationHandle | None:
        return self.coordinator.on_fields_change(fields)

    def clear(self) -> None:
        self.coordinator.clear()
