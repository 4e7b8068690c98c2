"""Process-wide note workspace.

One ``NoteSession`` lives for the lifetime of the service. It is built by
:meth:`NoteSession.open`, which hydrates the saved-note index and the layout
settings from the key-value store; nothing is torn down on shutdown, saved
notes persist until they are deleted explicitly.
"""

import logging
from typing import Callable, Optional

from app.form_state import FormState, apply_scenario, default_form_state
from app.narrative import (
    EmptyFormError,
    NarrativeGenerationError,
    NarrativeGenerator,
    generate_narrative,
)
from app.persistence import (
    KeyValueStore,
    LayoutSettings,
    PersistenceManager,
    SavedBundle,
    StoreError,
)
from app.registry import get_scenario

logger = logging.getLogger(__name__)


class NoteSession:
    def __init__(self, manager: PersistenceManager) -> None:
        self.manager = manager
        self.state: FormState = default_form_state()
        self.narrative = ""
        self.error: Optional[str] = None
        self.layout = LayoutSettings()

    @classmethod
    def open(cls, store: KeyValueStore) -> "NoteSession":
        session = cls(PersistenceManager(store))
        session.hydrate()
        return session

    def hydrate(self) -> None:
        try:
            self.manager.hydrate()
            self.layout = self.manager.load_layout()
        except StoreError as exc:
            logger.error("Unable to read saved notes at startup: %s", exc)

    def edit(self, mutation: Callable[[FormState], FormState]) -> FormState:
        self.state = mutation(self.state)
        return self.state

    def replace_state(self, state: FormState) -> FormState:
        self.state = state
        return self.state

    def reset(self) -> FormState:
        self.state = default_form_state()
        self.narrative = ""
        self.error = None
        return self.state

    def apply_scenario(self, name: str) -> FormState:
        scenario = get_scenario(name)
        self.state = apply_scenario(self.state, scenario.template)
        return self.state

    async def generate(self, generator: NarrativeGenerator) -> str:
        # The previous note is cleared whatever the outcome.
        self.narrative = ""
        self.error = None
        try:
            note = await generate_narrative(self.state, generator)
        except (EmptyFormError, NarrativeGenerationError) as exc:
            self.error = str(exc)
            raise
        self.narrative = note
        return note

    def save(self, name: str) -> str:
        bundle = SavedBundle(
            form_state=self.state,
            narrative=self.narrative,
            layout_settings=self.layout,
        )
        return self.manager.save(name, bundle)

    def load(self, name: str) -> bool:
        bundle = self.manager.load(name)
        if bundle is None:
            return False
        # Nothing is applied unless the layout write succeeds.
        self.update_layout(bundle.layout_settings)
        self.state = bundle.form_state
        self.narrative = bundle.narrative
        self.error = None
        logger.info("Loaded note %r", name.strip())
        return True

    def delete(self, name: str) -> None:
        self.manager.delete(name)

    def saved_names(self) -> list[str]:
        return sorted(self.manager.list_names())

    def update_layout(self, layout: LayoutSettings) -> LayoutSettings:
        self.manager.save_layout(layout)
        self.layout = layout
        return self.layout


__all__ = ["NoteSession"]
