"""Turn a form state into a narrative note through an external generator."""

import logging
from typing import Protocol

from app.compiler import compile_clinical_data
from app.form_state import FormState, is_form_empty

logger = logging.getLogger(__name__)

EMPTY_FORM_MESSAGE = "Le formulaire est vide."
GENERATION_FAILED_MESSAGE = (
    "Une erreur est survenue. L'IA a peut-être renvoyé une réponse inattendue. "
    "Veuillez réessayer."
)


class NarrativeGenerator(Protocol):
    async def generate_note(self, clinical_data: str) -> str: ...


class EmptyFormError(ValueError):
    def __init__(self, message: str = EMPTY_FORM_MESSAGE) -> None:
        super().__init__(message)


class NarrativeGenerationError(RuntimeError):
    def __init__(self, message: str = GENERATION_FAILED_MESSAGE) -> None:
        super().__init__(message)


async def generate_narrative(state: FormState, generator: NarrativeGenerator) -> str:
    """Compile ``state`` and hand the report to ``generator``.

    Raises ``EmptyFormError`` without calling the generator when there is
    nothing to report, and ``NarrativeGenerationError`` for any failure of the
    generator itself.
    """
    if is_form_empty(state):
        raise EmptyFormError()
    clinical_data = compile_clinical_data(state)
    if not clinical_data.strip():
        raise EmptyFormError()

    try:
        note = await generator.generate_note(clinical_data)
    except Exception as exc:
        logger.error("Narrative generation failed: %s", exc)
        raise NarrativeGenerationError() from exc

    if not isinstance(note, str) or not note.strip():
        logger.error("Narrative generator returned no text")
        raise NarrativeGenerationError()
    return note.strip()
