"""Canonical form state for one shift note.

The state is a tree of frozen pydantic models. Every mutation helper returns a
new ``FormState``; nothing is ever changed in place. Multi-select fields are
tuples that keep insertion order and never hold the same value twice.
"""

from collections.abc import Iterable
from typing import Annotated, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError

from app.registry import get_section, sections_after_pain, sections_before_pain


class FormEditError(ValueError):
    """Raised when an edit targets an unknown field or carries the wrong type."""


def _unique(values: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


Selection = Annotated[tuple[str, ...], AfterValidator(_unique)]


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class AdmissionState(_FrozenModel):
    flags: Selection = ()
    orientation: Selection = ()
    autonomy: str = ""
    personal_effects: str = ""
    venous_access: bool = False
    venous_access_gauge: str = ""
    venous_access_site: str = ""
    picc_line: bool = False
    picc_line_site: str = ""
    drains: Selection = ()
    tubes: Selection = ()


class SectionEntry(_FrozenModel):
    value: str = ""
    values: Selection = ()
    medication: str = ""
    interventions: Selection = ()


class RespiratoryEntry(SectionEntry):
    oxygen_flow: str = ""


class PainState(_FrozenModel):
    p: Selection = ()
    q: Selection = ()
    r: Selection = ()
    site: str = ""
    s: str = ""
    t: Selection = ()
    u: Selection = ()
    medication: str = ""
    interventions: Selection = ()


class FormState(_FrozenModel):
    shift: str = ""
    gender: str = ""
    admission: AdmissionState = Field(default_factory=AdmissionState)
    position: SectionEntry = Field(default_factory=SectionEntry)
    wakefulness: SectionEntry = Field(default_factory=SectionEntry)
    vital_signs: SectionEntry = Field(default_factory=SectionEntry)
    neuro_signs: SectionEntry = Field(default_factory=SectionEntry)
    respiratory: RespiratoryEntry = Field(default_factory=RespiratoryEntry)
    digestive: SectionEntry = Field(default_factory=SectionEntry)
    urinary: SectionEntry = Field(default_factory=SectionEntry)
    skin: SectionEntry = Field(default_factory=SectionEntry)
    geriatric: SectionEntry = Field(default_factory=SectionEntry)
    observations: SectionEntry = Field(default_factory=SectionEntry)
    visits: SectionEntry = Field(default_factory=SectionEntry)
    pain: PainState = Field(default_factory=PainState)
    particulars: str = ""


CONTEXT_FIELDS = ("shift", "gender")

_ADMISSION_TEXT_FIELDS = frozenset(
    {"autonomy", "personal_effects", "venous_access_gauge", "venous_access_site", "picc_line_site"}
)
_ADMISSION_BOOL_FIELDS = frozenset({"venous_access", "picc_line"})
_ADMISSION_LIST_FIELDS = frozenset({"flags", "orientation", "drains", "tubes"})

_PAIN_TEXT_FIELDS = frozenset({"s", "site", "medication"})
_PAIN_LIST_FIELDS = frozenset({"p", "q", "r", "t", "u", "interventions"})


def default_form_state() -> FormState:
    return FormState()


def section_entry(state: FormState, section_id: str) -> SectionEntry:
    """Return the sub-record of a registry section (``KeyError`` if unknown)."""
    get_section(section_id)
    return getattr(state, section_id)


# Predicates -----------------------------------------------------------------


def is_pain_filled(pain: PainState) -> bool:
    return (
        any(getattr(pain, name) for name in ("p", "q", "r", "t", "u"))
        or pain.s.strip() != ""
        or pain.site.strip() != ""
        or pain.medication.strip() != ""
        or len(pain.interventions) > 0
    )


def is_section_filled(section_id: str, state: FormState) -> bool:
    if section_id == "pain":
        return is_pain_filled(state.pain)
    if section_id == "particulars":
        return state.particulars.strip() != ""

    definition = get_section(section_id)
    entry = getattr(state, section_id)
    if definition.kind == "multi":
        return len(entry.values) > 0
    return entry.value.strip() != ""


def is_admission_filled(state: FormState) -> bool:
    admission = state.admission
    return (
        len(admission.flags) > 0
        or len(admission.orientation) > 0
        or admission.autonomy != ""
        or admission.personal_effects.strip() != ""
        or admission.venous_access
        or admission.picc_line
        or admission.venous_access_gauge.strip() != ""
        or admission.venous_access_site.strip() != ""
        or admission.picc_line_site.strip() != ""
        or len(admission.drains) > 0
        or len(admission.tubes) > 0
    )


def is_form_empty(state: FormState) -> bool:
    """True when nothing but the shift and gender context has been entered."""
    exclude = set(CONTEXT_FIELDS)
    return state.model_dump(exclude=exclude) == FormState().model_dump(exclude=exclude)


def section_status(state: FormState) -> dict[str, bool]:
    """Filled flag of every collapsible area, in presentation order."""
    status = {"admission": is_admission_filled(state)}
    for section in sections_before_pain():
        status[section.id] = is_section_filled(section.id, state)
    status["pain"] = is_section_filled("pain", state)
    for section in sections_after_pain():
        status[section.id] = is_section_filled(section.id, state)
    status["particulars"] = is_section_filled("particulars", state)
    return status


# Mutations ------------------------------------------------------------------


def toggle_value(values: tuple[str, ...], value: str) -> tuple[str, ...]:
    if value in values:
        return tuple(item for item in values if item != value)
    return values + (value,)


def _require_text(field: str, value) -> str:
    if not isinstance(value, str):
        raise FormEditError(f"Field {field!r} expects text")
    return value


def _require_bool(field: str, value) -> bool:
    if not isinstance(value, bool):
        raise FormEditError(f"Field {field!r} expects a boolean")
    return value


def _require_selection(field: str, value) -> tuple[str, ...]:
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise FormEditError(f"Field {field!r} expects a list of values")
    items = tuple(value)
    if not all(isinstance(item, str) for item in items):
        raise FormEditError(f"Field {field!r} expects a list of values")
    return _unique(items)


def set_context(state: FormState, field: str, value: str) -> FormState:
    if field not in CONTEXT_FIELDS:
        raise FormEditError(f"Unknown context field: {field!r}")
    return state.model_copy(update={field: _require_text(field, value)})


def set_particulars(state: FormState, value: str) -> FormState:
    return state.model_copy(update={"particulars": _require_text("particulars", value)})


def set_admission(state: FormState, field: str, value: Union[str, bool, Iterable[str]]) -> FormState:
    if field in _ADMISSION_TEXT_FIELDS:
        value = _require_text(field, value)
    elif field in _ADMISSION_BOOL_FIELDS:
        value = _require_bool(field, value)
    elif field in _ADMISSION_LIST_FIELDS:
        value = _require_selection(field, value)
    else:
        raise FormEditError(f"Unknown admission field: {field!r}")
    admission = state.admission.model_copy(update={field: value})
    return state.model_copy(update={"admission": admission})


def toggle_admission(state: FormState, field: str, value: str) -> FormState:
    if field not in _ADMISSION_LIST_FIELDS:
        raise FormEditError(f"Admission field {field!r} is not a list")
    current = getattr(state.admission, field)
    admission = state.admission.model_copy(
        update={field: toggle_value(current, _require_text(field, value))}
    )
    return state.model_copy(update={"admission": admission})


def _lookup_section(section_id: str):
    try:
        return get_section(section_id)
    except KeyError as exc:
        raise FormEditError(f"Unknown section: {section_id!r}") from exc


def set_section(state: FormState, section_id: str, field: str, value: str) -> FormState:
    """Set a scalar of a section: ``value``, ``medication`` or ``oxygen_flow``."""
    definition = _lookup_section(section_id)
    if field == "value" and definition.kind == "single":
        pass
    elif field == "medication" and definition.has_medication:
        pass
    elif field == "oxygen_flow" and definition.flow_option is not None:
        pass
    else:
        raise FormEditError(f"Section {section_id!r} has no scalar field {field!r}")

    entry = getattr(state, section_id)
    updated = entry.model_copy(update={field: _require_text(field, value)})
    return state.model_copy(update={section_id: updated})


def toggle_section(state: FormState, section_id: str, field: str, value: str) -> FormState:
    """Toggle a value in a section list: ``values`` or ``interventions``."""
    definition = _lookup_section(section_id)
    if field == "values" and definition.kind == "multi":
        pass
    elif field == "interventions" and definition.interventions is not None:
        pass
    else:
        raise FormEditError(f"Section {section_id!r} has no list field {field!r}")

    entry = getattr(state, section_id)
    updated = entry.model_copy(
        update={field: toggle_value(getattr(entry, field), _require_text(field, value))}
    )
    return state.model_copy(update={section_id: updated})


def set_pain(state: FormState, field: str, value: str) -> FormState:
    if field not in _PAIN_TEXT_FIELDS:
        raise FormEditError(f"Pain field {field!r} is not a scalar")
    pain = state.pain.model_copy(update={field: _require_text(field, value)})
    return state.model_copy(update={"pain": pain})


def toggle_pain(state: FormState, field: str, value: str) -> FormState:
    if field not in _PAIN_LIST_FIELDS:
        raise FormEditError(f"Pain field {field!r} is not a list")
    current = getattr(state.pain, field)
    pain = state.pain.model_copy(update={field: toggle_value(current, _require_text(field, value))})
    return state.model_copy(update={"pain": pain})


def apply_scenario(state: FormState, template: dict) -> FormState:
    """Replace the form with ``template`` on top of a blank form.

    Only the shift and gender of ``state`` survive.
    """
    data = {"shift": state.shift, "gender": state.gender, **template}
    try:
        return FormState.model_validate(data)
    except ValidationError as exc:
        raise FormEditError(f"Invalid scenario template: {exc}") from exc


__all__ = [
    "FormEditError",
    "Selection",
    "AdmissionState",
    "SectionEntry",
    "RespiratoryEntry",
    "PainState",
    "FormState",
    "CONTEXT_FIELDS",
    "default_form_state",
    "section_entry",
    "is_pain_filled",
    "is_section_filled",
    "is_admission_filled",
    "is_form_empty",
    "section_status",
    "toggle_value",
    "set_context",
    "set_particulars",
    "set_admission",
    "toggle_admission",
    "set_section",
    "toggle_section",
    "set_pain",
    "toggle_pain",
    "apply_scenario",
]
