"""Render a form state into the clinical-data report handed to the LLM.

The report is plain text, one line per populated area, in a fixed order:
context, admission, registry sections, pain (PQRSTU), particulars. Values are
copied verbatim; nothing is escaped.
"""

from typing import Optional

from app.form_state import AdmissionState, FormState, PainState, is_admission_filled
from app.registry import PAIN_FIELDS, SectionDefinition, iter_sections

ORIENTATION_NOT_EVALUATED = "Orientation: Non évaluée ou non orienté(e)."
SPECIAL_SHEET_SUFFIX = "voir feuille spéciale"
PAIN_HEADER = "- Douleur (PQRSTU) :"
PARTICULARS_TITLE = "Particularités / Événements notables"


def _context_lines(state: FormState) -> list[str]:
    lines = []
    if state.shift:
        lines.append(f"Contexte: note rédigée durant le quart de {state.shift}.")
    if state.gender:
        lines.append(f"Genre du patient: {state.gender}.")
    return lines


def _venous_access_phrase(admission: AdmissionState) -> Optional[str]:
    if not admission.venous_access:
        return None
    text = "Accès veineux (CVP) fonctionnel"
    if admission.venous_access_gauge:
        text += f", calibre {admission.venous_access_gauge}"
    if admission.venous_access_site:
        text += f" au {admission.venous_access_site}"
    return text + "."


def _picc_line_phrase(admission: AdmissionState) -> Optional[str]:
    if not admission.picc_line:
        return None
    text = "PICC Line en place et fonctionnel"
    if admission.picc_line_site:
        text += f" au {admission.picc_line_site}"
    return text + "."


def _admission_line(state: FormState) -> Optional[str]:
    if not is_admission_filled(state):
        return None

    admission = state.admission
    details: list[str] = list(admission.flags)
    if admission.orientation:
        details.append(f"Orientation: {', '.join(admission.orientation)}.")
    else:
        details.append(ORIENTATION_NOT_EVALUATED)
    if admission.autonomy:
        details.append(f"Autonomie fonctionnelle: {admission.autonomy}.")
    if admission.personal_effects.strip():
        details.append(f"Effets personnels: {admission.personal_effects.strip()}.")
    for phrase in (_venous_access_phrase(admission), _picc_line_phrase(admission)):
        if phrase:
            details.append(phrase)
    if admission.drains:
        details.append(f"Drains en place: {', '.join(admission.drains)}.")
    if admission.tubes:
        details.append(f"Sondes en place: {', '.join(admission.tubes)}.")

    return f"- Admission : {' '.join(details)}"


def _selection_text(section: SectionDefinition, state: FormState) -> Optional[str]:
    entry = getattr(state, section.id)

    if section.kind == "multi":
        if not entry.values:
            return None
        values = entry.values
        flow = getattr(entry, "oxygen_flow", "")
        if section.flow_option and flow and section.flow_option in values:
            values = tuple(
                f"{item} ({flow} L/min)" if item == section.flow_option else item
                for item in values
            )
        return ", ".join(values)

    if not entry.value.strip():
        return None
    if section.special_sheet:
        return f"{entry.value}, {SPECIAL_SHEET_SUFFIX}"
    return entry.value


def _section_line(section: SectionDefinition, state: FormState) -> Optional[str]:
    entry = getattr(state, section.id)
    content = []

    selection = _selection_text(section, state)
    if selection:
        content.append(selection)
    if section.has_medication and entry.medication.strip():
        content.append(f"médicament administré: {entry.medication}")
    if section.interventions is not None and entry.interventions:
        content.append(f"interventions: {', '.join(entry.interventions)}")

    if not content:
        return None
    return f"- {section.title} : {'; '.join(content)}."


def _region_text(pain: PainState) -> Optional[str]:
    site = pain.site.strip()
    if not pain.r and not site:
        return None
    text = ", ".join(pain.r)
    if site:
        text += f"{'; ' if text else ''}Site: {site}"
    return text


def _pain_block(pain: PainState) -> Optional[str]:
    sub_lines = []
    for field in PAIN_FIELDS:
        if field.id == "r":
            text = _region_text(pain)
        else:
            value = getattr(pain, field.id)
            text = ", ".join(value) if isinstance(value, tuple) else value.strip()
        if text:
            sub_lines.append(f"  - {field.label} : {text}")

    if pain.medication.strip():
        sub_lines.append(f"  - Intervention pharmacologique (Médicament) : {pain.medication}")
    if pain.interventions:
        sub_lines.append(f"  - Interventions non pharmacologiques : {', '.join(pain.interventions)}")

    if not sub_lines:
        return None
    return "\n".join([PAIN_HEADER, *sub_lines])


def compile_clinical_data(state: FormState) -> str:
    """Return the clinical-data report for ``state`` (``""`` for a blank form)."""
    parts = _context_lines(state)

    admission = _admission_line(state)
    if admission:
        parts.append(admission)

    for section in iter_sections():
        line = _section_line(section, state)
        if line:
            parts.append(line)

    pain = _pain_block(state.pain)
    if pain:
        parts.append(pain)

    if state.particulars.strip():
        parts.append(f"- {PARTICULARS_TITLE} : {state.particulars.strip()}")

    return "\n".join(parts)


__all__ = [
    "ORIENTATION_NOT_EVALUATED",
    "SPECIAL_SHEET_SUFFIX",
    "PAIN_HEADER",
    "PARTICULARS_TITLE",
    "compile_clinical_data",
]
