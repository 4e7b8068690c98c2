import pytest

from app.compiler import compile_clinical_data
from app.form_state import (
    AdmissionState,
    FormState,
    PainState,
    RespiratoryEntry,
    SectionEntry,
    set_context,
    set_particulars,
)
from app.registry import OXYGEN_USE, SECTIONS


def _with_section(section) -> FormState:
    first = section.options[0].value
    if section.kind == "multi":
        entry = SectionEntry(values=(first,))
    else:
        entry = SectionEntry(value=first)
    if section.id == "respiratory":
        entry = RespiratoryEntry(**entry.model_dump())
    return FormState().model_copy(update={section.id: entry})


def test_default_state_compiles_to_empty_string():
    assert compile_clinical_data(FormState()) == ""


def test_compile_is_deterministic():
    state = FormState(
        shift="Soir",
        respiratory=RespiratoryEntry(values=("Toux sèche", OXYGEN_USE), oxygen_flow="3"),
        pain=PainState(q=("Brûlure",), s="6/10"),
        particulars="Famille avisée",
    )
    assert compile_clinical_data(state) == compile_clinical_data(state)


def test_context_lines():
    state = set_context(set_context(FormState(), "shift", "Nuit"), "gender", "Féminin")
    assert compile_clinical_data(state) == (
        "Contexte: note rédigée durant le quart de Nuit.\n"
        "Genre du patient: Féminin."
    )


@pytest.mark.parametrize("section", SECTIONS, ids=lambda section: section.id)
def test_single_filled_section_yields_one_titled_line(section):
    output = compile_clinical_data(_with_section(section))

    lines = output.splitlines()
    assert len(lines) == 1
    assert lines[0].startswith(f"- {section.title} : ")
    assert lines[0].endswith(".")


def test_sections_follow_registry_order():
    state = FormState(
        visits=SectionEntry(value="Visite de la famille"),
        position=SectionEntry(values=("Au fauteuil",)),
        skin=SectionEntry(values=("Peau intacte",)),
    )

    assert compile_clinical_data(state).splitlines() == [
        "- Position : Au fauteuil.",
        "- Tégumentaire : Peau intacte.",
        "- Visites : Visite de la famille.",
    ]


def test_special_sheet_sections_get_suffix():
    state = FormState(
        vital_signs=SectionEntry(value="Dans les limites de la normale"),
        neuro_signs=SectionEntry(value="Altérés, MD avisé"),
    )

    assert compile_clinical_data(state).splitlines() == [
        "- Signes vitaux : Dans les limites de la normale, voir feuille spéciale.",
        "- Signes neurologiques : Altérés, MD avisé, voir feuille spéciale.",
    ]


def test_oxygen_use_is_annotated_with_flow_rate():
    state = FormState(respiratory=RespiratoryEntry(values=(OXYGEN_USE,), oxygen_flow="2"))
    assert compile_clinical_data(state) == f"- Respiratoire : {OXYGEN_USE} (2 L/min)."


def test_oxygen_use_without_flow_rate_keeps_bare_label():
    state = FormState(respiratory=RespiratoryEntry(values=("Toux productive", OXYGEN_USE)))
    assert compile_clinical_data(state) == f"- Respiratoire : Toux productive, {OXYGEN_USE}."


def test_flow_rate_ignored_when_oxygen_not_selected():
    state = FormState(respiratory=RespiratoryEntry(values=("Toux sèche",), oxygen_flow="4"))
    assert compile_clinical_data(state) == "- Respiratoire : Toux sèche."


def test_medication_and_interventions_are_appended():
    state = FormState(
        digestive=SectionEntry(
            values=("Nausées",),
            medication="Gravol 25 mg PO",
            interventions=("Hydratation encouragée",),
        )
    )
    assert compile_clinical_data(state) == (
        "- Digestif : Nausées; médicament administré: Gravol 25 mg PO; "
        "interventions: Hydratation encouragée."
    )


def test_medication_alone_produces_a_section_line():
    state = FormState(urinary=SectionEntry(medication="Flomax 0,4 mg"))
    assert compile_clinical_data(state) == "- Urinaire : médicament administré: Flomax 0,4 mg."


def test_admission_block_phrases_in_fixed_order():
    state = FormState(
        admission=AdmissionState(
            flags=("Allergies vérifiées.",),
            orientation=("Temps", "Lieu"),
            autonomy="Aide partielle",
            personal_effects="  lunettes, dentier ",
            venous_access=True,
            venous_access_gauge="20G",
            venous_access_site="bras gauche",
            picc_line=True,
            picc_line_site="bras droit",
            drains=("Drain Hemovac",),
            tubes=("Sonde urinaire",),
        )
    )

    assert compile_clinical_data(state) == (
        "- Admission : Allergies vérifiées. Orientation: Temps, Lieu. "
        "Autonomie fonctionnelle: Aide partielle. Effets personnels: lunettes, dentier. "
        "Accès veineux (CVP) fonctionnel, calibre 20G au bras gauche. "
        "PICC Line en place et fonctionnel au bras droit. "
        "Drains en place: Drain Hemovac. Sondes en place: Sonde urinaire."
    )


def test_gated_fields_are_ignored_when_gate_is_off():
    state = FormState(
        admission=AdmissionState(
            venous_access=False,
            venous_access_gauge="22G",
            picc_line=False,
            picc_line_site="bras droit",
        )
    )

    output = compile_clinical_data(state)

    assert output == "- Admission : Orientation: Non évaluée ou non orienté(e)."
    assert "22G" not in output
    assert "PICC" not in output


def test_venous_access_without_details():
    state = FormState(admission=AdmissionState(venous_access=True))
    assert compile_clinical_data(state) == (
        "- Admission : Orientation: Non évaluée ou non orienté(e). "
        "Accès veineux (CVP) fonctionnel."
    )


def test_pain_region_merges_site():
    state = FormState(pain=PainState(r=("Brûlure",), site="bas du dos"))
    assert compile_clinical_data(state) == (
        "- Douleur (PQRSTU) :\n"
        "  - R – Région / Irradiation : Brûlure; Site: bas du dos"
    )


def test_pain_region_site_only():
    state = FormState(pain=PainState(site="bas du dos"))
    assert compile_clinical_data(state).splitlines()[1] == (
        "  - R – Région / Irradiation : Site: bas du dos"
    )


def test_pain_without_region_or_site_has_no_region_line():
    state = FormState(pain=PainState(p=("Au mouvement",), s="4/10"))
    assert compile_clinical_data(state) == (
        "- Douleur (PQRSTU) :\n"
        "  - P – Provoquer / Pallier : Au mouvement\n"
        "  - S – Sévérité / Intensité : 4/10"
    )


def test_pain_block_with_every_dimension_in_order():
    state = FormState(
        pain=PainState(
            u=("Désire une médication",),
            t=("Constante",),
            s="7/10",
            r=("Irradiante",),
            q=("Serrement", "Sourde"),
            p=("Au repos",),
            medication="Dilaudid 1 mg SC",
            interventions=("Repositionnement", "Application de glace"),
        )
    )

    assert compile_clinical_data(state).splitlines() == [
        "- Douleur (PQRSTU) :",
        "  - P – Provoquer / Pallier : Au repos",
        "  - Q – Qualité / Quantité : Serrement, Sourde",
        "  - R – Région / Irradiation : Irradiante",
        "  - S – Sévérité / Intensité : 7/10",
        "  - T – Temps / Durée : Constante",
        "  - U – Compréhension / Signification : Désire une médication",
        "  - Intervention pharmacologique (Médicament) : Dilaudid 1 mg SC",
        "  - Interventions non pharmacologiques : Repositionnement, Application de glace",
    ]


def test_pain_medication_only():
    state = FormState(pain=PainState(medication="Tylenol 500 mg"))
    assert compile_clinical_data(state) == (
        "- Douleur (PQRSTU) :\n"
        "  - Intervention pharmacologique (Médicament) : Tylenol 500 mg"
    )


def test_particulars_are_trimmed_and_last():
    state = set_particulars(
        FormState(position=SectionEntry(values=("Au lit",))),
        "  Chute évitée de justesse  ",
    )
    assert compile_clinical_data(state).splitlines() == [
        "- Position : Au lit.",
        "- Particularités / Événements notables : Chute évitée de justesse",
    ]


def test_blank_particulars_are_skipped():
    assert compile_clinical_data(set_particulars(FormState(), "   ")) == ""


def test_full_report_ordering():
    state = FormState(
        shift="Jour",
        gender="Masculin",
        admission=AdmissionState(orientation=("Personne",)),
        position=SectionEntry(values=("Au lit",)),
        digestive=SectionEntry(values=("Constipation",)),
        pain=PainState(s="2/10"),
        particulars="RAS",
    )

    assert compile_clinical_data(state).splitlines() == [
        "Contexte: note rédigée durant le quart de Jour.",
        "Genre du patient: Masculin.",
        "- Admission : Orientation: Personne.",
        "- Position : Au lit.",
        "- Digestif : Constipation.",
        "- Douleur (PQRSTU) :",
        "  - S – Sévérité / Intensité : 2/10",
        "- Particularités / Événements notables : RAS",
    ]


def test_whitespace_scalar_values_are_skipped():
    state = FormState(visits=SectionEntry(value="   "), pain=PainState(s="  "))

    assert compile_clinical_data(state) == ""
