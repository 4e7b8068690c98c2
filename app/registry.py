"""Static description of the shift-note checklist.

Everything here is read-only metadata: the ordered clinical sections, the six
PQRSTU pain fields, the context and admission option sets and the quick
scenario templates. Stored form values are the option ``value`` strings, which
is also the text that ends up in the clinical-data report.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class Option(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    label: str


SectionKind = Literal["single", "multi"]


class SectionDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    kind: SectionKind
    options: tuple[Option, ...]
    has_medication: bool = False
    interventions: Optional[tuple[Option, ...]] = None
    special_sheet: bool = False
    # value of the option that enables the oxygen flow sub-field
    flow_option: Optional[str] = None


class PainField(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Literal["p", "q", "r", "s", "t", "u"]
    label: str
    kind: SectionKind
    options: tuple[Option, ...]


class Scenario(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    template: dict


def _options(*values: str) -> tuple[Option, ...]:
    return tuple(Option(value=value, label=value) for value in values)


OXYGEN_USE = "Utilisation d’O₂"

SHIFT_OPTIONS = _options("Jour", "Soir", "Nuit")
GENDER_OPTIONS = _options("Masculin", "Féminin")

ADMISSION_FLAG_OPTIONS = _options(
    "Patient(e) admis(e) à l'unité.",
    "Accueil et installation à la chambre.",
    "Enseignement sur l'unité et la cloche d'appel fait.",
    "Bracelet d'identification vérifié.",
    "Allergies vérifiées.",
)
ORIENTATION_OPTIONS = _options("Temps", "Lieu", "Personne")
AUTONOMY_OPTIONS = _options(
    "Autonome",
    "Aide partielle",
    "Aide complète",
)
DRAIN_OPTIONS = _options("Drain Jackson-Pratt", "Drain Hemovac", "Drain thoracique")
TUBE_OPTIONS = _options("Sonde urinaire", "Sonde nasogastrique", "Gastrostomie")

_RESPIRATORY_INTERVENTIONS = _options(
    "Position semi-Fowler",
    "Exercices de respiration profonde",
    "Spirométrie incitative",
    "Aspiration des sécrétions",
)
_DIGESTIVE_INTERVENTIONS = _options(
    "Hydratation encouragée",
    "Diète adaptée",
    "Mobilisation encouragée",
)
_URINARY_INTERVENTIONS = _options(
    "Bilan ingesta/excreta",
    "Soins de sonde",
    "Horaire mictionnel",
)
_SKIN_INTERVENTIONS = _options(
    "Changement de position aux 2 h",
    "Surface thérapeutique",
    "Pansement refait",
    "Crème barrière appliquée",
)

SECTIONS: tuple[SectionDefinition, ...] = (
    SectionDefinition(
        id="position",
        title="Position",
        kind="multi",
        options=_options(
            "Au lit",
            "Au fauteuil",
            "Décubitus dorsal",
            "Décubitus latéral",
            "Position semi-assise",
        ),
    ),
    SectionDefinition(
        id="wakefulness",
        title="État d'éveil",
        kind="single",
        options=_options("Éveillé(e) et alerte", "Somnolent(e)", "Endormi(e)", "Agité(e)"),
    ),
    SectionDefinition(
        id="vital_signs",
        title="Signes vitaux",
        kind="single",
        options=_options("Dans les limites de la normale", "Anormaux, MD avisé"),
        special_sheet=True,
    ),
    SectionDefinition(
        id="neuro_signs",
        title="Signes neurologiques",
        kind="single",
        options=_options("Dans les limites de la normale", "Altérés, MD avisé"),
        special_sheet=True,
    ),
    SectionDefinition(
        id="respiratory",
        title="Respiratoire",
        kind="multi",
        options=_options(
            "Respiration régulière et sans effort",
            "Dyspnée à l'effort",
            "Toux productive",
            "Toux sèche",
            "Murmures vésiculaires diminués",
            OXYGEN_USE,
        ),
        has_medication=True,
        interventions=_RESPIRATORY_INTERVENTIONS,
        flow_option=OXYGEN_USE,
    ),
    SectionDefinition(
        id="digestive",
        title="Digestif",
        kind="multi",
        options=_options(
            "Abdomen souple et non douloureux",
            "Nausées",
            "Vomissements",
            "Constipation",
            "Selles normales",
            "Bonne tolérance alimentaire",
        ),
        has_medication=True,
        interventions=_DIGESTIVE_INTERVENTIONS,
    ),
    SectionDefinition(
        id="urinary",
        title="Urinaire",
        kind="multi",
        options=_options(
            "Mictions spontanées",
            "Urine claire",
            "Incontinence urinaire",
            "Rétention urinaire",
        ),
        has_medication=True,
        interventions=_URINARY_INTERVENTIONS,
    ),
    SectionDefinition(
        id="skin",
        title="Tégumentaire",
        kind="multi",
        options=_options(
            "Peau intacte",
            "Rougeur au siège",
            "Plaie de pression",
            "Œdème aux membres inférieurs",
        ),
        has_medication=True,
        interventions=_SKIN_INTERVENTIONS,
    ),
    SectionDefinition(
        id="geriatric",
        title="Gériatrie",
        kind="multi",
        options=_options(
            "Risque de chute",
            "Mesures de prévention des chutes en place",
            "Confusion",
            "Errance",
        ),
    ),
    SectionDefinition(
        id="observations",
        title="Observations",
        kind="multi",
        options=_options(
            "Calme et collaborant(e)",
            "Anxieux(se)",
            "Repos au lit",
            "Dort par intervalles",
        ),
    ),
    SectionDefinition(
        id="visits",
        title="Visites",
        kind="single",
        options=_options("Aucune visite", "Visite de la famille", "Visite du médecin"),
    ),
)

_SECTIONS_BY_ID = {section.id: section for section in SECTIONS}

# Sections listed before this index are presented ahead of the pain panel.
PAIN_SPLIT_INDEX = next(i for i, section in enumerate(SECTIONS) if section.id == "digestive")

PAIN_FIELDS: tuple[PainField, ...] = (
    PainField(
        id="p",
        label="P – Provoquer / Pallier",
        kind="multi",
        options=_options("Au mouvement", "Au repos", "À la palpation", "Soulagée par le repos"),
    ),
    PainField(
        id="q",
        label="Q – Qualité / Quantité",
        kind="multi",
        options=_options("Brûlure", "Serrement", "Élancement", "Coup de poignard", "Sourde"),
    ),
    PainField(
        id="r",
        label="R – Région / Irradiation",
        kind="multi",
        options=_options("Localisée", "Irradiante", "Diffuse"),
    ),
    PainField(
        id="s",
        label="S – Sévérité / Intensité",
        kind="single",
        options=_options(*(f"{score}/10" for score in range(11))),
    ),
    PainField(
        id="t",
        label="T – Temps / Durée",
        kind="multi",
        options=_options("Constante", "Intermittente", "Depuis moins de 24 h", "Depuis plusieurs jours"),
    ),
    PainField(
        id="u",
        label="U – Compréhension / Signification",
        kind="multi",
        options=_options("Comprend sa douleur", "Inquiet(ète) face à la douleur", "Désire une médication"),
    ),
)

PAIN_INTERVENTION_OPTIONS = _options(
    "Repositionnement",
    "Application de glace",
    "Application de chaleur",
    "Distraction",
    "Techniques de relaxation",
)

SCENARIOS: tuple[Scenario, ...] = (
    Scenario(
        name="stable",
        description="Patient stable, sans particularité",
        template={
            "position": {"values": ["Au lit"]},
            "wakefulness": {"value": "Éveillé(e) et alerte"},
            "vital_signs": {"value": "Dans les limites de la normale"},
            "neuro_signs": {"value": "Dans les limites de la normale"},
            "respiratory": {"values": ["Respiration régulière et sans effort"]},
            "digestive": {"values": ["Abdomen souple et non douloureux", "Bonne tolérance alimentaire"]},
            "urinary": {"values": ["Mictions spontanées", "Urine claire"]},
            "skin": {"values": ["Peau intacte"]},
            "observations": {"values": ["Calme et collaborant(e)"]},
        },
    ),
    Scenario(
        name="post-op",
        description="Retour de salle d'opération",
        template={
            "admission": {
                "venous_access": True,
                "venous_access_gauge": "20G",
                "venous_access_site": "avant-bras gauche",
                "drains": ["Drain Jackson-Pratt"],
            },
            "position": {"values": ["Au lit", "Position semi-assise"]},
            "wakefulness": {"value": "Somnolent(e)"},
            "vital_signs": {"value": "Dans les limites de la normale"},
            "pain": {
                "p": ["Au mouvement"],
                "q": ["Élancement"],
                "s": "4/10",
                "site": "plaie opératoire",
            },
        },
    ),
    Scenario(
        name="respiratory-distress",
        description="Détresse respiratoire sous oxygène",
        template={
            "wakefulness": {"value": "Agité(e)"},
            "vital_signs": {"value": "Anormaux, MD avisé"},
            "respiratory": {
                "values": ["Dyspnée à l'effort", OXYGEN_USE],
                "oxygen_flow": "2",
                "interventions": ["Position semi-Fowler"],
            },
            "observations": {"values": ["Anxieux(se)"]},
        },
    ),
)

_SCENARIOS_BY_NAME = {scenario.name: scenario for scenario in SCENARIOS}


def iter_sections():
    return iter(SECTIONS)


def get_section(section_id: str) -> SectionDefinition:
    return _SECTIONS_BY_ID[section_id]


def section_ids() -> tuple[str, ...]:
    return tuple(section.id for section in SECTIONS)


def sections_before_pain() -> tuple[SectionDefinition, ...]:
    return SECTIONS[:PAIN_SPLIT_INDEX]


def sections_after_pain() -> tuple[SectionDefinition, ...]:
    return SECTIONS[PAIN_SPLIT_INDEX:]


def get_pain_field(field_id: str) -> PainField:
    for field in PAIN_FIELDS:
        if field.id == field_id:
            return field
    raise KeyError(field_id)


def get_scenario(name: str) -> Scenario:
    return _SCENARIOS_BY_NAME[name]


__all__ = [
    "Option",
    "SectionDefinition",
    "PainField",
    "Scenario",
    "OXYGEN_USE",
    "SHIFT_OPTIONS",
    "GENDER_OPTIONS",
    "ADMISSION_FLAG_OPTIONS",
    "ORIENTATION_OPTIONS",
    "AUTONOMY_OPTIONS",
    "DRAIN_OPTIONS",
    "TUBE_OPTIONS",
    "SECTIONS",
    "PAIN_SPLIT_INDEX",
    "PAIN_FIELDS",
    "PAIN_INTERVENTION_OPTIONS",
    "SCENARIOS",
    "iter_sections",
    "get_section",
    "section_ids",
    "sections_before_pain",
    "sections_after_pain",
    "get_pain_field",
    "get_scenario",
]
