from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from app.form_state import FormState
from app.persistence import LayoutSettings
from app.registry import Option, PainField, SectionDefinition


class AccessRequest(BaseModel):
    code: str = Field(..., min_length=1)


class AccessResponse(BaseModel):
    granted: bool
    message: str = ""


class ChangeCodeRequest(BaseModel):
    current_code: str
    new_code: str


class ChangeCodeResponse(BaseModel):
    success: bool
    message: str


class FormEditRequest(BaseModel):
    action: Literal["set", "toggle"]
    group: Literal["context", "admission", "section", "pain", "particulars"]
    section: Optional[str] = None  # registry id, only for group == "section"
    field: Optional[str] = None
    value: Union[bool, str, list[str]]


class FormResponse(BaseModel):
    state: FormState
    status: dict[str, bool]
    is_empty: bool


class ClinicalDataResponse(BaseModel):
    clinical_data: str


class NoteResponse(BaseModel):
    note: str
    error: Optional[str] = None


class ScenarioSummary(BaseModel):
    name: str
    description: str


class RegistryResponse(BaseModel):
    sections: list[SectionDefinition]
    pain_split_index: int
    pain_fields: list[PainField]
    pain_interventions: list[Option]
    shift_options: list[Option]
    gender_options: list[Option]
    admission_options: dict[str, list[Option]]
    scenarios: list[ScenarioSummary]


class SaveListResponse(BaseModel):
    names: list[str]


class SaveResponse(BaseModel):
    name: str


class LoadResponse(BaseModel):
    name: str
    state: FormState
    narrative: str
    layout_settings: LayoutSettings
