import logging
import os
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Response

from app.access import ACCESS_DENIED_MESSAGE, AccessGate
from app.compiler import compile_clinical_data
from app.db import init_db, session_maker
from app.form_state import (
    FormEditError,
    FormState,
    is_form_empty,
    section_status,
    set_admission,
    set_context,
    set_pain,
    set_particulars,
    set_section,
    toggle_admission,
    toggle_pain,
    toggle_section,
)
from app.narrative import EmptyFormError, NarrativeGenerationError
from app.openai_client import OpenAIClient
from app.persistence import KeyValueStore, LayoutSettings, SqlKeyValueStore, StoreError
from app.registry import (
    ADMISSION_FLAG_OPTIONS,
    AUTONOMY_OPTIONS,
    DRAIN_OPTIONS,
    GENDER_OPTIONS,
    ORIENTATION_OPTIONS,
    PAIN_FIELDS,
    PAIN_INTERVENTION_OPTIONS,
    PAIN_SPLIT_INDEX,
    SCENARIOS,
    SECTIONS,
    SHIFT_OPTIONS,
    TUBE_OPTIONS,
)
from app.schemas import (
    AccessRequest,
    AccessResponse,
    ChangeCodeRequest,
    ChangeCodeResponse,
    ClinicalDataResponse,
    FormEditRequest,
    FormResponse,
    LoadResponse,
    NoteResponse,
    RegistryResponse,
    SaveListResponse,
    SaveResponse,
    ScenarioSummary,
)
from app.session import NoteSession

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_openai_client() -> OpenAIClient:
    return OpenAIClient()


@lru_cache(maxsize=1)
def get_store() -> KeyValueStore:
    init_db()
    return SqlKeyValueStore(session_maker)


@lru_cache(maxsize=1)
def get_note_session() -> NoteSession:
    return NoteSession.open(get_store())


def get_access_gate() -> AccessGate:
    return AccessGate(get_store())


async def require_access(
    x_access_code: Optional[str] = Header(default=None),
    gate: AccessGate = Depends(get_access_gate),
) -> None:
    if not x_access_code:
        raise HTTPException(status_code=401, detail=ACCESS_DENIED_MESSAGE)
    try:
        granted = gate.check(x_access_code)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    if not granted:
        raise HTTPException(status_code=401, detail=ACCESS_DENIED_MESSAGE)


app = FastAPI(title="Shift Note Assistant")
router = APIRouter(prefix="/api", dependencies=[Depends(require_access)])


_SETTERS = {
    "context": lambda state, req: set_context(state, req.field, req.value),
    "particulars": lambda state, req: set_particulars(state, req.value),
    "admission": lambda state, req: set_admission(state, req.field, req.value),
    "section": lambda state, req: set_section(state, req.section, req.field, req.value),
    "pain": lambda state, req: set_pain(state, req.field, req.value),
}

_TOGGLERS = {
    "admission": lambda state, req: toggle_admission(state, req.field, req.value),
    "section": lambda state, req: toggle_section(state, req.section, req.field, req.value),
    "pain": lambda state, req: toggle_pain(state, req.field, req.value),
}


def apply_edit(state: FormState, req: FormEditRequest) -> FormState:
    handlers = _SETTERS if req.action == "set" else _TOGGLERS
    handler = handlers.get(req.group)
    if handler is None:
        raise FormEditError(f"Cannot {req.action} a value in {req.group!r}")
    return handler(state, req)


def _form_response(state: FormState) -> FormResponse:
    return FormResponse(state=state, status=section_status(state), is_empty=is_form_empty(state))


@app.post("/api/access", response_model=AccessResponse)
async def check_access(req: AccessRequest, gate: AccessGate = Depends(get_access_gate)):
    try:
        granted = gate.check(req.code)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    if not granted:
        raise HTTPException(status_code=401, detail=ACCESS_DENIED_MESSAGE)
    return AccessResponse(granted=True)


@router.post("/access/change", response_model=ChangeCodeResponse)
async def change_access_code(
    req: ChangeCodeRequest, gate: AccessGate = Depends(get_access_gate)
):
    try:
        result = gate.change(req.current_code, req.new_code)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return ChangeCodeResponse(success=result.success, message=result.message)


@router.get("/registry", response_model=RegistryResponse)
async def registry():
    return RegistryResponse(
        sections=list(SECTIONS),
        pain_split_index=PAIN_SPLIT_INDEX,
        pain_fields=list(PAIN_FIELDS),
        pain_interventions=list(PAIN_INTERVENTION_OPTIONS),
        shift_options=list(SHIFT_OPTIONS),
        gender_options=list(GENDER_OPTIONS),
        admission_options={
            "flags": list(ADMISSION_FLAG_OPTIONS),
            "orientation": list(ORIENTATION_OPTIONS),
            "autonomy": list(AUTONOMY_OPTIONS),
            "drains": list(DRAIN_OPTIONS),
            "tubes": list(TUBE_OPTIONS),
        },
        scenarios=[
            ScenarioSummary(name=scenario.name, description=scenario.description)
            for scenario in SCENARIOS
        ],
    )


@router.get("/form", response_model=FormResponse)
async def read_form(session: NoteSession = Depends(get_note_session)):
    return _form_response(session.state)


@router.put("/form", response_model=FormResponse)
async def replace_form(state: FormState, session: NoteSession = Depends(get_note_session)):
    return _form_response(session.replace_state(state))


@router.post("/form/edit", response_model=FormResponse)
async def edit_form(req: FormEditRequest, session: NoteSession = Depends(get_note_session)):
    try:
        state = session.edit(lambda current: apply_edit(current, req))
    except FormEditError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _form_response(state)


@router.post("/form/reset", response_model=FormResponse)
async def reset_form(session: NoteSession = Depends(get_note_session)):
    return _form_response(session.reset())


@router.post("/form/scenario/{name}", response_model=FormResponse)
async def apply_form_scenario(name: str, session: NoteSession = Depends(get_note_session)):
    try:
        state = session.apply_scenario(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown scenario: {name}")
    except FormEditError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return _form_response(state)


@router.get("/clinical-data", response_model=ClinicalDataResponse)
async def clinical_data(session: NoteSession = Depends(get_note_session)):
    return ClinicalDataResponse(clinical_data=compile_clinical_data(session.state))


@router.post("/compile", response_model=ClinicalDataResponse)
async def compile_form(state: FormState):
    return ClinicalDataResponse(clinical_data=compile_clinical_data(state))


@router.post("/generate", response_model=NoteResponse)
async def generate(
    session: NoteSession = Depends(get_note_session),
    openai_client: OpenAIClient = Depends(get_openai_client),
):
    try:
        note = await session.generate(openai_client)
    except EmptyFormError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except NarrativeGenerationError as exc:
        raise HTTPException(status_code=502, detail=str(exc))
    return NoteResponse(note=note)


@router.get("/note", response_model=NoteResponse)
async def read_note(session: NoteSession = Depends(get_note_session)):
    return NoteResponse(note=session.narrative, error=session.error)


@router.get("/saves", response_model=SaveListResponse)
async def list_saves(session: NoteSession = Depends(get_note_session)):
    return SaveListResponse(names=session.saved_names())


@router.put("/saves/{name}", response_model=SaveResponse)
async def save_note(name: str, session: NoteSession = Depends(get_note_session)):
    try:
        saved_name = session.save(name)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return SaveResponse(name=saved_name)


@router.post("/saves/{name}/load", response_model=LoadResponse)
async def load_note(name: str, session: NoteSession = Depends(get_note_session)):
    try:
        found = session.load(name)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    if not found:
        raise HTTPException(status_code=404, detail=f"No saved note named {name.strip()!r}")
    return LoadResponse(
        name=name.strip(),
        state=session.state,
        narrative=session.narrative,
        layout_settings=session.layout,
    )


@router.delete("/saves/{name}", status_code=204)
async def delete_note(name: str, session: NoteSession = Depends(get_note_session)):
    try:
        session.delete(name)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return Response(status_code=204)


@router.get("/layout", response_model=LayoutSettings)
async def read_layout(session: NoteSession = Depends(get_note_session)):
    return session.layout


@router.put("/layout", response_model=LayoutSettings)
async def update_layout(layout: LayoutSettings, session: NoteSession = Depends(get_note_session)):
    try:
        return session.update_layout(layout)
    except StoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc))


app.include_router(router)
