from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ...auth import get_approved_profile
from ...database import get_db
from ...models import Profile
from ..notifications.dispatch import dispatch_new_note
from .service import NoteCreate, NoteResponse, NoteService, note_preview

router = APIRouter(tags=["Notes"])


def get_note_service(db: Session = Depends(get_db)) -> NoteService:
    return NoteService(db)


@router.get("/patients/{patient_id}/notes", response_model=list[NoteResponse])
async def list_notes(
    patient_id: str,
    _: Profile = Depends(get_approved_profile),
    service: NoteService = Depends(get_note_service),
):
    return service.list_notes(patient_id)


@router.post("/patients/{patient_id}/notes", response_model=NoteResponse, status_code=201)
async def create_note(
    patient_id: str,
    data: NoteCreate,
    background_tasks: BackgroundTasks,
    current_profile: Profile = Depends(get_approved_profile),
    service: NoteService = Depends(get_note_service),
):
    note, patient = service.create_note(patient_id, data, current_profile)
    background_tasks.add_task(
        dispatch_new_note, patient.id, patient.name, note_preview(note.note)
    )
    return note


@router.put("/notes/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: str,
    data: NoteCreate,
    current_profile: Profile = Depends(get_approved_profile),
    service: NoteService = Depends(get_note_service),
):
    return service.update_note(note_id, data, current_profile)


@router.delete("/notes/{note_id}")
async def delete_note(
    note_id: str,
    current_profile: Profile = Depends(get_approved_profile),
    service: NoteService = Depends(get_note_service),
):
    return service.delete_note(note_id, current_profile)
