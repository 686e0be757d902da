from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from smartnotes.api.deps import get_session
from smartnotes.models.notes import AppendRequest, EditRequest, NoteCreate, NoteOut, SessionOut
from smartnotes.sync.session import SyncSession

router = APIRouter(prefix="/session", tags=["session"])


def _state(session: SyncSession) -> SessionOut:
    return SessionOut(
        open_note_id=session.open_note_id,
        pending_edit=session.pending_edit,
        dirty=session.dirty,
        status=session.status,
        notes=[NoteOut(**n.to_dict()) for n in session.snapshot],
    )


@router.get("", response_model=SessionOut)
async def get_state(session: SyncSession = Depends(get_session)) -> SessionOut:
    return _state(session)


@router.post("/select/{note_id}", response_model=SessionOut)
async def select_note(note_id: UUID, session: SyncSession = Depends(get_session)) -> SessionOut:
    if not await session.select(str(note_id)):
        raise HTTPException(status_code=404, detail="Note not found")
    return _state(session)


@router.post("/edit", response_model=SessionOut)
async def edit_note(payload: EditRequest, session: SyncSession = Depends(get_session)) -> SessionOut:
    if not session.edit(payload.field, payload.value):
        raise HTTPException(status_code=409, detail="No note is open")
    return _state(session)


@router.post("/append", response_model=SessionOut)
async def append_to_note(payload: AppendRequest, session: SyncSession = Depends(get_session)) -> SessionOut:
    if not session.append_to_content(payload.text):
        raise HTTPException(status_code=409, detail="No note is open")
    return _state(session)


@router.post("/flush", response_model=SessionOut)
async def flush_note(session: SyncSession = Depends(get_session)) -> SessionOut:
    await session.flush()
    return _state(session)


@router.post("/notes", response_model=SessionOut, status_code=201)
async def create_note(payload: Optional[NoteCreate] = None, session: SyncSession = Depends(get_session)) -> SessionOut:
    await session.create(payload.model_dump() if payload else None)
    return _state(session)


@router.delete("/notes/{note_id}", status_code=204)
async def delete_note(note_id: UUID, session: SyncSession = Depends(get_session)) -> None:
    await session.delete(str(note_id))
    return None
