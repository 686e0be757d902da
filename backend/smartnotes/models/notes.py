from typing import Literal, Optional

from pydantic import BaseModel, Field


class NoteCreate(BaseModel):
    title: str = Field(default="Untitled", max_length=200)
    content: str = Field(default="", max_length=100_000)
    subject: str = Field(default="General", max_length=100)


class NoteUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=200)
    content: Optional[str] = Field(default=None, max_length=100_000)
    subject: Optional[str] = Field(default=None, max_length=100)


class NoteOut(BaseModel):
    id: str
    owner_user_id: str
    title: str
    content: str
    subject: str
    created_at: str
    updated_at: str


class EditRequest(BaseModel):
    field: Literal["title", "content", "subject"]
    value: str = Field(max_length=100_000)


class AppendRequest(BaseModel):
    text: str = Field(min_length=1, max_length=100_000)


class SessionOut(BaseModel):
    open_note_id: Optional[str]
    pending_edit: dict[str, str]
    dirty: bool
    status: str
    notes: list[NoteOut]
