from typing import Optional

from pydantic import BaseModel


# Field names follow the browser client's JSON (camelCase).
class NoteContentIn(BaseModel):
    noteContent: Optional[str] = None


class ExplainIn(BaseModel):
    selectedText: Optional[str] = None


class StudyTipsIn(BaseModel):
    noteContent: Optional[str] = None
    subject: Optional[str] = None
