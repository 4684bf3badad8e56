from datetime import datetime

from pydantic import BaseModel


class NoteContentRequest(BaseModel):
    content: str


class NoteOut(BaseModel):
    id: str
    parent_id: str
    author_id: str
    author_name: str = ""
    author_role: str | None = None
    content: str
    created_at: datetime
    updated_at: datetime
