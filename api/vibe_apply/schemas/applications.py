from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from vibe_apply.schemas.notes import NoteOut

ApplicationStatusValue = Literal["draft", "awaiting", "approved", "rejected"]


class CandidateForm(BaseModel):
    name: str
    age: int
    email: str | None = None
    phone: str
    stake: str
    ward: str
    gender: str
    more_info: str | None = None
    served_mission: bool | None = None


class ApplicationSubmitRequest(CandidateForm):
    email: str
    status: ApplicationStatusValue | None = None


class ApplicationStatusRequest(BaseModel):
    status: ApplicationStatusValue


class ApplicationOut(BaseModel):
    id: str
    user_id: str
    name: str
    age: int
    email: str
    phone: str
    stake: str
    ward: str
    gender: str
    more_info: str = ""
    served_mission: bool | None = None
    status: ApplicationStatusValue
    linked_recommendation_id: str | None = None
    created_at: datetime
    updated_at: datetime
    can_edit: bool = False
    can_delete: bool = False
    memos: list[NoteOut] | None = None
