from datetime import datetime
from typing import Literal

from pydantic import BaseModel

from vibe_apply.schemas.applications import CandidateForm
from vibe_apply.schemas.notes import NoteOut

RecommendationStatusValue = Literal["draft", "submitted", "approved", "rejected"]


class RecommendationCreateRequest(CandidateForm):
    status: RecommendationStatusValue | None = None


class RecommendationPatchRequest(BaseModel):
    name: str | None = None
    age: int | None = None
    email: str | None = None
    phone: str | None = None
    stake: str | None = None
    ward: str | None = None
    gender: str | None = None
    more_info: str | None = None
    served_mission: bool | None = None
    status: RecommendationStatusValue | None = None


class RecommendationStatusRequest(BaseModel):
    status: RecommendationStatusValue


class RecommendationOut(BaseModel):
    id: str
    leader_id: str
    name: str
    age: int
    email: str | None = None
    phone: str
    stake: str
    ward: str
    gender: str
    more_info: str = ""
    served_mission: bool | None = None
    status: RecommendationStatusValue
    linked_application_id: str | None = None
    created_at: datetime
    updated_at: datetime
    can_edit: bool = False
    can_delete: bool = False
    comments: list[NoteOut] | None = None
