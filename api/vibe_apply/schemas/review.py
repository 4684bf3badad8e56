from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from vibe_apply.services.review_queue import QueueStatus as QueueStatusFilter


class ReviewItemOut(BaseModel):
    key: str
    item_type: Literal["application", "recommendation"]
    entity_id: str
    status: str
    raw_status: str
    tags: list[str] = Field(default_factory=list)
    name: str
    email: str | None = None
    phone: str = ""
    age: int | None = None
    gender: str = ""
    stake: str = ""
    ward: str = ""
    more_info: str = ""
    created_at: datetime
    updated_at: datetime
    application_id: str | None = None
    recommendation_id: str | None = None
    recommendation_ids: list[str] = Field(default_factory=list)
    leader_id: str | None = None
    can_edit: bool = False
    can_delete: bool = False


class ReviewCountsOut(BaseModel):
    all: int
    awaiting: int
    approved: int
    rejected: int
