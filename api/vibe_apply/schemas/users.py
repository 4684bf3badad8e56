from datetime import datetime
from typing import Literal

from pydantic import BaseModel

RoleValue = Literal["admin", "session_leader", "stake_president", "bishop", "applicant", "leader"]
LeaderStatusValue = Literal["pending", "approved", "rejected"]


class ProfileRequest(BaseModel):
    role: str
    stake: str
    ward: str
    name: str | None = None
    phone: str | None = None


class RoleChangeRequest(BaseModel):
    role: RoleValue


class LeaderStatusRequest(BaseModel):
    leader_status: Literal["pending", "approved"]


class UserOut(BaseModel):
    id: str
    name: str = ""
    email: str | None = None
    role: RoleValue | None = None
    leader_status: LeaderStatusValue | None = None
    stake: str = ""
    ward: str = ""
    phone: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
