from dataclasses import dataclass
from enum import Enum
from typing import Any


class Role(str, Enum):
    ADMIN = "admin"
    SESSION_LEADER = "session_leader"
    STAKE_PRESIDENT = "stake_president"
    BISHOP = "bishop"
    APPLICANT = "applicant"
    # Pre-split leader role kept for old user documents.
    LEADER = "leader"


class LeaderStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


LEADER_ROLES = frozenset({Role.SESSION_LEADER, Role.STAKE_PRESIDENT, Role.BISHOP, Role.LEADER})
RECOMMENDER_ROLES = frozenset({Role.BISHOP, Role.STAKE_PRESIDENT, Role.LEADER})
NOTE_AUTHOR_ROLES = frozenset({Role.BISHOP, Role.STAKE_PRESIDENT})
DECIDER_ROLES = frozenset({Role.ADMIN, Role.SESSION_LEADER})


def is_leader_role(role: Role | None) -> bool:
    return role in LEADER_ROLES


def parse_role(value: Any) -> Role | None:
    if isinstance(value, Role):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return Role(value.strip().lower())
    except ValueError:
        return None


def parse_leader_status(value: Any) -> LeaderStatus | None:
    if isinstance(value, LeaderStatus):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return LeaderStatus(value.strip().lower())
    except ValueError:
        return None


@dataclass(slots=True)
class Identity:
    user_id: str
    role: Role | None = None
    leader_status: LeaderStatus | None = None
    name: str = ""
    email: str = ""
    stake: str = ""
    ward: str = ""

    @property
    def is_approved_leader(self) -> bool:
        return is_leader_role(self.role) and self.leader_status == LeaderStatus.APPROVED

    @classmethod
    def from_user(cls, user: dict[str, Any]) -> "Identity":
        role = parse_role(user.get("role"))
        return cls(
            user_id=str(user["id"]),
            role=role,
            leader_status=parse_leader_status(user.get("leader_status")) if is_leader_role(role) else None,
            name=user.get("name") or "",
            email=user.get("email") or "",
            stake=user.get("stake") or "",
            ward=user.get("ward") or "",
        )
