from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime
from app.modules.groups.membership import Affordance, MemberStatus, ViewerStatus
from app.modules.profiles.schemas import ProfileSummary


class GroupUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    is_private: Optional[bool] = None


class GroupRow(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_by: Optional[str] = None
    is_private: bool = False
    created_at: datetime

    class Config:
        from_attributes = True


class GroupView(GroupRow):
    """A group as seen by one viewer, with counts recomputed from membership rows"""
    member_count: int = 0
    pending_count: Optional[int] = None  # creator only
    viewer_status: ViewerStatus = ViewerStatus.NONE
    affordance: Affordance
    can_enter: bool = False
    can_moderate: bool = False


class JoinRequestCreate(BaseModel):
    message: str

    @field_validator("message")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Tell the group creator why you want to join")
        return value


class JoinRequestResponse(BaseModel):
    group_id: str
    user_id: str
    status: MemberStatus
    join_message: Optional[str] = None
    role: str = "member"
    joined_at: Optional[datetime] = None
    profiles: Optional[ProfileSummary] = None
