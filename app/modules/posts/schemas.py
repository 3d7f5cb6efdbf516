from pydantic import BaseModel, field_validator
from typing import Optional
from datetime import datetime
from app.modules.profiles.schemas import ProfileSummary


class PostRow(BaseModel):
    id: str
    user_id: str
    group_id: Optional[str] = None
    content: str = ""
    image_url: Optional[str] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    created_at: datetime
    profiles: Optional[ProfileSummary] = None

    @field_validator("content", mode="before")
    @classmethod
    def empty_content(cls, value):
        return value or ""


class PostResponse(PostRow):
    like_count: int = 0
    comment_count: int = 0
    liked_by_me: bool = False


class CommentRow(BaseModel):
    id: str
    post_id: str
    user_id: str
    content: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime
    profiles: Optional[ProfileSummary] = None


class CommentCreatedResponse(BaseModel):
    comment: CommentRow
    comment_count: int


class LikeStateResponse(BaseModel):
    post_id: str
    liked: bool
    like_count: int
    phase: str
