from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from enum import Enum
from app.modules.profiles.schemas import ProfileSummary


class TaskType(str, Enum):
    REQUEST = "request"
    OFFER = "offer"


class TaskStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CLOSED = "closed"


class TaskCreate(BaseModel):
    title: str
    description: str
    subject: str
    type: TaskType = TaskType.REQUEST
    price: float = 0
    due_date: Optional[datetime] = None
    contact_info: Optional[str] = None


class TaskResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: str
    subject: str
    type: TaskType
    price: float = 0
    due_date: Optional[datetime] = None
    status: TaskStatus = TaskStatus.OPEN
    contact_info: Optional[str] = None
    file_url: Optional[str] = None
    file_name: Optional[str] = None
    created_at: datetime
    profiles: Optional[ProfileSummary] = None

    class Config:
        from_attributes = True
