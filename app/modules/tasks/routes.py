from fastapi import APIRouter, Depends, File, Form, UploadFile
from app.database.supabase_client import get_data_client
from app.modules.tasks.schemas import TaskCreate, TaskResponse, TaskStatus, TaskType
from app.modules.tasks.service import TaskService
from app.core.attachments import AttachmentPolicy, UploadSurface, get_attachment_policy
from app.core.dependencies import get_current_user_id
from app.core.storage import read_upload
from supabase import Client
from typing import List, Optional, Dict
from datetime import datetime
import math

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_service(supabase: Client = Depends(get_data_client)) -> TaskService:
    return TaskService(supabase)


def _parse_price(raw: Optional[str]) -> float:
    """Blank, unparsable or non-finite prices mean a free task"""
    try:
        price = float(raw) if raw else 0.0
    except ValueError:
        return 0.0
    return price if math.isfinite(price) else 0.0


@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    type: Optional[TaskType] = None,
    status: Optional[TaskStatus] = None,
    limit: int = 50,
    offset: int = 0,
    service: TaskService = Depends(get_task_service)
):
    """List tasks, optionally by type (request/offer) and status"""
    return service.list_tasks(task_type=type, status=status, limit=limit, offset=offset)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    service: TaskService = Depends(get_task_service)
):
    """Get a task with its publisher"""
    return service.get_task(task_id)


@router.post("", response_model=TaskResponse, status_code=201)
async def create_task(
    title: str = Form(...),
    description: str = Form(...),
    subject: str = Form(...),
    type: TaskType = Form(TaskType.REQUEST),
    price: Optional[str] = Form(None),
    due_date: Optional[datetime] = Form(None),
    contact_info: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    current_user: Dict = Depends(get_current_user_id),
    service: TaskService = Depends(get_task_service),
    policy: AttachmentPolicy = Depends(get_attachment_policy)
):
    """Publish a task with an optional attachment"""
    task_data = TaskCreate(
        title=title,
        description=description,
        subject=subject,
        type=type,
        price=_parse_price(price),
        due_date=due_date,
        contact_info=contact_info
    )
    attachment = await read_upload(file, UploadSurface.TASK_FILE, policy, prefix=current_user["id"])
    return service.create_task(task_data, current_user["id"], attachment)
