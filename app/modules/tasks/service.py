from supabase import Client
from app.modules.tasks.models import TASK_SELECT
from app.modules.tasks.schemas import TaskCreate, TaskResponse, TaskStatus, TaskType
from app.core.attachments import AcceptedAttachment
from app.core.errors import remote_failure, parse_rows, parse_row
from app.core.storage import SupabaseStorage
from typing import List, Optional, Tuple
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_tasks(
        self,
        task_type: Optional[TaskType] = None,
        status: Optional[TaskStatus] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[TaskResponse]:
        """Task marketplace, newest first"""
        try:
            query = self.supabase.table("tasks").select(TASK_SELECT)
            if task_type is not None:
                query = query.eq("type", task_type.value)
            if status is not None:
                query = query.eq("status", status.value)
            result = query.order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
        except Exception as e:
            raise remote_failure("load the tasks", e)
        return parse_rows(TaskResponse, result.data, "the tasks")

    def get_task(self, task_id: str) -> TaskResponse:
        """Get task by ID with its publisher"""
        try:
            result = self.supabase.table("tasks")\
                .select(TASK_SELECT)\
                .eq("id", task_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise remote_failure("load the task", e)
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Task not found")
        return parse_row(TaskResponse, result.data, "the task")

    def create_task(
        self,
        task_data: TaskCreate,
        user_id: str,
        attachment: Optional[Tuple[AcceptedAttachment, bytes]] = None
    ) -> TaskResponse:
        """Publish a task; an attachment is uploaded before the row is written"""
        if not task_data.title.strip() or not task_data.description.strip() or not task_data.subject.strip():
            raise HTTPException(status_code=400, detail="Title, description and subject are required")
        if task_data.price < 0:
            raise HTTPException(status_code=400, detail="Price cannot be negative")

        file_url, file_name = None, None
        if attachment is not None:
            accepted, file_content = attachment
            file_url = SupabaseStorage(self.supabase).upload_file(accepted, file_content)
            file_name = accepted.filename

        try:
            result = self.supabase.table("tasks").insert({
                "title": task_data.title.strip(),
                "description": task_data.description.strip(),
                "subject": task_data.subject.strip(),
                "type": task_data.type.value,
                "price": task_data.price,
                "due_date": task_data.due_date.isoformat() if task_data.due_date else None,
                "contact_info": task_data.contact_info,
                "user_id": user_id,
                "file_url": file_url,
                "file_name": file_name,
                "status": TaskStatus.OPEN.value
            }).execute()
        except Exception as e:
            raise remote_failure("publish the task", e)
        if not result.data:
            raise HTTPException(status_code=502, detail="Could not publish the task. Please try again.")

        task_id = result.data[0]["id"]
        logger.info(f"Task {task_id} ({task_data.type.value}) created by {user_id}")
        return self.get_task(task_id)
