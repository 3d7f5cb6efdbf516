from fastapi import APIRouter, Depends, File, Form, UploadFile
from app.database.supabase_client import get_data_client
from app.modules.groups.schemas import GroupUpdate, GroupView, JoinRequestCreate, JoinRequestResponse
from app.modules.groups.service import GroupService
from app.modules.posts.schemas import PostResponse
from app.modules.posts.service import PostService
from app.core.attachments import AttachmentPolicy, UploadSurface, get_attachment_policy
from app.core.dependencies import get_current_user_id, get_optional_user, require_signed_in
from app.core.storage import read_upload
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/groups", tags=["groups"])


def get_group_service(supabase: Client = Depends(get_data_client)) -> GroupService:
    return GroupService(supabase)


def get_post_service(supabase: Client = Depends(get_data_client)) -> PostService:
    return PostService(supabase)


def _viewer_id(user_data: Optional[Dict]) -> Optional[str]:
    return user_data["id"] if user_data else None


@router.get("", response_model=List[GroupView])
async def list_groups(
    limit: int = 50,
    offset: int = 0,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: GroupService = Depends(get_group_service)
):
    """Group directory; each group carries the viewer's affordance (enter, join, request, pending, sign_in)"""
    return service.list_groups(_viewer_id(user_data), limit=limit, offset=offset)


@router.post("", response_model=GroupView, status_code=201)
async def create_group(
    name: str = Form(...),
    description: str = Form(...),
    is_private: bool = Form(False),
    image: Optional[UploadFile] = File(None),
    current_user: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    policy: AttachmentPolicy = Depends(get_attachment_policy)
):
    """Create a group with an optional cover image"""
    cover = await read_upload(image, UploadSurface.GROUP_COVER, policy, prefix=f"{current_user['id']}/groups")
    return service.create_group(name, description, is_private, current_user["id"], cover)


@router.get("/{group_id}", response_model=GroupView)
async def get_group(
    group_id: str,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: GroupService = Depends(get_group_service)
):
    """Get a group as seen by the viewer"""
    return service.get_group_view(group_id, _viewer_id(user_data))


@router.put("/{group_id}", response_model=GroupView)
async def update_group(
    group_id: str,
    group_data: GroupUpdate,
    current_user: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """Update group settings (creator only)"""
    return service.update_group(group_id, group_data, current_user["id"])


@router.post("/{group_id}/join", response_model=GroupView)
async def join_group(
    group_id: str,
    user_data: Dict = Depends(require_signed_in),
    service: GroupService = Depends(get_group_service)
):
    """Join a public group"""
    return service.join(group_id, user_data["id"])


@router.post("/{group_id}/requests", response_model=GroupView, status_code=201)
async def request_to_join(
    group_id: str,
    request: JoinRequestCreate,
    user_data: Dict = Depends(require_signed_in),
    service: GroupService = Depends(get_group_service)
):
    """Send a join request with a message to a private group"""
    return service.request_to_join(group_id, user_data["id"], request.message)


@router.get("/{group_id}/requests", response_model=List[JoinRequestResponse])
async def list_requests(
    group_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """Pending join requests (creator only)"""
    return service.list_requests(group_id, current_user["id"])


@router.post("/{group_id}/requests/{user_id}/approve", response_model=GroupView)
async def approve_request(
    group_id: str,
    user_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """Approve a pending join request (creator only)"""
    return service.approve_request(group_id, current_user["id"], user_id)


@router.delete("/{group_id}/requests/{user_id}", response_model=GroupView)
async def reject_request(
    group_id: str,
    user_id: str,
    current_user: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service)
):
    """Reject a join request; the request row is deleted (creator only)"""
    return service.reject_request(group_id, current_user["id"], user_id)


@router.get("/{group_id}/posts", response_model=List[PostResponse])
async def list_group_posts(
    group_id: str,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: GroupService = Depends(get_group_service),
    post_service: PostService = Depends(get_post_service)
):
    """Group wall (members and creator only)"""
    viewer_id = _viewer_id(user_data)
    service.require_entry(group_id, viewer_id)
    return post_service.list_group_posts(group_id, viewer_id)


@router.post("/{group_id}/posts", response_model=PostResponse, status_code=201)
async def create_group_post(
    group_id: str,
    content: str = Form(""),
    file: Optional[UploadFile] = File(None),
    current_user: Dict = Depends(get_current_user_id),
    service: GroupService = Depends(get_group_service),
    post_service: PostService = Depends(get_post_service),
    policy: AttachmentPolicy = Depends(get_attachment_policy)
):
    """Post on a group wall; images go to the images bucket, other files to task_files"""
    service.require_entry(group_id, current_user["id"])
    surface = UploadSurface.GROUP_POST_FILE
    if file is not None and (file.content_type or "").startswith("image/"):
        surface = UploadSurface.POST_IMAGE
    attachment = await read_upload(file, surface, policy, prefix=group_id)
    return post_service.create_post(current_user["id"], content, attachment, group_id=group_id)
