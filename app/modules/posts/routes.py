from fastapi import APIRouter, Depends, File, Form, UploadFile
from app.database.supabase_client import get_data_client
from app.modules.posts.schemas import (
    PostResponse, CommentRow, CommentCreatedResponse, LikeStateResponse
)
from app.modules.posts.service import PostService
from app.modules.groups.service import GroupService
from app.core.attachments import AttachmentPolicy, UploadSurface, get_attachment_policy
from app.core.dependencies import get_current_user_id, get_optional_user, require_signed_in
from app.core.storage import read_upload
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/posts", tags=["posts"])


def get_post_service(supabase: Client = Depends(get_data_client)) -> PostService:
    return PostService(supabase)


def get_group_service(supabase: Client = Depends(get_data_client)) -> GroupService:
    return GroupService(supabase)


def _check_post_visible(
    post_id: str, viewer_id: Optional[str], service: PostService, group_service: GroupService
) -> None:
    """Posts on a group wall are only reachable by viewers who may enter the group"""
    post = service.get_post(post_id)
    if post.group_id:
        group_service.require_entry(post.group_id, viewer_id)


@router.get("", response_model=List[PostResponse])
async def list_feed(
    limit: int = 20,
    offset: int = 0,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: PostService = Depends(get_post_service)
):
    """Main feed, newest first"""
    viewer_id = user_data["id"] if user_data else None
    return service.list_feed(viewer_id, limit=limit, offset=offset)


@router.post("", response_model=PostResponse, status_code=201)
async def create_post(
    content: str = Form(""),
    image: Optional[UploadFile] = File(None),
    current_user: Dict = Depends(get_current_user_id),
    service: PostService = Depends(get_post_service),
    policy: AttachmentPolicy = Depends(get_attachment_policy)
):
    """Publish a post on the main feed with an optional image"""
    attachment = await read_upload(image, UploadSurface.POST_IMAGE, policy, prefix=current_user["id"])
    return service.create_post(current_user["id"], content, attachment)


@router.post("/{post_id}/like", response_model=LikeStateResponse)
async def toggle_like(
    post_id: str,
    user_data: Dict = Depends(require_signed_in),
    service: PostService = Depends(get_post_service),
    group_service: GroupService = Depends(get_group_service)
):
    """Like or unlike a post"""
    _check_post_visible(post_id, user_data["id"], service, group_service)
    return service.toggle_like(post_id, user_data["id"])


@router.get("/{post_id}/comments", response_model=List[CommentRow])
async def list_comments(
    post_id: str,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: PostService = Depends(get_post_service),
    group_service: GroupService = Depends(get_group_service)
):
    """Comments of a post, oldest first"""
    _check_post_visible(post_id, user_data["id"] if user_data else None, service, group_service)
    return service.list_comments(post_id)


@router.post("/{post_id}/comments", response_model=CommentCreatedResponse, status_code=201)
async def add_comment(
    post_id: str,
    content: str = Form(""),
    image: Optional[UploadFile] = File(None),
    user_data: Dict = Depends(require_signed_in),
    service: PostService = Depends(get_post_service),
    group_service: GroupService = Depends(get_group_service),
    policy: AttachmentPolicy = Depends(get_attachment_policy)
):
    """Comment on a post, optionally with an image"""
    _check_post_visible(post_id, user_data["id"], service, group_service)
    attachment = await read_upload(
        image, UploadSurface.COMMENT_IMAGE, policy, prefix=f"{user_data['id']}/comments"
    )
    return service.add_comment(post_id, user_data["id"], content, attachment)
