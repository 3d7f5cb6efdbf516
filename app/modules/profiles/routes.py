from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from app.database.supabase_client import get_data_client
from app.modules.profiles.models import AVATAR_STEM
from app.modules.profiles.schemas import ProfileResponse, ProfileUpdate
from app.modules.profiles.service import ProfileService
from app.modules.posts.schemas import PostResponse
from app.modules.posts.service import PostService
from app.core.attachments import AttachmentPolicy, UploadSurface, get_attachment_policy
from app.core.dependencies import get_current_token, get_current_user_id, get_optional_user, get_session_store
from app.core.session import SessionStore
from app.core.storage import read_upload
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(supabase: Client = Depends(get_data_client)) -> ProfileService:
    return ProfileService(supabase)


def get_post_service(supabase: Client = Depends(get_data_client)) -> PostService:
    return PostService(supabase)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    current_user: Dict = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service)
):
    """Get the caller's profile"""
    return service.get_profile(current_user["id"])


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    token: str = Depends(get_current_token),
    current_user: Dict = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service),
    store: SessionStore = Depends(get_session_store)
):
    """Create or update the caller's profile"""
    profile = service.update_profile(current_user["id"], profile_data)
    store.evict(token)
    return profile


@router.post("/me/avatar", response_model=ProfileResponse)
async def upload_avatar(
    image: UploadFile = File(...),
    token: str = Depends(get_current_token),
    current_user: Dict = Depends(get_current_user_id),
    service: ProfileService = Depends(get_profile_service),
    policy: AttachmentPolicy = Depends(get_attachment_policy),
    store: SessionStore = Depends(get_session_store)
):
    """Replace the caller's avatar"""
    upload = await read_upload(
        image, UploadSurface.AVATAR, policy, prefix=current_user["id"], stem=AVATAR_STEM
    )
    if upload is None:
        raise HTTPException(status_code=400, detail="Choose an image to upload")
    accepted, content = upload
    profile = service.update_avatar(current_user["id"], accepted, content)
    store.evict(token)
    return profile


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: str,
    service: ProfileService = Depends(get_profile_service)
):
    """Public profile of a user"""
    return service.get_profile(user_id)


@router.get("/{user_id}/posts", response_model=List[PostResponse])
async def list_user_posts(
    user_id: str,
    user_data: Optional[Dict] = Depends(get_optional_user),
    service: ProfileService = Depends(get_profile_service),
    post_service: PostService = Depends(get_post_service)
):
    """Feed posts written by a user"""
    service.get_profile(user_id)
    return post_service.list_user_posts(user_id, user_data["id"] if user_data else None)
