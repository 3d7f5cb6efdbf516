from supabase import Client
from app.modules.profiles.schemas import ProfileResponse, ProfileUpdate
from app.core.attachments import AcceptedAttachment
from app.core.errors import remote_failure, parse_row
from app.core.storage import SupabaseStorage
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from fastapi import HTTPException
import time
import logging

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def find_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Profile row for a user, or None when missing or unreadable."""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching profile {user_id}: {e}")
            return None
        return result.data if result else None

    def get_profile(self, user_id: str) -> ProfileResponse:
        """Get profile by user ID"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise remote_failure("load the profile", e)
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Profile not found")
        return parse_row(ProfileResponse, result.data, "the profile")

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Create or update the caller's profile"""
        updates = {"id": user_id, "updated_at": datetime.now(timezone.utc).isoformat()}
        updates.update(profile_data.model_dump(exclude_none=True))
        return self._upsert(updates)

    def update_avatar(self, user_id: str, attachment: AcceptedAttachment, file_content: bytes) -> ProfileResponse:
        """Replace the user's avatar and point the profile at it"""
        public_url = SupabaseStorage(self.supabase).upload_file(attachment, file_content, upsert=True)
        # Same object path on every upload; the query string defeats stale caches.
        avatar_url = f"{public_url.rstrip('?')}?t={int(time.time() * 1000)}"
        return self._upsert({
            "id": user_id,
            "avatar_url": avatar_url,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        })

    def mark_has_password(self, user_id: str) -> None:
        try:
            self.supabase.table("profiles")\
                .update({"has_password": True})\
                .eq("id", user_id)\
                .execute()
        except Exception as e:
            raise remote_failure("update the profile", e)

    def _upsert(self, updates: Dict[str, Any]) -> ProfileResponse:
        try:
            result = self.supabase.table("profiles").upsert(updates).execute()
        except Exception as e:
            raise remote_failure("save the profile", e)
        if not result.data:
            raise HTTPException(status_code=502, detail="Could not save the profile. Please try again.")
        logger.info(f"Profile {updates['id']} updated")
        return parse_row(ProfileResponse, result.data[0], "the profile")
