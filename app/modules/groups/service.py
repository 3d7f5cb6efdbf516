from supabase import Client
from app.modules.groups.models import MEMBERSHIP_CONFLICT, REQUEST_SELECT
from app.modules.groups.schemas import GroupRow, GroupView, GroupUpdate, JoinRequestResponse
from app.modules.groups.membership import (
    Affordance, MemberStatus, MembershipRow, count_memberships, decide, viewer_status
)
from app.core.attachments import AcceptedAttachment
from app.core.errors import remote_failure, sign_in_required, parse_rows, parse_row
from app.core.storage import SupabaseStorage
from app.config.settings import settings
from typing import Dict, List, Optional, Tuple
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class GroupService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_group(self, group_id: str) -> GroupRow:
        """Get group by ID"""
        try:
            result = self.supabase.table("groups")\
                .select("*")\
                .eq("id", group_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise remote_failure("load the group", e)
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Group not found")
        return parse_row(GroupRow, result.data, "the group")

    def get_group_view(self, group_id: str, viewer_id: Optional[str]) -> GroupView:
        group = self.get_group(group_id)
        rows = self._membership_rows([group.id]).get(group.id, [])
        return self._view(group, rows, viewer_id)

    def list_groups(self, viewer_id: Optional[str], limit: int = 50, offset: int = 0) -> List[GroupView]:
        """Group directory with each group's affordance for the viewer"""
        try:
            result = self.supabase.table("groups")\
                .select("*")\
                .order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
        except Exception as e:
            raise remote_failure("load the groups", e)
        groups = parse_rows(GroupRow, result.data, "the groups")
        if not groups:
            return []
        rows_by_group = self._membership_rows([g.id for g in groups])
        return [self._view(g, rows_by_group.get(g.id, []), viewer_id) for g in groups]

    def create_group(
        self,
        name: str,
        description: str,
        is_private: bool,
        creator_id: str,
        cover: Optional[Tuple[AcceptedAttachment, bytes]] = None
    ) -> GroupView:
        """Create a group owned by its creator"""
        name, description = (name or "").strip(), (description or "").strip()
        if not name or not description:
            raise HTTPException(status_code=400, detail="Name and description are required")

        image_url = settings.default_group_image_url
        if cover is not None:
            accepted, file_content = cover
            image_url = SupabaseStorage(self.supabase).upload_file(accepted, file_content)

        try:
            result = self.supabase.table("groups").insert({
                "name": name,
                "description": description,
                "image_url": image_url,
                "created_by": creator_id,
                "is_private": is_private
            }).execute()
        except Exception as e:
            raise remote_failure("create the group", e)
        if not result.data:
            raise HTTPException(status_code=502, detail="Could not create the group. Please try again.")

        group = parse_row(GroupRow, result.data[0], "the group")
        logger.info(f"Group {group.id} created by {creator_id} (private={group.is_private})")
        return self._view(group, [], creator_id)

    def update_group(self, group_id: str, group_data: GroupUpdate, user_id: str) -> GroupView:
        """Update group settings (creator only)"""
        group = self.get_group(group_id)
        self._require_creator(group, user_id)

        update_data = {}
        if group_data.name:
            update_data["name"] = group_data.name.strip()
        if group_data.description is not None:
            update_data["description"] = group_data.description
        if group_data.is_private is not None:
            update_data["is_private"] = group_data.is_private
        if not update_data:
            return self.get_group_view(group_id, user_id)

        try:
            self.supabase.table("groups")\
                .update(update_data)\
                .eq("id", group_id)\
                .execute()
        except Exception as e:
            raise remote_failure("update the group", e)
        return self.get_group_view(group_id, user_id)

    def require_entry(self, group_id: str, viewer_id: Optional[str]) -> GroupView:
        """Group view for a viewer allowed inside; anonymous callers are sent to sign in"""
        view = self.get_group_view(group_id, viewer_id)
        if view.can_enter:
            return view
        if viewer_id is None:
            raise sign_in_required("Sign in to see this group")
        raise HTTPException(status_code=403, detail="You must be a member of this group")

    def join(self, group_id: str, user_id: str) -> GroupView:
        """Join a public group; membership is approved immediately"""
        view = self.get_group_view(group_id, user_id)
        if view.can_enter:
            return view
        if view.affordance is Affordance.PENDING:
            raise HTTPException(status_code=409, detail="Your join request is still pending")
        if view.affordance is not Affordance.JOIN:
            raise HTTPException(status_code=400, detail="This group is private; send a join request instead")

        self._write_membership(group_id, user_id, MemberStatus.APPROVED, None, "join the group")
        logger.info(f"User {user_id} joined group {group_id}")
        return self.get_group_view(group_id, user_id)

    def request_to_join(self, group_id: str, user_id: str, message: str) -> GroupView:
        """Ask to join a private group; the creator approves or rejects"""
        view = self.get_group_view(group_id, user_id)
        if view.can_enter:
            return view
        if view.affordance is Affordance.PENDING:
            raise HTTPException(status_code=409, detail="Your join request is still pending")
        if view.affordance is Affordance.JOIN:
            raise HTTPException(status_code=400, detail="This group is public; join it directly")

        self._write_membership(group_id, user_id, MemberStatus.PENDING, message, "send the join request")
        logger.info(f"User {user_id} requested to join group {group_id}")
        return self.get_group_view(group_id, user_id)

    def list_requests(self, group_id: str, user_id: str) -> List[JoinRequestResponse]:
        """Pending join requests with the requester's profile (creator only)"""
        group = self.get_group(group_id)
        self._require_creator(group, user_id)
        try:
            result = self.supabase.table("group_members")\
                .select(REQUEST_SELECT)\
                .eq("group_id", group_id)\
                .eq("status", MemberStatus.PENDING.value)\
                .order("joined_at", desc=False)\
                .execute()
        except Exception as e:
            raise remote_failure("load the join requests", e)
        return parse_rows(JoinRequestResponse, result.data, "the join requests")

    def approve_request(self, group_id: str, creator_id: str, member_id: str) -> GroupView:
        """Approve a pending request. Approving an approved member is a no-op."""
        group = self.get_group(group_id)
        self._require_creator(group, creator_id)
        row = self._membership(group_id, member_id)
        if row is None or row.status is MemberStatus.REJECTED:
            raise HTTPException(status_code=404, detail="Join request not found")
        if row.status is MemberStatus.PENDING:
            try:
                self.supabase.table("group_members")\
                    .update({"status": MemberStatus.APPROVED.value})\
                    .eq("group_id", group_id)\
                    .eq("user_id", member_id)\
                    .execute()
            except Exception as e:
                raise remote_failure("approve the request", e)
            logger.info(f"Request of {member_id} to group {group_id} approved")
        return self.get_group_view(group_id, creator_id)

    def reject_request(self, group_id: str, creator_id: str, member_id: str) -> GroupView:
        """Reject a request by deleting its row. Rejecting an absent request is a no-op."""
        group = self.get_group(group_id)
        self._require_creator(group, creator_id)
        row = self._membership(group_id, member_id)
        if row is not None:
            if row.status is MemberStatus.APPROVED:
                raise HTTPException(status_code=409, detail="This user is already a member")
            try:
                self.supabase.table("group_members")\
                    .delete()\
                    .eq("group_id", group_id)\
                    .eq("user_id", member_id)\
                    .execute()
            except Exception as e:
                raise remote_failure("reject the request", e)
            logger.info(f"Request of {member_id} to group {group_id} rejected")
        return self.get_group_view(group_id, creator_id)

    def _require_creator(self, group: GroupRow, user_id: str) -> None:
        if group.created_by is None or group.created_by != user_id:
            raise HTTPException(status_code=403, detail="Only the group creator can perform this action")

    def _membership(self, group_id: str, user_id: str) -> Optional[MembershipRow]:
        try:
            result = self.supabase.table("group_members")\
                .select("group_id, user_id, status")\
                .eq("group_id", group_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise remote_failure("load the membership", e)
        rows = parse_rows(MembershipRow, result.data, "the membership")
        return rows[0] if rows else None

    def _membership_rows(self, group_ids: List[str]) -> Dict[str, List[MembershipRow]]:
        try:
            result = self.supabase.table("group_members")\
                .select("group_id, user_id, status")\
                .in_("group_id", group_ids)\
                .execute()
        except Exception as e:
            raise remote_failure("load the group members", e)
        out: Dict[str, List[MembershipRow]] = {}
        for row in parse_rows(MembershipRow, result.data, "the group members"):
            out.setdefault(row.group_id, []).append(row)
        return out

    def _write_membership(
        self, group_id: str, user_id: str, status: MemberStatus, message: Optional[str], action: str
    ) -> None:
        # A stale rejected row is reused, never duplicated.
        try:
            self.supabase.table("group_members").upsert({
                "group_id": group_id,
                "user_id": user_id,
                "status": status.value,
                "join_message": message,
                "role": "member"
            }, on_conflict=MEMBERSHIP_CONFLICT).execute()
        except Exception as e:
            raise remote_failure(action, e)

    def _view(self, group: GroupRow, rows: List[MembershipRow], viewer_id: Optional[str]) -> GroupView:
        status = viewer_status(rows, viewer_id)
        access = decide(group.is_private, group.created_by, viewer_id, status)
        counts = count_memberships(rows)
        return GroupView(
            **group.model_dump(),
            member_count=counts.member_count,
            pending_count=counts.pending_count if access.can_moderate else None,
            viewer_status=status,
            affordance=access.affordance,
            can_enter=access.can_enter,
            can_moderate=access.can_moderate
        )
