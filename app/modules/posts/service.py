from supabase import Client
from app.modules.posts.models import POST_SELECT, COMMENT_SELECT
from app.modules.posts.schemas import (
    PostRow, PostResponse, CommentRow, CommentCreatedResponse, LikeStateResponse
)
from app.modules.posts import interactions
from app.modules.posts.interactions import LikeToggle
from app.core.attachments import AcceptedAttachment
from app.core.errors import remote_failure, parse_rows, parse_row
from app.core.storage import SupabaseStorage
from typing import List, Optional, Tuple
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class PostService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_post(self, post_id: str) -> PostRow:
        """Get post by ID"""
        try:
            result = self.supabase.table("posts")\
                .select(POST_SELECT)\
                .eq("id", post_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise remote_failure("load the post", e)
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Post not found")
        return parse_row(PostRow, result.data, "the post")

    def list_feed(self, viewer_id: Optional[str] = None, limit: int = 20, offset: int = 0) -> List[PostResponse]:
        """Main feed: posts that do not belong to a group, newest first"""
        try:
            result = self.supabase.table("posts")\
                .select(POST_SELECT)\
                .is_("group_id", "null")\
                .order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
        except Exception as e:
            raise remote_failure("load the feed", e)
        return self._with_meta(parse_rows(PostRow, result.data, "the feed"), viewer_id)

    def list_group_posts(self, group_id: str, viewer_id: Optional[str] = None) -> List[PostResponse]:
        try:
            result = self.supabase.table("posts")\
                .select(POST_SELECT)\
                .eq("group_id", group_id)\
                .order("created_at", desc=True)\
                .execute()
        except Exception as e:
            raise remote_failure("load the group posts", e)
        return self._with_meta(parse_rows(PostRow, result.data, "the group posts"), viewer_id)

    def list_user_posts(self, author_id: str, viewer_id: Optional[str] = None) -> List[PostResponse]:
        """Posts written by one user outside of groups"""
        try:
            result = self.supabase.table("posts")\
                .select(POST_SELECT)\
                .eq("user_id", author_id)\
                .is_("group_id", "null")\
                .order("created_at", desc=True)\
                .execute()
        except Exception as e:
            raise remote_failure("load the user's posts", e)
        return self._with_meta(parse_rows(PostRow, result.data, "the user's posts"), viewer_id)

    def create_post(
        self,
        user_id: str,
        content: str,
        attachment: Optional[Tuple[AcceptedAttachment, bytes]] = None,
        group_id: Optional[str] = None
    ) -> PostResponse:
        """Create a post, uploading its attachment first"""
        content = (content or "").strip()
        if not content and attachment is None:
            raise HTTPException(status_code=400, detail="A post needs text or an attachment")

        post_data = {
            "user_id": user_id,
            "content": content,
            "image_url": None,
        }
        if group_id:
            post_data["group_id"] = group_id
        if attachment is not None:
            accepted, file_content = attachment
            public_url = SupabaseStorage(self.supabase).upload_file(accepted, file_content)
            if accepted.is_image:
                post_data["image_url"] = public_url
            else:
                post_data["file_url"] = public_url
                post_data["file_name"] = accepted.filename

        try:
            result = self.supabase.table("posts").insert(post_data).execute()
        except Exception as e:
            raise remote_failure("publish the post", e)
        if not result.data:
            raise HTTPException(status_code=502, detail="Could not publish the post. Please try again.")

        post = self.get_post(result.data[0]["id"])
        logger.info(f"Post {post.id} created by {user_id}" + (f" in group {group_id}" if group_id else ""))
        return PostResponse(**post.model_dump())

    def toggle_like(self, post_id: str, user_id: str) -> LikeStateResponse:
        """Like or unlike a post; at most one toggle per (post, user) runs at a time"""
        self.get_post(post_id)
        if not interactions.begin(post_id, user_id):
            raise HTTPException(status_code=409, detail="A like update for this post is already in progress")
        try:
            toggle = LikeToggle(
                post_id, user_id,
                liked=self._is_liked(post_id, user_id),
                count=self._like_count(post_id)
            )
            try:
                toggle.toggle(lambda liked: self._write_like(post_id, user_id, liked))
            except Exception as e:
                raise remote_failure("update the like", e)
            return LikeStateResponse(
                post_id=post_id,
                liked=toggle.liked,
                like_count=toggle.count,
                phase=toggle.phase.value
            )
        finally:
            interactions.finish(post_id, user_id)

    def list_comments(self, post_id: str) -> List[CommentRow]:
        """Comments of a post, oldest first"""
        try:
            result = self.supabase.table("post_comments")\
                .select(COMMENT_SELECT)\
                .eq("post_id", post_id)\
                .order("created_at", desc=False)\
                .execute()
        except Exception as e:
            raise remote_failure("load the comments", e)
        return parse_rows(CommentRow, result.data, "the comments")

    def add_comment(
        self,
        post_id: str,
        user_id: str,
        content: str,
        attachment: Optional[Tuple[AcceptedAttachment, bytes]] = None
    ) -> CommentCreatedResponse:
        """Insert a comment; it is only returned once the server assigned its id"""
        content = (content or "").strip()
        if not content and attachment is None:
            raise HTTPException(status_code=400, detail="Comment cannot be empty")
        self.get_post(post_id)

        image_url = None
        if attachment is not None:
            accepted, file_content = attachment
            image_url = SupabaseStorage(self.supabase).upload_file(accepted, file_content)

        try:
            result = self.supabase.table("post_comments").insert({
                "post_id": post_id,
                "user_id": user_id,
                "content": content or None,
                "image_url": image_url
            }).execute()
            if not result.data:
                raise HTTPException(status_code=502, detail="Could not post the comment. Please try again.")
            created = self.supabase.table("post_comments")\
                .select(COMMENT_SELECT)\
                .eq("id", result.data[0]["id"])\
                .maybe_single()\
                .execute()
            count = self.supabase.table("post_comments")\
                .select("id", count="exact")\
                .eq("post_id", post_id)\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            raise remote_failure("post the comment", e)
        if not created or not created.data:
            raise HTTPException(status_code=502, detail="Could not post the comment. Please try again.")
        return CommentCreatedResponse(
            comment=parse_row(CommentRow, created.data, "the comment"),
            comment_count=count.count or 0
        )

    def _is_liked(self, post_id: str, user_id: str) -> bool:
        try:
            result = self.supabase.table("post_likes")\
                .select("post_id")\
                .eq("post_id", post_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            raise remote_failure("load the like", e)
        return bool(result.data)

    def _like_count(self, post_id: str) -> int:
        try:
            result = self.supabase.table("post_likes")\
                .select("post_id", count="exact")\
                .eq("post_id", post_id)\
                .execute()
        except Exception as e:
            raise remote_failure("load the like count", e)
        return result.count or 0

    def _write_like(self, post_id: str, user_id: str, liked: bool) -> None:
        if liked:
            self.supabase.table("post_likes").insert({"post_id": post_id, "user_id": user_id}).execute()
        else:
            self.supabase.table("post_likes").delete().match({"post_id": post_id, "user_id": user_id}).execute()

    def _with_meta(self, posts: List[PostRow], viewer_id: Optional[str]) -> List[PostResponse]:
        """Attach like/comment counts and the viewer's like flag, two queries for the whole page"""
        if not posts:
            return []
        post_ids = [p.id for p in posts]
        try:
            likes = self.supabase.table("post_likes")\
                .select("post_id, user_id")\
                .in_("post_id", post_ids)\
                .execute()
            comments = self.supabase.table("post_comments")\
                .select("post_id")\
                .in_("post_id", post_ids)\
                .execute()
        except Exception as e:
            raise remote_failure("load likes and comments", e)

        like_counts, comment_counts, liked = {}, {}, set()
        for row in likes.data or []:
            like_counts[row["post_id"]] = like_counts.get(row["post_id"], 0) + 1
            if viewer_id and row["user_id"] == viewer_id:
                liked.add(row["post_id"])
        for row in comments.data or []:
            comment_counts[row["post_id"]] = comment_counts.get(row["post_id"], 0) + 1

        return [
            PostResponse(
                **p.model_dump(),
                like_count=like_counts.get(p.id, 0),
                comment_count=comment_counts.get(p.id, 0),
                liked_by_me=p.id in liked
            )
            for p in posts
        ]
