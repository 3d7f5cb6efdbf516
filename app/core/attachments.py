"""Upload size policy, applied before anything is sent to storage."""

import os
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from app.config.settings import settings

MEGABYTE = 1024 * 1024


class SizeClass(str, Enum):
    IMAGE = "image"
    FILE = "file"


class UploadSurface(str, Enum):
    AVATAR = "avatar"
    POST_IMAGE = "post_image"
    COMMENT_IMAGE = "comment_image"
    GROUP_COVER = "group_cover"
    GROUP_POST_FILE = "group_post_file"
    TASK_FILE = "task_file"


# surface -> (bucket, size class)
SURFACES: Dict[UploadSurface, Tuple[str, SizeClass]] = {
    UploadSurface.AVATAR: ("avatars", SizeClass.IMAGE),
    UploadSurface.POST_IMAGE: ("images", SizeClass.IMAGE),
    UploadSurface.COMMENT_IMAGE: ("images", SizeClass.IMAGE),
    UploadSurface.GROUP_COVER: ("images", SizeClass.IMAGE),
    UploadSurface.GROUP_POST_FILE: ("task_files", SizeClass.FILE),
    UploadSurface.TASK_FILE: ("task_files", SizeClass.FILE),
}


class AttachmentError(ValueError):
    pass


class AttachmentTooLarge(AttachmentError):
    def __init__(self, filename: str, limit_bytes: int):
        self.filename = filename
        self.limit_bytes = limit_bytes
        if limit_bytes >= MEGABYTE:
            readable = f"{limit_bytes // MEGABYTE} MB"
        else:
            readable = f"{limit_bytes // 1024} KB"
        super().__init__(f"The file '{filename}' exceeds the maximum allowed size of {readable}.")


@dataclass(frozen=True)
class AcceptedAttachment:
    surface: UploadSurface
    bucket: str
    path: str
    filename: str
    content_type: str
    size: int

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


class AttachmentPolicy:
    """Maps every upload surface to a bucket and one of the configured size limits."""

    def __init__(self, max_image_bytes: int, max_file_bytes: int):
        self.limits = {
            SizeClass.IMAGE: max_image_bytes,
            SizeClass.FILE: max_file_bytes,
        }

    @classmethod
    def from_settings(cls) -> "AttachmentPolicy":
        return cls(
            max_image_bytes=settings.attachment_max_image_mb * MEGABYTE,
            max_file_bytes=settings.attachment_max_file_mb * MEGABYTE,
        )

    def limit_for(self, surface: UploadSurface) -> int:
        return self.limits[SURFACES[surface][1]]

    def accept(
        self,
        surface: UploadSurface,
        filename: Optional[str],
        content_type: Optional[str],
        size: int,
        prefix: str,
        stem: Optional[str] = None,
    ) -> AcceptedAttachment:
        """Validate a candidate file and decide where it will be stored.

        `stem` fixes the stored file name (e.g. a user's single avatar); otherwise
        a timestamped unique name is generated under `prefix`.
        """
        if not filename:
            raise AttachmentError("The uploaded file has no name.")
        if size <= 0:
            raise AttachmentError(f"The file '{filename}' is empty.")
        limit = self.limit_for(surface)
        if size > limit:
            raise AttachmentTooLarge(filename, limit)

        bucket = SURFACES[surface][0]
        ext = os.path.splitext(filename)[1].lower()
        if stem is None:
            stem = f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"
        return AcceptedAttachment(
            surface=surface,
            bucket=bucket,
            path=f"{prefix}/{stem}{ext}",
            filename=filename,
            content_type=content_type or "application/octet-stream",
            size=size,
        )


def get_attachment_policy() -> AttachmentPolicy:
    return AttachmentPolicy.from_settings()
