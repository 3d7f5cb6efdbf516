from fastapi import HTTPException, UploadFile, status
from supabase import Client
from app.core.attachments import (
    AcceptedAttachment, AttachmentError, AttachmentPolicy, AttachmentTooLarge, UploadSurface
)
from app.core.errors import remote_failure
from typing import Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class SupabaseStorage:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def upload_file(self, attachment: AcceptedAttachment, file_content: bytes, upsert: bool = False) -> str:
        """Upload an accepted attachment and return its public URL"""
        options = {"content-type": attachment.content_type}
        if upsert:
            options["upsert"] = "true"
        try:
            bucket = self.supabase.storage.from_(attachment.bucket)
            bucket.upload(attachment.path, file_content, options)
            public_url = bucket.get_public_url(attachment.path)
        except Exception as e:
            logger.error(f"Failed to upload {attachment.path} to bucket {attachment.bucket}: {str(e)}")
            raise remote_failure("upload the file", e)
        logger.info(f"Uploaded {attachment.filename} ({attachment.size} bytes) to {attachment.bucket}/{attachment.path}")
        return public_url


async def read_upload(
    file: Optional[UploadFile],
    surface: UploadSurface,
    policy: AttachmentPolicy,
    prefix: str,
    stem: Optional[str] = None,
) -> Optional[Tuple[AcceptedAttachment, bytes]]:
    """Read an optional multipart file and run it through the policy. No storage call happens here."""
    if file is None or not file.filename:
        return None
    content = await file.read()
    try:
        accepted = policy.accept(surface, file.filename, file.content_type, len(content), prefix, stem=stem)
    except AttachmentTooLarge as e:
        logger.info(f"Rejected oversized upload {e.filename} for {surface.value}")
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
    except AttachmentError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return accepted, content
