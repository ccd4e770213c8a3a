from supabase import Client
from fastapi import Depends, HTTPException, UploadFile
from functools import lru_cache
from coderplex.config import settings
from coderplex.database.supabase_client import get_supabase
from coderplex.modules.avatars.schemas import AvatarResponse
from coderplex.modules.avatars.s3_storage import S3AvatarStorage
from coderplex.modules.avatars.supabase_storage import SupabaseAvatarStorage
from coderplex.modules.profiles.service import ProfileService
from typing import Optional
import mimetypes
import os
import uuid
import logging

logger = logging.getLogger(__name__)


@lru_cache()
def _s3_storage() -> S3AvatarStorage:
    return S3AvatarStorage()


def get_avatar_storage(supabase: Client = Depends(get_supabase)):
    """S3 when AWS credentials are configured, Supabase Storage otherwise"""
    if settings.s3_configured:
        try:
            return _s3_storage()
        except Exception as e:
            logger.warning(f"S3 storage initialization failed ({str(e)}), will use Supabase Storage")
    return SupabaseAvatarStorage(supabase)


def _extension(filename: Optional[str], content_type: str) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    if ext:
        return ext
    return mimetypes.guess_extension(content_type) or ""


class AvatarService:
    def __init__(self, supabase: Client, storage):
        self.supabase = supabase
        self.storage = storage
        self.profiles = ProfileService(supabase, storage)

    def _current_path(self, user_id: str) -> Optional[str]:
        row = self.profiles.get_row(user_id)
        if not row:
            raise HTTPException(status_code=404, detail="Profile not found")
        return row.get("avatar_url")

    def _response(self, user_id: str, path: Optional[str]) -> AvatarResponse:
        return AvatarResponse(
            user_id=user_id,
            avatar_url=path,
            signed_url=self.storage.signed_url(path) if path else None,
            expires_in=settings.signed_url_ttl if path else None
        )

    def get_avatar(self, user_id: str) -> AvatarResponse:
        """Fresh signed URL for a user's current avatar"""
        return self._response(user_id, self._current_path(user_id))

    async def upload_avatar(self, user_id: str, file: UploadFile) -> AvatarResponse:
        """Validate and store a new avatar, replacing the previous one"""
        content_type = (file.content_type or "").lower()
        if not content_type.startswith("image/"):
            raise HTTPException(status_code=415, detail="Avatar must be an image")

        file_content = await file.read()
        if not file_content:
            raise HTTPException(status_code=400, detail="Uploaded file is empty")
        if len(file_content) > settings.avatar_max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"Avatar exceeds maximum size of {settings.avatar_max_bytes // (1024 * 1024)}MB"
            )

        previous_path = self._current_path(user_id)
        key = f"{user_id}/{uuid.uuid4().hex}{_extension(file.filename, content_type)}"

        try:
            logger.info(f"Uploading avatar: {key}")
            self.storage.upload_file(file_content, key, content_type)
        except Exception as e:
            logger.error(f"Avatar upload failed: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Failed to upload avatar: {str(e)}")

        try:
            self.profiles.set_avatar_path(user_id, key)
        except HTTPException:
            self.storage.delete_file(key)
            raise

        if previous_path and previous_path != key:
            self.storage.delete_file(previous_path)

        return self._response(user_id, key)

    def delete_avatar(self, user_id: str) -> None:
        """Remove the stored avatar and clear the profile reference"""
        path = self._current_path(user_id)
        if not path:
            raise HTTPException(status_code=404, detail="No avatar set")
        self.storage.delete_file(path)
        self.profiles.set_avatar_path(user_id, None)
        logger.info(f"Removed avatar for {user_id}")
