"""Avatars in a Supabase Storage bucket (the default backend)."""
import logging
from typing import Optional

from supabase import Client

from coderplex.config import settings

logger = logging.getLogger(__name__)


class SupabaseAvatarStorage:
    def __init__(self, supabase: Client, bucket_name: Optional[str] = None):
        self.supabase = supabase
        self.bucket_name = bucket_name or settings.avatars_bucket

    def _bucket(self):
        return self.supabase.storage.from_(self.bucket_name)

    def upload_file(self, file_content: bytes, key: str, content_type: str) -> str:
        """Upload avatar and return its object path."""
        self._bucket().upload(
            key,
            file_content,
            {"content-type": content_type, "upsert": "true"}
        )
        return key

    def delete_file(self, key: str) -> bool:
        try:
            self._bucket().remove([key])
            return True
        except Exception as e:
            logger.warning("Failed to delete avatar from Supabase Storage (%s): %s", key, e)
            return False

    def signed_url(self, key: str, expires_in: Optional[int] = None) -> Optional[str]:
        """Time-limited URL; None when signing fails so clients show a placeholder."""
        try:
            data = self._bucket().create_signed_url(key, expires_in or settings.signed_url_ttl)
        except Exception as e:
            logger.warning("Error getting avatar URL (%s): %s", key, e)
            return None
        if not data:
            return None
        return data.get("signedURL") or data.get("signedUrl")
