from pydantic import BaseModel
from typing import Optional


class AvatarResponse(BaseModel):
    user_id: str
    avatar_url: Optional[str] = None  # object path in the avatars bucket
    signed_url: Optional[str] = None
    expires_in: Optional[int] = None
