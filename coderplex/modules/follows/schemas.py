from pydantic import BaseModel
from coderplex.modules.profiles.schemas import ProfileResponse


class FollowStatusResponse(BaseModel):
    """State of the target profile after a follow/unfollow, for reconciling an optimistic toggle"""
    user_id: str
    is_following: bool
    followers_count: int = 0
    following_count: int = 0


class FollowUserResponse(ProfileResponse):
    is_current_user: bool = False
