from fastapi import APIRouter, Depends
from coderplex.core.dependencies import get_current_user, get_optional_user, require_onboarded_user
from coderplex.database.supabase_client import get_supabase
from coderplex.modules.avatars.service import get_avatar_storage
from coderplex.modules.follows.schemas import FollowStatusResponse, FollowUserResponse
from coderplex.modules.follows.service import FollowService
from supabase import Client
from typing import Dict, List, Optional

router = APIRouter(prefix="/follows", tags=["follows"])


def get_follow_service(
    supabase: Client = Depends(get_supabase),
    avatar_storage=Depends(get_avatar_storage)
) -> FollowService:
    return FollowService(supabase, avatar_storage)


@router.post("/{user_id}", response_model=FollowStatusResponse)
async def follow_user(
    user_id: str,
    user_data: Dict = Depends(require_onboarded_user),
    service: FollowService = Depends(get_follow_service)
):
    """Follow a member (no-op when already following)"""
    return service.follow(user_data["id"], user_id)


@router.delete("/{user_id}", response_model=FollowStatusResponse)
async def unfollow_user(
    user_id: str,
    user_data: Dict = Depends(require_onboarded_user),
    service: FollowService = Depends(get_follow_service)
):
    """Unfollow a member (no-op when not following)"""
    return service.unfollow(user_data["id"], user_id)


@router.post("/{user_id}/toggle", response_model=FollowStatusResponse)
async def toggle_follow(
    user_id: str,
    user_data: Dict = Depends(require_onboarded_user),
    service: FollowService = Depends(get_follow_service)
):
    """Follow/unfollow button: flip the current state"""
    return service.toggle(user_data["id"], user_id)


@router.get("/{user_id}/status", response_model=FollowStatusResponse)
async def follow_status(
    user_id: str,
    user_data: Dict = Depends(get_current_user),
    service: FollowService = Depends(get_follow_service)
):
    """Whether the current user follows user_id, with the target's counters"""
    return service.status(user_data["id"], user_id)


@router.get("/{user_id}/followers", response_model=List[FollowUserResponse])
async def list_followers(
    user_id: str,
    viewer: Optional[Dict] = Depends(get_optional_user),
    service: FollowService = Depends(get_follow_service)
):
    """Members following user_id"""
    return service.list_followers(user_id, viewer_id=viewer["id"] if viewer else None)


@router.get("/{user_id}/following", response_model=List[FollowUserResponse])
async def list_following(
    user_id: str,
    viewer: Optional[Dict] = Depends(get_optional_user),
    service: FollowService = Depends(get_follow_service)
):
    """Members user_id follows"""
    return service.list_following(user_id, viewer_id=viewer["id"] if viewer else None)
