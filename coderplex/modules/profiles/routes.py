from fastapi import APIRouter, Depends, Query
from coderplex.config import settings
from coderplex.core.dependencies import get_current_user, get_optional_user, require_onboarded_user
from coderplex.database.supabase_client import get_supabase
from coderplex.modules.avatars.service import get_avatar_storage
from coderplex.modules.profiles.schemas import (
    OnboardingRequest, OnboardingResponse, ProfileUpdate, ProfileResponse,
    CommunityProfileResponse, PublicProfileResponse, SearchConfigResponse
)
from coderplex.modules.profiles.search import SEARCH_FIELDS
from coderplex.modules.profiles.service import ProfileService
from supabase import Client
from typing import Dict, List, Optional

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(
    supabase: Client = Depends(get_supabase),
    avatar_storage=Depends(get_avatar_storage)
) -> ProfileService:
    return ProfileService(supabase, avatar_storage)


@router.get("", response_model=List[CommunityProfileResponse])
async def list_community(
    q: Optional[str] = Query(None, max_length=100, description="Matches name, role, company or skills"),
    limit: int = Query(settings.directory_page_size, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(require_onboarded_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Community directory: every other member, with follow state"""
    return service.list_community(user_data["id"], query=q, limit=limit, offset=offset)


@router.get("/search-config", response_model=SearchConfigResponse)
async def search_config():
    """Debounce interval and searchable fields shared with clients"""
    return SearchConfigResponse(debounce_ms=settings.search_debounce_ms, fields=list(SEARCH_FIELDS))


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Get the current user's profile"""
    return service.get_my_profile(user_data["id"])


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Edit the current user's profile fields"""
    return service.update_profile(user_data["id"], profile_data)


@router.post("/me/onboarding", response_model=OnboardingResponse)
async def complete_onboarding(
    form: OnboardingRequest,
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Submit the onboarding form"""
    return service.complete_onboarding(user_data["id"], form)


@router.get("/{user_id}", response_model=PublicProfileResponse)
async def get_public_profile(
    user_id: str,
    viewer: Optional[Dict] = Depends(get_optional_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Public profile page; follow state is filled in for signed-in viewers"""
    return service.get_public_profile(user_id, viewer_id=viewer["id"] if viewer else None)
