from fastapi import APIRouter, Depends, File, UploadFile
from coderplex.core.dependencies import get_current_user
from coderplex.database.supabase_client import get_supabase
from coderplex.modules.avatars.schemas import AvatarResponse
from coderplex.modules.avatars.service import AvatarService, get_avatar_storage
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/profiles/me/avatar", tags=["avatars"])


def get_avatar_service(
    supabase: Client = Depends(get_supabase),
    storage=Depends(get_avatar_storage)
) -> AvatarService:
    return AvatarService(supabase, storage)


@router.get("", response_model=AvatarResponse)
async def get_avatar(
    user_data: Dict = Depends(get_current_user),
    service: AvatarService = Depends(get_avatar_service)
):
    """Current avatar path with a fresh signed URL"""
    return service.get_avatar(user_data["id"])


@router.post("", response_model=AvatarResponse, status_code=201)
async def upload_avatar(
    file: UploadFile = File(...),
    user_data: Dict = Depends(get_current_user),
    service: AvatarService = Depends(get_avatar_service)
):
    """Upload a profile photo (images only, 2MB max)"""
    return await service.upload_avatar(user_data["id"], file)


@router.delete("", status_code=204)
async def delete_avatar(
    user_data: Dict = Depends(get_current_user),
    service: AvatarService = Depends(get_avatar_service)
):
    """Remove the profile photo"""
    service.delete_avatar(user_data["id"])
    return None
