from fastapi import APIRouter, Depends, Request
from coderplex.config import settings
from coderplex.core.dependencies import (
    get_auth_service, get_current_token, get_current_user, get_sign_in_service, is_onboarded
)
from coderplex.core.rate_limit import limiter
from coderplex.database.supabase_client import get_supabase, get_service_supabase
from coderplex.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    SessionResponse, AccountDeletedResponse
)
from coderplex.modules.auth.service import AuthService
from coderplex.modules.avatars.service import get_avatar_storage
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
@limiter.limit(settings.auth_rate_limit)
async def register(
    request: Request,
    register_data: RegisterRequest,
    service: AuthService = Depends(get_sign_in_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.auth_rate_limit)
async def login(
    request: Request,
    login_data: LoginRequest,
    service: AuthService = Depends(get_sign_in_service)
):
    """Login, ensure a profile exists and return where the client should go next"""
    return service.login(login_data)


@router.get("/session", response_model=SessionResponse)
async def session(
    current_user: Dict = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service)
):
    """Auth callback: route an already signed-in user to onboarding or the community"""
    return service.resolve_session(current_user)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me")
async def me(
    current_user: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_supabase)
):
    """Get current authenticated user and whether onboarding is done"""
    return {**current_user, "onboarding_completed": is_onboarded(current_user["id"], supabase)}


@router.delete("/account", response_model=AccountDeletedResponse)
async def delete_account(
    current_user: Dict = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
    admin_client: Optional[Client] = Depends(get_service_supabase),
    avatar_storage=Depends(get_avatar_storage)
):
    """Delete the current user's profile, follows, avatar and auth account"""
    return service.delete_account(current_user["id"], admin_client, avatar_storage)
