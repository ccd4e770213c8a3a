"""
Core dependencies for route protection and the onboarding gate
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from coderplex.database.supabase_client import get_session_supabase, get_supabase
from coderplex.modules.auth.service import AuthService
from supabase import Client
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

# auto_error disabled so a missing header is a 401 like any other bad token
security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_sign_in_service(
    supabase: Client = Depends(get_supabase),
    session_client: Client = Depends(get_session_supabase)
) -> AuthService:
    """AuthService for register/login, isolated from the shared client's session"""
    return AuthService(supabase, session_client)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict[str, Any]:
    """Current user info from the Supabase JWT"""
    return auth_service.get_current_user(token)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[Dict[str, Any]]:
    """Viewer for public pages: None when anonymous or the token is unusable"""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return auth_service.get_current_user(credentials.credentials)
    except HTTPException as e:
        logger.debug("Ignoring bad token on public route: %s", e.detail)
        return None


def is_onboarded(user_id: str, supabase: Client) -> bool:
    """True once the user's profile row has onboarding_completed set"""
    result = supabase.table("profiles")\
        .select("onboarding_completed")\
        .eq("user_id", user_id)\
        .maybe_single()\
        .execute()
    if not result or not result.data:
        return False
    return bool(result.data.get("onboarding_completed"))


def require_onboarded_user(
    user_data: Dict[str, Any] = Depends(get_current_user),
    supabase: Client = Depends(get_supabase)
) -> Dict[str, Any]:
    """Community features are only available after onboarding"""
    try:
        onboarded = is_onboarded(user_data["id"], supabase)
    except Exception as e:
        logger.error(f"Error checking onboarding status: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check onboarding status"
        )
    if not onboarded:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Onboarding not completed"
        )
    return user_data
