import hashlib
import time
import logging
from supabase import Client
from coderplex.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    SessionResponse, AccountDeletedResponse
)
from coderplex.modules.profiles.service import ProfileService, COMMUNITY_ROUTE
from coderplex.modules.follows.service import FollowService
from fastapi import HTTPException
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

ONBOARDING_ROUTE = "/onboarding"

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


def redirect_for(onboarding_completed: bool) -> str:
    """Client route a signed-in user lands on."""
    return COMMUNITY_ROUTE if onboarding_completed else ONBOARDING_ROUTE


def _display_name(user_metadata: Optional[Dict[str, Any]]) -> Optional[str]:
    metadata = user_metadata or {}
    return metadata.get("name") or metadata.get("full_name")


class AuthService:
    def __init__(self, supabase: Client, session_client: Optional[Client] = None):
        self.supabase = supabase
        # sign_up / sign_in attach a session to the client they run on, so they
        # get a per-request client instead of the shared one
        self.session_client = session_client or supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user using Supabase Auth"""
        try:
            user_metadata = {}
            if register_data.name:
                user_metadata["name"] = register_data.name

            auth_response = self.session_client.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            logger.info("Registered user %s", auth_response.user.id)
            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                message="User registered successfully"
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user, make sure a profile row exists and pick the landing route"""
        try:
            auth_response = self.session_client.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

        user = auth_response.user
        profile = ProfileService(self.session_client).ensure_profile(user.id, name=_display_name(user.user_metadata))
        completed = bool(profile.get("onboarding_completed"))
        return TokenResponse(
            access_token=auth_response.session.access_token,
            token_type="bearer",
            user_id=user.id,
            email=user.email or login_data.email,
            onboarding_completed=completed,
            redirect_to=redirect_for(completed)
        )

    def resolve_session(self, user_data: Dict[str, Any]) -> SessionResponse:
        """Auth callback for an already issued token (e.g. email confirmation redirect)"""
        profile = ProfileService(self.supabase).ensure_profile(
            user_data["id"], name=_display_name(user_data.get("user_metadata"))
        )
        completed = bool(profile.get("onboarding_completed"))
        return SessionResponse(
            user_id=user_data["id"],
            email=user_data.get("email"),
            onboarding_completed=completed,
            redirect_to=redirect_for(completed)
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
                "created_at": user.created_at,
                "updated_at": user.updated_at
            }
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def logout(self, token: str) -> bool:
        """Revoke the token's session server-side"""
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            # Access JWTs stay valid until expiry; this revokes the refresh tokens
            self.supabase.auth.admin.sign_out(token)
            return True
        except Exception as e:
            logger.warning("Supabase sign_out failed: %s", e)
            return False

    def delete_account(self, user_id: str, admin_client: Optional[Client], avatar_storage) -> AccountDeletedResponse:
        """Remove follow edges, profile row, avatar and finally the auth user.

        Table writes go through the service_role client; RLS would otherwise
        turn the deletes into silent no-ops.
        """
        if admin_client is None:
            raise HTTPException(
                status_code=500,
                detail="Service role key not configured. Cannot delete account."
            )
        try:
            row = admin_client.table("profiles")\
                .select("avatar_url")\
                .eq("user_id", user_id)\
                .maybe_single()\
                .execute()
            has_profile = bool(row and row.data)
            avatar_path = row.data.get("avatar_url") if has_profile else None

            FollowService(admin_client).remove_all_edges(user_id)

            deleted = admin_client.table("profiles")\
                .delete()\
                .eq("user_id", user_id)\
                .execute()
            if has_profile and not deleted.data:
                raise HTTPException(status_code=500, detail="Failed to delete profile")

            if avatar_path:
                avatar_storage.delete_file(avatar_path)

            admin_client.auth.admin.delete_user(user_id)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Failed to delete account: {str(e)}")

        for key in [k for k, (data, _) in _AUTH_USER_CACHE.items() if data.get("id") == user_id]:
            del _AUTH_USER_CACHE[key]
        logger.info("Deleted account %s", user_id)
        return AccountDeletedResponse(user_id=user_id, message="User deleted successfully")
