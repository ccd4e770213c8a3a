from supabase import Client
from coderplex.database.supabase_client import is_unique_violation
from coderplex.modules.profiles.schemas import (
    OnboardingRequest, ProfileUpdate, ProfileResponse,
    CommunityProfileResponse, PublicProfileResponse, OnboardingResponse
)
from coderplex.modules.profiles.search import filter_profiles, skill_tags
from coderplex.modules.follows.service import FollowService
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

COMMUNITY_ROUTE = "/community"

# Columns the owner may never write directly
_PROTECTED_COLUMNS = ("user_id", "avatar_url", "followers_count", "following_count", "onboarding_completed")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProfileService:
    def __init__(self, supabase: Client, avatar_storage=None):
        self.supabase = supabase
        self.avatar_storage = avatar_storage

    def get_row(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("profiles")\
            .select("*")\
            .eq("user_id", user_id)\
            .maybe_single()\
            .execute()
        # maybe_single() yields no response object at all on some client versions
        if not result or not result.data:
            return None
        return result.data

    def _signed_avatar(self, path: Optional[str]) -> Optional[str]:
        if not path or self.avatar_storage is None:
            return None
        return self.avatar_storage.signed_url(path)

    def _to_response(self, row: Dict[str, Any]) -> ProfileResponse:
        return ProfileResponse(**row, avatar_signed_url=self._signed_avatar(row.get("avatar_url")))

    def ensure_profile(self, user_id: str, name: Optional[str] = None) -> Dict[str, Any]:
        """Return the user's profile row, inserting a blank one on first sign-in"""
        try:
            existing = self.get_row(user_id)
            if existing:
                return existing

            now = _now()
            result = self.supabase.table("profiles").insert({
                "user_id": user_id,
                "name": name,
                "is_student": False,
                "is_employed": False,
                "is_freelance": False,
                "followers_count": 0,
                "following_count": 0,
                "onboarding_completed": False,
                "created_at": now,
                "updated_at": now
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create profile")

            logger.info("Created profile for %s", user_id)
            return result.data[0]
        except HTTPException:
            raise
        except Exception as e:
            # A concurrent sign-in inserted the row between our read and insert
            if is_unique_violation(e):
                existing = self.get_row(user_id)
                if existing:
                    return existing
            raise HTTPException(status_code=500, detail=str(e))

    def get_my_profile(self, user_id: str) -> ProfileResponse:
        """Get the current user's own profile"""
        try:
            row = self.get_row(user_id)
            if not row:
                raise HTTPException(status_code=404, detail="Profile not found")
            return self._to_response(row)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def complete_onboarding(self, user_id: str, form: OnboardingRequest) -> OnboardingResponse:
        """Write the onboarding form, creating the row when sign-in did not"""
        try:
            values = form.model_dump()
            now = _now()
            existing = self.get_row(user_id)

            if existing:
                result = self.supabase.table("profiles")\
                    .update({**values, "onboarding_completed": True, "updated_at": now})\
                    .eq("user_id", user_id)\
                    .execute()
            else:
                result = self.supabase.table("profiles").insert({
                    "user_id": user_id,
                    **values,
                    "onboarding_completed": True,
                    "created_at": now,
                    "updated_at": now
                }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to save profile")

            logger.info("Onboarding completed for %s", user_id)
            return OnboardingResponse(
                profile=self._to_response(result.data[0]),
                redirect_to=COMMUNITY_ROUTE
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error saving onboarding profile for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to save profile. Please try again.")

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update only the fields the client sent"""
        try:
            update_data = profile_data.model_dump(exclude_unset=True)
            for column in ("name", "role", "is_student", "is_employed", "is_freelance"):
                if column in update_data and update_data[column] is None:
                    del update_data[column]
            for column in _PROTECTED_COLUMNS:
                update_data.pop(column, None)
            update_data["updated_at"] = _now()

            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("user_id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")

            return self._to_response(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def set_avatar_path(self, user_id: str, path: Optional[str]) -> ProfileResponse:
        try:
            result = self.supabase.table("profiles")\
                .update({"avatar_url": path, "updated_at": _now()})\
                .eq("user_id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Profile not found")
            return self._to_response(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_public_profile(self, user_id: str, viewer_id: Optional[str] = None) -> PublicProfileResponse:
        """Read-only profile of any member, with follow state for a signed-in viewer"""
        try:
            row = self.get_row(user_id)
            if not row:
                raise HTTPException(status_code=404, detail="Profile not found")

            is_own = viewer_id == user_id
            following = False
            if viewer_id and not is_own:
                following = FollowService(self.supabase).is_following(viewer_id, user_id)

            return PublicProfileResponse(
                **row,
                avatar_signed_url=self._signed_avatar(row.get("avatar_url")),
                is_following=following,
                skill_tags=skill_tags(row.get("skills")),
                is_own_profile=is_own
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_community(
        self,
        viewer_id: str,
        query: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[CommunityProfileResponse]:
        """Everyone but the viewer, newest first, optionally narrowed by a search query"""
        try:
            base = self.supabase.table("profiles")\
                .select("*")\
                .neq("user_id", viewer_id)\
                .order("created_at", desc=True)

            if query and query.strip():
                # Search spans the whole directory, so page after filtering
                rows = filter_profiles(base.execute().data or [], query)[offset:offset + limit]
            else:
                rows = base.limit(limit).offset(offset).execute().data or []

            followed = FollowService(self.supabase).following_ids(
                viewer_id, [r["user_id"] for r in rows]
            )
            return [
                CommunityProfileResponse(
                    **row,
                    avatar_signed_url=self._signed_avatar(row.get("avatar_url")),
                    is_following=row["user_id"] in followed,
                    skill_tags=skill_tags(row.get("skills"))
                )
                for row in rows
            ]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
