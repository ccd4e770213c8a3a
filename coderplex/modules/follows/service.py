from supabase import Client
from coderplex.database.supabase_client import is_unique_violation
from coderplex.modules.follows.schemas import FollowStatusResponse, FollowUserResponse
from typing import Iterable, List, Optional, Set
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class FollowService:
    def __init__(self, supabase: Client, avatar_storage=None):
        self.supabase = supabase
        self.avatar_storage = avatar_storage

    def _get_counts(self, user_id: str) -> Optional[dict]:
        result = self.supabase.table("profiles")\
            .select("user_id, followers_count, following_count")\
            .eq("user_id", user_id)\
            .maybe_single()\
            .execute()
        return result.data if result and result.data else None

    def _adjust_counter(self, user_id: str, column: str, delta: int) -> None:
        """Read-modify-write of a denormalized counter. Failures only log."""
        try:
            row = self.supabase.table("profiles")\
                .select(column)\
                .eq("user_id", user_id)\
                .maybe_single()\
                .execute()
            if not row or not row.data:
                logger.warning("Cannot adjust %s: profile %s not found", column, user_id)
                return
            value = max(0, (row.data.get(column) or 0) + delta)
            self.supabase.table("profiles")\
                .update({column: value})\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.warning("Failed to adjust %s for %s: %s", column, user_id, e)

    def _status(self, target_id: str, is_following: bool) -> FollowStatusResponse:
        counts = self._get_counts(target_id) or {}
        return FollowStatusResponse(
            user_id=target_id,
            is_following=is_following,
            followers_count=counts.get("followers_count") or 0,
            following_count=counts.get("following_count") or 0
        )

    def is_following(self, follower_id: str, following_id: str) -> bool:
        result = self.supabase.table("follows")\
            .select("id")\
            .eq("follower_id", follower_id)\
            .eq("following_id", following_id)\
            .limit(1)\
            .execute()
        return bool(result.data)

    def following_ids(self, follower_id: str, candidate_ids: Optional[Iterable[str]] = None) -> Set[str]:
        """Ids followed by follower_id, optionally restricted to candidate_ids (one query per page)"""
        query = self.supabase.table("follows")\
            .select("following_id")\
            .eq("follower_id", follower_id)
        if candidate_ids is not None:
            candidate_ids = list(candidate_ids)
            if not candidate_ids:
                return set()
            query = query.in_("following_id", candidate_ids)
        result = query.execute()
        return {r["following_id"] for r in result.data or []}

    def follow(self, follower_id: str, target_id: str) -> FollowStatusResponse:
        """Create the edge if missing, then bump both counters"""
        if follower_id == target_id:
            raise HTTPException(status_code=400, detail="Cannot follow yourself")
        try:
            if not self._get_counts(target_id):
                raise HTTPException(status_code=404, detail="Profile not found")

            if self.is_following(follower_id, target_id):
                return self._status(target_id, True)

            result = self.supabase.table("follows").insert({
                "follower_id": follower_id,
                "following_id": target_id
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to follow user")

            self._adjust_counter(target_id, "followers_count", 1)
            self._adjust_counter(follower_id, "following_count", 1)
            logger.info("%s followed %s", follower_id, target_id)
            return self._status(target_id, True)
        except HTTPException:
            raise
        except Exception as e:
            # Lost a race with a concurrent follow of the same pair
            if is_unique_violation(e):
                return self._status(target_id, True)
            raise HTTPException(status_code=500, detail=str(e))

    def unfollow(self, follower_id: str, target_id: str) -> FollowStatusResponse:
        """Delete the edge if present, then decrement both counters"""
        if follower_id == target_id:
            raise HTTPException(status_code=400, detail="Cannot unfollow yourself")
        try:
            if not self._get_counts(target_id):
                raise HTTPException(status_code=404, detail="Profile not found")

            result = self.supabase.table("follows")\
                .delete()\
                .eq("follower_id", follower_id)\
                .eq("following_id", target_id)\
                .execute()

            if result.data:
                self._adjust_counter(target_id, "followers_count", -1)
                self._adjust_counter(follower_id, "following_count", -1)
                logger.info("%s unfollowed %s", follower_id, target_id)
            return self._status(target_id, False)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def status(self, viewer_id: str, target_id: str) -> FollowStatusResponse:
        try:
            if not self._get_counts(target_id):
                raise HTTPException(status_code=404, detail="Profile not found")
            return self._status(target_id, self.is_following(viewer_id, target_id))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def toggle(self, follower_id: str, target_id: str) -> FollowStatusResponse:
        if self.is_following(follower_id, target_id):
            return self.unfollow(follower_id, target_id)
        return self.follow(follower_id, target_id)

    def _list_edge_profiles(self, user_id: str, match_column: str, other_column: str,
                            viewer_id: Optional[str]) -> List[FollowUserResponse]:
        try:
            if not self._get_counts(user_id):
                raise HTTPException(status_code=404, detail="Profile not found")

            # 1. Ids on the other end of the edges, newest first
            edges = self.supabase.table("follows")\
                .select(f"{other_column}, created_at")\
                .eq(match_column, user_id)\
                .order("created_at", desc=True)\
                .execute()
            ids = [e[other_column] for e in edges.data or []]
            if not ids:
                return []

            # 2. Their profiles, kept in edge order
            profiles = self.supabase.table("profiles")\
                .select("*")\
                .in_("user_id", ids)\
                .execute()
            by_id = {p["user_id"]: p for p in profiles.data or []}

            users = []
            for other_id in ids:
                row = by_id.get(other_id)
                if row is None:
                    continue
                users.append(FollowUserResponse(
                    **row,
                    avatar_signed_url=self._signed_avatar(row.get("avatar_url")),
                    is_current_user=other_id == viewer_id
                ))
            return users
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _signed_avatar(self, path: Optional[str]) -> Optional[str]:
        if not path or self.avatar_storage is None:
            return None
        return self.avatar_storage.signed_url(path)

    def list_followers(self, user_id: str, viewer_id: Optional[str] = None) -> List[FollowUserResponse]:
        """Profiles following user_id"""
        return self._list_edge_profiles(user_id, "following_id", "follower_id", viewer_id)

    def list_following(self, user_id: str, viewer_id: Optional[str] = None) -> List[FollowUserResponse]:
        """Profiles user_id follows"""
        return self._list_edge_profiles(user_id, "follower_id", "following_id", viewer_id)

    def remove_all_edges(self, user_id: str) -> int:
        """Drop every edge touching user_id (account deletion), fixing counterpart counters"""
        outgoing = self.supabase.table("follows")\
            .select("following_id")\
            .eq("follower_id", user_id)\
            .execute()
        incoming = self.supabase.table("follows")\
            .select("follower_id")\
            .eq("following_id", user_id)\
            .execute()

        for edge in outgoing.data or []:
            self._adjust_counter(edge["following_id"], "followers_count", -1)
        for edge in incoming.data or []:
            self._adjust_counter(edge["follower_id"], "following_count", -1)

        self.supabase.table("follows").delete().eq("follower_id", user_id).execute()
        self.supabase.table("follows").delete().eq("following_id", user_id).execute()
        return len(outgoing.data or []) + len(incoming.data or [])
