"""Community directory text search."""
from typing import Any, Dict, Iterable, List, Optional

SEARCH_FIELDS = ("name", "role", "company", "skills")


def split_skills(skills: Optional[str]) -> List[str]:
    if not skills:
        return []
    return [s.strip() for s in skills.split(",") if s.strip()]


def skill_tags(skills: Optional[str], limit: int = 3) -> List[str]:
    """First few skills, as shown on a directory card."""
    return split_skills(skills)[:limit]


def matches_query(profile: Dict[str, Any], query: Optional[str]) -> bool:
    needle = (query or "").strip().lower()
    if not needle:
        return True
    return any(needle in (profile.get(field) or "").lower() for field in SEARCH_FIELDS)


def filter_profiles(profiles: Iterable[Dict[str, Any]], query: Optional[str]) -> List[Dict[str, Any]]:
    return [p for p in profiles if matches_query(p, query)]
