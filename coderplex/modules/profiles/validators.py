"""Field rules shared by the onboarding form and the profile editor.

Every validator accepts None (field not supplied) and returns None for blank
optional values so they are stored as null.
"""
from typing import Optional, Tuple

GITHUB_PREFIX = "https://github.com/"
LINKEDIN_PREFIXES = ("https://linkedin.com/in/", "https://www.linkedin.com/in/")
WEBSITE_PREFIXES = ("http://", "https://")


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _bounded(value: str, min_len: int, max_len: int, label: str) -> str:
    if len(value) < min_len:
        raise ValueError(f"{label} must be at least {min_len} characters")
    if len(value) > max_len:
        raise ValueError(f"{label} is too long")
    return value


def validate_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return _bounded(value.strip(), 2, 50, "Name")


def validate_role(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return _bounded(value.strip(), 2, 50, "Role")


def validate_bio(value: Optional[str]) -> Optional[str]:
    value = _blank_to_none(value)
    if value is not None and len(value) > 500:
        raise ValueError("Bio must be less than 500 characters")
    return value


def validate_company(value: Optional[str]) -> Optional[str]:
    value = _blank_to_none(value)
    if value is not None and len(value) > 50:
        raise ValueError("Company name is too long")
    return value


def validate_skills(value: Optional[str]) -> Optional[str]:
    value = _blank_to_none(value)
    if value is None:
        return None
    if len(value) > 200:
        raise ValueError("Skills list is too long")
    if not all(skill.strip() for skill in value.split(",")):
        raise ValueError("Skills should be comma-separated values")
    return value


def _url(value: Optional[str], prefixes: Tuple[str, ...], message: str, label: str) -> Optional[str]:
    value = _blank_to_none(value)
    if value is None:
        return None
    if len(value) > 100:
        raise ValueError(f"{label} is too long")
    if not value.startswith(prefixes):
        raise ValueError(message)
    return value


def validate_github(value: Optional[str]) -> Optional[str]:
    return _url(value, (GITHUB_PREFIX,), "GitHub URL must start with https://github.com/", "GitHub URL")


def validate_linkedin(value: Optional[str]) -> Optional[str]:
    return _url(value, LINKEDIN_PREFIXES, "LinkedIn URL must be a valid profile URL", "LinkedIn URL")


def validate_website(value: Optional[str]) -> Optional[str]:
    return _url(value, WEBSITE_PREFIXES, "Website must start with http:// or https://", "Website URL")
