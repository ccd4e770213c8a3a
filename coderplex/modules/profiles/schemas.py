from pydantic import BaseModel, AfterValidator
from typing import Annotated, Optional, List
from datetime import datetime
from coderplex.modules.profiles import validators

Name = Annotated[str, AfterValidator(validators.validate_name)]
Role = Annotated[str, AfterValidator(validators.validate_role)]
OptionalName = Annotated[Optional[str], AfterValidator(validators.validate_name)]
OptionalRole = Annotated[Optional[str], AfterValidator(validators.validate_role)]
Bio = Annotated[Optional[str], AfterValidator(validators.validate_bio)]
Skills = Annotated[Optional[str], AfterValidator(validators.validate_skills)]
Company = Annotated[Optional[str], AfterValidator(validators.validate_company)]
GithubUrl = Annotated[Optional[str], AfterValidator(validators.validate_github)]
LinkedinUrl = Annotated[Optional[str], AfterValidator(validators.validate_linkedin)]
WebsiteUrl = Annotated[Optional[str], AfterValidator(validators.validate_website)]


class OnboardingRequest(BaseModel):
    name: Name
    role: Role
    bio: Bio = None
    skills: Skills = None
    github: GithubUrl = None
    linkedin: LinkedinUrl = None
    company: Company = None
    website: WebsiteUrl = None
    is_student: bool = False
    is_employed: bool = False
    is_freelance: bool = False


class ProfileUpdate(BaseModel):
    name: OptionalName = None
    role: OptionalRole = None
    bio: Bio = None
    skills: Skills = None
    github: GithubUrl = None
    linkedin: LinkedinUrl = None
    company: Company = None
    website: WebsiteUrl = None
    is_student: Optional[bool] = None
    is_employed: Optional[bool] = None
    is_freelance: Optional[bool] = None


class ProfileResponse(BaseModel):
    user_id: str
    name: Optional[str] = None
    role: Optional[str] = None
    bio: Optional[str] = None
    company: Optional[str] = None
    skills: Optional[str] = None
    github: Optional[str] = None
    linkedin: Optional[str] = None
    website: Optional[str] = None
    avatar_url: Optional[str] = None
    avatar_signed_url: Optional[str] = None
    is_student: bool = False
    is_employed: bool = False
    is_freelance: bool = False
    followers_count: int = 0
    following_count: int = 0
    onboarding_completed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CommunityProfileResponse(ProfileResponse):
    is_following: bool = False
    skill_tags: List[str] = []


class PublicProfileResponse(CommunityProfileResponse):
    is_own_profile: bool = False


class OnboardingResponse(BaseModel):
    profile: ProfileResponse
    redirect_to: str


class SearchConfigResponse(BaseModel):
    debounce_ms: int
    fields: List[str]
