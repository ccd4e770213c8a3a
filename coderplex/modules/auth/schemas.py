from pydantic import BaseModel, EmailStr
from typing import Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str
    onboarding_completed: bool = False
    redirect_to: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class SessionResponse(BaseModel):
    user_id: str
    email: Optional[str] = None
    onboarding_completed: bool
    redirect_to: str


class AccountDeletedResponse(BaseModel):
    user_id: str
    message: str
