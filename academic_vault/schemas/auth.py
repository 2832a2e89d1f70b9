from pydantic import BaseModel, EmailStr
from typing import Optional, Dict, Any
from datetime import datetime
from .profile import Role, UserProfile


class UserSignUp(BaseModel):
    email: EmailStr
    password: str
    display_name: Optional[str] = None


class UserSignIn(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: str
    email: str
    email_confirmed_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_metadata: Optional[Dict[str, Any]] = None


class SessionResponse(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str
    user: UserResponse


class AuthResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    session: Optional[SessionResponse] = None
    error: Optional[str] = None


class TokenData(BaseModel):
    user_id: Optional[str] = None
    email: Optional[str] = None
    email_verified: bool = False
    display_name: Optional[str] = None


class Identity(BaseModel):
    """Authenticated user as seen by the vault: who they are and what role they hold"""
    user_id: str
    email: Optional[str] = None
    email_verified: bool = False
    role: Role = Role.STUDENT

    @property
    def is_guest(self) -> bool:
        return self.role == Role.GUEST


class SignOutResponse(BaseModel):
    success: bool
    message: str


class MeResponse(BaseModel):
    identity: Identity
    profile: UserProfile
