from pydantic import BaseModel, field_validator
from typing import Optional, Dict, Any
from enum import Enum


class Role(str, Enum):
    ADMIN = "Admin"
    STUDENT = "Student"
    GUEST = "Guest"


class UserProfile(BaseModel):
    id: str
    display_name: Optional[str] = None
    role: Role = Role.STUDENT
    # Free-form; currently only `sidebar_collapsed`
    settings: Dict[str, Any] = {}

    class Config:
        from_attributes = True

    @field_validator("settings", mode="before")
    @classmethod
    def default_settings(cls, v):
        return v or {}


class SettingsUpdate(BaseModel):
    sidebar_collapsed: Optional[bool] = None
