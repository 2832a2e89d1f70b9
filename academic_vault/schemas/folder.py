from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from .file import Visibility


class Folder(BaseModel):
    id: str
    owner_id: str
    title: str
    parent_id: Optional[str] = None
    visibility: Visibility = Visibility.PRIVATE
    # Ancestor ids from the root down to the immediate parent
    path: List[str] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class FolderCreate(BaseModel):
    title: str = Field(..., max_length=255)
    parent_id: Optional[str] = None
