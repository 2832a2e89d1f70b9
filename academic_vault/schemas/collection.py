from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime
from .file import Visibility


class Collection(BaseModel):
    id: str
    owner_id: str
    title: str
    visibility: Visibility = Visibility.PRIVATE
    file_ids: List[str] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CollectionCreate(BaseModel):
    title: str = Field(..., max_length=255)
    visibility: Optional[Visibility] = None
