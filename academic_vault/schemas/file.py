from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import datetime
from enum import Enum


class FileType(str, Enum):
    PDF = "pdf"
    DOCX = "docx"
    PPTX = "pptx"
    TXT = "txt"
    PNG = "png"
    JPG = "jpg"
    MP3 = "mp3"
    WAV = "wav"
    M4A = "m4a"
    MP4 = "mp4"
    MOV = "mov"


class FileStatus(str, Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    SCANNING = "scanning"
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"
    QUARANTINED = "quarantined"


class Visibility(str, Enum):
    PRIVATE = "private"
    SHARED = "shared"


class FileMeta(BaseModel):
    pages: Optional[int] = None
    duration: Optional[int] = None  # seconds
    authors: Optional[List[str]] = None
    course_code: Optional[str] = None
    storage_path: Optional[str] = None


class Flashcard(BaseModel):
    question: str
    answer: str


class ChatMessage(BaseModel):
    role: Literal["user", "model"]
    content: str


class AnalysisContent(BaseModel):
    """Cached AI artifacts attached to a file"""
    summary: Optional[str] = None
    concepts: Optional[str] = None
    questions: Optional[str] = None
    timeline: Optional[str] = None
    flashcards: Optional[List[Flashcard]] = None
    tags: Optional[List[str]] = None
    chat_history: Optional[List[ChatMessage]] = None


def _unique_in_order(values: List[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class VaultFile(BaseModel):
    id: str
    owner_id: str
    folder_id: Optional[str] = None
    title: str
    type: FileType
    size: int = Field(..., ge=0)
    status: FileStatus = FileStatus.IDLE
    progress: int = Field(0, ge=0, le=100)
    visibility: Visibility = Visibility.PRIVATE
    collection_ids: List[str] = []
    tags: List[str] = []
    created_at: datetime
    updated_at: datetime
    meta: Optional[FileMeta] = None
    ai_content: Optional[AnalysisContent] = None

    class Config:
        from_attributes = True

    @field_validator("tags", "collection_ids")
    @classmethod
    def dedupe(cls, v: List[str]) -> List[str]:
        return _unique_in_order(v)

    @model_validator(mode="after")
    def progress_matches_status(self):
        if (self.progress == 100) != (self.status == FileStatus.READY):
            raise ValueError(
                f"progress must be 100 exactly when status is ready (status={self.status.value}, progress={self.progress})"
            )
        return self

    @property
    def storage_path(self) -> Optional[str]:
        return self.meta.storage_path if self.meta else None


class FileUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    tags: Optional[List[str]] = None
    collection_ids: Optional[List[str]] = None
    visibility: Optional[Visibility] = None
    meta: Optional[FileMeta] = None
