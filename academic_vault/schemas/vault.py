from pydantic import BaseModel
from typing import Optional, List
from .file import VaultFile, Visibility
from .folder import Folder


class RejectedUpload(BaseModel):
    filename: str
    reason: str


class FailedUpload(BaseModel):
    filename: str
    error: str


class UploadBatchResult(BaseModel):
    uploaded: List[VaultFile] = []
    rejected: List[RejectedUpload] = []
    failed: List[FailedUpload] = []
    # One message for the whole batch when anything was rejected up front
    warning: Optional[str] = None


class VaultState(BaseModel):
    scope: Visibility
    current_folder_id: Optional[str] = None
    path: List[Folder] = []
    folders: List[Folder] = []
    files: List[VaultFile] = []
    selected_ids: List[str] = []
    open_file: Optional[VaultFile] = None


class NavigateRequest(BaseModel):
    folder_id: Optional[str] = None


class SelectionRequest(BaseModel):
    item_id: str


class BulkActionRequest(BaseModel):
    # Falls back to the current selection when omitted
    ids: Optional[List[str]] = None
