from fastapi import APIRouter, Depends, Form, UploadFile, File as FastAPIFile
from typing import List, Optional
import logging

from academic_vault.core.session_registry import get_vault_controller
from academic_vault.schemas.file import FileMeta, FileUpdate, VaultFile
from academic_vault.schemas.folder import Folder, FolderCreate
from academic_vault.schemas.vault import (
    BulkActionRequest,
    NavigateRequest,
    SelectionRequest,
    UploadBatchResult,
    VaultState,
)
from academic_vault.services.vault_controller import UploadItem, VaultStateController

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=VaultState)
async def get_vault_state(controller: VaultStateController = Depends(get_vault_controller)):
    """Current folder listing, breadcrumb path, selection and open file"""
    await controller.refresh()
    return controller.snapshot()


@router.post("/navigate", response_model=VaultState)
async def navigate(
    request: NavigateRequest,
    controller: VaultStateController = Depends(get_vault_controller),
):
    return await controller.navigate(request.folder_id)


@router.post("/folders", response_model=Folder)
async def create_folder(
    folder_in: FolderCreate,
    controller: VaultStateController = Depends(get_vault_controller),
):
    return await controller.create_folder(folder_in.title, folder_in.parent_id)


@router.get("/folders/all", response_model=List[Folder])
async def list_all_folders(controller: VaultStateController = Depends(get_vault_controller)):
    """Every folder the user owns, e.g. for a move-to picker"""
    return await controller.list_all_folders()


@router.post("/upload", response_model=UploadBatchResult)
async def upload_files(
    files: List[UploadFile] = FastAPIFile(...),
    folder_id: Optional[str] = Form(None),
    controller: VaultStateController = Depends(get_vault_controller),
):
    """Upload a batch into folder_id, or into the current folder when omitted"""
    items = []
    for f in files:
        # Oversized files are rejected by size alone; their bytes are never read
        too_big = f.size is not None and f.size > controller.max_upload_bytes
        items.append(UploadItem(
            filename=f.filename or "unnamed",
            content=b"" if too_big else await f.read(),
            content_type=f.content_type,
            size=f.size,
        ))
    if folder_id is None:
        return await controller.upload(items)
    return await controller.upload(items, folder_id)


@router.post("/samples", response_model=List[VaultFile])
async def add_sample_files(controller: VaultStateController = Depends(get_vault_controller)):
    return await controller.add_sample_files()


@router.post("/selection/toggle", response_model=List[str])
async def toggle_selection(
    request: SelectionRequest,
    controller: VaultStateController = Depends(get_vault_controller),
):
    return controller.toggle_selection(request.item_id)


@router.delete("/selection", response_model=List[str])
async def clear_selection(controller: VaultStateController = Depends(get_vault_controller)):
    controller.clear_selection()
    return controller.selected_ids


@router.post("/delete", response_model=VaultState)
async def bulk_delete(
    request: BulkActionRequest,
    controller: VaultStateController = Depends(get_vault_controller),
):
    await controller.bulk_delete(request.ids)
    return controller.snapshot()


@router.post("/publish", response_model=List[VaultFile])
async def bulk_publish(
    request: BulkActionRequest,
    controller: VaultStateController = Depends(get_vault_controller),
):
    return await controller.bulk_publish(request.ids)


@router.get("/files/{file_id}", response_model=VaultFile)
async def open_file(
    file_id: str,
    controller: VaultStateController = Depends(get_vault_controller),
):
    return await controller.open_detail(file_id)


@router.put("/files/{file_id}", response_model=VaultFile)
async def update_file(
    file_id: str,
    file_in: FileUpdate,
    controller: VaultStateController = Depends(get_vault_controller),
):
    file = await controller.open_detail(file_id)
    updates = file_in.model_dump(exclude_unset=True, exclude={"meta"})
    data = {**file.model_dump(), **updates}
    if file_in.meta is not None:
        # The storage locator is owned by the upload path
        meta_updates = file_in.meta.model_dump(exclude_unset=True, exclude={"storage_path"})
        data["meta"] = (file.meta or FileMeta()).model_copy(update=meta_updates).model_dump()
    return await controller.update_file(VaultFile.model_validate(data))
