from fastapi import APIRouter, Depends, Query
from typing import Optional

from academic_vault.core.session_registry import get_shared_controller
from academic_vault.schemas.file import VaultFile
from academic_vault.schemas.vault import VaultState
from academic_vault.services.vault_controller import VaultStateController

router = APIRouter()


@router.get("", response_model=VaultState)
async def browse_shared(
    folder_id: Optional[str] = Query(None),
    controller: VaultStateController = Depends(get_shared_controller),
):
    """Shared files and folders under folder_id, mirroring the vault tree"""
    return await controller.navigate(folder_id)


@router.get("/files/{file_id}", response_model=VaultFile)
async def open_shared_file(
    file_id: str,
    controller: VaultStateController = Depends(get_shared_controller),
):
    return await controller.open_detail(file_id)
