from fastapi import APIRouter, Depends, status
from typing import List

from academic_vault.core.session_registry import get_vault_controller
from academic_vault.schemas.collection import Collection, CollectionCreate
from academic_vault.schemas.file import VaultFile
from academic_vault.services.collection_service import CollectionService
from academic_vault.services.vault_controller import VaultStateController

router = APIRouter()


def get_collection_service(
    controller: VaultStateController = Depends(get_vault_controller),
) -> CollectionService:
    return CollectionService(controller)


@router.get("", response_model=List[Collection])
async def list_collections(service: CollectionService = Depends(get_collection_service)):
    return await service.list_collections()


@router.post("", response_model=Collection, status_code=status.HTTP_201_CREATED)
async def create_collection(
    collection_in: CollectionCreate,
    service: CollectionService = Depends(get_collection_service),
):
    return await service.create_collection(collection_in.title, collection_in.visibility)


@router.get("/{collection_id}/files", response_model=List[VaultFile])
async def get_collection_files(
    collection_id: str,
    service: CollectionService = Depends(get_collection_service),
):
    return await service.files_for_collection(collection_id)


@router.post("/{collection_id}/files/{file_id}", response_model=Collection)
async def add_file_to_collection(
    collection_id: str,
    file_id: str,
    service: CollectionService = Depends(get_collection_service),
):
    return await service.add_file(collection_id, file_id)


@router.delete("/{collection_id}/files/{file_id}", response_model=Collection)
async def remove_file_from_collection(
    collection_id: str,
    file_id: str,
    service: CollectionService = Depends(get_collection_service),
):
    return await service.remove_file(collection_id, file_id)


@router.delete("/{collection_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_collection(
    collection_id: str,
    service: CollectionService = Depends(get_collection_service),
):
    """Delete the collection; its files stay where they are"""
    await service.delete_collection(collection_id)
