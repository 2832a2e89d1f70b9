from typing import List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from .base import CRUDBase
from academic_vault.models.file import File
from academic_vault.schemas.file import VaultFile, FileUpdate, Visibility


class CRUDFile(CRUDBase[File, VaultFile, FileUpdate]):
    async def list_in_folder(
        self, db: AsyncSession, *, folder_id: Optional[str], visibility: Visibility,
        owner_id: Optional[str] = None
    ) -> List[File]:
        """Files directly inside folder_id (None = vault root), newest first"""
        filters = {"folder_id": folder_id, "visibility": visibility}
        if owner_id:
            filters["owner_id"] = owner_id
        return await self.get_multi(db, filters=filters, order_by="created_at", order_desc=True)

    async def list_in_folders(self, db: AsyncSession, *, folder_ids: Sequence[str]) -> List[File]:
        if not folder_ids:
            return []
        return await self.get_multi(db, filters={"folder_id": list(folder_ids)})

    async def publish(self, db: AsyncSession, *, ids: Sequence[str]) -> List[File]:
        """Mark files shared; the database bumps updated_at on write"""
        return await self.update_by_ids(db, ids=ids, values={"visibility": Visibility.SHARED})

file_crud = CRUDFile(File)
