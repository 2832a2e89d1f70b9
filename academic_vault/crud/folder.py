from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, literal
from .base import CRUDBase
from academic_vault.models.folder import Folder
from academic_vault.schemas.folder import Folder as FolderSchema, FolderCreate
from academic_vault.schemas.file import Visibility


class CRUDFolder(CRUDBase[Folder, FolderSchema, FolderCreate]):
    async def list_children(
        self, db: AsyncSession, *, parent_id: Optional[str], visibility: Visibility,
        owner_id: Optional[str] = None
    ) -> List[Folder]:
        """Direct child folders of parent_id (None = vault root), by title"""
        filters = {"parent_id": parent_id, "visibility": visibility}
        if owner_id:
            filters["owner_id"] = owner_id
        return await self.get_multi(db, filters=filters, order_by="title", order_desc=False)

    async def list_all(self, db: AsyncSession, *, owner_id: Optional[str] = None) -> List[Folder]:
        filters = {"owner_id": owner_id} if owner_id else None
        return await self.get_multi(db, filters=filters, order_by="title", order_desc=False)

    async def get_path(self, db: AsyncSession, *, folder_id: str, owner_id: Optional[str] = None) -> List[Folder]:
        """Root-to-node ancestor chain in a single recursive query, limited to owner_id when given"""
        folders = Folder.__table__

        anchor = select(folders.c.id, folders.c.parent_id, literal(0).label("depth")).where(folders.c.id == folder_id)
        if owner_id:
            anchor = anchor.where(folders.c.owner_id == owner_id)
        ancestors = anchor.cte(name="ancestors", recursive=True)
        parent = folders.alias("parent")
        step = (
            select(parent.c.id, parent.c.parent_id, (ancestors.c.depth + 1).label("depth"))
            .where(parent.c.id == ancestors.c.parent_id)
        )
        if owner_id:
            step = step.where(parent.c.owner_id == owner_id)
        ancestors = ancestors.union_all(step)

        result = await db.execute(
            select(Folder)
            .join(ancestors, Folder.id == ancestors.c.id)
            .order_by(ancestors.c.depth.desc())
        )
        return list(result.scalars().all())

folder_crud = CRUDFolder(Folder)
