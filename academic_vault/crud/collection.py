from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from .base import CRUDBase
from academic_vault.models.collection import Collection
from academic_vault.schemas.collection import Collection as CollectionSchema, CollectionCreate


class CRUDCollection(CRUDBase[Collection, CollectionSchema, CollectionCreate]):
    async def list_for_owner(self, db: AsyncSession, *, owner_id: str) -> List[Collection]:
        return await self.get_multi(db, filters={"owner_id": owner_id}, order_by="title", order_desc=False)

collection_crud = CRUDCollection(Collection)
