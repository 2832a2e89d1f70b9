from typing import List, Optional
import logging
import uuid

from academic_vault.core.exceptions import NotFoundError, ValidationError
from academic_vault.schemas.collection import Collection
from academic_vault.schemas.file import VaultFile, Visibility
from academic_vault.services.data_gateway import utcnow
from academic_vault.services.vault_controller import VaultStateController

logger = logging.getLogger(__name__)


class CollectionService:
    """
    Named cross-folder groupings of files.

    Membership is recorded on both sides (collection.file_ids and
    file.collection_ids). File records owned by someone else, such as shared
    files, are referenced from the collection only. Deleting a collection
    never deletes its files.
    """

    def __init__(self, controller: VaultStateController):
        self.controller = controller
        self.gateway = controller.gateway
        self.owner_id = controller.identity.user_id

    async def list_collections(self) -> List[Collection]:
        return await self.gateway.list_collections(self.owner_id)

    async def get_collection(self, collection_id: str) -> Collection:
        collection = await self.gateway.get_collection(collection_id)
        if collection.owner_id != self.owner_id:
            raise NotFoundError("Collection")
        return collection

    async def create_collection(self, title: str, visibility: Optional[Visibility] = None) -> Collection:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Collection name cannot be empty")

        now = utcnow()
        collection = await self.gateway.create_collection(Collection(
            id=str(uuid.uuid4()),
            owner_id=self.owner_id,
            title=title,
            visibility=visibility or Visibility.PRIVATE,
            file_ids=[],
            created_at=now,
            updated_at=now,
        ))
        logger.info(f"✅ Created collection '{title}' for user {self.owner_id}")
        return collection

    async def _set_file_membership(self, file_id: str, collection_id: str, member: bool) -> None:
        file = await self.gateway.get_file(file_id)
        if file.owner_id != self.owner_id:
            return
        ids = [i for i in file.collection_ids if i != collection_id]
        if member:
            ids.append(collection_id)
        if ids != file.collection_ids:
            await self.controller.update_file(file.model_copy(update={"collection_ids": ids}))

    async def add_file(self, collection_id: str, file_id: str) -> Collection:
        collection = await self.get_collection(collection_id)
        file = await self.gateway.get_file(file_id)
        if file.visibility == Visibility.PRIVATE and file.owner_id != self.owner_id:
            raise NotFoundError("File")

        if file_id not in collection.file_ids:
            collection = await self.gateway.update_collection(
                collection.model_copy(update={"file_ids": collection.file_ids + [file_id]})
            )
        await self._set_file_membership(file_id, collection_id, member=True)
        return collection

    async def remove_file(self, collection_id: str, file_id: str) -> Collection:
        collection = await self.get_collection(collection_id)
        if file_id in collection.file_ids:
            collection = await self.gateway.update_collection(
                collection.model_copy(update={"file_ids": [i for i in collection.file_ids if i != file_id]})
            )
        try:
            await self._set_file_membership(file_id, collection_id, member=False)
        except NotFoundError:
            logger.warning(f"⚠️ File {file_id} no longer exists, removed from collection {collection_id} only")
        return collection

    async def files_for_collection(self, collection_id: str) -> List[VaultFile]:
        collection = await self.get_collection(collection_id)
        files = await self.gateway.get_files_by_ids(collection.file_ids)
        return [f for f in files if f.owner_id == self.owner_id or f.visibility == Visibility.SHARED]

    async def delete_collection(self, collection_id: str) -> None:
        collection = await self.get_collection(collection_id)
        for file in await self.gateway.get_files_by_ids(collection.file_ids):
            if file.owner_id == self.owner_id and collection_id in file.collection_ids:
                await self.controller.update_file(file.model_copy(
                    update={"collection_ids": [i for i in file.collection_ids if i != collection_id]}
                ))
        await self.gateway.delete_collection(collection_id)
        logger.info(f"✅ Deleted collection {collection_id}; member files kept")
