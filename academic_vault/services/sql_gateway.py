from typing import Iterable, List, Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
import logging

from academic_vault.core.exceptions import (
    AncestryUnavailableError,
    NotFoundError,
    RemoteGatewayError,
    handle_gateway_errors,
)
from academic_vault.crud import file_crud, folder_crud, collection_crud, profile_crud
from academic_vault.models.collection import Collection as CollectionModel
from academic_vault.schemas.collection import Collection
from academic_vault.schemas.file import VaultFile, Visibility
from academic_vault.schemas.folder import Folder
from academic_vault.schemas.profile import UserProfile
from academic_vault.services.blob_storage_service import BlobStorageService
from academic_vault.services.data_gateway import VaultDataGateway, utcnow

logger = logging.getLogger(__name__)


def _file_row(file: VaultFile) -> dict:
    row = file.model_dump(exclude={"meta", "ai_content"})
    row["meta"] = file.meta.model_dump(exclude_none=True) if file.meta else None
    row["ai_content"] = file.ai_content.model_dump(exclude_none=True) if file.ai_content else None
    return row


class SqlVaultGateway(VaultDataGateway):
    """Postgres tables through SQLAlchemy async sessions, blobs through object storage"""

    def __init__(self, session_factory: async_sessionmaker, blob_storage: BlobStorageService):
        self.session_factory = session_factory
        self.blob_storage = blob_storage

    # Files

    @handle_gateway_errors
    async def list_files(self, folder_id, visibility, owner_id=None):
        async with self.session_factory() as db:
            rows = await file_crud.list_in_folder(db, folder_id=folder_id, visibility=visibility, owner_id=owner_id)
            return [VaultFile.model_validate(r) for r in rows]

    @handle_gateway_errors
    async def list_all_files(self, owner_id=None):
        async with self.session_factory() as db:
            rows = await file_crud.get_multi(db, filters={"owner_id": owner_id} if owner_id else None)
            return [VaultFile.model_validate(r) for r in rows]

    @handle_gateway_errors
    async def list_files_in_folders(self, folder_ids):
        async with self.session_factory() as db:
            rows = await file_crud.list_in_folders(db, folder_ids=list(folder_ids))
            return [VaultFile.model_validate(r) for r in rows]

    @handle_gateway_errors
    async def get_file(self, file_id):
        async with self.session_factory() as db:
            return VaultFile.model_validate(await file_crud.get(db, file_id))

    @handle_gateway_errors
    async def get_files_by_ids(self, file_ids):
        async with self.session_factory() as db:
            rows = await file_crud.get_by_ids(db, ids=list(file_ids))
            return [VaultFile.model_validate(r) for r in rows]

    @handle_gateway_errors
    async def create_file(self, file):
        async with self.session_factory() as db:
            return VaultFile.model_validate(await file_crud.create(db, obj_in=_file_row(file)))

    @handle_gateway_errors
    async def create_files(self, files):
        async with self.session_factory() as db:
            rows = await file_crud.create_multi(db, objs_in=[_file_row(f) for f in files])
            return [VaultFile.model_validate(r) for r in rows]

    @handle_gateway_errors
    async def update_file(self, file):
        async with self.session_factory() as db:
            db_obj = await file_crud.get(db, file.id)
            row = _file_row(file)
            values = {k: row[k] for k in (
                "title", "tags", "visibility", "status", "progress",
                "collection_ids", "meta", "ai_content",
            )}
            values["updated_at"] = utcnow()
            return VaultFile.model_validate(await file_crud.update(db, db_obj=db_obj, obj_in=values))

    @handle_gateway_errors
    async def publish_files(self, file_ids):
        async with self.session_factory() as db:
            rows = await file_crud.publish(db, ids=list(file_ids))
            return [VaultFile.model_validate(r) for r in rows]

    @handle_gateway_errors
    async def delete_files(self, file_ids):
        ids = list(file_ids)
        async with self.session_factory() as db:
            result = await db.execute(
                select(CollectionModel).where(CollectionModel.file_ids.overlap(ids))
            )
            for collection in result.scalars().all():
                collection.file_ids = [i for i in collection.file_ids if i not in ids]
            await file_crud.remove_many(db, ids=ids)

    # Folders

    @handle_gateway_errors
    async def list_folders(self, parent_id, visibility, owner_id=None):
        async with self.session_factory() as db:
            rows = await folder_crud.list_children(db, parent_id=parent_id, visibility=visibility, owner_id=owner_id)
            return [Folder.model_validate(r) for r in rows]

    @handle_gateway_errors
    async def list_all_folders(self, owner_id=None):
        async with self.session_factory() as db:
            return [Folder.model_validate(r) for r in await folder_crud.list_all(db, owner_id=owner_id)]

    @handle_gateway_errors
    async def get_folder(self, folder_id):
        async with self.session_factory() as db:
            return Folder.model_validate(await folder_crud.get(db, folder_id))

    async def get_folder_path(self, folder_id, owner_id=None):
        try:
            async with self.session_factory() as db:
                chain = [Folder.model_validate(r) for r in await folder_crud.get_path(db, folder_id=folder_id, owner_id=owner_id)]
        except SQLAlchemyError as e:
            raise AncestryUnavailableError(str(e))
        if not chain:
            raise NotFoundError("Folder")
        return chain

    @handle_gateway_errors
    async def create_folder(self, folder):
        async with self.session_factory() as db:
            return Folder.model_validate(await folder_crud.create(db, obj_in=folder))

    @handle_gateway_errors
    async def delete_folders(self, folder_ids):
        # Descendant folders and their files go with ON DELETE CASCADE
        async with self.session_factory() as db:
            await folder_crud.remove_many(db, ids=list(folder_ids))

    # Collections

    @handle_gateway_errors
    async def list_collections(self, owner_id):
        async with self.session_factory() as db:
            return [Collection.model_validate(r) for r in await collection_crud.list_for_owner(db, owner_id=owner_id)]

    @handle_gateway_errors
    async def get_collection(self, collection_id):
        async with self.session_factory() as db:
            return Collection.model_validate(await collection_crud.get(db, collection_id))

    @handle_gateway_errors
    async def create_collection(self, collection):
        async with self.session_factory() as db:
            return Collection.model_validate(await collection_crud.create(db, obj_in=collection))

    @handle_gateway_errors
    async def update_collection(self, collection):
        async with self.session_factory() as db:
            db_obj = await collection_crud.get(db, collection.id)
            updated = await collection_crud.update(db, db_obj=db_obj, obj_in={
                "title": collection.title,
                "file_ids": collection.file_ids,
                "updated_at": utcnow(),
            })
            return Collection.model_validate(updated)

    @handle_gateway_errors
    async def delete_collection(self, collection_id):
        async with self.session_factory() as db:
            await collection_crud.get(db, collection_id)
            await collection_crud.remove_many(db, ids=[collection_id])

    # Profiles

    @handle_gateway_errors
    async def get_profile(self, user_id):
        async with self.session_factory() as db:
            row = await profile_crud.get(db, user_id, raise_if_not_found=False)
            return UserProfile.model_validate(row) if row else None

    @handle_gateway_errors
    async def create_profile(self, profile):
        async with self.session_factory() as db:
            return UserProfile.model_validate(await profile_crud.create(db, obj_in=profile))

    @handle_gateway_errors
    async def update_profile(self, profile):
        async with self.session_factory() as db:
            db_obj = await profile_crud.get(db, profile.id)
            updated = await profile_crud.update(db, db_obj=db_obj, obj_in={
                "display_name": profile.display_name,
                "settings": profile.settings,
            })
            return UserProfile.model_validate(updated)

    # Object storage

    async def put_blob(self, path, content, content_type=None):
        if not await self.blob_storage.upload_file(blob_path=path, content=content, content_type=content_type):
            raise RemoteGatewayError(f"Failed to upload {path} to storage")
        return path

    async def get_blob(self, path):
        return await self.blob_storage.download_file(path)

    async def remove_blobs(self, paths):
        paths = list(paths)
        if paths and not await self.blob_storage.delete_files(paths):
            raise RemoteGatewayError("Failed to remove one or more objects from storage")
