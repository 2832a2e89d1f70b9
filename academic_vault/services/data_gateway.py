"""
Remote Data Gateway: the persistence seam the vault controller talks to.

`VaultDataGateway` is the interface. `InMemoryVaultGateway` keeps everything in
dictionaries and is used by the tests and for local runs without a database;
`SqlVaultGateway` (see sql_gateway.py) is the production adapter.

Listing order is part of the contract: folders by title ascending, files by
creation time descending.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
import logging

from academic_vault.core.exceptions import (
    AncestryUnavailableError,
    NotFoundError,
    RemoteGatewayError,
)
from academic_vault.schemas.collection import Collection
from academic_vault.schemas.file import VaultFile, Visibility
from academic_vault.schemas.folder import Folder
from academic_vault.schemas.profile import UserProfile

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def storage_path_for(owner_id: str, file_id: str, filename: str) -> str:
    """Owner-scoped object key for an uploaded file"""
    return f"{owner_id}/{file_id}/{filename}"


class VaultDataGateway(ABC):
    # Files
    @abstractmethod
    async def list_files(self, folder_id: Optional[str], visibility: Visibility, owner_id: Optional[str] = None) -> List[VaultFile]: ...

    @abstractmethod
    async def list_all_files(self, owner_id: Optional[str] = None) -> List[VaultFile]: ...

    @abstractmethod
    async def list_files_in_folders(self, folder_ids: Iterable[str]) -> List[VaultFile]: ...

    @abstractmethod
    async def get_file(self, file_id: str) -> VaultFile: ...

    @abstractmethod
    async def get_files_by_ids(self, file_ids: Iterable[str]) -> List[VaultFile]: ...

    @abstractmethod
    async def create_file(self, file: VaultFile) -> VaultFile: ...

    @abstractmethod
    async def create_files(self, files: List[VaultFile]) -> List[VaultFile]: ...

    @abstractmethod
    async def update_file(self, file: VaultFile) -> VaultFile: ...

    @abstractmethod
    async def publish_files(self, file_ids: Iterable[str]) -> List[VaultFile]: ...

    @abstractmethod
    async def delete_files(self, file_ids: Iterable[str]) -> None: ...

    # Folders
    @abstractmethod
    async def list_folders(self, parent_id: Optional[str], visibility: Visibility, owner_id: Optional[str] = None) -> List[Folder]: ...

    @abstractmethod
    async def list_all_folders(self, owner_id: Optional[str] = None) -> List[Folder]: ...

    @abstractmethod
    async def get_folder(self, folder_id: str) -> Folder: ...

    @abstractmethod
    async def get_folder_path(self, folder_id: str, owner_id: Optional[str] = None) -> List[Folder]:
        """
        Root-to-node chain in one query, limited to owner_id's folders when given.
        Raises NotFoundError when the folder is missing or not owned by owner_id,
        and AncestryUnavailableError when the query is unsupported.
        """

    @abstractmethod
    async def create_folder(self, folder: Folder) -> Folder: ...

    @abstractmethod
    async def delete_folders(self, folder_ids: Iterable[str]) -> None:
        """Delete folders together with their descendant folders and contained files"""

    # Collections
    @abstractmethod
    async def list_collections(self, owner_id: str) -> List[Collection]: ...

    @abstractmethod
    async def get_collection(self, collection_id: str) -> Collection: ...

    @abstractmethod
    async def create_collection(self, collection: Collection) -> Collection: ...

    @abstractmethod
    async def update_collection(self, collection: Collection) -> Collection: ...

    @abstractmethod
    async def delete_collection(self, collection_id: str) -> None: ...

    # Profiles
    @abstractmethod
    async def get_profile(self, user_id: str) -> Optional[UserProfile]: ...

    @abstractmethod
    async def create_profile(self, profile: UserProfile) -> UserProfile: ...

    @abstractmethod
    async def update_profile(self, profile: UserProfile) -> UserProfile: ...

    # Object storage
    @abstractmethod
    async def put_blob(self, path: str, content: bytes, content_type: Optional[str] = None) -> str: ...

    @abstractmethod
    async def get_blob(self, path: str) -> Optional[bytes]: ...

    @abstractmethod
    async def remove_blobs(self, paths: Iterable[str]) -> None: ...


def _newest_first(files: Iterable[VaultFile]) -> List[VaultFile]:
    return sorted(files, key=lambda f: f.created_at, reverse=True)


def _by_title(folders: Iterable[Folder]) -> List[Folder]:
    return sorted(folders, key=lambda f: f.title)


class InMemoryVaultGateway(VaultDataGateway):
    """Dictionary-backed gateway; every read hands out copies"""

    def __init__(self, *, ancestry_query_available: bool = True):
        self.files: Dict[str, VaultFile] = {}
        self.folders: Dict[str, Folder] = {}
        self.collections: Dict[str, Collection] = {}
        self.profiles: Dict[str, UserProfile] = {}
        self.blobs: Dict[str, bytes] = {}
        self.ancestry_query_available = ancestry_query_available

    @staticmethod
    def _copy(item):
        return item.model_copy(deep=True)

    def _require_file(self, file_id: str) -> VaultFile:
        if file_id not in self.files:
            raise NotFoundError("File")
        return self.files[file_id]

    # Files

    async def list_files(self, folder_id, visibility, owner_id=None):
        return [
            self._copy(f) for f in _newest_first(self.files.values())
            if f.folder_id == folder_id
            and f.visibility == visibility
            and (owner_id is None or f.owner_id == owner_id)
        ]

    async def list_all_files(self, owner_id=None):
        return [
            self._copy(f) for f in _newest_first(self.files.values())
            if owner_id is None or f.owner_id == owner_id
        ]

    async def list_files_in_folders(self, folder_ids):
        wanted = set(folder_ids)
        return [self._copy(f) for f in self.files.values() if f.folder_id in wanted]

    async def get_file(self, file_id):
        return self._copy(self._require_file(file_id))

    async def get_files_by_ids(self, file_ids):
        return [self._copy(self.files[i]) for i in file_ids if i in self.files]

    async def create_file(self, file):
        self.files[file.id] = self._copy(file)
        return self._copy(file)

    async def create_files(self, files):
        return [await self.create_file(f) for f in files]

    async def update_file(self, file):
        self._require_file(file.id)
        stored = file.model_copy(update={"updated_at": utcnow()}, deep=True)
        self.files[file.id] = stored
        return self._copy(stored)

    async def publish_files(self, file_ids):
        published = []
        for file_id in file_ids:
            if file_id not in self.files:
                continue
            stored = self.files[file_id].model_copy(
                update={"visibility": Visibility.SHARED, "updated_at": utcnow()}
            )
            self.files[file_id] = stored
            published.append(self._copy(stored))
        return published

    async def delete_files(self, file_ids):
        doomed = set(file_ids)
        for file_id in doomed:
            self.files.pop(file_id, None)
        for collection_id, collection in self.collections.items():
            if doomed.intersection(collection.file_ids):
                self.collections[collection_id] = collection.model_copy(
                    update={"file_ids": [i for i in collection.file_ids if i not in doomed]}
                )

    # Folders

    async def list_folders(self, parent_id, visibility, owner_id=None):
        return [
            self._copy(f) for f in _by_title(self.folders.values())
            if f.parent_id == parent_id
            and f.visibility == visibility
            and (owner_id is None or f.owner_id == owner_id)
        ]

    async def list_all_folders(self, owner_id=None):
        return [
            self._copy(f) for f in _by_title(self.folders.values())
            if owner_id is None or f.owner_id == owner_id
        ]

    async def get_folder(self, folder_id):
        if folder_id not in self.folders:
            raise NotFoundError("Folder")
        return self._copy(self.folders[folder_id])

    async def get_folder_path(self, folder_id, owner_id=None):
        if not self.ancestry_query_available:
            raise AncestryUnavailableError("in-memory ancestry query disabled")
        folder = await self.get_folder(folder_id)
        if owner_id is not None and folder.owner_id != owner_id:
            raise NotFoundError("Folder")
        chain = [
            self.folders[i] for i in folder.path
            if i in self.folders and (owner_id is None or self.folders[i].owner_id == owner_id)
        ]
        return [self._copy(f) for f in chain] + [folder]

    async def create_folder(self, folder):
        self.folders[folder.id] = self._copy(folder)
        return self._copy(folder)

    async def delete_folders(self, folder_ids):
        roots = set(folder_ids)
        doomed = {
            f.id for f in self.folders.values()
            if f.id in roots or roots.intersection(f.path)
        }
        await self.delete_files([f.id for f in self.files.values() if f.folder_id in doomed])
        for folder_id in doomed:
            self.folders.pop(folder_id, None)

    # Collections

    async def list_collections(self, owner_id):
        return [
            self._copy(c) for c in sorted(self.collections.values(), key=lambda c: c.title)
            if c.owner_id == owner_id
        ]

    async def get_collection(self, collection_id):
        if collection_id not in self.collections:
            raise NotFoundError("Collection")
        return self._copy(self.collections[collection_id])

    async def create_collection(self, collection):
        self.collections[collection.id] = self._copy(collection)
        return self._copy(collection)

    async def update_collection(self, collection):
        await self.get_collection(collection.id)
        stored = collection.model_copy(update={"updated_at": utcnow()}, deep=True)
        self.collections[collection.id] = stored
        return self._copy(stored)

    async def delete_collection(self, collection_id):
        await self.get_collection(collection_id)
        del self.collections[collection_id]

    # Profiles

    async def get_profile(self, user_id):
        profile = self.profiles.get(user_id)
        return self._copy(profile) if profile else None

    async def create_profile(self, profile):
        self.profiles[profile.id] = self._copy(profile)
        return self._copy(profile)

    async def update_profile(self, profile):
        if profile.id not in self.profiles:
            raise NotFoundError("Profile")
        self.profiles[profile.id] = self._copy(profile)
        return self._copy(profile)

    # Object storage

    async def put_blob(self, path, content, content_type=None):
        if path in self.blobs:
            raise RemoteGatewayError(f"Object already exists: {path}")
        self.blobs[path] = bytes(content)
        return path

    async def get_blob(self, path):
        return self.blobs.get(path)

    async def remove_blobs(self, paths):
        for path in paths:
            self.blobs.pop(path, None)
