"""
Per-session view state for one user's vault.

The controller holds the current folder's listing, the breadcrumb path, the
multi-select set and the file open in the detail view. Every mutation goes
through the data gateway and is followed by a refetch; local state is never
trusted after a failed write.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
import asyncio
import logging
import os
import uuid

from academic_vault.core.config import settings
from academic_vault.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    UploadBatchError,
    ValidationError,
)
from academic_vault.schemas.auth import Identity
from academic_vault.schemas.file import FileMeta, FileStatus, FileType, VaultFile, Visibility
from academic_vault.schemas.folder import Folder
from academic_vault.schemas.vault import FailedUpload, RejectedUpload, UploadBatchResult, VaultState
from academic_vault.services import ancestry
from academic_vault.services.data_gateway import VaultDataGateway, storage_path_for, utcnow
from academic_vault.services.lifecycle import FileLifecycleTracker, SimulatedStatusSource, StatusSource
from academic_vault.services.sample_data import build_sample_files

logger = logging.getLogger(__name__)

# Extension -> stored file type
ACCEPTED_EXTENSIONS: Dict[str, FileType] = {
    ".pdf": FileType.PDF,
    ".docx": FileType.DOCX,
    ".pptx": FileType.PPTX,
    ".txt": FileType.TXT,
    ".md": FileType.TXT,
    ".png": FileType.PNG,
    ".jpg": FileType.JPG,
    ".jpeg": FileType.JPG,
    ".mp3": FileType.MP3,
    ".wav": FileType.WAV,
    ".m4a": FileType.M4A,
    ".mp4": FileType.MP4,
    ".mov": FileType.MOV,
}

# Sentinel for "the folder currently being viewed"
_CURRENT = object()


@dataclass
class UploadItem:
    filename: str
    content: bytes
    content_type: Optional[str] = None
    # Declared size when known up front (multipart uploads); defaults to len(content)
    size: Optional[int] = None

    @property
    def byte_size(self) -> int:
        return self.size if self.size is not None else len(self.content)


class VaultStateController:
    def __init__(
        self,
        gateway: VaultDataGateway,
        identity: Identity,
        *,
        scope: Visibility = Visibility.PRIVATE,
        max_upload_bytes: Optional[int] = None,
    ):
        self.gateway = gateway
        self.identity = identity
        self.scope = scope
        self.max_upload_bytes = max_upload_bytes or settings.max_upload_size_bytes

        self.current_folder_id: Optional[str] = None
        self.files: List[VaultFile] = []
        self.folders: List[Folder] = []
        self.path: List[Folder] = []
        self.last_warning: Optional[str] = None

        # Ordered so the API returns ids in the order they were picked
        self._selection: Dict[str, None] = {}
        self._open_file_id: Optional[str] = None
        self._open_file: Optional[VaultFile] = None
        self._pending_uploads = 0
        self._fetch_seq = 0

    # Read side

    @property
    def selected_ids(self) -> List[str]:
        return list(self._selection)

    @property
    def open_file(self) -> Optional[VaultFile]:
        """The detail-view file; the listing entry wins when the file is in view"""
        if self._open_file_id is None:
            return None
        for file in self.files:
            if file.id == self._open_file_id:
                return file
        return self._open_file

    def snapshot(self) -> VaultState:
        return VaultState(
            scope=self.scope,
            current_folder_id=self.current_folder_id,
            path=self.path,
            folders=self.folders,
            files=self.files,
            selected_ids=self.selected_ids,
            open_file=self.open_file,
        )

    async def list_children(
        self, folder_id: Optional[str], visibility: Optional[Visibility] = None
    ) -> Tuple[List[VaultFile], List[Folder]]:
        """Files (newest first) and child folders (by title) of folder_id in one visibility"""
        visibility = visibility or self.scope
        # The shared tree spans all users; the private one is the caller's own
        owner_id = self.identity.user_id if visibility == Visibility.PRIVATE else None
        files, folders = await asyncio.gather(
            self.gateway.list_files(folder_id, visibility, owner_id),
            self.gateway.list_folders(folder_id, visibility, owner_id),
        )
        return files, folders

    async def resolve_ancestor_path(self, folder_id: Optional[str]) -> List[Folder]:
        owner_id = self.identity.user_id if self.scope == Visibility.PRIVATE else None
        return await ancestry.resolve_ancestor_path(self.gateway, folder_id, owner_id)

    async def list_all_folders(self) -> List[Folder]:
        return await self.gateway.list_all_folders(self.identity.user_id)

    async def refresh(self) -> bool:
        """
        Refetch the current folder's listing and breadcrumb path.

        Returns False when the result was discarded because the user navigated
        elsewhere (or a newer fetch started) while this one was in flight.
        """
        requested = self.current_folder_id
        self._fetch_seq += 1
        seq = self._fetch_seq

        (files, folders), path = await asyncio.gather(
            self.list_children(requested),
            self.resolve_ancestor_path(requested),
        )

        if requested != self.current_folder_id or seq != self._fetch_seq:
            logger.debug(f"Discarding stale listing for folder {requested}")
            return False

        self.files = files
        self.folders = folders
        self.path = path
        listed = {f.id for f in files} | {f.id for f in folders}
        for item_id in [i for i in self._selection if i not in listed]:
            del self._selection[item_id]
        return True

    async def navigate(self, folder_id: Optional[str]) -> VaultState:
        previous = self.current_folder_id
        self.current_folder_id = folder_id
        self.clear_selection()
        try:
            await self.refresh()
        except NotFoundError:
            # Missing or someone else's folder: stay where we were
            self.current_folder_id = previous
            await self.refresh()
            raise
        return self.snapshot()

    # Guards

    def _require_writable(self) -> None:
        if self.scope != Visibility.PRIVATE:
            raise PermissionDeniedError("The shared vault is read-only")

    def _require_can_upload(self) -> None:
        if self.identity.is_guest:
            raise PermissionDeniedError("Guest accounts cannot upload files")
        if not self.identity.email_verified:
            raise PermissionDeniedError("Verify your email address before uploading files")

    def _resolve_folder(self, folder_id) -> Optional[str]:
        return self.current_folder_id if folder_id is _CURRENT else folder_id

    async def _require_own_folder(self, folder_id: str, action: str) -> Folder:
        folder = await self.gateway.get_folder(folder_id)
        if folder.owner_id != self.identity.user_id:
            raise PermissionDeniedError(f"Cannot {action} inside another user's folder")
        return folder

    # Folders

    async def create_folder(self, title: str, parent_id=_CURRENT) -> Folder:
        self._require_writable()
        title = (title or "").strip()
        if not title:
            raise ValidationError("Folder name cannot be empty")

        parent_id = self._resolve_folder(parent_id)
        if parent_id is None:
            visibility, path = Visibility.PRIVATE, []
        else:
            parent = await self._require_own_folder(parent_id, "create a folder")
            visibility, path = parent.visibility, parent.path + [parent.id]

        now = utcnow()
        folder = Folder(
            id=str(uuid.uuid4()),
            owner_id=self.identity.user_id,
            title=title,
            parent_id=parent_id,
            visibility=visibility,
            path=path,
            created_at=now,
            updated_at=now,
        )
        try:
            created = await self.gateway.create_folder(folder)
            logger.info(f"✅ Created folder '{title}' for user {self.identity.user_id}")
            return created
        finally:
            await self.refresh()

    # Uploads

    def _screen(self, items: Sequence[UploadItem]) -> Tuple[List[Tuple[UploadItem, FileType]], List[RejectedUpload]]:
        accepted, rejected = [], []
        limit_mb = self.max_upload_bytes // (1024 * 1024)
        for item in items:
            file_type = ACCEPTED_EXTENSIONS.get(os.path.splitext(item.filename)[1].lower())
            if file_type is None:
                rejected.append(RejectedUpload(filename=item.filename, reason="unsupported file type"))
            elif item.byte_size > self.max_upload_bytes:
                rejected.append(RejectedUpload(filename=item.filename, reason=f"larger than {limit_mb} MB"))
            else:
                accepted.append((item, file_type))
        return accepted, rejected

    async def _upload_one(self, item: UploadItem, file_type: FileType, folder_id: Optional[str]) -> VaultFile:
        file_id = str(uuid.uuid4())
        blob_path = storage_path_for(self.identity.user_id, file_id, item.filename)
        await self.gateway.put_blob(blob_path, item.content, item.content_type or "application/octet-stream")

        now = utcnow()
        record = VaultFile(
            id=file_id,
            owner_id=self.identity.user_id,
            folder_id=folder_id,
            title=item.filename,
            type=file_type,
            size=item.byte_size,
            status=FileStatus.READY,
            progress=100,
            visibility=Visibility.PRIVATE,
            collection_ids=[],
            tags=[],
            created_at=now,
            updated_at=now,
            meta=FileMeta(storage_path=blob_path),
        )
        try:
            return await self.gateway.create_file(record)
        except Exception:
            # No record points at the blob; remove it before reporting the failure
            await self.gateway.remove_blobs([blob_path])
            raise

    async def upload(self, items: Sequence[UploadItem], folder_id=_CURRENT) -> UploadBatchResult:
        """
        Upload a batch concurrently into folder_id (default: the current folder).

        Oversized and unsupported files are rejected before anything is sent and
        reported together in one warning. The listing is refetched once, after
        every batch running on this controller has settled. Raises
        UploadBatchError (carrying the partial result) if any upload failed.
        """
        self._require_writable()
        self._require_can_upload()
        folder_id = self._resolve_folder(folder_id)
        if folder_id is not None:
            await self._require_own_folder(folder_id, "upload files")

        accepted, rejected = self._screen(items)
        result = UploadBatchResult(rejected=rejected)
        if rejected:
            names = ", ".join(f"{r.filename} ({r.reason})" for r in rejected)
            result.warning = f"{len(rejected)} file(s) were not uploaded: {names}"
            self.last_warning = result.warning
            logger.warning(f"⚠️ {result.warning}")
        if not accepted:
            return result

        self._pending_uploads += 1
        try:
            outcomes = await asyncio.gather(
                *(self._upload_one(item, file_type, folder_id) for item, file_type in accepted),
                return_exceptions=True,
            )
        finally:
            self._pending_uploads -= 1
            if self._pending_uploads == 0:
                await self.refresh()

        for (item, _), outcome in zip(accepted, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(f"❌ Upload of {item.filename} failed: {outcome}")
                result.failed.append(FailedUpload(filename=item.filename, error=str(outcome)))
            else:
                result.uploaded.append(outcome)

        logger.info(f"✅ Uploaded {len(result.uploaded)}/{len(items)} file(s) for user {self.identity.user_id}")
        if result.failed:
            raise UploadBatchError(result, detail=f"{len(result.failed)} of {len(accepted)} upload(s) failed")
        return result

    async def add_sample_files(self) -> List[VaultFile]:
        self._require_writable()
        try:
            return await self.gateway.create_files(
                build_sample_files(self.identity.user_id, self.current_folder_id)
            )
        finally:
            await self.refresh()

    # Selection

    def toggle_selection(self, item_id: str) -> List[str]:
        if item_id in self._selection:
            del self._selection[item_id]
        else:
            listed = {f.id for f in self.files} | {f.id for f in self.folders}
            if item_id not in listed:
                raise NotFoundError("Item in the current folder")
            self._selection[item_id] = None
        return self.selected_ids

    def clear_selection(self) -> None:
        self._selection.clear()

    # Bulk actions

    def _partition(self, ids: Optional[Sequence[str]]) -> Tuple[List[VaultFile], List[Folder]]:
        wanted = set(self.selected_ids if ids is None else ids)
        files = [f for f in self.files if f.id in wanted]
        folders = [f for f in self.folders if f.id in wanted]
        unknown = wanted - {f.id for f in files} - {f.id for f in folders}
        if unknown:
            logger.warning(f"⚠️ Ignoring {len(unknown)} id(s) not in the current listing")
        return files, folders

    async def _nested_files(self, folders: List[Folder]) -> List[VaultFile]:
        roots = {f.id for f in folders}
        everything = await self.gateway.list_all_folders(self.identity.user_id)
        doomed = roots | {f.id for f in everything if roots.intersection(f.path)}
        return await self.gateway.list_files_in_folders(doomed)

    async def bulk_delete(self, ids: Optional[Sequence[str]] = None) -> None:
        """
        Delete the given ids (default: the selection) from the current listing.

        Files and folders (with everything beneath them) are deleted as two
        independent groups. Within each group the storage blobs go before the
        records, so a storage failure leaves that group's records in place
        while the other group still goes ahead. Selection is cleared and the
        listing refetched whatever happens; the first failure is re-raised.
        """
        self._require_writable()
        files, folders = self._partition(ids)
        groups = [(self._delete_file_group, files), (self._delete_folder_group, folders)]
        first_error: Optional[Exception] = None
        try:
            for delete_group, items in groups:
                if not items:
                    continue
                try:
                    await delete_group(items)
                except Exception as e:
                    logger.error(f"❌ Bulk delete of {len(items)} item(s) failed: {e}")
                    first_error = first_error or e
        finally:
            self.clear_selection()
            await self.refresh()
        if first_error is not None:
            raise first_error

    async def _delete_file_group(self, files: List[VaultFile]) -> None:
        blob_paths = [f.storage_path for f in files if f.storage_path]
        if blob_paths:
            await self.gateway.remove_blobs(blob_paths)
        await self.gateway.delete_files([f.id for f in files])
        logger.info(f"✅ Deleted {len(files)} file(s)")

    async def _delete_folder_group(self, folders: List[Folder]) -> None:
        nested = await self._nested_files(folders)
        blob_paths = [f.storage_path for f in nested if f.storage_path]
        if blob_paths:
            await self.gateway.remove_blobs(blob_paths)
        await self.gateway.delete_folders([f.id for f in folders])
        logger.info(f"✅ Deleted {len(folders)} folder(s) and {len(nested)} nested file(s)")

    async def bulk_publish(self, ids: Optional[Sequence[str]] = None) -> List[VaultFile]:
        """Make the given files (default: the selected ones) visible in the shared vault"""
        self._require_writable()
        files, folders = self._partition(ids)
        if folders:
            logger.info(f"Skipping {len(folders)} folder(s): only files can be published")
        if not files:
            raise ValidationError("Select at least one file to publish")

        try:
            published = await self.gateway.publish_files([f.id for f in files])
            logger.info(f"✅ Published {len(published)} file(s)")
            return published
        finally:
            self.clear_selection()
            await self.refresh()

    # Detail view

    async def open_detail(self, file_id: str) -> VaultFile:
        file = next((f for f in self.files if f.id == file_id), None)
        if file is None:
            file = await self.gateway.get_file(file_id)
        if file.visibility == Visibility.PRIVATE and file.owner_id != self.identity.user_id:
            raise NotFoundError("File")
        self._open_file_id = file.id
        self._open_file = file
        return file

    def close_detail(self) -> None:
        self._open_file_id = None
        self._open_file = None

    def _apply_local(self, file: VaultFile) -> None:
        self.files = [file if f.id == file.id else f for f in self.files]
        if self._open_file_id == file.id:
            self._open_file = file

    async def update_file(self, file: VaultFile) -> VaultFile:
        """
        Persist an edited file record.

        Applied locally first, then persisted; if persisting fails the local
        copy is rolled back to the last known good record, the listing is
        refetched, and the error is re-raised.
        """
        if file.owner_id != self.identity.user_id:
            raise PermissionDeniedError("Only the owner can edit this file")

        snapshot = next((f for f in self.files if f.id == file.id), None)
        if snapshot is None and self._open_file_id == file.id:
            snapshot = self._open_file
        if snapshot is None:
            snapshot = await self.gateway.get_file(file.id)

        if snapshot.visibility == Visibility.SHARED and file.visibility == Visibility.PRIVATE:
            raise ValidationError("Published files cannot be made private again")

        self._apply_local(file)
        try:
            saved = await self.gateway.update_file(file)
        except Exception as e:
            logger.error(f"❌ Failed to save file {file.id}, rolling back: {e}")
            self._apply_local(snapshot)
            await self.refresh()
            raise

        self._apply_local(saved)
        return saved

    # Status tracking

    async def track_file(self, file: VaultFile, source: Optional[StatusSource] = None) -> VaultFile:
        """Drive a file through its processing lifecycle, saving every status change"""
        async def persist(updated: VaultFile) -> None:
            await self.update_file(updated)

        tracker = FileLifecycleTracker(file, on_transition=persist)
        return await tracker.run(source or SimulatedStatusSource())
