"""
Tests for the vault state controller.

Covers navigation and listing, folder creation, uploads (screening,
permissions, concurrency), selection, bulk delete and publish, the optimistic
file update protocol and status tracking.
"""

import asyncio
import pytest
from unittest.mock import AsyncMock

from academic_vault.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    RemoteGatewayError,
    UploadBatchError,
    ValidationError,
)
from academic_vault.schemas.file import FileStatus, FileType, Visibility
from academic_vault.services.data_gateway import InMemoryVaultGateway, VaultDataGateway
from academic_vault.services.lifecycle import QueueStatusSource, SimulatedStatusSource
from academic_vault.services.vault_controller import UploadItem, VaultStateController

MB = 1024 * 1024


def pdf(name: str = "notes.pdf", size: int = MB) -> UploadItem:
    return UploadItem(filename=name, content=b"%PDF-1.7 " + b"x" * 16, content_type="application/pdf", size=size)


class CountingGateway(InMemoryVaultGateway):
    """Counts listing fetches and yields on every upload so batches interleave"""

    def __init__(self):
        super().__init__()
        self.list_files_calls = 0

    async def list_files(self, folder_id, visibility, owner_id=None):
        self.list_files_calls += 1
        return await super().list_files(folder_id, visibility, owner_id)

    async def put_blob(self, path, content, content_type=None):
        await asyncio.sleep(0.01)
        return await super().put_blob(path, content, content_type)


class GatedGateway(InMemoryVaultGateway):
    """Holds listing fetches for selected folders until released"""

    def __init__(self):
        super().__init__()
        self.gates = {}

    async def list_files(self, folder_id, visibility, owner_id=None):
        gate = self.gates.get(folder_id)
        if gate is not None:
            await gate.wait()
        return await super().list_files(folder_id, visibility, owner_id)


class FlakyGateway(InMemoryVaultGateway):
    """Fails selected operations on demand"""

    def __init__(self):
        super().__init__()
        self.fail_remove_blobs = False
        self.fail_update = False
        self.fail_create_for = set()

    async def remove_blobs(self, paths):
        if self.fail_remove_blobs:
            raise RemoteGatewayError("storage unavailable")
        return await super().remove_blobs(paths)

    async def update_file(self, file):
        if self.fail_update:
            raise RemoteGatewayError("write rejected")
        return await super().update_file(file)

    async def create_file(self, file):
        if file.title in self.fail_create_for:
            raise RemoteGatewayError("insert rejected")
        return await super().create_file(file)


class TestNavigationAndListing:
    @pytest.mark.asyncio
    async def test_listing_orders_folders_by_title_and_files_newest_first(self, controller, gateway, make_file, make_folder):
        for title in ("Zoology", "Algebra", "Music"):
            folder = make_folder(title)
            gateway.folders[folder.id] = folder
        for title, age in (("old.pdf", 30), ("new.pdf", 1), ("mid.pdf", 10)):
            file = make_file(title, age=age)
            gateway.files[file.id] = file

        state = await controller.navigate(None)

        assert [f.title for f in state.folders] == ["Algebra", "Music", "Zoology"]
        assert [f.title for f in state.files] == ["new.pdf", "mid.pdf", "old.pdf"]

    @pytest.mark.asyncio
    async def test_private_listing_excludes_shared_and_foreign_items(self, controller, gateway, make_file):
        mine = make_file("mine.pdf")
        shared = make_file("shared.pdf", visibility=Visibility.SHARED)
        foreign = make_file("theirs.pdf", owner_id="someone-else")
        for file in (mine, shared, foreign):
            gateway.files[file.id] = file

        files, _ = await controller.list_children(None)

        assert [f.title for f in files] == ["mine.pdf"]

    @pytest.mark.asyncio
    async def test_shared_listing_spans_owners(self, shared_controller, gateway, make_file):
        mine = make_file("mine.pdf", visibility=Visibility.SHARED)
        private = make_file("private.pdf")
        gateway.files[mine.id] = mine
        gateway.files[private.id] = private

        state = await shared_controller.navigate(None)

        assert [f.title for f in state.files] == ["mine.pdf"]

    @pytest.mark.asyncio
    async def test_navigate_clears_selection(self, controller, gateway, make_file):
        file = make_file()
        gateway.files[file.id] = file
        await controller.navigate(None)
        controller.toggle_selection(file.id)

        folder = await controller.create_folder("CS101")
        await controller.navigate(folder.id)

        assert controller.selected_ids == []

    @pytest.mark.asyncio
    async def test_stale_listing_is_discarded(self, identity, make_file):
        gateway = GatedGateway()
        controller = VaultStateController(gateway, identity)
        x = await controller.create_folder("X", parent_id=None)
        y = await controller.create_folder("Y", parent_id=None)
        for folder in (x, y):
            file = make_file(f"{folder.title}.pdf", folder_id=folder.id)
            gateway.files[file.id] = file

        gateway.gates[x.id] = asyncio.Event()
        slow = asyncio.create_task(controller.navigate(x.id))
        await asyncio.sleep(0)
        await controller.navigate(y.id)
        gateway.gates[x.id].set()
        await slow

        assert controller.current_folder_id == y.id
        assert [f.title for f in controller.files] == ["Y.pdf"]
        assert [f.title for f in controller.path] == ["Y"]


class TestCreateFolder:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("title", ["", "   ", "\t\n"])
    async def test_blank_titles_are_rejected_without_writes(self, controller, gateway, title):
        with pytest.raises(ValidationError):
            await controller.create_folder(title)
        assert gateway.folders == {}

    @pytest.mark.asyncio
    async def test_child_inherits_parent_visibility(self, controller, gateway, make_folder):
        parent = make_folder("Shared notes", visibility=Visibility.SHARED)
        gateway.folders[parent.id] = parent

        child = await controller.create_folder("Week 1", parent_id=parent.id)

        assert child.visibility == Visibility.SHARED
        assert child.path == [parent.id]

    @pytest.mark.asyncio
    async def test_defaults_to_current_folder_and_shows_up_in_listing(self, controller):
        cs = await controller.create_folder("CS101", parent_id=None)
        await controller.navigate(cs.id)

        child = await controller.create_folder("  Lectures  ")

        assert child.title == "Lectures"
        assert child.parent_id == cs.id
        assert [f.id for f in controller.folders] == [child.id]

    @pytest.mark.asyncio
    async def test_shared_vault_is_read_only(self, shared_controller, gateway):
        with pytest.raises(PermissionDeniedError):
            await shared_controller.create_folder("Nope")
        assert gateway.folders == {}


class TestUpload:
    @pytest.mark.asyncio
    async def test_uploaded_file_is_ready_private_and_stored(self, controller, gateway):
        folder = await controller.create_folder("CS101", parent_id=None)
        await controller.navigate(folder.id)

        result = await controller.upload([pdf()])

        assert result.warning is None
        [file] = result.uploaded
        assert file.status == FileStatus.READY
        assert file.progress == 100
        assert file.visibility == Visibility.PRIVATE
        assert file.folder_id == folder.id
        assert file.tags == [] and file.collection_ids == []
        assert file.type == FileType.PDF
        assert gateway.blobs[file.storage_path].startswith(b"%PDF")
        assert file.storage_path.startswith(f"{controller.identity.user_id}/{file.id}/")
        assert [f.id for f in controller.files] == [file.id]

    @pytest.mark.asyncio
    async def test_oversized_file_creates_nothing_and_one_warning(self, controller, gateway):
        result = await controller.upload([pdf("huge.pdf", size=201 * MB)])

        assert result.uploaded == []
        assert [r.filename for r in result.rejected] == ["huge.pdf"]
        assert result.warning is not None
        assert controller.last_warning == result.warning
        assert gateway.files == {}
        assert gateway.blobs == {}

    @pytest.mark.asyncio
    async def test_exactly_200_mb_is_accepted(self, controller):
        result = await controller.upload([pdf("limit.pdf", size=200 * MB)])
        assert len(result.uploaded) == 1

    @pytest.mark.asyncio
    async def test_rejections_are_reported_as_one_batch_warning(self, controller, gateway):
        items = [
            pdf("ok.pdf"),
            pdf("huge.pdf", size=300 * MB),
            UploadItem(filename="virus.exe", content=b"MZ"),
        ]

        result = await controller.upload(items)

        assert [f.title for f in result.uploaded] == ["ok.pdf"]
        assert {r.filename for r in result.rejected} == {"huge.pdf", "virus.exe"}
        assert "huge.pdf" in result.warning and "virus.exe" in result.warning
        assert len(gateway.files) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name,expected", [
        ("Notes.PDF", FileType.PDF),
        ("readme.md", FileType.TXT),
        ("photo.jpeg", FileType.JPG),
        ("talk.m4a", FileType.M4A),
    ])
    async def test_extension_mapping(self, controller, name, expected):
        result = await controller.upload([UploadItem(filename=name, content=b"data")])
        assert result.uploaded[0].type == expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize("who", ["guest_identity", "unverified_identity"])
    async def test_forbidden_identities_fail_before_any_network_call(self, request, who):
        gateway = AsyncMock(spec=VaultDataGateway)
        controller = VaultStateController(gateway, request.getfixturevalue(who))

        with pytest.raises(PermissionDeniedError):
            await controller.upload([pdf()])

        assert gateway.mock_calls == []

    @pytest.mark.asyncio
    async def test_cannot_upload_into_another_users_folder(self, gateway, controller, other_identity):
        thesis = await controller.create_folder("Secret Thesis", parent_id=None)
        intruder = VaultStateController(gateway, other_identity)

        with pytest.raises(PermissionDeniedError):
            await intruder.upload([pdf()], thesis.id)

        assert gateway.files == {}
        assert gateway.blobs == {}

    @pytest.mark.asyncio
    async def test_upload_into_missing_folder_is_not_found(self, controller, gateway):
        with pytest.raises(NotFoundError):
            await controller.upload([pdf()], "missing-folder")
        assert gateway.blobs == {}

    @pytest.mark.asyncio
    async def test_two_concurrent_batches_refresh_exactly_once(self, identity):
        gateway = CountingGateway()
        controller = VaultStateController(gateway, identity)
        folder = await controller.create_folder("CS101", parent_id=None)
        await controller.navigate(folder.id)
        gateway.list_files_calls = 0

        await asyncio.gather(
            controller.upload([pdf(f"a{i}.pdf") for i in range(3)]),
            controller.upload([pdf(f"b{i}.pdf") for i in range(3)]),
        )

        assert gateway.list_files_calls == 1
        assert len(controller.files) == 6
        assert {f.folder_id for f in controller.files} == {folder.id}

    @pytest.mark.asyncio
    async def test_partial_failure_raises_with_result_and_cleans_blob(self, identity):
        gateway = FlakyGateway()
        gateway.fail_create_for = {"bad.pdf"}
        controller = VaultStateController(gateway, identity)

        with pytest.raises(UploadBatchError) as exc_info:
            await controller.upload([pdf("good.pdf"), pdf("bad.pdf")])

        result = exc_info.value.result
        assert [f.title for f in result.uploaded] == ["good.pdf"]
        assert [f.filename for f in result.failed] == ["bad.pdf"]
        # Only the successful upload's blob is left behind
        assert list(gateway.blobs) == [result.uploaded[0].storage_path]
        # The listing was refetched after the batch settled
        assert [f.title for f in controller.files] == ["good.pdf"]


class TestSelection:
    @pytest.mark.asyncio
    async def test_toggle_adds_and_removes(self, controller, gateway, make_file, make_folder):
        file = make_file()
        folder = make_folder("CS101")
        gateway.files[file.id] = file
        gateway.folders[folder.id] = folder
        await controller.navigate(None)

        controller.toggle_selection(file.id)
        assert controller.toggle_selection(folder.id) == [file.id, folder.id]
        assert controller.toggle_selection(file.id) == [folder.id]

        controller.clear_selection()
        assert controller.selected_ids == []

    @pytest.mark.asyncio
    async def test_ids_outside_current_listing_cannot_be_selected(self, controller):
        await controller.navigate(None)
        with pytest.raises(NotFoundError):
            controller.toggle_selection("not-here")


class TestBulkDelete:
    @pytest.mark.asyncio
    async def test_deletes_records_and_blobs_and_clears_selection(self, controller, gateway):
        result = await controller.upload([pdf("a.pdf"), pdf("b.pdf"), pdf("keep.pdf")])
        doomed = [f for f in result.uploaded if f.title != "keep.pdf"]
        for file in doomed:
            controller.toggle_selection(file.id)

        await controller.bulk_delete()

        assert controller.selected_ids == []
        assert [f.title for f in controller.files] == ["keep.pdf"]
        for file in doomed:
            assert file.id not in gateway.files
            assert file.storage_path not in gateway.blobs

    @pytest.mark.asyncio
    async def test_folder_delete_removes_nested_folders_files_and_blobs(self, controller, gateway):
        cs = await controller.create_folder("CS101", parent_id=None)
        week = await controller.create_folder("Week 1", parent_id=cs.id)
        await controller.upload([pdf("deep.pdf")], week.id)
        other = await controller.create_folder("MATH200", parent_id=None)
        await controller.navigate(None)

        controller.toggle_selection(cs.id)
        await controller.bulk_delete()

        assert set(gateway.folders) == {other.id}
        assert gateway.files == {}
        assert gateway.blobs == {}
        assert [f.title for f in controller.folders] == ["MATH200"]

    @pytest.mark.asyncio
    async def test_storage_failure_keeps_records_and_still_refreshes(self, identity):
        gateway = FlakyGateway()
        controller = VaultStateController(gateway, identity)
        result = await controller.upload([pdf("a.pdf")])
        file = result.uploaded[0]
        controller.toggle_selection(file.id)
        gateway.fail_remove_blobs = True

        with pytest.raises(RemoteGatewayError):
            await controller.bulk_delete()

        assert file.id in gateway.files
        assert controller.selected_ids == []
        assert [f.id for f in controller.files] == [file.id]

    @pytest.mark.asyncio
    async def test_file_storage_failure_does_not_block_folder_delete(self, identity):
        gateway = FlakyGateway()
        controller = VaultStateController(gateway, identity)
        empty = await controller.create_folder("Old term", parent_id=None)
        file = (await controller.upload([pdf("a.pdf")])).uploaded[0]
        controller.toggle_selection(file.id)
        controller.toggle_selection(empty.id)
        gateway.fail_remove_blobs = True

        with pytest.raises(RemoteGatewayError):
            await controller.bulk_delete()

        # File group kept its record; folder group had no blobs and went ahead
        assert file.id in gateway.files
        assert empty.id not in gateway.folders
        assert controller.folders == []
        assert controller.selected_ids == []

    @pytest.mark.asyncio
    async def test_no_selected_id_survives_delete(self, controller, gateway, make_file):
        files = [make_file(f"f{i}.pdf", age=i) for i in range(4)]
        for file in files:
            gateway.files[file.id] = file
        await controller.navigate(None)
        for file in files[:2]:
            controller.toggle_selection(file.id)

        await controller.bulk_delete()

        remaining = set(gateway.files)
        assert not remaining.intersection(f.id for f in files[:2])
        assert not remaining.intersection(controller.selected_ids)


class TestPublish:
    @pytest.mark.asyncio
    async def test_create_upload_publish_scenario(self, controller, shared_controller):
        cs = await controller.create_folder("CS101", parent_id=None)
        files, folders = await controller.list_children(None)
        [listed] = folders
        assert (listed.title, listed.visibility, listed.path) == ("CS101", Visibility.PRIVATE, [])

        await controller.navigate(cs.id)
        await controller.upload([pdf("lecture.pdf", size=MB)])
        files, _ = await controller.list_children(cs.id)
        assert len(files) == 1
        assert (files[0].status, files[0].progress) == (FileStatus.READY, 100)

        controller.toggle_selection(files[0].id)
        published = await controller.bulk_publish()

        assert published[0].visibility == Visibility.SHARED
        assert published[0].updated_at >= files[0].updated_at
        private_files, _ = await controller.list_children(cs.id)
        assert private_files == []
        shared_files, _ = await shared_controller.list_children(cs.id)
        assert [f.id for f in shared_files] == [files[0].id]
        assert controller.selected_ids == []

    @pytest.mark.asyncio
    async def test_folders_are_not_publishable(self, controller, gateway):
        folder = await controller.create_folder("CS101", parent_id=None)
        controller.toggle_selection(folder.id)

        with pytest.raises(ValidationError):
            await controller.bulk_publish()
        assert gateway.folders[folder.id].visibility == Visibility.PRIVATE

    @pytest.mark.asyncio
    async def test_shared_scope_cannot_publish(self, shared_controller):
        with pytest.raises(PermissionDeniedError):
            await shared_controller.bulk_publish(["anything"])


class TestUpdateFile:
    @pytest.mark.asyncio
    async def test_open_file_and_listing_share_one_copy(self, controller):
        [file] = (await controller.upload([pdf("draft.pdf")])).uploaded
        await controller.open_detail(file.id)

        saved = await controller.update_file(file.model_copy(update={"title": "final.pdf", "tags": ["exam"]}))

        assert saved.title == "final.pdf"
        assert controller.open_file.title == "final.pdf"
        assert controller.open_file is controller.files[0]

    @pytest.mark.asyncio
    async def test_failed_save_rolls_back_and_raises(self, identity):
        gateway = FlakyGateway()
        controller = VaultStateController(gateway, identity)
        [file] = (await controller.upload([pdf("draft.pdf")])).uploaded
        await controller.open_detail(file.id)
        gateway.fail_update = True

        with pytest.raises(RemoteGatewayError):
            await controller.update_file(file.model_copy(update={"title": "lost.pdf"}))

        assert controller.open_file.title == "draft.pdf"
        assert controller.files[0].title == "draft.pdf"
        assert gateway.files[file.id].title == "draft.pdf"

    @pytest.mark.asyncio
    async def test_published_file_cannot_be_made_private(self, controller, gateway, make_file):
        file = make_file(visibility=Visibility.SHARED)
        gateway.files[file.id] = file

        with pytest.raises(ValidationError):
            await controller.update_file(file.model_copy(update={"visibility": Visibility.PRIVATE}))

    @pytest.mark.asyncio
    async def test_only_owner_can_edit(self, controller, gateway, make_file):
        file = make_file(owner_id="someone-else", visibility=Visibility.SHARED)
        gateway.files[file.id] = file

        with pytest.raises(PermissionDeniedError):
            await controller.update_file(file.model_copy(update={"title": "mine now"}))

    @pytest.mark.asyncio
    async def test_other_users_private_file_is_hidden(self, controller, gateway, make_file):
        file = make_file(owner_id="someone-else")
        gateway.files[file.id] = file

        with pytest.raises(NotFoundError):
            await controller.open_detail(file.id)

    @pytest.mark.asyncio
    async def test_close_detail(self, controller):
        [file] = (await controller.upload([pdf()])).uploaded
        await controller.open_detail(file.id)

        controller.close_detail()

        assert controller.open_file is None
        assert controller.snapshot().open_file is None


class TestSamplesAndTracking:
    @pytest.mark.asyncio
    async def test_sample_files_land_in_current_folder(self, controller):
        folder = await controller.create_folder("Start here", parent_id=None)
        await controller.navigate(folder.id)

        samples = await controller.add_sample_files()

        assert len(samples) == 2
        assert all(f.status == FileStatus.READY and f.folder_id == folder.id for f in samples)
        assert {f.id for f in controller.files} == {f.id for f in samples}

    @pytest.mark.asyncio
    async def test_track_file_persists_each_status(self, controller, gateway, make_file):
        file = make_file("incoming.pdf", status=FileStatus.IDLE)
        gateway.files[file.id] = file
        await controller.navigate(None)

        final = await controller.track_file(file, SimulatedStatusSource(scale=0))

        assert final.status == FileStatus.READY
        assert gateway.files[file.id].status == FileStatus.READY
        assert gateway.files[file.id].progress == 100
        assert controller.files[0].status == FileStatus.READY

    @pytest.mark.asyncio
    async def test_track_file_records_processing_error(self, controller, gateway, make_file):
        file = make_file("incoming.pdf", status=FileStatus.IDLE)
        gateway.files[file.id] = file
        source = QueueStatusSource()
        source.push_nowait(FileStatus.UPLOADING)
        source.push_nowait(FileStatus.ERROR)

        final = await controller.track_file(file, source)

        assert final.status == FileStatus.ERROR
        assert gateway.files[file.id].status == FileStatus.ERROR
        assert gateway.files[file.id].progress == 25
