import tempfile
import unittest
from pathlib import Path

from ddrive.client import RemoteServiceClient
from ddrive.config import ClientConfig
from ddrive.engine import DriveEngine
from ddrive.errors import ApiError, ConflictError, InvalidArgumentError
from ddrive.events import NewItemCommand, NewItemKind
from ddrive.models import (
    BulkAction,
    EntryKind,
    NotificationLevel,
    RemoteEntry,
    TransferStatus,
    UnitKind,
)


def _entry(entry_id, name, kind=EntryKind.FILE, parent_id=None):
    return RemoteEntry(entry_id=entry_id, name=name, kind=kind, parent_id=parent_id)


class FakeRemote:
    def __init__(self) -> None:
        self.config = ClientConfig(poll_interval_sec=0.001)
        self.entries: dict[str, RemoteEntry] = {}
        self.calls = []
        self.rename_error = None
        self.closed = False
        self._next = 0

    def add(self, entry: RemoteEntry) -> RemoteEntry:
        self.entries[entry.entry_id] = entry
        return entry

    async def list_children(self, parent_id=None):
        self.calls.append(("list", parent_id))
        return [e for e in self.entries.values() if e.parent_id == parent_id]

    async def list_all_directories(self):
        self.calls.append(("all_dirs",))
        return [e for e in self.entries.values() if e.is_directory]

    async def get_entry(self, entry_id):
        self.calls.append(("get", entry_id))
        return self.entries[entry_id]

    async def create_directory(self, name, parent_id=None):
        self.calls.append(("create", name, parent_id))
        self._next += 1
        return self.add(_entry(f"d{self._next}", name, EntryKind.DIRECTORY, parent_id))

    async def upload_file(self, local_file, parent_id=None, on_progress=None):
        self.calls.append(("upload", local_file.relative_path, parent_id))
        if on_progress is not None:
            on_progress(local_file.size, local_file.size)
        self._next += 1
        return self.add(_entry(f"f{self._next}", local_file.name, EntryKind.FILE, parent_id))

    async def rename_entry(self, entry_id, new_name):
        self.calls.append(("rename", entry_id, new_name))
        if self.rename_error is not None:
            raise self.rename_error
        old = self.entries[entry_id]
        return self.add(_entry(entry_id, new_name, old.kind, old.parent_id))

    async def move_entry(self, entry_id, new_parent_id):
        self.calls.append(("move", entry_id, new_parent_id))
        return self.entries[entry_id]

    async def delete_entry(self, entry_id, recursive):
        self.calls.append(("delete", entry_id, recursive))
        self.entries.pop(entry_id, None)

    async def iter_download(self, entry_id, *, inline=False, extra_params=None):
        self.calls.append(("download", entry_id))
        yield b"bytes"

    def direct_download_url(self, entry_id, *, inline=True):
        return f"http://drive.test/files/{entry_id}/download"

    async def aclose(self) -> None:
        self.closed = True


class TestDriveEngine(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.remote = FakeRemote()
        self.engine = DriveEngine.from_client(self.remote)
        self.docs = self.remote.add(_entry("docs", "Docs", EntryKind.DIRECTORY))
        self.sub = self.remote.add(_entry("sub", "Sub", EntryKind.DIRECTORY, "docs"))
        self.note = self.remote.add(_entry("note", "note.txt", EntryKind.FILE, "docs"))

    async def test_change_directory_updates_breadcrumbs(self) -> None:
        entries = await self.engine.change_directory("sub")
        self.assertEqual(entries, [])
        crumbs = self.engine.current_state().breadcrumbs
        self.assertEqual([e.entry_id for e in crumbs], ["docs", "sub"])

    async def test_list_directory_uses_cache(self) -> None:
        await self.engine.list_directory("docs")
        await self.engine.list_directory("docs")
        self.assertEqual(self.remote.calls.count(("list", "docs")), 1)
        await self.engine.list_directory("docs", refresh=True)
        self.assertEqual(self.remote.calls.count(("list", "docs")), 2)

    async def test_rename_success(self) -> None:
        await self.engine.list_directory("docs")
        renamed = await self.engine.rename(self.note, "todo.txt")

        self.assertEqual(renamed.name, "todo.txt")
        self.assertIsNone(self.engine.listing.cached("docs"))
        self.assertEqual(self.engine.notifier.history[-1].message, "Renamed to todo.txt")

    async def test_rename_conflict_refreshes_listing(self) -> None:
        await self.engine.list_directory("docs")
        self.remote.rename_error = ConflictError("HTTP error 409")

        result = await self.engine.rename(self.note, "Sub")

        self.assertIsNone(result)
        self.assertEqual(self.remote.calls.count(("list", "docs")), 2)
        self.assertIsNotNone(self.engine.listing.cached("docs"))
        last = self.engine.notifier.history[-1]
        self.assertIs(last.level, NotificationLevel.ERROR)
        self.assertEqual(last.message, "A file with that name already exists")

    async def test_rename_generic_failure(self) -> None:
        self.remote.rename_error = ApiError("HTTP error 500")
        self.assertIsNone(await self.engine.rename(self.note, "x.txt"))
        self.assertEqual(self.engine.notifier.history[-1].message, "Failed to rename note.txt")

    async def test_new_folder_command_creates_folder(self) -> None:
        await self.engine.list_directory("docs")
        count = await self.engine.dispatcher.dispatch(
            NewItemCommand(NewItemKind.FOLDER, parent_id="docs", name="New")
        )

        self.assertEqual(count, 1)
        self.assertIn(("create", "New", "docs"), self.remote.calls)
        self.assertIsNone(self.engine.listing.cached("docs"))

    async def test_new_folder_command_without_name_is_ignored(self) -> None:
        await self.engine.dispatcher.dispatch(NewItemCommand(NewItemKind.FOLDER))
        self.assertFalse([c for c in self.remote.calls if c[0] == "create"])

    async def test_move_into_descendant_is_rejected(self) -> None:
        with self.assertRaises(InvalidArgumentError):
            await self.engine.move([self.docs], "sub")
        self.assertFalse([c for c in self.remote.calls if c[0] == "move"])

    async def test_move_files(self) -> None:
        job = await self.engine.move([self.note], None)
        self.assertEqual(job.action, BulkAction.MOVE)
        self.assertIn(("move", "note", None), self.remote.calls)
        self.assertNotIn(("all_dirs",), self.remote.calls)

    async def test_delete_and_state(self) -> None:
        job = await self.engine.delete([self.note])
        self.assertEqual(job.completed_work_units, job.total_work_units)
        self.assertEqual(len(self.engine.current_state().jobs), 1)

    async def test_upload_path_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp) / "Photos"
            root.mkdir()
            (root / "a.jpg").write_bytes(b"aaa")
            (root / "b.jpg").write_bytes(b"bb")

            units = await self.engine.upload_path(root, "docs")

        self.assertEqual(len(units), 1)
        self.assertEqual(units[0].kind, UnitKind.FOLDER_GROUP)
        self.assertEqual(units[0].status, TransferStatus.SUCCEEDED)
        self.assertIn(("create", "Photos", "docs"), self.remote.calls)

    async def test_upload_path_file_and_missing(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "single.txt"
            path.write_bytes(b"hello")
            units = await self.engine.upload_path(path)
            with self.assertRaises(InvalidArgumentError):
                await self.engine.upload_path(Path(tmp) / "missing.txt")

        self.assertEqual(units[0].kind, UnitKind.SINGLE_FILE)
        self.assertIn(("upload", "single.txt", None), self.remote.calls)

    async def test_open_preview_uses_cached_siblings(self) -> None:
        pic = self.remote.add(_entry("pic", "pic.png", EntryKind.FILE, "docs"))
        await self.engine.list_directory("docs")

        handle = await self.engine.open_preview(pic)

        self.assertIsNotNone(handle)
        snapshot = self.engine.current_state().preview
        self.assertEqual(snapshot.count, 2)
        self.engine.close_preview()
        self.assertTrue(handle.revoked)

    async def test_aclose(self) -> None:
        async with self.engine:
            pass
        self.assertTrue(self.remote.closed)


class TestDriveEngineConstruction(unittest.IsolatedAsyncioTestCase):
    async def test_builds_real_client_from_config(self) -> None:
        engine = DriveEngine(ClientConfig(api_url="http://drive.test/api", token="t"))
        self.assertIsInstance(engine.client, RemoteServiceClient)
        self.assertEqual(engine.config.token, "t")
        await engine.aclose()


if __name__ == "__main__":
    unittest.main()
