from __future__ import annotations

import asyncio

import pytest

from canopy.drivers.storage.memory import MemoryStorage
from canopy.kernel.domain.nodes import DirEntry, WalkEntry
from canopy.kernel.exceptions import StorageError
from canopy.kernel.ports.storage import StorageBackend


async def seed(storage: MemoryStorage) -> None:
    await storage.write("/proj/src/index.ts", "export {}")
    await storage.write("/proj/src/lib/util.ts", "x")
    await storage.write("/proj/README.md", "# hi")


def test_satisfies_storage_port() -> None:
    assert isinstance(MemoryStorage(), StorageBackend)


class TestReadWrite:
    @pytest.mark.asyncio()
    async def test_write_creates_parents(self, storage: MemoryStorage) -> None:
        await storage.write("/a/b/c.txt", "hi")
        assert await storage.is_directory("/a/b")
        assert await storage.read_text("/a/b/c.txt") == "hi"
        assert await storage.read_bytes("/a/b/c.txt") == b"hi"

    @pytest.mark.asyncio()
    async def test_absolute_and_relative_spellings_are_equivalent(
        self, storage: MemoryStorage
    ) -> None:
        await storage.write("proj/a.txt", "a")
        assert await storage.read_text("/proj/a.txt") == "a"
        assert await storage.read_text("./proj//a.txt") == "a"

    @pytest.mark.asyncio()
    async def test_overwrite(self, storage: MemoryStorage) -> None:
        await storage.write("/a.txt", "one")
        await storage.write("/a.txt", b"two")
        assert await storage.read_text("/a.txt") == "two"

    @pytest.mark.asyncio()
    async def test_missing_reads_return_none(self, storage: MemoryStorage) -> None:
        await storage.create_directory("/dir")
        assert await storage.read_text("/nope") is None
        assert await storage.read_bytes("/dir") is None
        assert await storage.read_json("/nope.json") is None

    @pytest.mark.asyncio()
    async def test_read_json(self, storage: MemoryStorage) -> None:
        await storage.write("/a.json", '{"a": 1}')
        assert await storage.read_json("/a.json") == {"a": 1}

    @pytest.mark.asyncio()
    async def test_write_under_a_file_fails(self, storage: MemoryStorage) -> None:
        await storage.write("/a", "file")
        with pytest.raises(StorageError, match="is a file"):
            await storage.write("/a/b.txt", "x")

    @pytest.mark.asyncio()
    async def test_file_over_directory_fails(self, storage: MemoryStorage) -> None:
        await storage.create_directory("/dir")
        with pytest.raises(StorageError, match="is a directory"):
            await storage.write("/dir", "x")

    @pytest.mark.asyncio()
    async def test_root_cannot_be_written(self, storage: MemoryStorage) -> None:
        with pytest.raises(StorageError, match="storage root"):
            await storage.write("/", "x")

    @pytest.mark.asyncio()
    async def test_parent_segments_rejected(self, storage: MemoryStorage) -> None:
        with pytest.raises(StorageError, match="escapes"):
            await storage.read_text("../etc/passwd")


class TestQueries:
    @pytest.mark.asyncio()
    async def test_size_and_kinds(self, storage: MemoryStorage) -> None:
        await storage.write("/d/a.txt", "héllo")
        assert await storage.size("/d/a.txt") == len("héllo".encode())
        assert await storage.size("/d") is None
        assert await storage.is_file("/d/a.txt")
        assert not await storage.is_file("/d")
        assert await storage.is_directory("/d")
        assert await storage.is_directory("/")

    @pytest.mark.asyncio()
    async def test_last_modified(self, storage: MemoryStorage) -> None:
        await storage.write("/a.txt", "a")
        modified = await storage.last_modified("/a.txt")
        assert modified is not None
        assert modified.tzinfo is not None
        assert await storage.last_modified("/nope") is None

    @pytest.mark.asyncio()
    async def test_list_in_insertion_order(self, storage: MemoryStorage) -> None:
        await seed(storage)
        await storage.create_directory("/proj/empty")
        assert await storage.list("/proj") == [
            DirEntry(name="src", is_directory=True),
            DirEntry(name="README.md", is_file=True),
            DirEntry(name="empty", is_directory=True),
        ]

    @pytest.mark.asyncio()
    @pytest.mark.parametrize("root", [".", "", "/"])
    async def test_root_spellings(self, storage: MemoryStorage, root: str) -> None:
        await storage.write("top.txt", "x")
        assert [entry.name for entry in await storage.list(root)] == ["top.txt"]

    @pytest.mark.asyncio()
    async def test_list_missing_directory(self, storage: MemoryStorage) -> None:
        with pytest.raises(StorageError, match="directory not found"):
            await storage.list("/nope")


class TestWalk:
    @pytest.mark.asyncio()
    async def test_pre_order_with_depths(self, storage: MemoryStorage) -> None:
        await seed(storage)
        entries = [entry async for entry in storage.walk("/proj")]
        assert [(entry.path, entry.depth) for entry in entries] == [
            ("src", 1),
            ("src/index.ts", 2),
            ("src/lib", 2),
            ("src/lib/util.ts", 3),
            ("README.md", 1),
        ]
        assert entries[0].is_directory and not entries[0].is_file

    @pytest.mark.asyncio()
    async def test_directory_filter_prunes_descent_only(self, storage: MemoryStorage) -> None:
        await seed(storage)
        entries = [
            entry.path
            async for entry in storage.walk("/proj", directory_filter=lambda e: e.name != "lib")
        ]
        assert "src/lib" in entries
        assert "src/lib/util.ts" not in entries

    @pytest.mark.asyncio()
    async def test_entry_filter_hides_entry_but_descends(self, storage: MemoryStorage) -> None:
        await seed(storage)

        async def not_lib(entry: WalkEntry) -> bool:
            await asyncio.sleep(0)
            return entry.name != "lib"

        entries = [entry.path async for entry in storage.walk("/proj", entry_filter=not_lib)]
        assert "src/lib" not in entries
        assert "src/lib/util.ts" in entries

    @pytest.mark.asyncio()
    async def test_walk_missing_directory(self, storage: MemoryStorage) -> None:
        with pytest.raises(StorageError):
            async for _ in storage.walk("/nope"):
                pass

    @pytest.mark.asyncio()
    async def test_writes_during_walk_do_not_break_it(self, storage: MemoryStorage) -> None:
        await seed(storage)
        seen = []
        async for entry in storage.walk("/proj"):
            seen.append(entry.path)
            if entry.path == "README.md":
                await storage.write("/proj/late.txt", "late")
        assert "late.txt" not in seen


class TestCopyMoveDelete:
    @pytest.mark.asyncio()
    async def test_copy_file_is_independent(self, storage: MemoryStorage) -> None:
        await storage.write("/a.txt", "a")
        await storage.copy_file("/a.txt", "/copy/a.txt")
        await storage.write("/a.txt", "changed")
        assert await storage.read_text("/copy/a.txt") == "a"

    @pytest.mark.asyncio()
    async def test_copy_tree_is_deep(self, storage: MemoryStorage) -> None:
        await seed(storage)
        await storage.copy_tree("/proj/src", "/backup/src")
        await storage.write("/proj/src/index.ts", "changed")
        assert await storage.read_text("/backup/src/index.ts") == "export {}"
        assert await storage.read_text("/backup/src/lib/util.ts") == "x"

    @pytest.mark.asyncio()
    async def test_move_file(self, storage: MemoryStorage) -> None:
        await storage.write("/a.txt", "a")
        await storage.move_file("/a.txt", "/dir/b.txt")
        assert await storage.read_text("/a.txt") is None
        assert await storage.read_text("/dir/b.txt") == "a"

    @pytest.mark.asyncio()
    async def test_move_tree(self, storage: MemoryStorage) -> None:
        await seed(storage)
        await storage.move_tree("/proj/src", "/moved")
        assert not await storage.is_directory("/proj/src")
        assert await storage.read_text("/moved/lib/util.ts") == "x"

    @pytest.mark.asyncio()
    async def test_failed_move_file_keeps_source(self, storage: MemoryStorage) -> None:
        await storage.write("/a.txt", "a")
        await storage.create_directory("/dir")
        with pytest.raises(StorageError, match="is a directory"):
            await storage.move_file("/a.txt", "/dir")
        assert await storage.read_text("/a.txt") == "a"
        assert await storage.is_directory("/dir")

    @pytest.mark.asyncio()
    async def test_failed_move_tree_keeps_source(self, storage: MemoryStorage) -> None:
        await seed(storage)
        with pytest.raises(StorageError, match="is a file"):
            await storage.move_tree("/proj/src", "/proj/README.md/src")
        assert await storage.read_text("/proj/src/lib/util.ts") == "x"
        assert await storage.read_text("/proj/README.md") == "# hi"

    @pytest.mark.asyncio()
    async def test_missing_sources(self, storage: MemoryStorage) -> None:
        with pytest.raises(StorageError, match="file not found"):
            await storage.copy_file("/nope", "/x")
        with pytest.raises(StorageError, match="file not found"):
            await storage.move_file("/nope", "/x")
        with pytest.raises(StorageError, match="path not found"):
            await storage.copy_tree("/nope", "/x")
        with pytest.raises(StorageError, match="path not found"):
            await storage.move_tree("/nope", "/x")

    @pytest.mark.asyncio()
    async def test_delete_file(self, storage: MemoryStorage) -> None:
        await storage.write("/d/a.txt", "a")
        assert await storage.delete_file("/d/a.txt") is True
        assert await storage.delete_file("/d/a.txt") is False
        with pytest.raises(StorageError, match="is a directory"):
            await storage.delete_file("/d")

    @pytest.mark.asyncio()
    async def test_delete_tree(self, storage: MemoryStorage) -> None:
        await seed(storage)
        assert await storage.delete_tree("/proj/src") is True
        assert await storage.delete_tree("/proj/src") is False
        assert [entry.name for entry in await storage.list("/proj")] == ["README.md"]

    @pytest.mark.asyncio()
    async def test_delete_root_clears_everything(self, storage: MemoryStorage) -> None:
        await seed(storage)
        assert await storage.delete_tree("/") is True
        assert await storage.list("/") == []


class TestOperationLogs:
    @pytest.mark.asyncio()
    async def test_records_calls_while_open(self, storage: MemoryStorage) -> None:
        await storage.write("/before.txt", "x")
        storage.log_start("ops")
        await storage.write("/a.txt", "a")
        await storage.copy_file("/a.txt", "/b.txt")
        entries = storage.log_end("ops")
        assert [(entry.method_name, entry.args) for entry in entries] == [
            ("write", ("/a.txt",)),
            ("copy_file", ("/a.txt", "/b.txt")),
        ]
        assert entries[0].timestamp <= entries[1].timestamp

    @pytest.mark.asyncio()
    async def test_concurrent_logs(self, storage: MemoryStorage) -> None:
        storage.log_start("outer")
        await storage.write("/a.txt", "a")
        storage.log_start("inner")
        await storage.is_file("/a.txt")
        inner = storage.log_end("inner")
        outer = storage.log_end("outer")
        assert [entry.method_name for entry in inner] == ["is_file"]
        assert [entry.method_name for entry in outer] == ["write", "is_file"]

    def test_restart_clears_log(self, storage: MemoryStorage) -> None:
        storage.log_start("ops")
        storage._record("write", "/x")
        storage.log_start("ops")
        assert storage.log_end("ops") == []

    def test_unknown_log(self, storage: MemoryStorage) -> None:
        with pytest.raises(StorageError, match="log does not exist"):
            storage.log_end("never-started")
