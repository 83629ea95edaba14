"""In-memory storage driver.

Keeps a nested directory table in process memory. Useful for tests and for
building trees that never touch disk.

``"."``, ``""`` and ``"/"`` all address the root, and absolute and relative
spellings of the same path are equivalent (``/proj/a`` == ``proj/a``).
Listings and walks return entries in insertion order.

Example
-------
.. code-block:: python

    storage = MemoryStorage()
    await storage.write("/proj/src/index.ts", "export {}")
    async for entry in storage.walk("/proj"):
        print(entry.path, entry.depth)
"""

from __future__ import annotations

import copy
import json
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from canopy.drivers.storage.base import OperationLogMixin, passes
from canopy.kernel.domain.nodes import DirEntry, WalkEntry
from canopy.kernel.exceptions import StorageError
from canopy.kernel.logging import get_logger
from canopy.kernel.paths import normalize

if TYPE_CHECKING:
    from canopy.kernel.ports.storage import WalkFilter

logger = get_logger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class _MemoryFile:
    content: bytes
    modified: datetime = field(default_factory=_now)


@dataclass
class _MemoryDirectory:
    entries: dict[str, _MemoryFile | _MemoryDirectory] = field(default_factory=dict)
    modified: datetime = field(default_factory=_now)


class MemoryStorage(OperationLogMixin):
    """Storage backend held entirely in memory."""

    def __init__(self) -> None:
        self._init_logs()
        self._root = _MemoryDirectory()

    # ------------------------------------------------------------------
    # Path handling
    # ------------------------------------------------------------------

    @staticmethod
    def _segments(path: str) -> list[str]:
        normalized = normalize(path).lstrip("/")
        if normalized in ("", "."):
            return []
        segments = normalized.split("/")
        if ".." in segments:
            raise StorageError(path, "path escapes the storage root")
        return segments

    def _lookup(self, path: str) -> _MemoryFile | _MemoryDirectory | None:
        current: _MemoryFile | _MemoryDirectory = self._root
        for segment in self._segments(path):
            if not isinstance(current, _MemoryDirectory):
                return None
            child = current.entries.get(segment)
            if child is None:
                return None
            current = child
        return current

    def _ensure_directory(self, path: str, segments: list[str]) -> _MemoryDirectory:
        current = self._root
        for segment in segments:
            child = current.entries.get(segment)
            if child is None:
                child = _MemoryDirectory()
                current.entries[segment] = child
                current.modified = _now()
            elif isinstance(child, _MemoryFile):
                raise StorageError(path, f"'{segment}' is a file")
            current = child
        return current

    def _parent_and_name(self, path: str) -> tuple[_MemoryDirectory, str]:
        segments = self._segments(path)
        if not segments:
            raise StorageError(path, "operation not allowed on the storage root")
        return self._ensure_directory(path, segments[:-1]), segments[-1]

    def _detach(self, path: str) -> _MemoryFile | _MemoryDirectory | None:
        segments = self._segments(path)
        if not segments:
            return None
        parent = self._lookup("/".join(segments[:-1]))
        if not isinstance(parent, _MemoryDirectory):
            return None
        removed = parent.entries.pop(segments[-1], None)
        if removed is not None:
            parent.modified = _now()
        return removed

    def _place(self, path: str, item: _MemoryFile | _MemoryDirectory) -> None:
        parent, name = self._parent_and_name(path)
        existing = parent.entries.get(name)
        if isinstance(item, _MemoryFile) and isinstance(existing, _MemoryDirectory):
            raise StorageError(path, "is a directory")
        parent.entries[name] = item
        parent.modified = _now()

    def _relocate(
        self, source: str, destination: str, item: _MemoryFile | _MemoryDirectory
    ) -> None:
        # A failed move leaves the source where it was
        try:
            self._place(destination, item)
        except StorageError:
            self._place(source, item)
            raise

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def read_bytes(self, path: str) -> bytes | None:
        self._record("read_bytes", path)
        item = self._lookup(path)
        return item.content if isinstance(item, _MemoryFile) else None

    async def read_text(self, path: str) -> str | None:
        self._record("read_text", path)
        item = self._lookup(path)
        return item.content.decode("utf-8") if isinstance(item, _MemoryFile) else None

    async def read_json(self, path: str) -> Any:
        self._record("read_json", path)
        item = self._lookup(path)
        if not isinstance(item, _MemoryFile):
            return None
        return json.loads(item.content.decode("utf-8"))

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def write(self, path: str, content: str | bytes) -> None:
        self._record("write", path)
        data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        self._place(path, _MemoryFile(data))

    async def create_directory(self, path: str) -> None:
        self._record("create_directory", path)
        self._ensure_directory(path, self._segments(path))

    async def copy_file(self, source: str, destination: str) -> None:
        self._record("copy_file", source, destination)
        item = self._lookup(source)
        if not isinstance(item, _MemoryFile):
            raise StorageError(source, "file not found")
        self._place(destination, _MemoryFile(item.content))

    async def copy_tree(self, source: str, destination: str) -> None:
        self._record("copy_tree", source, destination)
        item = self._lookup(source)
        if item is None:
            raise StorageError(source, "path not found")
        self._place(destination, copy.deepcopy(item))

    async def move_file(self, source: str, destination: str) -> None:
        self._record("move_file", source, destination)
        if not isinstance(self._lookup(source), _MemoryFile):
            raise StorageError(source, "file not found")
        item = self._detach(source)
        assert item is not None
        self._relocate(source, destination, item)

    async def move_tree(self, source: str, destination: str) -> None:
        self._record("move_tree", source, destination)
        item = self._detach(source)
        if item is None:
            raise StorageError(source, "path not found")
        self._relocate(source, destination, item)

    async def delete_file(self, path: str) -> bool:
        self._record("delete_file", path)
        item = self._lookup(path)
        if item is None:
            return False
        if isinstance(item, _MemoryDirectory):
            raise StorageError(path, "is a directory")
        self._detach(path)
        return True

    async def delete_tree(self, path: str) -> bool:
        self._record("delete_tree", path)
        if not self._segments(path):
            had_entries = bool(self._root.entries)
            self._root.entries.clear()
            return had_entries
        return self._detach(path) is not None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def is_file(self, path: str) -> bool:
        self._record("is_file", path)
        return isinstance(self._lookup(path), _MemoryFile)

    async def is_directory(self, path: str) -> bool:
        self._record("is_directory", path)
        return isinstance(self._lookup(path), _MemoryDirectory)

    async def size(self, path: str) -> int | None:
        self._record("size", path)
        item = self._lookup(path)
        return len(item.content) if isinstance(item, _MemoryFile) else None

    async def last_modified(self, path: str) -> datetime | None:
        self._record("last_modified", path)
        item = self._lookup(path)
        return item.modified if item is not None else None

    async def list(self, path: str) -> list[DirEntry]:
        self._record("list", path)
        directory = self._lookup(path)
        if not isinstance(directory, _MemoryDirectory):
            raise StorageError(path, "directory not found")
        return [
            DirEntry(
                name=name,
                is_file=isinstance(item, _MemoryFile),
                is_directory=isinstance(item, _MemoryDirectory),
            )
            for name, item in directory.entries.items()
        ]

    async def walk(
        self,
        path: str,
        *,
        directory_filter: WalkFilter | None = None,
        entry_filter: WalkFilter | None = None,
    ) -> AsyncIterator[WalkEntry]:
        self._record("walk", path)
        directory = self._lookup(path)
        if not isinstance(directory, _MemoryDirectory):
            raise StorageError(path, "directory not found")
        logger.debug("Walking memory directory {path}", path=path)
        async for entry in self._walk(directory, "", 1, directory_filter, entry_filter):
            yield entry

    async def _walk(
        self,
        directory: _MemoryDirectory,
        prefix: str,
        depth: int,
        directory_filter: WalkFilter | None,
        entry_filter: WalkFilter | None,
    ) -> AsyncIterator[WalkEntry]:
        # Snapshot so writes made by a consumer mid-walk do not break iteration
        for name, item in list(directory.entries.items()):
            is_directory = isinstance(item, _MemoryDirectory)
            entry = WalkEntry(
                name=name,
                path=f"{prefix}/{name}" if prefix else name,
                depth=depth,
                is_file=not is_directory,
                is_directory=is_directory,
            )
            if await passes(entry_filter, entry):
                yield entry
            if isinstance(item, _MemoryDirectory) and await passes(directory_filter, entry):
                async for child in self._walk(
                    item, entry.path, depth + 1, directory_filter, entry_filter
                ):
                    yield child


__all__ = ["MemoryStorage"]
