"""Local disk storage driver built on aiofiles.

File reads and writes go through ``aiofiles``; whole-tree copies, moves
and deletes run ``shutil`` in the default executor so the event loop is
never blocked. Directory listings are sorted by name.
"""

from __future__ import annotations

import asyncio
import json
import os
import shutil
import stat
from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import aiofiles
import aiofiles.os

from canopy.drivers.storage.base import OperationLogMixin, passes
from canopy.kernel.domain.nodes import DirEntry, WalkEntry
from canopy.kernel.exceptions import StorageError
from canopy.kernel.logging import get_logger
from canopy.kernel.paths import dirname, join_path

if TYPE_CHECKING:
    from canopy.kernel.ports.storage import WalkFilter

logger = get_logger(__name__)


async def _run_blocking(func: Callable[..., Any], *args: Any) -> Any:
    return await asyncio.get_running_loop().run_in_executor(None, func, *args)


class LocalStorage(OperationLogMixin):
    """Storage backend over the local filesystem."""

    def __init__(self) -> None:
        self._init_logs()

    async def _stat(self, path: str) -> os.stat_result | None:
        try:
            return await aiofiles.os.stat(path)
        except (FileNotFoundError, NotADirectoryError):
            return None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def read_bytes(self, path: str) -> bytes | None:
        self._record("read_bytes", path)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return None

    async def read_text(self, path: str) -> str | None:
        self._record("read_text", path)
        try:
            async with aiofiles.open(path, encoding="utf-8", newline="") as f:
                return await f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
            return None

    async def read_json(self, path: str) -> Any:
        self._record("read_json", path)
        text = await self.read_text(path)
        return json.loads(text) if text is not None else None

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def write(self, path: str, content: str | bytes) -> None:
        self._record("write", path)
        await aiofiles.os.makedirs(dirname(path), exist_ok=True)
        if isinstance(content, str):
            async with aiofiles.open(path, "w", encoding="utf-8", newline="") as f:
                await f.write(content)
        else:
            async with aiofiles.open(path, "wb") as f:
                await f.write(bytes(content))

    async def create_directory(self, path: str) -> None:
        self._record("create_directory", path)
        await aiofiles.os.makedirs(path, exist_ok=True)

    async def copy_file(self, source: str, destination: str) -> None:
        self._record("copy_file", source, destination)
        if not await aiofiles.os.path.isfile(source):
            raise StorageError(source, "file not found")
        await aiofiles.os.makedirs(dirname(destination), exist_ok=True)
        await _run_blocking(shutil.copy2, source, destination)

    async def copy_tree(self, source: str, destination: str) -> None:
        self._record("copy_tree", source, destination)
        if not await aiofiles.os.path.isdir(source):
            raise StorageError(source, "directory not found")
        await _run_blocking(
            lambda: shutil.copytree(source, destination, symlinks=True, dirs_exist_ok=True)
        )

    async def move_file(self, source: str, destination: str) -> None:
        self._record("move_file", source, destination)
        if not await aiofiles.os.path.isfile(source):
            raise StorageError(source, "file not found")
        await aiofiles.os.makedirs(dirname(destination), exist_ok=True)
        await _run_blocking(shutil.move, source, destination)

    async def move_tree(self, source: str, destination: str) -> None:
        self._record("move_tree", source, destination)
        if not await aiofiles.os.path.exists(source):
            raise StorageError(source, "path not found")
        await aiofiles.os.makedirs(dirname(destination), exist_ok=True)
        await _run_blocking(shutil.move, source, destination)

    async def delete_file(self, path: str) -> bool:
        self._record("delete_file", path)
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return False
        except IsADirectoryError as e:
            raise StorageError(path, "is a directory") from e
        return True

    async def delete_tree(self, path: str) -> bool:
        self._record("delete_tree", path)
        if await aiofiles.os.path.isdir(path):
            await _run_blocking(shutil.rmtree, path)
            return True
        return await self.delete_file(path)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def is_file(self, path: str) -> bool:
        self._record("is_file", path)
        return await aiofiles.os.path.isfile(path)

    async def is_directory(self, path: str) -> bool:
        self._record("is_directory", path)
        return await aiofiles.os.path.isdir(path)

    async def size(self, path: str) -> int | None:
        self._record("size", path)
        result = await self._stat(path)
        if result is None or not stat.S_ISREG(result.st_mode):
            return None
        return result.st_size

    async def last_modified(self, path: str) -> datetime | None:
        self._record("last_modified", path)
        result = await self._stat(path)
        if result is None:
            return None
        return datetime.fromtimestamp(result.st_mtime, tz=UTC)

    async def list(self, path: str) -> list[DirEntry]:
        self._record("list", path)
        return [
            DirEntry(
                name=item.name,
                is_file=item.is_file(),
                is_directory=item.is_dir(),
                is_symlink=item.is_symlink(),
            )
            for item in await self._scan(path)
        ]

    async def _scan(self, path: str) -> list[os.DirEntry[str]]:
        try:
            with await aiofiles.os.scandir(path) as it:
                items = list(it)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise StorageError(path, "directory not found") from e
        return sorted(items, key=lambda item: item.name)

    async def walk(
        self,
        path: str,
        *,
        directory_filter: WalkFilter | None = None,
        entry_filter: WalkFilter | None = None,
    ) -> AsyncIterator[WalkEntry]:
        self._record("walk", path)
        logger.debug("Walking local directory {path}", path=path)
        async for entry in self._walk(path, "", 1, directory_filter, entry_filter):
            yield entry

    async def _walk(
        self,
        path: str,
        prefix: str,
        depth: int,
        directory_filter: WalkFilter | None,
        entry_filter: WalkFilter | None,
    ) -> AsyncIterator[WalkEntry]:
        for item in await self._scan(path):
            entry = WalkEntry(
                name=item.name,
                path=f"{prefix}/{item.name}" if prefix else item.name,
                depth=depth,
                is_file=item.is_file(),
                is_directory=item.is_dir(),
                is_symlink=item.is_symlink(),
            )
            # Dangling links, sockets and fifos are neither; they have no node form
            if not (entry.is_file or entry.is_directory):
                logger.debug("Skipping {path}: not a file or directory", path=entry.path)
                continue
            if await passes(entry_filter, entry):
                yield entry
            # Symlinked directories are reported but not followed
            if entry.is_symlink or not entry.is_directory:
                continue
            if await passes(directory_filter, entry):
                child_path = join_path(path, item.name)
                async for child in self._walk(
                    child_path, entry.path, depth + 1, directory_filter, entry_filter
                ):
                    yield child


__all__ = ["LocalStorage"]
