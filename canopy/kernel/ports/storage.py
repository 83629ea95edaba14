"""Storage backend port.

The tree engines never touch a filesystem directly; every read, write and
walk goes through an object satisfying :class:`StorageBackend`. Drivers
live in :mod:`canopy.drivers.storage`.

Missing paths are not errors for queries: ``read_*``, ``size`` and
``last_modified`` return ``None`` and ``delete_*`` return ``False``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from canopy.kernel.domain.nodes import DirEntry, LogEntry, WalkEntry

# A walk hook: return (or resolve to) True to accept the entry.
WalkFilter = Callable[["WalkEntry"], "bool | Awaitable[bool]"]


@runtime_checkable
class StorageBackend(Protocol):
    """Primitive operations over a hierarchical storage space."""

    async def read_text(self, path: str) -> str | None:
        """Read a file as UTF-8 text, or ``None`` if it does not exist."""
        ...

    async def read_bytes(self, path: str) -> bytes | None:
        """Read a file's raw bytes, or ``None`` if it does not exist."""
        ...

    async def read_json(self, path: str) -> Any:
        """Read and parse a JSON file, or ``None`` if it does not exist."""
        ...

    async def write(self, path: str, content: str | bytes) -> None:
        """Write a file, creating missing parent directories."""
        ...

    async def create_directory(self, path: str) -> None:
        """Create a directory and any missing parents."""
        ...

    async def copy_file(self, source: str, destination: str) -> None:
        """Copy a single file."""
        ...

    async def copy_tree(self, source: str, destination: str) -> None:
        """Copy a directory and everything beneath it."""
        ...

    async def move_file(self, source: str, destination: str) -> None:
        """Move a single file."""
        ...

    async def move_tree(self, source: str, destination: str) -> None:
        """Move a directory and everything beneath it."""
        ...

    async def delete_file(self, path: str) -> bool:
        """Delete a file; return whether anything was deleted."""
        ...

    async def delete_tree(self, path: str) -> bool:
        """Delete a directory recursively; return whether anything was deleted."""
        ...

    async def is_file(self, path: str) -> bool:
        """Return whether ``path`` is an existing file."""
        ...

    async def is_directory(self, path: str) -> bool:
        """Return whether ``path`` is an existing directory."""
        ...

    async def size(self, path: str) -> int | None:
        """Return a file's size in bytes, or ``None`` if it does not exist."""
        ...

    async def last_modified(self, path: str) -> datetime | None:
        """Return the last modification time, or ``None`` when unknown."""
        ...

    async def list(self, path: str) -> list[DirEntry]:
        """List the direct children of a directory."""
        ...

    def walk(
        self,
        path: str,
        *,
        directory_filter: WalkFilter | None = None,
        entry_filter: WalkFilter | None = None,
    ) -> AsyncIterator[WalkEntry]:
        """Walk a directory depth-first.

        Args
        ----
            path: Directory to walk.
            directory_filter: Decides whether a directory is descended into.
            entry_filter: Decides whether an entry is yielded.

        Each entry is yielded before its subtree. ``None`` filters accept
        everything.
        """
        ...

    def log_start(self, name: str) -> None:
        """Start recording primitive calls under ``name``."""
        ...

    def log_end(self, name: str) -> list[LogEntry]:
        """Stop recording under ``name`` and return the captured calls."""
        ...


__all__ = ["StorageBackend", "WalkFilter"]
