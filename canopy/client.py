"""High-level entry point binding a storage backend to a root directory.

Example
-------
.. code-block:: python

    fs = Canopy(MemoryStorage(), root="/proj")
    await fs.hydrate({"src": {"index.ts": "export {}"}, "README.md": "# hi"})

    tree = await fs.tree(ignore=["*.md"])
    async for file in fs.files("src"):
        print(file.path, len(file.content))
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import TYPE_CHECKING, Any

from canopy.drivers.storage.memory import MemoryStorage
from canopy.kernel.assembler import CompiledFilter, TreeAssembler
from canopy.kernel.config import DEFAULT_IGNORE, CanopyConfig, load_config
from canopy.kernel.content import ContentType, read_content
from canopy.kernel.exceptions import ValidationError
from canopy.kernel.filtering import FilterInput, PatternFilter, create_filter
from canopy.kernel.hydration import Hydrator
from canopy.kernel.logging import get_logger

if TYPE_CHECKING:
    from canopy.kernel.content import ContentTransformer
    from canopy.kernel.domain.nodes import (
        DirectoryNode,
        DirEntry,
        FileNode,
        LogEntry,
        TreeNode,
        TreeStructure,
        WalkEntry,
    )
    from canopy.kernel.ports.storage import StorageBackend

logger = get_logger(__name__)


class Canopy:
    """Tree-shaped view over a storage backend.

    Every path argument is resolved against ``root``; absolute paths bypass
    it. Tree operations take either ``filter`` (a pattern list, predicate or
    compiled filter) or the ``include``/``ignore`` pair, never both.

    Args
    ----
        storage: Backend to read from and write to.
        root: Base directory for relative paths.
        default_ignore: Patterns :meth:`files` applies when given no filter.
    """

    def __init__(
        self,
        storage: StorageBackend,
        root: str = ".",
        default_ignore: Sequence[str] = DEFAULT_IGNORE,
    ) -> None:
        self.storage = storage
        self.default_ignore = tuple(default_ignore)
        self._assembler = TreeAssembler(storage, root)
        self._hydrator = Hydrator(storage)

    @classmethod
    def from_config(
        cls, config: CanopyConfig, storage: StorageBackend | None = None
    ) -> Canopy:
        """Build an instance from configuration and install its logging setup."""
        config.logging.apply()
        return cls(
            storage if storage is not None else MemoryStorage(),
            root=config.root,
            default_ignore=config.default_ignore,
        )

    @property
    def root(self) -> str:
        return self._assembler.root

    def resolve_path(self, path: str | None = None) -> str:
        """Resolve ``path`` against the root."""
        return self._assembler.resolve(path)

    # ------------------------------------------------------------------
    # File primitives
    # ------------------------------------------------------------------

    async def read(self, path: str, content_type: ContentType | str = ContentType.TEXT) -> Any:
        """Read a file as text, JSON, bytes or base64; ``None`` if it is missing."""
        return await read_content(self.storage, self.resolve_path(path), content_type)

    async def write(self, path: str, content: str | bytes) -> None:
        await self.storage.write(self.resolve_path(path), content)

    async def copy(self, source: str, destination: str) -> None:
        """Copy a file, or a whole directory tree."""
        source_path = self.resolve_path(source)
        destination_path = self.resolve_path(destination)
        if await self.storage.is_file(source_path):
            await self.storage.copy_file(source_path, destination_path)
        else:
            await self.storage.copy_tree(source_path, destination_path)

    async def move(self, source: str, destination: str) -> None:
        """Move a file, or a whole directory tree."""
        source_path = self.resolve_path(source)
        destination_path = self.resolve_path(destination)
        if await self.storage.is_file(source_path):
            await self.storage.move_file(source_path, destination_path)
        else:
            await self.storage.move_tree(source_path, destination_path)

    async def delete(self, path: str) -> bool:
        """Delete a file or a directory tree; return whether anything was deleted."""
        resolved = self.resolve_path(path)
        if await self.storage.is_directory(resolved):
            return await self.storage.delete_tree(resolved)
        return await self.storage.delete_file(resolved)

    async def list(self, dir_path: str | None = None) -> list[DirEntry]:
        return await self.storage.list(self.resolve_path(dir_path))

    # ------------------------------------------------------------------
    # Trees
    # ------------------------------------------------------------------

    async def walk(
        self,
        dir_path: str | None = None,
        filter: FilterInput | CompiledFilter | None = None,
        *,
        include: FilterInput | None = None,
        ignore: FilterInput | None = None,
    ) -> AsyncIterator[tuple[str, WalkEntry]]:
        """Stream ``(resolved_path, entry)`` pairs for everything under ``dir_path``."""
        async for item in self._assembler.walk(dir_path, _pick_filter(filter, include, ignore)):
            yield item

    async def files(
        self,
        dir_path: str | None = None,
        filter: FilterInput | CompiledFilter | None = None,
        content: ContentTransformer | None = None,
        *,
        include: FilterInput | None = None,
        ignore: FilterInput | None = None,
    ) -> AsyncIterator[FileNode]:
        """Stream file nodes under ``dir_path``.

        Without any filter the ``default_ignore`` patterns apply.
        """
        accept = _pick_filter(filter, include, ignore)
        if accept is None:
            accept = PatternFilter(self.default_ignore)
        async for node in self._assembler.files(dir_path, accept, content):
            yield node

    async def file(
        self, path: str, content: ContentTransformer | None = None
    ) -> FileNode | None:
        """Return the file node at ``path``, or ``None`` if there is no such file."""
        return await self._assembler.file(path, content)

    async def tree(
        self,
        dir_path: str | None = None,
        filter: FilterInput | CompiledFilter | None = None,
        content: ContentTransformer | None = None,
        *,
        include: FilterInput | None = None,
        ignore: FilterInput | None = None,
    ) -> DirectoryNode:
        """Build the rooted tree for ``dir_path``."""
        return await self._assembler.build(dir_path, _pick_filter(filter, include, ignore), content)

    async def directory(
        self,
        dir_path: str | None = None,
        filter: FilterInput | CompiledFilter | None = None,
        content: ContentTransformer | None = None,
        *,
        include: FilterInput | None = None,
        ignore: FilterInput | None = None,
    ) -> list[TreeNode]:
        """Build the tree for ``dir_path`` and return its top-level nodes."""
        return await self._assembler.build_nodes(
            dir_path, _pick_filter(filter, include, ignore), content
        )

    async def hydrate(
        self, tree: TreeStructure | DirectoryNode, target: str | None = None
    ) -> None:
        """Write ``tree`` beneath ``target`` (default: the root)."""
        await self._hydrator.hydrate(tree, self.resolve_path(target))

    # ------------------------------------------------------------------
    # Operation logs
    # ------------------------------------------------------------------

    def log_start(self, name: str) -> None:
        self.storage.log_start(name)

    def log_end(self, name: str) -> list[LogEntry]:
        return self.storage.log_end(name)


def _pick_filter(
    filter: FilterInput | CompiledFilter | None,
    include: FilterInput | None,
    ignore: FilterInput | None,
) -> FilterInput | CompiledFilter | None:
    if include is None and ignore is None:
        return filter
    if filter is not None:
        raise ValidationError("filter", "pass either filter or include/ignore, not both")
    return create_filter(include=include, ignore=ignore)


def create_canopy(
    storage: StorageBackend | None = None,
    config: CanopyConfig | None = None,
) -> Canopy:
    """Create a :class:`Canopy` from configuration.

    Defaults to an in-memory backend and :func:`load_config`.
    """
    config = config if config is not None else load_config()
    logger.debug("Creating canopy rooted at {root}", root=config.root)
    return Canopy.from_config(config, storage)


__all__ = ["Canopy", "create_canopy"]
