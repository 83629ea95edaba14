"""Hydration: write a declared or previously built tree into storage.

Two inputs are accepted: a :class:`~canopy.kernel.domain.nodes.DirectoryNode`
(for example the result of a tree build) or a ``TreeStructure`` mapping. In
both cases a directory is created before anything beneath it is written,
and every mapping value becomes a directory, including the empty mapping.

Hydration is not atomic. The first failing write aborts the run and
whatever was written before it stays in place.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from canopy.kernel.domain.nodes import (
    DirectoryNode,
    FileNode,
    TreeStructure,
    parse_tree_structure,
)
from canopy.kernel.exceptions import DirectoryCreateError, StorageError, ValidationError, WriteError
from canopy.kernel.logging import get_logger
from canopy.kernel.paths import join_path

if TYPE_CHECKING:
    from canopy.kernel.ports.storage import StorageBackend

logger = get_logger(__name__)


class Hydrator:
    """Recreates trees in a storage backend.

    Args
    ----
        storage: Backend to write into.
    """

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage

    async def hydrate(self, tree: TreeStructure | DirectoryNode, target: str) -> None:
        """Write ``tree`` beneath ``target``.

        Raises
        ------
        ValidationError
            If a structure mapping is malformed (checked before any write)
        WriteError
            If a file cannot be written
        DirectoryCreateError
            If a directory cannot be created
        """
        if isinstance(tree, DirectoryNode):
            logger.debug("Hydrating node tree {name} into {target}", name=tree.name, target=target)
            await self._write_directory_node(tree, target)
        elif isinstance(tree, Mapping):
            structure = parse_tree_structure(tree)
            logger.debug("Hydrating structure into {target}", target=target)
            await self._write_structure(structure, target)
        else:
            raise ValidationError(
                "tree", "expected a DirectoryNode or a mapping", value=type(tree).__name__
            )

    async def _write_directory_node(self, node: DirectoryNode, base: str) -> None:
        for child in node.children:
            child_path = join_path(base, child.name)
            if isinstance(child, FileNode):
                await self._write_file(child_path, _file_payload(child, child_path))
            else:
                await self._create_directory(child_path)
                await self._write_directory_node(child, child_path)

    async def _write_structure(self, structure: TreeStructure, base: str) -> None:
        for name, value in structure.items():
            path = join_path(base, name)
            if isinstance(value, str):
                await self._write_file(path, value)
            else:
                await self._create_directory(path)
                await self._write_structure(value, path)

    async def _write_file(self, path: str, content: str | bytes) -> None:
        try:
            await self.storage.write(path, content)
        except (OSError, StorageError) as e:
            raise WriteError(path, str(e)) from e
        logger.debug("Wrote {path}", path=path)

    async def _create_directory(self, path: str) -> None:
        try:
            await self.storage.create_directory(path)
        except (OSError, StorageError) as e:
            raise DirectoryCreateError(path, str(e)) from e
        logger.debug("Created directory {path}", path=path)


def _file_payload(node: FileNode, path: str) -> str | bytes:
    # Transformed content of any other type has no file representation.
    if isinstance(node.content, str | bytes):
        return node.content
    raise WriteError(path, f"cannot write content of type {type(node.content).__name__}")


__all__ = ["Hydrator"]
