"""Tree assembler: turns a backend walk into a parent-linked node tree.

The backend drives the walk; the assembler only reacts to the entries it
yields. Each build owns a path-keyed lookup table of the nodes created so
far. A new node is attached to the table entry for its parent path, so
directories only ever hold forward references to their children, in the
order the walk produced them.

Example
-------
.. code-block:: python

    assembler = TreeAssembler(MemoryStorage(), root="/proj")
    tree = await assembler.build("src", filter=["*.log"])

    async for path, entry in assembler.walk("src"):
        ...
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from enum import StrEnum
from typing import TYPE_CHECKING

from canopy.kernel.content import materialize_file_node
from canopy.kernel.domain.nodes import DirectoryNode, FileNode, TreeNode
from canopy.kernel.exceptions import ReadError
from canopy.kernel.filtering import FilterInput, compile_filter
from canopy.kernel.logging import get_logger
from canopy.kernel.paths import dirname, join_path, normalize, parse_path, resolve_path

if TYPE_CHECKING:
    from canopy.kernel.content import ContentTransformer
    from canopy.kernel.domain.nodes import WalkEntry
    from canopy.kernel.ports.storage import StorageBackend

logger = get_logger(__name__)

CompiledFilter = Callable[["WalkEntry"], Awaitable[bool]]


class BuildState(StrEnum):
    """Lifecycle of a single tree build."""

    NOT_STARTED = "not_started"
    WALKING = "walking"
    DONE = "done"
    FAILED = "failed"


class TreeBuild:
    """State owned by one ``build`` call: the root and the path lookup table.

    Nothing here is shared between builds, so concurrent builds against the
    same backend never interfere.
    """

    def __init__(self, root_path: str) -> None:
        self.root_path = root_path
        self.state = BuildState.NOT_STARTED
        self.nodes: dict[str, TreeNode] = {}
        self.root: DirectoryNode | None = None

    def start(self, root: DirectoryNode) -> None:
        self.root = root
        self.nodes[self.root_path] = root
        self.state = BuildState.WALKING

    def finish(self) -> None:
        self.state = BuildState.DONE
        logger.debug(
            "Tree build at {path} {state} with {count} nodes",
            path=self.root_path,
            state=self.state,
            count=len(self.nodes),
        )

    def fail(self, error: BaseException) -> None:
        """Mark the build failed; whatever was assembled so far is discarded."""
        self.state = BuildState.FAILED
        logger.debug(
            "Tree build at {path} {state} after {count} nodes: {error!r}",
            path=self.root_path,
            state=self.state,
            count=len(self.nodes),
            error=error,
        )

    def attach(self, path: str, node: TreeNode) -> bool:
        """Index ``node`` and link it under its parent.

        Returns False when the parent is not in the table, which only
        happens for entries whose ancestor was filtered out; such nodes stay
        unlinked.
        """
        self.nodes[path] = node
        parent = self.nodes.get(dirname(path))
        if isinstance(parent, DirectoryNode):
            parent.children.append(node)
            return True
        return False


class TreeAssembler:
    """Builds node trees from a storage backend's recursive walk.

    Args
    ----
        storage: Backend providing the walk and file content.
        root: Base directory that relative paths resolve against.
    """

    def __init__(self, storage: StorageBackend, root: str = ".") -> None:
        self.storage = storage
        self.root = root

    def resolve(self, path: str | None = None) -> str:
        """Resolve ``path`` against the assembler root, normalized."""
        return normalize(resolve_path(self.root, path))

    async def walk(
        self,
        dir_path: str | None = None,
        filter: FilterInput | CompiledFilter | None = None,
    ) -> AsyncIterator[tuple[str, WalkEntry]]:
        """Stream ``(resolved_path, entry)`` pairs without assembling a tree.

        The stream is lazy; a caller may stop consuming it at any point.
        """
        async for item in self._walk(self.resolve(dir_path), filter):
            yield item

    async def _walk(
        self,
        resolved: str,
        filter: FilterInput | CompiledFilter | None,
    ) -> AsyncIterator[tuple[str, WalkEntry]]:
        accept = compile_filter(filter)
        async for entry in self.storage.walk(
            resolved,
            directory_filter=accept,
            entry_filter=accept,
        ):
            yield join_path(resolved, entry.path), entry

    async def create_node(
        self,
        path: str,
        entry: WalkEntry,
        transform: ContentTransformer | None = None,
    ) -> TreeNode:
        """Create the node for one walk entry, materializing file content.

        Raises
        ------
        ReadError
            If the entry is neither a file nor a directory
        """
        if entry.is_file:
            return await materialize_file_node(self.storage, path, entry, transform)
        if not entry.is_directory:
            raise ReadError(path, "entry is neither a file nor a directory")

        return DirectoryNode(
            name=entry.name,
            path=entry.path,
            depth=entry.depth,
            modified=await self.storage.last_modified(path),
        )

    async def build(
        self,
        dir_path: str | None = None,
        filter: FilterInput | CompiledFilter | None = None,
        transform: ContentTransformer | None = None,
    ) -> DirectoryNode:
        """Walk ``dir_path`` and return it as a rooted directory tree.

        The root node has depth 0 and is named after the final segment of
        the resolved path.

        Raises
        ------
        ReadError
            If any file yields no content, or an entry is neither a file
            nor a directory
        FilterEvaluationError
            If a custom predicate fails
        """
        resolved = self.resolve(dir_path)
        build = TreeBuild(resolved)
        parsed = parse_path(resolved)
        label = parsed.base or parsed.root or resolved
        root = DirectoryNode(
            name=label,
            path=label,
            depth=0,
            modified=await self.storage.last_modified(resolved),
        )
        build.start(root)
        logger.debug("Building tree at {path}", path=resolved)

        try:
            async for path, entry in self._walk(resolved, filter):
                node = await self.create_node(path, entry, transform)
                if not build.attach(path, node):
                    logger.debug("Dropped {path}: parent not in tree", path=path)
        except BaseException as e:
            build.fail(e)
            raise

        build.finish()
        return root

    async def build_nodes(
        self,
        dir_path: str | None = None,
        filter: FilterInput | CompiledFilter | None = None,
        transform: ContentTransformer | None = None,
    ) -> list[TreeNode]:
        """Walk ``dir_path`` and return its depth-1 nodes, without a root."""
        tree = await self.build(dir_path, filter, transform)
        return tree.children

    async def files(
        self,
        dir_path: str | None = None,
        filter: FilterInput | CompiledFilter | None = None,
        transform: ContentTransformer | None = None,
    ) -> AsyncIterator[FileNode]:
        """Stream materialized file nodes, skipping directories."""
        async for path, entry in self.walk(dir_path, filter):
            if not entry.is_file:
                continue
            yield await materialize_file_node(self.storage, path, entry, transform)

    async def file(
        self,
        file_path: str,
        transform: ContentTransformer | None = None,
    ) -> FileNode | None:
        """Return the file node at ``file_path``, or ``None`` if there is none.

        The node is taken from a walk of the file's parent, so its ``path``
        and ``depth`` are relative to that directory.
        """
        resolved = self.resolve(file_path)
        if not await self.storage.is_file(resolved):
            return None
        async for path, entry in self._walk(dirname(resolved), _only(resolved)):
            if entry.is_file and path == resolved:
                return await materialize_file_node(self.storage, path, entry, transform)
        return None


def _only(resolved: str) -> CompiledFilter:
    target = parse_path(resolved).base

    async def accept(entry: WalkEntry) -> bool:
        return entry.depth == 1 and entry.name == target

    return accept


__all__ = ["BuildState", "CompiledFilter", "TreeAssembler", "TreeBuild"]
