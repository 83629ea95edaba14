"""Depth-first helpers over already-built node trees.

Nothing here touches storage. Every call to :func:`traverse` returns a
fresh generator, so a traversal can be restarted simply by calling it
again.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

from canopy.kernel.domain.nodes import DirectoryNode, FileNode, TreeNode


def traverse(nodes: Iterable[TreeNode]) -> Iterator[TreeNode]:
    """Yield every node in pre-order: a node, then its subtree, then its next sibling."""
    for node in nodes:
        yield node

        if isinstance(node, DirectoryNode) and node.children:
            yield from traverse(node.children)


def find_file(
    nodes: Iterable[TreeNode],
    predicate: Callable[[FileNode], bool],
) -> FileNode | None:
    """Return the first file in traversal order matching ``predicate``."""
    for node in traverse(nodes):
        if isinstance(node, FileNode) and predicate(node):
            return node
    return None


def find_directory(
    nodes: Iterable[TreeNode],
    predicate: Callable[[DirectoryNode], bool],
) -> DirectoryNode | None:
    """Return the first directory in traversal order matching ``predicate``."""
    for node in traverse(nodes):
        if isinstance(node, DirectoryNode) and predicate(node):
            return node
    return None


def find_all_files(
    nodes: Iterable[TreeNode],
    predicate: Callable[[FileNode], bool],
) -> list[FileNode]:
    """Return every file matching ``predicate``, in traversal order."""
    return [node for node in traverse(nodes) if isinstance(node, FileNode) and predicate(node)]


def contains_match(
    nodes: Iterable[TreeNode] | DirectoryNode,
    predicate: Callable[[TreeNode], bool],
) -> bool:
    """Return whether any node matches ``predicate``, stopping at the first hit.

    A directory argument is searched through its children, not itself.
    """
    if isinstance(nodes, DirectoryNode):
        nodes = nodes.children
    return any(predicate(node) for node in traverse(nodes))


__all__ = ["contains_match", "find_all_files", "find_directory", "find_file", "traverse"]
