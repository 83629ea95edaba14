"""ASCII rendering and statistics for node trees.

Example
-------
.. code-block:: text

    src/
    ├── components/
    │   └── Button.tsx
    └── utils.ts
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from rich.console import Console

from canopy.kernel.domain.nodes import DirectoryNode, FileNode, TreeNode

BRANCH = "├── "
LAST = "└── "
VERTICAL = "│   "
SPACE = "    "


@dataclass(slots=True)
class TreeStats:
    """Counts collected over a node tree."""

    directory_count: int = 0
    file_count: int = 0
    max_depth: int = 0
    extensions: set[str] = field(default_factory=set)


def _label(node: TreeNode, extensions: bool, show_dates: bool) -> str:
    if isinstance(node, DirectoryNode):
        label = f"{node.name}/"
    else:
        label = node.base if extensions else node.stem

    if show_dates and node.modified is not None:
        label += f" ({node.modified:%Y-%m-%d})"
    return label


def generate_tree_string(
    nodes: Sequence[TreeNode],
    *,
    extensions: bool = True,
    show_dates: bool = False,
    prefix: str = "",
    max_depth: int | None = None,
) -> str:
    """Draw ``nodes`` as an ASCII tree.

    Args
    ----
        nodes: Top-level nodes to draw.
        extensions: Show file extensions; when False files show their stem.
        show_dates: Append the modification date when it is known.
        prefix: String prepended to every line.
        max_depth: Number of levels to draw; ``None`` draws everything.
    """
    lines: list[str] = []

    def draw(level: Sequence[TreeNode], indent: str, depth: int) -> None:
        if max_depth is not None and depth >= max_depth:
            return
        for index, node in enumerate(level):
            is_last = index == len(level) - 1
            connector = LAST if is_last else BRANCH
            lines.append(prefix + indent + connector + _label(node, extensions, show_dates))
            if isinstance(node, DirectoryNode) and node.children:
                draw(node.children, indent + (SPACE if is_last else VERTICAL), depth + 1)

    draw(nodes, "", 0)
    return "\n".join(lines)


def get_tree_stats(nodes: Sequence[TreeNode]) -> TreeStats:
    """Count directories, files, nesting depth and file extensions."""
    stats = TreeStats()

    def visit(level: Sequence[TreeNode], depth: int) -> None:
        stats.max_depth = max(stats.max_depth, depth)
        for node in level:
            if isinstance(node, FileNode):
                stats.file_count += 1
                if node.ext:
                    stats.extensions.add(node.ext)
            else:
                stats.directory_count += 1
                if node.children:
                    visit(node.children, depth + 1)

    visit(nodes, 0)
    return stats


def format_tree_stats(stats: TreeStats) -> str:
    """Render :class:`TreeStats` as a small tree-shaped block."""
    extensions = ", ".join(sorted(stats.extensions)) or "none"
    return "\n".join([
        "Stats:",
        f"{BRANCH}Total directories: {stats.directory_count}",
        f"{BRANCH}Total files: {stats.file_count}",
        f"{BRANCH}Max depth: {stats.max_depth}",
        f"{LAST}File extensions: {extensions}",
    ])


def log_tree(
    nodes: Sequence[TreeNode],
    *,
    extensions: bool = True,
    show_dates: bool = False,
    prefix: str = "",
    max_depth: int | None = None,
    stats: bool = False,
    console: Console | None = None,
) -> None:
    """Print the ASCII tree (and optionally its stats) to a rich console."""
    console = console or Console()
    output = generate_tree_string(
        nodes,
        extensions=extensions,
        show_dates=show_dates,
        prefix=prefix,
        max_depth=max_depth,
    )
    console.print(output, markup=False, highlight=False, soft_wrap=True)
    if stats:
        console.print()
        console.print(format_tree_stats(get_tree_stats(nodes)), markup=False, highlight=False)


__all__ = [
    "TreeStats",
    "format_tree_stats",
    "generate_tree_string",
    "get_tree_stats",
    "log_tree",
]
