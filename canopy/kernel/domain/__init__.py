"""Domain layer exports for canopy."""

from canopy.kernel.domain.nodes import (
    BaseNode,
    DirectoryNode,
    DirEntry,
    FileNode,
    LogEntry,
    TreeNode,
    TreeNodeAdapter,
    TreeStructure,
    WalkEntry,
    assert_directory_node,
    assert_file_node,
    is_directory_node,
    is_file_node,
    is_tree_node,
    load_tree_structure,
    parse_tree_structure,
)

__all__ = [
    # Node model
    "BaseNode",
    "DirectoryNode",
    "FileNode",
    "TreeNode",
    "TreeNodeAdapter",
    "TreeStructure",
    # Backend records
    "DirEntry",
    "LogEntry",
    "WalkEntry",
    # Guards
    "assert_directory_node",
    "assert_file_node",
    "is_directory_node",
    "is_file_node",
    "is_tree_node",
    # Declarative structures
    "load_tree_structure",
    "parse_tree_structure",
]
