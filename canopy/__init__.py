"""canopy: directory trees over pluggable async storage backends.

Walk a storage space into typed file and directory nodes, filter it with
``.gitignore``-style patterns or predicates, and hydrate storage back from a
declared tree.
"""

# Version is defined in pyproject.toml and read dynamically
try:
    from importlib.metadata import version

    __version__ = version("canopy-tree")
except Exception:
    __version__ = "0.0.0.dev0"  # Fallback for development checkouts

from canopy.client import Canopy, create_canopy
from canopy.drivers.storage import LocalStorage, MemoryStorage
from canopy.kernel.assembler import TreeAssembler
from canopy.kernel.config import CanopyConfig, LoggingConfig, load_config
from canopy.kernel.content import ContentType
from canopy.kernel.domain.nodes import (
    DirectoryNode,
    DirEntry,
    FileNode,
    TreeNode,
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
from canopy.kernel.exceptions import (
    CanopyError,
    ConfigurationError,
    DirectoryCreateError,
    FilterEvaluationError,
    InvalidNodeError,
    ReadError,
    StorageError,
    ValidationError,
    WriteError,
)
from canopy.kernel.filtering import PatternFilter, PredicateFilter, create_filter
from canopy.kernel.hydration import Hydrator
from canopy.kernel.logging import configure_logging, get_logger
from canopy.kernel.paths import ParsedPath, parse_path, resolve_path
from canopy.kernel.ports.storage import StorageBackend
from canopy.kernel.render import generate_tree_string, get_tree_stats, log_tree
from canopy.kernel.traversal import (
    contains_match,
    find_all_files,
    find_directory,
    find_file,
    traverse,
)

__all__ = [
    "__version__",
    # Entry points
    "Canopy",
    "create_canopy",
    "TreeAssembler",
    "Hydrator",
    # Storage
    "StorageBackend",
    "LocalStorage",
    "MemoryStorage",
    # Node model
    "DirEntry",
    "DirectoryNode",
    "FileNode",
    "TreeNode",
    "TreeStructure",
    "WalkEntry",
    "assert_directory_node",
    "assert_file_node",
    "is_directory_node",
    "is_file_node",
    "is_tree_node",
    "load_tree_structure",
    "parse_tree_structure",
    # Content & filters
    "ContentType",
    "PatternFilter",
    "PredicateFilter",
    "create_filter",
    # Paths
    "ParsedPath",
    "parse_path",
    "resolve_path",
    # Traversal & rendering
    "contains_match",
    "find_all_files",
    "find_directory",
    "find_file",
    "traverse",
    "generate_tree_string",
    "get_tree_stats",
    "log_tree",
    # Configuration & logging
    "CanopyConfig",
    "LoggingConfig",
    "load_config",
    "configure_logging",
    "get_logger",
    # Errors
    "CanopyError",
    "ConfigurationError",
    "DirectoryCreateError",
    "FilterEvaluationError",
    "InvalidNodeError",
    "ReadError",
    "StorageError",
    "ValidationError",
    "WriteError",
]
