"""Kernel of canopy: node model, ports and the tree engines.

The kernel never touches a concrete filesystem; everything goes through
:class:`~canopy.kernel.ports.storage.StorageBackend`.
"""

from canopy.kernel.assembler import BuildState, TreeAssembler, TreeBuild
from canopy.kernel.content import ContentType, materialize_file_node, read_content
from canopy.kernel.filtering import (
    PatternFilter,
    PredicateFilter,
    as_filter_spec,
    compile_filter,
    create_filter,
    evaluate_filter,
)
from canopy.kernel.hydration import Hydrator
from canopy.kernel.traversal import (
    contains_match,
    find_all_files,
    find_directory,
    find_file,
    traverse,
)

__all__ = [
    # Tree assembly
    "BuildState",
    "TreeAssembler",
    "TreeBuild",
    # Content
    "ContentType",
    "materialize_file_node",
    "read_content",
    # Filtering
    "PatternFilter",
    "PredicateFilter",
    "as_filter_spec",
    "compile_filter",
    "create_filter",
    "evaluate_filter",
    # Hydration
    "Hydrator",
    # Traversal
    "contains_match",
    "find_all_files",
    "find_directory",
    "find_file",
    "traverse",
]
