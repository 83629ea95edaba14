"""Domain models for walked and declared trees.

``TreeNode`` is a discriminated union over :class:`FileNode` and
:class:`DirectoryNode`, tagged by ``type``. Nodes are plain data: they hold
no reference to the storage backend that produced them and can be dumped
with ``model_dump()`` or rebuilt with ``TreeNodeAdapter.validate_python``.

Directories only hold forward references to their children; there are no
parent links.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any, Literal, TypeGuard, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from canopy.kernel.exceptions import InvalidNodeError, ValidationError

# Mapping of name -> file content (str) or nested directory (mapping).
# The empty mapping declares an empty directory.
TreeStructure = dict[str, Union[str, "TreeStructure"]]


class BaseNode(BaseModel):
    """Fields shared by every node.

    Attributes
    ----------
    name : str
        Final path segment, taken verbatim.
    path : str
        Position relative to the walk root, forward-slash separated.
    depth : int
        0 for the synthetic root, 1 for its direct children, and so on.
    modified : datetime | None
        Last modification time, when the backend can supply one.
    """

    name: str
    path: str
    depth: int = Field(ge=0)
    modified: datetime | None = None


class FileNode(BaseNode):
    """A file and its materialized content."""

    type: Literal["file"] = "file"
    base: str
    ext: str = ""
    size: int = Field(default=0, ge=0)
    is_symlink: bool = False
    content: Any = None

    @property
    def stem(self) -> str:
        """Base name without its extension."""
        return self.base[: -len(self.ext)] if self.ext else self.base


class DirectoryNode(BaseNode):
    """A directory; children keep the order the walk observed them in."""

    type: Literal["directory"] = "directory"
    children: list[TreeNode] = Field(default_factory=list)


TreeNode = Annotated[Union[FileNode, DirectoryNode], Field(discriminator="type")]

DirectoryNode.model_rebuild()

TreeNodeAdapter: TypeAdapter[FileNode | DirectoryNode] = TypeAdapter(TreeNode)


class DirEntry(BaseModel):
    """A direct child of a listed directory."""

    model_config = ConfigDict(frozen=True)

    name: str
    is_file: bool = False
    is_directory: bool = False
    is_symlink: bool = False


class WalkEntry(DirEntry):
    """One record yielded by a backend's recursive walk.

    ``path`` is relative to the walk root; ``depth`` is 1 for the root's
    direct children.
    """

    path: str
    depth: int = Field(ge=1)


class LogEntry(BaseModel):
    """One storage primitive call captured between ``log_start``/``log_end``."""

    model_config = ConfigDict(frozen=True)

    timestamp: float
    method_name: str
    args: tuple[Any, ...] = ()


# ============================================================================
# Type tests and assertions
# ============================================================================


def is_tree_node(value: object) -> TypeGuard[FileNode | DirectoryNode]:
    """Return whether ``value`` is a file or directory node."""
    return isinstance(value, FileNode | DirectoryNode)


def is_file_node(value: object) -> TypeGuard[FileNode]:
    """Return whether ``value`` is a :class:`FileNode`."""
    return isinstance(value, FileNode)


def is_directory_node(value: object) -> TypeGuard[DirectoryNode]:
    """Return whether ``value`` is a :class:`DirectoryNode`."""
    return isinstance(value, DirectoryNode)


def assert_file_node(value: object, msg: str | None = None) -> FileNode:
    """Return ``value`` unchanged if it is a file node.

    Raises
    ------
    InvalidNodeError
        If ``value`` is anything else
    """
    if not is_file_node(value):
        raise InvalidNodeError("file", value, msg)
    return value


def assert_directory_node(value: object, msg: str | None = None) -> DirectoryNode:
    """Return ``value`` unchanged if it is a directory node.

    Raises
    ------
    InvalidNodeError
        If ``value`` is anything else
    """
    if not is_directory_node(value):
        raise InvalidNodeError("directory", value, msg)
    return value


# ============================================================================
# Declarative structures
# ============================================================================


def parse_tree_structure(data: Any, _location: str = "") -> TreeStructure:
    """Validate ``data`` as a :class:`TreeStructure`.

    Args
    ----
        data: Candidate mapping of names to contents or nested mappings.

    Returns
    -------
        A plain-``dict`` copy of the structure, key order preserved.

    Raises
    ------
    ValidationError
        If a key is empty or contains ``/``, or a value is neither a string
        nor a mapping.
    """
    field = _location or "tree_structure"
    if not isinstance(data, Mapping):
        raise ValidationError(field, "must be a mapping", value=type(data).__name__)

    structure: TreeStructure = {}
    for key, value in data.items():
        location = f"{_location}/{key}" if _location else str(key)
        if not isinstance(key, str) or not key:
            raise ValidationError(field, "names must be non-empty strings", value=key)
        if "/" in key or key in (".", ".."):
            raise ValidationError(location, "names must be single path segments", value=key)
        if isinstance(value, str):
            structure[key] = value
        elif isinstance(value, Mapping):
            structure[key] = parse_tree_structure(value, location)
        else:
            raise ValidationError(
                location, "must be file content or a nested mapping", value=type(value).__name__
            )
    return structure


def load_tree_structure(path: str | Path) -> TreeStructure:
    """Load and validate a tree structure from a YAML or JSON file.

    Raises
    ------
    ValidationError
        If the file cannot be parsed or does not describe a tree structure
    """
    file_path = Path(path)
    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValidationError(str(file_path), f"could not parse structure file: {e}") from e
    return parse_tree_structure(data if data is not None else {})


__all__ = [
    "BaseNode",
    "DirEntry",
    "DirectoryNode",
    "FileNode",
    "LogEntry",
    "TreeNode",
    "TreeNodeAdapter",
    "TreeStructure",
    "WalkEntry",
    "assert_directory_node",
    "assert_file_node",
    "is_directory_node",
    "is_file_node",
    "is_tree_node",
    "load_tree_structure",
    "parse_tree_structure",
]
