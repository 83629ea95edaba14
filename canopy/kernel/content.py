"""Content materialization for file nodes.

:func:`read_content` decodes a stored file in one of the :class:`ContentType`
encodings. :func:`materialize_file_node` builds a complete
:class:`~canopy.kernel.domain.nodes.FileNode`: raw text is read first, then
an optional transform may replace it. A node is never handed out before its
content is in place.
"""

from __future__ import annotations

import base64
import inspect
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from canopy.kernel.domain.nodes import FileNode
from canopy.kernel.exceptions import ReadError
from canopy.kernel.paths import parse_path

if TYPE_CHECKING:
    from canopy.kernel.domain.nodes import WalkEntry
    from canopy.kernel.ports.storage import StorageBackend

# Receives the node with its raw text content; returns the content to keep.
ContentTransformer = Callable[[FileNode], Any | Awaitable[Any]]


class ContentType(StrEnum):
    """Encodings a file can be read in."""

    TEXT = "text"
    JSON = "json"
    BYTES = "bytes"
    BASE64 = "base64"


async def read_content(
    storage: StorageBackend,
    path: str,
    content_type: ContentType | str = ContentType.TEXT,
) -> Any:
    """Read ``path`` in the requested encoding.

    Args
    ----
        storage: Backend to read from.
        path: Resolved path of the file.
        content_type: ``text`` (default), ``json``, ``bytes`` or ``base64``.

    Returns
    -------
        The decoded content, or ``None`` if the backend has nothing at
        ``path``. A missing file is not an error here.
    """
    kind = ContentType(content_type)
    if kind is ContentType.BYTES:
        return await storage.read_bytes(path)
    if kind is ContentType.JSON:
        return await storage.read_json(path)
    if kind is ContentType.BASE64:
        data = await storage.read_bytes(path)
        return base64.b64encode(data).decode("ascii") if data is not None else None
    return await storage.read_text(path)


async def materialize_file_node(
    storage: StorageBackend,
    path: str,
    entry: WalkEntry,
    transform: ContentTransformer | None = None,
) -> FileNode:
    """Build a fully populated file node for a walk entry.

    Args
    ----
        storage: Backend the entry came from.
        path: Resolved path of the entry.
        entry: The walk entry being materialized.
        transform: Optional content transform; may be sync or async.

    Raises
    ------
    ReadError
        If the backend returns no text for the file, or text that is not UTF-8
    """
    try:
        raw = await read_content(storage, path, ContentType.TEXT)
    except UnicodeDecodeError as e:
        raise ReadError(path, "content is not valid UTF-8") from e
    if raw is None:
        raise ReadError(path, "backend returned no content")

    parsed = parse_path(path)
    node = FileNode(
        name=entry.name,
        path=entry.path,
        depth=entry.depth,
        modified=await storage.last_modified(path),
        base=parsed.base,
        ext=parsed.ext,
        size=await storage.size(path) or 0,
        is_symlink=entry.is_symlink,
        content=raw,
    )

    if transform is not None:
        content = transform(node.model_copy())
        if inspect.isawaitable(content):
            content = await content
        node.content = content

    return node


__all__ = ["ContentTransformer", "ContentType", "materialize_file_node", "read_content"]
