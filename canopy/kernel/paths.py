"""Forward-slash path helpers shared by the engines and drivers.

All paths handled by canopy are POSIX-style strings regardless of the host
platform. These helpers are pure string operations and never touch
storage.
"""

from __future__ import annotations

import posixpath
from typing import NamedTuple


class ParsedPath(NamedTuple):
    """Components of a path, in the shape of ``root/dir/base``.

    ``name`` is ``base`` without ``ext``; ``ext`` keeps its leading dot and is
    empty for dotfiles such as ``.gitignore``.
    """

    root: str
    dir: str
    base: str
    ext: str
    name: str


def to_posix(path: str) -> str:
    """Convert backslash separators to forward slashes."""
    return path.replace("\\", "/")


def is_absolute(path: str) -> bool:
    """Return whether ``path`` is absolute (``/x`` or a ``C:/`` drive path)."""
    path = to_posix(path)
    if path.startswith("/"):
        return True
    return len(path) >= 3 and path[0].isalpha() and path[1] == ":" and path[2] == "/"


def normalize(path: str) -> str:
    """Collapse ``.``/``..`` segments and duplicate separators."""
    if not path:
        return "."
    return posixpath.normpath(to_posix(path))


def join_path(*parts: str) -> str:
    """Join path segments and normalize the result."""
    parts = tuple(to_posix(part) for part in parts if part)
    if not parts:
        return "."
    return normalize(posixpath.join(*parts))


def dirname(path: str) -> str:
    """Return the parent of ``path`` (``.`` for a bare relative name)."""
    parent = posixpath.dirname(normalize(path))
    return parent or "."


def resolve_path(base: str, maybe_relative: str | None = None) -> str:
    """Resolve ``maybe_relative`` against ``base``.

    An absent input resolves to ``base`` and an absolute input is returned
    unchanged, so callers can opt out of the base entirely.

    Examples
    --------
    >>> resolve_path("/proj", "src/../lib")
    '/proj/lib'
    >>> resolve_path("/proj", "/etc")
    '/etc'
    >>> resolve_path("/proj")
    '/proj'
    """
    if maybe_relative is None or maybe_relative == "":
        return base
    if is_absolute(maybe_relative):
        return maybe_relative
    return join_path(base, maybe_relative)


def parse_path(path: str) -> ParsedPath:
    """Split ``path`` into root, directory, base, extension and name.

    Examples
    --------
    >>> parse_path("/proj/src/index.test.ts")
    ParsedPath(root='/', dir='/proj/src', base='index.test.ts', ext='.ts', name='index.test')
    """
    path = to_posix(path)
    if path.startswith("/"):
        root = "/"
    elif is_absolute(path):
        root = path[:3]
    else:
        root = ""

    trimmed = path.rstrip("/") or root
    if trimmed == root:
        return ParsedPath(root=root, dir=root, base="", ext="", name="")

    directory, base = posixpath.split(trimmed)
    name, ext = posixpath.splitext(base)
    return ParsedPath(root=root, dir=directory, base=base, ext=ext, name=name)


__all__ = [
    "ParsedPath",
    "dirname",
    "is_absolute",
    "join_path",
    "normalize",
    "parse_path",
    "resolve_path",
    "to_posix",
]
