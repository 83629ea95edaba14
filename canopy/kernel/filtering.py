"""Filter compiler for walk entries.

A filter spec is either a :class:`PatternFilter` (``.gitignore``-style
patterns) or a :class:`PredicateFilter` (a function of the walk entry that
returns a bool, or an awaitable bool). Plain lists of patterns and plain
callables are accepted at the API boundary and normalised by
:func:`as_filter_spec`.

:func:`compile_filter` turns one spec into the single inclusion test the
backend runs for both its directory and entry hooks; a directory the test
rejects is pruned together with its subtree. :func:`create_filter`
combines an ``include`` spec and an ``ignore`` spec: ``include`` narrows
first, then ``ignore`` removes.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

import pathspec

from canopy.kernel.exceptions import FilterEvaluationError, ValidationError
from canopy.kernel.logging import get_logger

if TYPE_CHECKING:
    from canopy.kernel.domain.nodes import WalkEntry

logger = get_logger(__name__)

Predicate = Callable[["WalkEntry"], "bool | Awaitable[bool]"]


@dataclass(frozen=True, slots=True)
class PatternFilter:
    """Ordered ``.gitignore``-style patterns, negations (``!``) included."""

    patterns: tuple[str, ...]
    _spec: pathspec.GitIgnoreSpec = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "patterns", tuple(self.patterns))
        object.__setattr__(self, "_spec", pathspec.GitIgnoreSpec.from_lines(self.patterns))

    def matches(self, entry: WalkEntry) -> bool:
        """Return whether the patterns select ``entry``.

        Directory paths get a trailing slash so directory-only patterns
        such as ``build/`` apply to them.
        """
        path = entry.path.rstrip("/")
        if entry.is_directory:
            path += "/"
        return self._spec.match_file(path)


@dataclass(frozen=True, slots=True)
class PredicateFilter:
    """A caller-supplied decision function over walk entries."""

    predicate: Predicate

    async def evaluate(self, entry: WalkEntry) -> bool:
        """Run the predicate, awaiting it if it returned an awaitable.

        Raises
        ------
        FilterEvaluationError
            If the predicate raises; the original exception is chained
        """
        try:
            result = self.predicate(entry)
            if inspect.isawaitable(result):
                result = await result
        except FilterEvaluationError:
            raise
        except Exception as e:
            raise FilterEvaluationError(entry.path, f"{type(e).__name__}: {e}") from e
        return bool(result)


FilterSpec = Union[PatternFilter, PredicateFilter]
FilterInput = Union[FilterSpec, Sequence[str], Predicate]


def as_filter_spec(value: FilterInput) -> FilterSpec:
    """Normalise a raw pattern list or callable into a tagged filter spec.

    Raises
    ------
    ValidationError
        If ``value`` is neither patterns nor a callable
    """
    if isinstance(value, PatternFilter | PredicateFilter):
        return value
    if isinstance(value, str):
        raise ValidationError("filter", "patterns must be a list, not a single string", value)
    if isinstance(value, Sequence):
        if not all(isinstance(pattern, str) for pattern in value):
            raise ValidationError("filter", "patterns must be strings", value=list(value))
        return PatternFilter(tuple(value))
    if callable(value):
        return PredicateFilter(value)
    raise ValidationError("filter", "expected a pattern list or a predicate", value=value)


async def evaluate_filter(spec: FilterSpec, entry: WalkEntry) -> bool:
    """Return whether ``spec`` selects ``entry``.

    For patterns this is "the entry matches" (i.e. the matcher would ignore
    it); for predicates it is the predicate's own answer.
    """
    if isinstance(spec, PatternFilter):
        return spec.matches(entry)
    return await spec.evaluate(entry)


def compile_filter(
    value: FilterInput | None = None,
) -> Callable[[WalkEntry], Awaitable[bool]] | None:
    """Compile a single filter spec into an inclusion test.

    Returns ``None`` when no spec is given, meaning "accept everything".
    Pattern lists include what they do *not* match; predicates decide
    directly.
    """
    if value is None:
        return None

    spec = as_filter_spec(value)

    if isinstance(spec, PatternFilter):
        logger.debug("Compiled ignore filter with {count} patterns", count=len(spec.patterns))

        async def include_unmatched(entry: WalkEntry) -> bool:
            return not spec.matches(entry)

        return include_unmatched

    logger.debug("Compiled predicate filter {name}", name=_describe(spec.predicate))
    return spec.evaluate


def create_filter(
    *,
    include: FilterInput | None = None,
    ignore: FilterInput | None = None,
) -> Callable[[WalkEntry], Awaitable[bool]] | None:
    """Combine ``include`` and ``ignore`` specs into one inclusion test.

    Per entry: if ``include`` is present and does not select the entry it
    is rejected; otherwise, if ``ignore`` is present and selects it, it is
    rejected; everything else is accepted. Returns ``None`` when neither
    spec is given.

    Examples
    --------
    Example usage::

        accept = create_filter(include=["*.ts"], ignore=["*.test.ts"])
    """
    if include is None and ignore is None:
        return None

    include_spec = as_filter_spec(include) if include is not None else None
    ignore_spec = as_filter_spec(ignore) if ignore is not None else None

    async def accept(entry: WalkEntry) -> bool:
        if include_spec is not None and not await evaluate_filter(include_spec, entry):
            return False
        if ignore_spec is not None and await evaluate_filter(ignore_spec, entry):
            return False
        return True

    return accept


def _describe(predicate: Predicate) -> str:
    return getattr(predicate, "__qualname__", type(predicate).__name__)


__all__ = [
    "FilterInput",
    "FilterSpec",
    "PatternFilter",
    "Predicate",
    "PredicateFilter",
    "as_filter_spec",
    "compile_filter",
    "create_filter",
    "evaluate_filter",
]
