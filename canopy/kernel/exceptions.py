"""Core exception hierarchy for canopy.

All canopy exceptions inherit from :class:`CanopyError` so callers can
catch every tree, filter, hydration and storage failure in one place.
Nothing here is retried or recovered silently: the engines raise and the
caller of the top-level operation decides what to do.
"""

from __future__ import annotations

# ============================================================================
# Base Exception
# ============================================================================


class CanopyError(Exception):
    """Base exception for all canopy errors.

    Catch this to handle all canopy-specific errors.
    """

    pass


# ============================================================================
# Configuration & Validation Errors
# ============================================================================


class ConfigurationError(CanopyError):
    """Raised when configuration is invalid or cannot be loaded.

    Examples
    --------
    Example usage::

        raise ConfigurationError("canopy.yaml", "expected a mapping at top level")
    """

    def __init__(self, component: str, reason: str) -> None:
        """Initialize configuration error.

        Args
        ----
            component: Name of the component (or file) with invalid configuration
            reason: Explanation of what's wrong
        """
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


class ValidationError(CanopyError):
    """Raised when caller-supplied data fails validation.

    Examples
    --------
    Example usage::

        raise ValidationError("tree_structure", "keys must not contain '/'", value="a/b")
    """

    def __init__(self, field: str, constraint: str, value: object = None) -> None:
        """Initialize validation error.

        Args
        ----
            field: Name of the field that failed validation
            constraint: Description of the validation constraint
            value: The invalid value (optional)
        """
        if value is not None:
            msg = f"Validation failed for '{field}': {constraint} (got {value!r})"
        else:
            msg = f"Validation failed for '{field}': {constraint}"
        super().__init__(msg)
        self.field = field
        self.constraint = constraint
        self.value = value


# ============================================================================
# Storage & Tree Errors
# ============================================================================


class _PathError(CanopyError):
    """Shared shape for errors tied to a single storage path."""

    label = "Error"

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{self.label} at '{path}': {reason}")
        self.path = path
        self.reason = reason


class StorageError(_PathError):
    """Raised by storage drivers when a primitive cannot be carried out.

    Examples
    --------
    Example usage::

        raise StorageError("/proj/src", "directory not found")
    """

    label = "Storage error"


class ReadError(_PathError):
    """Raised when a file expected to have content yields none.

    Fatal for the tree build that hit it; no partial tree is returned.
    """

    label = "Read error"


class FilterEvaluationError(_PathError):
    """Raised when a custom filter predicate fails for a walk entry.

    The predicate's own exception is chained as ``__cause__``.
    """

    label = "Filter evaluation failed"


class WriteError(_PathError):
    """Raised when hydration cannot write a file.

    Hydration is not atomic: files written before the failure remain.
    """

    label = "Write failed"


class DirectoryCreateError(_PathError):
    """Raised when hydration cannot create a directory."""

    label = "Directory creation failed"


class InvalidNodeError(CanopyError, TypeError):
    """Raised when a value is asserted to be a node of a kind it is not.

    Signals programmer error rather than a recoverable runtime condition.

    Examples
    --------
    Example usage::

        raise InvalidNodeError("file", node)
    """

    def __init__(self, expected: str, value: object, message: str | None = None) -> None:
        """Initialize invalid node error.

        Args
        ----
            expected: Node kind that was required ("file" or "directory")
            value: The offending value
            message: Optional override for the default message
        """
        actual = getattr(value, "type", type(value).__name__)
        super().__init__(message or f"value is not a {expected} (got {actual})")
        self.expected = expected
        self.value = value


__all__ = [
    # Base
    "CanopyError",
    # Configuration & Validation
    "ConfigurationError",
    "ValidationError",
    # Storage & Tree
    "DirectoryCreateError",
    "FilterEvaluationError",
    "InvalidNodeError",
    "ReadError",
    "StorageError",
    "WriteError",
]
