"""Shared plumbing for storage drivers: operation logs and walk hooks."""

from __future__ import annotations

import inspect
import time
from typing import TYPE_CHECKING, Any

from canopy.kernel.domain.nodes import LogEntry
from canopy.kernel.exceptions import StorageError

if TYPE_CHECKING:
    from canopy.kernel.domain.nodes import WalkEntry
    from canopy.kernel.ports.storage import WalkFilter


class OperationLogMixin:
    """Records primitive calls into named logs.

    Drivers call :meth:`_record` at the top of every primitive. Several logs
    can be open at once; each one captures the calls made while it is open.
    """

    _logs: dict[str, list[LogEntry]]

    def _init_logs(self) -> None:
        self._logs = {}

    def _record(self, method_name: str, *args: Any) -> None:
        if not self._logs:
            return
        entry = LogEntry(timestamp=time.time(), method_name=method_name, args=args)
        for entries in self._logs.values():
            entries.append(entry)

    def log_start(self, name: str) -> None:
        """Start a log named ``name``; restarting an open log clears it."""
        self._logs[name] = []

    def log_end(self, name: str) -> list[LogEntry]:
        """Close the log named ``name`` and return what it captured.

        Raises
        ------
        StorageError
            If no log with that name is open
        """
        try:
            return self._logs.pop(name)
        except KeyError:
            raise StorageError(name, "log does not exist") from None


async def passes(hook: WalkFilter | None, entry: WalkEntry) -> bool:
    """Evaluate a walk hook that may be sync or async; ``None`` accepts."""
    if hook is None:
        return True
    result = hook(entry)
    if inspect.isawaitable(result):
        result = await result
    return bool(result)


__all__ = ["OperationLogMixin", "passes"]
