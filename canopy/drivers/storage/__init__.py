"""Storage drivers implementing :class:`~canopy.kernel.ports.storage.StorageBackend`."""

from canopy.drivers.storage.local import LocalStorage
from canopy.drivers.storage.memory import MemoryStorage

__all__ = ["LocalStorage", "MemoryStorage"]
