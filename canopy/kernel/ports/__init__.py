"""Port interfaces for canopy."""

from canopy.kernel.ports.storage import StorageBackend, WalkFilter

__all__ = ["StorageBackend", "WalkFilter"]
