"""Shared fixtures for canopy tests."""

from __future__ import annotations

import pytest

from canopy.drivers.storage.memory import MemoryStorage

_CANOPY_ENV_VARS = (
    "CANOPY_CONFIG_PATH",
    "CANOPY_ROOT",
    "CANOPY_DEFAULT_IGNORE",
    "CANOPY_LOG_LEVEL",
    "CANOPY_LOG_FORMAT",
    "CANOPY_LOG_FILE",
    "CANOPY_LOG_COLOR",
)


@pytest.fixture(autouse=True)
def _clean_canopy_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep CANOPY_* variables from the outer environment out of tests."""
    for name in _CANOPY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def storage() -> MemoryStorage:
    return MemoryStorage()
