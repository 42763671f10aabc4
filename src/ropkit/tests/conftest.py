"""Shared fixtures: fresh settings and silent logging for every test."""

import pytest

from ropkit.config import clear_settings_cache
from ropkit.observability import configure_logging


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> object:
    """Drop ROPKIT_* variables and the cached settings around each test."""
    import os

    for key in [k for k in os.environ if k.startswith("ROPKIT_")]:
        monkeypatch.delenv(key)
    clear_settings_cache()
    configure_logging("none")
    yield
    clear_settings_cache()
