# tests/conftest.py
import pytest


@pytest.fixture(autouse=True)
def codesync_home(tmp_path_factory, monkeypatch):
    """Point CODESYNC_HOME at a throwaway directory outside the test's tmp_path."""
    home = tmp_path_factory.mktemp("codesync-home")
    monkeypatch.setenv("CODESYNC_HOME", str(home))
    for name in (
        "CODESYNC_CUSTOM_IGNORE_PATTERNS",
        "CODESYNC_CUSTOM_EXTENSIONS",
        "QDRANT_URL",
        "QDRANT_HOST",
        "QDRANT_PORT",
    ):
        monkeypatch.delenv(name, raising=False)
    return home
