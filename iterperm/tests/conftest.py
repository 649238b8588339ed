import pytest

from iterperm import _config

ENV_VARS = ("ITERPERM_CAPACITY", "ITERPERM_MAX_WORKERS", "ITERPERM_CHUNK_SIZE_LIMIT")


@pytest.fixture(autouse=True)
def default_config(monkeypatch):
    """Run every test, class-based or not, against the built-in defaults."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    _config.reset()
    yield
    _config.reset()
