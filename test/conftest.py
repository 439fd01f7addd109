import pytest

from tidypyground.config import get_settings


@pytest.fixture(autouse=True)
def reset_settings():
    """Settings are cached, so they must be reloaded when tests change the environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def engine_env(monkeypatch):
    """Set engine settings through the environment for a single test."""

    def _set(**values):
        for name, value in values.items():
            monkeypatch.setenv(f"TIDYPYGROUND_{name.upper()}", value)
        get_settings.cache_clear()

    return _set
