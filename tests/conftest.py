import pytest

from mealpool.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Each test sees settings built from its own environment."""
    for name in (
        "MEALPOOL_SETTLEMENT_TRANSFER_MODE",
        "MEALPOOL_SETTLEMENT_INCLUDE_MANAGER_IN_SHARES",
        "MEALPOOL_STORAGE_DATA_PATH",
        "LOG_LEVEL",
        "DEBUG_MODE",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
