# tests/conftest.py
from unittest.mock import AsyncMock, MagicMock

import pytest

from storefront.core.config import clear_settings_cache
from tests.mocks.mock_cache import InMemoryCache


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached per process; tests that patch env vars need a clean read."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_session():
    """AsyncSession double: awaitable queries, sync add/add_all, async-with savepoints."""
    session = AsyncMock()
    session.add = MagicMock()
    session.add_all = MagicMock()
    session.begin_nested = MagicMock()
    return session


@pytest.fixture
def session_factory(mock_session):
    """Callable returning an async context manager that yields mock_session."""
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = mock_session
    factory.return_value.__aexit__.return_value = False
    return factory


@pytest.fixture
def cache():
    return InMemoryCache()
