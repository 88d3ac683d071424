# tests/unit/core/test_database.py
import pytest

from storefront.database import async_database_url


@pytest.mark.parametrize("url,expected", [
    ("postgresql://u:p@db/shop", "postgresql+asyncpg://u:p@db/shop"),
    ("postgres://u:p@db/shop", "postgresql+asyncpg://u:p@db/shop"),
    ("postgresql+asyncpg://u:p@db/shop", "postgresql+asyncpg://u:p@db/shop"),
])
def test_plain_postgres_urls_use_asyncpg(url, expected):
    assert async_database_url(url) == expected


def test_missing_database_url_is_refused():
    with pytest.raises(ValueError):
        async_database_url("")
