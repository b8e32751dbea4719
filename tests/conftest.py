import pytest

from app.database import Database
from tests.factories import seed_catalog


@pytest.fixture
async def database(tmp_path):
    """Отдельная файловая SQLite база на каждый тест"""
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'marketplace.db'}")
    db.connect()
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
async def seeded_database(database):
    await seed_catalog(database)
    return database
