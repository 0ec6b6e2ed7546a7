"""API test fixtures — app with SQLite transaction provider + httpx client.

Invariants:
    - Every test gets a fresh SQLite database file under tmp_path
    - app.state.transaction_provider is set directly (ASGITransport skips lifespan)
"""

import pytest
from httpx import ASGITransport, AsyncClient

from routemap.config import Settings
from routemap.db.base import Base
from routemap.infrastructure.database import DatabaseSessionManager
from routemap.main import create_app

ADMIN_KEY = "admin-key"
READER_KEY = "reader-key"
DELETER_KEY = "deleter-key"


@pytest.fixture
def settings():
    return Settings(
        database_url=None,
        api_keys={ADMIN_KEY: ["admin"], READER_KEY: [], DELETER_KEY: ["users:delete"]},
    )


@pytest.fixture
async def db_manager(tmp_path):
    manager = DatabaseSessionManager(f"sqlite+aiosqlite:///{tmp_path / 'api.db'}")
    async with manager.engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield manager
    await manager.dispose()


@pytest.fixture
def app(settings, db_manager):
    app = create_app(settings)
    app.state.transaction_provider = db_manager
    return app


@pytest.fixture
async def client(app):
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c


@pytest.fixture
def admin():
    return {"X-API-Key": ADMIN_KEY}


@pytest.fixture
def reader():
    return {"X-API-Key": READER_KEY}


@pytest.fixture
def deleter():
    return {"X-API-Key": DELETER_KEY}
