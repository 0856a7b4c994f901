import os
import sys
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

sys.path.append(str(Path(__file__).parents[1] / "src"))

# Settings are read at import time; point them at throwaway values first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret-key-not-for-production")
os.environ.setdefault("APP_ENV", "test")

from expense_ledger.db.session import get_db  # noqa: E402
from expense_ledger.main import app  # noqa: E402
from expense_ledger.models.base import Base  # noqa: E402
from expense_ledger.models.category import OTHER_DISPLAY_ORDER, Category  # noqa: E402
from expense_ledger.models.user import User  # noqa: E402


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture(scope="function")
async def test_engine(tmp_path):
    """File-backed SQLite database created from the ORM metadata.

    Not autouse, so pure unit tests (parsers, rules) never touch a database.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", echo=False)
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Provide test database session with fresh connection per test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def system_categories(db_session: AsyncSession) -> dict[str, Category]:
    """System categories shared by every user, including the Other fallback."""
    categories = {
        "food": Category(user_id=None, name="Food", color="#FF6B6B", display_order=1, is_default=True),
        "shopping": Category(user_id=None, name="Shopping", color="#45B7D1", display_order=2, is_default=True),
        "transport": Category(user_id=None, name="Transport", color="#4ECDC4", display_order=3, is_default=True),
        "other": Category(
            user_id=None,
            name="Other",
            color="#9C9C9C",
            display_order=OTHER_DISPLAY_ORDER,
            is_default=True,
            is_other=True,
        ),
    }
    db_session.add_all(categories.values())
    await db_session.commit()
    return categories


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user."""
    user = User(email="testuser@example.com", full_name="Test User")
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def auth_headers(test_user):
    """Provide authentication headers with valid JWT token."""
    from expense_ledger.core.security import create_access_token

    token = create_access_token(user_id=test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def client(db_session: AsyncSession):
    """Provide test client with database override."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
