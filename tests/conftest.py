import os
import sys

# Provide required auth secrets for tests if not already set
os.environ.setdefault("ENV_SECRET", "test-secret")
os.environ.setdefault("ENV_RESET_PASSWORD_TOKEN_SECRET", "test-reset-secret")
os.environ.setdefault("ENV_VERIFICATION_TOKEN_SECRET", "test-verify-secret")
os.environ["SEED_CATEGORIES"] = "false"
os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("SMTP_HOST", None)

# Ensure project root is on sys.path so `auth`, `budgets`, ... resolve
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


import uuid
from datetime import datetime, timezone
from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from auth.context import UserContext
from auth.tables import UserTable  # noqa: F401  users table joins Base.metadata
from db.models import Base, Budget
from db.session import enable_sqlite_savepoints, get_async_session


# --- Test utilities: SQLite database per test ---

@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = enable_sqlite_savepoints(
        create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=pool.NullPool)
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def now():
    return datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def ctx():
    return UserContext(user_id=uuid.uuid4(), email="alice@example.com", overspending_limit=Decimal("1000"))


@pytest.fixture
def other_ctx():
    return UserContext(user_id=uuid.uuid4(), email="bob@example.com", overspending_limit=Decimal("1000"))


@pytest.fixture
def make_budget(session):
    async def _make(user_id, category_id="food-dining", budget_type="monthly", amount="100",
                    period="2024-06", spent="0", is_active=True):
        budget = Budget(
            user_id=user_id,
            category_id=category_id,
            budget_type=budget_type,
            budget_amount=Decimal(amount),
            current_period=period,
            current_spent=Decimal(spent),
            is_active=is_active,
        )
        session.add(budget)
        await session.commit()
        return budget.id

    return _make


# --- Test utilities: ASGI app wired to the test database ---

@pytest.fixture
def app(session_factory):
    from main import app as asgi_app

    async def _test_session():
        async with session_factory() as session:
            yield session

    asgi_app.dependency_overrides[get_async_session] = _test_session
    yield asgi_app
    asgi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
