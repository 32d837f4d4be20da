"""
Arroyyan Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set BEFORE any arroyyan import, so the
       settings singleton is built with test values.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session:  AsyncMock session for service unit tests
    ├── engine:           fresh SQLite file per test (tmp_path), schema created
    ├── session_factory:  async_sessionmaker bound to that engine
    ├── app:              create_app() with get_db_session overridden
    ├── client:           httpx AsyncClient over ASGITransport
    ├── create_user / create_product / get_inventory:  seed and inspect helpers
    └── admin_headers / cashier_headers / guest_headers:  logged-in Bearer headers

Note: ASGITransport does not run the lifespan, so tables come from the
engine fixture, not from DB_AUTO_CREATE.
"""

import os
import tempfile

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup (before any app imports)
# ══════════════════════════════════════════════════════════════════════════

_TEST_DIR = tempfile.mkdtemp(prefix="arroyyan_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["JWT_SECRET"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DB_AUTO_CREATE"] = "false"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

from typing import Dict  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from arroyyan.database import Base, enable_sqlite_foreign_keys, get_db_session  # noqa: E402
from arroyyan.models import Inventory, Product, User  # noqa: E402
from arroyyan.security import hash_password  # noqa: E402

DEFAULT_PASSWORD = "secret123"


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ══════════════════════════════════════════════════════════════════════════
# Unit-test fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession for service unit tests.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = product
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Database fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine(tmp_path):
    db_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'arroyyan.db'}")
    enable_sqlite_foreign_keys(db_engine.sync_engine)
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ══════════════════════════════════════════════════════════════════════════
# API fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def app(session_factory):
    """A fresh application whose requests use the per-test database."""
    from arroyyan.main import create_app

    application = create_app()

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_get_db_session
    return application


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


# ══════════════════════════════════════════════════════════════════════════
# Seed and inspection helpers
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def create_user(session_factory):
    async def _create(
        username: str = "admin",
        role: str = "admin",
        password: str = DEFAULT_PASSWORD,
        name: str = "Admin Toko",
    ) -> User:
        async with session_factory() as session:
            user = User(
                username=username, name=name, password=hash_password(password), role=role
            )
            session.add(user)
            await session.commit()
            return user

    return _create


@pytest.fixture
def create_product(session_factory):
    async def _create(
        name: str = "Whiskas Tuna 1kg",
        sku: str = "WHK001",
        selling_price: float = 25000,
        warehouse_stock: int = 0,
        display_stock: int = 0,
        is_active: bool = True,
    ) -> Product:
        async with session_factory() as session:
            product = Product(
                name=name,
                sku=sku,
                selling_price=selling_price,
                is_active=is_active,
                inventory=Inventory(warehouse_stock=warehouse_stock, display_stock=display_stock),
            )
            session.add(product)
            await session.commit()
            return product

    return _create


@pytest.fixture
def get_inventory(session_factory):
    """Reads an inventory row through a fresh session (sees committed data only)."""

    async def _get(product_id: str) -> Inventory:
        async with session_factory() as session:
            result = await session.execute(
                select(Inventory).where(Inventory.product_id == product_id)
            )
            return result.scalar_one()

    return _get


@pytest.fixture
def login(client):
    async def _login(username: str, password: str = DEFAULT_PASSWORD) -> str:
        response = await client.post(
            "/api/auth/login", json={"username": username, "password": password}
        )
        assert response.status_code == 200, response.text
        return response.json()["data"]["token"]

    return _login


@pytest_asyncio.fixture
async def admin_user(create_user):
    return await create_user("admin", "admin", name="Admin Toko")


@pytest_asyncio.fixture
async def cashier_user(create_user):
    return await create_user("kasir1", "cashier", name="Kasir Satu")


@pytest_asyncio.fixture
async def admin_headers(admin_user, login):
    return bearer(await login(admin_user.username))


@pytest_asyncio.fixture
async def cashier_headers(cashier_user, login):
    return bearer(await login(cashier_user.username))


@pytest_asyncio.fixture
async def guest_headers(create_user, login):
    user = await create_user("tamu", "guest", name="Tamu Toko")
    return bearer(await login(user.username))
