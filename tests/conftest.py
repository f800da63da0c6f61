import pytest
from typing import AsyncGenerator

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, get_db
from app.models import User, Role
from app.services.plans import ensure_plans_exist
from tests.utils import make_user, make_condominium

# Banco em memória compartilhado por todas as sessões do teste
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """Engine nova a cada teste (tabelas criadas do zero)"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Sessão com os planos padrão já cadastrados"""
    async with session_factory() as session:
        await ensure_plans_exist(session)
        await session.commit()
        yield session


@pytest.fixture
async def client(session_factory, db_session) -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP da API usando o banco de teste"""
    from app.main import app
    from app.api.auth import limiter

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as async_client:
        yield async_client

    app.dependency_overrides.clear()


@pytest.fixture
async def super_admin(db_session) -> User:
    return await make_user(db_session, "admin@condo-billing.com", [Role.SUPER_ADMIN])


@pytest.fixture
async def sindico(db_session) -> User:
    return await make_user(db_session, "sindico@jardins.com.br", [Role.SINDICO])


@pytest.fixture
async def condominium(db_session, sindico):
    return await make_condominium(db_session, sindico)
