"""
Pytest configuration and fixtures
"""
import os

# Test settings must be in place before config.settings is created
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("AUTH_JWT_SECRET", "test-identity-provider-secret")
os.environ.setdefault("RATE_LIMIT_REQUESTS", "100000")

import time
import uuid
from typing import AsyncGenerator, Callable, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from config import settings
from database import Base, get_db
from app.models import Profile, UserRole


# Test database URL (use in-memory SQLite for testing)
TEST_DATABASE_URL = os.getenv(
    "TEST_DATABASE_URL",
    "sqlite+aiosqlite:///:memory:"
)

ALL_FIVES = {str(question_id): 5 for question_id in range(1, 10)}


def make_scores(**overrides) -> dict:
    """Nine scores of 0, with ``q3=8`` style overrides"""
    scores = {str(question_id): 0 for question_id in range(1, 10)}
    for key, value in overrides.items():
        scores[key.lstrip("q")] = value
    return scores


def make_token(
    account_id: str,
    full_name: str = "Test User",
    role: Optional[str] = None,
    email: Optional[str] = None,
    expires_in: int = 3600,
    secret: Optional[str] = None,
    audience: str = "authenticated",
) -> str:
    """Access token shaped like the identity provider's"""
    now = int(time.time())
    metadata = {"full_name": full_name}
    if role:
        metadata["role"] = role
    claims = {
        "sub": account_id,
        "aud": audience,
        "iat": now,
        "exp": now + expires_in,
        "email": email or f"{account_id[:8]}@example.com",
        "user_metadata": metadata,
    }
    return jwt.encode(claims, secret or settings.AUTH_JWT_SECRET, algorithm=settings.AUTH_JWT_ALGORITHM)


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a test database session
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False} if "sqlite" in TEST_DATABASE_URL else {},
        poolclass=StaticPool if "sqlite" in TEST_DATABASE_URL else None,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_maker = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client against the app, sharing the test session

    Each request commits its work like the real ``get_db`` would, so
    follow-up requests see it.
    """
    from main import app

    async def override_get_db():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


async def _create_profile(db_session: AsyncSession, role: UserRole, full_name: str, **extra) -> Profile:
    profile = Profile(id=str(uuid.uuid4()), full_name=full_name, role=role.value, **extra)
    db_session.add(profile)
    await db_session.commit()
    await db_session.refresh(profile)
    return profile


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> Profile:
    return await _create_profile(db_session, UserRole.ADMIN, "Admin Paliatif")


@pytest.fixture
async def nurse_user(db_session: AsyncSession) -> Profile:
    return await _create_profile(
        db_session,
        UserRole.NURSE,
        "Ns. Sari Wulandari",
        title="Perawat Paliatif",
        license_number="STR-1234567",
    )


@pytest.fixture
async def patient_user(db_session: AsyncSession) -> Profile:
    return await _create_profile(db_session, UserRole.PATIENT, "Budi Santoso")


@pytest.fixture
def auth_headers_for() -> Callable[[Profile], dict]:
    """
    Build authorization headers for a profile
    """
    def _headers(profile: Profile) -> dict:
        return {"Authorization": f"Bearer {make_token(profile.id, profile.full_name)}"}
    return _headers


@pytest.fixture
def admin_headers(admin_user, auth_headers_for) -> dict:
    return auth_headers_for(admin_user)


@pytest.fixture
def nurse_headers(nurse_user, auth_headers_for) -> dict:
    return auth_headers_for(nurse_user)


@pytest.fixture
def patient_headers(patient_user, auth_headers_for) -> dict:
    return auth_headers_for(patient_user)


@pytest.fixture
def identity() -> dict:
    return {"name": "Siti Aminah", "age": 62, "gender": "P", "facility_name": "Puskesmas Sukajadi"}
