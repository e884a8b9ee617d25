import asyncio
import os
import tempfile

TEST_DIR = tempfile.mkdtemp(prefix="careconnect-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DIR}/test_careconnect.db"
os.environ["SETTINGS_CACHE_DIR"] = os.path.join(TEST_DIR, "settings_cache")
os.environ["JWT_SECRET"] = "test-secret"
os.environ["REMOTE_TIMEOUT_SECONDS"] = "2"

import pytest
from fastapi.testclient import TestClient

from careconnect.auth.auth_service import create_access_token, hash_password
from careconnect.common.database.database import async_session, engine
from careconnect.main import app
from careconnect.models.models import Base, User, UserRole

TEST_PASSWORD = "Test1234!"


async def _reset_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def _create_users():
    password_hash = hash_password(TEST_PASSWORD)
    users = {
        "patient": User(email="patient@careconnect.org", first_name="Amara", last_name="Okafor",
                        role=UserRole.PATIENT, password_hash=password_hash),
        "doctor": User(email="doctor@careconnect.org", first_name="Daniel", last_name="Mensah",
                       role=UserRole.DOCTOR, password_hash=password_hash),
        "admin": User(email="admin@careconnect.org", first_name="Grace", last_name="Bello",
                      role=UserRole.ADMIN, password_hash=password_hash),
    }
    async with async_session() as db:
        for u in users.values():
            db.add(u)
        await db.commit()
        for u in users.values():
            await db.refresh(u)
    return users


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    asyncio.run(_reset_db())


@pytest.fixture
def seed_users(client):
    return asyncio.run(_create_users())


def auth_headers(user: User) -> dict:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}
