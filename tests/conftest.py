from datetime import datetime

import httpx
import pytest
from mongomock_motor import AsyncMongoMockClient

from blixora.auth.auth_utils import create_access_token
from blixora.database import create_indexes
from blixora.dependencies import get_db
from blixora.enrollments.lifecycle import EnrollmentLifecycle
from blixora.main import app
from blixora.simulations.database import create_simulation


SIMULATION_DATA = {
    "title": "Incident Response Lab",
    "description": "Contain a simulated breach",
    "category": "cybersecurity",
    "level": "beginner",
    "duration": 4,
    "content": {
        "modules": [
            {"title": "Triage", "resources": []},
            {"title": "Containment", "resources": []},
            {"title": "Recovery", "resources": []},
        ]
    },
    "pricing": {"type": "free", "price": 0},
    "tags": ["security", "blue-team"],
}


async def add_user(db, user_id: str, role: str = "user", is_active: bool = True) -> dict:
    user = {
        "user_id": user_id,
        "name": user_id.title(),
        "email": f"{user_id.lower()}@example.com",
        "password_hash": "x",
        "role": role,
        "is_active": is_active,
        "stats": {"simulations_completed": 0},
        "created_at": datetime.utcnow(),
    }
    await db.users.insert_one(user)
    return user


def auth_header(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
async def db():
    client = AsyncMongoMockClient()
    database = client["blixora_test"]
    await create_indexes(database)
    return database


@pytest.fixture
def lifecycle(db):
    return EnrollmentLifecycle(db)


@pytest.fixture
async def users(db):
    return {
        "u1": await add_user(db, "USR_ONE"),
        "u2": await add_user(db, "USR_TWO"),
        "admin": await add_user(db, "USR_ADMIN", role="admin"),
    }


@pytest.fixture
async def simulation(db, users):
    return await create_simulation(db, dict(SIMULATION_DATA), users["admin"]["user_id"])


@pytest.fixture
async def client(db):
    app.dependency_overrides[get_db] = lambda: db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


async def get_metrics(db, simulation_id: str) -> dict:
    simulation = await db.simulations.find_one({"simulation_id": simulation_id})
    return simulation["metrics"]
