import os
import json
import asyncio
import pytest
from unittest.mock import Mock
from dotenv import load_dotenv
from fastapi.testclient import TestClient
from pywebpush import WebPushException

# Ensure .env is loaded, then FORCE test settings regardless of .env
load_dotenv()
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SCHEDULER_TIMEZONE"] = "UTC"
os.environ["VAPID_PUBLIC_KEY"] = "test-public-key"
os.environ["VAPID_PRIVATE_KEY"] = ""


# Initialize the database schema once per test session
@pytest.fixture(scope="session", autouse=True)
def _init_db_once():
    db_path = os.path.abspath("test.db")
    if os.path.exists(db_path):
        os.remove(db_path)

    # Delay import until after environment is configured
    from chief_of_staff import database
    asyncio.run(database.init_db_async())
    yield


@pytest.fixture()
def clean_db():
    """Empty every table so each test starts from a known state."""
    from chief_of_staff import database
    from chief_of_staff.models.models import Base

    async def _wipe():
        async with database.async_engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                await conn.execute(table.delete())

    asyncio.run(_wipe())
    yield


class FakeWebPush:
    """Stands in for pywebpush.webpush; records deliveries and fails on demand."""

    def __init__(self):
        self.calls = []
        # endpoint -> HTTP status (raised as WebPushException) or an exception instance
        self.failures = {}

    def __call__(self, subscription_info, data=None, **kwargs):
        endpoint = subscription_info["endpoint"]
        self.calls.append((endpoint, json.loads(data)))
        failure = self.failures.get(endpoint)
        if isinstance(failure, int):
            raise WebPushException("Push failed", response=Mock(status_code=failure))
        if failure is not None:
            raise failure
        return Mock(status_code=201)

    def payloads(self, tag=None):
        return [p for _, p in self.calls if tag is None or p.get("tag") == tag]


@pytest.fixture()
def fake_webpush(monkeypatch):
    from chief_of_staff.features.notifications import push

    fake = FakeWebPush()
    monkeypatch.setattr(push, "webpush", fake)
    return fake


async def add_subscriptions(count, prefix="https://push.example.test/sub"):
    from chief_of_staff.features.notifications import push

    endpoints = [f"{prefix}/{i}" for i in range(1, count + 1)]
    for endpoint in endpoints:
        await push.subscribe({"endpoint": endpoint, "keys": {"p256dh": "pk", "auth": "secret"}})
    return endpoints


@pytest.fixture()
def subscribe_devices(clean_db):
    return add_subscriptions


# Shared TestClient for convenience
@pytest.fixture()
def client(clean_db):
    from chief_of_staff.main import app
    with TestClient(app) as c:
        yield c
