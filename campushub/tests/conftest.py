import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, StaticPool, create_engine
from sqlalchemy.orm import sessionmaker

from campushub.database.db import Base
from campushub.main import create_app
from campushub.services.gateways import RedisGateway, SqlGateway
from campushub.services.lifecycle import LifecycleManager

# Use an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine: Engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_database():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def sql_gateway() -> SqlGateway:
    return SqlGateway(TestingSessionLocal)


@pytest.fixture
def fake_redis():
    client = fakeredis.FakeRedis(decode_responses=True)
    yield client
    client.flushall()


@pytest.fixture
def redis_gateway(fake_redis) -> RedisGateway:
    return RedisGateway(fake_redis, prefix="test:")


@pytest.fixture
def core(sql_gateway) -> LifecycleManager:
    manager = LifecycleManager(sql_gateway)
    manager.start()
    yield manager
    manager.close()


@pytest.fixture
def client(core):
    with TestClient(create_app(core)) as test_client:
        yield test_client


@pytest.fixture
def event_data():
    """Build a valid event payload; keyword overrides replace fields."""

    def build(**overrides):
        data = {
            "title": "Tech Symposium",
            "description": "Talks and demos",
            "date": "2025-11-20",
            "time": "10:00",
            "venue": "Main Auditorium",
            "type": "Technical",
            "total_capacity": 10,
            "contact_name": "Events Office",
            "contact_email": "events@college.edu",
            "contact_phone": "+91 98765 43210",
        }
        data.update(overrides)
        return data

    return build


@pytest.fixture
def make_event(core, event_data):
    def create(**overrides):
        result = core.create_event(event_data(**overrides))
        assert result.ok, result
        return result.value

    return create
