"""Key-value persistence gateways.

A gateway stores whole JSON values under string keys: ``save`` overwrites,
``load`` returns ``None`` for a missing key. Collections written by the core
are wrapped in an envelope carrying the snapshot revision.
"""
import json
from typing import Any, Protocol

import redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from campushub.core.config import KEY_PREFIX, STORAGE_BACKEND, get_redis_url
from campushub.database.db import Base, SessionLocal, engine
from campushub.models.storage import StoredValue
from campushub.services.errors import PersistenceError

CAMPUSHUB_EVENTS = "CAMPUSHUB_EVENTS"
CAMPUSHUB_REGISTRATIONS = "CAMPUSHUB_REGISTRATIONS"
CAMPUSHUB_INTERESTED = "CAMPUSHUB_INTERESTED"
CAMPUSHUB_CURRENT_USER = "CAMPUSHUB_CURRENT_USER"
CAMPUSHUB_STUDENTS = "CAMPUSHUB_STUDENTS"


class PersistenceGateway(Protocol):
    def load(self, key: str) -> Any: ...

    def save(self, key: str, value: Any) -> None: ...


def wrap_collection(revision: int, items: Any) -> dict:
    return {"revision": revision, "items": items}


def unwrap_collection(value: Any, default: Any = None) -> tuple[int, Any]:
    """Return ``(revision, items)``; a bare list is the legacy layout at revision 0."""
    if value is None:
        return 0, default
    if isinstance(value, dict) and "items" in value:
        try:
            revision = int(value.get("revision") or 0)
        except (TypeError, ValueError) as e:
            raise PersistenceError(
                f"Stored revision {value.get('revision')!r} is not an integer."
            ) from e
        return revision, value["items"]
    return 0, value


def _decode(key: str, raw: str | None) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        raise PersistenceError(f"Stored value for '{key}' is not valid JSON.", key=key) from e


class SqlGateway:
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def load(self, key: str) -> Any:
        try:
            with self.session_factory() as db:
                row = db.get(StoredValue, key)
                raw = row.value if row else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to load '{key}'.", key=key) from e
        return _decode(key, raw)

    def save(self, key: str, value: Any) -> None:
        payload = json.dumps(value)
        try:
            with self.session_factory.begin() as db:
                db.merge(StoredValue(key=key, value=payload))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to save '{key}'.", key=key) from e


def get_redis_client():
    """Get Redis client for storage and locking."""
    return redis.from_url(get_redis_url(), decode_responses=True)


class RedisGateway:
    def __init__(self, client: "redis.Redis", prefix: str = KEY_PREFIX):
        self.client = client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def load(self, key: str) -> Any:
        try:
            raw = self.client.get(self._key(key))
        except redis.exceptions.RedisError as e:
            raise PersistenceError(f"Failed to load '{key}'.", key=key) from e
        return _decode(key, raw)

    def save(self, key: str, value: Any) -> None:
        try:
            self.client.set(self._key(key), json.dumps(value))
        except redis.exceptions.RedisError as e:
            raise PersistenceError(f"Failed to save '{key}'.", key=key) from e


def make_gateway(backend: str | None = None) -> PersistenceGateway:
    backend = backend or STORAGE_BACKEND
    if backend == "redis":
        return RedisGateway(get_redis_client())
    if backend == "sql":
        Base.metadata.create_all(bind=engine)
        return SqlGateway(SessionLocal)
    raise ValueError(f"Unknown storage backend: {backend!r}")
