"""
Test the key-value persistence gateways.
"""
from unittest.mock import Mock

import pytest
import redis
from sqlalchemy.exc import OperationalError

from campushub.models.storage import StoredValue
from campushub.services.errors import PersistenceError
from campushub.services.gateways import (
    CAMPUSHUB_EVENTS,
    RedisGateway,
    SqlGateway,
    unwrap_collection,
    wrap_collection,
)
from campushub.services.lifecycle import LifecycleManager


class TestSqlGateway:
    def test_missing_key_loads_none(self, sql_gateway: SqlGateway):
        assert sql_gateway.load("nothing-here") is None

    def test_save_and_load(self, sql_gateway: SqlGateway):
        value = {"revision": 1, "items": [{"id": "e1"}]}
        sql_gateway.save(CAMPUSHUB_EVENTS, value)
        assert sql_gateway.load(CAMPUSHUB_EVENTS) == value

    def test_save_overwrites_whole_value(self, sql_gateway: SqlGateway):
        sql_gateway.save("k", {"a": 1, "b": 2})
        sql_gateway.save("k", {"c": 3})
        assert sql_gateway.load("k") == {"c": 3}

    def test_database_error_becomes_persistence_error(self):
        session = Mock()
        session.begin.side_effect = OperationalError("INSERT", {}, Exception("locked"))
        gateway = SqlGateway(session)

        with pytest.raises(PersistenceError):
            gateway.save("k", {"a": 1})


class TestRedisGateway:
    def test_save_and_load(self, redis_gateway: RedisGateway, fake_redis):
        redis_gateway.save(CAMPUSHUB_EVENTS, [1, 2, 3])

        assert redis_gateway.load(CAMPUSHUB_EVENTS) == [1, 2, 3]
        assert fake_redis.get(f"test:{CAMPUSHUB_EVENTS}") == "[1, 2, 3]"

    def test_missing_key_loads_none(self, redis_gateway: RedisGateway):
        assert redis_gateway.load("absent") is None

    def test_connection_error_becomes_persistence_error(self):
        client = Mock()
        client.set.side_effect = redis.exceptions.ConnectionError("down")
        client.get.side_effect = redis.exceptions.ConnectionError("down")
        gateway = RedisGateway(client)

        with pytest.raises(PersistenceError):
            gateway.save("k", 1)
        with pytest.raises(PersistenceError):
            gateway.load("k")

    def test_core_runs_on_redis(self, redis_gateway: RedisGateway, event_data):
        manager = LifecycleManager(redis_gateway)
        manager.start()
        event = manager.create_event(event_data(total_capacity=2)).value
        manager.register_for_event(event.id, "s1")

        restarted = LifecycleManager(redis_gateway)
        restarted.start()
        assert restarted.get_event(event.id).value.remaining_seats == 1


class TestEnvelope:
    def test_wrap_and_unwrap(self):
        assert unwrap_collection(wrap_collection(4, ["x"])) == (4, ["x"])

    def test_legacy_list_is_revision_zero(self):
        assert unwrap_collection([{"id": "e1"}]) == (0, [{"id": "e1"}])

    def test_missing_value_uses_default(self):
        assert unwrap_collection(None, []) == (0, [])

    def test_non_numeric_revision_is_a_persistence_error(self):
        with pytest.raises(PersistenceError):
            unwrap_collection({"revision": "abc", "items": []})


class TestCorruptValues:
    def test_redis_corrupt_json_becomes_persistence_error(self, redis_gateway: RedisGateway, fake_redis):
        fake_redis.set(f"test:{CAMPUSHUB_EVENTS}", "{not json")

        with pytest.raises(PersistenceError):
            redis_gateway.load(CAMPUSHUB_EVENTS)
        with pytest.raises(PersistenceError):
            LifecycleManager(redis_gateway).start()

    def test_sql_corrupt_json_becomes_persistence_error(self, sql_gateway: SqlGateway):
        with sql_gateway.session_factory.begin() as db:
            db.merge(StoredValue(key=CAMPUSHUB_EVENTS, value="{not json"))

        with pytest.raises(PersistenceError):
            LifecycleManager(sql_gateway).start()

    def test_bad_revision_fails_start(self, redis_gateway: RedisGateway):
        redis_gateway.save(CAMPUSHUB_EVENTS, {"revision": "latest", "items": []})

        with pytest.raises(PersistenceError):
            LifecycleManager(redis_gateway).start()
