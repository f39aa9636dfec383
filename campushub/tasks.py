import logging

import redis

from campushub.core.celery_config import celery_app
from campushub.services.errors import PersistenceError
from campushub.services.gateways import get_redis_client, make_gateway, unwrap_collection

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, autoretry_for=(PersistenceError,), retry_backoff=True, max_retries=5)
def save_snapshot_task(self, key: str, value: dict) -> bool:
    """
    Write one snapshot collection under a Redis lock.
    A value older than the stored revision is dropped, so a retried task
    never overwrites a newer snapshot.
    """
    gateway = make_gateway()
    redis_client = get_redis_client()
    lock = redis_client.lock(f"snapshot_lock:{key}", timeout=10, blocking_timeout=5)

    try:
        if not lock.acquire(blocking=True, blocking_timeout=5):
            raise PersistenceError("Could not acquire snapshot lock, will retry.", key=key)

        try:
            stored_revision, _ = unwrap_collection(gateway.load(key))
            incoming_revision = int(value.get("revision") or 0)
            if stored_revision >= incoming_revision:
                logger.info(
                    "Skipping stale snapshot",
                    extra={"key": key, "stored": stored_revision, "incoming": incoming_revision},
                )
                return False
            gateway.save(key, value)
            return True
        finally:
            lock.release()
    except redis.exceptions.LockError as e:  # type: ignore
        raise PersistenceError("Snapshot lock was lost, will retry.", key=key) from e
