import logging
from dataclasses import dataclass, field
from typing import Any

from kombu.exceptions import OperationalError

from campushub.core.config import SNAPSHOT_WRITER
from campushub.services.errors import PersistenceError
from campushub.services.gateways import PersistenceGateway, wrap_collection
from campushub.tasks import save_snapshot_task

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """The combined state of the core at one revision, as JSON-ready collections."""

    revision: int
    collections: dict[str, Any] = field(default_factory=dict)


class InlineSnapshotWriter:
    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway

    def write(self, snapshot: Snapshot) -> None:
        failed = []
        for key, items in snapshot.collections.items():
            try:
                self.gateway.save(key, wrap_collection(snapshot.revision, items))
            except PersistenceError:
                failed.append(key)
        if failed:
            raise PersistenceError(
                f"Failed to save {', '.join(failed)}.", keys=failed, revision=snapshot.revision
            )


class CelerySnapshotWriter:
    """Hands every collection to ``save_snapshot_task``; the write lands after the caller returns."""

    def write(self, snapshot: Snapshot) -> None:
        for key, items in snapshot.collections.items():
            try:
                save_snapshot_task.delay(key, wrap_collection(snapshot.revision, items))
            except OperationalError as e:
                raise PersistenceError(
                    f"Could not enqueue snapshot for '{key}'.", key=key, revision=snapshot.revision
                ) from e
            logger.debug("Enqueued snapshot", extra={"key": key, "revision": snapshot.revision})


def make_snapshot_writer(gateway: PersistenceGateway, kind: str | None = None):
    kind = kind or SNAPSHOT_WRITER
    if kind == "celery":
        return CelerySnapshotWriter()
    if kind == "inline":
        return InlineSnapshotWriter(gateway)
    raise ValueError(f"Unknown snapshot writer: {kind!r}")
