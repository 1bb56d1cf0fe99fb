"""Draft autosave store for admin forms.

Drafts are keyed by (entity, entity id, route). ``save`` is debounced per key:
repeated saves within the debounce window collapse into a single backend write
carrying the latest data. Backends are pluggable; the application uses the
SQLAlchemy backend, tests use the in-memory one.
"""

import json
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Protocol

from fastapi import Request
from sqlalchemy.orm import Session

from app.models.draft import Draft

logger = logging.getLogger(__name__)

DRAFT_PREFIX = "draft:"


def draft_key(entity: str, entity_id: str | int, route: str) -> str:
    return f"{DRAFT_PREFIX}{entity}:{entity_id}:{route.replace('/', '_')}"


class DraftBackend(Protocol):
    def read(self, key: str) -> Optional[Dict[str, Any]]: ...
    def write(self, key: str, record: Dict[str, Any]) -> None: ...
    def remove(self, key: str) -> None: ...


class MemoryDraftBackend:
    def __init__(self):
        self._records: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._records.get(key)
            return dict(record) if record is not None else None

    def write(self, key: str, record: Dict[str, Any]) -> None:
        with self._lock:
            self._records[key] = dict(record)

    def remove(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)


class SqlDraftBackend:
    """Stores drafts in the ``drafts`` table. Opens its own session per call
    because debounced writes run outside any request."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def read(self, key: str) -> Optional[Dict[str, Any]]:
        db = self._session_factory()
        try:
            row = db.query(Draft).filter(Draft.draft_key == key).first()
            if row is None:
                return None
            return {
                "entity": row.entity,
                "entity_id": row.entity_id,
                "data": json.loads(row.data),
                "meta": {"saved_at": int(row.saved_at), "version": int(row.version), "route": row.route},
            }
        finally:
            db.close()

    def write(self, key: str, record: Dict[str, Any]) -> None:
        meta = record["meta"]
        db = self._session_factory()
        try:
            row = db.query(Draft).filter(Draft.draft_key == key).first()
            if row is None:
                row = Draft(draft_key=key)
                db.add(row)
            row.entity = record["entity"]
            row.entity_id = str(record["entity_id"])
            row.route = meta["route"]
            row.data = json.dumps(record["data"], ensure_ascii=False)
            row.version = int(meta["version"])
            row.saved_at = int(meta["saved_at"])
            db.commit()
        finally:
            db.close()

    def remove(self, key: str) -> None:
        db = self._session_factory()
        try:
            db.query(Draft).filter(Draft.draft_key == key).delete(synchronize_session=False)
            db.commit()
        finally:
            db.close()


class DraftStore:
    def __init__(
        self,
        backend: DraftBackend,
        debounce_seconds: float = 0.5,
        clock: Callable[[], float] = time.time,
        timer_factory: Callable[..., Any] = threading.Timer,
    ):
        self.backend = backend
        self.debounce_seconds = float(debounce_seconds)
        self._clock = clock
        self._timer_factory = timer_factory
        self._pending: Dict[str, Dict[str, Any]] = {}
        self._timers: Dict[str, Any] = {}
        # Bumped by clear(); a write started under an older generation is discarded.
        self._generations: Dict[str, int] = {}
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _generation(self, key: str) -> int:
        with self._lock:
            return self._generations.get(key, 0)

    def save(
        self,
        entity: str,
        entity_id: str | int,
        route: str,
        data: Dict[str, Any],
        version: int = 1,
    ) -> str:
        key = draft_key(entity, entity_id, route)
        pending = {"entity": entity, "entity_id": str(entity_id), "route": route, "data": data, "version": version}
        if self.debounce_seconds <= 0:
            self._write(key, pending, self._generation(key))
            return key

        with self._lock:
            previous = self._timers.pop(key, None)
            if previous is not None:
                previous.cancel()
            self._pending[key] = pending
            timer = self._timer_factory(self.debounce_seconds, self._fire, args=(key,))
            timer.daemon = True
            self._timers[key] = timer
        timer.start()
        return key

    def _fire(self, key: str) -> None:
        try:
            self.flush(key)
        except Exception:
            logger.exception("[drafts] debounced write failed for %s", key)

    def _write(self, key: str, pending: Dict[str, Any], generation: int) -> bool:
        record = {
            "entity": pending["entity"],
            "entity_id": pending["entity_id"],
            "data": pending["data"],
            "meta": {"saved_at": self._now_ms(), "version": pending["version"], "route": pending["route"]},
        }
        with self._write_lock:
            if self._generation(key) != generation:
                logger.debug("[drafts] skipped write for cleared %s", key)
                return False
            self.backend.write(key, record)
            if self._generation(key) != generation:
                # Cleared while the write was in flight.
                self.backend.remove(key)
                logger.debug("[drafts] discarded write for cleared %s", key)
                return False
        logger.debug("[drafts] saved %s", key)
        return True

    def flush(self, key: Optional[str] = None) -> int:
        """Write pending drafts now (one key, or all). Returns the number written."""
        with self._lock:
            keys = [key] if key is not None else list(self._pending)
            batch = []
            for item in keys:
                pending = self._pending.pop(item, None)
                timer = self._timers.pop(item, None)
                if timer is not None:
                    timer.cancel()
                if pending is not None:
                    batch.append((item, pending, self._generations.get(item, 0)))
        written = 0
        for item, pending, generation in batch:
            if self._write(item, pending, generation):
                written += 1
        return written

    def has_pending(self, key: str) -> bool:
        with self._lock:
            return key in self._pending

    def restore(
        self,
        entity: str,
        entity_id: str | int,
        route: str,
        version: int = 1,
        server_updated_at: Optional[int] = None,
    ) -> Optional[Dict[str, Any]]:
        """Return ``{"data", "meta"}`` for a usable draft, dropping stale ones."""
        key = draft_key(entity, entity_id, route)
        self.flush(key)
        try:
            record = self.backend.read(key)
        except ValueError as exc:
            logger.warning("[drafts] unreadable draft %s dropped: %s", key, exc)
            self.backend.remove(key)
            return None
        if record is None:
            return None

        meta = record["meta"]
        if int(meta.get("version", 0)) != int(version):
            logger.info("[drafts] version mismatch for %s (stored=%s, current=%s)", key, meta.get("version"), version)
            self.backend.remove(key)
            return None
        if server_updated_at is not None and int(meta.get("saved_at", 0)) < int(server_updated_at):
            logger.info("[drafts] draft %s is older than server data", key)
            self.backend.remove(key)
            return None
        return {"data": record["data"], "meta": meta}

    def clear(self, entity: str, entity_id: str | int, route: str) -> None:
        key = draft_key(entity, entity_id, route)
        with self._lock:
            self._generations[key] = self._generations.get(key, 0) + 1
            self._pending.pop(key, None)
            timer = self._timers.pop(key, None)
        if timer is not None:
            timer.cancel()
        self.backend.remove(key)
        logger.debug("[drafts] cleared %s", key)

    def dismiss(self, entity: str, entity_id: str | int, route: str) -> None:
        self.clear(entity, entity_id, route)

    def shutdown(self) -> None:
        self.flush()


def get_draft_store(request: Request) -> DraftStore:
    return request.app.state.drafts
