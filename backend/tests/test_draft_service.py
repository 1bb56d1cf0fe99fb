import threading

import pytest

from app.services.draft_service import DraftStore, MemoryDraftBackend, SqlDraftBackend, draft_key
from tests.conftest import TestingSession


class _Clock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


class _ManualTimer:
    """Timer stand-in fired explicitly by the test."""

    created = []

    def __init__(self, interval, function, args=()):
        self.interval = interval
        self.function = function
        self.args = args
        self.cancelled = False
        self.started = False
        self.daemon = False
        _ManualTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args)


@pytest.fixture(autouse=True)
def _reset_timers():
    _ManualTimer.created = []
    yield


def test_draft_key_format():
    assert draft_key("team-member", 7, "/admin/dashboard/team") == "draft:team-member:7:_admin_dashboard_team"


def test_save_is_debounced_per_key():
    backend = MemoryDraftBackend()
    store = DraftStore(backend, debounce_seconds=0.4, clock=_Clock(), timer_factory=_ManualTimer)

    key = store.save("hero", "new", "/hero", {"title": "A"})
    store.save("hero", "new", "/hero", {"title": "AB"})

    assert backend.read(key) is None
    assert store.has_pending(key)
    first, second = _ManualTimer.created
    assert first.cancelled and not second.cancelled
    assert second.interval == 0.4

    second.fire()
    assert backend.read(key)["data"] == {"title": "AB"}
    assert not store.has_pending(key)


def test_restore_flushes_pending_write():
    store = DraftStore(MemoryDraftBackend(), debounce_seconds=5, clock=_Clock(), timer_factory=_ManualTimer)
    store.save("services", 3, "/services", {"name": "Repairs"})
    restored = store.restore("services", 3, "/services")
    assert restored["data"] == {"name": "Repairs"}
    assert restored["meta"]["route"] == "/services"
    assert restored["meta"]["saved_at"] == 1_700_000_000_000


def test_restore_drops_version_mismatch():
    backend = MemoryDraftBackend()
    store = DraftStore(backend, debounce_seconds=0, clock=_Clock())
    key = store.save("shop", 1, "/shop", {"a": 1}, version=1)
    assert store.restore("shop", 1, "/shop", version=2) is None
    assert backend.read(key) is None


def test_restore_drops_drafts_older_than_server_data():
    clock = _Clock()
    store = DraftStore(MemoryDraftBackend(), debounce_seconds=0, clock=clock)
    store.save("board", 2, "/board", {"name": "Old"})
    saved_at_ms = int(clock.now * 1000)
    assert store.restore("board", 2, "/board", server_updated_at=saved_at_ms) is not None
    assert store.restore("board", 2, "/board", server_updated_at=saved_at_ms + 1) is None
    assert store.restore("board", 2, "/board") is None


def test_dismiss_cancels_pending_and_removes():
    backend = MemoryDraftBackend()
    store = DraftStore(backend, debounce_seconds=1, clock=_Clock(), timer_factory=_ManualTimer)
    key = store.save("hero", 1, "/hero", {"title": "x"})
    store.dismiss("hero", 1, "/hero")
    _ManualTimer.created[0].fire()
    assert backend.read(key) is None
    assert not store.has_pending(key)


def test_sql_backend_round_trip(db):
    store = DraftStore(SqlDraftBackend(TestingSession), debounce_seconds=0, clock=_Clock())
    store.save("featured-app", "new", "/featured-app", {"headline": "iSyn App", "order": 2}, version=3)
    restored = store.restore("featured-app", "new", "/featured-app", version=3)
    assert restored["data"] == {"headline": "iSyn App", "order": 2}
    assert restored["meta"]["version"] == 3

    store.clear("featured-app", "new", "/featured-app")
    assert store.restore("featured-app", "new", "/featured-app", version=3) is None


class _BlockingWriteBackend(MemoryDraftBackend):
    """Memory backend whose ``write`` waits until the test releases it."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def write(self, key, record):
        self.entered.set()
        assert self.release.wait(timeout=5)
        super().write(key, record)


def test_dismiss_during_in_flight_write_keeps_draft_gone():
    backend = _BlockingWriteBackend()
    store = DraftStore(backend, debounce_seconds=0.4, clock=_Clock(), timer_factory=_ManualTimer)
    key = store.save("hero", 1, "/hero", {"title": "x"})

    writer = threading.Thread(target=store.flush, args=(key,))
    writer.start()
    assert backend.entered.wait(timeout=5)

    store.dismiss("hero", 1, "/hero")
    backend.release.set()
    writer.join(timeout=5)

    assert not writer.is_alive()
    assert backend.read(key) is None
    assert store.restore("hero", 1, "/hero") is None


def test_save_after_dismiss_is_persisted_again():
    backend = MemoryDraftBackend()
    store = DraftStore(backend, debounce_seconds=0.4, clock=_Clock(), timer_factory=_ManualTimer)
    key = store.save("hero", 1, "/hero", {"title": "old"})
    store.dismiss("hero", 1, "/hero")

    store.save("hero", 1, "/hero", {"title": "new"})
    assert store.flush(key) == 1
    assert backend.read(key)["data"] == {"title": "new"}
