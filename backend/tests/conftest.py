import threading
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from app.config import settings
from app.database import Base, get_db
from app.main import app
from app.models.admin_user import AdminUser
from app.schemas.blob import BlobListPage, BlobObject
from app.services.blob_store import BlobStoreError, get_blob_store
from app.services.cache_service import TTLCache
from app.services.draft_service import DraftStore, MemoryDraftBackend

TEST_DB_URL = "sqlite:///./test_isyn.db"
BLOB_BASE_URL = "https://abc123.public.blob.vercel-storage.com"

engine = create_engine(TEST_DB_URL, connect_args={"check_same_thread": False})
TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


class FakeBlobStore:
    """Cursor-paged in-memory stand-in for the blob storage API."""

    def __init__(self, blobs=None, failing_urls=(), fail_bulk=False, list_error=None):
        self.blobs = list(blobs or [])
        self.failing_urls = set(failing_urls)
        self.fail_bulk = fail_bulk
        self.list_error = list_error
        self.list_calls = []
        self.delete_calls = []
        self._lock = threading.Lock()

    def list(self, limit=100, cursor=None):
        self.list_calls.append({"limit": limit, "cursor": cursor})
        if self.list_error is not None:
            raise self.list_error
        start = int(cursor or 0)
        end = start + limit
        next_cursor = str(end) if end < len(self.blobs) else None
        return BlobListPage(blobs=self.blobs[start:end], cursor=next_cursor, has_more=next_cursor is not None)

    def delete(self, urls):
        with self._lock:
            self.delete_calls.append(list(urls))
        if len(urls) > 1 and self.fail_bulk:
            raise BlobStoreError("bulk delete rejected", status_code=500)
        failing = [url for url in urls if url in self.failing_urls]
        if failing:
            raise BlobStoreError(f"cannot delete {failing[0]}", status_code=500)
        with self._lock:
            self.blobs = [blob for blob in self.blobs if blob.url not in set(urls)]

    @property
    def urls(self):
        return [blob.url for blob in self.blobs]


def make_blob(name: str, minutes_ago: float = 0, now: datetime | None = None) -> BlobObject:
    reference = now or datetime.now(timezone.utc)
    return BlobObject(
        url=f"{BLOB_BASE_URL}/{name}",
        pathname=name,
        uploaded_at=reference - timedelta(minutes=minutes_ago),
        size=128,
        content_type="image/png",
    )


def blob_url(name: str) -> str:
    return f"{BLOB_BASE_URL}/{name}"


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    app.state.cache = TTLCache(default_ttl=settings.AUTH_CACHE_TTL_SECONDS)
    app.state.drafts = DraftStore(MemoryDraftBackend(), debounce_seconds=0)
    yield
    app.dependency_overrides.pop(get_blob_store, None)
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def seed_admins(db):
    admins = {
        "admin": AdminUser(username="isyn-admin", email="admin@isynergies.com", is_active=True),
        "disabled": AdminUser(username="former-admin", email="former@isynergies.com", is_active=False),
    }
    for row in admins.values():
        db.add(row)
    db.commit()
    for row in admins.values():
        db.refresh(row)
    return admins


@pytest.fixture
def use_blob_store(monkeypatch):
    """Install a fake store as the configured blob backend."""
    monkeypatch.setattr(settings, "BLOB_READ_WRITE_TOKEN", "vercel_blob_rw_test", raising=False)

    def install(store: FakeBlobStore) -> FakeBlobStore:
        app.dependency_overrides[get_blob_store] = lambda: store
        return store

    return install


def get_token(client, username: str) -> str:
    resp = client.post("/api/admin/auth/login", json={"username": username})
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


def auth_headers(client, username: str = "isyn-admin") -> dict:
    return {"Authorization": f"Bearer {get_token(client, username)}"}
