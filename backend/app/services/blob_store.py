"""HTTP client for the Vercel Blob compatible object storage API.

Only the two calls the admin maintenance tools need are implemented: paged
listing and (bulk) deletion. Every failure surfaces as ``BlobStoreError`` so
callers can tell storage problems apart from their own bugs.
"""

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

import httpx

from app.config import settings
from app.schemas.blob import BlobListPage, BlobObject

logger = logging.getLogger(__name__)


class BlobStoreError(Exception):
    """Raised when the blob storage backend rejects or fails a request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BlobStore:
    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.token = token
        self.base_url = (base_url or settings.BLOB_API_URL).rstrip("/")
        self.api_version = api_version or settings.BLOB_API_VERSION
        self.timeout = float(timeout if timeout is not None else settings.BLOB_TIMEOUT_SECONDS)

    def _headers(self) -> dict[str, str]:
        return {
            "authorization": f"Bearer {self.token}",
            "x-api-version": str(self.api_version),
        }

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = httpx.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise BlobStoreError(
                f"Blob storage returned {exc.response.status_code}: {exc.response.text[:200]}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise BlobStoreError(f"Blob storage request failed: {exc}") from exc
        return response

    def list(self, limit: int = 100, cursor: Optional[str] = None) -> BlobListPage:
        params: dict[str, Any] = {"limit": max(1, int(limit))}
        if cursor:
            params["cursor"] = cursor
        payload = self._request("GET", self.base_url, params=params).json()
        return BlobListPage(
            blobs=[_parse_blob(row) for row in payload.get("blobs") or []],
            cursor=payload.get("cursor") or None,
            has_more=bool(payload.get("hasMore")),
        )

    def delete(self, urls: List[str]) -> None:
        if not urls:
            return
        self._request("POST", f"{self.base_url}/delete", json={"urls": list(urls)})


def _parse_blob(row: dict[str, Any]) -> BlobObject:
    return BlobObject(
        url=str(row.get("url") or ""),
        pathname=str(row.get("pathname") or ""),
        uploaded_at=_parse_uploaded_at(row.get("uploadedAt")),
        size=int(row.get("size") or 0),
        content_type=str(row.get("contentType") or "unknown"),
    )


def _parse_uploaded_at(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(float(value) / 1000, tz=timezone.utc)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise BlobStoreError(f"Blob storage returned an unreadable uploadedAt: {value!r}") from exc
    else:
        logger.warning("[blob-store] blob without uploadedAt, treating as epoch")
        parsed = datetime.fromtimestamp(0, tz=timezone.utc)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def get_blob_store() -> Optional[BlobStore]:
    """FastAPI dependency: the configured store, or ``None`` when no token is set."""
    if not settings.blob_storage_configured():
        return None
    return BlobStore(token=settings.BLOB_READ_WRITE_TOKEN.strip())
