"""FastAPI application entry point. Registers middleware, admin API routers and shared services."""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.database import Base, SessionLocal, engine
import app.models  # noqa: F401 - registers model metadata
from app.routers import auth, blobs, cleanup, drafts
from app.services.cache_service import TTLCache
from app.services.draft_service import DraftStore, SqlDraftBackend

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="iSynergies Admin API",
    description="Maintenance backend for the iSynergies marketing site admin dashboard",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.cache = TTLCache(default_ttl=settings.AUTH_CACHE_TTL_SECONDS)
app.state.drafts = DraftStore(SqlDraftBackend(SessionLocal), debounce_seconds=settings.DRAFT_DEBOUNCE_SECONDS)

# Register all routers
app.include_router(auth.router)
app.include_router(cleanup.router)
app.include_router(blobs.router)
app.include_router(drafts.router)


@app.on_event("startup")
def ensure_schema():
    # Create tables missing after a deploy.
    Base.metadata.create_all(bind=engine)


@app.on_event("shutdown")
def flush_drafts():
    app.state.drafts.shutdown()


@app.get("/api/health")
def health_check():
    return {"status": "ok", "service": "iSynergies Admin API"}
