from contextlib import asynccontextmanager
from fastapi import FastAPI
import logging

from leadbook.core.config import settings
from leadbook.core.logging import configure_logging
from leadbook.db.redis_client import close_redis
from leadbook.db.session import create_tables
from leadbook.routers import auth, lead

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if settings.CREATE_TABLES:
        await create_tables()
    logger.info("Leadbook API started (rate limit backend: %s)", settings.RATE_LIMIT_BACKEND)
    yield
    await close_redis()


app = FastAPI(
    title="Leadbook Buyer Lead Management",
    version="1.0.0",
    lifespan=lifespan,
)

# --- Register Routers ---
app.include_router(auth.router)     # /auth/*
app.include_router(lead.router)     # /leads/*


# --- Root health check (also the login surrogate unauthenticated callers land on) ---
@app.get("/")
async def root():
    return {"message": "Leadbook API is running", "login": "POST /auth/login"}
