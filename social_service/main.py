"""FastAPI application wiring for the social service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from psycopg_pool import ConnectionPool

from .api.errors import register_exception_handlers
from .api.routes import router as api_router
from .config import get_settings
from .domain.profiles import ProfileService
from .domain.service import AccountService
from .repository import AccountRepository, FollowRepository, bootstrap_schema
from .security.access import AccessPolicy
from .security.passwords import PasswordHasher
from .security.tokens import TokenService

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise shared resources (Postgres pool, services) for the app lifecycle."""
    pool = ConnectionPool(settings.database_url, open=False)
    pool.open()
    bootstrap_schema(pool)

    tokens = TokenService(settings.jwt_secret, ttl_seconds=settings.jwt_ttl_seconds)
    accounts = AccountRepository(pool)
    app.state.pool = pool
    app.state.access_policy = AccessPolicy(tokens)
    app.state.account_service = AccountService(accounts, tokens, PasswordHasher(settings.bcrypt_rounds))
    app.state.profile_service = ProfileService(accounts, FollowRepository(pool))
    logger.info("%s %s started", settings.app_name, settings.version)
    try:
        yield
    finally:
        pool.close()


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=600,
)

register_exception_handlers(app)
app.include_router(api_router)


def run() -> None:
    """Serve the application with uvicorn using the configured host and port."""
    uvicorn.run(app, host=settings.http_host, port=settings.http_port, log_level=settings.log_level.lower())
