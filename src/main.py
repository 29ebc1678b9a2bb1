"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import asyncio
import contextlib
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.cr_account.api.router import router as account_router
from src.cr_common.database import async_session_factory, engine
from src.cr_common.errors import AppError
from src.cr_common.logging_config import setup_logging
from src.cr_common.redis_client import close_redis, get_redis, redis_db_index
from src.cr_common.response import error_response
from src.cr_envelope.api.router import router as envelope_router
from src.cr_envelope.application.resolver import ExpiryResolver
from src.cr_envelope.infrastructure.expire_listener import ExpireListener
from src.cr_envelope.infrastructure.scheduler import build_scheduler
from src.cr_gateway.middleware.request_log import RequestLogMiddleware

logger = logging.getLogger(__name__)

# Seconds a client should wait before retrying a contended claim
_RETRY_AFTER_SECONDS = "1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, start the expiry resolver. Shutdown: stop and dispose."""
    # Startup
    setup_logging()
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()

    resolver = ExpiryResolver(
        async_session_factory,
        batch_size=settings.EXPIRE_SWEEP_BATCH_SIZE,
    )
    listener_task: asyncio.Task[None] | None = None
    if settings.EXPIRE_LISTENER_ENABLED:
        listener = ExpireListener(
            get_redis,
            resolver,
            key_prefix=settings.REDIS_KEY_PREFIX,
            db_index=redis_db_index(),
            reconnect_delay=settings.EXPIRE_LISTENER_RECONNECT_SECONDS,
        )
        listener_task = asyncio.create_task(listener.run(), name="expire-listener")
    scheduler = build_scheduler(resolver, settings.EXPIRE_SWEEP_INTERVAL_SECONDS)
    scheduler.start()
    logger.info(
        "Expiry resolver started: listener=%s sweep_every=%ss",
        settings.EXPIRE_LISTENER_ENABLED,
        settings.EXPIRE_SWEEP_INTERVAL_SECONDS,
    )

    yield

    # Shutdown
    scheduler.shutdown(wait=False)
    if listener_task is not None:
        listener_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await listener_task
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    headers = {"Retry-After": _RETRY_AFTER_SECONDS} if exc.retryable else None
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
        headers=headers,
    )


app.include_router(account_router, prefix="/api/v1")
app.include_router(envelope_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
