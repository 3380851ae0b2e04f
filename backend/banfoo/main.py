from __future__ import annotations
import asyncio
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
import structlog

from banfoo.config import settings
from banfoo.logging_setup import configure_logging
from banfoo.routes import admin, auth, leaderboard, questions, realtime, system, teams
from banfoo.services import broadcast, game_events, storage

configure_logging()
log = structlog.get_logger()

ROUTERS = (system, auth, teams, questions, leaderboard, admin, realtime)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha,
             event_bus="redis" if settings.event_bus_url else "local")
    try:
        await asyncio.to_thread(storage.ensure_bucket)
    except Exception as e:
        # uploads answer 502 until storage comes back; the rest of the game is unaffected
        log.warning("storage_unavailable", endpoint=settings.s3_endpoint, error=str(e))
    yield
    dropped = await game_events.cancel_pulses()
    await broadcast.hub.close()
    log.info("shutdown", pending_pulses=dropped)


app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name}: QR challenges, team gold and live camp events",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in ROUTERS:
    app.include_router(module.router)


@app.middleware("http")
async def bind_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or uuid.uuid4().hex
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid, path=request.url.path)
    try:
        response: Response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()
    response.headers["X-Request-ID"] = rid
    return response
