"""
Live feed for team devices and the scoreboard.

    ws://host/ws?teamId=3   team device: state events with a notice, own score events
    ws://host/ws            scoreboard: every event, no notices

Messages:
    {"type": "snapshot", "team_id": 3, "gold": 120, "last_entry_id": 57, "state": [StateRow, ...]}
    {"type": "event", "event": GameEvent, "notice": Notice | null}
"""
from __future__ import annotations
import asyncio
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import structlog

from banfoo.db import get_sessionmaker
from banfoo.schemas.events import game_event_adapter, ScoreEvent
from banfoo.services.broadcast import hub
from banfoo.services.listener import StateListener
from banfoo.services.notices import notice_for
from banfoo.services.scoring import get_team, gold_watermark, TeamNotFound
from banfoo.services.state import all_rows, to_public

router = APIRouter(tags=["realtime"])
log = structlog.get_logger()


async def snapshot(factory: async_sessionmaker[AsyncSession], listener: StateListener) -> dict:
    async with factory() as session:
        rows = [to_public(r) for r in await all_rows(session)]
        gold, last_entry_id = await gold_watermark(session, listener.team_id)
    for r in rows:
        listener.remember(r.key, r.time_updated)
    listener.remember_entries(last_entry_id)
    return {
        "type": "snapshot",
        "team_id": listener.team_id,
        "gold": gold,
        "last_entry_id": last_entry_id,
        "state": [r.model_dump(mode="json") for r in rows],
    }

async def _pump(websocket: WebSocket, messages, listener: StateListener) -> None:
    async for raw in messages:
        try:
            event = game_event_adapter.validate_python(raw)
        except ValidationError:
            log.warning("ws_bad_event", kind=raw.get("kind") if isinstance(raw, dict) else None)
            continue
        if not listener.wants(event) or not listener.accept(event):
            continue
        notice = None
        if listener.team_id is not None and not isinstance(event, ScoreEvent):
            n = notice_for(event, listener.team_id)
            notice = n.model_dump() if n else None
        await websocket.send_json({"type": "event", "event": event.model_dump(mode="json"), "notice": notice})

async def _drain_client(websocket: WebSocket) -> None:
    # clients never need to talk; reading just notices the disconnect
    while True:
        await websocket.receive_text()


@router.websocket("/ws")
async def live_feed(
    websocket: WebSocket,
    team_id: int | None = Query(default=None, alias="teamId"),
    factory: async_sessionmaker = Depends(get_sessionmaker),
):
    if team_id is not None:
        async with factory() as session:
            try:
                await get_team(session, team_id)
            except TeamNotFound:
                await websocket.close(code=1008, reason="Team not found")
                return

    await websocket.accept()
    listener = StateListener(team_id=team_id)
    structlog.contextvars.bind_contextvars(ws_team_id=team_id)
    log.info("ws_connected")

    async with hub.subscribe() as messages:
        # subscribe first so nothing published during the snapshot read is lost
        await websocket.send_json(await snapshot(factory, listener))
        pump = asyncio.create_task(_pump(websocket, messages, listener))
        drain = asyncio.create_task(_drain_client(websocket))
        try:
            done, _ = await asyncio.wait({pump, drain}, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                exc = task.exception()
                if exc is not None and not isinstance(exc, (WebSocketDisconnect, RuntimeError)):
                    log.error("ws_failed", error=str(exc))
        finally:
            for task in (pump, drain):
                task.cancel()
            await asyncio.gather(pump, drain, return_exceptions=True)
            log.info("ws_disconnected")
            structlog.contextvars.unbind_contextvars("ws_team_id")
