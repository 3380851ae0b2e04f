from __future__ import annotations
import json
import uuid
from datetime import datetime
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from banfoo.db import utcnow, as_utc
from banfoo.models.state import GlobalState, STATE_KEYS
from banfoo.schemas.events import StateRow


def as_flag(value: str | None) -> bool:
    return str(value).strip().lower() == "true"

def flag(on: bool) -> str:
    return "true" if on else "false"

async def get_row(session: AsyncSession, key: str) -> GlobalState | None:
    return await session.get(GlobalState, key)

async def all_rows(session: AsyncSession) -> list[GlobalState]:
    return (await session.execute(select(GlobalState).order_by(GlobalState.key))).scalars().all()

async def set_state(session: AsyncSession, key: str, value: str | dict | bool) -> GlobalState:
    """Upsert one key with a fresh stamp and idempotency token. Caller commits."""
    if key not in STATE_KEYS:
        raise ValueError(f"unknown state key: {key}")
    if isinstance(value, bool):
        value = flag(value)
    elif isinstance(value, dict):
        value = json.dumps(value, sort_keys=True)
    row = await session.get(GlobalState, key)
    if row is None:
        row = GlobalState(key=key)
        session.add(row)
    row.value = value
    row.event_id = uuid.uuid4()
    row.time_updated = utcnow()
    await session.flush()
    return row

async def freeze_cutoff(session: AsyncSession) -> datetime | None:
    """The freeze moment while the leaderboard is frozen, else None."""
    row = await get_row(session, "freeze")
    if row is None or not as_flag(row.value):
        return None
    return as_utc(row.time_updated)

def to_public(row: GlobalState) -> StateRow:
    return StateRow(key=row.key, value=row.value, event_id=row.event_id, time_updated=as_utc(row.time_updated))
