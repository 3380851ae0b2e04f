from __future__ import annotations
import asyncio
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
import structlog

from banfoo.config import settings
from banfoo.db import as_utc
from banfoo.models.score import ScoreEntry
from banfoo.schemas.events import (
    FreezeEvent, NaturalDisasterEvent, WorldPeaceEvent, DisasterAidEvent, ThiefEvent,
)
from banfoo.schemas.score import DisasterAidStatus
from banfoo.services import broadcast
from banfoo.services.scoring import add_entry, get_team, team_gold, totals_by_team, disaster_losses, peace_gains
from banfoo.services.state import set_state, get_row, as_flag

log = structlog.get_logger()


class RoundClosed(Exception):
    pass

class NotEnoughGold(Exception):
    pass

class SameTeam(Exception):
    pass


def _stamp(evt, row):
    evt.event_id = row.event_id
    evt.at = row.time_updated
    return evt

async def _apply_deltas(session: AsyncSession, deltas: dict[int, int], remarks: str, source: str, event_id) -> list:
    events = []
    for team_id in sorted(deltas):
        _, evt = await add_entry(
            session, team_id=team_id, score=deltas[team_id], remarks=remarks,
            is_admin=True, source=source, event_id=event_id,
        )
        events.append(evt)
    return events

# ---------- freeze ----------

async def set_freeze(session: AsyncSession, frozen: bool) -> list:
    """Repeating the current value is a no-op: the freeze moment is the leaderboard cutoff."""
    row = await get_row(session, "freeze")
    if row is not None and as_flag(row.value) == frozen:
        log.info("freeze_unchanged", frozen=frozen)
        return []
    row = await set_state(session, "freeze", frozen)
    log.info("freeze_set", frozen=frozen, at=row.time_updated.isoformat())
    return [_stamp(FreezeEvent(frozen=frozen), row)]

# ---------- gold-wide events ----------

async def trigger_natural_disaster(session: AsyncSession) -> list:
    """Every team loses floor(half) of its current gold; one transaction for rows + flag."""
    deltas = disaster_losses(await totals_by_team(session))
    row = await set_state(session, "naturalDisaster", True)
    score_events = await _apply_deltas(session, deltas, "Natural Disaster", "naturalDisaster", row.event_id)
    log.warning("natural_disaster_triggered", teams=len(deltas), total_lost=-sum(deltas.values()))
    return [*score_events, _stamp(NaturalDisasterEvent(active=True, deltas=deltas), row)]

async def trigger_world_peace(session: AsyncSession) -> list:
    """Every team's non-negative gold is doubled."""
    deltas = peace_gains(await totals_by_team(session))
    row = await set_state(session, "worldPeace", True)
    score_events = await _apply_deltas(session, deltas, "World Peace", "worldPeace", row.event_id)
    log.info("world_peace_triggered", teams=len(deltas), total_gained=sum(deltas.values()))
    return [*score_events, _stamp(WorldPeaceEvent(active=True, deltas=deltas), row)]

# ---------- disaster aid ----------

async def total_donated(session: AsyncSession) -> int:
    total = await session.scalar(
        select(func.coalesce(func.sum(ScoreEntry.score), 0)).where(ScoreEntry.source == "donation")
    )
    return -int(total or 0)

async def disaster_aid_status(session: AsyncSession) -> DisasterAidStatus:
    row = await get_row(session, "disasterAid")
    is_open = bool(row and as_flag(row.value))
    return DisasterAidStatus(
        open=is_open,
        opened_at=as_utc(row.time_updated) if is_open else None,
        total_donated=await total_donated(session),
        target=settings.disaster_aid_target,
    )

async def set_disaster_aid(session: AsyncSession, open_round: bool) -> list:
    row = await set_state(session, "disasterAid", open_round)
    donated = await total_donated(session)
    log.info("disaster_aid_set", open=open_round, total_donated=donated)
    return [_stamp(DisasterAidEvent(open=open_round, total_donated=donated), row)]

async def donate(session: AsyncSession, team_id: int, amount: int) -> list:
    await get_team(session, team_id)
    row = await get_row(session, "disasterAid")
    if not (row and as_flag(row.value)):
        raise RoundClosed()
    gold = await team_gold(session, team_id)
    if amount > max(0, gold):
        raise NotEnoughGold(gold)
    _, evt = await add_entry(
        session, team_id=team_id, score=-amount, remarks="Disaster Aid donation", source="donation", event_id=row.event_id
    )
    return [evt]

# ---------- thief ----------

async def trigger_thief(session: AsyncSession, thief_team_id: int, victim_team_id: int, amount: int) -> list:
    if thief_team_id == victim_team_id:
        raise SameTeam()
    await get_team(session, thief_team_id)
    await get_team(session, victim_team_id)
    stolen = min(int(amount), max(0, await team_gold(session, victim_team_id)))
    deltas = {victim_team_id: -stolen, thief_team_id: stolen} if stolen > 0 else {}

    row = await set_state(session, "thief", {
        "thief_team_id": thief_team_id, "victim_team_id": victim_team_id, "amount": stolen,
    })
    score_events = []
    if stolen > 0:
        score_events += await _apply_deltas(
            session, {victim_team_id: -stolen}, f"Stolen by team {thief_team_id}", "thief", row.event_id
        )
        score_events += await _apply_deltas(
            session, {thief_team_id: stolen}, f"Stolen from team {victim_team_id}", "thief", row.event_id
        )
    log.info("thief_triggered", thief_team_id=thief_team_id, victim_team_id=victim_team_id, stolen=stolen)
    evt = ThiefEvent(
        active=True, thief_team_id=thief_team_id, victim_team_id=victim_team_id, amount=stolen, deltas=deltas
    )
    return [*score_events, _stamp(evt, row)]

# ---------- pulse ----------

_REVERT_EVENTS = {
    "naturalDisaster": lambda: NaturalDisasterEvent(active=False),
    "worldPeace": lambda: WorldPeaceEvent(active=False),
    "thief": lambda: ThiefEvent(active=False),
}
_pending: set[asyncio.Task] = set()

def _task_done(task: asyncio.Task) -> None:
    _pending.discard(task)
    if not task.cancelled() and task.exception() is not None:
        log.error("pulse_failed", error=str(task.exception()))

async def _revert_later(key: str, expected_event_id, delay: float, factory: async_sessionmaker[AsyncSession]) -> None:
    await asyncio.sleep(delay)
    async with factory() as session:
        row = await get_row(session, key)
        if row is None or row.event_id != expected_event_id:
            # a newer write owns the key now
            log.info("pulse_skipped", key=key)
            return
        row = await set_state(session, key, False)
        await session.commit()
        evt = _stamp(_REVERT_EVENTS[key](), row)
    log.info("pulse_reverted", key=key)
    await broadcast.publish_all([evt])

async def cancel_pulses() -> int:
    """Drop pending reverts on shutdown; their flags stay set until an admin clears them."""
    tasks = list(_pending)
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)
    return len(tasks)

def schedule_pulse(key: str, event_id, factory: async_sessionmaker[AsyncSession], delay: float | None = None) -> asyncio.Task | None:
    """
    Flip `key` back to "false" after `delay` seconds, in this process.
    Best effort: if the process dies inside the window the flag stays set.
    """
    delay = settings.event_pulse_seconds if delay is None else delay
    if key not in _REVERT_EVENTS or delay <= 0:
        return None
    task = asyncio.create_task(_revert_later(key, event_id, delay, factory))
    _pending.add(task)
    task.add_done_callback(_task_done)
    return task
