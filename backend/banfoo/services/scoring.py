from __future__ import annotations
import uuid
from datetime import datetime
from typing import Mapping
from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from banfoo.models.score import ScoreEntry
from banfoo.models.team import Team
from banfoo.schemas.events import ScoreEvent
from banfoo.schemas.score import LeaderboardRow, LeaderboardSnapshot, TeamGold
from banfoo.services.state import freeze_cutoff

log = structlog.get_logger()


class TeamNotFound(Exception):
    pass

# ---------- reads ----------

async def team_gold(session: AsyncSession, team_id: int) -> int:
    total = await session.scalar(
        select(func.coalesce(func.sum(ScoreEntry.score), 0)).where(ScoreEntry.team_id == team_id)
    )
    return int(total or 0)

async def totals_by_team(session: AsyncSession, until: datetime | None = None) -> dict[int, int]:
    """Σ(score) per team that has entries; `until` keeps only rows created at or before it."""
    q = select(ScoreEntry.team_id, func.sum(ScoreEntry.score)).group_by(ScoreEntry.team_id)
    if until is not None:
        q = q.where(ScoreEntry.created_at <= until)
    rows = (await session.execute(q)).all()
    return {int(team_id): int(total or 0) for team_id, total in rows}

async def gold_watermark(session: AsyncSession, team_id: int | None) -> tuple[int | None, int]:
    """
    (team gold, highest ledger id) read in ONE statement, so the id marks
    exactly which rows the gold already includes. Gold is None without a team.
    """
    last_id = func.coalesce(func.max(ScoreEntry.id), 0)
    if team_id is None:
        return None, int(await session.scalar(select(last_id)) or 0)
    gold = func.coalesce(func.sum(case((ScoreEntry.team_id == team_id, ScoreEntry.score), else_=0)), 0)
    row = (await session.execute(select(gold, last_id))).one()
    return int(row[0] or 0), int(row[1] or 0)

async def get_team(session: AsyncSession, team_id: int) -> Team:
    team = await session.get(Team, team_id)
    if not team:
        raise TeamNotFound(team_id)
    return team

async def team_entries(session: AsyncSession, team_id: int) -> list[ScoreEntry]:
    return (await session.execute(
        select(ScoreEntry).where(ScoreEntry.team_id == team_id).order_by(ScoreEntry.created_at.desc(), ScoreEntry.id.desc())
    )).scalars().all()

async def leaderboard(session: AsyncSession) -> LeaderboardSnapshot:
    """
    Every team ranked by gold. While frozen, only entries created up to the
    freeze moment count, so later scoring cannot move the board.
    """
    cutoff = await freeze_cutoff(session)
    totals = await totals_by_team(session, until=cutoff)
    teams = (await session.execute(select(Team).order_by(Team.team_name.asc()))).scalars().all()

    ranked = sorted(teams, key=lambda t: -totals.get(t.id, 0))  # stable: ties keep name order
    return LeaderboardSnapshot(
        frozen=cutoff is not None,
        frozen_at=cutoff,
        rows=[
            LeaderboardRow(rank=i + 1, team_id=t.id, team_name=t.team_name, color=t.color, gold=totals.get(t.id, 0))
            for i, t in enumerate(ranked)
        ],
    )

async def admin_overview(session: AsyncSession) -> list[TeamGold]:
    totals = await totals_by_team(session)
    team_ids = set((await session.execute(select(Team.id))).scalars().all()) | set(totals)
    return [TeamGold(team_id=tid, gold=totals.get(tid, 0)) for tid in sorted(team_ids)]

# ---------- writes ----------

async def add_entry(
    session: AsyncSession,
    *,
    team_id: int,
    score: int,
    remarks: str | None,
    is_admin: bool = False,
    source: str = "manual",
    event_id: uuid.UUID | None = None,
) -> tuple[ScoreEntry, ScoreEvent]:
    """Append one ledger row. Caller commits, then publishes the returned event."""
    await get_team(session, team_id)
    entry = ScoreEntry(
        team_id=team_id, score=int(score), remarks=remarks, is_admin=is_admin, source=source, event_id=event_id
    )
    session.add(entry)
    await session.flush()
    log.info("score_added", team_id=team_id, score=int(score), source=source, remarks=remarks)
    evt = ScoreEvent(
        team_id=team_id, delta=int(score), entry_id=entry.id, gold=await team_gold(session, team_id),
        remarks=remarks, source=source, at=entry.created_at,
    )
    return entry, evt

# ---------- percentage events ----------

def disaster_losses(totals: Mapping[int, int]) -> dict[int, int]:
    """Natural disaster: each team loses floor(half) of its gold, negatives clamped to 0."""
    out: dict[int, int] = {}
    for team_id, gold in totals.items():
        lost = max(0, int(gold)) // 2
        if lost > 0:
            out[team_id] = -lost
    return out

def peace_gains(totals: Mapping[int, int]) -> dict[int, int]:
    """World peace: each team's (non-negative) gold is doubled."""
    return {team_id: max(0, int(gold)) for team_id, gold in totals.items() if int(gold) > 0}
