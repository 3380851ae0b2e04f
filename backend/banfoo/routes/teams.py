from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from banfoo.db import get_session, as_utc
from banfoo.models.team import Team
from banfoo.schemas.score import TeamGold, ScoreEntryPublic, DonationRequest
from banfoo.schemas.team import TeamPublic
from banfoo.services import broadcast
from banfoo.services.game_events import donate, RoundClosed, NotEnoughGold
from banfoo.services.scoring import get_team, team_gold, team_entries, TeamNotFound

router = APIRouter(prefix="/teams", tags=["teams"])

def _to_entry_public(e) -> ScoreEntryPublic:
    return ScoreEntryPublic(
        id=e.id, team_id=e.team_id, score=e.score, remarks=e.remarks, is_admin=e.is_admin,
        source=e.source, event_id=e.event_id, created_at=as_utc(e.created_at),
    )

@router.get("", response_model=list[TeamPublic])
async def list_teams(session: AsyncSession = Depends(get_session)):
    rows = (await session.execute(select(Team).order_by(Team.team_name.asc()))).scalars().all()
    return [TeamPublic(id=t.id, team_name=t.team_name, color=t.color) for t in rows]

@router.get("/{team_id}/gold", response_model=TeamGold)
async def get_gold(team_id: int = Path(...), session: AsyncSession = Depends(get_session)):
    try:
        await get_team(session, team_id)
    except TeamNotFound:
        raise HTTPException(status_code=404, detail="Team not found")
    return TeamGold(team_id=team_id, gold=await team_gold(session, team_id))

@router.get("/{team_id}/scores", response_model=list[ScoreEntryPublic])
async def list_scores(team_id: int = Path(...), session: AsyncSession = Depends(get_session)):
    try:
        await get_team(session, team_id)
    except TeamNotFound:
        raise HTTPException(status_code=404, detail="Team not found")
    return [_to_entry_public(e) for e in await team_entries(session, team_id)]

@router.post("/{team_id}/donations", response_model=TeamGold, status_code=201)
async def make_donation(
    payload: DonationRequest,
    team_id: int = Path(...),
    session: AsyncSession = Depends(get_session),
):
    try:
        events = await donate(session, team_id, payload.amount)
    except TeamNotFound:
        raise HTTPException(status_code=404, detail="Team not found")
    except RoundClosed:
        raise HTTPException(status_code=409, detail="Disaster aid is not open right now.")
    except NotEnoughGold:
        raise HTTPException(status_code=400, detail="Not enough gold bars to donate that much.")
    await session.commit()
    await broadcast.publish_all(events)
    return TeamGold(team_id=team_id, gold=await team_gold(session, team_id))
