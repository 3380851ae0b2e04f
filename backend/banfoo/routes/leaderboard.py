from __future__ import annotations
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from banfoo.db import get_session
from banfoo.schemas.events import StateRow
from banfoo.schemas.score import LeaderboardSnapshot, DisasterAidStatus
from banfoo.services.game_events import disaster_aid_status
from banfoo.services.scoring import leaderboard
from banfoo.services.state import all_rows, to_public

router = APIRouter(tags=["leaderboard"])

@router.get("/leaderboard", response_model=LeaderboardSnapshot)
async def get_leaderboard(session: AsyncSession = Depends(get_session)):
    return await leaderboard(session)

@router.get("/state", response_model=list[StateRow])
async def get_state(session: AsyncSession = Depends(get_session)):
    return [to_public(r) for r in await all_rows(session)]

@router.get("/disaster-aid", response_model=DisasterAidStatus)
async def get_disaster_aid(session: AsyncSession = Depends(get_session)):
    return await disaster_aid_status(session)
