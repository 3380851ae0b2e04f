from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from banfoo.auth_deps import require_admin
from banfoo.config import settings
from banfoo.db import get_session, get_sessionmaker, as_utc
from banfoo.models.question import Question
from banfoo.models.team import Team
from banfoo.schemas.admin import FreezeRequest, DisasterAidRequest, ThiefRequest, EventResult
from banfoo.schemas.question import QuestionCreate, QuestionPublic
from banfoo.schemas.score import ScoreEntryCreate, ScoreEntryPublic, TeamGold
from banfoo.schemas.team import TeamPublic
from banfoo.services import broadcast
from banfoo.services import game_events
from banfoo.services.questions import to_public as question_public
from banfoo.services.scoring import add_entry, admin_overview, TeamNotFound
from banfoo.services.state import get_row, to_public as state_public

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


async def _commit_and_publish(
    session: AsyncSession, key: str, events: list, factory: async_sessionmaker | None = None
) -> EventResult:
    await session.commit()
    await broadcast.publish_all(events)
    row = await get_row(session, key)
    pulse = 0.0
    if factory is not None and game_events.schedule_pulse(key, row.event_id, factory) is not None:
        pulse = settings.event_pulse_seconds
    deltas = getattr(events[-1], "deltas", {}) if events else {}
    return EventResult(state=state_public(row), deltas=deltas, pulse_seconds=pulse)

# ---------- reference data ----------

@router.post("/teams", response_model=TeamPublic, status_code=201)
async def create_team(payload: TeamPublic, session: AsyncSession = Depends(get_session)):
    if await session.get(Team, payload.id):
        raise HTTPException(status_code=409, detail="Team already exists")
    team = Team(id=payload.id, team_name=payload.team_name, color=payload.color)
    session.add(team)
    await session.commit()
    return TeamPublic(id=team.id, team_name=team.team_name, color=team.color)

@router.post("/questions", response_model=QuestionPublic, status_code=201)
async def create_question(payload: QuestionCreate, session: AsyncSession = Depends(get_session)):
    if await session.get(Question, payload.id):
        raise HTTPException(status_code=409, detail="Question already exists")
    q = Question(id=payload.id, qn=payload.qn.model_dump(mode="json"), type=payload.type, points=payload.points)
    session.add(q)
    await session.commit()
    await session.refresh(q)
    return question_public(q)

# ---------- scores ----------

@router.get("/overview", response_model=list[TeamGold])
async def overview(session: AsyncSession = Depends(get_session)):
    """Live (never frozen) gold per team, by team id."""
    return await admin_overview(session)

@router.post("/scores", response_model=ScoreEntryPublic, status_code=201)
async def add_score(payload: ScoreEntryCreate, session: AsyncSession = Depends(get_session)):
    try:
        entry, evt = await add_entry(
            session, team_id=payload.team_id, score=payload.score, remarks=payload.remarks, is_admin=True
        )
    except TeamNotFound:
        raise HTTPException(status_code=404, detail="Team not found")
    await session.commit()
    await broadcast.publish_all([evt])
    return ScoreEntryPublic(
        id=entry.id, team_id=entry.team_id, score=entry.score, remarks=entry.remarks, is_admin=entry.is_admin,
        source=entry.source, event_id=entry.event_id, created_at=as_utc(entry.created_at),
    )

# ---------- global events ----------

@router.post("/freeze", response_model=EventResult)
async def set_freeze(payload: FreezeRequest, session: AsyncSession = Depends(get_session)):
    events = await game_events.set_freeze(session, payload.frozen)
    return await _commit_and_publish(session, "freeze", events)

@router.post("/events/natural-disaster", response_model=EventResult)
async def natural_disaster(
    session: AsyncSession = Depends(get_session),
    factory: async_sessionmaker = Depends(get_sessionmaker),
):
    events = await game_events.trigger_natural_disaster(session)
    return await _commit_and_publish(session, "naturalDisaster", events, factory)

@router.post("/events/world-peace", response_model=EventResult)
async def world_peace(
    session: AsyncSession = Depends(get_session),
    factory: async_sessionmaker = Depends(get_sessionmaker),
):
    events = await game_events.trigger_world_peace(session)
    return await _commit_and_publish(session, "worldPeace", events, factory)

@router.post("/events/disaster-aid", response_model=EventResult)
async def disaster_aid(payload: DisasterAidRequest, session: AsyncSession = Depends(get_session)):
    events = await game_events.set_disaster_aid(session, payload.open)
    return await _commit_and_publish(session, "disasterAid", events)

@router.post("/events/thief", response_model=EventResult)
async def thief(
    payload: ThiefRequest,
    session: AsyncSession = Depends(get_session),
    factory: async_sessionmaker = Depends(get_sessionmaker),
):
    try:
        events = await game_events.trigger_thief(session, payload.thief_team_id, payload.victim_team_id, payload.amount)
    except TeamNotFound:
        raise HTTPException(status_code=404, detail="Team not found")
    except game_events.SameTeam:
        raise HTTPException(status_code=400, detail="A team cannot steal from itself.")
    return await _commit_and_publish(session, "thief", events, factory)
