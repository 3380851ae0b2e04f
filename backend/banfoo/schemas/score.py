from __future__ import annotations
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime

class ScoreEntryCreate(BaseModel):
    team_id: int
    score: int
    remarks: str | None = Field(default=None, max_length=255)

class ScoreEntryPublic(BaseModel):
    id: int
    team_id: int
    score: int
    remarks: str | None = None
    is_admin: bool
    source: str
    event_id: UUID | None = None
    created_at: datetime

class TeamGold(BaseModel):
    team_id: int
    gold: int

class LeaderboardRow(BaseModel):
    rank: int
    team_id: int
    team_name: str
    color: str
    gold: int

class LeaderboardSnapshot(BaseModel):
    frozen: bool
    frozen_at: datetime | None = None
    rows: list[LeaderboardRow]

class DonationRequest(BaseModel):
    amount: int = Field(gt=0)

class DisasterAidStatus(BaseModel):
    open: bool
    opened_at: datetime | None = None
    total_donated: int
    target: int
