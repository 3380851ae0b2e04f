from __future__ import annotations
from pydantic import BaseModel, Field
from banfoo.schemas.events import StateRow

class FreezeRequest(BaseModel):
    frozen: bool

class DisasterAidRequest(BaseModel):
    open: bool

class ThiefRequest(BaseModel):
    thief_team_id: int
    victim_team_id: int
    amount: int = Field(gt=0)

class EventResult(BaseModel):
    state: StateRow
    deltas: dict[int, int] = Field(default_factory=dict)
    pulse_seconds: float = 0
