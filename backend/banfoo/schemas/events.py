from __future__ import annotations
import uuid
from datetime import datetime
from typing import Annotated, Literal, Union
from pydantic import BaseModel, Field, TypeAdapter

# Every event carries the exact per-team delta it applied; listeners never
# derive it from before/after gold snapshots.

class _Event(BaseModel):
    event_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    at: datetime | None = None

class FreezeEvent(_Event):
    kind: Literal["freeze"] = "freeze"
    frozen: bool

class NaturalDisasterEvent(_Event):
    kind: Literal["naturalDisaster"] = "naturalDisaster"
    active: bool
    deltas: dict[int, int] = Field(default_factory=dict)

class WorldPeaceEvent(_Event):
    kind: Literal["worldPeace"] = "worldPeace"
    active: bool
    deltas: dict[int, int] = Field(default_factory=dict)

class DisasterAidEvent(_Event):
    kind: Literal["disasterAid"] = "disasterAid"
    open: bool
    total_donated: int = 0

class ThiefEvent(_Event):
    kind: Literal["thief"] = "thief"
    active: bool
    thief_team_id: int | None = None
    victim_team_id: int | None = None
    amount: int = 0
    deltas: dict[int, int] = Field(default_factory=dict)

class ScoreEvent(_Event):
    kind: Literal["score"] = "score"
    team_id: int
    delta: int
    # ledger row id; listeners drop rows their snapshot already counted
    entry_id: int | None = None
    # team total right after this row, for clients that overwrite instead of adding
    gold: int | None = None
    remarks: str | None = None
    source: str = "manual"

GameEvent = Annotated[
    Union[FreezeEvent, NaturalDisasterEvent, WorldPeaceEvent, DisasterAidEvent, ThiefEvent, ScoreEvent],
    Field(discriminator="kind"),
]
game_event_adapter: TypeAdapter[GameEvent] = TypeAdapter(GameEvent)

class StateRow(BaseModel):
    key: str
    value: str
    event_id: uuid.UUID | None = None
    time_updated: datetime

class Notice(BaseModel):
    title: str
    description: str
    tone: Literal["danger", "success", "info"] = "info"
