from __future__ import annotations
from pydantic import BaseModel

class TeamPublic(BaseModel):
    id: int
    team_name: str
    color: str
