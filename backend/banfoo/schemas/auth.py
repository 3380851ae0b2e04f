from __future__ import annotations
from pydantic import BaseModel, Field

class LoginRequest(BaseModel):
    password: str = Field(min_length=1)

class TokenPair(BaseModel):
    access: str
    refresh: str

class AdminPublic(BaseModel):
    sub: str
    role: str
