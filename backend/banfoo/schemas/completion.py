from __future__ import annotations
from pydantic import BaseModel
from banfoo.schemas.question import DialogCopy

class AnswerRequest(BaseModel):
    answer: str = ""

class CompletionResult(BaseModel):
    completion_id: int
    team_id: int
    question_id: int
    awarded: int
    gold: int
    files: list[str] = []
    dialog: DialogCopy
