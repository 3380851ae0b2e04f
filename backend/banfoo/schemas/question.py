from __future__ import annotations
from typing import Annotated, Literal, Union
from datetime import datetime
from pydantic import BaseModel, Field

RewardType = Literal["reward", "noreward", "empty", "temptation", "virtue"]
CompletionMode = Literal["answer", "upload", "complete", "none"]

class InputQn(BaseModel):
    type: Literal["INPUT"] = "INPUT"
    question: str
    answer: str
    match: Literal["exact", "contains"] = "exact"

class FileQn(BaseModel):
    type: Literal["FILE"] = "FILE"
    question: str
    src: str = Field(description="storage folder for uploads of this challenge")

class TaskQn(BaseModel):
    type: Literal["TASK"] = "TASK"
    question: str

class GiftQn(BaseModel):
    type: Literal["GIFT"] = "GIFT"
    question: str
    reward: int | None = None

Qn = Annotated[Union[InputQn, FileQn, TaskQn, GiftQn], Field(discriminator="type")]

class QuestionCreate(BaseModel):
    id: int = Field(ge=0)
    qn: Qn
    type: RewardType = "reward"
    points: int = 0

class QnPublic(BaseModel):
    # 🔒 never ship the INPUT answer to team devices
    type: Literal["INPUT", "FILE", "TASK", "GIFT"]
    question: str

class QuestionPublic(BaseModel):
    id: int
    qn: QnPublic
    type: RewardType
    points: int
    created_at: datetime

class DialogCopy(BaseModel):
    title: str
    description: str

class ScanRequest(BaseModel):
    code: str | None = None

class ScanResult(BaseModel):
    question: QuestionPublic
    mode: CompletionMode
    dialog: DialogCopy
