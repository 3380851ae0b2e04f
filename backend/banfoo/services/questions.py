from __future__ import annotations
from pydantic import TypeAdapter
from sqlalchemy.ext.asyncio import AsyncSession

from banfoo.config import settings
from banfoo.models.question import Question
from banfoo.schemas.question import Qn, InputQn, QuestionPublic, QnPublic

_qn_adapter: TypeAdapter[Qn] = TypeAdapter(Qn)


class MissingCode(Exception):
    pass

class InvalidCode(Exception):
    pass

class QuestionNotFound(Exception):
    pass


def parse_scan_code(raw: str | None) -> int:
    """
    "zocampbanfoo_7" -> 7. The prefix is everything before the first underscore
    and must match exactly; the next segment is the question id.
    """
    if raw is None or not raw.strip():
        raise MissingCode()
    parts = raw.strip().split("_")
    if parts[0] != settings.code_prefix or len(parts) < 2:
        raise InvalidCode(raw)
    try:
        return int(parts[1])
    except ValueError:
        raise QuestionNotFound(parts[1])

async def get_question(session: AsyncSession, question_id: int) -> Question:
    q = await session.get(Question, question_id)
    if not q:
        raise QuestionNotFound(question_id)
    return q

async def resolve_question(session: AsyncSession, raw: str | None) -> Question:
    return await get_question(session, parse_scan_code(raw))

def payload(q: Question):
    return _qn_adapter.validate_python(q.qn)

def completion_mode(q: Question) -> str:
    """Which action closes this question: answer | upload | complete | none."""
    if q.type == "empty":
        return "none"
    if q.type == "temptation":
        return "complete"
    kind = payload(q).type
    if kind == "INPUT":
        return "answer"
    if kind == "FILE":
        return "upload"
    return "complete"  # TASK, GIFT

def answer_matches(q: Question, candidate: str) -> bool:
    qn = payload(q)
    if not isinstance(qn, InputQn):
        return False
    given = str(candidate or "").strip()
    expected = str(qn.answer).strip()
    if not expected:
        # a blank key would be "contained" in every guess
        return False
    if qn.match == "contains" or q.id in settings.contains_match_question_ids:
        return expected in given
    return given.upper() == expected.upper()

def awarded_points(q: Question) -> int:
    if q.type in ("noreward", "empty"):
        return 0
    return int(q.points or 0)

def to_public(q: Question) -> QuestionPublic:
    qn = payload(q)
    return QuestionPublic(
        id=q.id,
        qn=QnPublic(type=qn.type, question=qn.question),
        type=q.type,
        points=q.points,
        created_at=q.created_at,
    )
