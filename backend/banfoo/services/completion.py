from __future__ import annotations
import time
from dataclasses import dataclass, field
from sqlalchemy import select, exists
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from banfoo.config import settings
from banfoo.models.completion import Completion
from banfoo.models.question import Question
from banfoo.schemas.events import ScoreEvent
from banfoo.schemas.question import FileQn
from banfoo.services import storage
from banfoo.services.media import validate_image, safe_filename
from banfoo.services.questions import completion_mode, answer_matches, awarded_points, payload
from banfoo.services.scoring import add_entry, get_team, team_gold

log = structlog.get_logger()


class WrongAnswer(Exception):
    pass

class WrongMode(Exception):
    """The question is closed by a different action (e.g. answering a FILE challenge)."""

class NothingToClaim(Exception):
    pass

class NoFiles(Exception):
    pass

class BadUpload(Exception):
    pass

class StorageFailed(Exception):
    pass

class AlreadyCompleted(Exception):
    pass


@dataclass
class Outcome:
    completion: Completion
    awarded: int
    gold: int
    events: list[ScoreEvent] = field(default_factory=list)


async def _guard(session: AsyncSession, team_id: int, q: Question, expected_mode: str) -> None:
    await get_team(session, team_id)
    mode = completion_mode(q)
    if mode == "none":
        raise NothingToClaim(q.id)
    if mode != expected_mode:
        raise WrongMode(mode)
    if not settings.allow_repeat_completions:
        done = await session.scalar(
            select(exists().where(Completion.team_id == team_id, Completion.question_id == q.id))
        )
        if done:
            raise AlreadyCompleted(q.id)

async def log_and_award(session: AsyncSession, team_id: int, q: Question, files: list[str] | None = None) -> Outcome:
    """Append the completion row, then the ledger row for the question's reward."""
    c = Completion(team_id=team_id, question_id=q.id, files=list(files or []))
    session.add(c)
    await session.flush()

    events: list[ScoreEvent] = []
    points = awarded_points(q)
    if points != 0:
        _, evt = await add_entry(session, team_id=team_id, score=points, remarks=f"Question {q.id}", source="question")
        events.append(evt)

    gold = await team_gold(session, team_id)
    log.info("question_completed", team_id=team_id, question_id=q.id, awarded=points, files=len(c.files))
    return Outcome(completion=c, awarded=points, gold=gold, events=events)


async def complete_with_answer(session: AsyncSession, team_id: int, q: Question, answer: str) -> Outcome:
    await _guard(session, team_id, q, "answer")
    if not answer_matches(q, answer):
        log.info("wrong_answer", team_id=team_id, question_id=q.id)
        raise WrongAnswer(q.id)
    return await log_and_award(session, team_id, q)

async def complete_acknowledged(session: AsyncSession, team_id: int, q: Question) -> Outcome:
    """TASK acknowledgement, GIFT and temptation claims."""
    await _guard(session, team_id, q, "complete")
    return await log_and_award(session, team_id, q)

async def complete_with_upload(
    session: AsyncSession, team_id: int, q: Question, uploads: list[tuple[str | None, bytes]]
) -> Outcome:
    """
    uploads: [(filename, data)]. Every image is validated before anything is
    stored; the completion is only logged once all objects are written.
    """
    await _guard(session, team_id, q, "upload")
    if not uploads:
        raise NoFiles()
    if len(uploads) > settings.max_upload_files:
        raise BadUpload(f"At most {settings.max_upload_files} files per challenge.")

    checked: list[tuple[str, bytes, str]] = []
    for name, data in uploads:
        if len(data) > settings.max_upload_bytes:
            raise BadUpload(f"{safe_filename(name)} is too large.")
        try:
            mime = validate_image(data)
        except ValueError as e:
            raise BadUpload(f"{safe_filename(name)}: {e}")
        checked.append((safe_filename(name), data, mime))

    qn = payload(q)
    folder = qn.src.strip("/") if isinstance(qn, FileQn) else "uploads"
    urls: list[str] = []
    for fname, data, mime in checked:
        key = f"{folder}/team-{team_id}_qr-{q.id}_{int(time.time() * 1000)}_{fname}"
        try:
            urls.append(storage.put_bytes(key, data, mime))
        except Exception as e:
            log.error("upload_failed", team_id=team_id, question_id=q.id, key=key, error=str(e))
            raise StorageFailed(key) from e

    return await log_and_award(session, team_id, q, files=urls)
