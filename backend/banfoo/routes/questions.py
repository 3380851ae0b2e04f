from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException, Path, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from banfoo.config import settings
from banfoo.db import get_session
from banfoo.schemas.completion import AnswerRequest, CompletionResult
from banfoo.schemas.question import ScanRequest, ScanResult
from banfoo.services import broadcast
from banfoo.services.completion import (
    Outcome, complete_with_answer, complete_with_upload, complete_acknowledged,
    WrongAnswer, WrongMode, NothingToClaim, NoFiles, BadUpload, StorageFailed, AlreadyCompleted,
)
from banfoo.services.notices import dialog
from banfoo.services.questions import (
    resolve_question, get_question, completion_mode, to_public,
    MissingCode, InvalidCode, QuestionNotFound,
)
from banfoo.services.scoring import TeamNotFound

router = APIRouter(tags=["questions"])
log = structlog.get_logger()


@router.post("/questions/scan", response_model=ScanResult)
async def scan(payload: ScanRequest, session: AsyncSession = Depends(get_session)):
    """Resolve a scanned QR string to the challenge it unlocks."""
    try:
        q = await resolve_question(session, payload.code)
    except MissingCode:
        raise HTTPException(status_code=400, detail="Missing Code!")
    except InvalidCode:
        log.info("invalid_code", code=payload.code)
        raise HTTPException(status_code=400, detail="Invalid Code!")
    except QuestionNotFound:
        log.info("question_not_found", code=payload.code)
        raise HTTPException(status_code=404, detail="Question not found")
    return ScanResult(question=to_public(q), mode=completion_mode(q), dialog=dialog(q, "challenge"))


async def _load(session: AsyncSession, question_id: int):
    try:
        return await get_question(session, question_id)
    except QuestionNotFound:
        raise HTTPException(status_code=404, detail="Question not found")

async def _finish(session: AsyncSession, team_id: int, q, run) -> CompletionResult:
    """Shared error mapping + commit/publish for every completion action."""
    try:
        outcome: Outcome = await run()
    except TeamNotFound:
        raise HTTPException(status_code=404, detail="Team not found")
    except NothingToClaim:
        raise HTTPException(status_code=409, detail="There is no treasure here.")
    except WrongMode as e:
        raise HTTPException(status_code=409, detail=f"This challenge is completed with '{e.args[0]}'.")
    except AlreadyCompleted:
        raise HTTPException(status_code=409, detail="Challenge already completed.")
    except WrongAnswer:
        raise HTTPException(status_code=400, detail="Incorrect answer, try again!")
    except NoFiles:
        raise HTTPException(status_code=400, detail="Please upload at least one file.")
    except BadUpload as e:
        raise HTTPException(status_code=400, detail=str(e.args[0]) if e.args else "Invalid upload.")
    except StorageFailed:
        await session.rollback()
        raise HTTPException(status_code=502, detail="Something went wrong while uploading the files.")
    await session.commit()
    await broadcast.publish_all(outcome.events)
    return CompletionResult(
        completion_id=outcome.completion.id,
        team_id=team_id,
        question_id=q.id,
        awarded=outcome.awarded,
        gold=outcome.gold,
        files=list(outcome.completion.files or []),
        dialog=dialog(q, "result"),
    )


@router.post("/teams/{team_id}/questions/{question_id}/answer", response_model=CompletionResult, status_code=201)
async def submit_answer(
    payload: AnswerRequest,
    team_id: int = Path(...),
    question_id: int = Path(...),
    session: AsyncSession = Depends(get_session),
):
    q = await _load(session, question_id)
    return await _finish(session, team_id, q, lambda: complete_with_answer(session, team_id, q, payload.answer))

@router.post("/teams/{team_id}/questions/{question_id}/files", response_model=CompletionResult, status_code=201)
async def submit_files(
    team_id: int = Path(...),
    question_id: int = Path(...),
    files: list[UploadFile] | None = File(default=None, description="Photos proving the challenge"),
    session: AsyncSession = Depends(get_session),
):
    q = await _load(session, question_id)
    # one byte past the limit is enough to reject; oversized photos are never buffered whole
    uploads = [(f.filename, await f.read(settings.max_upload_bytes + 1)) for f in (files or [])]
    return await _finish(session, team_id, q, lambda: complete_with_upload(session, team_id, q, uploads))

@router.post("/teams/{team_id}/questions/{question_id}/complete", response_model=CompletionResult, status_code=201)
async def submit_completion(
    team_id: int = Path(...),
    question_id: int = Path(...),
    session: AsyncSession = Depends(get_session),
):
    """Task acknowledgement, or claiming a temptation / gift."""
    q = await _load(session, question_id)
    return await _finish(session, team_id, q, lambda: complete_acknowledged(session, team_id, q))
