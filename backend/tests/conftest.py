import os

# must be set before banfoo.config is imported
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./banfoo-unused.db"
os.environ["EVENT_BUS_URL"] = ""
os.environ["EVENT_PULSE_SECONDS"] = "0"
os.environ["ADMIN_PASSWORD"] = "camp-leader"
os.environ["ADMIN_PASSWORD_HASH"] = ""
os.environ["JWT_SECRET"] = "test-secret"
os.environ["CONTAINS_MATCH_QUESTION_IDS"] = "30"
os.environ["ALLOW_REPEAT_COMPLETIONS"] = "1"

import io
import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient
from PIL import Image
from sqlalchemy import create_engine, select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.orm import Session
from sqlalchemy.pool import NullPool

from banfoo.main import app
from banfoo.db import Base, get_session, get_sessionmaker
from banfoo.models.completion import Completion
from banfoo.models.question import Question
from banfoo.models.score import ScoreEntry
from banfoo.models.state import GlobalState, STATE_KEYS
from banfoo.models.team import Team
from banfoo.services import storage

ADMIN_PASSWORD = "camp-leader"

TEAMS = [
    (1, "Aurora", "#f97316"),
    (2, "Borealis", "#0ea5e9"),
    (3, "Cascade", "#22c55e"),
]

QUESTIONS = [
    {"id": 7, "qn": {"type": "INPUT", "question": "Capital of France?", "answer": "Paris"}, "type": "reward", "points": 10},
    {"id": 8, "qn": {"type": "FILE", "question": "Photo with a tree", "src": "qr8"}, "type": "reward", "points": 15},
    {"id": 9, "qn": {"type": "TASK", "question": "Sing the camp song"}, "type": "reward", "points": 5},
    {"id": 10, "qn": {"type": "TASK", "question": "Nothing here"}, "type": "empty", "points": 0},
    {"id": 11, "qn": {"type": "GIFT", "question": "Chest of gold", "reward": 20}, "type": "temptation", "points": 20},
    {"id": 12, "qn": {"type": "INPUT", "question": "Say hello", "answer": "hello"}, "type": "noreward", "points": 50},
    {"id": 13, "qn": {"type": "FILE", "question": "Show a kind act", "src": "virtue"}, "type": "virtue", "points": 30},
    {"id": 30, "qn": {"type": "INPUT", "question": "Name a fruit in the song", "answer": "MANGO"}, "type": "reward", "points": 8},
]


@pytest.fixture
def db(tmp_path):
    """
    Fresh SQLite file per test. Schema is built with a sync engine so no
    event loop is involved; the app gets an aiosqlite engine on the same file.
    """
    path = tmp_path / "banfoo.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    with Session(sync_engine) as s:
        s.add_all([GlobalState(key=k, value="false") for k in STATE_KEYS])
        s.add_all([Team(id=i, team_name=n, color=c) for i, n, c in TEAMS])
        s.add_all([Question(**q) for q in QUESTIONS])
        s.commit()
    sync_engine.dispose()

    engine = create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    factory = async_sessionmaker(engine, expire_on_commit=False)

    async def _session():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_sessionmaker] = lambda: factory
    yield factory
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def fake_storage(monkeypatch):
    """Uploads land in a dict instead of MinIO."""
    stored: dict[str, bytes] = {}

    def _put(key: str, data: bytes, content_type: str) -> str:
        stored[key] = data
        return f"http://files.test/uploads/{key}"

    monkeypatch.setattr(storage, "put_bytes", _put)
    monkeypatch.setattr(storage, "ensure_bucket", lambda: None)
    return stored


@pytest_asyncio.fixture
async def session(db):
    async with db() as s:
        yield s


@pytest_asyncio.fixture
async def client(db):
    async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_headers(client):
    r = await client.post("/auth/login", json={"password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access']}"}


async def give_gold(factory, team_id: int, score: int, remarks: str = "seed"):
    async with factory() as s:
        s.add(ScoreEntry(team_id=team_id, score=score, remarks=remarks, is_admin=True))
        await s.commit()


async def completion_rows(factory, team_id: int, question_id: int) -> list[Completion]:
    async with factory() as s:
        return (await s.execute(
            select(Completion).where(Completion.team_id == team_id, Completion.question_id == question_id)
        )).scalars().all()


def png_bytes(color=(255, 0, 0)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buf, format="PNG")
    return buf.getvalue()
