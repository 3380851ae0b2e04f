import pytest
from banfoo.models.question import Question
from banfoo.services.questions import parse_scan_code, MissingCode, InvalidCode, QuestionNotFound, answer_matches
from conftest import png_bytes, completion_rows


def test_parse_scan_code():
    assert parse_scan_code("zocampbanfoo_7") == 7
    assert parse_scan_code("  zocampbanfoo_12_extra ") == 12

@pytest.mark.parametrize("raw", ["bogus_7", "zocampbanfoo", "ZOCAMPBANFOO_7", "zocampbanfoo7"])
def test_parse_scan_code_invalid(raw):
    with pytest.raises(InvalidCode):
        parse_scan_code(raw)

def test_parse_scan_code_missing():
    with pytest.raises(MissingCode):
        parse_scan_code("   ")

def test_parse_scan_code_non_numeric_id():
    with pytest.raises(QuestionNotFound):
        parse_scan_code("zocampbanfoo_abc")

@pytest.mark.parametrize("stored", ["", "   "])
def test_blank_answer_key_never_matches(stored):
    q = Question(id=5, qn={"type": "INPUT", "question": "?", "answer": stored, "match": "contains"}, type="reward", points=3)
    assert not answer_matches(q, "anything at all")
    assert not answer_matches(q, "")


@pytest.mark.asyncio
async def test_scan_resolves_question_without_answer(client):
    r = await client.post("/questions/scan", json={"code": "zocampbanfoo_7"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["question"]["id"] == 7
    assert body["mode"] == "answer"
    assert "answer" not in body["question"]["qn"]
    assert body["dialog"]["title"] == "CHALLENGE UNLOCKED!"

@pytest.mark.asyncio
async def test_scan_errors(client):
    r = await client.post("/questions/scan", json={"code": "bogus_7"})
    assert (r.status_code, r.json()["detail"]) == (400, "Invalid Code!")
    r = await client.post("/questions/scan", json={"code": "zocampbanfoo_999"})
    assert (r.status_code, r.json()["detail"]) == (404, "Question not found")
    r = await client.post("/questions/scan", json={})
    assert (r.status_code, r.json()["detail"]) == (400, "Missing Code!")

@pytest.mark.asyncio
async def test_scan_flavor_modes(client):
    modes = {}
    for qid in (8, 9, 10, 11, 13):
        r = await client.post("/questions/scan", json={"code": f"zocampbanfoo_{qid}"})
        modes[qid] = (r.json()["mode"], r.json()["dialog"]["title"])
    assert modes == {
        8: ("upload", "CHALLENGE UNLOCKED!"),
        9: ("complete", "CHALLENGE UNLOCKED!"),
        10: ("none", "NO TREASURE FOUND!"),
        11: ("complete", "TREASURE FOUND!"),
        13: ("upload", "VIRTUOUS ACTS REMINDER"),
    }


@pytest.mark.asyncio
async def test_answer_is_trimmed_and_case_insensitive(db, client):
    r = await client.post("/teams/1/questions/7/answer", json={"answer": "  paRIS "})
    assert r.status_code == 201, r.text
    body = r.json()
    assert (body["awarded"], body["gold"]) == (10, 10)
    assert body["dialog"]["title"] == "CHALLENGE COMPLETED!"
    assert "10 gold bars added" in body["dialog"]["description"]

    scores = (await client.get("/teams/1/scores")).json()
    assert scores[0]["remarks"] == "Question 7"
    assert len(scores) == 1
    assert scores[0]["source"] == "question"
    rows = await completion_rows(db, 1, 7)
    assert len(rows) == 1 and rows[0].files == []

@pytest.mark.asyncio
async def test_wrong_answer_awards_nothing(db, client):
    r = await client.post("/teams/1/questions/7/answer", json={"answer": "London"})
    assert (r.status_code, r.json()["detail"]) == (400, "Incorrect answer, try again!")
    assert (await client.get("/teams/1/gold")).json()["gold"] == 0
    assert await completion_rows(db, 1, 7) == []

@pytest.mark.asyncio
async def test_contains_match_question(client):
    r = await client.post("/teams/2/questions/30/answer", json={"answer": "I think MANGO!"})
    assert r.status_code == 201, r.text
    # containment keeps case
    r = await client.post("/teams/2/questions/30/answer", json={"answer": "mango"})
    assert r.status_code == 400

@pytest.mark.asyncio
async def test_noreward_logs_completion_without_gold(db, client):
    r = await client.post("/teams/1/questions/12/answer", json={"answer": "HELLO"})
    assert r.status_code == 201
    body = r.json()
    assert (body["awarded"], body["gold"]) == (0, 0)
    assert "hole in the bottom" in body["dialog"]["description"]
    assert (await client.get("/teams/1/scores")).json() == []
    assert len(await completion_rows(db, 1, 12)) == 1

@pytest.mark.asyncio
async def test_task_and_temptation_claims(client):
    r = await client.post("/teams/3/questions/9/complete")
    assert (r.status_code, r.json()["awarded"]) == (201, 5)
    r = await client.post("/teams/3/questions/11/complete")
    assert (r.status_code, r.json()["gold"]) == (201, 25)

@pytest.mark.asyncio
async def test_empty_location_has_nothing_to_claim(client):
    r = await client.post("/teams/3/questions/10/complete")
    assert (r.status_code, r.json()["detail"]) == (409, "There is no treasure here.")

@pytest.mark.asyncio
async def test_wrong_action_for_question(client):
    r = await client.post("/teams/1/questions/8/answer", json={"answer": "tree"})
    assert r.status_code == 409
    r = await client.post("/teams/1/questions/7/complete")
    assert r.status_code == 409

@pytest.mark.asyncio
async def test_unknown_team_or_question(client):
    assert (await client.post("/teams/99/questions/9/complete")).status_code == 404
    assert (await client.post("/teams/1/questions/999/complete")).status_code == 404


@pytest.mark.asyncio
async def test_file_upload_stores_photos(db, client, fake_storage):
    files = [
        ("files", ("tree one.png", png_bytes(), "image/png")),
        ("files", ("tree2.png", png_bytes((0, 255, 0)), "image/png")),
    ]
    r = await client.post("/teams/2/questions/8/files", files=files)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["awarded"] == 15
    assert len(body["files"]) == 2
    keys = sorted(fake_storage)
    assert all(k.startswith("qr8/team-2_qr-8_") for k in keys)
    assert any(k.endswith("_tree-one.png") for k in keys)
    rows = await completion_rows(db, 2, 8)
    assert len(rows) == 1
    assert sorted(rows[0].files) == sorted(body["files"])
    assert all(url.startswith("http://files.test/uploads/qr8/") for url in rows[0].files)

@pytest.mark.asyncio
async def test_upload_requires_files(client):
    r = await client.post("/teams/2/questions/8/files")
    assert (r.status_code, r.json()["detail"]) == (400, "Please upload at least one file.")

@pytest.mark.asyncio
async def test_upload_rejects_non_images(client, fake_storage):
    r = await client.post("/teams/2/questions/8/files", files=[("files", ("notes.txt", b"hello", "image/png"))])
    assert r.status_code == 400
    assert fake_storage == {}
    assert (await client.get("/teams/2/gold")).json()["gold"] == 0

@pytest.mark.asyncio
async def test_upload_storage_failure(db, client, monkeypatch):
    from banfoo.services import storage

    def _boom(key, data, content_type):
        raise OSError("minio down")

    monkeypatch.setattr(storage, "put_bytes", _boom)
    r = await client.post("/teams/2/questions/13/files", files=[("files", ("kind.png", png_bytes(), "image/png"))])
    assert r.status_code == 502
    assert (await client.get("/teams/2/gold")).json()["gold"] == 0
    assert await completion_rows(db, 2, 13) == []

@pytest.mark.asyncio
async def test_repeat_completion_guard(client, monkeypatch):
    from banfoo.config import settings

    assert (await client.post("/teams/1/questions/9/complete")).status_code == 201
    # repeats allowed by default
    assert (await client.post("/teams/1/questions/9/complete")).status_code == 201
    monkeypatch.setattr(settings, "allow_repeat_completions", False)
    r = await client.post("/teams/1/questions/9/complete")
    assert (r.status_code, r.json()["detail"]) == (409, "Challenge already completed.")
    assert (await client.get("/teams/1/gold")).json()["gold"] == 10

@pytest.mark.asyncio
async def test_oversized_photo_is_rejected(db, client, fake_storage, monkeypatch):
    from banfoo.config import settings

    monkeypatch.setattr(settings, "max_upload_bytes", 16)
    r = await client.post("/teams/2/questions/8/files", files=[("files", ("big.png", png_bytes(), "image/png"))])
    assert (r.status_code, r.json()["detail"]) == (400, "big.png is too large.")
    assert fake_storage == {}
    assert await completion_rows(db, 2, 8) == []
