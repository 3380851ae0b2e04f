import pytest
from banfoo.services.scoring import (
    add_entry, team_gold, totals_by_team, disaster_losses, peace_gains, leaderboard, TeamNotFound,
)
from banfoo.services.state import set_state
from conftest import give_gold


def test_disaster_halves_and_floors():
    assert disaster_losses({1: 100, 2: 7, 3: 1}) == {1: -50, 2: -3}

def test_disaster_skips_empty_and_negative_teams():
    assert disaster_losses({1: 0, 2: -10}) == {}

def test_peace_doubles_positive_gold_only():
    assert peace_gains({1: 40, 2: 0, 3: -5}) == {1: 40}


@pytest.mark.asyncio
async def test_gold_is_sum_of_entries(session):
    for score in (5, -2, 10):
        await add_entry(session, team_id=1, score=score, remarks="x")
    await session.commit()
    assert await team_gold(session, 1) == 13
    assert await team_gold(session, 2) == 0
    assert await totals_by_team(session) == {1: 13}

@pytest.mark.asyncio
async def test_add_entry_returns_score_event(session):
    entry, evt = await add_entry(session, team_id=2, score=-4, remarks="Late to lineup", is_admin=True)
    assert entry.id is not None
    assert evt.kind == "score"
    assert (evt.team_id, evt.delta, evt.source) == (2, -4, "manual")

@pytest.mark.asyncio
async def test_add_entry_unknown_team(session):
    with pytest.raises(TeamNotFound):
        await add_entry(session, team_id=99, score=1, remarks=None)

@pytest.mark.asyncio
async def test_leaderboard_ranks_by_gold(db, session):
    await give_gold(db, 3, 30)
    await give_gold(db, 1, 10)
    snap = await leaderboard(session)
    assert not snap.frozen
    assert [(r.rank, r.team_id, r.gold) for r in snap.rows] == [(1, 3, 30), (2, 1, 10), (3, 2, 0)]

@pytest.mark.asyncio
async def test_frozen_leaderboard_ignores_later_entries(db, session):
    await give_gold(db, 1, 10)
    await set_state(session, "freeze", True)
    await session.commit()
    await give_gold(db, 2, 500)

    snap = await leaderboard(session)
    assert snap.frozen and snap.frozen_at is not None
    assert snap.rows[0].team_id == 1
    assert {r.team_id: r.gold for r in snap.rows} == {1: 10, 2: 0, 3: 0}
    # live gold still moves
    assert await team_gold(session, 2) == 500

    await set_state(session, "freeze", False)
    await session.commit()
    snap = await leaderboard(session)
    assert snap.rows[0].team_id == 2


@pytest.mark.asyncio
async def test_team_routes(client, admin_headers):
    r = await client.post("/admin/scores", json={"team_id": 1, "score": 12, "remarks": "Bonus"}, headers=admin_headers)
    assert r.status_code == 201, r.text
    assert r.json()["is_admin"] is True

    r = await client.get("/teams/1/gold")
    assert r.json() == {"team_id": 1, "gold": 12}
    r = await client.get("/teams/1/scores")
    assert [e["remarks"] for e in r.json()] == ["Bonus"]
    assert (await client.get("/teams/42/gold")).status_code == 404

    r = await client.get("/teams")
    assert [t["team_name"] for t in r.json()] == ["Aurora", "Borealis", "Cascade"]

    r = await client.get("/admin/overview", headers=admin_headers)
    assert r.json() == [{"team_id": 1, "gold": 12}, {"team_id": 2, "gold": 0}, {"team_id": 3, "gold": 0}]

@pytest.mark.asyncio
async def test_admin_creates_team_and_rejects_duplicates(client, admin_headers):
    body = {"id": 4, "team_name": "Dune", "color": "#eab308"}
    assert (await client.post("/admin/teams", json=body, headers=admin_headers)).status_code == 201
    assert (await client.post("/admin/teams", json=body, headers=admin_headers)).status_code == 409

@pytest.mark.asyncio
async def test_repeated_freeze_keeps_the_original_cutoff(db, client, admin_headers):
    await give_gold(db, 1, 10)
    first = await client.post("/admin/freeze", json={"frozen": True}, headers=admin_headers)
    await give_gold(db, 2, 500)

    again = await client.post("/admin/freeze", json={"frozen": True}, headers=admin_headers)
    assert again.status_code == 200
    assert again.json()["state"]["time_updated"] == first.json()["state"]["time_updated"]
    assert again.json()["state"]["event_id"] == first.json()["state"]["event_id"]

    board = (await client.get("/leaderboard")).json()
    assert {r["team_id"]: r["gold"] for r in board["rows"]} == {1: 10, 2: 0, 3: 0}
