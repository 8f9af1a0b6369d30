"""
API integration tests.
Uses TestClient to avoid starting a server.
Requires: pip install httpx (for TestClient)
"""
from __future__ import annotations

import pytest

try:
    from fastapi.testclient import TestClient
    HAS_HTTPX = True
except (ImportError, RuntimeError):
    HAS_HTTPX = False

pytestmark = pytest.mark.skipif(not HAS_HTTPX, reason="httpx required for TestClient")

from teambalance.api import app
from teambalance.config import Settings, set_settings


@pytest.fixture(autouse=True)
def default_settings():
    """Pin balancing settings so TEAMBALANCE_* env vars do not leak into requests."""
    set_settings(Settings())
    yield
    set_settings(None)


@pytest.fixture
def client():
    return TestClient(app)


def player(pid: str, gender: str = "male", skill: int = 5, **extra) -> dict:
    return {"id": pid, "name": pid.upper(), "gender": gender, "skill_level": skill, **extra}


@pytest.fixture
def three_player_tournament(client) -> dict:
    resp = client.post("/tournaments", json={"players": [player("p0"), player("p1"), player("p2")]})
    assert resp.status_code == 200
    return resp.json()


def test_root(client):
    """GET / is a health check."""
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


# ---------- Team split ----------

def test_split_teams_example(client):
    """Four players split into two teams of equal total skill."""
    resp = client.post(
        "/teams/split",
        json={
            "players": [
                player("a", "male", 10),
                player("b", "female", 1),
                player("c", "male", 5),
                player("d", "female", 6),
            ]
        },
    )
    assert resp.status_code == 200
    data = resp.json()
    assert [t["name"] for t in data["teams"]] == ["A", "B"]
    assert [t["stats"]["total_skill"] for t in data["teams"]] == [11, 11]
    assert data["warnings"] == []
    assert data["bench"] == []


def test_split_clamps_skill_and_benches_inactive(client):
    resp = client.post(
        "/teams/split",
        json={
            "players": [
                player("a", skill=99),
                player("b", skill=3),
                player("c", "female", 4),
                player("d", "female", 5),
                player("e", skill=7, is_active=False, team="A"),
            ]
        },
    )
    assert resp.status_code == 200
    data = resp.json()
    skills = {p["id"]: p["skill_level"] for t in data["teams"] for p in t["players"]}
    assert skills["a"] == 10
    assert [p["id"] for p in data["bench"]] == ["e"]
    assert data["bench"][0]["team"] is None


def test_split_not_enough_players_warns(client):
    resp = client.post("/teams/split", json={"players": [player("a"), player("b")], "team_count": 3})
    assert resp.status_code == 200
    data = resp.json()
    assert len(data["teams"]) == 3
    assert any(w.startswith("Not enough players") for w in data["warnings"])


def test_split_rejects_bad_gender(client):
    resp = client.post("/teams/split", json={"players": [player("a", "other")]})
    assert resp.status_code == 422


# ---------- Pairs ----------

def test_create_mixed_pair(client):
    resp = client.post(
        "/pairs",
        json={"match_type": "XD", "pair": {"players": [player("m", "male", 6), player("f", "female", 7)]}},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["kind"] == "pair"
    assert data["id"] == "pair-m-f"
    assert data["display_name"] == "M / F"
    assert data["skill"] == 13


def test_create_invalid_pair(client):
    resp = client.post(
        "/pairs",
        json={"match_type": "XD", "pair": {"players": [player("m1"), player("m2")]}},
    )
    assert resp.status_code == 400


# ---------- Tournaments ----------

def test_create_tournament_from_players(three_player_tournament):
    t = three_player_tournament
    assert t["match_type"] == "MS"
    assert t["format"] == "round_robin"
    assert len(t["schedule"]) == 3
    assert t["current_round"] == 1
    assert t["is_complete"] is False
    first = t["schedule"][0][0]
    assert first["id"] == "r1-m2"
    assert (first["side_a"]["id"], first["side_b"]["id"]) == ("p1", "p2")
    assert first["status"] == "pending"


def test_create_tournament_from_pairs(client):
    pairs = [
        {"players": [player("a", "female"), player("b", "female")]},
        {"players": [player("c", "female"), player("d", "female")]},
    ]
    resp = client.post("/tournaments", json={"pairs": pairs, "match_type": "WD"})
    assert resp.status_code == 200
    t = resp.json()
    assert t["match_type"] == "WD"
    assert len(t["schedule"]) == 1
    assert t["competitors"][0]["id"] == "pair-a-b"


def test_create_tournament_needs_players_or_pairs(client):
    both = {
        "players": [player("a"), player("b")],
        "pairs": [{"players": [player("c"), player("d")]}],
    }
    assert client.post("/tournaments", json=both).status_code == 400
    assert client.post("/tournaments", json={}).status_code == 400


def test_create_tournament_doubles_type_with_players(client):
    resp = client.post("/tournaments", json={"players": [player("a"), player("b")], "match_type": "MD"})
    assert resp.status_code == 400


def test_record_result(client, three_player_tournament):
    resp = client.post(
        "/tournaments/result",
        json={"tournament": three_player_tournament, "match_id": "r1-m2", "score_a": 21, "score_b": 15},
    )
    assert resp.status_code == 200
    t = resp.json()
    match = t["schedule"][0][0]
    assert match["status"] == "completed"
    assert match["winner"] == "a"
    leader = t["standings"][0]
    assert leader["competitor"]["id"] == "p1"
    assert leader["points"] == 2
    assert leader["rank"] == 1
    assert t["current_round"] == 2


def test_record_result_unknown_match(client, three_player_tournament):
    resp = client.post(
        "/tournaments/result",
        json={"tournament": three_player_tournament, "match_id": "r9-m9", "score_a": 21, "score_b": 15},
    )
    assert resp.status_code == 404


def test_record_result_negative_score(client, three_player_tournament):
    resp = client.post(
        "/tournaments/result",
        json={"tournament": three_player_tournament, "match_id": "r1-m2", "score_a": -1, "score_b": 15},
    )
    assert resp.status_code == 422


def test_schedule_and_standings(client):
    competitors = [{"id": f"c{i}", "members": [player(f"c{i}")]} for i in range(4)]
    resp = client.post("/tournaments/schedule", json={"competitors": competitors})
    assert resp.status_code == 200
    rounds = resp.json()["rounds"]
    assert len(rounds) == 3
    assert all(len(r) == 2 for r in rounds)

    rounds[0][0].update({"score_a": 21, "score_b": 9, "winner": "a", "status": "completed"})
    resp = client.post("/tournaments/standings", json={"competitors": competitors, "schedule": rounds})
    assert resp.status_code == 200
    standings = resp.json()["standings"]
    assert standings[0]["competitor"]["id"] == rounds[0][0]["side_a"]["id"]
    assert standings[0]["points"] == 2
    assert [s["rank"] for s in standings] == [1, 2, 2, 2]


def test_standings_rejects_malformed_schedule(client):
    competitors = [{"id": "c0", "members": [player("c0")]}]
    resp = client.post("/tournaments/standings", json={"competitors": competitors, "schedule": [[{"id": "x"}]]})
    assert resp.status_code == 400


def test_match_types(client):
    resp = client.get("/match-types", params={"male_count": 4})
    assert resp.status_code == 200
    data = resp.json()
    assert [t["id"] for t in data["match_types"]] == ["MS", "WS", "MD", "WD", "XD"]
    assert data["suggested"] == "MD"
    assert client.get("/match-types", params={"male_count": 2, "female_count": 2}).json()["suggested"] == "XD"


# ---------- Quick matches ----------

def test_suggest_match(client):
    players = [player("m1", skill=9), player("m2", skill=5), player("m3", skill=4), player("f1", "female", 4)]
    resp = client.post("/matches/suggest", json={"players": players, "match_type": "MS"})
    assert resp.status_code == 200
    data = resp.json()
    assert [p["id"] for p in data["side_a"]] == ["m2"]
    assert [p["id"] for p in data["side_b"]] == ["m3"]
    assert data["status"] == "pending"
    assert data["skill_gap"] == 1


def test_suggest_match_team_mode_with_seed(client):
    players = [
        player("a1", skill=7, team="A"),
        player("a2", skill=3, team="A"),
        player("b1", skill=6, team="B"),
        player("b2", skill=2, team="B"),
    ]
    body = {"players": players, "match_type": "MS", "team_mode": True, "seed": 3}
    first = client.post("/matches/suggest", json=body).json()
    again = client.post("/matches/suggest", json=body).json()
    assert first["side_a"] == again["side_a"]
    assert first["side_a"][0]["id"].startswith("a")
    assert first["side_b"][0]["id"].startswith("b")


def test_suggest_match_not_enough_players(client):
    resp = client.post("/matches/suggest", json={"players": [player("m1")], "match_type": "MS"})
    assert resp.status_code == 400


def test_record_quick_match_and_team_points(client):
    roster = [player("a1", skill=7, team="A"), player("b1", skill=6, team="B")]
    match = client.post(
        "/matches/suggest", json={"players": roster, "match_type": "MS", "team_mode": True}
    ).json()
    resp = client.post(
        "/matches/result",
        json={"matches": [match], "players": roster, "match_id": match["id"], "score_a": 21, "score_b": 17},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["matches"][0]["winner"] == "a"
    assert data["matches"][0]["status"] == "completed"
    assert data["team_points"] == {"A": 1, "B": 0}


def test_record_quick_match_unknown_id(client):
    resp = client.post("/matches/result", json={"matches": [], "match_id": "nope", "score_a": 1, "score_b": 0})
    assert resp.status_code == 404


def test_schedule_fixtures_show_byes(client):
    competitors = [{"id": f"c{i}", "members": [player(f"c{i}")]} for i in range(3)]
    data = client.post("/tournaments/schedule", json={"competitors": competitors}).json()
    byes = [f["home_id"] for f in data["fixtures"] if f["away_id"] is None]
    assert sorted(byes) == ["c0", "c1", "c2"]
    assert all(f["match_id"] is None for f in data["fixtures"] if f["away_id"] is None)
