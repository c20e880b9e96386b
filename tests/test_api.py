"""
tests/test_api.py - HTTP endpoint tests.

Uses FastAPI's TestClient with fakeredis and a mocked registry; no server,
Redis or network needed.
"""

from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis
from fastapi.testclient import TestClient

from conftest import KNOWN_CITIZENS, make_registry

from app.core.app import app
from app.services.importer import profile_importer
from app.services.redis_service import redis_service


@pytest.fixture
def client(fake_redis, monkeypatch):
    monkeypatch.setattr(profile_importer, "registry", make_registry())
    with TestClient(app) as c:
        yield c


def _import(client, name, gender):
    return client.post("/api/characters", json={"name": name, "gender": gender})


@pytest.fixture
def seeded(client):
    """Import every known citizen; Aura and Jamyl are female, the rest male."""
    genders = {"Aura": "female", "Jamyl Sarum": "female"}
    for name in KNOWN_CITIZENS:
        resp = _import(client, name, genders.get(name, "male"))
        assert resp.status_code == 200
    return client


# ======================================================================
# Import
# ======================================================================


class TestImport:
    def test_import_success(self, client):
        resp = _import(client, "Aura", "female")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Aura has been added successfully!"}

    def test_import_unknown(self, client):
        resp = _import(client, "Nobody Special", "male")
        assert resp.status_code == 404
        assert resp.json() == {"message": "Nobody Special is not a registered citizen of New Eden."}

    def test_import_twice(self, client):
        _import(client, "Aura", "female")
        resp = _import(client, "Aura", "female")
        assert resp.status_code == 409
        assert resp.json()["message"] == "Aura is already in the database."

    def test_invalid_gender(self, client):
        resp = _import(client, "Aura", "other")
        assert resp.status_code == 422

    def test_blank_name_rejected(self, client):
        resp = _import(client, "   ", "male")
        assert resp.status_code == 422

    def test_name_is_stripped_before_lookup(self, client):
        resp = _import(client, "  Aura  ", "female")
        assert resp.status_code == 200
        assert resp.json() == {"message": "Aura has been added successfully!"}


# ======================================================================
# Pairing and voting
# ======================================================================


class TestPairAndVote:
    def test_get_pair(self, seeded):
        resp = seeded.get("/api/characters")
        assert resp.status_code == 200
        pair = resp.json()
        assert len(pair) == 2
        assert pair[0]["gender"] == pair[1]["gender"]
        assert set(pair[0]) == {
            "characterId",
            "name",
            "race",
            "bloodline",
            "gender",
            "wins",
            "losses",
            "reports",
            "voted",
            "random",
        }

    def test_vote_updates_tallies(self, seeded):
        winner, loser = seeded.get("/api/characters").json()
        resp = seeded.put(
            "/api/characters", json={"winner": winner["characterId"], "loser": loser["characterId"]}
        )
        assert resp.status_code == 200

        w = seeded.get(f"/api/characters/{winner['characterId']}").json()
        lo = seeded.get(f"/api/characters/{loser['characterId']}").json()
        assert (w["wins"], w["voted"]) == (1, True)
        assert (lo["losses"], lo["voted"]) == (1, True)

    def test_repeat_vote_is_accepted_but_ignored(self, seeded):
        winner, loser = seeded.get("/api/characters").json()
        body = {"winner": winner["characterId"], "loser": loser["characterId"]}
        assert seeded.put("/api/characters", json=body).status_code == 200
        assert seeded.put("/api/characters", json=body).status_code == 200
        assert seeded.get(f"/api/characters/{winner['characterId']}").json()["wins"] == 1

    def test_vote_same_character(self, seeded):
        resp = seeded.put("/api/characters", json={"winner": "90000001", "loser": "90000001"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Cannot vote for and against the same character."

    def test_vote_missing_field(self, seeded):
        resp = seeded.put("/api/characters", json={"winner": "90000001"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Voting requires two characters."

    def test_vote_unknown_character(self, seeded):
        resp = seeded.put("/api/characters", json={"winner": "90000001", "loser": "123"})
        assert resp.status_code == 404
        assert resp.json()["message"] == "One of the characters no longer exists."

    def test_exhaustion_returns_empty_then_recovers(self, seeded):
        # Two votes leave fewer than two unvoted characters in both genders
        for _ in range(2):
            pair = seeded.get("/api/characters").json()
            assert len(pair) == 2
            seeded.put(
                "/api/characters", json={"winner": pair[0]["characterId"], "loser": pair[1]["characterId"]}
            )

        assert seeded.get("/api/characters").json() == []
        assert len(seeded.get("/api/characters").json()) == 2


# ======================================================================
# Lookups and aggregates
# ======================================================================


class TestLookups:
    def test_count(self, seeded):
        assert seeded.get("/api/characters/count").json() == {"count": len(KNOWN_CITIZENS)}

    def test_search(self, seeded):
        resp = seeded.get("/api/characters/search", params={"name": "tibus"})
        assert resp.status_code == 200
        assert resp.json()["name"] == "Tibus Heth"

    def test_search_not_found(self, seeded):
        resp = seeded.get("/api/characters/search", params={"name": "Concord"})
        assert resp.status_code == 404
        assert resp.json() == {"message": "Character not found."}

    def test_get_unknown_id(self, seeded):
        resp = seeded.get("/api/characters/404")
        assert resp.status_code == 404

    def test_top_and_shame(self, seeded):
        seeded.put("/api/characters", json={"winner": "90000002", "loser": "90000004"})
        top = seeded.get("/api/characters/top").json()
        assert top[0]["characterId"] == "90000002"
        shame = seeded.get("/api/characters/shame").json()
        assert shame[0]["characterId"] == "90000004"

    def test_top_with_filter(self, seeded):
        resp = seeded.get("/api/characters/top", params={"race": "Caldari", "gender": "male"})
        assert resp.status_code == 200
        assert [c["name"] for c in resp.json()] == ["Tibus Heth"]

    def test_top_rejects_unknown_race(self, seeded):
        assert seeded.get("/api/characters/top", params={"race": "Jove"}).status_code == 422

    def test_stats(self, seeded):
        seeded.put("/api/characters", json={"winner": "90000003", "loser": "90000001"})
        stats = seeded.get("/api/stats").json()
        assert stats["totalCount"] == 5
        assert stats["caldariCount"] == 2
        assert stats["maleCount"] == 3
        assert stats["femaleCount"] == 2
        assert stats["totalVotes"] == 1
        assert stats["leadingRace"] == {"race": "Amarr", "count": 1}
        assert stats["leadingBloodline"] == {"bloodline": "Amarr", "count": 1}


# ======================================================================
# Reports
# ======================================================================


class TestReport:
    def test_report_then_delete(self, seeded):
        for _ in range(4):
            resp = seeded.post("/api/report", json={"characterId": "90000005"})
            assert resp.json() == {"message": "Souro Foiritan has been reported."}

        resp = seeded.post("/api/report", json={"characterId": "90000005"})
        assert resp.status_code == 200
        assert resp.json() == {"message": "Souro Foiritan has been deleted."}
        assert seeded.get("/api/characters/90000005").status_code == 404

    def test_report_unknown(self, seeded):
        resp = seeded.post("/api/report", json={"characterId": "123"})
        assert resp.status_code == 404


# ======================================================================
# Health, presence and degraded store
# ======================================================================


class TestHealth:
    def test_health_ok(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["redis"] == "ok"


class TestPresence:
    def test_online_counter(self, client):
        with client.websocket_connect("/api/online") as first:
            assert first.receive_json() == {"onlineUsers": 1}
            with client.websocket_connect("/api/online") as second:
                assert second.receive_json() == {"onlineUsers": 2}
                assert first.receive_json() == {"onlineUsers": 2}
            assert first.receive_json() == {"onlineUsers": 1}


class TestStoreDown:
    @pytest.fixture
    def broken_client(self):
        broken = AsyncMock()
        broken.ping.side_effect = redis.ConnectionError("Connection refused")
        broken.hgetall.side_effect = redis.ConnectionError("Connection refused")
        redis_service.use_client(broken)
        with TestClient(app) as c:
            yield c
        redis_service.use_client(None)

    def test_app_starts_degraded(self, broken_client):
        resp = broken_client.get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "degraded"

    def test_store_errors_become_503(self, broken_client):
        resp = broken_client.get("/api/characters/90000001")
        assert resp.status_code == 503
        assert resp.json() == {"message": "Store unavailable."}
