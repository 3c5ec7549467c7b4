"""
Integration tests for the REST API endpoints.

Runs the real app against the in-memory SQLite engine; the database
session, Redis client and random source are swapped in through FastAPI's
dependency overrides.
"""

import random

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from geoquiz.api.app import create_app
from geoquiz.api.dependencies import get_db, get_redis, get_rng
from geoquiz.api.middleware import limiter


@pytest_asyncio.fixture
async def client(session_factory, fake_redis):
    app = create_app()

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _test_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_rng] = lambda: random.Random(5)
    limiter.enabled = False

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    limiter.enabled = True


@pytest_asyncio.fixture
async def game(client, players, add_swiss_locations):
    """A group game created through the API, no round released."""
    await add_swiss_locations(6)
    resp = await client.post(
        "/api/v1/games",
        json={
            "user_id": players.admin_id,
            "group_id": players.group_id,
            "game_type": "country:switzerland",
            "locations_per_round": 3,
            "name": "Herbstrunde",
        },
    )
    assert resp.status_code == 201
    return resp.json()


async def _release(client, game_id: int, user_id: int, **extra):
    return await client.post(
        f"/api/v1/games/{game_id}/rounds", json={"user_id": user_id, **extra}
    )


async def _slots(client, game_id: int, user_id: int) -> list[dict]:
    resp = await client.get(f"/api/v1/games/{game_id}/rounds", params={"user_id": user_id})
    assert resp.status_code == 200
    return resp.json()


class TestAdmin:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/api/v1/admin/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    @pytest.mark.asyncio
    async def test_game_types_localized(self, client):
        resp = await client.get("/api/v1/admin/game-types", params={"locale": "de"})
        assert resp.status_code == 200
        by_id = {t["id"]: t for t in resp.json()}
        assert by_id["country:switzerland"]["name"] == "Schweiz"
        assert by_id["world:capitals"]["hint_radius"] == 3000
        assert by_id["image:garten"]["kind"] == "image"

    @pytest.mark.asyncio
    async def test_unsupported_locale_rejected(self, client):
        resp = await client.get("/api/v1/admin/game-types", params={"locale": "fr"})
        assert resp.status_code == 422


class TestGames:
    @pytest.mark.asyncio
    async def test_create_game(self, game, players):
        assert game["current_round"] == 0
        assert game["status"] == "active"
        assert game["group_id"] == players.group_id
        assert game["leaderboard_revealed"] is False

    @pytest.mark.asyncio
    async def test_create_with_unknown_type(self, client, players):
        resp = await client.post(
            "/api/v1/games",
            json={
                "user_id": players.admin_id,
                "group_id": players.group_id,
                "game_type": "country:atlantis",
            },
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "unknown_game_type"

    @pytest.mark.asyncio
    async def test_release_rounds_until_pool_is_used_up(self, client, game, players, fake_redis):
        first = await _release(client, game["id"], players.admin_id)
        assert first.status_code == 200
        assert first.json() == {
            "success": True,
            "current_round": 1,
            "locations_in_round": 3,
            "game_type": "country:switzerland",
        }

        second = await _release(client, game["id"], players.admin_id)
        assert second.json()["current_round"] == 2

        third = await _release(client, game["id"], players.admin_id)
        assert third.status_code == 409
        body = third.json()
        assert body["code"] == "insufficient_locations"
        assert body["required"] == 3
        assert body["available"] == 0

        assert fake_redis.set.await_count == 3

    @pytest.mark.asyncio
    async def test_member_cannot_release(self, client, game, players):
        resp = await _release(client, game["id"], players.member_id)
        assert resp.status_code == 403
        assert resp.json()["code"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_busy_release_lock(self, client, game, players, fake_redis):
        fake_redis.set.return_value = False
        resp = await _release(client, game["id"], players.admin_id)
        assert resp.status_code == 409
        assert resp.json()["code"] == "release_in_progress"

    @pytest.mark.asyncio
    async def test_unknown_game(self, client, players):
        resp = await _release(client, 9999, players.admin_id)
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_complete_twice(self, client, game, players):
        url = f"/api/v1/games/{game['id']}/complete"
        first = await client.post(url, json={"user_id": players.admin_id})
        assert first.status_code == 204

        second = await client.post(url, json={"user_id": players.admin_id})
        assert second.status_code == 409
        assert second.json()["code"] == "invalid_transition"

    @pytest.mark.asyncio
    async def test_status(self, client, game, players):
        await _release(client, game["id"], players.admin_id)
        resp = await client.get(
            f"/api/v1/games/{game['id']}/status", params={"user_id": players.member_id}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["current_round"] == 1
        assert body["user_completed_rounds"] == 0
        assert body["finished"] is False


class TestGuesses:
    @pytest.mark.asyncio
    async def test_guess_flow(self, client, game, players):
        await _release(client, game["id"], players.admin_id)
        slots = await _slots(client, game["id"], players.member_id)
        assert len(slots) == 3
        assert not any(s["guessed"] for s in slots)

        resp = await client.post(
            "/api/v1/guesses",
            json={
                "game_round_id": slots[0]["game_round_id"],
                "user_id": players.member_id,
                "latitude": 46.8,
                "longitude": 8.2,
                "time_seconds": 12,
            },
        )
        assert resp.status_code == 201
        body = resp.json()
        assert 0 <= body["score"] <= 100
        assert body["distance_label"].endswith(" km")
        assert body["timeout"] is False
        assert set(body["target"]) == {"lat", "lng"}

        slots = await _slots(client, game["id"], players.member_id)
        assert slots[0]["guessed"] is True
        assert slots[0]["score"] == body["score"]

    @pytest.mark.asyncio
    async def test_duplicate_guess(self, client, game, players):
        await _release(client, game["id"], players.admin_id)
        round_id = (await _slots(client, game["id"], players.member_id))[0]["game_round_id"]
        payload = {"game_round_id": round_id, "user_id": players.member_id, "timeout": True}

        first = await client.post("/api/v1/guesses", json=payload)
        assert first.status_code == 201
        assert first.json()["distance_km"] == 400
        assert first.json()["score"] == 2

        second = await client.post("/api/v1/guesses", json=payload)
        assert second.status_code == 409
        assert second.json()["code"] == "already_guessed"

    @pytest.mark.asyncio
    async def test_guess_needs_coordinate(self, client, game, players):
        await _release(client, game["id"], players.admin_id)
        round_id = (await _slots(client, game["id"], players.member_id))[0]["game_round_id"]
        resp = await client.post(
            "/api/v1/guesses",
            json={"game_round_id": round_id, "user_id": players.member_id, "latitude": 46.8},
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_outsider_cannot_guess(self, client, game, players):
        await _release(client, game["id"], players.admin_id)
        round_id = (await _slots(client, game["id"], players.admin_id))[0]["game_round_id"]
        resp = await client.post(
            "/api/v1/guesses",
            json={
                "game_round_id": round_id,
                "user_id": players.outsider_id,
                "latitude": 46.8,
                "longitude": 8.2,
            },
        )
        assert resp.status_code == 403


class TestHintsAndLeaderboard:
    @pytest.mark.asyncio
    async def test_hint(self, client, game, players):
        await _release(client, game["id"], players.admin_id)
        round_id = (await _slots(client, game["id"], players.member_id))[0]["game_round_id"]

        resp = await client.get(
            f"/api/v1/rounds/{round_id}/hint", params={"user_id": players.member_id}
        )
        assert resp.status_code == 200
        assert resp.json()["radius_km"] == pytest.approx(60)

        denied = await client.get(
            f"/api/v1/rounds/{round_id}/hint", params={"user_id": players.admin_id}
        )
        assert denied.status_code == 403
        assert denied.json()["code"] == "hints_disabled"

    @pytest.mark.asyncio
    async def test_leaderboard(self, client, game, players):
        await _release(client, game["id"], players.admin_id)
        for user_id in (players.admin_id, players.member_id):
            for slot in await _slots(client, game["id"], user_id):
                await client.post(
                    "/api/v1/guesses",
                    json={
                        "game_round_id": slot["game_round_id"],
                        "user_id": user_id,
                        "timeout": user_id == players.member_id,
                        "latitude": 46.8,
                        "longitude": 8.2,
                    },
                )

        await client.post(
            f"/api/v1/games/{game['id']}/leaderboard/reveal",
            json={"user_id": players.admin_id},
        )
        resp = await client.get(
            f"/api/v1/games/{game['id']}/leaderboard", params={"user_id": players.member_id}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["revealed"] is True
        assert body["current_round"] == 1
        board = body["leaderboard"]
        assert [e["user_id"] for e in board] == [players.admin_id, players.member_id]
        assert board[1]["total_score"] == 6
        assert board[1]["total_distance"] == 1200
        assert board[1]["total_distance_label"] == "1200.000 km"
        assert all(e["completed"] for e in board)

        single = await client.get(
            f"/api/v1/games/{game['id']}/leaderboard",
            params={"user_id": players.member_id, "round_number": 1},
        )
        assert single.json()["leaderboard"] == board

    @pytest.mark.asyncio
    async def test_outsider_cannot_read_progress(self, client, game, players):
        await _release(client, game["id"], players.admin_id)
        params = {"user_id": players.outsider_id}

        status = await client.get(f"/api/v1/games/{game['id']}/status", params=params)
        board = await client.get(f"/api/v1/games/{game['id']}/leaderboard", params=params)

        assert status.status_code == 403
        assert board.status_code == 403
        assert board.json()["code"] == "unauthorized"

    @pytest.mark.asyncio
    async def test_leaderboard_needs_user(self, client, game):
        resp = await client.get(f"/api/v1/games/{game['id']}/leaderboard")
        assert resp.status_code == 422
