"""Tests for the HTTP API and WebSocket hubs, using FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from clubrank.config import Settings
from clubrank.web.main import create_app


@pytest.fixture
def client(session_factory):
    app = create_app(session_factory, Settings(_env_file=None, news_limit=5, elo_k_factor=32))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def match(client):
    anna = client.post("/users/", json={"name": "Anna"}).json()
    bert = client.post("/users/", json={"name": "Bert", "initials": "bb"}).json()
    created = client.post(
        "/matches/", json={"player1_id": anna["id"], "player2_id": bert["id"]}
    )
    assert created.status_code == 201
    return anna["id"], bert["id"], created.json()


def _finalize_body(winner_id, loser_id, **extra):
    body = {
        "winner_id": winner_id,
        "scores": [
            {"player_id": winner_id, "score": 2},
            {"player_id": loser_id, "score": 0},
        ],
    }
    body.update(extra)
    return body


class TestUsers:

    def test_create_and_get(self, client):
        response = client.post("/users/", json={"name": "Anna"})

        assert response.status_code == 201
        user = response.json()
        assert user["initials"] == "AN"
        assert user["elo"] == 1500
        assert client.get(f"/users/{user['id']}").json() == user
        assert client.get("/users/").json() == [user]

    def test_unknown_user(self, client):
        response = client.get("/users/999")

        assert response.status_code == 404
        assert response.json()["error"] == "UserNotFound"

    def test_blank_name(self, client):
        assert client.post("/users/", json={"name": "  "}).status_code == 400

    def test_delete_user_in_match(self, client, match):
        anna, _, _ = match

        response = client.delete(f"/users/{anna}")

        assert response.status_code == 409
        assert response.json()["error"] == "UserInUse"

    def test_delete_user(self, client):
        user = client.post("/users/", json={"name": "Cleo"}).json()

        assert client.delete(f"/users/{user['id']}").status_code == 204
        assert client.delete(f"/users/{user['id']}").status_code == 404


class TestMatches:

    def test_created_match(self, client, match):
        anna, bert, created = match

        assert created["is_finished"] is False
        assert created["number_of_sets"] == 3
        assert [p["user_id"] for p in created["players"]] == [anna, bert]
        assert client.get(f"/matches/{created['id']}").json() == created

    def test_invalid_match(self, client, match):
        anna, _, _ = match

        response = client.post("/matches/", json={"player1_id": anna, "player2_id": anna})

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidMatch"

    def test_finalize_with_rating(self, client, match):
        anna, bert, created = match

        response = client.put(
            f"/matches/{created['id']}",
            json=_finalize_body(anna, bert, news="Anna wins", update_winner=True),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["rating_change"]["winner_delta"] == 16
        assert body["ranking_changed"] is True
        assert body["warnings"] == []
        assert body["match"]["is_finished"] is True

        ranking = client.get("/ranking").json()
        assert [(r["rank"], r["id"], r["elo"]) for r in ranking] == [(1, anna, 1516), (2, bert, 1484)]
        assert [n["news"] for n in client.get("/news").json()] == ["Anna wins"]

    def test_finalize_without_rating(self, client, match):
        anna, bert, created = match

        body = client.put(f"/matches/{created['id']}", json=_finalize_body(bert, anna)).json()

        assert body["rating_change"] is None
        assert {p["elo"] for p in body["match"]["players"]} == {1500}

    @pytest.mark.parametrize(
        "winner, scores, status, error",
        [
            ("outsider", None, 400, "InvalidWinner"),
            ("anna", [], 400, "MissingScore"),
            ("anna", [{"player_id": "anna", "score": -1}, {"player_id": "bert", "score": 1}], 400, "InvalidScores"),
        ],
    )
    def test_finalize_rejected(self, client, match, winner, scores, status, error):
        anna, bert, created = match
        ids = {"anna": anna, "bert": bert, "outsider": 999}
        body = _finalize_body(ids[winner], bert if winner != "bert" else anna)
        if scores is not None:
            body["scores"] = [{"player_id": ids[s["player_id"]], "score": s["score"]} for s in scores]

        response = client.put(f"/matches/{created['id']}", json=body)

        assert response.status_code == status
        assert response.json()["error"] == error
        assert client.get(f"/matches/{created['id']}").json()["is_finished"] is False

    def test_finalize_unknown_match(self, client, match):
        anna, bert, _ = match

        response = client.put("/matches/999", json=_finalize_body(anna, bert))

        assert response.status_code == 404
        assert response.json()["error"] == "MatchNotFound"

    def test_finalize_stale_version(self, client, match):
        anna, bert, created = match
        client.put(f"/matches/{created['id']}", json=_finalize_body(anna, bert))

        response = client.put(
            f"/matches/{created['id']}",
            json=_finalize_body(anna, bert, expected_version=created["version"]),
        )

        assert response.status_code == 409
        assert response.json()["error"] == "ConcurrentUpdateConflict"

    def test_rating_applied_twice(self, client, match):
        anna, bert, created = match
        url = f"/matches/{created['id']}"
        client.put(url, json=_finalize_body(anna, bert, update_winner=True))

        response = client.put(url, json=_finalize_body(anna, bert, update_winner=True))

        assert response.status_code == 409
        assert response.json()["error"] == "RatingAlreadyApplied"

    def test_delete_match_refreshes_news(self, client, match):
        anna, bert, created = match
        client.put(f"/matches/{created['id']}", json=_finalize_body(anna, bert, news="Gone soon"))

        assert client.delete(f"/matches/{created['id']}").status_code == 204
        assert client.get("/news").json() == []
        assert client.get("/matches/").json() == []


class TestHubs:

    def test_ranking_and_news_pushed_on_finalize(self, client, match):
        anna, bert, created = match

        with client.websocket_connect("/hubs/ranking") as ranking, client.websocket_connect("/hubs/news") as news:
            client.put(
                f"/matches/{created['id']}",
                json=_finalize_body(anna, bert, news="Live!", update_winner=True),
            )

            assert ranking.receive_json() == {"event": "ranking_changed"}
            message = news.receive_json()

        assert message["event"] == "news_updated"
        assert [item["news"] for item in message["news"]] == ["Live!"]

    def test_news_pushed_without_rating_update(self, client, match):
        anna, bert, created = match

        with client.websocket_connect("/hubs/news") as news:
            client.put(f"/matches/{created['id']}", json=_finalize_body(anna, bert, news="Quiet"))
            message = news.receive_json()

        assert [item["news"] for item in message["news"]] == ["Quiet"]
