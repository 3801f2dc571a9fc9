"""HTTP surface, exercised through the FastAPI TestClient."""

from pathlib import Path
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_app
from src.core.config import Settings
from src.services.events import CollectingEventSink

START = {
    "seats": [{"external_id": "alice", "type": "human"}, {"external_id": "bob", "type": "human"}],
    "piece_config": [{"x": 0, "y": 0, "owner": 0}, {"x": 3, "y": 3, "owner": 1}],
    "board_size": 4,
}


@pytest.fixture
def sink() -> CollectingEventSink:
    return CollectingEventSink()


@pytest.fixture
def client(tmp_path: Path, sink: CollectingEventSink) -> Generator[TestClient, None, None]:
    settings = Settings(database_url=f"sqlite:///{tmp_path / 'test.db'}")
    with TestClient(create_app(settings, sink=sink)) as test_client:
        yield test_client


def start_match(client: TestClient, **overrides: Any) -> str:
    response = client.post("/matches", json={**START, **overrides})
    assert response.status_code == 201
    return response.json()["match_id"]


# --- USERS ---
def test_register_user(client: TestClient) -> None:
    first = client.post("/users", json={"username": "alice"})
    assert first.status_code == 200
    assert first.json()["username"] == "alice"

    again = client.post("/users", json={"username": "alice"})
    assert again.json()["user_id"] == first.json()["user_id"]

    other = client.post("/users", json={"username": "bob"})
    assert other.json()["user_id"] != first.json()["user_id"]


def test_register_invalid_username(client: TestClient) -> None:
    response = client.post("/users", json={"username": "al"})
    assert response.status_code == 422


# --- MATCHES ---
def test_start_and_get_match(client: TestClient, sink: CollectingEventSink) -> None:
    match_id = start_match(client)

    response = client.get(f"/matches/{match_id}")
    assert response.status_code == 200
    body = response.json()
    assert body["notation"] == "a3/4/4/3b"
    assert body["status"] == "active"
    assert body["phase"] == "awaiting move"
    assert len(sink.events) == 1


def test_start_with_invalid_configuration(client: TestClient) -> None:
    response = client.post("/matches", json={**START, "seats": START["seats"][:1]})
    assert response.status_code == 422
    assert response.json()["detail"]["reason"] == "invalid configuration"


def test_play_a_turn(client: TestClient) -> None:
    match_id = start_match(client)

    moved = client.post(
        f"/matches/{match_id}/move",
        json={"external_id": "alice", "from": {"x": 0, "y": 0}, "to": {"x": 3, "y": 0}},
    )
    assert moved.status_code == 200
    assert moved.json() == {"to": {"x": 3, "y": 0}}

    burned = client.post(
        f"/matches/{match_id}/burn", json={"external_id": "alice", "tile": {"x": 0, "y": 0}}
    )
    assert burned.status_code == 200

    state = client.get(f"/matches/{match_id}").json()
    assert state["notation"] == "x2a/4/4/3b"
    assert state["turn_seat"] == 1


@pytest.mark.parametrize(
    "path, body, status_code, reason",
    [
        ("move", {"external_id": "bob", "from": {"x": 3, "y": 3}, "to": {"x": 3, "y": 2}}, 409, "not your turn"),
        ("move", {"external_id": "alice", "from": {"x": 0, "y": 0}, "to": {"x": 1, "y": 2}}, 422, "illegal move"),
        ("move", {"external_id": "alice", "from": {"x": 0, "y": 0}, "to": {"x": 0, "y": 9}}, 422, "out of bounds"),
        ("move", {"external_id": "mallory", "from": {"x": 0, "y": 0}, "to": {"x": 0, "y": 1}}, 404, "unknown participant"),
        ("burn", {"external_id": "alice", "tile": {"x": 1, "y": 1}}, 409, "wrong phase"),
    ],
)
def test_rejections(
    client: TestClient, sink: CollectingEventSink, path: str, body: dict[str, Any], status_code: int, reason: str
) -> None:
    match_id = start_match(client)

    response = client.post(f"/matches/{match_id}/{path}", json=body)

    assert response.status_code == status_code
    assert response.json()["detail"]["reason"] == reason
    # nothing was broadcast beyond the starting position
    assert len(sink.events) == 1


def test_unknown_match(client: TestClient) -> None:
    unknown = "00000000-0000-0000-0000-000000000000"
    assert client.get(f"/matches/{unknown}").status_code == 404

    response = client.post(
        f"/matches/{unknown}/burn", json={"external_id": "alice", "tile": {"x": 1, "y": 1}}
    )
    assert response.status_code == 404
    assert response.json()["detail"]["reason"] == "unknown match"


def test_leave_match(client: TestClient) -> None:
    match_id = start_match(client)

    response = client.delete(f"/matches/{match_id}/players/alice")
    assert response.status_code == 204

    # the match is over and has been torn down
    assert client.get(f"/matches/{match_id}").status_code == 404
