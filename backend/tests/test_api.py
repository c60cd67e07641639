from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_settings_dep, get_signal_fetcher, get_user_store
from app.core.config import Settings, get_settings
from app.main import app
from app.services.errors import AuthError, TransientError
from app.spotify.signals import UserCredential

from stubs import StubFetcher, played, raw_track


@dataclass
class _User:
    id: str
    access_token: str
    display_name: str = ""
    refresh_token: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime(2024, 5, 1, tzinfo=timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime(2024, 5, 1, tzinfo=timezone.utc))


@dataclass
class _MemoryUserStore:
    users: Dict[str, _User] = field(default_factory=dict)

    async def resolve(self, user_ids: Sequence[str]) -> List[UserCredential]:
        return [
            UserCredential(user_id=u.id, access_token=u.access_token, display_name=u.display_name)
            for u in (self.users.get(uid) for uid in dict.fromkeys(user_ids))
            if u is not None
        ]

    async def get(self, user_id: str) -> Optional[_User]:
        return self.users.get(user_id)

    async def list_users(self) -> List[_User]:
        return sorted(self.users.values(), key=lambda u: (u.display_name, u.id))

    async def count(self) -> int:
        return len(self.users)

    async def upsert(self, user_id, *, access_token, display_name="", refresh_token=None) -> _User:
        user = self.users.get(user_id)
        if user is None:
            user = self.users[user_id] = _User(user_id, access_token, display_name, refresh_token)
        else:
            user.access_token = access_token
            user.display_name = display_name or user.display_name
        return user


@pytest.fixture
def store() -> _MemoryUserStore:
    return _MemoryUserStore(
        {
            "alice": _User("alice", "tok-a", "Alice"),
            "bob": _User("bob", "tok-b", "Bob"),
        }
    )


@pytest.fixture
def fetcher() -> StubFetcher:
    return StubFetcher(
        responses={
            ("alice", "frequent"): [raw_track("T1"), raw_track("T2", image=None)],
            ("bob", "frequent"): [raw_track("T3")],
            ("bob", "recent"): [played("T1")],
        }
    )


@pytest.fixture
def client(store, fetcher, settings):
    app.dependency_overrides[get_user_store] = lambda: store
    app.dependency_overrides[get_signal_fetcher] = lambda: fetcher
    app.dependency_overrides[get_settings_dep] = lambda: settings
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/v1/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "user_count": 2}


def test_weighted_pool(client):
    response = client.post("/v1/pools", json={"user_ids": ["alice", "bob"]})
    assert response.status_code == 200
    body = response.json()
    assert body["mode"] == "weighted"
    assert body["size"] == 18
    counts: Dict[str, int] = {}
    for track in body["tracks"]:
        counts[track["id"]] = counts.get(track["id"], 0) + 1
    assert counts == {"T1": 4, "T2": 7, "T3": 7}

    t2 = next(t for t in body["tracks"] if t["id"] == "T2")
    assert t2["album_cover"] == "https://via.placeholder.com/150"
    assert t2["uri"] == "spotify:track:T2"
    assert t2["artist"] == "Some Artist"


def test_distinct_pool(client):
    response = client.post("/v1/pools", json={"user_ids": ["alice", "bob"], "distinct": True})
    body = response.json()
    assert body["size"] == 3
    assert sorted(t["id"] for t in body["tracks"]) == ["T1", "T2", "T3"]


def test_round_robin_pool(client):
    response = client.post("/v1/pools", json={"user_ids": ["alice", "bob"], "mode": "round-robin"})
    assert response.status_code == 200
    assert [t["id"] for t in response.json()["tracks"]] == ["T1", "T3", "T2", "T1"]


def test_pool_errors(client, fetcher):
    response = client.post("/v1/pools", json={"user_ids": []})
    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "NoUsersRequested"

    response = client.post("/v1/pools", json={"user_ids": ["ghost"]})
    assert response.status_code == 404
    assert response.json()["detail"]["kind"] == "NoMatchingUsers"

    fetcher.responses[("alice", "frequent")] = AuthError("expired")
    response = client.post("/v1/pools", json={"user_ids": ["alice"]})
    assert response.status_code == 404
    assert response.json()["detail"]["kind"] == "NoUsableContributions"


def test_unknown_mode_is_rejected(client):
    response = client.post("/v1/pools", json={"user_ids": ["alice"], "mode": "shuffle"})
    assert response.status_code == 422


def test_service_token_is_enforced(client, settings):
    settings.service_token = "secret"
    assert client.post("/v1/pools", json={"user_ids": ["alice"]}).status_code == 401
    response = client.post("/v1/pools", json={"user_ids": ["alice"]}, headers={"X-Service-Token": "secret"})
    assert response.status_code == 200


def test_list_and_register_users(client, store):
    response = client.get("/v1/users")
    assert [u["id"] for u in response.json()] == ["alice", "bob"]
    assert "access_token" not in response.json()[0]

    response = client.put("/v1/users/carol", json={"access_token": "tok-c", "display_name": "Carol"})
    assert response.status_code == 200
    assert response.json()["display_name"] == "Carol"
    assert store.users["carol"].access_token == "tok-c"


def test_top_tracks(client):
    response = client.get("/v1/users/alice/top-tracks")
    assert response.status_code == 200
    assert [t["id"] for t in response.json()] == ["T1", "T2"]
    assert client.get("/v1/users/ghost/top-tracks").status_code == 404


def test_top_tracks_upstream_errors(client, fetcher):
    fetcher.responses[("alice", "frequent")] = AuthError("expired")
    assert client.get("/v1/users/alice/top-tracks").status_code == 401
    fetcher.responses[("alice", "frequent")] = TransientError("rate limited")
    assert client.get("/v1/users/alice/top-tracks").status_code == 502
