"""Integration tests covering friend requests, blocks and relationships."""
from __future__ import annotations

from typing import Callable, Iterator
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import delete, select

from winejournal.database import Base, SessionLocal, engine
from winejournal.main import app
from winejournal.models import FriendRequest, User, UserBlock
from winejournal.services import (
    SqlBlockEdgeStore,
    SqlFriendEdgeStore,
    VisibilityEngine,
    create_access_token,
    get_visibility_engine,
)


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        session.execute(delete(UserBlock))
        session.execute(delete(FriendRequest))
        session.execute(delete(User))
        session.commit()
    yield


@pytest.fixture
def client() -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def user_factory() -> Callable[[str], User]:
    def _factory(username: str) -> User:
        with SessionLocal() as session:
            user = User(username=username)
            session.add(user)
            session.commit()
            session.refresh(user)
            return user
    return _factory


def _auth(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def _befriend(client: TestClient, requester: User, recipient: User) -> dict:
    sent = client.post("/friends/requests", json={"user_id": str(recipient.id)}, headers=_auth(requester))
    assert sent.status_code == 201, sent.text
    accepted = client.post(f"/friends/requests/{sent.json()['id']}/accept", headers=_auth(recipient))
    assert accepted.status_code == 200, accepted.text
    return accepted.json()


def test_requests_require_a_bearer_token(client: TestClient) -> None:
    assert client.get("/friends/").status_code == 401
    assert client.get("/friends/", headers={"Authorization": "Bearer not-a-token"}).status_code == 401


def test_send_and_accept_request(client: TestClient, user_factory) -> None:
    alice, bob = user_factory("alice"), user_factory("bob")

    sent = client.post("/friends/requests", json={"user_id": str(bob.id)}, headers=_auth(alice))
    assert sent.status_code == 201, sent.text
    assert sent.json()["status"] == "pending"

    count = client.get("/friends/requests/count", headers=_auth(bob))
    assert count.json() == {"unseen": 1}
    seen = client.post("/friends/requests/mark-seen", headers=_auth(bob))
    assert seen.json() == {"unseen": 0}

    overview = client.get("/friends/", headers=_auth(bob)).json()
    assert [item["requester_id"] for item in overview["incoming_requests"]] == [str(alice.id)]

    accepted = client.post(f"/friends/requests/{sent.json()['id']}/accept", headers=_auth(bob))
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "accepted"

    alice_friends = client.get("/friends/", headers=_auth(alice)).json()["friends"]
    assert [friend["id"] for friend in alice_friends] == [str(bob.id)]


def test_request_edge_cases(client: TestClient, user_factory) -> None:
    alice, bob = user_factory("alice"), user_factory("bob")

    to_self = client.post("/friends/requests", json={"user_id": str(alice.id)}, headers=_auth(alice))
    assert to_self.status_code == 400

    first = client.post("/friends/requests", json={"user_id": str(bob.id)}, headers=_auth(alice))
    assert first.status_code == 201
    duplicate = client.post("/friends/requests", json={"user_id": str(bob.id)}, headers=_auth(alice))
    assert duplicate.status_code == 409

    # Bob asking back accepts Alice's pending request.
    reverse = client.post("/friends/requests", json={"user_id": str(alice.id)}, headers=_auth(bob))
    assert reverse.status_code == 201
    assert reverse.json()["id"] == first.json()["id"]
    assert reverse.json()["status"] == "accepted"

    again = client.post("/friends/requests", json={"user_id": str(bob.id)}, headers=_auth(alice))
    assert again.status_code == 409


def test_only_recipient_can_accept(client: TestClient, user_factory) -> None:
    alice, bob = user_factory("alice"), user_factory("bob")
    sent = client.post("/friends/requests", json={"user_id": str(bob.id)}, headers=_auth(alice)).json()
    response = client.post(f"/friends/requests/{sent['id']}/accept", headers=_auth(alice))
    assert response.status_code == 404


def test_decline_deletes_the_request(client: TestClient, user_factory) -> None:
    alice, bob = user_factory("alice"), user_factory("bob")
    sent = client.post("/friends/requests", json={"user_id": str(bob.id)}, headers=_auth(alice)).json()

    declined = client.post(f"/friends/requests/{sent['id']}/decline", headers=_auth(bob))
    assert declined.status_code == 204
    with SessionLocal() as session:
        assert session.get(FriendRequest, UUID(sent["id"])) is None

    retry = client.post("/friends/requests", json={"user_id": str(bob.id)}, headers=_auth(alice))
    assert retry.status_code == 201


def test_cancel_and_unfriend(client: TestClient, user_factory) -> None:
    alice, bob, carol = user_factory("alice"), user_factory("bob"), user_factory("carol")

    pending = client.post("/friends/requests", json={"user_id": str(carol.id)}, headers=_auth(alice)).json()
    assert client.delete(f"/friends/requests/{pending['id']}", headers=_auth(carol)).status_code == 403
    cancelled = client.delete(f"/friends/requests/{pending['id']}", headers=_auth(alice))
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "pending"

    friendship = _befriend(client, alice, bob)
    removed = client.delete(f"/friends/requests/{friendship['id']}", headers=_auth(bob))
    assert removed.status_code == 200
    assert client.get("/friends/", headers=_auth(alice)).json()["friends"] == []

    _befriend(client, alice, bob)
    assert client.delete(f"/friends/{bob.id}", headers=_auth(alice)).status_code == 204
    assert client.delete(f"/friends/{bob.id}", headers=_auth(alice)).status_code == 404


def test_relationship_endpoint_reports_class_and_request_state(client: TestClient, user_factory) -> None:
    viewer, mutual, owner, stranger = (user_factory(name) for name in ("viewer", "mutual", "owner", "stranger"))
    _befriend(client, viewer, mutual)
    _befriend(client, mutual, owner)
    client.post("/friends/requests", json={"user_id": str(viewer.id)}, headers=_auth(stranger))

    fof = client.get(f"/users/{owner.id}/relationship", headers=_auth(viewer)).json()
    assert fof["relationship"] == "friend_of_friend"
    assert fof["visible_tiers"] == ["public", "friends_of_friends"]
    assert fof["can_react"] is False

    direct = client.get(f"/users/{mutual.id}/relationship", headers=_auth(viewer)).json()
    assert direct["relationship"] == "direct_friend"
    assert direct["friend_status"] == "friends"
    assert direct["can_react"] is True

    incoming = client.get(f"/users/{stranger.id}/relationship", headers=_auth(viewer)).json()
    assert incoming["relationship"] == "stranger"
    assert incoming["friend_status"] == "request_received"

    me = client.get(f"/users/{viewer.id}/relationship", headers=_auth(viewer)).json()
    assert me["relationship"] == "self"


class _CountingFriendStore:
    def __init__(self) -> None:
        self._delegate = SqlFriendEdgeStore(SessionLocal)
        self.reads: list[UUID] = []

    def accepted_edges_for(self, user_id: UUID):
        self.reads.append(user_id)
        return self._delegate.accepted_edges_for(user_id)


def test_relationship_endpoint_classifies_once(client: TestClient, user_factory) -> None:
    viewer, mutual, owner = (user_factory(name) for name in ("viewer", "mutual", "owner"))
    _befriend(client, viewer, mutual)
    _befriend(client, mutual, owner)

    friends = _CountingFriendStore()
    app.dependency_overrides[get_visibility_engine] = lambda: VisibilityEngine(
        friends, SqlBlockEdgeStore(SessionLocal)
    )
    try:
        response = client.get(f"/users/{owner.id}/relationship", headers=_auth(viewer))
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 200, response.text
    assert response.json()["visible_tiers"] == ["public", "friends_of_friends"]
    assert response.json()["can_react"] is False
    assert sorted(friends.reads, key=str) == sorted([viewer.id, owner.id], key=str)


def test_block_removes_friendship_and_blocks_requests(client: TestClient, user_factory) -> None:
    alice, bob = user_factory("alice"), user_factory("bob")
    _befriend(client, alice, bob)

    blocked = client.post(f"/users/{bob.id}/block", headers=_auth(alice))
    assert blocked.status_code == 200
    assert blocked.json() == {"user_id": str(bob.id), "blocked": True}

    with SessionLocal() as session:
        remaining = session.scalars(select(FriendRequest)).all()
    assert remaining == []

    relationship = client.get(f"/users/{alice.id}/relationship", headers=_auth(bob)).json()
    assert relationship["relationship"] == "blocked"
    assert relationship["visible_tiers"] == []

    retry = client.post("/friends/requests", json={"user_id": str(alice.id)}, headers=_auth(bob))
    assert retry.status_code == 403

    assert client.get(f"/users/{bob.id}/block", headers=_auth(alice)).json()["blocked"] is True
    assert client.get(f"/users/{alice.id}/block", headers=_auth(bob)).json()["blocked"] is False

    unblocked = client.delete(f"/users/{bob.id}/block", headers=_auth(alice))
    assert unblocked.json()["blocked"] is False
    after = client.get(f"/users/{alice.id}/relationship", headers=_auth(bob)).json()
    assert after["relationship"] == "stranger"


def test_block_validation(client: TestClient, user_factory) -> None:
    alice = user_factory("alice")
    assert client.post(f"/users/{alice.id}/block", headers=_auth(alice)).status_code == 400
    missing = "00000000-0000-0000-0000-000000000000"
    assert client.post(f"/users/{missing}/block", headers=_auth(alice)).status_code == 404


def test_suggestions_are_friends_of_friends_without_pending_or_blocked(client: TestClient, user_factory) -> None:
    viewer, friend = user_factory("viewer"), user_factory("friend")
    suggested, requested, blocker = user_factory("suggested"), user_factory("requested"), user_factory("blocker")
    _befriend(client, viewer, friend)
    for other in (suggested, requested, blocker):
        _befriend(client, friend, other)
    client.post("/friends/requests", json={"user_id": str(requested.id)}, headers=_auth(viewer))
    client.post(f"/users/{viewer.id}/block", headers=_auth(blocker))

    response = client.get("/friends/suggestions", headers=_auth(viewer))
    assert response.status_code == 200
    assert [item["username"] for item in response.json()["suggestions"]] == ["suggested"]
