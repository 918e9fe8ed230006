"""Shared fixtures: test database settings and in-memory graph stores."""
from __future__ import annotations

import os
import threading
import uuid
from typing import Iterable
from uuid import UUID

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_winejournal.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from winejournal.services.friend_graph import FriendEdge  # noqa: E402


class InMemoryGraph:
    """Friend and block stores over plain Python sets.

    Implements both store protocols so a single instance can be handed to the
    resolver twice.
    """

    def __init__(self) -> None:
        self.edges: list[FriendEdge] = []
        self.blocks: set[tuple[UUID, UUID]] = set()
        self.reads: list[UUID] = []
        self._lock = threading.Lock()

    def user(self) -> UUID:
        return uuid.uuid4()

    def befriend(self, requester_id: UUID, recipient_id: UUID, *, status: str = "accepted") -> FriendEdge:
        edge = FriendEdge(id=uuid.uuid4(), requester_id=requester_id, recipient_id=recipient_id, status=status)
        self.edges.append(edge)
        return edge

    def chain(self, length: int) -> list[UUID]:
        """Return ``length`` users where each is friends with the next."""
        users = [self.user() for _ in range(length)]
        for first, second in zip(users, users[1:]):
            self.befriend(first, second)
        return users

    def block(self, blocker_id: UUID, blocked_id: UUID) -> None:
        self.blocks.add((blocker_id, blocked_id))

    def accepted_edges_for(self, user_id: UUID) -> Iterable[FriendEdge]:
        with self._lock:
            self.reads.append(user_id)
        return [
            edge
            for edge in self.edges
            if edge.status == "accepted" and user_id in (edge.requester_id, edge.recipient_id)
        ]

    def exists(self, blocker_id: UUID, blocked_id: UUID) -> bool:
        return (blocker_id, blocked_id) in self.blocks

    def blocked_user_ids(self, user_id: UUID) -> set[UUID]:
        found: set[UUID] = set()
        for blocker_id, blocked_id in self.blocks:
            if blocker_id == user_id:
                found.add(blocked_id)
            elif blocked_id == user_id:
                found.add(blocker_id)
        return found


@pytest.fixture
def graph() -> InMemoryGraph:
    return InMemoryGraph()
