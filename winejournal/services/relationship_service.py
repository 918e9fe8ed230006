"""Classify how a viewer relates to a content owner.

The resolver walks the friendship graph to depth two at most. Independent
reads (both friend sets, both block directions, one friend set per direct
friend) run concurrently on a small thread pool and are bounded by the
request deadline. A single failed read fails the whole classification.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Callable, Iterable, Sequence, TypeVar
from uuid import UUID

from .friend_graph import (
    BlockEdgeStore,
    FriendEdgeStore,
    RelationshipLookupFailed,
    accepted_friend_ids,
    block_exists,
    blocked_user_ids,
)
from .visibility import RelationshipClass

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_WORKERS = 8


class RelationshipResolver:
    """Answer relationship questions for a single request.

    ``deadline`` is a :func:`time.monotonic` timestamp; reads still pending
    when it passes are cancelled and :class:`RelationshipLookupFailed` is
    raised. ``None`` means no deadline.
    """

    def __init__(
        self,
        friend_store: FriendEdgeStore,
        block_store: BlockEdgeStore,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        deadline: float | None = None,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self._friend_store = friend_store
        self._block_store = block_store
        self._max_workers = max_workers
        self._deadline = deadline

    def accepted_friend_ids(self, user_id: UUID) -> set[UUID]:
        (friend_ids,) = self._gather([self._friend_reader(user_id)])
        return friend_ids

    def blocked_user_ids(self, user_id: UUID) -> set[UUID]:
        (found,) = self._gather([lambda: blocked_user_ids(self._block_store, user_id)])
        return found

    def is_blocked_between(self, first_id: UUID, second_id: UUID) -> bool:
        """Return whether a block exists in either direction."""

        if first_id == second_id:
            return False
        forward, backward = self._gather(
            [
                lambda: block_exists(self._block_store, first_id, second_id),
                lambda: block_exists(self._block_store, second_id, first_id),
            ]
        )
        return forward or backward

    def friends_of_friends(self, viewer_id: UUID, direct_friends: Iterable[UUID]) -> set[UUID]:
        """Return users exactly two hops from ``viewer_id``.

        One read per direct friend, merged as a set, minus the viewer and the
        direct friends themselves.
        """

        direct = set(direct_friends)
        direct.discard(viewer_id)
        if not direct:
            return set()

        friend_sets = self._gather([self._friend_reader(friend_id) for friend_id in direct])
        reachable: set[UUID] = set().union(*friend_sets)
        reachable.discard(viewer_id)
        return reachable - direct

    def classify(self, viewer_id: UUID, owner_id: UUID) -> RelationshipClass:
        """Return the relationship of ``viewer_id`` to ``owner_id``.

        Blocks are checked before friendship so that a friend edge left behind
        by a block still classifies as ``blocked``.
        """

        if viewer_id == owner_id:
            return RelationshipClass.SELF

        forward_block, backward_block, viewer_friends, owner_friends = self._gather(
            [
                lambda: block_exists(self._block_store, viewer_id, owner_id),
                lambda: block_exists(self._block_store, owner_id, viewer_id),
                self._friend_reader(viewer_id),
                self._friend_reader(owner_id),
            ]
        )

        if forward_block or backward_block:
            return RelationshipClass.BLOCKED
        if owner_id in viewer_friends:
            return RelationshipClass.DIRECT_FRIEND
        # Friendship is symmetric: the owner sits two hops away exactly when
        # some direct friend of the viewer is also a friend of the owner.
        mutual = (owner_friends - {viewer_id}) & viewer_friends
        if mutual:
            return RelationshipClass.FRIEND_OF_FRIEND
        return RelationshipClass.STRANGER

    def _friend_reader(self, user_id: UUID) -> Callable[[], set[UUID]]:
        return lambda: accepted_friend_ids(self._friend_store, user_id)

    def _remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return self._deadline - time.monotonic()

    def _check_deadline(self) -> None:
        remaining = self._remaining()
        if remaining is not None and remaining <= 0:
            raise RelationshipLookupFailed("Relationship lookup exceeded the request deadline")

    def _gather(self, calls: Sequence[Callable[[], T]]) -> list[T]:
        """Run ``calls`` concurrently and return their results in order."""

        self._check_deadline()
        if not calls:
            return []
        # Single reads go through the pool too so the deadline bounds them.
        executor = ThreadPoolExecutor(
            max_workers=min(self._max_workers, len(calls)),
            thread_name_prefix="relationship-lookup",
        )
        try:
            futures: list[Future[T]] = [executor.submit(call) for call in calls]
            done, pending = wait(futures, timeout=self._remaining(), return_when=FIRST_EXCEPTION)
            for future in pending:
                future.cancel()
            for future in done:
                exc = future.exception()
                if exc is not None:
                    raise exc
            if pending:
                logger.warning("Relationship lookup timed out with %d of %d reads pending", len(pending), len(futures))
                raise RelationshipLookupFailed("Relationship lookup exceeded the request deadline")
            return [future.result() for future in futures]
        finally:
            executor.shutdown(wait=False, cancel_futures=True)


__all__ = ["RelationshipResolver", "DEFAULT_MAX_WORKERS"]
