"""Friend management API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..database import get_session
from ..models import FriendRequest, User
from ..schemas.friends import (
    FriendRequestCountResponse,
    FriendRequestPayload,
    FriendRequestResponse,
    FriendsOverviewResponse,
    FriendSuggestionsResponse,
    FriendSummary,
)
from ..services import (
    VisibilityEngine,
    count_unseen_requests,
    get_current_user,
    get_visibility_engine,
    list_friend_requests,
    list_friends,
    mark_requests_seen,
    remove_friend_request,
    remove_friendship,
    respond_to_request,
    send_friend_request,
    suggest_friends,
)

router = APIRouter(prefix="/friends", tags=["friends"])


def _request_response(request: FriendRequest) -> FriendRequestResponse:
    return FriendRequestResponse.model_validate(request)


@router.get("/", response_model=FriendsOverviewResponse)
def friends_overview(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> FriendsOverviewResponse:
    friends = list_friends(db, engine, user=current_user)
    incoming, outgoing = list_friend_requests(db, user=current_user)
    return FriendsOverviewResponse(
        friends=[FriendSummary.model_validate(friend) for friend in friends],
        incoming_requests=[_request_response(item) for item in incoming],
        outgoing_requests=[_request_response(item) for item in outgoing],
    )


@router.get("/suggestions", response_model=FriendSuggestionsResponse)
def friend_suggestions(
    limit: int = Query(20, ge=1, le=50),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> FriendSuggestionsResponse:
    users = suggest_friends(db, engine, user=current_user, limit=limit)
    return FriendSuggestionsResponse(suggestions=[FriendSummary.model_validate(item) for item in users])


@router.post("/requests", response_model=FriendRequestResponse, status_code=status.HTTP_201_CREATED)
def send_friend_request_endpoint(
    payload: FriendRequestPayload,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
    engine: VisibilityEngine = Depends(get_visibility_engine),
) -> FriendRequestResponse:
    request = send_friend_request(db, engine, requester=current_user, recipient_id=payload.user_id)
    return _request_response(request)


@router.get("/requests/count", response_model=FriendRequestCountResponse)
async def unseen_request_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendRequestCountResponse:
    return FriendRequestCountResponse(unseen=count_unseen_requests(db, user=current_user))


@router.post("/requests/mark-seen", response_model=FriendRequestCountResponse)
async def mark_friend_requests_seen(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendRequestCountResponse:
    mark_requests_seen(db, user=current_user)
    return FriendRequestCountResponse(unseen=count_unseen_requests(db, user=current_user))


@router.post("/requests/{request_id}/accept", response_model=FriendRequestResponse)
async def accept_friend_request(
    request_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendRequestResponse:
    request = respond_to_request(db, request_id=request_id, recipient=current_user, accept=True)
    return _request_response(request)


@router.post("/requests/{request_id}/decline", status_code=status.HTTP_204_NO_CONTENT)
async def decline_friend_request(
    request_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> Response:
    respond_to_request(db, request_id=request_id, recipient=current_user, accept=False)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/requests/{request_id}", response_model=FriendRequestResponse)
async def delete_friend_request(
    request_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> FriendRequestResponse:
    removed = remove_friend_request(db, request_id=request_id, user=current_user)
    return FriendRequestResponse.model_validate(removed)


@router.delete("/{friend_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unfriend(
    friend_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_session),
) -> Response:
    remove_friendship(db, user=current_user, friend_id=friend_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
