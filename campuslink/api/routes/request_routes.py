"""
Mentor Request Routes

POST /mentor-requests - Send a request to a mentor
GET /mentor-requests - My received or sent requests
POST /mentor-requests/{request_id}/respond - Accept or reject (receiver only)
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from campuslink.core.auth import get_current_user
from campuslink.core.exceptions import PermissionDenied
from campuslink.services.request_service import RequestLifecycle, get_request_lifecycle
from campuslink.schemas.schemas import (
    MentorRequest, MentorRequestCreate, MentorRequestRespond,
    MentorRequestRespondResponse, RequestDirection
)

router = APIRouter(prefix="/mentor-requests", tags=["Mentor Requests"])


@router.post("", response_model=MentorRequest, status_code=201)
def send_request(
    data: MentorRequestCreate,
    user: dict = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_request_lifecycle)
):
    """
    Send a mentor request. The optional message is moderated first.
    Fails with 409 if you already have a pending or accepted request to this mentor.
    """
    return lifecycle.create(user["user_id"], data.receiver_id, data.message)


@router.get("", response_model=List[MentorRequest])
def my_requests(
    direction: RequestDirection = Query(RequestDirection.received),
    user: dict = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_request_lifecycle)
):
    """Requests you received (default) or sent, newest first."""
    return lifecycle.list_for_user(user["user_id"], direction)


@router.post("/{request_id}/respond", response_model=MentorRequestRespondResponse)
def respond_to_request(
    request_id: str,
    data: MentorRequestRespond,
    user: dict = Depends(get_current_user),
    lifecycle: RequestLifecycle = Depends(get_request_lifecycle)
):
    """
    Accept or reject a request sent to you.
    Accepting opens a private chat with the sender. Safe to retry.
    """
    request = lifecycle.get(request_id)
    if request.receiver_id != user["user_id"]:
        raise PermissionDenied("Only the receiver can respond to this request")

    request, room = lifecycle.respond(request_id, data.accept)
    return MentorRequestRespondResponse(request=request, chat_room=room)
