"""
Mentor Request Service - request/acceptance state machine.

STATES:
    pending --accept--> accepted   (terminal, provisions a chat room)
    pending --reject--> rejected   (terminal)

RULES:
- A request note is moderated before anything is written. Under the default
  blocking policy a moderation outage fails the call.
- At most one active (pending or accepted) request per ORDERED pair
  (sender, receiver). The reverse pair is a different key and is not checked.
- Accepting runs two single-document writes: mark the request accepted, then
  provision the chat room. The room is keyed by the request id, so the
  second step is idempotent. If it fails after the first write, calling
  respond(request_id, accept=True) again finishes the job and never
  creates a second room. Until then readers can see an accepted request
  with no room yet.
"""

import logging
from typing import List, Optional, Tuple

from pymongo.database import Database

from campuslink.core.config import get_settings
from campuslink.core.exceptions import DuplicateRequestError, NotFoundError, ValidationError
from campuslink.schemas.schemas import (
    ACTIVE_REQUEST_STATUSES,
    ChatRoom,
    MentorRequest,
    MentorRequestMetadata,
    RequestDirection,
    RequestStats,
    RequestStatus
)
from campuslink.services.moderation_service import (
    ModerationContext,
    ModerationPolicy,
    ModerationService,
    enforce_moderation,
    get_moderation_service
)
from campuslink.services.mongo_service import ChatRoomStore, MentorRequestStore

logger = logging.getLogger(__name__)

settings = get_settings()


class RequestLifecycle:
    def __init__(
        self,
        db: Database = None,
        moderator: ModerationService = None,
        moderation_policy: ModerationPolicy = None
    ):
        self.requests = MentorRequestStore(db)
        self.rooms = ChatRoomStore(db)
        self.moderator = moderator or get_moderation_service()
        self.moderation_policy = ModerationPolicy(moderation_policy or settings.request_moderation_policy)

    def get(self, request_id: str) -> MentorRequest:
        request = self.requests.get(request_id)
        if request is None:
            raise NotFoundError("Request not found")
        return request

    def create(self, sender_id: str, receiver_id: str, message: Optional[str] = None) -> MentorRequest:
        """
        Send a mentor request from `sender_id` to `receiver_id`.

        Raises:
            ValidationError: missing ids, or a request to yourself
            ContentRejected: the note was judged unsafe
            ModerationUnavailable: the note could not be checked (blocking policy)
            DuplicateRequestError: sender already has an active request to receiver
        """
        if not sender_id or not receiver_id:
            raise ValidationError("Sender and receiver are required")
        if sender_id == receiver_id:
            raise ValidationError("You cannot send a mentor request to yourself")

        message = (message or "").strip() or None
        if message:
            enforce_moderation(self.moderator, message, ModerationContext.message, self.moderation_policy)

        # Exact ordered pair only
        for existing in self.requests.find_pair(sender_id, receiver_id):
            if existing.status in ACTIVE_REQUEST_STATUSES:
                raise DuplicateRequestError("You already have a pending or active request with this mentor")

        request = self.requests.insert(sender_id, receiver_id, message)
        logger.info("Mentor request %s created: %s -> %s", request.id, sender_id, receiver_id)
        return request

    def respond(self, request_id: str, accept: bool) -> Tuple[MentorRequest, Optional[ChatRoom]]:
        """
        Accept or reject a pending request.

        Returns:
            (updated request, chat room if accepted else None)

        Raises:
            NotFoundError: no such request
            ValidationError: the request is already in a terminal state
                (except a repeated accept, which re-runs room provisioning)
        """
        request = self.get(request_id)
        target = RequestStatus.accepted if accept else RequestStatus.rejected
        responded = False

        if request.status is RequestStatus.pending:
            updated = self.requests.mark_responded(request_id, target)
            if updated is None:
                # Someone else responded between our read and write
                request = self.get(request_id)
            else:
                request = updated
                responded = True
                logger.info("Mentor request %s %s", request_id, target.value)

        # Only a repeated accept is allowed on a terminal request
        if request.status is not target or not (responded or accept):
            raise ValidationError(f"Request already {request.status.value}")

        if not accept:
            return request, None

        room = self.rooms.provision_for_request(
            request.id,
            [request.sender_id, request.receiver_id],
            at=request.responded_at
        )
        logger.info("Chat room %s ready for request %s", room.id, request.id)
        return request, room

    def list_for_user(self, user_id: str, direction: RequestDirection = RequestDirection.received) -> List[MentorRequest]:
        """Requests the user received or sent, newest first."""
        field = "receiver_id" if RequestDirection(direction) is RequestDirection.received else "sender_id"
        requests = self.requests.find_by_user(field, user_id)
        requests.sort(key=lambda r: r.created_at, reverse=True)
        return requests

    # ============================================================
    # ADMIN (metadata only - never the request message)
    # ============================================================

    def list_metadata(self) -> List[MentorRequestMetadata]:
        requests = sorted(self.requests.find_all(), key=lambda r: r.created_at, reverse=True)
        return [
            MentorRequestMetadata(
                id=r.id,
                sender_id=r.sender_id,
                receiver_id=r.receiver_id,
                status=r.status,
                created_at=r.created_at,
                responded_at=r.responded_at
            )
            for r in requests
        ]

    def stats(self) -> RequestStats:
        requests = self.requests.find_all()
        return RequestStats(
            total=len(requests),
            pending=sum(1 for r in requests if r.status is RequestStatus.pending),
            accepted=sum(1 for r in requests if r.status is RequestStatus.accepted),
            rejected=sum(1 for r in requests if r.status is RequestStatus.rejected)
        )


def get_request_lifecycle() -> RequestLifecycle:
    """Get request lifecycle instance."""
    return RequestLifecycle()
