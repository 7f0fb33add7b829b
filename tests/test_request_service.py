import pytest
from bson import ObjectId

from campuslink.core.exceptions import (
    ContentRejected, DuplicateRequestError, ModerationUnavailable, NotFoundError, ValidationError
)
from campuslink.db.mongodb import COLLECTIONS
from campuslink.schemas.schemas import RequestDirection, RequestStatus


def _room_count(db):
    return db[COLLECTIONS["chat_rooms"]].count_documents({})


def test_create_persists_pending_request(lifecycle):
    request = lifecycle.create("alice", "bob", "  Can you teach me guitar?  ")

    assert request.status is RequestStatus.pending
    assert request.message == "Can you teach me guitar?"
    assert request.responded_at is None
    assert lifecycle.get(request.id) == request


def test_duplicate_pending_request_is_rejected(lifecycle):
    lifecycle.create("alice", "bob")
    with pytest.raises(DuplicateRequestError):
        lifecycle.create("alice", "bob")


def test_reverse_direction_is_not_deduplicated(lifecycle):
    lifecycle.create("alice", "bob")

    reverse = lifecycle.create("bob", "alice")

    assert reverse.sender_id == "bob"
    assert reverse.status is RequestStatus.pending


def test_accepted_request_still_blocks_duplicates(lifecycle):
    request = lifecycle.create("alice", "bob")
    lifecycle.respond(request.id, True)
    with pytest.raises(DuplicateRequestError):
        lifecycle.create("alice", "bob")


def test_rejected_request_allows_a_new_one(lifecycle):
    request = lifecycle.create("alice", "bob")
    lifecycle.respond(request.id, False)

    again = lifecycle.create("alice", "bob")

    assert again.id != request.id


def test_request_to_self_is_invalid(lifecycle):
    with pytest.raises(ValidationError):
        lifecycle.create("alice", "alice")


def test_unsafe_message_is_never_persisted(db, lifecycle):
    with pytest.raises(ContentRejected) as exc_info:
        lifecycle.create("alice", "bob", "you idiot")

    assert exc_info.value.reason == "harassment"
    assert db[COLLECTIONS["mentor_requests"]].count_documents({}) == 0


def test_moderation_outage_fails_request_with_message(db, lifecycle, moderator):
    moderator.offline = True
    with pytest.raises(ModerationUnavailable):
        lifecycle.create("alice", "bob", "hello")
    assert db[COLLECTIONS["mentor_requests"]].count_documents({}) == 0


def test_request_without_message_skips_moderation(lifecycle, moderator):
    moderator.offline = True

    lifecycle.create("alice", "bob")

    assert moderator.calls == []


def test_accept_creates_exactly_one_room(db, lifecycle):
    request = lifecycle.create("alice", "bob")

    updated, room = lifecycle.respond(request.id, True)

    assert updated.status is RequestStatus.accepted
    assert updated.responded_at is not None
    assert set(room.participants) == {"alice", "bob"}
    assert set(room.user_ids) == {"alice", "bob"}
    assert room.last_message_at == updated.responded_at
    assert room.request_id == request.id
    assert _room_count(db) == 1


def test_reject_creates_no_room(db, lifecycle):
    request = lifecycle.create("alice", "bob")

    updated, room = lifecycle.respond(request.id, False)

    assert updated.status is RequestStatus.rejected
    assert room is None
    assert _room_count(db) == 0


def test_respond_unknown_request(lifecycle):
    with pytest.raises(NotFoundError):
        lifecycle.respond(str(ObjectId()), True)
    with pytest.raises(NotFoundError):
        lifecycle.respond("not-an-id", True)


def test_retried_accept_reuses_the_room(db, lifecycle):
    request = lifecycle.create("alice", "bob")
    _, first = lifecycle.respond(request.id, True)

    _, second = lifecycle.respond(request.id, True)

    assert second.id == first.id
    assert _room_count(db) == 1


def test_retried_accept_finishes_interrupted_provisioning(db, lifecycle):
    request = lifecycle.create("alice", "bob")
    # First write landed, room creation never happened
    lifecycle.requests.mark_responded(request.id, RequestStatus.accepted)
    assert _room_count(db) == 0

    _, room = lifecycle.respond(request.id, True)

    assert set(room.participants) == {"alice", "bob"}
    assert _room_count(db) == 1


@pytest.mark.parametrize("first,second", [(True, False), (False, True), (False, False)])
def test_terminal_states_are_final(lifecycle, first, second):
    request = lifecycle.create("alice", "bob")
    lifecycle.respond(request.id, first)

    with pytest.raises(ValidationError):
        lifecycle.respond(request.id, second)


def test_list_for_user_by_direction(lifecycle):
    first = lifecycle.create("alice", "bob")
    second = lifecycle.create("carol", "bob")
    lifecycle.create("bob", "dave")

    received = lifecycle.list_for_user("bob", RequestDirection.received)
    sent = lifecycle.list_for_user("bob", RequestDirection.sent)

    assert {r.id for r in received} == {first.id, second.id}
    assert received[0].created_at >= received[1].created_at
    assert [r.receiver_id for r in sent] == ["dave"]


def test_admin_metadata_hides_message_and_counts(lifecycle):
    accepted = lifecycle.create("alice", "bob", "private note")
    lifecycle.respond(accepted.id, True)
    rejected = lifecycle.create("carol", "bob")
    lifecycle.respond(rejected.id, False)
    lifecycle.create("dave", "bob")

    metadata = lifecycle.list_metadata()
    stats = lifecycle.stats()

    assert len(metadata) == 3
    assert all("message" not in m.model_dump() for m in metadata)
    assert (stats.total, stats.pending, stats.accepted, stats.rejected) == (3, 1, 1, 1)
