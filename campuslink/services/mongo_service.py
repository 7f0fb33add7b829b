"""
MongoDB Service - CRUD operations for document collections.

Collections in this database:
1. profiles        - One document per user, _id is the user id
2. mentorRequests  - Sender -> receiver mentorship requests
3. chatRooms       - Two-party channels created when a request is accepted
4. messages        - Append-only chat log, one document per message
5. chatReports     - Frozen snapshots of a chat, for reviewers

Each store wraps exactly one collection and returns typed records.
Business rules live in the services that use these stores.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from campuslink.db.mongodb import get_collection, COLLECTIONS
from campuslink.schemas.schemas import (
    Profile, MentorRequest, ChatRoom, Message, ChatReport,
    RequestStatus, ReportStatus, from_doc
)

logger = logging.getLogger(__name__)


# ============================================================
# HELPERS
# ============================================================

def server_now() -> datetime:
    """
    Write timestamp, assigned on the server side of the store.
    UTC, naive (as pymongo returns it), truncated to MongoDB's millisecond precision.
    """
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse a string id; None when it cannot be an ObjectId."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


# ============================================================
# PROFILES COLLECTION
# ============================================================

class ProfileStore:
    """
    Handles profile documents. Each is keyed by its owner's user id.
    """

    def __init__(self, db: Database = None):
        self.collection: Collection = get_collection(COLLECTIONS["profiles"], db)

    def get(self, user_id: str) -> Optional[Profile]:
        return from_doc(Profile, self.collection.find_one({"_id": user_id}))

    def insert(self, user_id: str, fields: Dict[str, Any]) -> Optional[Profile]:
        """Insert a new profile. Returns None if the user already has one."""
        now = server_now()
        doc = {"_id": user_id, **fields, "created_at": now, "updated_at": now}
        try:
            self.collection.insert_one(doc)
        except DuplicateKeyError:
            return None
        return from_doc(Profile, doc)

    def update(self, user_id: str, fields: Dict[str, Any]) -> bool:
        result = self.collection.update_one(
            {"_id": user_id},
            {"$set": {**fields, "updated_at": server_now()}}
        )
        return result.matched_count > 0

    def find_others(self, user_id: str) -> List[Profile]:
        """Every profile except `user_id`'s, in the store's natural order."""
        return [from_doc(Profile, doc) for doc in self.collection.find({"_id": {"$ne": user_id}})]


# ============================================================
# MENTOR REQUESTS COLLECTION
# ============================================================

class MentorRequestStore:
    """
    Handles mentor request documents.
    (sender_id, receiver_id) is an ordered pair, never a symmetric key.
    """

    def __init__(self, db: Database = None):
        self.collection: Collection = get_collection(COLLECTIONS["mentor_requests"], db)

    def insert(self, sender_id: str, receiver_id: str, message: Optional[str]) -> MentorRequest:
        doc = {
            "sender_id": sender_id,
            "receiver_id": receiver_id,
            "message": message,
            "status": RequestStatus.pending.value,
            "created_at": server_now(),
            "responded_at": None
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return from_doc(MentorRequest, doc)

    def get(self, request_id: str) -> Optional[MentorRequest]:
        oid = to_object_id(request_id)
        if oid is None:
            return None
        return from_doc(MentorRequest, self.collection.find_one({"_id": oid}))

    def find_pair(self, sender_id: str, receiver_id: str) -> List[MentorRequest]:
        docs = self.collection.find({"sender_id": sender_id, "receiver_id": receiver_id})
        return [from_doc(MentorRequest, doc) for doc in docs]

    def mark_responded(self, request_id: str, status: RequestStatus) -> Optional[MentorRequest]:
        """
        Move a pending request to `status`.
        Returns the updated request, or None if it was no longer pending.
        """
        doc = self.collection.find_one_and_update(
            {"_id": to_object_id(request_id), "status": RequestStatus.pending.value},
            {"$set": {"status": RequestStatus(status).value, "responded_at": server_now()}},
            return_document=ReturnDocument.AFTER
        )
        return from_doc(MentorRequest, doc)

    def find_by_user(self, field: str, user_id: str) -> List[MentorRequest]:
        """`field` is "sender_id" or "receiver_id"."""
        return [from_doc(MentorRequest, doc) for doc in self.collection.find({field: user_id})]

    def find_all(self) -> List[MentorRequest]:
        return [from_doc(MentorRequest, doc) for doc in self.collection.find()]


# ============================================================
# CHAT ROOMS COLLECTION
# ============================================================

class ChatRoomStore:
    """
    Handles chat room documents.
    Participants are stored twice: `participants` for access checks,
    `user_ids` for admin metadata views.
    """

    def __init__(self, db: Database = None):
        self.collection: Collection = get_collection(COLLECTIONS["chat_rooms"], db)

    def provision_for_request(
        self,
        request_id: str,
        participants: List[str],
        at: datetime = None
    ) -> ChatRoom:
        """
        Create the chat room for an accepted request, or return the existing one.
        Keyed on request_id so a retried provisioning never creates a second room.
        `at` (the acceptance time) seeds created_at and last_message_at.
        """
        now = at or server_now()
        try:
            self.collection.update_one(
                {"request_id": request_id},
                {"$setOnInsert": {
                    "participants": list(participants),
                    "user_ids": list(participants),
                    "created_at": now,
                    "last_message_at": now
                }},
                upsert=True
            )
        except DuplicateKeyError:
            # Lost an upsert race on the unique index; the winner's room is the room
            logger.info("Chat room for request %s already provisioned concurrently", request_id)
        return self.get_by_request(request_id)

    def get(self, chat_room_id: str) -> Optional[ChatRoom]:
        oid = to_object_id(chat_room_id)
        if oid is None:
            return None
        return from_doc(ChatRoom, self.collection.find_one({"_id": oid}))

    def get_by_request(self, request_id: str) -> Optional[ChatRoom]:
        return from_doc(ChatRoom, self.collection.find_one({"request_id": request_id}))

    def touch(self, chat_room_id: str, at: datetime) -> None:
        """Move last_message_at forward to `at`; never moves it back."""
        self.collection.update_one(
            {"_id": to_object_id(chat_room_id)},
            {"$max": {"last_message_at": at}}
        )

    def find_for_user(self, user_id: str) -> List[ChatRoom]:
        # Array membership filter
        return [from_doc(ChatRoom, doc) for doc in self.collection.find({"participants": user_id})]

    def find_all(self) -> List[ChatRoom]:
        return [from_doc(ChatRoom, doc) for doc in self.collection.find()]


# ============================================================
# MESSAGES COLLECTION
# ============================================================

class MessageStore:
    """
    Append-only message log. Messages are never updated or deleted.
    """

    def __init__(self, db: Database = None):
        self.collection: Collection = get_collection(COLLECTIONS["messages"], db)

    def insert(
        self,
        chat_room_id: str,
        sender_id: str,
        text: str,
        not_before: Optional[datetime] = None
    ) -> Message:
        """
        Append a message. `not_before` (the room's last_message_at) floors the
        timestamp, so a clock that stepped back never stamps a later message earlier.
        """
        created_at = server_now()
        if not_before is not None and created_at < not_before:
            created_at = not_before
        doc = {
            "chat_room_id": chat_room_id,
            "sender_id": sender_id,
            "text": text,
            "created_at": created_at
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return from_doc(Message, doc)

    def list_for_room(self, chat_room_id: str) -> List[Message]:
        """
        Full ordered log. Equal timestamps fall back to _id, i.e. arrival order.
        """
        cursor = self.collection.find({"chat_room_id": chat_room_id}).sort([
            ("created_at", ASCENDING),
            ("_id", ASCENDING)
        ])
        return [from_doc(Message, doc) for doc in cursor]

    def snapshot_fields(self, chat_room_id: str) -> List[dict]:
        """
        Raw sender/text/timestamp projection, in no guaranteed order.
        """
        return list(self.collection.find(
            {"chat_room_id": chat_room_id},
            {"sender_id": 1, "text": 1, "created_at": 1}
        ))

    def count_for_room(self, chat_room_id: str) -> int:
        return self.collection.count_documents({"chat_room_id": chat_room_id})


# ============================================================
# CHAT REPORTS COLLECTION
# ============================================================

class ChatReportStore:
    """
    Handles chat report documents.
    The `messages` and `participants` fields are written once, at insert.
    """

    def __init__(self, db: Database = None):
        self.collection: Collection = get_collection(COLLECTIONS["chat_reports"], db)

    def insert(
        self,
        chat_room_id: str,
        reporter_id: str,
        reason: str,
        participants: List[str],
        messages: List[dict]
    ) -> ChatReport:
        doc = {
            "chat_room_id": chat_room_id,
            "reporter_id": reporter_id,
            "reason": reason,
            "participants": list(participants),
            "messages": messages,
            "status": ReportStatus.pending.value,
            "created_at": server_now(),
            "reviewed_at": None,
            "reviewed_by": None,
            "admin_notes": None,
            "action_taken": None
        }
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return from_doc(ChatReport, doc)

    def get(self, report_id: str) -> Optional[ChatReport]:
        oid = to_object_id(report_id)
        if oid is None:
            return None
        return from_doc(ChatReport, self.collection.find_one({"_id": oid}))

    def set_review(
        self,
        report_id: str,
        expected_status: ReportStatus,
        fields: Dict[str, Any]
    ) -> Optional[ChatReport]:
        """
        Apply reviewer fields only if the report is still in `expected_status`.
        Returns the updated report, or None if the status moved underneath us.
        """
        doc = self.collection.find_one_and_update(
            {"_id": to_object_id(report_id), "status": ReportStatus(expected_status).value},
            {"$set": fields},
            return_document=ReturnDocument.AFTER
        )
        return from_doc(ChatReport, doc)

    def find_all(self) -> List[ChatReport]:
        return [from_doc(ChatReport, doc) for doc in self.collection.find()]
