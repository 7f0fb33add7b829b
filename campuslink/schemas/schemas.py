"""
Pydantic Schemas - Stored records and Request/Response validation

All schemas in one file for simplicity.

Stored records reject unknown fields, so a document that drifted from the
expected shape fails loudly when it is read back instead of leaking through.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Tuple
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class RequestStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


ACTIVE_REQUEST_STATUSES = (RequestStatus.pending, RequestStatus.accepted)


class ReportStatus(str, Enum):
    pending = "pending"
    reviewed = "reviewed"
    action_taken = "action_taken"


class RequestDirection(str, Enum):
    received = "received"
    sent = "sent"


# ============================================================
# STORED RECORDS
# ============================================================

class Record(BaseModel):
    model_config = ConfigDict(extra="forbid")


def from_doc(model, doc: Optional[dict]):
    """Build a record from a MongoDB document (`_id` becomes `id`)."""
    if doc is None:
        return None
    data = dict(doc)
    if "_id" in data:
        data["id"] = str(data.pop("_id"))
    return model.model_validate(data)


class Profile(Record):
    id: str
    department: Optional[str] = None
    year: Optional[str] = None
    bio: str = ""
    skills_have: List[str] = []
    skills_to_learn: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MentorRequest(Record):
    id: str
    sender_id: str
    receiver_id: str
    message: Optional[str] = None
    status: RequestStatus = RequestStatus.pending
    created_at: datetime
    responded_at: Optional[datetime] = None


class ChatRoom(Record):
    id: str
    request_id: Optional[str] = None
    participants: List[str]
    # Same ids, kept for admin metadata views
    user_ids: List[str]
    created_at: datetime
    last_message_at: Optional[datetime] = None


class Message(Record):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    chat_room_id: str
    sender_id: str
    text: str
    created_at: datetime


class ReportedMessage(Record):
    model_config = ConfigDict(extra="forbid", frozen=True)

    sender_id: str
    text: str
    created_at: datetime


class ChatReport(Record):
    model_config = ConfigDict(extra="forbid", frozen=True)

    id: str
    chat_room_id: str
    reporter_id: str
    reason: str
    participants: Tuple[str, ...]
    messages: Tuple[ReportedMessage, ...]
    status: ReportStatus = ReportStatus.pending
    created_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    admin_notes: Optional[str] = None
    action_taken: Optional[str] = None


# ============================================================
# PROFILE SCHEMAS
# ============================================================

class ProfileCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    department: Optional[str] = Field(None, max_length=100)
    year: Optional[str] = Field(None, max_length=20)
    bio: str = Field(..., min_length=1, max_length=1000)
    skills_have: List[str] = []
    skills_to_learn: List[str] = []


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    department: Optional[str] = Field(None, max_length=100)
    year: Optional[str] = Field(None, max_length=20)
    bio: Optional[str] = Field(None, min_length=1, max_length=1000)
    skills_have: Optional[List[str]] = None
    skills_to_learn: Optional[List[str]] = None


class ProfileResponse(BaseModel):
    profile: Profile
    is_complete: bool


# ============================================================
# MENTOR SEARCH SCHEMAS
# ============================================================

class MentorMatch(BaseModel):
    profile: Profile
    score: int
    matched_skills: List[str] = []
    reason: str


class MentorSearchResponse(BaseModel):
    skills: List[str]
    mentors: List[MentorMatch]
    total: int


# ============================================================
# MENTOR REQUEST SCHEMAS
# ============================================================

class MentorRequestCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    receiver_id: str = Field(..., min_length=1)
    message: Optional[str] = Field(None, max_length=1000)


class MentorRequestRespond(BaseModel):
    model_config = ConfigDict(extra="forbid")

    accept: bool


class MentorRequestRespondResponse(BaseModel):
    request: MentorRequest
    chat_room: Optional[ChatRoom] = None


class MentorRequestMetadata(BaseModel):
    """Admin view - never includes the request message."""
    id: str
    sender_id: str
    receiver_id: str
    status: RequestStatus
    created_at: datetime
    responded_at: Optional[datetime] = None


class RequestStats(BaseModel):
    total: int
    pending: int
    accepted: int
    rejected: int


# ============================================================
# CHAT SCHEMAS
# ============================================================

class MessageCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str = Field(..., min_length=1, max_length=2000)


class ChatRoomMetadata(BaseModel):
    """Admin view - existence metadata only, no message content."""
    id: str
    user_ids: List[str]
    created_at: datetime
    last_message_at: Optional[datetime] = None
    message_count: int = 0


class ChatStats(BaseModel):
    total_chats: int
    active_today: int


# ============================================================
# CHAT REPORT SCHEMAS
# ============================================================

class ChatReportCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: str = Field(..., max_length=1000)


class ChatReportReceipt(BaseModel):
    """What the reporter gets back - not the snapshot itself."""
    id: str
    status: ReportStatus
    created_at: datetime


class ReportStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: ReportStatus
    notes: Optional[str] = Field(None, max_length=2000)
    action_taken: Optional[str] = Field(None, max_length=500)


class ReportStats(BaseModel):
    total: int
    pending: int
    reviewed: int
    action_taken: int


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True


class ErrorResponse(BaseModel):
    detail: str
    code: str
