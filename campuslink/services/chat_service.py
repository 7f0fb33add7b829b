"""
Chat Service - private two-party chat rooms.

A chat room only ever comes into existence when a mentor request is
accepted (see request_service). This module appends to and reads from it.

Messages:
- are moderated first; under the default advisory policy a moderation
  outage lets the message through with a warning, an unsafe verdict never does
- are immutable once stored, with a server-assigned timestamp that never
  falls behind the room's last_message_at
- are always read back oldest first, equal timestamps in arrival order

Room access checks (is the caller a participant?) belong to the API layer.
"""

import logging
from datetime import datetime, timedelta
from typing import List

from pymongo.database import Database

from campuslink.core.config import get_settings
from campuslink.core.exceptions import NotFoundError, ValidationError
from campuslink.schemas.schemas import ChatRoom, ChatRoomMetadata, ChatStats, Message
from campuslink.services.live_updates import MessageBroker, Subscription, get_message_broker
from campuslink.services.moderation_service import (
    ModerationContext,
    ModerationPolicy,
    ModerationService,
    enforce_moderation,
    get_moderation_service
)
from campuslink.services.mongo_service import ChatRoomStore, MessageStore, server_now

logger = logging.getLogger(__name__)

settings = get_settings()


class ChatService:
    def __init__(
        self,
        db: Database = None,
        moderator: ModerationService = None,
        broker: MessageBroker = None,
        moderation_policy: ModerationPolicy = None
    ):
        self.rooms = ChatRoomStore(db)
        self.messages = MessageStore(db)
        self.moderator = moderator or get_moderation_service()
        self.broker = broker or get_message_broker()
        self.moderation_policy = ModerationPolicy(moderation_policy or settings.chat_moderation_policy)

    def get_room(self, chat_room_id: str) -> ChatRoom:
        room = self.rooms.get(chat_room_id)
        if room is None:
            raise NotFoundError("Chat not found")
        return room

    def send(self, chat_room_id: str, sender_id: str, text: str) -> Message:
        """
        Moderate, append, then bump the room's last_message_at.
        """
        text = (text or "").strip()
        if not text:
            raise ValidationError("Message text is required")
        room = self.get_room(chat_room_id)

        enforce_moderation(self.moderator, text, ModerationContext.chat, self.moderation_policy)

        message = self.messages.insert(chat_room_id, sender_id, text, not_before=room.last_message_at)
        self.rooms.touch(chat_room_id, message.created_at)
        logger.info("Message %s added to chat %s", message.id, chat_room_id)

        self.broker.publish(chat_room_id)
        return message

    def list_messages(self, chat_room_id: str) -> List[Message]:
        """Full ordered message list, pull-based."""
        self.get_room(chat_room_id)
        return self.messages.list_for_room(chat_room_id)

    def subscribe(self, chat_room_id: str, room: ChatRoom = None) -> Subscription[Message]:
        """
        Live stream of the full ordered message list, re-delivered after
        every new message. Call from a running event loop; close() it when done.

        Pass `room` when it is already loaded to skip the blocking lookup.
        """
        if room is None:
            room = self.get_room(chat_room_id)
        logger.info("Subscribing to messages for chat %s", room.id)
        return Subscription(self.broker, chat_room_id, self.messages.list_for_room)

    def rooms_for_user(self, user_id: str) -> List[ChatRoom]:
        """Rooms the user participates in, most recently active first."""
        rooms = self.rooms.find_for_user(user_id)
        rooms.sort(key=lambda r: r.last_message_at or datetime.min, reverse=True)
        return rooms

    # ============================================================
    # ADMIN (metadata only - never message content)
    # ============================================================

    def rooms_metadata(self) -> List[ChatRoomMetadata]:
        return [
            ChatRoomMetadata(
                id=room.id,
                user_ids=room.user_ids or room.participants,
                created_at=room.created_at,
                last_message_at=room.last_message_at,
                message_count=self.messages.count_for_room(room.id)
            )
            for room in self.rooms.find_all()
        ]

    def stats(self, now: datetime = None) -> ChatStats:
        now = now or server_now()
        cutoff = now - timedelta(hours=settings.chat_active_window_hours)
        rooms = self.rooms.find_all()
        active = [r for r in rooms if r.last_message_at and r.last_message_at > cutoff]
        return ChatStats(total_chats=len(rooms), active_today=len(active))


def get_chat_service() -> ChatService:
    """Get chat service instance."""
    return ChatService()
