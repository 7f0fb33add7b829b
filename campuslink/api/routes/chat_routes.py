"""
Chat Routes

GET /chats - My chat rooms, most recently active first
GET /chats/{chat_id}/messages - Full message list, oldest first
POST /chats/{chat_id}/messages - Send a message
WS /chats/{chat_id}/ws?token=... - Live message list, re-sent after every new message
POST /chats/{chat_id}/reports - Report the chat to a reviewer

Only the two participants may use a chat. Admins never read chats here;
they only see what a report captured.
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Query, WebSocket, status
from fastapi.websockets import WebSocketState

from campuslink.core.auth import get_current_user, user_from_token
from campuslink.core.exceptions import NotFoundError, PermissionDenied
from campuslink.services.chat_service import ChatService, get_chat_service
from campuslink.services.report_service import ReportCapture, get_report_capture
from campuslink.schemas.schemas import (
    ChatReportCreate, ChatReportReceipt, ChatRoom, Message, MessageCreate
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chats", tags=["Chats"])


def _require_participant(room: ChatRoom, user_id: str) -> None:
    if user_id not in room.participants:
        raise PermissionDenied("You are not a participant in this chat")


@router.get("", response_model=List[ChatRoom])
def my_chats(
    user: dict = Depends(get_current_user),
    chats: ChatService = Depends(get_chat_service)
):
    return chats.rooms_for_user(user["user_id"])


@router.get("/{chat_id}/messages", response_model=List[Message])
def list_messages(
    chat_id: str,
    user: dict = Depends(get_current_user),
    chats: ChatService = Depends(get_chat_service)
):
    _require_participant(chats.get_room(chat_id), user["user_id"])
    return chats.list_messages(chat_id)


@router.post("/{chat_id}/messages", response_model=Message, status_code=201)
def send_message(
    chat_id: str,
    data: MessageCreate,
    user: dict = Depends(get_current_user),
    chats: ChatService = Depends(get_chat_service)
):
    """Send a message. Chats are AI-moderated for safety."""
    _require_participant(chats.get_room(chat_id), user["user_id"])
    return chats.send(chat_id, user["user_id"], data.text)


@router.post("/{chat_id}/reports", response_model=ChatReportReceipt, status_code=201)
def report_chat(
    chat_id: str,
    data: ChatReportCreate,
    user: dict = Depends(get_current_user),
    chats: ChatService = Depends(get_chat_service),
    reports: ReportCapture = Depends(get_report_capture)
):
    """
    Report this chat. The conversation as it stands right now is copied
    for a reviewer; anything sent afterwards is not part of the report.
    """
    _require_participant(chats.get_room(chat_id), user["user_id"])
    report = reports.capture(chat_id, user["user_id"], data.reason)
    return ChatReportReceipt(id=report.id, status=report.status, created_at=report.created_at)


@router.websocket("/{chat_id}/ws")
async def chat_stream(
    websocket: WebSocket,
    chat_id: str,
    token: str = Query(...),
    chats: ChatService = Depends(get_chat_service)
):
    """
    Push the full ordered message list on connect and after every new message.
    Messages are sent over HTTP; anything the client sends here is ignored.
    """
    user = user_from_token(token)
    if not user:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    try:
        room = await asyncio.to_thread(chats.get_room, chat_id)
        _require_participant(room, user["user_id"])
    except (NotFoundError, PermissionDenied):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    subscription = chats.subscribe(chat_id, room=room)

    async def pump():
        async for messages in subscription:
            await websocket.send_json([m.model_dump(mode="json") for m in messages])

    async def drain():
        while True:
            await websocket.receive_text()

    pump_task = asyncio.create_task(pump())
    drain_task = asyncio.create_task(drain())
    try:
        await asyncio.wait({pump_task, drain_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        subscription.close()
        for task in (pump_task, drain_task):
            task.cancel()
        pump_result, _ = await asyncio.gather(pump_task, drain_task, return_exceptions=True)

    if isinstance(pump_result, Exception):
        logger.error("Live updates for chat %s failed: %s", chat_id, pump_result)
        if websocket.client_state is WebSocketState.CONNECTED:
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
    else:
        logger.info("Unsubscribing from chat %s", chat_id)
