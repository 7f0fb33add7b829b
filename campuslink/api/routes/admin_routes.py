"""
Admin Routes (reviewer role required)

GET /admin/mentor-requests - Request metadata (no message content)
GET /admin/mentor-requests/stats - Counts by status
GET /admin/chats - Chat room metadata (no message content)
GET /admin/chats/stats - Total and recently active chats
GET /admin/reports - Chat reports, newest first
GET /admin/reports/stats - Counts by status
GET /admin/reports/{report_id} - One report with its captured messages
PUT /admin/reports/{report_id}/status - pending -> reviewed -> action_taken
"""

from typing import List

from fastapi import APIRouter, Depends

from campuslink.core.auth import get_current_reviewer
from campuslink.services.chat_service import ChatService, get_chat_service
from campuslink.services.report_service import ReportCapture, get_report_capture
from campuslink.services.request_service import RequestLifecycle, get_request_lifecycle
from campuslink.schemas.schemas import (
    ChatReport, ChatRoomMetadata, ChatStats, MentorRequestMetadata,
    ReportStats, ReportStatusUpdate, RequestStats
)

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(get_current_reviewer)])


@router.get("/mentor-requests", response_model=List[MentorRequestMetadata])
def all_mentor_requests(lifecycle: RequestLifecycle = Depends(get_request_lifecycle)):
    return lifecycle.list_metadata()


@router.get("/mentor-requests/stats", response_model=RequestStats)
def mentor_request_stats(lifecycle: RequestLifecycle = Depends(get_request_lifecycle)):
    return lifecycle.stats()


@router.get("/chats", response_model=List[ChatRoomMetadata])
def all_chats(chats: ChatService = Depends(get_chat_service)):
    return chats.rooms_metadata()


@router.get("/chats/stats", response_model=ChatStats)
def chat_stats(chats: ChatService = Depends(get_chat_service)):
    return chats.stats()


@router.get("/reports", response_model=List[ChatReport])
def all_reports(reports: ReportCapture = Depends(get_report_capture)):
    return reports.list_all()


@router.get("/reports/stats", response_model=ReportStats)
def report_stats(reports: ReportCapture = Depends(get_report_capture)):
    return reports.stats()


@router.get("/reports/{report_id}", response_model=ChatReport)
def get_report(report_id: str, reports: ReportCapture = Depends(get_report_capture)):
    return reports.get(report_id)


@router.put("/reports/{report_id}/status", response_model=ChatReport)
def update_report_status(
    report_id: str,
    data: ReportStatusUpdate,
    reviewer: dict = Depends(get_current_reviewer),
    reports: ReportCapture = Depends(get_report_capture)
):
    """Move a report one step forward. Skipping or going back returns 400."""
    return reports.update_status(
        report_id,
        data.status,
        reviewer_id=reviewer["user_id"],
        notes=data.notes,
        action_taken=data.action_taken
    )
