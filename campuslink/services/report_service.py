"""
Chat Report Service - safety report snapshots.

capture() copies a chat room's participants and its current messages
(sender, text, timestamp only) into a new report. From that instant the
report is disconnected from the room: later messages never show up in it,
and no code path rewrites a report's messages.

Reviewers then move the report forward one step at a time:
    pending -> reviewed -> action_taken
Skipping a step or going back is a ValidationError, whoever the caller is.
Checking that the caller IS a reviewer belongs to the API layer.
"""

import logging
from typing import Dict, List, Optional

from pymongo.database import Database

from campuslink.core.exceptions import NotFoundError, ValidationError
from campuslink.schemas.schemas import ChatReport, ReportStats, ReportStatus
from campuslink.services.mongo_service import (
    ChatReportStore,
    ChatRoomStore,
    MessageStore,
    server_now
)

logger = logging.getLogger(__name__)

# Allowed reviewer transitions
NEXT_STATUS: Dict[ReportStatus, ReportStatus] = {
    ReportStatus.pending: ReportStatus.reviewed,
    ReportStatus.reviewed: ReportStatus.action_taken,
}


def snapshot_messages(raw_messages: List[dict]) -> List[dict]:
    """
    Keep only sender/text/timestamp and sort oldest first.
    The store gives no order guarantee here, so sort locally; _id breaks ties.
    """
    ordered = sorted(raw_messages, key=lambda m: (m["created_at"], str(m.get("_id", ""))))
    return [
        {"sender_id": m["sender_id"], "text": m["text"], "created_at": m["created_at"]}
        for m in ordered
    ]


class ReportCapture:
    def __init__(self, db: Database = None):
        self.reports = ChatReportStore(db)
        self.rooms = ChatRoomStore(db)
        self.messages = MessageStore(db)

    def capture(self, chat_room_id: str, reporter_id: str, reason: str) -> ChatReport:
        """
        Freeze the room's current state into a pending report.

        Raises:
            ValidationError: empty reason
            NotFoundError: no such chat room
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A reason is required to report a chat")

        room = self.rooms.get(chat_room_id)
        if room is None:
            raise NotFoundError("Chat not found")

        messages = snapshot_messages(self.messages.snapshot_fields(chat_room_id))

        report = self.reports.insert(
            chat_room_id=chat_room_id,
            reporter_id=reporter_id,
            reason=reason,
            participants=room.participants,
            messages=messages
        )
        logger.info(
            "Chat report %s captured for chat %s with %d messages",
            report.id, chat_room_id, len(messages)
        )
        return report

    def get(self, report_id: str) -> ChatReport:
        report = self.reports.get(report_id)
        if report is None:
            raise NotFoundError("Report not found")
        return report

    def update_status(
        self,
        report_id: str,
        new_status: ReportStatus,
        reviewer_id: str,
        notes: Optional[str] = None,
        action_taken: Optional[str] = None
    ) -> ChatReport:
        """
        Advance a report exactly one step. Never touches the captured snapshot.
        """
        new_status = ReportStatus(new_status)
        report = self.get(report_id)

        if NEXT_STATUS.get(report.status) is not new_status:
            raise ValidationError(
                f"Cannot move report from {report.status.value} to {new_status.value}"
            )

        fields = {
            "status": new_status.value,
            "reviewed_at": server_now(),
            "reviewed_by": reviewer_id
        }
        if notes is not None:
            fields["admin_notes"] = notes
        if action_taken is not None:
            fields["action_taken"] = action_taken

        updated = self.reports.set_review(report_id, report.status, fields)
        if updated is None:
            raise ValidationError("Report status changed concurrently, reload and retry")

        logger.info("Chat report %s moved to %s by %s", report_id, new_status.value, reviewer_id)
        return updated

    def list_all(self) -> List[ChatReport]:
        """All reports, newest first."""
        return sorted(self.reports.find_all(), key=lambda r: r.created_at, reverse=True)

    def stats(self) -> ReportStats:
        reports = self.reports.find_all()
        return ReportStats(
            total=len(reports),
            pending=sum(1 for r in reports if r.status is ReportStatus.pending),
            reviewed=sum(1 for r in reports if r.status is ReportStatus.reviewed),
            action_taken=sum(1 for r in reports if r.status is ReportStatus.action_taken)
        )


def get_report_capture() -> ReportCapture:
    """Get report capture instance."""
    return ReportCapture()
