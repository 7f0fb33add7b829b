"""
Error kinds raised by the mentorship services.

Services raise these; the API layer turns them into JSON responses
(see campuslink.main). Store failures from pymongo are not wrapped here.
"""


class MentorshipError(Exception):
    """Base class. `status_code` is the HTTP status the API answers with."""

    status_code = 400
    code = "mentorship_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__name__


class ValidationError(MentorshipError):
    """Missing/invalid input or an illegal status transition."""

    status_code = 400
    code = "validation_error"


class DuplicateRequestError(MentorshipError):
    status_code = 409
    code = "duplicate_request"


class ContentRejected(MentorshipError):
    """Moderation judged the text unsafe."""

    status_code = 422
    code = "content_rejected"

    def __init__(self, reason: str):
        super().__init__(f"Content rejected: {reason}")
        self.reason = reason


class NotFoundError(MentorshipError):
    status_code = 404
    code = "not_found"


class PermissionDenied(MentorshipError):
    status_code = 403
    code = "permission_denied"


class TransientStoreError(MentorshipError):
    status_code = 503
    code = "store_unavailable"


class ModerationUnavailable(MentorshipError):
    """The moderation service could not produce a verdict."""

    status_code = 503
    code = "moderation_unavailable"
