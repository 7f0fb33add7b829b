import mongomock
import pytest

from campuslink.core.exceptions import ModerationUnavailable
from campuslink.db.mongodb import init_mongo_indexes
from campuslink.services.chat_service import ChatService
from campuslink.services.live_updates import MessageBroker
from campuslink.services.moderation_service import ModerationResult
from campuslink.services.profile_service import ProfileCache, ProfileService
from campuslink.services.report_service import ReportCapture
from campuslink.services.request_service import RequestLifecycle


class FakeModerator:
    """Flags any text containing a blocked word; can be switched offline."""

    def __init__(self):
        self.blocked_words = {"idiot"}
        self.offline = False
        self.calls = []

    def moderate(self, text, context):
        self.calls.append((text, context))
        if self.offline:
            raise ModerationUnavailable("moderation offline")
        if any(word in text.lower() for word in self.blocked_words):
            return ModerationResult(safe=False, reason="harassment")
        return ModerationResult(safe=True, reason="")


@pytest.fixture
def db():
    database = mongomock.MongoClient().campus_link_test
    init_mongo_indexes(database)
    return database


@pytest.fixture
def moderator():
    return FakeModerator()


@pytest.fixture
def broker():
    return MessageBroker()


@pytest.fixture
def profile_cache():
    return ProfileCache(ttl_seconds=60)


@pytest.fixture
def profiles(db, moderator, profile_cache):
    return ProfileService(db=db, moderator=moderator, cache=profile_cache)


@pytest.fixture
def lifecycle(db, moderator):
    return RequestLifecycle(db=db, moderator=moderator)


@pytest.fixture
def chats(db, moderator, broker):
    return ChatService(db=db, moderator=moderator, broker=broker)


@pytest.fixture
def reports(db):
    return ReportCapture(db=db)


@pytest.fixture
def make_profile(profiles):
    def _make(user_id, skills_have=(), skills_to_learn=(), bio="Happy to help"):
        return profiles.create(user_id, {
            "department": "CSE",
            "year": "3",
            "bio": bio,
            "skills_have": list(skills_have),
            "skills_to_learn": list(skills_to_learn)
        })
    return _make


@pytest.fixture
def room(lifecycle):
    """An accepted alice -> bob request and its chat room."""
    request = lifecycle.create("alice", "bob", "Can you help me with Python?")
    _, chat_room = lifecycle.respond(request.id, True)
    return chat_room
