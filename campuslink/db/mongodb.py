"""
MongoDB Connection Utility

MongoDB stores every mentorship document:
- Profiles (document id = user id)
- Mentor requests
- Chat rooms and their messages
- Chat report snapshots

Every write is a single-document operation; nothing here is transactional.
"""
import logging

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database
from pymongo.collection import Collection
from campuslink.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the campus_link database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_collection(name: str, db: Database = None) -> Collection:
    """
    Get a specific collection from `db` (defaults to the configured database).
    Pass one of the COLLECTIONS values.
    """
    if db is None:
        db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.error("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "profiles": "profiles",
    "mentor_requests": "mentorRequests",
    "chat_rooms": "chatRooms",
    "messages": "messages",
    "chat_reports": "chatReports"
}


def init_mongo_indexes(db: Database = None):
    """
    Create indexes for better query performance.
    Call this once during app startup.
    """
    if db is None:
        db = get_mongo_db()

    # Duplicate check queries the exact ordered pair
    db[COLLECTIONS["mentor_requests"]].create_index([
        ("sender_id", ASCENDING),
        ("receiver_id", ASCENDING)
    ])
    db[COLLECTIONS["mentor_requests"]].create_index("receiver_id")

    # Array-membership lookups, and one channel per accepted request
    db[COLLECTIONS["chat_rooms"]].create_index("participants")
    db[COLLECTIONS["chat_rooms"]].create_index("request_id", unique=True)

    db[COLLECTIONS["messages"]].create_index([
        ("chat_room_id", ASCENDING),
        ("created_at", ASCENDING)
    ])

    db[COLLECTIONS["chat_reports"]].create_index("status")
    db[COLLECTIONS["chat_reports"]].create_index([("created_at", DESCENDING)])

    logger.info("MongoDB indexes created successfully")
