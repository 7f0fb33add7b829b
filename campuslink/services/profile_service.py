"""
Profile Service

Profiles are created once by their owner and edited only by their owner.
Bios are moderated before they are stored.

Reads go through a ProfileCache: a read-through cache with a TTL, busted
on every write for that user. The cache is handed to the service, so two
services sharing one cache see each other's invalidations.
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from pymongo.database import Database

from campuslink.core.config import get_settings
from campuslink.core.exceptions import NotFoundError, ValidationError
from campuslink.schemas.schemas import Profile
from campuslink.services.mongo_service import ProfileStore
from campuslink.services.moderation_service import (
    ModerationContext,
    ModerationPolicy,
    ModerationService,
    enforce_moderation,
    get_moderation_service
)

logger = logging.getLogger(__name__)

settings = get_settings()

EDITABLE_FIELDS = ("department", "year", "bio", "skills_have", "skills_to_learn")


def clean_skills(skills: Optional[List[str]]) -> List[str]:
    """Trim entries, drop empties and exact duplicates, keep order."""
    cleaned: List[str] = []
    for skill in skills or []:
        skill = str(skill).strip()
        if skill and skill not in cleaned:
            cleaned.append(skill)
    return cleaned


def is_profile_complete(profile: Optional[Profile]) -> bool:
    if profile is None:
        return False
    return bool(
        profile.department
        and profile.year
        and profile.bio
        and profile.skills_have
        and profile.skills_to_learn
    )


class ProfileCache:
    """
    Read-through cache of profiles by user id.

    Invalidation rule: an entry lives `ttl_seconds`, and is dropped
    immediately when its profile is written through ProfileService.
    """

    def __init__(self, ttl_seconds: float = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = settings.profile_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Profile]] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Optional[Profile]:
        with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return None
            expires_at, profile = entry
            if self._clock() >= expires_at:
                del self._entries[user_id]
                return None
            return profile

    def put(self, profile: Profile) -> None:
        with self._lock:
            self._entries[profile.id] = (self._clock() + self.ttl_seconds, profile)

    def invalidate(self, user_id: str) -> None:
        with self._lock:
            self._entries.pop(user_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class ProfileService:
    def __init__(
        self,
        db: Database = None,
        moderator: ModerationService = None,
        cache: ProfileCache = None,
        moderation_policy: ModerationPolicy = None
    ):
        self.store = ProfileStore(db)
        self.moderator = moderator or get_moderation_service()
        self.cache = cache if cache is not None else get_profile_cache()
        self.moderation_policy = ModerationPolicy(moderation_policy or settings.profile_moderation_policy)

    def _moderate_bio(self, bio: str) -> None:
        enforce_moderation(self.moderator, bio, ModerationContext.profile, self.moderation_policy)

    def get(self, user_id: str) -> Optional[Profile]:
        profile = self.cache.get(user_id)
        if profile is not None:
            return profile
        profile = self.store.get(user_id)
        if profile is not None:
            self.cache.put(profile)
        return profile

    def require(self, user_id: str) -> Profile:
        profile = self.get(user_id)
        if profile is None:
            raise NotFoundError("Profile not found. Create profile first.")
        return profile

    def create(self, user_id: str, data: dict) -> Profile:
        """Create the caller's profile. A user gets exactly one."""
        bio = (data.get("bio") or "").strip()
        if not bio:
            raise ValidationError("Bio is required")
        self._moderate_bio(bio)

        fields = {
            "department": data.get("department"),
            "year": data.get("year"),
            "bio": bio,
            "skills_have": clean_skills(data.get("skills_have")),
            "skills_to_learn": clean_skills(data.get("skills_to_learn"))
        }
        profile = self.store.insert(user_id, fields)
        self.cache.invalidate(user_id)
        if profile is None:
            raise ValidationError("Profile already exists. Use PUT to update.")

        logger.info("Created profile for user %s", user_id)
        return profile

    def update(self, user_id: str, changes: dict) -> Profile:
        """Apply only the provided fields."""
        fields = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS and v is not None}
        if not fields:
            raise ValidationError("No fields to update")

        if "bio" in fields:
            fields["bio"] = fields["bio"].strip()
            if not fields["bio"]:
                raise ValidationError("Bio cannot be empty")
            self._moderate_bio(fields["bio"])
        for key in ("skills_have", "skills_to_learn"):
            if key in fields:
                fields[key] = clean_skills(fields[key])

        updated = self.store.update(user_id, fields)
        self.cache.invalidate(user_id)
        if not updated:
            raise NotFoundError("Profile not found. Create profile first.")
        return self.require(user_id)

    def candidates(self, exclude_user_id: str) -> List[Profile]:
        """Mentor pool: every other profile that offers at least one skill."""
        return [p for p in self.store.find_others(exclude_user_id) if p.skills_have]


# Shared cache instance
_profile_cache: ProfileCache = None


def get_profile_cache() -> ProfileCache:
    global _profile_cache
    if _profile_cache is None:
        _profile_cache = ProfileCache()
    return _profile_cache


def get_profile_service() -> ProfileService:
    """Get profile service instance."""
    return ProfileService()
