"""
Mentor Matching Service

PURPOSE:
Turn a learner's wanted skills into a ranked list of mentors.

HOW IT WORKS:
1. Resolve the skills to search for (typed query wins over the profile)
2. Load every other profile that offers at least one skill
3. Score each one with the skill matcher (0-100)
4. Drop zero scores, sort, keep the top N
5. Attach a short human-readable reason

Ordering: score descending, then number of matched skills descending.
Anything still tied keeps the order the profiles were read in.
"""

import logging
import re
from typing import List, Optional, Sequence

from campuslink.core.config import get_settings
from campuslink.schemas.schemas import MentorMatch
from campuslink.services.profile_service import ProfileService, get_profile_service
from campuslink.services.skill_matcher import compute_match_score

logger = logging.getLogger(__name__)

settings = get_settings()

_QUERY_SEPARATORS = re.compile(r"[,;]")


def parse_skill_query(query: Optional[str]) -> List[str]:
    """Split a typed query on commas/semicolons, trim, drop empties."""
    if not query:
        return []
    return [part.strip() for part in _QUERY_SEPARATORS.split(query) if part.strip()]


def resolve_search_skills(query: Optional[str], profile_wanted_skills: Sequence[str]) -> List[str]:
    """A non-empty typed query replaces the profile's wanted skills entirely."""
    parsed = parse_skill_query(query)
    if parsed:
        return parsed
    return list(profile_wanted_skills or [])


def generate_match_reason(
    wanted: Sequence[str],
    matched_skills: Sequence[str],
    mentor_name: str = "This mentor"
) -> str:
    """Generate human-readable match reason, keyed by how many skills matched."""
    if not matched_skills:
        return f"{mentor_name} has relevant experience that may help you."

    skill_list = ", ".join(matched_skills[:3])
    remaining = len(matched_skills) - 3

    if len(matched_skills) == 1:
        return f"You want to learn {wanted[0]}. {mentor_name} has experience in {skill_list}."
    if len(matched_skills) <= 3:
        return f"You want to learn {' and '.join(wanted[:2])}. {mentor_name} can teach {skill_list}."
    return (
        f"You want to learn {wanted[0]} and more. "
        f"{mentor_name} can teach {skill_list} and {remaining} other skills."
    )


class MentorRanker:
    """
    Scores and orders candidate mentors for one search.
    """

    def __init__(self, profile_service: ProfileService = None, limit: int = None):
        self.profile_service = profile_service or get_profile_service()
        self.limit = limit or settings.mentor_search_limit

    def search(
        self,
        searcher_id: str,
        query: Optional[str],
        profile_wanted_skills: Sequence[str]
    ) -> List[MentorMatch]:
        """
        Args:
            searcher_id: user running the search (never in the results)
            query: free text like "python, guitar"; overrides profile skills if non-empty
            profile_wanted_skills: the searcher's skills_to_learn

        Returns:
            Up to `limit` MentorMatch entries, best first
        """
        skills = resolve_search_skills(query, profile_wanted_skills)
        if not skills:
            logger.info("No skills to match against for user %s", searcher_id)
            return []

        candidates = self.profile_service.candidates(searcher_id)

        matches = []
        for profile in candidates:
            score, matched = compute_match_score(skills, profile.skills_have)
            if score == 0:
                continue
            matches.append(MentorMatch(
                profile=profile,
                score=score,
                matched_skills=matched,
                reason=generate_match_reason(skills, matched)
            ))

        # sorted() is stable, so residual ties keep read order
        ranked = sorted(matches, key=lambda m: (-m.score, -len(m.matched_skills)))[:self.limit]

        logger.info(
            "Found %d mentor matches out of %d profiles for user %s",
            len(ranked), len(candidates), searcher_id
        )
        return ranked


def get_mentor_ranker() -> MentorRanker:
    """Get mentor ranker instance."""
    return MentorRanker()
