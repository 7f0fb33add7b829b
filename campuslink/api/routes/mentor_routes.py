"""
Mentor Routes

GET /mentors/search - Rank mentors for the typed skills, or for the caller's wanted skills
"""

from fastapi import APIRouter, Depends, Query

from campuslink.core.auth import get_current_user
from campuslink.services.matching_service import MentorRanker, resolve_search_skills
from campuslink.services.profile_service import ProfileService, get_profile_service
from campuslink.schemas.schemas import MentorSearchResponse

router = APIRouter(prefix="/mentors", tags=["Mentors"])


@router.get("/search", response_model=MentorSearchResponse)
def search_mentors(
    q: str = Query("", description="Comma or semicolon separated skills, e.g. 'python, guitar'"),
    user: dict = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service)
):
    """
    Find mentors whose offered skills cover what you want to learn.

    A non-empty `q` replaces your profile's skills_to_learn for this search.
    Results are ranked by match score (0-100), best first, top 20.
    """
    me = profiles.get(user["user_id"])
    wanted = me.skills_to_learn if me else []

    ranker = MentorRanker(profile_service=profiles)
    mentors = ranker.search(user["user_id"], q, wanted)

    return MentorSearchResponse(
        skills=resolve_search_skills(q, wanted),
        mentors=mentors,
        total=len(mentors)
    )
