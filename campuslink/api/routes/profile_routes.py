"""
Profile Routes

POST /profiles - Create own profile
GET /profiles/me - Get own profile
PUT /profiles/me - Update own profile
GET /profiles/{user_id} - Get another user's profile
"""

from fastapi import APIRouter, Depends

from campuslink.core.auth import get_current_user
from campuslink.services.profile_service import ProfileService, get_profile_service, is_profile_complete
from campuslink.schemas.schemas import ProfileCreate, ProfileUpdate, ProfileResponse

router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.post("", response_model=ProfileResponse, status_code=201)
def create_profile(
    data: ProfileCreate,
    user: dict = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service)
):
    """Create profile. The bio is moderated before it is stored."""
    profile = profiles.create(user["user_id"], data.model_dump())
    return ProfileResponse(profile=profile, is_complete=is_profile_complete(profile))


@router.get("/me", response_model=ProfileResponse)
def get_my_profile(
    user: dict = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service)
):
    profile = profiles.require(user["user_id"])
    return ProfileResponse(profile=profile, is_complete=is_profile_complete(profile))


@router.put("/me", response_model=ProfileResponse)
def update_my_profile(
    data: ProfileUpdate,
    user: dict = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service)
):
    """Update profile. Only provided fields are updated."""
    profile = profiles.update(user["user_id"], data.model_dump(exclude_none=True))
    return ProfileResponse(profile=profile, is_complete=is_profile_complete(profile))


@router.get("/{user_id}", response_model=ProfileResponse)
def get_profile(
    user_id: str,
    user: dict = Depends(get_current_user),
    profiles: ProfileService = Depends(get_profile_service)
):
    profile = profiles.require(user_id)
    return ProfileResponse(profile=profile, is_complete=is_profile_complete(profile))
