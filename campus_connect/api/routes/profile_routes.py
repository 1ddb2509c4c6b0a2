"""
Profile Routes

GET /profile - Get own profile
PUT /profile - Create or update own profile (multi-step form)
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query

from campus_connect.core.auth import get_current_student
from campus_connect.core.exceptions import ValidationError
from campus_connect.services.profile_service import get_profile_service
from campus_connect.schemas.schemas import ProfileResponse, ProfileSaveResponse

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(student: dict = Depends(get_current_student)):
    """Get current student's profile."""
    return ProfileResponse.model_validate(get_profile_service().get(student["user_id"]))


@router.put("", response_model=ProfileSaveResponse)
async def save_profile(
    payload: Dict[str, Any] = Body(...),
    advance_step: bool = Query(False, description="Move to the next form step after saving"),
    student: dict = Depends(get_current_student)
):
    """
    Save any subset of profile fields.

    Empty strings clear a field, missing keys leave it unchanged. The KYC
    status is re-derived from completeness on every save; VERIFIED and
    REJECTED can only be set by an admin.
    """
    if not payload:
        raise ValidationError("Profile payload is empty")

    profile = get_profile_service().save(student["user_id"], payload, advance_step=advance_step)
    return ProfileSaveResponse(profile=ProfileResponse.model_validate(profile))
