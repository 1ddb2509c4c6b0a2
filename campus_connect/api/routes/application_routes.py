"""
Application Routes

GET /applications - Get my applications (paginated, newest first)
POST /applications - Apply to job (JSON body)
"""

from fastapi import APIRouter, Depends, Query

from campus_connect.core.auth import get_current_student
from campus_connect.services.application_service import get_application_workflow
from campus_connect.schemas.schemas import (
    ApplicationCreate, ApplicationListItem, ApplicationListResponse, ApplicationOut,
    Pagination, SubmissionResponse
)

router = APIRouter(prefix="/applications", tags=["Applications"])


@router.get("", response_model=ApplicationListResponse)
async def list_my_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    student: dict = Depends(get_current_student)
):
    """Get all applications submitted by current student."""
    result = get_application_workflow().list_for_user(student["user_id"], page=page, limit=limit)
    return ApplicationListResponse(
        applications=[ApplicationListItem.model_validate(a) for a in result["applications"]],
        pagination=Pagination(**result["pagination"])
    )


@router.post("", response_model=SubmissionResponse, status_code=201)
async def create_application(data: ApplicationCreate, student: dict = Depends(get_current_student)):
    """
    Apply to a job.

    The same eligibility gates as POST /jobs/{job_id} apply; the resume
    falls back to the one stored on the profile.
    """
    result = get_application_workflow().submit(
        data.job_id, student["user_id"], resume_url=data.resume_url, responses=data.responses
    )
    return SubmissionResponse(
        application=ApplicationOut.model_validate(result.application),
        qr_code=result.qr_code,
        message=result.message
    )
