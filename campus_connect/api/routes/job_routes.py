"""
Job Routes

GET /jobs - List active jobs with the student's tier eligibility
GET /jobs/{job_id} - Get job details (+ whether the student applied)
POST /jobs/{job_id} - Apply to job (multipart with resume file, or JSON)
"""

import json

from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile

from campus_connect.core.auth import get_current_student
from campus_connect.core.exceptions import ValidationError
from campus_connect.services.application_service import get_application_workflow
from campus_connect.utils.file_upload import save_upload
from campus_connect.schemas.schemas import (
    ApplyRequest, ApplicationOut, CustomFieldAnswer, JobDetailResponse, JobListItem,
    JobListResponse, JobResponse, SubmissionResponse
)

router = APIRouter(prefix="/jobs", tags=["Jobs"])

RESUME_FOLDER = "application-resumes"


@router.get("", response_model=JobListResponse)
async def list_jobs(
    eligible_only: bool = Query(False, description="Hide jobs blocked by the placement-tier rule"),
    student: dict = Depends(get_current_student)
):
    """List active, visible jobs annotated with tier eligibility."""
    items = get_application_workflow().list_jobs_for_student(student["user_id"], eligible_only=eligible_only)
    jobs = [
        JobListItem(
            **JobResponse.model_validate(item["job"]).model_dump(),
            can_apply=item["can_apply"],
            ineligibility_reason=item["ineligibility_reason"],
            has_applied=item["has_applied"]
        ) for item in items
    ]
    return JobListResponse(jobs=jobs, total=len(jobs))


@router.get("/{job_id}", response_model=JobDetailResponse)
async def get_job(job_id: str, student: dict = Depends(get_current_student)):
    """Get details of a specific job."""
    detail = get_application_workflow().job_detail(job_id, student["user_id"])
    return JobDetailResponse(
        job=JobResponse.model_validate(detail["job"]),
        application_count=detail["application_count"],
        has_applied=detail["has_applied"]
    )


def _parse_responses(raw) -> list:
    try:
        items = json.loads(raw) if isinstance(raw, str) else raw
        return [CustomFieldAnswer.model_validate(item) for item in items or []]
    except (ValueError, TypeError, PydanticValidationError):
        raise ValidationError("responses must be a JSON list of {field_id, value}")


@router.post("/{job_id}", response_model=SubmissionResponse, status_code=201)
async def apply_to_job(job_id: str, request: Request, student: dict = Depends(get_current_student)):
    """
    Apply to a job. Students only.

    multipart/form-data: optional `resume` file, optional `responses` JSON string.
    application/json: {"resume_url": ..., "responses": [...]}
    """
    resume_url = None
    responses = []

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        resume = form.get("resume")
        if isinstance(resume, UploadFile) and resume.filename:
            resume_url = await save_upload(resume, RESUME_FOLDER)
        elif form.get("resume_url"):
            resume_url = str(form.get("resume_url"))
        if form.get("responses"):
            responses = _parse_responses(form.get("responses"))
    else:
        body = await request.body()
        if body:
            try:
                payload = ApplyRequest.model_validate_json(body)
            except PydanticValidationError:
                raise ValidationError("Invalid application payload")
            resume_url = payload.resume_url
            responses = payload.responses

    result = get_application_workflow().submit(
        job_id, student["user_id"], resume_url=resume_url, responses=responses
    )
    return SubmissionResponse(
        application=ApplicationOut.model_validate(result.application),
        qr_code=result.qr_code,
        message=result.message
    )
