"""
Application Submission Workflow

    submit(job_id, user_id, resume_url?, responses?)
        1. load job (ACTIVE + visible) and the student's profile
        2. run the eligibility gates (services/eligibility.py)
        3. write Application + custom-field Responses in one transaction
        4. best effort: attendance row + QR code, notification row

Steps in 4 run after the application is committed. Their failures are
logged and swallowed; the student still gets a successful submission.

The (job_id, user_id) unique constraint backs up the duplicate gate when
two submissions race between the read and the write.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from campus_connect.core.config import get_settings
from campus_connect.core.exceptions import (
    DuplicateApplicationError, EligibilityError, NotFoundError, ValidationError
)
from campus_connect.db.models import Application, ApplicationResponse, Attendance, Job, Profile
from campus_connect.db.postgres import get_db_session
from campus_connect.services import eligibility
from campus_connect.services.notification_service import APPLICATION_STATUS, create_notification
from campus_connect.services.qr_service import generate_qr_data_url

logger = logging.getLogger(__name__)

MAX_RESPONSE_LENGTH = 5000


@dataclass
class SubmissionResult:
    application: Application
    qr_code: Optional[str]
    message: str


def resolve_resume(uploaded_url: Optional[str], profile) -> Optional[str]:
    """Fresh upload wins, then the stored uploaded resume, then the resume link."""
    return uploaded_url or profile.resume_upload or profile.resume or None


def _response_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _normalize_responses(responses: Optional[Iterable[Any]]) -> List[Tuple[str, Optional[str], Any]]:
    """(field_id, stored value, raw value) triples; raw values feed the gate check."""
    normalized = []
    for r in responses or ():
        field_id = r.get("field_id") if isinstance(r, dict) else r.field_id
        raw = r.get("value") if isinstance(r, dict) else r.value
        if not field_id:
            raise ValidationError("Custom field response is missing field_id")
        value = _response_value(raw)
        if value is not None and len(value) > MAX_RESPONSE_LENGTH:
            raise ValidationError(f"Response for field {field_id} is too long")
        normalized.append((field_id, value, raw))
    return normalized


def _live_jobs_query():
    return (
        select(Job)
        .where(Job.status == "ACTIVE", Job.is_visible.is_(True))
        .options(selectinload(Job.custom_fields))
    )


class ApplicationWorkflow:

    def __init__(self, attendance_form_url: Optional[str] = None):
        self.attendance_form_url = attendance_form_url or get_settings().attendance_form_url

    # --------------------------------------------------------
    # submission
    # --------------------------------------------------------

    def submit(self, job_id: str, user_id: str, resume_url: Optional[str] = None,
               responses: Optional[Iterable[Any]] = None) -> SubmissionResult:
        if not job_id:
            raise ValidationError("Job ID is required")
        answers = _normalize_responses(responses)

        with get_db_session() as db:
            job = db.execute(_live_jobs_query().where(Job.id == job_id)).scalar_one_or_none()
            if job is None:
                raise NotFoundError("Job not found or no longer accepting applications")

            known_fields = {f.id for f in job.custom_fields}
            unknown = [field_id for field_id, _, _ in answers if field_id not in known_fields]
            if unknown:
                raise ValidationError(f"Unknown custom field {unknown[0]} for this job")

            profile = db.execute(select(Profile).where(Profile.user_id == user_id)).scalar_one_or_none()
            if profile is None:
                raise NotFoundError("Please complete your profile before applying")

            existing = db.execute(
                select(Application).where(Application.job_id == job_id, Application.user_id == user_id)
            ).scalar_one_or_none()

            result = eligibility.evaluate(
                job, profile,
                already_applied=existing is not None and not existing.is_removed,
                responses=[{"field_id": f, "value": raw} for f, _, raw in answers],
            )
            if not result.eligible:
                logger.info("Application by %s to %s rejected at %s gate", user_id, job_id, result.gate)
                if result.gate == eligibility.GATE_DUPLICATE:
                    raise DuplicateApplicationError(result.reason)
                raise EligibilityError(result.reason, gate=result.gate, extra=result.extra)

            resume_used = resolve_resume(resume_url, profile)
            if existing is not None:
                # previously removed: revive in place to keep one row per pair
                application = existing
                application.is_removed = False
                application.applied_at = datetime.utcnow()
                application.resume_used = resume_used
                application.responses.clear()
            else:
                application = Application(job_id=job_id, user_id=user_id, resume_used=resume_used)
                db.add(application)
            for field_id, value, _ in answers:
                application.responses.append(ApplicationResponse(field_id=field_id, value=value))

            try:
                db.flush()
                db.commit()
            except IntegrityError:
                db.rollback()
                logger.warning("Duplicate application by %s to %s caught by unique constraint", user_id, job_id)
                raise DuplicateApplicationError()

            job_title, company_name = job.title, job.company_name
            form_url = job.google_form_url or self.attendance_form_url

        logger.info("Application %s created: user=%s job=%s", application.id, user_id, job_id)

        qr_code = self._record_attendance(application, form_url)
        self._notify(application, job_title, company_name)

        return SubmissionResult(
            application=application,
            qr_code=qr_code,
            message=f"Successfully applied to {job_title} at {company_name}",
        )

    def _record_attendance(self, application: Application, form_url: str) -> Optional[str]:
        """
        Best effort: QR image for the attendance form + attendance row seeded
        with the application id. A revived application reuses its row with
        the scan cleared.
        """
        try:
            qr_code = generate_qr_data_url(form_url)
            with get_db_session() as db:
                attendance = db.execute(
                    select(Attendance).where(Attendance.application_id == application.id)
                ).scalar_one_or_none()
                if attendance is None:
                    db.add(Attendance(
                        application_id=application.id,
                        student_id=application.user_id,
                        job_id=application.job_id,
                        qr_code=application.id,
                    ))
                else:
                    attendance.scanned_at = None
            return qr_code
        except Exception:
            logger.exception("Failed to record attendance for application %s", application.id)
            return None

    def _notify(self, application: Application, job_title: str, company_name: str) -> bool:
        try:
            with get_db_session() as db:
                create_notification(
                    db, application.user_id,
                    title="Application Submitted",
                    message=f"You have successfully applied for {job_title} at {company_name}",
                    type=APPLICATION_STATUS,
                    data={"application_id": application.id, "job_id": application.job_id},
                )
            return True
        except Exception:
            logger.exception("Failed to create notification for application %s", application.id)
            return False

    # --------------------------------------------------------
    # reads
    # --------------------------------------------------------

    def list_for_user(self, user_id: str, page: int = 1, limit: int = 10) -> dict:
        """Non-removed applications, newest first, with the job summary."""
        conditions = (Application.user_id == user_id, Application.is_removed.is_(False))
        with get_db_session() as db:
            total = db.execute(select(func.count()).select_from(Application).where(*conditions)).scalar_one()
            applications = db.execute(
                select(Application)
                .where(*conditions)
                .options(selectinload(Application.job), selectinload(Application.responses))
                .order_by(Application.applied_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).scalars().all()

        return {
            "applications": applications,
            "pagination": {
                "total": total,
                "page": page,
                "limit": limit,
                "pages": math.ceil(total / limit) if limit else 0,
            },
        }

    def job_detail(self, job_id: str, user_id: str) -> dict:
        with get_db_session() as db:
            job = db.execute(_live_jobs_query().where(Job.id == job_id)).scalar_one_or_none()
            if job is None:
                raise NotFoundError("Job not found")
            application_count = db.execute(
                select(func.count()).select_from(Application)
                .where(Application.job_id == job_id, Application.is_removed.is_(False))
            ).scalar_one()
            application = db.execute(
                select(Application).where(Application.job_id == job_id, Application.user_id == user_id)
            ).scalar_one_or_none()

        return {
            "job": job,
            "application_count": application_count,
            "has_applied": application is not None and not application.is_removed,
        }

    def list_jobs_for_student(self, user_id: str, eligible_only: bool = False) -> List[dict]:
        """
        Active, visible jobs annotated with the tier rule and whether the
        student already applied. `eligible_only` drops tier-blocked jobs.
        """
        with get_db_session() as db:
            jobs = db.execute(_live_jobs_query().order_by(Job.created_at.desc())).scalars().all()
            placed_tier = db.execute(
                select(Profile.placed_tier).where(Profile.user_id == user_id)
            ).scalar_one_or_none()
            applied_ids = set(db.execute(
                select(Application.job_id)
                .where(Application.user_id == user_id, Application.is_removed.is_(False))
            ).scalars().all())

        items = []
        for job in jobs:
            verdict = eligibility.can_apply_to_tier(placed_tier, job.tier, bool(job.is_dream_offer))
            if eligible_only and not verdict.eligible:
                continue
            items.append({
                "job": job,
                "can_apply": verdict.eligible,
                "ineligibility_reason": verdict.reason,
                "has_applied": job.id in applied_ids,
            })
        return items

    # --------------------------------------------------------
    # admin
    # --------------------------------------------------------

    def remove_application(self, application_id: str) -> Application:
        """Soft delete; the row stays so the (job, user) pair remains unique."""
        with get_db_session() as db:
            application = db.get(Application, application_id)
            if application is None or application.is_removed:
                raise NotFoundError("Application not found")
            application.is_removed = True
        logger.info("Application %s removed", application_id)
        return application


def get_application_workflow() -> ApplicationWorkflow:
    """Get application workflow instance."""
    return ApplicationWorkflow()
