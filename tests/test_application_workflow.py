from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select

from campus_connect.core.exceptions import DuplicateApplicationError, EligibilityError, NotFoundError, ValidationError
from campus_connect.db.models import Application, Attendance, Notification
from campus_connect.db.postgres import get_db_session
from campus_connect.services import application_service
from campus_connect.services.application_service import ApplicationWorkflow, resolve_resume
from campus_connect.services.eligibility import ELIGIBLE
from conftest import create_job, create_profile, create_user


def count(model, *conditions):
    with get_db_session() as db:
        return db.execute(select(func.count()).select_from(model).where(*conditions)).scalar_one()


def test_submit_creates_application_with_side_effects(student, verified_profile):
    job = create_job(google_form_url="https://forms.gle/acme-drive")
    result = ApplicationWorkflow().submit(job.id, student.id)

    assert result.application.job_id == job.id
    assert result.message == "Successfully applied to Software Engineer at Acme Corp"
    assert result.qr_code.startswith("data:image/svg+xml;base64,")

    with get_db_session() as db:
        attendance = db.execute(select(Attendance)).scalar_one()
        notification = db.execute(select(Notification)).scalar_one()
    assert attendance.qr_code == result.application.id
    assert attendance.student_id == student.id
    assert notification.type == "APPLICATION_STATUS"
    assert notification.data == {"application_id": result.application.id, "job_id": job.id}


def test_second_submission_is_duplicate(student, verified_profile):
    job = create_job()
    workflow = ApplicationWorkflow()
    workflow.submit(job.id, student.id)

    with pytest.raises(DuplicateApplicationError) as exc_info:
        workflow.submit(job.id, student.id)
    assert exc_info.value.status_code == 409
    assert count(Application) == 1


def test_unique_constraint_backstops_racing_submissions(student, verified_profile, monkeypatch):
    job = create_job()

    def racing_evaluate(*args, **kwargs):
        # a concurrent request commits its row after our duplicate check ran
        with get_db_session() as db:
            db.add(Application(job_id=job.id, user_id=student.id))
        return ELIGIBLE

    monkeypatch.setattr(application_service.eligibility, "evaluate", racing_evaluate)

    with pytest.raises(DuplicateApplicationError):
        ApplicationWorkflow().submit(job.id, student.id)
    assert count(Application) == 1


def test_ineligible_submission_writes_nothing(student):
    create_profile(student.id, kyc_status="PENDING")
    job = create_job()

    with pytest.raises(EligibilityError) as exc_info:
        ApplicationWorkflow().submit(job.id, student.id)
    assert exc_info.value.gate == "kyc"
    assert exc_info.value.to_dict()["kyc_status"] == "PENDING"
    assert count(Application) == 0


def test_missing_profile(student):
    with pytest.raises(NotFoundError, match="complete your profile"):
        ApplicationWorkflow().submit(create_job().id, student.id)


@pytest.mark.parametrize("overrides", [{"status": "CLOSED"}, {"is_visible": False}])
def test_closed_or_hidden_job_not_found(student, verified_profile, overrides):
    with pytest.raises(NotFoundError):
        ApplicationWorkflow().submit(create_job(**overrides).id, student.id)


def test_required_custom_field_enforced(student, verified_profile):
    job = create_job(custom_fields=[{"label": "Willing to relocate?", "field_type": "BOOLEAN", "required": True}])
    field_id = job.custom_fields[0].id

    with pytest.raises(EligibilityError) as exc_info:
        ApplicationWorkflow().submit(job.id, student.id, responses=[{"field_id": field_id, "value": False}])
    assert exc_info.value.gate == "custom_fields"

    result = ApplicationWorkflow().submit(job.id, student.id, responses=[{"field_id": field_id, "value": True}])
    assert [(r.field_id, r.value) for r in result.application.responses] == [(field_id, "true")]


def test_overlong_response_rejected(student, verified_profile):
    with pytest.raises(ValidationError):
        ApplicationWorkflow().submit(create_job().id, student.id, responses=[{"field_id": "f", "value": "x" * 5001}])


def test_resume_priority():
    profile = SimpleNamespace(resume_upload="/uploads/resumes/stored.pdf", resume="https://drive/cv")
    assert resolve_resume("/uploads/application-resumes/new.pdf", profile) == "/uploads/application-resumes/new.pdf"
    assert resolve_resume(None, profile) == "/uploads/resumes/stored.pdf"
    assert resolve_resume(None, SimpleNamespace(resume_upload=None, resume="https://drive/cv")) == "https://drive/cv"
    assert resolve_resume(None, SimpleNamespace(resume_upload="", resume="")) is None


def test_submission_uses_profile_resume(student):
    create_profile(student.id, resume="https://drive/cv", resume_upload="/uploads/resumes/stored.pdf")
    result = ApplicationWorkflow().submit(create_job().id, student.id)
    assert result.application.resume_used == "/uploads/resumes/stored.pdf"


def test_side_effect_failures_do_not_fail_submission(student, verified_profile, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(application_service, "generate_qr_data_url", broken)
    monkeypatch.setattr(application_service, "create_notification", broken)

    result = ApplicationWorkflow().submit(create_job().id, student.id)
    assert result.qr_code is None
    assert count(Application) == 1
    assert count(Attendance) == 0
    assert count(Notification) == 0


def test_default_attendance_form(student, verified_profile, monkeypatch):
    seen = []
    monkeypatch.setattr(application_service, "generate_qr_data_url", lambda url: seen.append(url) or "data:x")
    ApplicationWorkflow(attendance_form_url="https://forms.gle/default").submit(create_job().id, student.id)
    assert seen == ["https://forms.gle/default"]


def test_removed_application_can_be_resubmitted(student, verified_profile):
    job = create_job()
    workflow = ApplicationWorkflow()
    first = workflow.submit(job.id, student.id).application
    with get_db_session() as db:
        db.execute(select(Attendance)).scalar_one().scanned_at = datetime.utcnow()
    workflow.remove_application(first.id)

    assert workflow.job_detail(job.id, student.id)["has_applied"] is False
    result = workflow.submit(job.id, student.id)
    assert result.application.id == first.id
    assert result.qr_code.startswith("data:image/svg+xml;base64,")
    assert count(Application) == 1
    assert workflow.job_detail(job.id, student.id)["application_count"] == 1

    with get_db_session() as db:
        attendance = db.execute(select(Attendance)).scalar_one()
    assert attendance.application_id == first.id
    assert attendance.scanned_at is None


def test_unknown_custom_field_rejected(student, verified_profile):
    job = create_job(custom_fields=[{"label": "Portfolio", "required": False}])
    with pytest.raises(ValidationError, match="Unknown custom field"):
        ApplicationWorkflow().submit(job.id, student.id, responses=[{"field_id": "not-a-field", "value": "x"}])
    assert count(Application) == 0


def test_remove_unknown_application():
    with pytest.raises(NotFoundError):
        ApplicationWorkflow().remove_application("missing")


def test_list_for_user_paginates_newest_first(student, verified_profile):
    workflow = ApplicationWorkflow()
    jobs = [create_job(title=f"Role {i}") for i in range(3)]
    for job in jobs:
        workflow.submit(job.id, student.id)

    with get_db_session() as db:
        for offset, job in enumerate(jobs):
            application = db.execute(select(Application).where(Application.job_id == job.id)).scalar_one()
            application.applied_at = datetime(2025, 1, 1) + timedelta(days=offset)

    page = workflow.list_for_user(student.id, page=1, limit=2)
    assert [a.job.title for a in page["applications"]] == ["Role 2", "Role 1"]
    assert page["pagination"] == {"total": 3, "page": 1, "limit": 2, "pages": 2}
    assert [a.job.title for a in workflow.list_for_user(student.id, page=2, limit=2)["applications"]] == ["Role 0"]


def test_job_listing_applies_tier_rule(student):
    create_profile(student.id, placed_tier="TIER_2")
    tier1 = create_job(title="Tier 1 role", tier="TIER_1")
    create_job(title="Tier 2 role", tier="TIER_2")
    create_job(title="Hidden", tier="TIER_1", is_visible=False)

    workflow = ApplicationWorkflow()
    items = {item["job"].title: item for item in workflow.list_jobs_for_student(student.id)}
    assert set(items) == {"Tier 1 role", "Tier 2 role"}
    assert items["Tier 1 role"]["can_apply"] is True
    assert items["Tier 2 role"]["can_apply"] is False
    assert items["Tier 2 role"]["ineligibility_reason"] == "You are placed in Tier 2. You can only apply for Tier 1 jobs"

    eligible = workflow.list_jobs_for_student(student.id, eligible_only=True)
    assert [item["job"].id for item in eligible] == [tier1.id]


def test_job_listing_without_profile_is_unrestricted():
    user = create_user(email="new@example.com")
    create_job(tier="TIER_3")
    assert all(item["can_apply"] for item in ApplicationWorkflow().list_jobs_for_student(user.id))
