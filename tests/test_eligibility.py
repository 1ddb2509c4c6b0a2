from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from campus_connect.services import eligibility
from campus_connect.services.eligibility import (
    GATE_BACKLOG, GATE_BATCH, GATE_BRANCH, GATE_CGPA, GATE_CUSTOM_FIELDS, GATE_DEADLINE,
    GATE_DUPLICATE, GATE_KYC, GATE_TIER, batch_year_token, can_apply_to_tier, evaluate
)

NOW = datetime(2025, 8, 1, 12, 0, 0)


def make_job(**overrides):
    fields = dict(
        deadline=NOW + timedelta(days=3), tier="TIER_2", is_dream_offer=False, min_cgpa=None,
        allowed_branches=[], eligible_batch=None, max_backlogs=None, custom_fields=[],
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def make_profile(**overrides):
    fields = dict(
        kyc_status="VERIFIED", placed_tier=None, cgpa=8.2, branch="CSE", batch="2022-2026",
        has_backlogs="no", active_backlogs=False,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


def custom_field(field_id, label, required=True):
    return SimpleNamespace(id=field_id, label=label, required=required)


def test_qualifying_student_is_eligible():
    assert evaluate(make_job(), make_profile(), now=NOW) == eligibility.ELIGIBLE


def test_evaluation_is_repeatable():
    job = make_job(min_cgpa=9.0)
    profile = make_profile()
    assert evaluate(job, profile, now=NOW) == evaluate(job, profile, now=NOW)


# ============================================================
# KYC
# ============================================================

@pytest.mark.parametrize("status", ["PENDING", "UNDER_REVIEW", "INCOMPLETE", "REJECTED", None])
def test_unverified_profile_rejected_at_kyc_gate(status):
    result = evaluate(make_job(tier="TIER_1", is_dream_offer=True), make_profile(kyc_status=status), now=NOW)
    assert result.gate == GATE_KYC
    assert f"(current status: {status or 'PENDING'})" in result.reason
    assert result.extra == {"kyc_status": status or "PENDING"}


def test_kyc_gate_runs_before_deadline():
    job = make_job(deadline=NOW - timedelta(days=1))
    result = evaluate(job, make_profile(kyc_status="PENDING"), now=NOW)
    assert result.gate == GATE_KYC


# ============================================================
# DEADLINE / DUPLICATE
# ============================================================

def test_past_deadline_rejected():
    result = evaluate(make_job(deadline=NOW - timedelta(minutes=1)), make_profile(), now=NOW)
    assert result.gate == GATE_DEADLINE
    assert result.reason == "Application deadline has passed"


def test_timezone_aware_deadline_compared_in_utc():
    deadline = datetime(2025, 8, 1, 17, 0, tzinfo=timezone(timedelta(hours=5, minutes=30)))  # 11:30 UTC
    assert evaluate(make_job(deadline=deadline), make_profile(), now=NOW).gate == GATE_DEADLINE


def test_no_deadline_means_open():
    assert evaluate(make_job(deadline=None), make_profile(), now=NOW).eligible


def test_duplicate_checked_before_tier():
    result = evaluate(make_job(tier="TIER_3"), make_profile(placed_tier="TIER_1"), already_applied=True, now=NOW)
    assert result.gate == GATE_DUPLICATE
    assert result.reason == "You have already applied to this job"


# ============================================================
# TIER
# ============================================================

@pytest.mark.parametrize("job_tier", ["TIER_1", "TIER_2", "TIER_3"])
def test_tier1_student_blocked_from_regular_jobs(job_tier):
    result = evaluate(make_job(tier=job_tier), make_profile(placed_tier="TIER_1"), now=NOW)
    assert result.gate == GATE_TIER
    assert "Tier 1" in result.reason


def test_tier1_student_may_take_dream_offer():
    assert evaluate(make_job(tier="TIER_3", is_dream_offer=True), make_profile(placed_tier="TIER_1"), now=NOW).eligible


@pytest.mark.parametrize("job_tier, dream, allowed", [
    ("TIER_1", False, True),
    ("TIER_2", False, False),
    ("TIER_3", False, False),
    ("TIER_3", True, True),
])
def test_tier2_student(job_tier, dream, allowed):
    assert can_apply_to_tier("TIER_2", job_tier, dream).eligible is allowed


@pytest.mark.parametrize("job_tier, allowed", [("TIER_1", True), ("TIER_2", True), ("TIER_3", False)])
def test_tier3_student(job_tier, allowed):
    result = can_apply_to_tier("TIER_3", job_tier)
    assert result.eligible is allowed
    if not allowed:
        assert result.reason == "You are placed in Tier 3. You can only apply for Tier 1 or Tier 2 jobs"


def test_unplaced_student_may_apply_anywhere():
    assert all(can_apply_to_tier(None, tier).eligible for tier in ("TIER_1", "TIER_2", "TIER_3"))


# ============================================================
# CGPA / BRANCH / BATCH / BACKLOG
# ============================================================

def test_cgpa_below_minimum():
    result = evaluate(make_job(min_cgpa=7.0), make_profile(cgpa=6.5), now=NOW)
    assert result.gate == GATE_CGPA
    assert result.reason == "Minimum CGPA of 7.0 required"


def test_cgpa_at_minimum_passes():
    assert evaluate(make_job(min_cgpa=7.0), make_profile(cgpa=7.0), now=NOW).eligible


def test_branch_not_allowed():
    result = evaluate(make_job(allowed_branches=["CSE", "ISE"]), make_profile(branch="ECE"), now=NOW)
    assert result.gate == GATE_BRANCH
    assert result.reason == "Your branch (ECE) is not eligible for this job"


def test_allowed_branch_passes():
    assert evaluate(make_job(allowed_branches=["CSE", "ISE"]), make_profile(branch="CSE"), now=NOW).eligible


def test_batch_matches_on_trailing_year():
    job = make_job(eligible_batch="2022 - 2026")
    assert evaluate(job, make_profile(batch="2022-2026"), now=NOW).eligible


def test_batch_mismatch():
    result = evaluate(make_job(eligible_batch="2022 - 2026"), make_profile(batch="2021-2025"), now=NOW)
    assert result.gate == GATE_BATCH
    assert result.reason == "Only 2022 - 2026 batch is eligible"


def test_batch_gate_skipped_without_profile_batch():
    assert evaluate(make_job(eligible_batch="2022-2026"), make_profile(batch=None), now=NOW).eligible


@pytest.mark.parametrize("batch, token", [
    ("2022-2026", "2026"),
    ("2022 - 2026", "2026"),
    ("2026", "2026"),
    (" 2026 ", "2026"),
    ("Batch 2026", "Batch 2026"),
    ("", ""),
    (None, ""),
])
def test_batch_year_token(batch, token):
    assert batch_year_token(batch) == token


def test_zero_backlog_job_rejects_active_backlogs():
    result = evaluate(make_job(max_backlogs=0), make_profile(active_backlogs=True), now=NOW)
    assert result.gate == GATE_BACKLOG
    assert result.reason == "No active backlogs allowed for this job"


def test_has_backlogs_flag_counts_as_active():
    result = evaluate(make_job(max_backlogs=0), make_profile(has_backlogs="Yes"), now=NOW)
    assert result.gate == GATE_BACKLOG


def test_nonzero_backlog_limit_is_not_enforced():
    assert evaluate(make_job(max_backlogs=2), make_profile(active_backlogs=True), now=NOW).eligible


# ============================================================
# CUSTOM FIELDS
# ============================================================

def test_missing_required_custom_field():
    job = make_job(custom_fields=[custom_field("f1", "Portfolio URL"), custom_field("f2", "Notes", required=False)])
    result = evaluate(job, make_profile(), responses=[{"field_id": "f2", "value": "hi"}], now=NOW)
    assert result.gate == GATE_CUSTOM_FIELDS
    assert result.reason == 'Custom field "Portfolio URL" is required'
    assert result.extra == {"field_id": "f1"}


@pytest.mark.parametrize("value", [None, "", "   ", False])
def test_blank_answers_do_not_satisfy_required_field(value):
    job = make_job(custom_fields=[custom_field("f1", "Relocate?")])
    result = evaluate(job, make_profile(), responses=[{"field_id": "f1", "value": value}], now=NOW)
    assert result.gate == GATE_CUSTOM_FIELDS


@pytest.mark.parametrize("value", [0, "0", True, "yes"])
def test_answers_satisfy_required_field(value):
    job = make_job(custom_fields=[custom_field("f1", "Years of experience")])
    assert evaluate(job, make_profile(), responses=[SimpleNamespace(field_id="f1", value=value)], now=NOW).eligible
