"""
Eligibility Evaluator

Pure decision functions over already-fetched Job and Profile records.
Nothing here touches the database: callers load the records, tell us
whether an application already exists, and get back a verdict.

Both the job listing (tier filter) and the application workflow
(full gate chain) consume this module, so the tier rule exists once.

Gate order for a submission (first failure wins):
    1. kyc        profile must be VERIFIED
    2. deadline   job deadline not in the past
    3. duplicate  no live application for (job, student)
    4. tier       placement-tier compatibility
    5. cgpa       profile.cgpa >= job.min_cgpa
    6. branch     profile.branch in job.allowed_branches
    7. batch      trailing batch years match
    8. backlog    max_backlogs == 0 forbids active backlogs
    9. custom     required custom fields answered
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

GATE_KYC = "kyc"
GATE_DEADLINE = "deadline"
GATE_DUPLICATE = "duplicate"
GATE_TIER = "tier"
GATE_CGPA = "cgpa"
GATE_BRANCH = "branch"
GATE_BATCH = "batch"
GATE_BACKLOG = "backlog"
GATE_CUSTOM_FIELDS = "custom_fields"

GATE_ORDER = (
    GATE_KYC, GATE_DEADLINE, GATE_DUPLICATE, GATE_TIER, GATE_CGPA,
    GATE_BRANCH, GATE_BATCH, GATE_BACKLOG, GATE_CUSTOM_FIELDS,
)


@dataclass(frozen=True)
class EligibilityResult:
    eligible: bool
    reason: Optional[str] = None
    gate: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)


ELIGIBLE = EligibilityResult(eligible=True)


def _fail(gate: str, reason: str, **extra) -> EligibilityResult:
    return EligibilityResult(eligible=False, reason=reason, gate=gate, extra=extra)


# ============================================================
# SINGLE RULES
# ============================================================

def batch_year_token(batch: Optional[str]) -> str:
    """
    Trailing year of a batch string.

        "2022-2026"   -> "2026"
        "2022 - 2026" -> "2026"
        "2026"        -> "2026"   (no separator: whole string, trimmed)
        "Batch 2026"  -> "Batch 2026"

    The last form is a known quirk: free-text batches without a "-"
    only match when the strings are identical.
    """
    if not batch:
        return ""
    return batch.split("-")[-1].strip()


def can_apply_to_tier(student_tier: Optional[str], job_tier: Optional[str],
                      is_dream_offer: bool = False) -> EligibilityResult:
    """Placement-tier compatibility between where a student is placed and the job."""
    if is_dream_offer or not student_tier:
        return ELIGIBLE

    if student_tier == "TIER_1":
        return _fail(GATE_TIER, "You are already placed in Tier 1 and blocked from further placements")
    if student_tier == "TIER_2":
        if job_tier == "TIER_1":
            return ELIGIBLE
        return _fail(GATE_TIER, "You are placed in Tier 2. You can only apply for Tier 1 jobs")
    if student_tier == "TIER_3":
        if job_tier in ("TIER_1", "TIER_2"):
            return ELIGIBLE
        return _fail(GATE_TIER, "You are placed in Tier 3. You can only apply for Tier 1 or Tier 2 jobs")
    return ELIGIBLE


def has_active_backlogs(profile) -> bool:
    return bool(getattr(profile, "active_backlogs", None)) or \
        (getattr(profile, "has_backlogs", None) or "").strip().lower() == "yes"


def _is_blank(value: Any) -> bool:
    # an unticked checkbox does not answer a required field
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _answer_map(responses: Optional[Iterable[Any]]) -> Dict[str, Any]:
    answers = {}
    for r in responses or ():
        if isinstance(r, dict):
            answers[r.get("field_id")] = r.get("value")
        else:
            answers[r.field_id] = r.value
    return answers


def missing_required_field(custom_fields: Optional[Iterable[Any]], responses: Optional[Iterable[Any]]):
    """Return the first required custom field without a usable answer, or None."""
    answers = _answer_map(responses)
    for custom_field in custom_fields or ():
        if custom_field.required and _is_blank(answers.get(custom_field.id)):
            return custom_field
    return None


def _as_naive_utc(moment: datetime) -> datetime:
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


# ============================================================
# FULL EVALUATION
# ============================================================

def evaluate(job, profile, *, already_applied: bool = False,
             responses: Optional[Iterable[Any]] = None,
             now: Optional[datetime] = None) -> EligibilityResult:
    """
    Run every gate in order and return the first failure, or ELIGIBLE.

    `job` and `profile` only need the attributes read below, so ORM rows
    and plain objects both work. `now` defaults to the current UTC time.
    """
    now = _as_naive_utc(now or datetime.utcnow())

    kyc_status = profile.kyc_status or "PENDING"
    if kyc_status != "VERIFIED":
        return _fail(
            GATE_KYC,
            f"Your profile must be verified before applying to jobs (current status: {kyc_status}). "
            "Please complete your profile and upload your College ID card.",
            kyc_status=kyc_status,
        )

    if job.deadline is not None and _as_naive_utc(job.deadline) < now:
        return _fail(GATE_DEADLINE, "Application deadline has passed")

    if already_applied:
        return _fail(GATE_DUPLICATE, "You have already applied to this job")

    tier_result = can_apply_to_tier(profile.placed_tier, job.tier, bool(job.is_dream_offer))
    if not tier_result.eligible:
        return tier_result

    if job.min_cgpa is not None and profile.cgpa is not None and profile.cgpa < job.min_cgpa:
        return _fail(GATE_CGPA, f"Minimum CGPA of {job.min_cgpa} required")

    if job.allowed_branches and profile.branch and profile.branch not in job.allowed_branches:
        return _fail(GATE_BRANCH, f"Your branch ({profile.branch}) is not eligible for this job")

    if job.eligible_batch and profile.batch:
        if batch_year_token(profile.batch) != batch_year_token(job.eligible_batch):
            return _fail(GATE_BATCH, f"Only {job.eligible_batch} batch is eligible")

    # Backlog counts are not recorded, so only the zero-tolerance case is enforced
    if job.max_backlogs is not None and job.max_backlogs == 0 and has_active_backlogs(profile):
        return _fail(GATE_BACKLOG, "No active backlogs allowed for this job")

    missing = missing_required_field(job.custom_fields, responses)
    if missing is not None:
        return _fail(GATE_CUSTOM_FIELDS, f'Custom field "{missing.label}" is required', field_id=missing.id)

    return ELIGIBLE
