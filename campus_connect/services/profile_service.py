"""
Profile Completion & KYC State Machine

A student fills the profile over six steps:

    1 PERSONAL_INFO  2 CONTACT_DETAILS  3 ACADEMIC_DETAILS
    4 ENGINEERING_DETAILS  5 COLLEGE_ID  6 REVIEW

Every save re-derives the KYC status from field completeness:

    PENDING / INCOMPLETE --(complete)--> UNDER_REVIEW
    UNDER_REVIEW --(no longer complete)--> PENDING
    VERIFIED / REJECTED: admin-only, never touched by a student save

After the profile row is written, the admin document projection is
synced (best effort).
"""

import logging
import math
import re
from datetime import date, datetime
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from campus_connect.core.exceptions import ConflictError, NotFoundError, ValidationError
from campus_connect.db.models import Profile
from campus_connect.db.postgres import get_db_session
from campus_connect.schemas.schemas import ProfileUpdate
from campus_connect.services.document_sync import DocumentSyncService
from campus_connect.services.notification_service import KYC_STATUS, create_notification

logger = logging.getLogger(__name__)


class ProfileStep(IntEnum):
    PERSONAL_INFO = 1
    CONTACT_DETAILS = 2
    ACADEMIC_DETAILS = 3
    ENGINEERING_DETAILS = 4
    COLLEGE_ID = 5
    REVIEW = 6


PENDING = "PENDING"
UNDER_REVIEW = "UNDER_REVIEW"
VERIFIED = "VERIFIED"
REJECTED = "REJECTED"
ADMIN_ONLY_STATUSES = frozenset({VERIFIED, REJECTED})

PROTECTED_KEYS = frozenset({"id", "user_id"})
FLOAT_FIELDS = frozenset({"tenth_percentage", "twelfth_percentage", "diploma_percentage", "cgpa", "final_cgpa"})
INT_FIELDS = frozenset({"tenth_passing_year", "twelfth_passing_year", "completion_step"})
DATE_FIELDS = frozenset({"date_of_birth"})

MAX_USN_LENGTH = 20
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


# ============================================================
# INPUT SANITISATION
# ============================================================

def sanitize_text(value: str) -> str:
    return value.strip().replace("<", "").replace(">", "")


def _parse_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) or math.isinf(number) else number


def _parse_int(value: Any) -> Optional[int]:
    number = _parse_float(value)
    return int(number) if number is not None else None


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def sanitize_payload(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Clean an untrusted PUT /profile body.

    - id / user_id are dropped (the session decides whose profile it is)
    - null values and empty objects are dropped (field left unchanged)
    - strings are trimmed; "" becomes None (field cleared)
    - kyc_status VERIFIED / REJECTED is stripped
    - numeric and date fields are parsed; garbage becomes None
    """
    data: Dict[str, Any] = {}
    for key, value in raw.items():
        if key in PROTECTED_KEYS or value is None:
            continue
        if isinstance(value, dict) and not value:
            continue
        if isinstance(value, str):
            value = sanitize_text(value)
            if value == "":
                data[key] = None
                continue
        if key == "kyc_status" and value in ADMIN_ONLY_STATUSES:
            logger.warning("Stripped admin-only kyc_status %s from profile payload", value)
            continue

        if key in FLOAT_FIELDS:
            value = _parse_float(value)
        elif key in INT_FIELDS:
            value = _parse_int(value)
        elif key in DATE_FIELDS:
            value = _parse_date(value)
        data[key] = value
    return data


def validate_payload(data: Dict[str, Any]) -> None:
    usn = data.get("usn")
    if usn and len(usn) > MAX_USN_LENGTH:
        raise ValidationError("USN too long")
    email = data.get("email")
    if email and not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format")


def _first_error(exc: PydanticValidationError) -> str:
    err = exc.errors()[0]
    location = ".".join(str(part) for part in err.get("loc", ()))
    return f"{location}: {err.get('msg')}" if location else err.get("msg", "Invalid profile data")


# ============================================================
# COMPLETENESS
# ============================================================

def has_personal_info(d: dict) -> bool:
    return all(d.get(k) for k in ("first_name", "last_name", "date_of_birth", "gender", "usn"))


def has_contact_info(d: dict) -> bool:
    return bool(d.get("calling_mobile") and d.get("email"))


def has_academic_info(d: dict) -> bool:
    return d.get("tenth_percentage") is not None and bool(d.get("tenth_passing_year"))


def has_engineering_info(d: dict) -> bool:
    return bool(d.get("branch") and d.get("batch")) and d.get("cgpa") is not None


def has_resume(d: dict) -> bool:
    return bool(d.get("resume") or d.get("resume_upload"))


COMPLETENESS_CHECKS: Dict[str, Callable[[dict], bool]] = {
    "personal": has_personal_info,
    "contact": has_contact_info,
    "academic": has_academic_info,
    "engineering": has_engineering_info,
    "resume": has_resume,
}


def missing_sections(data: dict) -> List[str]:
    return [name for name, check in COMPLETENESS_CHECKS.items() if not check(data)]


def is_profile_complete(data: dict) -> bool:
    return not missing_sections(data)


# ============================================================
# TRANSITIONS
# ============================================================

def next_kyc_status(current: Optional[str], complete: bool) -> Optional[str]:
    """New status for a student save, or None when nothing changes."""
    current = current or PENDING
    if current in ADMIN_ONLY_STATUSES:
        return None
    if complete and current != UNDER_REVIEW:
        return UNDER_REVIEW
    if not complete and current == UNDER_REVIEW:
        return PENDING
    return None


def next_completion_step(current: Optional[int], requested: Optional[int] = None,
                         advance: bool = False) -> int:
    """
    "Next" moves one step forward, capped at REVIEW. An explicit step is
    clamped to 1..6 and never moves the stored step backwards ("Back" in
    the UI is client-side only).
    """
    current = current or ProfileStep.PERSONAL_INFO
    if advance:
        return min(ProfileStep.REVIEW, current + 1)
    if requested is not None:
        requested = max(ProfileStep.PERSONAL_INFO, min(ProfileStep.REVIEW, requested))
        return max(current, requested)
    return current


# ============================================================
# SERVICE
# ============================================================

class ProfileService:

    def __init__(self, document_sync: Optional[DocumentSyncService] = None):
        self._document_sync = document_sync

    @property
    def document_sync(self) -> DocumentSyncService:
        if self._document_sync is None:
            self._document_sync = DocumentSyncService()
        return self._document_sync

    def get(self, user_id: str) -> Profile:
        with get_db_session() as db:
            profile = db.execute(select(Profile).where(Profile.user_id == user_id)).scalar_one_or_none()
        if profile is None:
            raise NotFoundError("Profile not found")
        return profile

    def save(self, user_id: str, raw: Dict[str, Any], advance_step: bool = False) -> Profile:
        """Create or update the student's own profile and re-derive its KYC status."""
        sanitized = sanitize_payload(raw)
        validate_payload(sanitized)
        try:
            update = ProfileUpdate.model_validate(sanitized)
        except PydanticValidationError as e:
            raise ValidationError(_first_error(e))

        changes = update.model_dump(exclude_unset=True)
        requested_step = changes.pop("completion_step", None)

        with get_db_session() as db:
            profile = db.execute(select(Profile).where(Profile.user_id == user_id)).scalar_one_or_none()
            created = profile is None
            existing = profile.to_dict() if profile is not None else {}

            merged = {**existing, **changes}
            complete = is_profile_complete(merged)
            new_status = next_kyc_status(existing.get("kyc_status"), complete)

            if created:
                profile = Profile(user_id=user_id, kyc_status=PENDING)
                db.add(profile)
            for key, value in changes.items():
                setattr(profile, key, value)
            if new_status:
                profile.kyc_status = new_status
            profile.completion_step = next_completion_step(
                existing.get("completion_step"), requested_step, advance_step
            )
            profile.is_complete = complete
            profile.updated_at = datetime.utcnow()

            try:
                db.flush()
            except IntegrityError:
                raise ConflictError("USN already exists. Please use a different USN.")

        logger.info(
            "security event %s: user=%s kyc_status_changed=%s new_kyc_status=%s",
            "profile_created" if created else "profile_updated",
            user_id, new_status is not None, new_status,
        )

        self.sync_documents(user_id, changes)
        return profile

    def sync_documents(self, user_id: str, changes: Dict[str, Any]) -> bool:
        """Best effort: a projection failure never fails the save."""
        try:
            self.document_sync.sync(user_id, changes)
            return True
        except Exception:
            logger.exception("Error syncing documents for user %s", user_id)
            return False

    def set_kyc_decision(self, user_id: str, status: str, admin_id: str,
                         remarks: Optional[str] = None) -> Profile:
        """Admin-only transition to VERIFIED or REJECTED."""
        if status not in ADMIN_ONLY_STATUSES:
            raise ValidationError("KYC decision must be VERIFIED or REJECTED")

        with get_db_session() as db:
            profile = db.execute(select(Profile).where(Profile.user_id == user_id)).scalar_one_or_none()
            if profile is None:
                raise NotFoundError("Profile not found")
            profile.kyc_status = status
            profile.verified_by = admin_id
            profile.verified_at = datetime.utcnow()
            profile.remarks = remarks

        logger.info("security event kyc_decision: user=%s status=%s admin=%s", user_id, status, admin_id)

        try:
            with get_db_session() as db:
                create_notification(
                    db, user_id,
                    title="Profile Verified" if status == VERIFIED else "Profile Rejected",
                    message=(
                        "Your profile has been verified. You can now apply to jobs."
                        if status == VERIFIED else
                        f"Your profile verification was rejected. {remarks or 'Please review your details.'}"
                    ),
                    type=KYC_STATUS,
                    data={"kyc_status": status},
                )
        except Exception:
            logger.exception("Failed to create KYC notification for user %s", user_id)

        try:
            self.document_sync.set_status(user_id, status)
        except Exception:
            logger.exception("Failed to update document projection status for user %s", user_id)

        return profile


def get_profile_service() -> ProfileService:
    """Get profile service instance."""
    return ProfileService()
