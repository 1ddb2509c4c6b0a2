"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List, Any, Dict, Union, Literal
from datetime import date, datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "STUDENT"
    admin = "ADMIN"


class JobStatus(str, Enum):
    active = "ACTIVE"
    closed = "CLOSED"
    draft = "DRAFT"


class JobTier(str, Enum):
    tier_1 = "TIER_1"
    tier_2 = "TIER_2"
    tier_3 = "TIER_3"


class KycStatus(str, Enum):
    pending = "PENDING"
    under_review = "UNDER_REVIEW"
    incomplete = "INCOMPLETE"
    verified = "VERIFIED"
    rejected = "REJECTED"


class CustomFieldType(str, Enum):
    text = "TEXT"
    number = "NUMBER"
    dropdown = "DROPDOWN"
    boolean = "BOOLEAN"
    file_upload = "FILE_UPLOAD"
    textarea = "TEXTAREA"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    email: EmailStr
    password: str = Field(..., min_length=8)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class ResendVerificationRequest(BaseModel):
    email: EmailStr

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    role: UserRole

class UserResponse(BaseModel):
    user_id: str
    name: str
    email: str
    role: UserRole
    email_verified: bool
    created_at: datetime


# ============================================================
# JOB SCHEMAS
# ============================================================

class CustomFieldOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    label: str
    field_type: CustomFieldType
    required: bool = False
    options: Optional[Any] = None

class JobResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    company_name: str
    company_logo: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    job_type: Optional[str] = None
    work_mode: Optional[str] = None
    salary: Optional[str] = None
    status: JobStatus
    deadline: Optional[datetime] = None
    tier: JobTier
    is_dream_offer: bool = False
    min_cgpa: Optional[float] = None
    max_backlogs: Optional[int] = None
    allowed_branches: List[str] = []
    eligible_batch: Optional[str] = None
    custom_fields: List[CustomFieldOut] = []
    created_at: datetime

class JobListItem(JobResponse):
    can_apply: bool = True
    ineligibility_reason: Optional[str] = None
    has_applied: bool = False

class JobListResponse(BaseModel):
    jobs: List[JobListItem]
    total: int

class JobDetailResponse(BaseModel):
    job: JobResponse
    application_count: int = 0
    has_applied: bool


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class CustomFieldAnswer(BaseModel):
    field_id: str
    value: Optional[Union[bool, int, float, str]] = None

class ApplicationCreate(BaseModel):
    job_id: str = Field(..., min_length=1)
    responses: List[CustomFieldAnswer] = []
    resume_url: Optional[str] = Field(None, max_length=500)

class ApplyRequest(BaseModel):
    """JSON body accepted by POST /jobs/{id} when no file is uploaded."""
    responses: List[CustomFieldAnswer] = []
    resume_url: Optional[str] = Field(None, max_length=500)

class ApplicationResponseOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    field_id: str
    value: Optional[str] = None

class ApplicationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    job_id: str
    user_id: str
    applied_at: datetime
    resume_used: Optional[str] = None
    is_removed: bool = False
    responses: List[ApplicationResponseOut] = []

class ApplicationJobSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    company_name: str
    company_logo: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    tier: str
    job_type: Optional[str] = None
    work_mode: Optional[str] = None
    salary: Optional[str] = None
    deadline: Optional[datetime] = None
    status: str

class ApplicationListItem(ApplicationOut):
    job: ApplicationJobSummary

class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int

class ApplicationListResponse(BaseModel):
    applications: List[ApplicationListItem]
    pagination: Pagination

class SubmissionResponse(BaseModel):
    success: bool = True
    application: ApplicationOut
    qr_code: Optional[str] = None
    message: str


# ============================================================
# PROFILE SCHEMAS
# ============================================================

class ProfileUpdate(BaseModel):
    """
    Every field a student may write through PUT /profile.

    Unknown keys are dropped. Verification fields (kyc_status, verified_by,
    verified_at, remarks) and placed_tier are absent: only the
    admin endpoints write them.
    """
    model_config = ConfigDict(extra="ignore")

    # personal
    first_name: Optional[str] = Field(None, max_length=100)
    middle_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    blood_group: Optional[str] = None
    state_of_domicile: Optional[str] = None
    nationality: Optional[str] = None
    category: Optional[str] = None
    profile_photo: Optional[str] = None

    # contact
    email: Optional[str] = Field(None, max_length=255)
    calling_mobile: Optional[str] = Field(None, max_length=20)
    whatsapp_mobile: Optional[str] = Field(None, max_length=20)
    alternative_mobile: Optional[str] = Field(None, max_length=20)
    father_name: Optional[str] = None
    father_mobile: Optional[str] = Field(None, max_length=20)
    father_email: Optional[str] = None
    father_occupation: Optional[str] = None
    father_deceased: Optional[bool] = None
    mother_name: Optional[str] = None
    mother_mobile: Optional[str] = Field(None, max_length=20)
    mother_email: Optional[str] = None
    mother_occupation: Optional[str] = None
    mother_deceased: Optional[bool] = None
    current_address: Optional[str] = None
    current_city: Optional[str] = None
    current_district: Optional[str] = None
    current_state: Optional[str] = None
    current_pincode: Optional[str] = Field(None, max_length=10)
    same_as_current: Optional[bool] = None
    permanent_address: Optional[str] = None
    permanent_city: Optional[str] = None
    permanent_district: Optional[str] = None
    permanent_state: Optional[str] = None
    permanent_pincode: Optional[str] = Field(None, max_length=10)

    # school / pre-university
    tenth_school_name: Optional[str] = None
    tenth_board: Optional[str] = None
    tenth_passing_year: Optional[int] = None
    tenth_percentage: Optional[float] = None
    tenth_marks_card: Optional[str] = None
    academic_level: Optional[str] = None
    has_completed_twelfth: Optional[bool] = None
    twelfth_school_name: Optional[str] = None
    twelfth_board: Optional[str] = None
    twelfth_passing_year: Optional[int] = None
    twelfth_percentage: Optional[float] = None
    twelfth_marks_card: Optional[str] = None
    has_completed_diploma: Optional[bool] = None
    diploma_college_name: Optional[str] = None
    diploma_percentage: Optional[float] = None
    diploma_certificate: Optional[str] = None

    # engineering
    college_name: Optional[str] = None
    branch: Optional[str] = None
    entry_type: Optional[str] = None
    seat_category: Optional[str] = None
    usn: Optional[str] = None
    library_id: Optional[str] = None
    batch: Optional[str] = None
    branch_mentor: Optional[str] = None
    cgpa: Optional[float] = Field(None, ge=0, le=10)
    final_cgpa: Optional[float] = Field(None, ge=0, le=10)
    semesters: Optional[List[Dict[str, Any]]] = None
    has_backlogs: Optional[str] = None
    active_backlogs: Optional[bool] = None
    linkedin_link: Optional[str] = None
    github_link: Optional[str] = None
    leetcode_link: Optional[str] = None
    portfolio: Optional[str] = None
    skills: Optional[List[str]] = None
    resume: Optional[str] = None
    resume_upload: Optional[str] = None

    # college id
    college_id_card: Optional[str] = None
    academic_document: Optional[str] = None

    completion_step: Optional[int] = None

class ProfileResponse(ProfileUpdate):
    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: str
    user_id: str
    placed_tier: Optional[str] = None
    kyc_status: KycStatus
    verified_at: Optional[datetime] = None
    remarks: Optional[str] = None
    completion_step: int
    is_complete: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

class ProfileSaveResponse(BaseModel):
    success: bool = True
    profile: ProfileResponse
    message: str = "Profile updated successfully"


# ============================================================
# ADMIN SCHEMAS
# ============================================================

class KycDecisionRequest(BaseModel):
    status: Literal["VERIFIED", "REJECTED"]
    remarks: Optional[str] = Field(None, max_length=1000)

class DocumentResponse(BaseModel):
    """Admin projection; semester links arrive as extra sem{N}_link keys."""
    model_config = ConfigDict(extra="allow")

    user_id: str
    usn: Optional[str] = None
    cgpa: Optional[float] = None
    tenth_marks_card_link: Optional[str] = None
    twelfth_marks_card_link: Optional[str] = None
    kyc_status: str
    updated_at: Optional[datetime] = None

class DocumentListResponse(BaseModel):
    documents: List[DocumentResponse]
    total: int


# ============================================================
# UPLOAD SCHEMAS
# ============================================================

class UploadResponse(BaseModel):
    url: str
    folder: str
    filename: str


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True

class ErrorResponse(BaseModel):
    error: str
    kind: Optional[str] = None
