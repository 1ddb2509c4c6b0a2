"""
SQLAlchemy ORM models for the relational side of the portal.

PostgreSQL holds everything the workflows write transactionally:
users, jobs, profiles, applications (+ custom field responses),
attendance and notifications. The admin document projection lives in
MongoDB (see db/mongodb.py).
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON, Boolean, Column, Date, DateTime, Float, ForeignKey, Integer,
    PrimaryKeyConstraint, String, Text, UniqueConstraint
)
from sqlalchemy.orm import DeclarativeBase, relationship


def new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class for all models."""


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="STUDENT")  # STUDENT, ADMIN
    email_verified_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    profile = relationship("Profile", back_populates="user", uselist=False)

    def __repr__(self):
        return f"<User {self.email}>"


class VerificationToken(Base):
    __tablename__ = "verification_tokens"
    __table_args__ = (
        PrimaryKeyConstraint("identifier", "token", name="pk_verification_token"),
    )

    identifier = Column(String(255), nullable=False, index=True)  # email
    token = Column(String(128), nullable=False, unique=True)
    expires_at = Column(DateTime, nullable=False)


class Job(Base):
    __tablename__ = "jobs"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String(200), nullable=False)
    company_name = Column(String(200), nullable=False)
    company_logo = Column(String(500))
    description = Column(Text)
    location = Column(String(200))
    category = Column(String(100))
    job_type = Column(String(50))
    work_mode = Column(String(50))
    salary = Column(String(100))
    status = Column(String(20), nullable=False, default="ACTIVE")  # ACTIVE, CLOSED, DRAFT
    is_visible = Column(Boolean, nullable=False, default=True)
    deadline = Column(DateTime)

    # Eligibility criteria (null / empty = unrestricted)
    tier = Column(String(10), nullable=False, default="TIER_3")  # TIER_1, TIER_2, TIER_3
    is_dream_offer = Column(Boolean, nullable=False, default=False)
    min_cgpa = Column(Float)
    max_backlogs = Column(Integer)
    allowed_branches = Column(JSON, nullable=False, default=list)
    eligible_batch = Column(String(20))  # "2022-2026"

    google_form_url = Column(String(500))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    custom_fields = relationship(
        "JobCustomField", back_populates="job",
        order_by="JobCustomField.position", cascade="all, delete-orphan"
    )
    applications = relationship("Application", back_populates="job")

    def __repr__(self):
        return f"<Job {self.title} @ {self.company_name}>"


class JobCustomField(Base):
    __tablename__ = "job_custom_fields"

    id = Column(String(36), primary_key=True, default=new_id)
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    label = Column(String(200), nullable=False)
    field_type = Column(String(20), nullable=False, default="TEXT")  # TEXT, NUMBER, DROPDOWN, BOOLEAN, FILE_UPLOAD, TEXTAREA
    required = Column(Boolean, nullable=False, default=False)
    options = Column(JSON)
    position = Column(Integer, nullable=False, default=0)

    job = relationship("Job", back_populates="custom_fields")


class Profile(Base):
    """
    Student profile, one per user.

    Column names are the single enumeration of student-editable fields;
    schemas.ProfileUpdate mirrors them and a test keeps the two in step.
    """

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    # Step 1: personal
    first_name = Column(String(100))
    middle_name = Column(String(100))
    last_name = Column(String(100))
    date_of_birth = Column(Date)
    gender = Column(String(20))
    blood_group = Column(String(10))
    state_of_domicile = Column(String(100))
    nationality = Column(String(100))
    category = Column(String(50))
    profile_photo = Column(String(500))

    # Step 2: contact + parents + address
    email = Column(String(255))
    calling_mobile = Column(String(20))
    whatsapp_mobile = Column(String(20))
    alternative_mobile = Column(String(20))
    father_name = Column(String(200))
    father_mobile = Column(String(20))
    father_email = Column(String(255))
    father_occupation = Column(String(100))
    father_deceased = Column(Boolean)
    mother_name = Column(String(200))
    mother_mobile = Column(String(20))
    mother_email = Column(String(255))
    mother_occupation = Column(String(100))
    mother_deceased = Column(Boolean)
    current_address = Column(String(500))
    current_city = Column(String(100))
    current_district = Column(String(100))
    current_state = Column(String(100))
    current_pincode = Column(String(10))
    same_as_current = Column(Boolean)
    permanent_address = Column(String(500))
    permanent_city = Column(String(100))
    permanent_district = Column(String(100))
    permanent_state = Column(String(100))
    permanent_pincode = Column(String(10))

    # Step 3: school / pre-university
    tenth_school_name = Column(String(200))
    tenth_board = Column(String(50))
    tenth_passing_year = Column(Integer)
    tenth_percentage = Column(Float)
    tenth_marks_card = Column(String(500))
    academic_level = Column(String(20))  # TWELFTH, DIPLOMA
    has_completed_twelfth = Column(Boolean)
    twelfth_school_name = Column(String(200))
    twelfth_board = Column(String(50))
    twelfth_passing_year = Column(Integer)
    twelfth_percentage = Column(Float)
    twelfth_marks_card = Column(String(500))
    has_completed_diploma = Column(Boolean)
    diploma_college_name = Column(String(200))
    diploma_percentage = Column(Float)
    diploma_certificate = Column(String(500))

    # Step 4: engineering
    college_name = Column(String(200))
    branch = Column(String(50))
    entry_type = Column(String(20))  # REGULAR, LATERAL
    seat_category = Column(String(20))
    usn = Column(String(20), unique=True)
    library_id = Column(String(50))
    batch = Column(String(20))
    branch_mentor = Column(String(200))
    cgpa = Column(Float)
    final_cgpa = Column(Float)
    semesters = Column(JSON)  # [{"semester": 1, "sgpa": 8.1, "marks_card": "..."}]
    has_backlogs = Column(String(5))  # "yes" / "no"
    active_backlogs = Column(Boolean)
    linkedin_link = Column(String(500))
    github_link = Column(String(500))
    leetcode_link = Column(String(500))
    portfolio = Column(String(500))
    skills = Column(JSON)
    resume = Column(String(500))
    resume_upload = Column(String(500))

    # Step 5: college id
    college_id_card = Column(String(500))
    academic_document = Column(String(500))

    # Placement + verification (not student-editable)
    placed_tier = Column(String(10))
    kyc_status = Column(String(20), nullable=False, default="PENDING")
    verified_by = Column(String(36))
    verified_at = Column(DateTime)
    remarks = Column(Text)
    completion_step = Column(Integer, nullable=False, default=1)
    is_complete = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="profile")

    def to_dict(self) -> dict:
        return {c.name: getattr(self, c.name) for c in self.__table__.columns}

    def __repr__(self):
        return f"<Profile {self.user_id} {self.kyc_status}>"


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("job_id", "user_id", name="unique_job_user_application"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    applied_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    resume_used = Column(String(500))
    is_removed = Column(Boolean, nullable=False, default=False)

    job = relationship("Job", back_populates="applications")
    responses = relationship(
        "ApplicationResponse", back_populates="application", cascade="all, delete-orphan"
    )
    attendance = relationship("Attendance", back_populates="application", uselist=False)

    def __repr__(self):
        return f"<Application {self.user_id} -> {self.job_id}>"


class ApplicationResponse(Base):
    __tablename__ = "application_responses"

    id = Column(String(36), primary_key=True, default=new_id)
    application_id = Column(
        String(36), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    field_id = Column(String(36), nullable=False)
    value = Column(Text)

    application = relationship("Application", back_populates="responses")


class Attendance(Base):
    __tablename__ = "attendance"

    id = Column(String(36), primary_key=True, default=new_id)
    application_id = Column(
        String(36), ForeignKey("applications.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    student_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    job_id = Column(String(36), ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False)
    qr_code = Column(String(100), nullable=False)
    scanned_at = Column(DateTime)  # set by the gate scanner

    application = relationship("Application", back_populates="attendance")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(50), nullable=False)  # APPLICATION_STATUS, KYC_STATUS
    data = Column(JSON)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
