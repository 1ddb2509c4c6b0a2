"""
Authentication Routes

POST /auth/register - Register new student account
POST /auth/login - Login and get JWT token
GET /auth/me - Get current user info
GET /auth/verify-email - Consume an email verification token
POST /auth/resend-verification - Send a fresh verification email
"""

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy import select

from campus_connect.db.models import User
from campus_connect.db.postgres import get_db_session
from campus_connect.core.auth import hash_password, verify_password, create_access_token, get_current_user
from campus_connect.core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from campus_connect.services.email_service import deliver_verification_email, verify_email_token
from campus_connect.schemas.schemas import (
    RegisterRequest, LoginRequest, ResendVerificationRequest, TokenResponse, UserResponse, MessageResponse
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=MessageResponse, status_code=201)
async def register(request: RegisterRequest, background_tasks: BackgroundTasks):
    """
    Register a new student account.

    A verification email is sent in the background; failure to send
    does not fail registration.
    """
    with get_db_session() as db:
        if db.execute(select(User.id).where(User.email == request.email)).first():
            raise ConflictError("User with this email already exists")

        db.add(User(
            name=request.name.strip(),
            email=request.email,
            password_hash=hash_password(request.password),
            role="STUDENT"
        ))

    background_tasks.add_task(deliver_verification_email, request.email, request.name)

    return MessageResponse(
        message="User created successfully. Please check your email to verify your account."
    )


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest):
    """
    Login and receive JWT access token.

    Include token in requests: Authorization: Bearer <token>
    """
    with get_db_session() as db:
        user = db.execute(
            select(User).where(User.email == request.email.lower().strip())
        ).scalar_one_or_none()

    if not user or not verify_password(request.password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    token = create_access_token(data={"sub": user.id, "role": user.role})

    return TokenResponse(access_token=token, user_id=user.id, role=user.role)


@router.get("/me", response_model=UserResponse)
async def get_me(user: dict = Depends(get_current_user)):
    """Get current authenticated user's info."""
    with get_db_session() as db:
        row = db.get(User, user["user_id"])

    return UserResponse(
        user_id=row.id, name=row.name, email=row.email, role=row.role,
        email_verified=row.email_verified_at is not None, created_at=row.created_at
    )


@router.get("/verify-email", response_model=MessageResponse)
async def verify_email(token: str = Query(..., min_length=1)):
    result = verify_email_token(token)
    if not result.success:
        raise ValidationError(result.error)
    return MessageResponse(message=f"Email {result.email} verified. You can now log in.")


@router.post("/resend-verification", response_model=MessageResponse)
async def resend_verification(request: ResendVerificationRequest, background_tasks: BackgroundTasks):
    email = request.email.lower().strip()
    with get_db_session() as db:
        user = db.execute(select(User).where(User.email == email)).scalar_one_or_none()

    if user is None:
        raise NotFoundError("No account registered with this email")
    if user.email_verified_at is not None:
        return MessageResponse(message="Email already verified")

    background_tasks.add_task(deliver_verification_email, email, user.name)
    return MessageResponse(message="Verification email sent")
