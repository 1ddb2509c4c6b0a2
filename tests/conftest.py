"""
Shared fixtures.

The relational store is a throwaway SQLite file and MongoDB is replaced by
mongomock, so the suite runs without any external service. Environment
variables are set before the first campus_connect import because settings
are read once per process.
"""

import os
import tempfile
from datetime import datetime, timedelta

_TMP_DIR = tempfile.mkdtemp(prefix="campus-connect-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'portal.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["SMTP_USERNAME"] = ""
os.environ["SMTP_PASSWORD"] = ""
os.environ["LOG_LEVEL"] = "WARNING"

import mongomock
import pytest
from fastapi.testclient import TestClient

from campus_connect.core.auth import create_access_token, hash_password
from campus_connect.db.models import Base, Job, JobCustomField, Profile, User
from campus_connect.db.mongodb import set_mongo_client
from campus_connect.db.postgres import engine, get_db_session


@pytest.fixture(autouse=True)
def database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine


@pytest.fixture(autouse=True)
def mongo():
    client = mongomock.MongoClient()
    set_mongo_client(client)
    yield client


@pytest.fixture
def documents(mongo):
    from campus_connect.core.config import get_settings
    return mongo[get_settings().mongodb_db]["documents"]


@pytest.fixture
def client():
    from campus_connect.main import app
    with TestClient(app) as test_client:
        yield test_client


# ============================================================
# FACTORIES
# ============================================================

def create_user(email="student@example.com", role="STUDENT", name="Test Student", password="password123"):
    with get_db_session() as db:
        user = User(name=name, email=email, password_hash=hash_password(password), role=role)
        db.add(user)
    return user


def create_job(custom_fields=(), **overrides):
    fields = {
        "title": "Software Engineer",
        "company_name": "Acme Corp",
        "tier": "TIER_2",
        "status": "ACTIVE",
        "is_visible": True,
        "deadline": datetime.utcnow() + timedelta(days=7),
        "allowed_branches": [],
    }
    fields.update(overrides)
    with get_db_session() as db:
        job = Job(**fields)
        for position, field_def in enumerate(custom_fields):
            job.custom_fields.append(JobCustomField(position=position, **field_def))
        db.add(job)
    return job


def create_profile(user_id, **overrides):
    fields = {
        "first_name": "Asha",
        "last_name": "Rao",
        "usn": f"2SD22CS{user_id[:3]}",
        "branch": "CSE",
        "batch": "2022-2026",
        "cgpa": 8.5,
        "kyc_status": "VERIFIED",
    }
    fields.update(overrides)
    with get_db_session() as db:
        profile = Profile(user_id=user_id, **fields)
        db.add(profile)
    return profile


def auth_headers(user) -> dict:
    token = create_access_token({"sub": user.id, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def student():
    return create_user()


@pytest.fixture
def admin():
    return create_user(email="admin@example.com", role="ADMIN", name="Placement Office")


@pytest.fixture
def verified_profile(student):
    return create_profile(student.id)
