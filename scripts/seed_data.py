#!/usr/bin/env python3
"""
Seed an admin account and a few sample jobs.

Jobs are managed by the placement office outside the portal API, so this
is the quickest way to get a local instance into a usable state.
Usage: python scripts/seed_data.py [admin_email] [admin_password]
"""
import sys
sys.path.insert(0, '.')

from datetime import datetime, timedelta

from sqlalchemy import select

from campus_connect.core.auth import hash_password
from campus_connect.db.models import Job, JobCustomField, User
from campus_connect.db.postgres import get_db_session, init_db

SAMPLE_JOBS = [
    {
        "title": "Graduate Engineer Trainee",
        "company_name": "Northwind Systems",
        "tier": "TIER_1",
        "min_cgpa": 7.5,
        "allowed_branches": ["CSE", "ISE"],
        "eligible_batch": "2022-2026",
        "max_backlogs": 0,
        "custom_fields": [
            {"label": "Willing to relocate?", "field_type": "BOOLEAN", "required": True},
            {"label": "Portfolio URL", "field_type": "TEXT", "required": False},
        ],
    },
    {
        "title": "Associate Consultant",
        "company_name": "Contoso Services",
        "tier": "TIER_2",
        "min_cgpa": 6.5,
        "allowed_branches": [],
        "eligible_batch": "2022 - 2026",
    },
    {
        "title": "Research Fellow",
        "company_name": "Fabrikam Labs",
        "tier": "TIER_3",
        "is_dream_offer": True,
        "allowed_branches": ["CSE", "ECE", "EEE"],
    },
]


def main():
    admin_email = sys.argv[1] if len(sys.argv) > 1 else "placement@sdmcet.ac.in"
    admin_password = sys.argv[2] if len(sys.argv) > 2 else "change-me-now"

    print("\n🔧 Seeding Campus Connect")
    print("=" * 50)
    init_db()

    with get_db_session() as db:
        if db.execute(select(User).where(User.email == admin_email)).scalar_one_or_none():
            print(f"⚠️  Admin {admin_email} already exists - skipped")
        else:
            db.add(User(
                name="Placement Office", email=admin_email,
                password_hash=hash_password(admin_password), role="ADMIN",
                email_verified_at=datetime.utcnow()
            ))
            print(f"✅ Admin {admin_email} created")

        added = 0
        for sample in SAMPLE_JOBS:
            fields = dict(sample)
            custom_fields = fields.pop("custom_fields", [])
            exists = db.execute(
                select(Job.id).where(Job.title == fields["title"], Job.company_name == fields["company_name"])
            ).first()
            if exists:
                continue
            job = Job(deadline=datetime.utcnow() + timedelta(days=14), **fields)
            for position, field in enumerate(custom_fields):
                job.custom_fields.append(JobCustomField(position=position, **field))
            db.add(job)
            added += 1

    print(f"✅ {added} sample jobs added")
    print("=" * 50)


if __name__ == "__main__":
    main()
