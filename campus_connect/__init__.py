"""
Campus Placement Portal
Student profiles, KYC review and eligibility-gated job applications.

Architecture:
- PostgreSQL: Structured data (users, profiles, jobs, applications, attendance)
- MongoDB: Flat document projection read by the admin KYC review page
"""

__version__ = "1.0.0"
