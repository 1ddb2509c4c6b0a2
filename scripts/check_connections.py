#!/usr/bin/env python3
"""
Connection Check Script

Run this to verify the database, MongoDB and SMTP settings.
Usage: python scripts/check_connections.py
"""
import sys
sys.path.insert(0, '.')

from campus_connect.core.config import get_settings
from campus_connect.db.postgres import test_postgres_connection
from campus_connect.db.mongodb import test_mongo_connection
from campus_connect.services.email_service import EmailDeliveryError, get_transport, reset_transport


def main():
    settings = get_settings()
    print("=" * 50)
    print("CAMPUS CONNECT - CONNECTION CHECK")
    print("=" * 50)

    # Relational database
    print("\n[1] Checking database...")
    print(f"    URL: {settings.sqlalchemy_url.split('@')[-1]}")
    if test_postgres_connection():
        print("    ✅ Database: CONNECTED")
    else:
        print("    ❌ Database: FAILED")

    # MongoDB
    print("\n[2] Checking MongoDB...")
    print(f"    URI: {settings.mongodb_uri}")
    print(f"    Database: {settings.mongodb_db}")
    if test_mongo_connection():
        print("    ✅ MongoDB: CONNECTED")
    else:
        print("    ❌ MongoDB: FAILED")

    # SMTP (only if credentials are set)
    print("\n[3] Checking SMTP...")
    if settings.smtp_configured:
        print(f"    Host: {settings.smtp_host}:{settings.smtp_port}")
        try:
            get_transport().noop()
            print("    ✅ SMTP: CONNECTED")
        except (EmailDeliveryError, OSError) as e:
            print(f"    ❌ SMTP: FAILED ({e})")
        finally:
            reset_transport()
    else:
        print("    ⚠️  SMTP: credentials not configured (verification emails are skipped)")

    print("\n" + "=" * 50)
    print("Connection check complete!")
    print("=" * 50)


if __name__ == "__main__":
    main()
