"""
Database module - relational (SQLAlchemy) and MongoDB connections.
"""
from campus_connect.db.postgres import get_db_session, test_postgres_connection
from campus_connect.db.mongodb import get_mongo_db, test_mongo_connection

__all__ = [
    "get_db_session",
    "test_postgres_connection",
    "get_mongo_db",
    "test_mongo_connection"
]
