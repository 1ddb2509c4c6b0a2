"""
Schemas module - Request/Response schemas for API endpoints.

Difference from models:
- Models (campus_connect.db.models): database tables
- Schemas: API contract (what client sends/receives)
"""
