"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from campus_connect.schemas.schemas import ErrorResponse

from campus_connect.api.routes.auth_routes import router as auth_router
from campus_connect.api.routes.profile_routes import router as profile_router
from campus_connect.api.routes.job_routes import router as job_router
from campus_connect.api.routes.application_routes import router as application_router
from campus_connect.api.routes.upload_routes import router as upload_router
from campus_connect.api.routes.admin_routes import router as admin_router

# Main API router
api_router = APIRouter(responses={
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
})

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(profile_router)
api_router.include_router(job_router)
api_router.include_router(application_router)
api_router.include_router(upload_router)
api_router.include_router(admin_router)
