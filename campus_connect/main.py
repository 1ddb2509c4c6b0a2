"""
Campus Placement Portal - Main Application

FastAPI backend with:
- PostgreSQL for users, profiles, jobs and applications
- MongoDB for the admin document projection
- JWT authentication
- Local file storage for uploaded documents

Run: uvicorn campus_connect.main:app --reload
"""

import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException

from campus_connect.api import api_router
from campus_connect.core.config import get_settings
from campus_connect.core.exceptions import PortalError
from campus_connect.core.logging_config import setup_logging
from campus_connect.db.mongodb import init_mongo_indexes
from campus_connect.db.postgres import init_db

settings = get_settings()
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Campus Placement Portal",
    description="""
    Campus placement portal for students and the placement office.

    ## Features
    - **Authentication**: JWT-based auth with email verification
    - **Profile**: Multi-step student profile with KYC review
    - **Jobs**: Eligibility-gated job listings and applications
    - **Applications**: Custom-field responses, attendance QR code
    - **Admin**: Document review queue, KYC decisions

    ## Databases
    - PostgreSQL: Structured data (users, profiles, jobs, applications)
    - MongoDB: Document projection for KYC review
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================
# ERROR HANDLERS
# ============================================================

@app.exception_handler(PortalError)
async def portal_error_handler(request: Request, exc: PortalError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail), "kind": "http"},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=422,
        content={"error": f"{location}: {message}" if location else message, "kind": "validation"}
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "kind": "internal"})


# Include API routes
app.include_router(api_router, prefix="/api")

# Serve uploaded documents
os.makedirs(settings.upload_dir, exist_ok=True)
app.mount(settings.upload_url_prefix, StaticFiles(directory=settings.upload_dir), name="uploads")


# Startup event
@app.on_event("startup")
async def startup_event():
    """Create tables and MongoDB indexes on startup."""
    init_db()
    logger.info("Database tables ready")
    try:
        init_mongo_indexes()
        logger.info("MongoDB indexes initialized")
    except Exception as e:
        logger.warning("MongoDB index initialization failed: %s", e)


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check."""
    from campus_connect.db.postgres import test_postgres_connection
    from campus_connect.db.mongodb import test_mongo_connection

    return {
        "status": "healthy",
        "postgres": "connected" if test_postgres_connection() else "disconnected",
        "mongodb": "connected" if test_mongo_connection() else "disconnected"
    }
