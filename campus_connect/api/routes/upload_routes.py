"""
Upload Routes

POST /uploads - Store a document (marks card, resume, ID card) and return its URL
GET /uploads/formats - Get supported formats
"""

import posixpath
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from campus_connect.core.auth import get_current_user
from campus_connect.utils.file_upload import get_supported_formats, normalize_folder, save_upload
from campus_connect.schemas.schemas import UploadResponse

router = APIRouter(prefix="/uploads", tags=["Uploads"])


@router.post("", response_model=UploadResponse, status_code=201)
async def upload_file(
    file: UploadFile = File(..., description="PDF, DOC, DOCX or image (max 5MB)"),
    folder: Optional[str] = Form(None),
    user: dict = Depends(get_current_user)
):
    """Upload a file; the returned URL goes into a profile link field."""
    url = await save_upload(file, folder)
    return UploadResponse(url=url, folder=normalize_folder(folder), filename=posixpath.basename(url))


@router.get("/formats")
async def upload_formats():
    """Get supported upload formats."""
    return get_supported_formats()
