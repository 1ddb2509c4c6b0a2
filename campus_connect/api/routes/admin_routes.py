"""
Admin Routes

GET /admin/documents - KYC review queue (document projection)
PUT /admin/profiles/{user_id}/kyc - Verify or reject a student profile
DELETE /admin/applications/{application_id} - Soft-delete an application
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from campus_connect.core.auth import get_current_admin
from campus_connect.services.application_service import get_application_workflow
from campus_connect.services.document_sync import DocumentSyncService
from campus_connect.services.profile_service import get_profile_service
from campus_connect.schemas.schemas import (
    DocumentListResponse, DocumentResponse, KycDecisionRequest, KycStatus, MessageResponse,
    ProfileResponse
)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.get("/documents", response_model=DocumentListResponse)
async def list_documents(
    kyc_status: Optional[KycStatus] = Query(None, description="Filter by projection status"),
    admin: dict = Depends(get_current_admin)
):
    """Documents submitted by students, most recently updated first."""
    documents = DocumentSyncService().list_documents(kyc_status.value if kyc_status else None)
    return DocumentListResponse(
        documents=[DocumentResponse.model_validate(doc) for doc in documents],
        total=len(documents)
    )


@router.put("/profiles/{user_id}/kyc", response_model=ProfileResponse)
async def decide_kyc(user_id: str, decision: KycDecisionRequest, admin: dict = Depends(get_current_admin)):
    """Mark a student profile VERIFIED or REJECTED."""
    profile = get_profile_service().set_kyc_decision(
        user_id, decision.status, admin["user_id"], remarks=decision.remarks
    )
    return ProfileResponse.model_validate(profile)


@router.delete("/applications/{application_id}", response_model=MessageResponse)
async def remove_application(application_id: str, admin: dict = Depends(get_current_admin)):
    """Remove an application; the student may apply to the job again."""
    get_application_workflow().remove_application(application_id)
    return MessageResponse(message="Application removed")
