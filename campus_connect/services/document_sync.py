"""
Document Sync Projection

Every successful profile save upserts a flat record into the MongoDB
`documents` collection: USN, CGPA and every marks-card link. The admin
KYC review page reads only this collection.

The projection keeps its own kyc_status and every sync resets it to
PENDING, whatever the profile's status is. An edited profile therefore
shows up for admin re-review even when the profile itself is still
VERIFIED. Admin decisions write the projection status back through
set_status().
"""

import logging
from datetime import datetime
from typing import List, Optional

from pymongo import DESCENDING
from pymongo.collection import Collection

from campus_connect.db.mongodb import get_collection, COLLECTIONS

logger = logging.getLogger(__name__)

PROJECTION_RESET_STATUS = "PENDING"


def semester_link_field(semester) -> str:
    return f"sem{semester}_link"


def build_document_fields(payload: dict) -> dict:
    """
    Map a sanitized profile payload to the projection's $set fields.

    Only values present (and truthy) in this save are copied, so a partial
    save never blanks links stored by an earlier one. kyc_status is always
    reset.
    """
    fields = {}

    if payload.get("usn"):
        fields["usn"] = payload["usn"]

    final_cgpa = payload.get("final_cgpa")
    if final_cgpa:
        try:
            fields["cgpa"] = float(final_cgpa)
        except (TypeError, ValueError):
            logger.warning("Skipping unparseable final_cgpa %r", final_cgpa)

    if payload.get("tenth_marks_card"):
        fields["tenth_marks_card_link"] = payload["tenth_marks_card"]
    if payload.get("twelfth_marks_card"):
        fields["twelfth_marks_card_link"] = payload["twelfth_marks_card"]

    semesters = payload.get("semesters")
    if isinstance(semesters, list):
        for sem in semesters:
            if isinstance(sem, dict) and sem.get("semester") and sem.get("marks_card"):
                fields[semester_link_field(sem["semester"])] = sem["marks_card"]

    fields["kyc_status"] = PROJECTION_RESET_STATUS
    return fields


def _clean(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    doc.pop("_id", None)
    return doc


class DocumentSyncService:
    """
    Handles the admin document projection.
    """

    def __init__(self, collection: Optional[Collection] = None):
        if collection is None:
            collection = get_collection(COLLECTIONS["documents"])
        self.collection: Collection = collection

    def sync(self, user_id: str, payload: dict) -> dict:
        """Upsert the projection for `user_id` from one profile save."""
        now = datetime.utcnow()
        fields = build_document_fields(payload)
        fields["updated_at"] = now
        self.collection.update_one(
            {"user_id": user_id},
            {"$set": fields, "$setOnInsert": {"created_at": now}},
            upsert=True
        )
        logger.info("Synced documents for user %s to admin projection", user_id)
        return fields

    def set_status(self, user_id: str, kyc_status: str) -> None:
        self.collection.update_one(
            {"user_id": user_id},
            {"$set": {"kyc_status": kyc_status, "updated_at": datetime.utcnow()}}
        )

    def get(self, user_id: str) -> Optional[dict]:
        return _clean(self.collection.find_one({"user_id": user_id}))

    def list_documents(self, kyc_status: Optional[str] = None) -> List[dict]:
        query = {"kyc_status": kyc_status} if kyc_status else {}
        cursor = self.collection.find(query).sort("updated_at", DESCENDING)
        return [_clean(doc) for doc in cursor]
