import mongomock

from campus_connect.services.document_sync import (
    PROJECTION_RESET_STATUS, DocumentSyncService, build_document_fields, semester_link_field
)


def make_service():
    return DocumentSyncService(collection=mongomock.MongoClient().db.documents)


def test_build_fields_maps_links():
    fields = build_document_fields({
        "usn": "2SD22CS001",
        "final_cgpa": "8.91",
        "tenth_marks_card": "/uploads/m/10.pdf",
        "twelfth_marks_card": "/uploads/m/12.pdf",
        "semesters": [
            {"semester": 1, "marks_card": "/uploads/m/s1.pdf"},
            {"semester": 2, "marks_card": ""},
            {"semester": 3},
        ],
    })
    assert fields == {
        "usn": "2SD22CS001",
        "cgpa": 8.91,
        "tenth_marks_card_link": "/uploads/m/10.pdf",
        "twelfth_marks_card_link": "/uploads/m/12.pdf",
        "sem1_link": "/uploads/m/s1.pdf",
        "kyc_status": "PENDING",
    }


def test_build_fields_always_resets_status():
    assert build_document_fields({}) == {"kyc_status": PROJECTION_RESET_STATUS}
    assert build_document_fields({"kyc_status": "VERIFIED"})["kyc_status"] == "PENDING"


def test_unparseable_cgpa_is_skipped():
    assert "cgpa" not in build_document_fields({"final_cgpa": "eight"})


def test_semester_link_field():
    assert semester_link_field(7) == "sem7_link"


def test_sync_upserts_one_document_per_user():
    service = make_service()
    service.sync("u1", {"usn": "2SD22CS001", "tenth_marks_card": "/uploads/m/10.pdf"})
    service.sync("u1", {"twelfth_marks_card": "/uploads/m/12.pdf"})

    assert service.collection.count_documents({"user_id": "u1"}) == 1
    doc = service.get("u1")
    assert "_id" not in doc
    assert doc["usn"] == "2SD22CS001"
    assert doc["tenth_marks_card_link"] == "/uploads/m/10.pdf"
    assert doc["twelfth_marks_card_link"] == "/uploads/m/12.pdf"
    assert doc["created_at"] <= doc["updated_at"]


def test_set_status_and_filtered_listing():
    service = make_service()
    service.sync("u1", {"usn": "A"})
    service.sync("u2", {"usn": "B"})
    service.set_status("u2", "VERIFIED")

    assert [d["user_id"] for d in service.list_documents("VERIFIED")] == ["u2"]
    assert [d["user_id"] for d in service.list_documents("PENDING")] == ["u1"]
    assert {d["user_id"] for d in service.list_documents()} == {"u1", "u2"}


def test_edit_after_verification_resets_status():
    service = make_service()
    service.sync("u1", {"usn": "A"})
    service.set_status("u1", "VERIFIED")
    service.sync("u1", {"github_link": "https://github.com/a"})
    assert service.get("u1")["kyc_status"] == "PENDING"


def test_get_unknown_user():
    assert make_service().get("nobody") is None
