import unicodedata
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from backend.config import settings
from backend.database import get_db
from backend.routers.deps import get_current_admin
from backend.schemas.catalog import TestType
from backend.schemas.patient import PatientResponse, TestResultResponse
from backend.schemas.report import ReportMetadata, ReportSubmission
from backend.services.assembler import assemble
from backend.services.catalog import get_test_type, list_test_types
from backend.services.records import find_or_create_patient, insert_test_result
from backend.services.renderer import report_filename
from backend.services.report_builder import generate_report_pdf

router = APIRouter(prefix="/api", tags=["reports"], dependencies=[Depends(get_current_admin)])


def content_disposition(filename: str) -> str:
    """Attachment header that survives any patient name.

    Header values must be latin-1, so the plain `filename` parameter carries an
    ASCII rendition and the exact name goes in the RFC 5987 `filename*` form.
    """
    ascii_name = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    ascii_name = ascii_name.replace('"', "_").replace("\\", "_")
    header = f'attachment; filename="{ascii_name}"'
    if ascii_name != filename:
        header += f"; filename*=UTF-8''{quote(filename)}"
    return header


def pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": content_disposition(filename)},
    )


@router.get("/catalog", response_model=list[TestType])
def catalog():
    return list_test_types()


@router.post("/reports/pdf")
def generate_pdf(payload: ReportSubmission):
    test_type = get_test_type(payload.test_type)
    metadata = ReportMetadata(
        test_type=test_type.code,
        registration_number=payload.registration_number,
        serial_number=payload.serial_number,
    )
    content = generate_report_pdf(payload.identity(), metadata, payload.values, payload.custom_tests)
    return pdf_response(content, report_filename(settings.org_slug, test_type.code, payload.patient_name))


@router.post("/reports")
def save_report(payload: ReportSubmission, db: Session = Depends(get_db)):
    test_type = get_test_type(payload.test_type)
    # reject empty submissions before anything is persisted
    assemble(test_type.code, payload.values, payload.custom_tests)
    patient, is_new = find_or_create_patient(db, payload.identity(), payload.existing_patient_id)
    test_result = insert_test_result(db, patient.id, test_type.code, payload.test_data())
    db.refresh(patient)

    return {
        "statusCode": 200,
        "message": "Patient data saved",
        "data": {
            "patient": PatientResponse.model_validate(patient).model_dump(mode="json"),
            "test_result": TestResultResponse.model_validate(test_result).model_dump(mode="json"),
            "is_new_patient": is_new,
        },
    }
