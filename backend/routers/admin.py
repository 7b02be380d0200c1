from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from backend.config import settings
from backend.database import get_db
from backend.routers.deps import get_current_admin
from backend.routers.reports import pdf_response
from backend.schemas.patient import PatientWithResults
from backend.services.records import PatientFilters, get_test_result, list_patients_with_results
from backend.services.renderer import report_filename
from backend.services.report_builder import regenerate_report_pdf

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(get_current_admin)])


@router.get("/patients")
def list_patients(
    name: str | None = Query(default=None),
    reg_no: str | None = Query(default=None),
    test_type: str | None = Query(default=None),
    date_from: date | None = Query(default=None),
    date_to: date | None = Query(default=None),
    db: Session = Depends(get_db),
):
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="date_from must not be after date_to")

    filters = PatientFilters(
        name=name,
        registration_number=reg_no,
        test_type=test_type,
        date_from=date_from,
        date_to=date_to,
    )
    patients = list_patients_with_results(db, filters)
    return {
        "statusCode": 200,
        "message": "Success",
        "data": {
            "patients": [PatientWithResults.model_validate(p).model_dump(mode="json") for p in patients],
            "total": len(patients),
        },
    }


@router.get("/test-results/{test_result_id}/pdf")
def download_report(test_result_id: str, db: Session = Depends(get_db)):
    test_result = get_test_result(db, test_result_id)
    if not test_result:
        raise HTTPException(status_code=404, detail="Test result not found")

    patient = test_result.patient
    content = regenerate_report_pdf(patient, test_result)
    return pdf_response(content, report_filename(settings.org_slug, test_result.test_type, patient.name))
