from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.routers.deps import get_current_admin
from backend.schemas.patient import PatientResponse
from backend.services.records import search_patients

router = APIRouter(prefix="/api/patients", tags=["patients"], dependencies=[Depends(get_current_admin)])


@router.get("/search")
def search(q: str = Query(default=""), db: Session = Depends(get_db)):
    patients = search_patients(db, q)
    return {
        "statusCode": 200,
        "message": "Success",
        "data": [PatientResponse.model_validate(p).model_dump(mode="json") for p in patients],
    }
