from datetime import datetime

from pydantic import BaseModel, ConfigDict


class TestResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    test_type: str
    test_data: dict
    reported_on: datetime


class PatientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    age: int
    sex: str
    phone: str | None
    registration_number: str
    serial_number: int
    referred_by: str
    created_at: datetime


class PatientWithResults(PatientResponse):
    test_results: list[TestResultResponse]
