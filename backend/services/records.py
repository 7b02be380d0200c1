import logging
import time
from dataclasses import dataclass
from datetime import date, datetime, time as dt_time

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from backend.exceptions import PatientNotFoundError, StoreUnavailableError
from backend.models.patient import PatientRecord, TestResultRecord
from backend.schemas.report import PatientIdentity

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10
CREATE_ATTEMPTS = 2


@dataclass
class PatientFilters:
    name: str | None = None
    registration_number: str | None = None
    test_type: str | None = None
    date_from: date | None = None
    date_to: date | None = None


def generate_registration_number() -> str:
    return f"REG{int(time.time() * 1000)}"


def next_serial_number(db: Session) -> int:
    current = db.query(func.max(PatientRecord.serial_number)).scalar()
    return (current or 0) + 1


def get_patient(db: Session, patient_id: str) -> PatientRecord:
    try:
        patient = db.query(PatientRecord).filter(PatientRecord.id == patient_id).first()
    except SQLAlchemyError as exc:
        logger.exception("Failed to load patient %s", patient_id)
        raise StoreUnavailableError(str(exc)) from exc
    if not patient:
        raise PatientNotFoundError(f"Patient {patient_id} not found")
    return patient


def _create_patient(db: Session, identity: PatientIdentity) -> PatientRecord:
    last_error: IntegrityError | None = None
    for attempt in range(CREATE_ATTEMPTS):
        registration_number = generate_registration_number()
        if attempt:
            registration_number = f"{registration_number}-{attempt}"
        patient = PatientRecord(
            name=identity.name,
            age=identity.age,
            sex=identity.sex,
            phone=identity.phone or None,
            referred_by=identity.referred_by or "Self",
            registration_number=registration_number,
            serial_number=next_serial_number(db),
        )
        db.add(patient)
        try:
            db.flush()
        except IntegrityError as exc:
            # serial or registration number taken by a concurrent insert
            db.rollback()
            last_error = exc
            logger.warning("Patient number collision on attempt %d, retrying", attempt + 1)
            continue
        logger.info("Created patient %s (serial %d)", patient.registration_number, patient.serial_number)
        return patient
    raise StoreUnavailableError("Could not allocate a patient number") from last_error


def find_or_create_patient(
    db: Session,
    identity: PatientIdentity,
    existing_patient_id: str | None = None,
) -> tuple[PatientRecord, bool]:
    """Return the patient for a submission and whether it was newly created."""
    if existing_patient_id:
        return get_patient(db, existing_patient_id), False
    try:
        return _create_patient(db, identity), True
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to create patient")
        raise StoreUnavailableError(str(exc)) from exc


def insert_test_result(db: Session, patient_id: str, test_type: str, test_data: dict) -> TestResultRecord:
    record = TestResultRecord(patient_id=patient_id, test_type=test_type, test_data=test_data)
    try:
        db.add(record)
        db.commit()
        db.refresh(record)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to insert %s test result for patient %s", test_type, patient_id)
        raise StoreUnavailableError(str(exc)) from exc
    return record


def get_test_result(db: Session, test_result_id: str) -> TestResultRecord | None:
    return (
        db.query(TestResultRecord)
        .options(selectinload(TestResultRecord.patient))
        .filter(TestResultRecord.id == test_result_id)
        .first()
    )


def search_patients(db: Session, term: str) -> list[PatientRecord]:
    term = term.strip()
    if not term:
        return []
    pattern = f"%{term.lower()}%"
    return (
        db.query(PatientRecord)
        .filter(
            or_(
                func.lower(PatientRecord.name).like(pattern),
                func.lower(PatientRecord.registration_number).like(pattern),
            )
        )
        .order_by(PatientRecord.created_at.desc())
        .limit(SEARCH_LIMIT)
        .all()
    )


def list_patients_with_results(db: Session, filters: PatientFilters) -> list[PatientRecord]:
    query = db.query(PatientRecord).options(selectinload(PatientRecord.test_results))

    if filters.name and filters.name.strip():
        query = query.filter(func.lower(PatientRecord.name).like(f"%{filters.name.strip().lower()}%"))
    if filters.registration_number and filters.registration_number.strip():
        pattern = f"%{filters.registration_number.strip().lower()}%"
        query = query.filter(func.lower(PatientRecord.registration_number).like(pattern))
    if filters.test_type and filters.test_type != "all":
        query = query.filter(PatientRecord.test_results.any(TestResultRecord.test_type == filters.test_type))
    if filters.date_from:
        query = query.filter(PatientRecord.created_at >= datetime.combine(filters.date_from, dt_time.min))
    if filters.date_to:
        query = query.filter(PatientRecord.created_at <= datetime.combine(filters.date_to, dt_time.max))

    return query.order_by(PatientRecord.created_at.desc()).all()
