from datetime import date, datetime

import pytest
from sqlalchemy import delete

from backend.exceptions import PatientNotFoundError
from backend.models.patient import PatientRecord, TestResultRecord
from backend.schemas.report import PatientIdentity
from backend.services import records


def _identity(name="Asha Verma", **overrides):
    return PatientIdentity(name=name, age=overrides.pop("age", 34), **overrides)


def test_new_patient_gets_registration_and_serial(db_session):
    patient, is_new = records.find_or_create_patient(db_session, _identity())
    db_session.commit()

    assert is_new
    assert patient.registration_number.startswith("REG")
    assert patient.registration_number[3:].isdigit()
    assert patient.serial_number == 1
    assert patient.referred_by == "Self"
    assert records.next_serial_number(db_session) == 2


def test_existing_patient_is_reused(db_session):
    patient, _ = records.find_or_create_patient(db_session, _identity())
    db_session.commit()

    again, is_new = records.find_or_create_patient(db_session, _identity("Someone Else"), patient.id)
    assert not is_new
    assert again.id == patient.id
    assert again.name == "Asha Verma"


def test_missing_existing_patient_raises(db_session):
    with pytest.raises(PatientNotFoundError):
        records.find_or_create_patient(db_session, _identity(), "missing")


def test_registration_collision_is_retried(db_session, monkeypatch, caplog):
    monkeypatch.setattr(records, "generate_registration_number", lambda: "REG1700000000000")
    first, _ = records.find_or_create_patient(db_session, _identity())
    db_session.commit()

    with caplog.at_level("WARNING"):
        second, _ = records.find_or_create_patient(db_session, _identity("Ravi Kumar"))
    db_session.commit()

    assert first.registration_number == "REG1700000000000"
    assert second.registration_number == "REG1700000000000-1"
    assert second.serial_number == 2
    assert "collision" in caplog.text


def test_test_data_is_stored_verbatim(db_session):
    patient, _ = records.find_or_create_patient(db_session, _identity())
    blob = {"values": {"hemoglobin": "9.0", "rbcCount": ""}, "custom_tests": []}
    result = records.insert_test_result(db_session, patient.id, "CBC", blob)

    stored = records.get_test_result(db_session, result.id)
    assert stored.test_data == blob
    assert stored.patient.id == patient.id


def test_deleting_patient_cascades_to_results(db_session):
    patient, _ = records.find_or_create_patient(db_session, _identity())
    records.insert_test_result(db_session, patient.id, "CBC", {"values": {"hemoglobin": "12"}})

    db_session.execute(delete(PatientRecord).where(PatientRecord.id == patient.id))
    db_session.commit()

    assert db_session.query(TestResultRecord).count() == 0


def test_search_limits_results(db_session, monkeypatch):
    numbers = iter(range(1700000000000, 1700000000100))
    monkeypatch.setattr(records, "generate_registration_number", lambda: f"REG{next(numbers)}")
    for index in range(12):
        records.find_or_create_patient(db_session, _identity(f"Patient {index}"))
        db_session.commit()

    assert len(records.search_patients(db_session, "patient")) == records.SEARCH_LIMIT
    assert records.search_patients(db_session, "") == []


def test_filters_combine(db_session, monkeypatch):
    numbers = iter(range(1700000000000, 1700000000100))
    monkeypatch.setattr(records, "generate_registration_number", lambda: f"REG{next(numbers)}")
    rows = [
        ("Asha Verma", datetime(2026, 10, 1, 8, 0), "LFT"),
        ("Asha Rao", datetime(2026, 10, 3, 8, 0), "CBC"),
        ("Ravi Kumar", datetime(2026, 10, 3, 9, 0), "LFT"),
    ]
    for name, created_at, test_type in rows:
        patient, _ = records.find_or_create_patient(db_session, _identity(name))
        patient.created_at = created_at
        records.insert_test_result(db_session, patient.id, test_type, {"values": {}})

    filters = records.PatientFilters(name="asha", test_type="LFT")
    assert [p.name for p in records.list_patients_with_results(db_session, filters)] == ["Asha Verma"]

    filters = records.PatientFilters(date_from=date(2026, 10, 3), date_to=date(2026, 10, 3))
    assert [p.name for p in records.list_patients_with_results(db_session, filters)] == ["Ravi Kumar", "Asha Rao"]
