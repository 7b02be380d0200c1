from datetime import datetime

import pytest

from backend.models.patient import PatientRecord, TestResultRecord


@pytest.fixture()
def patients(db_session):
    rows = [
        ("Asha Verma", "REG1001", 1, datetime(2026, 10, 1, 9, 0), "LFT", {"values": {"sgptAlt": "45"}, "custom_tests": []}),
        ("Ravi Kumar", "REG1002", 2, datetime(2026, 10, 5, 23, 30), "CBC", {"values": {"hemoglobin": "9"}, "custom_tests": []}),
        ("Meena Iyer", "REG1003", 3, datetime(2026, 10, 9, 12, 0), "CBC", {"hemoglobin": "12"}),
    ]
    created = []
    for name, reg, serial, created_at, test_type, test_data in rows:
        patient = PatientRecord(
            name=name,
            age=40,
            sex="F",
            registration_number=reg,
            serial_number=serial,
            referred_by="Self",
            created_at=created_at,
        )
        patient.test_results.append(TestResultRecord(test_type=test_type, test_data=test_data, reported_on=created_at))
        db_session.add(patient)
        created.append(patient)
    db_session.commit()
    return created


def _names(response):
    assert response.status_code == 200
    return [patient["name"] for patient in response.json()["data"]["patients"]]


def test_list_is_newest_first(client, auth_headers, patients):
    response = client.get("/api/admin/patients", headers=auth_headers)
    assert _names(response) == ["Meena Iyer", "Ravi Kumar", "Asha Verma"]
    assert response.json()["data"]["total"] == 3
    first = response.json()["data"]["patients"][0]
    assert first["test_results"][0]["test_type"] == "CBC"


def test_filter_by_name_and_registration(client, auth_headers, patients):
    assert _names(client.get("/api/admin/patients", params={"name": "RAVI"}, headers=auth_headers)) == ["Ravi Kumar"]
    assert _names(client.get("/api/admin/patients", params={"reg_no": "1003"}, headers=auth_headers)) == ["Meena Iyer"]


def test_filter_by_test_type(client, auth_headers, patients):
    response = client.get("/api/admin/patients", params={"test_type": "CBC"}, headers=auth_headers)
    assert _names(response) == ["Meena Iyer", "Ravi Kumar"]

    response = client.get("/api/admin/patients", params={"test_type": "all"}, headers=auth_headers)
    assert len(_names(response)) == 3


def test_date_to_includes_whole_day(client, auth_headers, patients):
    params = {"date_from": "2026-10-02", "date_to": "2026-10-05"}
    assert _names(client.get("/api/admin/patients", params=params, headers=auth_headers)) == ["Ravi Kumar"]


def test_inverted_date_range_is_rejected(client, auth_headers, patients):
    params = {"date_from": "2026-10-09", "date_to": "2026-10-01"}
    response = client.get("/api/admin/patients", params=params, headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "BadRequest"


def test_download_regenerates_pdf(client, auth_headers, patients):
    result_id = patients[0].test_results[0].id
    response = client.get(f"/api/admin/test-results/{result_id}/pdf", headers=auth_headers)
    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")
    assert "sugar_diagnostic_lft_report_Asha_Verma.pdf" in response.headers["content-disposition"]


def test_download_handles_flat_legacy_blob(client, auth_headers, patients):
    result_id = patients[2].test_results[0].id
    response = client.get(f"/api/admin/test-results/{result_id}/pdf", headers=auth_headers)
    assert response.status_code == 200
    assert response.content.startswith(b"%PDF")


def test_download_missing_result(client, auth_headers):
    response = client.get("/api/admin/test-results/missing/pdf", headers=auth_headers)
    assert response.status_code == 404
    assert response.json()["message"] == "Test result not found"


def test_admin_routes_require_auth(client):
    assert client.get("/api/admin/patients").status_code == 401
