import logging
from collections.abc import Iterable, Mapping
from datetime import datetime

from backend.models.patient import PatientRecord, TestResultRecord
from backend.schemas.report import CustomTest, DataRow, Flag, PatientIdentity, ReportMetadata
from backend.services.assembler import assemble
from backend.services.catalog import get_test_type
from backend.services.renderer import render_report

logger = logging.getLogger(__name__)


def generate_report_pdf(
    identity: PatientIdentity,
    metadata: ReportMetadata,
    values: Mapping[str, str | None],
    custom_tests: Iterable[CustomTest] = (),
    now: datetime | None = None,
) -> bytes:
    # resolve first so strict mode rejects unknown types before any work
    test_type = get_test_type(metadata.test_type)
    rows = assemble(test_type.code, values, custom_tests)
    flagged = sum(1 for row in rows if isinstance(row, DataRow) and row.flag != Flag.NORMAL)
    logger.info(
        "Generating %s report for %s: %d rows, %d flagged",
        test_type.code,
        metadata.registration_number or "unregistered patient",
        len(rows),
        flagged,
    )
    return render_report(identity, metadata.model_copy(update={"test_type": test_type.code}), rows, now=now)


def split_test_data(test_data: dict | None) -> tuple[dict[str, str], list[CustomTest]]:
    """Recover submitted values and custom tests from a stored blob.

    Older records stored the flat form map without a "values" key; those are
    read as values directly.
    """
    test_data = test_data or {}
    if "values" in test_data:
        raw_values = test_data.get("values") or {}
    else:
        raw_values = {key: value for key, value in test_data.items() if key != "custom_tests"}
    values = {key: value for key, value in raw_values.items() if isinstance(value, str)}
    custom_tests = [
        CustomTest(**entry)
        for entry in test_data.get("custom_tests") or []
        if isinstance(entry, dict)
    ]
    return values, custom_tests


def regenerate_report_pdf(patient: PatientRecord, test_result: TestResultRecord) -> bytes:
    identity = PatientIdentity(
        name=patient.name,
        age=patient.age,
        sex=patient.sex,
        phone=patient.phone,
        referred_by=patient.referred_by,
    )
    metadata = ReportMetadata(
        test_type=test_result.test_type,
        registration_number=patient.registration_number,
        serial_number=patient.serial_number,
        reported_on=test_result.reported_on,
    )
    values, custom_tests = split_test_data(test_result.test_data)
    return generate_report_pdf(identity, metadata, values, custom_tests, now=test_result.reported_on)
