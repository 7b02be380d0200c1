from collections.abc import Iterable, Mapping

from backend.exceptions import EmptySubmissionError
from backend.schemas.report import CustomTest, DataRow, GroupHeading, ReportRow
from backend.services.catalog import groups_for
from backend.services.flagging import classify

CUSTOM_TESTS_HEADING = "CUSTOM TESTS"


def is_present(value: str | None) -> bool:
    return bool(value and value.strip())


def assemble(
    test_type: str | None,
    submitted_values: Mapping[str, str | None],
    custom_tests: Iterable[CustomTest] = (),
) -> list[ReportRow]:
    """Build the ordered report rows for a submission.

    Catalog order is preserved. A group heading is only emitted when the group
    has at least one present value, and complete custom tests follow under a
    single CUSTOM TESTS heading. Raises EmptySubmissionError when no data rows
    remain.
    """
    rows: list[ReportRow] = []

    for group in groups_for(test_type):
        group_rows = []
        for spec in group.specs:
            raw_value = submitted_values.get(spec.id)
            if not is_present(raw_value):
                continue
            value = raw_value.strip()
            group_rows.append(
                DataRow(
                    display_name=spec.display_name,
                    value=value,
                    unit=spec.unit,
                    reference_range=spec.reference_range,
                    flag=classify(value, spec.reference_range),
                )
            )
        if group_rows:
            rows.append(GroupHeading(label=group.label))
            rows.extend(group_rows)

    complete = [entry for entry in custom_tests if entry.is_complete()]
    if complete:
        rows.append(GroupHeading(label=CUSTOM_TESTS_HEADING))
        for entry in complete:
            value = entry.value.strip()
            reference_range = entry.reference_range.strip()
            rows.append(
                DataRow(
                    display_name=entry.name.strip(),
                    value=value,
                    reference_range=reference_range,
                    flag=classify(value, reference_range),
                    is_custom=True,
                )
            )

    if not any(isinstance(row, DataRow) for row in rows):
        raise EmptySubmissionError()
    return rows
