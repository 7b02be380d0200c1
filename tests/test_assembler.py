import pytest

from backend.exceptions import EmptySubmissionError
from backend.schemas.report import CustomTest, DataRow, Flag, GroupHeading
from backend.services import catalog
from backend.services.assembler import CUSTOM_TESTS_HEADING, assemble


def _headings(rows):
    return [row.label for row in rows if isinstance(row, GroupHeading)]


def _data(rows):
    return [row for row in rows if isinstance(row, DataRow)]


def test_single_cbc_value_produces_one_flagged_row():
    rows = assemble("CBC", {"hemoglobin": "9.0"}, [])

    assert len(rows) == 2
    assert rows[0] == GroupHeading(label="Hematology")
    assert rows[1].display_name == "HEMOGLOBIN"
    assert rows[1].value == "9.0"
    assert rows[1].flag == Flag.LOW


def test_empty_submission_raises():
    values = {field_id: "" for field_id in catalog.field_ids("CBC")}
    with pytest.raises(EmptySubmissionError):
        assemble("CBC", values, [])


def test_whitespace_only_values_are_dropped():
    with pytest.raises(EmptySubmissionError):
        assemble("LFT", {"sgptAlt": "   ", "sgotAst": "\t"}, [])


def test_lft_high_value():
    rows = assemble("LFT", {"sgptAlt": "45"}, [])
    assert _headings(rows) == ["Liver Enzymes"]
    (row,) = _data(rows)
    assert row.flag == Flag.HIGH
    assert row.reference_range == "5 - 40 U/L"


def test_custom_tests_require_all_three_attributes():
    custom = [
        CustomTest(name="Vitamin C", value="0.2", reference_range="0.4 - 2.0"),
        CustomTest(name="Amylase", value="80", reference_range="30 - 110"),
        CustomTest(name="Lipase", value="70", reference_range=""),
    ]
    rows = assemble("CBC", {}, custom)

    assert _headings(rows) == [CUSTOM_TESTS_HEADING]
    custom_rows = _data(rows)
    assert [row.display_name for row in custom_rows] == ["Vitamin C", "Amylase"]
    assert [row.flag for row in custom_rows] == [Flag.LOW, Flag.NORMAL]
    assert all(row.is_custom for row in custom_rows)


def test_custom_tests_follow_catalog_groups():
    rows = assemble(
        "CBC",
        {"plateletCount": "2.0", "neutrophils": "85"},
        [CustomTest(name="Reticulocytes", value="1", reference_range="0.5 - 2.5")],
    )
    assert _headings(rows) == ["Differential Leucocyte Count", "Platelets", CUSTOM_TESTS_HEADING]
    assert isinstance(rows[-1], DataRow) and rows[-1].is_custom


@pytest.mark.parametrize("code", list(catalog.CATALOG))
def test_no_heading_without_rows(code):
    # fill every other field so some groups end up empty
    field_ids = catalog.field_ids(code)
    values = {field_id: "1" for field_id in field_ids[::2]}
    rows = assemble(code, values, [])

    for index, row in enumerate(rows):
        if isinstance(row, GroupHeading):
            assert index + 1 < len(rows)
            assert isinstance(rows[index + 1], DataRow)


@pytest.mark.parametrize("code", list(catalog.CATALOG))
def test_present_fields_appear_exactly_once(code):
    field_ids = catalog.field_ids(code)
    specs = {spec.id: spec for group in catalog.groups_for(code) for spec in group.specs}
    values = {field_id: (" " if position % 3 == 1 else "7") for position, field_id in enumerate(field_ids)}
    present = [field_id for field_id, value in values.items() if value.strip()]

    rows = _data(assemble(code, values, []))

    assert [row.display_name for row in rows] == [specs[field_id].display_name for field_id in present]


def test_output_follows_catalog_order_not_input_order():
    values = {"agRatio": "1.5", "serumBilirubinTotal": "0.5", "sgotAst": "30"}
    rows = _data(assemble("LFT", values, []))
    assert [row.display_name for row in rows] == ["SERUM BILIRUBIN (TOTAL)", "SGOT (AST)", "A/G RATIO"]


def test_assemble_is_idempotent():
    values = {"hemoglobin": "12", "mcv": "70", "basophils": "3"}
    custom = [CustomTest(name="Blood Group", value="B+", reference_range="-")]
    assert assemble("CBC", values, custom) == assemble("CBC", values, custom)


def test_values_are_trimmed():
    rows = _data(assemble("CBC", {"hemoglobin": "  12.5 "}, []))
    assert rows[0].value == "12.5"


def test_unknown_test_type_uses_cbc_shape():
    rows = assemble("Mystery", {"hemoglobin": "12"}, [])
    assert _headings(rows) == ["Hematology"]
