from datetime import datetime
from unittest.mock import MagicMock

import pytest

from backend.schemas.report import CustomTest, DataRow, Flag, GroupHeading, PatientIdentity, ReportMetadata
from backend.services.assembler import assemble
from backend.services.renderer import (
    CUSTOM_SECTION_GAP,
    GROUP_GAP_AFTER,
    GROUP_GAP_BEFORE,
    ROW_HEIGHT,
    ReportRenderer,
    format_display_name,
    format_reference,
    format_report_date,
    format_value,
    layout_rows,
    render_report,
    report_filename,
)

FIXED_NOW = datetime(2026, 10, 18, 9, 30)


def _identity(**overrides) -> PatientIdentity:
    data = {"name": "Asha Verma", "age": 34, "sex": "F"}
    data.update(overrides)
    return PatientIdentity(**data)


def _drawn_text(canvas: MagicMock) -> list[tuple[str, str, str]]:
    """(method, text, font) for every string drawn on the mock canvas."""
    drawn = []
    font = None
    for name, args, _ in canvas.mock_calls:
        if name == "setFont":
            font = args[0]
        elif name in {"drawString", "drawCentredString", "drawRightString"}:
            drawn.append((name, args[2], font))
    return drawn


def _render_with_mock(rows, identity=None, metadata=None):
    canvas = MagicMock()
    renderer = ReportRenderer(canvas_factory=lambda *args, **kwargs: canvas)
    renderer.render(
        identity or _identity(),
        metadata or ReportMetadata(test_type="LFT", registration_number="REG1700000000000", serial_number=7),
        rows,
        now=FIXED_NOW,
    )
    return canvas


def test_render_produces_pdf_bytes():
    rows = assemble("CBC", {"hemoglobin": "9.0", "plateletCount": "2.5"}, [])
    content = render_report(_identity(), ReportMetadata(test_type="CBC"), rows, now=FIXED_NOW)
    assert content.startswith(b"%PDF")
    assert content.rstrip().endswith(b"%%EOF")


def test_high_value_is_bold_with_suffix():
    rows = assemble("LFT", {"sgptAlt": "45", "sgotAst": "30"}, [])
    drawn = _drawn_text(_render_with_mock(rows))

    values = {text: font for method, text, font in drawn if method == "drawCentredString"}
    assert values["45 (H)"] == "Helvetica-Bold"
    assert values["30"] == "Helvetica"
    assert values["5 - 40 U/L"] == "Helvetica"


def test_low_value_suffix():
    rows = assemble("CBC", {"hemoglobin": "9.0"}, [])
    drawn = [text for _, text, _ in _drawn_text(_render_with_mock(rows, metadata=ReportMetadata(test_type="CBC")))]
    assert "9.0 (L)" in drawn
    assert "11-16 g/dl" in drawn


def test_header_block_contents():
    rows = assemble("LFT", {"sgptAlt": "20"}, [])
    drawn = [text for _, text, _ in _drawn_text(_render_with_mock(rows))]

    assert ": ASHA VERMA" in drawn
    assert ": 34 YRS / F" in drawn
    assert ": Self" in drawn
    assert ": N/A" in drawn
    assert ": REG1700000000000" in drawn
    assert ": 7" in drawn
    assert ": 18 October 2026" in drawn
    assert "LIVER FUNCTION TEST (LFT)" in drawn
    assert "NOT VALID FOR MEDICO LEGAL PURPOSE" in drawn


def test_optional_fields_rendered_when_present():
    rows = assemble("LFT", {"sgptAlt": "20"}, [])
    identity = _identity(phone="9876543210", referred_by="Dr. Mehta")
    drawn = [text for _, text, _ in _drawn_text(_render_with_mock(rows, identity=identity))]
    assert ": 9876543210" in drawn
    assert ": Dr. Mehta" in drawn


def test_group_headings_are_bold():
    rows = assemble(
        "LFT",
        {"sgptAlt": "20"},
        [CustomTest(name="Amylase", value="200", reference_range="30 - 110")],
    )
    drawn = _drawn_text(_render_with_mock(rows))
    fonts = {text: font for _, text, font in drawn}

    assert fonts["Liver Enzymes"] == "Helvetica-Bold"
    assert fonts["CUSTOM TESTS"] == "Helvetica-Bold"
    assert fonts["Amylase"] == "Helvetica"
    assert fonts["200 (H)"] == "Helvetica-Bold"


def test_single_page_only():
    rows = assemble("CBC", {"hemoglobin": "12"}, [])
    canvas = _render_with_mock(rows)
    assert canvas.showPage.call_count == 1
    canvas.save.assert_called_once()


def test_layout_gaps_between_groups():
    rows = [
        GroupHeading(label="A"),
        DataRow(display_name="x", value="1", reference_range="0 - 2"),
        GroupHeading(label="B"),
        DataRow(display_name="y", value="1", reference_range="0 - 2"),
        GroupHeading(label="CUSTOM TESTS"),
        DataRow(display_name="z", value="1", reference_range="0 - 2", is_custom=True),
    ]
    placed, bottom = layout_rows(rows, top=0)
    tops = [item.top for item in placed]

    first_heading_end = ROW_HEIGHT + GROUP_GAP_AFTER
    second_heading = first_heading_end + ROW_HEIGHT + GROUP_GAP_BEFORE
    custom_heading = second_heading + ROW_HEIGHT + GROUP_GAP_AFTER + ROW_HEIGHT + CUSTOM_SECTION_GAP

    assert tops[0] == 0
    assert tops[1] == first_heading_end
    assert tops[2] == second_heading
    assert tops[4] == custom_heading
    assert bottom == custom_heading + ROW_HEIGHT + GROUP_GAP_AFTER + ROW_HEIGHT
    assert [item.index for item in placed if isinstance(item.row, DataRow)] == [0, 1, 2]


@pytest.mark.parametrize(
    "name,expected",
    [
        ("MEAN CORPUSCULAR HEMOGLOBIN CONCENTRATION, MCHC", "Mean Corp. Hemoglobin Conc., MCHC"),
        ("MEAN CORPUSCULAR VOLUME, MCV", "Mean Corp. Volume, MCV"),
        ("HEMATOCRIT VALUE, HCT", "Hematocrit Value, HCT"),
        ("SGPT (ALT)", "SGPT (ALT)"),
        ("A/G RATIO", "A/G Ratio"),
        ("TROPONIN I", "Troponin I"),
        ("25-HYDROXY VITAMIN D", "25-Hydroxy Vitamin D"),
        ("RED CELL DISTRIBUTION WIDTH, RDW", "Red Cell Dist. Width, RDW"),
        ("Vitamin C", "Vitamin C"),
    ],
)
def test_format_display_name(name, expected):
    assert format_display_name(name) == expected


def test_format_value_and_reference():
    high = DataRow(display_name="x", value="45", unit="U/L", reference_range="5 - 40 U/L", flag=Flag.HIGH)
    plain = DataRow(display_name="x", value="12", unit="g/dl", reference_range="11-16")
    unitless = DataRow(display_name="x", value="1.5", reference_range="1.1 - 2.1")

    assert format_value(high) == ("45 (H)", True)
    assert format_value(plain) == ("12", False)
    assert format_reference(high) == "5 - 40 U/L"
    assert format_reference(plain) == "11-16 g/dl"
    assert format_reference(unitless) == "1.1 - 2.1"


def test_format_report_date():
    assert format_report_date(datetime(2026, 3, 5)) == "5 March 2026"


def test_report_filename():
    assert report_filename("sugar_diagnostic", "LFT", "John  Ram Doe") == "sugar_diagnostic_lft_report_John_Ram_Doe.pdf"
    assert report_filename("sugar_diagnostic", "BloodSugar", " Mia ") == "sugar_diagnostic_bloodsugar_report_Mia.pdf"
