"""
Single-page PDF lab report layout.

Coordinates are expressed in millimetres from the top-left corner of an A4
page and converted to ReportLab's bottom-left point space at draw time.
"""

import io
import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from backend.config import settings
from backend.schemas.report import DataRow, Flag, GroupHeading, PatientIdentity, ReportMetadata, ReportRow
from backend.services.catalog import get_test_type

logger = logging.getLogger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

MARGIN_X = 15
TABLE_WIDTH = 180
NAME_COL_WIDTH = TABLE_WIDTH * 0.50
VALUE_COL_WIDTH = TABLE_WIDTH * 0.25
REFERENCE_COL_WIDTH = TABLE_WIDTH * 0.25

HEADER_TOP = 42
HEADER_LINE_HEIGHT = 6
HEADER_VALUE_OFFSET = 24
HEADER_RIGHT_X = 120
TITLE_TOP = 76
TABLE_TOP = 88
TABLE_HEADER_HEIGHT = 8
ROW_HEIGHT = 6
GROUP_GAP_BEFORE = 2
GROUP_GAP_AFTER = 1
CUSTOM_SECTION_GAP = 4
MIN_TABLE_BODY_HEIGHT = 60
NAME_INDENT = 6
BODY_FONT_SIZE = 9
MIN_BODY_FONT_SIZE = 7

HEADER_FILL = colors.HexColor("#F0F0F0")
ALT_ROW_FILL = colors.HexColor("#FAFAFA")
ABNORMAL_ROW_FILL = colors.HexColor("#FFE6E6")
RULE_COLOR = colors.HexColor("#C8C8C8")
FOOTER_TEXT = colors.HexColor("#646464")

FLAG_SUFFIX = {Flag.LOW: "(L)", Flag.HIGH: "(H)"}

NAME_ABBREVIATIONS = [
    ("ACTIVATED PARTIAL THROMBOPLASTIN TIME", "Act. Partial Thromboplastin Time"),
    ("CONCENTRATION", "Conc."),
    ("CORPUSCULAR", "Corp."),
    ("DISTRIBUTION", "Dist."),
    ("HIGH SENSITIVITY", "High Sens."),
    ("ESTIMATED", "Est."),
    ("PHOSPHOKINASE", "Phosphokin."),
]

ACRONYMS = {
    "ALT", "AST", "APTT", "ASO", "BUN", "CK", "CPK", "CRP", "GGT", "HBSAG", "HCT", "HCV", "HDL",
    "HIV", "II", "INR", "LDH", "LDL", "MB", "MCH", "MCHC", "MCV", "MPV", "PH", "PT", "RA", "RBC",
    "RDW", "SGOT", "SGPT", "TIBC", "TSH", "VDRL", "VLDL",
}

_TOKEN_RE = re.compile(r"[A-Za-z0-9]+")


def _title_token(match: re.Match) -> str:
    token = match.group(0)
    upper = token.upper()
    if upper in ACRONYMS or len(token) == 1 or any(ch.isdigit() for ch in token):
        return upper
    return token[:1].upper() + token[1:].lower()


def format_display_name(name: str) -> str:
    """Abbreviate long catalog names and title-case them, keeping acronyms."""
    text = name.upper()
    for long_form, short_form in NAME_ABBREVIATIONS:
        text = text.replace(long_form, short_form.upper())
    return _TOKEN_RE.sub(_title_token, text)


def format_value(row: DataRow) -> tuple[str, bool]:
    """Value column text and whether it is drawn bold."""
    suffix = FLAG_SUFFIX.get(row.flag)
    if suffix:
        return f"{row.value} {suffix}", True
    return row.value, False


def format_reference(row: DataRow) -> str:
    reference = row.reference_range
    if row.unit and row.unit.lower() not in reference.lower():
        return f"{reference} {row.unit}"
    return reference


def format_report_date(moment: datetime) -> str:
    return f"{moment.day} {moment:%B %Y}"


def report_filename(org: str, test_type: str, patient_name: str) -> str:
    name = re.sub(r"\s+", "_", patient_name.strip())
    return f"{org}_{test_type.lower()}_report_{name}.pdf"


@dataclass
class _PlacedRow:
    row: ReportRow
    top: float
    index: int


def layout_rows(rows: Sequence[ReportRow], top: float) -> tuple[list[_PlacedRow], float]:
    """Assign a top offset to each row and return the body bottom offset."""
    placed: list[_PlacedRow] = []
    y = top
    data_index = 0
    for position, row in enumerate(rows):
        if isinstance(row, GroupHeading):
            next_row = rows[position + 1] if position + 1 < len(rows) else None
            if position > 0:
                custom_section = isinstance(next_row, DataRow) and next_row.is_custom
                y += CUSTOM_SECTION_GAP if custom_section else GROUP_GAP_BEFORE
            placed.append(_PlacedRow(row=row, top=y, index=-1))
            y += ROW_HEIGHT + GROUP_GAP_AFTER
        else:
            placed.append(_PlacedRow(row=row, top=y, index=data_index))
            data_index += 1
            y += ROW_HEIGHT
    return placed, y


class ReportRenderer:
    """Draws a report onto a ReportLab canvas."""

    def __init__(self, canvas_factory: Callable[..., canvas.Canvas] = canvas.Canvas):
        self.canvas_factory = canvas_factory

    def render(
        self,
        identity: PatientIdentity,
        metadata: ReportMetadata,
        rows: Sequence[ReportRow],
        now: datetime | None = None,
    ) -> bytes:
        moment = now or datetime.now()
        buffer = io.BytesIO()
        c = self.canvas_factory(buffer, pagesize=A4)
        c.setTitle(f"{metadata.test_type} report - {identity.name}")
        c.setAuthor(settings.lab_name)

        self._draw_letterhead(c)
        self._draw_patient_header(c, identity, metadata, moment)
        self._draw_titles(c, metadata.test_type)
        table_bottom = self._draw_table(c, rows)
        self._draw_footer(c, table_bottom)

        c.showPage()
        c.save()
        logger.info("Rendered %s report with %d rows", metadata.test_type, len(rows))
        return buffer.getvalue()

    @staticmethod
    def _y(top: float) -> float:
        return PAGE_HEIGHT - top * mm

    def _text(self, c, x: float, top: float, text: str, font: str = FONT, size: float = BODY_FONT_SIZE) -> None:
        c.setFont(font, size)
        c.drawString(x * mm, self._y(top), text)

    def _centred(self, c, x: float, top: float, text: str, font: str = FONT, size: float = BODY_FONT_SIZE) -> None:
        c.setFont(font, size)
        c.drawCentredString(x * mm, self._y(top), text)

    def _fitted_size(self, text: str, font: str, width: float) -> float:
        size = BODY_FONT_SIZE
        while size > MIN_BODY_FONT_SIZE and stringWidth(text, font, size) > width * mm:
            size -= 0.5
        return size

    def _draw_letterhead(self, c) -> None:
        c.setFillColor(colors.black)
        self._centred(c, PAGE_WIDTH / mm / 2, 20, settings.lab_name.upper(), FONT_BOLD, 16)
        if settings.lab_address:
            self._centred(c, PAGE_WIDTH / mm / 2, 26, settings.lab_address, FONT, 9)
        c.setStrokeColor(colors.black)
        c.setLineWidth(0.8)
        c.line(MARGIN_X * mm, self._y(32), (MARGIN_X + TABLE_WIDTH) * mm, self._y(32))

    def _draw_header_column(self, c, x: float, entries: list[tuple[str, str]]) -> None:
        for line, (label, value) in enumerate(entries):
            top = HEADER_TOP + line * HEADER_LINE_HEIGHT
            self._text(c, x, top, label, FONT, 9)
            self._text(c, x + HEADER_VALUE_OFFSET, top, f": {value}", FONT_BOLD if line == 0 else FONT, 9)

    def _draw_patient_header(self, c, identity: PatientIdentity, metadata: ReportMetadata, moment: datetime) -> None:
        left = [
            ("Patient name", identity.name.upper()),
            ("Age / Sex", f"{identity.age} YRS / {identity.sex}"),
            ("Referred by", identity.referred_by or "Self"),
        ]
        right = [
            ("Reg. no.", metadata.registration_number or "N/A"),
            ("Phone", identity.phone or "N/A"),
            ("Reported on", format_report_date(moment)),
        ]
        if metadata.serial_number is not None:
            left.append(("Lab no.", str(metadata.serial_number)))

        c.setFillColor(colors.black)
        self._draw_header_column(c, MARGIN_X, left)
        self._draw_header_column(c, HEADER_RIGHT_X, right)

        rule_top = HEADER_TOP + max(len(left), len(right)) * HEADER_LINE_HEIGHT - 2
        c.setStrokeColor(RULE_COLOR)
        c.setLineWidth(0.5)
        c.line(MARGIN_X * mm, self._y(rule_top), (MARGIN_X + TABLE_WIDTH) * mm, self._y(rule_top))

    def _draw_titles(self, c, test_type: str) -> None:
        entry = get_test_type(test_type)
        centre = MARGIN_X + TABLE_WIDTH / 2
        c.setFillColor(colors.black)
        self._centred(c, centre, TITLE_TOP, entry.department, FONT_BOLD, 13)
        self._centred(c, centre, TITLE_TOP + 6, entry.title, FONT_BOLD, 11)

    def _draw_table(self, c, rows: Sequence[ReportRow]) -> float:
        left = MARGIN_X
        value_x = left + NAME_COL_WIDTH
        reference_x = value_x + VALUE_COL_WIDTH
        right = left + TABLE_WIDTH

        body_top = TABLE_TOP + TABLE_HEADER_HEIGHT
        placed, body_bottom = layout_rows(rows, body_top)
        table_bottom = max(body_bottom, body_top + MIN_TABLE_BODY_HEIGHT)

        # Header row
        c.setFillColor(HEADER_FILL)
        c.setStrokeColor(RULE_COLOR)
        c.setLineWidth(0.5)
        c.rect(left * mm, self._y(body_top), TABLE_WIDTH * mm, TABLE_HEADER_HEIGHT * mm, stroke=1, fill=1)
        c.setFillColor(colors.black)
        header_text_top = TABLE_TOP + 5.5
        self._centred(c, left + NAME_COL_WIDTH / 2, header_text_top, "TEST", FONT_BOLD, 10)
        self._centred(c, value_x + VALUE_COL_WIDTH / 2, header_text_top, "OBSERVATION", FONT_BOLD, 10)
        self._centred(c, reference_x + REFERENCE_COL_WIDTH / 2, header_text_top, "REFERENCE", FONT_BOLD, 10)

        for item in placed:
            if isinstance(item.row, GroupHeading):
                c.setFillColor(colors.black)
                self._text(c, left + 2, item.top + 4.2, item.row.label, FONT_BOLD, 9.5)
                continue
            self._draw_data_row(c, item, left, value_x, reference_x)

        # Outer border and column rules span the full body
        c.setStrokeColor(RULE_COLOR)
        c.setLineWidth(0.5)
        c.rect(left * mm, self._y(table_bottom), TABLE_WIDTH * mm, (table_bottom - TABLE_TOP) * mm, stroke=1, fill=0)
        for x in (value_x, reference_x):
            c.line(x * mm, self._y(TABLE_TOP), x * mm, self._y(table_bottom))
        c.line(left * mm, self._y(body_top), right * mm, self._y(body_top))
        return table_bottom

    def _draw_data_row(self, c, item: _PlacedRow, left: float, value_x: float, reference_x: float) -> None:
        row = item.row
        top = item.top
        if row.flag != Flag.NORMAL:
            fill = ABNORMAL_ROW_FILL
        elif item.index % 2 == 0:
            fill = ALT_ROW_FILL
        else:
            fill = None
        if fill is not None:
            c.setFillColor(fill)
            c.rect(left * mm, self._y(top + ROW_HEIGHT), TABLE_WIDTH * mm, ROW_HEIGHT * mm, stroke=0, fill=1)

        c.setStrokeColor(RULE_COLOR)
        c.setLineWidth(0.25)
        c.line(left * mm, self._y(top + ROW_HEIGHT), (left + TABLE_WIDTH) * mm, self._y(top + ROW_HEIGHT))

        text_top = top + 4.2
        c.setFillColor(colors.black)
        name = format_display_name(row.display_name)
        name_width = NAME_COL_WIDTH - NAME_INDENT - 2
        self._text(c, left + NAME_INDENT, text_top, name, FONT, self._fitted_size(name, FONT, name_width))

        value_text, bold = format_value(row)
        value_font = FONT_BOLD if bold else FONT
        value_size = self._fitted_size(value_text, value_font, VALUE_COL_WIDTH - 2)
        self._centred(c, value_x + VALUE_COL_WIDTH / 2, text_top, value_text, value_font, value_size)

        reference = format_reference(row)
        reference_size = self._fitted_size(reference, FONT, REFERENCE_COL_WIDTH - 2)
        self._centred(c, reference_x + REFERENCE_COL_WIDTH / 2, text_top, reference, FONT, reference_size)

    def _draw_footer(self, c, table_bottom: float) -> None:
        top = table_bottom + 15
        c.setFillColor(colors.black)
        self._text(c, 20, top, "Lab Technician", FONT, 10)
        self._text(c, 140, top, "Dr. Pathologist", FONT, 10)
        self._text(c, 20, top + 4, "DMLT, Lab Incharge", FONT, 8)
        self._text(c, 140, top + 4, "MBBS, MD Pathologist", FONT, 8)

        centre = PAGE_WIDTH / mm / 2
        self._centred(c, centre, top + 12, "Page 1 of 1", FONT, 8)
        c.setFillColor(FOOTER_TEXT)
        self._centred(c, centre, top + 20, "NOT VALID FOR MEDICO LEGAL PURPOSE", FONT, 8)
        self._centred(c, centre, top + 25, settings.work_timings, FONT, 8)


def render_report(
    identity: PatientIdentity,
    metadata: ReportMetadata,
    rows: Sequence[ReportRow],
    now: datetime | None = None,
) -> bytes:
    return ReportRenderer().render(identity, metadata, rows, now=now)
