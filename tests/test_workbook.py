from datetime import date, datetime, time
from io import BytesIO

import openpyxl
import pytest
from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.cell.text import InlineFont

from visit_common.errors import MissingSheet
from visit_common.markup import TextRun, parse_simple_xml
from visit_common.workbook import (
    cell_markup,
    cell_text,
    get_worksheet,
    header_names,
    line_at,
    open_workbook,
    sheet_lines,
    sheet_records,
)


def _schedule_sheet():
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Schedule"
    ws.append(["Site Visit Schedule"])
    ws.append(["Date", "Time", ""])
    ws.append(["Mon", 9, None])
    ws.append(["Tue", 10, None])
    ws.append([None, None, None])
    ws.append(["Wed", None, "extra"])
    ws.row_dimensions[4].hidden = True
    return wb, ws


def test_cell_text_renders_values_as_displayed():
    assert cell_text(None) == ""
    assert cell_text("  padded ") == "padded"
    assert cell_text(9.0) == "9"
    assert cell_text(9.5) == "9.5"
    assert cell_text(date(2025, 3, 23)) == "Sunday, March 23, 2025"
    assert cell_text(datetime(2025, 3, 24, 0, 0)) == "Monday, March 24, 2025"
    assert cell_text(time(13, 5)) == "1:05 p.m."


def test_rich_text_cells_keep_run_markup():
    value = CellRichText([TextBlock(InlineFont(b=True), "Chair"), " and ", TextBlock(InlineFont(i=True), "SI")])
    assert cell_text(value) == "Chair and SI"
    assert parse_simple_xml(cell_markup(value)) == [
        TextRun("Chair", bold=True),
        TextRun(" and "),
        TextRun("SI", italics=True),
    ]
    assert cell_markup("plain") is None


def test_header_names_are_unique():
    assert header_names(["Date", "", "Date", " "]) == ["Date", "__EMPTY", "Date_1", "__EMPTY_1"]


def test_sheet_records_use_header_offset_and_skip_hidden_and_blank_rows():
    _, ws = _schedule_sheet()
    records = sheet_records(ws, header_offset=1)
    assert [dict(r) for r in records] == [
        {"Date": "Mon", "Time": "9", "__EMPTY": ""},
        {"Date": "Wed", "Time": "", "__EMPTY": "extra"},
    ]
    assert [r.row_number for r in records] == [3, 6]


def test_sheet_records_without_header_row_is_empty():
    _, ws = _schedule_sheet()
    assert sheet_records(ws, header_offset=20) == []


def test_sheet_lines_can_include_hidden_rows():
    _, ws = _schedule_sheet()
    visible = [line.row_number for line in sheet_lines(ws)]
    everything = sheet_lines(ws, skip_hidden=False)
    assert 4 not in visible
    assert line_at(everything, 3).values[0] == "Tue"
    assert line_at(everything, 42) is None


def test_open_workbook_rewinds_buffers_and_reports_missing_sheets():
    wb, _ = _schedule_sheet()
    buffer = BytesIO()
    wb.save(buffer)
    # buffer is left at its end after saving
    reopened = open_workbook(buffer)
    assert get_worksheet(reopened, "Schedule").title == "Schedule"
    assert open_workbook(buffer.getvalue()).sheetnames == ["Schedule"]

    with pytest.raises(MissingSheet, match="Schedule"):
        get_worksheet(reopened, "Zoom Rooms")
