"""
Workbook access for visit schedules.

Turns an openpyxl worksheet into labeled rows (header text -> cell text). Rich
text cells additionally keep their run markup so the role annotations can be
rendered with their formatting.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import openpyxl
from openpyxl.cell.rich_text import CellRichText, TextBlock
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from .errors import MissingSheet
from .markup import TextRun, runs_to_markup
from .parsers import TimeOfDay, format_date_label

logger = logging.getLogger(__name__)

EMPTY_HEADER = "__EMPTY"


class SheetRow(dict):
    """A labeled row; `markup` holds run markup for rich-text cells by header."""

    def __init__(self, values: Dict[str, str], *, row_number: int, markup: Optional[Dict[str, str]] = None):
        super().__init__(values)
        self.row_number = row_number
        self.markup: Dict[str, str] = dict(markup or {})


@dataclass
class SheetLine:
    """One physical worksheet row as positional text values."""

    row_number: int
    values: List[str]
    markup: List[Optional[str]] = field(default_factory=list)

    def value(self, column: int) -> str:
        return self.values[column] if column < len(self.values) else ""

    @property
    def is_blank(self) -> bool:
        return all(v == "" for v in self.values)


def _excel_source(path_or_bytes: Any) -> Any:
    """
    Return a rewindable Excel source for openpyxl.

    Bytes/BytesIO inputs are rewound to position 0 so multiple readers can consume them.
    """

    if isinstance(path_or_bytes, BytesIO):
        path_or_bytes.seek(0)
        return path_or_bytes
    if isinstance(path_or_bytes, (bytes, bytearray)):
        return BytesIO(path_or_bytes)
    if isinstance(path_or_bytes, str):
        return Path(path_or_bytes)
    return path_or_bytes


def open_workbook(path_or_bytes: Any) -> Workbook:
    """Open a workbook from a path, raw bytes, BytesIO, or an upload wrapper."""

    # Streamlit's UploadedFile and similar wrappers expose getvalue(); coerce to bytes early.
    if hasattr(path_or_bytes, "getvalue") and not isinstance(path_or_bytes, (bytes, bytearray, BytesIO)):
        path_or_bytes = path_or_bytes.getvalue()

    return openpyxl.load_workbook(_excel_source(path_or_bytes), data_only=True, rich_text=True)


def get_worksheet(workbook: Workbook, name: str) -> Worksheet:
    if name not in workbook.sheetnames:
        raise MissingSheet(name, workbook.sheetnames)
    return workbook[name]


def cell_text(value: Any) -> str:
    """Render a cell value as the text a person sees in the sheet."""

    if value is None:
        return ""
    if isinstance(value, CellRichText):
        return str(value).strip()
    if isinstance(value, datetime):
        return format_date_label(value.date())
    if isinstance(value, date):
        return format_date_label(value)
    if isinstance(value, time):
        return TimeOfDay(value.hour, value.minute).label()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def cell_markup(value: Any) -> Optional[str]:
    """Run markup for a rich-text cell; None for plain cells."""

    if not isinstance(value, CellRichText):
        return None
    runs: List[TextRun] = []
    for block in value:
        if isinstance(block, TextBlock):
            font = block.font
            runs.append(
                TextRun(
                    block.text,
                    bold=bool(getattr(font, "b", None)),
                    italics=bool(getattr(font, "i", None)),
                    underline=bool(getattr(font, "u", None)),
                )
            )
        else:
            runs.append(TextRun(str(block)))
    return runs_to_markup(runs)


def _is_hidden(worksheet: Worksheet, row_number: int) -> bool:
    dimension = worksheet.row_dimensions.get(row_number)
    return bool(dimension is not None and dimension.hidden)


def sheet_lines(worksheet: Worksheet, *, skip_hidden: bool = True) -> List[SheetLine]:
    """All physical rows of a worksheet, positional, optionally skipping hidden rows."""

    lines: List[SheetLine] = []
    for row in worksheet.iter_rows():
        if not row:
            continue
        row_number = row[0].row
        if skip_hidden and _is_hidden(worksheet, row_number):
            continue
        lines.append(
            SheetLine(
                row_number=row_number,
                values=[cell_text(c.value) for c in row],
                markup=[cell_markup(c.value) for c in row],
            )
        )
    return lines


def line_at(lines: Sequence[SheetLine], index: int) -> Optional[SheetLine]:
    """Physical row by zero-based sheet index (row 1 is index 0)."""

    for line in lines:
        if line.row_number == index + 1:
            return line
    return None


def header_names(values: Sequence[str]) -> List[str]:
    """Unique header labels; blanks become __EMPTY, __EMPTY_1, repeats get _1, _2, ..."""

    names: List[str] = []
    seen: Dict[str, int] = {}
    for raw in values:
        base = raw.strip() or EMPTY_HEADER
        name = base
        if base in seen:
            seen[base] += 1
            name = f"{base}_{seen[base]}"
        else:
            seen[base] = 0
        names.append(name)
    return names


def sheet_records(worksheet: Worksheet, header_offset: int = 0) -> List[SheetRow]:
    """
    Labeled rows below the header row.

    The header is the physical row at zero-based `header_offset`; rows before it
    are ignored. Hidden rows and fully blank rows are skipped, empty cells are "".
    """

    lines = sheet_lines(worksheet, skip_hidden=False)
    header_line = line_at(lines, header_offset)
    if header_line is None:
        logger.debug("Sheet %s has no header row at offset %s", worksheet.title, header_offset)
        return []

    headers = header_names(header_line.values)
    records: List[SheetRow] = []
    for line in lines:
        if line.row_number <= header_line.row_number or line.is_blank:
            continue
        if _is_hidden(worksheet, line.row_number):
            continue
        values = {name: line.value(i) for i, name in enumerate(headers)}
        markup = {
            name: line.markup[i]
            for i, name in enumerate(headers)
            if i < len(line.markup) and line.markup[i]
        }
        records.append(SheetRow(values, row_number=line.row_number, markup=markup))
    return records
