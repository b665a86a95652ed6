"""
Summary itinerary: one table per day, meetings sharing a time slot grouped
under a single time cell. The roles variant adds a "Team Roles" column.
"""

from __future__ import annotations

from typing import Optional, Sequence

from docx import Document
from docx.document import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.table import Table, _Cell

from visit_common.config import DocumentSettings
from visit_common.errors import MarkupError
from visit_common.markup import FormattingOptions, format_simple_xml
from visit_common.messages import MessageCollector
from visit_common.schema import Data, ProposedMeeting

from .layout import (
    HeaderTitle,
    add_header_row,
    add_row,
    add_spanning_header_row,
    fill_location_cell,
    group_by,
    hide_cell_borders,
    keep_row_together,
    new_table,
    repeat_as_header,
    set_cell_text,
    start_document,
    visit_dates,
)

TITLE: HeaderTitle = ("Summary Itinerary and Key Contacts", "Summary Itinerary & Key Contacts")
ROLES_TITLE: HeaderTitle = ("Summary Itinerary with Team Roles", "Summary Itinerary & Team Roles")

COLUMN_WIDTHS = (1.5, 3.0, 3.0)
COLUMN_LABELS = ("Time", "Meeting", "Location")
ROLES_COLUMN_WIDTHS = (1.25, 2.5, 2.0, 1.75)
ROLES_COLUMN_LABELS = ("Time", "Meeting", "Location", "Team Roles")


def fill_roles_cell(cell: _Cell, meeting: ProposedMeeting, collector: MessageCollector) -> None:
    """
    Rich-text role annotation when the cell carried formatting, else its plain
    text, else the role labels of the meeting's flags.

    Markup that cannot be interpreted is reported as a warning and the plain
    text is shown instead.
    """

    paragraph = cell.paragraphs[0]
    if meeting.team_roles_markup:

        def add_run(text: str, formatting: FormattingOptions) -> None:
            run = paragraph.add_run(text)
            run.bold = formatting.bold or None
            run.italic = formatting.italics or None
            run.underline = formatting.underline or None

        try:
            format_simple_xml(meeting.team_roles_markup, add_run)
            return
        except MarkupError as exc:
            collector.warn(f"team roles for {meeting.interview_assignments!r} shown unformatted: {exc}")

    text = meeting.team_roles_text or ", ".join(meeting.role_labels())
    if text:
        paragraph.add_run(text)


def _day_table(
    doc: DocxDocument,
    date_label: str,
    meetings: Sequence[ProposedMeeting],
    data: Data,
    collector: MessageCollector,
    with_roles: bool,
) -> Table:
    widths = ROLES_COLUMN_WIDTHS if with_roles else COLUMN_WIDTHS
    labels = ROLES_COLUMN_LABELS if with_roles else COLUMN_LABELS

    table = new_table(doc, widths)
    repeat_as_header(add_spanning_header_row(table, widths, date_label))
    repeat_as_header(add_header_row(table, widths, labels))

    for time_label, slot in group_by(meetings, lambda m: m.time):
        for index, meeting in enumerate(slot):
            is_first = index == 0
            is_last = index == len(slot) - 1

            row = add_row(table, widths)
            keep_row_together(row)
            cells = row.cells
            set_cell_text(
                cells[0],
                time_label if is_first else "",
                alignment=WD_ALIGN_PARAGRAPH.RIGHT,
                keep_with_next=not is_last,
            )
            hide_cell_borders(cells[0], top=not is_first, bottom=not is_last)
            set_cell_text(cells[1], meeting.interview_assignments)
            fill_location_cell(cells[2], meeting, meeting.should_show_zoom_room, data.zoom_rooms_by_name, collector)
            if with_roles:
                fill_roles_cell(cells[3], meeting, collector)
    return table


def generate_summary_itinerary(
    data: Data,
    collector: MessageCollector,
    settings: Optional[DocumentSettings] = None,
    *,
    with_roles: bool = False,
) -> DocxDocument:
    settings = settings or DocumentSettings()
    doc = Document()
    start_document(doc, settings, ROLES_TITLE if with_roles else TITLE, visit_dates(data, settings))

    for index, (date_label, meetings) in enumerate(group_by(data.proposed_meetings_data, lambda m: m.date)):
        if index:
            doc.add_paragraph("")
        _day_table(doc, date_label, meetings, data, collector, with_roles)
    return doc


def generate_summary_itinerary_with_roles(
    data: Data, collector: MessageCollector, settings: Optional[DocumentSettings] = None
) -> DocxDocument:
    return generate_summary_itinerary(data, collector, settings, with_roles=True)
