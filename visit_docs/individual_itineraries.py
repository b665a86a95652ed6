"""
One section per team member listing the meetings any of their roles attends.
"""

from __future__ import annotations

from typing import List, Optional

from docx import Document
from docx.document import Document as DocxDocument
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt

from visit_common.config import DocumentSettings
from visit_common.messages import MessageCollector
from visit_common.schema import Data, Participant, ProposedMeeting

from .layout import (
    add_header_row,
    add_row,
    add_section,
    add_spanning_header_row,
    fill_location_cell,
    group_by,
    keep_row_together,
    new_table,
    set_cell_text,
    start_document,
    visit_dates,
)

TITLE = "Team Member Itinerary"
COLUMN_WIDTHS = (1.5, 3.0, 3.0)
COLUMN_LABELS = ("Time", "Meeting", "Location")


def meetings_for(member: Participant, meetings: List[ProposedMeeting]) -> List[ProposedMeeting]:
    return [m for m in meetings if m.includes_team_member(member)]


def _centered_line(doc: DocxDocument, text: str, size: float) -> None:
    paragraph = doc.add_paragraph()
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    run = paragraph.add_run(text)
    run.bold = True
    run.font.size = Pt(size)


def _member_section(doc: DocxDocument, member: Participant, data: Data, collector: MessageCollector) -> None:
    _centered_line(doc, member.full_name, 20)
    _centered_line(doc, f"{member.title} Itinerary".strip(), 16)

    table = new_table(doc, COLUMN_WIDTHS)
    meetings = meetings_for(member, list(data.proposed_meetings_data))
    for date_label, day in group_by(meetings, lambda m: m.date):
        add_spanning_header_row(table, COLUMN_WIDTHS, date_label)
        add_header_row(table, COLUMN_WIDTHS, COLUMN_LABELS)
        for meeting in day:
            row = add_row(table, COLUMN_WIDTHS)
            keep_row_together(row)
            time_cell, title_cell, location_cell = row.cells
            set_cell_text(time_cell, meeting.time, alignment=WD_ALIGN_PARAGRAPH.RIGHT)
            set_cell_text(title_cell, meeting.interview_assignments)
            fill_location_cell(
                location_cell, meeting, meeting.is_zoom_room_primary, data.zoom_rooms_by_name, collector
            )


def generate_individual_itineraries(
    data: Data, collector: MessageCollector, settings: Optional[DocumentSettings] = None
) -> DocxDocument:
    settings = settings or DocumentSettings()
    doc = Document()
    start_document(doc, settings, TITLE, visit_dates(data, settings))

    team_members = data.team_members
    if not team_members:
        collector.warn("no team members with roles; individual itineraries are empty")
    for index, member in enumerate(team_members):
        if index:
            add_section(doc)
        _member_section(doc, member, data, collector)
    return doc
