"""
Detailed itinerary: every meeting grouped by date, with time, location, zoom
link, attending team members and institution representatives.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from docx import Document
from docx.document import Document as DocxDocument
from docx.enum.style import WD_STYLE_TYPE
from docx.shared import Inches, Pt, RGBColor

from visit_common.config import DocumentSettings
from visit_common.messages import MessageCollector
from visit_common.schema import Data, Participant, ProposedMeeting

from .layout import TIME_COLOR, add_zoom_link, group_by, start_document, visit_dates

TITLE = "Detailed Itinerary"
ALL_TEAM_MEMBERS = "All Team Members"

DATE_STYLE = "Itinerary Date"
MEETING_STYLE = "Itinerary Meeting"
GROUP_STYLE = "Itinerary Group"
PERSON_STYLE = "Itinerary Person"


def add_itinerary_styles(doc: DocxDocument) -> None:
    styles = doc.styles
    normal = styles["Normal"]

    date_style = styles.add_style(DATE_STYLE, WD_STYLE_TYPE.PARAGRAPH)
    date_style.base_style = normal
    date_style.next_paragraph_style = normal
    date_style.quick_style = True
    date_style.font.name = "Times New Roman"
    date_style.font.size = Pt(14)
    date_style.font.bold = True
    date_style.font.underline = True

    # (style, base, left indent, hanging indent, font size)
    levels = (
        (MEETING_STYLE, normal, 0.75, 0.5, 12),
        (GROUP_STYLE, normal, 1.0, 0.25, 10),
        (PERSON_STYLE, styles["List Bullet"], 1.5, 0.25, 10),
    )
    for name, base, left, hanging, size in levels:
        style = styles.add_style(name, WD_STYLE_TYPE.PARAGRAPH)
        style.base_style = base
        style.font.size = Pt(size)
        style.paragraph_format.left_indent = Inches(left)
        style.paragraph_format.first_line_indent = Inches(-hanging)
        style.paragraph_format.space_before = Pt(4)
        style.paragraph_format.space_after = Pt(4)


def _meeting_line(doc: DocxDocument, meeting: ProposedMeeting, data: Data, collector: MessageCollector) -> None:
    paragraph = doc.add_paragraph(style=MEETING_STYLE)
    paragraph.add_run(meeting.interview_assignments).bold = True

    parts: List[Callable[[], object]] = []
    if meeting.time:
        def add_time() -> None:
            run = paragraph.add_run(meeting.time)
            run.font.color.rgb = RGBColor.from_string(TIME_COLOR)

        parts.append(add_time)
    if meeting.meeting_location:
        parts.append(lambda: paragraph.add_run(meeting.meeting_location))
    if meeting.should_show_zoom_room:
        parts.append(
            lambda: add_zoom_link(
                paragraph, meeting.zoom_room_name, data.zoom_rooms_by_name, collector, meeting.interview_assignments
            )
        )

    for index, add_part in enumerate(parts):
        # the separator right after the title is bold, like the title
        paragraph.add_run(", ").bold = index == 0
        add_part()


def _participant_line(doc: DocxDocument, participant: Participant) -> None:
    paragraph = doc.add_paragraph(style=PERSON_STYLE)
    if participant.title:
        paragraph.add_run(f"{participant.full_name}, ").bold = True
        paragraph.add_run(participant.title)
    else:
        paragraph.add_run(participant.full_name).bold = True


def _group(doc: DocxDocument, heading: str, participants: Sequence[Participant]) -> None:
    doc.add_paragraph(style=GROUP_STYLE).add_run(heading).bold = True
    for participant in participants:
        _participant_line(doc, participant)


def representatives_for(meeting: ProposedMeeting, data: Data, collector: MessageCollector) -> List[Participant]:
    """Roster entries for the meeting's individuals; unknown ids are reported and skipped."""

    found: List[Participant] = []
    for individual in meeting.individuals:
        participant = data.participant_by_id(individual.id)
        if participant is None:
            collector.error(f"missing individual in {meeting.interview_assignments}: {individual.id}")
            continue
        found.append(participant)
    return found


def generate_full_itinerary(
    data: Data, collector: MessageCollector, settings: Optional[DocumentSettings] = None
) -> DocxDocument:
    settings = settings or DocumentSettings()
    doc = Document()
    add_itinerary_styles(doc)
    start_document(doc, settings, TITLE, visit_dates(data, settings))

    all_team_members = data.team_members
    for date_label, meetings in group_by(data.proposed_meetings_data, lambda m: m.date):
        doc.add_paragraph(date_label, style=DATE_STYLE)
        for meeting in meetings:
            _meeting_line(doc, meeting, data, collector)
            if meeting.hide_names:
                continue

            attending = [p for p in all_team_members if meeting.includes_team_member(p)]
            if attending:
                if len(attending) == len(all_team_members):
                    doc.add_paragraph(style=GROUP_STYLE).add_run(settings.team_label).bold = True
                    doc.add_paragraph(ALL_TEAM_MEMBERS, style=PERSON_STYLE)
                else:
                    _group(doc, settings.team_label, attending)

            representatives = representatives_for(meeting, data, collector)
            if representatives:
                _group(doc, settings.representative_label, representatives)
    return doc
