"""
Workbook -> canonical `Data` bundle.

Single pass: read the three sheets, map them, resolve matrix roles, validate
cross references, then freeze.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from types import MappingProxyType
from typing import Any, List, Optional, Sequence

from .config import LoadDataOptions, MeetingsTableRoleSource, ParticipantsTableRoleSource
from .errors import FieldNotFound, MissingZoomRoom
from .mapping import map_fields, select_field, to_map
from .messages import MessageCollector
from .roles import resolve_team_roles, validate_roles
from .schema import (
    ZOOM_ROOM_FIELDS,
    Data,
    Participant,
    ProposedMeeting,
    ZoomRoom,
    meeting_fields,
    participant_fields,
)
from .workbook import SheetRow, get_worksheet, open_workbook, sheet_lines, sheet_records

logger = logging.getLogger(__name__)


def _dated_rows(rows: Sequence[SheetRow], sheet: str) -> List[SheetRow]:
    dated = []
    for row in rows:
        try:
            if select_field(row, "Date") != "":
                dated.append(row)
        except FieldNotFound as exc:
            raise exc.located(field="Date", row=row.row_number, sheet=sheet)
    return dated


def check_zoom_rooms(meetings: Sequence[ProposedMeeting], zoom_rooms_by_name: Any) -> None:
    """A meeting that shows or names a zoom room must reference a known one."""

    for meeting in meetings:
        if not (meeting.should_show_zoom_room or meeting.zoom_room_name):
            continue
        if meeting.zoom_room_name not in zoom_rooms_by_name:
            raise MissingZoomRoom(meeting.zoom_room_name, meeting.interview_assignments)


def freeze_participant(participant: Participant) -> Participant:
    return replace(participant, team_member_roles=tuple(participant.team_member_roles))


def load_data(
    source: Any,
    options: Optional[LoadDataOptions] = None,
    collector: Optional[MessageCollector] = None,
) -> Data:
    """
    Load and normalize a visit workbook.

    `source` may be a path, raw bytes, a BytesIO or an upload wrapper. Any
    mapping or validation failure aborts the load with a UserError subclass.
    """

    options = options or LoadDataOptions()
    collector = collector or MessageCollector()
    sheets = options.sheets
    role_source = options.team_role_source

    workbook = open_workbook(source)
    meetings_ws = get_worksheet(workbook, sheets.meetings)
    participants_ws = get_worksheet(workbook, sheets.participants)
    zoom_rooms_ws = get_worksheet(workbook, sheets.zoom_rooms)

    roles_from_column = isinstance(role_source, ParticipantsTableRoleSource)
    participant_records = map_fields(
        sheet_records(participants_ws),
        participant_fields(roles_from_column),
        sheet=sheets.participants,
    )
    participants = [Participant(**record) for record in participant_records]
    to_map(participants, lambda p: p.id, "participant list")

    meeting_records = map_fields(
        _dated_rows(sheet_records(meetings_ws, options.meeting_range), sheets.meetings),
        meeting_fields(),
        sheet=sheets.meetings,
    )
    meetings = tuple(ProposedMeeting(**record) for record in meeting_records)

    zoom_rooms = tuple(
        ZoomRoom(**record)
        for record in map_fields(sheet_records(zoom_rooms_ws), ZOOM_ROOM_FIELDS, sheet=sheets.zoom_rooms)
    )
    zoom_rooms_by_name = to_map(zoom_rooms, lambda zr: zr.zoom_room_name, "zoom rooms")

    if isinstance(role_source, MeetingsTableRoleSource):
        assigned = resolve_team_roles(
            sheet_lines(meetings_ws, skip_hidden=False),
            participants,
            name_row=role_source.name_row,
            header_row=role_source.header_row,
            sheet=sheets.meetings,
        )
        logger.debug("Resolved %s role assignments from the meetings matrix", assigned)
    validate_roles(participants)
    check_zoom_rooms(meetings, zoom_rooms_by_name)

    data = Data(
        proposed_meetings_data=meetings,
        participant_list_data=tuple(freeze_participant(p) for p in participants),
        zoom_rooms=zoom_rooms,
        zoom_rooms_by_name=MappingProxyType(zoom_rooms_by_name),
    )
    collector.info(
        f"Loaded {len(data.proposed_meetings_data)} meetings, "
        f"{len(data.participant_list_data)} participants ({len(data.team_members)} team members), "
        f"{len(data.zoom_rooms)} zoom rooms"
    )
    return data
