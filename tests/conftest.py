from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Optional, Sequence

import pytest
import xlsxwriter

from visit_common.parsers import Individual, TimeOfDay
from visit_common.schema import Data, Participant, ProposedMeeting, ZoomRoom

ROLE_COLUMNS = ["Team Chair", "SI", "SII", "SIII", "SIV", "SV", "SVI", "SVII"]

MEETING_HEADERS = [
    "Date",
    "Time",
    "Meeting Location",
    "Zoom Room Option",
    "Zoom Link",
    "Interview Assignments",
    *ROLE_COLUMNS,
    "Individuals",
    "Hide Names",
    "Team Roles",
]

PARTICIPANT_HEADERS = ["PFX", "First Name", "Last Name", "Title /Involvement", "Staff", "Faculty", "Email"]


def meeting_row(
    date: str,
    time: str,
    location: str,
    zoom_option: str,
    zoom_link: str,
    title: str,
    roles: Sequence[str] = (),
    individuals: str = "",
    hide_names: str = "",
    team_roles: str = "",
) -> List[str]:
    flags = ["x" if role in roles else "" for role in ROLE_COLUMNS]
    return [date, time, location, zoom_option, zoom_link, title, *flags, individuals, hide_names, team_roles]


MEETING_ROWS = [
    meeting_row(
        "Sunday, March 23, 2025",
        "9:00-10:00 a.m.",
        "Room 101",
        "Primary Room",
        "Zoom A",
        "Opening Session",
        roles=ROLE_COLUMNS,
        individuals="Dr. Pat Kim",
    ),
    meeting_row(
        "Sunday, March 23, 2025",
        "11:00-1:00 p.m.",
        "Room 202",
        "Yes",
        "Zoom B",
        "Standard I Review",
        roles=["SI"],
        individuals="Dr. Pat Kim, Unknown Person",
    ),
    meeting_row(
        "Monday, March 24, 2025",
        "Up to 2:30 p.m.",
        "Library",
        "No",
        "",
        "Private Debrief",
        roles=["Team Chair"],
        hide_names="x",
    ),
    # no date: dropped by the loader
    meeting_row("", "", "", "", "", "Lunch (on your own)"),
]

PARTICIPANT_ROWS = [
    ["Dr.", "Jane", "Smith", "Team Chair", "", "x", "jsmith@example.edu"],
    ["", "Alex", "Jones", "Evaluator", "", "x", ""],
    ["Dr.", "Pat", "Kim", "Provost", "x", "", "pkim@cu.example.edu"],
    ["Ms.", "Lee", "Park", "Registrar", "x", "", ""],
]

PARTICIPANT_ROLES = ["Team Chair", "SI, SII", "", ""]

# participant sheet with the roster's "Team Member" role column
ROSTER = [PARTICIPANT_HEADERS + ["Team Member"]]
ROSTER += [row + [roles] for row, roles in zip(PARTICIPANT_ROWS, PARTICIPANT_ROLES)]

ZOOM_ROWS = [
    ["Zoom Room Name", "Link"],
    ["Zoom A", "https://zoom.example/a"],
    ["Zoom B", ""],
]


def write_sheet(workbook: Any, name: str, rows: Sequence[Sequence[Any]], hidden_rows: Sequence[int] = ()) -> Any:
    worksheet = workbook.add_worksheet(name)
    for r, row in enumerate(rows):
        for c, value in enumerate(row):
            if value not in ("", None):
                worksheet.write(r, c, value)
        if r in hidden_rows:
            worksheet.set_row(r, None, None, {"hidden": True})
    return worksheet


def build_workbook(
    path: Path,
    *,
    meetings: Sequence[Sequence[Any]],
    participants: Sequence[Sequence[Any]],
    zoom_rooms: Sequence[Sequence[Any]] = ZOOM_ROWS,
    meeting_hidden_rows: Sequence[int] = (),
    rich_roles: Optional[Dict[int, Sequence[Any]]] = None,
    sheet_names: Sequence[str] = ("Proposed Meetings-MSCHE Team", "Participant List", "Zoom Rooms"),
) -> Path:
    """
    Write a three-sheet schedule workbook with xlsxwriter.

    `rich_roles` maps a zero-based meetings-sheet row to write_rich_string
    fragments for the "Team Roles" column; format placeholders "bold" and
    "italic" are replaced with real formats.
    """

    workbook = xlsxwriter.Workbook(str(path))
    formats = {"bold": workbook.add_format({"bold": True}), "italic": workbook.add_format({"italic": True})}
    meetings_ws = write_sheet(workbook, sheet_names[0], meetings, meeting_hidden_rows)
    if rich_roles:
        header_row = next(r for r, row in enumerate(meetings) if row and row[0] == "Date")
        column = list(meetings[header_row]).index("Team Roles")
        for r, fragments in rich_roles.items():
            resolved = [formats.get(f, f) for f in fragments]
            meetings_ws.write_rich_string(r, column, *resolved)
    write_sheet(workbook, sheet_names[1], participants)
    write_sheet(workbook, sheet_names[2], zoom_rooms)
    workbook.close()
    return path


@pytest.fixture
def roster_workbook(tmp_path):
    """Roles taken from the roster's "Team Member" column."""

    return build_workbook(
        tmp_path / "roster_roles.xlsx",
        meetings=[MEETING_HEADERS, *MEETING_ROWS],
        participants=ROSTER,
        rich_roles={1: ["bold", "SI", " and ", "italic", "SII"]},
    )


@pytest.fixture
def matrix_workbook(tmp_path):
    """Roles taken from a name row two rows above the meetings header."""

    names = [""] * len(MEETING_HEADERS)
    names[MEETING_HEADERS.index("Team Chair")] = "Smith"
    names[MEETING_HEADERS.index("SI")] = "Jones"
    names[MEETING_HEADERS.index("SII")] = "Jones"
    return build_workbook(
        tmp_path / "matrix_roles.xlsx",
        meetings=[names, [], MEETING_HEADERS, *MEETING_ROWS],
        participants=[PARTICIPANT_HEADERS, *PARTICIPANT_ROWS],
    )


########################
# RECORD FACTORIES
########################


def make_participant(first: str, last: str, *, prefix: str = "", title: str = "", roles: Sequence[str] = ()) -> Participant:
    full = " ".join(part for part in (prefix, first, last) if part)
    return Participant(
        prefix=prefix,
        first_name=first,
        last_name=last,
        title=title,
        staff=False,
        faculty=False,
        email="",
        full_name=full,
        id=full.lower().replace(".", "").replace(" ", "-"),
        team_member_roles=tuple(roles),
    )


def make_meeting(title: str = "Meeting", **overrides: Any) -> ProposedMeeting:
    values: Dict[str, Any] = dict(
        date="Sunday, March 23, 2025",
        parsed_date=None,
        time="9:00 a.m.",
        start_time=TimeOfDay(9, 0),
        end_time=None,
        meeting_location="Room 1",
        zoom_room_option_type="none",
        should_show_zoom_room=False,
        is_zoom_room_primary=False,
        zoom_room_name="",
        interview_assignments=title,
        team_chair=False,
        standard1_team_member=False,
        standard2_team_member=False,
        standard3_team_member=False,
        standard4_team_member=False,
        standard5_team_member=False,
        standard6_team_member=False,
        standard7_team_member=False,
        individuals=(),
        hide_names=False,
    )
    values.update(overrides)
    return ProposedMeeting(**values)


def make_data(
    meetings: Sequence[ProposedMeeting],
    participants: Sequence[Participant] = (),
    zoom_rooms: Sequence[ZoomRoom] = (),
) -> Data:
    return Data(
        proposed_meetings_data=tuple(meetings),
        participant_list_data=tuple(participants),
        zoom_rooms=tuple(zoom_rooms),
        zoom_rooms_by_name=MappingProxyType({z.zoom_room_name: z for z in zoom_rooms}),
    )


def individual(name: str) -> Individual:
    return Individual(name, name.lower().replace(".", "").replace(" ", "-"))
