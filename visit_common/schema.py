from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .mapping import Column, Derived, RowFunction
from .parsers import (
    Individual,
    TimeOfDay,
    boolean,
    comma_separated_list,
    convert_to_id,
    individuals_list,
    map_input,
    parse_date_label,
    time_fields,
)

MEETINGS_SHEET = "Proposed Meetings-MSCHE Team"
PARTICIPANTS_SHEET = "Participant List"
ZOOM_ROOMS_SHEET = "Zoom Rooms"

TEAM_ROLES_COLUMN = "Team Roles"


@dataclass(frozen=True)
class TeamRoleDefinition:
    """Links a meeting's boolean flag to the role label used on the roster."""

    property: str
    value: str


TEAM_ROLE_DEFINITIONS: Tuple[TeamRoleDefinition, ...] = (
    TeamRoleDefinition("team_chair", "Team Chair"),
    TeamRoleDefinition("standard1_team_member", "SI"),
    TeamRoleDefinition("standard2_team_member", "SII"),
    TeamRoleDefinition("standard3_team_member", "SIII"),
    TeamRoleDefinition("standard4_team_member", "SIV"),
    TeamRoleDefinition("standard5_team_member", "SV"),
    TeamRoleDefinition("standard6_team_member", "SVI"),
    TeamRoleDefinition("standard7_team_member", "SVII"),
)

TEAM_ROLE_DEFINITIONS_BY_ROLE: Mapping[str, TeamRoleDefinition] = MappingProxyType(
    {d.value: d for d in TEAM_ROLE_DEFINITIONS}
)


@dataclass(frozen=True)
class Participant:
    prefix: str
    first_name: str
    last_name: str
    title: str
    staff: bool
    faculty: bool
    email: str
    full_name: str
    id: str
    # list while roles are being resolved, tuple once the bundle is frozen
    team_member_roles: Sequence[str] = ()

    @property
    def is_team_member(self) -> bool:
        return len(self.team_member_roles) > 0


@dataclass(frozen=True)
class ProposedMeeting:
    date: str
    parsed_date: Optional[date]
    time: str
    start_time: Optional[TimeOfDay]
    end_time: Optional[TimeOfDay]
    meeting_location: str
    zoom_room_option_type: str
    should_show_zoom_room: bool
    is_zoom_room_primary: bool
    zoom_room_name: str
    interview_assignments: str
    team_chair: bool
    standard1_team_member: bool
    standard2_team_member: bool
    standard3_team_member: bool
    standard4_team_member: bool
    standard5_team_member: bool
    standard6_team_member: bool
    standard7_team_member: bool
    individuals: Tuple[Individual, ...]
    hide_names: bool
    team_roles_text: str = ""
    team_roles_markup: Optional[str] = None

    def has_role(self, role: str) -> bool:
        definition = TEAM_ROLE_DEFINITIONS_BY_ROLE.get(role)
        return definition is not None and bool(getattr(self, definition.property))

    def role_labels(self) -> List[str]:
        return [d.value for d in TEAM_ROLE_DEFINITIONS if getattr(self, d.property)]

    def includes_team_member(self, participant: "Participant") -> bool:
        return any(self.has_role(role) for role in participant.team_member_roles)


@dataclass(frozen=True)
class ZoomRoom:
    zoom_room_name: str
    link: str

    @property
    def has_link(self) -> bool:
        return self.link.strip() != ""


@dataclass(frozen=True)
class Data:
    """Canonical bundle handed to renderers; read-only once returned by load."""

    proposed_meetings_data: Tuple[ProposedMeeting, ...]
    participant_list_data: Tuple[Participant, ...]
    zoom_rooms: Tuple[ZoomRoom, ...]
    zoom_rooms_by_name: Mapping[str, ZoomRoom] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def team_members(self) -> List[Participant]:
        return [p for p in self.participant_list_data if p.is_team_member]

    def participant_by_id(self, participant_id: str) -> Optional[Participant]:
        for participant in self.participant_list_data:
            if participant.id == participant_id:
                return participant
        return None


########################
# MAPPING SPECS
########################


def full_name(record: Mapping[str, Any]) -> str:
    joined = f"{record['prefix']} {record['first_name']} {record['last_name']}"
    return re.sub(r"\s+", " ", joined).strip()


def rich_text_of(column: str):
    """Row function returning the run markup of a rich-text cell, or None."""

    def lookup(row: Any) -> Optional[str]:
        markup = getattr(row, "markup", None) or {}
        return markup.get(column) or None

    return lookup


ZOOM_ROOM_OPTION = map_input(
    [
        ("Primary Room", "primary"),
        ("Yes", "optional"),
        (["No", "N/A", ""], "none"),
    ]
)


def participant_fields(roles_from_column: bool) -> Dict[str, Any]:
    spec: Dict[str, Any] = {
        "prefix": "PFX",
        "first_name": "First Name",
        "last_name": "Last Name",
        "title": "Title /Involvement",
        "staff": ["Staff", boolean],
        "faculty": ["Faculty", boolean],
        "email": "Email",
        "full_name": Derived(full_name),
        "id": Derived(lambda record: convert_to_id(record["full_name"])),
    }
    if roles_from_column:
        spec["team_member_roles"] = ["Team Member", comma_separated_list]
    else:
        spec["team_member_roles"] = RowFunction(lambda row: [])
    return spec


def meeting_fields() -> Dict[str, Any]:
    spec: Dict[str, Any] = {
        "date": "Date",
        "parsed_date": ["Date", parse_date_label],
        "$time": ["Time", time_fields],
        "meeting_location": "Meeting Location",
        "zoom_room_option_type": ["Zoom Room Option", ZOOM_ROOM_OPTION],
        "should_show_zoom_room": Derived(
            lambda record: record["zoom_room_option_type"] in ("primary", "optional")
        ),
        "is_zoom_room_primary": Derived(lambda record: record["zoom_room_option_type"] == "primary"),
        "zoom_room_name": re.compile(r"^Zoom Link"),
        "interview_assignments": "Interview Assignments",
    }
    # column headers are the role labels themselves
    for definition in TEAM_ROLE_DEFINITIONS:
        spec[definition.property] = [definition.value, boolean]
    spec.update(
        {
            "individuals": ["Individuals", individuals_list],
            "hide_names": ["Hide Names", boolean],
            "team_roles_text": Column(TEAM_ROLES_COLUMN, required=False),
            "team_roles_markup": RowFunction(rich_text_of(TEAM_ROLES_COLUMN)),
        }
    )
    return spec


ZOOM_ROOM_FIELDS: Dict[str, Any] = {
    "zoom_room_name": "Zoom Room Name",
    "link": "Link",
}
