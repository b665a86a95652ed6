"""
Team-role assignment from the meetings sheet's header matrix.

Some schedules do not carry a "Team Member" column on the roster. Instead the
meetings sheet has a row of last names sitting above the role columns::

    row 0:              Smith   Jones
    row 2:  Date  Time  SI      SII    ...

Each last name is matched against the roster and the role header below it is
appended to that participant's roles.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from .errors import AmbiguousCandidate, MissingRoleRow, NoCandidate, UnknownRole
from .schema import TEAM_ROLE_DEFINITIONS_BY_ROLE, Participant
from .workbook import SheetLine, line_at

logger = logging.getLogger(__name__)


def find_single_participant(participants: Sequence[Participant], last_name: str, role: str) -> Participant:
    candidates = [p for p in participants if p.last_name == last_name]
    if not candidates:
        raise NoCandidate(last_name, role)
    if len(candidates) > 1:
        raise AmbiguousCandidate(last_name, role, [p.full_name for p in candidates])
    return candidates[0]


def resolve_team_roles(
    lines: Sequence[SheetLine],
    participants: Sequence[Participant],
    *,
    name_row: int,
    header_row: int,
    sheet: str = "",
) -> int:
    """
    Append matrix roles to participants in place; returns the number assigned.

    `name_row` and `header_row` are zero-based physical row indexes. This is the
    only step allowed to mutate participants, and it runs before the bundle is
    frozen. A matrix row that is not in the sheet raises MissingRoleRow.
    """

    names = line_at(lines, name_row)
    if names is None:
        raise MissingRoleRow("name", name_row, sheet)
    headers = line_at(lines, header_row)
    if headers is None:
        raise MissingRoleRow("header", header_row, sheet)

    assigned = 0
    for column, raw_name in enumerate(names.values):
        last_name = raw_name.strip()
        if not last_name:
            continue
        role = headers.value(column).strip()
        participant = find_single_participant(participants, last_name, role)
        roles: List[str] = participant.team_member_roles  # type: ignore[assignment]
        if role in roles:
            continue
        roles.append(role)
        assigned += 1
        logger.debug("Assigned role %s to %s", role, participant.full_name)
    return assigned


def validate_roles(participants: Sequence[Participant]) -> None:
    """Every role label must be one of the team-role definitions."""

    for participant in participants:
        for role in participant.team_member_roles:
            if role not in TEAM_ROLE_DEFINITIONS_BY_ROLE:
                raise UnknownRole(role, participant.full_name)
