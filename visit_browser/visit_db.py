"""
SQLite store for a loaded visit and the read queries used by the browser.

Meeting timestamps are stored as UTC ISO-8601 text so that plain string
comparison orders them chronologically.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from visit_common.errors import MarkupError, MissingZoomRoom
from visit_common.markup import format_simple_xml
from visit_common.messages import MessageCollector
from visit_common.parsers import TimeOfDay
from visit_common.schema import Data, Participant, ProposedMeeting

from visit_browser.time_interpretation import resolve_timezone

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("visit.db")

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE zoom_rooms (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE,
        link TEXT
    )
    """,
    """
    CREATE TABLE meetings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        date TEXT,
        time TEXT,
        start_time TEXT,
        end_time TEXT,
        name TEXT,
        location TEXT,
        zoom_room_id INTEGER REFERENCES zoom_rooms(id),
        role_info TEXT
    )
    """,
    """
    CREATE TABLE participants (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        slug TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        title TEXT,
        is_team_member INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE meeting_participation (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        meeting_id INTEGER NOT NULL REFERENCES meetings(id),
        participant_id INTEGER NOT NULL REFERENCES participants(id),
        UNIQUE(meeting_id, participant_id)
    )
    """,
    "CREATE INDEX idx_meetings_start ON meetings(start_time)",
)

DROP_ORDER = ("meeting_participation", "participants", "meetings", "zoom_rooms")

MEETING_SUMMARY_COLUMNS = "id, name, date, time, start_time, end_time"


########################
# WRITE
########################


def format_timestamp(day: Optional[date], clock: Optional[TimeOfDay], tz_name: str) -> Optional[str]:
    """UTC ISO text for a local calendar day and time; None if either is unknown."""

    if day is None or clock is None:
        return None
    local = datetime.combine(day, time(clock.hour24, clock.minute), tzinfo=resolve_timezone(tz_name))
    return local.astimezone(timezone.utc).isoformat()


def role_info(meeting: ProposedMeeting, collector: MessageCollector) -> Optional[str]:
    """JSON list of formatted role runs, falling back to one plain run."""

    if meeting.team_roles_markup:
        try:
            runs = format_simple_xml(
                meeting.team_roles_markup,
                lambda text, fmt: {
                    "text": text,
                    "bold": fmt.bold,
                    "italics": fmt.italics,
                    "underline": fmt.underline,
                },
            )
            return json.dumps(runs)
        except MarkupError as exc:
            collector.warn(f"team roles for {meeting.interview_assignments!r} stored unformatted: {exc}")
    if meeting.team_roles_text:
        return json.dumps([{"text": meeting.team_roles_text}])
    return None


def attendees(meeting: ProposedMeeting, data: Data, collector: MessageCollector) -> List[Participant]:
    """Listed individuals plus every team member whose role the meeting flags."""

    found: Dict[str, Participant] = {}
    for individual in meeting.individuals:
        participant = data.participant_by_id(individual.id)
        if participant is None:
            collector.error(f"missing individual in {meeting.interview_assignments}: {individual.id}")
            continue
        found.setdefault(participant.id, participant)
    for member in data.team_members:
        if meeting.includes_team_member(member):
            found.setdefault(member.id, member)
    return list(found.values())


def create_schema(conn: sqlite3.Connection) -> None:
    cursor = conn.cursor()
    for table in DROP_ORDER:
        cursor.execute(f"DROP TABLE IF EXISTS {table}")
    for statement in SCHEMA_STATEMENTS:
        cursor.execute(statement)


def populate_database(
    data: Data,
    db_path: Path = DEFAULT_DB_PATH,
    *,
    tz_name: str = "America/New_York",
    collector: Optional[MessageCollector] = None,
) -> Dict[str, int]:
    """
    Recreate all tables from a loaded bundle. Returns row counts per table.

    Existing tables are dropped first, so repeated runs replace the data.
    """

    collector = collector or MessageCollector()
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    try:
        create_schema(conn)
        logger.debug("Recreated visit tables in %s", db_path)
        cursor = conn.cursor()

        zoom_room_ids: Dict[str, int] = {}
        for zoom_room in data.zoom_rooms:
            cursor.execute(
                "INSERT INTO zoom_rooms (name, link) VALUES (?, ?)",
                (zoom_room.zoom_room_name, zoom_room.link),
            )
            zoom_room_ids[zoom_room.zoom_room_name] = cursor.lastrowid

        participant_ids: Dict[str, int] = {}
        for participant in data.participant_list_data:
            cursor.execute(
                "INSERT INTO participants (slug, name, title, is_team_member) VALUES (?, ?, ?, ?)",
                (participant.id, participant.full_name, participant.title, int(participant.is_team_member)),
            )
            participant_ids[participant.id] = cursor.lastrowid

        participation: List[tuple] = []
        for meeting in data.proposed_meetings_data:
            zoom_room_id = None
            if meeting.zoom_room_name:
                if meeting.zoom_room_name not in zoom_room_ids:
                    raise MissingZoomRoom(meeting.zoom_room_name, meeting.interview_assignments)
                zoom_room_id = zoom_room_ids[meeting.zoom_room_name]
            cursor.execute(
                """
                INSERT INTO meetings
                (date, time, start_time, end_time, name, location, zoom_room_id, role_info)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    meeting.date,
                    meeting.time,
                    format_timestamp(meeting.parsed_date, meeting.start_time, tz_name),
                    format_timestamp(meeting.parsed_date, meeting.end_time, tz_name),
                    meeting.interview_assignments,
                    meeting.meeting_location,
                    zoom_room_id,
                    role_info(meeting, collector),
                ),
            )
            meeting_id = cursor.lastrowid
            for participant in attendees(meeting, data, collector):
                participation.append((meeting_id, participant_ids[participant.id]))

        cursor.executemany(
            "INSERT INTO meeting_participation (meeting_id, participant_id) VALUES (?, ?)",
            participation,
        )
        conn.commit()
    finally:
        conn.close()

    counts = {
        "zoom_rooms": len(data.zoom_rooms),
        "meetings": len(data.proposed_meetings_data),
        "participants": len(data.participant_list_data),
        "meeting_participation": len(participation),
    }
    collector.info(f"Populated {db_path}: " + ", ".join(f"{k}={v}" for k, v in counts.items()))
    return counts


########################
# READ
########################


@dataclass
class MeetingDetail:
    meeting: Dict[str, Any]
    team_members: List[Dict[str, Any]] = field(default_factory=list)
    representatives: List[Dict[str, Any]] = field(default_factory=list)
    zoom_room: Optional[Dict[str, Any]] = None

    @property
    def role_runs(self) -> List[Dict[str, Any]]:
        raw = self.meeting.get("role_info")
        return json.loads(raw) if raw else []


def connect(db_path: Path = DEFAULT_DB_PATH) -> sqlite3.Connection:
    db_path = Path(db_path)
    if not db_path.exists():
        raise FileNotFoundError(f"Database not found at {db_path}; run populate_database.py first.")
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def _rows(cursor: sqlite3.Cursor) -> List[Dict[str, Any]]:
    return [dict(row) for row in cursor.fetchall()]


def _utc_text(moment: datetime) -> str:
    if moment.tzinfo is None:
        raise ValueError("now must be timezone-aware")
    return moment.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def list_meetings(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    return _rows(conn.execute(f"SELECT {MEETING_SUMMARY_COLUMNS}, location FROM meetings ORDER BY id"))


def current_meetings(conn: sqlite3.Connection, now: datetime) -> List[Dict[str, Any]]:
    """Meetings whose complete window contains `now` (bounds inclusive)."""

    moment = _utc_text(now)
    return _rows(
        conn.execute(
            f"""
            SELECT {MEETING_SUMMARY_COLUMNS} FROM meetings
            WHERE start_time IS NOT NULL AND end_time IS NOT NULL
              AND start_time <= ? AND ? <= end_time
            ORDER BY start_time, id
            """,
            (moment, moment),
        )
    )


def upcoming_meetings(conn: sqlite3.Connection, now: datetime) -> List[Dict[str, Any]]:
    """All meetings sharing the earliest start strictly after `now`."""

    moment = _utc_text(now)
    return _rows(
        conn.execute(
            f"""
            SELECT {MEETING_SUMMARY_COLUMNS} FROM meetings
            WHERE start_time IS NOT NULL
              AND start_time = (SELECT MIN(start_time) FROM meetings WHERE start_time > ?)
            ORDER BY id
            """,
            (moment,),
        )
    )


def get_meeting_detail(conn: sqlite3.Connection, meeting_id: int) -> Optional[MeetingDetail]:
    rows = _rows(conn.execute("SELECT * FROM meetings WHERE id = ?", (meeting_id,)))
    if not rows:
        return None
    meeting = rows[0]

    participants = _rows(
        conn.execute(
            """
            SELECT p.id, p.name, p.title, p.is_team_member
            FROM meeting_participation mp
            JOIN participants p ON mp.participant_id = p.id
            WHERE mp.meeting_id = ?
            ORDER BY mp.id
            """,
            (meeting_id,),
        )
    )

    zoom_room = None
    if meeting["zoom_room_id"] is not None:
        found = _rows(conn.execute("SELECT id, name, link FROM zoom_rooms WHERE id = ?", (meeting["zoom_room_id"],)))
        zoom_room = found[0] if found else None

    return MeetingDetail(
        meeting=meeting,
        team_members=[p for p in participants if p["is_team_member"]],
        representatives=[p for p in participants if not p["is_team_member"]],
        zoom_room=zoom_room,
    )


def search_meetings(conn: sqlite3.Connection, term: str) -> List[Dict[str, Any]]:
    like = f"%{term.strip()}%"
    return _rows(
        conn.execute(
            f"""
            SELECT {MEETING_SUMMARY_COLUMNS}, location FROM meetings
            WHERE name LIKE ? OR location LIKE ?
            ORDER BY id
            """,
            (like, like),
        )
    )
