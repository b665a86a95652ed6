from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from dotenv import load_dotenv

from .schema import MEETINGS_SHEET, PARTICIPANTS_SHEET, ZOOM_ROOMS_SHEET

load_dotenv()

DEFAULT_CONFIG_PATH = Path("visit.yaml")


def _parse_int(value: Any, default: int) -> int:
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


def _parse_timezone(name: str) -> str:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc
    return name


@dataclass(frozen=True)
class MeetingsTableRoleSource:
    """Roles come from the name/header matrix at the top of the meetings sheet."""

    name_row: int = 0
    header_row: int = 2
    type: str = "meetingsTable"


@dataclass(frozen=True)
class ParticipantsTableRoleSource:
    """Roles come from the roster's "Team Member" column."""

    type: str = "participantsTable"


TeamRoleSource = Union[MeetingsTableRoleSource, ParticipantsTableRoleSource]


@dataclass(frozen=True)
class SheetNames:
    meetings: str = MEETINGS_SHEET
    participants: str = PARTICIPANTS_SHEET
    zoom_rooms: str = ZOOM_ROOMS_SHEET


@dataclass(frozen=True)
class LoadDataOptions:
    team_role_source: TeamRoleSource = field(default_factory=ParticipantsTableRoleSource)
    meeting_range: int = 0
    sheets: SheetNames = field(default_factory=SheetNames)


@dataclass(frozen=True)
class DocumentSettings:
    """Text used in document headers."""

    institution: str = "Commonwealth University"
    visit_title: str = "MSCHE Team Visit"
    visit_dates: str = ""
    team_label: str = "MSCHE Team Member(s)"
    representative_label: str = "CU Representative(s)"


@dataclass(frozen=True)
class Settings:
    load_options: LoadDataOptions
    documents: DocumentSettings
    db_path: Path
    timezone: str
    max_workers: int


def parse_team_role_source(data: Any) -> TeamRoleSource:
    if data is None:
        return ParticipantsTableRoleSource()
    if not isinstance(data, dict):
        raise ValueError("team_role_source must be a mapping with a 'type' key.")
    source_type = str(data.get("type", "participantsTable"))
    if source_type == "participantsTable":
        return ParticipantsTableRoleSource()
    if source_type == "meetingsTable":
        return MeetingsTableRoleSource(
            name_row=_parse_int(data.get("name_row"), 0),
            header_row=_parse_int(data.get("header_row"), 2),
        )
    raise ValueError(f"Unknown team_role_source type: {source_type}")


def parse_load_options(data: Dict[str, Any] | None) -> LoadDataOptions:
    data = data or {}
    sheets = data.get("sheets") or {}
    if not isinstance(sheets, dict):
        raise ValueError("sheets must be a mapping of meetings/participants/zoom_rooms names.")
    defaults = SheetNames()
    return LoadDataOptions(
        team_role_source=parse_team_role_source(data.get("team_role_source")),
        meeting_range=_parse_int(data.get("meeting_range"), 0),
        sheets=SheetNames(
            meetings=str(sheets.get("meetings", defaults.meetings)),
            participants=str(sheets.get("participants", defaults.participants)),
            zoom_rooms=str(sheets.get("zoom_rooms", defaults.zoom_rooms)),
        ),
    )


def load_config_file(path: Optional[Path]) -> Dict[str, Any]:
    if path is None or not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as f:
            parsed = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Failed to parse YAML config at {path}") from exc
    if not isinstance(parsed, dict):
        raise ValueError(f"Config at {path} must be a mapping.")
    return parsed


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Merge the YAML config (explicit path, $VISIT_CONFIG, or ./visit.yaml) with
    environment overrides. An unknown timezone raises ValueError here rather
    than on first use.
    """

    if config_path is None:
        env_path = os.getenv("VISIT_CONFIG")
        config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
    data = load_config_file(config_path)

    documents_data = data.get("documents") or {}
    defaults = DocumentSettings()
    documents = DocumentSettings(
        **{k: str(documents_data.get(k, getattr(defaults, k))) for k in defaults.__dataclass_fields__}
    )

    return Settings(
        load_options=parse_load_options(data.get("load")),
        documents=documents,
        db_path=Path(os.getenv("VISIT_DB_PATH", str(data.get("db_path", "visit.db")))),
        timezone=_parse_timezone(os.getenv("VISIT_TIMEZONE", str(data.get("timezone", "America/New_York")))),
        max_workers=_parse_int(os.getenv("VISIT_MAX_WORKERS"), _parse_int(data.get("max_workers"), 4)),
    )
