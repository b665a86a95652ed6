from pathlib import Path

import pytest

from visit_common.config import (
    DocumentSettings,
    MeetingsTableRoleSource,
    ParticipantsTableRoleSource,
    load_settings,
    parse_load_options,
    parse_team_role_source,
)

CONFIG = """
db_path: data/visit.db
timezone: America/Chicago
max_workers: 2
load:
  meeting_range: 2
  team_role_source:
    type: meetingsTable
    name_row: 0
    header_row: 2
  sheets:
    meetings: Meetings
documents:
  institution: Example College
  visit_dates: March 23-26, 2025
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("VISIT_CONFIG", "VISIT_DB_PATH", "VISIT_TIMEZONE", "VISIT_MAX_WORKERS"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_config_file(tmp_path):
    settings = load_settings(tmp_path / "absent.yaml")

    assert settings.db_path == Path("visit.db")
    assert settings.timezone == "America/New_York"
    assert settings.max_workers == 4
    assert settings.documents == DocumentSettings()
    assert isinstance(settings.load_options.team_role_source, ParticipantsTableRoleSource)
    assert settings.load_options.meeting_range == 0
    assert settings.load_options.sheets.meetings == "Proposed Meetings-MSCHE Team"


def test_yaml_config_is_applied(tmp_path):
    path = tmp_path / "visit.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    settings = load_settings(path)

    assert settings.db_path == Path("data/visit.db")
    assert settings.timezone == "America/Chicago"
    assert settings.max_workers == 2
    assert settings.load_options.meeting_range == 2
    assert settings.load_options.team_role_source == MeetingsTableRoleSource(name_row=0, header_row=2)
    assert settings.load_options.sheets.meetings == "Meetings"
    assert settings.load_options.sheets.zoom_rooms == "Zoom Rooms"
    assert settings.documents.institution == "Example College"
    assert settings.documents.visit_title == "MSCHE Team Visit"


def test_environment_overrides_yaml(tmp_path, monkeypatch):
    path = tmp_path / "visit.yaml"
    path.write_text(CONFIG, encoding="utf-8")
    monkeypatch.setenv("VISIT_CONFIG", str(path))
    monkeypatch.setenv("VISIT_DB_PATH", str(tmp_path / "override.db"))
    monkeypatch.setenv("VISIT_TIMEZONE", "UTC")
    monkeypatch.setenv("VISIT_MAX_WORKERS", "8")

    settings = load_settings()
    assert settings.db_path == tmp_path / "override.db"
    assert settings.timezone == "UTC"
    assert settings.max_workers == 8
    assert settings.documents.institution == "Example College"


def test_invalid_worker_count_keeps_default(tmp_path, monkeypatch):
    monkeypatch.setenv("VISIT_MAX_WORKERS", "many")
    assert load_settings(tmp_path / "absent.yaml").max_workers == 4


def test_unknown_timezone_is_rejected_at_load(tmp_path, monkeypatch):
    monkeypatch.setenv("VISIT_TIMEZONE", "Mars/Olympus_Mons")
    with pytest.raises(ValueError, match="Unknown timezone: Mars/Olympus_Mons"):
        load_settings(tmp_path / "absent.yaml")


def test_malformed_yaml_is_a_value_error(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("load: [unclosed", encoding="utf-8")
    with pytest.raises(ValueError, match="Failed to parse"):
        load_settings(path)

    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError, match="must be a mapping"):
        load_settings(path)


def test_team_role_source_variants():
    assert parse_team_role_source(None) == ParticipantsTableRoleSource()
    assert parse_team_role_source({"type": "meetingsTable"}) == MeetingsTableRoleSource(0, 2)
    with pytest.raises(ValueError, match="Unknown team_role_source"):
        parse_team_role_source({"type": "spreadsheetMagic"})
    with pytest.raises(ValueError):
        parse_load_options({"sheets": ["Meetings"]})
