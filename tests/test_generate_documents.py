import sqlite3
from pathlib import Path

import docx
import polars as pl
import pytest

import generate_documents
import populate_database
from visit_common.config import load_settings
from visit_common.errors import UserError
from visit_common.load import load_data
from visit_docs import DocumentKind


@pytest.fixture
def no_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("VISIT_CONFIG", raising=False)
    monkeypatch.delenv("VISIT_MAX_WORKERS", raising=False)
    monkeypatch.delenv("VISIT_TIMEZONE", raising=False)
    return tmp_path / "absent.yaml"


def test_main_writes_selected_documents(roster_workbook, tmp_path, no_config):
    full_out = tmp_path / "out" / "full.docx"
    code = generate_documents.main(
        [str(roster_workbook), "--full-out", str(full_out), "--summary", "--roles", "--config", str(no_config)]
    )

    assert code == 0
    assert full_out.exists()
    assert (tmp_path / "summary-itinerary.docx").exists()
    assert (tmp_path / "summary-itinerary-with-roles.docx").exists()
    assert not (tmp_path / "individual-itineraries.docx").exists()
    assert len(docx.Document(str(tmp_path / "summary-itinerary.docx")).tables) == 2


def test_main_exports_normalized_tables(roster_workbook, tmp_path, no_config):
    export_dir = tmp_path / "csv"
    code = generate_documents.main(
        [str(roster_workbook), "--individual", "--export-dir", str(export_dir), "--config", str(no_config)]
    )
    assert code == 0

    meetings = pl.read_csv(export_dir / "meetings.csv")
    assert meetings.height == 3
    assert meetings["meeting"].to_list() == ["Opening Session", "Standard I Review", "Private Debrief"]
    assert meetings["end_time"].to_list() == ["10:00 a.m.", "1:00 p.m.", "2:30 p.m."]

    participants = pl.read_csv(export_dir / "participants.csv")
    roles = dict(zip(participants["id"].to_list(), participants["team_member_roles"].to_list()))
    assert roles["alex-jones"] == "SI, SII"


def test_no_outputs_selected_is_a_usage_error(roster_workbook):
    with pytest.raises(SystemExit) as excinfo:
        generate_documents.parse_args([str(roster_workbook)])
    assert excinfo.value.code == 2


def test_missing_input_fails(tmp_path, no_config):
    assert generate_documents.main([str(tmp_path / "nope.xlsx"), "--full", "--config", str(no_config)]) == 1


def test_selected_jobs_use_default_outputs(roster_workbook):
    args = generate_documents.parse_args([str(roster_workbook), "--full", "--roles-out", "r.docx"])
    assert [(job.kind.name, job.output) for job in args.jobs] == [
        ("full", Path("full-itinerary.docx")),
        ("roles", Path("r.docx")),
    ]


def test_one_failing_document_does_not_stop_the_others(roster_workbook, tmp_path, no_config):
    def broken(data, collector, settings=None):
        raise UserError("cannot render")

    full = generate_documents.DOCUMENT_KINDS["full"]
    jobs = [
        generate_documents.RenderJob(DocumentKind("broken", "broken.docx", broken), tmp_path / "broken.docx"),
        generate_documents.RenderJob(full, tmp_path / "full.docx"),
    ]
    outcomes = generate_documents.render_all(jobs, load_data(roster_workbook), load_settings(no_config))

    assert [o.ok for o in outcomes] == [False, True]
    assert (tmp_path / "full.docx").exists()
    assert outcomes[0].collector.of_type("error") == ["cannot render"]
    assert not (tmp_path / "broken.docx").exists()
    assert outcomes[1].collector.of_type("error") == ["missing individual in Standard I Review: unknown-person"]
    assert generate_documents.report_failures(outcomes) == 1


def test_generator_defect_is_recorded_as_code_error(roster_workbook, tmp_path, no_config):
    def crashing(data, collector, settings=None):
        raise KeyError("layout")

    job = generate_documents.RenderJob(DocumentKind("crashing", "crashing.docx", crashing), tmp_path / "crashing.docx")
    outcome = generate_documents.render_job(job, load_data(roster_workbook), load_settings(no_config))

    assert not outcome.ok
    assert outcome.collector.of_type("codeError") == ["KeyError: 'layout'"]
    assert outcome.collector.of_type("error") == []
    assert generate_documents.report_failures([outcome]) == 1


def test_populate_database_cli(roster_workbook, tmp_path, no_config):
    db_path = tmp_path / "visit.db"
    code = populate_database.main([str(roster_workbook), "--db-path", str(db_path), "--config", str(no_config)])

    assert code == 0
    with sqlite3.connect(db_path) as conn:
        assert conn.execute("SELECT COUNT(*) FROM meetings").fetchone()[0] == 3


def test_populate_database_cli_missing_input(tmp_path, no_config):
    assert populate_database.main([str(tmp_path / "missing.xlsx"), "--config", str(no_config)]) == 1


def test_populate_database_cli_rejects_unknown_timezone(roster_workbook, tmp_path, no_config, monkeypatch):
    monkeypatch.setenv("VISIT_TIMEZONE", "Mars/Olympus_Mons")
    db_path = tmp_path / "visit.db"
    assert populate_database.main([str(roster_workbook), "--db-path", str(db_path), "--config", str(no_config)]) == 1
    assert not db_path.exists()

