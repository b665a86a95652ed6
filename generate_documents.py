#!/usr/bin/env python3
"""
Generate visit itinerary documents (.docx) from a schedule workbook.

Example:
    python generate_documents.py schedule.xlsx --full --summary-out out/summary.docx -v
"""

from __future__ import annotations

import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import polars as pl

from visit_common.config import Settings, load_settings
from visit_common.load import load_data
from visit_common.messages import MessageCollector, run_collecting
from visit_common.schema import Data
from visit_docs import DOCUMENT_KINDS, DocumentKind


@dataclass(frozen=True)
class RenderJob:
    kind: DocumentKind
    output: Path


@dataclass
class RenderOutcome:
    job: RenderJob
    collector: MessageCollector
    ok: bool


########################
# GENERIC HELPERS
########################

def configure_logging(verbosity: int) -> None:
    level = logging.DEBUG if verbosity > 0 else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Render full, individual and summary itineraries from a visit schedule workbook.",
    )
    parser.add_argument("input", type=Path, help="Path to the schedule workbook (.xlsx).")
    for kind in DOCUMENT_KINDS.values():
        parser.add_argument(
            f"--{kind.name}",
            action="store_true",
            help=f"Generate the {kind.name} document ({kind.default_output}).",
        )
        parser.add_argument(
            f"--{kind.name}-out",
            type=Path,
            default=None,
            metavar="FILE",
            help=f"Output path for the {kind.name} document (implies --{kind.name}).",
        )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML config with load options and header text (default: $VISIT_CONFIG or ./visit.yaml).",
    )
    parser.add_argument(
        "--export-dir",
        type=Path,
        default=None,
        help="Also write the normalized meetings and participants as CSV into this directory.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (repeatable).",
    )
    args = parser.parse_args(argv)
    args.jobs = selected_jobs(args)
    if not args.jobs:
        parser.error("no outputs selected, use " + " or ".join(f"--{name}" for name in DOCUMENT_KINDS))
    return args


def selected_jobs(args: argparse.Namespace) -> List[RenderJob]:
    jobs: List[RenderJob] = []
    for kind in DOCUMENT_KINDS.values():
        output = getattr(args, f"{kind.name}_out")
        if getattr(args, kind.name) or output is not None:
            jobs.append(RenderJob(kind, output or Path(kind.default_output)))
    return jobs


########################
# EXPORTS
########################

def meetings_table(data: Data) -> pl.DataFrame:
    return pl.DataFrame(
        [
            {
                "date": m.date,
                "time": m.time,
                "start_time": m.start_time.label() if m.start_time else None,
                "end_time": m.end_time.label() if m.end_time else None,
                "meeting": m.interview_assignments,
                "location": m.meeting_location,
                "zoom_room_option": m.zoom_room_option_type,
                "zoom_room": m.zoom_room_name,
                "team_roles": ", ".join(m.role_labels()),
                "individuals": ", ".join(i.display_name for i in m.individuals),
                "hide_names": m.hide_names,
            }
            for m in data.proposed_meetings_data
        ],
        schema={
            "date": pl.Utf8,
            "time": pl.Utf8,
            "start_time": pl.Utf8,
            "end_time": pl.Utf8,
            "meeting": pl.Utf8,
            "location": pl.Utf8,
            "zoom_room_option": pl.Utf8,
            "zoom_room": pl.Utf8,
            "team_roles": pl.Utf8,
            "individuals": pl.Utf8,
            "hide_names": pl.Boolean,
        },
    )


def participants_table(data: Data) -> pl.DataFrame:
    return pl.DataFrame(
        [
            {
                "id": p.id,
                "full_name": p.full_name,
                "title": p.title,
                "email": p.email,
                "staff": p.staff,
                "faculty": p.faculty,
                "team_member_roles": ", ".join(p.team_member_roles),
            }
            for p in data.participant_list_data
        ],
        schema={
            "id": pl.Utf8,
            "full_name": pl.Utf8,
            "title": pl.Utf8,
            "email": pl.Utf8,
            "staff": pl.Boolean,
            "faculty": pl.Boolean,
            "team_member_roles": pl.Utf8,
        },
    )


def export_tables(data: Data, export_dir: Path) -> Dict[str, Path]:
    export_dir.mkdir(parents=True, exist_ok=True)
    written = {
        "meetings": export_dir / "meetings.csv",
        "participants": export_dir / "participants.csv",
    }
    meetings_table(data).write_csv(written["meetings"])
    participants_table(data).write_csv(written["participants"])
    for name, path in written.items():
        logging.info(f"Wrote {name} CSV to {path}")
    return written


########################
# RENDERING
########################

def render_job(job: RenderJob, data: Data, settings: Settings) -> RenderOutcome:
    """
    Render and save one document. Failures land in the job's own collector:
    user errors as `error`, anything else as `codeError`.
    """

    collector = MessageCollector()

    def render() -> Path:
        document = job.kind.generate(data, collector, settings.documents)
        job.output.parent.mkdir(parents=True, exist_ok=True)
        document.save(str(job.output))
        return job.output

    result = run_collecting(render, collector)
    if result.success:
        logging.info(f"Wrote {job.kind.name} itinerary to {job.output}")
    return RenderOutcome(job, collector, result.success)


def render_all(jobs: Sequence[RenderJob], data: Data, settings: Settings) -> List[RenderOutcome]:
    """Render every job concurrently; one failure never cancels the others."""

    if not jobs:
        return []
    with ThreadPoolExecutor(max_workers=max(1, min(settings.max_workers, len(jobs)))) as pool:
        futures = [pool.submit(render_job, job, data, settings) for job in jobs]
        return [future.result() for future in futures]


def report_failures(outcomes: Sequence[RenderOutcome]) -> int:
    failed = [o for o in outcomes if not o.ok]
    for outcome in failed:
        defects = outcome.collector.of_type("codeError")
        kind = "an internal error" if defects else "a data error"
        logging.error(f"{outcome.job.kind.name} itinerary failed with {kind}")
    return len(failed)


########################
# MAIN EXECUTION
########################

def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except ValueError as e:
        logging.error(f"Failed to load config: {e}")
        return 1

    if not args.input.exists():
        logging.error(f"Input file not found: {args.input}")
        return 1

    collector = MessageCollector()
    loaded = run_collecting(lambda: load_data(args.input, settings.load_options, collector), collector)
    if not loaded.success:
        logging.error(f"Failed to load {args.input}")
        return 1
    data = loaded.value

    if args.export_dir is not None:
        export_tables(data, args.export_dir)

    outcomes = render_all(args.jobs, data, settings)
    failures = report_failures(outcomes)
    if failures:
        logging.error(f"{failures} of {len(outcomes)} documents failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
