from __future__ import annotations

import html
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence

import polars as pl
import streamlit as st

from visit_browser.time_interpretation import get_now, get_time_interpretation
from visit_browser.visit_db import (
    connect,
    current_meetings,
    get_meeting_detail,
    list_meetings,
    parse_timestamp,
    search_meetings,
    upcoming_meetings,
)
from visit_common.config import load_settings

SETTINGS = load_settings()
MEETING_COLUMNS = ["id", "name", "date", "time", "when"]


def describe_when(row: Dict[str, Any], now: datetime) -> str:
    message = get_time_interpretation(now, parse_timestamp(row.get("start_time")), parse_timestamp(row.get("end_time")))
    return message or ""


def meetings_frame(rows: Sequence[Dict[str, Any]], now: datetime) -> pl.DataFrame:
    """Polars frame of meeting rows with a relative "when" column."""

    records = [
        {
            "id": row["id"],
            "name": row.get("name") or "",
            "date": row.get("date") or "",
            "time": row.get("time") or "",
            "when": describe_when(row, now),
        }
        for row in rows
    ]
    if not records:
        return pl.DataFrame(schema={"id": pl.Int64, **{c: pl.Utf8 for c in MEETING_COLUMNS[1:]}})
    return pl.DataFrame(records).select(MEETING_COLUMNS)


def polars_to_csv_bytes(df: pl.DataFrame) -> bytes:
    return df.write_csv().encode("utf-8")


def runs_to_markdown(runs: Sequence[Dict[str, Any]]) -> str:
    """Formatted role runs as inline HTML/markdown."""

    pieces: List[str] = []
    for run in runs:
        text = html.escape(str(run.get("text", "")))
        if run.get("bold"):
            text = f"<strong>{text}</strong>"
        if run.get("italics"):
            text = f"<em>{text}</em>"
        if run.get("underline"):
            text = f"<u>{text}</u>"
        pieces.append(text)
    return "".join(pieces)


def participants_markdown(participants: Sequence[Dict[str, Any]]) -> str:
    return "\n".join(
        f"- {html.escape(p.get('name') or '')}  <small>{html.escape(p.get('title') or '')}</small>"
        for p in participants
    )


def select_meeting(meeting_id: int) -> None:
    st.query_params["meeting"] = str(meeting_id)


def render_meeting_cards(title: str, rows: Sequence[Dict[str, Any]], now: datetime) -> None:
    st.markdown(f"### {title}")
    if not rows:
        st.markdown("_None_")
        return
    for row in rows:
        with st.container(border=True):
            st.button(row["name"] or f"Meeting {row['id']}", key=f"{title}_{row['id']}", on_click=select_meeting, args=(row["id"],))
            caption = describe_when(row, now) or row.get("time") or ""
            st.caption(caption)


def render_participants(title: str, participants: Sequence[Dict[str, Any]]) -> None:
    st.markdown(f"**{title}:**")
    if not participants:
        st.markdown("_None_")
        return
    st.markdown(participants_markdown(participants), unsafe_allow_html=True)


def render_detail(conn: Any, meeting_id: int, now: datetime) -> None:
    detail = get_meeting_detail(conn, meeting_id)
    if detail is None:
        st.error(f"Meeting {meeting_id} not found.")
        return

    meeting = detail.meeting
    st.header(meeting["name"] or f"Meeting {meeting_id}")
    st.caption(f"{meeting['date']}, {meeting['time']}")
    if meeting["location"]:
        st.caption(meeting["location"])
    when = describe_when(meeting, now)
    if when:
        st.caption(f"🕒 {when}")

    if detail.zoom_room is not None:
        zoom_room = detail.zoom_room
        if zoom_room.get("link"):
            st.markdown(f"Zoom Room Option: [{zoom_room['name']}]({zoom_room['link']})")
        else:
            st.markdown(f"Zoom Room Option: {zoom_room['name']}")

    if detail.role_runs:
        st.markdown(f"Team Roles: {runs_to_markdown(detail.role_runs)}", unsafe_allow_html=True)

    render_participants(SETTINGS.documents.team_label.replace("(s)", "s"), detail.team_members)
    render_participants(SETTINGS.documents.representative_label.replace("(s)", "s"), detail.representatives)


def main() -> None:
    st.set_page_config(page_title="Visit Browser", layout="wide")
    st.title(f"{SETTINGS.documents.visit_title} Browser")

    st.sidebar.header("Data Source")
    db_path = st.sidebar.text_input("SQLite path", value=str(SETTINGS.db_path), key="db_path")
    now = get_now(st.query_params.get("now"), SETTINGS.timezone)
    st.sidebar.caption(f"Now: {now.isoformat(timespec='minutes')}")

    try:
        conn = connect(Path(db_path).expanduser())
    except FileNotFoundError as exc:
        st.info(str(exc))
        st.stop()

    try:
        selected = st.query_params.get("meeting")
        if selected:
            if st.sidebar.button("Back to meetings", use_container_width=True):
                del st.query_params["meeting"]
                st.rerun()
            try:
                render_detail(conn, int(selected), now)
            except ValueError:
                st.error(f"Invalid meeting id: {selected}")
            return

        tabs = st.tabs(["Now", "All Meetings"])
        with tabs[0]:
            render_meeting_cards("Current Meetings", current_meetings(conn, now), now)
            render_meeting_cards("Upcoming Meetings", upcoming_meetings(conn, now), now)
        with tabs[1]:
            search_text = st.text_input("Search (meeting name or location)", key="search_text").strip()
            rows = search_meetings(conn, search_text) if search_text else list_meetings(conn)
            df = meetings_frame(rows, now)
            st.markdown(f"### Meetings ({df.height} rows)")
            st.download_button(
                label="Download CSV",
                data=polars_to_csv_bytes(df),
                file_name="meetings.csv",
                mime="text/csv",
            )
            st.dataframe(df.to_pandas(), use_container_width=True, hide_index=True)
            options = df["id"].to_list()
            if options:
                labels = dict(zip(options, df["name"].to_list()))
                choice = st.selectbox("Open meeting", options=options, format_func=lambda v: labels.get(v, str(v)))
                if st.button("Show details"):
                    select_meeting(choice)
                    st.rerun()
    finally:
        conn.close()


if __name__ == "__main__":
    main()
