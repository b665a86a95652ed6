"""
Interpreter for the run-formatting markup carried by rich-text cells.

The markup is the spreadsheet's own rich-text shape::

    <r><rPr><b/><sz val="11"/></rPr><t>Bold</t></r><r><t> plain</t></r>

Only `r` (run), `rPr` (run properties), `t` (text) and the `b`/`i`/`u` flags
are meaningful; other property tags inside `rPr` are ignored.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, TypeVar

from .errors import MarkupError, UnexpectedTag, UnexpectedText

R = TypeVar("R")

STYLE_FLAGS = {"b": "bold", "i": "italics", "u": "underline"}


@dataclass(frozen=True)
class FormattingOptions:
    bold: bool = False
    italics: bool = False
    underline: bool = False


@dataclass(frozen=True)
class TextRun:
    text: str
    bold: bool = False
    italics: bool = False
    underline: bool = False

    @property
    def formatting(self) -> FormattingOptions:
        return FormattingOptions(self.bold, self.italics, self.underline)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _check_stray_text(text: Optional[str], context: str) -> None:
    # whitespace between tags is a formatting artifact
    if text is not None and text.strip():
        raise UnexpectedText(text, context)


def _apply_properties(properties: ET.Element, style: FormattingOptions) -> FormattingOptions:
    for element in properties.iter():
        flag = STYLE_FLAGS.get(_local_name(element.tag))
        if flag:
            style = replace(style, **{flag: True})
    return style


def _emit_text(element: ET.Element, style: FormattingOptions, runs: List[TextRun]) -> None:
    if len(element):
        raise UnexpectedTag(_local_name(element[0].tag), "text")
    if element.text:
        runs.append(TextRun(element.text, style.bold, style.italics, style.underline))


def _parse_run(run: ET.Element, runs: List[TextRun]) -> None:
    style = FormattingOptions()
    _check_stray_text(run.text, "run")
    for child in run:
        name = _local_name(child.tag)
        if name == "rPr":
            style = _apply_properties(child, style)
        elif name == "t":
            _emit_text(child, style, runs)
        else:
            raise UnexpectedTag(name, "run")
        _check_stray_text(child.tail, "run")


def parse_simple_xml(markup: str) -> List[TextRun]:
    """Parse a run-markup fragment into styled text runs, in document order."""

    try:
        root = ET.fromstring(f"<root>{markup}</root>")
    except ET.ParseError as exc:
        raise MarkupError(f"malformed rich text markup: {exc}") from exc

    runs: List[TextRun] = []
    _check_stray_text(root.text, "top level")
    for child in root:
        name = _local_name(child.tag)
        if name == "r":
            _parse_run(child, runs)
        elif name == "t":
            _emit_text(child, FormattingOptions(), runs)
        else:
            raise UnexpectedTag(name, "top level")
        _check_stray_text(child.tail, "top level")
    return runs


def format_simple_xml(markup: str, formatter: Callable[[str, FormattingOptions], R]) -> List[R]:
    """Parse markup and hand each run to `formatter(text, formatting)`."""

    return [formatter(run.text, run.formatting) for run in parse_simple_xml(markup)]


def runs_to_markup(runs: List[TextRun]) -> str:
    """Serialize runs back into the markup shape (used for cells read as rich text)."""

    parts: List[str] = []
    for run in runs:
        run_el = ET.Element("r")
        flags = [tag for tag, attr in STYLE_FLAGS.items() if getattr(run, attr)]
        if flags:
            properties = ET.SubElement(run_el, "rPr")
            for tag in flags:
                ET.SubElement(properties, tag)
        text_el = ET.SubElement(run_el, "t")
        text_el.text = run.text
        parts.append(ET.tostring(run_el, encoding="unicode"))
    return "".join(parts)
