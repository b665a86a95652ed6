"""
python-docx building blocks shared by the itinerary documents.

python-docx has no API for hyperlinks, page-number fields, cell shading or
paragraph borders, so those are written as raw WordprocessingML elements.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from docx.document import Document as DocxDocument
from docx.enum.section import WD_SECTION
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_TAB_ALIGNMENT
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.section import Section
from docx.shared import Inches, Pt, RGBColor
from docx.table import Table, _Cell, _Row
from docx.text.paragraph import Paragraph

from visit_common.config import DocumentSettings
from visit_common.errors import MissingZoomRoom
from visit_common.messages import MessageCollector
from visit_common.schema import Data, ZoomRoom


T = TypeVar("T")
K = TypeVar("K")

ACCENT_COLOR = "92002E"
HEADER_COLOR = "54585A"
HEADER_FONT = "Barlow"
HEADER_FILL = "DDDDDD"
TIME_COLOR = "C00000"
HYPERLINK_COLOR = "0563C1"

PAGE_WIDTH = Inches(8.5)
PAGE_HEIGHT = Inches(11)
PAGE_MARGIN = Inches(0.5)
CONTENT_WIDTH = Inches(7.5)

HeaderTitle = Union[str, Tuple[str, str]]


def group_by(items: Iterable[T], key: Callable[[T], K]) -> List[Tuple[K, List[T]]]:
    """Group items by key, keeping first-seen key order and item order."""

    groups: Dict[K, List[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return list(groups.items())


def describe_date_span(dates: Sequence[Optional[date]]) -> str:
    """Visit span label such as "March 23-26, 2025"; empty when no dates are known."""

    known = sorted(d for d in dates if d is not None)
    if not known:
        return ""
    first, last = known[0], known[-1]
    if first == last:
        return f"{first:%B} {first.day}, {first.year}"
    if (first.year, first.month) == (last.year, last.month):
        return f"{first:%B} {first.day}-{last.day}, {first.year}"
    if first.year == last.year:
        return f"{first:%B} {first.day} - {last:%B} {last.day}, {first.year}"
    return f"{first:%B} {first.day}, {first.year} - {last:%B} {last.day}, {last.year}"


def visit_dates(data: Data, settings: DocumentSettings) -> str:
    if settings.visit_dates:
        return settings.visit_dates
    return describe_date_span([m.parsed_date for m in data.proposed_meetings_data])


########################
# RAW XML HELPERS
########################


def _set_border(parent: Any, container_tag: str, edges: Mapping[str, Mapping[str, str]], successors: Sequence[str]) -> None:
    container = OxmlElement(container_tag)
    for edge, attrs in edges.items():
        element = OxmlElement(f"w:{edge}")
        for name, value in attrs.items():
            element.set(qn(f"w:{name}"), value)
        container.append(element)
    parent.insert_element_before(container, *successors)


_PPR_AFTER_PBDR = (
    "w:shd", "w:tabs", "w:suppressAutoHyphens", "w:kinsoku", "w:wordWrap",
    "w:overflowPunct", "w:topLinePunct", "w:autoSpaceDE", "w:autoSpaceDN",
    "w:bidi", "w:adjustRightInd", "w:snapToGrid", "w:spacing", "w:ind",
    "w:contextualSpacing", "w:mirrorIndents", "w:suppressOverlap", "w:jc",
    "w:textDirection", "w:textAlignment", "w:textboxTightWrap",
    "w:outlineLvl", "w:divId", "w:cnfStyle", "w:rPr", "w:sectPr", "w:pPrChange",
)
_TCPR_AFTER_BORDERS = ("w:shd", "w:noWrap", "w:tcMar", "w:textDirection", "w:tcFitText", "w:vAlign", "w:hideMark")
_TCPR_AFTER_SHD = _TCPR_AFTER_BORDERS[1:]
_SECTPR_AFTER_PGNUMTYPE = (
    "w:cols", "w:formProt", "w:vAlign", "w:noEndnote", "w:titlePg",
    "w:textDirection", "w:bidi", "w:rtlGutter", "w:docGrid", "w:printerSettings", "w:sectPrChange",
)


def add_paragraph_borders(paragraph: Paragraph, color: str = HEADER_COLOR) -> None:
    """Thin rule above and a hairline below the paragraph."""

    _set_border(
        paragraph._p.get_or_add_pPr(),
        "w:pBdr",
        {
            "top": {"val": "single", "sz": "6", "space": "8", "color": color},
            "bottom": {"val": "single", "sz": "2", "space": "8", "color": color},
        },
        _PPR_AFTER_PBDR,
    )


def shade_cell(cell: _Cell, fill: str = HEADER_FILL) -> None:
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), fill)
    cell._tc.get_or_add_tcPr().insert_element_before(shd, *_TCPR_AFTER_SHD)


def hide_cell_borders(cell: _Cell, *, top: bool = False, bottom: bool = False) -> None:
    edges = {}
    if top:
        edges["top"] = {"val": "nil"}
    if bottom:
        edges["bottom"] = {"val": "nil"}
    if edges:
        _set_border(cell._tc.get_or_add_tcPr(), "w:tcBorders", edges, _TCPR_AFTER_BORDERS)


def _row_flag(row: _Row, tag: str) -> None:
    row._tr.get_or_add_trPr().append(OxmlElement(tag))


def keep_row_together(row: _Row) -> None:
    _row_flag(row, "w:cantSplit")


def repeat_as_header(row: _Row) -> None:
    _row_flag(row, "w:tblHeader")


def add_page_number_field(paragraph: Paragraph) -> Any:
    run = paragraph.add_run()
    begin = OxmlElement("w:fldChar")
    begin.set(qn("w:fldCharType"), "begin")
    instr = OxmlElement("w:instrText")
    instr.set(qn("xml:space"), "preserve")
    instr.text = "PAGE"
    end = OxmlElement("w:fldChar")
    end.set(qn("w:fldCharType"), "end")
    run._r.append(begin)
    run._r.append(instr)
    run._r.append(end)
    return run


def restart_page_numbers(section: Section) -> None:
    # sections added later clone the previous sectPr, pgNumType included
    pg_num_type = section._sectPr.find(qn("w:pgNumType"))
    if pg_num_type is None:
        pg_num_type = OxmlElement("w:pgNumType")
        section._sectPr.insert_element_before(pg_num_type, *_SECTPR_AFTER_PGNUMTYPE)
    pg_num_type.set(qn("w:start"), "1")


def add_hyperlink(paragraph: Paragraph, url: str, text: str) -> Any:
    """Append an external hyperlink run styled like a link."""

    r_id = paragraph.part.relate_to(url, RT.HYPERLINK, is_external=True)
    hyperlink = OxmlElement("w:hyperlink")
    hyperlink.set(qn("r:id"), r_id)

    run = OxmlElement("w:r")
    r_pr = OxmlElement("w:rPr")
    color = OxmlElement("w:color")
    color.set(qn("w:val"), HYPERLINK_COLOR)
    underline = OxmlElement("w:u")
    underline.set(qn("w:val"), "single")
    r_pr.append(color)
    r_pr.append(underline)
    run.append(r_pr)
    text_element = OxmlElement("w:t")
    text_element.set(qn("xml:space"), "preserve")
    text_element.text = text
    run.append(text_element)
    hyperlink.append(run)

    paragraph._p.append(hyperlink)
    return hyperlink


########################
# ZOOM LINKS
########################


def add_zoom_link(
    paragraph: Paragraph,
    zoom_room_name: str,
    zoom_rooms_by_name: Mapping[str, ZoomRoom],
    collector: MessageCollector,
    meeting: str = "",
) -> None:
    """Hyperlinked room name, or plain text (with a warning) when the room has no link."""

    zoom_room = zoom_rooms_by_name.get(zoom_room_name)
    if zoom_room is None:
        raise MissingZoomRoom(zoom_room_name, meeting)
    if zoom_room.has_link:
        add_hyperlink(paragraph, zoom_room.link.strip(), zoom_room.zoom_room_name)
        return
    collector.warn(f"zoom room without link: {zoom_room_name}")
    paragraph.add_run(zoom_room_name)


########################
# PAGE SETUP / HEADERS
########################


def setup_page(section: Section) -> None:
    section.page_width = PAGE_WIDTH
    section.page_height = PAGE_HEIGHT
    section.left_margin = section.right_margin = PAGE_MARGIN
    section.top_margin = section.bottom_margin = PAGE_MARGIN
    section.different_first_page_header_footer = True
    restart_page_numbers(section)


def _header_run(paragraph: Paragraph, text: str, *, size: float, color: str = HEADER_COLOR) -> Any:
    run = paragraph.add_run(text)
    run.bold = True
    run.font.name = HEADER_FONT
    run.font.size = Pt(size)
    run.font.all_caps = True
    run.font.color.rgb = RGBColor.from_string(color)
    return run


def _first_page_line(paragraph: Paragraph, text: str, *, size: float = 14, color: str = HEADER_COLOR) -> None:
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    paragraph.paragraph_format.space_after = Pt(20)
    add_paragraph_borders(paragraph)
    _header_run(paragraph, text, size=size, color=color)


def write_headers(section: Section, settings: DocumentSettings, title: HeaderTitle, dates: str) -> None:
    """
    First page: institution, visit title, document title and dates, centered.
    Later pages: "VISIT TITLE <tab> DOCUMENT TITLE | page".
    """

    first_title, running_title = (title, title) if isinstance(title, str) else title

    lines = [(settings.institution, 18, ACCENT_COLOR), (settings.visit_title, 14, HEADER_COLOR)]
    lines.append((first_title, 14, HEADER_COLOR))
    if dates:
        lines.append((dates, 14, HEADER_COLOR))

    first_header = section.first_page_header
    paragraph = first_header.paragraphs[0]
    for index, (text, size, color) in enumerate(lines):
        if index:
            paragraph = first_header.add_paragraph()
        _first_page_line(paragraph, text, size=size, color=color)

    header = section.header
    paragraph = header.paragraphs[0]
    paragraph.alignment = WD_ALIGN_PARAGRAPH.LEFT
    paragraph.paragraph_format.space_after = Pt(0)
    paragraph.paragraph_format.tab_stops.add_tab_stop(CONTENT_WIDTH, WD_TAB_ALIGNMENT.RIGHT)
    _header_run(paragraph, settings.visit_title, size=10).add_tab()
    _header_run(paragraph, running_title, size=10, color=ACCENT_COLOR)
    _header_run(paragraph, " | ", size=10)
    page = add_page_number_field(paragraph)
    page.bold = True
    page.font.size = Pt(10)
    page.font.color.rgb = RGBColor.from_string(HEADER_COLOR)
    header.add_paragraph("")


def start_document(doc: DocxDocument, settings: DocumentSettings, title: HeaderTitle, dates: str) -> Section:
    section = doc.sections[0]
    setup_page(section)
    write_headers(section, settings, title, dates)
    return section


def add_section(doc: DocxDocument) -> Section:
    """New page section that shares the first section's headers."""

    section = doc.add_section(WD_SECTION.NEW_PAGE)
    setup_page(section)
    return section


########################
# TABLES
########################


def new_table(doc: DocxDocument, widths: Sequence[float]) -> Table:
    table = doc.add_table(rows=0, cols=len(widths))
    table.style = "Table Grid"
    table.autofit = False
    table.alignment = WD_TABLE_ALIGNMENT.CENTER
    for column, width in zip(table.columns, widths):
        column.width = Inches(width)
    return table


def add_row(table: Table, widths: Sequence[float]) -> _Row:
    row = table.add_row()
    for cell, width in zip(row.cells, widths):
        cell.width = Inches(width)
    return row


def fill_header_cell(cell: _Cell, text: str) -> _Cell:
    shade_cell(cell)
    paragraph = cell.paragraphs[0]
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    paragraph.add_run(text).bold = True
    return cell


def add_header_row(table: Table, widths: Sequence[float], labels: Sequence[str]) -> _Row:
    row = add_row(table, widths)
    for cell, label in zip(row.cells, labels):
        fill_header_cell(cell, label)
    keep_row_together(row)
    return row


def add_spanning_header_row(table: Table, widths: Sequence[float], text: str) -> _Row:
    row = add_row(table, widths)
    merged = row.cells[0].merge(row.cells[-1])
    fill_header_cell(merged, text)
    keep_row_together(row)
    return row


def set_cell_text(cell: _Cell, text: str, *, alignment: Any = None, keep_with_next: bool = False) -> Paragraph:
    paragraph = cell.paragraphs[0]
    if text:
        paragraph.add_run(text)
    if alignment is not None:
        paragraph.alignment = alignment
    if keep_with_next:
        paragraph.paragraph_format.keep_with_next = True
    return paragraph


def fill_location_cell(
    cell: _Cell,
    meeting: Any,
    show_zoom: bool,
    zoom_rooms_by_name: Mapping[str, ZoomRoom],
    collector: MessageCollector,
) -> None:
    set_cell_text(cell, meeting.meeting_location)
    if show_zoom:
        add_zoom_link(
            cell.add_paragraph(), meeting.zoom_room_name, zoom_rooms_by_name, collector, meeting.interview_assignments
        )
