import pytest

from visit_common.errors import MarkupError, UnexpectedTag, UnexpectedText
from visit_common.markup import (
    FormattingOptions,
    TextRun,
    format_simple_xml,
    parse_simple_xml,
    runs_to_markup,
)


def test_parse_runs_with_formatting_in_document_order():
    markup = (
        "<r><rPr><b/><sz val=\"11\"/></rPr><t>Chair</t></r>"
        "<r><t>, </t></r>"
        "<r><rPr><i/><u/></rPr><t>SI</t></r>"
    )
    assert parse_simple_xml(markup) == [
        TextRun("Chair", bold=True),
        TextRun(", "),
        TextRun("SI", italics=True, underline=True),
    ]


def test_top_level_text_element_is_plain_run():
    assert parse_simple_xml("<t>plain</t>") == [TextRun("plain")]


def test_whitespace_between_tags_is_ignored():
    markup = "\n  <r>\n <t>a</t>\n </r>\n"
    assert parse_simple_xml(markup) == [TextRun("a")]


def test_empty_markup_has_no_runs():
    assert parse_simple_xml("") == []


def test_stray_text_is_rejected():
    with pytest.raises(UnexpectedText):
        parse_simple_xml("oops<r><t>a</t></r>")
    with pytest.raises(UnexpectedText):
        parse_simple_xml("<r>oops<t>a</t></r>")


@pytest.mark.parametrize(
    "markup",
    [
        "<p>a</p>",
        "<r><x/></r>",
        "<r><t><b/>a</t></r>",
    ],
)
def test_unknown_tags_are_rejected(markup):
    with pytest.raises(UnexpectedTag):
        parse_simple_xml(markup)


def test_malformed_markup_is_a_markup_error():
    with pytest.raises(MarkupError):
        parse_simple_xml("<r><t>unclosed</r>")


def test_format_simple_xml_passes_formatting_to_formatter():
    result = format_simple_xml(
        "<r><rPr><b/></rPr><t>A</t></r><r><t>B</t></r>",
        lambda text, fmt: (text, fmt),
    )
    assert result == [("A", FormattingOptions(bold=True)), ("B", FormattingOptions())]


def test_runs_to_markup_is_readable_by_parser():
    runs = [TextRun("SI", bold=True), TextRun(" & "), TextRun("SII", italics=True)]
    assert parse_simple_xml(runs_to_markup(runs)) == runs
