import logging

from visit_common.errors import NoCandidate
from visit_common.messages import MessageCollector, run_collecting


def test_collector_forwards_to_logging(caplog):
    collector = MessageCollector()
    with caplog.at_level(logging.INFO):
        collector.info("Loaded 3 meetings")
        collector.warn("no link for Zoom A")

    assert [(m.type, m.message_content) for m in collector.messages] == [
        ("info", "Loaded 3 meetings"),
        ("warn", "no link for Zoom A"),
    ]
    assert "no link for Zoom A" in caplog.text
    assert not collector.has_errors


def test_run_collecting_returns_the_value():
    collector = MessageCollector()
    result = run_collecting(lambda: 42, collector)
    assert result.success
    assert result.value == 42
    assert collector.messages == []


def test_user_errors_become_error_messages():
    def resolve():
        raise NoCandidate("Nobody", "SI")

    collector = MessageCollector()
    result = run_collecting(resolve, collector)

    assert not result.success
    assert result.value is None
    assert collector.of_type("error") == ["no participant with last name 'Nobody' for role 'SI'"]
    assert collector.of_type("codeError") == []
    assert collector.has_errors


def test_other_exceptions_become_code_errors(caplog):
    def broken():
        return {}["missing"]

    collector = MessageCollector()
    result = run_collecting(broken, collector)

    assert not result.success
    assert collector.of_type("codeError") == ["KeyError: 'missing'"]
    assert collector.of_type("error") == []
    assert "internal error" in caplog.text
    assert collector.has_errors
