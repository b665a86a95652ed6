from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, TypeVar

from .errors import UserError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Message:
    type: str
    message_content: str


@dataclass
class MessageCollector:
    """
    Collect diagnostics produced while loading or rendering.

    One collector is passed explicitly into each load/render call; callers
    inspect `messages` afterwards. Every message is also forwarded to logging.
    """

    messages: List[Message] = field(default_factory=list)
    log: logging.Logger = logger

    def _add(self, type_: str, content: str, level: int) -> None:
        self.messages.append(Message(type_, content))
        self.log.log(level, content)

    def info(self, content: str) -> None:
        self._add("info", content, logging.INFO)

    def warn(self, content: str) -> None:
        self._add("warn", content, logging.WARNING)

    def error(self, content: str) -> None:
        self._add("error", content, logging.ERROR)

    def code_error(self, exc: BaseException) -> None:
        content = f"{type(exc).__name__}: {exc}"
        self.messages.append(Message("codeError", content))
        self.log.error("internal error: %s", content, exc_info=exc)

    def of_type(self, type_: str) -> List[str]:
        return [m.message_content for m in self.messages if m.type == type_]

    @property
    def has_errors(self) -> bool:
        return any(m.type in ("error", "codeError") for m in self.messages)


@dataclass(frozen=True)
class Result(Generic[T]):
    success: bool
    value: Optional[T] = None


def run_collecting(fn: Callable[[], T], collector: MessageCollector) -> Result[T]:
    """
    Run fn, turning raised errors into collector messages.

    User errors become `error` messages; any other exception is recorded as a
    `codeError` so it can be flagged as a defect.
    """

    try:
        return Result(True, fn())
    except UserError as exc:
        collector.error(str(exc))
    except Exception as exc:
        collector.code_error(exc)
    return Result(False)
