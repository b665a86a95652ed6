"""
Error taxonomy for loading and rendering visit workbooks.

`UserError` subclasses describe problems with the spreadsheet content that the
person who edited it can fix. Anything else escaping the pipeline is a defect.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional


class VisitError(Exception):
    """Base class for all errors raised by the visit toolkit."""


class UserError(VisitError):
    """Bad or ambiguous input data; recoverable by fixing the workbook."""


class MappingError(UserError):
    """A field could not be mapped from a raw row."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        row: Optional[int] = None,
        sheet: Optional[str] = None,
    ) -> None:
        self.field = field
        self.row = row
        self.sheet = sheet
        self.detail = message
        super().__init__(self._compose())

    def _compose(self) -> str:
        location = []
        if self.sheet:
            location.append(f"sheet '{self.sheet}'")
        if self.row is not None:
            location.append(f"row {self.row}")
        if self.field:
            location.append(f"field '{self.field}'")
        if not location:
            return self.detail
        return f"{', '.join(location)}: {self.detail}"

    def located(
        self,
        *,
        field: Optional[str] = None,
        row: Optional[int] = None,
        sheet: Optional[str] = None,
    ) -> "MappingError":
        """Fill in missing location details and return self."""

        if self.field is None:
            self.field = field
        if self.row is None:
            self.row = row
        if self.sheet is None:
            self.sheet = sheet
        self.args = (self._compose(),)
        return self


class FieldNotFound(MappingError):
    def __init__(self, selector: Any, **kwargs: Any) -> None:
        self.selector = selector
        super().__init__(f"column {_describe_selector(selector)} not found", **kwargs)


class AmbiguousField(MappingError):
    def __init__(self, selector: Any, candidates: Iterable[str], **kwargs: Any) -> None:
        self.selector = selector
        self.candidates = list(candidates)
        super().__init__(
            f"multiple columns match {_describe_selector(selector)}: "
            f"{', '.join(self.candidates)}; use a more specific expression",
            **kwargs,
        )


class UnmappedValue(MappingError):
    def __init__(self, value: str, **kwargs: Any) -> None:
        self.value = value
        super().__init__(f"unmapped value: {value!r}", **kwargs)


class UnparseableTime(MappingError):
    def __init__(self, text: str, **kwargs: Any) -> None:
        self.text = text
        super().__init__(f"could not interpret time: {text!r}", **kwargs)


class NoCandidate(UserError):
    def __init__(self, name: str, role: str) -> None:
        self.name = name
        self.role = role
        super().__init__(f"no participant with last name {name!r} for role {role!r}")


class AmbiguousCandidate(UserError):
    def __init__(self, name: str, role: str, candidates: Iterable[str]) -> None:
        self.name = name
        self.role = role
        self.candidates = list(candidates)
        super().__init__(
            f"multiple participants with last name {name!r} for role {role!r}: "
            f"{', '.join(self.candidates)}"
        )


class DuplicateKey(UserError):
    def __init__(self, key: Any, context: str = "") -> None:
        self.key = key
        self.context = context
        suffix = f" in {context}" if context else ""
        super().__init__(f"duplicate key {key!r}{suffix}")


class UnknownRole(UserError):
    def __init__(self, role: str, participant: str = "") -> None:
        self.role = role
        self.participant = participant
        suffix = f" (assigned to {participant})" if participant else ""
        super().__init__(f"unknown team member role {role!r}{suffix}")


class MissingZoomRoom(UserError):
    def __init__(self, zoom_room_name: str, meeting: str = "") -> None:
        self.zoom_room_name = zoom_room_name
        self.meeting = meeting
        suffix = f" referenced by {meeting!r}" if meeting else ""
        super().__init__(f"missing zoom room {zoom_room_name!r}{suffix}")


class MissingRoleRow(UserError):
    def __init__(self, label: str, row: int, sheet: str = "") -> None:
        self.label = label
        self.row = row
        self.sheet = sheet
        suffix = f" on sheet {sheet!r}" if sheet else ""
        super().__init__(f"role matrix {label} row {row} not found{suffix}")


class MissingSheet(UserError):
    def __init__(self, sheet_name: str, available: Iterable[str] = ()) -> None:
        self.sheet_name = sheet_name
        self.available = list(available)
        super().__init__(
            f"worksheet {sheet_name!r} not found; available: {', '.join(self.available) or 'none'}"
        )


class MarkupError(UserError):
    """Rich-text markup that does not follow the run/text structure."""


class UnexpectedText(MarkupError):
    def __init__(self, text: str, context: str) -> None:
        self.text = text
        self.context = context
        super().__init__(f"unexpected text {text.strip()!r} in {context}")


class UnexpectedTag(MarkupError):
    def __init__(self, tag: str, context: str) -> None:
        self.tag = tag
        self.context = context
        super().__init__(f"unexpected tag <{tag}> in {context}")


def _describe_selector(selector: Any) -> str:
    pattern = getattr(selector, "pattern", None)
    if pattern is not None:
        return f"/{pattern}/"
    return repr(selector)
