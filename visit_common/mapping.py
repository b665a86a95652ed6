"""
Declarative field mapping from labeled spreadsheet rows to shaped records.

A mapping specification is a tree of tagged variants interpreted by
`map_field`:

- `Column("Name")` / `Pattern(re.compile(...))` select one cell.
- `Pipeline(source, *transforms)` pipes a value left to right.
- `RowFunction(func)` receives the whole raw row.
- `Nested({...})` produces a nested record, one key per sub-mapper.
- `Derived(func)` is computed from the (partial) output record after all base
  fields of the enclosing `Nested` exist.
- `Splice(mapper)` merges a mapping result into the enclosing record.

Plain Python values are accepted as shorthand and coerced with `as_mapper`:
str -> Column, compiled regex -> Pattern, list/tuple -> Pipeline,
dict -> Nested (keys starting with ``$`` become Splice), callable -> RowFunction.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import AmbiguousField, DuplicateKey, FieldNotFound, MappingError

SPLICE_PREFIX = "$"


def clean_value(value: Any) -> Any:
    """Trim text and normalize missing values to an empty string."""

    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return value


def find_matching_keys(row: Mapping[str, Any], pattern: "re.Pattern[str]") -> List[str]:
    return [key for key in row.keys() if pattern.search(str(key))]


def select_field(row: Mapping[str, Any], selector: Any, *, required: bool = True) -> Any:
    """
    Return exactly one column's (trimmed) value from a labeled row.

    A string selector is an exact header match; a compiled regex must match
    exactly one header. Zero matches raise FieldNotFound unless the column is
    optional, more than one raises AmbiguousField.
    """

    if isinstance(selector, re.Pattern):
        candidates = find_matching_keys(row, selector)
        if not candidates:
            if not required:
                return ""
            raise FieldNotFound(selector)
        if len(candidates) > 1:
            raise AmbiguousField(selector, candidates)
        selector = candidates[0]

    if not isinstance(row, Mapping) or selector not in row:
        if not required:
            return ""
        raise FieldNotFound(selector)
    return clean_value(row[selector])


class Mapper:
    """Base class for mapping specification nodes."""

    def apply(self, data: Any) -> Any:  # pragma: no cover - abstract
        raise NotImplementedError


@dataclass(frozen=True)
class Column(Mapper):
    name: str
    required: bool = True

    def apply(self, data: Any) -> Any:
        return select_field(data, self.name, required=self.required)


@dataclass(frozen=True)
class Pattern(Mapper):
    regex: "re.Pattern[str]"
    required: bool = True

    def apply(self, data: Any) -> Any:
        return select_field(data, self.regex, required=self.required)


@dataclass(frozen=True)
class RowFunction(Mapper):
    func: Callable[[Any], Any]

    def apply(self, data: Any) -> Any:
        return self.func(data)


@dataclass(frozen=True)
class Pipeline(Mapper):
    steps: Tuple[Any, ...]

    def __init__(self, *steps: Any) -> None:
        if not steps:
            raise ValueError("Pipeline requires at least one step")
        object.__setattr__(self, "steps", tuple(steps))

    def apply(self, data: Any) -> Any:
        value = data
        for step in self.steps:
            value = map_field(value, step)
        return value


@dataclass(frozen=True)
class Derived:
    """A field computed from the output record rather than the raw row."""

    func: Callable[[Dict[str, Any]], Any]


@dataclass(frozen=True)
class Splice:
    """Merge the fields produced by `mapper` into the enclosing record."""

    mapper: Any


_PENDING = object()


@dataclass(frozen=True)
class Nested(Mapper):
    fields: Mapping[str, Any]

    def apply(self, data: Any) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        derived: List[Tuple[str, Derived]] = []

        for key, sub in self.fields.items():
            if isinstance(sub, Derived):
                result[key] = _PENDING
                derived.append((key, sub))
                continue

            splice = isinstance(sub, Splice) or key.startswith(SPLICE_PREFIX)
            inner = sub.mapper if isinstance(sub, Splice) else sub
            field_name = key[len(SPLICE_PREFIX):] if key.startswith(SPLICE_PREFIX) else key

            try:
                value = map_field(data, inner)
            except MappingError as exc:
                raise exc.located(field=field_name)

            if not splice:
                result[key] = value
                continue

            if not isinstance(value, Mapping):
                raise MappingError(
                    f"spliced mapper must produce a mapping, got {type(value).__name__}",
                    field=field_name,
                )
            for spliced_key, spliced_value in value.items():
                if spliced_key in result or spliced_key in self.fields:
                    raise MappingError(
                        f"spliced field {spliced_key!r} collides with an existing field",
                        field=field_name,
                    )
                result[spliced_key] = spliced_value

        for key, definition in derived:
            result[key] = definition.func(result)
        return result


def as_mapper(spec: Any) -> Any:
    """Coerce declarative shorthand into mapper nodes."""

    if isinstance(spec, (Mapper, Derived, Splice)):
        return spec
    if isinstance(spec, str):
        return Column(spec)
    if isinstance(spec, re.Pattern):
        return Pattern(spec)
    if isinstance(spec, (list, tuple)):
        return Pipeline(*spec)
    if isinstance(spec, Mapping):
        return Nested({str(k): as_mapper(v) for k, v in spec.items()})
    if callable(spec):
        return RowFunction(spec)
    raise TypeError(f"did not understand mapper: {spec!r}")


def map_field(data: Any, spec: Any) -> Any:
    mapper = as_mapper(spec)
    if isinstance(mapper, (Derived, Splice)):
        raise TypeError(f"{type(mapper).__name__} is only valid as a field of a nested mapper")
    return mapper.apply(data)


def map_fields(
    rows: Iterable[Mapping[str, Any]],
    spec: Any,
    *,
    sheet: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Map every row with `spec`; the first failing row aborts the batch.

    Errors are annotated with the sheet name and the spreadsheet row number
    (taken from `row.row_number` when the reader provides it).
    """

    mapper = as_mapper(spec)
    records: List[Dict[str, Any]] = []
    for index, row in enumerate(rows):
        try:
            records.append(map_field(row, mapper))
        except MappingError as exc:
            raise exc.located(row=getattr(row, "row_number", index + 1), sheet=sheet)
    return records


def to_map(items: Sequence[Any], key_selector: Callable[[Any], Any], context: str = "") -> Dict[Any, Any]:
    """Index items by key; duplicates are a data error, not silently merged."""

    result: Dict[Any, Any] = {}
    for item in items:
        key = key_selector(item)
        if key in result:
            raise DuplicateKey(key, context)
        result[key] = item
    return result
