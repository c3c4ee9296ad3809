"""Row views, column indexes, and entity factories for result mapping."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Type, TypeVar, cast

from .contracts import RowContract
from .errors import DuplicateColumnError
from .types import ColumnIndex, CursorDescription, RowFactory

T = TypeVar("T")

_MISSING = object()


def build_column_index(description: Optional[CursorDescription], query: str) -> Dict[str, int]:
    """Map result column names to ordinals.

    Raises:
        DuplicateColumnError: If two columns share the same name.
    """

    columns: Dict[str, int] = {}
    for ordinal, col in enumerate(description or ()):
        name = col[0]
        if name in columns:
            raise DuplicateColumnError(query, name)
        columns[name] = ordinal
    return columns


class RowView:
    """Read-only view over the current row handed to entity factories.

    Values are reachable by ordinal or by column name. Name lookups try the
    exact name first and fall back to a case-insensitive match, since some
    backends report identifiers upper-cased.
    """

    __slots__ = ("_values", "_columns", "_folded")

    def __init__(self, values: Sequence[Any], columns: ColumnIndex):
        self._values = values
        self._columns = columns
        self._folded: Optional[Dict[str, int]] = None

    @property
    def field_count(self) -> int:
        return len(self._columns)

    def field_name(self, ordinal: int) -> str:
        for name, index in self._columns.items():
            if index == ordinal:
                return name
        raise IndexError(f"No column at ordinal {ordinal}.")

    def ordinal(self, name: str) -> int:
        index = self._columns.get(name)
        if index is not None:
            return index
        if self._folded is None:
            folded: Dict[str, int] = {}
            for col, idx in self._columns.items():
                folded.setdefault(col.lower(), idx)
            self._folded = folded
        index = self._folded.get(name.lower())
        if index is None:
            raise KeyError(name)
        return index

    def get(self, name: str, default: Any = None) -> Any:
        try:
            return self[name]
        except KeyError:
            return default

    def __getitem__(self, key: str | int) -> Any:
        if isinstance(key, int):
            return self._values[key]
        return self._values[self.ordinal(key)]

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        try:
            self.ordinal(name)
        except KeyError:
            return False
        return True

    def as_dict(self) -> Dict[str, Any]:
        return {name: self._values[index] for name, index in self._columns.items()}


def row_values(row: Any, columns: ColumnIndex) -> Sequence[Any]:
    """Normalize one driver row to a positional sequence."""

    if isinstance(row, (tuple, list)):
        return row
    if isinstance(row, Mapping):
        ordered = sorted(columns.items(), key=lambda item: item[1])
        return [row[name] for name, _ in ordered]
    try:
        return tuple(row)
    except TypeError as exc:
        raise TypeError(f"Unsupported row type: {type(row)}") from exc


def row_contract_factory(cls: Type[T]) -> RowFactory[T]:
    """Factory that default-constructs `cls` and calls its `init_row`."""

    def build(row: Any, columns: ColumnIndex) -> T:
        entity = cls()
        cast(RowContract, entity).init_row(row, columns)
        return entity

    return build


def dataclass_factory(cls: Type[T]) -> RowFactory[T]:
    """Factory that fills dataclass fields from same-named columns.

    Column names match field names case-insensitively; fields without a
    column keep their defaults.
    """

    if not is_dataclass(cls):
        raise TypeError(f"{cls.__name__} must be a dataclass.")
    names = [f.name for f in fields(cls) if f.init]

    def build(row: Any, columns: ColumnIndex) -> T:
        kwargs = {}
        for name in names:
            value = row.get(name, _MISSING)
            if value is not _MISSING:
                kwargs[name] = value
        return cls(**kwargs)

    return build


def as_row_factory(target: Type[T] | Callable[..., T]) -> RowFactory[T]:
    """Resolve a row-contract class, dataclass, or callable to a row factory."""

    if isinstance(target, type):
        if callable(getattr(target, "init_row", None)):
            return row_contract_factory(target)
        if is_dataclass(target):
            return dataclass_factory(target)
        raise TypeError(
            f"{target.__name__} must implement init_row() or be a dataclass."
        )
    if callable(target):
        return cast(RowFactory[T], target)
    raise TypeError(f"Unsupported row factory: {target!r}")
