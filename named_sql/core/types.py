"""Shared core type aliases used across contracts, registry, and executor."""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Sequence, TypeVar

T = TypeVar("T")

BoundParams = Dict[str, Any]
ColumnIndex = Mapping[str, int]
CursorDescription = Sequence[Sequence[Any]]

# (row view, column index) -> entity
RowFactory = Callable[[Any, ColumnIndex], T]
