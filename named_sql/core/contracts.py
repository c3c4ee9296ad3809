"""Core port contracts used by the executor, row mapping, and adapters."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .types import ColumnIndex


@runtime_checkable
class RowContract(Protocol):
    """Entity that populates its own fields from one result row."""

    def init_row(self, row: Any, columns: ColumnIndex) -> None: ...


class DialectPort(Protocol):
    """Backend behavior required by the executor."""

    name: str
    supports_out_params: bool

    def connect(self, dsn: str) -> Any: ...

    def out_var(self, cursor: Any, size: int) -> Any: ...

    def out_value(self, var: Any) -> Any: ...


class ConnectorPort(Protocol):
    """Source of fresh DB-API connections for free-standing calls."""

    def open(self) -> Any: ...
