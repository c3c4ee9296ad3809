"""DB-API connector and dialect exports."""

from .connector import Connector
from .dialects import Dialect, OracleDialect, PostgresDialect, SQLiteDialect, dialect_for

__all__ = [
    "Connector",
    "Dialect",
    "OracleDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "dialect_for",
]
