"""Public port exports for concrete adapter implementations."""

from .db_api import Connector, Dialect, OracleDialect, PostgresDialect, SQLiteDialect, dialect_for

__all__ = [
    "Connector",
    "Dialect",
    "OracleDialect",
    "PostgresDialect",
    "SQLiteDialect",
    "dialect_for",
]
