"""Concrete backend dialects for DB-API drivers."""

from __future__ import annotations

from typing import Any, Dict

from ...core.errors import ConfigurationError


class Dialect:
    """Base dialect: driver loading and output parameter support."""

    name: str = "generic"
    supports_out_params: bool = False

    def connect(self, dsn: str) -> Any:
        """Open a DB-API connection for a connection string."""

        raise ConfigurationError(f"Dialect {self.name!r} cannot open connections from a DSN.")

    def out_var(self, cursor: Any, size: int) -> Any:
        """Create a driver variable receiving an output parameter."""

        raise ConfigurationError(f"Dialect {self.name!r} does not support output parameters.")

    def out_value(self, var: Any) -> Any:
        """Read the value of an output variable after execution."""

        raise ConfigurationError(f"Dialect {self.name!r} does not support output parameters.")


class SQLiteDialect(Dialect):
    """SQLite dialect (stdlib `sqlite3`, `:name` parameters, no output params)."""

    name = "sqlite"

    def connect(self, dsn: str) -> Any:
        import sqlite3

        return sqlite3.connect(dsn)


class PostgresDialect(Dialect):
    """PostgreSQL dialect (`psycopg`, `%(name)s` parameters, no output params)."""

    name = "postgres"

    def connect(self, dsn: str) -> Any:
        try:
            import psycopg  # type: ignore[import-not-found]
        except ImportError as exc:  # pragma: no cover - env dependent
            raise ImportError(
                "psycopg is required for PostgresDialect. "
                "Install with `pip install psycopg[binary]`."
            ) from exc
        return psycopg.connect(dsn)


class OracleDialect(Dialect):
    """Oracle dialect (`oracledb`, `:name` parameters, output variables)."""

    name = "oracle"
    supports_out_params = True

    def connect(self, dsn: str) -> Any:
        try:
            import oracledb  # type: ignore[import-not-found]
        except ImportError as exc:  # pragma: no cover - env dependent
            raise ImportError(
                "oracledb is required for OracleDialect. "
                "Install with `pip install oracledb`."
            ) from exc
        return oracledb.connect(dsn=dsn)

    def out_var(self, cursor: Any, size: int) -> Any:
        return cursor.var(str, size)

    def out_value(self, var: Any) -> Any:
        return var.getvalue()


_DIALECTS: Dict[str, type[Dialect]] = {
    "sqlite": SQLiteDialect,
    "sqlite3": SQLiteDialect,
    "postgres": PostgresDialect,
    "postgresql": PostgresDialect,
    "oracle": OracleDialect,
}


def dialect_for(name: str) -> Dialect:
    """Return a dialect instance for a configured name."""

    key = (name or "").strip().lower()
    cls = _DIALECTS.get(key)
    if cls is None:
        raise ConfigurationError(f"Unsupported dialect: {name!r}")
    return cls()
