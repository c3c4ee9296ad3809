"""Exception hierarchy raised by the registry and the executor."""

from __future__ import annotations


class NamedSqlError(Exception):
    """Base class for every error raised by named_sql."""


class LoadError(NamedSqlError):
    """Raised when query definition files cannot be loaded."""


class NotFoundError(NamedSqlError, KeyError):
    """Raised when a query name is not registered."""

    def __init__(self, name: str):
        super().__init__(f"Query not found: '{name}'")
        self.name = name

    def __str__(self) -> str:
        return str(self.args[0])


class ConfigurationError(NamedSqlError):
    """Raised on internal mismatches between bound and executed parameters."""


class QueryError(NamedSqlError):
    """Execution failure of one named query.

    Only the query name and the underlying message are carried; the full
    command text with inlined parameter values goes to the log.
    """

    def __init__(self, query: str, message: str):
        super().__init__(f"Error executing query '{query}': {message}")
        self.query = query
        self.message = message


class BackendError(QueryError):
    """Driver-level failure while opening, binding, executing, or fetching."""


class DuplicateColumnError(QueryError):
    """Result set contains two columns with the same name."""

    def __init__(self, query: str, column: str):
        super().__init__(query, f"Duplicate field {column} in query")
        self.column = column
