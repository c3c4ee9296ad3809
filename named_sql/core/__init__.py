"""Public core API for query registry, row mapping, and execution."""

from .contracts import ConnectorPort, DialectPort, RowContract
from .diagnostics import ExecutionLog, command_text, param_summary
from .errors import (
    BackendError,
    ConfigurationError,
    DuplicateColumnError,
    LoadError,
    NamedSqlError,
    NotFoundError,
    QueryError,
)
from .executor import DbExecutor, Transaction
from .params import DbParam, out_param
from .registry import DEFAULT_DYNAMIC_PREFIX, QueryRegistry
from .rows import (
    RowView,
    as_row_factory,
    build_column_index,
    dataclass_factory,
    row_contract_factory,
)
from .settings import ExecutorSettings, load_environments

__all__ = [
    "BackendError",
    "ConfigurationError",
    "ConnectorPort",
    "DbExecutor",
    "DbParam",
    "DEFAULT_DYNAMIC_PREFIX",
    "DialectPort",
    "DuplicateColumnError",
    "ExecutionLog",
    "ExecutorSettings",
    "LoadError",
    "NamedSqlError",
    "NotFoundError",
    "QueryError",
    "QueryRegistry",
    "RowContract",
    "RowView",
    "Transaction",
    "as_row_factory",
    "build_column_index",
    "command_text",
    "dataclass_factory",
    "load_environments",
    "out_param",
    "param_summary",
    "row_contract_factory",
]
