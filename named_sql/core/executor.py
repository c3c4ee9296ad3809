"""Execute named queries and map result rows to entities."""

from __future__ import annotations

import contextlib
import logging
import time
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple, Type, TypeVar, Union

from ..ports.db_api.connector import Connector, close_connection
from ..ports.db_api.dialects import Dialect, dialect_for
from .contracts import ConnectorPort, DialectPort
from .diagnostics import ExecutionLog, command_text
from .errors import BackendError, ConfigurationError, NamedSqlError
from .params import DbParam
from .registry import QueryRegistry
from .rows import RowView, as_row_factory, build_column_index, row_values
from .settings import ExecutorSettings
from .types import BoundParams, RowFactory

logger = logging.getLogger(__name__)

T = TypeVar("T")

EntityTarget = Union[Type[T], Callable[..., T]]


class DbExecutor:
    """Run queries resolved through a `QueryRegistry`.

    Every operation comes in two forms. Without `transaction` the executor
    opens its own connection, commits on success and closes it before
    returning. With `transaction` (a `Transaction` handle or a raw DB-API
    connection) the caller's connection is used and left open, uncommitted.
    """

    def __init__(
        self,
        connector: ConnectorPort | Callable[[], Any],
        registry: QueryRegistry,
        dialect: Optional[DialectPort] = None,
        *,
        silent: bool = False,
        long_request_seconds: float = 1.0,
        out_param_size: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Create an executor.

        Args:
            connector: Object with `open()` or a zero-argument connect callable.
            registry: Loaded query registry used to resolve query names.
            dialect: Backend dialect; defaults to one without output params.
            silent: Suppress start and long-request records for every call.
            long_request_seconds: Elapsed time above which a long-request record is logged.
            out_param_size: Buffer size declared for output parameters.
            clock: Monotonic time source.
        """

        if dialect is None:
            dialect = Dialect()
        if hasattr(connector, "open"):
            self.connector = connector
        elif callable(connector):
            self.connector = Connector(connector)
        else:
            raise TypeError("connector must provide open() or be callable.")
        self.registry = registry
        self.dialect = dialect
        self.out_param_size = out_param_size
        self.log = ExecutionLog(
            logger,
            silent=silent,
            long_request_seconds=long_request_seconds,
        )
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: ExecutorSettings, **kwargs: Any) -> DbExecutor:
        """Build registry, dialect, and connector from settings and load queries."""

        dialect = dialect_for(settings.dialect)
        registry = QueryRegistry(
            settings.sql_dir,
            pattern=settings.file_pattern,
            dynamic_prefix=settings.dynamic_prefix,
        )
        registry.init()
        return cls(
            Connector.from_dsn(dialect, settings.dsn),
            registry,
            dialect,
            silent=settings.silent,
            long_request_seconds=settings.long_request_seconds,
            out_param_size=settings.out_param_size,
            **kwargs,
        )

    @property
    def silent(self) -> bool:
        return self.log.silent

    def open_connection(self) -> Any:
        """Open a new connection owned by the caller."""

        return self.connector.open()

    @contextlib.contextmanager
    def transaction(self) -> Iterator[Transaction]:
        """Open a connection and run calls in one commit/rollback scope."""

        conn = self.open_connection()
        try:
            yield Transaction(self, conn)
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            close_connection(conn)

    def execute(
        self,
        query: str,
        *params: DbParam,
        silent: bool = False,
        transaction: Any = None,
    ) -> int:
        """Run a non-query statement and return the affected row count."""

        def action(cursor: Any, sql: str, bound: BoundParams) -> Tuple[int, str]:
            self._driver_call(query, sql, params, cursor.execute, sql, bound)
            count = cursor.rowcount
            return count, f". Rows affected: {count}"

        return self._run(query, params, silent, transaction, action)

    def select_scalar(
        self,
        query: str,
        *params: DbParam,
        silent: bool = False,
        transaction: Any = None,
    ) -> Any:
        """Return the first column of the first row, or None without rows."""

        def action(cursor: Any, sql: str, bound: BoundParams) -> Tuple[Any, str]:
            self._driver_call(query, sql, params, cursor.execute, sql, bound)
            row = None
            if cursor.description:
                row = self._driver_call(query, sql, params, cursor.fetchone)
            if row is None:
                value = None
            else:
                columns = {col[0]: i for i, col in enumerate(cursor.description)}
                value = row_values(row, columns)[0]
            return value, f" for scalar. Read value: '{value}'"

        return self._run(query, params, silent, transaction, action)

    def select(
        self,
        query: str,
        factory: EntityTarget[T],
        *params: DbParam,
        silent: bool = False,
        transaction: Any = None,
    ) -> List[T]:
        """Run a query and build one entity per result row.

        Raises:
            DuplicateColumnError: If two result columns share a name; raised
                before any row is read.
        """

        build: RowFactory[T] = as_row_factory(factory)
        entity_name = getattr(factory, "__qualname__", type(factory).__name__)

        def action(cursor: Any, sql: str, bound: BoundParams) -> Tuple[List[T], str]:
            self._driver_call(query, sql, params, cursor.execute, sql, bound)
            columns = build_column_index(cursor.description, query)
            entities: List[T] = []
            while True:
                raw = self._driver_call(query, sql, params, cursor.fetchone)
                if raw is None:
                    break
                view = RowView(row_values(raw, columns), columns)
                entities.append(build(view, columns))
            return entities, f" for reading {entity_name}. Read {len(entities)} rows"

        return self._run(query, params, silent, transaction, action)

    def select_row(
        self,
        query: str,
        factory: EntityTarget[T],
        *params: DbParam,
        silent: bool = False,
        transaction: Any = None,
    ) -> Optional[T]:
        """Return the entity for the first row, or None without rows."""

        entities = self.select(query, factory, *params, silent=silent, transaction=transaction)
        return entities[0] if entities else None

    def _run(
        self,
        query: str,
        params: Sequence[DbParam],
        silent: bool,
        transaction: Any,
        action: Callable[[Any, str, BoundParams], Tuple[Any, str]],
    ) -> Any:
        sql = self.registry.resolve(query)
        if any(p.output for p in params) and not self.dialect.supports_out_params:
            raise ConfigurationError(
                f"Dialect {self.dialect.name!r} does not support output parameters "
                f"(query '{query}')."
            )

        owned = transaction is None
        if owned:
            conn = self._driver_call(query, sql, params, self.open_connection)
        else:
            conn = getattr(transaction, "conn", transaction)

        try:
            started = self._clock()
            cursor = self._driver_call(query, sql, params, conn.cursor)
            try:
                bound = self._driver_call(query, sql, params, self._bind, cursor, params)
                self.log.started(query, params, silent=silent)
                result, detail = action(cursor, sql, bound)
                self._driver_call(query, sql, params, self._read_outputs, bound, params)
            finally:
                close_connection(cursor)
            if owned:
                self._driver_call(query, sql, params, conn.commit)
            self.log.finished(query, detail, self._clock() - started, silent=silent)
            return result
        finally:
            if owned:
                close_connection(conn)

    def _bind(self, cursor: Any, params: Sequence[DbParam]) -> BoundParams:
        bound: BoundParams = {}
        for p in params:
            if p.output:
                bound[p.name] = self.dialect.out_var(cursor, self.out_param_size)
            else:
                bound[p.name] = p.value
        return bound

    def _read_outputs(self, bound: BoundParams, params: Sequence[DbParam]) -> None:
        """Copy driver output variables back into their `DbParam` values.

        `bound` is the mapping handed to `cursor.execute`; every output name
        must be present in it, otherwise binding and read-back disagree.
        """

        for p in params:
            if not p.output:
                continue
            if p.name not in bound:
                raise ConfigurationError(f"Parameter not found: {p.name}")
            p.value = self.dialect.out_value(bound[p.name])

    def _driver_call(
        self,
        query: str,
        sql: str,
        params: Sequence[DbParam],
        fn: Callable[..., Any],
        *args: Any,
    ) -> Any:
        try:
            return fn(*args)
        except NamedSqlError:
            raise
        except Exception as exc:
            message = str(exc)
            self.log.failed(query, message, command_text(sql, params))
            raise BackendError(query, message) from exc


class Transaction:
    """Caller-scoped handle bound to one open connection."""

    def __init__(self, executor: DbExecutor, conn: Any):
        self.executor = executor
        self.conn = conn

    def execute(self, query: str, *params: DbParam, silent: bool = False) -> int:
        return self.executor.execute(query, *params, silent=silent, transaction=self)

    def select_scalar(self, query: str, *params: DbParam, silent: bool = False) -> Any:
        return self.executor.select_scalar(query, *params, silent=silent, transaction=self)

    def select(
        self,
        query: str,
        factory: EntityTarget[T],
        *params: DbParam,
        silent: bool = False,
    ) -> List[T]:
        return self.executor.select(query, factory, *params, silent=silent, transaction=self)

    def select_row(
        self,
        query: str,
        factory: EntityTarget[T],
        *params: DbParam,
        silent: bool = False,
    ) -> Optional[T]:
        return self.executor.select_row(query, factory, *params, silent=silent, transaction=self)

    def commit(self) -> None:
        self.conn.commit()

    def rollback(self) -> None:
        self.conn.rollback()
