from __future__ import annotations

import re
import tempfile
import unittest
from typing import Any

from named_sql import (
    BackendError,
    ConfigurationError,
    DbExecutor,
    DbParam,
    OracleDialect,
    QueryRegistry,
    out_param,
)


class _FakeVar:
    def __init__(self, kind: type, size: int):
        self.kind = kind
        self.size = size
        self.value: Any = None

    def setvalue(self, pos: int, value: Any) -> None:
        self.value = value

    def getvalue(self) -> Any:
        return self.value


class _FakeOracleCursor:
    """Understands `:out := :in + <n>` blocks, like a tiny PL/SQL engine."""

    _ASSIGN = re.compile(r":(\w+)\s*:=\s*:(\w+)\s*\+\s*(\d+)")

    def __init__(self, conn: "_FakeOracleConnection"):
        self._conn = conn
        self.description = None
        self.rowcount = 0
        self.closed = False
        self.vars: list[_FakeVar] = []

    def var(self, kind: type, size: int) -> _FakeVar:
        var = _FakeVar(kind, size)
        self.vars.append(var)
        return var

    def execute(self, sql: str, params: dict[str, Any]) -> None:
        self._conn.executed.append((sql, dict(params)))
        match = self._ASSIGN.search(sql)
        if match is None:
            raise RuntimeError("ORA-06550: line 1, column 7: PLS-00103")
        target, source, step = match.groups()
        result = int(params[source]) + int(step)
        params[target].setvalue(0, str(result))
        self.rowcount = 1

    def fetchone(self) -> None:
        return None

    def close(self) -> None:
        self.closed = True


class _FakeOracleConnection:
    def __init__(self) -> None:
        self.executed: list[tuple[str, dict[str, Any]]] = []
        self.cursors: list[_FakeOracleCursor] = []
        self.closed = False
        self.commits = 0

    def cursor(self) -> _FakeOracleCursor:
        cur = _FakeOracleCursor(self)
        self.cursors.append(cur)
        return cur

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        pass

    def close(self) -> None:
        self.closed = True


class OutputParameterTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        with open(f"{self._tmp.name}/blocks.xml", "w", encoding="utf-8") as fh:
            fh.write('<q><sql name="block">begin :b := :a + 1; end;</sql></q>')
        self.registry = QueryRegistry(self._tmp.name)
        self.registry.init()
        self.connections: list[_FakeOracleConnection] = []

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _connect(self) -> _FakeOracleConnection:
        conn = _FakeOracleConnection()
        self.connections.append(conn)
        return conn

    def test_output_parameter_is_copied_back(self) -> None:
        executor = DbExecutor(self._connect, self.registry, OracleDialect())
        p = out_param("b")
        affected = executor.execute("block", DbParam("a", "1"), p)

        self.assertEqual(p.value, "2")
        self.assertEqual(affected, 1)

        conn = self.connections[0]
        sql, bound = conn.executed[0]
        self.assertEqual(sql, "begin :b := :a + 1; end;")
        self.assertEqual(bound["a"], "1")
        self.assertIsInstance(bound["b"], _FakeVar)
        self.assertEqual(bound["b"].size, 1000)
        self.assertIs(bound["b"].kind, str)
        self.assertTrue(conn.closed)
        self.assertEqual(conn.commits, 1)
        self.assertTrue(conn.cursors[0].closed)

    def test_output_buffer_size_is_configurable(self) -> None:
        executor = DbExecutor(self._connect, self.registry, OracleDialect(), out_param_size=64)
        executor.execute("block", DbParam("a", "41"), out_param("b"))
        _, bound = self.connections[0].executed[0]
        self.assertEqual(bound["b"].size, 64)
        self.assertEqual(bound["b"].getvalue(), "42")

    def test_output_parameter_in_transaction(self) -> None:
        executor = DbExecutor(self._connect, self.registry, OracleDialect())
        p = out_param("b")
        with executor.transaction() as tx:
            tx.execute("block", DbParam("a", "5"), p)
        self.assertEqual(p.value, "6")
        self.assertEqual(len(self.connections), 1)
        self.assertEqual(self.connections[0].commits, 1)

    def test_output_marker_in_start_record(self) -> None:
        executor = DbExecutor(self._connect, self.registry, OracleDialect())
        with self.assertLogs("named_sql.core.executor", level="DEBUG") as logs:
            executor.execute("block", DbParam("a", "1"), out_param("b"))
        self.assertIn("Execute query 'block': a='1', b=[out]", "\n".join(logs.output))

    def test_driver_failure_keeps_output_unset_and_closes(self) -> None:
        executor = DbExecutor(self._connect, self.registry, OracleDialect())
        p = out_param("b")
        with self.assertLogs("named_sql.core.executor", level="ERROR"):
            with self.assertRaises(BackendError) as ctx:
                executor.execute("<dynamic>begin null; end;", DbParam("a", "1"), p)
        self.assertIn("ORA-06550", ctx.exception.message)
        self.assertIsNone(p.value)
        self.assertTrue(self.connections[0].closed)
        self.assertTrue(self.connections[0].cursors[0].closed)
        self.assertEqual(self.connections[0].commits, 0)

    def test_missing_output_after_execution_is_configuration_error(self) -> None:
        executor = DbExecutor(self._connect, self.registry, OracleDialect())
        original_bind = executor._bind  # noqa: SLF001

        def bind_and_drop(cursor, params):  # noqa: ANN001,ANN202
            bound = original_bind(cursor, params)
            del bound["c"]
            bound["b"] = cursor.var(str, 10)
            return bound

        executor._bind = bind_and_drop  # type: ignore[method-assign]  # noqa: SLF001
        with self.assertRaises(ConfigurationError):
            executor.execute(
                "<dynamic>begin :b := :a + 1; end;",
                DbParam("a", "1"),
                out_param("c"),
            )
        self.assertTrue(self.connections[0].closed)

    def test_read_back_requires_every_output_in_executed_binds(self) -> None:
        executor = DbExecutor(self._connect, self.registry, OracleDialect())
        with self.assertRaises(ConfigurationError) as ctx:
            executor._read_outputs({"a": "1"}, [DbParam("a", "1"), out_param("b")])  # noqa: SLF001
        self.assertIn("Parameter not found: b", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
