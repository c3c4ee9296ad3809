from __future__ import annotations

import logging
import unittest

from named_sql import DbParam, ExecutionLog, command_text, out_param, param_summary
from named_sql.core.diagnostics import format_elapsed


class ParamSummaryTests(unittest.TestCase):
    def test_empty(self) -> None:
        self.assertEqual(param_summary([]), "")

    def test_markers(self) -> None:
        summary = param_summary(
            [
                DbParam("a", "1"),
                out_param("b"),
                DbParam("c", None),
                DbParam("d", "x" * 51),
                DbParam("e", "y" * 50),
                DbParam("f", 3.5),
            ]
        )
        self.assertEqual(
            summary,
            f": a='1', b=[out], c=null, d=..., e='{'y' * 50}', f='3.5'",
        )

    def test_output_marker_wins_over_value(self) -> None:
        self.assertEqual(param_summary([DbParam("b", "stale", output=True)]), ": b=[out]")


class CommandTextTests(unittest.TestCase):
    def test_inlines_untruncated_values(self) -> None:
        long_value = "z" * 80
        text = command_text(
            "update t set v = :v where id = :id",
            [
                DbParam("v", long_value),
                DbParam("id", None),
                out_param("o"),
                DbParam("seed", 7, output=True),
            ],
        )
        self.assertEqual(
            text.split("\n"),
            [
                "update t set v = :v where id = :id",
                f"v: '{long_value}'",
                "id: null",
                "o: null",
                "seed: '7'",
            ],
        )

    def test_without_params(self) -> None:
        self.assertEqual(command_text("select 1", []), "select 1")


class ExecutionLogTests(unittest.TestCase):
    def setUp(self) -> None:
        self.logger = logging.getLogger("named_sql.tests.diagnostics")

    def test_format_elapsed(self) -> None:
        self.assertEqual(format_elapsed(3723.5), "01:02:03.5000000")

    def test_threshold_is_exclusive(self) -> None:
        log = ExecutionLog(self.logger, long_request_seconds=1.0)
        with self.assertNoLogs(self.logger, level="DEBUG"):
            log.finished("q", "", 1.0, silent=False)
        with self.assertLogs(self.logger, level="DEBUG") as logs:
            log.finished("q", ". Rows affected: 3", 1.5, silent=False)
        self.assertEqual(logs.records[0].levelno, logging.DEBUG)
        self.assertIn("!Long request 'q'. Rows affected: 3. Executed in:", logs.output[0])

    def test_silent_flags(self) -> None:
        quiet = ExecutionLog(self.logger, silent=True)
        with self.assertNoLogs(self.logger, level="DEBUG"):
            quiet.started("q", [DbParam("a", 1)], silent=False)
            quiet.finished("q", "", 10.0, silent=False)

        loud = ExecutionLog(self.logger)
        with self.assertNoLogs(self.logger, level="DEBUG"):
            loud.started("q", [], silent=True)
            loud.finished("q", "", 10.0, silent=True)

    def test_failures_are_logged_even_when_silent(self) -> None:
        quiet = ExecutionLog(self.logger, silent=True)
        with self.assertLogs(self.logger, level="ERROR") as logs:
            quiet.failed("q", "boom", "select 1")
        self.assertEqual(logs.records[0].levelno, logging.ERROR)
        self.assertIn("Error executing query 'q': boom\nselect 1", logs.output[0])


if __name__ == "__main__":
    unittest.main()
