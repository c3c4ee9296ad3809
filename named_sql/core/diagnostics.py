"""Log rendering for executed queries."""

from __future__ import annotations

import logging
from typing import Iterable

from .params import DbParam

OUT_MARKER = "[out]"
NULL_MARKER = "null"
ELIDED_MARKER = "..."
MAX_SUMMARY_VALUE_LENGTH = 50


def _summary_value(param: DbParam) -> str:
    if param.output:
        return OUT_MARKER
    if param.value is None:
        return NULL_MARKER
    text = str(param.value)
    if len(text) > MAX_SUMMARY_VALUE_LENGTH:
        return ELIDED_MARKER
    return f"'{text}'"


def param_summary(params: Iterable[DbParam]) -> str:
    """Render bound parameters for the execution-start record.

    Returns an empty string when there are no parameters, otherwise
    `": a='1', b=[out]"`.
    """

    parts = [f"{p.name}={_summary_value(p)}" for p in params]
    return ": " + ", ".join(parts) if parts else ""


def command_text(sql: str, params: Iterable[DbParam]) -> str:
    """Render SQL followed by every parameter's current value, untruncated."""

    lines = [sql]
    for p in params:
        rendered = NULL_MARKER if p.value is None else f"'{p.value}'"
        lines.append(f"{p.name}: {rendered}")
    return "\n".join(lines)


def format_elapsed(seconds: float) -> str:
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{int(hours):02d}:{int(minutes):02d}:{secs:010.7f}"


class ExecutionLog:
    """Emit start, long-request, and failure records for one executor."""

    def __init__(
        self,
        logger: logging.Logger,
        *,
        silent: bool = False,
        long_request_seconds: float = 1.0,
    ):
        self.logger = logger
        self.silent = silent
        self.long_request_seconds = long_request_seconds

    def _quiet(self, silent: bool) -> bool:
        return self.silent or silent

    def started(self, query: str, params: Iterable[DbParam], *, silent: bool) -> None:
        if self._quiet(silent):
            return
        self.logger.debug("Execute query '%s'%s", query, param_summary(params))

    def finished(self, query: str, detail: str, elapsed: float, *, silent: bool) -> None:
        if self._quiet(silent) or elapsed <= self.long_request_seconds:
            return
        self.logger.debug(
            "!Long request '%s'%s. Executed in: %s", query, detail, format_elapsed(elapsed)
        )

    def failed(self, query: str, message: str, text: str) -> None:
        self.logger.error("Error executing query '%s': %s\n%s", query, message, text)
