"""Connection factory for free-standing executor calls."""

from __future__ import annotations

import contextlib
from collections.abc import Callable, Iterator
from functools import partial
from typing import Any


def _unwrap_partial(
    connect: Callable[..., Any], args: tuple[Any, ...], kwargs: dict[str, Any]
) -> tuple[Callable[..., Any], tuple[Any, ...], dict[str, Any]]:
    while isinstance(connect, partial):
        args = connect.args + args
        kwargs = {**connect.keywords, **kwargs}
        connect = connect.func
    return connect, args, kwargs


class Connector:
    """Open new DB-API connections from a connect callable and its arguments.

    `functools.partial` wrappers are unfolded so that `Connector(partial(f, a), b)`
    behaves like `Connector(f, a, b)`.
    """

    def __init__(self, connect: Callable[..., Any], *connect_args: Any, **connect_kwargs: Any):
        if not callable(connect):
            raise TypeError("connect must be callable.")
        self._connect, self._args, self._kwargs = _unwrap_partial(
            connect, connect_args, dict(connect_kwargs)
        )

    @classmethod
    def from_dsn(cls, dialect: Any, dsn: str) -> Connector:
        """Connector that opens connections through `dialect.connect(dsn)`."""

        return cls(dialect.connect, dsn)

    def open(self) -> Any:
        """Open one new connection; the caller owns and closes it."""

        return self._connect(*self._args, **self._kwargs)

    @contextlib.contextmanager
    def connection(self) -> Iterator[Any]:
        """Open a connection and close it on every exit path."""

        conn = self.open()
        try:
            yield conn
        finally:
            close_connection(conn)


def close_connection(resource: Any) -> None:
    """Close a connection or cursor; objects without `close()` are left alone."""

    close = getattr(resource, "close", None)
    if callable(close):
        close()
