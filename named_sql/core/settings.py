"""Executor settings loaded from keyword arguments or the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError
from .registry import DEFAULT_DYNAMIC_PREFIX

ENV_PREFIX = "NAMED_SQL_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def load_environments(env_path: str = ".env") -> None:
    """Fill unset environment variables from a dotenv file, if present."""

    load_dotenv(env_path, override=False)


@dataclass(frozen=True)
class ExecutorSettings:
    """Everything needed to build a `DbExecutor`.

    `silent` suppresses start and long-request records for every call; errors
    are always logged.
    """

    dsn: str
    sql_dir: str = "sql"
    dialect: str = "oracle"
    file_pattern: str = "*"
    dynamic_prefix: str = DEFAULT_DYNAMIC_PREFIX
    silent: bool = False
    long_request_seconds: float = 1.0
    out_param_size: int = 1000

    def __post_init__(self) -> None:
        if not self.dsn:
            raise ConfigurationError("Connection string (dsn) is required.")
        if self.long_request_seconds < 0:
            raise ConfigurationError("long_request_seconds must be >= 0.")
        if self.out_param_size < 1:
            raise ConfigurationError("out_param_size must be >= 1.")

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        *,
        env: Optional[Mapping[str, str]] = None,
        env_path: Optional[str] = ".env",
    ) -> ExecutorSettings:
        """Read `<prefix>DSN`, `<prefix>SQL_DIR`, `<prefix>DIALECT`, and friends."""

        if env is None:
            if env_path:
                load_environments(env_path)
            env = os.environ

        def get(key: str) -> Optional[str]:
            return env.get(prefix + key)

        kwargs: dict = {"dsn": get("DSN") or ""}
        for key, attr in (
            ("SQL_DIR", "sql_dir"),
            ("DIALECT", "dialect"),
            ("FILE_PATTERN", "file_pattern"),
            ("DYNAMIC_PREFIX", "dynamic_prefix"),
        ):
            value = get(key)
            if value:
                kwargs[attr] = value

        silent = get("SILENT")
        if silent is not None:
            kwargs["silent"] = _parse_bool(prefix + "SILENT", silent)
        seconds = get("LONG_REQUEST_SECONDS")
        if seconds:
            kwargs["long_request_seconds"] = _parse_number(
                prefix + "LONG_REQUEST_SECONDS", seconds, float
            )
        size = get("OUT_PARAM_SIZE")
        if size:
            kwargs["out_param_size"] = _parse_number(prefix + "OUT_PARAM_SIZE", size, int)
        return cls(**kwargs)


def _parse_bool(key: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{key} must be a boolean, got {raw!r}.")


def _parse_number(key: str, raw: str, kind: type) -> float:
    try:
        return kind(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}.") from exc
