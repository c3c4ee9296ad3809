"""Parameter descriptors passed to executor calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class DbParam:
    """Named query parameter.

    `value` is bound as input before execution. When `output` is true the
    parameter is declared as an output variable and `value` is overwritten
    with what the backend returned.
    """

    name: str
    value: Any = None
    output: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("DbParam name must be a non-empty string.")


def out_param(name: str) -> DbParam:
    """Shortcut for an output parameter with no input value."""

    return DbParam(name, output=True)
