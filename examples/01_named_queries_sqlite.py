"""Named query walkthrough against a temporary SQLite database."""

from __future__ import annotations

import logging
import os
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "named_sql").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from named_sql import DbExecutor, DbParam, ExecutorSettings

SQL_DIR = Path(__file__).resolve().parent / "sql"


class Dual:
    """Entity filled through the row contract."""

    def __init__(self) -> None:
        self.dummy: Optional[str] = None

    def init_row(self, row, columns) -> None:  # noqa: ANN001
        self.dummy = row["Dummy"]


@dataclass
class User:
    id: int = 0
    email: str = ""


def main() -> None:
    logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    with tempfile.TemporaryDirectory() as tmp:
        # 1) Build executor from settings; this also loads every file in sql/.
        settings = ExecutorSettings(
            dsn=os.path.join(tmp, "example.db"),
            dialect="sqlite",
            sql_dir=str(SQL_DIR),
        )
        db = DbExecutor.from_settings(settings)

        # 2) Scalar, single row, and list forms of the same query.
        print("scalar:", db.select_scalar("dual"))
        print("row:", db.select_row("dual", Dual).dummy)
        print("list:", [d.dummy for d in db.select("dual", Dual)])

        # 3) Inline SQL behind the dynamic prefix.
        print("dynamic:", db.select_scalar("<dynamic>select 40 + 2"))

        # 4) Writes in one transaction.
        db.execute("create_users")
        with db.transaction() as tx:
            tx.execute("insert_user", DbParam("id", 1), DbParam("email", "alice@example.com"))
            tx.execute("insert_user", DbParam("id", 2), DbParam("email", "bob@example.com"))
        print("users:", db.select("users", User))

        # 5) Pick up edited definition files (call periodically in real code).
        print("reloaded:", db.registry.reload_if_changed())


if __name__ == "__main__":
    main()
