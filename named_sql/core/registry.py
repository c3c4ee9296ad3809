"""Named query registry backed by a directory of XML definition files.

Each definition file holds a root element with any number of `sql` children::

    <queries>
      <sql name="dual">select * from dual</sql>
    </queries>

Loaded state is kept in one immutable snapshot that is swapped in whole on
every (re)load, so readers never observe a half-built mapping.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import threading
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from .errors import LoadError, NotFoundError

logger = logging.getLogger(__name__)

DEFAULT_DYNAMIC_PREFIX = "<dynamic>"


@dataclass(frozen=True)
class _Snapshot:
    files: Mapping[str, Optional[int]] = field(default_factory=dict)
    queries: Mapping[str, str] = field(default_factory=dict)


class QueryRegistry:
    """Resolve symbolic query names to SQL text."""

    def __init__(
        self,
        sql_dir: str | os.PathLike[str],
        *,
        pattern: str = "*",
        dynamic_prefix: str = DEFAULT_DYNAMIC_PREFIX,
    ):
        """Create an empty registry; call `init()` before resolving names.

        Args:
            sql_dir: Directory holding query definition files.
            pattern: Glob applied to file names in `sql_dir`.
            dynamic_prefix: Marker for inline SQL that bypasses the lookup.
        """

        if not dynamic_prefix:
            raise ValueError("dynamic_prefix must be a non-empty string.")
        self.sql_dir = os.fspath(sql_dir)
        self.pattern = pattern
        self.dynamic_prefix = dynamic_prefix
        self._snapshot = _Snapshot()
        self._loaded = False
        self._load_lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def init(self) -> None:
        """Load every definition file, replacing all previous state.

        Raises:
            LoadError: On unreadable directory or file, malformed XML, a
                `sql` element without a name, or a duplicate query name.
        """

        with self._load_lock:
            paths = self._list_files()
            files: Dict[str, Optional[int]] = {path: _mtime(path) for path in paths}
            queries: Dict[str, str] = {}
            for path in paths:
                self._read_file(path, queries)

            self._snapshot = _Snapshot(
                files=MappingProxyType(files),
                queries=MappingProxyType(queries),
            )
            self._loaded = True
        logger.debug(
            "Loaded %d queries from %d files in %s", len(queries), len(files), self.sql_dir
        )

    def reload_if_changed(self) -> bool:
        """Reload everything when any tracked file changed or disappeared.

        Returns:
            True when a reload happened.
        """

        snapshot = self._snapshot
        for path, recorded in snapshot.files.items():
            if _mtime(path) != recorded:
                logger.info("Query file %s changed, reloading %s", path, self.sql_dir)
                self.init()
                return True
        return False

    def resolve(self, name: str) -> str:
        """Return SQL text for a query name or a dynamic inline query.

        Raises:
            NotFoundError: If `name` is not dynamic and not registered.
        """

        if name.startswith(self.dynamic_prefix):
            return name[len(self.dynamic_prefix):]
        sql = self._snapshot.queries.get(name)
        if sql is None:
            raise NotFoundError(name)
        return sql

    def names(self) -> List[str]:
        return sorted(self._snapshot.queries)

    def files(self) -> Dict[str, Optional[int]]:
        return dict(self._snapshot.files)

    def __contains__(self, name: object) -> bool:
        return name in self._snapshot.queries

    def __len__(self) -> int:
        return len(self._snapshot.queries)

    def _list_files(self) -> List[str]:
        try:
            entries = sorted(os.listdir(self.sql_dir))
        except OSError as exc:
            raise LoadError(f"Cannot list query directory {self.sql_dir!r}: {exc}") from exc

        paths = []
        for entry in entries:
            if not fnmatch.fnmatch(entry, self.pattern):
                continue
            path = os.path.join(self.sql_dir, entry)
            if os.path.isfile(path):
                paths.append(path)
        return paths

    def _read_file(self, path: str, queries: Dict[str, str]) -> None:
        try:
            root = ET.parse(path).getroot()
        except ET.ParseError as exc:
            raise LoadError(f"Malformed query file {path!r}: {exc}") from exc
        except OSError as exc:
            raise LoadError(f"Cannot read query file {path!r}: {exc}") from exc

        for element in root.findall("sql"):
            name = element.get("name")
            if not name:
                raise LoadError(f"Query without name attribute in {path!r}")
            if name in queries:
                raise LoadError(f"Duplicate key: '{name}' for query ({path!r})")
            queries[name] = "".join(element.itertext()).replace("\r", "")


def _mtime(path: str) -> Optional[int]:
    try:
        return os.stat(path).st_mtime_ns
    except OSError:
        return None
