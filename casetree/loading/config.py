"""Tree load configuration file management.

Reads and writes a JSON file naming the query to load, the subqueries to
expand (typically the queries that have expectations attached), and how the
loaded tree should be post-processed and reported.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from casetree.query.parse import parse_query
from casetree.query.query import TestQuery

# Default configuration values
DEFAULT_CONFIG: dict[str, Any] = {
    "query": None,
    "subqueries_to_expand": [],
    "dissolve_level_boundaries": False,
    "report_format": "json",
}

REPORT_FORMATS = ("json", "yaml")


class TreeLoadConfig:
    """Manages the tree load JSON configuration file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path
        self._data: dict[str, Any] = dict(DEFAULT_CONFIG)
        if path is not None and path.exists():
            self._load()

    def _load(self) -> None:
        """Load config from the file."""
        assert self.path is not None
        try:
            text = self.path.read_text()
            data = json.loads(text)
        except (json.JSONDecodeError, OSError) as e:
            print(
                f"Warning: ignoring unreadable config file {self.path}: {e}",
                file=sys.stderr,
            )
            self._data = dict(DEFAULT_CONFIG)
            return
        if isinstance(data, dict):
            self._data = {**DEFAULT_CONFIG, **data}

    def save(self) -> None:
        """Write config to the file."""
        if self.path is None:
            raise ValueError("No config file path specified")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(self._data, f, indent=2)
            f.write("\n")

    @property
    def config(self) -> dict[str, Any]:
        """Get the full configuration dict."""
        return dict(self._data)

    @property
    def query(self) -> TestQuery | None:
        """Get the query to load (None if not configured).

        Raises:
            QueryError: If the configured string is not a valid query.
        """
        val = self._data.get("query", DEFAULT_CONFIG["query"])
        return parse_query(val) if val is not None else None

    @property
    def subqueries_to_expand(self) -> list[TestQuery]:
        """Get the subqueries to expand, parsed.

        Raises:
            QueryError: If any configured string is not a valid query.
        """
        vals = self._data.get(
            "subqueries_to_expand", DEFAULT_CONFIG["subqueries_to_expand"]
        )
        return [parse_query(v) for v in vals]

    @property
    def dissolve_level_boundaries(self) -> bool:
        """Whether to dissolve level boundaries after loading."""
        return bool(
            self._data.get(
                "dissolve_level_boundaries",
                DEFAULT_CONFIG["dissolve_level_boundaries"],
            )
        )

    @property
    def report_format(self) -> str:
        """Get the report file format (json or yaml)."""
        val = self._data.get("report_format", DEFAULT_CONFIG["report_format"])
        if val not in REPORT_FORMATS:
            raise ValueError(
                f"Unknown report format {val!r}, expected one of {REPORT_FORMATS}"
            )
        return val

    def set_config(
        self,
        query: TestQuery | str | None = None,
        subqueries_to_expand: list[TestQuery | str] | None = None,
        dissolve_level_boundaries: bool | None = None,
        report_format: str | None = None,
    ) -> None:
        """Update configuration values. Queries are stored as strings."""
        if query is not None:
            self._data["query"] = str(query)
        if subqueries_to_expand is not None:
            self._data["subqueries_to_expand"] = [str(q) for q in subqueries_to_expand]
        if dissolve_level_boundaries is not None:
            self._data["dissolve_level_boundaries"] = dissolve_level_boundaries
        if report_format is not None:
            self._data["report_format"] = report_format
