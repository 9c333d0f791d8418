"""Report generation for loaded test trees.

Generates JSON or YAML reports describing a loaded tree: the hierarchical
node structure with collapsible flags and descriptions, the list of
collapsed queries ("variants") to run, and summary counts.
"""

from __future__ import annotations

import datetime
import json
from pathlib import Path
from typing import Any

import yaml

from casetree.loading.tree import TestSubtree, TestTree, TestTreeNode


class TreeReporter:
    """Generates reports from a loaded TestTree."""

    def __init__(self, tree: TestTree) -> None:
        self.tree = tree
        self.query: str | None = None
        self.subqueries_to_expand: list[str] = []

    def set_load_context(
        self, query: Any, subqueries_to_expand: list[Any] | None = None,
    ) -> None:
        """Record the query and subqueries the tree was loaded with.

        Args:
            query: The loaded query (or its string form).
            subqueries_to_expand: The subqueries to expand (or their strings).
        """
        self.query = str(query)
        self.subqueries_to_expand = [str(q) for q in subqueries_to_expand or []]

    def generate_report(self) -> dict[str, Any]:
        """Generate the report data structure.

        Returns:
            Dictionary representing the full report, suitable for JSON or
            YAML serialization.
        """
        now = datetime.datetime.now(tz=datetime.timezone.utc).isoformat()
        variants = [str(q) for q in self.tree.iterate_collapsed_queries()]

        report: dict[str, Any] = {
            "generated_at": now,
            "summary": self._compute_summary(len(variants)),
        }
        if self.query is not None:
            report["query"] = self.query
            report["subqueries_to_expand"] = list(self.subqueries_to_expand)

        report["variants"] = variants
        report["tree"] = self._build_report_node("(root)", self.tree.root)
        return {"report": report}

    def write_report(self, path: Path) -> None:
        """Write the report as a JSON file.

        Args:
            path: File path to write the JSON report to.
        """
        report = self.generate_report()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(report, f, indent=2)

    def write_yaml(self, path: Path) -> None:
        """Write the report as a YAML file.

        Args:
            path: File path to write the YAML report to.
        """
        report = self.generate_report()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.dump(
                report,
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )

    def write(self, path: Path, report_format: str = "json") -> None:
        """Write the report in the given format ("json" or "yaml")."""
        if report_format == "json":
            self.write_report(path)
        elif report_format == "yaml":
            self.write_yaml(path)
        else:
            raise ValueError(f"Unknown report format: {report_format}")

    def _build_report_node(self, key: str, node: TestTreeNode) -> dict[str, Any]:
        """Recursively build a report node from a tree node."""
        if not isinstance(node, TestSubtree):
            return {
                "key": key,
                "name": node.readable_relative_name,
                "query": str(node.query),
                "type": "leaf",
            }

        report_node: dict[str, Any] = {
            "key": key,
            "name": node.readable_relative_name,
            "query": str(node.query),
            "type": "subtree",
            "collapsible": node.collapsible,
        }
        if node.description is not None:
            report_node["description"] = node.description
        report_node["children"] = [
            self._build_report_node(child_key, child)
            for child_key, child in node.children.items()
        ]
        return report_node

    def _compute_summary(self, total_variants: int) -> dict[str, int]:
        """Count cases, subtrees and variants in the tree."""
        total_subtrees = 0
        stack: list[TestSubtree] = [self.tree.root]
        while stack:
            subtree = stack.pop()
            total_subtrees += 1
            for child in subtree.children.values():
                if isinstance(child, TestSubtree):
                    stack.append(child)

        return {
            "total_cases": sum(1 for _ in self.tree.iterate_leaves()),
            "total_subtrees": total_subtrees,
            "total_variants": total_variants,
        }
