"""Unit tests for the reporter module."""

from __future__ import annotations

import asyncio
import json
import tempfile
from pathlib import Path

import pytest
import yaml

from casetree.loading.group import make_test_group
from casetree.loading.loader import StaticTestFileLoader
from casetree.params.combinators import options
from casetree.reporting.reporter import TreeReporter


def _tree(expand=("s:a,b:c:x=1",), description=""):
    loader = StaticTestFileLoader()
    loader.add_readme("s", [], "Suite s.")
    g = make_test_group()
    g.test("c").params(options("x", [1, 2])).fn(lambda t: None)
    loader.add_spec("s", ["a", "b"], g, description=description)
    return asyncio.run(loader.load_tree("s:a,b:c:*", list(expand)))


class TestReportStructure:
    """Tests for the generated report dict."""

    def test_summary(self):
        """Summary counts cases, subtrees (root included) and variants."""
        report = TreeReporter(_tree()).generate_report()
        assert report["report"]["summary"] == {
            "total_cases": 2,
            "total_subtrees": 8,
            "total_variants": 2,
        }

    def test_variants(self):
        """Variants are the collapsed queries, as strings."""
        report = TreeReporter(_tree()).generate_report()
        assert report["report"]["variants"] == ["s:a,b:c:x=1", "s:a,b:c:x=2;*"]

    def test_root_node(self):
        """The tree starts at the suite root with its description."""
        root = TreeReporter(_tree()).generate_report()["report"]["tree"]
        assert root["key"] == "(root)"
        assert root["name"] == "s:"
        assert root["query"] == "s:*"
        assert root["type"] == "subtree"
        assert root["collapsible"] is False
        assert root["description"] == "Suite s."
        assert [c["key"] for c in root["children"]] == ["a"]

    def test_leaf_nodes(self):
        """Leaves carry their case query and no children."""
        node = TreeReporter(_tree()).generate_report()["report"]["tree"]
        while node["type"] == "subtree":
            node = node["children"][0]
        assert node == {
            "key": "",
            "name": "x=1",
            "query": "s:a,b:c:x=1",
            "type": "leaf",
        }

    def test_description_omitted_when_absent(self):
        """Nodes without description have no description key."""
        root = TreeReporter(_tree()).generate_report()["report"]["tree"]
        assert "description" not in root["children"][0]

    def test_no_load_context(self):
        """Without load context, query keys are omitted."""
        report = TreeReporter(_tree()).generate_report()
        assert "query" not in report["report"]
        assert "subqueries_to_expand" not in report["report"]
        assert "generated_at" in report["report"]

    def test_load_context(self):
        """Load context is recorded as strings."""
        reporter = TreeReporter(_tree())
        tree = reporter.tree
        reporter.set_load_context(tree.root.query, ["s:a,b:c:x=1"])
        report = reporter.generate_report()
        assert report["report"]["query"] == "s:*"
        assert report["report"]["subqueries_to_expand"] == ["s:a,b:c:x=1"]

    def test_dissolved_tree(self):
        """A dissolved tree reports fewer subtrees and the same cases."""
        tree = _tree(expand=())
        tree.dissolve_level_boundaries()
        summary = TreeReporter(tree).generate_report()["report"]["summary"]
        assert summary["total_cases"] == 2
        assert summary["total_subtrees"] == 2
        assert summary["total_variants"] == 1


class TestJsonOutput:
    """Tests for JSON file output."""

    def test_json_output_valid(self):
        """Written JSON file is valid and matches the generated report."""
        reporter = TreeReporter(_tree())
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "report.json"
            reporter.write_report(path)
            loaded = json.loads(path.read_text())
            assert loaded["report"]["variants"] == ["s:a,b:c:x=1", "s:a,b:c:x=2;*"]
            assert loaded["report"]["tree"]["query"] == "s:*"

    def test_json_output_creates_parent_dirs(self):
        """write_report creates parent directories if needed."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "subdir" / "nested" / "report.json"
            TreeReporter(_tree()).write_report(path)
            assert path.exists()


class TestYamlOutput:
    """Tests for YAML file output."""

    def test_yaml_output_valid(self):
        """Written YAML file is valid and can be loaded."""
        reporter = TreeReporter(_tree())
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "report.yaml"
            reporter.write_yaml(path)

            assert path.exists()
            loaded = yaml.safe_load(path.read_text())
            assert loaded["report"]["summary"]["total_cases"] == 2
            assert loaded["report"]["variants"] == ["s:a,b:c:x=1", "s:a,b:c:x=2;*"]

    def test_yaml_keeps_key_order(self):
        """YAML output keeps the report's key order."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "report.yaml"
            TreeReporter(_tree()).write_yaml(path)
            text = path.read_text()
            assert text.index("  generated_at:") < text.index("\n  variants:") < text.index("\n  tree:")

    def test_yaml_output_creates_parent_dirs(self):
        """write_yaml creates parent directories if needed."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "subdir" / "nested" / "report.yaml"
            TreeReporter(_tree()).write_yaml(path)
            assert path.exists()


class TestWrite:
    """Tests for write() format dispatch."""

    @pytest.mark.parametrize("report_format, load", [
        ("json", json.loads),
        ("yaml", yaml.safe_load),
    ])
    def test_formats(self, report_format, load):
        """Both formats write a loadable report."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / f"report.{report_format}"
            TreeReporter(_tree()).write(path, report_format)
            assert load(path.read_text())["report"]["summary"]["total_cases"] == 2

    def test_unknown_format(self):
        """An unknown format fails."""
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(ValueError, match="Unknown report format: xml"):
                TreeReporter(_tree()).write(Path(tmpdir) / "r.xml", "xml")
