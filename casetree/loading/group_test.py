"""Unit tests for spec file test groups."""

from __future__ import annotations

import asyncio

import pytest

from casetree.loading.group import CaseId, Fixture, RunCase, TestGroup, make_test_group
from casetree.params.combinators import combine, options


class TestTestRegistration:
    """Tests for TestGroup.test()."""

    def test_simple_name(self):
        """A plain name is a one-part test path."""
        g = make_test_group()
        builder = g.test("basic")
        assert builder.test_path == ("basic",)
        assert builder.name == "basic"

    def test_comma_separated_name(self):
        """Commas split the name into test path parts."""
        g = make_test_group()
        assert g.test("copy,uninitialized").test_path == ("copy", "uninitialized")

    def test_invalid_part(self):
        """Parts must be identifiers."""
        g = make_test_group()
        with pytest.raises(ValueError, match="Invalid test name"):
            g.test("copy:buffer")

    def test_empty_part(self):
        """Empty parts are rejected."""
        g = make_test_group()
        with pytest.raises(ValueError, match="Invalid test name"):
            g.test("copy,")

    def test_duplicate_name(self):
        """A test name can only be registered once."""
        g = make_test_group()
        g.test("basic").fn(lambda t: None)
        with pytest.raises(ValueError, match="Duplicate test name: basic"):
            g.test("basic")

    def test_desc_strips(self):
        """Descriptions are stripped."""
        g = make_test_group()
        builder = g.test("basic").desc("\n  Checks basics.\n")
        assert builder.description == "Checks basics."

    def test_params_twice(self):
        """params() can only be called once."""
        g = make_test_group()
        builder = g.test("basic").params(options("x", [1]))
        with pytest.raises(ValueError, match="params\\(\\) called more than once"):
            builder.params(options("y", [1]))

    def test_fn_twice(self):
        """fn() can only be called once."""
        g = make_test_group()
        builder = g.test("basic")
        builder.fn(lambda t: None)
        with pytest.raises(ValueError, match="fn\\(\\) called more than once"):
            builder.fn(lambda t: None)


class TestIterate:
    """Tests for TestGroup.iterate()."""

    def test_default_params_is_unit(self):
        """A test without params has one case with no params."""
        g = make_test_group()
        g.test("basic").fn(lambda t: None)
        cases = list(g.iterate())
        assert len(cases) == 1
        assert cases[0].id == CaseId(("basic",), {})

    def test_cases_in_order(self):
        """Cases follow registration order, then parameter order."""
        g = make_test_group()
        g.test("a").params(options("x", [1, 2])).fn(lambda t: None)
        g.test("b,c").params(
            combine([options("y", ["p"]), options("z", [True, False])])
        ).fn(lambda t: None)
        ids = [(c.id.test, c.id.params) for c in g.iterate()]
        assert ids == [
            (("a",), {"x": 1}),
            (("a",), {"x": 2}),
            (("b", "c"), {"y": "p", "z": True}),
            (("b", "c"), {"y": "p", "z": False}),
        ]

    def test_iterate_is_lazy(self):
        """Cases are produced on demand."""
        g = make_test_group()
        g.test("a").params(options("x", range(10 ** 9))).fn(lambda t: None)
        it = g.iterate()
        assert next(it).id.params == {"x": 0}

    def test_iterate_twice(self):
        """A group can be iterated more than once."""
        g = make_test_group()
        g.test("a").params(options("x", [1, 2])).fn(lambda t: None)
        assert len(list(g.iterate())) == 2
        assert len(list(g.iterate())) == 2

    def test_missing_fn(self):
        """A test without fn() fails when iterated."""
        g = make_test_group()
        g.test("a")
        with pytest.raises(ValueError, match="Test a is missing fn"):
            list(g.iterate())

    def test_duplicate_case(self):
        """Two identical parameter sets in one test fail."""
        g = make_test_group()
        g.test("a").params([{"x": 1, "y": 2}, {"y": 2, "x": 1}]).fn(lambda t: None)
        with pytest.raises(ValueError, match="duplicate case"):
            list(g.iterate())

    def test_bool_and_int_cases_distinct(self):
        """True and 1 are different cases."""
        g = make_test_group()
        g.test("a").params(options("x", [True, 1])).fn(lambda t: None)
        assert len(list(g.iterate())) == 2


class TestRunCase:
    """Tests for running a case."""

    def test_run_passes_fixture(self):
        """The test function receives a fixture with params and recorder."""
        seen = []
        g = make_test_group()
        g.test("a").params(options("x", [7])).fn(lambda t: seen.append((t.params, t.rec)))
        (case,) = list(g.iterate())
        case.run("recorder")
        assert seen == [({"x": 7}, "recorder")]

    def test_run_returns_result(self):
        """run() returns the test function's result."""
        g = make_test_group()
        g.test("a").fn(lambda t: "done")
        (case,) = list(g.iterate())
        assert case.run(None) == "done"

    def test_async_fn(self):
        """Async test functions return a coroutine for the caller to await."""
        seen = []

        async def body(t):
            seen.append(t.params)

        g = make_test_group()
        g.test("a").params(options("x", [1])).fn(body)
        (case,) = list(g.iterate())
        asyncio.run(case.run(None))
        assert seen == [{"x": 1}]

    def test_custom_fixture(self):
        """A group can hand out a custom fixture class."""

        class CountingFixture(Fixture):
            def double(self):
                return self.params["x"] * 2

        g = TestGroup(CountingFixture)
        g.test("a").params(options("x", [21])).fn(lambda t: t.double())
        (case,) = list(g.iterate())
        assert isinstance(case, RunCase)
        assert case.run(None) == 42
