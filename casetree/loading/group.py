"""Definition of the tests in a spec file.

A spec file builds a ``TestGroup`` and registers its tests on it::

    g = make_test_group()

    g.test("uninitialized,copy").params(
        combine([options("format", ["r8", "rgba8"]), options("mips", [1, 4])])
    ).fn(lambda t: check_copy(t.params["format"], t.params["mips"]))

``g.iterate()`` then yields one ``RunCase`` per (test, parameter set).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator

from casetree.params.combinators import unit
from casetree.query.query import VALID_QUERY_PART
from casetree.query.separators import PATH_SEPARATOR
from casetree.query.stringify_params import stringify_public_params


class Fixture:
    """Object handed to a test function for one case."""

    def __init__(self, params: dict[str, Any], rec: Any) -> None:
        self.params = params
        self.rec = rec


@dataclass(frozen=True)
class CaseId:
    """Identity of a case within its spec file."""

    test: tuple[str, ...]
    params: dict[str, Any]


class RunCase:
    """One runnable case: a test function bound to one parameter set."""

    def __init__(
        self,
        case_id: CaseId,
        fixture: type[Fixture],
        fn: Callable[[Any], Any],
    ) -> None:
        self.id = case_id
        self._fixture = fixture
        self._fn = fn

    def run(self, rec: Any) -> Any:
        """Run the case, reporting to *rec*.

        Returns whatever the test function returns (a coroutine for async
        test functions, which the caller awaits).
        """
        return self._fn(self._fixture(self.id.params, rec))


class TestBuilder:
    """Collects the description, parameters and function of one test."""

    def __init__(self, test_path: tuple[str, ...], fixture: type[Fixture]) -> None:
        self.test_path = test_path
        self.description: str | None = None
        self._fixture = fixture
        self._params: Iterable[dict[str, Any]] | None = None
        self._fn: Callable[[Any], Any] | None = None

    @property
    def name(self) -> str:
        return PATH_SEPARATOR.join(self.test_path)

    def desc(self, description: str) -> TestBuilder:
        self.description = description.strip()
        return self

    def params(self, cases: Iterable[dict[str, Any]]) -> TestBuilder:
        if self._params is not None:
            raise ValueError(f"Test {self.name}: params() called more than once")
        self._params = cases
        return self

    def fn(self, fn: Callable[[Any], Any]) -> None:
        if self._fn is not None:
            raise ValueError(f"Test {self.name}: fn() called more than once")
        self._fn = fn

    def iterate(self) -> Iterator[RunCase]:
        """Yield one RunCase per parameter set.

        Raises:
            ValueError: If the test has no function, or two parameter sets
                are identical.
        """
        if self._fn is None:
            raise ValueError(f"Test {self.name} is missing fn()")
        cases = self._params if self._params is not None else unit()

        seen: set[frozenset[str]] = set()
        for params in cases:
            key = frozenset(stringify_public_params(params))
            if key in seen:
                raise ValueError(f"Test {self.name} has duplicate case {dict(params)!r}")
            seen.add(key)
            yield RunCase(CaseId(self.test_path, dict(params)), self._fixture, self._fn)


class TestGroup:
    """The tests defined by one spec file, in registration order."""

    def __init__(self, fixture: type[Fixture] = Fixture) -> None:
        self._fixture = fixture
        self._tests: list[TestBuilder] = []
        self._seen: set[str] = set()

    def test(self, name: str) -> TestBuilder:
        """Register a test. *name* is a comma separated test path.

        Raises:
            ValueError: If a path part is invalid or the name is taken.
        """
        parts = tuple(name.split(PATH_SEPARATOR))
        for part in parts:
            if not VALID_QUERY_PART.match(part):
                raise ValueError(
                    f"Invalid test name {name!r}: part {part!r} must match "
                    f"{VALID_QUERY_PART.pattern}"
                )
        if name in self._seen:
            raise ValueError(f"Duplicate test name: {name}")
        self._seen.add(name)

        builder = TestBuilder(parts, self._fixture)
        self._tests.append(builder)
        return builder

    def iterate(self) -> Iterator[RunCase]:
        for test in self._tests:
            yield from test.iterate()


def make_test_group(fixture: type[Fixture] = Fixture) -> TestGroup:
    return TestGroup(fixture)
