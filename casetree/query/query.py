"""Query values identifying sets of test cases.

A query names a set of cases at one of four levels of specificity:

    suite:a,b,*              TestQueryMultiFile   (level 1)
    suite:a,b:c,d,*          TestQueryMultiTest   (level 2)
    suite:a,b:c,d:x=1;*      TestQueryMultiCase   (level 3)
    suite:a,b:c,d:x=1;y=2    TestQuerySingleCase  (level 4)

An empty path at any level is a wildcard for that whole level
(``suite:*``, ``suite:a,b:*``, ``suite:a,b:c,d:*``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, ClassVar, Iterable, Mapping, Union

from casetree.query.separators import (
    BIG_SEPARATOR,
    PARAM_SEPARATOR,
    PATH_SEPARATOR,
    WILDCARD,
)
from casetree.query.stringify_params import (
    stringify_param_value,
    stringify_public_params,
)

# Suite names, file/test path parts and parameter names
VALID_QUERY_PART = re.compile(r"^[a-zA-Z0-9_]+$")


class QueryError(ValueError):
    """Raised for invalid queries and malformed query strings."""


def _check_part(kind: str, part: str) -> None:
    if not isinstance(part, str) or not VALID_QUERY_PART.match(part):
        raise QueryError(f"Invalid {kind} {part!r}: must match {VALID_QUERY_PART.pattern}")


def _check_parts(kind: str, parts: Iterable[str]) -> tuple[str, ...]:
    if isinstance(parts, str):
        raise QueryError(f"{kind} must be a sequence of strings, not a string: {parts!r}")
    result = tuple(parts)
    for part in result:
        _check_part(kind, part)
    return result


def _check_params(params: Mapping[str, Any]) -> Mapping[str, Any]:
    checked: dict[str, Any] = {}
    for key, value in dict(params).items():
        _check_part("parameter name", key)
        try:
            stringify_param_value(value)
        except ValueError as e:
            raise QueryError(f"Invalid value for parameter {key!r}: {e}") from e
        checked[key] = value
    return MappingProxyType(checked)


@dataclass(frozen=True, eq=False)
class TestQueryMultiFile:
    """All cases in a suite, optionally under a file path prefix."""

    suite: str
    file_path_parts: tuple[str, ...]

    level: ClassVar[int] = 1

    def __post_init__(self) -> None:
        _check_part("suite", self.suite)
        object.__setattr__(
            self, "file_path_parts", _check_parts("file path part", self.file_path_parts)
        )

    @property
    def is_multi_file(self) -> bool:
        return self.level == 1

    @property
    def is_multi_test(self) -> bool:
        return self.level <= 2

    @property
    def is_multi_case(self) -> bool:
        return self.level <= 3

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return str(self) == str(other)

    def __hash__(self) -> int:
        return hash((type(self).__name__, str(self)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"

    def __str__(self) -> str:
        return self.suite + BIG_SEPARATOR + PATH_SEPARATOR.join(
            [*self.file_path_parts, WILDCARD]
        )


@dataclass(frozen=True, eq=False, repr=False)
class TestQueryMultiTest(TestQueryMultiFile):
    """All cases in a file, optionally under a test path prefix."""

    test_path_parts: tuple[str, ...]

    level: ClassVar[int] = 2

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.file_path_parts:
            raise QueryError("A test-level query must have a non-empty file path")
        object.__setattr__(
            self, "test_path_parts", _check_parts("test path part", self.test_path_parts)
        )

    def _file_prefix(self) -> str:
        return self.suite + BIG_SEPARATOR + PATH_SEPARATOR.join(self.file_path_parts)

    def __str__(self) -> str:
        return self._file_prefix() + BIG_SEPARATOR + PATH_SEPARATOR.join(
            [*self.test_path_parts, WILDCARD]
        )


@dataclass(frozen=True, eq=False, repr=False)
class TestQueryMultiCase(TestQueryMultiTest):
    """All cases of a test, optionally restricted to a prefix of its params.

    ``params`` is stored as a read-only mapping, in the given order.
    """

    params: Mapping[str, Any]

    level: ClassVar[int] = 3

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.test_path_parts:
            raise QueryError("A case-level query must have a non-empty test path")
        object.__setattr__(self, "params", _check_params(self.params))

    def _test_prefix(self) -> str:
        return (
            self._file_prefix()
            + BIG_SEPARATOR
            + PATH_SEPARATOR.join(self.test_path_parts)
        )

    def __str__(self) -> str:
        return self._test_prefix() + BIG_SEPARATOR + PARAM_SEPARATOR.join(
            [*stringify_public_params(self.params), WILDCARD]
        )


@dataclass(frozen=True, eq=False, repr=False)
class TestQuerySingleCase(TestQueryMultiCase):
    """Exactly one case, identified by its complete params.

    ``==`` compares the string form, so param order matters: ``x=1;y=2`` and
    ``y=2;x=1`` are unequal but ``compare_queries`` finds them EQUAL.
    """

    level: ClassVar[int] = 4

    def __str__(self) -> str:
        return self._test_prefix() + BIG_SEPARATOR + PARAM_SEPARATOR.join(
            stringify_public_params(self.params)
        )


TestQuery = Union[
    TestQueryMultiFile,
    TestQueryMultiTest,
    TestQueryMultiCase,
    TestQuerySingleCase,
]
