"""Parsing of query strings.

Inverse of ``str(query)``: ``parse_query(str(q)) == q`` for every query.
"""

from __future__ import annotations

import json
from typing import Any

from casetree.query.query import (
    QueryError,
    TestQuery,
    TestQueryMultiCase,
    TestQueryMultiFile,
    TestQueryMultiTest,
    TestQuerySingleCase,
)
from casetree.query.separators import (
    BIG_SEPARATOR,
    PARAM_KV_SEPARATOR,
    PARAM_SEPARATOR,
    PATH_SEPARATOR,
    WILDCARD,
)


def parse_query(s: str) -> TestQuery:
    """Parse a query string such as ``suite:a,b:c,d:x=1;*``.

    Raises:
        QueryError: If the string is malformed or names an invalid query.
    """
    try:
        return _parse_query_impl(s)
    except QueryError as e:
        raise QueryError(f"{e}: {s!r}") from e


def _parse_query_impl(s: str) -> TestQuery:
    i1 = s.find(BIG_SEPARATOR)
    if i1 == -1:
        raise QueryError(f"Query string must contain at least one {BIG_SEPARATOR!r}")
    suite = s[:i1]

    i2 = s.find(BIG_SEPARATOR, i1 + 1)
    if i2 == -1:
        file, file_has_wildcard = _parse_big_part(s[i1 + 1:], PATH_SEPARATOR)
        if not file_has_wildcard:
            raise QueryError(
                f"File-level query without wildcard {WILDCARD!r}. Did you want a "
                f"file-level query (append {PATH_SEPARATOR}{WILDCARD}) or a "
                f"test-level query (append {BIG_SEPARATOR}{WILDCARD})?"
            )
        return TestQueryMultiFile(suite, file)

    file, file_has_wildcard = _parse_big_part(s[i1 + 1:i2], PATH_SEPARATOR)
    if file_has_wildcard:
        raise QueryError(f"Wildcard {WILDCARD!r} must be at the end of the query")

    i3 = s.find(BIG_SEPARATOR, i2 + 1)
    if i3 == -1:
        test, test_has_wildcard = _parse_big_part(s[i2 + 1:], PATH_SEPARATOR)
        if not test_has_wildcard:
            raise QueryError(
                f"Test-level query without wildcard {WILDCARD!r}. Did you want a "
                f"test-level query (append {PATH_SEPARATOR}{WILDCARD}) or a "
                f"case-level query (append {BIG_SEPARATOR}{WILDCARD})?"
            )
        return TestQueryMultiTest(suite, file, test)

    test, test_has_wildcard = _parse_big_part(s[i2 + 1:i3], PATH_SEPARATOR)
    if test_has_wildcard:
        raise QueryError(f"Wildcard {WILDCARD!r} must be at the end of the query")

    params_parts, params_has_wildcard = _parse_big_part(s[i3 + 1:], PARAM_SEPARATOR)
    params: dict[str, Any] = {}
    for part in params_parts:
        key, value = _parse_single_param(part)
        if key in params:
            raise QueryError(f"Duplicate parameter {key!r}")
        params[key] = value

    if params_has_wildcard:
        return TestQueryMultiCase(suite, file, test, params)
    return TestQuerySingleCase(suite, file, test, params)


def _parse_big_part(s: str, separator: str) -> tuple[list[str], bool]:
    """Split one level of a query, stripping a trailing wildcard.

    Returns:
        The parts (without the wildcard) and whether the level ended in one.
    """
    if s == "":
        return [], False
    parts = s.split(separator)
    ends_with_wildcard = False
    result: list[str] = []
    for i, part in enumerate(parts):
        if i == len(parts) - 1 and part == WILDCARD:
            ends_with_wildcard = True
            continue
        if WILDCARD in part:
            raise QueryError(f"Wildcard {WILDCARD!r} must be at the end of the query")
        result.append(part)
    return result, ends_with_wildcard


def _parse_single_param(s: str) -> tuple[str, Any]:
    i = s.find(PARAM_KV_SEPARATOR)
    if i == -1:
        raise QueryError(f"Parameter {s!r} is missing {PARAM_KV_SEPARATOR!r}")
    key = s[:i]
    try:
        value = json.loads(s[i + 1:])
    except json.JSONDecodeError as e:
        raise QueryError(f"Invalid value for parameter {key!r}: {e}") from e
    return key, value
