"""Containment comparison between queries.

``compare_queries(a, b)`` answers how the set of cases matched by ``a``
relates to the set matched by ``b``. The comparison walks the levels in order
(file path, test path, params) and stops at the first level where the two
queries differ or where either of them ends in a wildcard.
"""

from __future__ import annotations

import enum
from typing import Any, Mapping, Sequence

from casetree.query.query import TestQuery
from casetree.query.stringify_params import param_values_equal


class Ordering(enum.Enum):
    """Relation between the case sets matched by two queries."""

    UNORDERED = "unordered"
    STRICT_SUPERSET = "strict_superset"
    EQUAL = "equal"
    STRICT_SUBSET = "strict_subset"

    def reverse(self) -> Ordering:
        """The ordering seen from the other side of the comparison."""
        if self is Ordering.STRICT_SUPERSET:
            return Ordering.STRICT_SUBSET
        if self is Ordering.STRICT_SUBSET:
            return Ordering.STRICT_SUPERSET
        return self


def compare_one_level(ordering: Ordering, a_is_big: bool, b_is_big: bool) -> Ordering:
    """Resolve the ordering at the level where the comparison stops.

    Args:
        ordering: How the two paths at this level relate.
        a_is_big: Whether ``a`` ends with a wildcard at or above this level.
        b_is_big: Same, for ``b``.
    """
    assert ordering is not Ordering.EQUAL or a_is_big or b_is_big
    if ordering is Ordering.UNORDERED:
        return Ordering.UNORDERED
    if a_is_big and b_is_big:
        return ordering
    if not a_is_big and not b_is_big:
        # Paths differ and neither side is a wildcard: distinct cases.
        return Ordering.UNORDERED
    # Exactly one of (a, b) is big.
    if a_is_big and ordering is not Ordering.STRICT_SUBSET:
        return Ordering.STRICT_SUPERSET
    if b_is_big and ordering is not Ordering.STRICT_SUPERSET:
        return Ordering.STRICT_SUBSET
    return Ordering.UNORDERED


def compare_paths(a: Sequence[str], b: Sequence[str]) -> Ordering:
    """Compare two paths, where a shorter path matches more.

    ``a,b`` is a STRICT_SUPERSET of ``a,b,c``; ``a,b`` and ``a,c`` are
    UNORDERED.
    """
    shorter = min(len(a), len(b))
    for i in range(shorter):
        if a[i] != b[i]:
            return Ordering.UNORDERED
    if len(a) == len(b):
        return Ordering.EQUAL
    if len(a) < len(b):
        return Ordering.STRICT_SUPERSET
    return Ordering.STRICT_SUBSET


def compare_public_params_paths(a: Mapping[str, Any], b: Mapping[str, Any]) -> Ordering:
    """Compare two parameter sets as sets of key/value pairs.

    Fewer pairs match more cases, so ``{}`` is a STRICT_SUPERSET of
    ``{"x": 1}``. Any shared key with differing values is UNORDERED.
    """
    common_keys = [k for k in a if k in b]
    for k in common_keys:
        if not param_values_equal(a[k], b[k]):
            return Ordering.UNORDERED

    a_remaining = len(a) - len(common_keys)
    b_remaining = len(b) - len(common_keys)
    if a_remaining == 0 and b_remaining == 0:
        return Ordering.EQUAL
    if a_remaining == 0:
        return Ordering.STRICT_SUPERSET
    if b_remaining == 0:
        return Ordering.STRICT_SUBSET
    return Ordering.UNORDERED


def compare_queries(a: TestQuery, b: TestQuery) -> Ordering:
    """Compare the case sets matched by two queries.

    Returns:
        EQUAL if both match the same cases, STRICT_SUBSET if ``a`` matches a
        proper subset of ``b``, STRICT_SUPERSET for the converse and
        UNORDERED otherwise (including different suites).
    """
    if a.suite != b.suite:
        return Ordering.UNORDERED

    file_ordering = compare_paths(a.file_path_parts, b.file_path_parts)
    if file_ordering is not Ordering.EQUAL or a.is_multi_file or b.is_multi_file:
        return compare_one_level(file_ordering, a.is_multi_file, b.is_multi_file)

    test_ordering = compare_paths(a.test_path_parts, b.test_path_parts)
    if test_ordering is not Ordering.EQUAL or a.is_multi_test or b.is_multi_test:
        return compare_one_level(test_ordering, a.is_multi_test, b.is_multi_test)

    params_ordering = compare_public_params_paths(a.params, b.params)
    if params_ordering is not Ordering.EQUAL or a.is_multi_case or b.is_multi_case:
        return compare_one_level(params_ordering, a.is_multi_case, b.is_multi_case)
    return Ordering.EQUAL
