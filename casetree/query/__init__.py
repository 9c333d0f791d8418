"""Query model: query values, containment comparison and the string grammar."""

from casetree.query.compare import Ordering, compare_queries
from casetree.query.parse import parse_query
from casetree.query.query import (
    QueryError,
    TestQuery,
    TestQueryMultiCase,
    TestQueryMultiFile,
    TestQueryMultiTest,
    TestQuerySingleCase,
)

__all__ = [
    "Ordering",
    "QueryError",
    "TestQuery",
    "TestQueryMultiCase",
    "TestQueryMultiFile",
    "TestQueryMultiTest",
    "TestQuerySingleCase",
    "compare_queries",
    "parse_query",
]
