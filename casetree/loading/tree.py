"""Tree of test cases for a query.

``load_tree_for_query()`` loads a TestTree for a given query_to_load. The
resulting tree is a chain of single nodes from ``suite:*`` down to
query_to_load, and under query_to_load a tree containing every case it
matches:

    suite:*                   root (suite level)
    suite:a,b,*               directory
    suite:a,b:*               file
    suite:a,b:c,d,*           test path
    suite:a,b:c,d:*           test
    suite:a,b:c,d:x=1;*       parameter prefix
    suite:a,b:c,d:x=1;y=2     case (leaf)

``subqueries_to_expand`` drives the ``collapsible`` flag of each subtree: a
subtree is collapsible if none of the subqueries is a strict subset of it.
A list of expectations (e.g. known failures) passed as subqueries_to_expand
subdivides the tree exactly as far as needed, and
``TestTree.iterate_collapsed_queries()`` then produces the coarsest list of
queries ("variants") that still isolates every expectation. Each subquery
must be equal to some node of the tree; otherwise it expands nothing and the
load fails.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, Sequence, Union

from casetree.loading.group import RunCase
from casetree.loading.loader import ListingEntryReadme, TestFileLoader
from casetree.query.compare import Ordering, compare_queries
from casetree.query.query import (
    TestQuery,
    TestQueryMultiCase,
    TestQueryMultiFile,
    TestQueryMultiTest,
    TestQuerySingleCase,
)
from casetree.query.separators import (
    BIG_SEPARATOR,
    PARAM_SEPARATOR,
    PATH_SEPARATOR,
    WILDCARD,
)
from casetree.query.stringify_params import stringify_single_param


class TreeLoadError(ValueError):
    """Raised when a query or its subqueries cannot be loaded as requested."""


class TreeStructureError(AssertionError):
    """Raised when the tree being built is internally inconsistent.

    A programmer error (e.g. a loader listing the same spec file twice),
    raised explicitly so it is never skipped under ``python -O``.
    """


@dataclass
class TestSubtree:
    """An internal node of the tree.

    ``readable_relative_name`` is a readable name relative to the parent,
    for display. It is not always the exact relative query (there is none
    for ``s:f:*`` relative to ``s:f,*``).
    """

    readable_relative_name: str
    query: TestQuery
    collapsible: bool
    children: dict[str, TestTreeNode] = field(default_factory=dict)
    description: str | None = None


@dataclass
class TestTreeLeaf:
    """A single runnable case."""

    readable_relative_name: str
    query: TestQuerySingleCase
    run: Callable[[Any], Any]


TestTreeNode = Union[TestSubtree, TestTreeLeaf]


class TestTree:
    """A loaded tree. Read-only apart from ``dissolve_level_boundaries()``."""

    def __init__(self, root: TestSubtree) -> None:
        self.root = root

    def iterate_collapsed_queries(self) -> Iterator[TestQuery]:
        """Yield the query of every leaf or collapsible subtree, without
        descending into it. The root itself is never yielded."""
        return iterate_subtree_collapsed_queries(self.root)

    def iterate_leaves(self) -> Iterator[TestTreeLeaf]:
        return iterate_subtree_leaves(self.root)

    def dissolve_level_boundaries(self) -> None:
        """Remove nodes that only restate their single child at a coarser level.

        If a parent and its child are at different levels, generally the
        parent has only one child::

            a,* { a,b,* { a,b:* { ... } } }

        which is collapsed down into::

            a,* => a,b:* { ... }

        A node is replaced by its only child when it has no description and
        the child is at a finer level. Runs children first, so a second call
        changes nothing.

        The root is kept, only its descendants are dissolved.
        """
        for key, child in list(self.root.children.items()):
            new_child = _dissolve_level_boundaries(child)
            if new_child is not child:
                self.root.children[key] = new_child

    def render(self) -> str:
        return subtree_to_string("(root)", self.root, "")

    def __str__(self) -> str:
        return self.render()


def iterate_subtree_collapsed_queries(subtree: TestSubtree) -> Iterator[TestQuery]:
    for child in subtree.children.values():
        if isinstance(child, TestSubtree) and not child.collapsible:
            yield from iterate_subtree_collapsed_queries(child)
        else:
            yield child.query


def iterate_subtree_leaves(subtree: TestSubtree) -> Iterator[TestTreeLeaf]:
    for child in subtree.children.values():
        if isinstance(child, TestSubtree):
            yield from iterate_subtree_leaves(child)
        else:
            yield child


def subtree_to_string(name: str, tree: TestTreeNode, indent: str) -> str:
    """Render a node and its descendants, one line per node.

    Markers: ``>`` leaf, ``+`` collapsible subtree, ``-`` expanded subtree.
    """
    if isinstance(tree, TestTreeLeaf):
        marker = ">"
    else:
        marker = "+" if tree.collapsible else "-"
    s = f"{indent}{marker} {json.dumps(name)} => {tree.query}"
    if isinstance(tree, TestSubtree):
        if tree.description is not None:
            s += f"\n{indent}  | {json.dumps(tree.description)}"
        for key, child in tree.children.items():
            s += "\n" + subtree_to_string(key, child, indent + "  ")
    return s


# TODO: Let subqueries_to_expand decide the depth order of params in the tree.
async def load_tree_for_query(
    loader: TestFileLoader,
    query_to_load: TestQuery,
    subqueries_to_expand: Iterable[TestQuery],
) -> TestTree:
    """Load the tree of every case matched by *query_to_load*.

    Args:
        loader: Lists the suite and imports its spec files.
        query_to_load: The cases to load.
        subqueries_to_expand: Queries that must not be collapsed; each one
            must be equal to some node of the resulting tree.

    Raises:
        TreeLoadError: If a subquery to expand matches no node, the query
            matches no case, or a node gets two descriptions.
        TreeStructureError: If the loader yields the same case twice.
    """
    suite = query_to_load.suite
    entries = await loader.listing(suite)

    to_expand = list(subqueries_to_expand)
    seen_to_expand = [False] * len(to_expand)

    def is_collapsible(subquery: TestQuery) -> bool:
        collapsible = True
        for i, expand in enumerate(to_expand):
            ordering = compare_queries(expand, subquery)
            # expand == subquery needs no expansion, but it is still "seen".
            if ordering is Ordering.EQUAL:
                seen_to_expand[i] = True
            elif ordering is Ordering.STRICT_SUBSET:
                collapsible = False
        return collapsible

    # L0 = suite-level, e.g. suite:*
    # L1 =  file-level, e.g. suite:a,b:*
    # L2 =  test-level, e.g. suite:a,b:c,d:*
    # L3 =  case-level, e.g. suite:a,b:c,d:
    found_case = False
    subtree_l0 = _make_tree_for_suite(suite)
    is_collapsible(subtree_l0.query)  # mark seen_to_expand
    for entry in entries:
        if isinstance(entry, ListingEntryReadme) and not entry.file:
            # Suite-level readme.
            _set_description(subtree_l0, entry.readme)
            continue

        query_l1 = TestQueryMultiFile(suite, entry.file)
        if compare_queries(query_l1, query_to_load) is Ordering.UNORDERED:
            # Path is not matched by this query: never imported.
            continue

        if isinstance(entry, ListingEntryReadme):
            # A README that is an ancestor or descendant of the query, kept
            # for display. A directory README dedups with the directory node
            # of any spec file under it.
            if entry.spec_file:
                readme_subtree = _add_subtree_for_file_path(
                    subtree_l0, entry.file, is_collapsible
                )
            else:
                readme_subtree = _add_subtree_for_dir_path(
                    subtree_l0, entry.file, is_collapsible
                )
            _set_description(readme_subtree, entry.readme)
            continue

        spec = await loader.import_spec_file(suite, entry.file)
        # subtree_l1 is suite:a,b:*
        subtree_l1 = _add_subtree_for_file_path(subtree_l0, entry.file, is_collapsible)
        _set_description(subtree_l1, spec.description)

        for t in spec.cases:
            query_l3 = TestQuerySingleCase(suite, entry.file, t.id.test, t.id.params)
            ordering_l3 = compare_queries(query_l3, query_to_load)
            if ordering_l3 in (Ordering.UNORDERED, Ordering.STRICT_SUPERSET):
                # Case is not matched by this query.
                continue

            # subtree_l2 is suite:a,b:c,d:*
            subtree_l2 = _add_subtree_for_test_path(subtree_l1, t.id.test, is_collapsible)
            # Leaf for case is suite:a,b:c,d:x=1;y=2
            _add_leaf_for_case(subtree_l2, t, is_collapsible)
            found_case = True

    for expand, seen in zip(to_expand, seen_to_expand):
        if not seen:
            raise TreeLoadError(
                "subqueries_to_expand entry did not match anything "
                f"(can happen due to overlap with another subquery): {expand}"
            )
    if not found_case:
        raise TreeLoadError(f"Query does not match any cases: {query_to_load}")

    return TestTree(subtree_l0)


def _set_description(subtree: TestSubtree, description: str) -> None:
    description = description.strip()
    if not description:
        return
    if subtree.description is not None:
        raise TreeLoadError(f"Node {subtree.query} has more than one description")
    subtree.description = description


def _make_tree_for_suite(suite: str) -> TestSubtree:
    return TestSubtree(
        readable_relative_name=suite + BIG_SEPARATOR,
        query=TestQueryMultiFile(suite, ()),
        collapsible=False,
    )


def _add_subtree_for_dir_path(
    tree: TestSubtree,
    file: Sequence[str],
    is_collapsible: Callable[[TestQuery], bool],
) -> TestSubtree:
    suite = tree.query.suite
    subquery_file: list[str] = []
    # To start, tree is suite:*
    # This loop goes from that -> suite:a,* -> suite:a,b,*
    for part in file:
        subquery_file.append(part)
        query = TestQueryMultiFile(suite, subquery_file)
        tree = _get_or_insert_subtree(
            part,
            tree,
            lambda: TestSubtree(
                readable_relative_name=part + PATH_SEPARATOR + WILDCARD,
                query=query,
                collapsible=is_collapsible(query),
            ),
        )
    return tree


def _add_subtree_for_file_path(
    tree: TestSubtree,
    file: Sequence[str],
    is_collapsible: Callable[[TestQuery], bool],
) -> TestSubtree:
    if not file:
        raise TreeStructureError("File path is empty")
    # To start, tree is suite:*
    # This goes from that -> suite:a,* -> suite:a,b,*
    tree = _add_subtree_for_dir_path(tree, file, is_collapsible)
    # This goes from that -> suite:a,b:*
    query = TestQueryMultiTest(tree.query.suite, file, ())
    return _get_or_insert_subtree(
        "",
        tree,
        lambda: TestSubtree(
            readable_relative_name=file[-1] + BIG_SEPARATOR + WILDCARD,
            query=query,
            collapsible=is_collapsible(query),
        ),
    )


def _add_subtree_for_test_path(
    tree: TestSubtree,
    test: Sequence[str],
    is_collapsible: Callable[[TestQuery], bool],
) -> TestSubtree:
    if not test:
        raise TreeStructureError("Test path is empty")
    suite = tree.query.suite
    file = tree.query.file_path_parts
    subquery_test: list[str] = []
    # To start, tree is suite:a,b:*
    # This loop goes from that -> suite:a,b:c,* -> suite:a,b:c,d,*
    for part in test:
        subquery_test.append(part)
        query = TestQueryMultiTest(suite, file, subquery_test)
        tree = _get_or_insert_subtree(
            part,
            tree,
            lambda: TestSubtree(
                readable_relative_name=part + PATH_SEPARATOR + WILDCARD,
                query=query,
                collapsible=is_collapsible(query),
            ),
        )
    # This goes from that -> suite:a,b:c,d:*
    test_query = TestQueryMultiCase(suite, file, subquery_test, {})
    return _get_or_insert_subtree(
        "",
        tree,
        lambda: TestSubtree(
            readable_relative_name=test[-1] + BIG_SEPARATOR + WILDCARD,
            query=test_query,
            collapsible=is_collapsible(test_query),
        ),
    )


def _add_leaf_for_case(
    tree: TestSubtree,
    t: RunCase,
    is_collapsible: Callable[[TestQuery], bool],
) -> None:
    test_query = tree.query
    subquery_params: dict[str, Any] = {}

    # To start, tree is suite:a,b:c,d:*
    # This loop goes from that -> suite:a,b:c,d:x=1;* -> suite:a,b:c,d:x=1;y=2;*
    for key, value in t.id.params.items():
        name = stringify_single_param(key, value)
        subquery_params[key] = value
        query = TestQueryMultiCase(
            test_query.suite,
            test_query.file_path_parts,
            test_query.test_path_parts,
            subquery_params,
        )
        tree = _get_or_insert_subtree(
            name,
            tree,
            lambda: TestSubtree(
                readable_relative_name=name + PARAM_SEPARATOR + WILDCARD,
                query=query,
                collapsible=is_collapsible(query),
            ),
        )

    # This goes from that -> suite:a,b:c,d:x=1;y=2
    case_query = TestQuerySingleCase(
        test_query.suite,
        test_query.file_path_parts,
        test_query.test_path_parts,
        subquery_params,
    )
    is_collapsible(case_query)  # mark seen_to_expand
    _insert_leaf(tree, case_query, t)


def _get_or_insert_subtree(
    key: str,
    parent: TestSubtree,
    create_subtree: Callable[[], TestSubtree],
) -> TestSubtree:
    child = parent.children.get(key)
    if child is not None:
        # A cached leaf here means two distinct queries share a key.
        if not isinstance(child, TestSubtree):
            raise TreeStructureError(
                f"Expected a subtree at {key!r} under {parent.query}, found leaf {child.query}"
            )
        return child
    subtree = create_subtree()
    parent.children[key] = subtree
    return subtree


def _insert_leaf(parent: TestSubtree, query: TestQuerySingleCase, t: RunCase) -> None:
    key = ""
    if key in parent.children:
        raise TreeStructureError(f"Duplicate case {query}")
    parent.children[key] = TestTreeLeaf(
        readable_relative_name=_readable_name_for_case(query),
        query=query,
        run=t.run,
    )


def _readable_name_for_case(query: TestQuerySingleCase) -> str:
    """Readable relative name for a case, for display."""
    if not query.params:
        return query.test_path_parts[-1] + BIG_SEPARATOR
    last_key = list(query.params)[-1]
    return stringify_single_param(last_key, query.params[last_key])


def _dissolve_level_boundaries(tree: TestTreeNode) -> TestTreeNode:
    if isinstance(tree, TestTreeLeaf):
        return tree
    # Children first, so a returned child is already fully dissolved.
    for key, child in list(tree.children.items()):
        new_child = _dissolve_level_boundaries(child)
        if new_child is not child:
            tree.children[key] = new_child
    if len(tree.children) == 1 and tree.description is None:
        (child,) = tree.children.values()
        if child.query.level > tree.query.level:
            return child
    return tree
