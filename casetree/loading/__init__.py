"""Tree loading: spec file definitions, the loader contract and the tree builder."""

from casetree.loading.config import TreeLoadConfig
from casetree.loading.group import CaseId, Fixture, RunCase, TestGroup, make_test_group
from casetree.loading.loader import (
    ListingEntryReadme,
    ListingEntrySpec,
    SpecFile,
    StaticTestFileLoader,
    TestFileLoader,
)
from casetree.loading.tree import (
    TestSubtree,
    TestTree,
    TestTreeLeaf,
    TreeLoadError,
    TreeStructureError,
    load_tree_for_query,
)

__all__ = [
    "CaseId",
    "Fixture",
    "ListingEntryReadme",
    "ListingEntrySpec",
    "RunCase",
    "SpecFile",
    "StaticTestFileLoader",
    "TestFileLoader",
    "TestGroup",
    "TestSubtree",
    "TestTree",
    "TestTreeLeaf",
    "TreeLoadConfig",
    "TreeLoadError",
    "TreeStructureError",
    "load_tree_for_query",
    "make_test_group",
]
