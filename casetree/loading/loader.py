"""Loader contract between the tree builder and the test suite.

A loader lists the entries of a suite (spec files and README documents) and
imports individual spec files. ``StaticTestFileLoader`` serves both from
memory.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Sequence, Union

from casetree.loading.group import RunCase, TestGroup
from casetree.query.parse import parse_query
from casetree.query.query import TestQuery

if TYPE_CHECKING:
    from casetree.loading.config import TreeLoadConfig
    from casetree.loading.tree import TestTree, TestTreeLeaf


@dataclass(frozen=True)
class ListingEntrySpec:
    """A spec file at *file* (a non-empty path)."""

    file: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "file", tuple(self.file))
        if not self.file:
            raise ValueError("Spec file entry must have a non-empty path")


@dataclass(frozen=True)
class ListingEntryReadme:
    """A README describing the directory at *file*.

    With ``spec_file=True`` it describes the spec file at *file* instead.
    """

    file: tuple[str, ...]
    readme: str
    spec_file: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "file", tuple(self.file))
        if self.spec_file and not self.file:
            raise ValueError("File-level README must have a non-empty path")


ListingEntry = Union[ListingEntrySpec, ListingEntryReadme]


@dataclass
class SpecFile:
    """An imported spec file.

    *cases* is consumed exactly once by the tree builder.
    """

    description: str
    cases: Iterable[RunCase]


@dataclass
class SpecModule:
    """What a spec file defines: its description and its test group."""

    description: str
    g: TestGroup


class TestFileLoader(ABC):
    """Lists and imports the spec files of a suite."""

    @abstractmethod
    async def listing(self, suite: str) -> Sequence[ListingEntry]:
        """Return the entries of *suite*, in the order they should be loaded."""

    @abstractmethod
    async def import_spec_file(self, suite: str, path: Sequence[str]) -> SpecFile:
        """Import the spec file at *path* in *suite*."""

    async def load_tree(
        self,
        query: TestQuery | str,
        subqueries_to_expand: Iterable[TestQuery | str] = (),
    ) -> TestTree:
        """Load the tree for *query*. Queries may be given as strings."""
        from casetree.loading.tree import load_tree_for_query

        if isinstance(query, str):
            query = parse_query(query)
        expand = [parse_query(q) if isinstance(q, str) else q for q in subqueries_to_expand]
        return await load_tree_for_query(self, query, expand)

    async def load_cases(self, query: TestQuery | str) -> list[TestTreeLeaf]:
        """Load every case matched by *query*, in tree order."""
        tree = await self.load_tree(query)
        return list(tree.iterate_leaves())

    async def load_configured_tree(self, config: TreeLoadConfig) -> TestTree:
        """Load the tree described by *config*.

        Raises:
            ValueError: If the config names no query.
        """
        query = config.query
        if query is None:
            raise ValueError("Config does not specify a query to load")
        tree = await self.load_tree(query, config.subqueries_to_expand)
        if config.dissolve_level_boundaries:
            tree.dissolve_level_boundaries()
        return tree


class StaticTestFileLoader(TestFileLoader):
    """In-memory loader built from listings and spec modules.

    Every spec file import is recorded in ``imported`` as ``(suite, path)``.
    """

    def __init__(self) -> None:
        self._listings: dict[str, list[ListingEntry]] = {}
        self._modules: dict[tuple[str, tuple[str, ...]], SpecModule] = {}
        self.imported: list[tuple[str, tuple[str, ...]]] = []

    def add_spec(
        self,
        suite: str,
        path: Sequence[str],
        g: TestGroup,
        description: str = "",
    ) -> None:
        """Add a spec file to the end of the suite's listing."""
        entry = ListingEntrySpec(tuple(path))
        self._listings.setdefault(suite, []).append(entry)
        self._modules[(suite, entry.file)] = SpecModule(description, g)

    def add_readme(
        self,
        suite: str,
        path: Sequence[str],
        readme: str,
        spec_file: bool = False,
    ) -> None:
        """Add a README to the end of the suite's listing."""
        self._listings.setdefault(suite, []).append(
            ListingEntryReadme(tuple(path), readme, spec_file=spec_file)
        )

    async def listing(self, suite: str) -> list[ListingEntry]:
        return list(self._listings.get(suite, []))

    async def import_spec_file(self, suite: str, path: Sequence[str]) -> SpecFile:
        key = (suite, tuple(path))
        module = self._modules.get(key)
        if module is None:
            raise FileNotFoundError(f"No spec file {'/'.join(path)} in suite {suite}")
        self.imported.append(key)
        return SpecFile(module.description, module.g.iterate())
