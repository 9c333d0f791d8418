"""Parameter combinators for building the cases of a test.

Each combinator returns a ``ParamSequence``: a lazy, finite sequence of
parameter sets (``dict`` of parameter name to value) that can be iterated
any number of times. For example::

    combine([options("x", [1, 2]), options("y", ["a", "b"])])

yields ``{x: 1, y: "a"}``, ``{x: 1, y: "b"}``, ``{x: 2, y: "a"}`` and
``{x: 2, y: "b"}``, in that order.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Iterator, Sequence

ParamSet = dict[str, Any]


class ParamsError(ValueError):
    """Raised when parameter sets cannot be combined unambiguously."""


class ParamSequence:
    """A restartable sequence of parameter sets.

    Wraps a generator function; every call to ``iter()`` starts a fresh walk.
    """

    def __init__(self, generate: Callable[[], Iterator[ParamSet]]) -> None:
        self._generate = generate

    def __iter__(self) -> Iterator[ParamSet]:
        return self._generate()

    def __repr__(self) -> str:
        return f"ParamSequence({list(self)!r})"


def _restartable(source: Iterable[Any]) -> Iterable[Any]:
    """Materialize one-shot iterators so they can be walked repeatedly."""
    if iter(source) is source:
        return list(source)
    return source


def unit() -> ParamSequence:
    """A sequence containing exactly one empty parameter set."""

    def generate() -> Iterator[ParamSet]:
        yield {}

    return ParamSequence(generate)


def options(name: str, values: Iterable[Any]) -> ParamSequence:
    """One single-key parameter set ``{name: value}`` per value, in order."""
    values = _restartable(values)

    def generate() -> Iterator[ParamSet]:
        for value in values:
            yield {name: value}

    return ParamSequence(generate)


def _merge(a: ParamSet, b: ParamSet) -> ParamSet:
    for key in b:
        if key in a:
            raise ParamsError(
                f"Ambiguous parameter {key!r}: defined by more than one "
                f"combined source ({a!r} and {b!r})"
            )
    return {**a, **b}


def _cartesian(sources: Sequence[Iterable[ParamSet]]) -> Iterator[ParamSet]:
    if not sources:
        yield {}
        return
    first, rest = sources[0], sources[1:]
    for a in first:
        for b in _cartesian(rest):
            yield _merge(a, b)


def combine(sources: Iterable[Iterable[ParamSet]]) -> ParamSequence:
    """Cartesian product of parameter sources, first source varying slowest.

    Each source is a ``ParamSequence`` or a plain sequence of parameter
    sets. The parameter sets of one product tuple are merged by union.

    Raises:
        ParamsError: (during iteration) if two sources define the same key,
            whether or not the values agree.
    """
    frozen_sources = [_restartable(source) for source in sources]

    def generate() -> Iterator[ParamSet]:
        return _cartesian(frozen_sources)

    return ParamSequence(generate)
