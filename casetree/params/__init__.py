"""Parameter combinators: unit, options and cartesian combine."""

from casetree.params.combinators import (
    ParamSequence,
    ParamsError,
    combine,
    options,
    unit,
)

__all__ = [
    "ParamSequence",
    "ParamsError",
    "combine",
    "options",
    "unit",
]
