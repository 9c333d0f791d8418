"""Serialization of case parameters for query strings."""

from __future__ import annotations

import json
import re
from typing import Any, Mapping

from casetree.query.separators import (
    PARAM_KV_SEPARATOR,
    PARAM_SEPARATOR,
    WILDCARD,
)

# Characters a serialized parameter value must never contain
BAD_PARAM_VALUE_CHARS = re.compile(
    "[" + re.escape(PARAM_KV_SEPARATOR + PARAM_SEPARATOR + WILDCARD) + "]"
)


def stringify_param_value(value: Any) -> str:
    """Serialize a parameter value as compact JSON.

    Raises:
        ValueError: If the value is not JSON-representable, does not survive
            a JSON round trip unchanged, or serializes to a string that
            contains a query separator.
    """
    try:
        s = json.dumps(value, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Parameter value is not JSON-representable: {value!r}") from e

    parsed = json.loads(s)
    if parsed != value or type(parsed) is not type(value):
        raise ValueError(f"Parameter value does not round-trip through JSON: {value!r}")
    if BAD_PARAM_VALUE_CHARS.search(s):
        raise ValueError(
            f"Serialized parameter value {s!r} contains one of "
            f"{PARAM_KV_SEPARATOR!r}, {PARAM_SEPARATOR!r}, {WILDCARD!r}"
        )
    return s


def stringify_single_param(key: str, value: Any) -> str:
    """Serialize one parameter, e.g. ``x=1``."""
    return key + PARAM_KV_SEPARATOR + stringify_param_value(value)


def stringify_public_params(params: Mapping[str, Any]) -> list[str]:
    """Serialize each parameter in insertion order."""
    return [stringify_single_param(k, v) for k, v in params.items()]


def param_values_equal(a: Any, b: Any) -> bool:
    """Compare two parameter values by their serialized form.

    ``True`` and ``1`` are different values.
    """
    return stringify_param_value(a) == stringify_param_value(b)
