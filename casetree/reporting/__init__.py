"""Tree reporting: JSON and YAML reports of loaded trees."""

from casetree.reporting.reporter import TreeReporter

__all__ = [
    "TreeReporter",
]
