# src/charts/validation.py

import json
from collections.abc import Mapping
from typing import Any

from src.charts.errors import DataNotArray, MalformedHierarchicalData, RowNotArray
from src.charts.kinds import ChartKind, is_hierarchical


def is_sequence(value: Any) -> bool:
    """JSON arrays only: strings and mappings do not count as rows."""
    return isinstance(value, (list, tuple))


def is_number(value: Any) -> bool:
    """JSON numbers only: booleans are not numeric."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_chart_data(kind: ChartKind, data: Any) -> None:
    """
    Check that `data` has the outer shape expected by `kind`.

    Hierarchical kinds need a list of nodes whose first node carries a
    numeric `value`. Tabular kinds need a list, and when it holds more than
    one entry its first entry must itself be a list. Only the first node or
    row is inspected; row length is checked later by the deriver.

    Raises:
        MalformedHierarchicalData, DataNotArray, RowNotArray
    """
    if is_hierarchical(kind):
        if not is_sequence(data):
            raise MalformedHierarchicalData(kind)
        if len(data) > 0:
            first = data[0]
            if not isinstance(first, Mapping) or not is_number(first.get("value")):
                raise MalformedHierarchicalData(kind)
        return

    if not is_sequence(data):
        raise DataNotArray(json.dumps(data, default=str))

    # A single point cannot be told apart from a scalar, so it is let through
    if len(data) > 1 and not is_sequence(data[0]):
        raise RowNotArray()
