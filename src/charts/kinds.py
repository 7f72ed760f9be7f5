# src/charts/kinds.py

from enum import Enum
from typing import Union

from src.charts.errors import UnsupportedChartKind


class ChartKind(str, Enum):
    BAR = "bar"
    LINE = "line"
    PIE = "pie"
    SCATTER = "scatter"
    FUNNEL = "funnel"
    TREE = "tree"
    TREEMAP = "treemap"
    SUNBURST = "sunburst"

    def __str__(self) -> str:
        return self.value


SERIES_TYPES = tuple(kind.value for kind in ChartKind)

HIERARCHICAL_KINDS = frozenset({ChartKind.TREE, ChartKind.TREEMAP, ChartKind.SUNBURST})

# Reshaped to name/value pairs
PROPORTION_KINDS = frozenset({ChartKind.PIE, ChartKind.FUNNEL})

# Drawn against derived x/y axes
CARTESIAN_KINDS = frozenset({ChartKind.BAR, ChartKind.LINE, ChartKind.SCATTER})


def classify(kind: Union[str, ChartKind]) -> ChartKind:
    """
    Resolve a requested chart type to a ChartKind.

    Raises:
        UnsupportedChartKind: if `kind` is not one of SERIES_TYPES. The
            message lists every valid type.
    """
    if isinstance(kind, ChartKind):
        return kind
    try:
        return ChartKind(kind)
    except ValueError:
        raise UnsupportedChartKind(kind, SERIES_TYPES) from None


def is_hierarchical(kind: Union[str, ChartKind]) -> bool:
    """True for tree, treemap and sunburst."""
    # Enum members hash by name, so plain strings must be resolved first
    try:
        return ChartKind(kind) in HIERARCHICAL_KINDS
    except ValueError:
        return False
