# src/charts/__init__.py

from .errors import (
    ChartDataError,
    UnsupportedChartKind,
    MalformedHierarchicalData,
    DataNotArray,
    RowNotArray,
    InvalidRowShape
)

from .kinds import (
    ChartKind,
    SERIES_TYPES,
    classify,
    is_hierarchical
)

from .validation import validate_chart_data

from .derive import (
    derive_x_axis,
    derive_y_axis,
    derive_name_value
)

from .models import (
    AxisSpec,
    AxisValueKind,
    SeriesSpec,
    ChartOption
)

from .options import assemble_chart_option

__all__ = [
    'ChartDataError',
    'UnsupportedChartKind',
    'MalformedHierarchicalData',
    'DataNotArray',
    'RowNotArray',
    'InvalidRowShape',
    'ChartKind',
    'SERIES_TYPES',
    'classify',
    'is_hierarchical',
    'validate_chart_data',
    'derive_x_axis',
    'derive_y_axis',
    'derive_name_value',
    'AxisSpec',
    'AxisValueKind',
    'SeriesSpec',
    'ChartOption',
    'assemble_chart_option'
]
