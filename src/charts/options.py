# src/charts/options.py

from typing import Any, Optional, Sequence

from src.charts.derive import derive_name_value, derive_x_axis, derive_y_axis
from src.charts.kinds import CARTESIAN_KINDS, PROPORTION_KINDS, ChartKind, classify
from src.charts.models import ChartOption, SeriesSpec

DEFAULT_TITLE = "Chart"

# Point labels get too dense to read from this many points on
LABEL_DENSITY_LIMIT = 16


def assemble_chart_option(
    kind: ChartKind,
    data: Sequence[Any],
    title: Optional[str] = None,
    series_name: Optional[str] = None,
    x_axis_name: Optional[str] = None,
    y_axis_name: Optional[str] = None,
) -> ChartOption:
    """
    Compose the full chart option for one request.

    Pie and funnel data is reshaped into name/value pairs. Bar, line and
    scatter charts get derived x/y axes and show point labels below
    LABEL_DENSITY_LIMIT points. Every other kind (the hierarchical ones)
    passes `data` through as the series payload. Animation is always off.

    The result depends only on the arguments, so equal inputs give equal
    options. `data` is expected to have passed validate_chart_data already.
    """
    kind = classify(kind)

    points = list(data)
    label_visible = None
    x_axis = y_axis = None

    if kind in PROPORTION_KINDS:
        points = derive_name_value(data)

    if kind in CARTESIAN_KINDS:
        x_axis = derive_x_axis(data, x_axis_name)
        y_axis = derive_y_axis(data, y_axis_name)
        label_visible = len(data) < LABEL_DENSITY_LIMIT

    series = SeriesSpec(kind=kind, name=series_name, points=points, label_visible=label_visible)
    # Set last, so no branch above can turn it back on
    series.animation_enabled = False

    return ChartOption(
        title=title or DEFAULT_TITLE,
        series=[series],
        x_axis=x_axis,
        y_axis=y_axis,
    )
