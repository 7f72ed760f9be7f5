# src/charts/derive.py

from typing import Any, Dict, List, Optional, Sequence, Union

from src.charts.errors import InvalidRowShape
from src.charts.models import AxisSpec, AxisValueKind
from src.charts.validation import is_number, is_sequence


def check_rows(data: Sequence[Any]) -> None:
    """Every row must be a sequence with at least two entries."""
    for index, row in enumerate(data):
        if not is_sequence(row) or len(row) < 2:
            raise InvalidRowShape(index)


def derive_x_axis(data: Sequence[Sequence[Any]], axis_name: Optional[str] = None) -> Union[AxisSpec, List]:
    """
    Build the x axis from the first column.

    The axis is a category axis when the first row's first value is a
    string, otherwise a value axis. The whole first column is kept either way.
    Returns an empty list for an empty dataset.
    """
    if len(data) == 0:
        return []

    check_rows(data)

    value_kind = AxisValueKind.CATEGORY if isinstance(data[0][0], str) else AxisValueKind.VALUE
    return AxisSpec(
        value_kind=value_kind,
        values=[row[0] for row in data],
        display_name=axis_name,
    )


def derive_y_axis(data: Sequence[Sequence[Any]], axis_name: Optional[str] = None) -> Union[AxisSpec, List]:
    """
    Build the y axis from the second column.

    The axis is a value axis when the first row's second value is a number.
    Value axes carry no explicit values (the renderer reads them from the
    series); category axes keep the whole second column.
    Returns an empty list for an empty dataset.
    """
    if len(data) == 0:
        return []

    check_rows(data)

    if is_number(data[0][1]):
        return AxisSpec(value_kind=AxisValueKind.VALUE, values=None, display_name=axis_name)

    return AxisSpec(
        value_kind=AxisValueKind.CATEGORY,
        values=[row[1] for row in data],
        display_name=axis_name,
    )


def derive_name_value(data: Sequence[Sequence[Any]]) -> List[Dict[str, Any]]:
    """Map each row to {"name": row[0], "value": row[1]} for pie and funnel charts."""
    if len(data) == 0:
        return []

    check_rows(data)

    return [{"name": row[0], "value": row[1]} for row in data]
