# src/charts/errors.py

TABULAR_EXAMPLE = '[["A", 100], ["B", 200], ["C", 300]]'
HIERARCHICAL_EXAMPLE = (
    '[{ "name": "A", "value": 100, "children": '
    '[{ "name": "A1", "value": 40}, { "name": "A2", "value": 60}]}]'
)


class ChartDataError(ValueError):
    """Base class for faults caused by the caller's chart request."""

    # Input-shape faults are reported back to the caller verbatim so they
    # can correct the request; the rest surface as generic internal faults.
    caller_correctable = True


class UnsupportedChartKind(ChartDataError):
    def __init__(self, kind, valid_kinds):
        self.kind = kind
        self.valid_kinds = tuple(valid_kinds)
        super().__init__(f"Invalid chart type. Must be one of: {', '.join(self.valid_kinds)}")


class MalformedHierarchicalData(ChartDataError):
    def __init__(self, kind):
        self.kind = kind
        super().__init__(
            f"{kind} chart data should be like {TABULAR_EXAMPLE} for bar/line/pie/scatter charts, "
            f"or {HIERARCHICAL_EXAMPLE}"
        )


class DataNotArray(ChartDataError):
    def __init__(self, data_repr: str):
        super().__init__(f"Chart data must be an array. Input data: {data_repr}")


class RowNotArray(ChartDataError):
    def __init__(self):
        super().__init__(f"Chart data must be an array of arrays. For example: {TABULAR_EXAMPLE}")


class InvalidRowShape(ChartDataError):
    caller_correctable = False

    def __init__(self, row_index: int):
        self.row_index = row_index
        super().__init__(f"Data must be 2d array (row {row_index} has fewer than 2 entries)")
