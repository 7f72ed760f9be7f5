# src/charts/models.py

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from src.charts.kinds import ChartKind


class AxisValueKind(str, Enum):
    CATEGORY = "category"
    VALUE = "value"


class AxisSpec(BaseModel):
    """Derived axis. Dumps by alias to the {type, data, name} axis shape."""

    model_config = ConfigDict(populate_by_name=True)

    value_kind: AxisValueKind = Field(..., alias="type")
    values: Optional[List[Any]] = Field(None, alias="data", description="Materialized axis values; None for value axes")
    display_name: Optional[str] = Field(None, alias="name")


class SeriesSpec(BaseModel):
    kind: ChartKind
    name: Optional[str] = None
    points: List[Any] = Field(default_factory=list, description="Name/value pairs, raw rows, or raw tree nodes")
    label_visible: Optional[bool] = Field(None, description="None leaves the renderer default")
    animation_enabled: bool = False


class ChartOption(BaseModel):
    title: str = "Chart"
    series: List[SeriesSpec]
    x_axis: Optional[Union[AxisSpec, List[Any]]] = None
    y_axis: Optional[Union[AxisSpec, List[Any]]] = None

    @property
    def primary_series(self) -> SeriesSpec:
        return self.series[0]

    def to_echarts(self) -> Dict[str, Any]:
        """Plain ECharts-style option dict; axis keys only for cartesian charts."""
        option: Dict[str, Any] = {
            "title": {"text": self.title},
            "series": [
                {
                    "type": series.kind.value,
                    "data": series.points,
                    "name": series.name,
                    "label": None if series.label_visible is None else {"show": series.label_visible},
                    "animation": series.animation_enabled,
                }
                for series in self.series
            ],
        }

        for key, axis in (("xAxis", self.x_axis), ("yAxis", self.y_axis)):
            if axis is None:
                continue
            option[key] = axis.model_dump(by_alias=True, mode="json") if isinstance(axis, AxisSpec) else list(axis)

        return option
