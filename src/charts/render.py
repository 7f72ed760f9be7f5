# src/charts/render.py

import base64
import io
import itertools
from collections.abc import Mapping
from typing import Any, List, Optional, Tuple

from matplotlib.figure import Figure
from matplotlib.patches import Rectangle
import numpy as np

from src.charts.kinds import ChartKind
from src.charts.models import AxisSpec, AxisValueKind, ChartOption, SeriesSpec
from src.charts.validation import is_number, is_sequence
from src.utils.tracing import setup_logger_with_tracing, traced

LOGGER = setup_logger_with_tracing(__name__, service_name="chart-renderer")

CANVAS_WIDTH = 800
CANVAS_HEIGHT = 600
DPI = 100

# ECharts default palette
PALETTE = [
    "#5470c6", "#91cc75", "#fac858", "#ee6666", "#73c0de",
    "#3ba272", "#fc8452", "#9a60b4", "#ea7ccc"
]

# Inner radius of the sunburst, in ring widths
SUNBURST_HOLE = 0.4


def _colors(count: int) -> List[str]:
    return [PALETTE[i % len(PALETTE)] for i in range(count)]


def _weight(value: Any) -> float:
    return float(value) if is_number(value) else 0.0


# ============================================================================
# CARTESIAN CHARTS
# ============================================================================

def _axis_positions(axis, column: List[Any]) -> Tuple[List[float], Optional[List[Any]]]:
    """
    Map a data column onto plot coordinates.

    Category axes place each distinct value at an ordinal position and also
    return the ordered categories for tick labels. Value axes plot the
    numbers themselves.
    """
    if isinstance(axis, AxisSpec) and axis.value_kind == AxisValueKind.CATEGORY:
        categories = list(dict.fromkeys(axis.values))
        index = {category: position for position, category in enumerate(categories)}
        return [index[value] for value in column], categories

    return [float(value) for value in column], None


def _axis_name(axis) -> str:
    return (axis.display_name or "") if isinstance(axis, AxisSpec) else ""


def _draw_cartesian(ax, option: ChartOption, series: SeriesSpec):
    rows = series.points
    xs, x_categories = _axis_positions(option.x_axis, [row[0] for row in rows])
    ys, y_categories = _axis_positions(option.y_axis, [row[1] for row in rows])
    color = PALETTE[0]

    if series.kind == ChartKind.BAR:
        ax.bar(xs, ys, color=color, alpha=0.85, label=series.name)
    elif series.kind == ChartKind.LINE:
        ax.plot(xs, ys, color=color, marker='o', linewidth=2, markersize=6, label=series.name)
    else:
        ax.scatter(xs, ys, color=color, s=40, label=series.name)

    if series.label_visible:
        for x, y, row in zip(xs, ys, rows):
            ax.annotate(
                str(row[1]), (x, y),
                textcoords="offset points", xytext=(0, 6),
                ha='center', fontsize=9
            )

    if x_categories is not None:
        ax.set_xticks(range(len(x_categories)))
        if len(x_categories) > 8:
            ax.set_xticklabels([str(c) for c in x_categories], rotation=45, ha='right')
        else:
            ax.set_xticklabels([str(c) for c in x_categories])

    if y_categories is not None:
        ax.set_yticks(range(len(y_categories)))
        ax.set_yticklabels([str(c) for c in y_categories])

    ax.set_xlabel(_axis_name(option.x_axis), fontsize=12)
    ax.set_ylabel(_axis_name(option.y_axis), fontsize=12)
    ax.grid(True, alpha=0.3)

    if series.name and rows:
        ax.legend(loc='best', fontsize=10)


# ============================================================================
# PROPORTION CHARTS
# ============================================================================

def _draw_pie(ax, option: ChartOption, series: SeriesSpec):
    ax.axis('equal')
    if not series.points:
        ax.set_axis_off()
        return

    slices = [
        (str(point["name"]), _weight(point["value"]))
        for point in series.points
        if _weight(point["value"]) > 0
    ]
    if not slices:
        raise ValueError("Cannot create pie chart with all zero values")

    labels, values = zip(*slices)
    show_labels = series.label_visible is not False

    _, _, autotexts = ax.pie(
        values,
        labels=labels if show_labels else None,
        colors=_colors(len(values)),
        autopct='%1.1f%%',
        startangle=90,
        counterclock=False,
        wedgeprops={"edgecolor": "white"}
    )

    for autotext in autotexts:
        autotext.set_color('white')
        autotext.set_fontweight('bold')
        autotext.set_fontsize(10)


def _draw_funnel(ax, option: ChartOption, series: SeriesSpec):
    ax.set_axis_off()
    if not series.points:
        return

    stages = sorted(
        ((str(point["name"]), _weight(point["value"])) for point in series.points),
        key=lambda stage: stage[1],
        reverse=True
    )
    peak = stages[0][1]
    if peak <= 0:
        raise ValueError("Cannot create funnel chart with all zero values")

    show_labels = series.label_visible is not False
    for level, ((name, weight), color) in enumerate(zip(stages, _colors(len(stages)))):
        width = max(weight, 0.0) / peak
        ax.barh(level, width, left=-width / 2, height=0.92, color=color)
        if show_labels:
            ax.text(0, level, name, ha='center', va='center', fontsize=10, color='#333333')

    ax.set_xlim(-0.55, 0.55)
    ax.invert_yaxis()


# ============================================================================
# HIERARCHICAL CHARTS
# ============================================================================

def _as_node(node: Any) -> Mapping:
    if not isinstance(node, Mapping):
        raise ValueError(f"Invalid tree node: {node!r}")
    return node


def _children(node: Mapping) -> List[Mapping]:
    children = node.get("children")
    if not is_sequence(children):
        return []
    return [_as_node(child) for child in children]


def _node_weight(node: Mapping) -> float:
    """A node's numeric value, or the summed weight of its children."""
    value = node.get("value")
    if is_number(value):
        return max(float(value), 0.0)
    return sum(_node_weight(child) for child in _children(node))


def _node_name(node: Mapping) -> str:
    return str(node.get("name", ""))


def _layout_tree(node, depth, leaf_slots, placed, edges) -> float:
    """Leaves take the next free row; parents sit centred on their children."""
    children = _children(node)
    if children:
        child_rows = [_layout_tree(child, depth + 1, leaf_slots, placed, edges) for child in children]
        row = sum(child_rows) / len(child_rows)
        edges.extend(((depth, row), (depth + 1, child_row)) for child_row in child_rows)
    else:
        row = float(next(leaf_slots))
    placed.append((node, depth, row))
    return row


def _draw_tree(ax, option: ChartOption, series: SeriesSpec):
    ax.set_axis_off()
    placed, edges = [], []
    leaf_slots = itertools.count()
    for root in series.points:
        _layout_tree(_as_node(root), 0, leaf_slots, placed, edges)

    if not placed:
        return

    for (x0, y0), (x1, y1) in edges:
        ax.plot([x0, x1], [y0, y1], color='#aaaaaa', linewidth=1.2, zorder=1)

    ax.scatter(
        [depth for _, depth, _ in placed],
        [row for _, _, row in placed],
        s=70, color=PALETTE[0], edgecolors='white', zorder=2
    )

    for node, depth, row in placed:
        is_leaf = not _children(node)
        ax.text(
            depth + (0.08 if is_leaf else -0.08), row, _node_name(node),
            ha='left' if is_leaf else 'right', va='center', fontsize=9
        )

    ax.margins(x=0.2, y=0.05)
    ax.invert_yaxis()


def _layout_treemap(nodes, x, y, width, height, depth, color, tiles):
    """Slice-and-dice: split horizontally on even depths, vertically on odd ones."""
    weights = [_node_weight(_as_node(node)) for node in nodes]
    total = sum(weights)
    if total <= 0:
        return

    offset = 0.0
    for index, (node, weight) in enumerate(zip(nodes, weights)):
        share = weight / total
        if depth % 2 == 0:
            tile = (x + offset * width, y, share * width, height)
        else:
            tile = (x, y + offset * height, width, share * height)
        offset += share

        node_color = color or PALETTE[index % len(PALETTE)]
        tiles.append((node, depth, tile, node_color))

        children = _children(node)
        if children:
            _layout_treemap(children, *tile, depth + 1, node_color, tiles)


def _draw_treemap(ax, option: ChartOption, series: SeriesSpec):
    tiles = []
    _layout_treemap(series.points, 0.0, 0.0, 1.0, 1.0, 0, None, tiles)

    for node, depth, (x, y, width, height), color in tiles:
        ax.add_patch(Rectangle(
            (x, y), width, height,
            facecolor=color,
            edgecolor='white',
            linewidth=max(3 - depth, 1),
            alpha=max(1.0 - 0.2 * depth, 0.4)
        ))
        if not _children(node) and width > 0.04 and height > 0.03:
            ax.text(
                x + width / 2, y + height / 2, _node_name(node),
                ha='center', va='center', fontsize=9, color='white'
            )

    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1)
    ax.invert_yaxis()
    ax.set_axis_off()


def _layout_sunburst(nodes, start, span, depth, color, capacity, wedges):
    """Children share their parent's angle in proportion to the parent's value."""
    weights = [_node_weight(_as_node(node)) for node in nodes]
    total = max(sum(weights), capacity)
    if total <= 0:
        return

    angle = start
    for index, (node, weight) in enumerate(zip(nodes, weights)):
        width = span * weight / total
        node_color = color or PALETTE[index % len(PALETTE)]
        wedges.append((node, depth, angle, width, node_color))

        children = _children(node)
        if children:
            _layout_sunburst(children, angle, width, depth + 1, node_color, weight, wedges)
        angle += width


def _draw_sunburst(ax, option: ChartOption, series: SeriesSpec):
    wedges = []
    _layout_sunburst(series.points, 0.0, 2 * np.pi, 0, None, 0.0, wedges)

    for node, depth, start, width, color in wedges:
        middle = start + width / 2
        ax.bar(
            middle, 1.0, width=width, bottom=SUNBURST_HOLE + depth,
            color=color, edgecolor='white', linewidth=1,
            alpha=max(1.0 - 0.15 * depth, 0.4)
        )
        if width > 0.15:
            ax.text(middle, SUNBURST_HOLE + depth + 0.5, _node_name(node),
                    ha='center', va='center', fontsize=8)

    max_depth = max((depth for _, depth, _, _, _ in wedges), default=-1)
    ax.set_ylim(0, SUNBURST_HOLE + max_depth + 1)
    ax.set_theta_zero_location('N')
    ax.set_theta_direction(-1)
    ax.set_axis_off()


RENDERERS = {
    ChartKind.BAR: _draw_cartesian,
    ChartKind.LINE: _draw_cartesian,
    ChartKind.SCATTER: _draw_cartesian,
    ChartKind.PIE: _draw_pie,
    ChartKind.FUNNEL: _draw_funnel,
    ChartKind.TREE: _draw_tree,
    ChartKind.TREEMAP: _draw_treemap,
    ChartKind.SUNBURST: _draw_sunburst,
}


# ============================================================================
# ENTRY POINTS
# ============================================================================

def render_chart_png(option: ChartOption) -> bytes:
    """
    Rasterize a chart option to an 800x600 PNG.

    Each call draws on its own Figure, outside pyplot's global figure
    registry, so renders may run on several threads at once.
    """
    series = option.primary_series
    LOGGER.debug(f"Rendering {series.kind} chart: {option.title}")

    fig = Figure(figsize=(CANVAS_WIDTH / DPI, CANVAS_HEIGHT / DPI), dpi=DPI)
    projection = 'polar' if series.kind == ChartKind.SUNBURST else None
    ax = fig.add_subplot(projection=projection)

    RENDERERS[series.kind](ax, option, series)
    ax.set_title(option.title, fontsize=16, fontweight='bold', pad=20)

    buffer = io.BytesIO()
    fig.savefig(buffer, format='png', dpi=DPI, facecolor='white')
    return buffer.getvalue()


@traced("render_chart")
def render_chart_base64(option: ChartOption) -> str:
    """Rasterize a chart option to a `data:image/png;base64,` URL."""
    encoded = base64.b64encode(render_chart_png(option)).decode('ascii')
    return f"data:image/png;base64,{encoded}"
