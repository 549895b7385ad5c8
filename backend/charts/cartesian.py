"""
Cartesian and polar option builders: bar / line / area families, the scatter
family, radar, heatmap, polar area, histogram, lollipop and density.

Every builder has the signature ``(fields, data, style, colors) -> dict``
and returns a complete ECharts option.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List

from charts.common import (
    GROUP_GAP,
    STACK_ID,
    animation,
    category_axis,
    dark_tooltip,
    grid,
    labels,
    legend,
    loose_values,
    pick_color,
    shadow_emphasis,
    strict_values,
    value_axis,
)
from charts.statistical import trend_keys, trend_series
from core.models import FieldAssignment, FlattenedRecord, StyleFlags
from core.utils import is_finite_number, number_or_zero


def _trend_color(colors: List[str], n_series: int, idx: int) -> str:
    # Trendlines take palette slots after the value series.
    return pick_color(colors, n_series + idx)


# ---------------------------------------------------------------------------
# Bar family
# ---------------------------------------------------------------------------

def build_bar(fields: FieldAssignment, data: List[FlattenedRecord], style: StyleFlags, colors: List[str]) -> Dict[str, Any]:
    keys = fields.series_keys
    series = []
    for idx, key in enumerate(keys):
        s: Dict[str, Any] = {
            "name": key,
            "type": "bar",
            "data": strict_values(data, key),
            "itemStyle": {"color": pick_color(colors, idx)},
        }
        if style.stacked:
            s["stack"] = STACK_ID
        elif style.grouped:
            s["barGap"] = GROUP_GAP
            s["emphasis"] = {"focus": "series"}
        series.append(s)

    return {
        **animation(),
        "tooltip": dark_tooltip("axis", axisPointer={"type": "shadow"}),
        "legend": legend(keys),
        "grid": grid(),
        "xAxis": category_axis(labels(data, fields.name_key)),
        "yAxis": value_axis(),
        "series": series,
    }


def build_histogram(fields, data, style, colors) -> Dict[str, Any]:
    return {
        "tooltip": {"trigger": "axis"},
        "xAxis": {"type": "category", "data": labels(data, fields.name_key)},
        "yAxis": {"type": "value"},
        "series": [
            {
                "name": fields.value_key,
                "type": "bar",
                "data": strict_values(data, fields.value_key),
                "itemStyle": {"color": pick_color(colors, 0)},
            }
        ],
    }


def build_polararea(fields, data, style, colors) -> Dict[str, Any]:
    keys = fields.series_keys
    return {
        "tooltip": {"trigger": "axis"},
        "polar": {},
        "angleAxis": {"type": "category", "data": labels(data, fields.name_key)},
        "radiusAxis": {},
        "series": [
            {
                "name": key,
                "type": "bar",
                "data": loose_values(data, key),
                "coordinateSystem": "polar",
                "itemStyle": {"color": pick_color(colors, idx)},
            }
            for idx, key in enumerate(keys)
        ],
    }


# ---------------------------------------------------------------------------
# Line family
# ---------------------------------------------------------------------------

def _line_series(fields, data, style, colors, filled: bool) -> List[Dict[str, Any]]:
    series = []
    for idx, key in enumerate(fields.series_keys):
        color = pick_color(colors, idx)
        s: Dict[str, Any] = {
            "name": key,
            "type": "line",
            "data": strict_values(data, key),
            "lineStyle": {"color": color},
            "itemStyle": {"color": color},
            "smooth": True,
        }
        if filled:
            s["areaStyle"] = {"color": color, "opacity": 0.6}
        if style.stacked:
            s["stack"] = STACK_ID
        series.append(s)
    return series


def _line_option(fields, data, series, legend_names) -> Dict[str, Any]:
    return {
        **animation(),
        "tooltip": dark_tooltip("axis", axisPointer={"type": "line"}),
        "legend": legend(legend_names),
        "grid": grid(),
        "xAxis": category_axis(labels(data, fields.name_key)),
        "yAxis": value_axis(),
        "series": series,
    }


def build_line(fields, data, style, colors) -> Dict[str, Any]:
    keys = fields.series_keys
    series = _line_series(fields, data, style, colors, filled=False)
    names = list(keys)

    for idx, key in enumerate(trend_keys(fields, style)):
        trend = trend_series(key, strict_values(data, key), _trend_color(colors, len(keys), idx))
        series.append(trend)
        names.append(trend["name"])

    return _line_option(fields, data, series, names)


def build_area(fields, data, style, colors) -> Dict[str, Any]:
    series = _line_series(fields, data, style, colors, filled=True)
    return _line_option(fields, data, series, fields.series_keys)


def build_density(fields, data, style, colors) -> Dict[str, Any]:
    color = pick_color(colors, 0)
    return {
        **animation(),
        "tooltip": dark_tooltip("axis"),
        "grid": grid("10%"),
        "xAxis": category_axis(labels(data, fields.name_key)),
        "yAxis": value_axis(),
        "series": [
            {
                "name": fields.value_key,
                "type": "line",
                "areaStyle": {"color": color, "opacity": 0.6},
                "lineStyle": {"color": color},
                "smooth": True,
                "data": strict_values(data, fields.value_key),
            }
        ],
    }


# ---------------------------------------------------------------------------
# Scatter family
# ---------------------------------------------------------------------------

def _numeric_x(data: List[FlattenedRecord], name_key: str) -> bool:
    return bool(data) and all(is_finite_number(item.get(name_key)) for item in data)


def _scatter_axes(data, fields) -> Dict[str, Any]:
    """Value x-axis for numeric labels, category x-axis otherwise."""
    if _numeric_x(data, fields.name_key):
        x_axis = value_axis()
    else:
        x_axis = category_axis(labels(data, fields.name_key))
    return {"xAxis": x_axis, "yAxis": value_axis()}


def _xy_points(data, name_key: str, key: str) -> List[List[Any]]:
    if _numeric_x(data, name_key):
        xs: List[Any] = [number_or_zero(item.get(name_key)) for item in data]
    else:
        xs = labels(data, name_key)
    return [[x, y] for x, y in zip(xs, strict_values(data, key))]


def _scatter_frame(fields, data, legend_names, series) -> Dict[str, Any]:
    return {
        "animation": True,
        "animationDuration": 1000,
        "tooltip": dark_tooltip("item"),
        "legend": legend(legend_names),
        "grid": grid(),
        **_scatter_axes(data, fields),
        "series": series,
    }


def build_scatter(fields, data, style, colors) -> Dict[str, Any]:
    keys = fields.series_keys
    series: List[Dict[str, Any]] = [
        {
            "name": key,
            "type": "scatter",
            "data": _xy_points(data, fields.name_key, key),
            "itemStyle": {"color": pick_color(colors, idx)},
        }
        for idx, key in enumerate(keys)
    ]
    names = list(keys)

    for idx, key in enumerate(trend_keys(fields, style)):
        points = _xy_points(data, fields.name_key, key)
        trend = trend_series(
            key,
            [p[1] for p in points],
            _trend_color(colors, len(keys), idx),
            x_values=[p[0] for p in points],
        )
        series.append(trend)
        names.append(trend["name"])

    return _scatter_frame(fields, data, names, series)


def build_bubble(fields, data, style, colors) -> Dict[str, Any]:
    keys = fields.series_keys
    series = []
    for idx, key in enumerate(keys):
        points = [
            {"value": point, "symbolSize": math.sqrt(max(point[1], 0)) * 2}
            for point in _xy_points(data, fields.name_key, key)
        ]
        series.append({
            "name": key,
            "type": "scatter",
            "data": points,
            "itemStyle": {"color": pick_color(colors, idx)},
        })
    return _scatter_frame(fields, data, keys, series)


def build_effectscatter(fields, data, style, colors) -> Dict[str, Any]:
    keys = fields.series_keys
    series = [
        {
            "name": key,
            "type": "effectScatter",
            "data": _xy_points(data, fields.name_key, key),
            "rippleEffect": {"brushType": "stroke", "scale": 2.5},
            "itemStyle": {"color": pick_color(colors, idx)},
        }
        for idx, key in enumerate(keys)
    ]
    return _scatter_frame(fields, data, keys, series)


def build_lollipop(fields, data, style, colors) -> Dict[str, Any]:
    values = loose_values(data, fields.value_key)
    return {
        "tooltip": {"trigger": "item"},
        "xAxis": {"type": "category", "data": labels(data, fields.name_key)},
        "yAxis": {"type": "value"},
        "series": [
            {
                "name": fields.value_key,
                "type": "scatter",
                "data": [
                    {"value": [idx, v], "symbolSize": abs(v) * 2}
                    for idx, v in enumerate(values)
                ],
                "itemStyle": {"color": pick_color(colors, 0)},
            }
        ],
    }


# ---------------------------------------------------------------------------
# Radar / heatmap
# ---------------------------------------------------------------------------

def build_radar(fields, data, style, colors) -> Dict[str, Any]:
    keys = fields.series_keys
    columns = {key: strict_values(data, key) for key in keys}
    peak = max((max(col) for col in columns.values() if col), default=0)

    series = []
    for idx, key in enumerate(keys):
        color = pick_color(colors, idx)
        series.append({
            "name": key,
            "type": "radar",
            "data": [
                {
                    "value": columns[key],
                    "name": key,
                    "itemStyle": {"color": color},
                    "areaStyle": {"color": color, "opacity": 0.6},
                }
            ],
        })

    return {
        "tooltip": {"trigger": "item"},
        "legend": {"data": list(keys)},
        "radar": {"indicator": [{"name": name, "max": peak} for name in labels(data, fields.name_key)]},
        "series": series,
    }


def build_heatmap(fields, data, style, colors) -> Dict[str, Any]:
    strict = strict_values(data, fields.value_key)
    loose = loose_values(data, fields.value_key)
    return {
        "tooltip": {"position": "top"},
        "grid": {"height": "50%", "top": "10%"},
        "xAxis": {"type": "category", "data": labels(data, fields.name_key), "splitArea": {"show": True}},
        "yAxis": {"type": "category", "splitArea": {"show": True}},
        "visualMap": {
            "min": 0,
            "max": max(strict, default=0),
            "calculable": True,
            "orient": "horizontal",
            "left": "center",
            "bottom": "15%",
            "inRange": {"color": list(colors)},
        },
        "series": [
            {
                "name": fields.value_key,
                "type": "heatmap",
                "data": [[idx, 0, v] for idx, v in enumerate(loose)],
                "label": {"show": True},
                "emphasis": shadow_emphasis(),
            }
        ],
    }
