"""Part-of-whole option builders: pie, donut, treemap, sunburst, funnel and gauge."""

from __future__ import annotations

from typing import Any, Dict

from charts.common import (
    animation,
    dark_tooltip,
    name_value_pairs,
    pick_color,
    shadow_emphasis,
    strict_values,
)
from core.utils import coerce_number, label_text

PERCENT_FORMATTER = "{a} <br/>{b}: {c} ({d}%)"


def _pie_option(fields, data, colors, radius) -> Dict[str, Any]:
    return {
        **animation(),
        "tooltip": dark_tooltip("item", formatter=PERCENT_FORMATTER),
        "legend": {"orient": "vertical", "left": "left", "textStyle": {"fontSize": 12}},
        "series": [
            {
                "name": fields.value_key,
                "type": "pie",
                "radius": radius,
                "data": name_value_pairs(fields, data, colors),
                "emphasis": shadow_emphasis(),
            }
        ],
    }


def build_pie(fields, data, style, colors) -> Dict[str, Any]:
    return _pie_option(fields, data, colors, "50%")


def build_donut(fields, data, style, colors) -> Dict[str, Any]:
    return _pie_option(fields, data, colors, ["40%", "70%"])


def build_treemap(fields, data, style, colors) -> Dict[str, Any]:
    return {
        "tooltip": {"trigger": "item"},
        "series": [{"type": "treemap", "data": name_value_pairs(fields, data, colors)}],
    }


def build_sunburst(fields, data, style, colors) -> Dict[str, Any]:
    return {
        "tooltip": {"trigger": "item"},
        "series": [
            {
                "type": "sunburst",
                "data": name_value_pairs(fields, data, colors),
                "radius": [0, "90%"],
                "label": {"rotate": "radial"},
            }
        ],
    }


def build_funnel(fields, data, style, colors) -> Dict[str, Any]:
    entries = name_value_pairs(fields, data, colors)
    entries.sort(key=lambda e: e["value"], reverse=True)
    return {
        "tooltip": {"trigger": "item", "formatter": PERCENT_FORMATTER},
        "series": [
            {
                "name": fields.value_key,
                "type": "funnel",
                "left": "10%",
                "top": 60,
                "bottom": 60,
                "width": "80%",
                "min": 0,
                "max": max(strict_values(data, fields.value_key), default=0),
                "minSize": "0%",
                "maxSize": "100%",
                "sort": "descending",
                "gap": 2,
                "label": {"show": True, "position": "inside"},
                "labelLine": {"length": 10, "lineStyle": {"width": 1, "type": "solid"}},
                "itemStyle": {"borderColor": "#fff", "borderWidth": 1},
                "emphasis": {"label": {"fontSize": 20}},
                "data": entries,
            }
        ],
    }


def build_radialbar(fields, data, style, colors) -> Dict[str, Any]:
    """Single-value gauge driven by the first record."""
    first = data[0] if data else {}
    return {
        "tooltip": {"formatter": "{a} <br/>{b}: {c}"},
        "series": [
            {
                "name": fields.value_key,
                "type": "gauge",
                "data": [
                    {
                        "value": coerce_number(first.get(fields.value_key)),
                        "name": label_text(first.get(fields.name_key)),
                    }
                ],
                "axisLine": {"lineStyle": {"color": [[1, pick_color(colors, 0)]]}},
            }
        ],
    }
