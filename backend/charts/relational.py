"""
Relational option builders: sankey, force graph, tree and route lines.

Records carry no explicit edges, so adjacency is record order: record ``i``
links to record ``i + 1``, and the tree hangs every later record off the
first one.
"""

from __future__ import annotations

from typing import Any, Dict, List

from charts.common import dark_tooltip, legend, pick_color
from core.models import FlattenedRecord
from core.utils import coerce_number, is_finite_number, label_text, number_or_zero


def _node_name(data: List[FlattenedRecord], idx: int, name_key: str, fallback: str = "Node") -> str:
    return label_text(data[idx].get(name_key), f"{fallback}{idx}")


def build_sankey(fields, data, style, colors) -> Dict[str, Any]:
    nodes: List[Dict[str, Any]] = []
    seen = set()
    links: List[Dict[str, Any]] = []

    def add_node(name: str) -> None:
        if name not in seen:
            seen.add(name)
            nodes.append({"name": name})

    for idx, item in enumerate(data):
        source = _node_name(data, idx, fields.name_key)
        add_node(source)
        if idx < len(data) - 1:
            target = _node_name(data, idx + 1, fields.name_key)
            add_node(target)
            links.append({
                "source": source,
                "target": target,
                "value": number_or_zero(item.get(fields.value_key)),
            })

    return {
        "tooltip": {"trigger": "item", "triggerOn": "mousemove"},
        "series": [
            {
                "type": "sankey",
                "data": nodes,
                "links": links,
                "emphasis": {"focus": "adjacency"},
                "lineStyle": {"color": "gradient", "curveness": 0.5},
            }
        ],
    }


def _graph_symbol_size(value: float) -> float:
    return max(10, min(50, value / 10))


def build_graph(fields, data, style, colors) -> Dict[str, Any]:
    nodes: List[Dict[str, Any]] = []
    seen = set()
    links: List[Dict[str, Any]] = []
    categories = [{"name": "Default"}]

    for idx, item in enumerate(data):
        name = _node_name(data, idx, fields.name_key)
        value = number_or_zero(item.get(fields.value_key))
        if name not in seen:
            seen.add(name)
            nodes.append({
                "name": name,
                "value": value,
                "category": 0,
                "symbolSize": _graph_symbol_size(value),
            })
        if idx < len(data) - 1:
            links.append({
                "source": name,
                "target": _node_name(data, idx + 1, fields.name_key),
                "value": value,
            })

    return {
        "animation": True,
        "animationDuration": 1000,
        "tooltip": dark_tooltip("item"),
        "legend": legend([c["name"] for c in categories]),
        "series": [
            {
                "type": "graph",
                "layout": "force",
                "roam": True,
                "label": {"show": True, "position": "right"},
                "edgeLabel": {"show": True, "formatter": "{c}"},
                "data": nodes,
                "links": links,
                "categories": categories,
                "lineStyle": {"color": "source", "curveness": 0.3},
                "emphasis": {"focus": "adjacency", "lineStyle": {"width": 4}},
            }
        ],
    }


def build_tree(fields, data, style, colors) -> Dict[str, Any]:
    if not data:
        return {"tooltip": {"trigger": "item"}, "series": []}

    root = {
        "name": label_text(data[0].get(fields.name_key), "Root"),
        "value": coerce_number(data[0].get(fields.value_key)),
        "children": [
            {
                "name": _node_name(data, idx, fields.name_key),
                "value": coerce_number(data[idx].get(fields.value_key)),
                "children": [],
            }
            for idx in range(1, len(data))
        ],
    }

    return {
        "animation": True,
        "animationDuration": 1000,
        "tooltip": dark_tooltip("item", triggerOn="mousemove"),
        "series": [
            {
                "type": "tree",
                "data": [root],
                "top": "5%",
                "left": "7%",
                "bottom": "5%",
                "right": "20%",
                "symbolSize": 7,
                "label": {"position": "left", "verticalAlign": "middle", "align": "right", "fontSize": 12},
                "leaves": {"label": {"position": "right", "verticalAlign": "middle", "align": "left"}},
                "emphasis": {"focus": "descendant"},
                "expandAndCollapse": True,
                "animationDuration": 550,
                "animationDurationUpdate": 750,
                "lineStyle": {"color": pick_color(colors, 0), "width": 1.5, "curveness": 0.5},
            }
        ],
    }


def build_lines(fields, data, style, colors) -> Dict[str, Any]:
    coords = []
    for idx, item in enumerate(data):
        x = item.get(fields.name_key)
        coords.append([x if is_finite_number(x) else idx, number_or_zero(item.get(fields.value_key))])

    return {
        "animation": True,
        "animationDuration": 1000,
        "tooltip": dark_tooltip("item"),
        "geo": {
            "map": "world",
            "roam": True,
            "itemStyle": {"areaColor": "#f3f3f3", "borderColor": "#999"},
            "emphasis": {"itemStyle": {"areaColor": "#f9f9f9"}},
        },
        "series": [
            {
                "type": "lines",
                "coordinateSystem": "geo",
                "polyline": True,
                "data": [{"coords": coords, "lineStyle": {"color": pick_color(colors, 0), "width": 2}}],
                "effect": {"show": True, "period": 4, "trailLength": 0.02, "symbol": "arrow", "symbolSize": 5},
            }
        ],
    }
