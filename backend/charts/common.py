"""
Shared ECharts option fragments.

Every helper returns a fresh dict so finished options never share mutable
state with each other.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from core.models import FieldAssignment, FlattenedRecord
from core.utils import coerce_number, label_text, number_or_zero

AXIS_LINE_COLOR = "#666"
SPLIT_LINE_COLOR = "#e0e0e0"
STACK_ID = "stack1"
GROUP_GAP = "10%"


def pick_color(colors: Sequence[str], idx: int) -> str:
    if not colors:
        return "#5470c6"
    return colors[idx % len(colors)]


# ---------------------------------------------------------------------------
# Value extraction
# ---------------------------------------------------------------------------

def strict_values(data: List[FlattenedRecord], key: str) -> List[float]:
    """Numbers as-is, everything else 0."""
    return [number_or_zero(item.get(key)) for item in data]


def loose_values(data: List[FlattenedRecord], key: str) -> List[float]:
    """Numbers, then numeric strings, then 0."""
    return [coerce_number(item.get(key)) for item in data]


def labels(data: List[FlattenedRecord], key: str) -> List[str]:
    return [label_text(item.get(key)) for item in data]


def name_value_pairs(
    fields: FieldAssignment,
    data: List[FlattenedRecord],
    colors: Sequence[str],
) -> List[Dict[str, Any]]:
    """One ``{name, value, itemStyle}`` entry per record for proportional charts."""
    return [
        {
            "name": label_text(item.get(fields.name_key)),
            "value": coerce_number(item.get(fields.value_key)),
            "itemStyle": {"color": pick_color(colors, idx)},
        }
        for idx, item in enumerate(data)
    ]


# ---------------------------------------------------------------------------
# Layout blocks
# ---------------------------------------------------------------------------

def animation() -> Dict[str, Any]:
    return {"animation": True, "animationDuration": 1000, "animationEasing": "cubicOut"}


def dark_tooltip(trigger: str = "axis", **extra: Any) -> Dict[str, Any]:
    tooltip: Dict[str, Any] = {
        "trigger": trigger,
        "backgroundColor": "rgba(50, 50, 50, 0.9)",
        "borderColor": "#777",
        "borderWidth": 1,
        "textStyle": {"color": "#fff"},
    }
    tooltip.update(extra)
    return tooltip


def legend(names: List[str]) -> Dict[str, Any]:
    return {"data": list(names), "top": "top", "textStyle": {"fontSize": 12}}


def grid(top: str = "15%") -> Dict[str, Any]:
    return {"left": "3%", "right": "4%", "bottom": "3%", "top": top, "containLabel": True}


def category_axis(categories: List[str], **extra: Any) -> Dict[str, Any]:
    axis: Dict[str, Any] = {
        "type": "category",
        "data": list(categories),
        "axisLabel": {"rotate": 45 if len(categories) > 10 else 0, "interval": 0},
        "axisLine": {"lineStyle": {"color": AXIS_LINE_COLOR}},
    }
    axis.update(extra)
    return axis


def value_axis(**extra: Any) -> Dict[str, Any]:
    axis: Dict[str, Any] = {
        "type": "value",
        "axisLine": {"lineStyle": {"color": AXIS_LINE_COLOR}},
        "splitLine": {"lineStyle": {"type": "dashed", "color": SPLIT_LINE_COLOR}},
    }
    axis.update(extra)
    return axis


def shadow_emphasis() -> Dict[str, Any]:
    return {"itemStyle": {"shadowBlur": 10, "shadowOffsetX": 0, "shadowColor": "rgba(0, 0, 0, 0.5)"}}
