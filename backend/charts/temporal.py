"""
Time-keyed option builders: calendar heatmap and theme river.

The calendar range is derived from the label values. pandas parses them
when it can, so ``"2024-2-1"`` and ``"2024-10-01"`` order chronologically;
otherwise the labels are ordered as plain strings.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from charts.common import dark_tooltip, labels, loose_values
from core.utils import label_text, parse_date

logger = logging.getLogger("uvicorn.error")

DEFAULT_RANGE = ("2024-01-01", "2024-12-31")


def calendar_range(dates: List[str]) -> Tuple[str, str]:
    """First and last date among ``dates`` as the original strings."""
    present = [d for d in dates if d]
    if not present:
        return DEFAULT_RANGE

    parsed = [(parse_date(d), d) for d in present]
    if all(ts is not None for ts, _ in parsed):
        try:
            ordered = sorted(parsed, key=lambda pair: pair[0])
            return ordered[0][1], ordered[-1][1]
        except TypeError:
            # mixed tz-aware and naive timestamps do not compare
            pass

    logger.debug("Calendar labels are not all parseable; using lexicographic range")
    ordered_text = sorted(present)
    return ordered_text[0], ordered_text[-1]


def build_calendar(fields, data, style, colors) -> Dict[str, Any]:
    dates = [
        raw if isinstance(raw, str) else label_text(raw)
        for raw in (item.get(fields.name_key) for item in data)
    ]
    values = loose_values(data, fields.value_key)
    start, end = calendar_range(dates)

    return {
        "animation": True,
        "animationDuration": 1000,
        "tooltip": dark_tooltip("item", formatter="{c}"),
        "visualMap": {
            "min": min(values, default=0),
            "max": max(values, default=0),
            "calculable": True,
            "orient": "horizontal",
            "left": "center",
            "top": "top",
            "inRange": {"color": list(colors)},
        },
        "calendar": {
            "top": "middle",
            "left": "center",
            "orient": "vertical",
            "cellSize": ["auto", 13],
            "yearLabel": {"margin": 50, "fontSize": 14},
            "dayLabel": {"firstDay": 1, "nameMap": "en"},
            "monthLabel": {"nameMap": "en", "margin": 5, "fontSize": 12},
            "range": [start, end],
        },
        "series": [
            {
                "type": "heatmap",
                "coordinateSystem": "calendar",
                "data": [[d, v] for d, v in zip(dates, values)],
            }
        ],
    }


def build_themeriver(fields, data, style, colors) -> Dict[str, Any]:
    keys = fields.series_keys
    dates = labels(data, fields.name_key)
    columns = {key: loose_values(data, key) for key in keys}

    triples: List[List[Any]] = []
    for row, date in enumerate(dates):
        for key in keys:
            triples.append([date, columns[key][row], key])

    return {
        "animation": True,
        "animationDuration": 1000,
        "tooltip": dark_tooltip(
            "axis",
            axisPointer={"type": "line", "lineStyle": {"color": "rgba(0,0,0,0.2)"}},
        ),
        "singleAxis": {
            "top": 50,
            "bottom": 50,
            "axisTick": {},
            "axisLabel": {},
            "type": "time",
            "axisPointer": {"animation": True, "label": {"show": True}},
            "splitLine": {"show": True, "lineStyle": {"type": "dashed", "opacity": 0.2}},
        },
        "series": [
            {
                "type": "themeRiver",
                "emphasis": {"itemStyle": {"shadowBlur": 20, "shadowColor": "rgba(0, 0, 0, 0.8)"}},
                "data": triples,
            }
        ],
    }
