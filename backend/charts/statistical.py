"""
Statistical and multivariate option builders.

- boxplot: nearest-rank five-number summary over the sorted value set
- candlestick: positional open/close/low/high fields
- parallel: one axis per numeric field, one polyline per record
- trendlines: ordinary least squares over the index-ordered values
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from charts.common import (
    animation,
    category_axis,
    dark_tooltip,
    grid,
    labels,
    loose_values,
    pick_color,
    strict_values,
    value_axis,
)
from core.models import FieldAssignment, FlattenedRecord, StyleFlags
from core.utils import is_finite_number, number_or_zero


# ---------------------------------------------------------------------------
# Linear regression (trendline overlay)
# ---------------------------------------------------------------------------

def linear_regression(values: Sequence[float]) -> Optional[Tuple[float, float]]:
    """
    Least-squares fit of ``values`` against their 0-based positions.

    Returns ``(slope, intercept)``; a single point gives a flat line and an
    empty sequence gives ``None``.
    """
    n = len(values)
    if n == 0:
        return None
    y = np.asarray(values, dtype=float)
    x = np.arange(n, dtype=float)
    sum_x = float(x.sum())
    sum_y = float(y.sum())
    sum_xy = float((x * y).sum())
    sum_xx = float((x * x).sum())

    denom = n * sum_xx - sum_x * sum_x
    if denom == 0:
        return 0.0, sum_y / n
    slope = (n * sum_xy - sum_x * sum_y) / denom
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def trend_values(values: Sequence[float]) -> List[float]:
    fit = linear_regression(values)
    if fit is None:
        return []
    slope, intercept = fit
    return [slope * i + intercept for i in range(len(values))]


def trend_keys(fields: FieldAssignment, style: StyleFlags) -> List[str]:
    """Fields that get a trendline: every series for multi-trend, else the primary."""
    if not style.trendline:
        return []
    if style.multiple_trendlines and fields.data_keys:
        return list(fields.data_keys)
    return [fields.value_key]


def trend_series(
    key: str,
    values: Sequence[float],
    color: str,
    x_values: Optional[Sequence[Any]] = None,
) -> Dict[str, Any]:
    """Dashed, symbol-less line series for ``key``."""
    fitted = trend_values(values)
    data: List[Any] = fitted if x_values is None else [[x, y] for x, y in zip(x_values, fitted)]
    return {
        "name": f"{key} Trend",
        "type": "line",
        "data": data,
        "lineStyle": {"color": color, "type": "dashed", "width": 2},
        "itemStyle": {"color": color, "opacity": 0},
        "symbol": "none",
    }


# ---------------------------------------------------------------------------
# Box plot
# ---------------------------------------------------------------------------

def five_number_summary(values: Sequence[float]) -> List[float]:
    """``[min, Q1, median, Q3, max]`` by nearest rank (``floor(n * p)``)."""
    if not values:
        return []
    ordered = np.sort(np.asarray(values, dtype=float))
    n = len(ordered)

    def rank(p: float) -> float:
        return float(ordered[min(n - 1, int(math.floor(n * p)))])

    return [float(ordered[0]), rank(0.25), rank(0.5), rank(0.75), float(ordered[-1])]


def build_boxplot(fields, data, style, colors) -> Dict[str, Any]:
    summary = five_number_summary(strict_values(data, fields.value_key))
    return {
        **animation(),
        "tooltip": dark_tooltip("item"),
        "grid": grid("10%"),
        "xAxis": category_axis(labels(data, fields.name_key)),
        "yAxis": value_axis(),
        "series": [
            {
                "name": fields.value_key,
                "type": "boxplot",
                "data": [summary] if summary else [],
                "itemStyle": {"color": pick_color(colors, 0)},
            }
        ],
    }


# ---------------------------------------------------------------------------
# Candlestick
# ---------------------------------------------------------------------------

def _ohlc_keys(fields: FieldAssignment) -> Tuple[str, str, Optional[str], Optional[str]]:
    keys = fields.series_keys[:4]
    open_key = keys[0]
    close_key = keys[1] if len(keys) > 1 else keys[0]
    low_key = keys[2] if len(keys) > 2 else None
    high_key = keys[3] if len(keys) > 3 else None
    return open_key, close_key, low_key, high_key


def _ohlc_row(item: FlattenedRecord, keys) -> List[float]:
    open_key, close_key, low_key, high_key = keys
    open_ = number_or_zero(item.get(open_key))
    close = number_or_zero(item.get(close_key))
    low_raw = item.get(low_key) if low_key else None
    high_raw = item.get(high_key) if high_key else None
    low = low_raw if is_finite_number(low_raw) else min(open_, close)
    high = high_raw if is_finite_number(high_raw) else max(open_, close)
    return [open_, close, low, high]


def build_candlestick(fields, data, style, colors) -> Dict[str, Any]:
    keys = _ohlc_keys(fields)
    up = pick_color(colors, 0)
    down = colors[1] if len(colors) > 1 else up
    return {
        "animation": True,
        "animationDuration": 1000,
        "tooltip": dark_tooltip("axis", axisPointer={"type": "cross"}),
        "grid": grid(),
        "xAxis": category_axis(labels(data, fields.name_key), scale=True, boundaryGap=False),
        "yAxis": value_axis(scale=True, splitArea={"show": True}),
        "series": [
            {
                "name": "Candlestick",
                "type": "candlestick",
                "data": [_ohlc_row(item, keys) for item in data],
                "itemStyle": {
                    "color": up,
                    "color0": down,
                    "borderColor": up,
                    "borderColor0": down,
                },
            }
        ],
    }


# ---------------------------------------------------------------------------
# Parallel coordinates
# ---------------------------------------------------------------------------

def build_parallel(fields, data, style, colors) -> Dict[str, Any]:
    keys = fields.series_keys
    columns = [loose_values(data, key) for key in keys]
    rows = [list(row) for row in zip(*columns)] if columns else []
    return {
        "animation": True,
        "animationDuration": 1000,
        "tooltip": dark_tooltip("item"),
        "parallelAxis": [{"dim": i, "name": key, "type": "value"} for i, key in enumerate(keys)],
        "series": [
            {
                "type": "parallel",
                "lineStyle": {"color": pick_color(colors, 0), "width": 1, "opacity": 0.6},
                "data": rows,
            }
        ],
    }
