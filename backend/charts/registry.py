"""
Chart-type registry.

A flat mapping from chart-type identifier to a ``ChartTypeSpec`` record:
prompt keywords, the ECharts renderer type, a badge family, how many value
fields the builder consumes, and the pure option builder itself.

Entry order matters: prompt detection ranks entries by their longest keyword,
and entries whose longest keywords tie keep the order listed here.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from charts import cartesian, proportional, relational, statistical, temporal
from core.models import ChartFamily, ChartType, FieldAssignment, FlattenedRecord, StyleFlags

logger = logging.getLogger("uvicorn.error")

OptionBuilder = Callable[[FieldAssignment, List[FlattenedRecord], StyleFlags, List[str]], Dict[str, Any]]

DEFAULT_CHART_TYPE = ChartType.bar.value


class ChartGenerationError(RuntimeError):
    """An option builder raised or produced nothing usable."""

    def __init__(self, chart_type: str, message: Optional[str] = None) -> None:
        self.chart_type = chart_type
        super().__init__(message or f"Failed to generate chart configuration for type: {chart_type}")


class ChartTypeSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    chart_type: str
    renderer_type: str                   # ECharts series type
    family: ChartFamily
    keywords: Tuple[str, ...]
    builder: OptionBuilder
    min_fields: int = 1                  # value fields required
    max_fields: Optional[int] = None     # None = any number of series
    requires_date_label: bool = False

    def catalog_entry(self) -> Dict[str, Any]:
        return {
            "chartType": self.chart_type,
            "rendererType": self.renderer_type,
            "family": self.family.value,
            "keywords": list(self.keywords),
            "minFields": self.min_fields,
            "maxFields": self.max_fields,
            "requiresDateLabel": self.requires_date_label,
        }


def _spec(
    chart_type: ChartType,
    renderer_type: str,
    family: ChartFamily,
    keywords: List[str],
    builder: OptionBuilder,
    **arity: Any,
) -> Tuple[str, ChartTypeSpec]:
    return chart_type.value, ChartTypeSpec(
        chart_type=chart_type.value,
        renderer_type=renderer_type,
        family=family,
        keywords=tuple(keywords),
        builder=builder,
        **arity,
    )


F = ChartFamily
T = ChartType

CHART_REGISTRY: Dict[str, ChartTypeSpec] = dict([
    _spec(T.bar, "bar", F.bar, ["bar", "bars", "column", "columns"], cartesian.build_bar),
    _spec(T.stackedbar, "bar", F.bar, ["stacked bar", "stacked column", "stacked bars"], cartesian.build_bar),
    _spec(T.groupedbar, "bar", F.bar, ["grouped bar", "grouped column", "grouped bars"], cartesian.build_bar),
    _spec(T.line, "line", F.line, ["line", "lines", "graph", "graphs", "trend"], cartesian.build_line),
    _spec(T.area, "line", F.line, ["area", "areas", "filled"], cartesian.build_area),
    _spec(T.stackedarea, "line", F.line, ["stacked area", "stacked areas"], cartesian.build_area),
    _spec(T.pie, "pie", F.proportional, ["pie", "pies", "circle", "percentage", "proportion"],
          proportional.build_pie, max_fields=1),
    _spec(T.donut, "pie", F.proportional, ["donut", "doughnut"], proportional.build_donut, max_fields=1),
    _spec(T.scatter, "scatter", F.scatter, ["scatter", "scatter plot", "scatterplot"], cartesian.build_scatter),
    _spec(T.bubble, "scatter", F.scatter, ["bubble", "bubbles"], cartesian.build_bubble),
    _spec(T.radar, "radar", F.polar, ["radar", "spider", "web", "polar"], cartesian.build_radar),
    _spec(T.heatmap, "heatmap", F.other, ["heatmap", "heat map"], cartesian.build_heatmap, max_fields=1),
    _spec(T.treemap, "treemap", F.proportional, ["treemap", "tree map", "hierarchy"],
          proportional.build_treemap, max_fields=1),
    _spec(T.funnel, "funnel", F.proportional, ["funnel", "funnels", "conversion"],
          proportional.build_funnel, max_fields=1),
    _spec(T.sankey, "sankey", F.relational, ["sankey", "flow", "alluvial"], relational.build_sankey, max_fields=1),
    _spec(T.sunburst, "sunburst", F.proportional, ["sunburst", "sun burst", "hierarchical pie"],
          proportional.build_sunburst, max_fields=1),
    _spec(T.radialbar, "gauge", F.polar, ["radial", "radial bar", "gauge"], proportional.build_radialbar,
          max_fields=1),
    _spec(T.polararea, "bar", F.polar, ["polar area", "polar area chart"], cartesian.build_polararea),
    _spec(T.histogram, "bar", F.statistical, ["histogram", "histograms"], cartesian.build_histogram, max_fields=1),
    _spec(T.boxplot, "boxplot", F.statistical, ["box plot", "boxplot", "box and whisker"],
          statistical.build_boxplot, max_fields=1),
    _spec(T.lollipop, "scatter", F.statistical, ["lollipop", "lollipops"], cartesian.build_lollipop, max_fields=1),
    _spec(T.density, "line", F.statistical, ["density plot", "density"], cartesian.build_density, max_fields=1),
    _spec(T.candlestick, "candlestick", F.statistical,
          ["candlestick", "candle", "ohlc", "financial", "stock", "trading"],
          statistical.build_candlestick, min_fields=2, max_fields=4),
    _spec(T.parallel, "parallel", F.statistical,
          ["parallel", "parallel coordinates", "multivariate", "correlation"], statistical.build_parallel,
          min_fields=2),
    _spec(T.graph, "graph", F.relational,
          ["graph", "network", "node", "link", "relationship", "connection", "graph diagram"],
          relational.build_graph, max_fields=1),
    _spec(T.themeriver, "themeRiver", F.temporal, ["theme river", "stream", "flow", "timeline", "event flow"],
          temporal.build_themeriver, requires_date_label=True),
    _spec(T.effectscatter, "effectScatter", F.scatter,
          ["effect scatter", "ripple", "animated scatter", "pulsing scatter"], cartesian.build_effectscatter),
    _spec(T.lines, "lines", F.relational, ["lines", "route", "path", "trajectory", "movement", "flow lines"],
          relational.build_lines, max_fields=1),
    _spec(T.tree, "tree", F.relational,
          ["tree", "hierarchical tree", "organization", "org chart", "tree diagram"],
          relational.build_tree, max_fields=1),
    _spec(T.calendar, "calendar", F.temporal,
          ["calendar", "calendar heatmap", "heat calendar", "activity calendar", "daily"],
          temporal.build_calendar, max_fields=1, requires_date_label=True),
])

del F, T


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

def get_chart_spec(
    chart_type: Optional[str],
    registry: Optional[Mapping[str, ChartTypeSpec]] = None,
) -> ChartTypeSpec:
    """Resolve an identifier, falling back to ``bar`` for anything unknown."""
    registry = registry if registry is not None else CHART_REGISTRY
    key = (chart_type or "").strip().lower()
    spec = registry.get(key)
    if spec is None:
        logger.warning("Unknown chart type %r; falling back to %s", chart_type, DEFAULT_CHART_TYPE)
        spec = registry.get(DEFAULT_CHART_TYPE) or CHART_REGISTRY[DEFAULT_CHART_TYPE]
    return spec


def _keyword_regex(keyword: str) -> re.Pattern:
    body = r"\s+".join(re.escape(part) for part in keyword.split())
    return re.compile(rf"\b{body}\b", re.IGNORECASE)


def keyword_index(registry: Optional[Mapping[str, ChartTypeSpec]] = None) -> List[Tuple[re.Pattern, str]]:
    """
    Every ``(keyword pattern, chart type)`` pair in detection order.

    Entries are ranked by their longest keyword (stable, so ties keep
    registry order); within an entry, keywords are tried as listed. A short
    keyword therefore belongs to whichever entry ranks first: "graph" selects
    the network graph, not the line chart.
    """
    registry = registry if registry is not None else CHART_REGISTRY
    if registry is CHART_REGISTRY and _DEFAULT_INDEX:
        return _DEFAULT_INDEX

    ranked = sorted(
        registry.values(),
        key=lambda spec: max((len(kw) for kw in spec.keywords), default=0),
        reverse=True,
    )
    return [(_keyword_regex(kw), spec.chart_type) for spec in ranked for kw in spec.keywords]


_DEFAULT_INDEX: List[Tuple[re.Pattern, str]] = []
_DEFAULT_INDEX.extend(keyword_index(CHART_REGISTRY))


def catalog(registry: Optional[Mapping[str, ChartTypeSpec]] = None) -> List[Dict[str, Any]]:
    registry = registry if registry is not None else CHART_REGISTRY
    return [spec.catalog_entry() for spec in registry.values()]


# ---------------------------------------------------------------------------
# Building
# ---------------------------------------------------------------------------

def build_option(
    spec: ChartTypeSpec,
    fields: FieldAssignment,
    data: List[FlattenedRecord],
    style: StyleFlags,
    colors: List[str],
) -> Dict[str, Any]:
    """Run the builder; any failure or empty option becomes ``ChartGenerationError``."""
    try:
        option = spec.builder(fields, data, style, colors)
    except Exception as exc:
        logger.exception("Option builder failed for chart type %s", spec.chart_type)
        raise ChartGenerationError(spec.chart_type) from exc
    if not option:
        logger.error("Option builder returned nothing for chart type %s", spec.chart_type)
        raise ChartGenerationError(spec.chart_type)
    return option
