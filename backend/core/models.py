"""
Core Pydantic models for the chart-intent engine.

All domain types live here so every module shares the same vocabulary.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Raw values
# ---------------------------------------------------------------------------

# A flattened leaf: primitive, null, or a vector of primitives.
FlatValue = Union[str, int, float, bool, None, List[Any]]
FlattenedRecord = Dict[str, FlatValue]


# ---------------------------------------------------------------------------
# Chart types
# ---------------------------------------------------------------------------

class ChartType(str, Enum):
    bar = "bar"
    stackedbar = "stackedbar"
    groupedbar = "groupedbar"
    line = "line"
    area = "area"
    stackedarea = "stackedarea"
    pie = "pie"
    donut = "donut"
    scatter = "scatter"
    bubble = "bubble"
    radar = "radar"
    heatmap = "heatmap"
    treemap = "treemap"
    funnel = "funnel"
    sankey = "sankey"
    sunburst = "sunburst"
    radialbar = "radialbar"
    polararea = "polararea"
    histogram = "histogram"
    boxplot = "boxplot"
    lollipop = "lollipop"
    density = "density"
    candlestick = "candlestick"
    parallel = "parallel"
    graph = "graph"
    themeriver = "themeriver"
    effectscatter = "effectscatter"
    lines = "lines"
    tree = "tree"
    calendar = "calendar"


class ChartFamily(str, Enum):
    bar = "bar"
    line = "line"
    proportional = "proportional"
    scatter = "scatter"
    polar = "polar"
    relational = "relational"
    statistical = "statistical"
    temporal = "temporal"
    other = "other"


# ---------------------------------------------------------------------------
# Field classification & prompt intent
# ---------------------------------------------------------------------------

class FieldClassification(BaseModel):
    model_config = ConfigDict(frozen=True)

    all_keys: List[str] = Field(default_factory=list)
    numeric_keys: List[str] = Field(default_factory=list)
    string_keys: List[str] = Field(default_factory=list)
    date_keys: List[str] = Field(default_factory=list)
    name_key: str = ""                    # label / category axis
    value_key: str = ""                   # "" means no usable numeric field

    @property
    def is_chartable(self) -> bool:
        return bool(self.name_key and self.value_key)


class PromptIntent(BaseModel):
    chart_type: str = ChartType.bar.value
    mentioned_keys: List[str] = Field(default_factory=list)
    name_key: Optional[str] = None        # label override from the prompt
    value_key: Optional[str] = None       # primary value override
    data_keys: Optional[List[str]] = None  # multi-series fields
    is_stacked: bool = False
    is_grouped: bool = False
    has_trendline: bool = False
    multiple_trendlines: bool = False
    colors: Optional[List[str]] = None
    title: Optional[str] = None


# ---------------------------------------------------------------------------
# Option-builder inputs
# ---------------------------------------------------------------------------

class FieldAssignment(BaseModel):
    model_config = ConfigDict(frozen=True)

    name_key: str
    value_key: str
    data_keys: Optional[List[str]] = None

    @property
    def series_keys(self) -> List[str]:
        """Multi-series fields, or the primary value field alone."""
        return list(self.data_keys) if self.data_keys else [self.value_key]


class StyleFlags(BaseModel):
    model_config = ConfigDict(frozen=True)

    stacked: bool = False
    grouped: bool = False
    trendline: bool = False
    multiple_trendlines: bool = False


# ---------------------------------------------------------------------------
# Chart configuration (renderer contract)
# ---------------------------------------------------------------------------

class DataMapping(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name_key: str = Field(alias="nameKey")
    value_key: str = Field(alias="valueKey")
    data_keys: Optional[List[str]] = Field(None, alias="dataKeys")


class ChartConfiguration(BaseModel):
    """Terminal artifact handed to the renderer. Replaced, never mutated."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    chart_type: str = Field(alias="chartType")
    title: str = ""
    echarts_option: Dict[str, Any] = Field(alias="echartsOption")
    data_mapping: DataMapping = Field(alias="dataMapping")
    colors: List[str] = Field(default_factory=list)
    data_points: int = Field(0, alias="dataPoints")
    fingerprint: str = ""

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# External contracts
# ---------------------------------------------------------------------------

class ChartRequest(BaseModel):
    """Input from the UI / chat collaborator."""

    model_config = ConfigDict(populate_by_name=True)

    data: Any = None
    chartType: Optional[str] = None
    title: Optional[str] = None
    xAxisKey: Optional[str] = None
    yAxisKey: Optional[str] = None
    prompt: Optional[str] = None
    enrich: bool = False


class EnrichmentResult(BaseModel):
    """What the enrichment collaborator may infer for a request."""

    chartType: Optional[str] = None
    title: Optional[str] = None
    xAxisKey: Optional[str] = None
    yAxisKey: Optional[str] = None
    reasoning: Optional[str] = None
    source: str = "heuristic"             # "llm" or "heuristic"


class ChartResponse(BaseModel):
    ok: bool
    configuration: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    cached: bool = False
