"""
Tests for the chart-type registry and the per-family option builders.
"""

import json
import logging

import pytest

from charts.registry import (
    CHART_REGISTRY,
    ChartGenerationError,
    ChartTypeSpec,
    build_option,
    catalog,
    get_chart_spec,
    keyword_index,
)
from charts.relational import build_tree
from charts.statistical import five_number_summary, linear_regression, trend_values
from charts.temporal import DEFAULT_RANGE, calendar_range
from core.models import ChartFamily, ChartType, FieldAssignment, StyleFlags
from skills.interpret import detect_chart_type

COLORS = ["#ff0000", "#00ff00", "#0000ff"]


@pytest.fixture
def ohlc_data():
    return [
        {"date": "2024-01-01", "open": 10, "close": 12, "low": 9, "high": 13},
        {"date": "2024-01-02", "open": 12, "close": 11, "low": 10, "high": 14},
        {"date": "2024-01-03", "open": 11, "close": 15, "low": 11, "high": 16},
    ]


@pytest.fixture
def ohlc_fields():
    return FieldAssignment(name_key="date", value_key="open", data_keys=["open", "close", "low", "high"])


@pytest.fixture
def pie_data():
    return [{"name": "Jan", "value": 400}, {"name": "Feb", "value": 300}]


@pytest.fixture
def pie_fields():
    return FieldAssignment(name_key="name", value_key="value")


def _series(option):
    return option["series"]


class TestRegistryShape:
    """The registry catalog itself."""

    def test_every_chart_type_is_registered(self):
        assert len(CHART_REGISTRY) == 30
        assert set(CHART_REGISTRY) == {t.value for t in ChartType}

    def test_entries_are_self_consistent(self):
        for key, spec in CHART_REGISTRY.items():
            assert spec.chart_type == key
            assert spec.keywords
            assert isinstance(spec.family, ChartFamily)
            assert spec.min_fields >= 1
            assert spec.max_fields is None or spec.max_fields >= spec.min_fields

    def test_keyword_index_ranks_entries_by_longest_keyword(self):
        ranked = sorted(CHART_REGISTRY.values(), key=lambda spec: max(map(len, spec.keywords)), reverse=True)
        expected = [(kw, spec.chart_type) for spec in ranked for kw in spec.keywords]
        assert [t for _, t in keyword_index()] == [t for _, t in expected]
        assert [t for _, t in keyword_index(dict(CHART_REGISTRY))] == [t for _, t in expected]
        assert keyword_index()[0][1] == "parallel"

    def test_keywords_stay_grouped_by_entry(self):
        # "lines" is tried for the lines entry before the shorter-ranked line entry
        types = [t for _, t in keyword_index()]
        assert types.index("lines") < types.index("line")
        assert types.index("themeriver") < types.index("sankey")

    @pytest.mark.parametrize("prompt,expected", [
        ("a graph of revenue", "graph"),
        ("draw lines for revenue", "lines"),
        ("flow of users", "themeriver"),
        ("a line over time", "line"),
    ])
    def test_short_keywords_belong_to_the_higher_ranked_entry(self, prompt, expected):
        assert detect_chart_type(prompt) == expected

    def test_multi_field_types_declare_a_minimum(self):
        by_type = {entry["chartType"]: entry for entry in catalog()}
        assert by_type["candlestick"]["minFields"] == 2
        assert by_type["parallel"]["minFields"] == 2
        assert by_type["bar"]["minFields"] == 1

    def test_time_keyed_types_require_a_date_label(self):
        assert CHART_REGISTRY["calendar"].requires_date_label
        assert CHART_REGISTRY["themeriver"].requires_date_label
        assert not CHART_REGISTRY["bar"].requires_date_label

    def test_catalog_is_json_ready(self):
        entries = catalog()
        assert len(entries) == 30
        assert entries[0]["chartType"] == "bar"
        json.dumps(entries)

    def test_unknown_type_falls_back_to_bar(self, caplog):
        with caplog.at_level(logging.WARNING, logger="uvicorn.error"):
            spec = get_chart_spec("hologram")
        assert spec.chart_type == "bar"
        assert "Unknown chart type" in caplog.text

    def test_lookup_is_case_insensitive(self):
        assert get_chart_spec(" Pie ").chart_type == "pie"


class TestBuildOption:
    """Every builder produces a serializable option; failures are wrapped."""

    @pytest.mark.parametrize("chart_type", list(CHART_REGISTRY))
    def test_every_builder_produces_json_option(self, chart_type, ohlc_data, ohlc_fields):
        spec = CHART_REGISTRY[chart_type]
        style = StyleFlags(trendline=chart_type in ("line", "scatter"))
        option = build_option(spec, ohlc_fields, ohlc_data, style, COLORS)
        assert isinstance(option, dict)
        assert "series" in option
        json.dumps(option, allow_nan=False)

    def test_builder_exception_becomes_generation_error(self, pie_data, pie_fields):
        def broken(fields, data, style, colors):
            raise KeyError("boom")

        spec = CHART_REGISTRY["bar"].model_copy(update={"builder": broken})
        with pytest.raises(ChartGenerationError) as exc_info:
            build_option(spec, pie_fields, pie_data, StyleFlags(), COLORS)
        assert str(exc_info.value) == "Failed to generate chart configuration for type: bar"

    def test_empty_option_becomes_generation_error(self, pie_data, pie_fields):
        spec = ChartTypeSpec(
            chart_type="bar",
            renderer_type="bar",
            family=ChartFamily.bar,
            keywords=("bar",),
            builder=lambda fields, data, style, colors: {},
        )
        with pytest.raises(ChartGenerationError):
            build_option(spec, pie_fields, pie_data, StyleFlags(), COLORS)


class TestCartesianBuilders:
    """Bar, line, scatter and friends."""

    def test_bar_one_series_per_key(self, ohlc_data):
        fields = FieldAssignment(name_key="date", value_key="open", data_keys=["open", "close"])
        option = CHART_REGISTRY["bar"].builder(fields, ohlc_data, StyleFlags(), COLORS)
        assert [s["name"] for s in _series(option)] == ["open", "close"]
        assert _series(option)[0]["data"] == [10, 12, 11]
        assert _series(option)[1]["itemStyle"]["color"] == "#00ff00"
        assert option["xAxis"]["data"] == ["2024-01-01", "2024-01-02", "2024-01-03"]
        assert "stack" not in _series(option)[0]

    def test_stacked_bar_shares_stack_id(self, ohlc_data):
        fields = FieldAssignment(name_key="date", value_key="open", data_keys=["open", "close"])
        option = CHART_REGISTRY["stackedbar"].builder(fields, ohlc_data, StyleFlags(stacked=True), COLORS)
        assert {s["stack"] for s in _series(option)} == {"stack1"}

    def test_grouped_bar_sets_gap_without_stack(self, ohlc_data):
        fields = FieldAssignment(name_key="date", value_key="open", data_keys=["open", "close"])
        option = CHART_REGISTRY["groupedbar"].builder(fields, ohlc_data, StyleFlags(grouped=True), COLORS)
        assert [s["barGap"] for s in _series(option)] == ["10%", "10%"]
        assert not any("stack" in s for s in _series(option))
        assert "barGap" not in _series(CHART_REGISTRY["bar"].builder(fields, ohlc_data, StyleFlags(), COLORS))[0]

    def test_non_numeric_values_become_zero(self):
        data = [{"n": "a", "v": "12"}, {"n": "b", "v": None}]
        fields = FieldAssignment(name_key="n", value_key="v")
        option = CHART_REGISTRY["bar"].builder(fields, data, StyleFlags(), COLORS)
        assert _series(option)[0]["data"] == [0, 0]

    def test_axis_labels_rotate_for_many_categories(self):
        data = [{"n": f"c{i}", "v": i} for i in range(11)]
        fields = FieldAssignment(name_key="n", value_key="v")
        option = CHART_REGISTRY["bar"].builder(fields, data, StyleFlags(), COLORS)
        assert option["xAxis"]["axisLabel"]["rotate"] == 45

    def test_line_trendline(self):
        data = [{"n": "a", "v": 1}, {"n": "b", "v": 2}, {"n": "c", "v": 3}]
        fields = FieldAssignment(name_key="n", value_key="v")
        option = CHART_REGISTRY["line"].builder(fields, data, StyleFlags(trendline=True), COLORS)
        names = [s["name"] for s in _series(option)]
        assert names == ["v", "v Trend"]
        trend = _series(option)[1]
        assert trend["data"] == pytest.approx([1.0, 2.0, 3.0])
        assert trend["lineStyle"]["type"] == "dashed"
        assert trend["symbol"] == "none"
        assert option["legend"]["data"] == ["v", "v Trend"]

    def test_multiple_trendlines_cover_every_series(self, ohlc_data):
        fields = FieldAssignment(name_key="date", value_key="open", data_keys=["open", "close"])
        style = StyleFlags(trendline=True, multiple_trendlines=True)
        option = CHART_REGISTRY["line"].builder(fields, ohlc_data, style, COLORS)
        assert [s["name"] for s in _series(option)] == ["open", "close", "open Trend", "close Trend"]

    def test_area_fills_series(self, ohlc_data, ohlc_fields):
        option = CHART_REGISTRY["area"].builder(ohlc_fields, ohlc_data, StyleFlags(), COLORS)
        assert all(s["areaStyle"]["opacity"] == 0.6 for s in _series(option))

    def test_scatter_uses_value_axis_for_numeric_labels(self):
        data = [{"x": 1, "y": 2}, {"x": 3, "y": 4}]
        fields = FieldAssignment(name_key="x", value_key="y")
        option = CHART_REGISTRY["scatter"].builder(fields, data, StyleFlags(), COLORS)
        assert option["xAxis"]["type"] == "value"
        assert _series(option)[0]["data"] == [[1, 2], [3, 4]]

    def test_scatter_uses_category_axis_for_text_labels(self, pie_data, pie_fields):
        option = CHART_REGISTRY["scatter"].builder(pie_fields, pie_data, StyleFlags(), COLORS)
        assert option["xAxis"]["type"] == "category"
        assert _series(option)[0]["data"] == [["Jan", 400], ["Feb", 300]]

    def test_bubble_size_from_value(self):
        data = [{"x": 1, "y": 16}]
        fields = FieldAssignment(name_key="x", value_key="y")
        option = CHART_REGISTRY["bubble"].builder(fields, data, StyleFlags(), COLORS)
        assert _series(option)[0]["data"][0]["symbolSize"] == pytest.approx(8.0)

    def test_effect_scatter_ripple(self, pie_data, pie_fields):
        option = CHART_REGISTRY["effectscatter"].builder(pie_fields, pie_data, StyleFlags(), COLORS)
        assert _series(option)[0]["type"] == "effectScatter"
        assert _series(option)[0]["rippleEffect"] == {"brushType": "stroke", "scale": 2.5}

    def test_radar_indicator_max_is_global(self, ohlc_data):
        fields = FieldAssignment(name_key="date", value_key="open", data_keys=["open", "high"])
        option = CHART_REGISTRY["radar"].builder(fields, ohlc_data, StyleFlags(), COLORS)
        assert [i["max"] for i in option["radar"]["indicator"]] == [16, 16, 16]

    def test_heatmap_cells(self, pie_data, pie_fields):
        option = CHART_REGISTRY["heatmap"].builder(pie_fields, pie_data, StyleFlags(), COLORS)
        assert _series(option)[0]["data"] == [[0, 0, 400], [1, 0, 300]]
        assert option["visualMap"]["max"] == 400
        assert option["visualMap"]["inRange"]["color"] == COLORS

    def test_lollipop_symbol_size(self):
        data = [{"n": "a", "v": -3}]
        fields = FieldAssignment(name_key="n", value_key="v")
        option = CHART_REGISTRY["lollipop"].builder(fields, data, StyleFlags(), COLORS)
        assert _series(option)[0]["data"] == [{"value": [0, -3], "symbolSize": 6}]

    def test_polar_area_uses_polar_coordinates(self, pie_data, pie_fields):
        option = CHART_REGISTRY["polararea"].builder(pie_fields, pie_data, StyleFlags(), COLORS)
        assert _series(option)[0]["coordinateSystem"] == "polar"
        assert option["angleAxis"]["data"] == ["Jan", "Feb"]


class TestProportionalBuilders:
    """Pie, donut, funnel, gauge."""

    def test_pie_entries(self, pie_data, pie_fields):
        option = CHART_REGISTRY["pie"].builder(pie_fields, pie_data, StyleFlags(), COLORS)
        entries = _series(option)[0]["data"]
        assert len(entries) == 2
        assert sum(e["value"] for e in entries) == 700
        assert [e["name"] for e in entries] == ["Jan", "Feb"]
        assert _series(option)[0]["radius"] == "50%"

    def test_donut_radius(self, pie_data, pie_fields):
        option = CHART_REGISTRY["donut"].builder(pie_fields, pie_data, StyleFlags(), COLORS)
        assert _series(option)[0]["radius"] == ["40%", "70%"]

    def test_proportional_values_parse_numeric_strings(self, pie_fields):
        data = [{"name": "a", "value": "12.5%"}, {"name": "b", "value": "n/a"}]
        option = CHART_REGISTRY["treemap"].builder(pie_fields, data, StyleFlags(), COLORS)
        assert [e["value"] for e in _series(option)[0]["data"]] == [12.5, 0]

    def test_funnel_sorted_descending(self, pie_fields):
        data = [{"name": "a", "value": 1}, {"name": "b", "value": 9}, {"name": "c", "value": 5}]
        option = CHART_REGISTRY["funnel"].builder(pie_fields, data, StyleFlags(), COLORS)
        assert [e["value"] for e in _series(option)[0]["data"]] == [9, 5, 1]
        assert _series(option)[0]["max"] == 9
        assert _series(option)[0]["sort"] == "descending"

    def test_gauge_reads_first_record(self, pie_data, pie_fields):
        option = CHART_REGISTRY["radialbar"].builder(pie_fields, pie_data, StyleFlags(), COLORS)
        assert _series(option)[0]["data"] == [{"value": 400, "name": "Jan"}]


class TestRelationalBuilders:
    """Record-order adjacency."""

    def test_sankey_chains_records(self, pie_fields):
        data = [{"name": "a", "value": 5}, {"name": "b", "value": 7}, {"name": "a", "value": 1}]
        option = CHART_REGISTRY["sankey"].builder(pie_fields, data, StyleFlags(), COLORS)
        series = _series(option)[0]
        assert series["data"] == [{"name": "a"}, {"name": "b"}]
        assert series["links"] == [
            {"source": "a", "target": "b", "value": 5},
            {"source": "b", "target": "a", "value": 7},
        ]

    def test_graph_nodes_and_symbol_sizes(self, pie_fields):
        data = [{"name": "a", "value": 200}, {"name": "b", "value": 5}, {"name": "c", "value": 1000}]
        option = CHART_REGISTRY["graph"].builder(pie_fields, data, StyleFlags(), COLORS)
        nodes = _series(option)[0]["data"]
        assert [n["symbolSize"] for n in nodes] == [20, 10, 50]
        assert len(_series(option)[0]["links"]) == 2
        assert _series(option)[0]["categories"] == [{"name": "Default"}]

    def test_missing_names_get_node_placeholders(self, pie_fields):
        data = [{"value": 1}, {"value": 2}]
        option = CHART_REGISTRY["sankey"].builder(pie_fields, data, StyleFlags(), COLORS)
        assert _series(option)[0]["links"][0]["source"] == "Node0"
        assert _series(option)[0]["links"][0]["target"] == "Node1"

    def test_tree_is_one_root_with_flat_children(self, pie_data, pie_fields):
        option = CHART_REGISTRY["tree"].builder(pie_fields, pie_data, StyleFlags(), COLORS)
        root = _series(option)[0]["data"][0]
        assert root["name"] == "Jan"
        assert [c["name"] for c in root["children"]] == ["Feb"]

    def test_tree_empty(self, pie_fields):
        assert build_tree(pie_fields, [], StyleFlags(), COLORS) == {"tooltip": {"trigger": "item"}, "series": []}

    def test_lines_coords_fall_back_to_index(self, pie_data, pie_fields):
        option = CHART_REGISTRY["lines"].builder(pie_fields, pie_data, StyleFlags(), COLORS)
        assert _series(option)[0]["data"][0]["coords"] == [[0, 400], [1, 300]]


class TestStatisticalBuilders:
    """Quartiles, regression, OHLC, parallel axes."""

    def test_five_number_summary_nearest_rank(self):
        assert five_number_summary(list(range(1, 11))) == [1, 3, 6, 8, 10]

    def test_five_number_summary_unsorted_input(self):
        assert five_number_summary([10, 1, 9, 2, 8, 3, 7, 4, 6, 5]) == [1, 3, 6, 8, 10]

    def test_five_number_summary_empty(self):
        assert five_number_summary([]) == []

    def test_boxplot_option(self):
        data = [{"n": str(i), "v": i} for i in range(1, 11)]
        fields = FieldAssignment(name_key="n", value_key="v")
        option = CHART_REGISTRY["boxplot"].builder(fields, data, StyleFlags(), COLORS)
        assert _series(option)[0]["data"] == [[1, 3, 6, 8, 10]]

    def test_linear_regression(self):
        slope, intercept = linear_regression([1, 2, 3])
        assert slope == pytest.approx(1.0)
        assert intercept == pytest.approx(1.0)

    def test_linear_regression_degenerate(self):
        assert linear_regression([]) is None
        assert linear_regression([5]) == (0.0, 5.0)
        assert trend_values([]) == []

    def test_candlestick_positional_fields(self, ohlc_data, ohlc_fields):
        option = CHART_REGISTRY["candlestick"].builder(ohlc_fields, ohlc_data, StyleFlags(), COLORS)
        assert _series(option)[0]["data"][0] == [10, 12, 9, 13]
        assert _series(option)[0]["itemStyle"]["color0"] == "#00ff00"

    def test_candlestick_synthesizes_low_high(self, ohlc_data):
        fields = FieldAssignment(name_key="date", value_key="open", data_keys=["open", "close"])
        option = CHART_REGISTRY["candlestick"].builder(fields, ohlc_data, StyleFlags(), COLORS)
        assert _series(option)[0]["data"][1] == [12, 11, 11, 12]

    def test_candlestick_single_field(self, ohlc_data):
        fields = FieldAssignment(name_key="date", value_key="open")
        option = CHART_REGISTRY["candlestick"].builder(fields, ohlc_data, StyleFlags(), COLORS)
        assert _series(option)[0]["data"][0] == [10, 10, 10, 10]

    def test_parallel_axes_and_rows(self, ohlc_data, ohlc_fields):
        option = CHART_REGISTRY["parallel"].builder(ohlc_fields, ohlc_data, StyleFlags(), COLORS)
        assert [a["name"] for a in option["parallelAxis"]] == ["open", "close", "low", "high"]
        assert _series(option)[0]["data"][0] == [10, 12, 9, 13]


class TestTemporalBuilders:
    """Calendar range and theme river triples."""

    def test_calendar_range_is_chronological(self):
        assert calendar_range(["2024-03-01", "2024-1-15", "2024-02-10"]) == ("2024-1-15", "2024-03-01")

    def test_calendar_range_defaults(self):
        assert calendar_range([]) == DEFAULT_RANGE
        assert calendar_range(["", ""]) == DEFAULT_RANGE

    def test_calendar_range_lexicographic_fallback(self):
        assert calendar_range(["zeta", "alpha"]) == ("alpha", "zeta")

    def test_calendar_option(self, ohlc_data):
        fields = FieldAssignment(name_key="date", value_key="close")
        option = CHART_REGISTRY["calendar"].builder(fields, ohlc_data, StyleFlags(), COLORS)
        assert option["calendar"]["range"] == ["2024-01-01", "2024-01-03"]
        assert option["visualMap"]["min"] == 11
        assert option["visualMap"]["max"] == 15
        assert _series(option)[0]["data"][0] == ["2024-01-01", 12]

    def test_themeriver_triples(self, ohlc_data):
        fields = FieldAssignment(name_key="date", value_key="open", data_keys=["open", "close"])
        option = CHART_REGISTRY["themeriver"].builder(fields, ohlc_data, StyleFlags(), COLORS)
        triples = _series(option)[0]["data"]
        assert len(triples) == 6
        assert triples[:2] == [["2024-01-01", 10, "open"], ["2024-01-01", 12, "close"]]
