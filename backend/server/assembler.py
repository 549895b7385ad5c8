"""
Config assembler.

Runs the whole inference pipeline for one (data, prompt) pair:

    normalize -> classify -> interpret -> resolve fields -> palette
              -> registry option builder -> ChartConfiguration

and memoizes on a fingerprint of its inputs, so a repeated call with the
same data and prompt returns the current configuration without rebuilding.
The assembler owns its palette and its last-seen fingerprint; nothing else
writes to either.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, List, Mapping, Optional

from charts.registry import (
    CHART_REGISTRY,
    ChartGenerationError,
    ChartTypeSpec,
    build_option,
    get_chart_spec,
)
from core.config import DEFAULT_PALETTE_SIZE
from core.models import (
    ChartConfiguration,
    ChartRequest,
    ChartType,
    DataMapping,
    FieldAssignment,
    FieldClassification,
    PromptIntent,
    StyleFlags,
)
from core.palette import ColorPalette
from core.utils import compact_json, sha256_text
from skills.classify import classify_records
from skills.flatten import flatten_records, normalize_records
from skills.interpret import default_title, interpret_prompt

logger = logging.getLogger("uvicorn.error")

_STACKED = {ChartType.stackedbar.value, ChartType.stackedarea.value}
_GROUPED = {ChartType.groupedbar.value}


def synthesize_prompt(request: ChartRequest) -> str:
    """Build a prompt from structured parameters when none was given."""
    if request.prompt and request.prompt.strip():
        return request.prompt
    if not request.chartType:
        return ""
    prompt = f"{request.chartType} chart"
    if request.title:
        prompt += f' titled "{request.title}"'
    if request.xAxisKey:
        prompt += f" with x-axis: {request.xAxisKey}"
    if request.yAxisKey:
        prompt += f" and y-axis: {request.yAxisKey}"
    return prompt


class ChartAssembler:
    """Stateful front of the engine: one per session."""

    def __init__(
        self,
        palette: Optional[ColorPalette] = None,
        registry: Optional[Mapping[str, ChartTypeSpec]] = None,
        palette_size: int = DEFAULT_PALETTE_SIZE,
    ) -> None:
        self._palette = palette if palette is not None else ColorPalette()
        self._registry = registry if registry is not None else CHART_REGISTRY
        self._palette_size = palette_size
        self._lock = threading.Lock()

        self._configuration: Optional[ChartConfiguration] = None
        self._error: Optional[str] = None
        self._fingerprint = ""
        self._last_cached = False

    # -- state ---------------------------------------------------------------

    @property
    def configuration(self) -> Optional[ChartConfiguration]:
        return self._configuration

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def last_fingerprint(self) -> str:
        return self._fingerprint

    @property
    def last_cached(self) -> bool:
        """Whether the most recent ``assemble`` call was a memo hit."""
        return self._last_cached

    @property
    def registry(self) -> Mapping[str, ChartTypeSpec]:
        return self._registry

    def reset(self) -> None:
        with self._lock:
            self._clear(None)

    def _clear(self, error: Optional[str]) -> None:
        self._configuration = None
        self._error = error
        self._fingerprint = ""

    # -- fingerprint ---------------------------------------------------------

    @staticmethod
    def compute_fingerprint(
        records: List[Any],
        prompt: str,
        overrides: Optional[Dict[str, Optional[str]]] = None,
    ) -> str:
        """
        Prompt + record count + SHA-256 of the compact JSON form.

        Identical inputs always map to the same fingerprint; a payload that
        cannot be serialized gets a stable ``<prompt>_<n>_error`` marker.
        """
        head = prompt.strip()
        try:
            digest = sha256_text(compact_json(records))
        except (TypeError, ValueError):
            return f"{head}_{len(records)}_error"

        fingerprint = f"{head}_{len(records)}_{digest}"
        extra = {k: v for k, v in (overrides or {}).items() if v}
        if extra:
            fingerprint += "_" + compact_json(dict(sorted(extra.items())))
        return fingerprint

    # -- pipeline ------------------------------------------------------------

    def assemble(
        self,
        data: Any,
        prompt: Optional[str],
        *,
        chart_type: Optional[str] = None,
        name_key: Optional[str] = None,
        value_key: Optional[str] = None,
        title: Optional[str] = None,
    ) -> Optional[ChartConfiguration]:
        """
        Produce the configuration for ``(data, prompt)`` or ``None``.

        Never raises: bad input clears the configuration, builder failures
        clear it and set ``error``.
        """
        with self._lock:
            self._last_cached = False

            records = normalize_records(data)
            if records is None:
                logger.info("Chart input rejected: data must be an object or a list of objects")
                self._clear(None)
                return None
            if not records or not prompt or not prompt.strip():
                self._clear(None)
                return None

            classification = classify_records(records)
            if not classification.is_chartable:
                logger.info("No usable label/value fields in %d record(s)", len(records))
                self._clear(None)
                return None

            overrides = {"chartType": chart_type, "nameKey": name_key, "valueKey": value_key, "title": title}
            fingerprint = self.compute_fingerprint(records, prompt, overrides)
            if fingerprint == self._fingerprint:
                logger.debug("Chart inputs unchanged; reusing current configuration")
                self._last_cached = True
                return self._configuration

            # Recorded before building, so a failing input is not retried.
            self._fingerprint = fingerprint
            t0 = time.perf_counter()
            try:
                configuration = self._build(
                    records, prompt, classification, fingerprint,
                    chart_type=chart_type, name_key=name_key, value_key=value_key, title=title,
                )
            except ChartGenerationError as exc:
                self._configuration = None
                self._error = str(exc)
                return None

            self._configuration = configuration
            self._error = None
            logger.info(
                "Assembled %s chart from %d record(s) in %.1f ms",
                configuration.chart_type, configuration.data_points, (time.perf_counter() - t0) * 1000,
            )
            return configuration

    def assemble_request(self, request: ChartRequest) -> Optional[ChartConfiguration]:
        """Structured request entry point; explicit parameters win over inference."""
        return self.assemble(
            request.data,
            synthesize_prompt(request),
            chart_type=request.chartType,
            name_key=request.xAxisKey,
            value_key=request.yAxisKey,
            title=request.title,
        )

    # -- internals -----------------------------------------------------------

    def _resolve_fields(
        self,
        spec: ChartTypeSpec,
        intent: PromptIntent,
        classification: FieldClassification,
        name_key: Optional[str],
        value_key: Optional[str],
    ) -> FieldAssignment:
        known = set(classification.all_keys)
        for label, key in (("x-axis", name_key), ("y-axis", value_key)):
            if key and key not in known:
                logger.debug("Ignoring unknown %s key %r", label, key)

        explicit_name = name_key if name_key in known else None
        explicit_value = value_key if value_key in known else None

        name = explicit_name or intent.name_key or classification.name_key
        if (
            spec.requires_date_label
            and not explicit_name
            and classification.date_keys
            and name not in classification.date_keys
        ):
            name = classification.date_keys[0]

        value = explicit_value or intent.value_key or classification.value_key
        data_keys = intent.data_keys
        if explicit_value and data_keys and explicit_value not in data_keys:
            data_keys = None

        if data_keys and spec.max_fields is not None:
            data_keys = data_keys[: spec.max_fields]
        if spec.min_fields > 1:
            data_keys = self._pad_series(spec, classification, data_keys or ([value] if value else []))
        if data_keys and len(data_keys) < 2:
            data_keys = None

        return FieldAssignment(name_key=name, value_key=value, data_keys=data_keys)

    @staticmethod
    def _pad_series(spec: ChartTypeSpec, classification: FieldClassification, keys: List[str]) -> List[str]:
        """Top up a short series list with the remaining numeric fields, in data order."""
        series = list(keys)
        for key in classification.numeric_keys:
            if len(series) >= spec.min_fields:
                break
            if key not in series:
                series.append(key)
        if len(series) < spec.min_fields:
            logger.debug(
                "%s wants %d value fields, data has %d", spec.chart_type, spec.min_fields, len(series)
            )
        return series

    def _build(
        self,
        records: List[Any],
        prompt: str,
        classification: FieldClassification,
        fingerprint: str,
        *,
        chart_type: Optional[str],
        name_key: Optional[str],
        value_key: Optional[str],
        title: Optional[str],
    ) -> ChartConfiguration:
        intent = interpret_prompt(prompt, classification, self._registry)
        spec = get_chart_spec(chart_type or intent.chart_type, self._registry)

        fields = self._resolve_fields(spec, intent, classification, name_key, value_key)
        style = StyleFlags(
            stacked=spec.chart_type in _STACKED,
            grouped=spec.chart_type in _GROUPED,
            trendline=intent.has_trendline,
            multiple_trendlines=intent.multiple_trendlines,
        )
        colors = intent.colors or self._palette.get(self._palette_size)

        option = build_option(spec, fields, flatten_records(records), style, list(colors))

        return ChartConfiguration(
            chart_type=spec.chart_type,
            title=title or intent.title or default_title(spec.chart_type),
            echarts_option=option,
            data_mapping=DataMapping(
                name_key=fields.name_key,
                value_key=fields.value_key,
                data_keys=fields.data_keys,
            ),
            colors=list(colors),
            data_points=len(records),
            fingerprint=fingerprint,
        )
