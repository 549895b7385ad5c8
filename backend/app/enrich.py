"""
Request enrichment: asks the LLM to fill in chart parameters the caller
did not supply (chart type, title, axis fields).

Falls back to the lexical prompt interpreter if the LLM is unavailable or
returns something unusable. Explicit caller values always win on merge.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from app.prompts import ENRICH_SYSTEM, ENRICH_USER
from charts.registry import CHART_REGISTRY
from core.models import ChartRequest, EnrichmentResult, FieldClassification
from skills.classify import classify_records
from skills.flatten import flatten_records, normalize_records
from skills.interpret import default_title, interpret_prompt

logger = logging.getLogger("uvicorn.error")
_llm_warn_logged = False

SAMPLE_RECORDS = 5


def enrich_request(data: Any, prompt: Optional[str] = None, *, use_llm: bool = True) -> EnrichmentResult:
    """LLM-driven parameter inference with heuristic fallback."""
    records = normalize_records(data) or []
    classification = classify_records(records)

    if use_llm and classification.all_keys:
        try:
            from app.llm import chat_json

            system = ENRICH_SYSTEM.format(chart_types=", ".join(CHART_REGISTRY))
            result = chat_json(system, _user_message(prompt, records, classification), max_tokens=400)
            return _coerce_enrichment(result, classification)
        except Exception as e:
            global _llm_warn_logged
            if not _llm_warn_logged:
                logger.warning("LLM enrichment unavailable, using heuristic fallback: %s", e)
                _llm_warn_logged = True

    return _heuristic_enrichment(prompt, classification)


def merge_enrichment(request: ChartRequest, enrichment: EnrichmentResult) -> ChartRequest:
    """Fill only the parameters the caller left empty."""
    update: Dict[str, Any] = {}
    for field in ("chartType", "title", "xAxisKey", "yAxisKey"):
        if not getattr(request, field) and getattr(enrichment, field):
            update[field] = getattr(enrichment, field)
    return request.model_copy(update=update) if update else request


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------

def _user_message(prompt: Optional[str], records: List[Any], classification: FieldClassification) -> str:
    sample = flatten_records(records[:SAMPLE_RECORDS])
    fields = "\n".join(
        f"- {k} ({'number' if k in classification.numeric_keys else 'date' if k in classification.date_keys else 'text'})"
        for k in classification.all_keys
    )
    return ENRICH_USER.format(
        prompt=prompt or "(none: pick the most informative chart)",
        fields=fields,
        n_sample=len(sample),
        sample=json.dumps(sample, default=str, indent=2),
    )


def _coerce_enrichment(obj: Dict[str, Any], classification: FieldClassification) -> EnrichmentResult:
    """Keep only values that name a real chart type or a real field."""
    known = set(classification.all_keys)

    chart_type = obj.get("chartType") or obj.get("chart_type")
    chart_type = str(chart_type).strip().lower() if chart_type else None
    if chart_type not in CHART_REGISTRY:
        chart_type = None

    def field(name: str) -> Optional[str]:
        value = obj.get(name)
        return value if isinstance(value, str) and value in known else None

    title = obj.get("title")
    reasoning = obj.get("reasoning")
    return EnrichmentResult(
        chartType=chart_type,
        title=title.strip() if isinstance(title, str) and title.strip() else None,
        xAxisKey=field("xAxisKey"),
        yAxisKey=field("yAxisKey"),
        reasoning=reasoning if isinstance(reasoning, str) else None,
        source="llm",
    )


def _heuristic_enrichment(prompt: Optional[str], classification: FieldClassification) -> EnrichmentResult:
    intent = interpret_prompt(prompt or "", classification)
    return EnrichmentResult(
        chartType=intent.chart_type,
        title=intent.title or default_title(intent.chart_type),
        xAxisKey=intent.name_key or classification.name_key or None,
        yAxisKey=intent.value_key or classification.value_key or None,
        reasoning="Keyword match on the request and field naming heuristics.",
        source="heuristic",
    )
