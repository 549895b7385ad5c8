"""
Prompt interpretation skill.

Reads a free-text chart request against the classified fields of the data
and produces a ``PromptIntent``: chart type, field overrides, style flags,
explicit colors and an optional title. Purely lexical; never raises.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Mapping, Optional, Tuple

from charts.registry import DEFAULT_CHART_TYPE, ChartTypeSpec, keyword_index
from core.models import ChartType, FieldClassification, PromptIntent
from core.utils import humanize_key, key_parts, squash_key
from skills.classify import MENTION_LABEL_PATTERN, VALUE_PATTERN

logger = logging.getLogger("uvicorn.error")

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_MULTI_TREND = re.compile(r"\b(dual|multiple)\s*(trendline|trend\s*line)\b")
_SINGLE_TREND_PHRASES = ("trendline", "trend line", "regression", "linear trend")
_PAIR = re.compile(r"(\w+)\s+(?:vs|versus|and|&)\s+(\w+)", re.IGNORECASE)
_COMPARISON_MARKERS = (" vs ", " versus ", " and ")
_TITLE = re.compile(r"(?:title:|titled?)\s*[\"']?([^\"']+)[\"']?", re.IGNORECASE)
_HEX = re.compile(r"#(?:[0-9a-f]{6}|[0-9a-f]{3})(?![0-9a-f])")
_RGB = re.compile(r"rgba?\([^)]+\)")

COLOR_NAMES: Dict[str, str] = {
    "red": "#ff0000",
    "blue": "#0066ff",
    "green": "#00cc00",
    "yellow": "#ffcc00",
    "orange": "#ff6600",
    "purple": "#9900cc",
    "pink": "#ff00cc",
    "teal": "#00cccc",
    "cyan": "#00ffff",
    "magenta": "#ff00ff",
    "lime": "#00ff00",
    "brown": "#8b4513",
    "black": "#000000",
    "white": "#ffffff",
    "gray": "#808080",
    "grey": "#808080",
    "navy": "#000080",
    "maroon": "#800000",
    "olive": "#808000",
    "aqua": "#00ffff",
    "silver": "#c0c0c0",
    "gold": "#ffd700",
    "indigo": "#4b0082",
    "violet": "#8a2be2",
    "coral": "#ff7f50",
    "salmon": "#fa8072",
    "turquoise": "#40e0d0",
    "khaki": "#f0e68c",
    "lavender": "#e6e6fa",
    "plum": "#dda0dd",
    "beige": "#f5f5dc",
    "tan": "#d2b48c",
}

_COLOR_PATTERNS = [(re.compile(rf"\b{name}\b", re.IGNORECASE), hex_) for name, hex_ in COLOR_NAMES.items()]


# ---------------------------------------------------------------------------
# Individual detectors
# ---------------------------------------------------------------------------

def detect_trendlines(prompt: str) -> Tuple[bool, bool]:
    """Return ``(has_trendline, multiple_trendlines)``; multiple implies has."""
    p = (prompt or "").lower().strip()
    if "dual trendline" in p or "multiple trendline" in p or _MULTI_TREND.search(p):
        return True, True
    if any(phrase in p for phrase in _SINGLE_TREND_PHRASES):
        return True, False
    return False, False


def detect_chart_type(
    prompt: str,
    registry: Optional[Mapping[str, ChartTypeSpec]] = None,
) -> str:
    """First registry keyword found in the prompt, in ``keyword_index`` order; ``bar`` otherwise."""
    p = (prompt or "").lower().strip()
    if detect_trendlines(p)[1]:
        return ChartType.line.value
    for pattern, chart_type in keyword_index(registry):
        if pattern.search(p):
            return chart_type
    return DEFAULT_CHART_TYPE


def extract_colors(prompt: str) -> Optional[List[str]]:
    """
    Named colors (table order), then hex literals, then ``rgb()/rgba()``
    literals, deduplicated. ``None`` when the prompt names no color.
    """
    p = (prompt or "").lower()
    found: List[str] = [hex_ for pattern, hex_ in _COLOR_PATTERNS if pattern.search(p)]

    for m in _HEX.finditer(p):
        hex_ = m.group(0)
        if len(hex_) == 4:
            hex_ = "#" + "".join(ch * 2 for ch in hex_[1:])
        found.append(hex_)

    found.extend(_RGB.findall(p))

    unique = list(dict.fromkeys(found))
    return unique or None


def extract_title(prompt: str) -> Optional[str]:
    m = _TITLE.search(prompt or "")
    if not m:
        return None
    title = m.group(1).strip()
    return title or None


def default_title(chart_type: str) -> str:
    return f"{chart_type[:1].upper()}{chart_type[1:]} Chart"


def _fuzzy_find(word: str, keys: List[str]) -> Optional[str]:
    w = word.lower()
    for key in keys:
        k = key.lower()
        if k == w or w in k or k in w or squash_key(k) == squash_key(w):
            return key
    return None


def find_explicit_pair(prompt: str, keys: List[str]) -> List[str]:
    """Fields named on either side of ``A vs B`` / ``A and B`` / ``A & B``."""
    m = _PAIR.search(prompt or "")
    if not m:
        return []
    found: List[str] = []
    for word in (m.group(1), m.group(2)):
        key = _fuzzy_find(word.strip(), keys)
        if key and key not in found:
            found.append(key)
    return found


def _is_mentioned(key: str, p: str, words: List[str]) -> bool:
    k = key.lower()
    squashed = squash_key(k)
    parts = key_parts(k)

    if (
        k in p
        or humanize_key(key) in p
        or key.replace("_", " ").lower() in p
        or key.replace(".", " ").lower() in p
    ):
        return True
    if any(len(part) >= 3 and part in p for part in parts):
        return True
    for word in words:
        if len(word) < 3:
            continue
        if word in squashed or squashed in word:
            return True
        if any(word in part or part in word for part in parts):
            return True
    return False


def find_mentioned_keys(prompt: str, keys: List[str], seed: Optional[List[str]] = None) -> List[str]:
    """Fields the prompt refers to, in discovery order, without duplicates."""
    p = (prompt or "").lower().strip()
    words = [re.sub(r"[^a-z0-9]", "", w) for w in p.split()]
    mentioned = list(seed or [])
    for key in keys:
        if key not in mentioned and _is_mentioned(key, p, words):
            mentioned.append(key)
    return mentioned


# ---------------------------------------------------------------------------
# Role resolution
# ---------------------------------------------------------------------------

def _resolve_roles(intent: PromptIntent, classification: FieldClassification) -> None:
    mentioned = intent.mentioned_keys
    if not mentioned:
        return

    label_like = set(classification.string_keys) | set(classification.date_keys)
    intent.name_key = next(
        (k for k in mentioned if k in label_like or MENTION_LABEL_PATTERN.search(k)),
        None,
    )

    numeric = set(classification.numeric_keys)
    value_keys = [k for k in mentioned if k in numeric or VALUE_PATTERN.search(k)]
    if value_keys:
        intent.value_key = value_keys[0]
        if len(value_keys) > 1:
            intent.data_keys = value_keys


def _resolve_comparison(
    intent: PromptIntent,
    prompt: str,
    classification: FieldClassification,
) -> None:
    numeric = classification.numeric_keys
    p = (prompt or "").lower().strip()
    wants_comparison = any(marker in p for marker in _COMPARISON_MARKERS) or intent.multiple_trendlines
    if not wants_comparison or len(numeric) < 2:
        return

    words = [w for w in p.split() if len(w) >= 3]
    matching = [
        key for key in numeric
        if any(w in key.lower() or key.lower() in w for w in words)
    ]
    if len(matching) >= 2:
        intent.data_keys = matching
        intent.value_key = matching[0]
    else:
        intent.data_keys = list(numeric[:2])
        intent.value_key = numeric[0]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def interpret_prompt(
    prompt: str,
    classification: FieldClassification,
    registry: Optional[Mapping[str, ChartTypeSpec]] = None,
) -> PromptIntent:
    """
    Interpret ``prompt`` against the classified fields.

    Empty or unhelpful prompts degrade to the defaults: ``bar``, no field
    overrides, no colors.
    """
    prompt = prompt or ""
    has_trendline, multiple = detect_trendlines(prompt)

    chart_type = detect_chart_type(prompt, registry)
    if has_trendline and chart_type not in (ChartType.line.value, ChartType.scatter.value):
        chart_type = ChartType.line.value

    keys = classification.all_keys
    mentioned = find_mentioned_keys(prompt, keys, seed=find_explicit_pair(prompt, keys))

    intent = PromptIntent(
        chart_type=chart_type,
        mentioned_keys=mentioned,
        is_stacked=chart_type in (ChartType.stackedbar.value, ChartType.stackedarea.value),
        is_grouped=chart_type == ChartType.groupedbar.value,
        has_trendline=has_trendline,
        multiple_trendlines=multiple,
        colors=extract_colors(prompt),
        title=extract_title(prompt),
    )
    _resolve_roles(intent, classification)
    _resolve_comparison(intent, prompt, classification)

    logger.debug(
        "Interpreted prompt: type=%s mentioned=%s label=%s value=%s series=%s trend=%s/%s",
        intent.chart_type, intent.mentioned_keys, intent.name_key, intent.value_key,
        intent.data_keys, intent.has_trendline, intent.multiple_trendlines,
    )
    return intent
