"""
Shared utility helpers for the chart engine.

Pure functions only.
"""

from __future__ import annotations

import hashlib
import json
import math
import re
import warnings
from typing import Any, List, Optional

import pandas as pd


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def tokenize(text: str) -> List[str]:
    """Lowercase text and extract alphanumeric tokens."""
    return re.findall(r"[a-z0-9]+", text.lower())


def squash_key(name: str) -> str:
    """Lowercase and drop underscores/hyphens (``unit_price`` -> ``unitprice``)."""
    return re.sub(r"[_\-]", "", name.lower())


def humanize_key(name: str) -> str:
    """``sales_total`` / ``sales-total`` -> ``sales total``."""
    return re.sub(r"[_\-]", " ", name).lower()


def key_parts(name: str) -> List[str]:
    """Split a flattened key on dots, underscores and hyphens."""
    return [p for p in re.split(r"[._\-]", name.lower()) if p]


# ---------------------------------------------------------------------------
# Value coercion
# ---------------------------------------------------------------------------

_FLOAT_PREFIX = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def is_number(val: Any) -> bool:
    """True for int/float values; booleans are not numbers here."""
    return isinstance(val, (int, float)) and not isinstance(val, bool)


def is_finite_number(val: Any) -> bool:
    return is_number(val) and math.isfinite(val)


def number_or_zero(val: Any) -> float:
    """Strict coercion: finite numbers pass through, anything else (NaN, inf) becomes 0."""
    if is_finite_number(val):
        return val
    return 0


def parse_float_prefix(text: str) -> Optional[float]:
    """Parse the leading numeric literal of a string (``"12.5kg"`` -> 12.5)."""
    m = _FLOAT_PREFIX.match(text)
    if not m:
        return None
    try:
        return float(m.group(1))
    except ValueError:
        return None


def coerce_number(val: Any) -> float:
    """Numeric, then numeric-string, then zero."""
    if is_number(val):
        return number_or_zero(val)
    if isinstance(val, str):
        parsed = parse_float_prefix(val)
        if parsed is None or not math.isfinite(parsed):
            return 0
        return int(parsed) if parsed.is_integer() else parsed
    return 0


def label_text(val: Any, default: str = "") -> str:
    """Render a value as an axis/node label; empty-ish values become *default*."""
    if val is None or val is False or val == "":
        return default
    if is_number(val):
        if val == 0 or (isinstance(val, float) and math.isnan(val)):
            return default
        if isinstance(val, float) and val.is_integer():
            return str(int(val))
        return str(val)
    if val is True:
        return "true"
    if isinstance(val, list):
        return ",".join("" if v is None else label_text(v, "") for v in val)
    return str(val)


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

def parse_date(value: Any) -> Optional[pd.Timestamp]:
    """Parse a date-like string with pandas; returns None when it is not a date."""
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            ts = pd.to_datetime(value.strip(), errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    return ts


def is_date_like(value: Any) -> bool:
    return parse_date(value) is not None


# ---------------------------------------------------------------------------
# Serialization / hashing
# ---------------------------------------------------------------------------

def compact_json(obj: Any) -> str:
    """
    Compact, key-order-preserving JSON (same shape as JSON.stringify).

    NaN and Infinity are written as bare literals so non-finite values still
    hash distinctly.
    """
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False, allow_nan=True)


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
