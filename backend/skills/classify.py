"""
Field classification skill.

Partitions the keys of a flattened record into numeric / string / date-like
sets and picks a default label key and value key from semantic naming.

Only the first record is inspected; heterogeneous record sets are not
reconciled.
"""

from __future__ import annotations

import logging
import re
from typing import Any, List

from core.models import FieldClassification, FlattenedRecord
from core.utils import is_date_like, is_finite_number
from skills.flatten import flatten_record

logger = logging.getLogger("uvicorn.error")

# ---------------------------------------------------------------------------
# Semantic name patterns
# ---------------------------------------------------------------------------

LABEL_KEYWORDS: List[str] = [
    "name", "label", "category", "title", "id", "key", "agent", "month", "day",
    "date", "time", "year", "period", "quarter", "week", "season", "location",
    "region", "country", "city", "state", "product", "item", "type", "class",
    "group", "team", "department", "tag",
]

# Used when a prompt mentions a field; temporal words are excluded.
MENTION_LABEL_KEYWORDS: List[str] = [
    "name", "label", "category", "title", "id", "key", "agent", "period",
    "quarter", "week", "season", "location", "region", "country", "city",
    "state", "product", "item", "type", "class", "group", "team", "department",
    "tag",
]

VALUE_KEYWORDS: List[str] = [
    "value", "amount", "count", "total", "sum", "quantity", "number", "price",
    "cost", "revenue", "sales", "score", "rating", "interaction", "kpi",
    "satisfaction", "metric", "measure", "data", "result", "outcome",
    "performance", "efficiency", "rate", "percentage", "percent", "ratio",
    "index", "level", "size", "volume", "weight", "length", "height", "width",
    "depth", "area", "distance", "speed", "time", "duration", "frequency",
]


def _pattern(words: List[str]) -> re.Pattern:
    return re.compile("|".join(re.escape(w) for w in words), re.IGNORECASE)


LABEL_PATTERN = _pattern(LABEL_KEYWORDS)
MENTION_LABEL_PATTERN = _pattern(MENTION_LABEL_KEYWORDS)
VALUE_PATTERN = _pattern(VALUE_KEYWORDS)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def classify_fields(flattened: FlattenedRecord) -> FieldClassification:
    """
    Classify the keys of one flattened record.

    Never raises; an empty record yields empty sets and empty label/value
    keys, which downstream means "nothing to chart".
    """
    if not flattened:
        return FieldClassification()

    all_keys = list(flattened.keys())
    numeric_keys: List[str] = []
    string_keys: List[str] = []
    date_keys: List[str] = []

    for key in all_keys:
        value: Any = flattened[key]
        if is_finite_number(value):
            numeric_keys.append(key)
        elif isinstance(value, str):
            string_keys.append(key)
            if is_date_like(value):
                date_keys.append(key)

    # semantic name > first date > first string > anything
    name_key = (
        next((k for k in string_keys if LABEL_PATTERN.search(k)), None)
        or (date_keys[0] if date_keys else None)
        or (string_keys[0] if string_keys else None)
        or all_keys[0]
    )

    value_key = (
        next((k for k in numeric_keys if VALUE_PATTERN.search(k)), None)
        or (numeric_keys[0] if numeric_keys else "")
    )

    logger.debug(
        "Classified %d keys (%d numeric, %d string, %d date); label=%r value=%r",
        len(all_keys), len(numeric_keys), len(string_keys), len(date_keys),
        name_key, value_key,
    )

    return FieldClassification(
        all_keys=all_keys,
        numeric_keys=numeric_keys,
        string_keys=string_keys,
        date_keys=date_keys,
        name_key=name_key,
        value_key=value_key,
    )


def classify_records(records: List[Any]) -> FieldClassification:
    """Classify a record list by its first record."""
    if not records:
        return FieldClassification()
    return classify_fields(flatten_record(records[0]))
