"""
Record flattening skill.

Turns arbitrarily nested JSON records into flat ``{synthetic_key: leaf}``
mappings that the classifier and option builders can index directly:

- nested objects join their path with dots (``address.city``)
- arrays of objects expand index-wise (``items[0].price``, ``items[1].price``)
- arrays of primitives stay intact as vector values
- null leaves are kept so "missing" stays visible downstream
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from core.models import FlattenedRecord

_PRIMITIVES = (str, int, float, bool)


def flatten_record(
    record: Any,
    prefix: str = "",
    result: Optional[FlattenedRecord] = None,
) -> FlattenedRecord:
    """Flatten one record. Non-object input yields an empty mapping."""
    if result is None:
        result = {}
    if not isinstance(record, dict):
        return result

    for key, value in record.items():
        new_key = f"{prefix}.{key}" if prefix else str(key)

        if value is None:
            result[new_key] = None
        elif isinstance(value, list):
            if not value:
                continue
            first = value[0]
            if isinstance(first, _PRIMITIVES):
                result[new_key] = list(value)
            elif isinstance(first, (dict, list)):
                # Later elements overwrite earlier ones only on exact key collisions.
                for idx, item in enumerate(value):
                    if isinstance(item, dict):
                        flatten_record(item, f"{new_key}[{idx}]", result)
        elif isinstance(value, dict):
            flatten_record(value, new_key, result)
        else:
            result[new_key] = value

    return result


def flatten_records(records: List[Any]) -> List[FlattenedRecord]:
    return [flatten_record(r) for r in records]


def normalize_records(data: Any) -> Optional[List[Dict[str, Any]]]:
    """
    Accept a list of records or a single record.

    A single object becomes a one-element list; any other shape (scalar,
    string, null) is rejected with ``None``.
    """
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return [data]
    return None
