"""Normalization of the polymorphic staff-affinity field.

The backend sends the set of doctors able to perform a service in several
shapes: ``"1,2"``, ``"3-7"``, ``4``, ``[1, "2"]`` or ``[{"id": 1}, ...]``.
Everything is collapsed to a ``FrozenSet[int]`` once, when a service is parsed.
"""

import re
from typing import Any, FrozenSet, Iterable, Optional, Set

# Raw keys that may carry the affinity, in lookup order
STAFF_AFFINITY_KEYS = ("staff_ids", "staff_id", "staffs", "staff")

_DELIMITERS = re.compile(r"[,\-\s]+")


def _coerce_id(value: Any) -> Optional[int]:
    """Convert a scalar id to int, or None if it is not a valid id."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        token = value.strip()
        return int(token) if token.isdigit() else None
    return None


def _ids_from_mapping(item: dict) -> Set[int]:
    for key in ("id", "staff_id"):
        if key in item:
            coerced = _coerce_id(item[key])
            return {coerced} if coerced is not None else set()
    return set()


def _ids_from_iterable(items: Iterable[Any]) -> Set[int]:
    ids: Set[int] = set()
    for item in items:
        if isinstance(item, dict):
            ids |= _ids_from_mapping(item)
        elif isinstance(item, str):
            ids |= _ids_from_string(item)
        else:
            coerced = _coerce_id(item)
            if coerced is not None:
                ids.add(coerced)
    return ids


def _ids_from_string(raw: str) -> Set[int]:
    ids: Set[int] = set()
    for token in _DELIMITERS.split(raw.strip()):
        coerced = _coerce_id(token)
        if coerced is not None:
            ids.add(coerced)
    return ids


def normalize_staff_affinity(raw: Any) -> FrozenSet[int]:
    """
    Collapse any supported staff-affinity representation to a set of staff ids.

    Args:
        raw: Value of the affinity field as received from the API

    Returns:
        Frozen set of staff ids (empty when the service has no assigned staff)
    """
    if raw is None or isinstance(raw, bool):
        return frozenset()
    if isinstance(raw, str):
        return frozenset(_ids_from_string(raw))
    if isinstance(raw, dict):
        return frozenset(_ids_from_mapping(raw))
    if isinstance(raw, (list, tuple, set, frozenset)):
        return frozenset(_ids_from_iterable(raw))
    coerced = _coerce_id(raw)
    return frozenset({coerced}) if coerced is not None else frozenset()


def extract_staff_affinity(payload: dict) -> FrozenSet[int]:
    """Find the affinity field in a raw service payload and normalize it."""
    for key in STAFF_AFFINITY_KEYS:
        if key in payload and payload[key] not in (None, "", []):
            return normalize_staff_affinity(payload[key])
    return frozenset()
