"""
Dot-path field access over schema-less records.

Records reach the engine as whatever the upstream JSON decoder produced, so
the helpers here never raise for a missing or oddly shaped field: any
segment that cannot be followed resolves the whole path to ``None``.
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Tuple


@dataclass(frozen=True)
class FieldPath:
    """
    Pre-split field path such as ``"brand.name"`` or ``"items.0.sku"``.

    Parsing once and reusing the instance avoids re-splitting the path for
    every record in a pass.
    """

    raw: str
    segments: Tuple[str, ...]

    @classmethod
    def parse(cls, path: "str | FieldPath") -> "FieldPath":
        if isinstance(path, FieldPath):
            return path
        return cls(raw=path, segments=tuple(path.split(".")))

    def resolve(self, record: Any) -> Any:
        current = record
        for segment in self.segments:
            current = _step(current, segment)
            if current is None:
                return None
        return current

    def __str__(self) -> str:
        return self.raw


def get_nested_value(record: Any, path: "str | FieldPath") -> Any:
    return FieldPath.parse(path).resolve(record)


def _step(current: Any, segment: str) -> Any:
    if current is None:
        return None
    if isinstance(current, Mapping):
        return current.get(segment)
    if isinstance(current, (str, bytes)):
        return None
    if isinstance(current, Sequence):
        if not segment.isdigit():
            return None
        index = int(segment)
        return current[index] if index < len(current) else None
    # Attribute access keeps dataclass and pydantic records usable; private
    # names stay out of reach.
    if segment.startswith("_"):
        return None
    return getattr(current, segment, None)


def is_number(value: Any) -> bool:
    """True for real numbers, excluding ``bool`` and ``NaN``."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and math.isnan(value))


def stringify(value: Any) -> str:
    """
    Coerce a resolved field value to text for grouping, search and
    string comparison.

    ``None`` (missing) becomes an empty string, booleans use their JSON
    spelling and integral floats drop the trailing ``.0`` so ``1`` and
    ``1.0`` land in the same bucket.
    """

    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return json.dumps(value, sort_keys=True, default=str)
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(item) for item in value)
    return str(value)
