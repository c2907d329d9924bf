"""Turns loosely-typed request input into a complete model input row."""
from __future__ import annotations

import math
from typing import Any, Dict, Mapping, Optional

from diabetes_core.defaults import DefaultValues
from diabetes_core.errors import InvalidCategory, InvalidNumber
from diabetes_core.schema import DIABETES_SCHEMA, FeatureSchema, FeatureSpec

# One value per schema feature, in schema order.
FeatureRow = Dict[str, Any]


def parse_number(feature: str, value: Any) -> float:
    if isinstance(value, bool):
        raise InvalidNumber(feature, value)
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidNumber(feature, value) from None
    if not math.isfinite(number):
        raise InvalidNumber(feature, value)
    return number


def parse_category(spec: FeatureSpec, value: Any) -> str:
    # exact, case-sensitive match only
    if not isinstance(value, str) or value not in spec.labels:
        raise InvalidCategory(spec.name, value, spec.labels)
    return value


class RequestEncoder:
    """Validate raw request values and fill the gaps with defaults."""

    def __init__(self, defaults: DefaultValues, schema: FeatureSchema = DIABETES_SCHEMA):
        self.defaults = defaults
        self.schema = schema

    def encode(self, raw: Optional[Mapping[str, Any]] = None) -> FeatureRow:
        raw = raw or {}
        row: FeatureRow = {}
        for spec in self.schema:
            value = raw.get(spec.name)
            if value is None:
                row[spec.name] = self.defaults[spec.name]
            elif spec.is_categorical:
                row[spec.name] = parse_category(spec, value)
            else:
                row[spec.name] = parse_number(spec.name, value)
        return row


__all__ = ["FeatureRow", "RequestEncoder", "parse_category", "parse_number"]
