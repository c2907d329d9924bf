"""Default values used to impute features missing from a request."""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, Iterator

import numpy as np
import pandas as pd

from diabetes_core.errors import EmptyColumn
from diabetes_core.schema import DIABETES_SCHEMA, FeatureSchema, FeatureSpec
from diabetes_core.utils import get_logger

LOGGER = get_logger(__name__)


class DefaultValues(Mapping):
    """Read-only mapping of feature name to its default value."""

    def __init__(self, values: Dict[str, Any]):
        self._values = dict(values)

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"DefaultValues({self._values!r})"

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)


def most_prevalent_label(series: pd.Series, spec: FeatureSpec) -> str:
    """Most frequent non-missing label of a categorical column.

    Ties go to the label listed first in the feature's label order.
    """
    counts = series.dropna().astype(str).value_counts()
    best_label = None
    best_count = 0
    for label in spec.labels:
        count = int(counts.get(label, 0))
        if count > best_count:
            best_label, best_count = label, count
    if best_label is None:
        raise EmptyColumn(spec.name)
    return best_label


def column_mean(series: pd.Series, spec: FeatureSpec) -> float:
    values = pd.to_numeric(series, errors="coerce").replace([np.inf, -np.inf], np.nan).dropna()
    if values.empty:
        raise EmptyColumn(spec.name)
    return float(values.mean())


def compute_defaults(reference: pd.DataFrame, schema: FeatureSchema = DIABETES_SCHEMA) -> DefaultValues:
    values: Dict[str, Any] = {}
    for spec in schema:
        if spec.name not in reference.columns:
            raise EmptyColumn(spec.name)
        column = reference[spec.name]
        if spec.is_categorical:
            values[spec.name] = most_prevalent_label(column, spec)
        else:
            values[spec.name] = column_mean(column, spec)
    LOGGER.info("Computed defaults from %d reference rows: %s", len(reference), values)
    return DefaultValues(values)


__all__ = ["DefaultValues", "column_mean", "compute_defaults", "most_prevalent_label"]
