"""Confusion matrix of the trained model over the reference dataset."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix

from diabetes_core.errors import UnknownFeature
from diabetes_core.modeling import ModelWrapper
from diabetes_core.schema import DIABETES_SCHEMA, OUTCOME_LABELS, TARGET_COLUMN, FeatureSchema
from diabetes_core.utils import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class ConfusionMatrix:
    """Counts keyed by (actual, predicted); rows are actual labels.

    ``excluded`` is the number of reference rows that did not contribute a
    count, either because the ground truth was missing or because no
    prediction could be produced for the row.
    """

    labels: Tuple[str, ...]
    counts: Tuple[Tuple[int, ...], ...]
    excluded: int = 0

    def _index(self, label: str) -> int:
        try:
            return self.labels.index(label)
        except ValueError:
            raise KeyError(f"Unknown outcome label: {label!r}") from None

    def count(self, actual: str, predicted: str) -> int:
        return self.counts[self._index(actual)][self._index(predicted)]

    @property
    def total(self) -> int:
        return int(sum(sum(row) for row in self.counts))

    def as_dict(self) -> Dict[str, Dict[str, int]]:
        return {
            actual: {predicted: self.count(actual, predicted) for predicted in self.labels}
            for actual in self.labels
        }

    def cells(self) -> List[Dict[str, object]]:
        return [
            {"actual": actual, "predicted": predicted, "count": self.count(actual, predicted)}
            for actual in self.labels
            for predicted in self.labels
        ]

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(list(self.counts), index=list(self.labels), columns=list(self.labels))
        frame.index.name = "actual"
        frame.columns.name = "predicted"
        return frame


def confusion_from_labels(
    y_true: Sequence[str],
    y_pred: Sequence[str],
    labels: Sequence[str] = OUTCOME_LABELS,
    excluded: int = 0,
) -> ConfusionMatrix:
    y_true, y_pred = list(y_true), list(y_pred)
    if not y_true:
        cm = np.zeros((len(labels), len(labels)), dtype=int)
    else:
        cm = confusion_matrix(y_true, y_pred, labels=list(labels))
    counts = tuple(tuple(int(v) for v in row) for row in cm)
    return ConfusionMatrix(labels=tuple(labels), counts=counts, excluded=excluded)


def evaluate(
    reference: pd.DataFrame,
    model: ModelWrapper,
    schema: FeatureSchema = DIABETES_SCHEMA,
    target: str = TARGET_COLUMN,
    labels: Sequence[str] = OUTCOME_LABELS,
) -> ConfusionMatrix:
    """Batch-predict every reference row and cross-tabulate against the truth.

    Rows without a ground-truth label, or with a feature the model cannot
    score, are dropped from the counts and reported through ``excluded``.
    """
    if target not in reference.columns:
        raise UnknownFeature(target)
    features = schema.names
    scorable = reference[features].notna().all(axis=1)
    unscorable = int((~scorable).sum())
    if unscorable:
        LOGGER.warning("Skipping %d reference rows with missing predictors", unscorable)

    scored = reference.loc[scorable]
    predicted = pd.Series(dtype=object, index=scored.index)
    if not scored.empty:
        X = scored[features].astype({col: object for col in schema.categorical})
        predicted = pd.Series(model.predict_class(X), index=scored.index)

    actual = scored[target].astype(object)
    has_truth = actual.notna() & actual.isin(list(labels)) & predicted.isin(list(labels))
    unlabeled = int((~has_truth).sum())
    if unlabeled:
        LOGGER.warning("Dropping %d reference rows without a usable %s label", unlabeled, target)

    matrix = confusion_from_labels(
        actual[has_truth].astype(str),
        predicted[has_truth].astype(str),
        labels=labels,
        excluded=unscorable + unlabeled,
    )
    LOGGER.info("Confusion matrix over %d rows (%d excluded): %s", matrix.total, matrix.excluded, matrix.as_dict())
    return matrix


__all__ = ["ConfusionMatrix", "confusion_from_labels", "evaluate"]
