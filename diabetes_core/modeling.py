"""Model wrapper around the trained classifier plus the final-fit helper."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple, Union

import joblib
import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import RandomForestClassifier
from sklearn.metrics import accuracy_score, roc_auc_score
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, StandardScaler

from diabetes_core.errors import SchemaMismatch
from diabetes_core.schema import DIABETES_SCHEMA, POSITIVE_LABEL, TARGET_COLUMN, FeatureSchema
from diabetes_core.utils import get_logger

LOGGER = get_logger(__name__)

RowOrRows = Union[Mapping, Sequence[Mapping], pd.DataFrame]

# Tuned during model selection (mtry=3, min_n=28, 1000 trees).
DEFAULT_RF_PARAMS: Dict[str, Any] = {
    "n_estimators": 1000,
    "max_features": 3,
    "min_samples_split": 28,
    "random_state": 42,
    "n_jobs": -1,
}


@dataclass
class ModelWrapper:
    """Trained classifier together with the schema it was fit against.

    ``predict_class`` and ``predict_proba`` take either one feature row (a
    mapping) or a batch (a DataFrame or a sequence of mappings). A single row
    yields a scalar, a batch yields a numpy array.
    """

    name: str
    estimator: Any
    feature_cols: List[str]
    categories: Dict[str, Tuple[str, ...]]
    positive_label: str = POSITIVE_LABEL
    metrics: Dict[str, float] = field(default_factory=dict)

    def save(self, path: str) -> None:
        joblib.dump(self, path)

    @staticmethod
    def load(path: str) -> "ModelWrapper":
        model = joblib.load(path)
        if not isinstance(model, ModelWrapper):
            raise SchemaMismatch(f"Artifact at {path} is not a ModelWrapper (got {type(model).__name__})")
        return model.limit_threads()

    def limit_threads(self, n_jobs: int = 1) -> "ModelWrapper":
        """Cap the forest's worker count for request-time scoring."""
        get_params = getattr(self.estimator, "get_params", None)
        if get_params is not None and "model__n_jobs" in get_params():
            self.estimator.set_params(model__n_jobs=n_jobs)
        return self

    def _to_frame(self, row_or_rows: RowOrRows) -> Tuple[pd.DataFrame, bool]:
        if isinstance(row_or_rows, pd.DataFrame):
            return row_or_rows, False
        if isinstance(row_or_rows, Mapping):
            return pd.DataFrame([dict(row_or_rows)]), True
        return pd.DataFrame([dict(row) for row in row_or_rows]), False

    def _check_schema(self, df: pd.DataFrame) -> pd.DataFrame:
        columns = set(df.columns)
        expected = set(self.feature_cols)
        if columns != expected:
            raise SchemaMismatch(
                f"Input columns {sorted(columns)} do not match trained features {sorted(expected)}"
            )
        for col in self.feature_cols:
            if col in self.categories:
                values = df[col].astype(object)
                bad = ~values.isin(self.categories[col])
                if bad.any():
                    offending = sorted({str(v) for v in values[bad]})
                    raise SchemaMismatch(
                        f"Column {col} has values {offending} outside trained labels {list(self.categories[col])}"
                    )
            else:
                numeric = pd.to_numeric(df[col], errors="coerce")
                if not np.isfinite(numeric.to_numpy(dtype=float)).all():
                    raise SchemaMismatch(f"Column {col} must hold finite numbers")
        return df.loc[:, self.feature_cols]

    def _positive_index(self) -> int:
        classes = [str(c) for c in self.estimator.classes_]
        if self.positive_label not in classes:
            raise SchemaMismatch(f"Positive class {self.positive_label!r} not among model classes {classes}")
        return classes.index(self.positive_label)

    def predict_proba(self, row_or_rows: RowOrRows):
        df, single = self._to_frame(row_or_rows)
        X = self._check_schema(df)
        probs = np.asarray(self.estimator.predict_proba(X))[:, self._positive_index()]
        probs = np.clip(probs.astype(float), 0.0, 1.0)
        return float(probs[0]) if single else probs

    def predict_class(self, row_or_rows: RowOrRows):
        df, single = self._to_frame(row_or_rows)
        X = self._check_schema(df)
        labels = np.asarray(self.estimator.predict(X)).astype(str)
        return str(labels[0]) if single else labels


def build_pipeline(schema: FeatureSchema = DIABETES_SCHEMA, params: Dict[str, Any] | None = None) -> Pipeline:
    rf_params = {**DEFAULT_RF_PARAMS, **(params or {})}
    categorical = schema.categorical
    label_sets = schema.label_sets()
    preprocessor = ColumnTransformer(
        transformers=[
            (
                "cat",
                OneHotEncoder(categories=[list(label_sets[col]) for col in categorical], drop="if_binary"),
                categorical,
            ),
            ("num", StandardScaler(), schema.continuous),
        ]
    )
    return Pipeline(steps=[("preprocess", preprocessor), ("model", RandomForestClassifier(**rf_params))])


def train_random_forest(
    reference: pd.DataFrame,
    schema: FeatureSchema = DIABETES_SCHEMA,
    params: Dict[str, Any] | None = None,
    target: str = TARGET_COLUMN,
) -> ModelWrapper:
    """Fit the final random forest on the full reference dataset."""
    feature_cols = schema.names
    missing = [col for col in feature_cols + [target] if col not in reference.columns]
    if missing:
        raise SchemaMismatch(f"Reference dataset is missing columns: {missing}")
    data = reference.dropna(subset=feature_cols + [target])
    dropped = len(reference) - len(data)
    if dropped:
        LOGGER.info("Dropping %d incomplete rows before fitting", dropped)
    X = data[feature_cols].astype({col: object for col in schema.categorical})
    y = data[target].astype(str)

    pipe = build_pipeline(schema, params)
    pipe.fit(X, y)

    model = ModelWrapper(
        name="random_forest",
        estimator=pipe,
        feature_cols=feature_cols,
        categories=schema.label_sets(),
    )
    train_probs = model.predict_proba(X)
    metrics = {
        "n_rows": float(len(data)),
        "train_accuracy": float(accuracy_score(y, pipe.predict(X))),
    }
    if y.nunique() == 2:
        metrics["train_roc_auc"] = float(roc_auc_score((y == model.positive_label).astype(int), train_probs))
    model.metrics = metrics
    LOGGER.info("Fitted %s on %d rows: %s", model.name, len(data), metrics)
    return model.limit_threads()


__all__ = ["DEFAULT_RF_PARAMS", "ModelWrapper", "build_pipeline", "train_random_forest"]
