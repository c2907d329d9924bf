import numpy as np
import pandas as pd
import pytest

from diabetes_core.defaults import compute_defaults
from diabetes_core.evaluation import evaluate
from diabetes_core.modeling import ModelWrapper
from diabetes_core.schema import DIABETES_SCHEMA
from diabetes_core.service import ServiceContext


class DummyEstimator:
    """Deterministic stand-in for the fitted pipeline."""

    classes_ = np.array(["Diabetes", "NoDiabetes"])

    def __init__(self):
        self.calls = 0

    def _risk(self, X):
        bmi = X["BMI"].astype(float).to_numpy()
        high_bp = (X["HighBP"] == "Yes").to_numpy()
        return np.clip((bmi - 20.0) / 20.0 + 0.2 * high_bp, 0.0, 1.0)

    def predict_proba(self, X):
        self.calls += 1
        p = self._risk(X)
        return np.column_stack([p, 1 - p])

    def predict(self, X):
        self.calls += 1
        return np.where(self._risk(X) >= 0.5, "Diabetes", "NoDiabetes")


def make_reference(n_rows: int = 40) -> pd.DataFrame:
    rows = []
    for i in range(n_rows):
        rows.append(
            {
                "Diabetes_binary": "Diabetes" if i >= 30 or i % 7 == 0 else "NoDiabetes",
                "HighBP": "Yes" if i % 3 == 0 else "No",
                "BMI": 20.0 + i * 0.5,
                "Smoker": "Yes" if i % 2 == 0 else "No",
                "HeartDiseaseorAttack": "Yes" if i % 5 == 0 else "No",
                "PhysActivity": "Yes" if i % 4 != 0 else "No",
                "Sex": "Male" if i % 5 in (0, 1) else "Female",
            }
        )
    return pd.DataFrame(rows)


@pytest.fixture
def reference_df():
    return make_reference()


@pytest.fixture
def dummy_model():
    return ModelWrapper(
        name="dummy",
        estimator=DummyEstimator(),
        feature_cols=DIABETES_SCHEMA.names,
        categories=DIABETES_SCHEMA.label_sets(),
    )


@pytest.fixture
def defaults(reference_df):
    return compute_defaults(reference_df)


@pytest.fixture
def context(reference_df, defaults, dummy_model):
    return ServiceContext(
        schema=DIABETES_SCHEMA,
        defaults=defaults,
        model=dummy_model,
        confusion=evaluate(reference_df, dummy_model),
        info={"name": "Test Author", "github_pages_url": "https://example.org/project/"},
        confusion_png=b"\x89PNG\r\n\x1a\n",
    )
