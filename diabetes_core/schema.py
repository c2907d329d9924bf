"""Predictor feature schema shared by training, imputation and serving.

The label sets below are the exact factor levels the random forest is fit
against. Changing them without retraining the artefact makes the encoder
accept values the model has never seen.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

from diabetes_core.errors import UnknownFeature

CATEGORICAL = "categorical"
CONTINUOUS = "continuous"

YES_NO: Tuple[str, ...] = ("No", "Yes")
SEX_LABELS: Tuple[str, ...] = ("Female", "Male")

TARGET_COLUMN = "Diabetes_binary"
OUTCOME_LABELS: Tuple[str, ...] = ("NoDiabetes", "Diabetes")
POSITIVE_LABEL = "Diabetes"


@dataclass(frozen=True)
class FeatureSpec:
    name: str
    kind: str
    labels: Tuple[str, ...] = ()

    @property
    def is_categorical(self) -> bool:
        return self.kind == CATEGORICAL


@dataclass(frozen=True)
class FeatureSchema:
    """Ordered, immutable set of predictor features."""

    features: Tuple[FeatureSpec, ...]

    def get(self, name: str) -> FeatureSpec:
        for spec in self.features:
            if spec.name == name:
                return spec
        raise UnknownFeature(name)

    def __iter__(self) -> Iterator[FeatureSpec]:
        return iter(self.features)

    def __len__(self) -> int:
        return len(self.features)

    @property
    def names(self) -> List[str]:
        return [spec.name for spec in self.features]

    @property
    def categorical(self) -> List[str]:
        return [spec.name for spec in self.features if spec.is_categorical]

    @property
    def continuous(self) -> List[str]:
        return [spec.name for spec in self.features if not spec.is_categorical]

    def label_sets(self) -> Dict[str, Tuple[str, ...]]:
        return {spec.name: spec.labels for spec in self.features if spec.is_categorical}


# Order matches the model formula:
# Diabetes_binary ~ BMI + Smoker + HighBP + HeartDiseaseorAttack + PhysActivity + Sex
DIABETES_SCHEMA = FeatureSchema(
    features=(
        FeatureSpec("BMI", CONTINUOUS),
        FeatureSpec("Smoker", CATEGORICAL, YES_NO),
        FeatureSpec("HighBP", CATEGORICAL, YES_NO),
        FeatureSpec("HeartDiseaseorAttack", CATEGORICAL, YES_NO),
        FeatureSpec("PhysActivity", CATEGORICAL, YES_NO),
        FeatureSpec("Sex", CATEGORICAL, SEX_LABELS),
    )
)


__all__ = [
    "CATEGORICAL",
    "CONTINUOUS",
    "DIABETES_SCHEMA",
    "FeatureSchema",
    "FeatureSpec",
    "OUTCOME_LABELS",
    "POSITIVE_LABEL",
    "SEX_LABELS",
    "TARGET_COLUMN",
    "YES_NO",
]
