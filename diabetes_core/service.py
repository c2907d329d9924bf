"""Startup wiring and the per-request prediction handler."""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from diabetes_core.data_loading import load_reference_dataset
from diabetes_core.defaults import DefaultValues, compute_defaults
from diabetes_core.encoding import FeatureRow, RequestEncoder
from diabetes_core.errors import ConfigurationError
from diabetes_core.evaluation import ConfusionMatrix, evaluate
from diabetes_core.modeling import ModelWrapper, train_random_forest
from diabetes_core.schema import DIABETES_SCHEMA, FeatureSchema, TARGET_COLUMN
from diabetes_core.utils import get_logger
from diabetes_core.visualize import render_confusion_png

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class PredictionResult:
    input: FeatureRow
    predicted_class: str
    prob_diabetes: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input": dict(self.input),
            "predicted_class": self.predicted_class,
            "prob_Diabetes": self.prob_diabetes,
        }


class PredictionHandler:
    """Encode a raw request, score it and assemble the response."""

    def __init__(self, encoder: RequestEncoder, model: ModelWrapper):
        self.encoder = encoder
        self.model = model

    def predict(self, raw: Optional[Mapping[str, Any]] = None) -> PredictionResult:
        row = self.encoder.encode(raw)
        predicted_class = self.model.predict_class(row)
        prob = self.model.predict_proba(row)
        return PredictionResult(input=row, predicted_class=predicted_class, prob_diabetes=float(prob))


@dataclass(frozen=True)
class ServiceContext:
    """Everything computed at startup; shared read-only by all requests."""

    schema: FeatureSchema
    defaults: DefaultValues
    model: ModelWrapper
    confusion: ConfusionMatrix
    info: Dict[str, str] = field(default_factory=dict)
    confusion_png: bytes = b""

    @property
    def handler(self) -> PredictionHandler:
        return PredictionHandler(RequestEncoder(self.defaults, self.schema), self.model)


def load_or_fit_model(config: Dict[str, Any], reference, schema: FeatureSchema) -> ModelWrapper:
    model_cfg = config.get("model", {})
    model_path = Path(config["paths"]["model"])
    if model_path.exists():
        LOGGER.info("Loading model artifact %s", model_path)
        return ModelWrapper.load(str(model_path))
    if not model_cfg.get("fit_on_startup", False):
        raise ConfigurationError(
            f"Model artifact {model_path} not found. Run scripts/train.py or enable model.fit_on_startup."
        )
    LOGGER.warning("Model artifact %s not found; fitting on the reference dataset", model_path)
    model = train_random_forest(
        reference,
        schema,
        params=model_cfg.get("params"),
        target=config.get("target", {}).get("column", TARGET_COLUMN),
    )
    if model_cfg.get("save_fitted", True):
        model_path.parent.mkdir(parents=True, exist_ok=True)
        model.save(str(model_path))
        LOGGER.info("Saved fitted model to %s", model_path)
    return model


def build_context(config: Dict[str, Any], schema: FeatureSchema = DIABETES_SCHEMA) -> ServiceContext:
    """Run the blocking startup phase: defaults, model, confusion matrix."""
    start = time.perf_counter()
    target = config.get("target", {}).get("column", TARGET_COLUMN)
    reference = load_reference_dataset(config["paths"]["data"])
    defaults = compute_defaults(reference, schema)
    model = load_or_fit_model(config, reference, schema)
    confusion = evaluate(reference, model, schema, target=target)
    info = {key: str(value) for key, value in config.get("info", {}).items()}
    context = ServiceContext(
        schema=schema,
        defaults=defaults,
        model=model,
        confusion=confusion,
        info=info,
        confusion_png=render_confusion_png(confusion),
    )
    LOGGER.info("Startup completed in %.1fs", time.perf_counter() - start)
    return context


__all__ = [
    "PredictionHandler",
    "PredictionResult",
    "ServiceContext",
    "build_context",
    "load_or_fit_model",
]
