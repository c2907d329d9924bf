from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from diabetes_core.data_loading import load_reference_dataset  # noqa: E402
from diabetes_core.evaluation import evaluate as evaluate_confusion  # noqa: E402
from diabetes_core.modeling import ModelWrapper  # noqa: E402
from diabetes_core.schema import DIABETES_SCHEMA  # noqa: E402
from diabetes_core.utils import get_logger, load_config, save_json  # noqa: E402
from diabetes_core.visualize import save_confusion_png  # noqa: E402

LOGGER = get_logger(__name__)


def evaluate(config: dict) -> Path:
    model_path = Path(config["paths"]["model"])
    if not model_path.exists():
        raise FileNotFoundError("Run scripts/train.py first to create the model artifact")
    model = ModelWrapper.load(str(model_path))
    reference = load_reference_dataset(config["paths"]["data"])
    matrix = evaluate_confusion(
        reference,
        model,
        DIABETES_SCHEMA,
        target=config.get("target", {}).get("column", "Diabetes_binary"),
    )
    artifacts_dir = Path(config["paths"]["artifacts_dir"])
    report_path = artifacts_dir / "confusion_matrix.json"
    save_json(
        {
            "labels": list(matrix.labels),
            "matrix": matrix.as_dict(),
            "total": matrix.total,
            "excluded": matrix.excluded,
        },
        report_path,
    )
    save_confusion_png(matrix, artifacts_dir / "confusion_matrix.png")
    LOGGER.info("Evaluation report saved to %s", report_path)
    return report_path


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Confusion matrix of the trained model on the reference data")
    parser.add_argument("--config", type=str, default=None)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    config = load_config(args.config)
    evaluate(config)


if __name__ == "__main__":
    main()
