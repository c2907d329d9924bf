from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from diabetes_core.data_loading import load_reference_dataset  # noqa: E402
from diabetes_core.modeling import train_random_forest  # noqa: E402
from diabetes_core.schema import DIABETES_SCHEMA  # noqa: E402
from diabetes_core.utils import get_logger, load_config, save_json  # noqa: E402

LOGGER = get_logger(__name__)


def train(config: dict) -> Path:
    """Fit the final random forest on the full reference dataset and save it."""
    reference = load_reference_dataset(config["paths"]["data"])
    model = train_random_forest(
        reference,
        DIABETES_SCHEMA,
        params=config.get("model", {}).get("params"),
        target=config.get("target", {}).get("column", "Diabetes_binary"),
    )
    model_path = Path(config["paths"]["model"])
    model_path.parent.mkdir(parents=True, exist_ok=True)
    model.save(str(model_path))
    artifacts_dir = Path(config["paths"].get("artifacts_dir", model_path.parent))
    save_json({"model": model.name, "features": model.feature_cols, "metrics": model.metrics}, artifacts_dir / "train_report.json")
    LOGGER.info("Model saved to %s", model_path)
    return model_path


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fit the final diabetes random forest")
    parser.add_argument("--config", type=str, default=None, help="YAML config (default: $CONFIG_PATH or configs/default.yaml)")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    config = load_config(args.config)
    train(config)


if __name__ == "__main__":
    main()
