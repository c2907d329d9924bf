"""Heatmap rendering of the confusion matrix."""
from __future__ import annotations

import io
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import seaborn as sns  # noqa: E402

from diabetes_core.evaluation import ConfusionMatrix  # noqa: E402
from diabetes_core.utils import get_logger  # noqa: E402

LOGGER = get_logger(__name__)


def _draw(matrix: ConfusionMatrix, title: str):
    fig, ax = plt.subplots(figsize=(6, 5))
    sns.heatmap(
        matrix.to_frame(),
        annot=True,
        fmt="d",
        cmap="Blues",
        cbar_kws={"label": "Count"},
        ax=ax,
    )
    ax.set_ylabel("Truth")
    ax.set_xlabel("Prediction")
    ax.set_title(title)
    fig.tight_layout()
    return fig


def render_confusion_png(matrix: ConfusionMatrix, title: str = "Confusion Matrix Heatmap") -> bytes:
    fig = _draw(matrix, title)
    buffer = io.BytesIO()
    try:
        fig.savefig(buffer, format="png", dpi=100)
    finally:
        plt.close(fig)
    return buffer.getvalue()


def save_confusion_png(matrix: ConfusionMatrix, path: str | Path, title: str = "Confusion Matrix Heatmap") -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(render_confusion_png(matrix, title))
    LOGGER.info("Confusion heatmap saved to %s", path)
    return path


__all__ = ["render_confusion_png", "save_confusion_png"]
