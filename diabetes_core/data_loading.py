"""Reference dataset loading for the BRFSS 2015 diabetes indicators file.

The raw survey file stores every indicator as a numeric code (0/1 flags and
ordinal 1..k scales). :func:`load_reference_dataset` reads the file with
encoding and delimiter sniffing and relabels those codes into the factor
labels the model and the request encoder work with.
"""
from __future__ import annotations

import csv
import warnings
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd
from charset_normalizer import from_bytes

from diabetes_core.schema import OUTCOME_LABELS, SEX_LABELS, TARGET_COLUMN, YES_NO
from diabetes_core.utils import get_logger

LOGGER = get_logger(__name__)

GENERAL_HEALTH_LABELS = ("Excellent", "Very Good", "Good", "Fair", "Poor")
AGE_LABELS = (
    "18-24", "25-29", "30-34", "35-39", "40-44", "45-49", "50-54",
    "55-59", "60-64", "65-69", "70-74", "75-79", "80+",
)
EDUCATION_LABELS = (
    "KG or No School", "Elementary", "Middle school",
    "High school", "College", "Professional Degree",
)
INCOME_LABELS = (
    "<10K", "$10k-$15k", "$15k-$20k", "$20k-$25k",
    "$25k-$35k", "$35k-$50k", "$50k-$75k", "$75k+",
)

_FLAG_COLUMNS = (
    "HighBP", "HighChol", "CholCheck", "Smoker", "Stroke", "HeartDiseaseorAttack",
    "PhysActivity", "Fruits", "Veggies", "HvyAlcoholConsump", "AnyHealthcare",
    "NoDocbcCost", "DiffWalk",
)


def _codes(start: int, labels: Tuple[str, ...]) -> Dict[int, str]:
    return {start + i: label for i, label in enumerate(labels)}


# column -> (numeric code -> label); label order is the factor level order
RECODE_MAP: Dict[str, Dict[int, str]] = {
    TARGET_COLUMN: _codes(0, OUTCOME_LABELS),
    **{col: _codes(0, YES_NO) for col in _FLAG_COLUMNS},
    "Sex": _codes(0, SEX_LABELS),
    "GenHlth": _codes(1, GENERAL_HEALTH_LABELS),
    "Age": _codes(1, AGE_LABELS),
    "Education": _codes(1, EDUCATION_LABELS),
    "Income": _codes(1, INCOME_LABELS),
}

NUMERIC_COLUMNS = ("BMI", "MentHlth", "PhysHlth")


def _read_bytes(path: Path, n_bytes: int = 200_000) -> bytes:
    with open(path, "rb") as fh:
        return fh.read(n_bytes)


def detect_encoding(path: str | Path) -> str:
    sample = _read_bytes(Path(path))
    if not sample:
        return "utf-8"
    result = from_bytes(sample).best()
    if result is None:
        return "utf-8"
    return result.encoding or "utf-8"


def detect_delimiter(path: str | Path, encoding: str) -> Optional[str]:
    sample_text = _read_bytes(Path(path)).decode(encoding, errors="ignore")
    try:
        dialect = csv.Sniffer().sniff(sample_text[:10_000], delimiters=",;\t|")
        return dialect.delimiter
    except csv.Error:
        return None


def read_dataset(path: str | Path, sample_rows: Optional[int] = None) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Reference dataset not found: {path}")
    suffix = path.suffix.lower()
    if suffix == ".parquet":
        return pd.read_parquet(path)
    if suffix not in {".csv", ".txt"}:
        raise ValueError(f"Unsupported file type: {suffix}")
    encoding = detect_encoding(path)
    delimiter = detect_delimiter(path, encoding)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        df = pd.read_csv(path, encoding=encoding, delimiter=delimiter, nrows=sample_rows, low_memory=False)
    LOGGER.info("Read %s (encoding=%s, delimiter=%r, rows=%d)", path.name, encoding, delimiter, len(df))
    return df


def _code_to_label(value: Any, codes: Dict[int, str], labels: Tuple[str, ...]) -> Optional[str]:
    if isinstance(value, str):
        if value in labels:
            return value
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not number.is_integer():
        return None
    return codes.get(int(number))


def recode_column(series: pd.Series, codes: Dict[int, str]) -> pd.Series:
    """Map each cell to its label: labels pass through, numeric codes are
    translated, anything else becomes missing and is counted in a warning.
    """
    labels = tuple(codes.values())
    present = series.notna()
    mapped = series.astype(object).map(
        lambda value: _code_to_label(value, codes, labels) if pd.notna(value) else None
    )
    unrecognised = int((present & mapped.isna()).sum())
    if unrecognised:
        LOGGER.warning("%s: %d cells are neither a label nor a known code; set to missing", series.name, unrecognised)
    return pd.Series(pd.Categorical(mapped, categories=list(labels)), index=series.index, name=series.name)


def relabel_health_indicators(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    for col, codes in RECODE_MAP.items():
        if col not in out.columns:
            continue
        out[col] = recode_column(out[col], codes)
    for col in NUMERIC_COLUMNS:
        if col in out.columns:
            out[col] = pd.to_numeric(out[col], errors="coerce").replace([np.inf, -np.inf], np.nan)
    return out


def load_reference_dataset(path: str | Path, sample_rows: Optional[int] = None) -> pd.DataFrame:
    df = read_dataset(path, sample_rows=sample_rows)
    df = relabel_health_indicators(df)
    if TARGET_COLUMN in df.columns:
        missing = int(df[TARGET_COLUMN].isna().sum())
        if missing:
            LOGGER.warning("%d reference rows have no %s label", missing, TARGET_COLUMN)
    return df


__all__ = [
    "RECODE_MAP",
    "detect_delimiter",
    "detect_encoding",
    "load_reference_dataset",
    "read_dataset",
    "recode_column",
    "relabel_health_indicators",
]
