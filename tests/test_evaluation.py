import numpy as np
import pytest

from diabetes_core.errors import UnknownFeature
from diabetes_core.evaluation import ConfusionMatrix, confusion_from_labels, evaluate
from diabetes_core.schema import DIABETES_SCHEMA, OUTCOME_LABELS
from diabetes_core.visualize import render_confusion_png, save_confusion_png


def _expected_counts(df, model):
    counts = {(a, p): 0 for a in OUTCOME_LABELS for p in OUTCOME_LABELS}
    for _, record in df.iterrows():
        if record["Diabetes_binary"] is None:
            continue
        row = {name: record[name] for name in DIABETES_SCHEMA.names}
        counts[(record["Diabetes_binary"], model.predict_class(row))] += 1
    return counts


def test_evaluate_matches_row_by_row(reference_df, dummy_model):
    matrix = evaluate(reference_df, dummy_model)
    expected = _expected_counts(reference_df, dummy_model)
    for (actual, predicted), count in expected.items():
        assert matrix.count(actual, predicted) == count
    assert matrix.total == len(reference_df)
    assert matrix.excluded == 0


def test_evaluate_drops_rows_without_truth(reference_df, dummy_model):
    df = reference_df.copy()
    df["Diabetes_binary"] = df["Diabetes_binary"].astype(object)
    df.loc[[0, 5, 9], "Diabetes_binary"] = None
    matrix = evaluate(df, dummy_model)
    assert matrix.total == len(df) - 3
    assert matrix.excluded == 3
    assert matrix.total == sum(_expected_counts(df, dummy_model).values())


def test_evaluate_skips_rows_without_predictors(reference_df, dummy_model):
    df = reference_df.copy()
    df.loc[2, "BMI"] = np.nan
    matrix = evaluate(df, dummy_model)
    assert matrix.total == len(df) - 1
    assert matrix.excluded == 1


def test_evaluate_is_idempotent(reference_df, dummy_model):
    assert evaluate(reference_df, dummy_model) == evaluate(reference_df, dummy_model)


def test_evaluate_requires_target(reference_df, dummy_model):
    with pytest.raises(UnknownFeature):
        evaluate(reference_df.drop(columns=["Diabetes_binary"]), dummy_model)


def test_confusion_accessors():
    matrix = confusion_from_labels(
        ["NoDiabetes", "NoDiabetes", "Diabetes", "Diabetes", "Diabetes"],
        ["NoDiabetes", "Diabetes", "Diabetes", "Diabetes", "NoDiabetes"],
    )
    assert matrix.as_dict() == {
        "NoDiabetes": {"NoDiabetes": 1, "Diabetes": 1},
        "Diabetes": {"NoDiabetes": 1, "Diabetes": 2},
    }
    assert matrix.total == 5
    frame = matrix.to_frame()
    assert frame.loc["Diabetes", "Diabetes"] == 2
    assert len(matrix.cells()) == 4
    with pytest.raises(KeyError):
        matrix.count("Maybe", "Diabetes")


def test_confusion_of_empty_input_is_zero():
    matrix = confusion_from_labels([], [])
    assert matrix.total == 0
    assert isinstance(matrix, ConfusionMatrix)


def test_heatmap_png(tmp_path):
    matrix = confusion_from_labels(["Diabetes", "NoDiabetes"], ["Diabetes", "Diabetes"])
    assert render_confusion_png(matrix).startswith(b"\x89PNG")
    path = save_confusion_png(matrix, tmp_path / "plots" / "cm.png")
    assert path.exists()
