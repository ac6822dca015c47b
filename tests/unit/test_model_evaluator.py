"""
LoanScope - Unit Tests for Model Evaluation and Recommendation
"""

import json
import math

import pandas as pd
import pytest

from agents.ml.metrics import ConfusionCounts, roc_curve
from agents.ml.model_evaluator import (
    ModelEvaluator,
    ModelReport,
    evaluate_predictions,
    recommend_model,
    reports_to_frame,
    summarize,
    write_reports_csv,
    write_reports_json,
)


TRUTH = ["Approved", "Approved", "Not Approved", "Approved", "Not Approved", "Not Approved"]
PROBS = [0.9, 0.7, 0.6, 0.4, 0.2, 0.1]


def _report(model_id: str, auc_value: float, counts=(4, 3, 2, 1)) -> ModelReport:
    tp, tn, fp, fn = counts
    return ModelReport(
        model_id=model_id,
        name=model_id.upper(),
        confusion=ConfusionCounts(tp=tp, tn=tn, fp=fp, fn=fn),
        roc=roc_curve([1, 0], [0.8, 0.2]),
        auc=auc_value,
    )


class TestEvaluatePredictions:
    """Tests for evaluate_predictions"""

    def test_report(self):
        report = evaluate_predictions("lr", TRUTH, PROBS, best_params={"C": 1.0})

        assert report.name == "Logistic Regression"
        assert report.confusion == ConfusionCounts(tp=2, tn=2, fp=1, fn=1)
        assert report.accuracy == pytest.approx(4 / 6)
        assert report.auc == pytest.approx(8 / 9)
        assert report.best_params == {"C": 1.0}
        assert math.isnan(report.cv_score)

    def test_threshold(self):
        report = evaluate_predictions("lr", TRUTH, PROBS, threshold=0.65)
        assert report.confusion == ConfusionCounts(tp=2, tn=3, fp=0, fn=1)
        assert report.precision == 1.0

    def test_metric_lookup(self):
        report = evaluate_predictions("nb", TRUTH, PROBS)
        assert report.metric("specificity") == report.specificity
        with pytest.raises(ValueError):
            report.metric("fit_time")

    def test_to_dict_is_json_serializable(self):
        payload = evaluate_predictions("rf", TRUTH, PROBS).to_dict()

        assert payload["cv_score"] is None
        assert payload["confusion_matrix"] == [[2, 1], [1, 2]]
        assert payload["roc"]["fpr"][0] == 0.0
        json.dumps(payload)


class TestRecommendModel:
    """Tests for recommend_model"""

    def test_highest_auc_wins(self):
        reports = [_report("lr", 0.71), _report("rf", 0.83), _report("nb", 0.79)]
        assert recommend_model(reports).model_id == "rf"

    def test_ties_follow_registry_order(self):
        reports = [_report("gbc", 0.8), _report("knn", 0.8), _report("svm", 0.8)]
        assert recommend_model(reports).model_id == "knn"

    def test_nan_ranks_last(self):
        reports = [
            _report("lr", 0.6, counts=(0, 5, 0, 5)),
            _report("nb", 0.5, counts=(1, 4, 1, 4)),
        ]
        # lr never predicts positive: precision undefined
        assert recommend_model(reports, metric="precision").model_id == "nb"

    def test_other_metric(self):
        reports = [_report("lr", 0.9, counts=(1, 1, 4, 4)), _report("nb", 0.5)]
        assert recommend_model(reports, metric="accuracy").model_id == "nb"

    def test_empty(self):
        assert recommend_model([]) is None

    def test_unknown_metric(self):
        with pytest.raises(ValueError):
            recommend_model([_report("lr", 0.5)], metric="logloss")


class TestExport:
    """Tests for tabular and JSON exports"""

    def test_frame(self):
        frame = reports_to_frame([_report("lr", 0.7), _report("nb", 0.6)])
        assert frame["model_id"].tolist() == ["lr", "nb"]
        assert frame.loc[0, "tp"] == 4
        assert frame.columns[0] == "model_id"

    def test_write_json(self, tmp_path):
        path = write_reports_json(
            [_report("lr", 0.7)],
            tmp_path / "out" / "metrics.json",
            recommended="lr",
            extra={"run_id": "abc"},
        )
        payload = json.loads(path.read_text(encoding="utf-8"))

        assert payload["recommended"] == "lr"
        assert payload["run_id"] == "abc"
        assert payload["models"][0]["auc"] == 0.7

    def test_write_csv(self, tmp_path):
        path = write_reports_csv([_report("lr", 0.7), _report("rf", 0.9)], tmp_path / "metrics.csv")
        frame = pd.read_csv(path)
        assert frame["model_id"].tolist() == ["lr", "rf"]

    def test_summarize_orders_by_auc(self):
        text = summarize([_report("lr", 0.7), _report("rf", 0.9)])
        assert text.index("rf") < text.index("lr")


class TestModelEvaluatorAgent:
    """Tests for the ModelEvaluator agent"""

    def test_run(self):
        result = ModelEvaluator(threshold=0.5).run(
            model_id="svm", true_labels=TRUTH, probabilities=PROBS
        )

        assert result.is_success()
        assert result.data["report"].model_id == "svm"
        assert result.data["metrics"]["auc"] == pytest.approx(8 / 9)
