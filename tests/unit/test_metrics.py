"""
LoanScope - Unit Tests for the Evaluation Harness
"""

import math

import numpy as np
import pandas as pd
import pytest
from sklearn.metrics import confusion_matrix, roc_auc_score

from agents.ml.metrics import (
    ConfusionCounts,
    auc,
    confusion_counts,
    predict_labels,
    roc_curve,
)
from core.exceptions import DegenerateCurveError, EncodingError


class TestConfusionCounts:
    """Tests for ConfusionCounts rates"""

    def test_reference_scenario(self):
        counts = ConfusionCounts(tp=40, tn=30, fp=5, fn=5)

        assert counts.total == 80
        assert counts.accuracy == pytest.approx(0.875)
        assert counts.precision == pytest.approx(0.8889, abs=1e-4)
        assert counts.specificity == pytest.approx(0.857, abs=1e-3)
        assert counts.sensitivity == pytest.approx(0.8889, abs=1e-4)
        assert counts.false_positive_rate == pytest.approx(1 - counts.specificity)
        assert counts.false_negative_rate == pytest.approx(1 - counts.sensitivity)
        assert counts.f1 == pytest.approx(0.8889, abs=1e-4)

    def test_zero_denominators_are_nan(self):
        """No predicted positives → precision undefined, not zero"""
        counts = ConfusionCounts(tp=0, tn=10, fp=0, fn=3)

        assert math.isnan(counts.precision)
        assert math.isnan(counts.f1)
        assert counts.sensitivity == 0.0
        assert counts.specificity == 1.0

    def test_empty(self):
        counts = ConfusionCounts(tp=0, tn=0, fp=0, fn=0)
        assert all(math.isnan(v) for v in counts.rates().values())

    def test_matrix_layout(self):
        assert ConfusionCounts(tp=4, tn=3, fp=2, fn=1).to_matrix() == [[3, 2], [1, 4]]


class TestConfusionFromLabels:
    """Tests for predict_labels and confusion_counts"""

    def test_threshold_is_inclusive(self):
        assert predict_labels([0.2, 0.5, 0.7]).tolist() == [0, 1, 1]
        assert predict_labels([0.2, 0.5, 0.7], threshold=0.6).tolist() == [0, 0, 1]

    def test_named_predictions(self):
        pred = predict_labels([0.1, 0.9], labels=("Not Approved", "Approved"))
        assert pred.tolist() == ["Not Approved", "Approved"]

    def test_counts_from_names(self):
        truth = ["Approved", "Approved", "Not Approved", "Not Approved", "Approved"]
        pred = ["Approved", "Not Approved", "Approved", "Not Approved", "Approved"]
        assert confusion_counts(truth, pred) == ConfusionCounts(tp=2, tn=1, fp=1, fn=1)

    def test_names_and_codes_agree(self):
        truth = pd.Series(pd.Categorical(
            ["Approved", "Not Approved", "Approved"],
            categories=["Not Approved", "Approved"]
        ))
        pred = np.array([1, 1, 0])
        assert confusion_counts(truth, pred) == confusion_counts([1, 0, 1], [1, 1, 0])

    def test_counts_sum_to_rows(self):
        rng = np.random.default_rng(0)
        truth = rng.integers(0, 2, size=50)
        pred = rng.integers(0, 2, size=50)
        assert confusion_counts(truth, pred).total == 50

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            confusion_counts([1, 0, 1], [1, 0])

    def test_missing_label(self):
        with pytest.raises(EncodingError):
            confusion_counts(["Approved", None], ["Approved", "Approved"])

    def test_unrecognized_class_name(self):
        with pytest.raises(EncodingError) as exc:
            confusion_counts(["Approved", "Yes", "Not Approved"], [1, 1, 0])
        assert exc.value.details["values"] == ["Yes"]

    def test_unrecognized_numeric_label(self):
        with pytest.raises(EncodingError) as exc:
            confusion_counts([1, 0, 2], [1, 0, 1])
        assert exc.value.details["values"] == ["2"]

    def test_matches_sklearn_confusion_matrix(self):
        rng = np.random.default_rng(3)
        truth = rng.integers(0, 2, size=60)
        pred = rng.integers(0, 2, size=60)

        counts = confusion_counts(truth, pred)
        assert counts.to_matrix() == confusion_matrix(truth, pred, labels=[0, 1]).tolist()


class TestRocCurve:
    """Tests for roc_curve"""

    def test_endpoints_and_monotone(self):
        rng = np.random.default_rng(1)
        truth = rng.integers(0, 2, size=40)
        probs = rng.random(40)
        curve = roc_curve(truth, probs)

        assert curve.points[0] == (0.0, 0.0)
        assert curve.points[-1] == (1.0, 1.0)
        assert np.all(np.diff(curve.fpr) >= 0)
        assert np.all(np.diff(curve.tpr) >= 0)
        assert math.isinf(curve.thresholds[0])
        assert np.all(np.diff(curve.thresholds[1:]) < 0)

    def test_ties_collapse_into_one_point(self):
        curve = roc_curve([1, 1, 0, 0], [0.9, 0.5, 0.5, 0.1])

        assert curve.points == [(0.0, 0.0), (0.0, 0.5), (0.5, 1.0), (1.0, 1.0)]
        assert curve.thresholds[1:].tolist() == [0.9, 0.5, 0.1]

    def test_tie_order_does_not_matter(self):
        a = roc_curve([1, 0, 1, 0], [0.5, 0.5, 0.8, 0.2])
        b = roc_curve([0, 1, 1, 0], [0.5, 0.5, 0.8, 0.2])
        assert a.points == b.points
        assert auc(a) == auc(b)

    def test_single_class_is_degenerate(self):
        with pytest.raises(DegenerateCurveError) as exc:
            roc_curve(["Approved"] * 4, [1.0, 1.0, 1.0, 1.0])
        assert exc.value.details["n_neg"] == 0

    def test_unrecognized_label(self):
        with pytest.raises(EncodingError):
            roc_curve(["Approved", "Maybe"], [0.7, 0.3])

    def test_nan_probability(self):
        with pytest.raises(ValueError):
            roc_curve([1, 0], [0.4, float("nan")])

    def test_to_dict_is_json_friendly(self):
        payload = roc_curve([1, 0], [0.7, 0.3]).to_dict()
        assert payload["thresholds"][0] is None
        assert payload["n_pos"] == 1


class TestAuc:
    """Tests for auc"""

    def test_hand_computed(self):
        assert auc(roc_curve([1, 1, 0, 0], [0.9, 0.5, 0.5, 0.1])) == pytest.approx(0.875)

    def test_perfect_and_inverted(self):
        assert auc(roc_curve([1, 1, 0, 0], [0.9, 0.8, 0.2, 0.1])) == 1.0
        assert auc(roc_curve([1, 1, 0, 0], [0.1, 0.2, 0.8, 0.9])) == 0.0

    def test_constant_scores(self):
        assert auc(roc_curve([1, 0, 1, 0], [0.5] * 4)) == pytest.approx(0.5)

    @pytest.mark.parametrize("seed", [0, 1, 2])
    def test_matches_sklearn(self, seed):
        """Rounded scores force ties; tie handling matches sklearn"""
        rng = np.random.default_rng(seed)
        truth = rng.integers(0, 2, size=120)
        probs = np.round(rng.random(120), 1)

        assert auc(roc_curve(truth, probs)) == pytest.approx(roc_auc_score(truth, probs))

    def test_bounds(self):
        rng = np.random.default_rng(9)
        for _ in range(5):
            value = auc(roc_curve(rng.integers(0, 2, size=30), rng.random(30)))
            assert 0.0 <= value <= 1.0
