# agents/ml/metrics.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Evaluation Harness                                           ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Confusion Counts at a Fixed Decision Threshold                        ║
║  ✓ Derived Rates (accuracy, precision, sensitivity, specificity,         ║
║    FPR, FNR, F1) with NaN for Zero Denominators                          ║
║  ✓ ROC Curve with Tied Scores Collapsed into One Point                   ║
║  ✓ Trapezoidal AUC                                                       ║
╚════════════════════════════════════════════════════════════════════════════╝

Positive class is "Approved" throughout. Label arrays may hold the class
names or a 0/1 encoding (1 = positive).

Decision rule: probability ≥ threshold → positive.

ROC sweep:
```
    sort rows by probability, descending
    threshold = +inf                       → (0, 0)
    for each distinct probability p:       → all rows with score ≥ p positive
        point (FP/N, TP/P)
    last point                             → (1, 1)
```
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.metrics import auc as trapezoid_area
from sklearn.metrics import confusion_matrix
from sklearn.metrics import roc_curve as sklearn_roc_curve

from core.exceptions import DegenerateCurveError, EncodingError
from core.schema import LOAN_SCHEMA, POSITIVE_LABEL

__all__ = [
    "ConfusionCounts",
    "RocCurve",
    "predict_labels",
    "confusion_counts",
    "roc_curve",
    "auc",
]

ArrayLike = Union[Sequence[Any], np.ndarray, pd.Series]


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Label Helpers
# ═══════════════════════════════════════════════════════════════════════════

_LABEL_LEVELS: Tuple[str, ...] = LOAN_SCHEMA.spec(LOAN_SCHEMA.label_column).levels
_MAX_REPORTED_VALUES = 10


def _positive_mask(labels: ArrayLike, positive_label: str = POSITIVE_LABEL) -> np.ndarray:
    """
    Boolean array, True where the label is the positive class.

    Accepts the declared class names or a 0/1 encoding. Anything else is
    rejected rather than counted as negative.

    Raises:
        EncodingError: Missing or unrecognized label values
    """
    if isinstance(labels, pd.Series):
        values = labels.astype(object).to_numpy()
    else:
        values = np.asarray(labels, dtype=object).ravel()

    series = pd.Series(values, dtype=object)
    missing = series.isna()
    if missing.any():
        raise EncodingError(
            "Labels contain missing values",
            details={"rows": np.flatnonzero(missing.to_numpy()).tolist()[:_MAX_REPORTED_VALUES]}
        )

    names = set(_LABEL_LEVELS) | {positive_label}
    known = series.map(lambda v: v in names if isinstance(v, str) else v in (0, 1))
    if not known.all():
        bad = [str(v) for v in pd.unique(series[~known])][:_MAX_REPORTED_VALUES]
        raise EncodingError(
            f"Unrecognized label value(s): {bad}",
            details={"values": bad}
        )

    return np.fromiter(
        (v == positive_label if isinstance(v, str) else v == 1 for v in values),
        dtype=bool,
        count=len(values)
    )


def _as_scores(probabilities: ArrayLike) -> np.ndarray:
    scores = np.asarray(probabilities, dtype=np.float64).ravel()
    if np.isnan(scores).any():
        raise ValueError("Probabilities contain NaN")
    return scores


def _ratio(num: int, den: int) -> float:
    return float(num) / den if den else float("nan")


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Confusion Counts
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ConfusionCounts:
    """
    TP / TN / FP / FN for the positive class.

    Every derived rate is a pure function of the four counts and is ``NaN``
    when its denominator is zero.
    """
    tp: int
    tn: int
    fp: int
    fn: int

    @property
    def total(self) -> int:
        return self.tp + self.tn + self.fp + self.fn

    @property
    def accuracy(self) -> float:
        return _ratio(self.tp + self.tn, self.total)

    @property
    def precision(self) -> float:
        return _ratio(self.tp, self.tp + self.fp)

    @property
    def sensitivity(self) -> float:
        return _ratio(self.tp, self.tp + self.fn)

    recall = sensitivity

    @property
    def specificity(self) -> float:
        return _ratio(self.tn, self.tn + self.fp)

    @property
    def false_positive_rate(self) -> float:
        return _ratio(self.fp, self.fp + self.tn)

    @property
    def false_negative_rate(self) -> float:
        return _ratio(self.fn, self.fn + self.tp)

    @property
    def f1(self) -> float:
        p, r = self.precision, self.sensitivity
        if math.isnan(p) or math.isnan(r) or p + r == 0:
            return float("nan")
        return 2 * p * r / (p + r)

    def rates(self) -> Dict[str, float]:
        return {
            "accuracy": self.accuracy,
            "precision": self.precision,
            "sensitivity": self.sensitivity,
            "specificity": self.specificity,
            "fpr": self.false_positive_rate,
            "fnr": self.false_negative_rate,
            "f1": self.f1,
        }

    def to_dict(self) -> Dict[str, int]:
        return {"tp": self.tp, "tn": self.tn, "fp": self.fp, "fn": self.fn}

    def to_matrix(self) -> List[List[int]]:
        """``[[TN, FP], [FN, TP]]`` (rows = true class, negative first)."""
        return [[self.tn, self.fp], [self.fn, self.tp]]


def predict_labels(
    probabilities: ArrayLike,
    threshold: float = 0.5,
    labels: Optional[Tuple[str, str]] = None
) -> np.ndarray:
    """
    Apply the decision rule ``probability ≥ threshold → positive``.

    Args:
        probabilities: Positive-class probability per row
        threshold: Decision threshold
        labels: Optional ``(negative, positive)`` names; 0/1 ints otherwise
    """
    positive = _as_scores(probabilities) >= threshold
    if labels is None:
        return positive.astype(np.int64)
    negative_name, positive_name = labels
    return np.where(positive, positive_name, negative_name).astype(object)


def confusion_counts(
    true_labels: ArrayLike,
    predicted_labels: ArrayLike,
    positive_label: str = POSITIVE_LABEL
) -> ConfusionCounts:
    """Accumulate TP/TN/FP/FN; positive = ``positive_label`` or 1."""
    truth = _positive_mask(true_labels, positive_label)
    pred = _positive_mask(predicted_labels, positive_label)

    if truth.shape != pred.shape:
        raise ValueError(
            f"Length mismatch: {truth.size} true labels vs {pred.size} predictions"
        )

    tn, fp, fn, tp = confusion_matrix(truth, pred, labels=[False, True]).ravel()
    return ConfusionCounts(tp=int(tp), tn=int(tn), fp=int(fp), fn=int(fn))


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: ROC / AUC
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RocCurve:
    """ROC points ordered by decreasing threshold; first point is (0, 0) at +inf."""
    fpr: np.ndarray
    tpr: np.ndarray
    thresholds: np.ndarray
    n_pos: int
    n_neg: int

    def __len__(self) -> int:
        return int(self.fpr.size)

    @property
    def points(self) -> List[Tuple[float, float]]:
        return [(float(f), float(t)) for f, t in zip(self.fpr, self.tpr)]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fpr": self.fpr.tolist(),
            "tpr": self.tpr.tolist(),
            # +inf is not valid JSON
            "thresholds": [None if math.isinf(t) else float(t) for t in self.thresholds],
            "n_pos": self.n_pos,
            "n_neg": self.n_neg,
        }


def roc_curve(
    true_labels: ArrayLike,
    predicted_probabilities: ArrayLike,
    positive_label: str = POSITIVE_LABEL
) -> RocCurve:
    """
    ROC curve from (true label, positive-class probability) pairs.

    Rows sharing a probability are counted together in one point, so the
    curve does not depend on the order of tied rows.

    Raises:
        DegenerateCurveError: All rows share one true class
    """
    truth = _positive_mask(true_labels, positive_label)
    scores = _as_scores(predicted_probabilities)

    if truth.size != scores.size:
        raise ValueError(
            f"Length mismatch: {truth.size} labels vs {scores.size} probabilities"
        )

    n_pos = int(truth.sum())
    n_neg = int(truth.size - n_pos)

    if n_pos == 0 or n_neg == 0:
        raise DegenerateCurveError(
            "ROC curve undefined: all rows share one true class",
            details={"n_pos": n_pos, "n_neg": n_neg}
        )

    fpr, tpr, thresholds = sklearn_roc_curve(
        truth.astype(np.int64), scores, pos_label=1, drop_intermediate=False
    )

    return RocCurve(
        fpr=fpr,
        tpr=tpr,
        # Older scikit-learn releases use max(score) + 1 for the first point
        thresholds=np.r_[np.inf, thresholds[1:]],
        n_pos=n_pos,
        n_neg=n_neg,
    )


def auc(curve: RocCurve) -> float:
    """
    Trapezoidal area under the ROC curve, from (0, 0) to (1, 1).

    Raises:
        DegenerateCurveError: Single-class curve
    """
    if curve.n_pos == 0 or curve.n_neg == 0 or len(curve) < 2:
        raise DegenerateCurveError(
            "AUC undefined: all rows share one true class",
            details={"n_pos": curve.n_pos, "n_neg": curve.n_neg}
        )

    area = float(trapezoid_area(curve.fpr, curve.tpr))
    return min(1.0, max(0.0, area))
