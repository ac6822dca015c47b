# agents/ml/model_evaluator.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Model Evaluator                                              ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  Turns evaluation-partition probabilities into a per-model report:        ║
║    ✓ Confusion counts at the decision threshold                           ║
║    ✓ Accuracy, precision, sensitivity, specificity, FPR, FNR, F1          ║
║    ✓ ROC curve + AUC                                                      ║
║    ✓ Tabular export (DataFrame / CSV) and JSON export                     ║
║    ✓ Recommendation: best metric wins, NaN last, registry order on ties   ║
╚════════════════════════════════════════════════════════════════════════════╝
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from loguru import logger

from agents.ml.metrics import (
    ConfusionCounts,
    RocCurve,
    auc,
    confusion_counts,
    predict_labels,
    roc_curve,
)
from config.model_registry import get_model_info, registry_rank
from config.settings import settings
from core.base_agent import AgentResult, BaseAgent
from core.schema import POSITIVE_LABEL
from core.utils import format_metric, save_json

__all__ = [
    "RANKABLE_METRICS",
    "ModelReport",
    "evaluate_predictions",
    "reports_to_frame",
    "write_reports_json",
    "write_reports_csv",
    "recommend_model",
    "ModelEvaluator",
    "summarize",
]
__version__ = "1.0.0"

RANKABLE_METRICS = ("auc", "accuracy", "precision", "sensitivity", "specificity", "f1")

# Column order of the tabular export
_TABLE_COLUMNS = [
    "model_id", "name", "auc", "accuracy", "precision", "sensitivity",
    "specificity", "fpr", "fnr", "f1", "tp", "tn", "fp", "fn",
    "threshold", "cv_score", "fit_time",
]


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Report
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class ModelReport:
    """Evaluation of one fitted classifier on the evaluation partition."""
    model_id: str
    name: str
    confusion: ConfusionCounts
    roc: RocCurve
    auc: float
    threshold: float = 0.5
    best_params: Dict[str, Any] = field(default_factory=dict)
    cv_score: float = float("nan")
    fit_time: float = 0.0

    @property
    def accuracy(self) -> float:
        return self.confusion.accuracy

    @property
    def precision(self) -> float:
        return self.confusion.precision

    @property
    def sensitivity(self) -> float:
        return self.confusion.sensitivity

    @property
    def specificity(self) -> float:
        return self.confusion.specificity

    @property
    def fpr(self) -> float:
        return self.confusion.false_positive_rate

    @property
    def fnr(self) -> float:
        return self.confusion.false_negative_rate

    @property
    def f1(self) -> float:
        return self.confusion.f1

    def metric(self, name: str) -> float:
        if name not in RANKABLE_METRICS:
            raise ValueError(
                f"Unknown metric '{name}'. Allowed: {', '.join(RANKABLE_METRICS)}"
            )
        return float(getattr(self, name))

    def summary_row(self) -> Dict[str, Any]:
        """Flat scalar view used by the tabular export."""
        return {
            "model_id": self.model_id,
            "name": self.name,
            "auc": self.auc,
            **self.confusion.rates(),
            **self.confusion.to_dict(),
            "threshold": self.threshold,
            "cv_score": self.cv_score,
            "fit_time": round(self.fit_time, 4),
        }

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dictionary; NaN becomes None."""
        out = self.summary_row()
        out["confusion_matrix"] = self.confusion.to_matrix()
        out["best_params"] = dict(self.best_params)
        out["roc"] = self.roc.to_dict()
        return {
            k: (None if isinstance(v, float) and math.isnan(v) else v)
            for k, v in out.items()
        }


def evaluate_predictions(
    model_id: str,
    true_labels: Any,
    probabilities: Any,
    *,
    threshold: float = 0.5,
    positive_label: str = POSITIVE_LABEL,
    best_params: Optional[Dict[str, Any]] = None,
    cv_score: float = float("nan"),
    fit_time: float = 0.0
) -> ModelReport:
    """
    Build a ``ModelReport`` from true labels and positive-class probabilities.

    Raises:
        DegenerateCurveError: Evaluation labels hold a single class
    """
    proba = np.asarray(probabilities, dtype=np.float64)
    predicted = predict_labels(proba, threshold=threshold)
    counts = confusion_counts(true_labels, predicted, positive_label)
    curve = roc_curve(true_labels, proba, positive_label)

    return ModelReport(
        model_id=model_id,
        name=get_model_info(model_id).get("name", model_id),
        confusion=counts,
        roc=curve,
        auc=auc(curve),
        threshold=float(threshold),
        best_params=dict(best_params or {}),
        cv_score=float(cv_score),
        fit_time=float(fit_time),
    )


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Export
# ═══════════════════════════════════════════════════════════════════════════

def reports_to_frame(reports: Sequence[ModelReport]) -> pd.DataFrame:
    """One row per model, in the order given."""
    rows = [r.summary_row() for r in reports]
    return pd.DataFrame(rows, columns=_TABLE_COLUMNS)


def write_reports_json(
    reports: Sequence[ModelReport],
    filepath: Union[str, Path],
    *,
    recommended: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None
) -> Path:
    filepath = Path(filepath)
    payload: Dict[str, Any] = {
        "recommended": recommended,
        "models": [r.to_dict() for r in reports],
    }
    if extra:
        payload.update(extra)
    save_json(payload, filepath)
    return filepath


def write_reports_csv(reports: Sequence[ModelReport], filepath: Union[str, Path]) -> Path:
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    reports_to_frame(reports).to_csv(filepath, index=False)
    logger.info(f"Saved CSV to {filepath}")
    return filepath


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Recommendation
# ═══════════════════════════════════════════════════════════════════════════

def recommend_model(reports: Sequence[ModelReport], metric: str = "auc") -> Optional[ModelReport]:
    """
    🏆 **Pick the Best Model**

    Highest ``metric`` wins; NaN ranks last; equal scores fall back to
    registry order. ``None`` for an empty list.
    """
    if metric not in RANKABLE_METRICS:
        raise ValueError(
            f"Unknown metric '{metric}'. Allowed: {', '.join(RANKABLE_METRICS)}"
        )
    if not reports:
        return None

    def sort_key(report: ModelReport):
        value = report.metric(metric)
        missing = math.isnan(value)
        return (missing, 0.0 if missing else -value, registry_rank(report.model_id))

    return sorted(reports, key=sort_key)[0]


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Agent
# ═══════════════════════════════════════════════════════════════════════════

class ModelEvaluator(BaseAgent):
    """
    📊 **Model Evaluator Agent**

    Evaluates one model's probabilities on the evaluation partition.
    ``result.data`` holds ``report`` (a ``ModelReport``) and ``metrics``.
    """

    version: str = __version__

    def __init__(
        self,
        threshold: Optional[float] = None,
        positive_label: Optional[str] = None
    ) -> None:
        super().__init__(
            name="ModelEvaluator",
            description="Confusion metrics, ROC and AUC on the evaluation partition"
        )
        self.threshold = settings.DECISION_THRESHOLD if threshold is None else threshold
        self.positive_label = positive_label or settings.POSITIVE_LABEL
        self._log = logger.bind(agent="ModelEvaluator", version=self.version)

    def execute(
        self,
        model_id: str,
        true_labels: Any,
        probabilities: Any,
        best_params: Optional[Dict[str, Any]] = None,
        cv_score: float = float("nan"),
        fit_time: float = 0.0,
        **kwargs: Any
    ) -> AgentResult:
        result = AgentResult(agent_name=self.name)

        report = evaluate_predictions(
            model_id,
            true_labels,
            probabilities,
            threshold=self.threshold,
            positive_label=self.positive_label,
            best_params=best_params,
            cv_score=cv_score,
            fit_time=fit_time,
        )

        result.data = {"report": report, "metrics": report.to_dict()}

        self._log.success(
            f"✓ Evaluation complete | model={model_id} | "
            f"auc={report.auc:.4f} | acc={report.accuracy:.4f}"
        )
        return result


def summarize(reports: List[ModelReport]) -> str:
    """Plain-text leaderboard, best AUC first."""
    frame = reports_to_frame(reports).sort_values("auc", ascending=False, na_position="last")
    cols = ["model_id", "auc", "accuracy", "precision", "sensitivity", "specificity", "f1"]
    return frame[cols].to_string(index=False, float_format=format_metric)
