# agents/ml/ml_orchestrator.py
"""
LoanScope - ML Orchestrator

Runs the model stage for every requested classifier:
- tune on the training partition (or keep registry defaults),
- fit the final model through the classifier interface,
- score the evaluation partition and build a ``ModelReport``,
- pick a recommendation.

A failure in any model is fatal (``ModelTrainingError``); there is no
partial-success mode and no retry.

Contract:
result.data = {
  "reports": List[ModelReport],          # registry order of the request
  "recommended": str,                    # model id
  "tuning": {model_id: TuningResult.to_dict()},
  "summary": {
      "models_trained": int, "metric": str, "best_score": float,
      "timing_sec": {model_id: float, "total": float},
      "seed": int, "n_train": int, "n_eval": int, "version": str
  }
}
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from loguru import logger

from agents.ml.classifiers import get_classifier
from agents.ml.hyperparameter_tuner import TuningConfig, tune_hyperparameters
from agents.ml.model_evaluator import ModelReport, evaluate_predictions, recommend_model
from config.model_registry import is_model_supported
from config.settings import settings
from core.base_agent import AgentResult, BaseAgent
from core.exceptions import ConfigurationError, ModelTrainingError

__all__ = ["MLConfig", "MLOrchestrator", "train_and_evaluate"]
__version__ = "1.0.0"


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Config
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class MLConfig:
    """Model-stage settings; ``None`` fields fall back to ``settings``."""
    models: Optional[List[str]] = None
    tuning: Optional[TuningConfig] = None
    threshold: Optional[float] = None
    positive_label: Optional[str] = None
    seed: Optional[int] = None
    recommendation_metric: Optional[str] = None

    def resolved(self) -> "MLConfig":
        seed = settings.RANDOM_STATE if self.seed is None else self.seed
        return MLConfig(
            models=list(self.models or settings.default_models),
            tuning=self.tuning or TuningConfig.from_settings(seed=seed),
            threshold=settings.DECISION_THRESHOLD if self.threshold is None else self.threshold,
            positive_label=self.positive_label or settings.POSITIVE_LABEL,
            seed=seed,
            recommendation_metric=self.recommendation_metric or settings.RECOMMENDATION_METRIC,
        )


@dataclass
class _ModelRun:
    report: ModelReport
    tuning: Dict[str, Any] = field(default_factory=dict)
    elapsed: float = 0.0


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Single Model
# ═══════════════════════════════════════════════════════════════════════════

def _run_model(
    model_id: str,
    X_train: pd.DataFrame,
    y_train: np.ndarray,
    X_eval: pd.DataFrame,
    y_eval: np.ndarray,
    config: MLConfig
) -> _ModelRun:
    t0 = time.perf_counter()
    classifier = get_classifier(model_id, seed=config.seed)

    tuning = tune_hyperparameters(classifier, X_train, y_train, config.tuning)
    handle = classifier.fit(X_train, y_train, tuning.best_params)
    proba = classifier.predict(handle, X_eval)

    report = evaluate_predictions(
        model_id,
        y_eval,
        proba,
        threshold=config.threshold,
        positive_label=config.positive_label,
        best_params=tuning.best_params,
        cv_score=tuning.best_score,
        fit_time=handle.fit_time_s,
    )
    return _ModelRun(report=report, tuning=tuning.to_dict(), elapsed=time.perf_counter() - t0)


def train_and_evaluate(
    X_train: pd.DataFrame,
    y_train: np.ndarray,
    X_eval: pd.DataFrame,
    y_eval: np.ndarray,
    config: Optional[MLConfig] = None
) -> List[ModelReport]:
    """Reports for every configured model, in request order."""
    config = (config or MLConfig()).resolved()
    return [
        _run_model(m, X_train, y_train, X_eval, y_eval, config).report
        for m in config.models
    ]


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Orchestrator
# ═══════════════════════════════════════════════════════════════════════════

class MLOrchestrator(BaseAgent):
    """
    Orchestrates tuning, fitting and evaluation of all requested models.
    """

    version: str = __version__

    def __init__(self, config: Optional[MLConfig] = None) -> None:
        super().__init__(
            name="MLOrchestrator",
            description="Tune, fit and evaluate every requested classifier"
        )
        self.config = (config or MLConfig()).resolved()
        self._log = logger.bind(agent="MLOrchestrator", version=self.version)

    def validate_input(self, **kwargs: Any) -> bool:
        unknown = [m for m in self.config.models if not is_model_supported(m)]
        if unknown:
            raise ConfigurationError(
                f"Unknown model id(s): {unknown}",
                details={"models": list(self.config.models)}
            )
        if len(set(self.config.models)) != len(self.config.models):
            raise ConfigurationError(
                "Model ids must be unique",
                details={"models": list(self.config.models)}
            )

        X_train = kwargs.get("X_train")
        X_eval = kwargs.get("X_eval")
        if X_train is None or X_eval is None:
            raise ModelTrainingError("Both X_train and X_eval are required")
        if list(X_train.columns) != list(X_eval.columns):
            raise ModelTrainingError(
                "Training and evaluation features differ",
                details={"train": list(X_train.columns), "eval": list(X_eval.columns)}
            )
        return True

    def execute(
        self,
        X_train: pd.DataFrame,
        y_train: np.ndarray,
        X_eval: pd.DataFrame,
        y_eval: np.ndarray,
        **kwargs: Any
    ) -> AgentResult:
        result = AgentResult(agent_name=self.name)
        t_start = time.perf_counter()
        cfg = self.config

        self._log.info(
            f"🔧 Training {len(cfg.models)} model(s) | "
            f"strategy={cfg.tuning.strategy.value} | seed={cfg.seed}"
        )

        reports: List[ModelReport] = []
        tuning: Dict[str, Dict[str, Any]] = {}
        timing: Dict[str, float] = {}

        for model_id in cfg.models:
            self._emit_progress("model_start", extra={"model": model_id})
            run = _run_model(model_id, X_train, y_train, X_eval, y_eval, cfg)

            reports.append(run.report)
            tuning[model_id] = run.tuning
            timing[model_id] = round(run.elapsed, 4)

            self._log.info(
                f"{model_id}: auc={run.report.auc:.4f} | "
                f"acc={run.report.accuracy:.4f} | time={run.elapsed:.2f}s"
            )

        best = recommend_model(reports, metric=cfg.recommendation_metric)
        timing["total"] = round(time.perf_counter() - t_start, 4)

        result.data = {
            "reports": reports,
            "recommended": best.model_id if best else None,
            "tuning": tuning,
            "summary": {
                "models_trained": len(reports),
                "metric": cfg.recommendation_metric,
                "best_score": best.metric(cfg.recommendation_metric) if best else None,
                "timing_sec": timing,
                "seed": cfg.seed,
                "n_train": int(len(X_train)),
                "n_eval": int(len(X_eval)),
                "version": self.version,
            },
        }

        self._log.success(
            f"✓ Models evaluated | n={len(reports)} | "
            f"recommended={result.data['recommended']} | "
            f"time={timing['total']:.2f}s"
        )
        return result
