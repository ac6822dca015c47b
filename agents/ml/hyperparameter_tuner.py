# agents/ml/hyperparameter_tuner.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Hyperparameter Tuner                                         ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  Cross-validated search over registry search spaces:                       ║
║    ✓ 3 strategies (random_search, grid_search, none)                      ║
║    ✓ Stratified, shuffled, seeded K-fold splitter                         ║
║    ✓ ROC AUC scoring, best trial by max mean CV score                     ║
║    ✓ Parallel trials through joblib (n_jobs)                              ║
║    ✓ No global random state                                               ║
╚════════════════════════════════════════════════════════════════════════════╝

Search spaces live in ``config.model_registry``; they are finite lists, so
random search samples without replacement and is capped at the grid size.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from loguru import logger
from sklearn.model_selection import GridSearchCV, RandomizedSearchCV, StratifiedKFold

from agents.ml.classifiers import SklearnClassifier, strip_param_prefix
from config.settings import settings
from core.base_agent import AgentResult, BaseAgent
from core.exceptions import ModelTrainingError, exception_context

__all__ = [
    "TuningStrategy",
    "TuningConfig",
    "TuningResult",
    "HyperparameterTuner",
    "tune_hyperparameters",
]
__version__ = "1.0.0"


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Enumerations
# ═══════════════════════════════════════════════════════════════════════════

class TuningStrategy(str, Enum):
    """Hyperparameter tuning strategies."""
    RANDOM_SEARCH = "random_search"
    GRID_SEARCH = "grid_search"
    NONE = "none"


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Data Classes
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TuningConfig:
    """
    Configuration for hyperparameter tuning.

    Attributes:
        strategy: Tuning strategy to use
        n_iter: Candidates sampled by random search
        cv_folds: Stratified cross-validation folds
        n_jobs: Parallel trials (-1 = all cores)
        seed: Seeds both the fold shuffle and candidate sampling
        scoring: scikit-learn scorer name
    """
    strategy: TuningStrategy = TuningStrategy.RANDOM_SEARCH
    n_iter: int = 10
    cv_folds: int = 5
    n_jobs: int = 1
    seed: int = 42
    scoring: str = "roc_auc"

    def __post_init__(self) -> None:
        object.__setattr__(self, "strategy", TuningStrategy(self.strategy))
        if self.n_iter < 1:
            raise ValueError(f"n_iter must be >= 1 (got {self.n_iter})")
        if self.cv_folds < 2:
            raise ValueError(f"cv_folds must be >= 2 (got {self.cv_folds})")

    @classmethod
    def from_settings(cls, **overrides: Any) -> "TuningConfig":
        """Config built from ``settings``; keyword overrides win."""
        values: Dict[str, Any] = {
            "strategy": settings.TUNING_STRATEGY,
            "n_iter": settings.TUNING_N_ITER,
            "cv_folds": settings.CV_FOLDS,
            "n_jobs": settings.N_JOBS,
            "seed": settings.RANDOM_STATE,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy": self.strategy.value,
            "n_iter": self.n_iter,
            "cv_folds": self.cv_folds,
            "n_jobs": self.n_jobs,
            "seed": self.seed,
            "scoring": self.scoring,
        }


@dataclass
class TuningResult:
    """
    Results from hyperparameter tuning.

    ``best_params`` use the estimator's own parameter names (no pipeline
    prefix). ``best_score`` is NaN when no search ran.
    """
    model_id: str
    best_params: Dict[str, Any]
    best_score: float
    strategy: TuningStrategy
    n_candidates: int
    cv_folds: int
    tuning_time: float = 0.0
    cv_results: Optional[pd.DataFrame] = field(default=None, repr=False)

    @property
    def searched(self) -> bool:
        return self.strategy != TuningStrategy.NONE

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (excluding the raw CV table)."""
        return {
            "model_id": self.model_id,
            "best_params": self.best_params,
            "best_score": None if math.isnan(self.best_score) else float(self.best_score),
            "strategy": self.strategy.value,
            "n_candidates": self.n_candidates,
            "cv_folds": self.cv_folds,
            "tuning_time": round(self.tuning_time, 4),
        }


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Utility Functions
# ═══════════════════════════════════════════════════════════════════════════

def _grid_size(space: Dict[str, Any]) -> int:
    size = 1
    for values in space.values():
        size *= len(values)
    return size


def _effective_folds(labels: np.ndarray, requested: int, model_id: str) -> int:
    """Fold count the smallest class can support."""
    _, counts = np.unique(labels, return_counts=True)
    smallest = int(counts.min()) if counts.size else 0

    if counts.size < 2 or smallest < 2:
        raise ModelTrainingError(
            f"Cannot cross-validate '{model_id}': each class needs at least 2 rows",
            details={"model": model_id, "class_counts": counts.tolist()}
        )

    if smallest < requested:
        logger.warning(
            f"⚠ Reducing CV folds for {model_id} from {requested} to {smallest} "
            f"(smallest class has {smallest} rows)"
        )
        return smallest
    return requested


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Pure Function
# ═══════════════════════════════════════════════════════════════════════════

def tune_hyperparameters(
    classifier: SklearnClassifier,
    features: pd.DataFrame,
    labels: np.ndarray,
    config: Optional[TuningConfig] = None
) -> TuningResult:
    """
    🎯 **Tune a Classifier**

    Runs the configured search on the training partition only and returns
    the best candidate by mean cross-validated ROC AUC. With strategy
    ``none`` the registry defaults are returned untouched.

    Raises:
        ModelTrainingError: A class too small to cross-validate, or the
            search itself failed
    """
    config = config or TuningConfig.from_settings()
    model_id = classifier.model_id

    if config.strategy == TuningStrategy.NONE:
        return TuningResult(
            model_id=model_id,
            best_params={},
            best_score=float("nan"),
            strategy=TuningStrategy.NONE,
            n_candidates=0,
            cv_folds=0,
        )

    y = np.asarray(labels)
    n_splits = _effective_folds(y, config.cv_folds, model_id)
    cv = StratifiedKFold(n_splits=n_splits, shuffle=True, random_state=config.seed)
    space = classifier.search_space(prefixed=True)
    estimator = classifier.build_estimator()

    if config.strategy == TuningStrategy.GRID_SEARCH:
        search = GridSearchCV(
            estimator=estimator,
            param_grid=space,
            scoring=config.scoring,
            cv=cv,
            n_jobs=config.n_jobs,
            refit=False,
            error_score="raise",
        )
    else:
        search = RandomizedSearchCV(
            estimator=estimator,
            param_distributions=space,
            n_iter=min(config.n_iter, _grid_size(space)),
            scoring=config.scoring,
            cv=cv,
            n_jobs=config.n_jobs,
            refit=False,
            random_state=config.seed,
            error_score="raise",
        )

    logger.debug(
        f"Searching {model_id} | strategy={config.strategy.value} | "
        f"grid={_grid_size(space)} | folds={n_splits}"
    )
    t0 = time.perf_counter()

    with exception_context(
        to=ModelTrainingError,
        message=f"Hyperparameter search for '{model_id}' failed",
        details={"model": model_id, "strategy": config.strategy.value}
    ):
        search.fit(features, y)

    cv_results = pd.DataFrame(search.cv_results_)

    return TuningResult(
        model_id=model_id,
        best_params=strip_param_prefix(dict(search.best_params_)),
        best_score=float(search.best_score_),
        strategy=config.strategy,
        n_candidates=int(len(cv_results)),
        cv_folds=n_splits,
        tuning_time=time.perf_counter() - t0,
        cv_results=cv_results,
    )


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Agent
# ═══════════════════════════════════════════════════════════════════════════

class HyperparameterTuner(BaseAgent):
    """
    🎛️ **Hyperparameter Tuner Agent**

    ``result.data`` holds ``tuning`` (a ``TuningResult``) and ``telemetry``.
    """

    version: str = __version__

    def __init__(self, config: Optional[TuningConfig] = None) -> None:
        super().__init__(
            name="HyperparameterTuner",
            description="Cross-validated hyperparameter search"
        )
        self.config = config or TuningConfig.from_settings()
        self._log = logger.bind(agent="HyperparameterTuner", version=self.version)

    def execute(
        self,
        classifier: SklearnClassifier,
        features: pd.DataFrame,
        labels: np.ndarray,
        **kwargs: Any
    ) -> AgentResult:
        result = AgentResult(agent_name=self.name)

        self._log.info(
            f"🔧 Tuning {classifier.model_id} | strategy={self.config.strategy.value}"
        )
        tuning = tune_hyperparameters(classifier, features, labels, self.config)

        result.data = {"tuning": tuning, "telemetry": tuning.to_dict()}

        if tuning.searched:
            self._log.success(
                f"✓ Tuning completed | model={classifier.model_id} | "
                f"candidates={tuning.n_candidates} | "
                f"best_score={tuning.best_score:.4f} | "
                f"time={tuning.tuning_time:.2f}s"
            )
            self._log.info(f"Best params: {tuning.best_params}")
        return result
