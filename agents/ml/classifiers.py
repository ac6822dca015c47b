# agents/ml/classifiers.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Classifier Interface                                         ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Classifier Protocol: fit → ModelHandle, predict → P(positive)         ║
║  ✓ scikit-learn Adapter Driven by the Model Registry                     ║
║  ✓ Per-Model Scaling (StandardScaler inside the estimator pipeline)      ║
║  ✓ Explicit Seed Threading                                               ║
╚════════════════════════════════════════════════════════════════════════════╝

Classifiers are black boxes. The pipeline hands them the encoded numeric
feature frame and a 0/1 target, and receives only the probability of the
positive class per row. Scale-sensitive models (lr, knn, svm) carry their
own ``StandardScaler``; nothing upstream scales features.

Usage:
```python
    from agents.ml.classifiers import get_classifier

    clf = get_classifier("svm", seed=42)
    handle = clf.fit(X_train, y_train, {"C": 3.0})
    proba = clf.predict(handle, X_eval)
```
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from functools import lru_cache
from importlib import import_module
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

import numpy as np
import pandas as pd
from loguru import logger
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from config.model_registry import available_models, get_model_info
from core.exceptions import ConfigurationError, ModelTrainingError, exception_context

__version__ = "1.0.0"

__all__ = [
    "Classifier",
    "ModelHandle",
    "SklearnClassifier",
    "get_classifier",
    "strip_param_prefix",
]

PIPELINE_STEP = "clf"
_PREFIX = f"{PIPELINE_STEP}__"


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Protocol & Handle
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class ModelHandle:
    """A fitted model plus what is needed to describe it."""
    model_id: str
    estimator: Any
    params: Dict[str, Any] = field(default_factory=dict)
    feature_names: List[str] = field(default_factory=list)
    fit_time_s: float = 0.0


@runtime_checkable
class Classifier(Protocol):
    """Anything that can be fitted on encoded features and score rows."""

    model_id: str

    def fit(
        self,
        features: pd.DataFrame,
        labels: np.ndarray,
        hyperparameters: Optional[Dict[str, Any]] = None
    ) -> ModelHandle:
        ...

    def predict(self, handle: ModelHandle, features: pd.DataFrame) -> np.ndarray:
        ...


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Helpers
# ═══════════════════════════════════════════════════════════════════════════

@lru_cache(maxsize=None)
def _estimator_class(dotted_path: str) -> type:
    module_name, _, class_name = dotted_path.rpartition(".")
    return getattr(import_module(module_name), class_name)


def strip_param_prefix(params: Dict[str, Any]) -> Dict[str, Any]:
    """``{"clf__C": 1.0}`` → ``{"C": 1.0}``."""
    return {
        (k[len(_PREFIX):] if k.startswith(_PREFIX) else k): v
        for k, v in params.items()
    }


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: scikit-learn Adapter
# ═══════════════════════════════════════════════════════════════════════════

class SklearnClassifier:
    """
    🧠 **Registry-Driven scikit-learn Classifier**

    Args:
        model_id: Registry id (lr, nb, knn, rf, svm, gbc, xgboost)
        seed: Passed to the estimator's seed parameter when it has one

    Raises:
        ConfigurationError: Unknown id or missing optional package
    """

    def __init__(self, model_id: str, seed: Optional[int] = None):
        info = get_model_info(model_id)
        if not info:
            raise ConfigurationError(
                f"Unknown model id '{model_id}'",
                details={"model": model_id}
            )

        if not available_models([model_id]):
            missing = info.get("requires", [])
            raise ConfigurationError(
                f"Model '{model_id}' needs packages that are not installed: {missing}",
                details={"model": model_id, "missing": missing}
            )

        self.model_id = model_id
        self.info = info
        self.seed = seed
        self._log = logger.bind(agent="SklearnClassifier", model=model_id)

    # ───────────────────────────────────────────────────────────────────
    # Introspection
    # ───────────────────────────────────────────────────────────────────

    @property
    def name(self) -> str:
        return self.info["name"]

    @property
    def scaled(self) -> bool:
        return bool(self.info.get("scaled"))

    @property
    def param_prefix(self) -> str:
        """Prefix search-space keys need when addressing the built estimator."""
        return _PREFIX if self.scaled else ""

    def search_space(self, prefixed: bool = True) -> Dict[str, List[Any]]:
        prefix = self.param_prefix if prefixed else ""
        return {f"{prefix}{k}": list(v) for k, v in self.info["search_space"].items()}

    def resolved_params(self, hyperparameters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Registry defaults, overridden by ``hyperparameters``, plus the seed."""
        params = dict(self.info.get("default_params", {}))
        params.update(strip_param_prefix(hyperparameters or {}))
        seed_param = self.info.get("seed_param")
        if seed_param and self.seed is not None:
            params[seed_param] = self.seed
        return params

    # ───────────────────────────────────────────────────────────────────
    # Construction
    # ───────────────────────────────────────────────────────────────────

    def build_estimator(self, hyperparameters: Optional[Dict[str, Any]] = None) -> Any:
        """Unfitted estimator; a scaler + model pipeline for scaled models."""
        params = self.resolved_params(hyperparameters)

        with exception_context(
            to=ModelTrainingError,
            message=f"Could not construct estimator for '{self.model_id}'",
            details={"model": self.model_id, "params": params}
        ):
            estimator = _estimator_class(self.info["estimator"])(**params)

        if self.scaled:
            return Pipeline([("scaler", StandardScaler()), (PIPELINE_STEP, estimator)])
        return estimator

    # ───────────────────────────────────────────────────────────────────
    # Classifier Protocol
    # ───────────────────────────────────────────────────────────────────

    def fit(
        self,
        features: pd.DataFrame,
        labels: np.ndarray,
        hyperparameters: Optional[Dict[str, Any]] = None
    ) -> ModelHandle:
        y = np.asarray(labels)
        if np.unique(y).size < 2:
            raise ModelTrainingError(
                f"Cannot fit '{self.model_id}' on a single class",
                details={"model": self.model_id, "n_rows": int(y.size)}
            )

        estimator = self.build_estimator(hyperparameters)
        t0 = time.perf_counter()

        with exception_context(
            to=ModelTrainingError,
            message=f"Fitting '{self.model_id}' failed",
            details={"model": self.model_id}
        ):
            estimator.fit(features, y)

        fit_time = time.perf_counter() - t0
        self._log.debug(f"Fitted {self.model_id} in {fit_time:.3f}s")

        return ModelHandle(
            model_id=self.model_id,
            estimator=estimator,
            params=self.resolved_params(hyperparameters),
            feature_names=[str(c) for c in getattr(features, "columns", [])],
            fit_time_s=fit_time,
        )

    def predict(self, handle: ModelHandle, features: pd.DataFrame) -> np.ndarray:
        """Probability of the positive class (label 1) per row."""
        with exception_context(
            to=ModelTrainingError,
            message=f"Prediction with '{handle.model_id}' failed",
            details={"model": handle.model_id}
        ):
            proba = handle.estimator.predict_proba(features)

        classes = list(getattr(handle.estimator, "classes_", [0, 1]))
        if 1 not in classes:
            raise ModelTrainingError(
                f"Model '{handle.model_id}' was not fitted with a positive class",
                details={"model": handle.model_id, "classes": [str(c) for c in classes]}
            )
        return np.asarray(proba[:, classes.index(1)], dtype=np.float64)

    def __repr__(self) -> str:
        return f"SklearnClassifier(model_id='{self.model_id}', seed={self.seed})"


def get_classifier(model_id: str, seed: Optional[int] = None) -> SklearnClassifier:
    """🏭 Classifier for a registry id."""
    return SklearnClassifier(model_id, seed=seed)
