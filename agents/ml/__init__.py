# agents/ml/__init__.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — ML Package                                                   ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  Lazy-loading model stage:                                                 ║
║    ✓ PEP 562 lazy imports (scikit-learn loaded on demand)                 ║
║    ✓ LRU-cached symbol resolution                                         ║
║    ✓ Explicit import failure messages                                     ║
╚════════════════════════════════════════════════════════════════════════════╝

Public API:
    Evaluation Harness:
        • confusion_counts / predict_labels / roc_curve / auc

    Classifiers:
        • SklearnClassifier / get_classifier — registry-driven adapter

    Tuning:
        • HyperparameterTuner / TuningConfig / tune_hyperparameters

    Evaluation & Recommendation:
        • ModelEvaluator / ModelReport / recommend_model

    Orchestration:
        • MLOrchestrator / MLConfig

Usage:
```python
    from agents.ml import MLOrchestrator, MLConfig

    result = MLOrchestrator(MLConfig(models=["lr", "rf"])).run(
        X_train=X_train, y_train=y_train, X_eval=X_eval, y_eval=y_eval
    )
    result.data["recommended"]
```
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from functools import lru_cache
from types import ModuleType
from typing import Any, Dict, Final, List, Tuple

# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Module Metadata
# ═══════════════════════════════════════════════════════════════════════════

__version__: Final[str] = "1.0.0"


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Lazy Export Specification
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class _LazySpec:
    """
    Specification for a single lazy export.

    Attributes:
        module: Fully qualified module path
        symbol: Symbol name to import from module
        description: Brief description for documentation
    """
    module: str
    symbol: str
    description: str = ""


_LAZY_EXPORTS: Dict[str, _LazySpec] = {
    # Evaluation harness
    "ConfusionCounts": _LazySpec("agents.ml.metrics", "ConfusionCounts", "TP/TN/FP/FN and derived rates"),
    "RocCurve": _LazySpec("agents.ml.metrics", "RocCurve", "ROC points by decreasing threshold"),
    "confusion_counts": _LazySpec("agents.ml.metrics", "confusion_counts", "Count outcomes for the positive class"),
    "predict_labels": _LazySpec("agents.ml.metrics", "predict_labels", "Apply the decision threshold"),
    "roc_curve": _LazySpec("agents.ml.metrics", "roc_curve", "ROC curve with tied scores grouped"),
    "auc": _LazySpec("agents.ml.metrics", "auc", "Trapezoidal area under the ROC curve"),

    # Classifiers
    "Classifier": _LazySpec("agents.ml.classifiers", "Classifier", "Classifier protocol"),
    "ModelHandle": _LazySpec("agents.ml.classifiers", "ModelHandle", "Fitted model handle"),
    "SklearnClassifier": _LazySpec("agents.ml.classifiers", "SklearnClassifier", "Registry-driven scikit-learn adapter"),
    "get_classifier": _LazySpec("agents.ml.classifiers", "get_classifier", "Classifier factory"),

    # Tuning
    "HyperparameterTuner": _LazySpec("agents.ml.hyperparameter_tuner", "HyperparameterTuner", "Cross-validated search agent"),
    "TuningConfig": _LazySpec("agents.ml.hyperparameter_tuner", "TuningConfig", "Tuning settings"),
    "TuningResult": _LazySpec("agents.ml.hyperparameter_tuner", "TuningResult", "Best params and CV score"),
    "TuningStrategy": _LazySpec("agents.ml.hyperparameter_tuner", "TuningStrategy", "random_search / grid_search / none"),
    "tune_hyperparameters": _LazySpec("agents.ml.hyperparameter_tuner", "tune_hyperparameters", "Run one search"),

    # Evaluation & recommendation
    "ModelEvaluator": _LazySpec("agents.ml.model_evaluator", "ModelEvaluator", "Per-model evaluation agent"),
    "ModelReport": _LazySpec("agents.ml.model_evaluator", "ModelReport", "Metrics, ROC and params of one model"),
    "evaluate_predictions": _LazySpec("agents.ml.model_evaluator", "evaluate_predictions", "Build a ModelReport"),
    "recommend_model": _LazySpec("agents.ml.model_evaluator", "recommend_model", "Pick the best report"),
    "reports_to_frame": _LazySpec("agents.ml.model_evaluator", "reports_to_frame", "Tabular export"),

    # Orchestration
    "MLOrchestrator": _LazySpec("agents.ml.ml_orchestrator", "MLOrchestrator", "Tune, fit and evaluate all models"),
    "MLConfig": _LazySpec("agents.ml.ml_orchestrator", "MLConfig", "Model-stage settings"),
    "train_and_evaluate": _LazySpec("agents.ml.ml_orchestrator", "train_and_evaluate", "Functional model stage"),
}

__all__: Final[Tuple[str, ...]] = tuple(_LAZY_EXPORTS.keys())


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Symbol Resolution (Lazy + LRU Cache)
# ═══════════════════════════════════════════════════════════════════════════

@lru_cache(maxsize=len(_LAZY_EXPORTS) or None)
def _resolve(name: str) -> Any:
    """
    Resolve and import a symbol from its lazy specification.

    Raises:
        AttributeError: Symbol not exported, or missing from its module
        ImportError: Module cannot be imported
    """
    spec = _LAZY_EXPORTS.get(name)
    if spec is None:
        available = ", ".join(sorted(__all__))
        raise AttributeError(
            f"module '{__name__}' has no attribute '{name}'.\n"
            f"Available exports: {available}"
        )

    try:
        module: ModuleType = importlib.import_module(spec.module)
    except ImportError as e:
        raise ImportError(
            f"Failed to lazy-import '{name}' from '{spec.module}': "
            f"{type(e).__name__}: {e}"
        ) from e

    try:
        return getattr(module, spec.symbol)
    except AttributeError as e:
        raise AttributeError(
            f"Module '{spec.module}' does not define expected attribute '{spec.symbol}'"
        ) from e


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: PEP 562 Implementation
# ═══════════════════════════════════════════════════════════════════════════

def __getattr__(name: str) -> Any:
    obj = _resolve(name)
    globals()[name] = obj
    return obj


def __dir__() -> List[str]:
    standard_attrs = [k for k in globals().keys() if not k.startswith("_")]
    return sorted(set(standard_attrs + list(__all__)))


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Utility Functions
# ═══════════════════════════════════════════════════════════════════════════

def list_exports() -> Dict[str, str]:
    """Exported names mapped to their descriptions."""
    return {name: spec.description for name, spec in _LAZY_EXPORTS.items()}


def is_loaded(name: str) -> bool:
    return name in globals()
