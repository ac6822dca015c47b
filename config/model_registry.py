# config/model_registry.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Model Registry                                               ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Classifier Catalog (six defaults + optional XGBoost)                  ║
║  ✓ Estimator Paths, Default Params, Search Spaces, Seed Params           ║
║  ✓ Selection Strategies                                                  ║
║  ✓ Dependency Detection (cached)                                         ║
║  ✓ Immutable Registries                                                  ║
╚════════════════════════════════════════════════════════════════════════════╝

Architecture:
```
    Registry
    ├── Linear        lr, svm
    ├── Instance      knn
    ├── Bayesian      nb
    ├── Ensemble      rf
    └── Boosting      gbc, xgboost (optional)

    Strategies
    ├── default       → the six reference classifiers
    ├── fast          → lr, nb, knn
    └── all_available → every entry whose packages are installed
```

Registry order is significant: it breaks ties when recommending a model.

Search spaces are plain lists so the same entry drives both random and
grid search. Parameter names are the estimator's own; the classifier
adapter prefixes them when the estimator sits inside a scaling pipeline.

Usage:
```python
    from config.model_registry import get_models_for_strategy, get_model_info

    get_models_for_strategy("default")   # ['lr', 'nb', 'knn', 'rf', 'svm', 'gbc']
    get_model_info("svm")["estimator"]   # 'sklearn.svm.SVC'
```

Dependencies:
    • None (pure Python)
    • Optional: xgboost
"""

from __future__ import annotations

import importlib.util
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping

# ═══════════════════════════════════════════════════════════════════════════
# Module Metadata
# ═══════════════════════════════════════════════════════════════════════════

__version__ = "1.0.0"

__all__ = [
    "ModelCategory",
    "CLASSIFICATION_MODELS",
    "MODEL_SELECTION_STRATEGIES",
    "get_models_for_strategy",
    "get_model_info",
    "get_all_model_ids",
    "list_strategies",
    "is_model_supported",
    "available_models",
    "registry_rank",
]


# ═══════════════════════════════════════════════════════════════════════════
# Enumerations
# ═══════════════════════════════════════════════════════════════════════════

class ModelCategory(str, Enum):
    """📊 Model algorithm categories."""
    LINEAR = "linear"
    INSTANCE_BASED = "instance_based"
    BAYESIAN = "bayesian"
    ENSEMBLE = "ensemble"
    BOOSTING = "boosting"


# ═══════════════════════════════════════════════════════════════════════════
# Classification Models Registry
# ═══════════════════════════════════════════════════════════════════════════

_CLASSIFICATION_MODELS: Dict[str, Dict[str, Any]] = {
    "lr": {
        "name": "Logistic Regression",
        "category": ModelCategory.LINEAR,
        "description": "Linear model on standardized features",
        "pros": ["Fast training", "Interpretable", "Good baseline", "Probabilistic"],
        "cons": ["Assumes linear separability", "May underfit complex data"],
        "estimator": "sklearn.linear_model.LogisticRegression",
        "scaled": True,
        "seed_param": "random_state",
        "default_params": {"max_iter": 1000},
        "search_space": {
            "C": [0.01, 0.03, 0.1, 0.3, 1.0, 3.0, 10.0, 30.0, 100.0],
            "class_weight": [None, "balanced"],
        },
    },
    "nb": {
        "name": "Naive Bayes",
        "category": ModelCategory.BAYESIAN,
        "description": "Gaussian naive Bayes",
        "pros": ["Very fast", "Works well with small data"],
        "cons": ["Assumes feature independence", "Poor with correlated features"],
        "estimator": "sklearn.naive_bayes.GaussianNB",
        "scaled": False,
        "seed_param": None,
        "default_params": {},
        "search_space": {
            "var_smoothing": [1e-11, 1e-10, 1e-9, 1e-8, 1e-7, 1e-6, 1e-5],
        },
    },
    "knn": {
        "name": "K-Nearest Neighbors",
        "category": ModelCategory.INSTANCE_BASED,
        "description": "Instance-based classifier on standardized features",
        "pros": ["Simple concept", "Non-parametric"],
        "cons": ["Slow predictions", "Sensitive to feature scaling"],
        "estimator": "sklearn.neighbors.KNeighborsClassifier",
        "scaled": True,
        "seed_param": None,
        "default_params": {"n_neighbors": 5},
        "search_space": {
            "n_neighbors": [3, 5, 7, 9, 11, 15, 21],
            "weights": ["uniform", "distance"],
            "p": [1, 2],
        },
    },
    "rf": {
        "name": "Random Forest",
        "category": ModelCategory.ENSEMBLE,
        "description": "Bagged decision trees",
        "pros": ["Robust", "Handles mixed feature types", "Little tuning needed"],
        "cons": ["Less interpretable", "Larger models"],
        "estimator": "sklearn.ensemble.RandomForestClassifier",
        "scaled": False,
        "seed_param": "random_state",
        "default_params": {"n_estimators": 200},
        "search_space": {
            "n_estimators": [100, 200, 300, 500],
            "max_depth": [None, 3, 5, 8, 12],
            "min_samples_leaf": [1, 2, 4, 8],
            "max_features": ["sqrt", "log2", None],
        },
    },
    "svm": {
        "name": "Support Vector Machine",
        "category": ModelCategory.LINEAR,
        "description": "RBF-kernel SVC with Platt-scaled probabilities",
        "pros": ["Effective in high dimensions", "Flexible kernels"],
        "cons": ["Slow on large data", "Needs feature scaling"],
        "estimator": "sklearn.svm.SVC",
        "scaled": True,
        "seed_param": "random_state",
        "default_params": {"probability": True, "kernel": "rbf"},
        "search_space": {
            "C": [0.1, 0.3, 1.0, 3.0, 10.0, 30.0],
            "gamma": ["scale", 0.003, 0.01, 0.03, 0.1],
        },
    },
    "gbc": {
        "name": "Gradient Boosting",
        "category": ModelCategory.BOOSTING,
        "description": "Gradient-boosted decision trees",
        "pros": ["Strong accuracy on tabular data"],
        "cons": ["Sequential training", "Sensitive to learning rate"],
        "estimator": "sklearn.ensemble.GradientBoostingClassifier",
        "scaled": False,
        "seed_param": "random_state",
        "default_params": {},
        "search_space": {
            "n_estimators": [50, 100, 200, 300],
            "learning_rate": [0.01, 0.03, 0.1, 0.3],
            "max_depth": [2, 3, 4, 5],
            "subsample": [0.7, 0.85, 1.0],
        },
    },
    "xgboost": {
        "name": "XGBoost",
        "category": ModelCategory.BOOSTING,
        "description": "Extreme gradient boosting",
        "pros": ["State-of-the-art on tabular data", "Regularized"],
        "cons": ["Complex hyperparameters", "Requires tuning"],
        "estimator": "xgboost.XGBClassifier",
        "scaled": False,
        "seed_param": "random_state",
        "default_params": {"eval_metric": "logloss", "n_jobs": 1},
        "search_space": {
            "n_estimators": [100, 200, 300],
            "learning_rate": [0.03, 0.1, 0.3],
            "max_depth": [2, 3, 4, 6],
            "subsample": [0.7, 0.85, 1.0],
        },
        "requires": ["xgboost"],
    },
}

CLASSIFICATION_MODELS: Mapping[str, Dict[str, Any]] = MappingProxyType(_CLASSIFICATION_MODELS)


# ═══════════════════════════════════════════════════════════════════════════
# Selection Strategies
# ═══════════════════════════════════════════════════════════════════════════

_DEFAULT_SIX = ["lr", "nb", "knn", "rf", "svm", "gbc"]

_MODEL_SELECTION_STRATEGIES: Dict[str, Dict[str, Any]] = {
    "default": {
        "description": "The six reference classifiers",
        "models": _DEFAULT_SIX,
    },
    "fast": {
        "description": "Quick prototyping",
        "models": ["lr", "nb", "knn"],
    },
    "all_available": {
        "description": "Every registered model whose packages are installed",
        "models": list(_CLASSIFICATION_MODELS.keys()),
    },
}

MODEL_SELECTION_STRATEGIES: Mapping[str, Dict[str, Any]] = MappingProxyType(
    _MODEL_SELECTION_STRATEGIES
)


# ═══════════════════════════════════════════════════════════════════════════
# Dependency Checks
# ═══════════════════════════════════════════════════════════════════════════

@lru_cache(maxsize=None)
def _has_module(module_name: str) -> bool:
    """Cached check whether a top-level package can be imported."""
    return importlib.util.find_spec(module_name) is not None


def available_models(models: Iterable[str]) -> List[str]:
    """Keep the ids whose ``requires`` packages are installed."""
    out = []
    for model_id in models:
        info = CLASSIFICATION_MODELS.get(model_id)
        if info is None:
            continue
        if all(_has_module(pkg) for pkg in info.get("requires", [])):
            out.append(model_id)
    return out


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

def list_strategies() -> Dict[str, str]:
    """Strategy name → description."""
    return {k: v["description"] for k, v in MODEL_SELECTION_STRATEGIES.items()}


def get_all_model_ids() -> List[str]:
    """All registered model ids, in registry order."""
    return list(CLASSIFICATION_MODELS.keys())


def get_models_for_strategy(
    strategy: str = "default",
    *,
    only_available: bool = False
) -> List[str]:
    """
    🎯 **Get Models for a Strategy**

    Raises:
        ValueError: Unknown strategy
    """
    name = (strategy or "").strip().lower()

    if name not in MODEL_SELECTION_STRATEGIES:
        available = ", ".join(sorted(MODEL_SELECTION_STRATEGIES.keys()))
        raise ValueError(f"Unknown strategy '{strategy}'. Available: {available}")

    models = list(MODEL_SELECTION_STRATEGIES[name]["models"])

    if only_available or name == "all_available":
        models = available_models(models)

    return models


def get_model_info(model_id: str) -> Dict[str, Any]:
    """
    ℹ️ **Get Model Information**

    Returns a copy of the registry entry plus its ``id``; empty dict for
    unknown ids.
    """
    info = CLASSIFICATION_MODELS.get(model_id)
    if info is None:
        return {}
    return {"id": model_id, **info}


def is_model_supported(model_id: str) -> bool:
    """True if the id is registered (dependencies not checked)."""
    return model_id in CLASSIFICATION_MODELS


def registry_rank(model_id: str) -> int:
    """Position of a model in the registry; unknown ids sort last."""
    ids = get_all_model_ids()
    return ids.index(model_id) if model_id in ids else len(ids)


# ═══════════════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════════════

def _validate_registry() -> None:
    """Validate registry structure at import time."""
    for model_id, info in CLASSIFICATION_MODELS.items():
        assert isinstance(info.get("name"), str), f"{model_id} missing 'name'"
        assert isinstance(info.get("category"), ModelCategory), f"{model_id} invalid 'category'"
        assert isinstance(info.get("estimator"), str) and "." in info["estimator"], \
            f"{model_id} 'estimator' must be a dotted path"
        assert isinstance(info.get("search_space"), dict), f"{model_id} missing 'search_space'"
        assert all(isinstance(v, list) and v for v in info["search_space"].values()), \
            f"{model_id} search space values must be non-empty lists"

    for strategy, spec in MODEL_SELECTION_STRATEGIES.items():
        missing = [m for m in spec["models"] if m not in CLASSIFICATION_MODELS]
        assert not missing, f"Strategy '{strategy}' references unknown models: {missing}"


_validate_registry()
