# agents/__init__.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Agents Package                                               ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Lazy Import System (PEP 562)                                          ║
║  ✓ LRU Caching for Performance                                           ║
║  ✓ One Agent per Pipeline Stage                                          ║
╚════════════════════════════════════════════════════════════════════════════╝

Agent Categories:
    • Preprocessing: normalize → impute → split → encode
    • ML: tune → fit → evaluate → recommend

Usage:
```python
    from agents import SchemaNormalizer, KNNImputer, MLOrchestrator

    table = SchemaNormalizer().run(data=raw).data["data"]
```
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from functools import lru_cache
from importlib.metadata import PackageNotFoundError, version as _pkg_version
from types import ModuleType
from typing import Any, Dict, List

# ═══════════════════════════════════════════════════════════════════════════
# Package Metadata
# ═══════════════════════════════════════════════════════════════════════════

try:
    __version__ = _pkg_version("loanscope")
except PackageNotFoundError:
    __version__ = "1.0.0-dev"


# ═══════════════════════════════════════════════════════════════════════════
# Lazy Export Specification
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class _LazySpec:
    """Specification for lazy-loaded symbol."""
    module: str
    symbol: str
    category: str = "other"


_LAZY_EXPORTS: Dict[str, _LazySpec] = {

    # ═══════════════════════════════════════════════════════════════════════
    # PREPROCESSING AGENTS
    # ═══════════════════════════════════════════════════════════════════════

    "SchemaNormalizer": _LazySpec(
        "agents.preprocessing.schema_normalizer",
        "SchemaNormalizer",
        "preprocessing"
    ),
    "KNNImputer": _LazySpec(
        "agents.preprocessing.knn_imputer",
        "KNNImputer",
        "preprocessing"
    ),
    "KNNImputerConfig": _LazySpec(
        "agents.preprocessing.knn_imputer",
        "KNNImputerConfig",
        "preprocessing"
    ),
    "StratifiedPartitioner": _LazySpec(
        "agents.preprocessing.partitioner",
        "StratifiedPartitioner",
        "preprocessing"
    ),
    "CategoricalEncoder": _LazySpec(
        "agents.preprocessing.encoder",
        "CategoricalEncoder",
        "preprocessing"
    ),

    # ═══════════════════════════════════════════════════════════════════════
    # ML AGENTS
    # ═══════════════════════════════════════════════════════════════════════

    "HyperparameterTuner": _LazySpec(
        "agents.ml.hyperparameter_tuner",
        "HyperparameterTuner",
        "ml"
    ),
    "ModelEvaluator": _LazySpec(
        "agents.ml.model_evaluator",
        "ModelEvaluator",
        "ml"
    ),
    "MLOrchestrator": _LazySpec(
        "agents.ml.ml_orchestrator",
        "MLOrchestrator",
        "ml"
    ),
    "MLConfig": _LazySpec(
        "agents.ml.ml_orchestrator",
        "MLConfig",
        "ml"
    ),
}

__all__ = tuple(_LAZY_EXPORTS.keys()) + (
    "__version__",
    "list_agents_by_category",
)


# ═══════════════════════════════════════════════════════════════════════════
# Lazy Loading
# ═══════════════════════════════════════════════════════════════════════════

@lru_cache(maxsize=None)
def _load(name: str) -> Any:
    spec = _LAZY_EXPORTS[name]
    try:
        module: ModuleType = importlib.import_module(spec.module)
    except ImportError as e:
        raise ImportError(
            f"Cannot import agent '{name}' from '{spec.module}': {e}"
        ) from e
    return getattr(module, spec.symbol)


def __getattr__(name: str) -> Any:
    if name in _LAZY_EXPORTS:
        obj = _load(name)
        globals()[name] = obj
        return obj
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def __dir__() -> List[str]:
    return sorted(set(list(globals().keys()) + list(_LAZY_EXPORTS.keys())))


def list_agents_by_category() -> Dict[str, List[str]]:
    """
    Agents grouped by category.

    Example:
```python
        from agents import list_agents_by_category

        list_agents_by_category()["preprocessing"]
```
    """
    categories: Dict[str, List[str]] = {}
    for name, spec in _LAZY_EXPORTS.items():
        categories.setdefault(spec.category, []).append(name)
    return {
        cat: sorted(agents)
        for cat, agents in sorted(categories.items())
    }
