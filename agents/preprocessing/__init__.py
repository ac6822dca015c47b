# agents/preprocessing/__init__.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Preprocessing Package                                        ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  Lazy exports of the data-preparation stages:                             ║
║  • SchemaNormalizer / normalize / missing_summary                         ║
║  • KNNImputer / KNNImputerConfig / impute                                 ║
║  • StratifiedPartitioner / split                                          ║
║  • CategoricalEncoder / EncodingMap / build_encoding / apply_encoding     ║
╚════════════════════════════════════════════════════════════════════════════╝

Architecture:
    ┌────────────────────────────────────────────────────────────┐
    │                 Preprocessing Package                      │
    ├────────────────────────────────────────────────────────────┤
    │  1. Schema normalization (names, levels, dtypes)           │
    │  2. k-NN imputation (mixed numeric/categorical distance)   │
    │  3. Stratified seeded partition                            │
    │  4. Fixed-table categorical encoding                       │
    └────────────────────────────────────────────────────────────┘

Usage:
```python
    from agents.preprocessing import normalize, impute, split, build_encoding

    table = impute(normalize(raw), k=5)
    train, evaluation = split(table, train_fraction=0.8, seed=42)
    encoding = build_encoding(train)
```
"""

from __future__ import annotations

from importlib import import_module
from types import ModuleType
from typing import Dict, List, Tuple

# ═══════════════════════════════════════════════════════════════════════════
# Module Metadata
# ═══════════════════════════════════════════════════════════════════════════

__version__ = "1.0.0"


# ═══════════════════════════════════════════════════════════════════════════
# Lazy Export Definitions
# ═══════════════════════════════════════════════════════════════════════════

_LAZY_EXPORTS: Dict[str, Tuple[str, str]] = {
    # ─────────────────────────────────────────────────────────────────────
    # Schema Normalization
    # ─────────────────────────────────────────────────────────────────────
    "SchemaNormalizer": ("agents.preprocessing.schema_normalizer", "SchemaNormalizer"),
    "normalize": ("agents.preprocessing.schema_normalizer", "normalize"),
    "missing_summary": ("agents.preprocessing.schema_normalizer", "missing_summary"),

    # ─────────────────────────────────────────────────────────────────────
    # Imputation
    # ─────────────────────────────────────────────────────────────────────
    "KNNImputer": ("agents.preprocessing.knn_imputer", "KNNImputer"),
    "KNNImputerConfig": ("agents.preprocessing.knn_imputer", "KNNImputerConfig"),
    "ImputationReport": ("agents.preprocessing.knn_imputer", "ImputationReport"),
    "impute": ("agents.preprocessing.knn_imputer", "impute"),
    "impute_with_report": ("agents.preprocessing.knn_imputer", "impute_with_report"),

    # ─────────────────────────────────────────────────────────────────────
    # Partitioning
    # ─────────────────────────────────────────────────────────────────────
    "StratifiedPartitioner": ("agents.preprocessing.partitioner", "StratifiedPartitioner"),
    "split": ("agents.preprocessing.partitioner", "split"),
    "class_proportions": ("agents.preprocessing.partitioner", "class_proportions"),

    # ─────────────────────────────────────────────────────────────────────
    # Encoding
    # ─────────────────────────────────────────────────────────────────────
    "CategoricalEncoder": ("agents.preprocessing.encoder", "CategoricalEncoder"),
    "EncodingMap": ("agents.preprocessing.encoder", "EncodingMap"),
    "build_encoding": ("agents.preprocessing.encoder", "build_encoding"),
    "apply_encoding": ("agents.preprocessing.encoder", "apply_encoding"),
    "decode": ("agents.preprocessing.encoder", "decode"),
    "encode_labels": ("agents.preprocessing.encoder", "encode_labels"),
    "feature_matrix": ("agents.preprocessing.encoder", "feature_matrix"),
}


# ═══════════════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════════════

__all__ = tuple(_LAZY_EXPORTS.keys()) + ("__version__", "list_components")


# ═══════════════════════════════════════════════════════════════════════════
# Lazy Loading Implementation
# ═══════════════════════════════════════════════════════════════════════════

def __getattr__(name: str):
    """
    Lazy attribute resolution with caching.

    Imports a preprocessing stage on first access and caches the symbol in
    module globals.
    """
    if name in _LAZY_EXPORTS:
        module_name, symbol_name = _LAZY_EXPORTS[name]

        try:
            module: ModuleType = import_module(module_name)
            obj = getattr(module, symbol_name)
            globals()[name] = obj
            return obj

        except (ImportError, AttributeError) as e:
            raise ImportError(
                f"Failed to import '{symbol_name}' from '{module_name}': {e}"
            ) from e

    raise AttributeError(
        f"module '{__name__}' has no attribute '{name}'"
    )


def __dir__():
    return sorted(list(globals().keys()) + list(_LAZY_EXPORTS.keys()))


def list_components() -> List[str]:
    """Names of all exported components."""
    return sorted(_LAZY_EXPORTS.keys())
