# core/__init__.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Core Package                                                 ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Lazy Module Loading                                                   ║
║  ✓ Agent Framework (BaseAgent, AgentResult)                              ║
║  ✓ Loan Table Schema                                                     ║
║  ✓ Tabular Loader                                                        ║
║  ✓ Domain Exceptions                                                     ║
╚════════════════════════════════════════════════════════════════════════════╝

Core Package Structure:
```
    core/
    ├── __init__.py          # Lazy exports (this file)
    ├── base_agent.py        # Agent framework
    ├── data_loader.py       # CSV loader (all cells read as text)
    ├── exceptions.py        # LoanScopeError hierarchy
    ├── schema.py            # Declared columns, kinds and levels
    └── utils.py             # Run ids, hashing, JSON helpers
```

Usage:
```python
    from core import BaseAgent, AgentResult, LOAN_SCHEMA, load_table

    raw = load_table("data/loans.csv")
```

Dependencies:
    • None at import time (modules load on first access)
"""

from __future__ import annotations

from importlib import import_module
from importlib.metadata import PackageNotFoundError, version as _pkg_version
from types import ModuleType
from typing import Any, Dict, List, Tuple

# ═══════════════════════════════════════════════════════════════════════════
# Module Metadata
# ═══════════════════════════════════════════════════════════════════════════

try:
    __version__ = _pkg_version("loanscope")
except PackageNotFoundError:
    # Development mode / uninstalled package
    __version__ = "1.0.0-dev"


# ═══════════════════════════════════════════════════════════════════════════
# Lazy Export Definitions
# ═══════════════════════════════════════════════════════════════════════════

_LAZY_EXPORTS: Dict[str, Tuple[str, str]] = {
    # Agent Framework
    "BaseAgent": ("core.base_agent", "BaseAgent"),
    "AgentResult": ("core.base_agent", "AgentResult"),
    "AgentError": ("core.base_agent", "AgentError"),

    # Schema
    "ColumnKind": ("core.schema", "ColumnKind"),
    "ColumnSpec": ("core.schema", "ColumnSpec"),
    "TableSchema": ("core.schema", "TableSchema"),
    "LOAN_SCHEMA": ("core.schema", "LOAN_SCHEMA"),
    "POSITIVE_LABEL": ("core.schema", "POSITIVE_LABEL"),

    # Loading
    "DataLoader": ("core.data_loader", "DataLoader"),
    "load_table": ("core.data_loader", "load_table"),

    # Errors
    "LoanScopeError": ("core.exceptions", "LoanScopeError"),
    "exception_context": ("core.exceptions", "exception_context"),
}

__all__ = ("__version__",) + tuple(_LAZY_EXPORTS.keys())


# ═══════════════════════════════════════════════════════════════════════════
# Lazy Loading Implementation
# ═══════════════════════════════════════════════════════════════════════════

def __getattr__(name: str) -> Any:
    """
    Lazy attribute resolution.

    Loads modules only when their exports are first accessed and caches
    the object in module globals.
    """
    if name in _LAZY_EXPORTS:
        module_name, symbol_name = _LAZY_EXPORTS[name]

        try:
            module: ModuleType = import_module(module_name)
            obj = getattr(module, symbol_name)
            globals()[name] = obj
            return obj

        except (ImportError, AttributeError) as e:
            raise AttributeError(
                f"Failed to load '{name}' from '{module_name}': {e}"
            ) from e

    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def __dir__() -> List[str]:
    return sorted(set(list(globals().keys()) + list(_LAZY_EXPORTS.keys())))
