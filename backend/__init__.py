# backend/__init__.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Backend Module                                               ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  🚀 Pipeline Execution Layer                                              ║
╚════════════════════════════════════════════════════════════════════════════╝

Backend Components:
    • Pipeline Executor: end-to-end run, step timing, report artifacts

Integration:
    Backend connects to agents/ for the pipeline stages:
    - agents.preprocessing → normalize, impute, split, encode
    - agents.ml → tune, fit, evaluate, recommend
"""

from __future__ import annotations

__version__ = "1.0.0"

__all__ = [
    "__version__",
]
