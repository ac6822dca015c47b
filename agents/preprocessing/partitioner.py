# agents/preprocessing/partitioner.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Stratified Partitioner                                       ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Per-Class Shuffle with One Seeded Generator                           ║
║  ✓ Exact Class Proportions (up to whole-row rounding)                    ║
║  ✓ Original Row Order Kept in Both Outputs                               ║
║  ✓ No Global Random State                                                ║
╚════════════════════════════════════════════════════════════════════════════╝

Procedure:
```
    rng = numpy.random.default_rng(seed)
    for class in declared level order:
        positions = rows of that class, shuffled by rng
        n_train   = clamp(round(f · n_class), 1, n_class - 1)
        first n_train → training, rest → evaluation
```

Usage:
```python
    from agents.preprocessing import split

    train, evaluation = split(table, train_fraction=0.8, seed=42)
```
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from config.settings import settings
from core.base_agent import AgentResult, BaseAgent
from core.exceptions import PartitionError

__version__ = "1.0.0"

__all__ = ["StratifiedPartitioner", "split", "class_proportions"]


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Helpers
# ═══════════════════════════════════════════════════════════════════════════

def _class_order(labels: pd.Series) -> List[Any]:
    """Declared level order for categorical labels, sorted values otherwise."""
    present = set(labels.unique())
    if isinstance(labels.dtype, pd.CategoricalDtype):
        return [c for c in labels.cat.categories if c in present]
    return sorted(present, key=str)


def class_proportions(labels: pd.Series) -> Dict[str, float]:
    """Fraction of rows per class."""
    counts = labels.astype(object).value_counts(normalize=True, sort=False)
    return {str(k): float(v) for k, v in counts.items()}


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Pure Function
# ═══════════════════════════════════════════════════════════════════════════

def split(
    table: pd.DataFrame,
    train_fraction: float,
    seed: int,
    label_column: str = "loan_status"
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Stratified seeded split into (training, evaluation) tables.

    Raises:
        PartitionError: ``train_fraction`` outside (0, 1), label column
            absent or incomplete, or a class with fewer than 2 rows
    """
    if not isinstance(train_fraction, (int, float)) or not 0.0 < float(train_fraction) < 1.0:
        raise PartitionError(
            f"train_fraction must be in the open range (0, 1), got {train_fraction!r}",
            details={"train_fraction": train_fraction}
        )

    if label_column not in table.columns:
        raise PartitionError(
            f"Label column '{label_column}' not found",
            details={"column": label_column, "columns": list(table.columns)}
        )

    labels = table[label_column]
    if labels.isna().any():
        raise PartitionError(
            f"Label column '{label_column}' has missing values",
            details={
                "column": label_column,
                "rows": table.index[labels.isna().to_numpy()].tolist()[:20],
            }
        )

    values = labels.astype(object).to_numpy()
    rng = np.random.default_rng(seed)
    train_pos: List[np.ndarray] = []

    for cls in _class_order(labels):
        positions = np.flatnonzero(values == cls)
        n_class = positions.size

        if n_class < 2:
            raise PartitionError(
                f"Class '{cls}' has {n_class} row(s); at least 2 are needed to split",
                details={"column": label_column, "class": str(cls), "count": int(n_class)}
            )

        shuffled = rng.permutation(positions)
        n_train = int(round(float(train_fraction) * n_class))
        n_train = min(max(n_train, 1), n_class - 1)
        train_pos.append(shuffled[:n_train])

    in_train = np.zeros(len(table), dtype=bool)
    if train_pos:
        in_train[np.concatenate(train_pos)] = True

    return table.iloc[in_train].copy(), table.iloc[~in_train].copy()


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Agent
# ═══════════════════════════════════════════════════════════════════════════

class StratifiedPartitioner(BaseAgent):
    """
    ✂️ **Stratified Partitioner Agent**

    ``result.data`` holds ``train``, ``evaluation`` and ``telemetry``
    (sizes and class proportions of each side).
    """

    version: str = __version__

    def __init__(
        self,
        train_fraction: Optional[float] = None,
        seed: Optional[int] = None,
        label_column: str = "loan_status"
    ):
        super().__init__(
            name="StratifiedPartitioner",
            description="Seeded stratified train/evaluation split"
        )
        self.train_fraction = settings.TRAIN_FRACTION if train_fraction is None else train_fraction
        self.seed = settings.RANDOM_STATE if seed is None else seed
        self.label_column = label_column
        self._log = logger.bind(agent="StratifiedPartitioner", version=self.version)

    def execute(self, data: pd.DataFrame, **kwargs: Any) -> AgentResult:
        result = AgentResult(agent_name=self.name)
        t_start = time.perf_counter()

        train, evaluation = split(
            data,
            train_fraction=self.train_fraction,
            seed=self.seed,
            label_column=self.label_column
        )

        elapsed = time.perf_counter() - t_start
        result.data = {
            "train": train,
            "evaluation": evaluation,
            "telemetry": {
                "timing_s": round(elapsed, 4),
                "seed": self.seed,
                "train_fraction": self.train_fraction,
                "n_train": int(len(train)),
                "n_eval": int(len(evaluation)),
                "proportions": {
                    "full": class_proportions(data[self.label_column]),
                    "train": class_proportions(train[self.label_column]),
                    "eval": class_proportions(evaluation[self.label_column]),
                },
            },
        }

        self._log.success(
            f"✓ Split complete | "
            f"train={len(train)} | "
            f"eval={len(evaluation)} | "
            f"seed={self.seed}"
        )
        return result
