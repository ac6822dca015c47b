# agents/preprocessing/encoder.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Categorical Encoder                                          ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Fixed Code Tables from Declared Level Order                           ║
║  ✓ Identical Codes for Training and Evaluation Partitions                ║
║  ✓ Unseen / Missing Levels Are Errors (never silently defaulted)         ║
║  ✓ Decode (inverse mapping)                                              ║
║  ✓ 0/1 Target Vector and Classifier Feature Matrix                       ║
╚════════════════════════════════════════════════════════════════════════════╝

Codes are 0..L-1 in the order the schema declares the levels, regardless of
which levels happen to appear in the training partition.

Usage:
```python
    from agents.preprocessing import build_encoding, feature_matrix, encode_labels

    encoding = build_encoding(train)
    X_train = feature_matrix(train, encoding)
    X_eval = feature_matrix(evaluation, encoding)
    y_train = encode_labels(train["loan_status"])
```
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from core.base_agent import AgentResult, BaseAgent
from core.exceptions import EncodingError
from core.schema import LOAN_SCHEMA, POSITIVE_LABEL, TableSchema

__version__ = "1.0.0"

__all__ = [
    "EncodingMap",
    "CategoricalEncoder",
    "build_encoding",
    "apply_encoding",
    "decode",
    "encode_labels",
    "feature_matrix",
]

_MAX_REPORTED_ROWS = 20


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Encoding Map
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EncodingMap:
    """
    Column name → ordered ``((level, code), ...)`` pairs.

    Immutable; built once and shared by both partitions.
    """
    tables: Mapping[str, Tuple[Tuple[str, int], ...]]

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "tables",
            MappingProxyType({c: tuple(pairs) for c, pairs in self.tables.items()})
        )

    @property
    def columns(self) -> Tuple[str, ...]:
        return tuple(self.tables)

    def codes(self, column: str) -> Dict[str, int]:
        return dict(self.tables[column])

    def levels(self, column: str) -> Tuple[str, ...]:
        return tuple(level for level, _ in self.tables[column])

    def to_dict(self) -> Dict[str, Dict[str, int]]:
        return {c: dict(pairs) for c, pairs in self.tables.items()}


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Pure Functions
# ═══════════════════════════════════════════════════════════════════════════

def build_encoding(
    training_table: pd.DataFrame,
    schema: TableSchema = LOAN_SCHEMA
) -> EncodingMap:
    """
    Build the code tables for every categorical feature column.

    Codes come from the declared level order, not from the data; the
    training table is only checked for the presence of the columns.
    """
    absent = [c for c in schema.categorical_columns if c not in training_table.columns]
    if absent:
        raise EncodingError(
            f"Categorical column(s) absent from training table: {absent}",
            details={"columns": absent}
        )

    return EncodingMap({
        col: tuple((level, code) for code, level in enumerate(schema.spec(col).levels))
        for col in schema.categorical_columns
    })


def _encode_column(series: pd.Series, column: str, codes: Dict[str, int]) -> pd.Series:
    values = series.astype(object)

    missing = values.isna()
    if missing.any():
        raise EncodingError(
            f"Column '{column}' has missing values at encoding time",
            details={
                "column": column,
                "rows": values.index[missing].tolist()[:_MAX_REPORTED_ROWS],
            }
        )

    unseen = ~values.isin(list(codes))
    if unseen.any():
        raise EncodingError(
            f"Column '{column}' has levels absent from the encoding map",
            details={
                "column": column,
                "rows": values.index[unseen].tolist()[:_MAX_REPORTED_ROWS],
                "values": sorted({str(v) for v in values[unseen]}),
                "known_levels": list(codes),
            }
        )

    return values.map(codes).astype("int64")


def apply_encoding(table: pd.DataFrame, encoding: EncodingMap) -> pd.DataFrame:
    """
    Replace each categorical value with its integer code.

    Columns not in the map pass through unchanged. The input is not modified.

    Raises:
        EncodingError: Column absent, missing value, or level not in the map
    """
    absent = [c for c in encoding.columns if c not in table.columns]
    if absent:
        raise EncodingError(
            f"Encoded column(s) absent from table: {absent}",
            details={"columns": absent}
        )

    out = table.copy()
    for col in encoding.columns:
        out[col] = _encode_column(table[col], col, encoding.codes(col))
    return out


def decode(table: pd.DataFrame, encoding: EncodingMap) -> pd.DataFrame:
    """Inverse of :func:`apply_encoding`; restores categorical dtypes."""
    out = table.copy()
    for col in encoding.columns:
        if col not in table.columns:
            continue
        levels = list(encoding.levels(col))
        codes = table[col].to_numpy()
        bad = ~np.isin(codes, np.arange(len(levels)))
        if bad.any():
            raise EncodingError(
                f"Column '{col}' holds codes outside 0..{len(levels) - 1}",
                details={
                    "column": col,
                    "rows": table.index[bad].tolist()[:_MAX_REPORTED_ROWS],
                }
            )
        out[col] = pd.Series(
            pd.Categorical.from_codes(codes.astype(np.int64), categories=levels),
            index=table.index,
            name=col
        )
    return out


def encode_labels(
    labels: Iterable[Any],
    positive_label: str = POSITIVE_LABEL
) -> np.ndarray:
    """0/1 target vector, 1 = ``positive_label``."""
    series = pd.Series(list(labels) if not isinstance(labels, pd.Series) else labels).astype(object)
    if series.isna().any():
        raise EncodingError(
            "Labels contain missing values",
            details={"rows": series.index[series.isna()].tolist()[:_MAX_REPORTED_ROWS]}
        )
    known = set(LOAN_SCHEMA.spec(LOAN_SCHEMA.label_column).levels) | {positive_label}
    unknown = sorted({str(v) for v in series if v not in known})
    if unknown:
        raise EncodingError(
            f"Unrecognized label value(s): {unknown}",
            details={"values": unknown}
        )
    return (series == positive_label).to_numpy(dtype=np.int64)


def feature_matrix(
    table: pd.DataFrame,
    encoding: EncodingMap,
    schema: TableSchema = LOAN_SCHEMA
) -> pd.DataFrame:
    """
    Numeric + encoded categorical features, in declared column order.

    This is the only frame classifiers ever see.
    """
    features = list(schema.feature_columns)
    absent = [c for c in features if c not in table.columns]
    if absent:
        raise EncodingError(
            f"Feature column(s) absent: {absent}",
            details={"columns": absent}
        )

    encoded = apply_encoding(table[features], encoding)
    for col in schema.numeric_columns:
        encoded[col] = encoded[col].astype("float64")
    return encoded


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Agent
# ═══════════════════════════════════════════════════════════════════════════

class CategoricalEncoder(BaseAgent):
    """
    🔢 **Categorical Encoder Agent**

    Builds the encoding from the training partition and applies it to both
    partitions. ``result.data`` holds ``encoding``, ``X_train``, ``y_train``,
    ``X_eval``, ``y_eval``, ``feature_names`` and ``telemetry``.
    """

    version: str = __version__

    def __init__(
        self,
        schema: TableSchema = LOAN_SCHEMA,
        positive_label: str = POSITIVE_LABEL
    ):
        super().__init__(
            name="CategoricalEncoder",
            description="Fixed-table categorical encoding"
        )
        self.schema = schema
        self.positive_label = positive_label
        self._log = logger.bind(agent="CategoricalEncoder", version=self.version)

    def execute(
        self,
        train: pd.DataFrame,
        evaluation: pd.DataFrame,
        **kwargs: Any
    ) -> AgentResult:
        result = AgentResult(agent_name=self.name)
        t_start = time.perf_counter()

        label = self.schema.label_column
        encoding = build_encoding(train, self.schema)

        X_train = feature_matrix(train, encoding, self.schema)
        X_eval = feature_matrix(evaluation, encoding, self.schema)
        y_train = encode_labels(train[label], self.positive_label)
        y_eval = encode_labels(evaluation[label], self.positive_label)

        elapsed = time.perf_counter() - t_start
        result.data = {
            "encoding": encoding,
            "X_train": X_train,
            "y_train": y_train,
            "X_eval": X_eval,
            "y_eval": y_eval,
            "feature_names": list(X_train.columns),
            "telemetry": {
                "timing_s": round(elapsed, 4),
                "n_features": int(X_train.shape[1]),
                "encoded_columns": list(encoding.columns),
            },
        }

        self._log.success(
            f"✓ Encoding complete | "
            f"columns={len(encoding.columns)} | "
            f"features={X_train.shape[1]} | "
            f"time={elapsed:.2f}s"
        )
        return result
