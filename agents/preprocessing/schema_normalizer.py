# agents/preprocessing/schema_normalizer.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Schema Normalizer                                            ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Column Name Normalization (camelCase / separators → snake_case)       ║
║  ✓ Blank → Missing Conversion (before missingness is counted)            ║
║  ✓ Raw-Value Relabeling (credit_history 0/1, loan_status N/Y)            ║
║  ✓ Closed-Set Level Validation with Row-Level Diagnostics                ║
║  ✓ Typed Output (CategoricalDtype / float64)                             ║
║  ✓ Missing-Value Summary                                                 ║
╚════════════════════════════════════════════════════════════════════════════╝

Pipeline:
```
    raw frame (strings)
      → rename columns          ApplicantIncome → applicant_income
      → drop undeclared columns (warning)
      → check required columns  (SchemaError)
      → per column:
          blank → NA
          canonicalize + relabel  "1.0" → "1" → "Good"
          validate closed set     (SchemaError with rows/values)
          cast                    CategoricalDtype(levels) | float64
      → missing summary (logged)
```

Usage:
```python
    from agents.preprocessing import normalize

    table = normalize(raw_df)             # LOAN_SCHEMA by default
    table["credit_history"].cat.categories   # ['Bad', 'Good']
```
"""

from __future__ import annotations

import math
import time
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from core.base_agent import AgentResult, BaseAgent
from core.exceptions import SchemaError
from core.schema import LOAN_SCHEMA, ColumnKind, ColumnSpec, TableSchema
from core.utils import clean_column_names

__version__ = "1.0.0"

__all__ = [
    "SchemaNormalizer",
    "normalize",
    "missing_summary",
    "normalize_column_names",
]

# Offending rows listed in an error message
_MAX_REPORTED_ROWS = 20


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Token Helpers
# ═══════════════════════════════════════════════════════════════════════════

def _clean_tokens(series: pd.Series) -> pd.Series:
    """Object series of stripped strings, blanks and NaN as ``None``."""
    def _one(v: Any) -> Optional[str]:
        if v is None or v is pd.NA:
            return None
        if isinstance(v, float) and math.isnan(v):
            return None
        s = str(v).strip()
        return s or None

    return series.astype(object).map(_one).astype(object)


def _canonical_token(token: str) -> str:
    """``"1.0"`` → ``"1"``; anything non-integral is returned unchanged."""
    try:
        f = float(token)
    except ValueError:
        return token
    if math.isfinite(f) and f.is_integer():
        return str(int(f))
    return token


def _resolve_level(token: Optional[str], spec: ColumnSpec) -> Optional[str]:
    if token is None or token in spec.levels:
        return token
    canonical = _canonical_token(token)
    return spec.relabel.get(canonical, canonical)


def _rows_and_values(
    tokens: pd.Series,
    mask: pd.Series
) -> Tuple[List[Any], List[Any]]:
    bad = tokens[mask]
    rows = bad.index.tolist()[:_MAX_REPORTED_ROWS]
    values = sorted({str(v) for v in bad.tolist()})[:_MAX_REPORTED_ROWS]
    return rows, values


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Column Converters
# ═══════════════════════════════════════════════════════════════════════════

def _convert_categorical(tokens: pd.Series, spec: ColumnSpec) -> pd.Series:
    resolved = tokens.map(lambda t: _resolve_level(t, spec))
    outside = resolved.notna() & ~resolved.isin(spec.levels)

    if outside.any():
        rows, values = _rows_and_values(tokens, outside)
        raise SchemaError(
            f"Column '{spec.name}' has values outside declared levels {list(spec.levels)}",
            details={
                "column": spec.name,
                "rows": rows,
                "values": values,
                "n_offending": int(outside.sum()),
            }
        )

    if spec.kind is ColumnKind.LABEL and resolved.isna().any():
        rows = resolved.index[resolved.isna()].tolist()[:_MAX_REPORTED_ROWS]
        raise SchemaError(
            f"Label column '{spec.name}' is missing on {int(resolved.isna().sum())} row(s)",
            details={"column": spec.name, "rows": rows}
        )

    return pd.Series(
        pd.Categorical(resolved, categories=list(spec.levels)),
        index=tokens.index,
        name=spec.name
    )


def _convert_numeric(tokens: pd.Series, spec: ColumnSpec) -> pd.Series:
    values = pd.to_numeric(tokens, errors="coerce").astype("float64")
    bad = tokens.notna() & values.isna()

    if bad.any():
        rows, offending = _rows_and_values(tokens, bad)
        raise SchemaError(
            f"Numeric column '{spec.name}' holds non-numeric tokens",
            details={
                "column": spec.name,
                "rows": rows,
                "values": offending,
                "n_offending": int(bad.sum()),
            }
        )

    return values.rename(spec.name)


def _convert_identifier(tokens: pd.Series, spec: ColumnSpec) -> pd.Series:
    return tokens.astype("string").rename(spec.name)


def _empty_column(spec: ColumnSpec, index: pd.Index) -> pd.Series:
    return pd.Series(np.nan, index=index, name=spec.name).astype(spec.dtype)


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Pure Functions
# ═══════════════════════════════════════════════════════════════════════════

def normalize_column_names(df: pd.DataFrame) -> Dict[str, str]:
    """Mapping raw column name → normalized name."""
    return dict(zip(df.columns, clean_column_names(df.columns)))


def missing_summary(table: pd.DataFrame) -> pd.DataFrame:
    """
    Count and fraction of missing values per column.

    Returns:
        DataFrame indexed by column with ``n_missing`` and ``pct_missing``
    """
    n = len(table)
    n_missing = table.isna().sum().astype(int)
    return pd.DataFrame({
        "n_missing": n_missing,
        "pct_missing": n_missing / max(1, n),
    })


def _normalize(
    raw_table: pd.DataFrame,
    schema: TableSchema
) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    if not isinstance(raw_table, pd.DataFrame):
        raise SchemaError(
            "Input must be a pandas DataFrame",
            details={"type": type(raw_table).__name__}
        )

    renamed = normalize_column_names(raw_table)
    df = raw_table.rename(columns=renamed)

    if df.columns.duplicated().any():
        dupes = df.columns[df.columns.duplicated()].tolist()
        raise SchemaError(
            "Column names collide after normalization",
            details={"columns": dupes}
        )

    dropped = [c for c in df.columns if c not in schema]
    missing_required = [c.name for c in schema if c.required and c.name not in df.columns]

    if missing_required:
        raise SchemaError(
            f"Required column(s) absent: {missing_required}",
            details={"columns": missing_required, "present": list(df.columns)}
        )

    out: Dict[str, pd.Series] = {}
    for spec in schema:
        if spec.name not in df.columns:
            out[spec.name] = _empty_column(spec, df.index)
            continue

        tokens = _clean_tokens(df[spec.name])

        if spec.is_categorical:
            out[spec.name] = _convert_categorical(tokens, spec)
        elif spec.kind is ColumnKind.NUMERIC:
            out[spec.name] = _convert_numeric(tokens, spec)
        else:
            out[spec.name] = _convert_identifier(tokens, spec)

    table = pd.DataFrame(out, index=df.index)

    info = {
        "renamed": {str(k): v for k, v in renamed.items() if str(k) != v},
        "dropped_columns": dropped,
    }
    return table, info


def normalize(raw_table: pd.DataFrame, schema: TableSchema = LOAN_SCHEMA) -> pd.DataFrame:
    """
    Clean a raw frame into a Table conforming to ``schema``.

    The input frame is not modified.

    Raises:
        SchemaError: Required column absent, value outside a declared closed
            set, non-numeric token in a numeric column, or missing label
    """
    table, info = _normalize(raw_table, schema)
    if info["dropped_columns"]:
        logger.warning(f"Dropping undeclared columns: {info['dropped_columns']}")
    return table


# ═══════════════════════════════════════════════════════════════════════════
# SECTION: Agent
# ═══════════════════════════════════════════════════════════════════════════

class SchemaNormalizer(BaseAgent):
    """
    🧹 **Schema Normalizer Agent**

    Wraps :func:`normalize` with logging, timing and a missing-value
    summary. ``result.data`` holds ``data``, ``missing_summary``,
    ``renamed``, ``dropped_columns`` and ``telemetry``.
    """

    version: str = __version__

    def __init__(self, schema: TableSchema = LOAN_SCHEMA):
        super().__init__(
            name="SchemaNormalizer",
            description="Normalize column names, levels and dtypes"
        )
        self.schema = schema
        self._log = logger.bind(agent="SchemaNormalizer", version=self.version)

    def execute(self, data: pd.DataFrame, **kwargs: Any) -> AgentResult:
        result = AgentResult(agent_name=self.name)
        t_start = time.perf_counter()

        self._log.info(f"🧹 Normalizing | rows={len(data):,} | cols={len(data.columns)}")

        table, info = _normalize(data, self.schema)

        for col in info["dropped_columns"]:
            result.add_warning(f"Dropped undeclared column '{col}'")
        if info["dropped_columns"]:
            self._log.warning(f"Dropping undeclared columns: {info['dropped_columns']}")

        summary = missing_summary(table)
        self._log_top_missing(summary)

        elapsed = time.perf_counter() - t_start
        result.data = {
            "data": table,
            "missing_summary": summary,
            "renamed": info["renamed"],
            "dropped_columns": info["dropped_columns"],
            "telemetry": {
                "timing_s": round(elapsed, 4),
                "rows": int(len(table)),
                "missing_cells": int(summary["n_missing"].sum()),
            },
        }

        self._log.success(
            f"✓ Normalization complete | "
            f"columns={table.shape[1]} | "
            f"missing_cells={int(summary['n_missing'].sum())} | "
            f"time={elapsed:.2f}s"
        )
        return result

    def _log_top_missing(self, summary: pd.DataFrame, top_n: int = 10) -> None:
        top = summary[summary["n_missing"] > 0].sort_values("pct_missing", ascending=False).head(top_n)
        if top.empty:
            self._log.info("No missing values")
            return
        parts = [f"{col}: {row.pct_missing * 100:.1f}%" for col, row in top.iterrows()]
        self._log.info(f"Top missing: {', '.join(parts)}")
