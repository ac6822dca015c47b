"""
LoanScope - Utility Functions
Common helpers shared by the pipeline stages
"""

from __future__ import annotations

import hashlib
import json
import math
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

import numpy as np
import pandas as pd
from loguru import logger
from pandas.api import types as ptypes


# ---------------------------------------------------------------------
# Run ids & hashing
# ---------------------------------------------------------------------
def generate_run_id() -> str:
    """Generate unique pipeline run ID."""
    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    rand = hashlib.md5(str(datetime.now().timestamp()).encode()).hexdigest()[:8]
    return f"{ts}_{rand}"


def _normalize_for_hash(df: pd.DataFrame) -> pd.DataFrame:
    """
    Normalize dtypes for stable hashing:
    - categories -> strings
    - bool -> Int8
    """
    out = df.copy()

    for col in out.columns:
        s = out[col]
        if isinstance(s.dtype, pd.CategoricalDtype):
            out[col] = s.astype("string")
        elif ptypes.is_bool_dtype(s):
            out[col] = s.astype("Int8")
    return out


def hash_dataframe(
    df: pd.DataFrame,
    *,
    sort_columns: bool = True,
    include_index: bool = True,
    normalize_dtypes: bool = True
) -> str:
    """
    Generate a stable MD5 hash for a DataFrame.

    Used to check that imputation and partitioning are reproducible.

    Args:
        df: DataFrame to hash
        sort_columns: Sort columns for order-invariant hash
        include_index: Include index in the hash
        normalize_dtypes: Normalize types (categoricals, bools) for stability

    Returns:
        MD5 hash hex string
    """
    if df is None or df.empty:
        return hashlib.md5(b"").hexdigest()

    work = _normalize_for_hash(df) if normalize_dtypes else df

    if sort_columns:
        work = work.reindex(sorted(work.columns), axis=1)

    # dtype + column names are part of the signature
    meta_blob = json.dumps(
        {
            "columns": list(map(str, work.columns)),
            "dtypes": [str(t) for t in work.dtypes],
            "shape": work.shape,
        },
        ensure_ascii=False,
        sort_keys=True,
    ).encode()

    values_hash = pd.util.hash_pandas_object(work, index=include_index).values
    md5 = hashlib.md5()
    md5.update(meta_blob)
    md5.update(values_hash)
    return md5.hexdigest()


# ---------------------------------------------------------------------
# IO helpers
# ---------------------------------------------------------------------
def to_native(obj: Any) -> Any:
    """JSON ``default`` hook: numpy scalars/arrays to Python, NaN to None."""
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return None if np.isnan(obj) else float(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, Path):
        return str(obj)
    return str(obj)


def _scrub_nan(obj: Any) -> Any:
    # json.dump writes bare NaN for Python floats, which is not valid JSON
    if isinstance(obj, float) and math.isnan(obj):
        return None
    if isinstance(obj, dict):
        return {k: _scrub_nan(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_scrub_nan(v) for v in obj]
    return obj


def save_json(data: Union[Dict, List], filepath: Union[str, Path], indent: int = 2) -> None:
    """Save dictionary to JSON file."""
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(_scrub_nan(data), f, indent=indent, ensure_ascii=False, default=to_native)
    logger.info(f"Saved JSON to {filepath}")


def load_json(filepath: Union[str, Path]) -> Dict:
    """Load dictionary from JSON file."""
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")
    with open(filepath, "r", encoding="utf-8") as f:
        return json.load(f)


# ---------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------
def format_percentage(value: float, decimals: int = 2) -> str:
    """
    Format a fraction (0-1) as a percentage. NaN renders as ``n/a``.
    """
    v = float(value)
    if math.isnan(v):
        return "n/a"
    return f"{v * 100.0:.{decimals}f}%"


def format_metric(value: float, decimals: int = 4) -> str:
    """Format a metric value, NaN as ``n/a``."""
    v = float(value)
    return "n/a" if math.isnan(v) else f"{v:.{decimals}f}"


# ---------------------------------------------------------------------
# Column names
# ---------------------------------------------------------------------
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def snake_case(name: str) -> str:
    """
    ``ApplicantIncome`` -> ``applicant_income``,
    ``Loan_Amount_Term`` -> ``loan_amount_term``,
    ``Loan ID`` -> ``loan_id``.
    """
    s = _CAMEL_BOUNDARY.sub("_", str(name).strip())
    s = _NON_ALNUM.sub("_", s.lower())
    return s.strip("_")


def clean_column_names(columns: Iterable[Any]) -> List[str]:
    """
    Snake-case column names, ensuring uniqueness while preserving order.
    """
    seen: Dict[str, int] = {}
    uniq = []
    for c in map(snake_case, columns):
        if c not in seen:
            seen[c] = 0
            uniq.append(c)
        else:
            seen[c] += 1
            uniq.append(f"{c}_{seen[c]}")
    return uniq
