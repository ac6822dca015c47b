# core/schema.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Table Schema                                                 ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Immutable Column Declarations (frozen dataclasses)                    ║
║  ✓ Closed, Ordered Level Sets for Categorical Columns                    ║
║  ✓ Raw-Value Relabeling (0/1 → Bad/Good, N/Y → Not Approved/Approved)    ║
║  ✓ The Declared Loan-Application Schema                                  ║
╚════════════════════════════════════════════════════════════════════════════╝

The declared level order is authoritative: it fixes categorical codes, the
order in which the partitioner walks label classes, and the tie-break used
by the imputer when a categorical mode is ambiguous.

Usage:
```python
    from core.schema import LOAN_SCHEMA

    LOAN_SCHEMA.categorical_columns   # ('gender', 'married', ...)
    LOAN_SCHEMA.spec("credit_history").levels   # ('Bad', 'Good')
```
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, Optional, Tuple

import pandas as pd

__all__ = [
    "ColumnKind",
    "ColumnSpec",
    "TableSchema",
    "LOAN_SCHEMA",
    "POSITIVE_LABEL",
]


POSITIVE_LABEL = "Approved"


# ═══════════════════════════════════════════════════════════════════════════
# Column Declarations
# ═══════════════════════════════════════════════════════════════════════════

class ColumnKind(str, Enum):
    """Role a column plays in the table."""
    NUMERIC = "numeric"
    CATEGORICAL = "categorical"
    LABEL = "label"
    IDENTIFIER = "identifier"


@dataclass(frozen=True)
class ColumnSpec:
    """
    Declaration of one column.

    Attributes:
        name: Normalized column name
        kind: Column role
        levels: Ordered closed set of allowed values (Categorical/Label only)
        relabel: Raw token → declared level, applied during normalization
        required: Whether the column must be present in raw input
    """
    name: str
    kind: ColumnKind
    levels: Tuple[str, ...] = ()
    relabel: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    required: bool = True

    def __post_init__(self) -> None:
        if self.kind in (ColumnKind.CATEGORICAL, ColumnKind.LABEL) and not self.levels:
            raise ValueError(f"Column '{self.name}' ({self.kind.value}) needs declared levels")
        if len(set(self.levels)) != len(self.levels):
            raise ValueError(f"Column '{self.name}' declares duplicate levels")
        unknown = set(self.relabel.values()) - set(self.levels)
        if unknown:
            raise ValueError(f"Column '{self.name}' relabels to undeclared levels: {sorted(unknown)}")
        # Freeze caller-supplied dicts
        object.__setattr__(self, "relabel", MappingProxyType(dict(self.relabel)))

    @property
    def is_categorical(self) -> bool:
        return self.kind in (ColumnKind.CATEGORICAL, ColumnKind.LABEL)

    @property
    def dtype(self):
        """pandas dtype a normalized column of this kind is stored as."""
        if self.is_categorical:
            return pd.CategoricalDtype(categories=list(self.levels), ordered=False)
        if self.kind is ColumnKind.NUMERIC:
            return "float64"
        return "string"


@dataclass(frozen=True)
class TableSchema:
    """Ordered, immutable collection of column declarations."""
    columns: Tuple[ColumnSpec, ...]

    def __post_init__(self) -> None:
        names = [c.name for c in self.columns]
        if len(set(names)) != len(names):
            raise ValueError("Schema declares duplicate column names")
        labels = [c for c in self.columns if c.kind is ColumnKind.LABEL]
        if len(labels) > 1:
            raise ValueError("Schema declares more than one label column")

    def __iter__(self) -> Iterator[ColumnSpec]:
        return iter(self.columns)

    def __contains__(self, name: object) -> bool:
        return any(c.name == name for c in self.columns)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    def spec(self, name: str) -> ColumnSpec:
        for c in self.columns:
            if c.name == name:
                return c
        raise KeyError(name)

    def _of_kind(self, kind: ColumnKind) -> Tuple[str, ...]:
        return tuple(c.name for c in self.columns if c.kind is kind)

    @property
    def numeric_columns(self) -> Tuple[str, ...]:
        return self._of_kind(ColumnKind.NUMERIC)

    @property
    def categorical_columns(self) -> Tuple[str, ...]:
        return self._of_kind(ColumnKind.CATEGORICAL)

    @property
    def feature_columns(self) -> Tuple[str, ...]:
        """Numeric and categorical columns, in declaration order."""
        return tuple(
            c.name for c in self.columns
            if c.kind in (ColumnKind.NUMERIC, ColumnKind.CATEGORICAL)
        )

    @property
    def label_column(self) -> Optional[str]:
        labels = self._of_kind(ColumnKind.LABEL)
        return labels[0] if labels else None

    @property
    def identifier_column(self) -> Optional[str]:
        ids = self._of_kind(ColumnKind.IDENTIFIER)
        return ids[0] if ids else None


# ═══════════════════════════════════════════════════════════════════════════
# Loan Application Schema
# ═══════════════════════════════════════════════════════════════════════════

LOAN_SCHEMA = TableSchema(columns=(
    ColumnSpec("loan_id", ColumnKind.IDENTIFIER),
    ColumnSpec("gender", ColumnKind.CATEGORICAL, ("Female", "Male")),
    ColumnSpec("married", ColumnKind.CATEGORICAL, ("No", "Yes")),
    ColumnSpec("dependents", ColumnKind.CATEGORICAL, ("0", "1", "2", "3+")),
    ColumnSpec("education", ColumnKind.CATEGORICAL, ("Graduate", "Not Graduate")),
    ColumnSpec("self_employed", ColumnKind.CATEGORICAL, ("No", "Yes")),
    ColumnSpec("applicant_income", ColumnKind.NUMERIC),
    ColumnSpec("coapplicant_income", ColumnKind.NUMERIC),
    ColumnSpec("loan_amount", ColumnKind.NUMERIC),
    ColumnSpec("loan_amount_term", ColumnKind.NUMERIC),
    ColumnSpec(
        "credit_history", ColumnKind.CATEGORICAL, ("Bad", "Good"),
        relabel={"0": "Bad", "1": "Good"},
    ),
    ColumnSpec("property_area", ColumnKind.CATEGORICAL, ("Rural", "Semiurban", "Urban")),
    ColumnSpec(
        "loan_status", ColumnKind.LABEL, ("Not Approved", POSITIVE_LABEL),
        relabel={"N": "Not Approved", "Y": POSITIVE_LABEL},
    ),
))
