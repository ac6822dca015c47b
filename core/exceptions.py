# core/exceptions.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Exceptions                                                   ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Centralized Exception Hierarchy                                       ║
║  ✓ Error Code & Severity Taxonomy                                        ║
║  ✓ Column / Row Context on Every Error                                   ║
║  ✓ Exception Wrapping Context Manager                                    ║
╚════════════════════════════════════════════════════════════════════════════╝

Hierarchy:
```
    LoanScopeError (Base)
    ├── DataLoadError          → input file unreadable
    ├── SchemaError            → missing column / value outside closed set
    ├── ImputationError        → too few donors / excessive missingness
    ├── EncodingError          → level unseen at apply time
    ├── PartitionError         → invalid split request
    ├── DegenerateCurveError   → AUC undefined (single class)
    ├── ModelTrainingError     → classifier fit / predict failure
    ├── ConfigurationError     → invalid run configuration
    └── PipelineError          → step orchestration failure
```

Every error is fatal to the pipeline run that raised it: there is no retry
and no silent recovery. ``details`` carries the offending column, rows or
values so callers can print a precise diagnostic.

Usage:
```python
    from core.exceptions import SchemaError, exception_context

    raise SchemaError(
        "Value outside declared levels",
        details={"column": "gender", "values": ["Unknown"], "rows": [17]}
    )

    with exception_context(to=DataLoadError, message="Failed to read CSV"):
        df = pd.read_csv(path)
```

Dependencies:
    • loguru
"""

from __future__ import annotations

from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Type

from loguru import logger

__all__ = [
    "ErrorCode",
    "ErrorSeverity",
    "LoanScopeError",
    "DataLoadError",
    "SchemaError",
    "ImputationError",
    "EncodingError",
    "PartitionError",
    "DegenerateCurveError",
    "ModelTrainingError",
    "ConfigurationError",
    "PipelineError",
    "exception_context",
]


# ═══════════════════════════════════════════════════════════════════════════
# Error Taxonomy
# ═══════════════════════════════════════════════════════════════════════════

class ErrorSeverity(str, Enum):
    """🚨 Severity classification for errors."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCode(str, Enum):
    """🏷️ Standardized error codes."""
    UNKNOWN = "unknown_error"
    DATA_LOAD = "data_load_error"
    SCHEMA = "schema_error"
    IMPUTATION = "imputation_error"
    ENCODING = "encoding_error"
    PARTITION = "partition_error"
    DEGENERATE_CURVE = "degenerate_curve_error"
    MODEL_TRAINING = "model_training_error"
    CONFIG = "configuration_error"
    PIPELINE = "pipeline_error"


# ═══════════════════════════════════════════════════════════════════════════
# Base Exception
# ═══════════════════════════════════════════════════════════════════════════

class LoanScopeError(Exception):
    """
    🎯 **Base LoanScope Exception**

    Carries an error code, severity, a ``details`` dict (column/row context)
    and an optional original cause.
    """

    default_code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        *,
        error_code: Optional[ErrorCode] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}
        self.error_code: ErrorCode = error_code or type(self).default_code
        self.severity: ErrorSeverity = severity
        self.context: Dict[str, Any] = context or {}
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"{self.error_code.value}: {self.message}"]

        if self.details:
            parts.append(f"Details: {self.details}")

        if self.context:
            parts.append(f"Context: {self.context}")

        if self.cause:
            parts.append(f"Cause: {type(self.cause).__name__}: {self.cause}")

        return " | ".join(parts)

    @property
    def column(self) -> Optional[str]:
        """Offending column, when the error is column-specific."""
        return self.details.get("column")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "error": {
                "code": self.error_code.value,
                "message": self.message,
                "details": self.details,
                "context": self.context,
                "severity": self.severity.value,
                "cause": str(self.cause) if self.cause else None
            }
        }


# ═══════════════════════════════════════════════════════════════════════════
# Specific Exception Classes
# ═══════════════════════════════════════════════════════════════════════════

class DataLoadError(LoanScopeError):
    """❌ Input file could not be read."""
    default_code = ErrorCode.DATA_LOAD


class SchemaError(LoanScopeError):
    """📐 Required column absent or value outside its declared closed set."""
    default_code = ErrorCode.SCHEMA


class ImputationError(LoanScopeError):
    """🧩 Not enough donor rows, or a column is missing too often."""
    default_code = ErrorCode.IMPUTATION


class EncodingError(LoanScopeError):
    """🔢 Categorical level not present in the encoding map."""
    default_code = ErrorCode.ENCODING


class PartitionError(LoanScopeError):
    """✂️ Invalid split request."""
    default_code = ErrorCode.PARTITION


class DegenerateCurveError(LoanScopeError):
    """📉 ROC/AUC undefined because only one true class is present."""
    default_code = ErrorCode.DEGENERATE_CURVE


class ModelTrainingError(LoanScopeError):
    """🏋️ Classifier fit or predict failure."""
    default_code = ErrorCode.MODEL_TRAINING


class ConfigurationError(LoanScopeError):
    """⚙️ Invalid configuration."""
    default_code = ErrorCode.CONFIG


class PipelineError(LoanScopeError):
    """🔄 Pipeline execution error."""
    default_code = ErrorCode.PIPELINE


# ═══════════════════════════════════════════════════════════════════════════
# Helpers
# ═══════════════════════════════════════════════════════════════════════════

@contextmanager
def exception_context(
    *,
    to: Type[LoanScopeError] = LoanScopeError,
    message: str = "Operation failed",
    details: Optional[Dict[str, Any]] = None,
    context: Optional[Dict[str, Any]] = None,
    log: bool = True
) -> Iterator[None]:
    """
    🔒 **Exception Context Manager**

    Re-raises any non-LoanScope exception as ``to`` with the original as
    cause. LoanScope errors pass through untouched.

    Example:
```python
        with exception_context(to=ModelTrainingError, message="fit failed",
                               details={"model": "svm"}):
            estimator.fit(X, y)
```
    """
    try:
        yield
    except LoanScopeError:
        raise
    except Exception as e:
        wrapped = to(
            message,
            details={**(details or {}), "original_error": str(e)},
            context=context,
            cause=e
        )

        if log:
            logger.error(str(wrapped))

        raise wrapped from e
