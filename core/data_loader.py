# core/data_loader.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Data Loader                                                  ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ CSV Loading (+ gzip/bz2/zip/xz compression)                           ║
║  ✓ Encoding Fallback (UTF-8 → Latin-1)                                   ║
║  ✓ Text-Only Read (blanks survive for the normalizer)                    ║
║  ✓ Frame Info Extraction                                                 ║
╚════════════════════════════════════════════════════════════════════════════╝

Every cell is read as a string. Type conversion, blank handling and level
validation belong to the schema normalizer, not the loader.

Usage:
```python
    from core.data_loader import get_data_loader

    raw = get_data_loader().load("data/loans.csv")
    raw = get_data_loader().load("data/loans.csv.gz")
```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import pandas as pd
from loguru import logger

from core.exceptions import DataLoadError

# ═══════════════════════════════════════════════════════════════════════════
# Module Metadata
# ═══════════════════════════════════════════════════════════════════════════

__version__ = "1.0.0"

__all__ = ["DataLoader", "get_data_loader", "load_table"]


# ═══════════════════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════════════════

SUPPORTED_FILE_EXTENSIONS = [".csv", ".txt"]

COMPRESSION_MAP = {
    ".gz": "gzip",
    ".bz2": "bz2",
    ".zip": "zip",
    ".xz": "xz",
}


# ═══════════════════════════════════════════════════════════════════════════
# Data Loader
# ═══════════════════════════════════════════════════════════════════════════

class DataLoader:
    """
    📦 **Tabular Data Loader**

    Reads delimited text into a DataFrame of strings.

    Usage:
```python
        loader = DataLoader()
        df = loader.load("loans.csv")
        df = loader.load("loans.csv.bz2")
```
    """

    def __init__(self, delimiter: str = ","):
        self.delimiter = delimiter
        self.logger = logger.bind(component="DataLoader")

    # ───────────────────────────────────────────────────────────────────
    # Public API
    # ───────────────────────────────────────────────────────────────────

    def load(
        self,
        filepath: Union[str, Path],
        file_type: Optional[str] = None,
        encoding: str = "utf-8"
    ) -> pd.DataFrame:
        """
        📂 **Load Data from File**

        Args:
            filepath: Path to data file
            file_type: File type (auto-detected if None)
            encoding: Primary text encoding

        Returns:
            DataFrame with one string column per CSV header field

        Raises:
            DataLoadError: Missing file, unsupported type, unparsable or
                empty content
        """
        path = Path(filepath)

        if not path.exists():
            raise DataLoadError(f"File not found: {path}", details={"path": str(path)})

        if not path.is_file():
            raise DataLoadError(f"Not a file: {path}", details={"path": str(path)})

        norm_type, compression = self._normalize_file_type(path, file_type)

        if norm_type not in SUPPORTED_FILE_EXTENSIONS:
            raise DataLoadError(
                f"Unsupported file type: {norm_type}. "
                f"Supported: {', '.join(SUPPORTED_FILE_EXTENSIONS)}",
                details={"path": str(path), "file_type": norm_type}
            )

        self.logger.info(
            f"Loading data from {path} "
            f"(type: {norm_type}, compression: {compression or 'none'})"
        )

        df = self._load_csv(path, encoding=encoding, compression=compression)

        if df.empty:
            raise DataLoadError(
                f"No data rows in {path}",
                details={"path": str(path), "columns": list(df.columns)}
            )

        self.logger.success(
            f"Data loaded: {len(df)} rows × {len(df.columns)} columns"
        )

        return df

    def get_info(self, df: pd.DataFrame) -> Dict[str, Any]:
        """Shape, columns and blank-cell counts of a raw frame."""
        blanks = (df.apply(lambda s: s.astype(str).str.strip() == "")).sum()
        return {
            "n_rows": int(len(df)),
            "n_columns": int(df.shape[1]),
            "columns": [str(c) for c in df.columns],
            "blank_cells": {str(k): int(v) for k, v in blanks.items() if v},
            "memory_mb": float(df.memory_usage(deep=True).sum() / 1024 ** 2),
        }

    # ───────────────────────────────────────────────────────────────────
    # Internal
    # ───────────────────────────────────────────────────────────────────

    def _read(self, filepath: Path, encoding: str, compression: Optional[str]) -> pd.DataFrame:
        return pd.read_csv(
            filepath,
            sep=self.delimiter,
            dtype=str,
            keep_default_na=False,
            encoding=encoding,
            compression=compression,
            skipinitialspace=True,
        )

    def _load_csv(
        self,
        filepath: Path,
        encoding: str = "utf-8",
        compression: Optional[str] = None
    ) -> pd.DataFrame:
        """Load CSV text with latin-1 fallback."""
        try:
            try:
                return self._read(filepath, encoding, compression)
            except UnicodeDecodeError:
                self.logger.warning(f"Failed with {encoding}, trying latin-1")
                return self._read(filepath, "latin-1", compression)

        except pd.errors.EmptyDataError as e:
            raise DataLoadError(
                f"Empty file: {filepath}",
                details={"path": str(filepath)},
                cause=e
            ) from e

        except (pd.errors.ParserError, ValueError, OSError) as e:
            raise DataLoadError(
                f"Could not parse {filepath}",
                details={"path": str(filepath), "original_error": str(e)},
                cause=e
            ) from e

    def _normalize_file_type(
        self,
        path: Path,
        explicit: Optional[str]
    ) -> Tuple[str, Optional[str]]:
        """
        Normalize file type and detect compression.

        Returns:
            (normalized_type, compression)
        """
        if explicit:
            explicit = explicit.lower()
            return (explicit if explicit.startswith(".") else f".{explicit}"), None

        suffixes = [s.lower() for s in path.suffixes]

        if not suffixes:
            return path.suffix.lower(), None

        compression = None

        if suffixes[-1] in COMPRESSION_MAP:
            compression = COMPRESSION_MAP[suffixes[-1]]
            base = suffixes[-2] if len(suffixes) >= 2 else ".csv"
        else:
            base = suffixes[-1]

        return base, compression


# ═══════════════════════════════════════════════════════════════════════════
# Global Instance
# ═══════════════════════════════════════════════════════════════════════════

_data_loader: Optional[DataLoader] = None


def get_data_loader() -> DataLoader:
    """🏭 Return the shared loader instance."""
    global _data_loader

    if _data_loader is None:
        _data_loader = DataLoader()

    return _data_loader


def load_table(path: Union[str, Path]) -> pd.DataFrame:
    """Convenience: ``get_data_loader().load(path)``."""
    return get_data_loader().load(path)
