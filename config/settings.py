# config/settings.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Settings v1.0                                                ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  🚀 TYPE-SAFE PIPELINE CONFIGURATION                                      ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Pydantic v2 Settings                                                  ║
║  ✓ Environment Variable Support (.env)                                   ║
║  ✓ Validated Pipeline Parameters                                         ║
║  ✓ Auto-Creation of Directories                                          ║
╚════════════════════════════════════════════════════════════════════════════╝

Architecture:
    Configuration Structure:
```
    Settings
    ├── Application (name, version, environment)
    ├── Logging (level, format, rotation)
    ├── File Storage (data, reports, logs)
    ├── Preprocessing (k, missingness guard, split fraction)
    ├── Modeling (models, tuning strategy, folds, jobs)
    └── Evaluation (decision threshold, positive label, ranking metric)
```

Usage:
```python
    from config.settings import settings

    print(settings.KNN_NEIGHBORS)      # 5
    print(settings.TRAIN_FRACTION)     # 0.8
    print(settings.default_models)     # ['lr', 'nb', 'knn', 'rf', 'svm', 'gbc']
```

Environment Variables:
    Every field can be overridden, e.g. ``KNN_NEIGHBORS=7`` or
    ``TUNING_STRATEGY=grid_search`` in the environment or a ``.env`` file.

Dependencies:
    • pydantic
    • pydantic-settings
    • python-dotenv
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Literal, Union

from dotenv import load_dotenv
from pydantic import Field, computed_field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ═══════════════════════════════════════════════════════════════════════════
# Module Metadata
# ═══════════════════════════════════════════════════════════════════════════

__version__ = "1.0.0"

__all__ = ["Settings", "settings", "get_settings"]


# Load environment variables
load_dotenv()

# Project root directory
ROOT_DIR = Path(__file__).resolve().parent.parent

_STRATEGIES = {"random_search", "grid_search", "none"}
_METRICS = {"auc", "accuracy", "precision", "sensitivity", "specificity", "f1"}


# ═══════════════════════════════════════════════════════════════════════════
# Settings Class
# ═══════════════════════════════════════════════════════════════════════════

class Settings(BaseSettings):
    """
    🔧 **Central Configuration**

    Type-safe configuration with Pydantic v2. Every stochastic stage reads
    its seed from here explicitly; nothing touches global random state.
    """

    # ───────────────────────────────────────────────────────────────────
    # Application
    # ───────────────────────────────────────────────────────────────────

    APP_NAME: str = "LoanScope"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Logging configuration
    LOG_JSON_ENABLED: bool = True
    LOG_ROTATION: str = "10 MB"
    LOG_RETENTION: str = "30 days"
    LOG_CONSOLE_COMPACT: bool = False

    # ───────────────────────────────────────────────────────────────────
    # File Storage
    # ───────────────────────────────────────────────────────────────────

    BASE_PATH: Path = ROOT_DIR
    DATA_PATH: Path = ROOT_DIR / "data"
    REPORTS_PATH: Path = ROOT_DIR / "reports"
    LOGS_PATH: Path = ROOT_DIR / "logs"

    # ───────────────────────────────────────────────────────────────────
    # Preprocessing
    # ───────────────────────────────────────────────────────────────────

    RANDOM_STATE: int = 42
    KNN_NEIGHBORS: int = 5
    KNN_MAX_MISSING_FRACTION: float = 0.5
    TRAIN_FRACTION: float = 0.8

    # ───────────────────────────────────────────────────────────────────
    # Modeling
    # ───────────────────────────────────────────────────────────────────

    DEFAULT_MODELS: str = "lr,nb,knn,rf,svm,gbc"
    TUNING_STRATEGY: str = "random_search"
    TUNING_N_ITER: int = 10
    CV_FOLDS: int = 5
    N_JOBS: int = 1

    # ───────────────────────────────────────────────────────────────────
    # Evaluation
    # ───────────────────────────────────────────────────────────────────

    DECISION_THRESHOLD: float = 0.5
    POSITIVE_LABEL: str = "Approved"
    RECOMMENDATION_METRIC: str = "auc"

    # ───────────────────────────────────────────────────────────────────
    # Development
    # ───────────────────────────────────────────────────────────────────

    TEST_MODE: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"
    )

    # ───────────────────────────────────────────────────────────────────
    # Computed Fields
    # ───────────────────────────────────────────────────────────────────

    @computed_field
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == "production"

    @computed_field
    @property
    def default_models(self) -> List[str]:
        """DEFAULT_MODELS parsed into a list of registry ids."""
        return [m.strip().lower() for m in self.DEFAULT_MODELS.split(",") if m.strip()]

    # ───────────────────────────────────────────────────────────────────
    # Field Validators
    # ───────────────────────────────────────────────────────────────────

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        normalized = (v or "").upper()

        if normalized not in allowed:
            raise ValueError(
                f"Invalid LOG_LEVEL '{v}'. "
                f"Allowed: {', '.join(sorted(allowed))}"
            )

        return normalized

    @field_validator("DATA_PATH", "REPORTS_PATH", "LOGS_PATH", mode="before")
    @classmethod
    def ensure_directories(cls, v: Union[Path, str]) -> Path:
        """Ensure directories exist."""
        path = Path(v).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    @field_validator("KNN_NEIGHBORS", "TUNING_N_ITER")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be >= 1 (got {v})")
        return v

    @field_validator("CV_FOLDS")
    @classmethod
    def validate_folds(cls, v: int) -> int:
        if v < 2:
            raise ValueError(f"CV_FOLDS must be >= 2 (got {v})")
        return v

    @field_validator("TRAIN_FRACTION")
    @classmethod
    def validate_train_fraction(cls, v: float) -> float:
        if not 0.0 < v < 1.0:
            raise ValueError("TRAIN_FRACTION must be in the open range (0, 1)")
        return v

    @field_validator("KNN_MAX_MISSING_FRACTION", "DECISION_THRESHOLD")
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("Value must be in range 0.0..1.0")
        return v

    @field_validator("TUNING_STRATEGY")
    @classmethod
    def validate_strategy(cls, v: str) -> str:
        normalized = (v or "").strip().lower()
        if normalized not in _STRATEGIES:
            raise ValueError(
                f"Invalid TUNING_STRATEGY '{v}'. Allowed: {', '.join(sorted(_STRATEGIES))}"
            )
        return normalized

    @field_validator("RECOMMENDATION_METRIC")
    @classmethod
    def validate_metric(cls, v: str) -> str:
        normalized = (v or "").strip().lower()
        if normalized not in _METRICS:
            raise ValueError(
                f"Invalid RECOMMENDATION_METRIC '{v}'. Allowed: {', '.join(sorted(_METRICS))}"
            )
        return normalized

    # ───────────────────────────────────────────────────────────────────
    # Model Validators
    # ───────────────────────────────────────────────────────────────────

    @model_validator(mode="after")
    def validate_configuration(self) -> "Settings":
        """Validate complete configuration."""
        if not self.default_models:
            raise ValueError("DEFAULT_MODELS must name at least one model")
        return self


# ═══════════════════════════════════════════════════════════════════════════
# Global Instance
# ═══════════════════════════════════════════════════════════════════════════

settings = Settings()


def get_settings() -> Settings:
    """Return the global settings instance."""
    return settings
