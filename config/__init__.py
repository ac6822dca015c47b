# config/__init__.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Configuration Package                                        ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Lazy Module Loading                                                   ║
║  ✓ Settings Validation                                                   ║
║  ✓ Test Overrides                                                        ║
╚════════════════════════════════════════════════════════════════════════════╝

Layout:
```
    config/
    ├── __init__.py          # Settings + lazy exports (this file)
    ├── settings.py          # Pipeline settings
    ├── logging_config.py    # Loguru sinks
    └── model_registry.py    # Classifier catalog
```

Usage:
```python
    from config import settings, get_models_for_strategy

    models = get_models_for_strategy("default")

    from config import use_test_settings
    previous = use_test_settings(KNN_NEIGHBORS=3)
```
"""

from __future__ import annotations

from importlib import import_module
from importlib.metadata import PackageNotFoundError, version as _pkg_version
from types import ModuleType
from typing import Any, Dict, List, Tuple

# ═══════════════════════════════════════════════════════════════════════════
# Package Metadata
# ═══════════════════════════════════════════════════════════════════════════

try:
    __version__ = _pkg_version("loanscope")
except PackageNotFoundError:
    # Development mode / uninstalled package
    __version__ = "1.0.0-dev"


# ═══════════════════════════════════════════════════════════════════════════
# Settings
# ═══════════════════════════════════════════════════════════════════════════

# Bound eagerly: importing the submodule would otherwise shadow the instance
from config.settings import Settings, settings  # noqa: E402


# ═══════════════════════════════════════════════════════════════════════════
# Lazy Export Definitions
# ═══════════════════════════════════════════════════════════════════════════

_LAZY_EXPORTS: Dict[str, Tuple[str, str]] = {
    # Model Registry
    "CLASSIFICATION_MODELS": ("config.model_registry", "CLASSIFICATION_MODELS"),
    "get_models_for_strategy": ("config.model_registry", "get_models_for_strategy"),
    "get_model_info": ("config.model_registry", "get_model_info"),
}

__all__ = (
    "__version__",
    "settings",
    "Settings",
    "CLASSIFICATION_MODELS",
    "get_models_for_strategy",
    "get_model_info",
    "validate_settings",
    "use_test_settings",
)


# ═══════════════════════════════════════════════════════════════════════════
# Lazy Loading Implementation
# ═══════════════════════════════════════════════════════════════════════════

def __getattr__(name: str) -> Any:
    """
    Lazy attribute resolution.

    Loads modules only when their exports are first accessed and caches
    the loaded object in module globals.
    """
    if name == "DEFAULT_RANDOM_STATE":
        # Not cached: tests may override RANDOM_STATE at runtime
        return import_module("config.settings").settings.RANDOM_STATE

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
    """Return module directory including lazy exports."""
    return sorted(set(list(globals().keys()) + list(_LAZY_EXPORTS.keys())))


# ═══════════════════════════════════════════════════════════════════════════
# Configuration Validation
# ═══════════════════════════════════════════════════════════════════════════

def validate_settings(*, strict: bool = False) -> Dict[str, str]:
    """
    🔍 **Validate Configuration Settings**

    Checks the cross-field constraints that pydantic field validators
    cannot see on their own.

    Args:
        strict: If True, raises ValueError on the first issue

    Returns:
        Dictionary of warnings (empty if all OK)
    """
    warnings: Dict[str, str] = {}
    _s = import_module("config.settings").settings
    registry = import_module("config.model_registry")

    unknown = [m for m in _s.default_models if m not in registry.CLASSIFICATION_MODELS]
    if unknown:
        warnings["DEFAULT_MODELS"] = f"Unknown model ids: {', '.join(unknown)}"

    if _s.KNN_NEIGHBORS > 25:
        warnings["KNN_NEIGHBORS"] = (
            f"KNN_NEIGHBORS={_s.KNN_NEIGHBORS} is large; imputation will "
            "average over distant donors"
        )

    if _s.RANDOM_STATE < 0:
        warnings["RANDOM_STATE"] = "RANDOM_STATE should be non-negative"

    for label in ("REPORTS_PATH", "LOGS_PATH"):
        path = getattr(_s, label)
        test_file = path / ".write_test"
        try:
            test_file.touch()
            test_file.unlink()
        except OSError:
            warnings[label] = f"{label} ({path}) is not writable"

    if strict and warnings:
        raise ValueError("; ".join(f"{k}: {v}" for k, v in warnings.items()))

    return warnings


# ═══════════════════════════════════════════════════════════════════════════
# Test Utilities
# ═══════════════════════════════════════════════════════════════════════════

def use_test_settings(**overrides: Any) -> Dict[str, Any]:
    """
    🧪 **Override Settings for Tests**

    Overrides global settings in place and returns the previous values so
    the caller can restore them.

    Example:
```python
        previous = use_test_settings(TUNING_N_ITER=2, CV_FOLDS=3)
        try:
            ...
        finally:
            use_test_settings(**previous)
```
    """
    settings_instance = import_module("config.settings").settings
    previous: Dict[str, Any] = {}

    for key, value in overrides.items():
        if not hasattr(settings_instance, key):
            raise AttributeError(f"Setting '{key}' does not exist in configuration")

        previous[key] = getattr(settings_instance, key)
        setattr(settings_instance, key, value)

    return previous
