# config/logging_config.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Logging Configuration                                        ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Loguru Console + File Sinks                                           ║
║  ✓ JSONL Structured Sink                                                 ║
║  ✓ Stdlib Logging Interception (sklearn / joblib / warnings)             ║
║  ✓ Per-Run Context (run_id)                                              ║
║  ✓ Execution-Time Decorator                                              ║
╚════════════════════════════════════════════════════════════════════════════╝

Sinks created by ``setup_logging``:
  • console (colorized)
  • app.log     (all records)
  • errors.log  (ERROR+)
  • app.jsonl   (structured, if LOG_JSON_ENABLED)

File sinks are skipped when ``settings.TEST_MODE`` is set.

Usage:
```python
    from config.logging_config import setup_logging, get_logger

    setup_logging()
    log = get_logger(__name__, component="pipeline")
    log.info("Loaded {} rows", 614)
```
"""

from __future__ import annotations

import logging
import sys
import time
import warnings
from contextvars import ContextVar
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from loguru import logger

from config.settings import settings

__all__ = [
    "setup_logging",
    "get_logger",
    "set_run_context",
    "clear_run_context",
    "log_execution_time",
]


# ═══════════════════════════════════════════════════════════════════════════
# Context Variables
# ═══════════════════════════════════════════════════════════════════════════

_ctx_run_id: ContextVar[Optional[str]] = ContextVar("run_id", default=None)


def set_run_context(run_id: Optional[str]) -> None:
    """Tag every subsequent record with the given pipeline run id."""
    _ctx_run_id.set(run_id)


def clear_run_context() -> None:
    _ctx_run_id.set(None)


# ═══════════════════════════════════════════════════════════════════════════
# Stdlib Logging Interception
# ═══════════════════════════════════════════════════════════════════════════

class InterceptHandler(logging.Handler):
    """
    🔌 **Stdlib Logging Interceptor**

    Routes standard library logging (and captured warnings) to loguru.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _patch_record(record: Dict[str, Any]) -> None:
    """Fill the extra fields the formats reference."""
    extra = record["extra"]
    extra.setdefault("run_id", _ctx_run_id.get() or "-")
    extra.setdefault("agent", "-")


# ═══════════════════════════════════════════════════════════════════════════
# Log Formats
# ═══════════════════════════════════════════════════════════════════════════

LOG_FORMAT_HUMAN = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "run=<blue>{extra[run_id]}</blue> agent=<blue>{extra[agent]}</blue> | "
    "<level>{message}</level>"
)

LOG_FORMAT_COMPACT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"
)


# ═══════════════════════════════════════════════════════════════════════════
# Initialization State
# ═══════════════════════════════════════════════════════════════════════════

_INITIALIZED_FLAG = False
_SINK_IDS: List[int] = []


# ═══════════════════════════════════════════════════════════════════════════
# Main Setup
# ═══════════════════════════════════════════════════════════════════════════

def setup_logging(
    app_name: Optional[str] = None,
    log_level: Optional[str] = None,
    *,
    enable_json: Optional[bool] = None,
    console_compact: Optional[bool] = None,
    logs_path: Optional[Union[str, Path]] = None,
    reset_existing: bool = False
) -> None:
    """
    🔧 **Setup Centralized Logging**

    Idempotent: repeated calls are no-ops unless ``reset_existing`` is set.

    Args:
        app_name: Application name bound to every record
        log_level: DEBUG/INFO/WARNING/ERROR/CRITICAL
        enable_json: Enable JSONL sink
        console_compact: Use compact console format
        logs_path: Directory for log files
        reset_existing: Force re-initialization
    """
    global _INITIALIZED_FLAG

    if _INITIALIZED_FLAG and not reset_existing:
        return

    app_name = app_name or settings.APP_NAME
    log_level = (log_level or settings.LOG_LEVEL).upper()
    logs_dir = Path(logs_path or settings.LOGS_PATH).resolve()
    enable_json = settings.LOG_JSON_ENABLED if enable_json is None else enable_json
    console_compact = (
        settings.LOG_CONSOLE_COMPACT if console_compact is None else console_compact
    )

    logger.remove()
    _SINK_IDS.clear()
    logger.configure(patcher=_patch_record, extra={"app": app_name})

    # Console sink
    _SINK_IDS.append(
        logger.add(
            sys.stderr,
            format=LOG_FORMAT_COMPACT if console_compact else LOG_FORMAT_HUMAN,
            level=log_level,
            colorize=True,
            backtrace=(log_level == "DEBUG"),
            diagnose=False,
        )
    )

    if not settings.TEST_MODE:
        logs_dir.mkdir(parents=True, exist_ok=True)

        _SINK_IDS.append(
            logger.add(
                logs_dir / "app.log",
                format=LOG_FORMAT_HUMAN,
                level=log_level,
                rotation=settings.LOG_ROTATION,
                retention=settings.LOG_RETENTION,
                compression="zip",
                encoding="utf-8",
            )
        )

        _SINK_IDS.append(
            logger.add(
                logs_dir / "errors.log",
                format=LOG_FORMAT_HUMAN,
                level="ERROR",
                rotation=settings.LOG_ROTATION,
                retention="90 days",
                compression="zip",
                encoding="utf-8",
            )
        )

        if enable_json:
            _SINK_IDS.append(
                logger.add(
                    logs_dir / "app.jsonl",
                    serialize=True,
                    level=log_level,
                    rotation=settings.LOG_ROTATION,
                    retention=settings.LOG_RETENTION,
                    compression="zip",
                    encoding="utf-8",
                )
            )

    # Intercept stdlib logging
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for lib in ("sklearn", "joblib", "py.warnings"):
        lib_logger = logging.getLogger(lib)
        lib_logger.handlers = [InterceptHandler()]
        lib_logger.propagate = False

    # sklearn convergence / undefined-metric warnings end up in the log
    warnings.simplefilter("default")
    logging.captureWarnings(True)

    logger.info(
        f"✓ Logging initialized: app={app_name}, level={log_level}, "
        f"json={enable_json}, logs_dir={logs_dir}"
    )

    _INITIALIZED_FLAG = True


# ═══════════════════════════════════════════════════════════════════════════
# Utilities
# ═══════════════════════════════════════════════════════════════════════════

def get_logger(name: Optional[str] = None, **binds: Any):
    """
    📝 **Get Bound Logger**

    Example:
```python
        log = get_logger(__name__, component="pipeline")
        log.info("Processing")
```
    """
    lgr = logger

    if name:
        lgr = lgr.bind(name=name)

    if binds:
        lgr = lgr.bind(**binds)

    return lgr


def log_execution_time(func: Callable) -> Callable:
    """
    ⏱️ **Log Execution Time Decorator**

    Logs start, duration and failures of the wrapped function. Exceptions
    are re-raised unchanged.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        logger.debug(f"▶️  Starting {func.__name__}")

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            duration = time.perf_counter() - start
            logger.error(f"✗ Failed {func.__name__} after {duration:.3f}s: {e}")
            raise

        duration = time.perf_counter() - start
        logger.debug(f"✓ Completed {func.__name__} in {duration:.3f}s")
        return result

    return wrapper
