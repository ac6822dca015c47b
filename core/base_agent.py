# core/base_agent.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Base Agent                                                   ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Abstract Base Agent Class                                             ║
║  ✓ Lifecycle Hooks (validate → before → execute → after)                 ║
║  ✓ Progress Callbacks                                                    ║
║  ✓ Safe JSON Serialization of Results                                    ║
║  ✓ Fail-Fast on Domain Errors                                            ║
╚════════════════════════════════════════════════════════════════════════════╝

Every pipeline stage is a pure function plus a thin agent around it. The
agent adds logging, timing and a standard ``AgentResult``; it never retries.
A ``LoanScopeError`` raised inside ``execute`` is logged and re-raised
unchanged. Any other exception is reported as a failed result.

Usage:
```python
    from core.base_agent import BaseAgent, AgentResult

    class MyAgent(BaseAgent):
        def __init__(self):
            super().__init__(name="MyAgent", description="Custom agent")

        def execute(self, data, **kwargs) -> AgentResult:
            result = AgentResult(agent_name=self.name)
            result.add_data(rows=len(data))
            return result

    result = MyAgent().run(data=df)
```

Dependencies:
    • loguru
    • pydantic
    • numpy / pandas (serialization)
"""

from __future__ import annotations

import json
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Literal, Optional
from uuid import uuid4

import numpy as np
import pandas as pd
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from core.exceptions import LoanScopeError

# ═══════════════════════════════════════════════════════════════════════════
# Module Metadata
# ═══════════════════════════════════════════════════════════════════════════

__version__ = "1.0.0"

__all__ = [
    "BaseAgent",
    "AgentResult",
    "AgentStatus",
    "AgentError",
]


# ═══════════════════════════════════════════════════════════════════════════
# Type Definitions
# ═══════════════════════════════════════════════════════════════════════════

AgentStatus = Literal["success", "failed", "partial"]


class AgentError(RuntimeError):
    """Agent returned something other than an AgentResult."""
    pass


# ═══════════════════════════════════════════════════════════════════════════
# Agent Result
# ═══════════════════════════════════════════════════════════════════════════

def _safe_default(obj: Any) -> Any:
    """JSON fallback for numpy, pandas and datetime objects."""
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return None if np.isnan(obj) else float(obj)
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, pd.Timestamp):
        return obj.isoformat()
    if isinstance(obj, pd.Series):
        return obj.tolist()
    if isinstance(obj, pd.DataFrame):
        return {"shape": list(obj.shape), "columns": [str(c) for c in obj.columns]}
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)


class AgentResult(BaseModel):
    """
    📊 **Agent Execution Result**

    Attributes:
        agent_name: Name of the agent
        status: Execution status (success/failed/partial)
        execution_time: Duration in seconds
        trace_id: Unique trace identifier
        data: Result payload (frames, reports, maps)
        metadata: Additional metadata
        errors: Error messages
        warnings: Warning messages
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    agent_name: str
    status: AgentStatus = Field(default="success")

    # Timing
    execution_time: float = Field(default=0.0)
    timestamp: datetime = Field(default_factory=datetime.now)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    # Tracing
    trace_id: str = Field(default_factory=lambda: uuid4().hex)

    # Payload
    data: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    # ───────────────────────────────────────────────────────────────────
    # Status Checks
    # ───────────────────────────────────────────────────────────────────

    def is_success(self) -> bool:
        return self.status == "success"

    def is_failed(self) -> bool:
        return self.status == "failed"

    def is_partial(self) -> bool:
        return self.status == "partial"

    # ───────────────────────────────────────────────────────────────────
    # Mutations
    # ───────────────────────────────────────────────────────────────────

    def add_error(self, error: str) -> None:
        """Add error and mark as failed."""
        self.errors.append(error)
        self.status = "failed"

    def add_warning(self, warning: str) -> None:
        """Add warning and mark as partial if success."""
        self.warnings.append(warning)
        if self.status == "success":
            self.status = "partial"

    def add_data(self, **items: Any) -> None:
        self.data.update(items)

    def add_metadata(self, **items: Any) -> None:
        self.metadata.update(items)

    # ───────────────────────────────────────────────────────────────────
    # Serialization
    # ───────────────────────────────────────────────────────────────────

    def to_json(self) -> str:
        """
        Convert to JSON string.

        DataFrames in ``data`` are summarized by shape and columns rather
        than dumped row by row.
        """
        payload = {
            "agent_name": self.agent_name,
            "status": self.status,
            "execution_time": self.execution_time,
            "timestamp": self.timestamp,
            "trace_id": self.trace_id,
            "data": self.data,
            "metadata": self.metadata,
            "errors": self.errors,
            "warnings": self.warnings,
        }
        return json.dumps(payload, default=_safe_default, ensure_ascii=False)


# ═══════════════════════════════════════════════════════════════════════════
# Base Agent
# ═══════════════════════════════════════════════════════════════════════════

class BaseAgent(ABC):
    """
    🤖 **Base Agent Class**

    Lifecycle:
```
        run() → validate_input()
              → before_execute()
              → execute()
              → measure time
              → after_execute()
              → return AgentResult
```
    """

    def __init__(
        self,
        name: str,
        description: str = "",
        version: Optional[str] = None,
        *,
        on_progress: Optional[Callable[[Dict[str, Any]], None]] = None
    ):
        self.name = name
        self.description = description
        self.version = version or getattr(type(self), "version", __version__)

        self.logger = logger.bind(
            agent=name,
            component="agent",
            version=self.version
        )

        self._result: Optional[AgentResult] = None
        self.on_progress = on_progress

    # ───────────────────────────────────────────────────────────────────
    # Abstract Methods
    # ───────────────────────────────────────────────────────────────────

    @abstractmethod
    def execute(self, **kwargs) -> AgentResult:
        """
        Execute agent logic.

        Must be implemented by subclasses.
        """
        raise NotImplementedError

    # ───────────────────────────────────────────────────────────────────
    # Lifecycle Hooks
    # ───────────────────────────────────────────────────────────────────

    def validate_input(self, **kwargs) -> bool:
        """
        Validate input before execution.

        Override to add custom validation; raise a LoanScopeError subclass
        on failure.
        """
        return True

    def before_execute(self, **kwargs) -> None:
        self._emit_progress("start", extra={"kwargs_keys": list(kwargs.keys())})
        self.logger.info(f"[{self.name}] Starting execution")

    def after_execute(self, result: AgentResult) -> None:
        self._emit_progress(
            "end",
            extra={
                "status": result.status,
                "execution_time": round(result.execution_time, 3)
            }
        )
        self.logger.info(
            f"[{self.name}] Execution completed: "
            f"status={result.status}, time={result.execution_time:.3f}s"
        )

    def _emit_progress(
        self,
        event: str,
        *,
        extra: Optional[Dict[str, Any]] = None
    ) -> None:
        """Emit progress event to callback."""
        if self.on_progress:
            try:
                self.on_progress({
                    "agent": self.name,
                    "event": event,
                    "ts": datetime.now(timezone.utc).isoformat(),
                    **(extra or {})
                })
            except Exception as e:
                self.logger.debug(f"on_progress callback failed: {e}")

    # ───────────────────────────────────────────────────────────────────
    # Main Execution
    # ───────────────────────────────────────────────────────────────────

    def run(self, **kwargs) -> AgentResult:
        """
        🚀 **Execute Agent**

        Returns:
            AgentResult. Non-domain failures come back as a failed result.

        Raises:
            LoanScopeError: Domain errors are fatal and propagate unchanged
        """
        start_perf = time.perf_counter()
        started_at = datetime.now()

        try:
            self.validate_input(**kwargs)
            self.before_execute(**kwargs)

            result = self.execute(**kwargs)

            if not isinstance(result, AgentResult):
                raise AgentError(
                    f"Invalid result type returned by {self.name}: "
                    f"expected AgentResult, got {type(result).__name__}"
                )

            result.execution_time = time.perf_counter() - start_perf
            result.started_at = started_at
            result.finished_at = datetime.now()

            self._result = result
            self.after_execute(result)

            return result

        except LoanScopeError as e:
            self.logger.error(f"[{self.name}] {e}")
            raise

        except Exception as e:
            self.logger.opt(exception=True).error(f"[{self.name}] Execution failed: {e}")

            failed = AgentResult(
                agent_name=self.name,
                status="failed",
                execution_time=time.perf_counter() - start_perf,
                started_at=started_at,
                finished_at=datetime.now()
            )
            failed.add_error(f"{type(e).__name__}: {e}")

            self._result = failed
            self.after_execute(failed)

            return failed

    # ───────────────────────────────────────────────────────────────────
    # Utilities
    # ───────────────────────────────────────────────────────────────────

    def get_last_result(self) -> Optional[AgentResult]:
        return self._result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', version='{self.version}')"
