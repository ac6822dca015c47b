# backend/pipeline_executor.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  LoanScope — Pipeline Executor                                            ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ End-to-End Run (load → normalize → impute → split → encode → models)  ║
║  ✓ Per-Step Timing and Telemetry                                         ║
║  ✓ Run-Id Tagged Logging                                                 ║
║  ✓ Report Artifacts (metrics.json, metrics.csv)                          ║
║  ✓ Fail-Fast: every domain error aborts the run                          ║
╚════════════════════════════════════════════════════════════════════════════╝

Pipeline Stages:
    1. load        → raw string table
    2. normalize   → canonical names, levels and dtypes
    3. impute      → k-NN fill of every missing feature value
    4. split       → stratified training / evaluation partitions
    5. encode      → fixed integer codes, feature matrices, 0/1 labels
    6. models      → tune, fit, evaluate every classifier, recommend one

Usage:
```python
    from backend.pipeline_executor import LoanPipeline, PipelineConfig

    result = LoanPipeline(PipelineConfig(k=5, seed=42)).run("data/loans.csv")
    print(result.recommended, result.step_timings)
```

Dependencies:
    • pandas, numpy
    • loguru
    • agents.preprocessing, agents.ml
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import pandas as pd
from loguru import logger

from agents.ml.hyperparameter_tuner import TuningConfig
from agents.ml.ml_orchestrator import MLConfig, MLOrchestrator
from agents.ml.model_evaluator import (
    ModelReport,
    reports_to_frame,
    write_reports_csv,
    write_reports_json,
)
from agents.preprocessing.encoder import CategoricalEncoder
from agents.preprocessing.knn_imputer import KNNImputer, KNNImputerConfig
from agents.preprocessing.partitioner import StratifiedPartitioner
from agents.preprocessing.schema_normalizer import SchemaNormalizer
from config.logging_config import clear_run_context, log_execution_time, set_run_context
from config.settings import settings
from core.base_agent import AgentResult, BaseAgent
from core.data_loader import load_table
from core.exceptions import ConfigurationError, PipelineError, exception_context
from core.schema import LOAN_SCHEMA, TableSchema
from core.utils import generate_run_id, hash_dataframe

__all__ = ["PipelineConfig", "StepResult", "PipelineResult", "LoanPipeline", "run_pipeline"]
__version__ = "1.0.0"


def _now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


# ═══════════════════════════════════════════════════════════════════════════
# Data Models
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class PipelineConfig:
    """
    ⚙️ **Pipeline Configuration**

    ``None`` fields fall back to ``config.settings``.

    Imputation:
        k: Neighbors per gap
        max_missing_fraction: Per-column missing fraction guard

    Partition:
        train_fraction: Share of each class sent to training
        seed: Drives the partition, tuning folds and seeded estimators

    Models:
        models: Registry ids, in evaluation order
        strategy: random_search / grid_search / none
        n_iter, cv_folds, n_jobs: Tuning controls
        threshold: Decision threshold for the confusion counts
        recommendation_metric: Metric the recommendation maximizes

    Output:
        output_dir: Reports root; ``None`` disables artifact writing
        on_event: Callback receiving step start/end events
    """

    k: Optional[int] = None
    max_missing_fraction: Optional[float] = None
    train_fraction: Optional[float] = None
    seed: Optional[int] = None
    models: Optional[List[str]] = None
    strategy: Optional[str] = None
    n_iter: Optional[int] = None
    cv_folds: Optional[int] = None
    n_jobs: Optional[int] = None
    threshold: Optional[float] = None
    recommendation_metric: Optional[str] = None
    output_dir: Optional[Path] = None
    on_event: Optional[Callable[[Dict[str, Any]], None]] = None

    def resolved(self) -> "PipelineConfig":
        return PipelineConfig(
            k=settings.KNN_NEIGHBORS if self.k is None else self.k,
            max_missing_fraction=(
                settings.KNN_MAX_MISSING_FRACTION
                if self.max_missing_fraction is None else self.max_missing_fraction
            ),
            train_fraction=settings.TRAIN_FRACTION if self.train_fraction is None else self.train_fraction,
            seed=settings.RANDOM_STATE if self.seed is None else self.seed,
            models=list(self.models or settings.default_models),
            strategy=self.strategy or settings.TUNING_STRATEGY,
            n_iter=settings.TUNING_N_ITER if self.n_iter is None else self.n_iter,
            cv_folds=settings.CV_FOLDS if self.cv_folds is None else self.cv_folds,
            n_jobs=settings.N_JOBS if self.n_jobs is None else self.n_jobs,
            threshold=settings.DECISION_THRESHOLD if self.threshold is None else self.threshold,
            recommendation_metric=self.recommendation_metric or settings.RECOMMENDATION_METRIC,
            output_dir=None if self.output_dir is None else Path(self.output_dir),
            on_event=self.on_event,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (excluding callback)."""
        d = asdict(self)
        d.pop("on_event", None)
        if d.get("output_dir") is not None:
            d["output_dir"] = str(d["output_dir"])
        return d


@dataclass
class StepResult:
    """Outcome of one pipeline step."""

    name: str
    started_at: str
    finished_at: str
    duration_sec: float
    telemetry: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PipelineResult:
    """
    📦 **Pipeline Result**

    Attributes:
        run_id: Identifier tagging logs and the report directory
        reports: One ``ModelReport`` per requested model
        recommended: Model id chosen by the recommendation metric
        steps: Per-step timing and telemetry
        data_hash: Hash of the imputed table (reproducibility check)
        artifacts: Paths of written report files
    """

    run_id: str
    reports: List[ModelReport]
    recommended: Optional[str]
    steps: List[StepResult]
    data_hash: str
    config: Dict[str, Any] = field(default_factory=dict)
    artifacts: Dict[str, str] = field(default_factory=dict)
    duration_sec: float = 0.0
    version: str = __version__

    @property
    def step_timings(self) -> Dict[str, float]:
        return {s.name: s.duration_sec for s in self.steps}

    def get_step(self, name: str) -> Optional[StepResult]:
        for step in self.steps:
            if step.name == name:
                return step
        return None

    def get_report(self, model_id: str) -> Optional[ModelReport]:
        for report in self.reports:
            if report.model_id == model_id:
                return report
        return None

    def metrics_frame(self) -> pd.DataFrame:
        return reports_to_frame(self.reports)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "recommended": self.recommended,
            "models": [r.to_dict() for r in self.reports],
            "steps": [s.to_dict() for s in self.steps],
            "data_hash": self.data_hash,
            "config": self.config,
            "artifacts": self.artifacts,
            "duration_sec": self.duration_sec,
            "version": self.version,
        }


# ═══════════════════════════════════════════════════════════════════════════
# Main Pipeline
# ═══════════════════════════════════════════════════════════════════════════

class LoanPipeline:
    """
    🎯 **Loan Approval Pipeline**

    Runs every stage in order. Domain errors (``LoanScopeError``) propagate
    unchanged; an agent that fails for any other reason aborts the run with
    ``PipelineError``. Nothing is retried.

    Architecture:
```
        ┌────────────────────────────────────────────────┐
        │              LoanPipeline.run(path)            │
        ├────────────────────────────────────────────────┤
        │  run_id → log context                          │
        │  load → SchemaNormalizer → KNNImputer          │
        │       → StratifiedPartitioner                  │
        │       → CategoricalEncoder → MLOrchestrator    │
        │  write metrics.json / metrics.csv              │
        └────────────────────────────────────────────────┘
```
    """

    version: str = __version__

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        schema: TableSchema = LOAN_SCHEMA
    ) -> None:
        self.config = (config or PipelineConfig()).resolved()
        self.schema = schema
        self.logger = logger.bind(component="LoanPipeline", version=self.version)
        self._steps: List[StepResult] = []

    # ───────────────────────────────────────────────────────────────────
    # Agents
    # ───────────────────────────────────────────────────────────────────

    def _ml_config(self) -> MLConfig:
        cfg = self.config
        with exception_context(to=ConfigurationError, message="Invalid tuning configuration"):
            tuning = TuningConfig(
                strategy=cfg.strategy,
                n_iter=cfg.n_iter,
                cv_folds=cfg.cv_folds,
                n_jobs=cfg.n_jobs,
                seed=cfg.seed,
            )
        return MLConfig(
            models=cfg.models,
            tuning=tuning,
            threshold=cfg.threshold,
            positive_label=settings.POSITIVE_LABEL,
            seed=cfg.seed,
            recommendation_metric=cfg.recommendation_metric,
        )

    # ───────────────────────────────────────────────────────────────────
    # Execution
    # ───────────────────────────────────────────────────────────────────

    def run(self, path: Union[str, Path]) -> PipelineResult:
        """
        🚀 **Run the Pipeline on a CSV File**

        Raises:
            LoanScopeError: Any domain failure (bad file, schema violation,
                imputation/partition/encoding/training error)
        """
        started_at = _now_iso()
        t0 = time.perf_counter()
        raw = load_table(path)
        return self.run_frame(
            raw,
            source=str(path),
            load_timing=(started_at, time.perf_counter() - t0),
        )

    def run_frame(
        self,
        raw: pd.DataFrame,
        *,
        source: str = "<frame>",
        load_timing: Optional[Tuple[str, float]] = None
    ) -> PipelineResult:
        """Run every stage after loading on an already-read string table."""
        cfg = self.config
        ml_config = self._ml_config()
        run_id = generate_run_id()
        set_run_context(run_id)
        self._steps = []
        t0 = time.perf_counter()

        self.logger.info(
            f"🚀 Pipeline start | run_id={run_id} | source={source} | "
            f"rows={len(raw)} | models={cfg.models}"
        )

        try:
            load_started, load_elapsed = load_timing or (_now_iso(), 0.0)
            self._record(
                "load",
                load_started,
                load_elapsed,
                {"source": source, "rows": int(len(raw)), "columns": int(raw.shape[1])},
            )

            normalized = self._step(
                "normalize", SchemaNormalizer(self.schema), data=raw
            )
            imputed = self._step(
                "impute",
                KNNImputer(
                    KNNImputerConfig(k=cfg.k, max_missing_fraction=cfg.max_missing_fraction),
                    self.schema,
                ),
                data=normalized["data"],
            )
            parts = self._step(
                "split",
                StratifiedPartitioner(
                    train_fraction=cfg.train_fraction,
                    seed=cfg.seed,
                    label_column=self.schema.label_column,
                ),
                data=imputed["data"],
            )
            encoded = self._step(
                "encode",
                CategoricalEncoder(self.schema, ml_config.positive_label),
                train=parts["train"],
                evaluation=parts["evaluation"],
            )
            models = self._step(
                "models",
                MLOrchestrator(ml_config),
                X_train=encoded["X_train"],
                y_train=encoded["y_train"],
                X_eval=encoded["X_eval"],
                y_eval=encoded["y_eval"],
            )

            result = PipelineResult(
                run_id=run_id,
                reports=models["reports"],
                recommended=models["recommended"],
                steps=list(self._steps),
                data_hash=hash_dataframe(imputed["data"]),
                config=cfg.to_dict(),
                duration_sec=round(time.perf_counter() - t0, 4),
            )

            if cfg.output_dir is not None:
                result.artifacts = self._write_artifacts(result, cfg.output_dir / run_id)

            self.logger.success(
                f"✓ Pipeline complete | run_id={run_id} | "
                f"recommended={result.recommended} | time={result.duration_sec:.2f}s"
            )
            return result

        finally:
            clear_run_context()

    def _step(self, name: str, agent: BaseAgent, **kwargs: Any) -> Dict[str, Any]:
        """Run one agent; a failed ``AgentResult`` aborts the pipeline."""
        started_at = _now_iso()
        self._emit({"step": name, "event": "start"})
        t_start = time.perf_counter()

        outcome: AgentResult = agent.run(**kwargs)

        if outcome.is_failed():
            raise PipelineError(
                f"Step '{name}' failed: {'; '.join(outcome.errors)}",
                details={"step": name, "errors": list(outcome.errors)}
            )

        self._record(
            name,
            started_at,
            time.perf_counter() - t_start,
            dict(outcome.data.get("telemetry") or outcome.data.get("summary") or {}),
            list(outcome.warnings),
        )
        return outcome.data

    def _record(
        self,
        name: str,
        started_at: str,
        elapsed: float,
        telemetry: Dict[str, Any],
        warnings: Optional[List[str]] = None
    ) -> None:
        self._steps.append(StepResult(
            name=name,
            started_at=started_at,
            finished_at=_now_iso(),
            duration_sec=round(elapsed, 4),
            telemetry=telemetry,
            warnings=warnings or [],
        ))
        self._emit({"step": name, "event": "end", "duration_sec": round(elapsed, 4)})

    def _emit(self, event: Dict[str, Any]) -> None:
        if self.config.on_event:
            try:
                self.config.on_event({"ts": _now_iso(), **event})
            except Exception as e:
                self.logger.debug(f"on_event callback failed: {e}")

    # ───────────────────────────────────────────────────────────────────
    # Artifacts
    # ───────────────────────────────────────────────────────────────────

    @log_execution_time
    def _write_artifacts(self, result: PipelineResult, run_dir: Path) -> Dict[str, str]:
        json_path = write_reports_json(
            result.reports,
            run_dir / "metrics.json",
            recommended=result.recommended,
            extra={
                "run_id": result.run_id,
                "config": result.config,
                "data_hash": result.data_hash,
                "step_timings": result.step_timings,
            },
        )
        csv_path = write_reports_csv(result.reports, run_dir / "metrics.csv")
        return {"metrics_json": str(json_path), "metrics_csv": str(csv_path)}


def run_pipeline(path: Union[str, Path], **overrides: Any) -> PipelineResult:
    """Convenience wrapper: ``LoanPipeline(PipelineConfig(**overrides)).run(path)``."""
    return LoanPipeline(PipelineConfig(**overrides)).run(path)
