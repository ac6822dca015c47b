"""
LoanScope - Integration Tests for the End-to-End Pipeline
"""

import json

import pandas as pd
import pytest

from backend.pipeline_executor import LoanPipeline, PipelineConfig, run_pipeline
from core.exceptions import ConfigurationError, DataLoadError, ImputationError, SchemaError

pytestmark = pytest.mark.integration

SIX_MODELS = ["lr", "nb", "knn", "rf", "svm", "gbc"]


@pytest.fixture
def fast_config(tmp_path) -> PipelineConfig:
    return PipelineConfig(
        k=5,
        train_fraction=0.8,
        seed=42,
        models=["lr", "nb"],
        strategy="none",
        output_dir=tmp_path / "reports",
    )


class TestLoanPipeline:
    """Tests for LoanPipeline.run"""

    @pytest.mark.slow
    def test_six_models(self, loan_csv):
        result = LoanPipeline(PipelineConfig(models=SIX_MODELS, strategy="none", seed=1)).run(loan_csv)

        assert [r.model_id for r in result.reports] == SIX_MODELS
        assert result.recommended in SIX_MODELS
        for report in result.reports:
            assert 0.0 <= report.auc <= 1.0
            assert report.confusion.total == 16
        assert not result.artifacts

    def test_steps_recorded(self, loan_csv, fast_config):
        result = LoanPipeline(fast_config).run(loan_csv)

        assert [s.name for s in result.steps] == [
            "load", "normalize", "impute", "split", "encode", "models"
        ]
        assert all(s.duration_sec >= 0 for s in result.steps)
        assert result.get_step("split").telemetry["n_train"] == 64
        assert result.get_step("split").telemetry["n_eval"] == 16

    def test_artifacts_written(self, loan_csv, fast_config, tmp_path):
        result = LoanPipeline(fast_config).run(loan_csv)

        run_dir = tmp_path / "reports" / result.run_id
        payload = json.loads((run_dir / "metrics.json").read_text(encoding="utf-8"))
        frame = pd.read_csv(run_dir / "metrics.csv")

        assert payload["recommended"] == result.recommended
        assert [m["model_id"] for m in payload["models"]] == ["lr", "nb"]
        assert payload["run_id"] == result.run_id
        assert frame["model_id"].tolist() == ["lr", "nb"]
        assert result.metrics_frame()["model_id"].tolist() == ["lr", "nb"]
        assert result.artifacts["metrics_json"].endswith("metrics.json")

    def test_reproducible(self, loan_csv, fast_config):
        first = LoanPipeline(fast_config).run(loan_csv)
        second = LoanPipeline(fast_config).run(loan_csv)

        assert first.data_hash == second.data_hash
        assert [r.auc for r in first.reports] == [r.auc for r in second.reports]
        assert first.recommended == second.recommended

    def test_random_search(self, loan_csv):
        result = run_pipeline(
            loan_csv, models=["lr"], strategy="random_search", n_iter=2, cv_folds=3, seed=0
        )
        report = result.get_report("lr")
        assert set(report.best_params) <= {"C", "class_weight"}
        assert 0.0 <= report.cv_score <= 1.0

    def test_events(self, loan_csv, fast_config):
        events = []
        fast_config.on_event = events.append
        LoanPipeline(fast_config).run(loan_csv)

        ends = [e["step"] for e in events if e["event"] == "end"]
        assert ends == ["load", "normalize", "impute", "split", "encode", "models"]

    def test_to_dict_is_json_serializable(self, loan_csv, fast_config):
        result = LoanPipeline(fast_config).run(loan_csv)
        json.dumps(result.to_dict(), default=str)


class TestPipelineFailures:
    """Domain errors abort the run"""

    def test_missing_file(self, tmp_path, fast_config):
        with pytest.raises(DataLoadError):
            LoanPipeline(fast_config).run(tmp_path / "absent.csv")

    def test_schema_violation(self, tmp_path, raw_loans, fast_config):
        raw = raw_loans.copy()
        raw.loc[0, "Education"] = "PhD"
        path = tmp_path / "bad.csv"
        raw.to_csv(path, index=False)

        with pytest.raises(SchemaError):
            LoanPipeline(fast_config).run(path)

    def test_k_too_large(self, loan_csv, fast_config):
        fast_config.k = 500
        with pytest.raises(ImputationError):
            LoanPipeline(fast_config).run(loan_csv)

    def test_invalid_tuning(self, loan_csv, fast_config):
        fast_config.cv_folds = 1
        with pytest.raises(ConfigurationError):
            LoanPipeline(fast_config).run(loan_csv)

    def test_no_partial_artifacts(self, loan_csv, fast_config, tmp_path):
        fast_config.models = ["lr", "perceptron"]
        with pytest.raises(ConfigurationError):
            LoanPipeline(fast_config).run(loan_csv)
        assert not (tmp_path / "reports").exists()


class TestCli:
    """Tests for scripts.run_pipeline.main"""

    def test_success(self, loan_csv, tmp_path, capsys):
        from scripts.run_pipeline import main

        code = main([
            "--data", str(loan_csv),
            "--models", "lr,nb",
            "--strategy", "none",
            "--output", str(tmp_path / "out"),
            "--log-level", "warning",
        ])

        assert code == 0
        out = capsys.readouterr().out
        assert "Recommended model:" in out
        assert len(list((tmp_path / "out").glob("*/metrics.json"))) == 1

    def test_failure_returns_one(self, tmp_path):
        from scripts.run_pipeline import main

        assert main(["--data", str(tmp_path / "missing.csv"), "--no-output"]) == 1

    def test_strategy_name_expands(self):
        from scripts.run_pipeline import build_parser

        args = build_parser().parse_args(["--models", "fast"])
        assert args.models == ["lr", "nb", "knn"]
