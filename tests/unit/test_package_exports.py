"""
LoanScope - Unit Tests for Lazy Package Exports
"""

import pytest


class TestLazyExports:
    """Package-level names resolve to the defining module's objects"""

    def test_agents(self):
        import agents
        from agents.preprocessing.knn_imputer import KNNImputer

        assert agents.KNNImputer is KNNImputer
        categories = agents.list_agents_by_category()
        assert "SchemaNormalizer" in categories["preprocessing"]
        assert "MLOrchestrator" in categories["ml"]

    def test_agents_ml(self):
        import agents.ml as ml
        from agents.ml.metrics import auc

        assert ml.auc is auc
        assert ml.is_loaded("auc")
        assert "recommend_model" in ml.list_exports()

    def test_preprocessing(self):
        import agents.preprocessing as pre
        from agents.preprocessing.partitioner import split

        assert pre.split is split

    def test_core_and_config(self):
        import config
        import core
        from core.schema import LOAN_SCHEMA

        assert core.LOAN_SCHEMA is LOAN_SCHEMA
        assert config.settings.POSITIVE_LABEL == "Approved"

    def test_settings_is_instance_after_submodule_import(self):
        import config.settings  # noqa: F401
        from config import Settings, settings

        assert isinstance(settings, Settings)

    def test_ml_category_lists_orchestrator(self):
        import agents

        assert agents.list_agents_by_category()["ml"] == [
            "HyperparameterTuner", "MLConfig", "MLOrchestrator", "ModelEvaluator"
        ]

    def test_unknown_name(self):
        import agents.ml as ml

        with pytest.raises(AttributeError):
            ml.not_a_symbol
