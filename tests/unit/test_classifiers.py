"""
LoanScope - Unit Tests for Classifiers and the Model Registry
"""

import numpy as np
import pytest
from sklearn.pipeline import Pipeline

from agents.ml.classifiers import Classifier, get_classifier, strip_param_prefix
from config.model_registry import (
    get_all_model_ids,
    get_model_info,
    get_models_for_strategy,
    list_strategies,
    registry_rank,
)
from core.exceptions import ConfigurationError, ModelTrainingError


class TestModelRegistry:
    """Tests for the model registry"""

    def test_six_reference_models(self):
        assert get_models_for_strategy("default") == ["lr", "nb", "knn", "rf", "svm", "gbc"]

    def test_registry_order(self):
        ids = get_all_model_ids()
        assert ids[:6] == ["lr", "nb", "knn", "rf", "svm", "gbc"]
        assert registry_rank("lr") == 0
        assert registry_rank("unknown") == len(ids)

    def test_unknown_strategy(self):
        with pytest.raises(ValueError):
            get_models_for_strategy("everything")

    def test_strategies_described(self):
        assert {"default", "fast", "all_available"} <= set(list_strategies())

    def test_unknown_model_info(self):
        assert get_model_info("nope") == {}
        assert get_model_info("rf")["id"] == "rf"


class TestSklearnClassifier:
    """Tests for the registry-driven classifier"""

    def test_protocol(self):
        assert isinstance(get_classifier("nb"), Classifier)

    def test_unknown_id(self):
        with pytest.raises(ConfigurationError) as exc:
            get_classifier("perceptron")
        assert exc.value.details["model"] == "perceptron"

    def test_scaled_models_get_pipeline(self):
        clf = get_classifier("svm", seed=1)
        estimator = clf.build_estimator()

        assert isinstance(estimator, Pipeline)
        assert all(k.startswith("clf__") for k in clf.search_space())
        assert "C" in clf.search_space(prefixed=False)

    def test_unscaled_models_are_bare(self):
        clf = get_classifier("rf", seed=1)
        assert not isinstance(clf.build_estimator(), Pipeline)
        assert clf.param_prefix == ""

    def test_resolved_params(self):
        clf = get_classifier("rf", seed=7)
        params = clf.resolved_params({"n_estimators": 50})

        assert params["n_estimators"] == 50
        assert params["random_state"] == 7

    def test_prefix_stripped(self):
        assert strip_param_prefix({"clf__C": 1.0, "gamma": "scale"}) == {"C": 1.0, "gamma": "scale"}

    @pytest.mark.parametrize("model_id", ["lr", "nb", "knn", "rf", "svm", "gbc"])
    def test_fit_predict(self, model_id, encoded_split):
        X_train, y_train, X_eval, _ = encoded_split
        clf = get_classifier(model_id, seed=0)

        handle = clf.fit(X_train, y_train)
        proba = clf.predict(handle, X_eval)

        assert proba.shape == (len(X_eval),)
        assert np.all((proba >= 0.0) & (proba <= 1.0))
        assert handle.feature_names == list(X_train.columns)

    def test_fit_is_deterministic(self, encoded_split):
        X_train, y_train, X_eval, _ = encoded_split
        clf = get_classifier("rf", seed=3)

        first = clf.predict(clf.fit(X_train, y_train, {"n_estimators": 20}), X_eval)
        second = clf.predict(clf.fit(X_train, y_train, {"n_estimators": 20}), X_eval)
        np.testing.assert_array_equal(first, second)

    def test_single_class_rejected(self, encoded_split):
        X_train, y_train, _, _ = encoded_split
        with pytest.raises(ModelTrainingError):
            get_classifier("lr").fit(X_train, np.ones_like(y_train))

    def test_bad_hyperparameter(self, encoded_split):
        X_train, y_train, _, _ = encoded_split
        with pytest.raises(ModelTrainingError):
            get_classifier("knn").fit(X_train, y_train, {"n_neighbors": -3})
