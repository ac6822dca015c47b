"""
LoanScope - Unit Tests for Categorical Encoding
"""

import numpy as np
import pandas as pd
import pytest

from agents.preprocessing.encoder import (
    CategoricalEncoder,
    EncodingMap,
    apply_encoding,
    build_encoding,
    decode,
    encode_labels,
    feature_matrix,
)
from core.exceptions import EncodingError
from core.schema import LOAN_SCHEMA


@pytest.fixture
def encoding(imputed_loans) -> EncodingMap:
    return build_encoding(imputed_loans)


class TestBuildEncoding:
    """Tests for build_encoding"""

    def test_codes_follow_declared_levels(self, encoding):
        assert encoding.codes("property_area") == {"Rural": 0, "Semiurban": 1, "Urban": 2}
        assert encoding.codes("dependents") == {"0": 0, "1": 1, "2": 2, "3+": 3}
        assert encoding.codes("credit_history") == {"Bad": 0, "Good": 1}

    def test_every_categorical_feature_encoded(self, encoding):
        assert encoding.columns == LOAN_SCHEMA.categorical_columns
        assert "loan_status" not in encoding.columns

    def test_levels_absent_from_training_still_coded(self, imputed_loans):
        """Codes do not depend on which levels the training rows contain"""
        only_urban = imputed_loans[imputed_loans["property_area"] == "Urban"]
        enc = build_encoding(only_urban)
        assert enc.codes("property_area") == {"Rural": 0, "Semiurban": 1, "Urban": 2}

    def test_map_is_immutable(self, encoding):
        with pytest.raises(TypeError):
            encoding.tables["gender"] = ()

    def test_absent_column(self, imputed_loans):
        with pytest.raises(EncodingError):
            build_encoding(imputed_loans.drop(columns=["married"]))


class TestApplyEncoding:
    """Tests for apply_encoding and decode"""

    def test_codes_are_integers(self, imputed_loans, encoding):
        encoded = apply_encoding(imputed_loans, encoding)
        for col in encoding.columns:
            assert encoded[col].dtype == np.int64
            assert encoded[col].between(0, len(encoding.levels(col)) - 1).all()

    def test_non_encoded_columns_pass_through(self, imputed_loans, encoding):
        encoded = apply_encoding(imputed_loans, encoding)
        pd.testing.assert_series_equal(encoded["applicant_income"], imputed_loans["applicant_income"])
        pd.testing.assert_series_equal(encoded["loan_status"], imputed_loans["loan_status"])

    def test_decode_restores_values(self, imputed_loans, encoding):
        features = imputed_loans[list(LOAN_SCHEMA.feature_columns)]
        restored = decode(apply_encoding(features, encoding), encoding)
        pd.testing.assert_frame_equal(restored, features)

    def test_unseen_level(self, imputed_loans, encoding):
        table = imputed_loans.copy()
        table["gender"] = table["gender"].astype(object)
        table.loc[table.index[2], "gender"] = "Other"

        with pytest.raises(EncodingError) as exc:
            apply_encoding(table, encoding)

        assert exc.value.column == "gender"
        assert exc.value.details["values"] == ["Other"]

    def test_missing_value(self, normalized_loans, encoding):
        """Unimputed gaps are rejected, not given a default code"""
        with pytest.raises(EncodingError) as exc:
            apply_encoding(normalized_loans, encoding)
        assert exc.value.details["rows"]

    def test_absent_column(self, imputed_loans, encoding):
        with pytest.raises(EncodingError):
            apply_encoding(imputed_loans.drop(columns=["education"]), encoding)

    def test_decode_rejects_out_of_range_codes(self, imputed_loans, encoding):
        encoded = apply_encoding(imputed_loans, encoding)
        encoded.loc[encoded.index[0], "married"] = 7

        with pytest.raises(EncodingError):
            decode(encoded, encoding)


class TestLabelsAndFeatures:
    """Tests for encode_labels and feature_matrix"""

    def test_encode_labels(self):
        y = encode_labels(["Approved", "Not Approved", "Approved"])
        assert y.tolist() == [1, 0, 1]
        assert y.dtype == np.int64

    def test_encode_categorical_labels(self, imputed_loans):
        y = encode_labels(imputed_loans["loan_status"])
        assert y.sum() == (imputed_loans["loan_status"] == "Approved").sum()

    def test_missing_label(self):
        with pytest.raises(EncodingError):
            encode_labels(["Approved", None])

    def test_unrecognized_label(self):
        with pytest.raises(EncodingError) as exc:
            encode_labels(["Approved", "Y", "Not Approved"])
        assert exc.value.details["values"] == ["Y"]

    def test_feature_matrix_column_order(self, imputed_loans, encoding):
        X = feature_matrix(imputed_loans, encoding)
        assert list(X.columns) == list(LOAN_SCHEMA.feature_columns)
        assert "loan_id" not in X.columns
        assert "loan_status" not in X.columns
        assert all(X[c].dtype.kind in "if" for c in X.columns)


class TestCategoricalEncoderAgent:
    """Tests for the CategoricalEncoder agent"""

    def test_run(self, imputed_loans):
        train, evaluation = imputed_loans.iloc[:60], imputed_loans.iloc[60:]
        result = CategoricalEncoder().run(train=train, evaluation=evaluation)

        assert result.is_success()
        data = result.data
        assert data["X_train"].shape == (60, len(LOAN_SCHEMA.feature_columns))
        assert data["X_eval"].shape == (20, len(LOAN_SCHEMA.feature_columns))
        assert len(data["y_train"]) == 60
        assert list(data["X_eval"].columns) == data["feature_names"]
