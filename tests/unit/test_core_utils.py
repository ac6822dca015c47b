"""
LoanScope - Unit Tests for Core Utils
"""

import json

import numpy as np
import pandas as pd
import pytest

from core.utils import (
    clean_column_names,
    format_metric,
    format_percentage,
    generate_run_id,
    hash_dataframe,
    load_json,
    save_json,
    snake_case,
)


class TestSnakeCase:
    """Tests for snake_case and clean_column_names"""

    @pytest.mark.parametrize("raw,expected", [
        ("ApplicantIncome", "applicant_income"),
        ("Loan_Amount_Term", "loan_amount_term"),
        ("Loan ID", "loan_id"),
        ("  Credit_History ", "credit_history"),
        ("LoanID", "loan_id"),
    ])
    def test_snake_case(self, raw, expected):
        assert snake_case(raw) == expected

    def test_duplicates_get_suffix(self):
        assert clean_column_names(["LoanAmount", "loan_amount", "Gender"]) == [
            "loan_amount", "loan_amount_1", "gender"
        ]


class TestHashDataframe:
    """Tests for hash_dataframe"""

    def test_stable(self):
        df = pd.DataFrame({"a": [1.0, 2.0], "b": ["x", "y"]})
        assert hash_dataframe(df) == hash_dataframe(df.copy())

    def test_column_order_ignored(self):
        df = pd.DataFrame({"a": [1.0, 2.0], "b": ["x", "y"]})
        assert hash_dataframe(df) == hash_dataframe(df[["b", "a"]])

    def test_value_change_detected(self):
        df = pd.DataFrame({"a": [1.0, 2.0]})
        assert hash_dataframe(df) != hash_dataframe(df.assign(a=[1.0, 2.5]))

    def test_categorical_hashes_like_strings(self):
        cat = pd.DataFrame({"c": pd.Categorical(["x", "y"])})
        assert hash_dataframe(cat) == hash_dataframe(cat.copy())


class TestJson:
    """Tests for save_json / load_json"""

    def test_nan_and_numpy_values(self, tmp_path):
        path = tmp_path / "sub" / "out.json"
        save_json({"auc": float("nan"), "n": np.int64(3), "arr": np.array([0.5, 1.0])}, path)

        raw = path.read_text(encoding="utf-8")
        assert "NaN" not in raw
        assert json.loads(raw) == {"auc": None, "n": 3, "arr": [0.5, 1.0]}
        assert load_json(path)["n"] == 3

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_json(tmp_path / "missing.json")


class TestFormatters:
    """Tests for formatting helpers"""

    def test_format_percentage(self):
        assert format_percentage(0.875) == "87.50%"
        assert format_percentage(float("nan")) == "n/a"

    def test_format_metric(self):
        assert format_metric(0.88888) == "0.8889"
        assert format_metric(float("nan")) == "n/a"

    def test_run_id(self):
        run_id = generate_run_id()
        assert len(run_id.split("_")) == 3
