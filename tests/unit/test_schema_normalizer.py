"""
LoanScope - Unit Tests for Schema Normalization
"""

import numpy as np
import pandas as pd
import pytest

from agents.preprocessing.schema_normalizer import (
    SchemaNormalizer,
    missing_summary,
    normalize,
    normalize_column_names,
)
from core.exceptions import SchemaError
from core.schema import LOAN_SCHEMA


class TestColumnNames:
    """Tests for column name normalization"""

    def test_raw_names_map_to_schema(self, raw_loans):
        """Every raw loan header maps onto a declared column"""
        mapping = normalize_column_names(raw_loans)
        assert set(mapping.values()) == set(LOAN_SCHEMA.names)
        assert mapping["ApplicantIncome"] == "applicant_income"
        assert mapping["Loan_ID"] == "loan_id"
        assert mapping["Loan_Amount_Term"] == "loan_amount_term"

    def test_output_columns_in_declared_order(self, raw_loans):
        """Normalized table follows schema order regardless of input order"""
        shuffled = raw_loans[list(reversed(raw_loans.columns))]
        table = normalize(shuffled)
        assert list(table.columns) == list(LOAN_SCHEMA.names)


class TestNormalize:
    """Tests for normalize function"""

    def test_dtypes(self, normalized_loans):
        """Numeric columns are float, categoricals carry declared levels"""
        for col in LOAN_SCHEMA.numeric_columns:
            assert normalized_loans[col].dtype == np.float64
        for col in LOAN_SCHEMA.categorical_columns:
            dtype = normalized_loans[col].dtype
            assert isinstance(dtype, pd.CategoricalDtype)
            assert list(dtype.categories) == list(LOAN_SCHEMA.spec(col).levels)
        assert normalized_loans[LOAN_SCHEMA.identifier_column].dtype == "string"

    def test_blanks_become_missing(self, raw_loans, normalized_loans):
        """Blank cells turn into missing values, nothing else does"""
        n_blank = int((raw_loans["LoanAmount"] == "").sum())
        assert n_blank > 0
        assert int(normalized_loans["loan_amount"].isna().sum()) == n_blank

    def test_relabel_credit_history_and_status(self):
        """0/1 credit history and N/Y status become named levels"""
        raw = pd.DataFrame({
            "Loan_ID": ["a", "b", "c"],
            "Gender": ["Male", "Female", ""],
            "Married": ["Yes", "No", "Yes"],
            "Dependents": ["0", "3+", "1"],
            "Education": ["Graduate", "Not Graduate", "Graduate"],
            "Self_Employed": ["No", "No", "Yes"],
            "ApplicantIncome": ["5000", "3000", "4000"],
            "CoapplicantIncome": ["0", "1500.5", "0"],
            "LoanAmount": ["120", "", "100"],
            "Loan_Amount_Term": ["360", "360", "180"],
            "Credit_History": ["1.0", "0", ""],
            "Property_Area": ["Urban", "Rural", "Semiurban"],
            "Loan_Status": ["Y", "N", "Y"],
        })
        table = normalize(raw)

        assert table["credit_history"].tolist()[:2] == ["Good", "Bad"]
        assert pd.isna(table["credit_history"].iloc[2])
        assert table["loan_status"].tolist() == ["Approved", "Not Approved", "Approved"]
        assert table["coapplicant_income"].iloc[1] == pytest.approx(1500.5)
        assert pd.isna(table["gender"].iloc[2])

    def test_input_not_modified(self, raw_loans):
        """normalize leaves the raw frame untouched"""
        before = raw_loans.copy()
        normalize(raw_loans)
        pd.testing.assert_frame_equal(raw_loans, before)

    def test_extra_columns_dropped(self, raw_loans):
        """Undeclared columns are dropped"""
        raw = raw_loans.assign(Notes="x")
        table = normalize(raw)
        assert "notes" not in table.columns


class TestNormalizeErrors:
    """Tests for schema violations"""

    def test_unknown_level(self, raw_loans):
        """A value outside the declared levels names column and rows"""
        raw = raw_loans.copy()
        raw.loc[3, "Property_Area"] = "Suburb"

        with pytest.raises(SchemaError) as exc:
            normalize(raw)

        assert exc.value.column == "property_area"
        assert 3 in exc.value.details["rows"]
        assert "Suburb" in exc.value.details["values"]

    def test_non_numeric_token(self, raw_loans):
        """Text in a numeric column is rejected"""
        raw = raw_loans.copy()
        raw.loc[0, "ApplicantIncome"] = "lots"

        with pytest.raises(SchemaError) as exc:
            normalize(raw)
        assert exc.value.column == "applicant_income"

    def test_missing_required_column(self, raw_loans):
        """Absent declared column fails"""
        with pytest.raises(SchemaError):
            normalize(raw_loans.drop(columns=["Education"]))

    def test_missing_label(self, raw_loans):
        """A blank label is a schema violation"""
        raw = raw_loans.copy()
        raw.loc[5, "Loan_Status"] = ""

        with pytest.raises(SchemaError) as exc:
            normalize(raw)
        assert exc.value.column == "loan_status"


class TestMissingSummary:
    """Tests for missing_summary function"""

    def test_counts(self, normalized_loans):
        summary = missing_summary(normalized_loans)
        assert summary.loc["loan_status", "n_missing"] == 0
        assert summary.loc["loan_amount", "n_missing"] == normalized_loans["loan_amount"].isna().sum()
        assert ((summary["pct_missing"] >= 0) & (summary["pct_missing"] <= 1)).all()


class TestSchemaNormalizerAgent:
    """Tests for the SchemaNormalizer agent"""

    def test_run(self, raw_loans):
        result = SchemaNormalizer().run(data=raw_loans)

        assert result.is_success()
        assert list(result.data["data"].columns) == list(LOAN_SCHEMA.names)
        assert result.data["renamed"]["ApplicantIncome"] == "applicant_income"
        assert result.data["dropped_columns"] == []

    def test_schema_error_propagates(self, raw_loans):
        """Domain errors are not swallowed into a failed result"""
        raw = raw_loans.copy()
        raw.loc[0, "Gender"] = "Other"

        with pytest.raises(SchemaError):
            SchemaNormalizer().run(data=raw)
