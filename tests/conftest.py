"""
LoanScope - Pytest Configuration
Shared fixtures and configuration for all tests
"""

import os
import sys
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

# Add project root to path
ROOT_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT_DIR))

# No file sinks, no .env surprises
os.environ.setdefault("TEST_MODE", "true")

from core.schema import ColumnKind, ColumnSpec, TableSchema


RAW_COLUMNS = [
    "Loan_ID", "Gender", "Married", "Dependents", "Education", "Self_Employed",
    "ApplicantIncome", "CoapplicantIncome", "LoanAmount", "Loan_Amount_Term",
    "Credit_History", "Property_Area", "Loan_Status",
]


# ==================== DATA FIXTURES ====================

def make_raw_loans(n: int = 80, seed: int = 0, blank_rate: float = 0.06) -> pd.DataFrame:
    """
    Raw loan applications as the loader returns them: every cell a string,
    blanks for missing values, original column spellings.
    """
    rng = np.random.default_rng(seed)

    credit = rng.choice(["1", "0"], size=n, p=[0.8, 0.2])
    approve_p = np.where(credit == "1", 0.85, 0.15)
    status = np.where(rng.random(n) < approve_p, "Y", "N")

    df = pd.DataFrame({
        "Loan_ID": [f"LP{1000 + i}" for i in range(n)],
        "Gender": rng.choice(["Male", "Female"], size=n),
        "Married": rng.choice(["Yes", "No"], size=n),
        "Dependents": rng.choice(["0", "1", "2", "3+"], size=n),
        "Education": rng.choice(["Graduate", "Not Graduate"], size=n),
        "Self_Employed": rng.choice(["No", "Yes"], size=n, p=[0.85, 0.15]),
        "ApplicantIncome": rng.integers(1500, 10000, size=n).astype(str),
        "CoapplicantIncome": rng.integers(0, 4000, size=n).astype(str),
        "LoanAmount": rng.integers(50, 300, size=n).astype(str),
        "Loan_Amount_Term": rng.choice(["360", "180", "480"], size=n, p=[0.8, 0.1, 0.1]),
        "Credit_History": credit,
        "Property_Area": rng.choice(["Rural", "Semiurban", "Urban"], size=n),
        "Loan_Status": status,
    }, columns=RAW_COLUMNS)

    # Label and identifier stay complete
    for col in ["Gender", "Married", "Dependents", "Self_Employed",
                "LoanAmount", "Loan_Amount_Term", "Credit_History"]:
        blanks = rng.random(n) < blank_rate
        df.loc[blanks, col] = ""

    return df


@pytest.fixture
def raw_loans() -> pd.DataFrame:
    """80 raw loan rows with scattered blanks"""
    return make_raw_loans()


@pytest.fixture
def loan_csv(tmp_path, raw_loans) -> Path:
    """Raw loans written to a temporary CSV"""
    path = tmp_path / "loans.csv"
    raw_loans.to_csv(path, index=False)
    return path


@pytest.fixture
def normalized_loans(raw_loans) -> pd.DataFrame:
    """Raw loans after schema normalization"""
    from agents.preprocessing.schema_normalizer import normalize
    return normalize(raw_loans)


@pytest.fixture
def imputed_loans(normalized_loans) -> pd.DataFrame:
    """Normalized loans with every gap filled (k=5)"""
    from agents.preprocessing.knn_imputer import impute
    return impute(normalized_loans, k=5)


# ==================== SMALL SCHEMAS ====================

@pytest.fixture
def toy_schema() -> TableSchema:
    """x, y numeric; color categorical; label"""
    return TableSchema(columns=(
        ColumnSpec("x", ColumnKind.NUMERIC),
        ColumnSpec("y", ColumnKind.NUMERIC),
        ColumnSpec("color", ColumnKind.CATEGORICAL, ("blue", "red")),
        ColumnSpec("label", ColumnKind.LABEL, ("no", "yes")),
    ))


@pytest.fixture
def knn_scenario(toy_schema) -> pd.DataFrame:
    """
    Ten rows, eight complete donors, two gaps:
    row 8 misses y, row 9 misses x.
    """
    colors = ["red", "red", "blue", "red", "blue", "red", "blue", "red", "red", "blue"]
    df = pd.DataFrame({
        "x": [0.0, 1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 10.0, 2.4, np.nan],
        "y": [0.0, 10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 100.0, np.nan, 55.0],
        "color": pd.Categorical(colors, categories=["blue", "red"]),
        "label": pd.Categorical(
            ["yes", "no", "yes", "no", "yes", "no", "yes", "no", "yes", "no"],
            categories=["no", "yes"]
        ),
    })
    return df


@pytest.fixture
def encoded_split(imputed_loans):
    """(X_train, y_train, X_eval, y_eval) from an 80/20 stratified split"""
    from agents.preprocessing.encoder import build_encoding, encode_labels, feature_matrix
    from agents.preprocessing.partitioner import split

    train, evaluation = split(imputed_loans, train_fraction=0.8, seed=42)
    encoding = build_encoding(train)
    return (
        feature_matrix(train, encoding),
        encode_labels(train["loan_status"]),
        feature_matrix(evaluation, encoding),
        encode_labels(evaluation["loan_status"]),
    )
