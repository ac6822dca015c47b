"""
LoanScope - Unit Tests for Data Loader
"""

import pytest

from core.data_loader import DataLoader, get_data_loader, load_table
from core.exceptions import DataLoadError


RAW_HEADER = "Loan_ID,Gender,Married"


class TestDataLoader:
    """Tests for DataLoader class"""

    def test_load_csv(self, loan_csv, raw_loans):
        """Every header field becomes a string column"""
        df = DataLoader().load(loan_csv)

        assert list(df.columns) == list(raw_loans.columns)
        assert len(df) == len(raw_loans)
        assert df["ApplicantIncome"].map(type).eq(str).all()

    def test_blanks_survive(self, loan_csv, raw_loans):
        """Blank cells stay as empty strings for the normalizer"""
        df = load_table(loan_csv)
        assert (df["LoanAmount"] == "").sum() == (raw_loans["LoanAmount"] == "").sum()
        assert not df.isna().any().any()

    def test_na_token_is_text(self, tmp_path):
        path = tmp_path / "na.csv"
        path.write_text(RAW_HEADER + "\nLP1,NA,Yes\n", encoding="utf-8")

        df = load_table(path)
        assert df.loc[0, "Gender"] == "NA"

    def test_gzip(self, tmp_path, raw_loans):
        path = tmp_path / "loans.csv.gz"
        raw_loans.to_csv(path, index=False, compression="gzip")

        df = load_table(path)
        assert len(df) == len(raw_loans)

    def test_latin1_fallback(self, tmp_path):
        path = tmp_path / "latin.csv"
        path.write_bytes((RAW_HEADER + "\nLP1,Féminin,No\n").encode("latin-1"))

        df = load_table(path)
        assert df.loc[0, "Gender"] == "Féminin"

    def test_get_info(self, loan_csv):
        loader = DataLoader()
        info = loader.get_info(loader.load(loan_csv))
        assert info["n_columns"] == 13
        assert "LoanAmount" in info["blank_cells"]

    def test_shared_instance(self):
        assert get_data_loader() is get_data_loader()


class TestDataLoaderErrors:
    """Tests for load failures"""

    def test_missing_file(self, tmp_path):
        with pytest.raises(DataLoadError) as exc:
            load_table(tmp_path / "nope.csv")
        assert exc.value.details["path"].endswith("nope.csv")

    def test_directory(self, tmp_path):
        with pytest.raises(DataLoadError):
            load_table(tmp_path)

    def test_unsupported_type(self, tmp_path):
        path = tmp_path / "loans.parquet"
        path.write_bytes(b"PAR1")
        with pytest.raises(DataLoadError):
            load_table(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")
        with pytest.raises(DataLoadError):
            load_table(path)

    def test_header_only(self, tmp_path):
        path = tmp_path / "header.csv"
        path.write_text(RAW_HEADER + "\n", encoding="utf-8")
        with pytest.raises(DataLoadError):
            load_table(path)
