from datetime import date
from pathlib import Path

import pandas as pd
import pytest

from equity_tracker.importer import (
    DEFAULT_NOTE,
    ImportFileError,
    import_holdings,
    map_columns,
    parse_date,
    parse_number,
)

IMPORT_DATE = date(2024, 3, 15)

BROKER_CSV = """Instrument,Qty.,Avg. cost,LTP,Cur. val
INFY,10,"1,450.50",1500,15000
tcs ,2,₹3200,3300,6600
,,,,
Total,12,,,21600
HDFC,abc,1500,1,1
ITC,0,400,410,0
"""


def write(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


class TestParseNumber:
    @pytest.mark.parametrize(
        "raw, expected",
        [("1,450.50", 1450.5), ("₹3200", 3200.0), ("$ 12", 12.0), (7, 7.0), (2.5, 2.5)],
    )
    def test_parses(self, raw, expected):
        assert parse_number(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "abc", float("nan")])
    def test_unparseable(self, raw):
        assert parse_number(raw) is None


class TestParseDate:
    def test_iso(self):
        assert parse_date("2023-05-04") == date(2023, 5, 4)

    @pytest.mark.parametrize("raw", [None, "  ", "not a date"])
    def test_invalid(self, raw):
        assert parse_date(raw) is None


class TestMapColumns:
    def test_broker_headers(self):
        columns = map_columns(["Instrument", "Qty.", "Avg. cost", "LTP"])
        assert columns == {"ticker": 0, "quantity": 1, "price": 2}

    def test_optional_columns(self):
        columns = map_columns(["Symbol", "Shares", "Average Price", "Purchase Date", "PE", "P/B", "EPS", "Notes"])
        assert columns == {
            "ticker": 0,
            "quantity": 1,
            "price": 2,
            "date": 3,
            "pe": 4,
            "pb": 5,
            "eps": 6,
            "note": 7,
        }

    def test_missing_required(self):
        with pytest.raises(ImportFileError, match="price"):
            _ = map_columns(["Ticker", "Qty", "LTP"])


class TestImportHoldings:
    def test_csv(self, tmp_path):
        result = import_holdings(write(tmp_path, "holdings.csv", BROKER_CSV), IMPORT_DATE)

        assert [(lot.ticker, lot.quantity, lot.price) for lot in result.lots] == [
            ("INFY", 10.0, 1450.5),
            ("TCS", 2.0, 3200.0),
        ]
        assert all(lot.purchase_date == IMPORT_DATE for lot in result.lots)
        assert all(lot.note == DEFAULT_NOTE for lot in result.lots)
        assert all(lot.pe == 0 and lot.pb == 0 and lot.eps == 0 for lot in result.lots)
        assert len({lot.id for lot in result.lots}) == 2
        assert result.imported_rows == 2
        assert result.skipped_rows == 4  # blank, Total, bad quantity, zero quantity

    def test_csv_with_dates_and_ratios(self, tmp_path):
        content = (
            "Ticker,Quantity,Avg Price,Date,PE,PB,EPS\n"
            "abc,5,100,2023-02-01,21.5,3.2,4.1\n"
            "xyz,5,100,someday,1,1,1\n"
        )
        result = import_holdings(write(tmp_path, "h.csv", content), IMPORT_DATE)

        [lot] = result.lots
        assert lot.purchase_date == date(2023, 2, 1)
        assert (lot.pe, lot.pb, lot.eps) == (21.5, 3.2, 4.1)
        assert result.skipped_rows == 1
        assert "unparseable date" in result.warnings[0]

    def test_excel(self, tmp_path):
        path = tmp_path / "holdings.xlsx"
        pd.DataFrame(
            {"Instrument": ["INFY", "TOTAL"], "Qty.": [4, 4], "Avg. cost": [1400.0, None]}
        ).to_excel(path, index=False)

        result = import_holdings(path, IMPORT_DATE)

        assert [(lot.ticker, lot.quantity, lot.price) for lot in result.lots] == [("INFY", 4.0, 1400.0)]

    def test_unsupported_extension(self, tmp_path):
        with pytest.raises(ImportFileError, match="Invalid file type"):
            _ = import_holdings(write(tmp_path, "holdings.txt", BROKER_CSV), IMPORT_DATE)

    def test_header_only(self, tmp_path):
        with pytest.raises(ImportFileError, match="no data rows"):
            _ = import_holdings(write(tmp_path, "h.csv", "Instrument,Qty.,Avg. cost\n"), IMPORT_DATE)

    def test_no_valid_rows(self, tmp_path):
        content = "Instrument,Qty.,Avg. cost\nTotal,1,1\nABC,0,10\n"
        with pytest.raises(ImportFileError, match="No valid holdings"):
            _ = import_holdings(write(tmp_path, "h.csv", content), IMPORT_DATE)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ImportFileError, match="not found"):
            _ = import_holdings(tmp_path / "absent.csv", IMPORT_DATE)

    def test_csv_line_with_extra_fields_is_skipped(self, tmp_path):
        content = "Instrument,Qty.,Avg. cost\nINFY,10,1450\nTCS,2,3200,oops,extra\nITC,5,400\n"

        result = import_holdings(write(tmp_path, "h.csv", content), IMPORT_DATE)

        assert [lot.ticker for lot in result.lots] == ["INFY", "ITC"]
        assert result.skipped_rows == 1

    def test_legacy_xls_rejected(self, tmp_path):
        with pytest.raises(ImportFileError, match="Invalid file type '.xls'"):
            _ = import_holdings(write(tmp_path, "holdings.xls", BROKER_CSV), IMPORT_DATE)
