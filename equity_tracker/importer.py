import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import pandas as pd

from equity_tracker.models import PurchaseLot

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_NOTE: str = "Broker Portfolio Import"
CSV_SUFFIXES: tuple[str, ...] = (".csv",)
EXCEL_SUFFIXES: tuple[str, ...] = (".xlsx", ".xlsm")

# Characters stripped from numeric cells before parsing
_NUMBER_NOISE = re.compile(r"[₹$€£,\s]")
_NON_ALNUM = re.compile(r"[^a-z0-9]")


class ImportFileError(ValueError):
    """The file as a whole cannot be imported."""


@dataclass
class ImportResult:
    lots: list[PurchaseLot]
    skipped_rows: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def imported_rows(self) -> int:
        return len(self.lots)


# --- Cell parsing ---


def parse_number(value: Any) -> float | None:
    """Parse a numeric cell, tolerating currency symbols and thousands separators."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned: str = _NUMBER_NOISE.sub("", str(value))
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    return number if number == number else None  # NaN is not a number here


def parse_date(value: Any) -> date | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    parsed = pd.to_datetime(value, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


# --- Header mapping ---


def map_columns(headers: list[Any]) -> dict[str, int]:
    """
    Locate the columns of interest by fuzzy header matching.

    Required: ticker (instrument/symbol/ticker), quantity (qty/quantity/shares),
    price (avg/average + cost/price). Optional: date, pe, pb, eps, note.

    Raises:
        ImportFileError: if a required column cannot be found
    """
    lowered: list[str] = [str(h or "").strip().lower() for h in headers]
    compact: list[str] = [_NON_ALNUM.sub("", h) for h in lowered]

    def find(predicate) -> int | None:
        return next((i for i, h in enumerate(lowered) if predicate(h)), None)

    def find_exact(*names: str) -> int | None:
        return next((i for i, h in enumerate(compact) if h in names), None)

    columns: dict[str, int | None] = {
        "ticker": find(lambda h: "instrument" in h or "symbol" in h or "ticker" in h),
        "quantity": find(lambda h: "qty" in h or "quantity" in h or "shares" in h),
        "price": find(
            lambda h: ("avg" in h or "average" in h) and ("cost" in h or "price" in h)
        ),
    }
    missing: list[str] = [name for name, idx in columns.items() if idx is None]
    if missing:
        raise ImportFileError(
            f"Headers not recognized (missing {', '.join(missing)}). "
            "Required: Instrument, Qty, Avg. cost"
        )

    columns.update(
        {
            "date": find(lambda h: "date" in h),
            "pe": find_exact("pe", "peratio"),
            "pb": find_exact("pb", "pbratio"),
            "eps": find_exact("eps"),
            "note": find_exact("note", "notes"),
        }
    )
    return {name: idx for name, idx in columns.items() if idx is not None}


# --- File reading ---


def read_holdings_file(path: Path) -> pd.DataFrame:
    """
    Read a CSV or Excel holdings export as raw rows (header row included).

    CSV lines with more fields than the header are dropped and counted in
    `df.attrs["skipped_rows"]`.

    Raises:
        ImportFileError: unsupported extension, unreadable file, or no data rows
    """
    suffix: str = path.suffix.lower()
    bad_lines: list[list[str]] = []

    def drop_bad_line(fields: list[str]) -> None:
        bad_lines.append(fields)
        logger.warning(f"Malformed line with {len(fields)} fields: {fields}. Skipping row.")
        return None

    try:
        if suffix in CSV_SUFFIXES:
            df: pd.DataFrame = pd.read_csv(
                path,
                header=None,
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=True,
                engine="python",
                on_bad_lines=drop_bad_line,
            )
        elif suffix in EXCEL_SUFFIXES:
            df = pd.read_excel(path, header=None, dtype=object).fillna("")
        else:
            raise ImportFileError(f"Invalid file type '{suffix}'. Please upload .csv or .xlsx")
    except ImportFileError:
        raise
    except FileNotFoundError as e:
        raise ImportFileError(f"File not found: {path}") from e
    except Exception as e:
        raise ImportFileError(f"Error parsing file {path}: {e}") from e

    if len(df) < 2:
        raise ImportFileError("File has no data rows")
    df.attrs["skipped_rows"] = len(bad_lines)
    return df


def parse_lots(df: pd.DataFrame, import_date: date) -> ImportResult:
    """
    Convert raw rows (first row = headers) into purchase lots.

    Rows are skipped individually: summary 'Total' rows, blank tickers,
    unparseable numbers and non-positive quantities.
    """
    rows: list[list[Any]] = df.values.tolist()
    columns: dict[str, int] = map_columns(rows[0])
    required_width: int = max(columns["ticker"], columns["quantity"], columns["price"])

    result = ImportResult(lots=[], skipped_rows=df.attrs.get("skipped_rows", 0))

    def skip(row_number: int, reason: str) -> None:
        result.skipped_rows += 1
        result.warnings.append(f"Row {row_number}: {reason}")
        logger.warning(f"Row {row_number}: {reason}. Skipping row.")

    for i, cols in enumerate(rows[1:]):
        row_number: int = i + 2  # 1-based, after the header
        if len(cols) <= required_width:
            skip(row_number, "too few columns")
            continue

        ticker: str = str(cols[columns["ticker"]] or "").strip().upper()
        if not ticker or ticker == "TOTAL":
            result.skipped_rows += 1
            logger.debug(f"Row {row_number}: no ticker or summary row")
            continue

        quantity: float | None = parse_number(cols[columns["quantity"]])
        price: float | None = parse_number(cols[columns["price"]])
        if quantity is None or price is None:
            skip(row_number, f"unparseable quantity/price for {ticker}")
            continue
        if quantity <= 0:
            skip(row_number, f"non-positive quantity {quantity:g} for {ticker}")
            continue
        if price < 0:
            skip(row_number, f"negative price {price:g} for {ticker}")
            continue

        purchase_date: date = import_date
        if "date" in columns and str(cols[columns["date"]]).strip():
            parsed_date: date | None = parse_date(cols[columns["date"]])
            if parsed_date is None:
                skip(row_number, f"unparseable date '{cols[columns['date']]}' for {ticker}")
                continue
            purchase_date = parsed_date

        ratios: dict[str, float] = {
            name: parse_number(cols[columns[name]]) or 0.0
            for name in ("pe", "pb", "eps")
            if name in columns
        }
        note: str = DEFAULT_NOTE
        if "note" in columns and str(cols[columns["note"]]).strip():
            note = str(cols[columns["note"]]).strip()

        result.lots.append(
            PurchaseLot(
                id=uuid.uuid4().hex,
                ticker=ticker,
                purchase_date=purchase_date,
                price=price,
                quantity=quantity,
                note=note,
                **ratios,
            )
        )

    if not result.lots:
        raise ImportFileError("No valid holdings found in the file.")

    logger.info(f"Parsed {result.imported_rows} holdings, skipped {result.skipped_rows} rows")
    return result


def import_holdings(path: Path, import_date: date) -> ImportResult:
    """Read and parse a broker holdings export into purchase lots."""
    df: pd.DataFrame = read_holdings_file(path)
    return parse_lots(df, import_date)
