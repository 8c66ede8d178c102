"""Import of holiday calendars from spreadsheets.

Holiday lists are usually exported from core banking systems as one row per
day. Only two columns matter here: ``HOLIDAY_DATE`` and ``HOLIDAY_DESC``. The
date cell may hold text (``2024-01-01``), a real date value, or a raw
spreadsheet serial number, depending on how the file was produced.
"""

from __future__ import annotations

import logging
import math
import numbers
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import IO, List, Optional, Union

import pandas as pd

from .data_models import HolidayInterval
from .utils import parse_iso_date

logger = logging.getLogger(__name__)

COL_DATE = "HOLIDAY_DATE"
COL_DESC = "HOLIDAY_DESC"

# Serial 0 of the 1900 date system; serial 25569 is 1970-01-01.
EXCEL_EPOCH = date(1899, 12, 30)

TEMPLATE_HEADERS = [
    "HOLIDAY_AREA_CODE",
    "HOLIDAY_TYPE",
    "HOLIDAY_DESC",
    "APPLY_IND",
    "HOLIDAY_DATE",
    "COMPANY",
    "TRAN_TIMESTAMP",
    "HUB_BATCH_FLAG",
    "CNY_YEAR_END_SETTLE",
    "COUNTRY",
]

TEMPLATE_DATA = [
    {
        "HOLIDAY_AREA_CODE": "ABW",
        "HOLIDAY_TYPE": "S",
        "HOLIDAY_DESC": "New Years Day",
        "APPLY_IND": "B",
        "HOLIDAY_DATE": "2024-01-01",
        "COMPANY": "ALL",
        "TRAN_TIMESTAMP": "2023-12-09 00:00:00.000000",
        "HUB_BATCH_FLAG": "N",
        "CNY_YEAR_END_SETTLE": "N",
        "COUNTRY": "CN",
    },
    {
        "HOLIDAY_AREA_CODE": "ABW",
        "HOLIDAY_TYPE": "S",
        "HOLIDAY_DESC": "Spring Festival",
        "APPLY_IND": "B",
        "HOLIDAY_DATE": "2024-02-10",
        "COMPANY": "ALL",
        "TRAN_TIMESTAMP": "2023-12-09 00:00:00.000000",
        "HUB_BATCH_FLAG": "N",
        "CNY_YEAR_END_SETTLE": "N",
        "COUNTRY": "CN",
    },
]


def excel_serial_to_date(serial: float) -> date:
    """Convert a spreadsheet serial day number to a ``date``."""
    return EXCEL_EPOCH + timedelta(days=math.floor(serial))


def cell_to_date(value: object) -> Optional[date]:
    """Interpret a spreadsheet cell as a date.

    Returns ``None`` for empty cells. Raises ``ValueError`` for text that is
    not a ``YYYY-MM-DD`` date.
    """
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    if isinstance(value, datetime):  # includes pandas.Timestamp
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        return parse_iso_date(stripped) if stripped else None
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return excel_serial_to_date(float(value))
    raise ValueError(f"Unsupported holiday date value: {value!r}")


def parse_holiday_frame(frame: pd.DataFrame) -> List[HolidayInterval]:
    """Build single-day holiday intervals from a data frame.

    Rows without a date are skipped; a missing description defaults to
    ``"Holiday"``.
    """
    if COL_DATE not in frame.columns:
        raise ValueError(f"Holiday sheet has no {COL_DATE} column")
    holidays: List[HolidayInterval] = []
    for record in frame.to_dict(orient="records"):
        day = cell_to_date(record.get(COL_DATE))
        if day is None:
            continue
        label = record.get(COL_DESC)
        if label is None or (not isinstance(label, str) and pd.isna(label)) or not str(label).strip():
            label = "Holiday"
        holidays.append(HolidayInterval(start_date=day, end_date=day, label=str(label).strip()))
    return holidays


def read_holidays(source: Union[Path, IO[bytes]], filename: str) -> List[HolidayInterval]:
    """Read holidays from a path or an open binary stream.

    ``filename`` decides the format: ``.csv`` files are read as text, anything
    else as the first sheet of an Excel workbook.
    """
    if Path(filename).suffix.lower() == ".csv":
        frame = pd.read_csv(source, dtype={COL_DATE: str, COL_DESC: str})
    else:
        frame = pd.read_excel(source, sheet_name=0)
    holidays = parse_holiday_frame(frame)
    logger.info("Loaded %d holidays from %s", len(holidays), filename)
    return holidays


def load_holidays(path: Path) -> List[HolidayInterval]:
    """Read the first sheet of an Excel workbook (or a CSV file) of holidays."""
    return read_holidays(path, path.name)


def write_holiday_template(path: Path) -> None:
    """Write an import template with the expected headers and sample rows."""
    frame = pd.DataFrame(TEMPLATE_DATA, columns=TEMPLATE_HEADERS)
    if path.suffix.lower() == ".csv":
        frame.to_csv(path, index=False)
    else:
        frame.to_excel(path, sheet_name="Holidays", index=False)
