import csv
import json
from datetime import date
from decimal import Decimal

from loan_ledger.data_models import RepaymentEvent
from loan_ledger.engine import compute_schedule
from loan_ledger.exporters import (
    export_to_csv,
    export_to_json,
    installment_series,
    schedule_to_records,
)

HEADERS = [
    "Type",
    "Period",
    "Date",
    "End Date",
    "Days",
    "Effective Rate (%)",
    "Principal / Basis",
    "Interest",
    "Total Payment",
    "Balance",
    "Notes",
]


def _schedule(params):
    return compute_schedule(params, repayments=[RepaymentEvent(date(2024, 3, 15), Decimal("20000"))])


def test_csv_uses_fixed_column_order(params, tmp_path):
    rows, _ = _schedule(params)
    path = tmp_path / "schedule.csv"
    export_to_csv(path, rows)
    with path.open(newline="", encoding="utf-8") as f:
        lines = list(csv.reader(f))
    assert lines[0] == HEADERS
    assert len(lines) == len(rows) + 1

    segment = next(line for line in lines[1:] if line[0] == "SEGMENT")
    assert segment[1] == ""  # period only shown for installments
    assert segment[2] == "2024-01-01"
    assert segment[3] == "2024-02-01"
    assert segment[5] == ""
    assert segment[6] == "100000.00"  # basis
    assert segment[10] == "Basis: 100000.00"

    repayment = next(line for line in lines[1:] if line[0] == "REPAYMENT")
    assert repayment[2] == "2024-03-15"
    assert repayment[4] == "0"
    assert repayment[6] == "20000.00"

    installment = next(line for line in lines[1:] if line[0] == "INSTALLMENT")
    assert installment[1] == "1"
    assert installment[5] == "5.0000"


def test_records_are_keyed_by_localized_headers(params):
    rows, _ = _schedule(params)
    records = schedule_to_records(rows, lang="cn")
    assert list(records[0].keys())[0] == "类型"
    assert len(records) == len(rows)


def test_json_export(params, tmp_path):
    rows, summary = _schedule(params)
    path = tmp_path / "schedule.json"
    export_to_json(path, rows, summary)
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["summary"]["status"] == "PAID_OFF"
    assert data["summary"]["installments"] == 12
    assert len(data["schedule"]) == len(rows)
    segment = next(r for r in data["schedule"] if r["type"] == "SEGMENT")
    assert segment["segment_start"] == "2024-01-01"
    assert segment["notes"] == ["BASIS"]
    repayment = next(r for r in data["schedule"] if r["type"] == "REPAYMENT")
    assert repayment["notes"] == ["EXTRA_REPAYMENT", "PMT_RECALCULATED"]


def test_installment_series(params):
    rows, _ = _schedule(params)
    series = installment_series(rows)
    assert [p["period"] for p in series] == list(range(1, 13))
    assert series[-1]["balance"] == 0.0
