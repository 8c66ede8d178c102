"""Export of schedules to CSV and JSON files."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .data_models import InstallmentRow, ScheduleRow, SegmentRow, Summary
from .formatter import column_headers, format_row, render_notes


def schedule_to_records(schedule: Iterable[ScheduleRow], lang: str = "en") -> List[Dict[str, str]]:
    """Map rows to dicts keyed by the localized column headers, in column order."""
    headers = column_headers(lang)
    return [dict(zip(headers, format_row(row, lang))) for row in schedule]


def export_to_csv(path: Path, schedule: Iterable[ScheduleRow], lang: str = "en") -> None:
    """Export the schedule to a CSV file.

    Columns: type, period, date, end date, days, effective rate,
    principal (basis for segments), interest, total, balance, notes.
    """
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(column_headers(lang))
        for row in schedule:
            writer.writerow(format_row(row, lang))


def row_to_dict(row: ScheduleRow, lang: str = "en") -> Dict[str, Any]:
    """Convert a row into a JSON-serialisable dictionary."""
    data: Dict[str, Any] = {
        "type": row.row_type.value,
        "period": row.period,
        "nominal_date": row.nominal_date.isoformat(),
        "actual_date": row.actual_date.isoformat(),
        "days": row.days_count,
        "principal": float(row.principal),
        "interest": float(row.interest),
        "total": float(row.total),
        "balance": float(row.outstanding_balance),
        "effective_rate": float(row.effective_rate),
        "notes": [n.code.value for n in row.notes],
        "notes_text": render_notes(row.notes, lang),
    }
    if isinstance(row, SegmentRow):
        data["segment_start"] = row.segment_start.isoformat()
        data["segment_end"] = row.segment_end.isoformat()
    return data


def summary_to_dict(summary: Summary) -> Dict[str, Any]:
    return {
        "total_principal": float(summary.total_principal),
        "total_interest": float(summary.total_interest),
        "total_paid": float(summary.total_paid),
        "payoff_date": summary.payoff_date.isoformat(),
        "status": summary.status.value,
        "outstanding_balance": float(summary.outstanding_balance),
        "installments": summary.installments,
        "final_payment": float(summary.final_payment),
        "nominal_end_date": summary.nominal_end_date.isoformat(),
    }


def export_to_json(path: Path, schedule: Iterable[ScheduleRow], summary: Summary, lang: str = "en") -> None:
    """Export schedule and summary to a JSON file."""
    data = {
        "summary": summary_to_dict(summary),
        "schedule": [row_to_dict(row, lang) for row in schedule],
    }
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def installment_series(schedule: Iterable[ScheduleRow]) -> List[Dict[str, Any]]:
    """Reduce a schedule to the per-installment series used by charts."""
    return [
        {
            "period": row.period,
            "date": row.actual_date.isoformat(),
            "principal": float(row.principal),
            "interest": float(row.interest),
            "balance": float(row.outstanding_balance),
        }
        for row in schedule
        if isinstance(row, InstallmentRow)
    ]
