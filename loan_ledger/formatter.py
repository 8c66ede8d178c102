"""Output helpers for the loan ledger.

The engine annotates rows with language-neutral ``Note`` codes; this module
renders them as English or Chinese text and prints schedules and summaries in
a tabular text format using built-in printing and string formatting.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, Optional

from .data_models import (
    InstallmentRow,
    Note,
    NoteCode,
    RepaymentRow,
    ScheduleRow,
    SegmentRow,
    Summary,
)

LANGUAGES = ("en", "cn")

_TEXT: Dict[str, Dict[str, str]] = {
    "en": {
        "deferred": "Deferred",
        "preponed": "Preponed",
        "from": "from",
        "holiday": "Holiday",
        "rate_changed": "Rate changed to",
        "pmt_recalculated": "PMT Recalculated",
        "pmt_fixed": "PMT Fixed",
        "basis": "Basis",
        "extra_repayment": "Extra Repayment",
        "repayment_capped": "Not applied (exceeds balance)",
        "tenure_extended": "Tenure Extended",
        "paid_off_early": "Paid Off Early",
        "iteration_limit": "Period limit reached, loan not repaid",
        # summary
        "summary": "Summary",
        "total_principal": "Total principal",
        "total_interest": "Total interest",
        "total_paid": "Total repayment",
        "last_payment": "Last payment",
        "nominal_end": "Contractual end",
        "installments": "Installments",
        "final_payment": "Final payment",
        "status": "Status",
        "outstanding": "Outstanding",
        "PAID_OFF": "Paid off",
        "NON_CONVERGENT": "Not repaid (period limit reached)",
        # table
        "col_type": "Type",
        "col_period": "Period",
        "col_date": "Date",
        "col_end_date": "End Date",
        "col_days": "Days",
        "col_eff_rate": "Effective Rate (%)",
        "col_principal": "Principal / Basis",
        "col_interest": "Interest",
        "col_total": "Total Payment",
        "col_balance": "Balance",
        "col_notes": "Notes",
    },
    "cn": {
        "deferred": "顺延",
        "preponed": "提前",
        "from": "自",
        "holiday": "节假日",
        "rate_changed": "利率变更为",
        "pmt_recalculated": "月供重算",
        "pmt_fixed": "月供固定",
        "basis": "基数",
        "extra_repayment": "提前还款",
        "repayment_capped": "超出余额部分未入账",
        "tenure_extended": "期限延长",
        "paid_off_early": "提前还清",
        "iteration_limit": "已达期数上限，贷款未还清",
        "summary": "汇总",
        "total_principal": "本金总额",
        "total_interest": "利息总额",
        "total_paid": "还款总额",
        "last_payment": "最后还款日",
        "nominal_end": "合同到期日",
        "installments": "期数",
        "final_payment": "末期还款",
        "status": "状态",
        "outstanding": "未还余额",
        "PAID_OFF": "已还清",
        "NON_CONVERGENT": "未还清（已达期数上限）",
        "col_type": "类型",
        "col_period": "期数",
        "col_date": "日期",
        "col_end_date": "结束日期",
        "col_days": "天数",
        "col_eff_rate": "实际利率 (%)",
        "col_principal": "本金 / 基数",
        "col_interest": "利息",
        "col_total": "付款总额",
        "col_balance": "余额",
        "col_notes": "备注",
    },
}

COLUMN_KEYS = (
    "col_type",
    "col_period",
    "col_date",
    "col_end_date",
    "col_days",
    "col_eff_rate",
    "col_principal",
    "col_interest",
    "col_total",
    "col_balance",
    "col_notes",
)


def text(key: str, lang: str = "en") -> str:
    """Look up a label, falling back to English for unknown languages."""
    return _TEXT.get(lang, _TEXT["en"])[key]


def column_headers(lang: str = "en") -> list[str]:
    return [text(k, lang) for k in COLUMN_KEYS]


def _format_value(value: object) -> str:
    if isinstance(value, Decimal):
        return f"{value:.2f}"
    if isinstance(value, date):
        return value.strftime("%b %d")
    return str(value)


def render_note(note: Note, lang: str = "en") -> str:
    """Render a single note as human-readable text."""
    code = note.code
    if code in (NoteCode.DEFERRED, NoteCode.PREPONED):
        label = text("deferred" if code is NoteCode.DEFERRED else "preponed", lang)
        return f"{label} {text('from', lang)} {_format_value(note.value)} ({text('holiday', lang)})"
    if code is NoteCode.RATE_CHANGED:
        return f"{text('rate_changed', lang)} {note.value}%"
    if code is NoteCode.BASIS:
        return f"{text('basis', lang)}: {_format_value(note.value)}"
    if code is NoteCode.REPAYMENT_CAPPED:
        return f"{text('repayment_capped', lang)}: {_format_value(note.value)}"
    return text(code.value.lower(), lang)


def render_notes(notes: Iterable[Note], lang: str = "en") -> str:
    return "; ".join(render_note(n, lang) for n in notes)


def print_summary(summary: Summary, lang: str = "en") -> None:
    """Print the schedule summary in a human-readable format."""
    rows = [
        (text("total_principal", lang), f"{summary.total_principal:.2f}"),
        (text("total_interest", lang), f"{summary.total_interest:.2f}"),
        (text("total_paid", lang), f"{summary.total_paid:.2f}"),
        (text("last_payment", lang), summary.payoff_date.isoformat()),
        (text("nominal_end", lang), summary.nominal_end_date.isoformat()),
        (text("installments", lang), str(summary.installments)),
        (text("final_payment", lang), f"{summary.final_payment:.2f}"),
        (text("status", lang), text(summary.status.value, lang)),
    ]
    if not summary.converged:
        rows.append((text("outstanding", lang), f"{summary.outstanding_balance:.2f}"))
    width = max(len(label) for label, _ in rows)
    print(text("summary", lang))
    print("-" * 72)
    for label, value in rows:
        print(f"{label:<{width}} : {value}")
    print("-" * 72)


def print_schedule(
    schedule: Iterable[ScheduleRow],
    lang: str = "en",
    show_segments: bool = True,
    show_repayments: bool = True,
) -> None:
    """Print the schedule as a tab-separated table.

    Parameters
    ----------
    schedule: Iterable[ScheduleRow]
        The rows to print.
    lang: str
        Language of headers and notes (``"en"`` or ``"cn"``).
    show_segments: bool
        Whether to include the interest breakdown rows.
    show_repayments: bool
        Whether to include extra repayment rows.
    """
    print("\t".join(column_headers(lang)))
    for row in schedule:
        if isinstance(row, SegmentRow) and not show_segments:
            continue
        if isinstance(row, RepaymentRow) and not show_repayments:
            continue
        print("\t".join(format_row(row, lang)))


def format_row(row: ScheduleRow, lang: str = "en") -> list[str]:
    """Return the printable cells of ``row`` in column order."""
    start: date = row.actual_date
    end: Optional[date] = None
    basis = row.principal
    if isinstance(row, SegmentRow):
        start, end = row.segment_start, row.segment_end
        basis = row.outstanding_balance
    is_installment = isinstance(row, InstallmentRow)
    return [
        row.row_type.value,
        str(row.period) if is_installment else "",
        start.isoformat(),
        end.isoformat() if end else "",
        str(row.days_count),
        f"{row.effective_rate:.4f}" if is_installment else "",
        f"{basis:.2f}",
        f"{row.interest:.2f}",
        f"{row.total:.2f}",
        f"{row.outstanding_balance:.2f}",
        render_notes(row.notes, lang),
    ]


def print_comparison(s1: Summary, s2: Summary) -> None:
    """Print a comparison of two loan summaries side by side.

    The difference column is scenario2 - scenario1; a negative difference
    means the second scenario is cheaper or shorter.
    """
    print("Comparison")
    print("=" * 72)
    metrics = [
        ("total_paid", s1.total_paid, s2.total_paid),
        ("total_interest", s1.total_interest, s2.total_interest),
        ("installments", Decimal(s1.installments), Decimal(s2.installments)),
        ("final_payment", s1.final_payment, s2.final_payment),
    ]
    print(f"{'Metric':20s} {'Scenario1':>15s} {'Scenario2':>15s} {'Difference':>15s}")
    for key, v1, v2 in metrics:
        diff = v2 - v1
        print(f"{key:20s} {v1:15.2f} {v2:15.2f} {diff:15.2f}")
    print(f"{'payoff_date':20s} {s1.payoff_date.isoformat():>15s} {s2.payoff_date.isoformat():>15s}")
    print("=" * 72)
