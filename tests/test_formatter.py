from dataclasses import replace
from datetime import date
from decimal import Decimal

from loan_ledger.data_models import Note, NoteCode, RateInterval, RepaymentEvent
from loan_ledger.engine import compute_schedule
from loan_ledger.formatter import (
    column_headers,
    print_comparison,
    print_schedule,
    print_summary,
    render_note,
    render_notes,
)


def test_render_deferred_note():
    note = Note(NoteCode.DEFERRED, date(2024, 2, 12))
    assert render_note(note) == "Deferred from Feb 12 (Holiday)"


def test_render_rate_change_in_chinese():
    assert render_note(Note(NoteCode.RATE_CHANGED, Decimal("7")), "cn") == "利率变更为 7%"


def test_render_notes_without_values():
    notes = [Note(NoteCode.RATE_CHANGED, Decimal("6.5")), Note(NoteCode.PMT_FIXED)]
    assert render_notes(notes) == "Rate changed to 6.5%; PMT Fixed"
    assert render_note(Note(NoteCode.PAID_OFF_EARLY), "cn") == "提前还清"


def test_render_basis_note():
    assert render_note(Note(NoteCode.BASIS, Decimal("1234.5"))) == "Basis: 1234.50"


def test_every_code_renders_in_both_languages():
    for code in NoteCode:
        for lang in ("en", "cn"):
            assert render_note(Note(code, Decimal("1")), lang)


def test_unknown_language_falls_back_to_english():
    assert column_headers("fr") == column_headers("en")
    assert column_headers("en")[0] == "Type"
    assert column_headers("cn")[-1] == "备注"


def test_print_schedule_can_hide_breakdown(params, capsys):
    rows, _ = compute_schedule(params, repayments=[RepaymentEvent(date(2024, 3, 15), Decimal("1000"))])
    print_schedule(rows, show_segments=False, show_repayments=False)
    out = capsys.readouterr().out
    assert "SEGMENT" not in out
    assert "REPAYMENT" not in out
    assert out.count("INSTALLMENT") == 12

    print_schedule(rows)
    out = capsys.readouterr().out
    assert "SEGMENT" in out
    assert "Extra Repayment" in out


def test_print_summary_reports_non_convergence(tenure_params, capsys):
    spike = [RateInterval(start_date=date(2024, 2, 1), rate=Decimal("150"))]
    _, summary = compute_schedule(tenure_params, rate_intervals=spike, max_periods=12)
    print_summary(summary)
    out = capsys.readouterr().out
    assert "Not repaid" in out
    assert "Outstanding" in out


def test_print_comparison(params, capsys):
    _, s1 = compute_schedule(params)
    _, s2 = compute_schedule(replace(params, initial_rate=Decimal("4")))
    print_comparison(s1, s2)
    out = capsys.readouterr().out
    assert "total_interest" in out
    assert "payoff_date" in out
