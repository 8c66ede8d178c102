import logging
import os

import click
from flask import Flask, jsonify, render_template, request

from loan_ledger.data_models import RowType
from loan_ledger.errors import HolidayResolutionError
from loan_ledger.exporters import installment_series, row_to_dict, summary_to_dict
from loan_ledger.formatter import LANGUAGES, column_headers, format_row, text
from loan_ledger.holiday_import import read_holidays
from loan_ledger.main import build_inputs_from_options, run_inputs

logger = logging.getLogger(__name__)

app = Flask(__name__)
app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
app.config["MAX_ROWS"] = int(os.environ.get("LOAN_LEDGER_MAX_ROWS", "240"))
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")

DEFAULT_FORM = {
    "principal": "100000",
    "rate": "5",
    "term": "12",
    "start_date": "2024-01-01",
    "shift": "following",
    "strategy": "installment",
    "holidays": "",
    "rate_changes": "",
    "repayments": "",
    "lang": "en",
}


def parse_form_list(value: str) -> list[str]:
    """Parse a comma or newline separated list of entries from a form field.

    Returns a list of trimmed strings, skipping any empty entries.
    """
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(p).strip() for p in value if str(p).strip()]
    parts = [p.strip() for p in value.replace("\n", ",").split(",")]
    return [p for p in parts if p]


CHART_WIDTH = 600
CHART_HEIGHT = 200


def balance_chart_points(principal, series, width=CHART_WIDTH, height=CHART_HEIGHT):
    """Scale the outstanding balance after each installment into SVG polyline points.

    The line starts at the principal at x=0 and ends at the last installment
    at x=width. The y axis is inverted, as in SVG.
    """
    if not series:
        return ""
    balances = [float(principal)] + [point["balance"] for point in series]
    top = max(balances) or 1.0
    step = width / (len(balances) - 1)
    return " ".join(
        f"{i * step:.1f},{height - balance / top * height:.1f}"
        for i, balance in enumerate(balances)
    )


def _normalized_lang(form) -> str:
    lang = form.get("lang", "en")
    return lang if lang in LANGUAGES else "en"


def _form_to_inputs(form, files):
    params, holidays, rate_intervals, repayments = build_inputs_from_options(
        str(form.get("principal", "")).strip(),
        float(form.get("rate", 0.0) or 0.0),
        int(form.get("term", 0) or 0),
        str(form.get("start_date", "")).strip(),
        form.get("shift", "following"),
        form.get("strategy", "installment"),
        tuple(parse_form_list(form.get("holidays", ""))),
        tuple(parse_form_list(form.get("rate_changes", ""))),
        tuple(parse_form_list(form.get("repayments", ""))),
    )
    upload = files.get("holidays_file") if files else None
    if upload is not None and upload.filename:
        holidays.extend(read_holidays(upload.stream, upload.filename))
    return params, holidays, rate_intervals, repayments


def _run_analysis(form, files):
    return run_inputs(_form_to_inputs(form, files))


@app.route("/", methods=["GET", "POST"])
def index():
    form = dict(DEFAULT_FORM)
    summary = None
    rows = None
    chart_points = None
    truncated = 0
    error = None
    show_segments = True

    if request.method == "POST":
        form.update(request.form.to_dict())
        show_segments = request.form.get("show_segments") == "1"
        try:
            inputs = _form_to_inputs(request.form, request.files)
            schedule, summary = run_inputs(inputs)
        except (click.ClickException, ValueError, HolidayResolutionError) as exc:
            logger.info("Rejected schedule request: %s", exc)
            error = exc.format_message() if isinstance(exc, click.ClickException) else str(exc)
        else:
            lang = _normalized_lang(request.form)
            visible = [r for r in schedule if show_segments or r.row_type is not RowType.SEGMENT]
            max_rows = app.config["MAX_ROWS"]
            truncated = max(len(visible) - max_rows, 0)
            rows = [(r.row_type.value, format_row(r, lang)) for r in visible[:max_rows]]
            chart_points = balance_chart_points(inputs[0].principal, installment_series(schedule))

    lang = _normalized_lang(form)
    return render_template(
        "index.html",
        form=form,
        summary=summary,
        rows=rows,
        headers=column_headers(lang),
        chart_points=chart_points,
        chart_width=CHART_WIDTH,
        chart_height=CHART_HEIGHT,
        truncated=truncated,
        error=error,
        show_segments=show_segments,
        t=lambda key: text(key, lang),
        languages=LANGUAGES,
        asset_version=app.config["ASSET_VERSION"],
    )


@app.post("/api/schedule")
def api_schedule():
    payload = request.get_json(silent=True) or request.form
    lang = _normalized_lang(payload)
    try:
        schedule, summary = _run_analysis(payload, request.files)
    except (click.ClickException, ValueError, HolidayResolutionError) as exc:
        message = exc.format_message() if isinstance(exc, click.ClickException) else str(exc)
        return jsonify({"error": message}), 400
    return jsonify(
        {
            "summary": summary_to_dict(summary),
            "schedule": [row_to_dict(r, lang) for r in schedule],
        }
    )


if __name__ == "__main__":
    print("Starting Loan Ledger web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
