"""Command-line interface for the loan ledger.

This module uses the ``click`` library to implement a multi-command
interface. Users can compute full day-accurate schedules, view summaries,
compare two loan scenarios or write a holiday import template. Results can be
printed to the terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import json
import logging
import shlex
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import click

from .data_models import (
    AdjustmentStrategy,
    HolidayInterval,
    HolidayShift,
    LoanParams,
    RateInterval,
    RepaymentEvent,
    ScheduleRow,
    Summary,
)
from .engine import compute_schedule
from .errors import HolidayResolutionError, InvalidParameters, NonConvergentSchedule
from .exporters import export_to_csv, export_to_json, summary_to_dict
from .formatter import LANGUAGES, print_comparison, print_schedule, print_summary
from .holiday_import import load_holidays, write_holiday_template
from .utils import decimal_from_str, parse_iso_date

logger = logging.getLogger(__name__)

SHIFT_CHOICES = {"following": HolidayShift.FOLLOWING, "preceding": HolidayShift.PRECEDING}
STRATEGY_CHOICES = {
    "installment": AdjustmentStrategy.VARIABLE_INSTALLMENT,
    "tenure": AdjustmentStrategy.VARIABLE_TENURE,
}

Inputs = Tuple[LoanParams, List[HolidayInterval], List[RateInterval], List[RepaymentEvent]]


def parse_amount(value: str) -> float:
    """Parse a numeric string with optional suffixes.

    Accepts plain floats ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000). Returns a float.
    """
    value = value.strip().lower()
    value = value.replace(",", "")
    factor = 1.0
    if value.endswith("k"):
        factor = 1_000.0
        value = value[:-1]
    elif value.endswith("m"):
        factor = 1_000_000.0
        value = value[:-1]
    try:
        return float(value) * factor
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")


def _parse_date(value: str) -> Any:
    try:
        return parse_iso_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def _parse_decimal(value: str) -> Any:
    try:
        return decimal_from_str(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def parse_holiday_strings(values: Sequence[str]) -> List[HolidayInterval]:
    """Parse ``START[:END[:LABEL]]`` entries into holiday intervals."""
    holidays: List[HolidayInterval] = []
    for item in values:
        parts = item.split(":", 2)
        start = _parse_date(parts[0])
        end = _parse_date(parts[1]) if len(parts) > 1 and parts[1].strip() else start
        label = parts[2].strip() if len(parts) > 2 and parts[2].strip() else "Holiday"
        holidays.append(HolidayInterval(start_date=start, end_date=end, label=label))
    return holidays


def parse_rate_strings(values: Sequence[str]) -> List[RateInterval]:
    """Parse ``START[:END]:RATE`` entries into rate intervals."""
    intervals: List[RateInterval] = []
    for item in values:
        parts = item.split(":")
        if len(parts) not in (2, 3):
            raise click.BadParameter(
                f"Rate change must be in START[:END]:RATE format; got {item}"
            )
        start = _parse_date(parts[0])
        end = _parse_date(parts[1]) if len(parts) == 3 and parts[1].strip() else None
        rate = _parse_decimal(parts[-1].strip().rstrip("%"))
        intervals.append(RateInterval(start_date=start, end_date=end, rate=rate))
    return intervals


def parse_repayment_strings(values: Sequence[str]) -> List[RepaymentEvent]:
    """Parse ``DATE:AMOUNT`` entries into repayment events."""
    repayments: List[RepaymentEvent] = []
    for item in values:
        parts = item.split(":")
        if len(parts) != 2:
            raise click.BadParameter(
                f"Repayment must be in YYYY-MM-DD:AMOUNT format; got {item}"
            )
        dt = _parse_date(parts[0])
        amount = decimal_from_str(str(parse_amount(parts[1])))
        repayments.append(RepaymentEvent(date=dt, amount=amount))
    return repayments


def build_inputs_from_options(
    principal: str,
    rate: float,
    term: int,
    start_date: str,
    shift: str = "following",
    strategy: str = "installment",
    holiday: Sequence[str] = (),
    rate_change: Sequence[str] = (),
    repayment: Sequence[str] = (),
    holidays_file: Optional[Path] = None,
) -> Inputs:
    """Turn raw option values into the four engine input collections."""
    principal_value = decimal_from_str(str(parse_amount(principal)))
    shift_key = shift.lower()
    strategy_key = strategy.lower()
    if shift_key not in SHIFT_CHOICES:
        raise click.BadParameter(f"Holiday shift must be 'following' or 'preceding'; got {shift}")
    if strategy_key not in STRATEGY_CHOICES:
        raise click.BadParameter(f"Strategy must be 'installment' or 'tenure'; got {strategy}")

    params = LoanParams(
        principal=principal_value,
        initial_rate=decimal_from_str(str(rate)),
        tenure_months=term,
        start_date=_parse_date(start_date),
        holiday_shift=SHIFT_CHOICES[shift_key],
        strategy=STRATEGY_CHOICES[strategy_key],
    )
    holidays = parse_holiday_strings(holiday)
    if holidays_file is not None:
        try:
            holidays.extend(load_holidays(Path(holidays_file)))
        except ValueError as exc:
            raise click.BadParameter(str(exc))
    rate_intervals = parse_rate_strings(rate_change)
    repayments = parse_repayment_strings(repayment)
    logger.debug(
        "Parsed %d holidays, %d rate intervals, %d repayments",
        len(holidays), len(rate_intervals), len(repayments),
    )
    return params, holidays, rate_intervals, repayments


def run_inputs(inputs: Inputs, strict: bool = False) -> Tuple[Tuple[ScheduleRow, ...], Summary]:
    """Run the engine, converting its errors into click errors."""
    params, holidays, rate_intervals, repayments = inputs
    try:
        return compute_schedule(params, holidays, rate_intervals, repayments, strict=strict)
    except (InvalidParameters, HolidayResolutionError, NonConvergentSchedule) as exc:
        raise click.ClickException(str(exc))


def loan_options(func: Callable) -> Callable:
    """Attach the options describing one loan scenario."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (accepts k/m suffixes)"),
        click.option("--rate", "-r", "rate", required=True, type=float, help="Initial annual interest rate (percent)"),
        click.option("--term", "-t", "term", required=True, type=int, help="Tenure in months"),
        click.option("--start-date", "-s", "start_date", required=True, help="Disbursement date (YYYY-MM-DD)"),
        click.option("--shift", "shift", type=click.Choice(list(SHIFT_CHOICES)), default="following", help="Holiday adjustment of due dates"),
        click.option("--strategy", "strategy", type=click.Choice(list(STRATEGY_CHOICES)), default="installment", help="Recalculation strategy on rate changes and repayments"),
        click.option("--holiday", "holiday", multiple=True, help="Holiday in START[:END[:LABEL]] format"),
        click.option("--rate-change", "rate_change", multiple=True, help="Rate interval in START[:END]:RATE format"),
        click.option("--repayment", "repayment", multiple=True, help="Extra repayment in YYYY-MM-DD:AMOUNT format"),
        click.option(
            "--holidays-file",
            "holidays_file",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            help="Spreadsheet (.xlsx/.csv) with HOLIDAY_DATE and HOLIDAY_DESC columns",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _collect(**kwargs: Any) -> Dict[str, Any]:
    return kwargs


# Parses a quoted scenario string with the same options as ``schedule``.
_scenario_parser = click.command("scenario")(loan_options(_collect))


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log engine progress to stderr")
def cli(verbose: bool) -> None:
    """A day-accurate loan schedule calculator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@loan_options
@click.option("--lang", "lang", type=click.Choice(LANGUAGES), default="en", help="Language of notes and headers")
@click.option("--hide-segments", "hide_segments", is_flag=True, help="Do not print interest breakdown rows")
@click.option("--hide-repayments", "hide_repayments", is_flag=True, help="Do not print extra repayment rows")
@click.option("--strict", "strict", is_flag=True, help="Fail if the loan is not repaid within the period limit")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    lang: str,
    hide_segments: bool,
    hide_repayments: bool,
    strict: bool,
    output: Optional[str],
    **loan: Any,
) -> None:
    """Compute and print the full repayment schedule."""
    rows, summary_data = run_inputs(build_inputs_from_options(**loan), strict=strict)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, rows, summary_data, lang)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, rows, lang)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Schedule exported to {path}")
        return

    print_summary(summary_data, lang)
    # Limit schedule length printed to avoid flooding the terminal
    max_rows = 240
    if len(rows) > max_rows:
        click.echo(f"Schedule has {len(rows)} rows; showing first {max_rows} rows.")
        rows = rows[:max_rows]
    print_schedule(rows, lang, show_segments=not hide_segments, show_repayments=not hide_repayments)


@cli.command()
@loan_options
@click.option("--lang", "lang", type=click.Choice(LANGUAGES), default="en", help="Language of labels")
@click.option("--output", "output", type=str, help="Output file path (.json)")
def summary(lang: str, output: Optional[str], **loan: Any) -> None:
    """Compute and print only the summary metrics for a loan."""
    _, summary_data = run_inputs(build_inputs_from_options(**loan))
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": summary_to_dict(summary_data)}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(summary_data, lang)


@cli.command()
@click.option("--scenario1", "scenario1", required=True, help="First scenario options quoted string")
@click.option("--scenario2", "scenario2", required=True, help="Second scenario options quoted string")
def compare(scenario1: str, scenario2: str) -> None:
    """Compare two loan scenarios.

    Scenarios are provided as quoted option strings, for example:

        loan-ledger compare --scenario1 "-p 100k -r 5 -t 12 -s 2024-01-01"
                            --scenario2 "-p 100k -r 5 -t 12 -s 2024-01-01 --repayment 2024-03-01:20k"
    """
    summaries = []
    for raw in (scenario1, scenario2):
        try:
            ctx = _scenario_parser.make_context("scenario", shlex.split(raw))
        except click.UsageError as exc:
            raise click.BadParameter(f"Invalid scenario '{raw}': {exc.format_message()}")
        _, summary_data = run_inputs(build_inputs_from_options(**ctx.params))
        summaries.append(summary_data)
    print_comparison(summaries[0], summaries[1])


@cli.command("holiday-template")
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
def holiday_template(path: Path) -> None:
    """Write a holiday import template (.xlsx or .csv) to PATH."""
    write_holiday_template(path)
    click.echo(f"Template written to {path}")


if __name__ == "__main__":
    cli()
