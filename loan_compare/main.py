"""Command-line interface for the loan comparison calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can print the savings scorecard of a rate change, view an
amortization schedule or produce the month-by-month comparison behind each
chart. Results can be printed to the terminal or exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import click

from .data_models import AmortizationEntry, CalculationResult, ComparisonRow, LoanComparisonConfig
from .engine import amortize
from .exceptions import InvalidLoanInput
from .formatter import (
    print_comparison,
    print_metrics,
    print_schedule,
    serialize_metrics,
    serialize_rows,
    serialize_schedule,
)
from .metrics import compute_loan_metrics
from .scenarios import SCENARIOS, run_scenario
from .utils import (
    FREQUENCY_DIVISORS,
    coerce_decimal,
    normalize_extra_payment,
    parse_amount,
    tenure_to_months,
)

MAX_PRINTED_ROWS = 120
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _positive_rate(value: Any, name: str) -> Decimal:
    try:
        rate = coerce_decimal(value, name)
    except InvalidLoanInput as exc:
        raise click.BadParameter(str(exc))
    if rate <= 0:
        raise click.BadParameter(f"{name.capitalize()} must be positive; got {value}")
    return rate


def build_config_from_options(
    principal: str,
    current_rate: Any,
    new_rate: Any,
    tenure: Any,
    years: bool = False,
    extra_payment: Optional[str] = None,
    frequency: str = "monthly",
) -> LoanComparisonConfig:
    """Validate raw user input and normalize it into a ``LoanComparisonConfig``.

    Tenure given in years is converted to months and the extra payment is
    spread over its frequency, so the engine only ever sees monthly figures.
    """
    try:
        principal_value = parse_amount(principal)
        tenure_months = tenure_to_months(tenure, "years" if years else "months")
        extra_monthly = normalize_extra_payment(
            parse_amount(extra_payment) if extra_payment else 0, frequency
        )
    except InvalidLoanInput as exc:
        raise click.BadParameter(str(exc))
    if principal_value <= 0:
        raise click.BadParameter(f"Principal must be positive; got {principal}")
    if tenure_months < 1:
        raise click.BadParameter(f"Tenure must be at least one month; got {tenure}")
    return LoanComparisonConfig(
        principal=principal_value,
        current_rate=_positive_rate(current_rate, "current rate"),
        new_rate=_positive_rate(new_rate, "new rate"),
        tenure_months=tenure_months,
        extra_monthly=extra_monthly,
    )


def export_to_json(path: Path, data: Dict[str, Any]) -> None:
    """Export already serialised data to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


def export_schedule_csv(path: Path, schedule: List[AmortizationEntry]) -> None:
    """Export a schedule to a CSV file."""
    header = ["Month", "Payment", "Principal", "Interest", "Balance", "Cumulative_Interest"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for e in schedule:
            writer.writerow(
                [
                    e.month,
                    float(e.payment),
                    float(e.principal_paid),
                    float(e.interest_paid),
                    float(e.balance),
                    float(e.cumulative_interest),
                ]
            )


def export_rows_csv(path: Path, rows: List[ComparisonRow], fields: Sequence[str]) -> None:
    """Export comparison rows to a CSV file; paid-off balances are left empty."""
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["month", *fields])
        for item in serialize_rows(rows, fields):
            writer.writerow(["" if item[k] is None else item[k] for k in ["month", *fields]])


def _raise_on_failure(result: CalculationResult) -> None:
    if not result.ok:
        raise click.ClickException(f"{result.failure.value}: {result.message}")


def _output_path(output: Optional[str], allowed: Sequence[str]) -> Optional[Path]:
    if not output:
        return None
    path = Path(output)
    if path.suffix.lower() not in allowed:
        raise click.BadParameter(
            f"Unsupported output format; use {' or '.join(allowed)}", param_hint="--output"
        )
    return path


def comparison_options(func):
    """Attach the options shared by the ``metrics`` and ``compare`` commands."""
    options = [
        click.option("--principal", "-p", "principal", required=True, help="Loan amount (accepts 50l, 1cr, 500k)"),
        click.option("--current-rate", "-c", "current_rate", required=True, type=float, help="Current annual interest rate (percent)"),
        click.option("--new-rate", "-n", "new_rate", required=True, type=float, help="New annual interest rate (percent)"),
        click.option("--tenure", "-t", "tenure", required=True, type=float, help="Remaining tenure in months (years with --years)"),
        click.option("--years", "years", is_flag=True, help="Interpret --tenure as years"),
        click.option("--extra", "-e", "extra_payment", help="Recurring extra payment amount"),
        click.option("--frequency", "frequency", type=click.Choice(list(FREQUENCY_DIVISORS)), default="monthly", help="How often the extra payment is made"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--log-level", "log_level", type=click.Choice(LOG_LEVELS, case_sensitive=False), default="WARNING", help="Logging verbosity")
def cli(log_level: str) -> None:
    """Compare the cost of a loan before and after an interest rate change."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@comparison_options
@click.option("--output", "output", type=str, help="Output file path (.json)")
def metrics(
    principal: str,
    current_rate: float,
    new_rate: float,
    tenure: float,
    years: bool,
    extra_payment: Optional[str],
    frequency: str,
    output: Optional[str],
) -> None:
    """Compute and print the savings scorecard."""
    path = _output_path(output, (".json",))
    config = build_config_from_options(
        principal, current_rate, new_rate, tenure, years, extra_payment, frequency
    )
    result = compute_loan_metrics(
        config.principal, config.current_rate, config.new_rate, config.tenure_months, config.extra_monthly
    )
    _raise_on_failure(result)
    if path:
        export_to_json(path, {"metrics": serialize_metrics(result.value)})
        click.echo(f"Metrics exported to {path}")
    else:
        print_metrics(result.value)


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Loan amount (accepts 50l, 1cr, 500k)")
@click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)")
@click.option("--tenure", "-t", "tenure", required=True, type=float, help="Tenure in months (years with --years)")
@click.option("--years", "years", is_flag=True, help="Interpret --tenure as years")
@click.option("--extra", "-e", "extra_payment", help="Recurring extra payment amount")
@click.option("--frequency", "frequency", type=click.Choice(list(FREQUENCY_DIVISORS)), default="monthly", help="How often the extra payment is made")
@click.option("--fixed-emi", "fixed_emi", help="Pay this installment instead of the computed EMI")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def schedule(
    principal: str,
    rate: float,
    tenure: float,
    years: bool,
    extra_payment: Optional[str],
    frequency: str,
    fixed_emi: Optional[str],
    output: Optional[str],
) -> None:
    """Compute and print the full amortization schedule."""
    path = _output_path(output, (".json", ".csv"))
    config = build_config_from_options(principal, rate, rate, tenure, years, extra_payment, frequency)
    installment = None
    if fixed_emi:
        try:
            installment = parse_amount(fixed_emi)
        except InvalidLoanInput as exc:
            raise click.BadParameter(str(exc), param_hint="--fixed-emi")
    terms = config.current_terms()
    result = amortize(
        terms.principal, terms.annual_rate, terms.term_months, terms.extra_monthly_payment, installment
    )
    _raise_on_failure(result)
    entries = result.value
    if path and path.suffix.lower() == ".json":
        export_to_json(path, {"schedule": serialize_schedule(entries)})
        click.echo(f"Schedule exported to {path}")
    elif path:
        export_schedule_csv(path, entries)
        click.echo(f"Schedule exported to {path}")
    elif len(entries) > MAX_PRINTED_ROWS:
        # Limit schedule length printed to avoid flooding the terminal
        click.echo(f"Schedule has {len(entries)} rows; showing first {MAX_PRINTED_ROWS} rows.")
        print_schedule(entries[:MAX_PRINTED_ROWS])
    else:
        print_schedule(entries)


@cli.command()
@click.argument("scenario", type=click.Choice(list(SCENARIOS)))
@comparison_options
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
def compare(
    scenario: str,
    principal: str,
    current_rate: float,
    new_rate: float,
    tenure: float,
    years: bool,
    extra_payment: Optional[str],
    frequency: str,
    output: Optional[str],
) -> None:
    """Print the month-by-month balances behind one comparison chart.

    SCENARIO is one of same-tenure, same-emi, extra-payment or combined, for
    example:

        loan-compare compare same-emi -p 1cr -c 9 -n 7.5 -t 25 --years
    """
    path = _output_path(output, (".json", ".csv"))
    config = build_config_from_options(
        principal, current_rate, new_rate, tenure, years, extra_payment, frequency
    )
    result = run_scenario(scenario, config)
    _raise_on_failure(result)
    fields = SCENARIOS[scenario].fields
    if path and path.suffix.lower() == ".json":
        export_to_json(path, {"scenario": scenario, "rows": serialize_rows(result.value, fields)})
        click.echo(f"Comparison exported to {path}")
    elif path:
        export_rows_csv(path, result.value, fields)
        click.echo(f"Comparison exported to {path}")
    else:
        click.echo(SCENARIOS[scenario].title)
        print_comparison(result.value, fields)


if __name__ == "__main__":
    cli()
