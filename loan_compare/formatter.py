"""Output helpers for the loan comparison calculator.

This module renders scorecards, amortization schedules and comparison rows
as plain text tables and converts them into JSON-serialisable dictionaries
for exports and the web API. Amounts are shown in rupees with lakh/crore
abbreviations, the single currency the calculator works in.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from .data_models import AmortizationEntry, ComparisonRow, LoanMetrics
from .utils import Number, round_currency

CURRENCY_SYMBOL = "₹"
LAKH = Decimal("100000")
CRORE = Decimal("10000000")


def _indian_grouping(number: int) -> str:
    """Group digits the Indian way: last three, then pairs (1,23,45,678)."""
    digits = str(abs(number))
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(value: Number) -> str:
    """Format an amount as rupees, abbreviating lakhs (L) and crores (Cr)."""
    amount = Decimal(str(value))
    if amount >= CRORE:
        return f"{CURRENCY_SYMBOL}{amount / CRORE:.2f} Cr"
    if amount >= LAKH:
        return f"{CURRENCY_SYMBOL}{amount / LAKH:.2f} L"
    whole = round_currency(amount)
    sign = "-" if whole < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{_indian_grouping(whole)}"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_tenure(value: Number, year_mode: bool = False) -> str:
    """Describe a tenure, e.g. ``"300 months"`` or ``"2 years 1 month"``.

    In year mode ``value`` is a (possibly fractional) number of years; the
    fraction is rounded to whole months and twelve months roll over into
    another year.
    """
    if not year_mode:
        return _plural(value, "month")
    amount = Decimal(str(value))
    years = int(amount)
    months = round_currency((amount - years) * 12)
    if months == 12:
        years, months = years + 1, 0
    if months == 0:
        return _plural(years, "year")
    return f"{_plural(years, 'year')} {_plural(months, 'month')}"


def _to_float(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


def serialize_metrics(metrics: LoanMetrics) -> Dict[str, int]:
    return metrics.as_dict()


def serialize_schedule(schedule: Iterable[AmortizationEntry]) -> List[Dict[str, float]]:
    """Convert schedule entries into JSON-serialisable dictionaries for charts."""
    serialized = []
    for entry in schedule:
        serialized.append(
            {
                "month": entry.month,
                "payment": float(entry.payment),
                "principal": float(entry.principal_paid),
                "interest": float(entry.interest_paid),
                "balance": float(entry.balance),
                "cumulative_interest": float(entry.cumulative_interest),
            }
        )
    return serialized


def serialize_rows(rows: Iterable[ComparisonRow], fields: Sequence[str]) -> List[Dict[str, object]]:
    """Convert comparison rows into dictionaries holding only ``fields``.

    Paid-off balances stay ``None`` (``null`` in JSON) so charts end each
    line at its payoff month.
    """
    serialized = []
    for row in rows:
        item: Dict[str, object] = {"month": row.month}
        for name in fields:
            item[name] = _to_float(getattr(row, name))
        serialized.append(item)
    return serialized


def print_metrics(metrics: LoanMetrics) -> None:
    """Print the scorecard in a human-readable format."""
    print("Loan comparison")
    print("-" * 72)
    print(f"Current EMI              : {format_currency(metrics.current_emi)}")
    print(f"New EMI                  : {format_currency(metrics.new_emi)}")
    print(f"Monthly saving           : {format_currency(metrics.monthly_saving)}")
    print(f"Interest saving          : {format_currency(metrics.interest_saving)}")
    print(f"Tenure at current EMI    : {format_tenure(metrics.new_tenure)}")
    print(f"Tenure reduction         : {format_tenure(metrics.tenure_reduction)}")
    print(f"Total current interest   : {format_currency(metrics.total_current_interest)}")
    # Extra payment figures only mean something once a tenure was shortened
    if metrics.extra_tenure_reduction:
        print(f"Months with extra payment: {format_tenure(metrics.months_with_extra)}")
        print(f"Extra payment saving     : {format_currency(metrics.extra_payment_saving)}")
        print(f"Interest with extra      : {format_currency(metrics.total_interest_with_extra)}")
        print(f"Total saving             : {format_currency(metrics.total_saving)}")
    print("-" * 72)


def print_schedule(schedule: Iterable[AmortizationEntry]) -> None:
    """Print the amortization schedule as a simple table."""
    headers = ["Month", "Payment", "Principal", "Interest", "Balance", "CumInterest"]
    print("\t".join(headers))
    for entry in schedule:
        row = [
            str(entry.month),
            f"{entry.payment:.2f}",
            f"{entry.principal_paid:.2f}",
            f"{entry.interest_paid:.2f}",
            f"{entry.balance:.2f}",
            f"{entry.cumulative_interest:.2f}",
        ]
        print("\t".join(row))


def print_comparison(rows: Iterable[ComparisonRow], fields: Sequence[str]) -> None:
    """Print comparison rows side by side; paid-off balances show as ``-``."""
    print("\t".join(["month", *fields]))
    for row in rows:
        cells = [str(row.month)]
        for name in fields:
            value = getattr(row, name)
            cells.append("-" if value is None else f"{value:.2f}")
        print("\t".join(cells))
