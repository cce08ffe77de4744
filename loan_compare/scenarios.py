"""Scenario comparisons built from several amortization schedules.

Each builder simulates two or three loans and zips their schedules into
``ComparisonRow`` objects keyed by month. Schedules of different lengths are
never truncated: the rows run to the longest schedule and the shorter ones
are padded with a zero-balance, zero-interest placeholder.

``savings`` is always computed from the raw balances, before a paid-off
balance is replaced by ``None`` for charting.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from itertools import zip_longest
from typing import Callable, Dict, Iterator, List, NamedTuple, Optional, Tuple

from .data_models import (
    AmortizationEntry,
    CalculationResult,
    ComparisonRow,
    LoanComparisonConfig,
    LoanTerms,
)
from .engine import (
    compute_emi,
    ensure_paid_off,
    require_positive,
    require_whole_months,
    simulate,
)
from .exceptions import InvalidLoanInput, returns_result
from .utils import Number, coerce_decimal

logger = logging.getLogger(__name__)

# Same-EMI loans run over this multiple of the original tenure, which the
# simulator in turn caps at MAX_TERM_FACTOR times.
EXTENDED_HORIZON_FACTOR = Decimal("1.5")

_PAID_OFF = AmortizationEntry(
    month=0,
    payment=Decimal("0"),
    principal_paid=Decimal("0"),
    interest_paid=Decimal("0"),
    balance=Decimal("0"),
    cumulative_interest=Decimal("0"),
)


def _aligned(*schedules: List[AmortizationEntry]) -> Iterator[Tuple[int, Tuple[AmortizationEntry, ...]]]:
    return enumerate(zip_longest(*schedules, fillvalue=_PAID_OFF), start=1)


def _visible(balance: Decimal) -> Optional[Decimal]:
    return balance if balance > 0 else None


def _extra_payment(value: Number) -> Decimal:
    extra = coerce_decimal(value, "extra payment")
    if extra < 0:
        raise InvalidLoanInput(f"Extra payment cannot be negative; got {value}")
    return extra


@returns_result(list)
def compare_same_tenure(
    principal: Number, current_rate: Number, new_rate: Number, tenure_months: Number
) -> List[ComparisonRow]:
    """Compare the current and new rate over the same tenure (lower EMI)."""
    compute_emi(principal, current_rate, tenure_months)
    compute_emi(principal, new_rate, tenure_months)
    original = ensure_paid_off(simulate(principal, current_rate, tenure_months), "Current-rate loan")
    modified = ensure_paid_off(simulate(principal, new_rate, tenure_months), "New-rate loan")
    return [
        ComparisonRow(
            month=month,
            original_balance=o.balance,
            modified_balance=m.balance,
            original_interest=o.cumulative_interest,
            modified_interest=m.cumulative_interest,
            savings=o.balance - m.balance,
        )
        for month, (o, m) in _aligned(original, modified)
    ]


@returns_result(list)
def compare_same_emi(
    principal: Number, current_rate: Number, new_rate: Number, tenure_months: Number
) -> List[ComparisonRow]:
    """Compare the current loan with the new rate at the current EMI (shorter tenure)."""
    emi = compute_emi(principal, current_rate, tenure_months)
    require_positive(new_rate, "new rate")
    horizon = require_whole_months(tenure_months) * EXTENDED_HORIZON_FACTOR
    original = ensure_paid_off(simulate(principal, current_rate, tenure_months), "Current-rate loan")
    modified = ensure_paid_off(simulate(principal, new_rate, horizon, 0, emi), "Same-EMI loan")
    return [
        ComparisonRow(
            month=month,
            original_balance=_visible(o.balance),
            modified_balance=_visible(m.balance),
            original_interest=o.cumulative_interest,
            modified_interest=m.cumulative_interest,
            savings=o.balance - m.balance,
        )
        for month, (o, m) in _aligned(original, modified)
    ]


@returns_result(list)
def compare_extra_payment(
    principal: Number, annual_rate: Number, tenure_months: Number, extra_monthly: Number
) -> List[ComparisonRow]:
    """Compare a loan with and without a recurring extra payment."""
    compute_emi(principal, annual_rate, tenure_months)
    extra = _extra_payment(extra_monthly)
    baseline = ensure_paid_off(simulate(principal, annual_rate, tenure_months), "Loan")
    accelerated = ensure_paid_off(
        simulate(principal, annual_rate, tenure_months, extra), "Loan with extra payment"
    )
    return [
        ComparisonRow(
            month=month,
            original_balance=_visible(b.balance),
            modified_balance=_visible(a.balance),
            original_interest=b.cumulative_interest,
            modified_interest=a.cumulative_interest,
            savings=b.balance - a.balance,
        )
        for month, (b, a) in _aligned(baseline, accelerated)
    ]


@returns_result(list)
def compare_combined_impact(
    principal: Number,
    current_rate: Number,
    new_rate: Number,
    tenure_months: Number,
    extra_monthly: Number,
) -> List[ComparisonRow]:
    """Compare the current loan, a same-EMI rate change and the rate change plus extra payment."""
    emi = compute_emi(principal, current_rate, tenure_months)
    require_positive(new_rate, "new rate")
    extra = _extra_payment(extra_monthly)
    horizon = require_whole_months(tenure_months) * EXTENDED_HORIZON_FACTOR
    original = ensure_paid_off(simulate(principal, current_rate, tenure_months), "Current-rate loan")
    rate_change = ensure_paid_off(simulate(principal, new_rate, horizon, 0, emi), "Same-EMI loan")
    combined = ensure_paid_off(
        simulate(principal, new_rate, horizon, extra, emi), "Same-EMI loan with extra payment"
    )
    return [
        ComparisonRow(
            month=month,
            original_balance=_visible(o.balance),
            rate_change_balance=_visible(r.balance),
            combined_balance=_visible(c.balance),
            original_interest=o.cumulative_interest,
            rate_change_interest=r.cumulative_interest,
            combined_interest=c.cumulative_interest,
            savings=o.balance - c.balance,
        )
        for month, (o, r, c) in _aligned(original, rate_change, combined)
    ]


def generate_same_tenure_data(principal, current_rate, new_rate, tenure_months) -> List[ComparisonRow]:
    return compare_same_tenure(principal, current_rate, new_rate, tenure_months).value


def generate_same_emi_data(principal, current_rate, new_rate, tenure_months) -> List[ComparisonRow]:
    return compare_same_emi(principal, current_rate, new_rate, tenure_months).value


def generate_extra_payment_data(principal, annual_rate, tenure_months, extra_monthly) -> List[ComparisonRow]:
    return compare_extra_payment(principal, annual_rate, tenure_months, extra_monthly).value


def generate_combined_impact_data(
    principal, current_rate, new_rate, tenure_months, extra_monthly
) -> List[ComparisonRow]:
    return compare_combined_impact(principal, current_rate, new_rate, tenure_months, extra_monthly).value


def _extra_payment_for(terms: LoanTerms) -> CalculationResult:
    return compare_extra_payment(
        terms.principal, terms.annual_rate, terms.term_months, terms.extra_monthly_payment
    )


class Scenario(NamedTuple):
    """A named comparison, the row fields it fills and how to run it from a config."""

    title: str
    fields: Tuple[str, ...]
    run: Callable[[LoanComparisonConfig], CalculationResult]


_TWO_WAY_FIELDS = (
    "original_balance",
    "modified_balance",
    "original_interest",
    "modified_interest",
    "savings",
)

SCENARIOS: Dict[str, Scenario] = {
    "same-tenure": Scenario(
        "Rate change, same tenure",
        _TWO_WAY_FIELDS,
        lambda c: compare_same_tenure(c.principal, c.current_rate, c.new_rate, c.tenure_months),
    ),
    "same-emi": Scenario(
        "Rate change, same EMI",
        _TWO_WAY_FIELDS,
        lambda c: compare_same_emi(c.principal, c.current_rate, c.new_rate, c.tenure_months),
    ),
    "extra-payment": Scenario(
        "Extra payment at the new rate",
        _TWO_WAY_FIELDS,
        lambda c: _extra_payment_for(c.new_terms()),
    ),
    "combined": Scenario(
        "Rate change plus extra payment",
        (
            "original_balance",
            "rate_change_balance",
            "combined_balance",
            "original_interest",
            "rate_change_interest",
            "combined_interest",
            "savings",
        ),
        lambda c: compare_combined_impact(
            c.principal, c.current_rate, c.new_rate, c.tenure_months, c.extra_monthly
        ),
    ),
}


def run_scenario(name: str, config: LoanComparisonConfig) -> CalculationResult:
    """Run the comparison registered under ``name`` for ``config``.

    Raises ``KeyError`` for an unknown scenario name.
    """
    scenario = SCENARIOS[name]
    logger.debug("Running %s comparison for %s", name, config)
    return scenario.run(config)
