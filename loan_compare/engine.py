"""Core calculation engine for the loan comparison calculator.

This module implements the closed-form EMI solver (and its inverse, the term
needed to repay a loan with a given installment) and the month-by-month
amortization simulator the scenario builders are assembled from.

All arithmetic is done with ``Decimal``. The EMI formula divides by
``(1 + i)^n - 1``, so the rate is required to be strictly positive; a rate
that tends to zero makes the formula numerically unstable and is not
special-cased.
"""

from __future__ import annotations

import logging
from decimal import ROUND_CEILING, Decimal, getcontext
from typing import List, Optional, Tuple

from .data_models import AmortizationEntry
from .exceptions import (
    InsufficientPaymentError,
    InvalidLoanInput,
    NonConvergentScheduleError,
    returns_result,
)
from .utils import Number, coerce_decimal

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

# A schedule may run for at most this multiple of its term before the
# simulator gives up on reaching a zero balance.
MAX_TERM_FACTOR = Decimal("1.5")

# Balances below half a cent after a payment are treated as fully repaid.
# Smaller loans use a proportionally smaller threshold.
RESIDUAL_TOLERANCE = Decimal("0.005")
RELATIVE_RESIDUAL_TOLERANCE = Decimal("1e-9")


def require_positive(value: Number, name: str) -> Decimal:
    number = coerce_decimal(value, name)
    if number <= 0:
        raise InvalidLoanInput(f"{name.capitalize()} must be positive; got {value}")
    return number


def require_whole_months(value: Number) -> int:
    term = require_positive(value, "term")
    if term != term.to_integral_value():
        raise InvalidLoanInput(f"Term must be a whole number of months; got {value}")
    return int(term)


def monthly_rate(annual_rate: Number) -> Decimal:
    """Convert an annual percentage rate into a monthly decimal rate."""
    return coerce_decimal(annual_rate, "annual rate") / Decimal(12) / Decimal(100)


def _annuity_payment(principal: Decimal, rate_per_month: Decimal, term: int) -> Decimal:
    factor = (1 + rate_per_month) ** term
    return principal * rate_per_month * factor / (factor - 1)


def compute_emi(principal: Number, annual_rate: Number, term_months: Number) -> Decimal:
    """Return the equated monthly installment for a loan.

    The formula is:

        EMI = P * i * (1 + i)^n / ((1 + i)^n - 1)

    where ``P`` is the principal, ``i`` the monthly rate (annual percent
    / 12 / 100) and ``n`` the number of months.

    Raises
    ------
    InvalidLoanInput
        If any argument is not positive or the term is not a whole number.
    """
    principal = require_positive(principal, "principal")
    rate = require_positive(annual_rate, "annual rate")
    term = require_whole_months(term_months)
    return _annuity_payment(principal, monthly_rate(rate), term)


def compute_term_for_emi(principal: Number, rate_per_month: Number, emi: Number) -> int:
    """Return the number of months needed to repay ``principal`` with ``emi``.

    Solves the EMI formula for ``n``:

        n = ceil( ln(EMI / (EMI - P * i)) / ln(1 + i) )

    Note that ``rate_per_month`` is the monthly decimal rate, not the annual
    percentage.

    Raises
    ------
    InvalidLoanInput
        If any argument is not positive.
    InsufficientPaymentError
        If the installment does not exceed the first month's interest, in
        which case the loan never amortizes.
    """
    principal = require_positive(principal, "principal")
    rate = require_positive(rate_per_month, "monthly rate")
    emi = require_positive(emi, "installment")
    interest = principal * rate
    if emi <= interest:
        raise InsufficientPaymentError(
            f"Installment {emi:.2f} does not cover the monthly interest of {interest:.2f}"
        )
    months = (emi / (emi - interest)).ln() / (1 + rate).ln()
    return int(months.to_integral_value(rounding=ROUND_CEILING))


def _schedule_inputs(
    principal: Number,
    annual_rate: Number,
    term_months: Number,
    extra_monthly: Number,
    fixed_installment: Optional[Number],
) -> Tuple[Decimal, Decimal, Decimal, Decimal, Decimal]:
    principal = require_positive(principal, "principal")
    rate = require_positive(annual_rate, "annual rate")
    term = require_positive(term_months, "term")
    extra = coerce_decimal(extra_monthly, "extra payment")
    if extra < 0:
        raise InvalidLoanInput(f"Extra payment cannot be negative; got {extra_monthly}")
    if fixed_installment is None:
        installment = compute_emi(principal, rate, term)
    else:
        installment = require_positive(fixed_installment, "installment")
    return principal, rate, term, extra, installment


def simulate(
    principal: Number,
    annual_rate: Number,
    term_months: Number,
    extra_monthly: Number = 0,
    fixed_installment: Optional[Number] = None,
) -> List[AmortizationEntry]:
    """Simulate a loan month by month until its balance reaches zero.

    Parameters
    ----------
    principal, annual_rate, term_months:
        The loan. ``term_months`` may be fractional when
        ``fixed_installment`` is given, in which case it only sets the
        iteration horizon.
    extra_monthly:
        Amount added to the principal portion of every payment.
    fixed_installment:
        Installment to use instead of the EMI computed for the loan.

    Returns
    -------
    List[AmortizationEntry]
        One entry per month. The loop stops when the balance is repaid or
        after ``term_months * MAX_TERM_FACTOR`` months, so a schedule whose
        last balance is still positive did not converge (see
        ``is_paid_off``). Invalid inputs produce an empty list.
    """
    try:
        principal, rate, term, extra, installment = _schedule_inputs(
            principal, annual_rate, term_months, extra_monthly, fixed_installment
        )
    except InvalidLoanInput as exc:
        logger.debug("Schedule not computable: %s", exc)
        return []
    except ArithmeticError as exc:
        logger.warning("Numeric failure computing the installment: %r", exc)
        return []

    rate_per_month = monthly_rate(rate)
    tolerance = min(RESIDUAL_TOLERANCE, principal * RELATIVE_RESIDUAL_TOLERANCE)
    max_months = term * MAX_TERM_FACTOR
    schedule: List[AmortizationEntry] = []
    balance = principal
    cumulative_interest = Decimal("0")
    month = 1
    while balance > 0 and month <= max_months:
        interest = balance * rate_per_month
        principal_paid = installment - interest + extra
        # The last payment only closes what is left
        if principal_paid > balance:
            principal_paid = balance
        balance -= principal_paid
        if balance < tolerance:
            principal_paid += balance
            balance = Decimal("0")
        cumulative_interest += interest
        schedule.append(
            AmortizationEntry(
                month=month,
                payment=principal_paid + interest,
                principal_paid=principal_paid,
                interest_paid=interest,
                balance=balance,
                cumulative_interest=cumulative_interest,
            )
        )
        month += 1
    return schedule


def is_paid_off(schedule: List[AmortizationEntry]) -> bool:
    """Return True when the schedule ends with the loan fully repaid."""
    return bool(schedule) and schedule[-1].balance == 0


def ensure_paid_off(schedule: List[AmortizationEntry], label: str = "Loan") -> List[AmortizationEntry]:
    """Return ``schedule`` unchanged if it repays the loan, raise otherwise.

    An empty schedule means the inputs were not computable. A first month
    whose principal portion is not positive means the installment never
    amortizes the loan; any other unfinished schedule ran out of months.
    """
    if is_paid_off(schedule):
        return schedule
    if not schedule:
        raise InvalidLoanInput(f"{label}: loan terms are not computable")
    if schedule[0].principal_paid <= 0:
        raise InsufficientPaymentError(
            f"{label}: installment does not cover the monthly interest of "
            f"{schedule[0].interest_paid:.2f}"
        )
    raise NonConvergentScheduleError(
        f"{label}: balance of {schedule[-1].balance:.2f} remains after {len(schedule)} months"
    )


@returns_result(list)
def amortize(
    principal: Number,
    annual_rate: Number,
    term_months: Number,
    extra_monthly: Number = 0,
    fixed_installment: Optional[Number] = None,
) -> List[AmortizationEntry]:
    """Build a schedule and report why it could not be built, if it could not.

    Returns a ``CalculationResult`` whose value is the full schedule, or an
    empty list with failure ``invalid_input``, ``insufficient_payment`` or
    ``non_convergent``.
    """
    _schedule_inputs(principal, annual_rate, term_months, extra_monthly, fixed_installment)
    schedule = simulate(principal, annual_rate, term_months, extra_monthly, fixed_installment)
    return ensure_paid_off(schedule)


def generate_amortization_schedule(
    principal: Number,
    annual_rate: Number,
    tenure_months: Number,
    extra_monthly: Number = 0,
    fixed_emi: Optional[Number] = None,
) -> List[AmortizationEntry]:
    """Return the amortization schedule, or an empty list if it cannot be built."""
    return amortize(principal, annual_rate, tenure_months, extra_monthly, fixed_emi).value
