"""Summary scorecard for a rate change and an optional extra payment.

The scorecard is computed directly from the EMI solver and a single
extra-payment loop, independently of the chart series in
``loan_compare.scenarios``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Tuple

from .data_models import CalculationResult, LoanMetrics
from .engine import (
    compute_emi,
    compute_term_for_emi,
    monthly_rate,
    require_positive,
    require_whole_months,
)
from .exceptions import InvalidLoanInput, returns_result
from .utils import Number, coerce_decimal, round_currency


def _repay_with_extra(
    principal: Decimal, rate_per_month: Decimal, installment: Decimal, tenure: int
) -> Tuple[int, Decimal]:
    """Return the months and total interest to repay ``principal``.

    Unlike the simulator, this loop stops at ``tenure`` months and does not
    trim the final payment.
    """
    balance = principal
    months = 0
    total_interest = Decimal("0")
    while balance > 0 and months < tenure:
        interest = balance * rate_per_month
        total_interest += interest
        balance -= installment - interest
        months += 1
    return months, total_interest


@returns_result(LoanMetrics)
def compute_loan_metrics(
    principal: Number,
    current_rate: Number,
    new_rate: Number,
    tenure_months: Number,
    extra_monthly: Number = 0,
) -> LoanMetrics:
    """Compute the scorecard for moving a loan from ``current_rate`` to ``new_rate``.

    Returns a ``CalculationResult`` holding the ``LoanMetrics``. Invalid
    inputs, and a new rate at which the current EMI no longer covers the
    interest, produce the all-zero metrics with the matching failure kind.
    """
    principal = require_positive(principal, "principal")
    require_positive(current_rate, "current rate")
    require_positive(new_rate, "new rate")
    tenure = require_whole_months(tenure_months)
    extra = coerce_decimal(extra_monthly, "extra payment")
    if extra < 0:
        raise InvalidLoanInput(f"Extra payment cannot be negative; got {extra_monthly}")

    current_emi = compute_emi(principal, current_rate, tenure)
    new_emi = compute_emi(principal, new_rate, tenure)
    total_current_interest = current_emi * tenure - principal
    total_new_interest = new_emi * tenure - principal

    new_rate_per_month = monthly_rate(new_rate)
    new_tenure = compute_term_for_emi(principal, new_rate_per_month, current_emi)

    months_with_extra, interest_with_extra = _repay_with_extra(
        principal, new_rate_per_month, new_emi + extra, tenure
    )

    return LoanMetrics(
        current_emi=round_currency(current_emi),
        new_emi=round_currency(new_emi),
        monthly_saving=round_currency(current_emi - new_emi),
        interest_saving=round_currency(total_current_interest - total_new_interest),
        new_tenure=new_tenure,
        tenure_reduction=tenure - new_tenure,
        extra_payment_saving=round_currency(total_new_interest - interest_with_extra),
        extra_tenure_reduction=tenure - months_with_extra,
        total_saving=round_currency(total_current_interest - interest_with_extra),
        months_with_extra=months_with_extra,
        total_interest_with_extra=round_currency(interest_with_extra),
        total_current_interest=round_currency(total_current_interest),
    )


def calculate_loan(
    principal: Number,
    current_rate: Number,
    new_rate: Number,
    tenure_months: Number,
    extra_monthly: Number = 0,
) -> LoanMetrics:
    """Return the scorecard, or all-zero metrics when it cannot be computed."""
    result: CalculationResult = compute_loan_metrics(
        principal, current_rate, new_rate, tenure_months, extra_monthly
    )
    return result.value
