"""Data models for the loan comparison calculator.

This module defines dataclasses representing the entities passed between the
engine and its consumers: the loan terms, individual amortization entries,
the summary scorecard and the month-aligned comparison rows used for charts.
Every computation entry point also has a variant returning a
``CalculationResult`` so callers can tell a successful value apart from a
safe default produced by a failure.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class LoanTerms:
    """Inputs for a single amortizing loan.

    Attributes
    ----------
    principal: Decimal
        The amount borrowed, in currency units.
    annual_rate: Decimal
        Annual nominal interest rate in percent (``9`` means 9 %).
    term_months: int
        Number of monthly installments.
    extra_monthly_payment: Decimal
        Additional amount paid towards principal every month. Upstream
        callers normalize quarterly and yearly lump sums to this figure.
    """

    principal: Decimal
    annual_rate: Decimal
    term_months: int
    extra_monthly_payment: Decimal = Decimal("0")


@dataclass(frozen=True)
class LoanComparisonConfig:
    """All user inputs for comparing a rate change, in normalized form."""

    principal: Decimal
    current_rate: Decimal
    new_rate: Decimal
    tenure_months: int
    extra_monthly: Decimal = Decimal("0")

    def current_terms(self) -> LoanTerms:
        return LoanTerms(self.principal, self.current_rate, self.tenure_months, self.extra_monthly)

    def new_terms(self) -> LoanTerms:
        return LoanTerms(self.principal, self.new_rate, self.tenure_months, self.extra_monthly)


@dataclass(frozen=True)
class AmortizationEntry:
    """One month of an amortization schedule.

    ``payment`` is the total paid that month (interest plus principal,
    including any extra payment). ``balance`` is the principal left after
    the payment and never drops below zero.
    """

    month: int
    payment: Decimal
    principal_paid: Decimal
    interest_paid: Decimal
    balance: Decimal
    cumulative_interest: Decimal


@dataclass(frozen=True)
class LoanMetrics:
    """Summary scorecard for a rate change and an optional extra payment.

    Currency values are rounded to whole units; tenures are in months.
    """

    current_emi: int = 0
    new_emi: int = 0
    monthly_saving: int = 0
    interest_saving: int = 0
    new_tenure: int = 0
    tenure_reduction: int = 0
    extra_payment_saving: int = 0
    extra_tenure_reduction: int = 0
    total_saving: int = 0
    months_with_extra: int = 0
    total_interest_with_extra: int = 0
    total_current_interest: int = 0

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class ComparisonRow:
    """Balances and cumulative interest of several schedules at one month.

    Balance fields are ``None`` once the corresponding loan is paid off
    (except in the same-tenure comparison, which reports raw balances).
    Fields a scenario does not use stay ``None`` as well; see
    ``loan_compare.scenarios.SCENARIOS`` for the fields each scenario fills.
    """

    month: int
    original_balance: Optional[Decimal] = None
    modified_balance: Optional[Decimal] = None
    rate_change_balance: Optional[Decimal] = None
    combined_balance: Optional[Decimal] = None
    original_interest: Optional[Decimal] = None
    modified_interest: Optional[Decimal] = None
    rate_change_interest: Optional[Decimal] = None
    combined_interest: Optional[Decimal] = None
    savings: Optional[Decimal] = None


class FailureKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    INSUFFICIENT_PAYMENT = "insufficient_payment"
    NON_CONVERGENT = "non_convergent"
    NUMERIC_ERROR = "numeric_error"


@dataclass(frozen=True)
class CalculationResult(Generic[T]):
    """Outcome of a computation.

    ``value`` always holds something usable: the computed value on success,
    or the safe default (empty list, all-zero metrics) when ``failure`` is
    set.
    """

    value: T
    failure: Optional[FailureKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None
