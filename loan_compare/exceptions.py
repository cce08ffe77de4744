"""
Exceptions raised by the calculation engine and the boundary that converts
them into ``CalculationResult`` failures.
"""

import functools
import logging
from typing import Callable

from .data_models import CalculationResult, FailureKind

logger = logging.getLogger(__name__)


class LoanCalculationError(ValueError):
    """Base class for expected calculation failures."""

    kind = FailureKind.NUMERIC_ERROR


class InvalidLoanInput(LoanCalculationError):
    """Raised when principal, rate, tenure or a payment is out of range."""

    kind = FailureKind.INVALID_INPUT


class InsufficientPaymentError(LoanCalculationError):
    """Raised when an installment does not even cover the monthly interest."""

    kind = FailureKind.INSUFFICIENT_PAYMENT


class NonConvergentScheduleError(LoanCalculationError):
    """Raised when a schedule hits the step cap with a positive balance."""

    kind = FailureKind.NON_CONVERGENT


def returns_result(default_factory: Callable[[], object]):
    """
    Wrap a computation so it returns a ``CalculationResult`` and never raises.

    Expected failures (``LoanCalculationError``) are logged as warnings and
    reported with their own kind. Decimal and arithmetic errors are logged
    with a traceback and reported as ``numeric_error``. In both cases the
    result carries ``default_factory()`` as its value.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> CalculationResult:
            try:
                return CalculationResult(func(*args, **kwargs))
            except LoanCalculationError as exc:
                logger.warning("%s failed (%s): %s", func.__name__, exc.kind.value, exc)
                return CalculationResult(default_factory(), exc.kind, str(exc))
            except ArithmeticError as exc:
                logger.exception("Numeric failure in %s", func.__name__)
                return CalculationResult(default_factory(), FailureKind.NUMERIC_ERROR, str(exc))

        return wrapper

    return decorator
