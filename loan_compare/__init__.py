"""Loan comparison calculator: EMI, amortization and rate-change scenarios."""

from .engine import compute_emi, compute_term_for_emi, generate_amortization_schedule, simulate
from .metrics import calculate_loan
from .scenarios import (
    generate_combined_impact_data,
    generate_extra_payment_data,
    generate_same_emi_data,
    generate_same_tenure_data,
)

__all__ = [
    "calculate_loan",
    "compute_emi",
    "compute_term_for_emi",
    "generate_amortization_schedule",
    "generate_combined_impact_data",
    "generate_extra_payment_data",
    "generate_same_emi_data",
    "generate_same_tenure_data",
    "simulate",
]
