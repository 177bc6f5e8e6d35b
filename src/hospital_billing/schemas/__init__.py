"""Billing schemas for bills, payments and ledger reporting."""

from .bill import DEFAULT_OVERDUE_AFTER_DAYS, Bill, BillItem, derive_status
from .common import (
    BillStatus,
    Patient,
    PaymentStatus,
    ValidationResult,
    ValidationSeverity,
    ValidationStatus,
    to_money,
)
from .payment import ALLOWED_TRANSITIONS, Payment
from .summary import BillingSummary

__all__ = [
    # Common
    "BillStatus",
    "PaymentStatus",
    "Patient",
    "ValidationSeverity",
    "ValidationStatus",
    "ValidationResult",
    "to_money",
    # Bill
    "DEFAULT_OVERDUE_AFTER_DAYS",
    "BillItem",
    "Bill",
    "derive_status",
    # Payment
    "ALLOWED_TRANSITIONS",
    "Payment",
    # Output
    "BillingSummary",
]
