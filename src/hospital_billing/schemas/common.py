"""Shared types for billing schemas."""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from pydantic import BaseModel

from ..errors import ValidationError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | float | str, field: str = "Amount") -> Decimal:
    """Convert a numeric input to a two-place Decimal.

    Floats go through ``str`` first so 0.1 becomes exactly 0.10. Inputs that
    would need rounding to fit whole cents are rejected rather than rounded,
    as are magnitudes too large to carry cents.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field} must be a number, got {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite, got {value!r}")
    try:
        money = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"{field} is too large, got {value!r}") from None
    if money != amount:
        raise ValidationError(f"{field} cannot have more than two decimal places, got {value!r}")
    # -0.00 compares equal to zero but would keep its sign in sums and output
    return money.copy_abs() if money.is_zero() else money


def is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


class BillStatus(str, Enum):
    """Derived payment state of a bill."""

    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


class PaymentStatus(str, Enum):
    """Lifecycle state of a single payment."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class Patient(BaseModel):
    """Patient as returned by the patient directory."""

    patient_id: str
    first_name: str
    last_name: str = ""
    date_of_birth: date | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class ValidationSeverity(str, Enum):
    """How urgently a ledger finding needs attention. HIGH means money is misstated."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"


class ValidationStatus(str, Enum):
    """Kind of ledger finding: a hard error, a figure mismatch or a warning."""

    PASS = "PASS"
    MISMATCH = "MISMATCH"
    WARNING = "WARNING"
    ERROR = "ERROR"
    INFO = "INFO"


class ValidationResult(BaseModel):
    """Result of a single ledger check."""

    check_name: str
    status: ValidationStatus
    severity: ValidationSeverity
    detail: str
    bill_id: str | None = None
    discrepancy: Decimal | None = None
    recommendation: str | None = None
